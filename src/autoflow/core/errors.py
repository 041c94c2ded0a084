from __future__ import annotations


class AutoflowError(RuntimeError):
    """Base error for workflow synthesis and execution."""


class RegistryLoadError(AutoflowError):
    """Raised when the capability registry file is missing or malformed."""


class WorkflowStructureError(AutoflowError):
    def __init__(self, message: str, status_code: int = 400) -> None:
        super().__init__(message)
        self.status_code = status_code
