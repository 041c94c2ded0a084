"""Settings for the workflow pipeline and executor.

Values come from ``AUTOFLOW_*`` environment variables. ``AUTOFLOW_CONFIG`` may
name a YAML file whose keys match the field names; environment variables win
over the file.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field, field_validator

BUNDLED_REGISTRY_PATH = Path(__file__).resolve().parent / "registry" / "steps.yaml"

_ENV_FIELDS = {
    "AUTOFLOW_REGISTRY_PATH": "registry_path",
    "AUTOFLOW_DEFAULT_INPUT_NODE": "default_input_node",
    "AUTOFLOW_DEFAULT_OUTPUT_NODE": "default_output_node",
    "AUTOFLOW_NODE_TIMEOUT_S": "node_timeout_s",
    "AUTOFLOW_STATE_DIR": "state_dir",
    "AUTOFLOW_LOG_LEVEL": "log_level",
    "AUTOFLOW_LOG_TO_FILE": "log_to_file",
    "AUTOFLOW_LOG_DIR": "log_dir",
    "AUTOFLOW_LOG_MAX_BYTES": "log_max_bytes",
    "AUTOFLOW_LOG_BACKUP_COUNT": "log_backup_count",
}


class AutoflowSettings(BaseModel):
    registry_path: Path = BUNDLED_REGISTRY_PATH
    default_input_node: str = "dataFetcher"
    default_output_node: str = "outputLogger"
    node_timeout_s: Optional[float] = Field(default=30.0)
    state_dir: Path = Field(default_factory=lambda: Path.home() / ".autoflow")
    log_level: str = "INFO"
    log_to_file: bool = False
    log_dir: Optional[Path] = None
    log_max_bytes: int = 5_000_000
    log_backup_count: int = 5

    @field_validator("node_timeout_s", mode="before")
    @classmethod
    def _timeout_zero_disables(cls, value: Any) -> Any:
        if value is None:
            return None
        if isinstance(value, str) and value.strip().casefold() in {"", "off", "none"}:
            return None
        if float(value) <= 0:
            return None
        return value

    @field_validator("log_to_file", mode="before")
    @classmethod
    def _on_off(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().casefold() in {"on", "1", "true", "yes"}
        return value

    @field_validator("registry_path", "state_dir", "log_dir", mode="after")
    @classmethod
    def _expand(cls, value: Optional[Path]) -> Optional[Path]:
        return value.expanduser() if value is not None else None


def _read_yaml(path: Path) -> dict[str, Any]:
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, dict):
        raise ValueError(f"config file {path} must contain a mapping")
    return data


def load_settings(path: Optional[str] = None) -> AutoflowSettings:
    data: dict[str, Any] = {}
    config_path = path or os.getenv("AUTOFLOW_CONFIG")
    if config_path:
        data.update(_read_yaml(Path(config_path).expanduser()))

    for env_name, field_name in _ENV_FIELDS.items():
        raw = os.getenv(env_name)
        if raw is not None and raw.strip() != "":
            data[field_name] = raw.strip()
    return AutoflowSettings.model_validate(data)
