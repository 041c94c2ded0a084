from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

import yaml
from pydantic import ValidationError

from autoflow.core.errors import RegistryLoadError

from .schemas import StepCategory, StepDefinition

logger = logging.getLogger(__name__)


class CapabilityRegistry:
    """Read-only catalog of step definitions, built once and shared by reference."""

    def __init__(self, steps: Iterable[StepDefinition]) -> None:
        self._steps: tuple[StepDefinition, ...] = tuple(steps)
        self._by_id: dict[str, StepDefinition] = {}
        for step in self._steps:
            if step.id in self._by_id:
                raise RegistryLoadError(f"duplicate step id in registry: {step.id}")
            self._by_id[step.id] = step

    def list_all(self) -> tuple[StepDefinition, ...]:
        return self._steps

    def by_category(self, category: StepCategory | str) -> tuple[StepDefinition, ...]:
        wanted = StepCategory(category)
        return tuple(step for step in self._steps if step.category is wanted)

    def by_id(self, step_id: str) -> StepDefinition | None:
        return self._by_id.get(step_id)

    def ids(self) -> list[str]:
        return [step.id for step in self._steps]

    def is_valid(self, step_id: str) -> bool:
        return step_id in self._by_id

    def __len__(self) -> int:
        return len(self._steps)


def load_registry(path: str | Path) -> CapabilityRegistry:
    registry_path = Path(path)
    if not registry_path.exists():
        raise RegistryLoadError(f"registry file not found: {registry_path}")
    try:
        with registry_path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise RegistryLoadError(f"could not read registry file {registry_path}: {exc}") from exc

    raw_steps = data.get("steps") if isinstance(data, dict) else None
    if not isinstance(raw_steps, list):
        raise RegistryLoadError(f"registry file {registry_path} must define a 'steps' list")

    try:
        steps = [StepDefinition.model_validate(item) for item in raw_steps]
    except ValidationError as exc:
        raise RegistryLoadError(f"invalid step definition in {registry_path}: {exc}") from exc

    registry = CapabilityRegistry(steps)
    if len(registry) == 0:
        logger.warning("capability registry is empty; no steps can be planned", extra={"extra_fields": {"path": str(registry_path)}})
    else:
        logger.info("capability registry loaded", extra={"extra_fields": {"path": str(registry_path), "step_count": len(registry)}})
    return registry
