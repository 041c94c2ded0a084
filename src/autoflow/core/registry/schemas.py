from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class StepCategory(str, Enum):
    INPUT = "input"
    PROCESS = "process"
    OUTPUT = "output"

    @property
    def order(self) -> int:
        return CATEGORY_ORDER.index(self)


CATEGORY_ORDER: tuple[StepCategory, ...] = (StepCategory.INPUT, StepCategory.PROCESS, StepCategory.OUTPUT)


class Capability(BaseModel):
    model_config = ConfigDict(frozen=True)

    action: str
    strength: float = Field(gt=0, le=1)


class StepDefinition(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    category: StepCategory
    label: str
    capabilities: tuple[Capability, ...] = ()
    priority: int = Field(default=1, ge=1)
    is_fallback: bool = False

    def capability_for(self, action: str) -> Capability | None:
        for capability in self.capabilities:
            if capability.action == action:
                return capability
        return None
