from .registry import CapabilityRegistry, load_registry
from .schemas import CATEGORY_ORDER, Capability, StepCategory, StepDefinition

__all__ = [
    "CATEGORY_ORDER",
    "Capability",
    "CapabilityRegistry",
    "StepCategory",
    "StepDefinition",
    "load_registry",
]
