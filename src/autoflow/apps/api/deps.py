from __future__ import annotations

from functools import lru_cache

from autoflow.core.agents.generator import WorkflowGenerator
from autoflow.core.config import AutoflowSettings, load_settings
from autoflow.core.orchestration.builtin import build_default_handlers
from autoflow.core.orchestration.handlers import HandlerRegistry
from autoflow.core.registry import CapabilityRegistry, load_registry


@lru_cache(maxsize=1)
def get_settings() -> AutoflowSettings:
    return load_settings()


@lru_cache(maxsize=1)
def get_registry() -> CapabilityRegistry:
    return load_registry(get_settings().registry_path)


@lru_cache(maxsize=1)
def get_generator() -> WorkflowGenerator:
    return WorkflowGenerator(registry=get_registry(), settings=get_settings())


@lru_cache(maxsize=1)
def get_handler_registry() -> HandlerRegistry:
    return build_default_handlers()
