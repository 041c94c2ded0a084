from __future__ import annotations

from typing import Any, Protocol

from autoflow.core.agents.schemas import GraphNode

from .schemas import HandlerResult


class StepHandler(Protocol):
    name: str

    async def handle(
        self, node: GraphNode, outputs: dict[str, Any], context: dict[str, Any]
    ) -> HandlerResult | dict[str, Any]: ...


class HandlerRegistry:
    def __init__(self) -> None:
        self._handlers: dict[str, StepHandler] = {}

    def register(self, handler: StepHandler) -> None:
        if not getattr(handler, "name", ""):
            raise ValueError("handler must declare a non-empty name")
        self._handlers[handler.name] = handler

    def get(self, name: str) -> StepHandler:
        return self._handlers[name]

    def has(self, name: str) -> bool:
        return name in self._handlers

    def names(self) -> list[str]:
        return sorted(self._handlers.keys())

    def __len__(self) -> int:
        return len(self._handlers)
