from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, Field

from autoflow.core.registry.schemas import StepCategory

from .constants import EDGE_TYPE, NODE_TYPE

IssueType = Literal[
    "no_nodes",
    "no_input",
    "no_output",
    "orphan_nodes",
    "cycle_detected",
    "duplicate_nodes",
]


class IntentAction(BaseModel):
    type: str
    confidence: float = Field(ge=0, le=1)


class Intent(BaseModel):
    actions: list[IntentAction] = Field(default_factory=list)
    sources: list[str] = Field(default_factory=list)
    outputs: list[str] = Field(default_factory=list)
    frequency: Optional[str] = None
    confidence: float = 0.0
    raw: str = ""


class PlannedStep(BaseModel):
    node_id: str
    category: StepCategory
    label: str
    reason: str
    score: float = 0.0
    is_fallback: bool = False


class Position(BaseModel):
    x: float
    y: float


class GraphNodeData(BaseModel):
    node_id: Optional[str] = None
    label: str = ""
    category: Optional[StepCategory] = None
    handler: Optional[str] = None
    reason: str = ""
    config: dict[str, Any] = Field(default_factory=dict)


class GraphNode(BaseModel):
    id: str
    type: str = NODE_TYPE
    position: Position = Field(default_factory=lambda: Position(x=0, y=0))
    data: GraphNodeData = Field(default_factory=GraphNodeData)


class GraphEdge(BaseModel):
    id: str
    source: str
    target: str
    type: str = EDGE_TYPE
    animated: bool = True


class Graph(BaseModel):
    nodes: list[GraphNode] = Field(default_factory=list)
    edges: list[GraphEdge] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)


class DuplicateGroup(BaseModel):
    node_id: Optional[str]
    duplicate_ids: list[str]


class ValidationIssue(BaseModel):
    type: IssueType
    message: str
    node_ids: Optional[list[str]] = None
    duplicates: Optional[list[DuplicateGroup]] = None


class ValidationResult(BaseModel):
    valid: bool
    issues: list[ValidationIssue] = Field(default_factory=list)


class RepairResult(BaseModel):
    workflow: Graph
    repairs: list[str] = Field(default_factory=list)
    repaired: bool = False
    remaining_issues: list[ValidationIssue] = Field(default_factory=list)


class ValidateAndRepairResult(BaseModel):
    workflow: Graph
    valid: bool
    repairs: list[str] = Field(default_factory=list)
    repaired: bool = False
    remaining_issues: list[ValidationIssue] = Field(default_factory=list)


class Decision(BaseModel):
    stage: str
    action: str
    reason: str
    timestamp: float
