from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from historygraph.models.schemas.event import WorkflowExecutionRef

_CAMEL = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Position(BaseModel):
    """Rendered coordinates of a node."""
    x: float
    y: float


class NodeData(BaseModel):
    """Payload of a node element."""
    model_config = _CAMEL

    id: str
    name: str
    timestamp: datetime
    status: str | None = None
    child_route: WorkflowExecutionRef | None = None
    new_execution_run_id: str | None = None
    level: int | None = None
    time_index: int | None = None
    time_index_secondary: int | None = None


class EdgeData(BaseModel):
    """Payload of an edge element."""
    source: str
    target: str
    type: Literal["direct", "inferred", "chronological"]


class NodeElement(BaseModel):
    group: Literal["nodes"] = "nodes"
    data: NodeData
    position: Position


class EdgeElement(BaseModel):
    group: Literal["edges"] = "edges"
    data: EdgeData


class SelectRequest(BaseModel):
    """Body of a selection change."""
    model_config = _CAMEL

    selected_event_id: str | None = Field(
        default=None, description="Event id to centre the window on"
    )


class SelectResponse(BaseModel):
    """Graph elements for a selection.

    ``elements`` is empty when ``should_redraw`` is false: the caller keeps
    its current rendering and only focuses the selected node.
    """
    model_config = _CAMEL

    should_redraw: bool
    previous_execution_run_id: str | None = None
    parent_workflow_execution: WorkflowExecutionRef | None = None
    elements: list[NodeElement | EdgeElement] = Field(default_factory=list)
