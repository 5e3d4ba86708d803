from historygraph.models.schemas.event import (
    HistoryEvent,
    HistoryLoaded,
    HistoryUpload,
    WorkflowExecutionRef,
)
from historygraph.models.schemas.graph import (
    EdgeData,
    EdgeElement,
    NodeData,
    NodeElement,
    Position,
    SelectRequest,
    SelectResponse,
)

__all__ = [
    "HistoryEvent",
    "HistoryLoaded",
    "HistoryUpload",
    "WorkflowExecutionRef",
    "EdgeData",
    "EdgeElement",
    "NodeData",
    "NodeElement",
    "Position",
    "SelectRequest",
    "SelectResponse",
]
