"""
historygraph/graph/__init__.py

Shared types passed between the windowing, building and layout stages.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from historygraph.models.schemas.event import WorkflowExecutionRef


class EdgeType(str, Enum):
    """How the source of an edge relates to its target."""

    DIRECT        = "direct"
    INFERRED      = "inferred"
    CHRONOLOGICAL = "chronological"


@dataclass(frozen=True)
class Window:
    """Half-open index range ``[start, stop)`` into the full event list."""

    start: int
    stop: int

    @property
    def center(self) -> float:
        return (self.start + self.stop) / 2

    def __len__(self) -> int:
        return self.stop - self.start


@dataclass(frozen=True)
class GraphConfig:
    """Tuning knobs for windowing and layout.

    Attributes:
        window_size:        Maximum number of events materialised per window.
        reuse_tightness:    Fraction of half a window the selection may drift
                            from the window centre before a rebuild, in
                            (0, 1] so the band stays inside the window.
        chronological_edges: Emit fallback edges to the next event for nodes
                            without a structural outgoing edge.
        level_step:         x distance between adjacent levels.
        time_step:          y distance between distinct timestamps.
        time_shift:         y distance between stacked nodes sharing a
                            timestamp.
    """

    window_size: int = 100
    reuse_tightness: float = 0.6
    chronological_edges: bool = False
    level_step: float = 150.0
    time_step: float = 100.0
    time_shift: float = 40.0

    def __post_init__(self) -> None:
        if self.window_size < 1:
            raise ValueError(f"window_size must be >= 1, got {self.window_size}")
        if not 0 < self.reuse_tightness <= 1:
            raise ValueError(
                f"reuse_tightness must be in (0, 1], got {self.reuse_tightness}"
            )
        for name in ("level_step", "time_step", "time_shift"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be >= 0, got {getattr(self, name)}")

    @classmethod
    def from_settings(cls, settings) -> GraphConfig:
        return cls(
            window_size=settings.graph_window_size,
            reuse_tightness=settings.graph_reuse_tightness,
            chronological_edges=settings.graph_chronological_edges,
            level_step=settings.graph_level_step,
            time_step=settings.graph_time_step,
            time_shift=settings.graph_time_shift,
        )


@dataclass
class GraphNode:
    """One event rendered as a node.

    ``level``, ``time_index`` and ``time_index_secondary`` stay ``None``
    until the layout pass assigns them; ``x``/``y`` likewise.
    """

    id: str
    name: str
    timestamp: datetime
    status: str | None = None
    child_route: WorkflowExecutionRef | None = None
    new_execution_run_id: str | None = None
    level: int | None = None
    time_index: int | None = None
    time_index_secondary: int | None = None
    x: float | None = None
    y: float | None = None


@dataclass(frozen=True)
class GraphEdge:
    source: str
    target: str
    type: EdgeType


@dataclass
class GraphBuild:
    """Raw output of the builder for one window."""

    nodes: list[GraphNode] = field(default_factory=list)
    edges: list[GraphEdge] = field(default_factory=list)
    previous_execution_run_id: str | None = None
    parent_workflow_execution: WorkflowExecutionRef | None = None


@dataclass
class GraphResult:
    """Answer to one selection change.

    Attributes:
        should_redraw: False when the previous window was kept; ``elements``
                       is then empty and the caller only refocuses.
        elements:      Positioned nodes followed by edges.
    """

    should_redraw: bool
    elements: list[GraphNode | GraphEdge] = field(default_factory=list)
    previous_execution_run_id: str | None = None
    parent_workflow_execution: WorkflowExecutionRef | None = None
    window: Window | None = None
