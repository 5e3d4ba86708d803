"""
historygraph/graph/builder.py

Turns a window of history events into raw graph nodes and edges.

Edges are only materialised when both endpoints are inside the window;
links that leave it are dropped silently since a window routinely cuts a
parent chain in half.

Edge passes
-----------
  1. direct / inferred: from each event's parent and inferred child.
     The source of every such edge is remembered as "linked".
  2. chronological: optional, only for events that are not linked,
     pointing at the next event in the history.

An inferred edge marks its source as linked but not its target, same as
a direct edge marks only the parent.  Keep it that way: it decides which
nodes get a chronological fallback.
"""
from __future__ import annotations

from collections.abc import Callable, Sequence

import structlog

from historygraph.graph import EdgeType, GraphBuild, GraphEdge, GraphNode
from historygraph.graph.connections import Connections, EventHistory, resolve_connections
from historygraph.models.schemas.event import HistoryEvent

logger = structlog.get_logger(__name__)

Resolver = Callable[[HistoryEvent, EventHistory], Connections]


def build_graph(
    window_events: Sequence[HistoryEvent],
    history: EventHistory,
    *,
    chronological_edges: bool = False,
    resolver: Resolver = resolve_connections,
) -> GraphBuild:
    """Build nodes and edges for *window_events*.

    Args:
        window_events:       The events of the current window, in history
                             order.
        history:             The full history; links are resolved against it.
        chronological_edges: Enable the chronological fallback pass.
        resolver:            Relationship resolver, called once per event.

    Returns:
        GraphBuild with one node per event and the in-window edges.  The
        first non-null previous-run id and parent execution reported by
        any event are carried over independently.
    """
    build = GraphBuild()
    event_ids: set[str] = {event.event_id for event in window_events}
    resolved: dict[str, Connections] = {}

    for event in window_events:
        connections = resolver(event, history)
        resolved[event.event_id] = connections

        build.nodes.append(
            GraphNode(
                id=event.event_id,
                name=event.event_type,
                timestamp=event.timestamp,
                status=connections.status,
                child_route=connections.child_route,
                new_execution_run_id=connections.new_execution_run_id,
            )
        )

        if build.previous_execution_run_id is None:
            build.previous_execution_run_id = connections.previous_execution_run_id
        if build.parent_workflow_execution is None:
            build.parent_workflow_execution = connections.parent_workflow_execution

    # ── Direct and inferred edges ─────────────────────────────────────────
    linked: set[str] = set()
    for event in window_events:
        connections = resolved[event.event_id]

        if connections.parent is not None and connections.parent in event_ids:
            linked.add(connections.parent)
            build.edges.append(
                GraphEdge(source=connections.parent, target=event.event_id, type=EdgeType.DIRECT)
            )

        if connections.inferred_child is not None and connections.inferred_child in event_ids:
            linked.add(event.event_id)
            build.edges.append(
                GraphEdge(
                    source=event.event_id,
                    target=connections.inferred_child,
                    type=EdgeType.INFERRED,
                )
            )

    # ── Chronological fallback ────────────────────────────────────────────
    if chronological_edges:
        for event in window_events:
            if event.event_id in linked:
                continue
            child = resolved[event.event_id].chronological_child
            if child is not None and child in event_ids:
                build.edges.append(
                    GraphEdge(source=event.event_id, target=child, type=EdgeType.CHRONOLOGICAL)
                )

    logger.debug(
        "graph_built",
        nodes=len(build.nodes),
        edges=len(build.edges),
        linked=len(linked),
        chronological=chronological_edges,
    )
    return build
