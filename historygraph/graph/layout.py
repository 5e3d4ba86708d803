"""
historygraph/graph/layout.py

Two-axis layout for a window graph.

x: ``level``, a horizontal rank from a pre-order walk of the forest the
   edges describe.  The first child of a node stays on its parent's
   level; every later sibling moves one level past everything placed so
   far, so subtrees never overlap.
y: time, nodes are ranked by distinct timestamp (``time_index``), which
   throws away idle gaps between events.  A node reached from a parent
   with the same timestamp is stacked below it (``time_index_secondary``
   is the parent's plus one).  Each distinct ``(time_index,
   time_index_secondary)`` pair then gets one coordinate: ``time_shift``
   below the previous pair when the timestamp is unchanged, ``time_step``
   below it otherwise.

A node that already carries a level is never placed again, so running the
layout twice over the same nodes is a no-op for levels and yields the same
positions.  The walk uses an explicit stack; cycles terminate because of
the same guard.  Nodes that only sit on cycles have no root above them and
are seeded as extra roots in input order.
"""
from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from datetime import datetime

import structlog

from historygraph.graph import GraphEdge, GraphNode

logger = structlog.get_logger(__name__)


@dataclass
class _Frame:
    """One sibling group on the walk stack."""

    pending: Iterator[GraphNode]
    parent: GraphNode | None = None
    assigned: bool = False


def _rank_timestamps(nodes: Sequence[GraphNode]) -> None:
    ranks: dict[datetime, int] = {}
    for node in nodes:
        rank = ranks.setdefault(node.timestamp, len(ranks))
        if node.time_index is None:
            node.time_index = rank


def _assign_levels(
    nodes: Sequence[GraphNode],
    roots: list[GraphNode],
    children: dict[str, list[GraphNode]],
) -> int:
    """Pre-order walk assigning level and secondary time index.

    Returns the highest level handed out.
    """
    placed: set[str] = {node.id for node in nodes if node.level is not None}
    remaining = iter(nodes)
    top = _Frame(pending=iter(roots))
    stack: list[_Frame] = [top]
    level = 0

    while True:
        while stack:
            frame = stack[-1]
            node = next(frame.pending, None)
            if node is None:
                stack.pop()
                continue
            if node.id in placed:
                continue
            placed.add(node.id)

            if frame.assigned:
                level += 1
            frame.assigned = True
            node.level = level

            parent = frame.parent
            if parent is not None and node.time_index == parent.time_index:
                node.time_index_secondary = (parent.time_index_secondary or 0) + 1
            else:
                node.time_index_secondary = 0

            stack.append(_Frame(pending=iter(children.get(node.id, ())), parent=node))

        # Cycle members are unreachable from any root.
        orphan = next((node for node in remaining if node.id not in placed), None)
        if orphan is None:
            return level
        top.pending = iter((orphan,))
        stack.append(top)


def _time_offsets(
    nodes: Sequence[GraphNode],
    time_step: float,
    time_shift: float,
) -> dict[tuple[int, int], float]:
    pairs = sorted({(node.time_index or 0, node.time_index_secondary or 0) for node in nodes})
    offsets: dict[tuple[int, int], float] = {}
    t = 0.0
    previous: tuple[int, int] | None = None
    for pair in pairs:
        if previous is not None:
            t += time_shift if pair[0] == previous[0] else time_step
        offsets[pair] = t
        previous = pair
    return offsets


def layout_graph(
    nodes: Sequence[GraphNode],
    edges: Sequence[GraphEdge],
    *,
    level_step: float = 150.0,
    time_step: float = 100.0,
    time_shift: float = 40.0,
) -> list[GraphNode]:
    """Position *nodes* in place and return them in input order.

    Args:
        nodes:      Nodes of one window, in history order.
        edges:      Edges among them; edges with an unknown endpoint are
                    ignored.
        level_step: x distance between adjacent levels.
        time_step:  y distance between distinct timestamps.
        time_shift: y distance between stacked same-timestamp nodes.
    """
    by_id: dict[str, GraphNode] = {node.id: node for node in nodes}
    children: dict[str, list[GraphNode]] = defaultdict(list)
    has_parent: set[str] = set()

    for edge in edges:
        if edge.source not in by_id or edge.target not in by_id:
            continue
        children[edge.source].append(by_id[edge.target])
        has_parent.add(edge.target)

    roots = [node for node in nodes if node.id not in has_parent]

    _rank_timestamps(nodes)
    max_level = _assign_levels(nodes, roots, children)
    offsets = _time_offsets(nodes, time_step, time_shift)

    for node in nodes:
        node.x = (node.level or 0) * level_step
        node.y = offsets[(node.time_index or 0, node.time_index_secondary or 0)]

    logger.debug(
        "graph_layout_complete",
        nodes=len(nodes),
        roots=len(roots),
        max_level=max_level,
        time_slots=len(offsets),
    )
    return list(nodes)
