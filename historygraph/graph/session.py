"""
historygraph/graph/session.py

Per-history state: the loaded event list and the last rendered window.

GraphSession.select() is the single entry point a renderer calls on each
selection change:

    window selector → builder → layout → flat element list

Loading a new event list replaces the history and forgets the window.  A
session is not safe for concurrent use; the session store serialises
calls.
"""
from __future__ import annotations

from collections.abc import Sequence

import structlog

from historygraph.graph import GraphConfig, GraphResult, Window
from historygraph.graph.builder import Resolver, build_graph
from historygraph.graph.connections import EventHistory, resolve_connections
from historygraph.graph.layout import layout_graph
from historygraph.graph.window import select_window
from historygraph.models.schemas.event import HistoryEvent

logger = structlog.get_logger(__name__)


class GraphSession:
    """Windowed graph over one workflow history."""

    def __init__(
        self,
        config: GraphConfig | None = None,
        *,
        resolver: Resolver = resolve_connections,
    ) -> None:
        self.config = config or GraphConfig()
        self._resolver = resolver
        self._history = EventHistory(())
        self._window: Window | None = None

    @property
    def history(self) -> EventHistory:
        return self._history

    @property
    def window(self) -> Window | None:
        return self._window

    def load(self, events: Sequence[HistoryEvent]) -> None:
        """Replace the event list and reset the window."""
        self._history = EventHistory(events)
        self._window = None
        logger.info("graph_session_loaded", events=len(self._history))

    def select(self, selected_id: str | None) -> GraphResult:
        """Return the graph for *selected_id*.

        When the selection is still inside the hysteresis band of the last
        window, nothing is rebuilt and ``should_redraw`` is False.
        """
        history = self._history
        if not len(history):
            return GraphResult(should_redraw=False)

        selection = select_window(history, selected_id, self._window, self.config)
        if selection.index < 0:
            logger.info("graph_selected_event_missing", selected_id=selected_id)

        if selection.reused:
            logger.debug(
                "graph_window_reused",
                selected_id=selected_id,
                index=selection.index,
                start=selection.window.start,
                stop=selection.window.stop,
            )
            return GraphResult(should_redraw=False, window=selection.window)

        window = selection.window
        self._window = window
        logger.info(
            "graph_window_selected",
            selected_id=selected_id,
            index=selection.index,
            start=window.start,
            stop=window.stop,
        )

        build = build_graph(
            history[window.start:window.stop],
            history,
            chronological_edges=self.config.chronological_edges,
            resolver=self._resolver,
        )
        nodes = layout_graph(
            build.nodes,
            build.edges,
            level_step=self.config.level_step,
            time_step=self.config.time_step,
            time_shift=self.config.time_shift,
        )
        return GraphResult(
            should_redraw=True,
            elements=[*nodes, *build.edges],
            previous_execution_run_id=build.previous_execution_run_id,
            parent_workflow_execution=build.parent_workflow_execution,
            window=window,
        )
