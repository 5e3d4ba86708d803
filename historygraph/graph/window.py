"""
historygraph/graph/window.py

Window selection with hysteresis.

A window is at most ``window_size`` events centred on the selected event.
Rebuilding the graph for every selection change is wasteful when the user
moves by a few events, so a previous window is kept while the selection
stays inside a band around its centre:

    delta = window_size * 0.5 * reuse_tightness
    band  = [center - delta, center + delta]

A previous window that already touches the head (or tail) of the list
extends its band to 0 (or to the list length).  A selection that is not
found in the list never reuses, and neither does one that falls outside
the rendered window itself.
"""
from __future__ import annotations

from dataclasses import dataclass

from historygraph.graph import GraphConfig, Window
from historygraph.graph.connections import EventHistory


@dataclass(frozen=True)
class WindowSelection:
    """Outcome of select_window().

    Attributes:
        window: The window to render (the previous one when ``reused``).
        reused: True when the previous window is still acceptable.
        index:  Position of the selected event, -1 when not found.
    """

    window: Window
    reused: bool
    index: int


def candidate_window(index: int, length: int, window_size: int) -> Window:
    """Window of up to *window_size* events centred on *index*.

    ``index == -1`` clamps to the head of the list.
    """
    start = max(0, index - window_size // 2)
    stop = min(length, start + window_size)
    return Window(start=start, stop=stop)


def reuse_band(previous: Window, length: int, config: GraphConfig) -> tuple[float, float]:
    """Inclusive index range within which *previous* is kept."""
    delta = config.window_size * 0.5 * config.reuse_tightness
    low = 0 if previous.start == 0 else previous.center - delta
    high = length if previous.stop >= length else previous.center + delta
    return low, high


def select_window(
    history: EventHistory,
    selected_id: str | None,
    previous: Window | None,
    config: GraphConfig,
) -> WindowSelection:
    """Decide which slice of *history* to render for *selected_id*.

    Callers short-circuit on an empty history before calling this.
    """
    index = history.index_of(selected_id)

    if previous is not None and index >= 0:
        low, high = reuse_band(previous, len(history), config)
        if low <= index <= high and previous.start <= index < previous.stop:
            return WindowSelection(window=previous, reused=True, index=index)

    window = candidate_window(index, len(history), config.window_size)
    return WindowSelection(window=window, reused=False, index=index)
