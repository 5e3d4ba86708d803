"""
tests/unit/test_window.py

Unit tests for historygraph.graph.window.

Coverage
--------
  - candidate_window() centres on the index and clamps to [0, length]
  - candidate_window() with index -1 starts at 0
  - reuse_band() half-width is window_size * 0.5 * reuse_tightness
  - reuse_band() opens to 0 / length for windows touching the head / tail
  - select_window() without a previous window never reuses
  - select_window() reuses inside the band and rebuilds outside it
  - select_window() never reuses for a selection that is not found
  - select_window() never reuses for a selection outside the previous window
  - GraphConfig and Settings keep reuse_tightness in (0, 1]
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from historygraph.config import Settings
from historygraph.graph import GraphConfig, Window
from historygraph.graph.connections import EventHistory
from historygraph.graph.window import candidate_window, reuse_band, select_window
from historygraph.models.schemas.event import HistoryEvent

_T0 = datetime(2024, 3, 1, tzinfo=timezone.utc)


def _history(length: int) -> EventHistory:
    return EventHistory([
        HistoryEvent(
            event_id=i + 1,
            event_type="MarkerRecorded",
            timestamp=_T0 + timedelta(seconds=i),
        )
        for i in range(length)
    ])


def _config(window_size: int = 100, reuse_tightness: float = 0.6) -> GraphConfig:
    return GraphConfig(window_size=window_size, reuse_tightness=reuse_tightness)


# ---------------------------------------------------------------------------
# candidate_window
# ---------------------------------------------------------------------------

class TestCandidateWindow:
    def test_centred_on_index(self) -> None:
        assert candidate_window(150, 1000, 100) == Window(100, 200)

    def test_clamped_at_head(self) -> None:
        assert candidate_window(10, 1000, 100) == Window(0, 100)

    def test_clamped_at_tail(self) -> None:
        assert candidate_window(990, 1000, 100) == Window(940, 1000)

    def test_short_list(self) -> None:
        assert candidate_window(2, 3, 300) == Window(0, 3)

    def test_missing_index_starts_at_zero(self) -> None:
        assert candidate_window(-1, 1000, 100) == Window(0, 100)

    def test_window_of_one_contains_index(self) -> None:
        window = candidate_window(7, 20, 1)
        assert window.start <= 7 < window.stop


# ---------------------------------------------------------------------------
# reuse_band
# ---------------------------------------------------------------------------

class TestReuseBand:
    def test_band_around_centre(self) -> None:
        low, high = reuse_band(Window(100, 200), 1000, _config())
        assert low == pytest.approx(120)
        assert high == pytest.approx(180)

    def test_tightness_scales_band(self) -> None:
        low, high = reuse_band(Window(100, 200), 1000, _config(reuse_tightness=1.0))
        assert (low, high) == (pytest.approx(100), pytest.approx(200))

    def test_head_window_opens_lower_bound(self) -> None:
        low, high = reuse_band(Window(0, 100), 1000, _config())
        assert low == 0
        assert high == pytest.approx(80)

    def test_tail_window_opens_upper_bound(self) -> None:
        low, high = reuse_band(Window(900, 1000), 1000, _config())
        assert low == pytest.approx(920)
        assert high == 1000


# ---------------------------------------------------------------------------
# select_window
# ---------------------------------------------------------------------------

class TestSelectWindow:
    def test_first_selection_builds(self) -> None:
        selection = select_window(_history(1000), "501", None, _config())
        assert selection.reused is False
        assert selection.index == 500
        assert selection.window == Window(450, 550)

    def test_reselect_near_centre_reuses(self) -> None:
        previous = Window(450, 550)
        selection = select_window(_history(1000), "511", previous, _config())
        assert selection.reused is True
        assert selection.window is previous

    def test_band_edges_are_inclusive(self) -> None:
        previous = Window(450, 550)
        # Band is [470, 530]; index 530 is event id 531.
        assert select_window(_history(1000), "531", previous, _config()).reused is True
        assert select_window(_history(1000), "532", previous, _config()).reused is False

    def test_reselect_outside_band_rebuilds(self) -> None:
        previous = Window(450, 550)
        selection = select_window(_history(1000), "541", previous, _config())
        assert selection.reused is False
        assert selection.window == Window(490, 590)
        assert selection.window.start <= selection.index < selection.window.stop

    def test_full_tightness_never_reuses_past_window_stop(self) -> None:
        previous = Window(450, 550)
        config = _config(reuse_tightness=1.0)
        # Band is [450, 550] but index 550 (id 551) was never rendered.
        assert select_window(_history(1000), "451", previous, config).reused is True
        assert select_window(_history(1000), "550", previous, config).reused is True
        selection = select_window(_history(1000), "551", previous, config)
        assert selection.reused is False
        assert selection.window.start <= selection.index < selection.window.stop

    def test_head_window_reuses_early_selection(self) -> None:
        previous = Window(0, 100)
        selection = select_window(_history(1000), "1", previous, _config())
        assert selection.reused is True

    def test_whole_list_window_always_reuses(self) -> None:
        previous = Window(0, 40)
        for event_id in ("1", "20", "40"):
            assert select_window(_history(40), event_id, previous, _config()).reused is True

    def test_missing_selection_never_reuses(self) -> None:
        previous = Window(0, 40)
        selection = select_window(_history(40), "nope", previous, _config())
        assert selection.reused is False
        assert selection.index == -1
        assert selection.window == Window(0, 40)

    def test_missing_selection_without_previous(self) -> None:
        selection = select_window(_history(1000), None, None, _config())
        assert selection.index == -1
        assert selection.window == Window(0, 100)


class TestGraphConfigValidation:
    def test_window_size_must_be_positive(self) -> None:
        with pytest.raises(ValueError):
            GraphConfig(window_size=0)

    def test_tightness_must_be_positive(self) -> None:
        with pytest.raises(ValueError):
            GraphConfig(reuse_tightness=0)

    def test_steps_must_not_be_negative(self) -> None:
        with pytest.raises(ValueError):
            GraphConfig(time_shift=-1)

    def test_tightness_above_one_rejected(self) -> None:
        with pytest.raises(ValueError):
            GraphConfig(reuse_tightness=2.0)

    def test_tightness_of_one_allowed(self) -> None:
        assert GraphConfig(reuse_tightness=1.0).reuse_tightness == 1.0

    def test_settings_reject_tightness_above_one(self) -> None:
        with pytest.raises(ValidationError):
            Settings(graph_reuse_tightness=1.5)
