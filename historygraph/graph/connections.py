"""
historygraph/graph/connections.py

Relationship resolution for workflow history events.

Every event is classified by its ``eventType`` into a rule that says

  - which ``details`` keys reference its structural parent, tried in order
    (``startedEventId`` before ``scheduledEventId`` so a close event hangs
    off the start when there was one);
  - whether it wakes the workflow, in which case the next
    DecisionTaskScheduled is its inferred child;
  - whether it opens a unit of work (activity, timer, child, decision)
    whose status is only known from the matching close event;
  - whether it closes one, and with which status.

resolve_connections() runs inside the builder's per-event loops, so all
lookups go through EventHistory, which precomputes id positions, the
"next decision" table and close statuses once per loaded history.  Each
resolve is O(1).
"""
from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from typing import Any

from historygraph.models.schemas.event import HistoryEvent, WorkflowExecutionRef

DECISION_TASK_SCHEDULED = "DecisionTaskScheduled"
PENDING = "pending"


@dataclass(frozen=True)
class Connections:
    """Relationships of one event.  Every field is optional."""

    parent: str | None = None
    inferred_child: str | None = None
    chronological_child: str | None = None
    previous_execution_run_id: str | None = None
    parent_workflow_execution: WorkflowExecutionRef | None = None
    new_execution_run_id: str | None = None
    status: str | None = None
    child_route: WorkflowExecutionRef | None = None


@dataclass(frozen=True)
class _Rule:
    parent_keys: tuple[str, ...] = ()
    wakes: bool = False
    opens: bool = False
    closes: tuple[str, str] | None = None  # (status, key of the opening event)
    child: bool = False


_DTC = "decisionTaskCompletedEventId"

_RULES: dict[str, _Rule] = {
    # ── Workflow ─────────────────────────────────────────
    "WorkflowExecutionStarted":        _Rule(wakes=True),
    "WorkflowExecutionSignaled":       _Rule(wakes=True),
    "WorkflowExecutionCancelRequested": _Rule(wakes=True),
    "WorkflowExecutionCompleted":      _Rule((_DTC,), closes=("completed", "")),
    "WorkflowExecutionFailed":         _Rule((_DTC,), closes=("failed", "")),
    "WorkflowExecutionCanceled":       _Rule((_DTC,), closes=("canceled", "")),
    "WorkflowExecutionContinuedAsNew": _Rule((_DTC,), closes=("completed", "")),
    "WorkflowExecutionTimedOut":       _Rule(closes=("timedout", "")),
    "WorkflowExecutionTerminated":     _Rule(closes=("terminated", "")),
    "UpsertWorkflowSearchAttributes":  _Rule((_DTC,)),
    "MarkerRecorded":                  _Rule((_DTC,)),

    # ── Decisions ────────────────────────────────────────
    "DecisionTaskScheduled": _Rule(opens=True),
    "DecisionTaskStarted":   _Rule(("scheduledEventId",)),
    "DecisionTaskCompleted": _Rule(("startedEventId",),
                                   closes=("completed", "scheduledEventId")),
    "DecisionTaskFailed":    _Rule(("startedEventId",), wakes=True,
                                   closes=("failed", "scheduledEventId")),
    "DecisionTaskTimedOut":  _Rule(("startedEventId", "scheduledEventId"), wakes=True,
                                   closes=("timedout", "scheduledEventId")),

    # ── Activities ───────────────────────────────────────
    "ActivityTaskScheduled":  _Rule((_DTC,), opens=True),
    "ActivityTaskStarted":    _Rule(("scheduledEventId",)),
    "ActivityTaskCompleted":  _Rule(("startedEventId",), wakes=True,
                                    closes=("completed", "scheduledEventId")),
    "ActivityTaskFailed":     _Rule(("startedEventId",), wakes=True,
                                    closes=("failed", "scheduledEventId")),
    "ActivityTaskTimedOut":   _Rule(("startedEventId", "scheduledEventId"), wakes=True,
                                    closes=("timedout", "scheduledEventId")),
    "ActivityTaskCanceled":   _Rule(("startedEventId", "scheduledEventId"), wakes=True,
                                    closes=("canceled", "scheduledEventId")),
    "ActivityTaskCancelRequested":     _Rule((_DTC,)),
    "RequestCancelActivityTaskFailed": _Rule((_DTC,), wakes=True),

    # ── Timers ───────────────────────────────────────────
    "TimerStarted":      _Rule((_DTC,), opens=True),
    "TimerFired":        _Rule(("startedEventId",), wakes=True,
                               closes=("completed", "startedEventId")),
    "TimerCanceled":     _Rule(("startedEventId", _DTC),
                               closes=("canceled", "startedEventId")),
    "CancelTimerFailed": _Rule((_DTC,), wakes=True),

    # ── Child workflows ──────────────────────────────────
    "StartChildWorkflowExecutionInitiated": _Rule((_DTC,), opens=True),
    "StartChildWorkflowExecutionFailed":    _Rule(("initiatedEventId",), wakes=True,
                                                  closes=("failed", "initiatedEventId")),
    "ChildWorkflowExecutionStarted":    _Rule(("initiatedEventId",), wakes=True, child=True),
    "ChildWorkflowExecutionCompleted":  _Rule(("startedEventId",), wakes=True, child=True,
                                              closes=("completed", "initiatedEventId")),
    "ChildWorkflowExecutionFailed":     _Rule(("startedEventId",), wakes=True, child=True,
                                              closes=("failed", "initiatedEventId")),
    "ChildWorkflowExecutionCanceled":   _Rule(("startedEventId",), wakes=True, child=True,
                                              closes=("canceled", "initiatedEventId")),
    "ChildWorkflowExecutionTimedOut":   _Rule(("startedEventId",), wakes=True, child=True,
                                              closes=("timedout", "initiatedEventId")),
    "ChildWorkflowExecutionTerminated": _Rule(("startedEventId",), wakes=True, child=True,
                                              closes=("terminated", "initiatedEventId")),

    # ── External workflows ───────────────────────────────
    "SignalExternalWorkflowExecutionInitiated":        _Rule((_DTC,)),
    "SignalExternalWorkflowExecutionFailed":           _Rule(("initiatedEventId",), wakes=True),
    "ExternalWorkflowExecutionSignaled":               _Rule(("initiatedEventId",), wakes=True),
    "RequestCancelExternalWorkflowExecutionInitiated": _Rule((_DTC,)),
    "RequestCancelExternalWorkflowExecutionFailed":    _Rule(("initiatedEventId",), wakes=True),
    "ExternalWorkflowExecutionCancelRequested":        _Rule(("initiatedEventId",), wakes=True),
}

_NO_RULE = _Rule()


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _ref(details: dict[str, Any], key: str) -> str | None:
    """Stringified event id under *key*; history ids start at 1 so 0 is unset."""
    value = details.get(key)
    if value is None or value == 0 or value == "0" or value == "":
        return None
    return str(value)


def _execution(value: Any) -> WorkflowExecutionRef | None:
    if not isinstance(value, dict) or not value.get("workflowId"):
        return None
    return WorkflowExecutionRef.model_validate(value)


# ---------------------------------------------------------------------------
# History index
# ---------------------------------------------------------------------------

class EventHistory:
    """An ordered event list with the lookup tables the resolver needs.

    Built once per loaded history; never mutated afterwards.
    """

    def __init__(self, events: Sequence[HistoryEvent]) -> None:
        self.events: list[HistoryEvent] = list(events)
        self._positions: dict[str, int] = {}
        self._close_status: dict[str, str] = {}
        self._next_decision: list[int | None] = [None] * len(self.events)

        for position, event in enumerate(self.events):
            self._positions.setdefault(event.event_id, position)
            rule = _RULES.get(event.event_type, _NO_RULE)
            if rule.closes is not None:
                status, key = rule.closes
                opening = _ref(event.details, key) if key else None
                if opening is not None:
                    self._close_status[opening] = status

        upcoming: int | None = None
        for position in range(len(self.events) - 1, -1, -1):
            self._next_decision[position] = upcoming
            if self.events[position].event_type == DECISION_TASK_SCHEDULED:
                upcoming = position

    def __len__(self) -> int:
        return len(self.events)

    def __iter__(self) -> Iterator[HistoryEvent]:
        return iter(self.events)

    def __getitem__(self, item):
        return self.events[item]

    def __contains__(self, event_id: object) -> bool:
        return str(event_id) in self._positions

    def index_of(self, event_id: object) -> int:
        """Position of *event_id* (compared as a string), or -1."""
        if event_id is None:
            return -1
        return self._positions.get(str(event_id), -1)

    def next_event_id(self, position: int) -> str | None:
        if 0 <= position < len(self.events) - 1:
            return self.events[position + 1].event_id
        return None

    def next_decision_id(self, position: int) -> str | None:
        if not 0 <= position < len(self.events):
            return None
        upcoming = self._next_decision[position]
        return self.events[upcoming].event_id if upcoming is not None else None

    def close_status(self, opening_event_id: str) -> str | None:
        return self._close_status.get(opening_event_id)


# ---------------------------------------------------------------------------
# Resolver
# ---------------------------------------------------------------------------

def resolve_connections(event: HistoryEvent, history: EventHistory) -> Connections:
    """Return the relationships of *event* within *history*.

    Pure; the result is never cached by callers.
    """
    rule = _RULES.get(event.event_type, _NO_RULE)
    details = event.details
    position = history.index_of(event.event_id)

    parent: str | None = None
    for key in rule.parent_keys:
        ref = _ref(details, key)
        if ref is not None:
            parent = ref if ref in history else None
            break

    inferred_child = history.next_decision_id(position) if rule.wakes else None

    status: str | None = None
    if rule.closes is not None:
        status = rule.closes[0]
    elif rule.opens:
        status = history.close_status(event.event_id) or PENDING

    previous_run: str | None = None
    parent_execution: WorkflowExecutionRef | None = None
    if event.event_type == "WorkflowExecutionStarted":
        previous_run = details.get("continuedExecutionRunId") or None
        parent_execution = _execution(details.get("parentWorkflowExecution"))

    new_run: str | None = None
    if event.event_type == "WorkflowExecutionContinuedAsNew":
        new_run = details.get("newExecutionRunId") or None

    return Connections(
        parent=parent,
        inferred_child=inferred_child,
        chronological_child=history.next_event_id(position),
        previous_execution_run_id=previous_run,
        parent_workflow_execution=parent_execution,
        new_execution_run_id=new_run,
        status=status,
        child_route=_execution(details.get("workflowExecution")) if rule.child else None,
    )
