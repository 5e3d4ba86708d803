from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class WorkflowExecutionRef(BaseModel):
    """Pointer to one run of a workflow (navigation target)."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    workflow_id: str
    run_id: str | None = None


class HistoryEvent(BaseModel):
    """One workflow history event as supplied by the history collaborator.

    ``event_id`` is always held as a string; ids referenced from
    ``details`` are stringified before comparison.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    event_id: str
    event_type: str
    timestamp: datetime
    details: dict[str, Any] = Field(default_factory=dict)

    @field_validator("event_id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> str:
        return str(value)


class HistoryUpload(BaseModel):
    """Request body replacing the event list of a graph session."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    events: list[HistoryEvent]


class HistoryLoaded(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    event_count: int
