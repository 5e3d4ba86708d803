"""
historygraph/storage/session_store.py

Process-local registry of GraphSessions, one per workflow run.

Sessions are kept in least-recently-used order and evicted beyond
``max_sessions``.  Every call on a session holds that session's lock for
the whole window check + rebuild, so two selections on the same run never
interleave.
"""
from __future__ import annotations

import threading
from collections import OrderedDict
from collections.abc import Sequence
from dataclasses import dataclass, field

import structlog

from historygraph.config import settings
from historygraph.graph import GraphConfig, GraphResult
from historygraph.graph.session import GraphSession
from historygraph.models.schemas.event import HistoryEvent

logger = structlog.get_logger(__name__)

SessionKey = tuple[str, str]


class SessionNotFoundError(LookupError):
    """No history has been loaded for the requested workflow run."""


@dataclass
class _Entry:
    session: GraphSession
    lock: threading.Lock = field(default_factory=threading.Lock)


class SessionStore:
    """LRU map of workflow run → GraphSession."""

    def __init__(self, config: GraphConfig, max_sessions: int = 256) -> None:
        self.config = config
        self.max_sessions = max_sessions
        self._entries: OrderedDict[SessionKey, _Entry] = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def _entry(self, key: SessionKey, *, create: bool) -> _Entry:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                if not create:
                    raise SessionNotFoundError(f"No history loaded for {key[0]}/{key[1]}")
                entry = _Entry(GraphSession(self.config))
                self._entries[key] = entry
                while len(self._entries) > self.max_sessions:
                    evicted, _ = self._entries.popitem(last=False)
                    logger.info("graph_session_evicted", workflow_id=evicted[0], run_id=evicted[1])
            self._entries.move_to_end(key)
            return entry

    def load(self, key: SessionKey, events: Sequence[HistoryEvent]) -> int:
        """Replace the history of *key*, creating the session if needed."""
        entry = self._entry(key, create=True)
        with entry.lock:
            entry.session.load(events)
            return len(entry.session.history)

    def select(self, key: SessionKey, selected_id: str | None) -> GraphResult:
        """Run a selection change on an existing session.

        Raises:
            SessionNotFoundError: no history was loaded for *key*.
        """
        entry = self._entry(key, create=False)
        with entry.lock:
            return entry.session.select(selected_id)

    def drop(self, key: SessionKey) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


_store: SessionStore | None = None


def init_session_store() -> None:
    """Create the session store (called on app startup)."""
    global _store
    _store = SessionStore(
        GraphConfig.from_settings(settings),
        max_sessions=settings.graph_max_sessions,
    )


def close_session_store() -> None:
    """Discard all sessions (called on app shutdown)."""
    global _store
    if _store is not None:
        _store.clear()
        _store = None


def get_session_store() -> SessionStore:
    """FastAPI dependency that returns the session store."""
    if _store is None:
        raise RuntimeError("Session store not initialised. Call init_session_store() first.")
    return _store
