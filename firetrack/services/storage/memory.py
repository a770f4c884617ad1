"""
In-memory storage implementations.

Used for local runs without persistence and for tests.
"""

from typing import Optional
from uuid import UUID

from firetrack.models.audit import AuditEvent
from firetrack.models.records import PortfolioBackup
from firetrack.services.storage.interface import (
    AuditStorageInterface,
    NotFoundError,
    PortfolioStoreInterface,
)


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only audit log held in a list."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    def get_events_by_correlation_id(self, correlation_id: UUID) -> list[AuditEvent]:
        return [e for e in self._events if e.correlation_id == correlation_id]

    def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        return list(reversed(self._events))[:limit]

    def __len__(self) -> int:
        return len(self._events)


class InMemoryPortfolioStore(PortfolioStoreInterface):
    """Portfolio store that keeps a deep copy of the last saved backup."""

    def __init__(self, backup: Optional[PortfolioBackup] = None):
        self._backup = backup.model_copy(deep=True) if backup is not None else None

    @property
    def location(self) -> str:
        return "memory"

    def exists(self) -> bool:
        return self._backup is not None

    def load(self) -> PortfolioBackup:
        if self._backup is None:
            raise NotFoundError("No portfolio stored in memory")
        return self._backup.model_copy(deep=True)

    def save(self, backup: PortfolioBackup) -> bool:
        self._backup = backup.model_copy(deep=True)
        return True
