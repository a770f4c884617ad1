"""
Abstract Storage Interface

DESIGN DECISION: Storage sits behind two small abstract interfaces. This
allows us to:
1. Keep the portfolio in a local JSON file today and swap in a database
   or cloud sync later
2. Use in-memory storage for testing
3. Keep the engines and the service free of file handling

The portfolio is always read and written as one PortfolioBackup document.
"""

from abc import ABC, abstractmethod
from uuid import UUID

from firetrack.models.audit import AuditEvent
from firetrack.models.records import PortfolioBackup


class PortfolioStoreInterface(ABC):
    """
    Abstract interface for portfolio persistence.

    Any storage implementation (local file, database, cloud document)
    must implement these methods.
    """

    @property
    @abstractmethod
    def location(self) -> str:
        """Human-readable description of where the portfolio lives."""
        pass

    @abstractmethod
    def load(self) -> PortfolioBackup:
        """
        Load the stored portfolio.

        Returns:
            The stored backup document

        Raises:
            NotFoundError: If nothing has been saved yet
            BackupFormatError: If the stored document is unreadable
            StorageConnectionError: If the backend cannot be reached
        """
        pass

    @abstractmethod
    def save(self, backup: PortfolioBackup) -> bool:
        """
        Replace the stored portfolio.

        Args:
            backup: The complete document to store

        Returns:
            True if saved successfully

        Raises:
            StorageError: If save fails
        """
        pass

    @abstractmethod
    def exists(self) -> bool:
        """Check whether a portfolio has been saved."""
        pass


class AuditStorageInterface(ABC):
    """
    Interface for audit log storage.

    Separate from portfolio storage because audit logs are append-only.
    """

    @abstractmethod
    def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event.

        Returns:
            True if appended successfully
        """
        pass

    @abstractmethod
    def get_events_by_correlation_id(self, correlation_id: UUID) -> list[AuditEvent]:
        """Get all events of one pipeline run."""
        pass

    @abstractmethod
    def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        """Get the most recent events, newest first."""
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Nothing stored at the requested location."""
    pass


class BackupFormatError(StorageError):
    """A backup document is not valid JSON or does not match the schema."""
    pass


class StorageConnectionError(StorageError):
    """Could not reach the storage backend."""
    pass
