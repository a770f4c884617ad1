"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
The portfolio lives in a local JSON file; the interfaces keep it swappable.
"""

from firetrack.services.storage.interface import (
    AuditStorageInterface,
    BackupFormatError,
    NotFoundError,
    PortfolioStoreInterface,
    StorageConnectionError,
    StorageError,
)
from firetrack.services.storage.backup import dump_backup, load_backup
from firetrack.services.storage.json_file import JsonFilePortfolioStore
from firetrack.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryPortfolioStore,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "PortfolioStoreInterface",
    # Exceptions
    "BackupFormatError",
    "NotFoundError",
    "StorageConnectionError",
    "StorageError",
    # Backup codec
    "dump_backup",
    "load_backup",
    # Implementations
    "InMemoryAuditStorage",
    "InMemoryPortfolioStore",
    "JsonFilePortfolioStore",
]
