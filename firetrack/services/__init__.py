"""Services package."""

from firetrack.services.quotes import (
    PriceChange,
    QuoteApplication,
    QuoteError,
    QuoteProviderInterface,
    QuoteResult,
    StaticQuoteProvider,
    apply_quotes,
)
from firetrack.services.storage import (
    AuditStorageInterface,
    BackupFormatError,
    InMemoryAuditStorage,
    InMemoryPortfolioStore,
    JsonFilePortfolioStore,
    NotFoundError,
    PortfolioStoreInterface,
    StorageConnectionError,
    StorageError,
    dump_backup,
    load_backup,
)

__all__ = [
    # Quote services
    "PriceChange",
    "QuoteApplication",
    "QuoteError",
    "QuoteProviderInterface",
    "QuoteResult",
    "StaticQuoteProvider",
    "apply_quotes",
    # Storage services
    "AuditStorageInterface",
    "BackupFormatError",
    "InMemoryAuditStorage",
    "InMemoryPortfolioStore",
    "JsonFilePortfolioStore",
    "NotFoundError",
    "PortfolioStoreInterface",
    "StorageConnectionError",
    "StorageError",
    "dump_backup",
    "load_backup",
]
