"""
JSON File Portfolio Store

Keeps the portfolio as a single backup document on the local disk.

DESIGN DECISION: Saves write to a temporary file next to the target and
then atomically replace it, so a crash mid-write never leaves a
half-written portfolio behind. Transient OS errors (locked file, network
drive hiccup) are retried with tenacity.
"""

import os
import tempfile
from pathlib import Path
from typing import Optional, Union

import structlog
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from firetrack.config import StorageSettings, get_settings
from firetrack.models.records import PortfolioBackup
from firetrack.services.storage.backup import dump_backup, load_backup
from firetrack.services.storage.interface import (
    NotFoundError,
    PortfolioStoreInterface,
    StorageConnectionError,
)


logger = structlog.get_logger(__name__)

_transient_io = retry(
    retry=retry_if_exception_type(OSError),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=0.2, min=0.2, max=2),
    reraise=True,
)


class JsonFilePortfolioStore(PortfolioStoreInterface):
    """
    Portfolio store backed by one JSON file.

    Usage:
        store = JsonFilePortfolioStore("portfolio.json")
        backup = store.load()
    """

    def __init__(
        self,
        path: Optional[Union[str, Path]] = None,
        settings: Optional[StorageSettings] = None,
    ):
        self._settings = settings or get_settings().storage
        self._path = Path(path or self._settings.data_path)

    @property
    def path(self) -> Path:
        return self._path

    @property
    def location(self) -> str:
        return str(self._path)

    def exists(self) -> bool:
        return self._path.is_file()

    @_transient_io
    def _read_text(self) -> str:
        return self._path.read_text(encoding="utf-8")

    @_transient_io
    def _write_text(self, text: str) -> None:
        directory = self._path.parent
        directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self._path.name}.",
            suffix=".tmp",
            dir=directory,
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(text)
            os.replace(tmp_name, self._path)
        except OSError:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

    def load(self) -> PortfolioBackup:
        """
        Read the portfolio from disk.

        Raises:
            NotFoundError: If the file does not exist
            BackupFormatError: If the file is not a valid backup
            StorageConnectionError: If the file cannot be read
        """
        if not self.exists():
            raise NotFoundError(f"No portfolio stored at {self._path}")

        try:
            text = self._read_text()
        except OSError as e:
            logger.error("portfolio_read_failed", path=str(self._path), error=str(e))
            raise StorageConnectionError(f"Could not read {self._path}: {e}") from e

        backup = load_backup(text)
        logger.info("portfolio_loaded", path=str(self._path), holdings=len(backup.assets))
        return backup

    def save(self, backup: PortfolioBackup) -> bool:
        """
        Write the portfolio to disk, replacing the previous version.

        Raises:
            StorageConnectionError: If the file cannot be written
        """
        text = dump_backup(backup, indent=self._settings.indent)
        try:
            self._write_text(text)
        except OSError as e:
            logger.error("portfolio_write_failed", path=str(self._path), error=str(e))
            raise StorageConnectionError(f"Could not write {self._path}: {e}") from e

        logger.info("portfolio_saved", path=str(self._path), holdings=len(backup.assets))
        return True
