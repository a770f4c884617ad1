"""
Backup JSON codec.

The backup is the single document the tracker exports, imports and keeps
on disk. Keys are camelCase so files written by older versions of the
tracker load unchanged.
"""

import json
from datetime import datetime, timezone
from typing import Optional

from pydantic import ValidationError

from firetrack.models.records import PortfolioBackup
from firetrack.services.storage.interface import BackupFormatError


def dump_backup(
    backup: PortfolioBackup,
    indent: Optional[int] = 2,
    stamp: bool = True,
) -> str:
    """
    Serialize a backup to JSON.

    Args:
        backup: The document to serialize
        indent: JSON indentation (None for compact output)
        stamp: Set last_updated to now before writing

    Returns:
        JSON text with camelCase keys
    """
    if stamp:
        backup = backup.model_copy(update={"last_updated": datetime.now(timezone.utc)})
    return backup.model_dump_json(by_alias=True, indent=indent)


def load_backup(text: str) -> PortfolioBackup:
    """
    Parse and validate a backup document.

    Raises:
        BackupFormatError: If the text is not JSON, is not an object, or
            does not match the backup schema
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise BackupFormatError(f"Backup is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise BackupFormatError("Backup must be a JSON object")

    try:
        return PortfolioBackup.model_validate(data)
    except ValidationError as e:
        raise BackupFormatError(
            f"Backup does not match the expected format: {e.error_count()} errors"
        ) from e
