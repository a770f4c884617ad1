"""
Shared building blocks for the firetrack models.

Persisted records are read from JSON backups written with camelCase keys,
so every record model accepts both the camelCase alias and the snake_case
field name and ignores keys it does not know.
"""

import math
from typing import Annotated, Any
from uuid import uuid4

from pydantic import BeforeValidator, ConfigDict
from pydantic.alias_generators import to_camel


RECORD_CONFIG = ConfigDict(
    alias_generator=to_camel,
    populate_by_name=True,
    extra="ignore",
    str_strip_whitespace=True,
)


def as_number(value: Any) -> Any:
    """
    Read missing or unusable numeric input as 0.

    None, blank strings, unparsable strings and non-finite floats all
    become 0.0. Anything else is handed to pydantic unchanged so that
    genuinely wrong types still fail validation.
    """
    if value is None:
        return 0.0
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        text = value.strip().replace(",", "")
        if not text:
            return 0.0
        try:
            value = float(text)
        except ValueError:
            return 0.0
    if isinstance(value, float) and not math.isfinite(value):
        return 0.0
    return value


# A float that degrades to 0.0 instead of failing on missing input
Amount = Annotated[float, BeforeValidator(as_number)]


def new_id() -> str:
    """Generate a stable string identifier for a new record."""
    return uuid4().hex


def round_whole(amount: float) -> int:
    """Round half up to a whole currency unit."""
    return int(math.floor(amount + 0.5))
