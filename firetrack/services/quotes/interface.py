"""
Quote Provider Interface

Price fetching lives outside the computation core. A provider returns
resolved prices and, optionally, a fresh USD/MYR rate; apply_quotes
merges them into the holdings.
"""

from abc import ABC, abstractmethod
from typing import Optional

from pydantic import BaseModel, Field


class QuoteResult(BaseModel):
    """Prices returned by one fetch."""

    prices: dict[str, float] = Field(
        default_factory=dict,
        description="Latest price per symbol, in the holding's currency"
    )
    exchange_rate: Optional[float] = Field(
        default=None,
        description="MYR per USD, when the provider returns one"
    )
    source: str = "unknown"


class QuoteError(Exception):
    """Base exception for quote fetching."""
    pass


class QuoteProviderInterface(ABC):
    """Abstract source of market prices."""

    @abstractmethod
    def fetch(self, symbols: list[str]) -> QuoteResult:
        """
        Fetch the latest prices.

        Args:
            symbols: Symbols to quote

        Returns:
            Prices for the symbols the provider knows. Unknown symbols are
            left out rather than raising.

        Raises:
            QuoteError: If the provider cannot be reached at all
        """
        pass


class StaticQuoteProvider(QuoteProviderInterface):
    """Serves a fixed price table. Used for manual price entry and tests."""

    def __init__(
        self,
        prices: dict[str, float],
        exchange_rate: Optional[float] = None,
        source: str = "static",
    ):
        self._prices = {symbol.upper(): price for symbol, price in prices.items()}
        self._exchange_rate = exchange_rate
        self._source = source

    def fetch(self, symbols: list[str]) -> QuoteResult:
        wanted = {s.upper() for s in symbols}
        return QuoteResult(
            prices={s: p for s, p in self._prices.items() if s in wanted},
            exchange_rate=self._exchange_rate,
            source=self._source,
        )
