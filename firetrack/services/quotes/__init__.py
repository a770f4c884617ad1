"""Quote providers and price refresh."""

from firetrack.services.quotes.interface import (
    QuoteError,
    QuoteProviderInterface,
    QuoteResult,
    StaticQuoteProvider,
)
from firetrack.services.quotes.apply import (
    PriceChange,
    QuoteApplication,
    apply_quotes,
    quotable_symbols,
)

__all__ = [
    "QuoteError",
    "QuoteProviderInterface",
    "QuoteResult",
    "StaticQuoteProvider",
    "PriceChange",
    "QuoteApplication",
    "apply_quotes",
    "quotable_symbols",
]
