"""
Applying fetched quotes to holdings.
"""

from typing import Optional

import structlog
from pydantic import BaseModel, Field

from firetrack.models.holding import Holding, is_cash_like
from firetrack.services.quotes.interface import QuoteResult


logger = structlog.get_logger(__name__)


class PriceChange(BaseModel):
    """One price that moved during a refresh."""

    symbol: str
    old_price: float
    new_price: float
    change_percent: Optional[float] = Field(
        default=None,
        description="None when the old price was 0"
    )


class QuoteApplication(BaseModel):
    """Holdings and rate after a refresh, plus what changed."""

    holdings: list[Holding]
    exchange_rate: float
    changes: list[PriceChange] = Field(default_factory=list)
    source: str = "unknown"


def quotable_symbols(holdings: list[Holding]) -> list[str]:
    """Symbols worth quoting; cash-like holdings are always priced at 1."""
    seen = []
    for holding in holdings:
        symbol = holding.symbol.upper()
        if not is_cash_like(holding.category) and symbol not in seen:
            seen.append(symbol)
    return seen


def apply_quotes(
    holdings: list[Holding],
    quote: QuoteResult,
    current_rate: float,
) -> QuoteApplication:
    """
    Merge fetched prices into the holdings.

    Cash-like holdings keep their 1.0 price and non-positive quotes are
    ignored. The exchange rate is replaced only by a positive quoted rate.

    Returns:
        New holdings (inputs are not modified), the resulting rate and one
        PriceChange per price that actually moved
    """
    prices = {symbol.upper(): price for symbol, price in quote.prices.items()}
    updated: list[Holding] = []
    changes: list[PriceChange] = []

    for holding in holdings:
        new_price = prices.get(holding.symbol.upper())
        if is_cash_like(holding.category) or new_price is None or new_price <= 0:
            updated.append(holding)
            continue

        old_price = holding.current_price
        if new_price != old_price:
            change = (new_price - old_price) / old_price * 100 if old_price > 0 else None
            changes.append(PriceChange(
                symbol=holding.symbol,
                old_price=old_price,
                new_price=new_price,
                change_percent=change,
            ))
        updated.append(holding.model_copy(update={"current_price": new_price}))

    rate = current_rate
    if quote.exchange_rate is not None and quote.exchange_rate > 0:
        rate = quote.exchange_rate

    logger.info(
        "quotes_applied",
        source=quote.source,
        quoted=len(prices),
        changed=len(changes),
        exchange_rate=rate,
    )
    return QuoteApplication(
        holdings=updated,
        exchange_rate=rate,
        changes=changes,
        source=quote.source,
    )
