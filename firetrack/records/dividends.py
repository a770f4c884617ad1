"""
Dividend Aggregation

Dividends are stored with the home-currency amount fixed at the time of
receipt, so later exchange-rate moves do not rewrite history. All
aggregates here work on amount_myr.
"""

from collections import defaultdict
from typing import Optional

from firetrack.models.base import round_whole
from firetrack.models.holding import HOME_CURRENCY, Currency
from firetrack.models.records import (
    DividendMonthTotal,
    DividendRecord,
    DividendYearTotal,
)


MONTH_LABELS = [
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
]


def dividend_in_myr(amount: float, currency: Currency, exchange_rate: float) -> float:
    """Convert a dividend to home currency. A non-positive rate gives 0 for foreign amounts."""
    if currency is HOME_CURRENCY:
        return amount
    if exchange_rate <= 0:
        return 0.0
    return amount * exchange_rate


def record_dividend(
    symbol: str,
    amount: float,
    currency: Currency,
    exchange_rate: float,
    **fields,
) -> DividendRecord:
    """Create a dividend record with its home-currency amount filled in."""
    return DividendRecord(
        symbol=symbol,
        amount=amount,
        currency=currency,
        amount_myr=dividend_in_myr(amount, currency, exchange_rate),
        **fields,
    )


def yearly_dividend_totals(records: list[DividendRecord]) -> list[DividendYearTotal]:
    """Home-currency dividends per calendar year, oldest first, rounded."""
    totals: dict[int, float] = defaultdict(float)
    for record in records:
        totals[record.payment_date.year] += record.amount_myr
    return [
        DividendYearTotal(year=year, total=round_whole(total))
        for year, total in sorted(totals.items())
    ]


def monthly_dividend_breakdown(
    records: list[DividendRecord],
    year: int,
) -> list[DividendMonthTotal]:
    """Twelve buckets, January to December, for one year. Empty months are 0."""
    buckets = [0.0] * 12
    for record in records:
        if record.payment_date.year == year:
            buckets[record.payment_date.month - 1] += record.amount_myr
    return [
        DividendMonthTotal(month=label, amount=round_whole(amount))
        for label, amount in zip(MONTH_LABELS, buckets)
    ]


def dividends_for_year(records: list[DividendRecord], year: int) -> list[DividendRecord]:
    """Records paid in a year, newest first."""
    return sorted(
        (r for r in records if r.payment_date.year == year),
        key=lambda r: r.payment_date,
        reverse=True,
    )


def projected_annual_dividend(
    invested_value: float,
    yield_percent: Optional[float],
) -> float:
    """Expected yearly dividend income at the given yield; 0 without a yield."""
    if not yield_percent or yield_percent <= 0:
        return 0.0
    return invested_value * yield_percent / 100
