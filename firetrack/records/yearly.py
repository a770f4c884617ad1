"""
Yearly net-worth snapshots.
"""

from typing import Optional

from firetrack.models.holding import PortfolioTotals
from firetrack.models.records import YearlyRecord, YearOverYear


def year_over_year(records: list[YearlyRecord]) -> list[YearOverYear]:
    """
    Growth of each yearly snapshot against the year before it.

    Returns:
        One row per record, newest year first. Growth is None for the
        earliest year and whenever the previous total is 0.
    """
    ordered = sorted(records, key=lambda r: r.year)
    rows = []
    previous: Optional[YearlyRecord] = None
    for record in ordered:
        row = YearOverYear(year=record.year, total=record.total)
        if previous is not None:
            row.previous_total = previous.total
            if previous.total != 0:
                row.growth_amount = record.total - previous.total
                row.growth_percent = row.growth_amount / previous.total * 100
        rows.append(row)
        previous = record
    rows.reverse()
    return rows


def snapshot_from_totals(
    totals: PortfolioTotals,
    year: int,
    note: Optional[str] = None,
) -> YearlyRecord:
    """Build a yearly record from the current valuation totals."""
    return YearlyRecord(
        year=year,
        invest_amount=totals.invested_net_worth,
        saving_amount=totals.saved_net_worth,
        epf_amount=totals.retirement_net_worth,
        note=note,
    )


def upsert_yearly_record(
    records: list[YearlyRecord],
    record: YearlyRecord,
) -> list[YearlyRecord]:
    """Return a new list with record replacing any existing one for the same year."""
    kept = [r for r in records if r.year != record.year]
    kept.append(record)
    return sorted(kept, key=lambda r: r.year, reverse=True)
