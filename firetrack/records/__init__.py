"""
Tracking records: yearly snapshots, dividends, loans and the trade ledger.
"""

from firetrack.records.dividends import (
    dividend_in_myr,
    dividends_for_year,
    monthly_dividend_breakdown,
    projected_annual_dividend,
    record_dividend,
    yearly_dividend_totals,
)
from firetrack.records.loans import compute_loan, months_between, summarize_loans
from firetrack.records.trades import (
    InsufficientQuantityError,
    TradeError,
    UnknownHoldingError,
    apply_transaction,
    find_holding,
    holding_from_trade,
    record_trade,
    weighted_average_cost,
)
from firetrack.records.yearly import (
    snapshot_from_totals,
    upsert_yearly_record,
    year_over_year,
)

__all__ = [
    "dividend_in_myr",
    "dividends_for_year",
    "monthly_dividend_breakdown",
    "projected_annual_dividend",
    "record_dividend",
    "yearly_dividend_totals",
    "compute_loan",
    "months_between",
    "summarize_loans",
    "InsufficientQuantityError",
    "TradeError",
    "UnknownHoldingError",
    "apply_transaction",
    "find_holding",
    "holding_from_trade",
    "record_trade",
    "weighted_average_cost",
    "snapshot_from_totals",
    "upsert_yearly_record",
    "year_over_year",
]
