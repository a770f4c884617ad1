"""
Loan Progress

Loans are tracked as flat-rate instalment loans: interest is charged on
the original principal for the whole tenure and every month is paid in
full. This is an estimate, not an amortization schedule.
"""

from datetime import date
from typing import Optional

from firetrack.models.base import round_whole
from firetrack.models.records import ComputedLoan, Loan, LoanSummary


def months_between(start: date, end: date) -> int:
    """
    Whole months from start to end.

    A month only counts once its day-of-month has been reached, so
    15 Jan -> 14 Mar is 1 month. Never negative.
    """
    months = (end.year - start.year) * 12 + (end.month - start.month)
    if end.day < start.day:
        months -= 1
    return max(0, months)


def compute_loan(loan: Loan, as_of: Optional[date] = None) -> ComputedLoan:
    """
    Repayment progress of a loan on a given date.

    Args:
        loan: The loan as entered
        as_of: Reference date (defaults to today)

    Returns:
        The loan with months paid/remaining, amounts paid, flat total
        interest and remaining balance (rounded to whole units) and a
        progress percent capped at 100
    """
    as_of = as_of or date.today()

    months_paid = min(months_between(loan.start_date, as_of), loan.tenure_months)
    months_remaining = max(0, loan.tenure_months - months_paid)

    total_paid = months_paid * loan.monthly_payment
    monthly_rate = loan.interest_rate_percent / 100 / 12
    total_interest = loan.principal_amount * monthly_rate * loan.tenure_months
    remaining = max(0.0, loan.principal_amount + total_interest - total_paid)

    if loan.tenure_months > 0:
        progress = months_paid / loan.tenure_months * 100
    else:
        progress = 100.0

    return ComputedLoan(
        **loan.model_dump(),
        months_paid=months_paid,
        months_remaining=months_remaining,
        total_paid=round_whole(total_paid),
        total_interest=round_whole(total_interest),
        remaining_balance=round_whole(remaining),
        progress_percent=min(100.0, progress),
        is_completed=months_remaining == 0,
    )


def summarize_loans(loans: list[Loan], as_of: Optional[date] = None) -> LoanSummary:
    """
    Compute every loan and roll them up.

    Loans are ordered by remaining balance, largest first. The monthly
    payment total only counts loans that are still running.
    """
    computed = sorted(
        (compute_loan(loan, as_of) for loan in loans),
        key=lambda l: l.remaining_balance,
        reverse=True,
    )
    active = [l for l in computed if not l.is_completed]

    return LoanSummary(
        loans=computed,
        total_debt=sum(l.remaining_balance for l in computed),
        total_monthly_payment=sum(l.monthly_payment for l in active),
        active_count=len(active),
        completed_count=len(computed) - len(active),
    )
