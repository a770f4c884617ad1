"""
Tests for tracking records: loans, dividends, yearly snapshots and trades.
"""

import pytest
from datetime import date

from firetrack.models import (
    AssetCategory,
    Currency,
    DividendRecord,
    Holding,
    InvestmentTransaction,
    Loan,
    PortfolioTotals,
    TransactionType,
    YearlyRecord,
)
from firetrack.records import (
    InsufficientQuantityError,
    UnknownHoldingError,
    apply_transaction,
    compute_loan,
    dividend_in_myr,
    dividends_for_year,
    monthly_dividend_breakdown,
    months_between,
    projected_annual_dividend,
    record_dividend,
    record_trade,
    snapshot_from_totals,
    summarize_loans,
    upsert_yearly_record,
    year_over_year,
    yearly_dividend_totals,
)


# =============================================================================
# LOANS
# =============================================================================

def make_loan(**overrides) -> Loan:
    fields = dict(
        name="Car loan",
        principal_amount=12_000,
        interest_rate_percent=10,
        monthly_payment=1_100,
        start_date=date(2024, 1, 15),
        tenure_months=12,
    )
    fields.update(overrides)
    return Loan(**fields)


class TestLoans:
    """Tests for loan progress."""

    def test_months_between_respects_day_of_month(self):
        """Test that a month counts only once its day is reached."""
        assert months_between(date(2024, 1, 15), date(2024, 4, 14)) == 2
        assert months_between(date(2024, 1, 15), date(2024, 4, 15)) == 3
        assert months_between(date(2024, 1, 15), date(2023, 12, 1)) == 0

    def test_running_loan(self):
        """Test a loan part way through its tenure."""
        loan = compute_loan(make_loan(), as_of=date(2024, 4, 14))

        assert loan.months_paid == 2
        assert loan.months_remaining == 10
        assert loan.total_paid == 2_200
        assert loan.total_interest == 1_200
        assert loan.remaining_balance == 11_000
        assert loan.progress_percent == pytest.approx(100 * 2 / 12)
        assert loan.is_completed is False

    def test_finished_loan(self):
        """Test that months paid are capped at the tenure."""
        loan = compute_loan(make_loan(), as_of=date(2026, 1, 1))

        assert loan.months_paid == 12
        assert loan.months_remaining == 0
        assert loan.is_completed is True
        assert loan.remaining_balance == 0
        assert loan.progress_percent == 100

    def test_loan_not_started(self):
        """Test a start date in the future."""
        loan = compute_loan(make_loan(), as_of=date(2023, 6, 1))
        assert loan.months_paid == 0
        assert loan.remaining_balance == 13_200

    def test_zero_tenure(self):
        """Test that a zero tenure counts as complete."""
        loan = compute_loan(make_loan(tenure_months=0), as_of=date(2024, 6, 1))
        assert loan.progress_percent == 100
        assert loan.is_completed is True
        assert loan.total_interest == 0

    def test_overpaying_never_goes_negative(self):
        """Test that the remaining balance is floored at 0."""
        loan = compute_loan(make_loan(monthly_payment=5_000), as_of=date(2024, 6, 15))
        assert loan.remaining_balance == 0

    def test_summary(self):
        """Test totals and ordering across loans."""
        loans = [
            make_loan(id="done", name="Done", start_date=date(2020, 1, 1)),
            make_loan(id="car", name="Car"),
            make_loan(id="house", name="House", principal_amount=300_000,
                      monthly_payment=2_000, tenure_months=360),
        ]
        summary = summarize_loans(loans, as_of=date(2024, 4, 14))

        assert [l.id for l in summary.loans] == ["house", "car", "done"]
        assert summary.active_count == 2
        assert summary.completed_count == 1
        assert summary.total_monthly_payment == pytest.approx(3_100)
        assert summary.total_debt == pytest.approx(sum(l.remaining_balance for l in summary.loans))


# =============================================================================
# DIVIDENDS
# =============================================================================

def dividend(day: date, amount_myr: float, symbol="VOO") -> DividendRecord:
    return DividendRecord(payment_date=day, symbol=symbol, amount=amount_myr / 4, amount_myr=amount_myr)


class TestDividends:
    """Tests for dividend aggregation."""

    def test_conversion(self):
        """Test conversion into home currency."""
        assert dividend_in_myr(10, Currency.USD, 4.5) == pytest.approx(45)
        assert dividend_in_myr(10, Currency.MYR, 4.5) == 10
        assert dividend_in_myr(10, Currency.USD, 0) == 0.0

    def test_record_dividend(self):
        """Test that the home-currency amount is fixed at receipt."""
        record = record_dividend("VOO", 12, Currency.USD, 4.5, payment_date=date(2024, 3, 20))
        assert record.amount_myr == pytest.approx(54)
        assert record.payment_date == date(2024, 3, 20)

    def test_yearly_totals(self):
        """Test per-year totals, oldest first, rounded."""
        records = [
            dividend(date(2024, 3, 1), 100.4),
            dividend(date(2023, 6, 1), 50.5),
            dividend(date(2024, 9, 1), 20.2),
        ]
        totals = yearly_dividend_totals(records)
        assert [(t.year, t.total) for t in totals] == [(2023, 51), (2024, 121)]

    def test_monthly_breakdown(self):
        """Test twelve buckets for the chosen year."""
        records = [
            dividend(date(2024, 3, 1), 100),
            dividend(date(2024, 3, 20), 50),
            dividend(date(2024, 12, 5), 30),
            dividend(date(2023, 3, 1), 999),
        ]
        months = monthly_dividend_breakdown(records, 2024)

        assert len(months) == 12
        assert months[0].month == "Jan"
        assert months[11].month == "Dec"
        assert months[2].amount == 150
        assert months[11].amount == 30
        assert sum(m.amount for m in months) == 180

    def test_dividends_for_year(self):
        """Test filtering and newest-first ordering."""
        records = [
            dividend(date(2024, 3, 1), 1),
            dividend(date(2024, 9, 1), 2),
            dividend(date(2023, 1, 1), 3),
        ]
        selected = dividends_for_year(records, 2024)
        assert [r.payment_date.month for r in selected] == [9, 3]

    def test_projected_dividend(self):
        """Test expected yearly income at a yield."""
        assert projected_annual_dividend(100_000, 2.5) == pytest.approx(2_500)
        assert projected_annual_dividend(100_000, None) == 0.0
        assert projected_annual_dividend(100_000, -1) == 0.0


# =============================================================================
# YEARLY SNAPSHOTS
# =============================================================================

class TestYearlyRecords:
    """Tests for yearly net-worth snapshots."""

    def test_year_over_year(self):
        """Test growth against the previous year, newest first."""
        records = [
            YearlyRecord(year=2023, invest_amount=100),
            YearlyRecord(year=2024, invest_amount=100, saving_amount=50),
            YearlyRecord(year=2022),
        ]
        rows = year_over_year(records)

        assert [r.year for r in rows] == [2024, 2023, 2022]
        assert rows[0].growth_amount == pytest.approx(50)
        assert rows[0].growth_percent == pytest.approx(50)
        assert rows[1].previous_total == 0
        assert rows[1].growth_amount is None
        assert rows[2].previous_total is None

    def test_snapshot_from_totals(self):
        """Test building a record from valuation totals."""
        totals = PortfolioTotals(
            invested_net_worth=50_000,
            saved_net_worth=20_000,
            retirement_net_worth=100_000,
        )
        record = snapshot_from_totals(totals, 2024, note="year end")
        assert record.year == 2024
        assert record.total == pytest.approx(170_000)
        assert record.note == "year end"

    def test_upsert_replaces_same_year(self):
        """Test that a year has at most one record."""
        records = [YearlyRecord(year=2023, invest_amount=1), YearlyRecord(year=2024, invest_amount=2)]
        updated = upsert_yearly_record(records, YearlyRecord(year=2024, invest_amount=5))

        assert [r.year for r in updated] == [2024, 2023]
        assert updated[0].invest_amount == 5
        assert len(records) == 2


# =============================================================================
# TRADES
# =============================================================================

def trade(trade_type: TransactionType, quantity: float, price: float, symbol="VOO") -> InvestmentTransaction:
    return InvestmentTransaction(
        trade_date=date(2024, 5, 1),
        type=trade_type,
        symbol=symbol,
        quantity=quantity,
        price_per_unit=price,
    )


@pytest.fixture
def voo() -> Holding:
    return Holding(
        id="voo",
        symbol="VOO",
        category=AssetCategory.ETF,
        currency=Currency.USD,
        quantity=10,
        average_cost=100,
        current_price=120,
    )


class TestTrades:
    """Tests for applying trades to holdings."""

    def test_buy_averages_cost(self, voo):
        """Test weighted-average cost after a buy."""
        updated = apply_transaction(voo, trade(TransactionType.BUY, 10, 200))
        assert updated.quantity == pytest.approx(20)
        assert updated.average_cost == pytest.approx(150)
        assert voo.quantity == 10

    def test_sell_keeps_average_cost(self, voo):
        """Test that a partial sell keeps the cost basis per unit."""
        updated = apply_transaction(voo, trade(TransactionType.SELL, 4, 300))
        assert updated.quantity == pytest.approx(6)
        assert updated.average_cost == pytest.approx(100)

    def test_sell_everything(self, voo):
        """Test selling the full position."""
        updated = apply_transaction(voo, trade(TransactionType.SELL, 10, 120))
        assert updated.quantity == 0

    def test_oversell_raises(self, voo):
        """Test that selling more than held is rejected."""
        with pytest.raises(InsufficientQuantityError) as exc_info:
            apply_transaction(voo, trade(TransactionType.SELL, 11, 120))
        assert exc_info.value.held == 10
        assert exc_info.value.requested == 11

    def test_record_trade_updates_matching_holding(self, voo):
        """Test that only the matching holding changes."""
        other = Holding(id="cash", symbol="CASH", category=AssetCategory.INVESTMENT_CASH, quantity=500)
        holdings = record_trade([voo, other], trade(TransactionType.BUY, 5, 100, symbol="voo"))

        assert [h.id for h in holdings] == ["voo", "cash"]
        assert holdings[0].quantity == pytest.approx(15)
        assert holdings[1] is other

    def test_first_buy_opens_position(self, voo):
        """Test that buying a new symbol adds a holding."""
        holdings = record_trade([voo], trade(TransactionType.BUY, 3, 50, symbol="QQQ"))
        assert len(holdings) == 2
        opened = holdings[1]
        assert opened.symbol == "QQQ"
        assert opened.quantity == 3
        assert opened.average_cost == 50
        assert opened.category is AssetCategory.STOCK

    def test_sell_closes_position_despite_float_drift(self):
        """Test that selling what is left after partial sells closes the position."""
        holdings = [Holding(id="aaa", symbol="AAA", category=AssetCategory.STOCK,
                            quantity=0.7, average_cost=10, current_price=10)]
        holdings = record_trade(holdings, trade(TransactionType.SELL, 0.4, 10, symbol="AAA"))
        holdings = record_trade(holdings, trade(TransactionType.SELL, 0.3, 10, symbol="AAA"))

        assert holdings[0].quantity == 0.0

    def test_oversell_beyond_tolerance_still_raises(self):
        """Test that the close-out tolerance does not allow real oversells."""
        holding = Holding(symbol="AAA", category=AssetCategory.STOCK, quantity=0.3)
        with pytest.raises(InsufficientQuantityError):
            apply_transaction(holding, trade(TransactionType.SELL, 0.31, 10, symbol="AAA"))

    def test_buy_into_cash_keeps_unit_cost(self):
        """Test that cash-like holdings stay at price and cost 1.0 after a buy."""
        cash = Holding(id="cash", symbol="CASH", category=AssetCategory.INVESTMENT_CASH, quantity=1_000)
        updated = apply_transaction(cash, trade(TransactionType.BUY, 10, 5.0, symbol="CASH"))

        assert updated.quantity == pytest.approx(1_010)
        assert updated.average_cost == 1.0
        assert updated.current_price == 1.0

    def test_sell_unknown_symbol(self, voo):
        """Test that selling a symbol not held is rejected."""
        with pytest.raises(UnknownHoldingError):
            record_trade([voo], trade(TransactionType.SELL, 1, 50, symbol="QQQ"))


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
