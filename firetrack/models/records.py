"""
Tracking Records and Backup Envelope

These are the supplementary collections stored next to the holdings:
yearly net-worth snapshots, dividends received, loans and recorded
trades. PortfolioBackup is the JSON envelope the persistence layer reads
and writes.
"""

from datetime import date, datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from firetrack.models.base import RECORD_CONFIG, Amount, new_id
from firetrack.models.holding import Currency, GlobalSettings, Holding
from firetrack.models.planning import FireProjectionSettings


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# YEARLY SNAPSHOTS
# =============================================================================

class YearlyRecord(BaseModel):
    """Net-worth snapshot for one calendar year."""
    model_config = RECORD_CONFIG

    id: str = Field(default_factory=new_id)
    year: int = Field(..., ge=1900, le=2200)
    invest_amount: Amount = 0.0
    saving_amount: Amount = 0.0
    epf_amount: Amount = 0.0
    income: Optional[float] = None
    voo_return: Optional[float] = Field(
        default=None,
        description="Benchmark (S&P 500) return for the year, in percent"
    )
    note: Optional[str] = Field(default=None, max_length=500)
    date_recorded: datetime = Field(default_factory=_utcnow)

    @property
    def total(self) -> float:
        return self.invest_amount + self.saving_amount + self.epf_amount


class YearOverYear(BaseModel):
    """Growth of a yearly snapshot against the previous year."""

    year: int
    total: float
    previous_total: Optional[float] = None
    growth_amount: Optional[float] = None
    growth_percent: Optional[float] = None


# =============================================================================
# DIVIDENDS
# =============================================================================

class DividendRecord(BaseModel):
    """A dividend payment, with its home-currency equivalent."""
    model_config = RECORD_CONFIG

    id: str = Field(default_factory=new_id)
    payment_date: date = Field(..., alias="date")
    symbol: str = Field(..., min_length=1, max_length=40)
    amount: Amount = Field(default=0.0, description="Amount in the paying currency")
    currency: Currency = Currency.USD
    amount_myr: Amount = Field(default=0.0, description="Amount converted at receipt")
    note: Optional[str] = Field(default=None, max_length=500)


class DividendYearTotal(BaseModel):
    year: int
    total: int


class DividendMonthTotal(BaseModel):
    month: str
    amount: int


# =============================================================================
# LOANS
# =============================================================================

class LoanType(str, Enum):
    HOUSE = "house"
    CAR = "car"
    EDUCATION = "education"
    PERSONAL = "personal"
    CREDIT_CARD = "credit_card"
    OTHER = "other"


class Loan(BaseModel):
    """A fixed-instalment loan."""
    model_config = RECORD_CONFIG

    id: str = Field(default_factory=new_id)
    name: str = Field(..., min_length=1, max_length=200)
    type: LoanType = LoanType.OTHER
    principal_amount: Amount = 0.0
    interest_rate_percent: Amount = Field(
        default=0.0,
        description="Flat annual interest rate"
    )
    monthly_payment: Amount = 0.0
    start_date: date
    tenure_months: int = Field(default=12, ge=0)
    note: Optional[str] = Field(default=None, max_length=500)


class ComputedLoan(Loan):
    """A loan with its repayment progress as of a given date."""

    months_paid: int = 0
    months_remaining: int = 0
    total_paid: int = 0
    total_interest: int = 0
    remaining_balance: int = 0
    progress_percent: float = 0.0
    is_completed: bool = False


class LoanSummary(BaseModel):
    loans: list[ComputedLoan] = Field(default_factory=list)
    total_debt: float = 0.0
    total_monthly_payment: float = 0.0
    active_count: int = 0
    completed_count: int = 0


# =============================================================================
# TRADES
# =============================================================================

class TransactionType(str, Enum):
    BUY = "BUY"
    SELL = "SELL"


class InvestmentTransaction(BaseModel):
    """A recorded buy or sell of an investable holding."""
    model_config = RECORD_CONFIG

    id: str = Field(default_factory=new_id)
    trade_date: date = Field(..., alias="date")
    type: TransactionType
    symbol: str = Field(..., min_length=1, max_length=40)
    quantity: float = Field(..., gt=0)
    price_per_unit: float = Field(..., gt=0)
    currency: Currency = Currency.USD
    total_amount: float = Field(default=0.0, ge=0)
    note: Optional[str] = Field(default=None, max_length=500)

    @model_validator(mode='after')
    def fill_total(self) -> 'InvestmentTransaction':
        """total_amount defaults to quantity x price."""
        if not self.total_amount:
            self.total_amount = self.quantity * self.price_per_unit
        return self


# =============================================================================
# BACKUP ENVELOPE
# =============================================================================

class PortfolioBackup(BaseModel):
    """
    Everything the tracker persists.

    This is the exported/imported JSON document. Keys are camelCase on
    disk.
    """
    model_config = RECORD_CONFIG

    assets: list[Holding] = Field(default_factory=list)
    settings: GlobalSettings = Field(default_factory=GlobalSettings)
    fire_settings: FireProjectionSettings = Field(default_factory=FireProjectionSettings)
    yearly_records: list[YearlyRecord] = Field(default_factory=list)
    dividend_records: list[DividendRecord] = Field(default_factory=list)
    loans: list[Loan] = Field(default_factory=list)
    transactions: list[InvestmentTransaction] = Field(default_factory=list)
    last_updated: Optional[datetime] = None

    @model_validator(mode='after')
    def check_unique_ids(self) -> 'PortfolioBackup':
        """Record ids must be unique within each collection."""
        collections = {
            "assets": self.assets,
            "yearlyRecords": self.yearly_records,
            "dividendRecords": self.dividend_records,
            "loans": self.loans,
            "transactions": self.transactions,
        }
        for name, records in collections.items():
            ids = [record.id for record in records]
            if len(ids) != len(set(ids)):
                raise ValueError(f"Duplicate ids in {name}")
        return self
