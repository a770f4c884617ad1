"""
Holding and Valuation Models for firetrack

A Holding is what the user enters: a symbol, how much of it they own,
what they paid and what it is worth now. A ValuedHolding is the derived,
currency-normalized view of the same position. It is recomputed on every
valuation pass and never persisted.

DESIGN DECISION: Categories are a closed enum with an explicit
classification table. Every place that needs to know whether a category
is investable, savings, retirement or cash-like reads the table.
"""

from datetime import date
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from firetrack.models.base import RECORD_CONFIG, Amount, new_id


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class Currency(str, Enum):
    """Supported currencies. MYR is the home currency."""
    MYR = "MYR"
    USD = "USD"


HOME_CURRENCY = Currency.MYR


class AssetCategory(str, Enum):
    """Asset categories as stored in backups."""
    STOCK = "Stock"
    ETF = "ETF"
    CRYPTO = "Crypto"
    INVESTMENT_CASH = "Cash (Investment)"
    SAVINGS_CASH = "Cash (Saving)"
    MONEY_MARKET = "Money Market Fund"
    PENSION = "Pension"


class CategoryClass(str, Enum):
    """Which net-worth bucket a category rolls up into."""
    INVESTABLE = "investable"
    SAVINGS = "savings"
    RETIREMENT = "retirement"


CATEGORY_CLASSES: dict[AssetCategory, CategoryClass] = {
    AssetCategory.STOCK: CategoryClass.INVESTABLE,
    AssetCategory.ETF: CategoryClass.INVESTABLE,
    AssetCategory.CRYPTO: CategoryClass.INVESTABLE,
    AssetCategory.INVESTMENT_CASH: CategoryClass.INVESTABLE,
    AssetCategory.SAVINGS_CASH: CategoryClass.SAVINGS,
    AssetCategory.MONEY_MARKET: CategoryClass.SAVINGS,
    AssetCategory.PENSION: CategoryClass.RETIREMENT,
}

# Price is pinned to 1.0 and quantity is the cash amount
CASH_LIKE_CATEGORIES: frozenset[AssetCategory] = frozenset({
    AssetCategory.INVESTMENT_CASH,
    AssetCategory.SAVINGS_CASH,
    AssetCategory.MONEY_MARKET,
    AssetCategory.PENSION,
})


def category_class(category: AssetCategory) -> CategoryClass:
    """Look up the net-worth bucket of a category."""
    return CATEGORY_CLASSES[category]


def is_investable(category: AssetCategory) -> bool:
    return CATEGORY_CLASSES[category] is CategoryClass.INVESTABLE


def is_retirement(category: AssetCategory) -> bool:
    return CATEGORY_CLASSES[category] is CategoryClass.RETIREMENT


def is_cash_like(category: AssetCategory) -> bool:
    return category in CASH_LIKE_CATEGORIES


# =============================================================================
# RAW INPUT
# =============================================================================

class PensionConfig(BaseModel):
    """
    Auto-accrual for a retirement-fund holding.

    The balance is base_amount plus one monthly_contribution for every
    whole calendar month since start_date.
    """
    model_config = RECORD_CONFIG

    base_amount: Amount = Field(
        default=0.0,
        description="Balance on start_date"
    )
    monthly_contribution: Amount = Field(
        default=0.0,
        description="Amount credited every month (employer + employee)"
    )
    start_date: date = Field(
        ...,
        description="Date the base amount was recorded"
    )


class Holding(BaseModel):
    """
    A single position as entered by the user.

    quantity and average_cost form the cost basis; current_price is the
    latest quote in the holding's own currency.
    """
    model_config = RECORD_CONFIG

    id: str = Field(
        default_factory=new_id,
        description="Stable identifier"
    )
    symbol: str = Field(
        ...,
        min_length=1,
        max_length=40,
        description="Ticker or short label"
    )
    name: str = Field(
        default="",
        max_length=200,
        description="Display name"
    )
    category: AssetCategory
    currency: Currency = Currency.MYR

    quantity: Amount = Field(
        default=0.0,
        description="Units held (the cash amount for cash-like holdings)"
    )
    average_cost: Amount = Field(
        default=0.0,
        description="Average cost per unit in the holding's currency"
    )
    current_price: Amount = Field(
        default=0.0,
        description="Latest price per unit in the holding's currency"
    )
    target_allocation: Amount = Field(
        default=0.0,
        ge=0.0,
        le=100.0,
        description="Target weight within the investable portfolio (0-100)"
    )

    group_name: Optional[str] = Field(
        default=None,
        max_length=60,
        description="Holdings sharing a group are rebalanced together"
    )
    pension_config: Optional[PensionConfig] = None
    is_bridge_source: bool = Field(
        default=False,
        alias="isEpfBridgeSource",
        description="May be drained to top up the retirement fund"
    )

    @model_validator(mode='after')
    def pin_cash_price(self) -> 'Holding':
        """Cash-like holdings are always priced at 1.0."""
        if is_cash_like(self.category):
            self.current_price = 1.0
            self.average_cost = 1.0
        if self.group_name is not None and not self.group_name:
            self.group_name = None
        return self

    @property
    def is_usd(self) -> bool:
        return self.currency is Currency.USD


# =============================================================================
# DERIVED VALUES
# =============================================================================

class ValuedHolding(Holding):
    """
    A holding with its market value and cost basis in both currencies.

    quantity holds the accrued balance for holdings with a pension config.
    """

    value_original: float = 0.0
    value_myr: float = 0.0
    value_usd: float = 0.0
    cost_original: float = 0.0
    cost_myr: float = 0.0
    cost_usd: float = 0.0
    profit_loss_myr: float = 0.0
    profit_loss_usd: float = 0.0
    profit_loss_percent: float = 0.0
    allocation_percent: float = Field(
        default=0.0,
        description="Share of the investable portfolio; 0 for other categories"
    )


class PortfolioTotals(BaseModel):
    """Partitioned sums over a valuation pass, in home currency."""

    invested_net_worth: float = 0.0
    saved_net_worth: float = 0.0
    retirement_net_worth: float = 0.0
    liquid_net_worth: float = 0.0
    total_net_worth: float = 0.0

    total_cost: float = Field(
        default=0.0,
        description="Cost basis of investable holdings only"
    )
    total_profit_loss: float = 0.0
    total_profit_loss_percent: float = 0.0

    progress_to_fire: float = 0.0
    progress_to_fire_liquid: float = 0.0
    progress_to_saving: float = 0.0


class GlobalSettings(BaseModel):
    """User-level portfolio settings persisted with the backup."""
    model_config = RECORD_CONFIG

    exchange_rate_usd_myr: Amount = Field(
        default=4.42,
        description="MYR per 1 USD"
    )
    financial_freedom_target: Amount = Field(
        default=800_000.0,
        description="FIRE net-worth target in MYR"
    )
    saving_target: Amount = Field(
        default=25_000.0,
        description="Cash reserve target in MYR"
    )
    monthly_investment_target: Amount = 1_500.0
    annual_investment_target: Amount = 18_000.0
    dividend_yield_percent: Amount = 2.5
