"""
Valuation Engine

Turns raw holdings into currency-normalized market values, cost bases
and allocation percentages, and rolls them up into portfolio totals.

GUARANTEES:
- Pure: the same holdings, rate and date always give the same result
- Never raises: a non-positive exchange rate converts to 0, a zero cost
  basis gives 0% profit, an empty investable portfolio gives 0% allocation
- Only investable categories carry an allocation percent
"""

from datetime import date
from typing import Optional

import structlog

from firetrack.models.holding import (
    CategoryClass,
    Holding,
    PensionConfig,
    PortfolioTotals,
    ValuedHolding,
    category_class,
    is_investable,
)


logger = structlog.get_logger(__name__)


def months_elapsed(start: date, as_of: date) -> int:
    """Whole calendar months from start to as_of, never negative."""
    months = (as_of.year - start.year) * 12 + (as_of.month - start.month)
    return max(0, months)


def accrued_pension_balance(config: PensionConfig, as_of: date) -> float:
    """Base amount plus one contribution per elapsed month."""
    return config.base_amount + config.monthly_contribution * months_elapsed(
        config.start_date, as_of
    )


def _percent(part: float, whole: float) -> float:
    if whole <= 0:
        return 0.0
    return part / whole * 100


def _convert(amount: float, is_usd: bool, rate: float) -> tuple[float, float]:
    """
    Express an amount in both currencies.

    Returns (myr, usd). A non-positive rate is read as 0, so whichever
    side needs the conversion comes out as 0.
    """
    if rate <= 0:
        rate = 0.0
    if is_usd:
        return amount * rate, amount
    return amount, (amount / rate if rate > 0 else 0.0)


def value_holding(
    holding: Holding,
    exchange_rate: float,
    as_of: Optional[date] = None,
) -> ValuedHolding:
    """
    Value a single holding.

    allocation_percent is left at 0; it needs the whole portfolio and is
    filled in by value().
    """
    as_of = as_of or date.today()

    quantity = holding.quantity
    if holding.pension_config is not None:
        quantity = accrued_pension_balance(holding.pension_config, as_of)

    value_original = quantity * holding.current_price
    value_myr, value_usd = _convert(value_original, holding.is_usd, exchange_rate)

    cost_original = quantity * holding.average_cost
    cost_myr, cost_usd = _convert(cost_original, holding.is_usd, exchange_rate)

    profit_loss_myr = value_myr - cost_myr
    profit_loss_percent = (profit_loss_myr / cost_myr * 100) if cost_myr != 0 else 0.0

    data = holding.model_dump()
    data.update(
        quantity=quantity,
        value_original=value_original,
        value_myr=value_myr,
        value_usd=value_usd,
        cost_original=cost_original,
        cost_myr=cost_myr,
        cost_usd=cost_usd,
        profit_loss_myr=profit_loss_myr,
        profit_loss_usd=value_usd - cost_usd,
        profit_loss_percent=profit_loss_percent,
    )
    return ValuedHolding(**data)


def compute_totals(
    valued: list[ValuedHolding],
    fire_target: float = 0.0,
    saving_target: float = 0.0,
) -> PortfolioTotals:
    """
    Partitioned sums over a valuation pass.

    Cost basis and profit/loss only cover investable holdings; cash and
    retirement savings carry no gain by definition.
    """
    invested = 0.0
    saved = 0.0
    retirement = 0.0
    invested_cost = 0.0

    for holding in valued:
        bucket = category_class(holding.category)
        if bucket is CategoryClass.INVESTABLE:
            invested += holding.value_myr
            invested_cost += holding.cost_myr
        elif bucket is CategoryClass.SAVINGS:
            saved += holding.value_myr
        else:
            retirement += holding.value_myr

    liquid = invested + saved
    total = liquid + retirement
    profit_loss = invested - invested_cost

    return PortfolioTotals(
        invested_net_worth=invested,
        saved_net_worth=saved,
        retirement_net_worth=retirement,
        liquid_net_worth=liquid,
        total_net_worth=total,
        total_cost=invested_cost,
        total_profit_loss=profit_loss,
        total_profit_loss_percent=_percent(profit_loss, invested_cost),
        progress_to_fire=_percent(total, fire_target),
        progress_to_fire_liquid=_percent(liquid, fire_target),
        progress_to_saving=_percent(saved, saving_target),
    )


def value(
    holdings: list[Holding],
    exchange_rate: float,
    fire_target: float = 0.0,
    saving_target: float = 0.0,
    as_of: Optional[date] = None,
) -> tuple[list[ValuedHolding], PortfolioTotals]:
    """
    Value a portfolio.

    Args:
        holdings: Raw holdings in any order
        exchange_rate: MYR per 1 USD
        fire_target: FIRE net-worth target, for the progress ratios
        saving_target: Cash reserve target, for the saving progress ratio
        as_of: Date used for pension accrual (defaults to today)

    Returns:
        (valued_holdings, totals) with valued holdings in input order
    """
    as_of = as_of or date.today()

    if exchange_rate <= 0:
        logger.warning(
            "non_positive_exchange_rate",
            exchange_rate=exchange_rate,
            holding_count=len(holdings),
        )

    valued = [value_holding(h, exchange_rate, as_of) for h in holdings]

    investable_total = sum(h.value_myr for h in valued if is_investable(h.category))
    for holding in valued:
        if is_investable(holding.category) and investable_total != 0:
            holding.allocation_percent = holding.value_myr / investable_total * 100
        else:
            holding.allocation_percent = 0.0

    totals = compute_totals(valued, fire_target, saving_target)

    logger.debug(
        "portfolio_valued",
        holding_count=len(valued),
        investable_total=investable_total,
        total_net_worth=totals.total_net_worth,
    )
    return valued, totals
