"""
EPF Bridge Liquidity

Models the EPF early-withdrawal rule: savings above a threshold
(RM 1.3M by default) can be withdrawn before the normal retirement age.
That unlocked amount counts towards the liquidity that has to bridge the
years between early retirement and full access to the fund.

    available_bridge_funds = liquid_assets + max(0, epf_balance - threshold)

The module also answers the two planning questions that follow:
- When must voluntary top-ups start so the fund crosses the threshold
  by the target age?
- Which assets fund those top-ups, year by year?
"""

import math
from datetime import date
from typing import Optional

from firetrack.config import CoreSettings, get_settings
from firetrack.models.holding import ValuedHolding
from firetrack.models.planning import (
    BridgeLiquidityResult,
    BridgeSource,
    CatchUpSchedule,
    TransferLeg,
    TransferPlanItem,
)


def _core(config: Optional[CoreSettings]) -> CoreSettings:
    return config or get_settings().core


def bridge_liquidity(
    liquid_assets: float,
    retirement_balance: float,
    threshold: Optional[float] = None,
    config: Optional[CoreSettings] = None,
) -> BridgeLiquidityResult:
    """
    Liquidity available for bridging, including unlocked EPF savings.

    Args:
        liquid_assets: Ordinary liquid assets
        retirement_balance: Current EPF balance
        threshold: Early-withdrawal threshold (defaults to the configured one)
    """
    if threshold is None:
        threshold = _core(config).epf_withdrawal_threshold

    unlocked = retirement_balance > threshold
    accessible = retirement_balance - threshold if unlocked else 0.0

    return BridgeLiquidityResult(
        total_liquid=liquid_assets + accessible,
        accessible=accessible,
        unlocked=unlocked,
    )


def schedule_catch_up(
    target_age: int,
    projected_balance: float,
    threshold: Optional[float] = None,
    annual_limit: Optional[float] = None,
    config: Optional[CoreSettings] = None,
) -> Optional[CatchUpSchedule]:
    """
    Latest age at which voluntary top-ups must start.

    Example: retiring at 40 with a projected RM 1.1M leaves a RM 200k
    gap. At RM 100k a year that takes 2 years, so top-ups start at 38.

    Returns:
        The schedule, or None when the projected balance already reaches
        the threshold (or no top-up is possible at all)
    """
    core = _core(config)
    if threshold is None:
        threshold = core.epf_withdrawal_threshold
    if annual_limit is None:
        annual_limit = core.epf_annual_contribution_limit

    gap = threshold - projected_balance
    if gap <= 0 or annual_limit <= 0:
        return None

    years_needed = math.ceil(gap / annual_limit)
    return CatchUpSchedule(
        start_age=target_age - years_needed,
        years_needed=years_needed,
        total_required=gap,
    )


def bridge_sources_from_holdings(holdings: list[ValuedHolding]) -> list[BridgeSource]:
    """Transfer sources for the holdings the user flagged as bridge sources."""
    return [
        BridgeSource(
            id=h.id,
            name=h.name or h.symbol,
            value=h.value_myr,
            eligible=True,
        )
        for h in holdings
        if h.is_bridge_source
    ]


def simulate_bridge_transfer(
    sources: list[BridgeSource],
    gap: float,
    years_available: int,
    start_age: int,
    annual_limit: Optional[float] = None,
    start_year: Optional[int] = None,
    config: Optional[CoreSettings] = None,
) -> list[TransferPlanItem]:
    """
    Plan the yearly top-ups that close an EPF shortfall.

    Each year moves up to min(annual_limit, remaining gap), draining the
    source with the largest remaining balance first and spilling over to
    the next one when it runs dry. Only eligible sources are drawn from.

    Returns:
        One item per year in which something was transferred. Empty when
        there is no gap.
    """
    if annual_limit is None:
        annual_limit = _core(config).epf_annual_contribution_limit
    if start_year is None:
        start_year = date.today().year

    if gap <= 0 or annual_limit <= 0:
        return []

    # Ineligible sources never enter the pool
    pool = [s for s in sources if s.eligible]
    remaining = [max(0.0, s.value) for s in pool]

    plan: list[TransferPlanItem] = []
    remaining_gap = gap
    cumulative = 0.0

    for i in range(max(0, years_available)):
        if remaining_gap <= 0:
            break

        year_limit = min(annual_limit, remaining_gap)
        year_total = 0.0
        legs: list[TransferLeg] = []

        ordered = sorted(range(len(pool)), key=lambda k: remaining[k], reverse=True)
        for k in ordered:
            if year_total >= year_limit:
                break
            source = pool[k]
            available = remaining[k]
            if available <= 0:
                continue

            amount = min(available, year_limit - year_total)
            remaining[k] = available - amount
            year_total += amount
            legs.append(TransferLeg(
                source_id=source.id,
                source_name=source.name,
                amount=amount,
            ))

        if year_total > 0:
            cumulative += year_total
            remaining_gap -= year_total
            plan.append(TransferPlanItem(
                year=start_year + i,
                age=start_age + i,
                transfers=legs,
                total_transfer=year_total,
                cumulative_transfer=cumulative,
            ))

    return plan
