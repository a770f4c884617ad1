"""
Rebalance Engine

Computes the buy/sell actions that move an investable portfolio towards
its target weights.

Holdings that share a group_name are rebalanced as one unit: the group
gap (group target value - group current value) is split across members
in proportion to their own target weights. A member with a 0% target in
a group with a positive target therefore never receives new money, which
lets a legacy core holding sit still while its sibling takes the
contributions.

DESIGN DECISION: A group whose targets sum to 0 is fully liquidated.
Such targets are reported by validate_targets and by the deviation
alerts, but the actions themselves are not suppressed.
"""

from typing import Optional

import structlog

from firetrack.config import CoreSettings, get_settings
from firetrack.models.holding import Holding, ValuedHolding, is_investable
from firetrack.models.rebalance import (
    AllocationIssue,
    DeviationAlert,
    DeviationSeverity,
    RebalanceAction,
    RebalanceActionType,
)


logger = structlog.get_logger(__name__)

MAX_TARGET_PERCENT = 100.0
# Tolerance for float noise in target sums
TARGET_SUM_EPSILON = 1e-9


def _core(config: Optional[CoreSettings]) -> CoreSettings:
    return config or get_settings().core


def _group_holdings(holdings: list[ValuedHolding]) -> list[list[ValuedHolding]]:
    """Group by group_name in order of first appearance; ungrouped holdings stand alone."""
    groups: dict[str, list[ValuedHolding]] = {}
    ordered: list[list[ValuedHolding]] = []
    for holding in holdings:
        if holding.group_name is None:
            ordered.append([holding])
            continue
        members = groups.get(holding.group_name)
        if members is None:
            members = []
            groups[holding.group_name] = members
            ordered.append(members)
        members.append(holding)
    return ordered


def _action_for_gap(gap: float, dead_band: float) -> RebalanceActionType:
    if gap > dead_band:
        return RebalanceActionType.BUY
    if gap < -dead_band:
        return RebalanceActionType.SELL
    return RebalanceActionType.HOLD


def _build_action(
    holding: ValuedHolding,
    gap: float,
    action: RebalanceActionType,
    exchange_rate: float,
    total_value: float,
    grouped: bool,
    group_value: float,
    group_target: float,
) -> RebalanceAction:
    amount_myr = abs(gap)
    amount_usd = None
    units_base = amount_myr
    if holding.is_usd:
        amount_usd = amount_myr / exchange_rate if exchange_rate > 0 else 0.0
        units_base = amount_usd

    # Unpriced holdings are sized as if priced at 1
    price = holding.current_price if holding.current_price > 0 else 1.0

    return RebalanceAction(
        symbol=holding.symbol,
        action=action,
        amount_myr=amount_myr,
        amount_usd=amount_usd,
        amount_units=units_base / price,
        current_weight=holding.allocation_percent,
        target_weight=holding.target_allocation,
        is_usd=holding.is_usd,
        group_name=holding.group_name if grouped else None,
        group_current_weight=group_value / total_value * 100 if grouped and total_value > 0 else None,
        group_target_weight=group_target if grouped else None,
    )


def _sort_key(action: RebalanceAction) -> tuple[int, float]:
    # BUY first, then SELL; larger amounts first within each kind
    kind = 0 if action.action is RebalanceActionType.BUY else 1
    return kind, -action.amount_myr


def rebalance(
    valued_holdings: list[ValuedHolding],
    exchange_rate: float,
    dead_band: Optional[float] = None,
    config: Optional[CoreSettings] = None,
) -> list[RebalanceAction]:
    """
    Compute ordered rebalance actions.

    Args:
        valued_holdings: Output of the valuation engine. Non-investable
            holdings are ignored.
        exchange_rate: MYR per 1 USD, for the USD amount and unit count
        dead_band: Gaps within +/- this amount (MYR) produce no action.
            Defaults to rebalance_dead_band.

    Returns:
        BUY actions then SELL actions, each by descending MYR amount.
        HOLD is never emitted.
    """
    if dead_band is None:
        dead_band = _core(config).rebalance_dead_band

    investable = [h for h in valued_holdings if is_investable(h.category)]
    total_value = sum(h.value_myr for h in investable)

    issues = validate_targets(investable)
    if issues:
        logger.warning(
            "target_allocation_issues",
            issue_count=len(issues),
            messages=[i.message for i in issues],
        )

    actions: list[RebalanceAction] = []
    for members in _group_holdings(investable):
        grouped = members[0].group_name is not None
        group_value = sum(h.value_myr for h in members)
        group_target = sum(h.target_allocation for h in members)
        group_gap = total_value * group_target / 100 - group_value

        for holding in members:
            if group_target > 0:
                gap = group_gap * holding.target_allocation / group_target
            else:
                gap = -holding.value_myr

            action = _action_for_gap(gap, dead_band)
            if action is RebalanceActionType.HOLD:
                continue
            actions.append(_build_action(
                holding,
                gap,
                action,
                exchange_rate,
                total_value,
                grouped,
                group_value,
                group_target,
            ))

    actions.sort(key=_sort_key)

    logger.debug(
        "rebalance_computed",
        holding_count=len(investable),
        action_count=len(actions),
        total_value=total_value,
    )
    return actions


def validate_targets(holdings: list[Holding]) -> list[AllocationIssue]:
    """
    Check the configured target weights of the investable holdings.

    Flags a portfolio-wide target sum above 100% and any group whose
    member targets sum above 100%. Nothing is corrected.
    """
    investable = [h for h in holdings if is_investable(h.category)]
    issues: list[AllocationIssue] = []

    total_target = sum(h.target_allocation for h in investable)
    if total_target > MAX_TARGET_PERCENT + TARGET_SUM_EPSILON:
        issues.append(AllocationIssue(
            scope="portfolio",
            total_target=total_target,
            message=f"Target allocations sum to {total_target:.2f}%, above 100%",
            severity="error",
        ))

    group_targets: dict[str, float] = {}
    for holding in investable:
        if holding.group_name is not None:
            group_targets[holding.group_name] = (
                group_targets.get(holding.group_name, 0.0) + holding.target_allocation
            )

    for name, group_total in group_targets.items():
        if group_total > MAX_TARGET_PERCENT + TARGET_SUM_EPSILON:
            issues.append(AllocationIssue(
                scope="group",
                group_name=name,
                total_target=group_total,
                message=f"Group '{name}' targets sum to {group_total:.2f}%, above 100%",
                severity="error",
            ))

    return issues


def deviation_alerts(
    valued_holdings: list[ValuedHolding],
    threshold: Optional[float] = None,
    config: Optional[CoreSettings] = None,
) -> list[DeviationAlert]:
    """
    Drift of each targeted holding from its target weight.

    Only investable holdings with a positive target are considered, and
    their current weights are measured against their own combined value.

    Args:
        valued_holdings: Output of the valuation engine
        threshold: Percentage points of drift that raise a warning;
            twice this is critical. Defaults to deviation_threshold_percent.

    Returns:
        Alerts sorted by absolute deviation, largest first. Empty when the
        targeted holdings have no value.
    """
    if threshold is None:
        threshold = _core(config).deviation_threshold_percent

    targeted = [
        h for h in valued_holdings
        if is_investable(h.category) and h.target_allocation > 0
    ]
    total_value = sum(h.value_myr for h in targeted)
    if total_value <= 0:
        return []

    alerts = []
    for holding in targeted:
        current = holding.value_myr / total_value * 100
        deviation = current - holding.target_allocation
        magnitude = abs(deviation)

        if magnitude >= threshold * 2:
            severity = DeviationSeverity.CRITICAL
        elif magnitude >= threshold:
            severity = DeviationSeverity.WARNING
        else:
            severity = DeviationSeverity.OK

        if deviation < -threshold:
            action = RebalanceActionType.BUY
        elif deviation > threshold:
            action = RebalanceActionType.SELL
        else:
            action = RebalanceActionType.HOLD

        alerts.append(DeviationAlert(
            holding_id=holding.id,
            symbol=holding.symbol,
            current_weight=current,
            target_weight=holding.target_allocation,
            deviation=deviation,
            severity=severity,
            action=action,
        ))

    alerts.sort(key=lambda a: abs(a.deviation), reverse=True)
    return alerts
