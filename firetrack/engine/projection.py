"""
FIRE Projection Engine

Simulates two asset tracks year by year:
- liquid assets (investments + savings)
- the retirement fund (EPF)

Each track grows at its real return (nominal return minus inflation)
plus twelve monthly contributions. From the resulting point sequence
the engine derives the FIRE crossing points, a milestone ladder, the
portfolio needed for a spending goal and what-if scenarios.

DESIGN DECISION: A run always terminates. It stops when liquid assets
alone reach projection_liquid_target_multiple x target, when the age
reaches projection_max_age, or after projection_max_points points,
whichever comes first. All three limits live in CoreSettings.
"""

import csv
import io
from datetime import date
from typing import Optional

import structlog

from firetrack.config import CoreSettings, get_settings
from firetrack.engine.epf_bridge import bridge_liquidity, schedule_catch_up
from firetrack.models.base import round_whole
from firetrack.models.holding import PortfolioTotals
from firetrack.models.planning import (
    BridgeOutlook,
    FireProjectionSettings,
    Milestone,
    ProjectionPoint,
    ProjectionReport,
    ScenarioInput,
    ScenarioOutcome,
)


logger = structlog.get_logger(__name__)

CSV_HEADERS = ["Year", "Age", "Liquid Net Worth", "EPF Net Worth", "Total Net Worth"]


def _core(config: Optional[CoreSettings]) -> CoreSettings:
    return config or get_settings().core


def real_return(nominal_percent: float, inflation_percent: float) -> float:
    """Inflation-adjusted annual return as a fraction."""
    return (nominal_percent - inflation_percent) / 100


def _make_point(
    age: int,
    year: int,
    liquid: float,
    retirement: float,
    target: float,
    threshold: Optional[float],
) -> ProjectionPoint:
    point = ProjectionPoint(
        age=age,
        year=year,
        liquid=round_whole(liquid),
        retirement=round_whole(retirement),
        total=round_whole(liquid + retirement),
        target=target,
    )
    if threshold is not None:
        bridge = bridge_liquidity(liquid, retirement, threshold)
        point.accessible_retirement = round_whole(bridge.accessible)
        point.true_liquid = round_whole(bridge.total_liquid)
        point.retirement_unlocked = bridge.unlocked
    return point


def project(
    starting_liquid: float,
    starting_retirement: float,
    target: float,
    settings: FireProjectionSettings,
    start_year: Optional[int] = None,
    retirement_threshold: Optional[float] = None,
    config: Optional[CoreSettings] = None,
) -> list[ProjectionPoint]:
    """
    Run the dual-track compounding simulation.

    Args:
        starting_liquid: Liquid assets at the seed point
        starting_retirement: Retirement-fund balance at the seed point
        target: FIRE target, copied onto every point
        settings: Ages, contributions, returns and inflation
        start_year: Calendar year of the seed point (defaults to this year)
        retirement_threshold: When given, every point also carries the
            EPF bridge liquidity fields

    Returns:
        Points in age order, starting with the seed. Balances are rounded
        in the points only; the compounding itself is unrounded.
    """
    core = _core(config)
    year = start_year if start_year is not None else date.today().year
    age = settings.current_age

    liquid_rate = real_return(settings.annual_return_percent, settings.inflation_percent)
    retirement_rate = real_return(settings.epf_annual_return_percent, settings.inflation_percent)
    liquid_contribution = settings.monthly_contribution * 12
    retirement_contribution = settings.epf_monthly_contribution * 12
    liquid_stop = target * core.projection_liquid_target_multiple

    liquid = starting_liquid
    retirement = starting_retirement
    points = [_make_point(age, year, liquid, retirement, target, retirement_threshold)]

    while (
        len(points) < core.projection_max_points
        and age < core.projection_max_age
        and liquid < liquid_stop
    ):
        liquid += liquid * liquid_rate + liquid_contribution
        retirement += retirement * retirement_rate + retirement_contribution
        age += 1
        year += 1
        points.append(_make_point(age, year, liquid, retirement, target, retirement_threshold))

    logger.debug(
        "projection_run",
        points=len(points),
        final_age=age,
        liquid_rate=liquid_rate,
        retirement_rate=retirement_rate,
    )
    return points


def project_from_totals(
    totals: PortfolioTotals,
    target: float,
    settings: FireProjectionSettings,
    start_year: Optional[int] = None,
    retirement_threshold: Optional[float] = None,
    config: Optional[CoreSettings] = None,
) -> list[ProjectionPoint]:
    """Seed a projection with the liquid and retirement totals of a valuation."""
    return project(
        totals.liquid_net_worth,
        totals.retirement_net_worth,
        target,
        settings,
        start_year=start_year,
        retirement_threshold=retirement_threshold,
        config=config,
    )


def find_goal_crossing(
    points: list[ProjectionPoint],
    target: float,
    liquid_only: bool = False,
) -> Optional[ProjectionPoint]:
    """
    First point that reaches the target.

    Compares the total (liquid + retirement) unless liquid_only is set.
    Returns None when the run never reaches the target.
    """
    for point in points:
        amount = point.liquid if liquid_only else point.total
        if amount >= target:
            return point
    return None


def milestone_ladder(
    points: list[ProjectionPoint],
    thresholds: Optional[list[float]] = None,
    config: Optional[CoreSettings] = None,
) -> list[Milestone]:
    """
    First crossing of each net-worth threshold.

    Thresholds the seed point already meets are flagged already_achieved.
    Thresholds never reached within the run are left out.
    """
    if not points:
        return []
    if thresholds is None:
        thresholds = _core(config).milestone_thresholds

    seed_total = points[0].total
    ladder = []
    for goal in thresholds:
        point = find_goal_crossing(points, goal)
        achieved = seed_total >= goal
        if point is None and not achieved:
            continue
        ladder.append(Milestone(goal=goal, point=point, already_achieved=achieved))
    return ladder


def required_portfolio(
    desired_monthly_spending: float,
    withdrawal_rate: float,
    config: Optional[CoreSettings] = None,
) -> float:
    """
    Portfolio that sustains a monthly spending goal.

    required = monthly spending x 12 / (withdrawal rate / 100). A
    non-positive rate falls back to default_withdrawal_rate (4%).
    """
    if withdrawal_rate <= 0:
        withdrawal_rate = _core(config).default_withdrawal_rate
    return desired_monthly_spending * 12 / (withdrawal_rate / 100)


def _bridge_outlook(
    points: list[ProjectionPoint],
    threshold: float,
    core: CoreSettings,
) -> BridgeOutlook:
    first_unlocked = next((p for p in points if p.retirement_unlocked), None)

    target_age = core.enhanced_savings_target_age
    at_target = next((p for p in points if p.age == target_age), None)
    catch_up = None
    if at_target is not None:
        catch_up = schedule_catch_up(
            target_age,
            at_target.retirement,
            threshold=threshold,
            config=core,
        )

    seed = points[0]
    return BridgeOutlook(
        threshold=threshold,
        first_unlocked=first_unlocked,
        catch_up=catch_up,
        current_accessible=seed.accessible_retirement or 0,
        current_true_liquid=seed.true_liquid or 0,
        currently_unlocked=bool(seed.retirement_unlocked),
    )


def build_projection_report(
    starting_liquid: float,
    starting_retirement: float,
    target: float,
    settings: FireProjectionSettings,
    start_year: Optional[int] = None,
    config: Optional[CoreSettings] = None,
) -> ProjectionReport:
    """
    Run a projection and derive everything shown alongside it.

    The EPF bridge outlook is only included when the enhanced savings
    strategy is enabled in the settings.
    """
    core = _core(config)
    threshold = settings.epf_withdrawal_threshold
    if threshold is None:
        threshold = core.epf_withdrawal_threshold

    points = project(
        starting_liquid,
        starting_retirement,
        target,
        settings,
        start_year=start_year,
        retirement_threshold=threshold,
        config=core,
    )

    bridge = None
    if settings.enable_enhanced_savings_strategy:
        bridge = _bridge_outlook(points, threshold, core)

    return ProjectionReport(
        target=target,
        points=points,
        fire_total=find_goal_crossing(points, target),
        fire_liquid=find_goal_crossing(points, target, liquid_only=True),
        milestones=milestone_ladder(points, config=core),
        required_portfolio=required_portfolio(
            settings.desired_monthly_spending,
            settings.withdrawal_rate,
            config=core,
        ),
        bridge=bridge,
    )


# =============================================================================
# SCENARIOS
# =============================================================================

def default_scenarios(settings: FireProjectionSettings) -> list[ScenarioInput]:
    """Base, optimistic and conservative variants of the settings."""
    return [
        ScenarioInput(
            id="base",
            name="Base",
            monthly_contribution=settings.monthly_contribution,
            annual_return_percent=settings.annual_return_percent,
            inflation_percent=settings.inflation_percent,
        ),
        ScenarioInput(
            id="optimistic",
            name="Optimistic",
            monthly_contribution=settings.monthly_contribution * 1.5,
            annual_return_percent=settings.annual_return_percent + 2,
            inflation_percent=settings.inflation_percent - 0.5,
        ),
        ScenarioInput(
            id="conservative",
            name="Conservative",
            monthly_contribution=settings.monthly_contribution * 0.7,
            annual_return_percent=settings.annual_return_percent - 2,
            inflation_percent=settings.inflation_percent + 1,
        ),
    ]


def compare_scenarios(
    starting_liquid: float,
    starting_retirement: float,
    target: float,
    settings: FireProjectionSettings,
    custom: Optional[ScenarioInput] = None,
    start_year: Optional[int] = None,
    config: Optional[CoreSettings] = None,
) -> list[ScenarioOutcome]:
    """
    Project each scenario and report the age at which it reaches the target.

    Scenario inflation applies to both tracks; the retirement-fund
    contribution and return stay as in the base settings.
    """
    scenarios = default_scenarios(settings)
    if custom is not None:
        scenarios.append(custom)

    outcomes = []
    for scenario in scenarios:
        scenario_settings = settings.model_copy(update={
            "monthly_contribution": scenario.monthly_contribution,
            "annual_return_percent": scenario.annual_return_percent,
            "inflation_percent": scenario.inflation_percent,
        })
        points = project(
            starting_liquid,
            starting_retirement,
            target,
            scenario_settings,
            start_year=start_year,
            config=config,
        )
        crossing = find_goal_crossing(points, target)
        outcomes.append(ScenarioOutcome(
            scenario=scenario,
            points=points,
            fire_age=crossing.age if crossing else None,
        ))
    return outcomes


def trajectory_csv(points: list[ProjectionPoint]) -> str:
    """Export a projection as CSV (year, age, liquid, EPF, total)."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for point in points:
        writer.writerow([point.year, point.age, point.liquid, point.retirement, point.total])
    return buffer.getvalue()
