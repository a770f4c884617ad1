"""
Computation Engines

Pure input-to-output transformations. Data flows one way:

    holdings -> valuation -> {rebalance, projection (+ EPF bridge)}
"""

from firetrack.engine.valuation import (
    accrued_pension_balance,
    compute_totals,
    months_elapsed,
    value,
    value_holding,
)
from firetrack.engine.rebalance import (
    deviation_alerts,
    rebalance,
    validate_targets,
)
from firetrack.engine.projection import (
    build_projection_report,
    compare_scenarios,
    default_scenarios,
    find_goal_crossing,
    milestone_ladder,
    project,
    project_from_totals,
    required_portfolio,
    trajectory_csv,
)
from firetrack.engine.epf_bridge import (
    bridge_liquidity,
    bridge_sources_from_holdings,
    schedule_catch_up,
    simulate_bridge_transfer,
)

__all__ = [
    "accrued_pension_balance",
    "compute_totals",
    "months_elapsed",
    "value",
    "value_holding",
    "deviation_alerts",
    "rebalance",
    "validate_targets",
    "build_projection_report",
    "compare_scenarios",
    "default_scenarios",
    "find_goal_crossing",
    "milestone_ladder",
    "project",
    "project_from_totals",
    "required_portfolio",
    "trajectory_csv",
    "bridge_liquidity",
    "bridge_sources_from_holdings",
    "schedule_catch_up",
    "simulate_bridge_transfer",
]
