"""
Rebalancing Models

Output of the rebalance engine: the actions that close the gap between
current and target weights, target-weight validation issues and drift
alerts.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class RebalanceActionType(str, Enum):
    BUY = "BUY"
    SELL = "SELL"
    HOLD = "HOLD"


class DeviationSeverity(str, Enum):
    """How far a holding has drifted from its target weight."""
    OK = "ok"
    WARNING = "warning"
    CRITICAL = "critical"


class RebalanceAction(BaseModel):
    """
    A suggested trade for one holding.

    amount_myr is always the absolute gap in home currency; amount_usd is
    only set for USD holdings.
    """

    symbol: str
    action: RebalanceActionType
    amount_myr: float = Field(ge=0.0)
    amount_usd: Optional[float] = None
    amount_units: float = Field(
        default=0.0,
        ge=0.0,
        description="Units implied at the current price"
    )
    current_weight: float
    target_weight: float
    is_usd: bool = False

    # Grouped holdings only
    group_name: Optional[str] = None
    group_current_weight: Optional[float] = None
    group_target_weight: Optional[float] = None

    @property
    def signed_amount_myr(self) -> float:
        """Positive for buys, negative for sells."""
        if self.action is RebalanceActionType.SELL:
            return -self.amount_myr
        if self.action is RebalanceActionType.BUY:
            return self.amount_myr
        return 0.0


class AllocationIssue(BaseModel):
    """A problem with the configured target weights."""

    scope: str = Field(
        ...,
        description="'portfolio' or 'group'"
    )
    group_name: Optional[str] = None
    total_target: float
    message: str
    severity: str = Field(
        default="warning",
        pattern="^(error|warning|info)$"
    )


class DeviationAlert(BaseModel):
    """Drift of a single holding against its target weight."""

    holding_id: str
    symbol: str
    current_weight: float
    target_weight: float
    deviation: float = Field(
        ...,
        description="current_weight - target_weight, in percentage points"
    )
    severity: DeviationSeverity
    action: RebalanceActionType
