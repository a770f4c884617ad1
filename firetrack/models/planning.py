"""
Projection and EPF Bridge Models

FireProjectionSettings is persisted with the backup. Everything else in
this module is derived output of the projection and bridge engines and
is rebuilt on every run.
"""

from typing import Optional

from pydantic import BaseModel, Field

from firetrack.models.base import RECORD_CONFIG, Amount


# =============================================================================
# SETTINGS
# =============================================================================

class FireProjectionSettings(BaseModel):
    """
    Inputs of a FIRE projection run.

    Return and inflation figures are nominal annual percentages;
    contributions are monthly amounts in home currency.
    """
    model_config = RECORD_CONFIG

    current_age: int = Field(
        default=29,
        ge=0,
        le=120,
        description="Age at the seed point"
    )

    # Liquid track
    monthly_contribution: Amount = Field(
        default=1_500.0,
        description="Monthly contribution to liquid assets"
    )
    annual_return_percent: Amount = Field(
        default=7.0,
        description="Nominal annual return of liquid assets"
    )
    inflation_percent: Amount = Field(
        default=3.0,
        description="Annual inflation applied to both tracks"
    )

    # Retirement-fund track
    epf_monthly_contribution: Amount = Field(
        default=1_200.0,
        description="Monthly contribution to the retirement fund"
    )
    epf_annual_return_percent: Amount = Field(
        default=5.5,
        description="Nominal annual return of the retirement fund"
    )

    # Reverse calculator
    desired_monthly_spending: Amount = 3_500.0
    withdrawal_rate: Amount = Field(
        default=4.0,
        description="Safe withdrawal rate in percent"
    )

    # EPF enhanced savings
    epf_withdrawal_threshold: Optional[float] = Field(
        default=None,
        ge=0.0,
        description="Overrides the configured early-withdrawal threshold"
    )
    enable_enhanced_savings_strategy: bool = False


# =============================================================================
# PROJECTION OUTPUT
# =============================================================================

class ProjectionPoint(BaseModel):
    """
    One year of a projection run.

    Balances are rounded to whole units. The bridge fields are only filled
    when the run was given a withdrawal threshold.
    """

    age: int
    year: int
    liquid: int
    retirement: int
    total: int
    target: float

    accessible_retirement: Optional[int] = None
    true_liquid: Optional[int] = None
    retirement_unlocked: Optional[bool] = None


class Milestone(BaseModel):
    """First crossing of a net-worth threshold."""

    goal: float
    point: Optional[ProjectionPoint] = Field(
        default=None,
        description="First point whose total reaches the goal"
    )
    already_achieved: bool = Field(
        default=False,
        description="The seed point already meets the goal"
    )


class ScenarioInput(BaseModel):
    """Overrides applied to the base settings for a what-if run."""

    id: str
    name: str
    monthly_contribution: float
    annual_return_percent: float
    inflation_percent: float


class ScenarioOutcome(BaseModel):
    scenario: ScenarioInput
    points: list[ProjectionPoint] = Field(default_factory=list)
    fire_age: Optional[int] = Field(
        default=None,
        description="Age at which the total first reaches the target"
    )


# =============================================================================
# EPF BRIDGE
# =============================================================================

class BridgeLiquidityResult(BaseModel):
    """Liquidity available for bridging, including unlocked EPF savings."""

    total_liquid: float = Field(
        ...,
        description="Liquid assets plus accessible retirement savings"
    )
    accessible: float = Field(
        ...,
        ge=0.0,
        description="Retirement savings above the withdrawal threshold"
    )
    unlocked: bool


class CatchUpSchedule(BaseModel):
    """Latest age at which voluntary top-ups must start."""

    start_age: int
    years_needed: int
    total_required: float


class BridgeSource(BaseModel):
    """An asset that may fund voluntary retirement top-ups."""

    id: str
    name: str
    value: float = 0.0
    eligible: bool = Field(
        default=False,
        description="Only eligible sources are ever drawn from"
    )


class TransferLeg(BaseModel):
    source_id: str
    source_name: str
    amount: float


class TransferPlanItem(BaseModel):
    """One year of a bridge transfer simulation."""

    year: int
    age: int
    transfers: list[TransferLeg] = Field(default_factory=list)
    total_transfer: float
    cumulative_transfer: float


class BridgeOutlook(BaseModel):
    """EPF enhanced-savings view of a projection run."""

    threshold: float
    first_unlocked: Optional[ProjectionPoint] = None
    catch_up: Optional[CatchUpSchedule] = Field(
        default=None,
        description="None when the fund reaches the threshold unaided"
    )
    current_accessible: float = 0.0
    current_true_liquid: float = 0.0
    currently_unlocked: bool = False


class ProjectionReport(BaseModel):
    """Everything derived from a single projection run."""

    target: float
    points: list[ProjectionPoint] = Field(default_factory=list)
    fire_total: Optional[ProjectionPoint] = Field(
        default=None,
        description="First point where liquid + retirement reaches the target"
    )
    fire_liquid: Optional[ProjectionPoint] = Field(
        default=None,
        description="First point where liquid alone reaches the target"
    )
    milestones: list[Milestone] = Field(default_factory=list)
    required_portfolio: float = 0.0
    bridge: Optional[BridgeOutlook] = None
