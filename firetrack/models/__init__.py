"""
Data Models Package

This package contains all Pydantic models used by firetrack.
All data flowing through the engines conforms to these schemas.
"""

from firetrack.models.holding import (
    CASH_LIKE_CATEGORIES,
    CATEGORY_CLASSES,
    HOME_CURRENCY,
    AssetCategory,
    CategoryClass,
    Currency,
    GlobalSettings,
    Holding,
    PensionConfig,
    PortfolioTotals,
    ValuedHolding,
    category_class,
    is_cash_like,
    is_investable,
    is_retirement,
)
from firetrack.models.planning import (
    BridgeLiquidityResult,
    BridgeOutlook,
    BridgeSource,
    CatchUpSchedule,
    FireProjectionSettings,
    Milestone,
    ProjectionPoint,
    ProjectionReport,
    ScenarioInput,
    ScenarioOutcome,
    TransferLeg,
    TransferPlanItem,
)
from firetrack.models.rebalance import (
    AllocationIssue,
    DeviationAlert,
    DeviationSeverity,
    RebalanceAction,
    RebalanceActionType,
)
from firetrack.models.records import (
    ComputedLoan,
    DividendMonthTotal,
    DividendRecord,
    DividendYearTotal,
    InvestmentTransaction,
    Loan,
    LoanSummary,
    LoanType,
    PortfolioBackup,
    TransactionType,
    YearlyRecord,
    YearOverYear,
)
from firetrack.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Holding models
    "CASH_LIKE_CATEGORIES",
    "CATEGORY_CLASSES",
    "HOME_CURRENCY",
    "AssetCategory",
    "CategoryClass",
    "Currency",
    "GlobalSettings",
    "Holding",
    "PensionConfig",
    "PortfolioTotals",
    "ValuedHolding",
    "category_class",
    "is_cash_like",
    "is_investable",
    "is_retirement",
    # Projection and bridge models
    "BridgeLiquidityResult",
    "BridgeOutlook",
    "BridgeSource",
    "CatchUpSchedule",
    "FireProjectionSettings",
    "Milestone",
    "ProjectionPoint",
    "ProjectionReport",
    "ScenarioInput",
    "ScenarioOutcome",
    "TransferLeg",
    "TransferPlanItem",
    # Rebalance models
    "AllocationIssue",
    "DeviationAlert",
    "DeviationSeverity",
    "RebalanceAction",
    "RebalanceActionType",
    # Records
    "ComputedLoan",
    "DividendMonthTotal",
    "DividendRecord",
    "DividendYearTotal",
    "InvestmentTransaction",
    "Loan",
    "LoanSummary",
    "LoanType",
    "PortfolioBackup",
    "TransactionType",
    "YearlyRecord",
    "YearOverYear",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
