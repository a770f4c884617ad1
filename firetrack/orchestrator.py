"""
Main Orchestrator for firetrack

This module ties together the engines, the records and the services and
defines the end-to-end flows:
1. Snapshot (holdings -> valuation -> rebalance + alerts -> projection)
2. Price refresh (quotes -> holdings -> new exchange rate)
3. Trade recording (transaction -> updated holding -> ledger)
4. Persistence (load / save / export / restore)

DESIGN DECISION: The orchestrator never mutates a backup in place. Every
flow takes a PortfolioBackup and returns a new one, and every step is
audited under one correlation id per call.
"""

from datetime import date
from pathlib import Path
from typing import Optional, Union
from uuid import UUID

import structlog
from pydantic import BaseModel, Field

from firetrack.audit import AuditLogger, configure_logging, create_correlation_id
from firetrack.config import CoreSettings, get_settings
from firetrack.engine import (
    bridge_liquidity,
    build_projection_report,
    deviation_alerts,
    rebalance,
    validate_targets,
    value,
)
from firetrack.models.audit import AuditEventBuilder
from firetrack.models.holding import PortfolioTotals, ValuedHolding
from firetrack.models.planning import BridgeLiquidityResult, ProjectionReport
from firetrack.models.rebalance import (
    AllocationIssue,
    DeviationAlert,
    RebalanceAction,
    RebalanceActionType,
)
from firetrack.models.records import (
    InvestmentTransaction,
    LoanSummary,
    PortfolioBackup,
    YearOverYear,
)
from firetrack.records import (
    TradeError,
    projected_annual_dividend,
    record_trade,
    summarize_loans,
    year_over_year,
)
from firetrack.services.quotes import QuoteApplication, QuoteResult, apply_quotes
from firetrack.services.storage import (
    InMemoryAuditStorage,
    JsonFilePortfolioStore,
    NotFoundError,
    PortfolioStoreInterface,
    StorageError,
    dump_backup,
    load_backup,
)


logger = structlog.get_logger(__name__)


class DashboardSnapshot(BaseModel):
    """Everything derived from one backup on one date."""

    as_of: date
    exchange_rate: float
    correlation_id: Optional[UUID] = None

    holdings: list[ValuedHolding] = Field(default_factory=list)
    totals: PortfolioTotals
    actions: list[RebalanceAction] = Field(default_factory=list)
    target_issues: list[AllocationIssue] = Field(default_factory=list)
    alerts: list[DeviationAlert] = Field(default_factory=list)
    projection: ProjectionReport
    bridge: BridgeLiquidityResult
    loans: LoanSummary
    yearly_growth: list[YearOverYear] = Field(default_factory=list)
    projected_annual_dividend: float = 0.0


class PortfolioService:
    """
    Orchestrates the portfolio flows.

    Flow for a dashboard refresh:
    1. Value → currency-normalize holdings, roll up totals
    2. Rebalance → actions, target validation, drift alerts
    3. Project → FIRE trajectory, milestones, EPF bridge outlook
    4. Records → loans, yearly growth, expected dividends

    Storage and audit storage are optional; without a store the service
    still computes, it just cannot load or save.
    """

    def __init__(
        self,
        store: Optional[PortfolioStoreInterface] = None,
        audit_logger: Optional[AuditLogger] = None,
        config: Optional[CoreSettings] = None,
    ):
        self._store = store
        self._audit_logger = audit_logger or AuditLogger()
        self._config = config or get_settings().core

    @property
    def store(self) -> Optional[PortfolioStoreInterface]:
        return self._store

    @property
    def audit_logger(self) -> AuditLogger:
        return self._audit_logger

    # =========================================================================
    # SNAPSHOT
    # =========================================================================

    def build_snapshot(
        self,
        backup: PortfolioBackup,
        as_of: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> DashboardSnapshot:
        """
        Run the full computation pipeline over a backup.

        Args:
            backup: The stored portfolio
            as_of: Reference date for pension accrual, loan progress and
                the projection start year (defaults to today)

        Returns:
            The dashboard snapshot
        """
        as_of = as_of or date.today()
        correlation_id = correlation_id or create_correlation_id()
        settings = backup.settings
        rate = settings.exchange_rate_usd_myr

        # Step 1: Valuation
        valued, totals = value(
            backup.assets,
            rate,
            fire_target=settings.financial_freedom_target,
            saving_target=settings.saving_target,
            as_of=as_of,
        )
        self._audit_logger.log(AuditEventBuilder.valuation_computed(
            holding_count=len(valued),
            total_net_worth=totals.total_net_worth,
            exchange_rate=rate,
            correlation_id=correlation_id,
        ))

        # Step 2: Rebalance, target checks and drift
        issues = validate_targets(backup.assets)
        if issues:
            self._audit_logger.log(AuditEventBuilder.targets_flagged(
                issues=[i.model_dump() for i in issues],
                correlation_id=correlation_id,
            ))

        actions = rebalance(valued, rate, config=self._config)
        self._audit_logger.log(AuditEventBuilder.rebalance_computed(
            action_count=len(actions),
            buy_total=sum(a.amount_myr for a in actions if a.action is RebalanceActionType.BUY),
            sell_total=sum(a.amount_myr for a in actions if a.action is RebalanceActionType.SELL),
            correlation_id=correlation_id,
        ))
        alerts = deviation_alerts(valued, config=self._config)

        # Step 3: Projection
        report = build_projection_report(
            totals.liquid_net_worth,
            totals.retirement_net_worth,
            settings.financial_freedom_target,
            backup.fire_settings,
            start_year=as_of.year,
            config=self._config,
        )
        self._audit_logger.log(AuditEventBuilder.projection_computed(
            point_count=len(report.points),
            fire_age=report.fire_total.age if report.fire_total else None,
            required_portfolio=report.required_portfolio,
            correlation_id=correlation_id,
        ))

        threshold = backup.fire_settings.epf_withdrawal_threshold
        bridge = bridge_liquidity(
            totals.liquid_net_worth,
            totals.retirement_net_worth,
            threshold=threshold,
            config=self._config,
        )

        # Step 4: Records
        return DashboardSnapshot(
            as_of=as_of,
            exchange_rate=rate,
            correlation_id=correlation_id,
            holdings=valued,
            totals=totals,
            actions=actions,
            target_issues=issues,
            alerts=alerts,
            projection=report,
            bridge=bridge,
            loans=summarize_loans(backup.loans, as_of),
            yearly_growth=year_over_year(backup.yearly_records),
            projected_annual_dividend=projected_annual_dividend(
                totals.invested_net_worth,
                settings.dividend_yield_percent,
            ),
        )

    # =========================================================================
    # PRICES AND TRADES
    # =========================================================================

    def refresh_prices(
        self,
        backup: PortfolioBackup,
        quote: QuoteResult,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[PortfolioBackup, QuoteApplication]:
        """
        Apply fetched quotes to a backup.

        Returns:
            (updated_backup, application)
        """
        correlation_id = correlation_id or create_correlation_id()
        application = apply_quotes(
            backup.assets,
            quote,
            backup.settings.exchange_rate_usd_myr,
        )

        updated = backup.model_copy(update={
            "assets": application.holdings,
            "settings": backup.settings.model_copy(update={
                "exchange_rate_usd_myr": application.exchange_rate,
            }),
        })

        self._audit_logger.log(AuditEventBuilder.quotes_applied(
            source=application.source,
            changed=len(application.changes),
            exchange_rate=application.exchange_rate,
            correlation_id=correlation_id,
        ))
        return updated, application

    def record_trade(
        self,
        backup: PortfolioBackup,
        transaction: InvestmentTransaction,
        correlation_id: Optional[UUID] = None,
    ) -> PortfolioBackup:
        """
        Apply a trade to its holding and append it to the ledger.

        Raises:
            InsufficientQuantityError: If a SELL exceeds the quantity held
            UnknownHoldingError: If a SELL refers to a symbol not held
        """
        correlation_id = correlation_id or create_correlation_id()
        try:
            holdings = record_trade(backup.assets, transaction)
        except TradeError as e:
            self._audit_logger.log(AuditEventBuilder.trade_rejected(
                transaction_id=transaction.id,
                symbol=transaction.symbol,
                reason=str(e),
                correlation_id=correlation_id,
            ))
            raise

        self._audit_logger.log(AuditEventBuilder.trade_recorded(
            transaction_id=transaction.id,
            symbol=transaction.symbol,
            trade_type=transaction.type.value,
            quantity=transaction.quantity,
            correlation_id=correlation_id,
        ))
        return backup.model_copy(update={
            "assets": holdings,
            "transactions": [transaction, *backup.transactions],
        })

    # =========================================================================
    # PERSISTENCE
    # =========================================================================

    def load(self, correlation_id: Optional[UUID] = None) -> PortfolioBackup:
        """
        Load the stored portfolio.

        Raises:
            NotFoundError: If no store is configured or nothing is stored
            StorageError: If the stored portfolio cannot be read
        """
        if self._store is None:
            raise NotFoundError("No portfolio store configured")

        backup = self._store.load()
        self._audit_logger.log(AuditEventBuilder.portfolio_loaded(
            location=self._store.location,
            holding_count=len(backup.assets),
            correlation_id=correlation_id,
        ))
        return backup

    def load_or_default(self, correlation_id: Optional[UUID] = None) -> PortfolioBackup:
        """Load the stored portfolio, or start an empty one if nothing is stored yet."""
        try:
            return self.load(correlation_id)
        except NotFoundError:
            logger.info("starting_empty_portfolio")
            return self.new_backup()

    def new_backup(self) -> PortfolioBackup:
        """An empty portfolio using the configured default exchange rate."""
        backup = PortfolioBackup()
        backup.settings.exchange_rate_usd_myr = get_settings().app.default_exchange_rate
        return backup

    def save(
        self,
        backup: PortfolioBackup,
        correlation_id: Optional[UUID] = None,
    ) -> bool:
        """
        Save the portfolio through the configured store.

        Returns:
            True if saved, False when no store is configured

        Raises:
            StorageError: If the store fails
        """
        if self._store is None:
            return False

        try:
            self._store.save(backup)
        except StorageError as e:
            self._audit_logger.log(AuditEventBuilder.save_failed(
                location=self._store.location,
                error_message=str(e),
                correlation_id=correlation_id,
            ))
            raise

        self._audit_logger.log(AuditEventBuilder.portfolio_saved(
            location=self._store.location,
            holding_count=len(backup.assets),
            correlation_id=correlation_id,
        ))
        return True

    def export_backup(
        self,
        backup: PortfolioBackup,
        correlation_id: Optional[UUID] = None,
    ) -> str:
        """Serialize a backup for download."""
        text = dump_backup(backup, indent=get_settings().storage.indent)
        self._audit_logger.log(AuditEventBuilder.backup_exported(
            size_bytes=len(text.encode("utf-8")),
            correlation_id=correlation_id,
        ))
        return text

    def restore_backup(
        self,
        text: str,
        correlation_id: Optional[UUID] = None,
    ) -> PortfolioBackup:
        """
        Parse an uploaded backup.

        Raises:
            BackupFormatError: If the text is not a valid backup
        """
        backup = load_backup(text)
        self._audit_logger.log(AuditEventBuilder.backup_restored(
            holding_count=len(backup.assets),
            correlation_id=correlation_id,
        ))
        return backup


def create_service(
    use_storage: bool = True,
    path: Optional[Union[str, Path]] = None,
) -> PortfolioService:
    """
    Factory function to create the portfolio service.

    Args:
        use_storage: Whether to back the service with the JSON file store.
                    Set to False for computing without persistence.
        path: Portfolio file (defaults to the storage data_path setting)

    Returns:
        The configured service
    """
    configure_logging()
    audit_logger = AuditLogger(InMemoryAuditStorage())
    store = JsonFilePortfolioStore(path) if use_storage else None
    return PortfolioService(store=store, audit_logger=audit_logger)
