"""
Tests for the portfolio service and the audit logger.

Test strategy:
1. Flows run against in-memory stores
2. Every flow is checked for the audit events it leaves behind
"""

import pytest
from datetime import date

from firetrack.audit import AuditLogger
from firetrack.config import CoreSettings
from firetrack.models import (
    AssetCategory,
    AuditEventBuilder,
    AuditEventType,
    Currency,
    FireProjectionSettings,
    GlobalSettings,
    Holding,
    InvestmentTransaction,
    Loan,
    PortfolioBackup,
    RebalanceActionType,
    TransactionType,
    YearlyRecord,
)
from firetrack.orchestrator import PortfolioService, create_service
from firetrack.records import InsufficientQuantityError
from firetrack.services.quotes import QuoteResult
from firetrack.services.storage import (
    BackupFormatError,
    InMemoryAuditStorage,
    InMemoryPortfolioStore,
    JsonFilePortfolioStore,
    NotFoundError,
    StorageConnectionError,
)


AS_OF = date(2025, 3, 1)


class FailingStore(InMemoryPortfolioStore):
    """Store whose saves always fail."""

    def save(self, backup):
        raise StorageConnectionError("disk full")


class FailingAuditStorage(InMemoryAuditStorage):
    """Audit store that always fails."""

    def append_event(self, event):
        raise RuntimeError("audit backend down")


@pytest.fixture
def backup() -> PortfolioBackup:
    return PortfolioBackup(
        assets=[
            Holding(id="voo", symbol="VOO", category=AssetCategory.ETF, currency=Currency.USD,
                    quantity=10, average_cost=400, current_price=500, target_allocation=50),
            Holding(id="mbb", symbol="MAYBANK", category=AssetCategory.STOCK,
                    quantity=3_000, average_cost=9, current_price=10, target_allocation=50),
            Holding(id="bank", symbol="BANK", category=AssetCategory.SAVINGS_CASH, quantity=20_000),
            Holding(id="epf", symbol="EPF", category=AssetCategory.PENSION, quantity=150_000),
        ],
        settings=GlobalSettings(
            exchange_rate_usd_myr=4.0,
            financial_freedom_target=1_000_000,
            saving_target=40_000,
            dividend_yield_percent=2,
        ),
        fire_settings=FireProjectionSettings(current_age=30),
        loans=[Loan(id="car", name="Car", principal_amount=12_000, interest_rate_percent=10,
                    monthly_payment=1_100, start_date=date(2024, 12, 1), tenure_months=12)],
        yearly_records=[YearlyRecord(year=2023, invest_amount=40_000),
                        YearlyRecord(year=2024, invest_amount=50_000)],
    )


@pytest.fixture
def audit_storage() -> InMemoryAuditStorage:
    return InMemoryAuditStorage()


@pytest.fixture
def service(audit_storage) -> PortfolioService:
    return PortfolioService(
        store=InMemoryPortfolioStore(),
        audit_logger=AuditLogger(audit_storage),
        config=CoreSettings(),
    )


def event_types(storage: InMemoryAuditStorage) -> list[AuditEventType]:
    return [e.event_type for e in reversed(storage.get_recent_events(limit=1000))]


class TestBuildSnapshot:
    """Tests for the dashboard pipeline."""

    def test_snapshot_contents(self, service, backup):
        """Test that every section of the snapshot is filled."""
        snapshot = service.build_snapshot(backup, as_of=AS_OF)

        assert snapshot.exchange_rate == 4.0
        assert snapshot.totals.invested_net_worth == pytest.approx(50_000)
        assert snapshot.totals.saved_net_worth == pytest.approx(20_000)
        assert snapshot.totals.retirement_net_worth == pytest.approx(150_000)
        assert snapshot.totals.progress_to_saving == pytest.approx(50)

        # VOO 20k vs MAYBANK 30k against 50/50 targets
        assert [(a.symbol, a.action) for a in snapshot.actions] == [
            ("VOO", RebalanceActionType.BUY),
            ("MAYBANK", RebalanceActionType.SELL),
        ]
        assert snapshot.actions[0].amount_usd == pytest.approx(1_250)
        assert snapshot.target_issues == []
        assert [a.symbol for a in snapshot.alerts] == ["VOO", "MAYBANK"]

        assert snapshot.projection.points[0].year == 2025
        assert snapshot.projection.points[0].total == 220_000
        assert snapshot.projection.fire_total is not None
        assert snapshot.bridge.unlocked is False
        assert snapshot.bridge.total_liquid == pytest.approx(70_000)

        assert snapshot.loans.loans[0].months_paid == 3
        assert snapshot.yearly_growth[0].growth_amount == pytest.approx(10_000)
        assert snapshot.projected_annual_dividend == pytest.approx(1_000)

    def test_snapshot_is_audited_under_one_run(self, service, backup, audit_storage):
        """Test the events of one pipeline run."""
        snapshot = service.build_snapshot(backup, as_of=AS_OF)

        assert event_types(audit_storage) == [
            AuditEventType.VALUATION_COMPUTED,
            AuditEventType.REBALANCE_COMPUTED,
            AuditEventType.PROJECTION_COMPUTED,
        ]
        run = audit_storage.get_events_by_correlation_id(snapshot.correlation_id)
        assert len(run) == 3

    def test_over_allocated_targets_are_flagged(self, service, backup, audit_storage):
        """Test that bad targets are reported and audited."""
        backup.assets[0].target_allocation = 80
        snapshot = service.build_snapshot(backup, as_of=AS_OF)

        assert len(snapshot.target_issues) == 1
        assert AuditEventType.TARGETS_FLAGGED in event_types(audit_storage)

    def test_empty_portfolio(self, service):
        """Test that an empty backup still produces a snapshot."""
        snapshot = service.build_snapshot(PortfolioBackup(), as_of=AS_OF)
        assert snapshot.totals.total_net_worth == 0
        assert snapshot.actions == []
        assert snapshot.alerts == []
        assert snapshot.projection.points


class TestPriceAndTradeFlows:
    """Tests for price refresh and trade recording."""

    def test_refresh_prices(self, service, backup, audit_storage):
        """Test that quotes and the rate land in a new backup."""
        quote = QuoteResult(prices={"VOO": 550}, exchange_rate=4.2, source="test")
        updated, application = service.refresh_prices(backup, quote)

        assert updated.assets[0].current_price == 550
        assert updated.settings.exchange_rate_usd_myr == 4.2
        assert backup.assets[0].current_price == 500
        assert backup.settings.exchange_rate_usd_myr == 4.0
        assert len(application.changes) == 1
        assert event_types(audit_storage) == [AuditEventType.QUOTES_APPLIED]

    def test_record_trade(self, service, backup, audit_storage):
        """Test that a trade updates the holding and the ledger."""
        tx = InvestmentTransaction(trade_date=AS_OF, type=TransactionType.BUY,
                                   symbol="VOO", quantity=10, price_per_unit=600)
        updated = service.record_trade(backup, tx)

        assert updated.assets[0].quantity == pytest.approx(20)
        assert updated.assets[0].average_cost == pytest.approx(500)
        assert updated.transactions[0].id == tx.id
        assert backup.transactions == []
        assert event_types(audit_storage) == [AuditEventType.TRADE_RECORDED]

    def test_rejected_trade_is_audited(self, service, backup, audit_storage):
        """Test that an oversell raises and leaves a rejection event."""
        tx = InvestmentTransaction(trade_date=AS_OF, type=TransactionType.SELL,
                                   symbol="VOO", quantity=11, price_per_unit=600)
        with pytest.raises(InsufficientQuantityError):
            service.record_trade(backup, tx)
        assert event_types(audit_storage) == [AuditEventType.TRADE_REJECTED]


class TestPersistenceFlows:
    """Tests for load, save, export and restore."""

    def test_save_and_load(self, service, backup, audit_storage):
        """Test a save/load cycle through the store."""
        assert service.save(backup) is True
        loaded = service.load()

        assert [h.id for h in loaded.assets] == ["voo", "mbb", "bank", "epf"]
        assert event_types(audit_storage) == [
            AuditEventType.PORTFOLIO_SAVED,
            AuditEventType.PORTFOLIO_LOADED,
        ]

    def test_load_or_default(self, service):
        """Test that a missing portfolio starts empty."""
        backup = service.load_or_default()
        assert backup.assets == []
        assert backup.settings.exchange_rate_usd_myr > 0

    def test_without_store(self, backup):
        """Test that a service without a store can compute but not persist."""
        service = PortfolioService(config=CoreSettings())
        assert service.save(backup) is False
        with pytest.raises(NotFoundError):
            service.load()

    def test_failed_save_is_audited(self, backup, audit_storage):
        """Test that a failing store raises and leaves a save_failed event."""
        service = PortfolioService(store=FailingStore(), audit_logger=AuditLogger(audit_storage))
        with pytest.raises(StorageConnectionError):
            service.save(backup)
        assert event_types(audit_storage) == [AuditEventType.SAVE_FAILED]

    def test_export_and_restore(self, service, backup, audit_storage):
        """Test the download/upload path."""
        text = service.export_backup(backup)
        restored = service.restore_backup(text)

        assert len(restored.assets) == 4
        assert event_types(audit_storage) == [
            AuditEventType.BACKUP_EXPORTED,
            AuditEventType.BACKUP_RESTORED,
        ]

    def test_restore_rejects_garbage(self, service):
        """Test that a bad upload is a format error."""
        with pytest.raises(BackupFormatError):
            service.restore_backup("not a backup")


class TestAuditLogger:
    """Tests for the audit logger."""

    def test_logs_without_storage(self):
        """Test local-only logging."""
        assert AuditLogger().log(AuditEventBuilder.backup_exported(10)) is True

    def test_empty_storage_receives_events(self):
        """Test that events reach an audit store that starts out empty."""
        storage = InMemoryAuditStorage()
        logger = AuditLogger(storage)
        logger.log_error("ValueError", "first")
        logger.log_error("ValueError", "second")
        assert len(storage) == 2

    def test_factory_service_keeps_audit_trail(self):
        """Test that the factory-built service stores its audit events."""
        service = create_service(use_storage=False)
        service.build_snapshot(PortfolioBackup(), as_of=AS_OF)
        assert len(service.audit_logger.storage) == 3

    def test_storage_failure_is_swallowed(self):
        """Test that a failing audit store does not break the caller."""
        logger = AuditLogger(FailingAuditStorage())
        assert logger.log(AuditEventBuilder.backup_exported(10)) is False

    def test_log_error(self, audit_storage):
        """Test the error helper."""
        AuditLogger(audit_storage).log_error("ValueError", "boom", details={"step": "valuation"})
        event = audit_storage.get_recent_events()[0]
        assert event.event_type is AuditEventType.SYSTEM_ERROR
        assert event.error_message == "boom"


class TestFactory:
    """Tests for create_service."""

    def test_without_storage(self):
        """Test a compute-only service."""
        assert create_service(use_storage=False).store is None

    def test_with_file_storage(self, tmp_path):
        """Test a service backed by the JSON file store."""
        service = create_service(path=tmp_path / "portfolio.json")
        assert isinstance(service.store, JsonFilePortfolioStore)
        service.save(PortfolioBackup())
        assert service.load().assets == []


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
