"""
Tests for the backup codec and the storage implementations.
"""

import json
import os
from pathlib import Path
from uuid import uuid4

import pytest
from datetime import date

from firetrack.config import StorageSettings
from firetrack.models import (
    AssetCategory,
    AuditEventBuilder,
    Currency,
    DividendRecord,
    GlobalSettings,
    Holding,
    PensionConfig,
    PortfolioBackup,
)
from firetrack.services.storage import (
    BackupFormatError,
    InMemoryAuditStorage,
    InMemoryPortfolioStore,
    JsonFilePortfolioStore,
    NotFoundError,
    StorageConnectionError,
    StorageError,
    dump_backup,
    load_backup,
)


@pytest.fixture
def backup() -> PortfolioBackup:
    return PortfolioBackup(
        assets=[
            Holding(id="voo", symbol="VOO", category=AssetCategory.ETF, currency=Currency.USD,
                    quantity=10, average_cost=400, current_price=450, target_allocation=60,
                    group_name="S&P", is_bridge_source=True),
            Holding(id="epf", symbol="EPF", category=AssetCategory.PENSION, quantity=1,
                    pension_config=PensionConfig(base_amount=100_000, monthly_contribution=1_500,
                                                 start_date=date(2024, 1, 1))),
        ],
        settings=GlobalSettings(exchange_rate_usd_myr=4.5),
        dividend_records=[
            DividendRecord(id="d1", payment_date=date(2024, 3, 1), symbol="VOO", amount=10, amount_myr=45),
        ],
    )


class TestBackupCodec:
    """Tests for dump_backup / load_backup."""

    def test_keys_are_camel_case(self, backup):
        """Test the on-disk key style."""
        data = json.loads(dump_backup(backup))

        assert "fireSettings" in data
        assert "yearlyRecords" in data
        assert data["settings"]["exchangeRateUsdMyr"] == 4.5
        asset = data["assets"][0]
        assert asset["averageCost"] == 400
        assert asset["isEpfBridgeSource"] is True
        assert data["assets"][1]["pensionConfig"]["startDate"] == "2024-01-01"
        assert data["dividendRecords"][0]["date"] == "2024-03-01"

    def test_dump_stamps_last_updated(self, backup):
        """Test that exports record when they were written."""
        data = json.loads(dump_backup(backup))
        assert data["lastUpdated"] is not None
        assert backup.last_updated is None

    def test_load_restores_content(self, backup):
        """Test that a dumped backup loads back with the same holdings."""
        restored = load_backup(dump_backup(backup))
        assert [h.id for h in restored.assets] == ["voo", "epf"]
        assert restored.assets[0].group_name == "S&P"
        assert restored.assets[1].pension_config.monthly_contribution == 1_500

    def test_load_legacy_document(self):
        """Test a minimal document written by the original tracker."""
        text = json.dumps({
            "assets": [{
                "id": "1", "symbol": "VOO", "name": "Vanguard S&P 500", "category": "ETF",
                "currency": "USD", "quantity": 3, "averageCost": 400, "currentPrice": 450,
                "targetAllocation": 50, "unknownField": "ignored",
            }],
            "settings": {"exchangeRateUsdMyr": 4.7, "financialFreedomTarget": 1_000_000, "savingTarget": 30_000},
            "lastUpdated": "2024-06-01T10:00:00Z",
        })
        restored = load_backup(text)
        assert restored.assets[0].quantity == 3
        assert restored.settings.financial_freedom_target == 1_000_000
        assert restored.loans == []

    def test_invalid_json(self):
        """Test that non-JSON input is a format error."""
        with pytest.raises(BackupFormatError):
            load_backup("{not json")

    def test_non_object_json(self):
        """Test that a JSON array is rejected."""
        with pytest.raises(BackupFormatError):
            load_backup("[1, 2, 3]")

    def test_schema_error(self):
        """Test that schema violations are format errors."""
        text = json.dumps({"assets": [{"category": "Bond"}]})
        with pytest.raises(BackupFormatError):
            load_backup(text)

    def test_format_error_is_storage_error(self):
        """Test the exception hierarchy."""
        assert issubclass(BackupFormatError, StorageError)
        assert issubclass(NotFoundError, StorageError)
        assert issubclass(StorageConnectionError, StorageError)


class TestJsonFileStore:
    """Tests for the JSON file portfolio store."""

    @pytest.fixture
    def store(self, tmp_path) -> JsonFilePortfolioStore:
        return JsonFilePortfolioStore(tmp_path / "data" / "portfolio.json", settings=StorageSettings())

    def test_missing_file(self, store):
        """Test that loading before saving raises NotFoundError."""
        assert store.exists() is False
        with pytest.raises(NotFoundError):
            store.load()

    def test_save_then_load(self, store, backup):
        """Test persistence through the file."""
        assert store.save(backup) is True
        assert store.exists()

        loaded = store.load()
        assert [h.symbol for h in loaded.assets] == ["VOO", "EPF"]
        assert loaded.settings.exchange_rate_usd_myr == 4.5
        assert loaded.last_updated is not None

    def test_save_replaces_previous(self, store, backup):
        """Test that a second save overwrites the first."""
        store.save(backup)
        store.save(backup.model_copy(update={"assets": []}))
        assert store.load().assets == []

    def test_no_temp_files_left(self, store, backup):
        """Test that the atomic write cleans up after itself."""
        store.save(backup)
        assert os.listdir(store.path.parent) == ["portfolio.json"]

    def test_corrupt_file(self, store):
        """Test that an unreadable document is a format error."""
        store.path.parent.mkdir(parents=True)
        store.path.write_text("garbage", encoding="utf-8")
        with pytest.raises(BackupFormatError):
            store.load()

    def test_transient_read_error_is_retried(self, store, backup, monkeypatch):
        """Test that a flaky read succeeds on retry."""
        store.save(backup)
        original = Path.read_text
        calls = {"count": 0}

        def flaky(self, *args, **kwargs):
            calls["count"] += 1
            if calls["count"] < 3:
                raise OSError("resource busy")
            return original(self, *args, **kwargs)

        monkeypatch.setattr(Path, "read_text", flaky)
        assert len(store.load().assets) == 2
        assert calls["count"] == 3

    def test_persistent_read_error(self, store, backup, monkeypatch):
        """Test that repeated failures surface as a connection error."""
        store.save(backup)

        def broken(self, *args, **kwargs):
            raise OSError("disk gone")

        monkeypatch.setattr(Path, "read_text", broken)
        with pytest.raises(StorageConnectionError):
            store.load()

    def test_default_path_from_settings(self, tmp_path):
        """Test that the path falls back to the data_path setting."""
        settings = StorageSettings(data_path=str(tmp_path / "from_settings.json"))
        store = JsonFilePortfolioStore(settings=settings)
        assert store.location.endswith("from_settings.json")


class TestInMemoryStorage:
    """Tests for the in-memory implementations."""

    def test_portfolio_store_copies(self, backup):
        """Test that stored backups are isolated from later changes."""
        store = InMemoryPortfolioStore()
        assert not store.exists()
        store.save(backup)
        backup.assets.clear()
        assert len(store.load().assets) == 2

    def test_portfolio_store_empty(self):
        """Test NotFoundError before the first save."""
        with pytest.raises(NotFoundError):
            InMemoryPortfolioStore().load()

    def test_audit_storage(self):
        """Test append, recent and correlation lookups."""
        storage = InMemoryAuditStorage()
        run = uuid4()
        first = AuditEventBuilder.portfolio_loaded("memory", 1, run)
        second = AuditEventBuilder.backup_exported(100)
        third = AuditEventBuilder.portfolio_saved("memory", 1, run)
        for event in (first, second, third):
            assert storage.append_event(event)

        assert len(storage) == 3
        assert storage.get_recent_events(limit=2) == [third, second]
        assert storage.get_events_by_correlation_id(run) == [first, third]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
