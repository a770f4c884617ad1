"""
Audit Models for firetrack

Every pipeline run and every change to the stored portfolio is logged.
This provides:
1. Traceability of what was computed from which inputs
2. Debugging information when numbers look wrong
3. A history of imports, saves and recorded trades

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Computation
    VALUATION_COMPUTED = "valuation_computed"
    REBALANCE_COMPUTED = "rebalance_computed"
    TARGETS_FLAGGED = "targets_flagged"
    PROJECTION_COMPUTED = "projection_computed"

    # Market data
    QUOTES_APPLIED = "quotes_applied"

    # Ledger
    TRADE_RECORDED = "trade_recorded"
    TRADE_REJECTED = "trade_rejected"

    # Persistence
    PORTFOLIO_LOADED = "portfolio_loaded"
    PORTFOLIO_SAVED = "portfolio_saved"
    BACKUP_EXPORTED = "backup_exported"
    BACKUP_RESTORED = "backup_restored"
    SAVE_FAILED = "save_failed"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    Every significant action creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'portfolio', 'holding', 'trade')"
    )
    entity_id: Optional[str] = None

    # Correlation - all events of one pipeline run share this
    correlation_id: Optional[UUID] = None

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(default_factory=dict)

    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.valuation_computed(12, 250_000.0, correlation_id)
    """

    @staticmethod
    def valuation_computed(
        holding_count: int,
        total_net_worth: float,
        exchange_rate: float,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALUATION_COMPUTED,
            entity_type="portfolio",
            correlation_id=correlation_id,
            description=f"Valued {holding_count} holdings",
            details={
                "holding_count": holding_count,
                "total_net_worth": round(total_net_worth, 2),
                "exchange_rate": exchange_rate,
            },
        )

    @staticmethod
    def rebalance_computed(
        action_count: int,
        buy_total: float,
        sell_total: float,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.REBALANCE_COMPUTED,
            entity_type="portfolio",
            correlation_id=correlation_id,
            description=f"Rebalance produced {action_count} actions",
            details={
                "action_count": action_count,
                "buy_total": round(buy_total, 2),
                "sell_total": round(sell_total, 2),
            },
        )

    @staticmethod
    def targets_flagged(
        issues: list[dict],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TARGETS_FLAGGED,
            severity=AuditSeverity.WARNING,
            entity_type="portfolio",
            correlation_id=correlation_id,
            description=f"Target allocation has {len(issues)} issues",
            details={"issues": issues},
        )

    @staticmethod
    def projection_computed(
        point_count: int,
        fire_age: Optional[int],
        required_portfolio: float,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        reached = f"age {fire_age}" if fire_age is not None else "not reached"
        return AuditEvent(
            event_type=AuditEventType.PROJECTION_COMPUTED,
            entity_type="projection",
            correlation_id=correlation_id,
            description=f"Projected {point_count} years, FIRE {reached}",
            details={
                "point_count": point_count,
                "fire_age": fire_age,
                "required_portfolio": round(required_portfolio, 2),
            },
        )

    @staticmethod
    def quotes_applied(
        source: str,
        changed: int,
        exchange_rate: float,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.QUOTES_APPLIED,
            entity_type="portfolio",
            correlation_id=correlation_id,
            description=f"Applied quotes from {source}: {changed} prices changed",
            details={
                "source": source,
                "changed": changed,
                "exchange_rate": exchange_rate,
            },
        )

    @staticmethod
    def trade_recorded(
        transaction_id: str,
        symbol: str,
        trade_type: str,
        quantity: float,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRADE_RECORDED,
            entity_type="trade",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description=f"{trade_type} {quantity:g} {symbol}",
            details={
                "symbol": symbol,
                "type": trade_type,
                "quantity": quantity,
            },
        )

    @staticmethod
    def trade_rejected(
        transaction_id: str,
        symbol: str,
        reason: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRADE_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="trade",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description=f"Trade in {symbol} rejected",
            error_message=reason,
        )

    @staticmethod
    def portfolio_loaded(
        location: str,
        holding_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PORTFOLIO_LOADED,
            entity_type="portfolio",
            correlation_id=correlation_id,
            description=f"Loaded {holding_count} holdings",
            details={"location": location, "holding_count": holding_count},
        )

    @staticmethod
    def portfolio_saved(
        location: str,
        holding_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PORTFOLIO_SAVED,
            entity_type="portfolio",
            correlation_id=correlation_id,
            description=f"Saved {holding_count} holdings",
            details={"location": location, "holding_count": holding_count},
        )

    @staticmethod
    def save_failed(
        location: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SAVE_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="portfolio",
            correlation_id=correlation_id,
            description="Saving the portfolio failed",
            details={"location": location},
            error_message=error_message,
        )

    @staticmethod
    def backup_exported(
        size_bytes: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BACKUP_EXPORTED,
            entity_type="backup",
            correlation_id=correlation_id,
            description="Backup exported",
            details={"size_bytes": size_bytes},
        )

    @staticmethod
    def backup_restored(
        holding_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BACKUP_RESTORED,
            entity_type="backup",
            correlation_id=correlation_id,
            description=f"Backup restored with {holding_count} holdings",
            details={"holding_count": holding_count},
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
