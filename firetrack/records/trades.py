"""
Trade Ledger

Applies recorded buys and sells to the holding they belong to.

DESIGN DECISION: A sell reduces the quantity and leaves the average cost
untouched, so the remaining units keep their original cost basis.
Settling trades against a cash holding is left to the caller.
"""

from typing import Optional

from firetrack.models.holding import AssetCategory, Holding, is_cash_like
from firetrack.models.records import InvestmentTransaction, TransactionType


# Float drift allowed when a sell closes out a position
QUANTITY_EPSILON = 1e-9


class TradeError(Exception):
    """Base exception for trades that cannot be applied."""
    pass


class InsufficientQuantityError(TradeError):
    """Raised when a sell exceeds the quantity held."""

    def __init__(self, symbol: str, held: float, requested: float):
        self.symbol = symbol
        self.held = held
        self.requested = requested
        super().__init__(
            f"Cannot sell {requested:g} {symbol}: only {held:g} held"
        )


class UnknownHoldingError(TradeError):
    """Raised when a sell refers to a symbol that is not held."""
    pass


def weighted_average_cost(
    quantity: float,
    average_cost: float,
    added_quantity: float,
    added_price: float,
) -> float:
    """Average cost per unit after adding units at a new price."""
    total_quantity = quantity + added_quantity
    if total_quantity <= 0:
        return 0.0
    total_cost = quantity * average_cost + added_quantity * added_price
    return total_cost / total_quantity


def apply_transaction(holding: Holding, transaction: InvestmentTransaction) -> Holding:
    """
    Apply a trade to a holding.

    Args:
        holding: The position the trade belongs to
        transaction: A validated BUY or SELL

    Returns:
        A new Holding; the input is not modified

    Raises:
        InsufficientQuantityError: If a SELL exceeds the quantity held
    """
    if transaction.type is TransactionType.BUY:
        if is_cash_like(holding.category):
            return holding.model_copy(update={
                "quantity": holding.quantity + transaction.quantity,
            })
        return holding.model_copy(update={
            "quantity": holding.quantity + transaction.quantity,
            "average_cost": weighted_average_cost(
                holding.quantity,
                holding.average_cost,
                transaction.quantity,
                transaction.price_per_unit,
            ),
        })

    left = holding.quantity - transaction.quantity
    if left < -QUANTITY_EPSILON:
        raise InsufficientQuantityError(
            holding.symbol, holding.quantity, transaction.quantity
        )
    return holding.model_copy(update={
        "quantity": left if left > QUANTITY_EPSILON else 0.0,
    })


def holding_from_trade(
    transaction: InvestmentTransaction,
    category: AssetCategory = AssetCategory.STOCK,
) -> Holding:
    """Open a new position from the first BUY of a symbol."""
    if transaction.type is not TransactionType.BUY:
        raise UnknownHoldingError(f"No holding for {transaction.symbol} to sell from")
    return Holding(
        symbol=transaction.symbol,
        name=transaction.symbol,
        category=category,
        currency=transaction.currency,
        quantity=transaction.quantity,
        average_cost=transaction.price_per_unit,
        current_price=transaction.price_per_unit,
    )


def find_holding(holdings: list[Holding], symbol: str) -> Optional[Holding]:
    """Case-insensitive lookup of a holding by symbol."""
    wanted = symbol.strip().upper()
    for holding in holdings:
        if holding.symbol.upper() == wanted:
            return holding
    return None


def record_trade(
    holdings: list[Holding],
    transaction: InvestmentTransaction,
) -> list[Holding]:
    """
    Apply a trade to a list of holdings.

    A BUY of a symbol not yet held opens a new position. The list is not
    modified; a new list is returned in the same order.

    Raises:
        InsufficientQuantityError: If a SELL exceeds the quantity held
        UnknownHoldingError: If a SELL refers to a symbol not held
    """
    existing = find_holding(holdings, transaction.symbol)
    if existing is None:
        return [*holdings, holding_from_trade(transaction)]

    updated = apply_transaction(existing, transaction)
    return [updated if h.id == existing.id else h for h in holdings]
