"""Access control predicates evaluated at the start of every mutating operation.

The guard holds no state of its own: it reads the admin state and the trade
it is handed. Operations call the checks in a fixed order (pause, trade
existence, role) so the same bad call always fails with the same error.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from trade_escrow.domain.enums import Role
from trade_escrow.domain.exceptions import (
    InvalidAddressError,
    InvalidTradeIdError,
    PausedError,
    UnauthorizedError,
)

if TYPE_CHECKING:
    from trade_escrow.domain.models import AdminState, Trade
    from trade_escrow.infrastructure.ledger import TradeRepository


class AccessControlGuard:
    """Role, pause and trade-existence checks."""

    @staticmethod
    def require_not_paused(admin: AdminState, operation: str) -> None:
        if admin.paused:
            raise PausedError(operation)

    @staticmethod
    def require_agent(admin: AdminState, caller: str) -> None:
        if caller != admin.escrow_agent:
            raise UnauthorizedError(caller, Role.AGENT)

    @staticmethod
    def require_buyer(trade: Trade, caller: str) -> None:
        if caller != trade.buyer:
            raise UnauthorizedError(caller, Role.BUYER)

    @staticmethod
    def require_seller(trade: Trade, caller: str) -> None:
        if caller != trade.seller:
            raise UnauthorizedError(caller, Role.SELLER)

    @staticmethod
    def role_of(trade: Trade, caller: str) -> Role | None:
        """Return the caller's role in the trade, or None for outsiders."""
        if caller == trade.buyer:
            return Role.BUYER
        if caller == trade.seller:
            return Role.SELLER
        return None

    @staticmethod
    def require_trade(trades: TradeRepository, trade_id: int) -> Trade:
        trade = trades.get_by_id(trade_id)
        if trade is None:
            raise InvalidTradeIdError(trade_id)
        return trade

    @staticmethod
    def require_address(value: str, field: str) -> None:
        if not isinstance(value, str) or not value.strip():
            raise InvalidAddressError(field)
