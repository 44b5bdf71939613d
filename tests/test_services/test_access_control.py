"""Tests for the AccessControlGuard predicates."""

from __future__ import annotations

import pytest

from trade_escrow.domain.enums import Role
from trade_escrow.domain.exceptions import (
    InvalidAddressError,
    InvalidTradeIdError,
    PausedError,
    UnauthorizedError,
)
from trade_escrow.domain.models import AdminState, Trade
from trade_escrow.infrastructure.ledger import EscrowLedger, TradeRepository
from trade_escrow.services.access_control import AccessControlGuard


@pytest.fixture
def admin() -> AdminState:
    return AdminState(escrow_agent="agent", fee_percentage=2)


@pytest.fixture
def trade() -> Trade:
    return Trade(trade_id=1, buyer="buyer", seller="seller", principal_amount=980, collateral_amount=49)


class TestRoles:
    def test_agent(self, admin: AdminState) -> None:
        AccessControlGuard.require_agent(admin, "agent")
        with pytest.raises(UnauthorizedError) as exc_info:
            AccessControlGuard.require_agent(admin, "buyer")
        assert exc_info.value.required_role == Role.AGENT

    def test_buyer(self, trade: Trade) -> None:
        AccessControlGuard.require_buyer(trade, "buyer")
        with pytest.raises(UnauthorizedError):
            AccessControlGuard.require_buyer(trade, "seller")

    def test_seller(self, trade: Trade) -> None:
        AccessControlGuard.require_seller(trade, "seller")
        with pytest.raises(UnauthorizedError):
            AccessControlGuard.require_seller(trade, "buyer")

    def test_role_of(self, trade: Trade) -> None:
        assert AccessControlGuard.role_of(trade, "buyer") is Role.BUYER
        assert AccessControlGuard.role_of(trade, "seller") is Role.SELLER
        assert AccessControlGuard.role_of(trade, "agent") is None


class TestPause:
    def test_not_paused_passes(self, admin: AdminState) -> None:
        AccessControlGuard.require_not_paused(admin, "approve")

    def test_paused_raises(self, admin: AdminState) -> None:
        admin.paused = True
        with pytest.raises(PausedError, match="approve"):
            AccessControlGuard.require_not_paused(admin, "approve")


class TestTradeExistence:
    def test_missing_trade(self, admin: AdminState, trade: Trade) -> None:
        trades = TradeRepository(EscrowLedger(admin))
        trades.add(trade)
        assert AccessControlGuard.require_trade(trades, 1) is trade
        with pytest.raises(InvalidTradeIdError):
            AccessControlGuard.require_trade(trades, 2)


class TestAddress:
    @pytest.mark.parametrize("value", ["", "   "])
    def test_empty_rejected(self, value: str) -> None:
        with pytest.raises(InvalidAddressError):
            AccessControlGuard.require_address(value, "seller")
