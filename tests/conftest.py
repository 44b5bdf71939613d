"""Shared test fixtures for the trade escrow test suite.

Provides:
    - Caller identities for the three parties
    - Settings and a fresh TradeRegistry per test
    - Trades pre-advanced to each lifecycle state
"""

from __future__ import annotations

import pytest

from trade_escrow.config import Settings
from trade_escrow.services.trade_registry import TradeRegistry

AGENT = "0xA9e47Aa000000000000000000000000000000001"
BUYER = "0xB0b0000000000000000000000000000000000002"
SELLER = "0x5e11e70000000000000000000000000000000003"
STRANGER = "0x5742a9e700000000000000000000000000000004"


# ---------------------------------------------------------------------------
# Parties
# ---------------------------------------------------------------------------


@pytest.fixture
def agent() -> str:
    return AGENT


@pytest.fixture
def buyer() -> str:
    return BUYER


@pytest.fixture
def seller() -> str:
    return SELLER


@pytest.fixture
def stranger() -> str:
    return STRANGER


# ---------------------------------------------------------------------------
# Registry Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def settings() -> Settings:
    """Settings with a 2% fee and a known agent."""
    return Settings(escrow_agent=AGENT, escrow_fee_percentage=2)


@pytest.fixture
def registry(settings: Settings) -> TradeRegistry:
    return TradeRegistry(settings)


@pytest.fixture
def trade_id(registry: TradeRegistry) -> int:
    """A 1000-unit trade in AwaitingCollateral (principal 980, collateral 49)."""
    return registry.create_trade(BUYER, SELLER, 1000)


@pytest.fixture
def delivery_trade_id(registry: TradeRegistry, trade_id: int) -> int:
    """The same trade after the seller posted collateral without pre-approval."""
    registry.deposit_collateral(SELLER, trade_id, 49, False)
    return trade_id
