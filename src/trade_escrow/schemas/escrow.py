"""Pydantic read models returned to callers.

These are frozen snapshots built from the ledger's records so callers can
inspect a trade or the admin configuration without holding a reference to
mutable ledger state.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from trade_escrow.domain.enums import TradeState


class TradeDetails(BaseModel):
    """Read-only view of a trade."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    trade_id: int = Field(..., ge=1)
    buyer: str
    seller: str
    principal_amount: int = Field(..., ge=0)
    collateral_amount: int = Field(..., ge=0)
    buyer_approved: bool
    seller_approved: bool
    collateral_provided: bool
    state: TradeState


class AdminSnapshot(BaseModel):
    """Read-only view of the process-wide escrow configuration."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    escrow_agent: str
    fee_percentage: int = Field(..., ge=0, le=10)
    collected_fees: int = Field(..., ge=0)
    paused: bool
