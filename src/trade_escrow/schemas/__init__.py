"""Pydantic read models."""

from trade_escrow.schemas.escrow import AdminSnapshot, TradeDetails

__all__ = ["AdminSnapshot", "TradeDetails"]
