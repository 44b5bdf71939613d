"""Domain records held by the escrow ledger.

Plain dataclasses with no framework imports. ``Trade`` and ``AdminState`` are
mutable and live inside the ledger; ``FeeSplit`` and ``EscrowEvent`` are
frozen value objects.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from trade_escrow.domain.enums import EventType, TradeState

if TYPE_CHECKING:
    from trade_escrow.config import Settings


@dataclass
class Trade:
    """A single buyer/seller trade held in escrow.

    Attributes:
        trade_id: Sequential identifier, starting at 1, never reused.
        buyer: Identity that created the trade and deposited the value.
        seller: Identity that posts collateral and is paid on completion.
        principal_amount: Deposited value minus fee.
        collateral_amount: 5% of principal_amount, truncated.
        buyer_approved: Monotonic false -> true.
        seller_approved: Monotonic false -> true.
        collateral_provided: Set once, when the seller posts collateral.
        state: Current lifecycle state.
    """

    trade_id: int
    buyer: str
    seller: str
    principal_amount: int
    collateral_amount: int
    buyer_approved: bool = False
    seller_approved: bool = False
    collateral_provided: bool = False
    state: TradeState = TradeState.AWAITING_COLLATERAL

    @property
    def both_approved(self) -> bool:
        return self.buyer_approved and self.seller_approved

    @property
    def payout_on_completion(self) -> int:
        """Value owed to the seller when the trade completes normally."""
        return self.principal_amount + self.collateral_amount


@dataclass
class AdminState:
    """Process-wide configuration, mutated only through agent-gated setters."""

    escrow_agent: str
    fee_percentage: int
    collected_fees: int = 0
    paused: bool = False

    @classmethod
    def from_settings(cls, settings: Settings) -> AdminState:
        """Bring-up values for a fresh escrow."""
        return cls(
            escrow_agent=settings.escrow_agent,
            fee_percentage=settings.escrow_fee_percentage,
        )


@dataclass(frozen=True)
class FeeSplit:
    """How a buyer's deposit is divided at trade creation."""

    fee: int
    principal: int
    collateral: int


@dataclass(frozen=True)
class EscrowEvent:
    """An append-only record observable by external callers.

    Attributes:
        sequence: Position in the log, starting at 1.
        event_type: Kind of record.
        trade_id: Trade the record refers to, None for administrative records.
        data: Record fields (e.g. recipient and amount for FundsReleased).
        recorded_at: UTC time the record was appended.
    """

    sequence: int
    event_type: EventType
    trade_id: int | None
    data: dict[str, Any] = field(default_factory=dict)
    recorded_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def to_dict(self) -> dict:
        """Serialize for external observers."""
        return {
            "sequence": self.sequence,
            "event_type": self.event_type.value,
            "trade_id": self.trade_id,
            "data": dict(self.data),
            "recorded_at": self.recorded_at.isoformat(),
        }
