"""Domain layer — pure business logic with zero framework dependencies."""

from trade_escrow.domain.enums import EventType, Role, TradeState
from trade_escrow.domain.exceptions import (
    EscrowError,
    InvalidAddressError,
    InvalidAmountError,
    InvalidStateError,
    InvalidTradeIdError,
    PausedError,
    ReentrancyDetectedError,
    TransferRejectedError,
    UnauthorizedError,
)
from trade_escrow.domain.models import AdminState, EscrowEvent, FeeSplit, Trade
from trade_escrow.domain.state_machine import TradeStateMachine, validate_transition

__all__ = [
    "EventType",
    "Role",
    "TradeState",
    "EscrowError",
    "InvalidAddressError",
    "InvalidAmountError",
    "InvalidStateError",
    "InvalidTradeIdError",
    "PausedError",
    "ReentrancyDetectedError",
    "TransferRejectedError",
    "UnauthorizedError",
    "AdminState",
    "EscrowEvent",
    "FeeSplit",
    "Trade",
    "TradeStateMachine",
    "validate_transition",
]
