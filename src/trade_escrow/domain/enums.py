"""Domain enumerations for the trade escrow.

These enums define the canonical trade states and event record types.
They are framework-agnostic (no pydantic, no structlog imports).
"""

import enum


class TradeState(enum.StrEnum):
    """Lifecycle states of a trade.

    State transitions are enforced by the TradeStateMachine guard.
    See domain/state_machine.py for the transition table.
    """

    AWAITING_COLLATERAL = "AwaitingCollateral"
    AWAITING_DELIVERY = "AwaitingDelivery"
    COMPLETE = "Complete"
    REFUNDED = "Refunded"

    @property
    def is_terminal(self) -> bool:
        return self in (TradeState.COMPLETE, TradeState.REFUNDED)


class EventType(enum.StrEnum):
    """Types of records appended to the escrow event log.

    The log is append-only; external observers query it to follow trades.
    """

    # Trade lifecycle
    TRADE_CREATED = "TradeCreated"
    COLLATERAL_DEPOSITED = "CollateralDeposited"
    TRADE_APPROVED = "TradeApproved"

    # Value movement
    FUNDS_RELEASED = "FundsReleased"
    FEES_REDEEMED = "FeesRedeemed"

    # Administration
    ESCROW_AGENT_CHANGED = "EscrowAgentChanged"
    FEE_PERCENTAGE_CHANGED = "FeePercentageChanged"
    PAUSE_TOGGLED = "PauseToggled"


class Role(enum.StrEnum):
    """Roles a caller can hold relative to a trade or the escrow."""

    BUYER = "buyer"
    SELLER = "seller"
    AGENT = "agent"
