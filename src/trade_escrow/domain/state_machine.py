"""Trade State Machine Guard.

Uses python-statemachine to enforce legal lifecycle transitions at the domain
level. The registry builds one machine per transition attempt from the
trade's stored state and fires the named event before writing the new state
back; an illegal transition raises TransitionNotAllowed.

Transition table:
    AwaitingCollateral -> AwaitingDelivery   (collateral_deposited)
    AwaitingCollateral -> Refunded           (buyer_refunded)
    AwaitingCollateral -> Refunded           (agent_refunded)
    AwaitingCollateral -> Complete           (agent_completed)
    AwaitingDelivery   -> Complete           (funds_released)

Complete and Refunded are final: no event leaves them.
"""

from __future__ import annotations

from statemachine import State, StateMachine
from statemachine.exceptions import TransitionNotAllowed

from trade_escrow.domain.enums import TradeState

TRADE_EVENTS = (
    "collateral_deposited",
    "buyer_refunded",
    "agent_refunded",
    "agent_completed",
    "funds_released",
)


class TradeStateMachine(StateMachine):
    """State machine that guards trade lifecycle transitions.

    Usage:
        sm = TradeStateMachine(current_state="AwaitingCollateral")
        sm.collateral_deposited()
        sm.trade_state  # TradeState.AWAITING_DELIVERY
    """

    # --- States ---
    awaiting_collateral = State(
        "Awaiting collateral", value=TradeState.AWAITING_COLLATERAL.value, initial=True
    )
    awaiting_delivery = State("Awaiting delivery", value=TradeState.AWAITING_DELIVERY.value)
    complete = State("Complete", value=TradeState.COMPLETE.value, final=True)
    refunded = State("Refunded", value=TradeState.REFUNDED.value, final=True)

    # --- Events / Transitions ---

    # Seller posts collateral
    collateral_deposited = awaiting_collateral.to(awaiting_delivery)

    # Buyer withdraws before collateral arrives
    buyer_refunded = awaiting_collateral.to(refunded)

    # Agent override before collateral arrives
    agent_refunded = awaiting_collateral.to(refunded)
    agent_completed = awaiting_collateral.to(complete)

    # Both parties approved
    funds_released = awaiting_delivery.to(complete)

    def __init__(self, current_state: str = TradeState.AWAITING_COLLATERAL.value) -> None:
        """Initialize the state machine at a given trade state.

        Args:
            current_state: The current TradeState value (e.g., "AwaitingDelivery").
        """
        valid_values = {s.value for s in self.states}
        if current_state not in valid_values:
            valid = ", ".join(sorted(valid_values))
            raise ValueError(f"Unknown trade state '{current_state}'. Valid states: {valid}")
        super().__init__(start_value=str(current_state))

    @property
    def trade_state(self) -> TradeState:
        """Return the current state as a TradeState."""
        return TradeState(self.current_state.value)

    def get_allowed_events(self) -> list[str]:
        """Return a list of event names that can fire from the current state."""
        allowed = []
        for event_name in TRADE_EVENTS:
            probe = TradeStateMachine(current_state=self.current_state.value)
            try:
                getattr(probe, event_name)()
            except TransitionNotAllowed:
                continue
            allowed.append(event_name)
        return allowed


def validate_transition(current_state: str, event_name: str) -> TradeState:
    """Validate a trade transition and return the resulting state.

    Args:
        current_state: Current TradeState value.
        event_name: The event to fire (e.g., "funds_released").

    Returns:
        The new TradeState after the transition.

    Raises:
        TransitionNotAllowed: If the transition is illegal.
        ValueError: If the state or event name is invalid.
    """
    sm = TradeStateMachine(current_state=current_state)

    if event_name not in TRADE_EVENTS:
        raise ValueError(
            f"Unknown event '{event_name}'. "
            f"Allowed events from {current_state}: {sm.get_allowed_events()}"
        )

    getattr(sm, event_name)()
    return sm.trade_state
