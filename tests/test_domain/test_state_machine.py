"""Tests for the TradeStateMachine domain guard.

These tests verify that:
    1. All valid transitions are allowed.
    2. All invalid transitions are blocked.
    3. The convenience function validate_transition works.
    4. Complete and Refunded are terminal.
"""

from __future__ import annotations

import pytest
from statemachine.exceptions import TransitionNotAllowed

from trade_escrow.domain.enums import TradeState
from trade_escrow.domain.state_machine import (
    TradeStateMachine,
    validate_transition,
)


class TestNormalFlow:
    """AwaitingCollateral -> AwaitingDelivery -> Complete."""

    def test_full_lifecycle(self) -> None:
        sm = TradeStateMachine()
        assert sm.trade_state is TradeState.AWAITING_COLLATERAL

        sm.collateral_deposited()
        assert sm.trade_state is TradeState.AWAITING_DELIVERY

        sm.funds_released()
        assert sm.trade_state is TradeState.COMPLETE

    def test_start_from_stored_state(self) -> None:
        sm = TradeStateMachine(TradeState.AWAITING_DELIVERY)
        assert sm.trade_state is TradeState.AWAITING_DELIVERY


class TestEarlyExits:
    """Paths out of AwaitingCollateral that skip delivery."""

    def test_buyer_refund(self) -> None:
        sm = TradeStateMachine("AwaitingCollateral")
        sm.buyer_refunded()
        assert sm.trade_state is TradeState.REFUNDED

    def test_agent_refund(self) -> None:
        sm = TradeStateMachine("AwaitingCollateral")
        sm.agent_refunded()
        assert sm.trade_state is TradeState.REFUNDED

    def test_agent_complete(self) -> None:
        sm = TradeStateMachine("AwaitingCollateral")
        sm.agent_completed()
        assert sm.trade_state is TradeState.COMPLETE


class TestIllegalTransitions:
    """Verify that illegal transitions raise TransitionNotAllowed."""

    def test_collateral_to_complete_without_delivery(self) -> None:
        sm = TradeStateMachine("AwaitingCollateral")
        with pytest.raises(TransitionNotAllowed):
            sm.funds_released()

    def test_no_refund_after_collateral(self) -> None:
        sm = TradeStateMachine("AwaitingDelivery")
        with pytest.raises(TransitionNotAllowed):
            sm.buyer_refunded()

    def test_no_agent_override_after_collateral(self) -> None:
        sm = TradeStateMachine("AwaitingDelivery")
        with pytest.raises(TransitionNotAllowed):
            sm.agent_completed()

    def test_no_backward_transition(self) -> None:
        sm = TradeStateMachine("AwaitingDelivery")
        with pytest.raises(TransitionNotAllowed):
            sm.collateral_deposited()

    def test_complete_is_final(self) -> None:
        sm = TradeStateMachine("Complete")
        assert sm.get_allowed_events() == []

    def test_refunded_is_final(self) -> None:
        sm = TradeStateMachine("Refunded")
        assert sm.get_allowed_events() == []


class TestAllowedEvents:
    def test_awaiting_collateral_allowed(self) -> None:
        allowed = TradeStateMachine("AwaitingCollateral").get_allowed_events()
        assert set(allowed) == {
            "collateral_deposited",
            "buyer_refunded",
            "agent_refunded",
            "agent_completed",
        }

    def test_awaiting_delivery_allowed(self) -> None:
        allowed = TradeStateMachine("AwaitingDelivery").get_allowed_events()
        assert allowed == ["funds_released"]

    def test_probing_does_not_move_the_machine(self) -> None:
        sm = TradeStateMachine("AwaitingCollateral")
        sm.get_allowed_events()
        assert sm.trade_state is TradeState.AWAITING_COLLATERAL


class TestValidateTransitionFunction:
    """Test the convenience function."""

    def test_valid_transition(self) -> None:
        assert validate_transition("AwaitingDelivery", "funds_released") is TradeState.COMPLETE

    def test_illegal_transition(self) -> None:
        with pytest.raises(TransitionNotAllowed):
            validate_transition("Refunded", "funds_released")

    def test_invalid_event_name(self) -> None:
        with pytest.raises(ValueError, match="Unknown event"):
            validate_transition("AwaitingCollateral", "nonexistent_event")

    def test_invalid_state(self) -> None:
        with pytest.raises(ValueError, match="Unknown trade state"):
            TradeStateMachine("Disputed")
