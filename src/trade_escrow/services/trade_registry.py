"""Trade Registry — the escrow's public operations.

This is the application layer that coordinates between:
    - AccessControlGuard (who may call what, pause gate)
    - Domain state machine (transition guard)
    - FeeLedger (fee / collateral arithmetic)
    - FundTransferExecutor (custody, payouts, reentrancy guard)
    - Repositories (trades, append-only event log)

Every mutating operation runs inside one scope: reentrancy guard, then a
ledger transaction. Checks come first; any exception rolls back every write
the operation made, including payouts.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import ExitStack, contextmanager
from typing import TYPE_CHECKING

import structlog
from statemachine.exceptions import TransitionNotAllowed

from trade_escrow.config import get_settings
from trade_escrow.domain.enums import EventType, Role, TradeState
from trade_escrow.domain.exceptions import InvalidAmountError, InvalidStateError
from trade_escrow.domain.models import AdminState, Trade
from trade_escrow.domain.state_machine import validate_transition
from trade_escrow.infrastructure.ledger import (
    EscrowLedger,
    EventRepository,
    TradeRepository,
)
from trade_escrow.logging_config import get_logger
from trade_escrow.schemas.escrow import AdminSnapshot, TradeDetails
from trade_escrow.services.access_control import AccessControlGuard
from trade_escrow.services.fee_ledger import FeeLedger
from trade_escrow.services.fund_transfer import FundTransferExecutor

if TYPE_CHECKING:
    from trade_escrow.config import Settings
    from trade_escrow.domain.models import EscrowEvent
    from trade_escrow.infrastructure.ledger import LedgerState
    from trade_escrow.services.fund_transfer import ReceiverHook

logger = get_logger(__name__)


class TradeRegistry:
    """Manages trades, their lifecycle and the value they hold."""

    def __init__(self, settings: Settings | None = None) -> None:
        settings = settings or get_settings()
        self._ledger = EscrowLedger(AdminState.from_settings(settings))
        self._trades = TradeRepository(self._ledger)
        self._events = EventRepository(self._ledger)
        self._guard = AccessControlGuard()
        self._fees = FeeLedger(self._ledger)
        self._transfers = FundTransferExecutor(self._ledger)
        logger.info(
            "registry.started",
            escrow_agent=settings.escrow_agent,
            fee_percentage=settings.escrow_fee_percentage,
        )

    @property
    def _admin(self) -> AdminState:
        return self._ledger.state.admin

    # ------------------------------------------------------------------
    # Trade Creation
    # ------------------------------------------------------------------

    def create_trade(self, caller: str, seller: str, deposited_value: int) -> int:
        """Open a trade funded by ``caller`` (the buyer); return its id."""
        with self._operation("create_trade", caller):
            self._guard.require_not_paused(self._admin, "create_trade")
            self._guard.require_address(caller, "buyer")
            self._guard.require_address(seller, "seller")
            _require_positive(deposited_value, "Deposited value")

            split = self._fees.split_deposit(deposited_value)
            trade = self._trades.add(
                Trade(
                    trade_id=self._trades.next_id(),
                    buyer=caller,
                    seller=seller,
                    principal_amount=split.principal,
                    collateral_amount=split.collateral,
                )
            )
            self._fees.accrue(split.fee)
            self._transfers.receive(caller, deposited_value)

            self._events.record(
                EventType.TRADE_CREATED,
                trade.trade_id,
                buyer=trade.buyer,
                seller=trade.seller,
                principal_amount=trade.principal_amount,
                collateral_amount=trade.collateral_amount,
            )

        logger.info(
            "trade.created",
            trade_id=trade.trade_id,
            buyer=caller,
            seller=seller,
            fee=split.fee,
            principal=split.principal,
            collateral=split.collateral,
        )
        return trade.trade_id

    # ------------------------------------------------------------------
    # Collateral
    # ------------------------------------------------------------------

    def deposit_collateral(
        self,
        caller: str,
        trade_id: int,
        collateral_value: int,
        pre_approve: bool = False,
    ) -> TradeDetails:
        """Seller posts the exact collateral, optionally approving in the same call."""
        with self._operation("deposit_collateral", caller, trade_id=trade_id):
            self._guard.require_not_paused(self._admin, "deposit_collateral")
            trade = self._guard.require_trade(self._trades, trade_id)
            self._guard.require_seller(trade, caller)
            _require_state(trade, TradeState.AWAITING_COLLATERAL, "deposit_collateral")
            if trade.collateral_provided:
                raise InvalidStateError(trade_id, trade.state, "deposit_collateral")
            _require_whole_amount(collateral_value, "Collateral")
            if collateral_value != trade.collateral_amount:
                raise InvalidAmountError(
                    f"Collateral must be exactly {trade.collateral_amount}, got {collateral_value}"
                )

            self._transfers.receive(caller, collateral_value)
            trade.collateral_provided = True
            trade.seller_approved = bool(pre_approve)
            self._fire_transition(trade, "collateral_deposited")

            self._events.record(
                EventType.COLLATERAL_DEPOSITED,
                trade_id,
                seller=caller,
                amount=collateral_value,
                pre_approved=trade.seller_approved,
            )

        logger.info(
            "trade.collateral_deposited",
            trade_id=trade_id,
            amount=collateral_value,
            pre_approved=bool(pre_approve),
        )
        return TradeDetails.model_validate(trade)

    # ------------------------------------------------------------------
    # Approval and Release
    # ------------------------------------------------------------------

    def approve(self, caller: str, trade_id: int) -> TradeDetails:
        """Record the caller's approval; release funds once both parties approved.

        Callers who are neither buyer nor seller change nothing and get no error.
        """
        with self._operation("approve", caller, trade_id=trade_id):
            self._guard.require_not_paused(self._admin, "approve")
            trade = self._guard.require_trade(self._trades, trade_id)
            _require_state(trade, TradeState.AWAITING_DELIVERY, "approve")

            role = self._guard.role_of(trade, caller)
            if role is None:
                logger.info("approve.ignored_outsider", trade_id=trade_id, caller=caller)
                return TradeDetails.model_validate(trade)

            if role is Role.BUYER and not trade.buyer_approved:
                trade.buyer_approved = True
                self._events.record(EventType.TRADE_APPROVED, trade_id, party=caller, role=role)
            elif role is Role.SELLER and not trade.seller_approved:
                trade.seller_approved = True
                self._events.record(EventType.TRADE_APPROVED, trade_id, party=caller, role=role)

            logger.info(
                "trade.approved",
                trade_id=trade_id,
                role=role,
                buyer_approved=trade.buyer_approved,
                seller_approved=trade.seller_approved,
            )

            if trade.both_approved:
                self._release_funds(trade)

        return TradeDetails.model_validate(trade)

    def _release_funds(self, trade: Trade) -> None:
        """Complete the trade, then pay the seller principal plus collateral."""
        _require_state(trade, TradeState.AWAITING_DELIVERY, "release_funds")
        self._fire_transition(trade, "funds_released")

        amount = trade.payout_on_completion
        self._transfers.pay(trade.seller, amount)
        self._events.record(
            EventType.FUNDS_RELEASED,
            trade.trade_id,
            recipient=trade.seller,
            amount=amount,
        )
        logger.info(
            "trade.funds_released",
            trade_id=trade.trade_id,
            recipient=trade.seller,
            amount=amount,
        )

    # ------------------------------------------------------------------
    # Refunds and Agent Override
    # ------------------------------------------------------------------

    def refund_buyer(self, caller: str, trade_id: int) -> TradeDetails:
        """Buyer withdraws the principal before the seller posts collateral."""
        with self._operation("refund_buyer", caller, trade_id=trade_id):
            self._guard.require_not_paused(self._admin, "refund_buyer")
            trade = self._guard.require_trade(self._trades, trade_id)
            self._guard.require_buyer(trade, caller)
            _require_state(trade, TradeState.AWAITING_COLLATERAL, "refund_buyer")
            if trade.collateral_provided:
                raise InvalidStateError(trade_id, trade.state, "refund_buyer")

            self._fire_transition(trade, "buyer_refunded")
            self._transfers.pay(trade.buyer, trade.principal_amount)
            self._events.record(
                EventType.FUNDS_RELEASED,
                trade_id,
                recipient=trade.buyer,
                amount=trade.principal_amount,
            )

        logger.info("trade.refunded", trade_id=trade_id, amount=trade.principal_amount)
        return TradeDetails.model_validate(trade)

    def direct_release(self, caller: str, trade_id: int, recipient: str) -> TradeDetails:
        """Agent override: pay the principal to ``recipient`` before collateral arrives.

        The payout happens before the trade's state is updated; the recipient's
        hook observes the trade still AwaitingCollateral. The trade ends
        Refunded when the recipient is the buyer, Complete otherwise.
        """
        with self._operation("direct_release", caller, trade_id=trade_id):
            self._guard.require_not_paused(self._admin, "direct_release")
            trade = self._guard.require_trade(self._trades, trade_id)
            self._guard.require_agent(self._admin, caller)
            self._guard.require_address(recipient, "recipient")
            _require_state(trade, TradeState.AWAITING_COLLATERAL, "direct_release")

            amount = trade.principal_amount
            self._transfers.pay(recipient, amount)

            if recipient == trade.buyer:
                self._fire_transition(trade, "agent_refunded")
            else:
                self._fire_transition(trade, "agent_completed")

            self._events.record(
                EventType.FUNDS_RELEASED,
                trade_id,
                recipient=recipient,
                amount=amount,
            )

        logger.info(
            "trade.direct_release",
            trade_id=trade_id,
            recipient=recipient,
            amount=amount,
            state=trade.state,
        )
        return TradeDetails.model_validate(trade)

    # ------------------------------------------------------------------
    # Fees
    # ------------------------------------------------------------------

    def redeem_fees(self, caller: str) -> int:
        """Pay every collected fee to the agent; return the amount paid."""
        with self._operation("redeem_fees", caller):
            self._guard.require_not_paused(self._admin, "redeem_fees")
            self._guard.require_agent(self._admin, caller)

            amount = self._fees.drain()
            self._transfers.pay(caller, amount)
            self._events.record(EventType.FEES_REDEEMED, None, recipient=caller, amount=amount)

        logger.info("fees.redeemed", agent=caller, amount=amount)
        return amount

    # ------------------------------------------------------------------
    # Administration (exempt from the pause gate)
    # ------------------------------------------------------------------

    def set_escrow_agent(self, caller: str, new_agent: str) -> None:
        with self._operation("set_escrow_agent", caller, guarded=False):
            self._guard.require_agent(self._admin, caller)
            self._guard.require_address(new_agent, "escrow_agent")

            previous = self._admin.escrow_agent
            self._admin.escrow_agent = new_agent
            self._events.record(
                EventType.ESCROW_AGENT_CHANGED, None, previous=previous, current=new_agent
            )

        logger.info("admin.escrow_agent_changed", previous=previous, current=new_agent)

    def set_fee_percentage(self, caller: str, fee_percentage: int) -> None:
        """Change the fee applied to trades created from now on."""
        with self._operation("set_fee_percentage", caller, guarded=False):
            self._guard.require_agent(self._admin, caller)

            previous = self._fees.set_fee_percentage(fee_percentage)
            self._events.record(
                EventType.FEE_PERCENTAGE_CHANGED,
                None,
                previous=previous,
                current=fee_percentage,
            )

        logger.info("admin.fee_percentage_changed", previous=previous, current=fee_percentage)

    def set_paused(self, caller: str, paused: bool) -> None:
        with self._operation("set_paused", caller, guarded=False):
            self._guard.require_agent(self._admin, caller)

            self._admin.paused = bool(paused)
            self._events.record(EventType.PAUSE_TOGGLED, None, paused=self._admin.paused)

        logger.info("admin.pause_toggled", paused=bool(paused))

    # ------------------------------------------------------------------
    # Read helpers
    # ------------------------------------------------------------------

    def get_trade_details(self, trade_id: int) -> TradeDetails:
        """Get a trade snapshot or raise InvalidTradeIdError."""
        trade = self._guard.require_trade(self._trades, trade_id)
        return TradeDetails.model_validate(trade)

    def get_escrow_agent(self) -> str:
        return self._admin.escrow_agent

    def get_fee_percentage(self) -> int:
        return self._admin.fee_percentage

    def get_collected_fees(self) -> int:
        return self._fees.collected

    def get_admin_state(self) -> AdminSnapshot:
        return AdminSnapshot.model_validate(self._admin)

    def get_events(
        self,
        trade_id: int | None = None,
        event_type: EventType | None = None,
    ) -> list[EscrowEvent]:
        """Get the event log, optionally narrowed to one trade or record type."""
        return self._events.query(trade_id=trade_id, event_type=event_type)

    def trade_count(self) -> int:
        return self._trades.count()

    # ------------------------------------------------------------------
    # Custody passthroughs
    # ------------------------------------------------------------------

    def register_receiver(self, identity: str, hook: ReceiverHook) -> None:
        """Attach external code that runs when ``identity`` is paid."""
        self._transfers.register_receiver(identity, hook)

    def unregister_receiver(self, identity: str) -> None:
        self._transfers.unregister_receiver(identity)

    def balance_of(self, identity: str) -> int:
        return self._transfers.balance_of(identity)

    @property
    def held_balance(self) -> int:
        return self._transfers.held_balance

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    @contextmanager
    def _operation(
        self,
        name: str,
        caller: str,
        guarded: bool = True,
        **context: object,
    ) -> Iterator[LedgerState]:
        """Scope one public operation: log context, reentrancy guard, transaction."""
        with ExitStack() as stack:
            stack.enter_context(
                structlog.contextvars.bound_contextvars(operation=name, caller=caller, **context)
            )
            if guarded:
                stack.enter_context(self._transfers.guarded(name))
            yield stack.enter_context(self._ledger.transaction(name))

    def _fire_transition(self, trade: Trade, event_name: str) -> None:
        """Validate and fire a state machine transition, writing the new state.

        Raises InvalidStateError if the transition is illegal.
        """
        try:
            new_state = validate_transition(trade.state, event_name)
        except TransitionNotAllowed as err:
            raise InvalidStateError(trade.trade_id, trade.state, event_name) from err
        trade.state = new_state


def _require_state(trade: Trade, expected: TradeState, operation: str) -> None:
    if trade.state != expected:
        raise InvalidStateError(trade.trade_id, trade.state, operation)


def _require_whole_amount(value: int, label: str) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidAmountError(f"{label} must be an integer amount, got {value!r}")


def _require_positive(value: int, label: str) -> None:
    _require_whole_amount(value, label)
    if value <= 0:
        raise InvalidAmountError(f"{label} must be a positive integer, got {value!r}")
