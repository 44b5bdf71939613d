"""Fund Transfer Executor — custody and outbound value movement.

Every value that enters or leaves the escrow goes through this service.
Outbound transfers credit the recipient and then hand control to the
recipient's receiver hook, if one is registered. That hook is arbitrary
external code: it may refuse the funds (raise or return False), which aborts
the enclosing operation, and it may try to call back into the registry,
which the reentrancy guard rejects.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING

from trade_escrow.domain.exceptions import (
    InvalidAmountError,
    ReentrancyDetectedError,
    TransferRejectedError,
)
from trade_escrow.logging_config import get_logger

if TYPE_CHECKING:
    from trade_escrow.infrastructure.ledger import EscrowLedger, LedgerState

logger = get_logger(__name__)

ReceiverHook = Callable[[int], bool | None]


class FundTransferExecutor:
    """Moves value in and out of the escrow's held balance."""

    def __init__(self, ledger: EscrowLedger) -> None:
        self._ledger = ledger
        self._lock = threading.Lock()
        self._active_operation: str | None = None
        self._receivers: dict[str, ReceiverHook] = {}

    @property
    def _state(self) -> LedgerState:
        return self._ledger.state

    # ------------------------------------------------------------------
    # Reentrancy guard
    # ------------------------------------------------------------------

    @contextmanager
    def guarded(self, operation: str) -> Iterator[None]:
        """Hold the reentrancy lock for the duration of one operation.

        A second guarded operation started while the lock is held fails
        immediately instead of waiting.
        """
        if not self._lock.acquire(blocking=False):
            logger.warning(
                "reentrancy.detected",
                operation=operation,
                active_operation=self._active_operation,
            )
            raise ReentrancyDetectedError(operation)
        self._active_operation = operation
        try:
            yield
        finally:
            self._active_operation = None
            self._lock.release()

    @property
    def is_locked(self) -> bool:
        return self._lock.locked()

    # ------------------------------------------------------------------
    # Receivers
    # ------------------------------------------------------------------

    def register_receiver(self, identity: str, hook: ReceiverHook) -> None:
        """Attach external code that runs whenever ``identity`` is paid."""
        self._receivers[identity] = hook

    def unregister_receiver(self, identity: str) -> None:
        self._receivers.pop(identity, None)

    # ------------------------------------------------------------------
    # Custody
    # ------------------------------------------------------------------

    @property
    def held_balance(self) -> int:
        return self._state.held_balance

    def balance_of(self, identity: str) -> int:
        """Total value paid out to ``identity`` so far."""
        return self._state.balances.get(identity, 0)

    def receive(self, source: str, amount: int) -> None:
        """Take an inbound deposit into custody."""
        if amount < 0:
            raise InvalidAmountError(f"Negative inbound amount {amount}")
        self._state.held_balance += amount
        logger.debug("transfer.received", source=source, amount=amount)

    def pay(self, recipient: str, amount: int) -> None:
        """Pay ``recipient`` out of the held balance.

        Raises:
            TransferRejectedError: If the recipient's hook raises or returns False.
        """
        state = self._state
        if amount < 0 or amount > state.held_balance:
            raise InvalidAmountError(
                f"Cannot pay {amount} from held balance {state.held_balance}"
            )

        state.held_balance -= amount
        state.balances[recipient] = state.balances.get(recipient, 0) + amount

        hook = self._receivers.get(recipient)
        if hook is not None:
            try:
                accepted = hook(amount)
            except Exception as exc:
                logger.warning(
                    "transfer.rejected",
                    recipient=recipient,
                    amount=amount,
                    error=str(exc),
                )
                raise TransferRejectedError(recipient, amount) from exc
            if accepted is False:
                logger.warning("transfer.rejected", recipient=recipient, amount=amount)
                raise TransferRejectedError(recipient, amount)

        logger.info("transfer.paid", recipient=recipient, amount=amount)
