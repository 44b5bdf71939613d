"""Tests for the FundTransferExecutor: custody, receiver hooks, reentrancy guard."""

from __future__ import annotations

import pytest

from trade_escrow.domain.exceptions import (
    InvalidAmountError,
    ReentrancyDetectedError,
    TransferRejectedError,
)
from trade_escrow.domain.models import AdminState
from trade_escrow.infrastructure.ledger import EscrowLedger
from trade_escrow.services.fund_transfer import FundTransferExecutor


@pytest.fixture
def executor() -> FundTransferExecutor:
    return FundTransferExecutor(EscrowLedger(AdminState(escrow_agent="agent", fee_percentage=0)))


class TestCustody:
    def test_receive_and_pay(self, executor: FundTransferExecutor) -> None:
        executor.receive("buyer", 100)
        executor.pay("seller", 60)
        assert executor.held_balance == 40
        assert executor.balance_of("seller") == 60
        assert executor.balance_of("buyer") == 0

    def test_cannot_overdraw(self, executor: FundTransferExecutor) -> None:
        executor.receive("buyer", 10)
        with pytest.raises(InvalidAmountError):
            executor.pay("seller", 11)
        assert executor.held_balance == 10


class TestReceiverHooks:
    def test_hook_sees_amount(self, executor: FundTransferExecutor) -> None:
        seen: list[int] = []
        executor.register_receiver("seller", lambda amount: seen.append(amount))
        executor.receive("buyer", 50)
        executor.pay("seller", 50)
        assert seen == [50]

    def test_hook_returning_false_rejects(self, executor: FundTransferExecutor) -> None:
        executor.register_receiver("seller", lambda amount: False)
        executor.receive("buyer", 50)
        with pytest.raises(TransferRejectedError) as exc_info:
            executor.pay("seller", 50)
        assert exc_info.value.recipient == "seller"
        assert exc_info.value.amount == 50

    def test_hook_raising_rejects(self, executor: FundTransferExecutor) -> None:
        def explode(amount: int) -> None:
            raise RuntimeError("no thanks")

        executor.register_receiver("seller", explode)
        executor.receive("buyer", 50)
        with pytest.raises(TransferRejectedError) as exc_info:
            executor.pay("seller", 50)
        assert isinstance(exc_info.value.__cause__, RuntimeError)

    def test_unregister(self, executor: FundTransferExecutor) -> None:
        executor.register_receiver("seller", lambda amount: False)
        executor.unregister_receiver("seller")
        executor.receive("buyer", 5)
        executor.pay("seller", 5)
        assert executor.balance_of("seller") == 5


class TestReentrancyGuard:
    def test_second_entry_fails_immediately(self, executor: FundTransferExecutor) -> None:
        with executor.guarded("approve"):
            assert executor.is_locked
            with pytest.raises(ReentrancyDetectedError, match="refund_buyer"):
                with executor.guarded("refund_buyer"):
                    pass
        assert not executor.is_locked

    def test_released_after_failure(self, executor: FundTransferExecutor) -> None:
        with pytest.raises(RuntimeError):
            with executor.guarded("approve"):
                raise RuntimeError("boom")
        assert not executor.is_locked
        with executor.guarded("approve"):
            pass
