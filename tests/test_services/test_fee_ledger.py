"""Tests for fee / collateral arithmetic and the fee accumulator."""

from __future__ import annotations

import pytest

from trade_escrow.domain.exceptions import InvalidAmountError
from trade_escrow.domain.models import AdminState
from trade_escrow.infrastructure.ledger import EscrowLedger
from trade_escrow.services.fee_ledger import FeeLedger, compute_split, validate_fee_percentage


class TestComputeSplit:
    def test_documented_example(self) -> None:
        split = compute_split(1000, 2)
        assert (split.fee, split.principal, split.collateral) == (20, 980, 49)

    @pytest.mark.parametrize(
        ("deposit", "pct", "fee", "principal", "collateral"),
        [
            (1000, 0, 0, 1000, 50),
            (1000, 10, 100, 900, 45),
            (999, 3, 29, 970, 48),
            (19, 10, 1, 18, 0),
            (1, 10, 0, 1, 0),
        ],
    )
    def test_truncating_division(
        self, deposit: int, pct: int, fee: int, principal: int, collateral: int
    ) -> None:
        split = compute_split(deposit, pct)
        assert split.fee == fee
        assert split.principal == principal
        assert split.collateral == collateral
        assert split.fee + split.principal == deposit


class TestValidateFeePercentage:
    @pytest.mark.parametrize("pct", [0, 5, 10])
    def test_in_range(self, pct: int) -> None:
        assert validate_fee_percentage(pct) == pct

    @pytest.mark.parametrize("pct", [-1, 11, 100])
    def test_out_of_range_rejected(self, pct: int) -> None:
        with pytest.raises(InvalidAmountError):
            validate_fee_percentage(pct)

    def test_non_integer_rejected(self) -> None:
        with pytest.raises(InvalidAmountError):
            validate_fee_percentage(2.5)  # type: ignore[arg-type]


class TestFeeLedger:
    @pytest.fixture
    def fees(self) -> FeeLedger:
        return FeeLedger(EscrowLedger(AdminState(escrow_agent="agent", fee_percentage=2)))

    def test_accrue_and_drain(self, fees: FeeLedger) -> None:
        fees.accrue(20)
        fees.accrue(5)
        assert fees.collected == 25
        assert fees.drain() == 25
        assert fees.collected == 0

    def test_drain_empty_rejected(self, fees: FeeLedger) -> None:
        with pytest.raises(InvalidAmountError, match="No collected fees"):
            fees.drain()

    def test_split_uses_current_percentage(self, fees: FeeLedger) -> None:
        assert fees.split_deposit(1000).fee == 20
        fees.set_fee_percentage(10)
        assert fees.split_deposit(1000).fee == 100

    def test_set_fee_percentage_returns_previous(self, fees: FeeLedger) -> None:
        assert fees.set_fee_percentage(7) == 2

    def test_rejected_percentage_leaves_value(self, fees: FeeLedger) -> None:
        with pytest.raises(InvalidAmountError):
            fees.set_fee_percentage(11)
        assert fees.split_deposit(1000).fee == 20
