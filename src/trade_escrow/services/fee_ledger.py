"""Fee and collateral arithmetic, plus the collected-fee accumulator.

All amounts are integers in the smallest unit; every division truncates.

    fee        = deposit * fee_percentage // 100
    principal  = deposit - fee
    collateral = principal * 5 // 100
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from trade_escrow.config import MAX_FEE_PERCENTAGE
from trade_escrow.domain.exceptions import InvalidAmountError
from trade_escrow.domain.models import FeeSplit

if TYPE_CHECKING:
    from trade_escrow.domain.models import AdminState
    from trade_escrow.infrastructure.ledger import EscrowLedger

COLLATERAL_PERCENTAGE = 5


def validate_fee_percentage(fee_percentage: int) -> int:
    """Reject (never clamp) fee percentages outside [0, MAX_FEE_PERCENTAGE]."""
    if isinstance(fee_percentage, bool) or not isinstance(fee_percentage, int):
        raise InvalidAmountError(f"Fee percentage must be an integer, got {fee_percentage!r}")
    if not 0 <= fee_percentage <= MAX_FEE_PERCENTAGE:
        raise InvalidAmountError(
            f"Fee percentage {fee_percentage} outside [0, {MAX_FEE_PERCENTAGE}]"
        )
    return fee_percentage


def compute_split(deposit: int, fee_percentage: int) -> FeeSplit:
    """Split a buyer's deposit into fee, principal and required collateral."""
    fee = deposit * fee_percentage // 100
    principal = deposit - fee
    collateral = principal * COLLATERAL_PERCENTAGE // 100
    return FeeSplit(fee=fee, principal=principal, collateral=collateral)


class FeeLedger:
    """Accumulates fees taken at trade creation until the agent redeems them."""

    def __init__(self, ledger: EscrowLedger) -> None:
        self._ledger = ledger

    @property
    def _admin(self) -> AdminState:
        return self._ledger.state.admin

    @property
    def collected(self) -> int:
        return self._admin.collected_fees

    def split_deposit(self, deposit: int) -> FeeSplit:
        """Split using the fee percentage in effect right now."""
        return compute_split(deposit, self._admin.fee_percentage)

    def accrue(self, fee: int) -> None:
        self._admin.collected_fees += fee

    def drain(self) -> int:
        """Zero the accumulator and return what it held."""
        if self._admin.collected_fees <= 0:
            raise InvalidAmountError("No collected fees to redeem")
        amount = self._admin.collected_fees
        self._admin.collected_fees = 0
        return amount

    def set_fee_percentage(self, fee_percentage: int) -> int:
        """Validate and store a new fee percentage; return the previous one."""
        validate_fee_percentage(fee_percentage)
        previous = self._admin.fee_percentage
        self._admin.fee_percentage = fee_percentage
        return previous
