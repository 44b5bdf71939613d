"""Application services — escrow operations and their collaborators."""

from trade_escrow.services.access_control import AccessControlGuard
from trade_escrow.services.fee_ledger import FeeLedger
from trade_escrow.services.fund_transfer import FundTransferExecutor
from trade_escrow.services.trade_registry import TradeRegistry

__all__ = ["AccessControlGuard", "FeeLedger", "FundTransferExecutor", "TradeRegistry"]
