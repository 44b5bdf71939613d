"""Infrastructure — ledger storage and repositories."""

from trade_escrow.infrastructure.ledger import (
    EscrowLedger,
    EventRepository,
    LedgerState,
    TradeRepository,
)

__all__ = ["EscrowLedger", "EventRepository", "LedgerState", "TradeRepository"]
