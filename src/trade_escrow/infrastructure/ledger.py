"""In-process ledger store and repositories.

The host is expected to provide a durable, serially-ordered ledger. This
module is the in-process stand-in: a single ``LedgerState`` plus an
all-or-nothing ``transaction()`` scope. Repositories wrap the state and never
manage transactions themselves (that's the caller's responsibility).

Nested transactions join the outermost one; only the outermost scope takes
a snapshot and only it restores on failure. The snapshot holds the scalar
state, the balances, the event-log length and a copy of each trade the
operation loads through ``TradeRepository``; the event log and untouched
trades are never copied.
"""

from __future__ import annotations

import copy
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field, fields

from trade_escrow.domain.enums import EventType
from trade_escrow.domain.models import AdminState, EscrowEvent, Trade
from trade_escrow.logging_config import get_logger

logger = get_logger(__name__)


@dataclass
class LedgerState:
    """Everything an operation may write."""

    admin: AdminState
    trades: dict[int, Trade] = field(default_factory=dict)
    trade_counter: int = 0
    events: list[EscrowEvent] = field(default_factory=list)
    held_balance: int = 0
    balances: dict[str, int] = field(default_factory=dict)


@dataclass
class _Snapshot:
    admin: AdminState
    trade_counter: int
    event_count: int
    held_balance: int
    balances: dict[str, int]
    trades: dict[int, Trade] = field(default_factory=dict)

    @classmethod
    def take(cls, state: LedgerState) -> _Snapshot:
        return cls(
            admin=copy.copy(state.admin),
            trade_counter=state.trade_counter,
            event_count=len(state.events),
            held_balance=state.held_balance,
            balances=dict(state.balances),
        )

    def restore(self, state: LedgerState) -> None:
        _copy_fields(self.admin, state.admin)
        for trade_id in [tid for tid in state.trades if tid > self.trade_counter]:
            del state.trades[trade_id]
        # In place, so references held by the failed operation stay valid.
        for trade_id, saved in self.trades.items():
            _copy_fields(saved, state.trades[trade_id])
        state.trade_counter = self.trade_counter
        del state.events[self.event_count :]
        state.held_balance = self.held_balance
        state.balances = self.balances


def _copy_fields(source: object, target: object) -> None:
    for f in fields(source):
        setattr(target, f.name, getattr(source, f.name))


class EscrowLedger:
    """Owns the ledger state and scopes atomic operations over it."""

    def __init__(self, admin: AdminState) -> None:
        self._state = LedgerState(admin=admin)
        self._depth = 0
        self._snapshot: _Snapshot | None = None

    @property
    def state(self) -> LedgerState:
        return self._state

    @property
    def in_transaction(self) -> bool:
        return self._depth > 0

    def track(self, trade: Trade) -> None:
        """Remember ``trade`` as it was before the open transaction touched it."""
        snapshot = self._snapshot
        if (
            snapshot is not None
            and trade.trade_id <= snapshot.trade_counter
            and trade.trade_id not in snapshot.trades
        ):
            snapshot.trades[trade.trade_id] = copy.copy(trade)

    @contextmanager
    def transaction(self, operation: str) -> Iterator[LedgerState]:
        """Run an operation atomically; any abnormal exit restores the prior state."""
        if self._depth:
            self._depth += 1
            try:
                yield self._state
            finally:
                self._depth -= 1
            return

        self._snapshot = _Snapshot.take(self._state)
        self._depth = 1
        try:
            yield self._state
        except BaseException as exc:
            self._snapshot.restore(self._state)
            logger.warning(
                "ledger.rolled_back",
                operation=operation,
                error=getattr(exc, "code", type(exc).__name__),
            )
            raise
        finally:
            self._depth = 0
            self._snapshot = None


class TradeRepository:
    """Data access for trades."""

    def __init__(self, ledger: EscrowLedger) -> None:
        self._ledger = ledger

    def next_id(self) -> int:
        """Reserve the next sequential trade id."""
        state = self._ledger.state
        state.trade_counter += 1
        return state.trade_counter

    def add(self, trade: Trade) -> Trade:
        """Insert a new trade."""
        self._ledger.state.trades[trade.trade_id] = trade
        return trade

    def get_by_id(self, trade_id: int) -> Trade | None:
        """Fetch a trade by its id; inside a transaction the trade is tracked for rollback."""
        trade = self._ledger.state.trades.get(trade_id)
        if trade is not None:
            self._ledger.track(trade)
        return trade

    def count(self) -> int:
        return self._ledger.state.trade_counter


class EventRepository:
    """Data access for the append-only event log."""

    def __init__(self, ledger: EscrowLedger) -> None:
        self._ledger = ledger

    def record(
        self,
        event_type: EventType,
        trade_id: int | None = None,
        **data: object,
    ) -> EscrowEvent:
        """Append a new record. This is the ONLY write operation allowed."""
        events = self._ledger.state.events
        evt = EscrowEvent(
            sequence=len(events) + 1,
            event_type=event_type,
            trade_id=trade_id,
            data=dict(data),
        )
        events.append(evt)
        return evt

    def query(
        self,
        trade_id: int | None = None,
        event_type: EventType | None = None,
    ) -> list[EscrowEvent]:
        """Fetch records in append order, optionally filtered."""
        return [
            evt
            for evt in self._ledger.state.events
            if (trade_id is None or evt.trade_id == trade_id)
            and (event_type is None or evt.event_type == event_type)
        ]
