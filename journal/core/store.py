"""
Journal Store

Explicit state container for positions, reflections and the currency
preference. Each mutation:
1. Runs the ledger/reflection operation against the current state
2. Persists a full snapshot of the new state
3. Swaps the state in and notifies subscribers

A rejected operation or a failed save leaves the state untouched.
"""
import threading
from dataclasses import dataclass, fields, replace
from datetime import datetime
from typing import Callable, Dict, List, Optional, Tuple

from journal.core import codec, ledger
from journal.core.errors import InvalidInput, JournalError, TradeNotFound
from journal.core.ledger import BehaviorData, Position, PositionStatus, TimeOfDay
from journal.core.reflection import Reflection, create_reflection
from journal.models.snapshots import SnapshotRepository
from journal.utils import metrics
from journal.utils.constants import CURRENCIES, DEFAULT_CURRENCY, SNAPSHOT_VERSION
from journal.utils.logging import get_logger

logger = get_logger(__name__)

ANNOTATABLE_FIELDS = frozenset({
    'token_name', 'ticker', 'token_address', 'ath_market_cap', 'ath_date', 'behavioral',
})


@dataclass(frozen=True)
class JournalState:
    """Immutable snapshot of the whole journal."""
    trades: Tuple[Position, ...] = ()
    reflections: Tuple[Reflection, ...] = ()
    currency_preference: str = DEFAULT_CURRENCY


Subscriber = Callable[[JournalState], None]


class TradeStore:
    """Owns the journal state; the only writer of positions and reflections."""

    def __init__(self, repository: Optional[SnapshotRepository] = None,
                 storage_key: str = "memecoin-trades-storage"):
        self.repository = repository
        self.storage_key = storage_key
        self._state = JournalState()
        self._subscribers: List[Subscriber] = []
        self._lock = threading.RLock()
        if repository is not None:
            self._load()

    # ------------------------------------------------------------------ reads

    @property
    def state(self) -> JournalState:
        return self._state

    @property
    def trades(self) -> Tuple[Position, ...]:
        return self._state.trades

    @property
    def reflections(self) -> Tuple[Reflection, ...]:
        return self._state.reflections

    @property
    def currency_preference(self) -> str:
        return self._state.currency_preference

    def get_trade(self, trade_id: str) -> Position:
        for trade in self._state.trades:
            if trade.id == trade_id:
                return trade
        raise TradeNotFound(f"Trade {trade_id} not found")

    def active_trades(self) -> List[Position]:
        return [t for t in self._state.trades if t.status == PositionStatus.ACTIVE]

    def completed_trades(self) -> List[Position]:
        return [t for t in self._state.trades if t.status == PositionStatus.COMPLETED]

    def reflection_for(self, trade_id: str) -> Optional[Reflection]:
        for reflection in self._state.reflections:
            if reflection.trade_id == trade_id:
                return reflection
        return None

    # -------------------------------------------------------------- observers

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register a callback for every committed state; returns an unsubscribe function."""
        self._subscribers.append(callback)

        def unsubscribe():
            if callback in self._subscribers:
                self._subscribers.remove(callback)
        return unsubscribe

    # -------------------------------------------------------------- mutations

    def add_trade(self, initial_investment: float, token_quantity: float,
                  entry_market_cap: float, total_supply: float,
                  now: Optional[datetime] = None, **details) -> Position:
        """Open a position and append it to the journal."""
        with self._lock:
            position = self._guard('open', lambda: ledger.open_position(
                initial_investment, token_quantity, entry_market_cap, total_supply,
                now=now, **details,
            ))
            self._commit(replace(self._state, trades=self._state.trades + (position,)))
        metrics.record_position_opened()
        logger.info(
            f"Opened {position.id} {position.ticker or position.token_name}: "
            f"{position.sol_investment} SOL @ mc {position.entry_market_cap:,.0f}"
        )
        return position

    def add_buy(self, trade_id: str, sol_amount: float, market_cap: float,
                token_quantity: float, now: Optional[datetime] = None) -> Position:
        """Record a consecutive buy on an active position."""
        with self._lock:
            current = self.get_trade(trade_id)
            updated = self._guard('buy', lambda: ledger.record_buy(
                current, sol_amount, market_cap, token_quantity, now=now,
            ))
            self._commit(self._with_trade(updated))
        metrics.record_buy()
        logger.info(
            f"Buy on {trade_id}: {updated.buys[-1].sol_amount} SOL "
            f"@ mc {updated.buys[-1].market_cap:,.0f}, "
            f"entry mc now {updated.entry_market_cap:,.0f}"
        )
        return updated

    def add_sell(self, trade_id: str, percentage: float, market_cap: float,
                 sol_received: float = 0.0, time_of_day: TimeOfDay = TimeOfDay.AFTERNOON,
                 now: Optional[datetime] = None) -> Position:
        """Record a partial sell; the position completes at 100% sold."""
        with self._lock:
            current = self.get_trade(trade_id)
            updated = self._guard('sell', lambda: ledger.record_sell(
                current, percentage, market_cap, sol_received, time_of_day, now=now,
            ))
            self._commit(self._with_trade(updated))
        sell = updated.sells[-1]
        metrics.record_sell(sell.time_of_day.value)
        logger.info(f"Sell on {trade_id}: {sell.percentage}% @ mc {sell.market_cap:,.0f} "
                    f"({updated.percentage_sold:.2f}% sold)")
        if updated.status == PositionStatus.COMPLETED:
            pnl = ledger.realized_performance(updated).realized_pnl
            metrics.record_position_completed('win' if pnl > 0 else 'loss')
            logger.info(f"Position {trade_id} completed, realized PnL {pnl:.4f} SOL")
        return updated

    def annotate_trade(self, trade_id: str, **updates) -> Position:
        """Update descriptive and behavioral fields; ledger fields are not editable."""
        unknown = set(updates) - ANNOTATABLE_FIELDS
        if unknown:
            raise InvalidInput(f"Fields not editable: {', '.join(sorted(unknown))}")
        with self._lock:
            current = self.get_trade(trade_id)
            behavioral = updates.get('behavioral')
            if isinstance(behavioral, dict):
                unknown = set(behavioral) - {f.name for f in fields(BehaviorData)}
                if unknown:
                    raise InvalidInput(f"Unknown behavioral fields: {', '.join(sorted(unknown))}")
                # partial notes merge into the stored ones
                updates['behavioral'] = replace(current.behavioral, **behavioral)
            updated = replace(current, updated_at=datetime.utcnow(), **updates)
            self._commit(self._with_trade(updated))
        return updated

    def delete_trade(self, trade_id: str) -> None:
        """Remove a position and its reflection."""
        with self._lock:
            self.get_trade(trade_id)
            self._commit(replace(
                self._state,
                trades=tuple(t for t in self._state.trades if t.id != trade_id),
                reflections=tuple(r for r in self._state.reflections if r.trade_id != trade_id),
            ))
        logger.info(f"Deleted trade {trade_id}")

    def add_reflection(self, trade_id: str, decision_quality: int,
                       now: Optional[datetime] = None, **fields) -> Reflection:
        """Attach the single reflection of a completed position."""
        with self._lock:
            position = self.get_trade(trade_id)
            reflection = self._guard('reflect', lambda: create_reflection(
                position, decision_quality, self.reflection_for(trade_id), now=now, **fields,
            ))
            trades = tuple(
                replace(t, decision_quality=decision_quality) if t.id == trade_id else t
                for t in self._state.trades
            )
            self._commit(replace(
                self._state,
                trades=trades,
                reflections=self._state.reflections + (reflection,),
            ))
        metrics.record_reflection()
        logger.info(f"Reflection {reflection.id} added to {trade_id}")
        return reflection

    def set_currency_preference(self, currency: str) -> str:
        if currency not in CURRENCIES:
            raise InvalidInput(f"Currency must be one of {', '.join(CURRENCIES)}")
        with self._lock:
            self._commit(replace(self._state, currency_preference=currency))
        return currency

    def reset(self) -> None:
        """Drop every trade and reflection."""
        with self._lock:
            self._commit(JournalState())
        logger.info("Journal reset")

    # ---------------------------------------------------------------- helpers

    def _guard(self, operation: str, action):
        try:
            return action()
        except JournalError as e:
            metrics.record_rejection(operation, type(e).__name__)
            logger.warning(f"Rejected {operation}: {e}")
            raise

    def _with_trade(self, updated: Position) -> JournalState:
        return replace(self._state, trades=tuple(
            updated if t.id == updated.id else t for t in self._state.trades
        ))

    def _commit(self, new_state: JournalState) -> None:
        if self.repository is not None:
            self.repository.save(self.storage_key, self._encode(new_state), SNAPSHOT_VERSION)
        self._state = new_state
        for callback in list(self._subscribers):
            callback(new_state)

    @staticmethod
    def _encode(state: JournalState) -> Dict:
        return {
            'state': {
                'trades': [codec.encode(t) for t in state.trades],
                'reflections': [codec.encode(r) for r in state.reflections],
                'currency_preference': state.currency_preference,
            },
            'version': SNAPSHOT_VERSION,
        }

    def _load(self) -> None:
        payload = self.repository.load(self.storage_key)
        if not payload:
            return
        data = payload.get('state', {})
        self._state = JournalState(
            trades=tuple(codec.decode_position(t) for t in data.get('trades', [])),
            reflections=tuple(codec.decode_reflection(r) for r in data.get('reflections', [])),
            currency_preference=data.get('currency_preference', DEFAULT_CURRENCY),
        )
        logger.info(f"Loaded {len(self._state.trades)} trades, "
                    f"{len(self._state.reflections)} reflections from {self.storage_key}")
