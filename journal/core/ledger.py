"""
Position Ledger

Cost-basis and realized P&L accounting for one memecoin position:
- Opening buy plus any number of consecutive buys
- Weighted-average entry market cap (weighted by token quantity)
- Partial sells expressed as a percentage of the original bag
- Realized performance computed from market cap multiples

Every operation returns a new Position; inputs are never mutated.
"""
import math
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple

from journal.core.errors import InvalidInput, InvalidPercentage, PositionClosed
from journal.utils.constants import COMPLETION_EPSILON, FULL_POSITION_PCT


class PositionStatus(str, Enum):
    """Position lifecycle status."""
    ACTIVE = "active"
    COMPLETED = "completed"


class TimeOfDay(str, Enum):
    """Time-of-day bucket recorded with each sell."""
    MORNING = "Morning"
    AFTERNOON = "Afternoon"
    EVENING = "Evening"
    NIGHT = "Night"


@dataclass(frozen=True)
class BehaviorData:
    """Psychological state captured at entry. Stored, never computed over."""
    entry_sentiment: int = 5
    fear_level: int = 5
    confidence_level: int = 5
    patience_level: int = 5
    state_of_mind: str = ""
    research_time: float = 0.0
    investment_thesis: str = ""
    groupthink_influence: bool = False
    group_sentiment: str = ""
    sleep_quality: int = 5
    distractions: str = ""


@dataclass(frozen=True)
class BuyEvent:
    """One buy into a position."""
    id: str
    date: datetime
    sol_amount: float
    token_quantity: float
    market_cap: float


@dataclass(frozen=True)
class SellEvent:
    """One partial sell; percentage is of the original token quantity."""
    id: str
    date: datetime
    percentage: float
    market_cap: float
    sol_received: float = 0.0
    time_of_day: TimeOfDay = TimeOfDay.AFTERNOON


@dataclass(frozen=True)
class Position:
    """A tracked trading position and its derived accounting fields."""
    id: str
    sol_investment: float
    token_quantity: float
    entry_market_cap: float
    total_supply: float
    buys: Tuple[BuyEvent, ...]
    entry_date: datetime
    created_at: datetime
    updated_at: datetime
    token_name: str = ""
    ticker: str = ""
    token_address: str = ""
    ath_market_cap: Optional[float] = None
    ath_date: Optional[datetime] = None
    status: PositionStatus = PositionStatus.ACTIVE
    sells: Tuple[SellEvent, ...] = ()
    percentage_sold: float = 0.0
    remaining_investment: float = 0.0
    decision_quality: int = 0
    behavioral: BehaviorData = field(default_factory=BehaviorData)

    @property
    def is_active(self) -> bool:
        return self.status == PositionStatus.ACTIVE

    @property
    def remaining_percentage(self) -> float:
        return FULL_POSITION_PCT - self.percentage_sold

    @property
    def ownership_percentage(self) -> float:
        if not self.total_supply or self.total_supply <= 0:
            return 0.0
        return self.token_quantity / self.total_supply * 100


@dataclass(frozen=True)
class Performance:
    """Realized performance of a position's sells."""
    realized_pnl: float = 0.0
    total_value_from_sells: float = 0.0
    cost_of_goods_sold: float = 0.0
    average_sell_multiplier: float = 0.0
    roi: float = 0.0


def _new_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


def _positive(name: str, value) -> float:
    """Coerce a numeric input, rejecting missing, non-finite or non-positive values."""
    if value is None or isinstance(value, bool):
        raise InvalidInput(f"{name} is required")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidInput(f"{name} must be numeric, got {value!r}")
    if not math.isfinite(number) or number <= 0:
        raise InvalidInput(f"{name} must be positive, got {value!r}")
    return number


def _remaining(sol_investment: float, percentage_sold: float) -> float:
    return sol_investment * (FULL_POSITION_PCT - percentage_sold) / 100


def open_position(
    initial_investment: float,
    token_quantity: float,
    entry_market_cap: float,
    total_supply: float,
    *,
    token_name: str = "",
    ticker: str = "",
    token_address: str = "",
    behavioral: Optional[BehaviorData] = None,
    ath_market_cap: Optional[float] = None,
    ath_date: Optional[datetime] = None,
    now: Optional[datetime] = None,
) -> Position:
    """
    Open an active position seeded with its first buy.

    Raises:
        InvalidInput: investment, quantity or market cap missing or non-positive,
            or a negative total supply
    """
    investment = _positive("initial_investment", initial_investment)
    quantity = _positive("token_quantity", token_quantity)
    market_cap = _positive("entry_market_cap", entry_market_cap)
    try:
        supply = float(total_supply or 0)
    except (TypeError, ValueError):
        raise InvalidInput(f"total_supply must be numeric, got {total_supply!r}")
    if supply < 0 or not math.isfinite(supply):
        raise InvalidInput(f"total_supply must not be negative, got {total_supply!r}")

    now = now or datetime.utcnow()
    opening_buy = BuyEvent(
        id=_new_id("buy"),
        date=now,
        sol_amount=investment,
        token_quantity=quantity,
        market_cap=market_cap,
    )
    return Position(
        id=_new_id("trade"),
        sol_investment=investment,
        token_quantity=quantity,
        entry_market_cap=market_cap,
        total_supply=supply,
        buys=(opening_buy,),
        entry_date=now,
        created_at=now,
        updated_at=now,
        token_name=token_name,
        ticker=ticker,
        token_address=token_address,
        ath_market_cap=ath_market_cap,
        ath_date=ath_date,
        remaining_investment=investment,
        behavioral=behavioral or BehaviorData(),
    )


def record_buy(
    position: Position,
    sol_amount: float,
    market_cap_at_buy: float,
    token_quantity: float,
    *,
    now: Optional[datetime] = None,
) -> Position:
    """
    Append a consecutive buy and recompute aggregates.

    Token quantity is supplied by the caller, already derived from price.
    The entry market cap becomes the token-quantity weighted average of all buys.
    """
    if not position.is_active:
        raise PositionClosed(f"Position {position.id} is completed; buys are not allowed")
    amount = _positive("sol_amount", sol_amount)
    market_cap = _positive("market_cap_at_buy", market_cap_at_buy)
    quantity = _positive("token_quantity", token_quantity)

    now = now or datetime.utcnow()
    buys = position.buys + (BuyEvent(
        id=_new_id("buy"),
        date=now,
        sol_amount=amount,
        token_quantity=quantity,
        market_cap=market_cap,
    ),)

    total_sol = sum(b.sol_amount for b in buys)
    total_tokens = sum(b.token_quantity for b in buys)
    weighted_mc = sum(b.market_cap * b.token_quantity for b in buys)
    entry_mc = weighted_mc / total_tokens if total_tokens > 0 else 0.0

    return replace(
        position,
        buys=buys,
        sol_investment=total_sol,
        token_quantity=total_tokens,
        entry_market_cap=entry_mc,
        remaining_investment=_remaining(total_sol, position.percentage_sold),
        updated_at=now,
    )


def record_sell(
    position: Position,
    percentage_of_original: float,
    market_cap_at_sale: float,
    sol_received: float = 0.0,
    time_of_day: TimeOfDay = TimeOfDay.AFTERNOON,
    *,
    now: Optional[datetime] = None,
) -> Position:
    """
    Append a partial sell.

    The cumulative sold percentage is an exact running sum; reaching 100
    (within COMPLETION_EPSILON) completes the position.

    Raises:
        InvalidPercentage: percentage <= 0 or cumulative would exceed 100
        InvalidInput: non-positive market cap or negative SOL received
    """
    if not position.is_active:
        raise PositionClosed(f"Position {position.id} is completed; sells are not allowed")

    try:
        pct = float(percentage_of_original)
    except (TypeError, ValueError):
        raise InvalidPercentage(f"Sell percentage must be numeric, got {percentage_of_original!r}")
    if not math.isfinite(pct) or pct <= 0:
        raise InvalidPercentage(f"Sell percentage must be positive, got {percentage_of_original!r}")

    cumulative = position.percentage_sold + pct
    if cumulative > FULL_POSITION_PCT + COMPLETION_EPSILON:
        raise InvalidPercentage(
            f"Selling {pct}% would exceed 100% (only {position.remaining_percentage:.4f}% remaining)"
        )

    market_cap = _positive("market_cap_at_sale", market_cap_at_sale)
    try:
        received = float(sol_received or 0.0)
    except (TypeError, ValueError):
        raise InvalidInput(f"sol_received must be numeric, got {sol_received!r}")
    if received < 0 or not math.isfinite(received):
        raise InvalidInput(f"sol_received must not be negative, got {sol_received!r}")

    try:
        bucket = TimeOfDay(time_of_day)
    except ValueError:
        raise InvalidInput(f"Unknown time of day {time_of_day!r}")

    now = now or datetime.utcnow()
    sells = position.sells + (SellEvent(
        id=_new_id("sell"),
        date=now,
        percentage=pct,
        market_cap=market_cap,
        sol_received=received,
        time_of_day=bucket,
    ),)

    status = position.status
    if cumulative >= FULL_POSITION_PCT - COMPLETION_EPSILON:
        cumulative = FULL_POSITION_PCT
        status = PositionStatus.COMPLETED

    return replace(
        position,
        sells=sells,
        percentage_sold=cumulative,
        remaining_investment=_remaining(position.sol_investment, cumulative),
        status=status,
        updated_at=now,
    )


def realized_performance(position: Position) -> Performance:
    """
    Realized P&L of all sells, priced by market cap multiple over entry.

    Degenerate positions (no entry market cap, no sells, unusable investment)
    produce an all-zero Performance instead of an error.
    """
    try:
        investment = float(position.sol_investment)
        entry_mc = float(position.entry_market_cap or 0)
    except (TypeError, ValueError):
        return Performance()
    sells = position.sells or ()
    if (not math.isfinite(investment) or not math.isfinite(entry_mc)
            or entry_mc == 0 or not sells):
        return Performance()

    total_value = 0.0
    cost_of_goods = 0.0
    for sell in sells:
        fraction = (sell.percentage or 0) / 100
        sale_mc = sell.market_cap
        if fraction <= 0 or sale_mc is None or not math.isfinite(sale_mc):
            continue
        cost = investment * fraction
        total_value += cost * (sale_mc / entry_mc)
        cost_of_goods += cost

    realized_pnl = total_value - cost_of_goods
    multiplier = total_value / cost_of_goods if cost_of_goods > 0 else 0.0
    roi = realized_pnl / cost_of_goods * 100 if cost_of_goods > 0 else 0.0

    return Performance(
        realized_pnl=realized_pnl,
        total_value_from_sells=total_value,
        cost_of_goods_sold=cost_of_goods,
        average_sell_multiplier=multiplier,
        roi=roi,
    )


def unrealized_multiple(position: Position, current_market_cap: float) -> float:
    """Current market cap as a multiple of the weighted entry (0 without an entry)."""
    if not position.entry_market_cap or position.entry_market_cap <= 0:
        return 0.0
    return current_market_cap / position.entry_market_cap


def exit_market_cap(position: Position) -> float:
    """Market cap of the last sell, or the entry market cap if nothing was sold."""
    if position.sells:
        return position.sells[-1].market_cap
    return position.entry_market_cap


def hold_duration(position: Position):
    """Time from entry to the last sell (or last update when unsold)."""
    end = position.sells[-1].date if position.sells else position.updated_at
    return end - position.entry_date
