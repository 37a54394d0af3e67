"""Post-trade reflections attached to completed positions."""
import uuid
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple

from journal.core.errors import ReflectionError
from journal.core.ledger import Position
from journal.utils.constants import MAX_SCALE, MIN_SCALE


class RepeatDecision(str, Enum):
    YES = "Yes"
    NO = "No"
    MAYBE = "Maybe"


@dataclass(frozen=True)
class Reflection:
    """Immutable reflection on one completed position."""
    id: str
    trade_id: str
    reflection_date: datetime
    decision_quality: int
    what_went_well: str = ""
    what_could_be_improved: str = ""
    key_mistakes: Tuple[str, ...] = ()
    lessons_learned: str = ""
    would_repeat_trade: RepeatDecision = RepeatDecision.MAYBE
    alternative_actions: str = ""
    emotional_state_tags: Tuple[str, ...] = ()
    market_condition_tags: Tuple[str, ...] = ()


def create_reflection(
    position: Position,
    decision_quality: int,
    existing: Optional[Reflection] = None,
    *,
    what_went_well: str = "",
    what_could_be_improved: str = "",
    key_mistakes=(),
    lessons_learned: str = "",
    would_repeat_trade: RepeatDecision = RepeatDecision.MAYBE,
    alternative_actions: str = "",
    emotional_state_tags=(),
    market_condition_tags=(),
    now: Optional[datetime] = None,
) -> Reflection:
    """
    Build a reflection for a completed position.

    Raises:
        ReflectionError: position still active, already reflected,
            or decision quality outside 1..10
    """
    if position.is_active:
        raise ReflectionError(f"Position {position.id} is still active; reflect after it completes")
    if existing is not None:
        raise ReflectionError(f"Position {position.id} already has reflection {existing.id}")
    if isinstance(decision_quality, bool) or not isinstance(decision_quality, int) \
            or not MIN_SCALE <= decision_quality <= MAX_SCALE:
        raise ReflectionError(
            f"Decision quality must be an integer {MIN_SCALE}-{MAX_SCALE}, got {decision_quality!r}"
        )

    return Reflection(
        id=f"reflection_{uuid.uuid4().hex[:12]}",
        trade_id=position.id,
        reflection_date=now or datetime.utcnow(),
        decision_quality=decision_quality,
        what_went_well=what_went_well,
        what_could_be_improved=what_could_be_improved,
        key_mistakes=tuple(key_mistakes),
        lessons_learned=lessons_learned,
        would_repeat_trade=RepeatDecision(would_repeat_trade),
        alternative_actions=alternative_actions,
        emotional_state_tags=tuple(emotional_state_tags),
        market_condition_tags=tuple(market_condition_tags),
    )
