"""Snapshot codec: journal dataclasses to and from JSON-safe dicts."""
from dataclasses import asdict, fields
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from journal.core.ledger import (
    BehaviorData, BuyEvent, Position, PositionStatus, SellEvent, TimeOfDay,
)
from journal.core.reflection import Reflection, RepeatDecision


def json_default(obj):
    """Convert datetimes and enums for JSON serialization."""
    if isinstance(obj, datetime):
        return obj.isoformat()
    if isinstance(obj, Enum):
        return obj.value
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def _jsonable(value: Any) -> Any:
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    if isinstance(value, (datetime, Enum)):
        return json_default(value)
    return value


def _known(cls, data: Dict[str, Any]) -> Dict[str, Any]:
    names = {f.name for f in fields(cls)}
    return {k: v for k, v in data.items() if k in names}


def _dt(value) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


def encode(record) -> Dict[str, Any]:
    """Encode any journal dataclass to a JSON-safe dict."""
    return _jsonable(asdict(record))


def decode_position(data: Dict[str, Any]) -> Position:
    data = _known(Position, data)
    buys = tuple(
        BuyEvent(**{**_known(BuyEvent, b), 'date': _dt(b['date'])})
        for b in data.get('buys', [])
    )
    sells = tuple(
        SellEvent(**{
            **_known(SellEvent, s),
            'date': _dt(s['date']),
            'time_of_day': TimeOfDay(s.get('time_of_day', TimeOfDay.AFTERNOON.value)),
        })
        for s in data.get('sells', [])
    )
    return Position(**{
        **data,
        'buys': buys,
        'sells': sells,
        'status': PositionStatus(data.get('status', PositionStatus.ACTIVE.value)),
        'behavioral': BehaviorData(**_known(BehaviorData, data.get('behavioral') or {})),
        'entry_date': _dt(data['entry_date']),
        'created_at': _dt(data['created_at']),
        'updated_at': _dt(data['updated_at']),
        'ath_date': _dt(data.get('ath_date')),
    })


def decode_reflection(data: Dict[str, Any]) -> Reflection:
    data = _known(Reflection, data)
    return Reflection(**{
        **data,
        'reflection_date': _dt(data['reflection_date']),
        'would_repeat_trade': RepeatDecision(data.get('would_repeat_trade', RepeatDecision.MAYBE.value)),
        'key_mistakes': tuple(data.get('key_mistakes', ())),
        'emotional_state_tags': tuple(data.get('emotional_state_tags', ())),
        'market_condition_tags': tuple(data.get('market_condition_tags', ())),
    })
