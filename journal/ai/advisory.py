"""Pull bullet-point recommendations and warnings out of free-form coach text."""
import re
from dataclasses import dataclass, field
from typing import List

from journal.utils.constants import DEFAULT_CONFIDENCE

_BULLET = re.compile(r"^[-•]\s*")
_RECOMMENDATION = re.compile(r"^[-•]\s*(?:recommend|suggest|consider)", re.IGNORECASE)
_WARNING = re.compile(r"^[-•]\s*(?:warning|caution|risk|concern)", re.IGNORECASE)
_CONFIDENCE = re.compile(r"confidence[:\s]+(\d+)", re.IGNORECASE)


@dataclass
class Advisory:
    recommendations: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


def parse_advisory_text(text: str) -> Advisory:
    """Split coach output into recommendation and warning bullet lines."""
    advisory = Advisory()
    for line in (text or "").split("\n"):
        if _RECOMMENDATION.match(line):
            advisory.recommendations.append(_BULLET.sub("", line).strip())
        elif _WARNING.match(line):
            advisory.warnings.append(_BULLET.sub("", line).strip())
    return advisory


def extract_confidence(text: str, default: int = DEFAULT_CONFIDENCE) -> int:
    match = _CONFIDENCE.search(text or "")
    return int(match.group(1)) if match else default
