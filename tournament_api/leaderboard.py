"""Ordering for reaction-game scores, which are stored as strings like ``"0.812s"``."""

from __future__ import annotations

import math
import re
from typing import Iterable, List, Optional, Tuple, TypeVar

_LEADING_NUMBER_RE = re.compile(r"^\s*([0-9]+(?:\.[0-9]*)?|\.[0-9]+)")

T = TypeVar("T")


def score_value(score: str) -> Optional[float]:
    """Leading number of a score string, or None when it has none."""
    match = _LEADING_NUMBER_RE.match(score or "")
    if not match:
        return None
    return float(match.group(1))


def reaction_time_key(score: str) -> Tuple[float, str]:
    """Lower times first; strings without a leading number go last, in text order."""
    value = score_value(score)
    return (math.inf if value is None else value, score or "")


def best_first(scores: Iterable[T], limit: int) -> List[T]:
    """Sort score records (anything with a ``score`` attribute) best first and cap them."""
    ordered = sorted(scores, key=lambda entry: reaction_time_key(entry.score))
    return ordered[: max(limit, 0)]
