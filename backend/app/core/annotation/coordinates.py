# File: backend/app/core/annotation/coordinates.py
# Version: v0.1.0
"""
Numeric and strand coercion helpers shared by every annotation parser and by
the normalization pipeline.

Annotation sources disagree on key names (`stop` vs `end` vs `mapStop`) and on
value types (strings from CSV, numbers from JSON). These helpers resolve both
with ordered, short-circuit lookups so that the priority order stays identical
everywhere it is used.
"""

from __future__ import annotations

import math
from typing import Any, Iterable, Mapping, Optional, Tuple, Union

Number = Union[int, float]

START_KEYS: Tuple[str, ...] = ("start", "begin", "mapStart")
STOP_KEYS: Tuple[str, ...] = ("stop", "end", "mapStop")

_REVERSE_WORDS = {"-", "reverse", "rev", "-1", "negative"}
_FORWARD_WORDS = {"+", "forward", "fwd", "1", "positive"}


def to_number(value: Any) -> Optional[Number]:
    """
    Coerce a value to a finite number, or return None.

    Integral values come back as int so coordinates read from text keep their
    integer form. Booleans are not numbers here.
    """
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            return None
        return int(value) if value.is_integer() else value
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            parsed = float(text)
        except ValueError:
            return None
        if not math.isfinite(parsed):
            return None
        return int(parsed) if parsed.is_integer() else parsed
    return None


def first_number(record: Mapping[str, Any], keys: Iterable[str]) -> Optional[Number]:
    """Return the first key in `keys` whose value coerces to a finite number."""
    for key in keys:
        if key not in record:
            continue
        value = to_number(record[key])
        if value is not None:
            return value
    return None


def first_text(record: Mapping[str, Any], keys: Iterable[str]) -> Optional[str]:
    """Return the first non-blank string value among `keys` (untrimmed)."""
    for key in keys:
        value = record.get(key)
        if isinstance(value, str) and value.strip():
            return value
    return None


def ordered_span(a: Number, b: Number) -> Tuple[Number, Number]:
    """Order two coordinates as (start, stop), clamped at zero."""
    lo, hi = (a, b) if a <= b else (b, a)
    return max(0, lo), max(0, hi)


def normalize_strand(value: Any) -> int:
    """
    Map a strand token to +1 / -1.

    Accepts a numeric sign, '+'/'-', or forward/fwd/positive and
    reverse/rev/negative (case-insensitive). Anything unrecognized is +1.
    """
    if isinstance(value, bool):
        return 1
    if isinstance(value, (int, float)):
        return 1 if value >= 0 else -1
    if isinstance(value, str):
        token = value.strip().lower()
        if token in _REVERSE_WORDS:
            return -1
        if token in _FORWARD_WORDS:
            return 1
        number = to_number(token)
        if number is not None:
            return 1 if number >= 0 else -1
    return 1


def feature_span(record: Any) -> Optional[Tuple[Number, Number]]:
    """
    Resolve (start, stop) for an arbitrary feature record.

    A missing side is anchored to the present one; both missing yields None.
    """
    if not isinstance(record, Mapping):
        return None
    start = first_number(record, START_KEYS)
    stop = first_number(record, STOP_KEYS)
    if start is None and stop is None:
        return None
    safe_start = start if start is not None else stop
    safe_stop = stop if stop is not None else safe_start
    return safe_start, safe_stop


def feature_stop(record: Any) -> Optional[Number]:
    """Return the declared stop (`stop`/`end`/`mapStop`) of a feature record."""
    if not isinstance(record, Mapping):
        return None
    return first_number(record, STOP_KEYS)


def max_feature_stop(features: Iterable[Any]) -> Number:
    """Largest declared stop across features, 0 when none is present."""
    best: Number = 0
    for feature in features:
        stop = feature_stop(feature)
        if stop is not None and stop > best:
            best = stop
    return best
