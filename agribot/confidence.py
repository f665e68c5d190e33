# File: agribot/confidence.py

import math

EMPTY_CONFIDENCE = 0.5
MISSING_CONFIDENCE = 0.7
FALLBACK_FLOOR = 0.40
FALLBACK_CEILING = 0.95


def clamp_unit(value):
    """Clamps a confidence into [0, 1]; NaN becomes 0."""
    if value is None or math.isnan(value):
        return 0.0
    return max(0.0, min(1.0, float(value)))


def clamp_fallback(value):
    """Clamps a rule-based confidence into the fallback band."""
    if value is None or math.isnan(value):
        return FALLBACK_FLOOR
    return max(FALLBACK_FLOOR, min(FALLBACK_CEILING, float(value)))


def _confidence_of(record):
    if isinstance(record, dict):
        return record.get('confidence')
    if isinstance(record, (int, float)):
        return record
    return getattr(record, 'confidence', None)


def aggregate(records):
    """
    Reduces per-record confidences to one score.

    Records may be dataclass records, dicts with a 'confidence' key or bare
    numbers. A missing confidence counts as 0.7; an empty list gives 0.5.
    """
    records = list(records or ())
    if not records:
        return EMPTY_CONFIDENCE
    values = []
    for record in records:
        value = _confidence_of(record)
        values.append(MISSING_CONFIDENCE if value is None else clamp_unit(value))
    return round(sum(values) / len(values), 2)
