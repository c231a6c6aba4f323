"""Column type inference for raw row values.

Rules are evaluated in a fixed order and the first one that matches every
non-missing value wins: numeric, boolean, date, then text. A column with no
non-missing values is ``unknown``.
"""

from __future__ import annotations

import math
import numbers
from datetime import date, datetime
from typing import Any, Iterable, Optional

import numpy as np
import pandas as pd

from insightdash.models import ColumnType


def is_missing(value: Any) -> bool:
    """Return True for None, empty strings, NaN and NaT."""
    if value is None:
        return True
    if isinstance(value, str):
        return value == ""
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        # list-like cell values are present, not missing
        return False


def non_missing(values: Iterable[Any]) -> list[Any]:
    """Filter out missing values, preserving order."""
    return [v for v in values if not is_missing(v)]


def is_boolean_value(value: Any) -> bool:
    """Native booleans or the exact strings ``"true"`` / ``"false"``."""
    if isinstance(value, (bool, np.bool_)):
        return True
    return value in ("true", "false") if isinstance(value, str) else False


def to_number(value: Any) -> Optional[float]:
    """Parse *value* as a float, returning None when it is not numeric.

    Native booleans are not numbers here, strings must parse completely and
    non-finite results (NaN, infinity) are rejected.
    """
    if isinstance(value, (bool, np.bool_)):
        return None
    if isinstance(value, numbers.Number):
        try:
            result = float(value)
        except (TypeError, ValueError, OverflowError):
            return None
        return result if math.isfinite(result) else None
    if isinstance(value, str):
        text = value.strip()
        if not text or "_" in text:
            return None
        try:
            result = float(text)
        except ValueError:
            return None
        return result if math.isfinite(result) else None
    return None


def to_timestamp(value: Any) -> Optional[pd.Timestamp]:
    """Parse *value* as a calendar date, returning a tz-naive UTC Timestamp.

    Only strings and date/datetime objects are considered. Strings with no
    digit ("now", "today", bare month names) are not dates.
    """
    if not isinstance(value, (str, date, datetime, np.datetime64)):
        return None
    if isinstance(value, str) and not any(ch.isdigit() for ch in value):
        return None
    try:
        ts = pd.Timestamp(value)
    except (ValueError, TypeError, OverflowError):
        return None
    if pd.isna(ts):
        return None
    if ts.tzinfo is not None:
        ts = ts.tz_convert("UTC").tz_localize(None)
    return ts


def infer_column_type(values: list[Any]) -> ColumnType:
    """Classify an already-filtered list of column values.

    Args:
        values: Non-missing values for one column.

    Returns:
        The first matching ColumnType, or ``ColumnType.UNKNOWN`` when empty.
    """
    if not values:
        return ColumnType.UNKNOWN
    if all(to_number(v) is not None for v in values):
        return ColumnType.NUMERIC
    if all(is_boolean_value(v) for v in values):
        return ColumnType.BOOLEAN
    if all(to_timestamp(v) is not None for v in values):
        return ColumnType.DATE
    return ColumnType.TEXT
