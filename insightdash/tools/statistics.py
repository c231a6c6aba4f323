"""Per-column descriptive statistics keyed by inferred column type.

Validates: count + missing equals the number of rows in scope for every
column, whatever its type.
"""

from __future__ import annotations

import math
from collections import Counter
from typing import Any, Sequence

import numpy as np

from insightdash.models import ColumnType, validate_dataset
from insightdash.tools.type_inference import (
    infer_column_type,
    is_boolean_value,
    non_missing,
    to_number,
    to_timestamp,
)

TOP_VALUES_LIMIT = 10
PERCENTILES = {"p25": 0.25, "p50": 0.5, "p75": 0.75}
SECONDS_PER_DAY = 60 * 60 * 24


def stringify(value: Any) -> str:
    """Render a cell value the way it is counted for uniqueness."""
    if isinstance(value, (bool, np.bool_)):
        return "true" if value else "false"
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        return str(int(value))
    return str(value)


def _numeric_statistics(values: list[Any]) -> dict:
    """min/max/sum/mean/median/std_dev and floor-index percentiles."""
    arr = np.sort(np.array([to_number(v) for v in values], dtype=float))
    n = len(arr)
    total = float(arr.sum())
    mean = total / n

    if arr[0] == arr[-1]:
        std_dev = 0.0
    else:
        std_dev = float(np.sqrt(np.mean((arr - mean) ** 2)))

    if n % 2 == 0:
        median = float((arr[n // 2 - 1] + arr[n // 2]) / 2)
    else:
        median = float(arr[n // 2])

    return {
        "min": float(arr[0]),
        "max": float(arr[-1]),
        "sum": total,
        "mean": mean,
        "median": median,
        "std_dev": std_dev,
        "percentiles": {
            name: float(arr[math.floor(n * p)]) for name, p in PERCENTILES.items()
        },
        "is_approximate": False,
    }


def top_values(counts: Counter, total: int, limit: int = TOP_VALUES_LIMIT) -> list[dict]:
    """Most frequent values with their share of *total*, highest count first."""
    return [
        {"value": value, "count": count, "percentage": count / total * 100}
        for value, count in counts.most_common(limit)
    ]


def _text_statistics(values: list[Any]) -> dict:
    strings = [stringify(v) for v in values]
    return {
        "top_values": top_values(Counter(strings), len(strings)),
        "avg_length": sum(len(s) for s in strings) / len(strings),
    }


def _date_statistics(values: list[Any]) -> dict:
    stamps = sorted(to_timestamp(v) for v in values)
    earliest, latest = stamps[0], stamps[-1]
    return {
        "earliest": earliest.isoformat(),
        "latest": latest.isoformat(),
        "time_range_in_days": (latest - earliest).total_seconds() / SECONDS_PER_DAY,
    }


def _boolean_statistics(values: list[Any]) -> dict:
    true_count = sum(1 for v in values if is_boolean_value(v) and v in (True, "true"))
    true_pct = true_count / len(values) * 100
    return {
        "true_count": true_count,
        "false_count": len(values) - true_count,
        "true_percentage": true_pct,
        "false_percentage": 100 - true_pct,
    }


_TYPE_STATISTICS = {
    ColumnType.NUMERIC: _numeric_statistics,
    ColumnType.TEXT: _text_statistics,
    ColumnType.DATE: _date_statistics,
    ColumnType.BOOLEAN: _boolean_statistics,
}


def column_statistics(values: Sequence[Any], total_rows: int | None = None) -> dict:
    """Compute statistics for the raw values of a single column.

    Args:
        values: Every cell of the column, missing ones included.
        total_rows: Rows in scope; defaults to ``len(values)``.

    Returns:
        Dict with ``type``, ``count``, ``missing``, ``unique_count`` and the
        fields for the inferred type. Unknown columns carry no extra fields.
    """
    if total_rows is None:
        total_rows = len(values)
    present = non_missing(values)
    column_type = infer_column_type(present)

    stats: dict = {
        "type": column_type.value,
        "count": len(present),
        "missing": total_rows - len(present),
        "unique_count": len({stringify(v) for v in present}),
    }
    builder = _TYPE_STATISTICS.get(column_type)
    if builder is not None:
        stats.update(builder(present))
    return stats


def generate_statistics(rows: Sequence[dict], headers: Sequence[str]) -> dict[str, dict]:
    """Build a statistics mapping for every header over *rows*.

    Raises:
        InvalidDatasetError: If rows/headers are malformed.
    """
    validate_dataset(rows, headers)
    total_rows = len(rows)
    return {
        header: column_statistics([row.get(header) for row in rows], total_rows)
        for header in headers
    }
