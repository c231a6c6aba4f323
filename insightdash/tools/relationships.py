"""Relationship mining between columns.

Finds pairwise Pearson correlations between numeric columns and numeric
metrics that vary across the categories of a low-cardinality text column.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np

from insightdash.models import ColumnType, validate_dataset
from insightdash.tools.type_inference import is_missing, to_number

MIN_ROWS = 30
MIN_PAIRS = 30
MIN_CORRELATION = 0.3
MAX_CATEGORIES = 20
MIN_CATEGORY_ROWS = 5
MIN_CATEGORY_SPREAD = 1.3


def calculate_correlation(pairs: Sequence[tuple[float, float]]) -> float:
    """Pearson correlation coefficient using the sum-based formula.

    Returns 0.0 for empty input or when either side has zero variance.
    """
    n = len(pairs)
    if n == 0:
        return 0.0
    data = np.asarray(pairs, dtype=float)
    x, y = data[:, 0], data[:, 1]
    if x.min() == x.max() or y.min() == y.max():
        return 0.0

    sum_x, sum_y = float(x.sum()), float(y.sum())
    sum_xy = float((x * y).sum())
    sum_x2, sum_y2 = float((x * x).sum()), float((y * y).sum())

    numerator = n * sum_xy - sum_x * sum_y
    spread = (n * sum_x2 - sum_x * sum_x) * (n * sum_y2 - sum_y * sum_y)
    if spread <= 0:
        return 0.0
    r = numerator / float(np.sqrt(spread))
    return max(-1.0, min(1.0, r))


def _numeric_pairs(rows: Sequence[dict], col1: str, col2: str) -> list[tuple[float, float]]:
    pairs = []
    for row in rows:
        x, y = row.get(col1), row.get(col2)
        if is_missing(x) or is_missing(y):
            continue
        x_num, y_num = to_number(x), to_number(y)
        if x_num is None or y_num is None:
            continue
        pairs.append((x_num, y_num))
    return pairs


def _correlations(rows: Sequence[dict], numeric_columns: list[str]) -> list[dict]:
    found = []
    for i in range(len(numeric_columns) - 1):
        for j in range(i + 1, len(numeric_columns)):
            col1, col2 = numeric_columns[i], numeric_columns[j]
            pairs = _numeric_pairs(rows, col1, col2)
            if len(pairs) < MIN_PAIRS:
                continue
            strength = calculate_correlation(pairs)
            if abs(strength) < MIN_CORRELATION:
                continue
            direction = "Positive" if strength > 0 else "Negative"
            found.append(
                {
                    "type": "correlation",
                    "columns": [col1, col2],
                    "strength": strength,
                    "description": (
                        f"{direction} correlation of {abs(strength):.2f} "
                        f"between {col1} and {col2}"
                    ),
                }
            )
    return found


def category_averages(rows: Sequence[dict], category_column: str, metric_column: str) -> list[dict]:
    """Mean of *metric_column* per category, dropping sparse categories."""
    groups: dict[str, list[float]] = {}
    for row in rows:
        category, metric = row.get(category_column), row.get(metric_column)
        if is_missing(category) or is_missing(metric):
            continue
        value = to_number(metric)
        if value is None:
            continue
        bucket = groups.setdefault(str(category), [0.0, 0])
        bucket[0] += value
        bucket[1] += 1

    return [
        {"category": category, "average": total / count, "count": count}
        for category, (total, count) in groups.items()
        if count >= MIN_CATEGORY_ROWS
    ]


def _category_metrics(
    rows: Sequence[dict], category_columns: list[str], numeric_columns: list[str]
) -> list[dict]:
    found = []
    for cat_col in category_columns:
        for num_col in numeric_columns:
            averages = category_averages(rows, cat_col, num_col)
            if len(averages) < 2:
                continue
            low = min(a["average"] for a in averages)
            high = max(a["average"] for a in averages)
            if high < low * MIN_CATEGORY_SPREAD:
                continue
            found.append(
                {
                    "type": "category_metric",
                    "category_column": cat_col,
                    "metric_column": num_col,
                    "categories": averages,
                    "description": (
                        f"{num_col} varies significantly across different "
                        f"{cat_col} categories"
                    ),
                }
            )
    return found


def identify_relationships(
    rows: Sequence[dict], headers: Sequence[str], stats: dict[str, dict]
) -> list[dict]:
    """Find correlations and category effects among the profiled columns.

    Correlations come first, in column-pair order, followed by category-metric
    relationships in category-column then metric-column order. Nothing is
    mined unless there are at least two numeric columns and 30 rows.

    Args:
        rows: Rows to mine (whole dataset or a sample of it).
        headers: Column names.
        stats: Statistics mapping from ``generate_statistics`` or the chunk
            aggregator.

    Returns:
        List of relationship dicts.
    """
    validate_dataset(rows, headers)
    numeric_columns = [
        h for h in headers if stats.get(h, {}).get("type") == ColumnType.NUMERIC.value
    ]
    if len(numeric_columns) < 2 or len(rows) < MIN_ROWS:
        return []

    category_columns = [
        h
        for h in headers
        if stats.get(h, {}).get("type") == ColumnType.TEXT.value
        and stats[h].get("unique_count", 0) <= MAX_CATEGORIES
    ]
    return _correlations(rows, numeric_columns) + _category_metrics(
        rows, category_columns, numeric_columns
    )
