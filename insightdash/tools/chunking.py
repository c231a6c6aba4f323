"""Chunk-wise statistics for datasets too large to profile in one pass.

Rows are split into contiguous chunks, each chunk is profiled on its own and
the per-chunk statistics are merged into one whole-dataset summary. Counts,
min/max, sum and mean merge exactly. Median, standard deviation, percentiles
and top values cannot be recovered exactly from chunk summaries; they are
estimated and listed under ``approximate_fields``. Unique counts are exact
when the distinct values are tallied over every row, which
``process_in_chunks`` does.

Top values are merged from each chunk's own top list, so a value that is
common overall but never in any single chunk's top list is undercounted.
Fixing that needs a second pass or a frequency sketch.
"""

from __future__ import annotations

import logging
import math
from collections import Counter
from typing import Optional, Sequence

from insightdash.models import ColumnType, ProcessedData, validate_dataset
from insightdash.tools.statistics import (
    PERCENTILES,
    SECONDS_PER_DAY,
    generate_statistics,
    stringify,
    top_values,
)
from insightdash.tools.type_inference import is_missing, to_timestamp

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 5000
SAMPLE_HEAD_ROWS = 50
SAMPLE_TAIL_ROWS = 50


def split_into_chunks(rows: Sequence[dict], chunk_size: int) -> list[list[dict]]:
    """Partition *rows* into contiguous chunks of at most *chunk_size* rows."""
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")
    return [list(rows[i : i + chunk_size]) for i in range(0, len(rows), chunk_size)]


def _weighted_average(pairs: list[tuple[float, int]]) -> float:
    total = sum(count for _, count in pairs)
    return sum(value * count for value, count in pairs) / total


def _merge_numeric(parts: list[dict], count: int) -> dict:
    low = min(p["min"] for p in parts)
    high = max(p["max"] for p in parts)
    mean = sum(p["mean"] * p["count"] for p in parts) / count

    if low == high:
        std_dev = 0.0
    else:
        # pooled population variance from per-chunk mean/std
        variance = sum(
            p["count"] * (p["std_dev"] ** 2 + (p["mean"] - mean) ** 2) for p in parts
        ) / count
        std_dev = math.sqrt(max(variance, 0.0))

    return {
        "min": low,
        "max": high,
        "sum": sum(p["sum"] for p in parts),
        "mean": mean,
        "median": _weighted_average([(p["median"], p["count"]) for p in parts]),
        "std_dev": std_dev,
        "percentiles": {
            name: _weighted_average([(p["percentiles"][name], p["count"]) for p in parts])
            for name in PERCENTILES
        },
    }


def _merge_text(parts: list[dict], count: int) -> dict:
    counts: Counter = Counter()
    for part in parts:
        for entry in part.get("top_values", []):
            counts[entry["value"]] += entry["count"]
    return {
        "top_values": top_values(counts, count),
        "avg_length": _weighted_average([(p["avg_length"], p["count"]) for p in parts]),
    }


def _merge_date(parts: list[dict], count: int) -> dict:
    earliest = min(to_timestamp(p["earliest"]) for p in parts)
    latest = max(to_timestamp(p["latest"]) for p in parts)
    return {
        "earliest": earliest.isoformat(),
        "latest": latest.isoformat(),
        "time_range_in_days": (latest - earliest).total_seconds() / SECONDS_PER_DAY,
    }


def _merge_boolean(parts: list[dict], count: int) -> dict:
    true_count = sum(p["true_count"] for p in parts)
    true_pct = true_count / count * 100
    return {
        "true_count": true_count,
        "false_count": count - true_count,
        "true_percentage": true_pct,
        "false_percentage": 100 - true_pct,
    }


_MERGERS = {
    ColumnType.NUMERIC.value: (_merge_numeric, ["median", "std_dev", "percentiles"]),
    ColumnType.TEXT.value: (_merge_text, ["top_values"]),
    ColumnType.DATE.value: (_merge_date, []),
    ColumnType.BOOLEAN.value: (_merge_boolean, []),
}


def distinct_counts(rows: Sequence[dict], headers: Sequence[str]) -> dict[str, int]:
    """Exact number of distinct non-missing values per column over *rows*."""
    counts = {}
    for header in headers:
        seen = set()
        for row in rows:
            value = row.get(header)
            if not is_missing(value):
                seen.add(stringify(value))
        counts[header] = len(seen)
    return counts


def merge_column_statistics(
    header: str, parts: list[dict], unique_count: Optional[int] = None
) -> tuple[dict, Optional[str]]:
    """Merge one column's per-chunk statistics.

    The column type comes from the first chunk with a known type. Chunks that
    inferred a different type only contribute to ``count`` and ``missing``.

    Args:
        header: Column name, used in the conflict warning.
        parts: Per-chunk statistics for the column.
        unique_count: Exact distinct count over the whole column. Without it
            the largest per-chunk count is used, which is only a lower bound.

    Returns:
        Tuple of (merged statistics, type-conflict warning or None).
    """
    estimated = ["unique_count"] if unique_count is None else []
    if unique_count is None:
        unique_count = max((p["unique_count"] for p in parts), default=0)

    merged: dict = {
        "type": ColumnType.UNKNOWN.value,
        "count": sum(p["count"] for p in parts),
        "missing": sum(p["missing"] for p in parts),
        "unique_count": unique_count,
        "is_approximate": True,
        "approximate_fields": list(estimated),
    }

    typed = [p for p in parts if p["type"] != ColumnType.UNKNOWN.value]
    if not typed:
        return merged, None

    column_type = typed[0]["type"]
    matching = [p for p in typed if p["type"] == column_type]
    merged["type"] = column_type

    merger, approximate = _MERGERS[column_type]
    merged.update(merger(matching, sum(p["count"] for p in matching)))
    merged["approximate_fields"] = [*estimated, *approximate]

    conflicts = sorted({p["type"] for p in typed} - {column_type})
    if not conflicts:
        return merged, None

    merged["type_conflicts"] = conflicts
    skipped = len(typed) - len(matching)
    warning = (
        f"Column '{header}' inferred as {column_type} but {skipped} chunk(s) "
        f"looked like {', '.join(conflicts)}; those chunks were left out of "
        f"the {column_type} statistics."
    )
    return merged, warning


def combine_chunk_statistics(
    chunk_stats: Sequence[dict[str, dict]],
    headers: Sequence[str],
    unique_counts: Optional[dict[str, int]] = None,
) -> tuple[dict[str, dict], list[str]]:
    """Merge per-chunk statistics mappings into one mapping.

    Args:
        chunk_stats: One statistics mapping per chunk.
        headers: Column names.
        unique_counts: Optional exact distinct counts keyed by header.

    Returns:
        Tuple of (combined statistics keyed by header, data-quality warnings).
    """
    unique_counts = unique_counts or {}
    combined: dict[str, dict] = {}
    warnings: list[str] = []
    for header in headers:
        parts = [cs[header] for cs in chunk_stats if header in cs]
        if not parts:
            continue
        merged, warning = merge_column_statistics(
            header, parts, unique_counts.get(header)
        )
        combined[header] = merged
        if warning:
            logger.warning(warning)
            warnings.append(warning)
    return combined, warnings


def process_in_chunks(
    rows: Sequence[dict],
    headers: Sequence[str],
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> ProcessedData:
    """Profile *rows*, splitting into chunks when there are more than *chunk_size*.

    Args:
        rows: Dataset rows.
        headers: Column names.
        chunk_size: Maximum rows per chunk.

    Returns:
        ProcessedData. For chunked datasets ``data`` holds the first rows of
        the first chunk followed by the last rows of the last chunk.

    Raises:
        InvalidDatasetError: If rows/headers are malformed.
        ValueError: If chunk_size is not positive.
    """
    validate_dataset(rows, headers)
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")

    logger.info(f"Processing {len(rows)} rows of data in chunks of {chunk_size}")

    if len(rows) <= chunk_size:
        return ProcessedData(
            data=list(rows),
            headers=list(headers),
            statistics=generate_statistics(rows, headers),
            total_rows=len(rows),
            chunk_size=chunk_size,
        )

    chunks = split_into_chunks(rows, chunk_size)
    logger.info(f"Split data into {len(chunks)} chunks")

    chunk_stats = [generate_statistics(chunk, headers) for chunk in chunks]
    combined, warnings = combine_chunk_statistics(
        chunk_stats, headers, distinct_counts(rows, headers)
    )

    return ProcessedData(
        data=chunks[0][:SAMPLE_HEAD_ROWS] + chunks[-1][-SAMPLE_TAIL_ROWS:],
        headers=list(headers),
        statistics=combined,
        total_rows=len(rows),
        processed_in_chunks=True,
        num_chunks=len(chunks),
        chunk_size=chunk_size,
        warnings=warnings,
    )
