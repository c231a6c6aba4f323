"""Prompt-ready data representation: samples, unique values, statistics.

The representation bounds how much row data reaches a prompt regardless of
dataset size: at most five head rows, five tail rows and three positional
samples, plus up to 50 distinct values for low-cardinality columns.
"""

from __future__ import annotations

import logging
import math
from datetime import date, datetime
from typing import Any, Sequence

import numpy as np

from insightdash.models import (
    NO_RELATIONSHIPS,
    DataRepresentation,
    ProcessedData,
    validate_dataset,
)
from insightdash.tools.chunking import DEFAULT_CHUNK_SIZE, process_in_chunks
from insightdash.tools.relationships import identify_relationships
from insightdash.tools.statistics import stringify
from insightdash.tools.type_inference import is_missing

logger = logging.getLogger(__name__)

SAMPLE_EDGE_ROWS = 5
RANDOM_SAMPLE_MIN_ROWS = 20
RANDOM_SAMPLE_POSITIONS = (0.25, 0.5, 0.75)
MAX_UNIQUE_VALUES = 100
UNIQUE_VALUES_LIMIT = 50


def json_safe(value: Any) -> Any:
    """Convert a cell value into something ``json.dumps`` accepts strictly."""
    if is_missing(value):
        return None
    if isinstance(value, np.generic):
        value = value.item()
    if isinstance(value, float) and not math.isfinite(value):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (str, int, float, bool)):
        return value
    return str(value)


def clean_row(row: dict, headers: Sequence[str]) -> dict:
    """Restrict *row* to *headers*, in header order, with JSON-safe values."""
    return {header: json_safe(row.get(header)) for header in headers}


def get_random_samples(data: Sequence[dict]) -> list[dict]:
    """Rows at the 25%, 50% and 75% positions; empty for 20 rows or fewer.

    Positional rather than random so repeated analyses of one dataset see the
    same rows.
    """
    if len(data) <= RANDOM_SAMPLE_MIN_ROWS:
        return []
    indices = [math.floor(len(data) * p) for p in RANDOM_SAMPLE_POSITIONS]
    return [data[idx] for idx in indices if idx < len(data)]


def extract_unique_values(
    rows: Sequence[dict],
    headers: Sequence[str],
    max_unique: int = MAX_UNIQUE_VALUES,
    limit: int = UNIQUE_VALUES_LIMIT,
) -> dict[str, list]:
    """Distinct values per column for columns with at most *max_unique* of them.

    Values are listed in first-seen order and capped at *limit*. Missing cells
    are not counted as values.
    """
    unique_values: dict[str, list] = {}
    for header in headers:
        seen: dict[str, Any] = {}
        for row in rows:
            value = row.get(header)
            if is_missing(value):
                continue
            key = stringify(value)
            if key not in seen:
                seen[key] = value
                if len(seen) > max_unique:
                    break
        if len(seen) <= max_unique:
            unique_values[header] = [json_safe(v) for v in list(seen.values())[:limit]]
    return unique_values


def profile_dataset(
    rows: Sequence[dict],
    headers: Sequence[str],
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    mine_full_dataset: bool = True,
) -> tuple[ProcessedData, DataRepresentation]:
    """Run the full profiling pipeline over one dataset.

    Args:
        rows: Dataset rows.
        headers: Column names.
        chunk_size: Rows per chunk for large datasets.
        mine_full_dataset: Mine relationships over every row. When False,
            chunked datasets are mined over their head+tail sample only.

    Returns:
        Tuple of (processed data, data representation).

    Raises:
        InvalidDatasetError: If rows/headers are malformed.
    """
    validate_dataset(rows, headers)
    processed = process_in_chunks(rows, headers, chunk_size)

    mining_rows = rows
    if processed.processed_in_chunks and not mine_full_dataset:
        mining_rows = processed.data
    relationships = identify_relationships(mining_rows, headers, processed.statistics)
    logger.info(
        f"Profiled {processed.total_rows} rows: {len(relationships)} relationship(s) "
        f"found over {len(mining_rows)} rows"
    )

    data = processed.data
    representation = DataRepresentation(
        sample_rows={
            "first5": [clean_row(r, headers) for r in data[:SAMPLE_EDGE_ROWS]],
            "last5": [clean_row(r, headers) for r in data[-SAMPLE_EDGE_ROWS:]],
            "random_samples": [clean_row(r, headers) for r in get_random_samples(data)],
        },
        total_rows_analyzed=processed.total_rows,
        unique_values_per_column=extract_unique_values(rows, headers),
        statistics=processed.statistics,
        relationships=relationships or NO_RELATIONSHIPS,
        warnings=list(processed.warnings),
    )
    return processed, representation


def build_data_representation(
    rows: Sequence[dict],
    headers: Sequence[str],
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    mine_full_dataset: bool = True,
) -> DataRepresentation:
    """Return only the data representation for *rows*."""
    return profile_dataset(rows, headers, chunk_size, mine_full_dataset)[1]
