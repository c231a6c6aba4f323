"""Core data models for the dataset profiler and chat pipeline."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Optional

from typing_extensions import TypedDict


NO_RELATIONSHIPS = "no significant relationships identified"


class ColumnType(str, Enum):
    """Inferred type of a column within one dataset or chunk."""

    NUMERIC = "numeric"
    BOOLEAN = "boolean"
    DATE = "date"
    TEXT = "text"
    UNKNOWN = "unknown"


class InvalidDatasetError(ValueError):
    """Raised when rows/headers do not have the shape of a dataset.

    Distinguishes corrupt input from a dataset that simply has no data.
    """


def validate_dataset(rows: Any, headers: Any) -> None:
    """Check the ``{rows, headers}`` input contract.

    Args:
        rows: Sequence of row mappings.
        headers: Sequence of unique column-name strings.

    Raises:
        InvalidDatasetError: If headers are missing, not strings, duplicated,
            or if rows is not a sequence of mappings.
    """
    if headers is None:
        raise InvalidDatasetError("Dataset headers are required")
    if isinstance(headers, (str, bytes)) or not isinstance(headers, Sequence):
        raise InvalidDatasetError(
            f"Headers must be a sequence of strings, got {type(headers).__name__}"
        )
    bad = [h for h in headers if not isinstance(h, str)]
    if bad:
        raise InvalidDatasetError(f"Headers must be strings, got {bad[:5]!r}")
    if len(set(headers)) != len(headers):
        dupes = sorted({h for h in headers if headers.count(h) > 1})
        raise InvalidDatasetError(f"Duplicate headers: {dupes}")

    if rows is None:
        raise InvalidDatasetError("Dataset rows are required")
    if isinstance(rows, (str, bytes, Mapping)) or not isinstance(rows, Sequence):
        raise InvalidDatasetError(
            f"Rows must be a sequence of mappings, got {type(rows).__name__}"
        )
    for index, row in enumerate(rows):
        if not isinstance(row, Mapping):
            raise InvalidDatasetError(
                f"Row {index} is {type(row).__name__}, expected a mapping"
            )


@dataclass
class ProcessedData:
    """Statistics for a dataset plus the rows kept for prompt sampling.

    For small datasets ``data`` is every row; for chunked datasets it is the
    first rows of the first chunk followed by the last rows of the last chunk.
    """

    data: list[dict] = field(default_factory=list)
    headers: list[str] = field(default_factory=list)
    statistics: dict[str, dict] = field(default_factory=dict)
    total_rows: int = 0
    processed_in_chunks: bool = False
    num_chunks: int = 1
    chunk_size: Optional[int] = None
    warnings: list[str] = field(default_factory=list)


@dataclass
class DataRepresentation:
    """JSON-serializable summary of a dataset embedded into LLM prompts."""

    sample_rows: dict[str, list[dict]] = field(default_factory=dict)
    total_rows_analyzed: int = 0
    unique_values_per_column: dict[str, list] = field(default_factory=dict)
    statistics: dict[str, dict] = field(default_factory=dict)
    relationships: list[dict] | str = NO_RELATIONSHIPS
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


class ChatState(TypedDict, total=False):
    """State object shared across the analysis graph nodes."""

    # Input
    file_path: str
    rows: Optional[list[dict]]
    headers: Optional[list[str]]
    messages: list[dict]
    chunk_size: int

    # Profiling
    processed: Optional[ProcessedData]
    representation: Optional[DataRepresentation]

    # Answer
    answer: Optional[str]

    # Output
    output_dir: str
    report_path: Optional[str]

    # Traceability
    errors: list[str]
    reasoning_log: list[dict]
