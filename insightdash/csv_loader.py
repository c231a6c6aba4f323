"""CSV loader with automatic encoding and delimiter detection.

Produces the ``{rows, headers}`` dataset shape the profiler consumes.
"""

from __future__ import annotations

import csv
import io
import logging
import os
from typing import Optional

import chardet
import pandas as pd

logger = logging.getLogger(__name__)


def _detect_encoding(raw: bytes) -> str:
    """Detect encoding using chardet, falling back to utf-8."""
    if not raw:
        return "utf-8"
    result = chardet.detect(raw)
    return result.get("encoding") or "utf-8"


def _detect_delimiter(text: str) -> str:
    """Detect CSV delimiter using csv.Sniffer, falling back to comma."""
    try:
        sample = text[:8192]
        dialect = csv.Sniffer().sniff(sample, delimiters=",\t;|")
        return dialect.delimiter
    except csv.Error:
        return ","


def _decode(raw: bytes, encoding: str) -> Optional[str]:
    """Try decoding bytes with the given encoding. Returns text or None."""
    try:
        return raw.decode(encoding)
    except (UnicodeDecodeError, LookupError):
        return None


def _try_parse(text: str, delimiter: str) -> Optional[pd.DataFrame]:
    """Try parsing text as CSV with the given delimiter. Returns DataFrame or None."""
    try:
        return pd.read_csv(io.StringIO(text), sep=delimiter, engine="python")
    except (pd.errors.ParserError, pd.errors.EmptyDataError, ValueError, csv.Error) as exc:
        logger.debug(f"CSV parse with delimiter {delimiter!r} failed: {exc}")
        return None


def dataframe_to_dataset(df: pd.DataFrame) -> tuple[list[dict], list[str]]:
    """Convert a DataFrame to ``(rows, headers)`` with missing cells as None."""
    headers = [str(col) for col in df.columns]
    frame = df.copy()
    frame.columns = headers
    frame = frame.astype(object).where(frame.notna(), None)
    return frame.to_dict(orient="records"), headers


def load_csv(file_path: str) -> dict:
    """Load a CSV file with automatic encoding/delimiter detection.

    Args:
        file_path: Path to the CSV file.

    Returns:
        dict with keys:
            - "rows": list of row dicts, or None
            - "headers": list of column names, or None
            - "error": Optional[str] error message if loading failed
    """
    failed = {"rows": None, "headers": None}

    if not os.path.exists(file_path):
        return {**failed, "error": f"File not found: {file_path}"}

    if not os.path.isfile(file_path):
        return {**failed, "error": f"Path is not a file: {file_path}"}

    try:
        with open(file_path, "rb") as f:
            raw = f.read()
    except OSError as e:
        return {**failed, "error": f"Cannot read file: {e}"}

    if not raw:
        return {**failed, "error": "File is empty"}

    # Detected encoding first, then utf-8, then latin-1 (never fails)
    text = None
    for encoding in (_detect_encoding(raw), "utf-8", "latin-1"):
        text = _decode(raw, encoding)
        if text is not None:
            break
    if text is None:
        return {**failed, "error": "Failed to decode file with any supported encoding"}

    if not text.strip():
        return {**failed, "error": "File is empty"}

    delimiter = _detect_delimiter(text)
    df = _try_parse(text, delimiter)

    if df is None:
        return {**failed, "error": "Failed to parse CSV file"}

    # A single wide column usually means the sniffer picked the wrong delimiter
    if len(df.columns) == 1 and len(df) > 1:
        for alt_delim in ["\t", ";", "|", ","]:
            if alt_delim == delimiter:
                continue
            alt_df = _try_parse(text, alt_delim)
            if alt_df is not None and len(alt_df.columns) > 1:
                df = alt_df
                break

    if len(df) == 0:
        return {**failed, "error": "File contains only headers with no data rows"}

    rows, headers = dataframe_to_dataset(df)
    logger.info(f"Loaded {len(rows)} rows x {len(headers)} columns from {file_path}")
    return {"rows": rows, "headers": headers, "error": None}
