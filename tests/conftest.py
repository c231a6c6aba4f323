"""Shared Hypothesis strategies and fixtures for profiler tests.

Provides reusable strategies for generating row datasets with mixed column
types and injected missing values, plus small fixed datasets.
"""

from __future__ import annotations

import os
import random
from datetime import date

import pytest
from hypothesis import strategies as st

from insightdash.settings import reset_settings


# ---------------------------------------------------------------------------
# row_datasets: (rows, headers) with type-stable columns
# ---------------------------------------------------------------------------

_WORDS = ["alpha", "beta", "gamma", "delta", "epsilon", "zeta"]
_MISSING = [None, ""]


@st.composite
def row_datasets(
    draw: st.DrawFn,
    min_rows: int = 1,
    max_rows: int = 120,
) -> tuple[list[dict], list[str]]:
    """Generate rows with numeric, text, boolean and date columns.

    Every column keeps one kind of value so that each chunk infers the same
    type; missing cells (None or "") are sprinkled in at random positions.

    Returns
    -------
    tuple of (rows, headers)
    """
    n_rows = draw(st.integers(min_value=min_rows, max_value=max_rows))

    numbers = st.one_of(
        st.integers(min_value=-10_000, max_value=10_000),
        st.floats(min_value=-1e4, max_value=1e4, allow_nan=False, allow_infinity=False),
    )
    kinds = {
        "num": numbers,
        "num_str": st.integers(min_value=-500, max_value=500).map(str),
        "text": st.sampled_from(_WORDS),
        "flag": st.sampled_from([True, False, "true", "false"]),
        "day": st.dates(min_value=date(1970, 1, 1), max_value=date(2100, 12, 31)).map(
            lambda d: d.isoformat()
        ),
    }
    chosen = draw(
        st.lists(st.sampled_from(sorted(kinds)), min_size=1, max_size=5, unique=True)
    )

    columns: dict[str, list] = {}
    for kind in chosen:
        values = draw(st.lists(kinds[kind], min_size=n_rows, max_size=n_rows))
        missing_mask = draw(
            st.lists(st.booleans(), min_size=n_rows, max_size=n_rows)
        ) if draw(st.booleans()) else [False] * n_rows
        columns[kind] = [
            draw(st.sampled_from(_MISSING)) if missing else value
            for value, missing in zip(values, missing_mask)
        ]

    headers = list(columns)
    rows = [{h: columns[h][i] for h in headers} for i in range(n_rows)]
    return rows, headers


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _fresh_settings(monkeypatch):
    """Isolate tests from INSIGHTDASH_* variables and cached settings."""
    for key in list(os.environ):
        if key.startswith("INSIGHTDASH_"):
            monkeypatch.delenv(key, raising=False)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def sales_rows() -> tuple[list[dict], list[str]]:
    """60 rows of sales data with a strong price/revenue link and regions."""
    rng = random.Random(7)
    regions = ["North", "South", "East"]
    region_bias = {"North": 100.0, "South": 400.0, "East": 900.0}
    rows = []
    for i in range(60):
        region = regions[i % 3]
        units = rng.randint(1, 50)
        rows.append(
            {
                "region": region,
                "units": units,
                "revenue": units * 20 + region_bias[region] + rng.uniform(-5, 5),
                "active": "true" if i % 4 else "false",
                "order_date": f"2024-{(i % 12) + 1:02d}-{(i % 28) + 1:02d}",
                "notes": "" if i % 5 == 0 else f"order {i}",
            }
        )
    headers = ["region", "units", "revenue", "active", "order_date", "notes"]
    return rows, headers
