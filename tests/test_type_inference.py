"""Unit tests for column type inference."""

from __future__ import annotations

from datetime import date, datetime

import numpy as np
import pandas as pd
import pytest

from insightdash.models import ColumnType
from insightdash.tools.type_inference import (
    infer_column_type,
    is_boolean_value,
    is_missing,
    non_missing,
    to_number,
    to_timestamp,
)


class TestIsMissing:
    @pytest.mark.parametrize("value", [None, "", float("nan"), np.nan, pd.NaT])
    def test_missing_values(self, value):
        assert is_missing(value)

    @pytest.mark.parametrize("value", [0, 0.0, False, " ", "0", "none", [1, 2]])
    def test_present_values(self, value):
        assert not is_missing(value)

    def test_non_missing_preserves_order(self):
        assert non_missing(["b", None, "", "a", float("nan"), 3]) == ["b", "a", 3]


class TestToNumber:
    def test_native_numbers(self):
        assert to_number(3) == 3.0
        assert to_number(2.5) == 2.5
        assert to_number(np.int64(7)) == 7.0

    def test_numeric_strings(self):
        assert to_number("42") == 42.0
        assert to_number(" -1.5 ") == -1.5
        assert to_number("1e3") == 1000.0

    def test_booleans_are_not_numbers(self):
        assert to_number(True) is None
        assert to_number(np.bool_(False)) is None

    @pytest.mark.parametrize("value", ["abc", "12abc", "nan", "inf", "1_000", "  ", "true"])
    def test_non_numeric_strings_do_not_raise(self, value):
        assert to_number(value) is None

    def test_int_too_large_for_float(self):
        assert to_number(10**400) is None


class TestToTimestamp:
    def test_iso_string(self):
        assert to_timestamp("2024-01-01") == pd.Timestamp("2024-01-01")

    def test_date_objects(self):
        assert to_timestamp(date(2024, 3, 1)) == pd.Timestamp("2024-03-01")
        assert to_timestamp(datetime(2024, 3, 1, 12)) == pd.Timestamp("2024-03-01 12:00")

    def test_timezone_normalised_to_naive_utc(self):
        ts = to_timestamp("2024-01-01T05:00:00+05:00")
        assert ts == pd.Timestamp("2024-01-01T00:00:00")
        assert ts.tzinfo is None

    @pytest.mark.parametrize(
        "value",
        ["apple", "not a date", 20240101, True, "now", "today", "Jan", "May", "March"],
    )
    def test_non_dates(self, value):
        assert to_timestamp(value) is None


class TestInferColumnType:
    def test_numeric_strings(self):
        assert infer_column_type(["1", "2", "3"]) == ColumnType.NUMERIC

    def test_mixed_native_and_string_numbers(self):
        assert infer_column_type([1, "2.5", 3.0]) == ColumnType.NUMERIC

    def test_boolean_strings(self):
        assert infer_column_type(["true", "false", "true"]) == ColumnType.BOOLEAN

    def test_native_booleans(self):
        assert infer_column_type([True, False]) == ColumnType.BOOLEAN

    def test_boolean_match_is_case_sensitive(self):
        assert infer_column_type(["True", "False"]) == ColumnType.TEXT

    def test_dates(self):
        assert infer_column_type(["2024-01-01", "2024-02-15"]) == ColumnType.DATE

    @pytest.mark.parametrize(
        "values", [["now", "today"], ["Jan", "Feb"], ["May", "June"], ["March", "April"]]
    )
    def test_month_names_and_relative_words_are_text(self, values):
        assert infer_column_type(values) == ColumnType.TEXT

    def test_text(self):
        assert infer_column_type(["apple", "banana"]) == ColumnType.TEXT

    def test_one_stray_value_falls_through_to_text(self):
        assert infer_column_type(["1", "2", "three"]) == ColumnType.TEXT

    def test_empty_is_unknown(self):
        assert infer_column_type([]) == ColumnType.UNKNOWN

    def test_deterministic(self):
        values = ["2024-01-01", "2024-02-15", "2023-12-31"]
        assert {infer_column_type(values) for _ in range(5)} == {ColumnType.DATE}

    def test_is_boolean_value(self):
        assert is_boolean_value("true")
        assert is_boolean_value(False)
        assert not is_boolean_value("yes")
        assert not is_boolean_value(1)
