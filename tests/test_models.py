"""Tests for core data models."""

import json
from dataclasses import fields

import pytest

from insightdash.models import (
    NO_RELATIONSHIPS,
    ChatState,
    ColumnType,
    DataRepresentation,
    InvalidDatasetError,
    ProcessedData,
    validate_dataset,
)


class TestChatState:
    """Tests for the ChatState TypedDict."""

    def test_create_minimal_state(self):
        state: ChatState = {"file_path": "data.csv"}
        assert state["file_path"] == "data.csv"

    def test_state_has_expected_keys(self):
        expected_keys = {
            "file_path", "rows", "headers", "messages", "chunk_size",
            "processed", "representation", "answer", "output_dir",
            "report_path", "errors", "reasoning_log",
        }
        assert set(ChatState.__annotations__.keys()) == expected_keys


class TestProcessedData:
    def test_default_values(self):
        processed = ProcessedData()
        assert processed.data == []
        assert processed.statistics == {}
        assert processed.total_rows == 0
        assert processed.processed_in_chunks is False
        assert processed.num_chunks == 1
        assert processed.chunk_size is None
        assert processed.warnings == []


class TestDataRepresentation:
    def test_field_names(self):
        names = [f.name for f in fields(DataRepresentation)]
        assert names == [
            "sample_rows",
            "total_rows_analyzed",
            "unique_values_per_column",
            "statistics",
            "relationships",
            "warnings",
        ]

    def test_default_relationships_marker(self):
        assert DataRepresentation().relationships == NO_RELATIONSHIPS

    def test_to_dict_is_json_ready(self):
        rep = DataRepresentation(
            sample_rows={"first5": [{"a": 1}], "last5": [], "random_samples": []},
            total_rows_analyzed=1,
        )
        data = rep.to_dict()
        assert json.loads(json.dumps(data))["sample_rows"]["first5"] == [{"a": 1}]


class TestColumnType:
    def test_values(self):
        assert [t.value for t in ColumnType] == ["numeric", "boolean", "date", "text", "unknown"]

    def test_compares_to_string(self):
        assert ColumnType.NUMERIC == "numeric"


class TestValidateDataset:
    def test_valid(self):
        validate_dataset([{"a": 1}, {}], ["a"])
        validate_dataset([], [])

    def test_tuple_inputs_accepted(self):
        validate_dataset(({"a": 1},), ("a",))

    @pytest.mark.parametrize(
        "rows, headers",
        [
            ([{"a": 1}], None),
            ([{"a": 1}], "a"),
            ([{"a": 1}], ["a", 2]),
            ([{"a": 1}], ["a", "a"]),
            (None, ["a"]),
            ({"a": 1}, ["a"]),
            ("rows", ["a"]),
            ([{"a": 1}, [1]], ["a"]),
        ],
    )
    def test_invalid(self, rows, headers):
        with pytest.raises(InvalidDatasetError):
            validate_dataset(rows, headers)

    def test_is_value_error(self):
        assert issubclass(InvalidDatasetError, ValueError)
