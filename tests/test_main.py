"""Tests for the CLI entry point (insightdash/main.py)."""

from __future__ import annotations

import json
from unittest.mock import MagicMock, patch

import pytest

from insightdash.main import main, parse_args


# ---------------------------------------------------------------------------
# parse_args tests
# ---------------------------------------------------------------------------


class TestParseArgs:
    """Unit tests for CLI argument parsing."""

    def test_positional_csv_file(self):
        args = parse_args(["data.csv"])
        assert args.csv_file == "data.csv"

    def test_defaults(self):
        args = parse_args(["data.csv"])
        assert args.question == "Summarize the key insights in this dataset."
        assert args.provider is None
        assert args.model is None
        assert args.chunk_size is None
        assert args.output_dir == "output"
        assert args.log_level is None
        assert args.profile_only is False

    def test_provider_flag(self):
        args = parse_args(["data.csv", "--provider", "gemini"])
        assert args.provider == "gemini"

    def test_all_flags_combined(self):
        args = parse_args([
            "input.csv",
            "-q", "Which region sells most?",
            "--provider", "anthropic",
            "--model", "claude-3-5-sonnet-20241022",
            "--chunk-size", "1000",
            "--output-dir", "results",
            "--log-level", "DEBUG",
            "--profile-only",
        ])
        assert args.csv_file == "input.csv"
        assert args.question == "Which region sells most?"
        assert args.provider == "anthropic"
        assert args.model == "claude-3-5-sonnet-20241022"
        assert args.chunk_size == 1000
        assert args.output_dir == "results"
        assert args.log_level == "DEBUG"
        assert args.profile_only is True

    def test_invalid_provider_rejected(self):
        with pytest.raises(SystemExit):
            parse_args(["data.csv", "--provider", "invalid"])

    @pytest.mark.parametrize("size", ["0", "-5"])
    def test_non_positive_chunk_size_rejected(self, size):
        with pytest.raises(SystemExit):
            parse_args(["data.csv", "--chunk-size", size])

    def test_missing_csv_file_rejected(self):
        with pytest.raises(SystemExit):
            parse_args([])


# ---------------------------------------------------------------------------
# main() tests
# ---------------------------------------------------------------------------


class TestMain:
    """Unit tests for the main() entry point."""

    def test_nonexistent_file_exits(self):
        """main() should exit with code 1 when the CSV file doesn't exist."""
        with pytest.raises(SystemExit) as exc_info:
            main(["nonexistent_file_abc123.csv"])
        assert exc_info.value.code == 1

    def test_successful_run(self, tmp_path):
        """main() should print the answer and the report path."""
        csv_file = tmp_path / "test.csv"
        csv_file.write_text("a,b\n1,2\n3,4\n")

        output_dir = tmp_path / "output"
        fake_result = {
            "answer": "Column a is small.",
            "report_path": str(output_dir / "report.md"),
            "errors": [],
        }

        mock_graph = MagicMock()
        mock_graph.invoke.return_value = fake_result

        with (
            patch("insightdash.llm_config.get_llm", return_value=MagicMock()),
            patch("insightdash.graph.build_graph", return_value=mock_graph),
            patch("builtins.print") as mock_print,
        ):
            main([str(csv_file), "--output-dir", str(output_dir)])

        printed = [c.args[0] for c in mock_print.call_args_list]
        assert printed == [
            "Column a is small.",
            f"Report saved to: {output_dir / 'report.md'}",
        ]

    def test_no_report_path_exits(self, tmp_path):
        """main() should exit with code 1 when no report is generated."""
        csv_file = tmp_path / "test.csv"
        csv_file.write_text("a,b\n1,2\n")

        mock_graph = MagicMock()
        mock_graph.invoke.return_value = {"report_path": None, "errors": ["something went wrong"]}

        with (
            patch("insightdash.llm_config.get_llm", return_value=MagicMock()),
            patch("insightdash.graph.build_graph", return_value=mock_graph),
        ):
            with pytest.raises(SystemExit) as exc_info:
                main([str(csv_file), "--output-dir", str(tmp_path / "out")])
            assert exc_info.value.code == 1

    def test_initial_state_structure(self, tmp_path):
        """The initial ChatState passed to graph.invoke should have the right keys."""
        csv_file = tmp_path / "test.csv"
        csv_file.write_text("x,y\n1,2\n")

        mock_graph = MagicMock()
        mock_graph.invoke.return_value = {"report_path": "output/report.md"}

        with (
            patch("insightdash.llm_config.get_llm", return_value=MagicMock()),
            patch("insightdash.graph.build_graph", return_value=mock_graph),
        ):
            main([str(csv_file), "-q", "Why?", "--chunk-size", "250"])

        call_args = mock_graph.invoke.call_args[0][0]
        assert call_args["file_path"] == str(csv_file)
        assert call_args["messages"] == [{"role": "user", "content": "Why?"}]
        assert call_args["chunk_size"] == 250
        assert call_args["rows"] is None
        assert call_args["errors"] == []
        assert call_args["reasoning_log"] == []

    def test_provider_from_environment(self, tmp_path, monkeypatch):
        monkeypatch.setenv("INSIGHTDASH_LLM_PROVIDER", "anthropic")
        csv_file = tmp_path / "test.csv"
        csv_file.write_text("x,y\n1,2\n")

        mock_graph = MagicMock()
        mock_graph.invoke.return_value = {"report_path": "output/report.md"}

        with (
            patch("insightdash.llm_config.get_llm", return_value=MagicMock()) as mock_get,
            patch("insightdash.graph.build_graph", return_value=mock_graph),
        ):
            main([str(csv_file)])

        assert mock_get.call_args.kwargs["provider"] == "anthropic"
        assert mock_graph.invoke.call_args[0][0]["chunk_size"] == 5000

    def test_exception_in_pipeline_exits(self, tmp_path):
        """main() should catch unexpected exceptions and exit with code 1."""
        csv_file = tmp_path / "test.csv"
        csv_file.write_text("a,b\n1,2\n")

        with patch("insightdash.llm_config.get_llm", side_effect=RuntimeError("boom")):
            with pytest.raises(SystemExit) as exc_info:
                main([str(csv_file)])
            assert exc_info.value.code == 1

    def test_profile_only_skips_llm(self, tmp_path):
        csv_file = tmp_path / "test.csv"
        csv_file.write_text("a,b\n1,x\n2,y\n3,z\n")
        output_dir = tmp_path / "out"

        with patch("insightdash.llm_config.get_llm") as mock_get:
            main([str(csv_file), "--profile-only", "--output-dir", str(output_dir)])

        mock_get.assert_not_called()
        assert (output_dir / "report.md").is_file()
        assert (output_dir / "reasoning_log.md").is_file()
        with open(output_dir / "representation.json", encoding="utf-8") as f:
            representation = json.load(f)
        assert representation["total_rows_analyzed"] == 3
        assert representation["statistics"]["a"]["type"] == "numeric"
