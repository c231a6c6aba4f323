"""Report generator that renders a dataset profile and answer as Markdown."""

from __future__ import annotations

import os
from typing import Optional

from insightdash.models import DataRepresentation, ProcessedData
from insightdash.prompt import format_conversation


def _fmt(value, approximate: bool = False) -> str:
    """Format a statistic, prefixing estimates with ``~``."""
    if isinstance(value, float):
        text = f"{value:,.2f}"
    else:
        text = str(value)
    return f"~{text}" if approximate else text


def _format_numeric(stats: dict[str, dict]) -> list[str]:
    lines = [
        "### Numeric Columns\n",
        "| Column | Count | Missing | Min | Max | Mean | Median | Std Dev | P25 | P75 |",
        "|--------|-------|---------|-----|-----|------|--------|---------|-----|-----|",
    ]
    for col, s in stats.items():
        approx = set(s.get("approximate_fields", []))
        pct = s["percentiles"]
        lines.append(
            f"| {col} | {s['count']} | {s['missing']} | {_fmt(s['min'])} | "
            f"{_fmt(s['max'])} | {_fmt(s['mean'])} | "
            f"{_fmt(s['median'], 'median' in approx)} | "
            f"{_fmt(s['std_dev'], 'std_dev' in approx)} | "
            f"{_fmt(pct['p25'], 'percentiles' in approx)} | "
            f"{_fmt(pct['p75'], 'percentiles' in approx)} |"
        )
    lines.append("")
    return lines


def _format_text(stats: dict[str, dict]) -> list[str]:
    lines = ["### Text Columns\n"]
    for col, s in stats.items():
        approx = "top_values" in s.get("approximate_fields", [])
        lines.append(
            f"**{col}** ({s['count']} values, {s['missing']} missing, "
            f"avg length {_fmt(s['avg_length'])}):\n"
        )
        for entry in s.get("top_values", []):
            lines.append(
                f"- {entry['value']}: {_fmt(entry['count'], approx)} "
                f"({entry['percentage']:.1f}%)"
            )
        lines.append("")
    return lines


def _format_date(stats: dict[str, dict]) -> list[str]:
    lines = [
        "### Date Columns\n",
        "| Column | Earliest | Latest | Range (days) |",
        "|--------|----------|--------|--------------|",
    ]
    for col, s in stats.items():
        lines.append(
            f"| {col} | {s['earliest']} | {s['latest']} | {_fmt(s['time_range_in_days'])} |"
        )
    lines.append("")
    return lines


def _format_boolean(stats: dict[str, dict]) -> list[str]:
    lines = [
        "### Boolean Columns\n",
        "| Column | True | False | True % |",
        "|--------|------|-------|--------|",
    ]
    for col, s in stats.items():
        lines.append(
            f"| {col} | {s['true_count']} | {s['false_count']} | {s['true_percentage']:.1f}% |"
        )
    lines.append("")
    return lines


_SECTIONS = [
    ("numeric", _format_numeric),
    ("text", _format_text),
    ("date", _format_date),
    ("boolean", _format_boolean),
]


def _format_statistics(statistics: dict[str, dict]) -> str:
    """Group column statistics by type and render one section per type."""
    lines: list[str] = []
    for column_type, formatter in _SECTIONS:
        subset = {c: s for c, s in statistics.items() if s.get("type") == column_type}
        if subset:
            lines.extend(formatter(subset))

    unknown = [c for c, s in statistics.items() if s.get("type") == "unknown"]
    if unknown:
        lines.append("### Empty Columns\n")
        for col in unknown:
            lines.append(f"- {col}")
        lines.append("")

    return "\n".join(lines) if lines else "No columns profiled.\n"


def _format_relationships(relationships: list[dict] | str) -> str:
    if isinstance(relationships, str) or not relationships:
        return "No significant relationships identified.\n"

    lines: list[str] = []
    for rel in relationships:
        lines.append(f"- {rel['description']}")
        if rel["type"] == "category_metric":
            for cat in rel["categories"]:
                lines.append(
                    f"  - {cat['category']}: average {_fmt(cat['average'])} "
                    f"over {cat['count']} rows"
                )
    lines.append("")
    return "\n".join(lines)


def generate_report(
    representation: DataRepresentation,
    headers: list[str],
    output_dir: str,
    processed: Optional[ProcessedData] = None,
    messages: Optional[list[dict]] = None,
    answer: Optional[str] = None,
) -> str:
    """Generate a Markdown report and save to output_dir/report.md.

    Args:
        representation: Data representation from profiling.
        headers: Column names.
        output_dir: Directory to save the report.
        processed: Processed data, used to describe chunked processing.
        messages: Chat history that led to *answer*.
        answer: LLM answer to the latest question, if any.

    Returns:
        The path to the saved report file.
    """
    os.makedirs(output_dir, exist_ok=True)

    sections: list[str] = []

    sections.append("# Dataset Profile Report\n")

    # Dataset Overview
    sections.append("## Dataset Overview\n")
    sections.append(f"- **Rows analyzed**: {representation.total_rows_analyzed}")
    sections.append(f"- **Columns**: {len(headers)} ({', '.join(headers)})")
    if processed is not None and processed.processed_in_chunks:
        sections.append(
            f"- **Processing**: {processed.num_chunks} chunks of {processed.chunk_size} rows; "
            "values marked ~ are estimated from chunk summaries"
        )
    sections.append("")

    # Column Statistics
    sections.append("## Column Statistics\n")
    sections.append(_format_statistics(representation.statistics))

    # Relationships
    sections.append("## Relationships\n")
    sections.append(_format_relationships(representation.relationships))

    # Warnings
    if representation.warnings:
        sections.append("## Data Quality Warnings\n")
        for warning in representation.warnings:
            sections.append(f"- {warning}")
        sections.append("")

    # Conversation
    if messages:
        sections.append("## Conversation\n")
        sections.append(format_conversation(messages))
        sections.append("")

    sections.append("## Answer\n")
    sections.append(answer if answer else "No answer generated.\n")

    report_content = "\n".join(sections)
    report_path = os.path.join(output_dir, "report.md")
    with open(report_path, "w", encoding="utf-8") as f:
        f.write(report_content)

    return report_path


def generate_reasoning_report(
    reasoning_log: list[dict],
    errors: list[str],
    output_dir: str,
) -> str:
    """Write the node reasoning log and errors to output_dir/reasoning_log.md.

    Returns:
        The path to the saved file.
    """
    os.makedirs(output_dir, exist_ok=True)

    lines = ["# Reasoning Log\n"]
    if reasoning_log:
        for entry in reasoning_log:
            lines.append(
                f"- `{entry.get('timestamp', '')}` **{entry.get('agent', '')}**: "
                f"{entry.get('reasoning', '')}"
            )
    else:
        lines.append("No reasoning recorded.")
    lines.append("")

    lines.append("## Errors\n")
    if errors:
        for err in errors:
            lines.append(f"- {err}")
    else:
        lines.append("No errors.")
    lines.append("")

    path = os.path.join(output_dir, "reasoning_log.md")
    with open(path, "w", encoding="utf-8") as f:
        f.write("\n".join(lines))
    return path
