"""Prompt construction for dataset questions."""

from __future__ import annotations

import json

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage

from insightdash.models import DataRepresentation, ProcessedData

_ROLE_LABELS = {"user": "User", "assistant": "Assistant"}

BUSINESS_CONTEXT = """\
The data will be analyzed by executives and sales/marketing leaders who want to:
1. Understand what products/services sell best and why
2. Identify geographic/demographic patterns
3. Evaluate marketing campaign effectiveness
4. Find opportunities for operational improvements
5. Discover correlations between different business metrics"""

OUTPUT_RULES = """\
1. Always use markdown formatting
2. Format statistics, comparisons, and structured data as markdown tables
3. Use clear headings for main sections and subsections
4. Use bullet points for key insights and findings
5. Bold important conclusions or recommendations
6. Provide a concise summary at the beginning
7. Suggest specific actionable recommendations
8. Never describe the data as illustrative or example data
9. Values listed under "approximate_fields" are estimates; say so when quoting them"""

FILTER_RULES = """\
When the user writes a column filter such as "Region = West", match only that
column, use exact case-sensitive matching, state how many rows matched, and
apply the filter before any grouping or breakdown."""


def _to_json(value) -> str:
    return json.dumps(value, indent=2, default=str)


def build_system_prompt(
    representation: DataRepresentation,
    headers: list[str],
    processed: ProcessedData | None = None,
) -> str:
    """Render the analyst system prompt for one dataset.

    Args:
        representation: Data representation from ``profile_dataset``.
        headers: Column names.
        processed: Processed data, used to describe chunked processing.

    Returns:
        The system prompt text.
    """
    total = representation.total_rows_analyzed
    sample = {
        "sample_rows": representation.sample_rows,
        "total_rows_analyzed": total,
        "unique_values_per_column": representation.unique_values_per_column,
    }

    dataset_lines = [
        f"- Columns ({len(headers)}): {', '.join(headers)}",
        f"- Total rows analyzed: {total} (entire dataset)",
    ]
    if processed is not None and processed.processed_in_chunks:
        dataset_lines.append(
            f"- Data processed in {processed.num_chunks} chunks of "
            f"{processed.chunk_size} rows each"
        )
    dataset_lines.append("- Representative data samples from throughout the dataset:")
    dataset_lines.append(_to_json(sample))

    relationships = representation.relationships
    if not isinstance(relationships, str):
        relationships = _to_json(relationships)

    sections = [
        "You are an experienced data analyst specializing in business intelligence "
        "for sales and marketing executives. Help executives understand their data "
        "with clear, actionable insights in properly formatted output.",
        "Analyze and reference only the actual data provided below. Do not invent "
        "illustrative or placeholder numbers.",
        "DATASET INFORMATION:\n" + "\n".join(dataset_lines),
        f"COMPREHENSIVE STATISTICS (calculated from all {total} rows):\n"
        + _to_json(representation.statistics),
        "IDENTIFIED RELATIONSHIPS AND PATTERNS:\n" + relationships,
    ]
    if representation.warnings:
        sections.append(
            "DATA QUALITY WARNINGS:\n" + "\n".join(f"- {w}" for w in representation.warnings)
        )
    sections.extend(
        [
            "COLUMN FILTERS:\n" + FILTER_RULES,
            "BUSINESS CONTEXT:\n" + BUSINESS_CONTEXT,
            "OUTPUT FORMATTING REQUIREMENTS:\n" + OUTPUT_RULES,
        ]
    )
    return "\n\n".join(sections)


def to_langchain_messages(messages: list[dict]) -> list[BaseMessage]:
    """Convert ``{"role", "content"}`` chat history into LangChain messages.

    Unknown roles are treated as user messages.
    """
    converted: list[BaseMessage] = []
    for msg in messages:
        role = msg.get("role", "user")
        content = str(msg.get("content", ""))
        if role == "assistant":
            converted.append(AIMessage(content=content))
        elif role == "system":
            converted.append(SystemMessage(content=content))
        else:
            converted.append(HumanMessage(content=content))
    return converted


def format_conversation(messages: list[dict]) -> str:
    """Render chat history as ``User: ...`` / ``Assistant: ...`` paragraphs."""
    parts = []
    for msg in messages:
        label = _ROLE_LABELS.get(msg.get("role", ""))
        content = str(msg.get("content", ""))
        parts.append(f"{label}: {content}" if label else content)
    return "\n\n".join(parts)
