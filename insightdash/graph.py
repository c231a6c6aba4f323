"""LangGraph workflow for answering questions about an uploaded dataset.

Each node function accepts a ChatState dict (and optionally an LLM) and
returns an updated state dict. All nodes wrap their logic in try/except,
log errors to state["errors"], and append reasoning entries with timestamps
to state["reasoning_log"].

Statistics are rebuilt from the rows on every run; nothing is cached between
questions.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Optional

from langchain_core.messages import SystemMessage

from insightdash.csv_loader import load_csv
from insightdash.models import ChatState, DataRepresentation, ProcessedData
from insightdash.prompt import build_system_prompt, to_langchain_messages
from insightdash.report_generator import generate_reasoning_report, generate_report
from insightdash.settings import get_settings
from insightdash.tools.representation import profile_dataset

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _timestamp() -> str:
    """Return an ISO-8601 UTC timestamp string."""
    return datetime.now(timezone.utc).isoformat()


def _append_reasoning(state: dict, agent: str, reasoning: str) -> None:
    """Append a reasoning log entry to state."""
    if "reasoning_log" not in state or state["reasoning_log"] is None:
        state["reasoning_log"] = []
    state["reasoning_log"].append(
        {"timestamp": _timestamp(), "agent": agent, "reasoning": reasoning}
    )


def _append_error(state: dict, error_msg: str) -> None:
    """Append an error message to state."""
    if "errors" not in state or state["errors"] is None:
        state["errors"] = []
    state["errors"].append(error_msg)
    logger.error(error_msg)


def _ensure_list(state: dict, key: str) -> None:
    """Ensure *key* exists in state as a list."""
    if key not in state or state[key] is None:
        state[key] = []


def _response_text(response: Any) -> str:
    content = response.content
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        # content blocks: keep the text parts
        parts = [
            block.get("text", "") if isinstance(block, dict) else str(block)
            for block in content
        ]
        return "".join(parts)
    return str(content)


def ask_llm(
    llm: Any,
    representation: DataRepresentation,
    headers: list[str],
    messages: list[dict],
    processed: Optional[ProcessedData] = None,
) -> str:
    """Send the system prompt plus chat history to *llm* and return its answer."""
    prompt = build_system_prompt(representation, headers, processed)
    response = llm.invoke([SystemMessage(content=prompt), *to_langchain_messages(messages)])
    return _response_text(response)


def analyze_dataset(
    llm: Any,
    rows: list[dict],
    headers: list[str],
    messages: list[dict],
    chunk_size: Optional[int] = None,
) -> str:
    """Profile a dataset and answer the latest question about it.

    Raises:
        InvalidDatasetError: If rows/headers are malformed.
    """
    settings = get_settings()
    chunk_size = chunk_size or settings.chunk_size
    logger.info(f"Analyzing {len(rows)} rows with chunk size {chunk_size}")

    processed, representation = profile_dataset(
        rows, headers, chunk_size, mine_full_dataset=settings.mine_full_dataset
    )
    if processed.processed_in_chunks:
        logger.info(
            f"Original: {processed.total_rows} rows, processed sample: "
            f"{len(processed.data)} rows, {processed.num_chunks} chunks"
        )
    return ask_llm(llm, representation, list(headers), messages, processed)


# ---------------------------------------------------------------------------
# Node: load_csv_node
# ---------------------------------------------------------------------------


def load_csv_node(state: ChatState) -> ChatState:
    """Load the CSV at ``file_path`` unless rows were supplied directly."""
    _ensure_list(state, "errors")
    _ensure_list(state, "reasoning_log")

    if state.get("rows") is not None and state.get("headers") is not None:
        _append_reasoning(
            state,
            "load_csv_node",
            f"Using {len(state['rows'])} rows supplied by the caller.",
        )
        return state

    try:
        file_path = state.get("file_path", "")
        result = load_csv(file_path)

        if result["error"]:
            _append_error(state, f"CSV load error: {result['error']}")
            _append_reasoning(
                state,
                "load_csv_node",
                f"Failed to load CSV: {result['error']}",
            )
            state["rows"] = None
            state["headers"] = None
            return state

        state["rows"] = result["rows"]
        state["headers"] = result["headers"]
        _append_reasoning(
            state,
            "load_csv_node",
            f"Loaded {len(result['rows'])} rows x {len(result['headers'])} columns.",
        )
    except Exception as exc:
        _append_error(state, f"load_csv_node exception: {exc}")
        _append_reasoning(state, "load_csv_node", f"Exception: {exc}")
        state["rows"] = None
        state["headers"] = None

    return state


# ---------------------------------------------------------------------------
# Node: profile_node
# ---------------------------------------------------------------------------


def profile_node(state: ChatState) -> ChatState:
    """Profile the rows and store ``processed`` and ``representation``."""
    _ensure_list(state, "errors")
    _ensure_list(state, "reasoning_log")

    rows, headers = state.get("rows"), state.get("headers")
    if rows is None or headers is None:
        _append_error(state, "profile_node: No dataset available.")
        _append_reasoning(state, "profile_node", "Skipped — no dataset loaded.")
        state["processed"] = None
        state["representation"] = None
        return state

    try:
        settings = get_settings()
        chunk_size = state.get("chunk_size") or settings.chunk_size
        processed, representation = profile_dataset(
            rows, headers, chunk_size, mine_full_dataset=settings.mine_full_dataset
        )
        state["processed"] = processed
        state["representation"] = representation

        how = (
            f"in {processed.num_chunks} chunks of {chunk_size}"
            if processed.processed_in_chunks
            else "in a single pass"
        )
        found = representation.relationships
        count = 0 if isinstance(found, str) else len(found)
        _append_reasoning(
            state,
            "profile_node",
            f"Profiled {processed.total_rows} rows {how}; {count} relationship(s) found.",
        )
        for warning in processed.warnings:
            _append_reasoning(state, "profile_node", f"Data quality warning: {warning}")
    except Exception as exc:
        _append_error(state, f"profile_node exception: {exc}")
        _append_reasoning(state, "profile_node", f"Exception: {exc}")
        state["processed"] = None
        state["representation"] = None

    return state


# ---------------------------------------------------------------------------
# Node: analyze_node
# ---------------------------------------------------------------------------


def analyze_node(state: ChatState, llm: Any) -> ChatState:
    """Ask the LLM the user's question against the data representation."""
    _ensure_list(state, "errors")
    _ensure_list(state, "reasoning_log")
    _ensure_list(state, "messages")

    representation = state.get("representation")
    if representation is None:
        _append_error(state, "analyze_node: No data representation available.")
        _append_reasoning(state, "analyze_node", "Skipped — dataset was not profiled.")
        state["answer"] = None
        return state

    if not state["messages"]:
        _append_reasoning(state, "analyze_node", "Skipped — no question asked.")
        state["answer"] = None
        return state

    try:
        answer = ask_llm(
            llm,
            representation,
            list(state.get("headers") or []),
            state["messages"],
            state.get("processed"),
        )
        state["answer"] = answer
        _append_reasoning(state, "analyze_node", answer)
    except Exception as exc:
        _append_error(state, f"analyze_node exception: {exc}")
        _append_reasoning(state, "analyze_node", f"Exception: {exc}")
        state["answer"] = None

    return state


# ---------------------------------------------------------------------------
# Node: report_node
# ---------------------------------------------------------------------------


def report_node(state: ChatState) -> ChatState:
    """Write the Markdown profile report from accumulated state data."""
    _ensure_list(state, "errors")
    _ensure_list(state, "reasoning_log")

    try:
        output_dir = state.get("output_dir") or "output"
        representation = state.get("representation")
        if representation is None:
            _append_reasoning(state, "report_node", "Skipped — nothing to report.")
            state["report_path"] = None
        else:
            report_path = generate_report(
                representation=representation,
                headers=list(state.get("headers") or []),
                processed=state.get("processed"),
                messages=state.get("messages") or [],
                answer=state.get("answer"),
                output_dir=output_dir,
            )
            state["report_path"] = report_path
            _append_reasoning(state, "report_node", f"Report generated at {report_path}.")

        generate_reasoning_report(
            reasoning_log=state.get("reasoning_log") or [],
            errors=state.get("errors") or [],
            output_dir=output_dir,
        )
    except Exception as exc:
        _append_error(state, f"report_node exception: {exc}")
        _append_reasoning(state, "report_node", f"Exception: {exc}")
        state["report_path"] = None

    return state


# ---------------------------------------------------------------------------
# Graph builder
# ---------------------------------------------------------------------------


def _should_analyze(state: ChatState) -> str:
    """Conditional edge: only call the LLM once the dataset is profiled."""
    if state.get("representation") is not None and state.get("messages"):
        return "analyze"
    return "report"


def build_graph(llm: Any) -> Any:
    """Build and compile the LangGraph workflow.

    Nodes: load → profile → (conditional) analyze → report
    The profile node skips straight to the report when profiling failed or
    no question was asked.

    Args:
        llm: A LangChain chat model.

    Returns:
        A compiled LangGraph ``StateGraph``.
    """
    from functools import partial

    from langgraph.graph import END, START, StateGraph

    graph = StateGraph(ChatState)

    graph.add_node("load", load_csv_node)
    graph.add_node("profile", profile_node)
    graph.add_node("analyze", partial(analyze_node, llm=llm))
    graph.add_node("report", report_node)

    graph.add_edge(START, "load")
    graph.add_edge("load", "profile")
    graph.add_conditional_edges(
        "profile",
        _should_analyze,
        {"analyze": "analyze", "report": "report"},
    )
    graph.add_edge("analyze", "report")
    graph.add_edge("report", END)

    return graph.compile()
