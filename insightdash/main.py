"""CLI entry point for profiling a CSV and asking an LLM about it."""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys

from insightdash.llm_config import SUPPORTED_PROVIDERS

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Args:
        argv: Argument list (defaults to sys.argv[1:] when None).

    Returns:
        Parsed namespace with csv_file, question, provider, model, chunk_size,
        output_dir, log_level and profile_only.
    """
    parser = argparse.ArgumentParser(
        description="Profile a CSV dataset and ask an LLM analyst about it.",
    )
    parser.add_argument(
        "csv_file",
        help="Path to the CSV file to analyze.",
    )
    parser.add_argument(
        "--question",
        "-q",
        default="Summarize the key insights in this dataset.",
        help="Question to ask about the data.",
    )
    parser.add_argument(
        "--provider",
        default=None,
        choices=sorted(SUPPORTED_PROVIDERS),
        help="LLM provider (default: INSIGHTDASH_LLM_PROVIDER or openai).",
    )
    parser.add_argument(
        "--model",
        default=None,
        help="Model name override (uses provider default when omitted).",
    )
    parser.add_argument(
        "--chunk-size",
        type=int,
        default=None,
        help="Rows per profiling chunk (default: INSIGHTDASH_CHUNK_SIZE or 5000).",
    )
    parser.add_argument(
        "--output-dir",
        default="output",
        help="Output directory for the report (default: output).",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INSIGHTDASH_LOG_LEVEL or INFO).",
    )
    parser.add_argument(
        "--profile-only",
        action="store_true",
        help="Skip the LLM; write the data representation and report only.",
    )
    args = parser.parse_args(argv)
    if args.chunk_size is not None and args.chunk_size <= 0:
        parser.error("--chunk-size must be a positive integer")
    return args


def _run_profile_only(args: argparse.Namespace) -> str | None:
    from insightdash.graph import load_csv_node, profile_node, report_node

    state = {
        "file_path": args.csv_file,
        "chunk_size": args.chunk_size,
        "messages": [],
        "output_dir": args.output_dir,
        "errors": [],
        "reasoning_log": [],
    }
    for node in (load_csv_node, profile_node, report_node):
        state = node(state)

    representation = state.get("representation")
    if representation is not None:
        os.makedirs(args.output_dir, exist_ok=True)
        path = os.path.join(args.output_dir, "representation.json")
        with open(path, "w", encoding="utf-8") as f:
            json.dump(representation.to_dict(), f, indent=2, default=str)
        print(f"Representation saved to: {path}")
    _print_errors(state)
    return state.get("report_path")


def _print_errors(state: dict) -> None:
    for err in state.get("errors") or []:
        print(f"  - {err}", file=sys.stderr)


def main(argv: list[str] | None = None) -> None:
    """Run the profiling and analysis pipeline.

    Args:
        argv: Optional argument list for testing; uses sys.argv when None.
    """
    args = parse_args(argv)

    # Validate that the CSV file exists early, before heavy imports.
    if not os.path.isfile(args.csv_file):
        print(f"Error: file not found — {args.csv_file}", file=sys.stderr)
        sys.exit(1)

    try:
        from insightdash.settings import configure_logging, get_settings

        configure_logging(args.log_level)
        settings = get_settings()

        if args.profile_only:
            report_path = _run_profile_only(args)
        else:
            from insightdash.graph import build_graph
            from insightdash.llm_config import get_llm
            from insightdash.models import ChatState

            llm = get_llm(
                provider=args.provider or settings.llm_provider,
                model=args.model or settings.llm_model,
                temperature=settings.temperature,
                max_tokens=settings.max_tokens,
            )
            graph = build_graph(llm)

            initial_state: ChatState = {
                "file_path": args.csv_file,
                "rows": None,
                "headers": None,
                "messages": [{"role": "user", "content": args.question}],
                "chunk_size": args.chunk_size or settings.chunk_size,
                "processed": None,
                "representation": None,
                "answer": None,
                "output_dir": args.output_dir,
                "report_path": None,
                "errors": [],
                "reasoning_log": [],
            }
            result = graph.invoke(initial_state)

            answer = result.get("answer")
            if answer:
                print(answer)
            _print_errors(result)
            report_path = result.get("report_path")

        if report_path:
            print(f"Report saved to: {report_path}")
        else:
            print("Warning: report was not generated.", file=sys.stderr)
            sys.exit(1)

    except KeyboardInterrupt:
        print("\nAborted.", file=sys.stderr)
        sys.exit(130)
    except Exception as exc:
        logger.debug("CLI failure", exc_info=True)
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
