"""CLI entry point for running the stress tester against a single file."""

import argparse
import asyncio
import json
import logging
import signal
import sys
from typing import Any

from pydantic import ValidationError

from stress_test_runner.models.config import (
    Page,
    RequestKind,
    RewriteMode,
    RunConfiguration,
)
from stress_test_runner.models.outcome import (
    Cancelled,
    Errored,
    Failed,
    Outcome,
    Passed,
    Unexecuted,
)
from stress_test_runner.operation import StressTestOperation

STATUS_SYMBOLS = {
    "passed": "✅",
    "failed": "❌",
    "errored": "❗",
    "cancelled": "⏹️",
    "unexecuted": "…",
}


def log_outcome_summary(
    log: logging.Logger, operation: StressTestOperation, outcome: Outcome
) -> None:
    """Log a one-line summary of the outcome plus its details."""
    symbol = STATUS_SYMBOLS.get(outcome.name, "?")
    log.info(
        "%s %s (%s): %s", symbol, operation.config.file, operation.summary, outcome.name
    )
    match outcome:
        case Failed(error=error):
            log.info("  Error: %s %s", error.kind, error.message)
        case Errored(status=status, arguments=arguments):
            log.info("  Exit status: %d", status)
            log.info(
                "  Reproduce: %s %s",
                operation.config.executable,
                " ".join(arguments),
            )
        case Passed(responses=responses) if responses:
            log.info("  Responses: %d", len(responses))


def format_output(operation: StressTestOperation, outcome: Outcome) -> dict[str, Any]:
    """Format an outcome for JSON output."""
    output: dict[str, Any] = {
        "file": operation.config.file,
        "summary": operation.summary,
        "status": outcome.name,
    }
    match outcome:
        case Passed(responses=responses):
            output["responses"] = [r.model_dump(mode="json") for r in responses]
        case Failed(error=error, responses=responses):
            output["error"] = error.model_dump(mode="json")
            output["responses"] = [r.model_dump(mode="json") for r in responses]
        case Errored(status=status, arguments=arguments):
            output["exit_status"] = status
            output["arguments"] = list(arguments)
        case Cancelled() | Unexecuted():
            pass
    return output


async def run(config: RunConfiguration) -> int:
    """Run one stress test operation and return exit code."""
    log = logging.getLogger("stress_test_runner")

    operation = StressTestOperation(config)

    loop = asyncio.get_running_loop()
    for signum in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(signum, operation.cancel)

    log.info("Running %s on %s", operation.summary, config.file)
    try:
        outcome = await operation.execute()
    finally:
        for signum in (signal.SIGINT, signal.SIGTERM):
            loop.remove_signal_handler(signum)

    log_outcome_summary(log, operation, outcome)
    print(json.dumps(format_output(operation, outcome), indent=2))

    return 0 if outcome.is_passed else 1


def parse_page(value: str) -> Page:
    """Argparse type for ``INDEX/TOTAL`` page values."""
    try:
        return Page.parse(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        description="Run the SourceKit stress tester against a single file"
    )
    parser.add_argument(
        "--executable",
        required=True,
        help="Path to the stress tester executable",
    )
    parser.add_argument(
        "--rewrite-mode",
        type=RewriteMode,
        choices=list(RewriteMode),
        default=RewriteMode.NONE,
        help="Rewrite mode to apply to the file",
    )
    parser.add_argument(
        "--page",
        type=parse_page,
        default=Page(index=1, total=1),
        help="Page of the workload to run, as INDEX/TOTAL (default: 1/1)",
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=None,
        help="Maximum number of requests to perform",
    )
    parser.add_argument(
        "--request",
        dest="requests",
        type=RequestKind,
        choices=list(RequestKind),
        action="append",
        default=None,
        help="Request kind to exercise (repeatable)",
    )
    parser.add_argument(
        "--type-list-item",
        dest="conforming_method_types",
        action="append",
        default=None,
        help="Type for ConformingMethodList requests (repeatable)",
    )
    parser.add_argument(
        "--report-responses",
        action="store_true",
        help="Include SourceKit responses in the output",
    )
    parser.add_argument(
        "--passthrough-tool",
        default="swiftc",
        help="Tool name placed before the compiler arguments",
    )
    parser.add_argument(
        "--terminate-timeout",
        type=float,
        default=5.0,
        help="Seconds to wait after SIGTERM before killing the stress tester",
    )
    parser.add_argument("file", help="Source file to stress test")
    parser.add_argument(
        "compiler_args",
        nargs=argparse.REMAINDER,
        help="Compiler arguments, after '--'",
    )
    return parser


def parse_config(argv: list[str] | None = None) -> RunConfiguration:
    """Parse command line arguments into a run configuration."""
    parser = build_parser()
    args = parser.parse_args(argv)

    compiler_args = list(args.compiler_args)
    if compiler_args[:1] == ["--"]:
        compiler_args = compiler_args[1:]

    try:
        return RunConfiguration(
            file=args.file,
            rewrite_mode=args.rewrite_mode,
            requests=args.requests,
            conforming_method_types=args.conforming_method_types,
            limit=args.limit,
            page=args.page,
            report_responses=args.report_responses,
            compiler_args=compiler_args,
            executable=args.executable,
            passthrough_tool=args.passthrough_tool,
            terminate_timeout=args.terminate_timeout,
        )
    except ValidationError as e:
        parser.error(str(e))


def main() -> None:
    """CLI entry point."""
    config = parse_config()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    sys.exit(asyncio.run(run(config)))


if __name__ == "__main__":  # pragma: no cover
    main()
