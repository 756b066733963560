from __future__ import annotations

import argparse
import logging
import os
import sys
import tempfile
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING, Final

from dotenv import load_dotenv

from hecate_revert import __version__
from hecate_revert.app import revert_deltas
from hecate_revert.common import configure_logging
from hecate_revert.config import (
    ConfigurationError,
    RevertConfig,
    get_hecate_config,
    get_revert_config,
)
from hecate_revert.config.hecate import normalize_url
from hecate_revert.domain.caching import VersionCheck
from hecate_revert.domain.history import VersionMode

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator, Sequence
    from types import FrameType

    from hecate_revert.domain.ports import TextSink

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Command:
    """A CLI sub-command: how to declare its arguments and how to run it."""

    name: str
    help: str
    configure: Callable[[argparse.ArgumentParser], None]
    run: Callable[[argparse.Namespace], int]


def _delta_id(value: str) -> int:
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Invalid delta id: {value}") from exc
    if parsed < 0:
        raise argparse.ArgumentTypeError(f"Delta id must be non-negative: {value}")
    return parsed


def _positive_int(value: str) -> int:
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Invalid integer: {value}") from exc
    if parsed < 1:
        raise argparse.ArgumentTypeError(f"Value must be at least 1: {value}")
    return parsed


def _hecate_url(value: str) -> str:
    try:
        return normalize_url(value)
    except ConfigurationError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def _configure_revert(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--start",
        type=_delta_id,
        required=True,
        help="First delta id to revert (inclusive)",
    )
    parser.add_argument(
        "--end",
        type=_delta_id,
        help="Last delta id to revert (inclusive, defaults to --start)",
    )
    parser.add_argument(
        "--output",
        type=str,
        help="File to write line-delimited inverse features to (defaults to stdout)",
    )
    parser.add_argument(
        "--url",
        type=_hecate_url,
        help="URL of the Hecate instance, including protocol and port (defaults to HECATE_URL)",
    )
    parser.add_argument(
        "--concurrency",
        type=_positive_int,
        help="Maximum number of concurrent history requests (defaults to config)",
    )
    parser.add_argument(
        "--version-check",
        choices=[check.value for check in VersionCheck],
        help="How to treat a delta version that differs from the fetched history",
    )
    parser.add_argument(
        "--strict-versions",
        action="store_true",
        help="Reject history entries without a version instead of sorting them first",
    )
    parser.add_argument(
        "--fail-fast",
        action="store_true",
        help="Abort on the first feature that cannot be reverted",
    )


@contextmanager
def _open_sink(output: str | None) -> Iterator[TextSink]:
    """Yield stdout, or a sibling temp file that replaces ``output`` only on success."""
    if output is None or output == "-":
        yield sys.stdout
        sys.stdout.flush()
        return
    target = Path(output)
    handle, name = tempfile.mkstemp(
        prefix=f".{target.name}.", suffix=".tmp", dir=target.parent.resolve()
    )
    partial = Path(name)
    try:
        with os.fdopen(handle, "w", encoding="utf-8") as stream:
            yield stream
        os.replace(partial, target)
    finally:
        partial.unlink(missing_ok=True)


def _run_revert(args: argparse.Namespace) -> int:
    defaults = get_revert_config()
    config = RevertConfig(
        concurrency=args.concurrency or defaults.concurrency,
        version_mode=VersionMode.STRICT if args.strict_versions else defaults.version_mode,
        version_check=(
            VersionCheck(args.version_check) if args.version_check else defaults.version_check
        ),
        fail_fast=args.fail_fast or defaults.fail_fast,
    )
    hecate = get_hecate_config(url=args.url)
    end = args.end if args.end is not None else args.start

    with _open_sink(args.output) as sink:
        summary = revert_deltas(
            start=args.start,
            end=end,
            sink=sink,
            hecate_config=hecate,
            revert_config=config,
        )

    for failure in summary.failures:
        log.error("Feature %s not reverted: %s", failure.entity_id, failure.error)
    return 1 if summary.failures else 0


COMMANDS: Final[tuple[Command, ...]] = (
    Command(
        name="revert",
        help="Revert data from a specified delta range",
        configure=_configure_revert,
        run=_run_revert,
    ),
)
COMMANDS_BY_NAME: Final[dict[str, Command]] = {command.name: command for command in COMMANDS}


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="hecate-revert",
        description="Compute corrective features that undo Hecate deltas",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)
    for command in COMMANDS:
        command.configure(subparsers.add_parser(command.name, help=command.help))
    return parser.parse_args(list(argv))


def _validate(args: argparse.Namespace) -> None:
    if args.command == "revert" and args.end is not None and args.start > args.end:
        raise ValueError(f"--start {args.start} must not exceed --end {args.end}")


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    configure_logging()
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
        _validate(parsed_args)
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(2)

    if parsed_args.verbose:
        configure_logging(level=logging.DEBUG, force=True)

    try:
        exit_code = COMMANDS_BY_NAME[parsed_args.command].run(parsed_args)
    except Exception:
        log.exception("Fatal error during %s", parsed_args.command)
        sys.exit(1)

    if exit_code:
        sys.exit(exit_code)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
