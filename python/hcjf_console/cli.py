"""hcjf-console CLI entry point."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import List, Optional

from .console import Console
from .context import (
    DEFAULT_COMMAND_TIMEOUT_MS,
    DEFAULT_CONNECT_TIMEOUT_MS,
    DEFAULT_PAGE_SIZE,
    ConsoleContext,
)
from .parser import DEFAULT_DATE_FORMAT

LOG = logging.getLogger("hcjf_console.cli")


def _configure_logging(level: str, log_file: Optional[str] = None) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        filename=log_file,
    )


def _positive_int(text: str) -> int:
    value = int(text)
    if value <= 0:
        raise argparse.ArgumentTypeError(f"must be greater than zero: {text}")
    return value


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hcjf-console",
        description="Interactive console for an hcjf server",
        epilog="example: hcjf-console localhost 5900",
    )
    parser.add_argument("host", help="Server host")
    parser.add_argument("port", type=int, help="Server console port")
    parser.add_argument("--prompt", default=":", help="Root shell prompt (default ':')")
    parser.add_argument(
        "--timeout",
        type=_positive_int,
        default=DEFAULT_COMMAND_TIMEOUT_MS,
        help=f"Request timeout in ms (default {DEFAULT_COMMAND_TIMEOUT_MS})",
    )
    parser.add_argument(
        "--connect-timeout",
        type=_positive_int,
        default=DEFAULT_CONNECT_TIMEOUT_MS,
        help=f"Connection timeout in ms (default {DEFAULT_CONNECT_TIMEOUT_MS})",
    )
    parser.add_argument(
        "--date-format",
        default=DEFAULT_DATE_FORMAT,
        help="strptime format used for quoted date parameters",
    )
    parser.add_argument(
        "--page-size",
        type=_positive_int,
        default=DEFAULT_PAGE_SIZE,
        help=f"Rows per page in the query shell (default {DEFAULT_PAGE_SIZE})",
    )
    parser.add_argument(
        "--log-level",
        default=os.environ.get("HCJF_CONSOLE_LOG", "WARNING"),
        help="Logging level (default WARNING)",
    )
    parser.add_argument("--log-file", help="Write log records to this file instead of stderr")
    return parser


def build_context(args: argparse.Namespace) -> ConsoleContext:
    return ConsoleContext(
        host=args.host,
        port=args.port,
        prompt=args.prompt,
        connect_timeout_ms=args.connect_timeout,
        timeout_ms=args.timeout,
        date_format=args.date_format,
        page_size=args.page_size,
    )


def main(argv: List[str] | None = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.log_level, args.log_file)
    console = Console(build_context(args))
    try:
        return console.run()
    except KeyboardInterrupt:
        print()
        return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
