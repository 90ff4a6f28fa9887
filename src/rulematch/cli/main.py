from __future__ import annotations

import argparse
import sys
from typing import Sequence

from rulematch.cli.query import handle_hash_query_command, register_hash_query_parser
from rulematch.cli.reconcile import (
    handle_reconcile_command,
    load_settings,
    register_reconcile_parser,
)
from rulematch.cli.ux import error
from rulematch.core.errors import ConfigurationError, format_error_message
from rulematch.logging import configure_logging

COMMANDS = {
    "reconcile": handle_reconcile_command,
    "hash-query": handle_hash_query_command,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rulematch",
        description="Reconcile evaluating rules with their stored configuration",
    )
    subparsers = parser.add_subparsers(dest="command")
    register_reconcile_parser(subparsers)
    register_hash_query_parser(subparsers)
    return parser


def main(argv: Sequence[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command not in COMMANDS:
        parser.print_help()
        sys.exit(1)

    try:
        settings = load_settings()
    except ConfigurationError as e:
        error(format_error_message(e))
        sys.exit(e.exit_code)

    configure_logging(settings.log_level, settings.log_format)
    sys.exit(COMMANDS[args.command](args))


if __name__ == "__main__":
    main()
