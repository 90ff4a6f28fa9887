"""
CLI command for inspecting query canonicalization.

Commands:
    rulematch hash-query 'up{job="api"}'              - Print the query hash
    rulematch hash-query 'up{job="api"}' --canonical  - Print the canonical text
"""

from __future__ import annotations

import argparse

from rulematch.cli.reconcile import load_settings
from rulematch.cli.ux import plain
from rulematch.config.settings import Settings
from rulematch.core.errors import ExitCode, main_with_error_handling
from rulematch.query import canonicalize_query, get_canonicalizer, hash_query


@main_with_error_handling()
def hash_query_command(
    expression: str,
    canonical: bool = False,
    settings: Settings | None = None,
) -> int:
    """Print the hash (or canonical form) of a query expression."""
    settings = settings or load_settings()
    canonicalizer = get_canonicalizer(settings.query_language)

    if canonical:
        plain(canonicalize_query(expression, canonicalizer))
    else:
        plain(hash_query(expression, canonicalizer))
    return ExitCode.SUCCESS


def handle_hash_query_command(args: argparse.Namespace) -> int:
    return hash_query_command(expression=args.expression, canonical=args.canonical)


def register_hash_query_parser(subparsers: argparse._SubParsersAction) -> None:
    parser = subparsers.add_parser("hash-query", help="Print the canonical hash of a query")
    parser.add_argument("expression", help="Query expression")
    parser.add_argument(
        "--canonical",
        action="store_true",
        help="Print the canonical text instead of its hash",
    )
