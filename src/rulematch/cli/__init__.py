"""
CLI commands for rulematch.
"""

from rulematch.cli.query import hash_query_command
from rulematch.cli.reconcile import reconcile_command

__all__ = [
    "reconcile_command",
    "hash_query_command",
]
