"""
CLI command for rule reconciliation.

Matches the rules stored by the configuration API against the rules reported
by the evaluation API and lists the rules present on only one side.

Commands:
    rulematch reconcile --configuration ruler.yaml --evaluation rules.json
    rulematch reconcile ... --output json
"""

from __future__ import annotations

import argparse
import json

from pydantic import ValidationError as PydanticValidationError

from rulematch.cli.ux import console, error, header, info, print_table, success, warning
from rulematch.config.settings import Settings, get_settings
from rulematch.core.errors import (
    ConfigurationError,
    ExitCode,
    RuleMatchError,
    format_error_message,
    main_with_error_handling,
)
from rulematch.logging import bind_context
from rulematch.matching import FingerprintCache, ReconcileReport, reconcile
from rulematch.query import get_canonicalizer
from rulematch.rules import (
    RuleGroup,
    load_document,
    parse_configuration_groups,
    parse_evaluation_groups,
)


def load_settings() -> Settings:
    """Load settings, reporting bad environment values as configuration errors."""
    try:
        return get_settings()
    except PydanticValidationError as e:
        first = e.errors()[0]
        raise ConfigurationError(
            f"Invalid setting: {first['msg']}",
            {"setting": ".".join(str(part) for part in first["loc"])},
        ) from e


@main_with_error_handling()
def reconcile_command(
    configuration_file: str,
    evaluation_file: str,
    namespace: str | None = None,
    group: str | None = None,
    output_format: str = "table",
    fail_on_orphans: bool = False,
    settings: Settings | None = None,
) -> int:
    """
    Reconcile a configuration document against an evaluation document.

    Exit codes:
        0 - Reconciled (orphans allowed)
        1 - Orphaned rules found and fail_on_orphans set
        10 - Input file or settings problem
        12 - Malformed rule document

    Args:
        configuration_file: YAML/JSON from the configuration API
        evaluation_file: YAML/JSON from the evaluation API
        namespace: Only reconcile groups in this namespace
        group: Only reconcile groups with this name
        output_format: "table" or "json"
        fail_on_orphans: Exit 1 when any rule exists on one side only
        settings: Settings override (environment by default)
    """
    try:
        report = _reconcile_files(
            configuration_file, evaluation_file, namespace, group, settings or load_settings()
        )
    except RuleMatchError as e:
        error(format_error_message(e))
        raise

    if output_format == "json":
        console.print_json(json.dumps(report.to_dict()))
    else:
        _print_report(report)

    if fail_on_orphans and report.has_orphans:
        return ExitCode.WARNING
    return ExitCode.SUCCESS


def _reconcile_files(
    configuration_file: str,
    evaluation_file: str,
    namespace: str | None,
    group: str | None,
    settings: Settings,
) -> ReconcileReport:
    log = bind_context(command="reconcile", namespace=namespace, group=group)

    configuration = parse_configuration_groups(load_document(configuration_file))
    evaluation = parse_evaluation_groups(load_document(evaluation_file))
    configuration = _select(configuration, namespace, group)
    evaluation = _select(evaluation, namespace, group)

    canonicalizer = get_canonicalizer(settings.query_language)
    cache = None
    if settings.fingerprint_cache_size > 0:
        cache = FingerprintCache(maxsize=settings.fingerprint_cache_size)

    report = reconcile(configuration, evaluation, canonicalizer, cache)
    log.debug(
        "reconcile_finished",
        matched=report.matched,
        configuration_only=report.configuration_only,
        evaluation_only=report.evaluation_only,
        cache=cache.stats() if cache is not None else None,
    )
    return report


def _select(groups: list[RuleGroup], namespace: str | None, name: str | None) -> list[RuleGroup]:
    return [
        g
        for g in groups
        if (namespace is None or g.namespace == namespace) and (name is None or g.name == name)
    ]


def _print_report(report: ReconcileReport) -> None:
    """Print reconciliation as formatted tables."""
    for reconciliation in report.groups:
        header(f"{reconciliation.namespace} / {reconciliation.name}")
        result = reconciliation.result
        rows = [
            [configured.name, evaluating.name, result.outcomes[configured].kind.value]
            for configured, evaluating in result.matches.items()
        ]
        rows.extend([rule.name, "-", "configuration only"] for rule in result.unmatched_a)
        rows.extend(["-", rule.name, "evaluation only"] for rule in result.unmatched_b)
        print_table("Rules", ["Configuration", "Evaluation", "Match"], rows)

    for group in report.configuration_only_groups:
        warning(f"Group {group.namespace}/{group.name} is configured but not evaluating")
    for group in report.evaluation_only_groups:
        warning(f"Group {group.namespace}/{group.name} is evaluating but not configured")

    console.print()
    summary = (
        f"{report.matched} matched, {report.configuration_only} configuration only, "
        f"{report.evaluation_only} evaluation only"
    )
    if report.has_orphans:
        info(summary)
    else:
        success(summary)


def handle_reconcile_command(args: argparse.Namespace) -> int:
    """Handle the reconcile subcommand from parsed arguments."""
    return reconcile_command(
        configuration_file=args.configuration,
        evaluation_file=args.evaluation,
        namespace=args.namespace,
        group=args.group,
        output_format=args.output,
        fail_on_orphans=args.fail_on_orphans,
    )


def register_reconcile_parser(subparsers: argparse._SubParsersAction) -> None:
    """Register the reconcile subcommand."""
    parser = subparsers.add_parser(
        "reconcile", help="Match configured rules against evaluating rules"
    )
    parser.add_argument("--configuration", required=True, help="Configuration API document")
    parser.add_argument("--evaluation", required=True, help="Evaluation API document")
    parser.add_argument("--namespace", help="Only reconcile this namespace")
    parser.add_argument("--group", help="Only reconcile groups with this name")
    parser.add_argument("--output", choices=["table", "json"], default="table")
    parser.add_argument(
        "--fail-on-orphans",
        action="store_true",
        help="Exit 1 when a rule exists on only one side",
    )
