"""
rulenet filter command - Threshold filtering of a rule table.

Usage:
    rulenet filter --rules rules.csv --output significant.csv --preset significant high-quality
"""

import argparse
import json
import logging
from pathlib import Path

from rulenet.cli._common import (
    add_filter_arguments,
    add_input_arguments,
    apply_config,
    load_rules,
    predicates_from_args,
    setup_logging,
)
from rulenet.core.filtering import filter_rules
from rulenet.io.rule_tables import write_rule_table

logger = logging.getLogger(__name__)


def register_parser(subparsers: argparse._SubParsersAction) -> None:
    """Register the filter subcommand."""
    parser = subparsers.add_parser(
        "filter",
        help="Filter a rule table by p-value, accuracy, coverage and size",
        description=(
            "Apply a conjunction of rule thresholds. Thresholds and presets "
            "combine into the strictest setting; rule order is preserved."
        )
    )
    add_input_arguments(parser)
    parser.add_argument("--output", "-o", type=Path, default=Path("results/filtered_rules.csv"),
                        help="Output CSV (default: results/filtered_rules.csv)")
    add_filter_arguments(parser)
    parser.set_defaults(func=run_filter)


def run_filter(args: argparse.Namespace) -> int:
    """Execute the filter command."""
    setup_logging(args.verbose)
    args = apply_config(args)

    rules = load_rules(args.rules, args.namespace)
    predicates = predicates_from_args(args)
    filtered = filter_rules(rules, predicates)

    write_rule_table(filtered, args.output)

    print(f"\n{'='*70}")
    print("  Rule Filter")
    print(f"{'='*70}")
    print(f"  Thresholds: {json.dumps(predicates.to_dict())}")
    print(f"  Rules kept: {len(filtered)}/{len(rules)}")
    for decision in filtered.decisions():
        n = sum(1 for rule in filtered if rule.decision == decision)
        print(f"    {decision}: {n}")
    print(f"  Output:     {args.output}")
    return 0
