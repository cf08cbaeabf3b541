"""
rulenet network command - Gene interaction network from rule antecedents.

Filters the rule table, connects genes that co-occur in multi-feature rule
antecedents and writes the network with its degree distribution.

Usage:
    rulenet network --rules rules.csv --output results/network --preset high-quality
"""

import argparse
import json
import logging
from datetime import datetime
from pathlib import Path

from rulenet.cli._common import (
    add_filter_arguments,
    add_input_arguments,
    apply_config,
    load_rules,
    predicates_from_args,
    setup_logging,
)
from rulenet.cli._validators import _non_negative_int
from rulenet.cli.config import NetworkConfig
from rulenet.core.filtering import RulePredicates
from rulenet.io.rule_tables import write_rule_table
from rulenet.io.writers import write_network
from rulenet.network.degree import node_degree_frame
from rulenet.pipeline import analyze_rules

logger = logging.getLogger(__name__)


def register_parser(subparsers: argparse._SubParsersAction) -> None:
    """Register the network subcommand."""
    parser = subparsers.add_parser(
        "network",
        help="Build the gene co-occurrence network of a rule table",
        description=(
            "Connect genes appearing together in the antecedent of a significant "
            "rule. Writes the edge list, per-gene degrees and the degree-frequency "
            "table for scale-free inspection."
        )
    )
    add_input_arguments(parser)
    parser.add_argument("--output", "-o", type=Path, default=Path("results/network"),
                        help="Output directory (default: results/network)")
    add_filter_arguments(parser)
    parser.add_argument("--network-min-size", type=_non_negative_int, default=NetworkConfig().min_size,
                        help="Minimum antecedent size of rules contributing edges "
                             f"(default: {NetworkConfig().min_size})")
    parser.add_argument("--top-hubs", type=_non_negative_int, default=10,
                        help="Number of hub genes to print (default: 10)")
    parser.set_defaults(func=run_network)


def run_network(args: argparse.Namespace) -> int:
    """Execute the network command."""
    setup_logging(args.verbose)
    args = apply_config(args)

    rules = load_rules(args.rules, args.namespace)
    predicates = predicates_from_args(args)
    network_predicates = RulePredicates(min_size=args.network_min_size)
    result = analyze_rules(rules, predicates, network_predicates)

    args.output.mkdir(parents=True, exist_ok=True)
    write_rule_table(result.significant_rules, args.output / "filtered_rules.csv")
    write_network(result.graph, args.output)

    summary = result.summary()

    print(f"\n{'='*70}")
    print("  Rule Interaction Network")
    print(f"{'='*70}")
    print(f"  Rules:            {summary['n_rules']} loaded, "
          f"{summary['n_significant_rules']} pass filter, "
          f"{summary['n_network_rules']} multi-feature")
    print(f"  Network:          {summary['n_nodes']} genes, {summary['n_edges']} edges")
    if result.degree_frequencies:
        print(f"\n  Degree distribution:")
        for degree, frequency in result.degree_frequencies.items():
            print(f"    degree {degree:>4}: {frequency} genes")

        hubs = node_degree_frame(result.graph).head(args.top_hubs)
        print(f"\n  Top {len(hubs)} hub genes:")
        for _, row in hubs.iterrows():
            print(f"    {row['gene']}: {row['degree']}")
    else:
        print("\n  No multi-feature rules passed the filter; network is empty.")

    config = {
        'timestamp': datetime.now().isoformat(),
        'rules': str(args.rules),
        'namespace': args.namespace,
        'filter': predicates.to_dict(),
        'network_filter': network_predicates.to_dict(),
        **summary,
    }
    with open(args.output / "config.json", 'w') as f:
        json.dump(config, f, indent=2)

    logger.info(f"Results saved to: {args.output}")
    return 0
