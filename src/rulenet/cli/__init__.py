"""
rulenet CLI - Command-line interface for rule-based gene interaction networks.

Commands:
    rulenet filter    - Filter a rule table by p-value, accuracy, coverage and size
    rulenet network   - Gene co-occurrence network and degree distribution
    rulenet genes     - Resolved gene lists per decision class (enrichment input)
"""

import argparse
import sys
from typing import Optional, List


def main(args: Optional[List[str]] = None) -> int:
    """Main CLI dispatcher for rulenet."""
    parser = argparse.ArgumentParser(
        prog="rulenet",
        description="Rule-based gene interaction networks for single-cell clusters",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Commands:
  filter    Filter a rule table by p-value, accuracy, coverage and size
  network   Gene co-occurrence network and degree distribution
  genes     Resolved gene lists per decision class (enrichment input)

Examples:
  rulenet filter --rules rules.csv --output significant.csv --preset significant high-quality
  rulenet network --rules rules.csv --output results/network
  rulenet genes --rules rules.csv --decision cluster_4 --target-namespace entrez
  rulenet network --config rulenet.yaml --p-max 0.01
        """
    )

    parser.add_argument(
        "--version", "-V",
        action="version",
        version="%(prog)s 0.1.0"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Import and register subcommands
    from rulenet.cli import filtering, network, genes
    filtering.register_parser(subparsers)
    network.register_parser(subparsers)
    genes.register_parser(subparsers)

    raw_args = sys.argv[1:] if args is None else list(args)
    parsed_args = parser.parse_args(raw_args)

    if parsed_args.command is None:
        parser.print_help()
        return 0

    # Raw arguments let config merging tell explicit values from defaults
    parsed_args.cli_args = raw_args

    # Dispatch to subcommand
    try:
        return parsed_args.func(parsed_args)
    except (FileNotFoundError, ValueError) as e:
        print(f"rulenet {parsed_args.command}: error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
