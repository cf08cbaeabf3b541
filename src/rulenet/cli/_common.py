"""
Shared plumbing for rulenet subcommands: filter arguments, config merging,
logging setup and rule loading.
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Optional

from rulenet.cli._validators import _non_negative_int, _unit_interval
from rulenet.cli.config import FilterConfig, load_config, merge_config_with_args, validate_config
from rulenet.core.filtering import (
    HIGH_QUALITY,
    MULTI_FEATURE,
    SIGNIFICANT,
    RulePredicates,
)
from rulenet.core.identifiers import Namespace
from rulenet.core.rules import RuleSet
from rulenet.io.rule_tables import load_rule_table

logger = logging.getLogger(__name__)

PRESETS = {
    'significant': SIGNIFICANT,
    'high-quality': HIGH_QUALITY,
    'multi-feature': MULTI_FEATURE,
}


def add_input_arguments(parser: argparse.ArgumentParser, namespace: bool = True) -> None:
    """Rule table input, config file and verbosity."""
    parser.add_argument("--rules", "-r", type=Path, default=None,
                        help="Rule table CSV/TSV (R.ROSETTA layout)")
    if namespace:
        parser.add_argument("--namespace", default="symbol",
                            choices=[ns.value for ns in Namespace],
                            help="Namespace of the rule features (default: symbol)")
    parser.add_argument("--config", "-c", type=Path, default=None,
                        help="YAML/JSON config file (CLI arguments take precedence)")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Debug logging")


def add_filter_arguments(parser: argparse.ArgumentParser) -> None:
    """Rule filter thresholds and presets."""
    defaults = FilterConfig()
    group = parser.add_argument_group("rule filter")
    group.add_argument("--p-max", type=_unit_interval, default=defaults.p_max,
                       help=f"Keep rules with pValue <= P_MAX (default: {defaults.p_max})")
    group.add_argument("--min-accuracy", type=_unit_interval, default=defaults.min_accuracy,
                       help="Keep rules with accuracyRHS >= MIN_ACCURACY")
    group.add_argument("--min-coverage", type=_unit_interval, default=defaults.min_coverage,
                       help="Keep rules with coverageRHS >= MIN_COVERAGE")
    group.add_argument("--min-size", type=_non_negative_int, default=defaults.min_size,
                       help="Keep rules with at least MIN_SIZE antecedent features")
    group.add_argument("--preset", nargs="+", default=[], choices=sorted(PRESETS),
                       help="Named threshold sets, combined with the thresholds above "
                            "(significant: p<=0.05; high-quality: acc>=0.55, cov>=0.2; "
                            "multi-feature: size>=2)")


def setup_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def apply_config(args: argparse.Namespace) -> argparse.Namespace:
    """Merge --config values into args (explicit CLI arguments win)."""
    if not getattr(args, 'config', None):
        return args
    config = load_config(args.config)
    validate_config(config)
    logger.info(f"Loaded config: {args.config}")
    return merge_config_with_args(config, args, getattr(args, 'cli_args', None))


def predicates_from_args(args: argparse.Namespace) -> RulePredicates:
    """Combine threshold arguments and presets into one predicate set."""
    predicates = RulePredicates(
        p_max=args.p_max,
        min_accuracy=args.min_accuracy,
        min_coverage=args.min_coverage,
        min_size=args.min_size,
    )
    for name in args.preset:
        predicates = predicates & PRESETS[name]
    return predicates


def load_rules(path: Optional[Path], namespace: str) -> RuleSet:
    """Load the rule table, reporting skipped malformed rows."""
    if path is None:
        raise ValueError("No rule table given (use --rules or set 'rules' in the config file)")
    result = load_rule_table(path, namespace=namespace)
    logger.info(f"Loaded {len(result.rules)} rules from {path}")
    if result.n_malformed:
        logger.warning(f"{result.n_malformed} malformed rules skipped (rows {list(result.malformed_rows)[:10]})")
    return result.rules
