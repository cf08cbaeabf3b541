"""
rulenet genes command - Resolved gene lists per decision class.

Selects the significant rules of each decision class (or the ones given with
--decision), collects their antecedent genes and resolves them to the
namespace the enrichment tool expects. Ids without a mapping are kept with
their original text and flagged resolved=False, never dropped.

Usage:
    rulenet genes --rules rules.csv --decision cluster_4 --target-namespace entrez
    rulenet genes --rules rules.csv --annotation-table genes.csv --output results/genes
"""

import argparse
import json
import logging
import re
from pathlib import Path

from rulenet.cli._common import (
    add_filter_arguments,
    add_input_arguments,
    apply_config,
    load_rules,
    predicates_from_args,
    setup_logging,
)
from rulenet.cli._validators import _unit_interval
from rulenet.cli.config import EnrichmentSettings, MappingConfig
from rulenet.core.filtering import filter_rules
from rulenet.core.identifiers import Namespace
from rulenet.interfaces import AdjustmentMethod, EnrichmentConfig, Ontology
from rulenet.io.writers import write_identifiers
from rulenet.mapping.id_mapping import AnnotationTableMapper, LookupUnavailableError, MyGeneInfoMapper
from rulenet.mapping.resolver import IdentifierResolver
from rulenet.pipeline import enrichment_requests

logger = logging.getLogger(__name__)


def register_parser(subparsers: argparse._SubParsersAction) -> None:
    """Register the genes subcommand."""
    mapping_defaults = MappingConfig()
    enrichment_defaults = EnrichmentSettings()

    parser = subparsers.add_parser(
        "genes",
        help="Resolved antecedent gene lists per decision class (enrichment input)",
        description=(
            "Collect the antecedent genes of each decision class and resolve them "
            "to the target namespace for GO/Reactome enrichment testing."
        )
    )
    add_input_arguments(parser, namespace=False)
    parser.add_argument("--output", "-o", type=Path, default=Path("results/genes"),
                        help="Output directory (default: results/genes)")
    parser.add_argument("--decision", "-d", nargs="+", default=None,
                        help="Decision classes to export (default: all)")
    add_filter_arguments(parser)

    mapping = parser.add_argument_group("identifier mapping")
    namespaces = [ns.value for ns in Namespace]
    mapping.add_argument("--source-namespace", choices=namespaces, default=mapping_defaults.source,
                         help=f"Namespace of rule features (default: {mapping_defaults.source})")
    mapping.add_argument("--target-namespace", choices=namespaces, default=mapping_defaults.target,
                         help=f"Namespace to resolve to (default: {mapping_defaults.target})")
    mapping.add_argument("--species", default=mapping_defaults.species,
                         help=f"mygene.info species (default: {mapping_defaults.species})")
    mapping.add_argument("--annotation-table", type=Path, default=mapping_defaults.annotation_table,
                         help="Offline annotation CSV with symbol/ensembl_gene/entrez columns "
                              "(default: query mygene.info)")
    mapping.add_argument("--cache-dir", type=Path, default=mapping_defaults.cache_dir,
                         help="mygene.info cache directory")

    enrichment = parser.add_argument_group("enrichment settings")
    enrichment.add_argument("--organism", default=enrichment_defaults.organism,
                            help=f"Background annotation reference (default: {enrichment_defaults.organism})")
    enrichment.add_argument("--ontology", choices=[o.value for o in Ontology],
                            default=enrichment_defaults.ontology,
                            help=f"Ontology (default: {enrichment_defaults.ontology})")
    enrichment.add_argument("--p-value-cutoff", type=_unit_interval,
                            default=enrichment_defaults.p_value_cutoff,
                            help=f"Enrichment p-value cutoff (default: {enrichment_defaults.p_value_cutoff})")
    enrichment.add_argument("--q-value-cutoff", type=_unit_interval,
                            default=enrichment_defaults.q_value_cutoff,
                            help=f"Enrichment q-value cutoff (default: {enrichment_defaults.q_value_cutoff})")
    enrichment.add_argument("--adjustment-method", choices=[m.value for m in AdjustmentMethod],
                            default=enrichment_defaults.adjustment_method,
                            help=f"Multiple-testing adjustment (default: {enrichment_defaults.adjustment_method})")

    parser.set_defaults(func=run_genes)


def _safe_name(decision: str) -> str:
    return re.sub(r'[^A-Za-z0-9_.-]+', '_', decision)


def run_genes(args: argparse.Namespace) -> int:
    """Execute the genes command."""
    setup_logging(args.verbose)
    args = apply_config(args)

    rules = filter_rules(load_rules(args.rules, args.source_namespace), predicates_from_args(args))

    if args.annotation_table:
        mapper = AnnotationTableMapper.from_csv(args.annotation_table)
        logger.info(f"Mapping identifiers with annotation table {args.annotation_table}")
    else:
        mapper = MyGeneInfoMapper(cache_dir=args.cache_dir, species=args.species)
        logger.info(f"Mapping identifiers with mygene.info (species={args.species})")
    resolver = IdentifierResolver(mapper)

    config = EnrichmentConfig(
        ontology=Ontology(args.ontology),
        p_value_cutoff=args.p_value_cutoff,
        q_value_cutoff=args.q_value_cutoff,
        adjustment_method=AdjustmentMethod(args.adjustment_method),
    )

    try:
        requests = enrichment_requests(
            rules,
            resolver,
            args.organism,
            source=args.source_namespace,
            target=args.target_namespace,
            config=config,
            decisions=args.decision,
        )
    except LookupUnavailableError as e:
        logger.error(f"Identifier mapping unavailable: {e}")
        return 2

    args.output.mkdir(parents=True, exist_ok=True)

    print(f"\n{'='*70}")
    print("  Enrichment Gene Lists")
    print(f"{'='*70}")
    print(f"  {len(rules)} rules pass filter; {args.source_namespace} → {args.target_namespace}")

    manifest = {
        'organism': args.organism,
        'config': config.to_dict(),
        'decisions': {},
    }
    for request in requests:
        path = args.output / f"genes_{_safe_name(request.decision)}.csv"
        write_identifiers(request.identifiers, path)
        manifest['decisions'][request.decision] = {
            'file': path.name,
            'n_genes': len(request.identifiers),
            'n_unresolved': request.n_unresolved,
        }
        print(f"    {request.decision}: {len(request.identifiers)} genes "
              f"({request.n_unresolved} unresolved) → {path.name}")

    if not requests:
        print("  No decision classes to export.")

    with open(args.output / "enrichment_requests.json", 'w') as f:
        json.dump(manifest, f, indent=2)

    logger.info(f"Results saved to: {args.output}")
    return 0
