"""
rulenet - Rule-based gene interaction networks for single-cell clusters

Filters decision rules that predict cluster membership from discretized gene
expression, derives gene co-occurrence networks from the rule antecedents,
summarizes their degree distribution, and prepares resolved gene lists for
enrichment testing.
"""

__version__ = "0.1.0"

from rulenet.core.identifiers import GeneIdentifier, Namespace
from rulenet.core.rules import Rule, RuleSet, select_by_decision
from rulenet.core.filtering import RulePredicates, filter_rules
from rulenet.mapping.resolver import IdentifierResolver
from rulenet.network.builder import build_interaction_network
from rulenet.network.degree import compute_degree_frequencies

__all__ = [
    "GeneIdentifier",
    "Namespace",
    "Rule",
    "RuleSet",
    "select_by_decision",
    "RulePredicates",
    "filter_rules",
    "IdentifierResolver",
    "build_interaction_network",
    "compute_degree_frequencies",
]
