"""
End-to-end rule network analysis.

The analysis is a linear chain of pure functions over immutable values:

    preprocessor ─► decision table ─► rule induction ─► raw rules
        raw rules ─► filter ─► significant rules
            ├─► interaction network ─► degree frequencies ─► distribution fit
            └─► per-class subset ─► identifier resolution ─► enrichment

analyze_rules() and enrichment_requests() cover the parts rulenet computes
itself and can be called on any RuleSet, e.g. one loaded from an R.ROSETTA
export. RuleNetworkPipeline wires them to the external collaborators.

Examples:
    >>> from rulenet.pipeline import analyze_rules
    >>> from rulenet.core.filtering import SIGNIFICANT, HIGH_QUALITY
    >>>
    >>> result = analyze_rules(rules, SIGNIFICANT & HIGH_QUALITY)
    >>> result.degree_frequencies
    {1: 2, 2: 1}
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Union
import logging

import networkx as nx
import numpy as np

from rulenet.core.filtering import MULTI_FEATURE, SIGNIFICANT, RulePredicates, filter_rules
from rulenet.core.identifiers import Namespace
from rulenet.core.rules import RuleSet, select_by_decision
from rulenet.interfaces import (
    DistributionFitter,
    EnrichmentConfig,
    EnrichmentRequest,
    EnrichmentTester,
    ExpressionPreprocessor,
    RuleInductionConfig,
    RuleInductionEngine,
)
from rulenet.io.decision_table import build_decision_table
from rulenet.mapping.resolver import IdentifierResolver
from rulenet.network.builder import build_interaction_network
from rulenet.network.degree import compute_degree_frequencies, degree_values

logger = logging.getLogger(__name__)

__all__ = [
    'RuleNetworkResult',
    'analyze_rules',
    'build_enrichment_request',
    'enrichment_requests',
    'RuleNetworkPipeline',
]


@dataclass(frozen=True, eq=False)
class RuleNetworkResult:
    """
    Results of one rule network analysis.

    Attributes:
        rules: Rules the analysis started from
        significant_rules: Rules passing the significance/quality filter
        network_rules: Significant rules used for the network
        graph: Frozen interaction network
        degree_frequencies: degree → node count
        degree_values: Per-node degrees (DistributionFitter input)
        quality: Rule-induction quality score, when rules were induced here
        distribution_fit: DistributionFitter output, when a fitter was used
    """
    rules: RuleSet
    significant_rules: RuleSet
    network_rules: RuleSet
    graph: nx.Graph
    degree_frequencies: Dict[int, int]
    degree_values: np.ndarray
    quality: Optional[float] = None
    distribution_fit: Any = None

    def summary(self) -> Dict[str, Any]:
        return {
            'n_rules': len(self.rules),
            'n_significant_rules': len(self.significant_rules),
            'n_network_rules': len(self.network_rules),
            'n_nodes': self.graph.number_of_nodes(),
            'n_edges': self.graph.number_of_edges(),
            'max_degree': int(self.degree_values.max()) if self.degree_values.size else 0,
            'decisions': self.significant_rules.decisions(),
            'quality': self.quality,
        }


def analyze_rules(
    rules: RuleSet,
    predicates: RulePredicates = SIGNIFICANT,
    network_predicates: RulePredicates = MULTI_FEATURE,
) -> RuleNetworkResult:
    """
    Filter rules and derive the interaction network with its degree statistics.

    Args:
        rules: Raw rules
        predicates: Filter producing the significant rule set
        network_predicates: Additional filter for the rules feeding the
            network (single-feature rules never contribute edges anyway)

    Returns:
        RuleNetworkResult; empty rule sets give an empty graph and empty
        degree table
    """
    significant = filter_rules(rules, predicates)
    network_rules = filter_rules(significant, network_predicates)
    graph = build_interaction_network(network_rules)
    frequencies = compute_degree_frequencies(graph)
    degrees = degree_values(graph)

    logger.info(
        f"Rules: {len(rules)} raw → {len(significant)} significant → {len(network_rules)} in network; "
        f"network has {graph.number_of_nodes()} genes, {graph.number_of_edges()} edges"
    )
    return RuleNetworkResult(
        rules=rules,
        significant_rules=significant,
        network_rules=network_rules,
        graph=graph,
        degree_frequencies=frequencies,
        degree_values=degrees,
    )


def build_enrichment_request(
    rules: RuleSet,
    decision: str,
    resolver: IdentifierResolver,
    organism: str,
    source: Union[Namespace, str] = Namespace.SYMBOL,
    target: Union[Namespace, str] = Namespace.ENTREZ,
    config: Optional[EnrichmentConfig] = None,
) -> EnrichmentRequest:
    """
    Enrichment input for the genes of one decision class.

    Genes are the distinct antecedent features of the rules predicting the
    decision, in first-appearance order, resolved to the target namespace.

    Raises:
        LookupUnavailableError: If the mapping facility is unreachable
    """
    subset = select_by_decision(rules, decision)
    genes = [gene.value for gene in subset.genes()]
    identifiers, report = resolver.resolve_with_report(genes, source, target)
    logger.info(
        f"{decision}: {len(subset)} rules, {len(genes)} genes, "
        f"{report.n_unresolved} without {report.target.value} mapping"
    )
    return EnrichmentRequest(
        identifiers=tuple(identifiers),
        organism=organism,
        config=config or EnrichmentConfig(),
        decision=decision,
    )


def enrichment_requests(
    rules: RuleSet,
    resolver: IdentifierResolver,
    organism: str,
    source: Union[Namespace, str] = Namespace.SYMBOL,
    target: Union[Namespace, str] = Namespace.ENTREZ,
    config: Optional[EnrichmentConfig] = None,
    decisions: Optional[Sequence[str]] = None,
) -> List[EnrichmentRequest]:
    """
    One enrichment request per decision class.

    Args:
        decisions: Classes to prepare; defaults to every class in the rule
            set, in first-appearance order
    """
    decisions = rules.decisions() if decisions is None else list(decisions)
    return [
        build_enrichment_request(rules, d, resolver, organism, source, target, config)
        for d in decisions
    ]


@dataclass
class RuleNetworkPipeline:
    """
    Rule network analysis wired to external collaborators.

    Attributes:
        engine: Rule-induction engine
        induction_config: Options passed to the engine
        predicates: Significance/quality filter
        network_predicates: Extra filter for network rules
        fitter: Optional degree distribution fitter
        tester: Optional enrichment tester
        resolver: Identifier resolver (required for enrichment)
        organism: Background annotation reference for enrichment
        enrichment_config: Enrichment settings
        source_namespace: Namespace of the feature names
        target_namespace: Namespace the enrichment tester expects
    """
    engine: RuleInductionEngine
    induction_config: RuleInductionConfig = field(default_factory=RuleInductionConfig)
    predicates: RulePredicates = SIGNIFICANT
    network_predicates: RulePredicates = MULTI_FEATURE
    fitter: Optional[DistributionFitter] = None
    tester: Optional[EnrichmentTester] = None
    resolver: Optional[IdentifierResolver] = None
    organism: str = "org.Hs.eg.db"
    enrichment_config: EnrichmentConfig = field(default_factory=EnrichmentConfig)
    source_namespace: Namespace = Namespace.SYMBOL
    target_namespace: Namespace = Namespace.ENTREZ

    def run(self, preprocessor: ExpressionPreprocessor, top_n: int = 2000) -> RuleNetworkResult:
        """
        Induce rules from preprocessed expression and analyze them.

        Args:
            preprocessor: Source of cluster labels and discretized features
            top_n: Number of most variable features to use
        """
        features = preprocessor.feature_matrix(top_n)
        table = build_decision_table(features, preprocessor.cluster_labels())

        logger.info(f"Inducing rules with {self.induction_config.to_dict()}")
        induced = self.engine.induce(table, self.induction_config)
        logger.info(f"Induced {len(induced.rules)} rules (quality {induced.quality})")

        result = analyze_rules(induced.rules, self.predicates, self.network_predicates)

        fit = None
        if self.fitter is not None:
            fit = self.fitter.fit(result.degree_values)

        return RuleNetworkResult(
            rules=result.rules,
            significant_rules=result.significant_rules,
            network_rules=result.network_rules,
            graph=result.graph,
            degree_frequencies=result.degree_frequencies,
            degree_values=result.degree_values,
            quality=induced.quality,
            distribution_fit=fit,
        )

    def run_enrichment(
        self,
        rules: RuleSet,
        decisions: Optional[Sequence[str]] = None
    ) -> Dict[str, Any]:
        """
        Resolve each decision class's genes and run the enrichment tester.

        Returns:
            decision → tester output

        Raises:
            ValueError: If no tester or resolver is configured
        """
        if self.tester is None or self.resolver is None:
            raise ValueError("run_enrichment requires both a tester and a resolver")

        requests = enrichment_requests(
            rules,
            self.resolver,
            self.organism,
            self.source_namespace,
            self.target_namespace,
            self.enrichment_config,
            decisions,
        )
        return {request.decision: self.tester.test(request) for request in requests}
