"""
Gene co-occurrence networks from rule antecedents.

Two genes are connected when they appear together in the antecedent of at
least one rule. Rules that combine several genes to predict a cluster are
read as evidence that those genes act together, so the network summarizes
the combinatorial structure of the whole rule set.

Graph properties:
    - Simple undirected graph: a pair shared by many rules is one edge,
      repeated features never produce self-loops
    - Nodes are exactly the genes of rules with at least two distinct
      features; single-feature rules contribute nothing
    - Node order follows first appearance in the rule set
    - The returned graph is frozen (networkx.freeze); derive a mutable copy
      with nx.Graph(graph) when needed

Examples:
    >>> from rulenet.network.builder import build_interaction_network
    >>>
    >>> G = build_interaction_network(rules)
    >>> G.number_of_nodes(), G.number_of_edges()
    (3, 2)
    >>> dict(G.degree())
    {GeneIdentifier(...'A'...): 1, GeneIdentifier(...'B'...): 2, GeneIdentifier(...'C'...): 1}
"""

from __future__ import annotations

from itertools import combinations
from typing import Iterator, Tuple
import logging

import networkx as nx

from rulenet.core.identifiers import GeneIdentifier
from rulenet.core.rules import Rule, RuleSet

logger = logging.getLogger(__name__)

__all__ = ['antecedent_pairs', 'build_interaction_network']


def antecedent_pairs(rule: Rule) -> Iterator[Tuple[GeneIdentifier, GeneIdentifier]]:
    """
    Unordered pairs of distinct features in a rule's antecedent.

    Yields nothing for rules with fewer than two distinct features.
    """
    distinct = list(dict.fromkeys(rule.features))
    return combinations(distinct, 2)


def build_interaction_network(rules: RuleSet) -> nx.Graph:
    """
    Build the undirected co-occurrence graph of a rule set.

    Args:
        rules: Rules whose antecedents define the edges; typically already
            filtered for significance and quality

    Returns:
        Frozen networkx.Graph with GeneIdentifier nodes.
        graph.graph['n_rules'] is the number of rules that contributed edges.
    """
    G = nx.Graph()
    n_rules = 0

    for rule in rules:
        pairs = list(antecedent_pairs(rule))
        if not pairs:
            continue
        n_rules += 1
        G.add_edges_from(pairs)

    G.graph['n_rules'] = n_rules

    logger.debug(
        f"Interaction network: {G.number_of_nodes()} genes, {G.number_of_edges()} edges "
        f"from {n_rules}/{len(rules)} multi-feature rules"
    )
    return nx.freeze(G)
