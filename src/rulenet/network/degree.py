"""
Degree distribution of interaction networks.

Biological networks are often inspected for scale-free structure: plotting
the frequency of each degree on log-log axes, and fitting a power law (or a
competing heavy-tailed distribution) to the per-node degrees. This module
produces the inputs for both:

    degree_values()              flat per-node degree vector for the fitter
    compute_degree_frequencies() {degree: number of nodes with that degree}
    degree_frequency_frame()     (degree, frequency) pairs with log10 columns

An empty graph yields empty outputs, never an error.

Examples:
    >>> from rulenet.network.degree import compute_degree_frequencies, degree_values
    >>> compute_degree_frequencies(G)
    {1: 2, 2: 1}
    >>> degree_values(G)
    array([1, 2, 1])
"""

from __future__ import annotations

from collections import Counter
from typing import Dict

import networkx as nx
import numpy as np
import pandas as pd

from rulenet.core.identifiers import GeneIdentifier

__all__ = [
    'degree_values',
    'compute_degree_frequencies',
    'degree_frequency_frame',
    'node_degree_frame',
]


def degree_values(graph: nx.Graph) -> np.ndarray:
    """Per-node degrees in node order, as an integer vector."""
    return np.array([d for _, d in graph.degree()], dtype=int)


def compute_degree_frequencies(graph: nx.Graph) -> Dict[int, int]:
    """
    Count nodes per degree.

    Returns:
        Mapping degree → number of nodes, keys ascending. Empty for a graph
        without nodes.
    """
    counts = Counter(d for _, d in graph.degree())
    return {int(degree): counts[degree] for degree in sorted(counts)}


def degree_frequency_frame(graph: nx.Graph) -> pd.DataFrame:
    """
    Degree-frequency pairs for log-log inspection.

    Columns: degree, frequency, log10_degree, log10_frequency. log10 of a
    zero degree is NaN.
    """
    frequencies = compute_degree_frequencies(graph)
    frame = pd.DataFrame({
        'degree': pd.Series(list(frequencies.keys()), dtype=int),
        'frequency': pd.Series(list(frequencies.values()), dtype=int),
    })
    frame['log10_degree'] = np.log10(frame['degree'].where(frame['degree'] > 0).astype(float))
    frame['log10_frequency'] = np.log10(frame['frequency'].astype(float))
    return frame


def node_degree_frame(graph: nx.Graph) -> pd.DataFrame:
    """
    Per-node degree table, hubs first.

    Columns: gene, namespace, degree. Ties keep node order.
    """
    rows = [
        {
            'gene': str(node),
            'namespace': node.namespace.value if isinstance(node, GeneIdentifier) else None,
            'degree': int(degree),
        }
        for node, degree in graph.degree()
    ]
    frame = pd.DataFrame(rows, columns=['gene', 'namespace', 'degree'])
    return frame.sort_values('degree', ascending=False, kind='stable').reset_index(drop=True)
