"""
Interaction networks derived from rule antecedents and their degree statistics.
"""

from rulenet.network.builder import antecedent_pairs, build_interaction_network
from rulenet.network.degree import (
    degree_values,
    compute_degree_frequencies,
    degree_frequency_frame,
    node_degree_frame,
)

__all__ = [
    'antecedent_pairs',
    'build_interaction_network',
    'degree_values',
    'compute_degree_frequencies',
    'degree_frequency_frame',
    'node_degree_frame',
]
