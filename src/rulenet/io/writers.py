"""
CSV writers for network and identifier results.

Network output (write_network):
    network_edges.csv        gene_a, gene_b
    network_nodes.csv        gene, namespace, degree (hubs first)
    degree_frequencies.csv   degree, frequency, log10_degree, log10_frequency
    degree_values.csv        one degree per node, the DistributionFitter input

All files are plain CSV, readable from R/Excel/Python without rulenet.
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Sequence
import logging

import networkx as nx
import pandas as pd

from rulenet.core.identifiers import GeneIdentifier
from rulenet.network.degree import degree_frequency_frame, degree_values, node_degree_frame

logger = logging.getLogger(__name__)

__all__ = ['edges_frame', 'write_network', 'identifiers_frame', 'write_identifiers']


def edges_frame(graph: nx.Graph) -> pd.DataFrame:
    """One row per edge, columns gene_a and gene_b."""
    return pd.DataFrame(
        [(str(a), str(b)) for a, b in graph.edges()],
        columns=['gene_a', 'gene_b'],
    )


def write_network(graph: nx.Graph, output_dir: Path) -> Dict[str, Path]:
    """
    Write the network and its degree statistics.

    Args:
        graph: Interaction network
        output_dir: Directory to write into (created if needed)

    Returns:
        Mapping of output name → written path
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    paths = {
        'edges': output_dir / "network_edges.csv",
        'nodes': output_dir / "network_nodes.csv",
        'degree_frequencies': output_dir / "degree_frequencies.csv",
        'degree_values': output_dir / "degree_values.csv",
    }
    edges_frame(graph).to_csv(paths['edges'], index=False)
    node_degree_frame(graph).to_csv(paths['nodes'], index=False)
    degree_frequency_frame(graph).to_csv(paths['degree_frequencies'], index=False)
    pd.DataFrame({'degree': degree_values(graph)}).to_csv(paths['degree_values'], index=False)

    for name, path in paths.items():
        logger.info(f"Saved {name}: {path}")
    return paths


def identifiers_frame(identifiers: Sequence[GeneIdentifier]) -> pd.DataFrame:
    """Identifiers as a table with gene, namespace and resolved columns."""
    return pd.DataFrame(
        [ident.to_dict() for ident in identifiers],
        columns=['gene', 'namespace', 'resolved'],
    )


def write_identifiers(identifiers: Sequence[GeneIdentifier], path: Path) -> None:
    """Write resolved identifiers to CSV, one row per identifier in input order."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    identifiers_frame(identifiers).to_csv(path, index=False)
    logger.info(f"Wrote {len(identifiers)} identifiers to {path}")
