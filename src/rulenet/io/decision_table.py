"""
Decision table assembly for rule induction.

Rule induction needs one labeled table: rows = cells, columns = discretized
gene features, plus a 'decision' column with each cell's cluster. The
clustering workflow delivers the two halves separately (a cell → cluster
mapping and a cells × genes matrix), and they rarely cover exactly the same
cells. build_decision_table aligns them.

Examples:
    >>> from rulenet.io.decision_table import build_decision_table
    >>>
    >>> table = build_decision_table(features, {'cell1': 1, 'cell2': 4})
    >>> table['decision'].tolist()
    ['cluster_1', 'cluster_4']
"""

from __future__ import annotations

from typing import Any, Mapping, Optional
import logging

import pandas as pd

logger = logging.getLogger(__name__)

__all__ = ['DECISION_COLUMN', 'build_decision_table']

DECISION_COLUMN = 'decision'


def build_decision_table(
    features: pd.DataFrame,
    clusters: Mapping[Any, Any],
    decision_prefix: str = "cluster_",
    decision_column: str = DECISION_COLUMN,
    max_features: Optional[int] = None,
) -> pd.DataFrame:
    """
    Attach cluster decisions to a discretized feature matrix.

    Args:
        features: Cells x genes matrix of discretized expression, indexed by
            cell id
        clusters: Mapping cell id → cluster label
        decision_prefix: Prefix for decision labels ('cluster_' turns
            cluster 4 into 'cluster_4'); labels already carrying the prefix
            are left unchanged
        decision_column: Name of the appended label column
        max_features: Keep only the first max_features gene columns
            (the matrix is expected to be ordered by variability)

    Returns:
        New DataFrame: labeled cells in matrix order, gene columns, then the
        decision column

    Raises:
        ValueError: If no cell has a cluster label, or the decision column
            name collides with a gene column
    """
    if decision_column in features.columns:
        raise ValueError(f"Feature matrix already has a '{decision_column}' column")
    if max_features is not None:
        if max_features <= 0:
            raise ValueError(f"max_features must be positive, got {max_features}")
        features = features.iloc[:, :max_features]

    labels = pd.Series(clusters, dtype=object)
    labeled = features.index.isin(labels.index)
    n_unlabeled = int((~labeled).sum())
    if n_unlabeled:
        logger.warning(f"Dropping {n_unlabeled}/{len(features)} cells without a cluster label")
    if not labeled.any():
        raise ValueError("No cell in the feature matrix has a cluster label")

    n_unmatched = len(labels) - int(labels.index.isin(features.index).sum())
    if n_unmatched:
        logger.info(f"{n_unmatched} labeled cells are absent from the feature matrix")

    table = features.loc[labeled].copy()

    def _label(value: Any) -> str:
        text = str(value)
        return text if text.startswith(decision_prefix) else f"{decision_prefix}{text}"

    table[decision_column] = [_label(labels[cell]) for cell in table.index]

    logger.info(
        f"Decision table: {len(table)} cells x {table.shape[1] - 1} features, "
        f"{table[decision_column].nunique()} decision classes"
    )
    return table
