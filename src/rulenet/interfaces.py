"""
Interfaces of the external analytical components.

rulenet only filters rules, builds networks and resolves identifiers. The
heavy analytical steps are delegated:

- ExpressionPreprocessor: normalization, clustering, variable-feature
  selection and discretization (e.g. a Seurat or scanpy workflow)
- RuleInductionEngine: rough-set rule induction (e.g. R.ROSETTA)
- DistributionFitter: fitting degree distributions (e.g. powerlaw)
- EnrichmentTester: GO/Reactome over-representation tests
  (e.g. clusterProfiler, ReactomePA)

Implementations wrap those tools and plug in here. Their return values are
passed through untouched; their exceptions propagate unchanged.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple

import numpy as np
import pandas as pd

from rulenet.core.identifiers import GeneIdentifier
from rulenet.core.rules import RuleSet

__all__ = [
    'ExpressionPreprocessor',
    'RuleInductionConfig',
    'InductionResult',
    'RuleInductionEngine',
    'DistributionFitter',
    'Ontology',
    'AdjustmentMethod',
    'EnrichmentConfig',
    'EnrichmentRequest',
    'EnrichmentTester',
]


class ExpressionPreprocessor(ABC):
    """Source of cluster labels and the discretized feature matrix."""

    @abstractmethod
    def cluster_labels(self) -> Mapping[str, str]:
        """Mapping cell id → cluster label."""
        pass

    @abstractmethod
    def feature_matrix(self, top_n: int) -> pd.DataFrame:
        """
        Discretized expression of the top_n most variable features.

        Returns:
            DataFrame indexed by cell id with one column per gene
        """
        pass


@dataclass(frozen=True)
class RuleInductionConfig:
    """
    Options recognized by rule-induction engines.

    Attributes:
        discretization_levels: Number of ordinal expression levels
        under_sample: Balance decision classes by under-sampling
        under_sample_target_count: Objects kept per class when under-sampling
            (0 lets the engine use the smallest class size)
        approximate: Use approximate reducts
        approximation_fraction: Fraction of objects approximate reducts must
            discern, in (0, 1]
        precision_threshold: Minimum rule precision, in (0, 1]
    """
    discretization_levels: int = 3
    under_sample: bool = False
    under_sample_target_count: int = 0
    approximate: bool = False
    approximation_fraction: float = 0.95
    precision_threshold: float = 1.0

    def __post_init__(self):
        if self.discretization_levels < 2:
            raise ValueError(
                f"discretization_levels must be at least 2, got {self.discretization_levels}"
            )
        if self.under_sample_target_count < 0:
            raise ValueError(
                f"under_sample_target_count must be non-negative, got {self.under_sample_target_count}"
            )
        if not (0 < self.approximation_fraction <= 1):
            raise ValueError(
                f"approximation_fraction must be in (0, 1], got {self.approximation_fraction}"
            )
        if not (0 < self.precision_threshold <= 1):
            raise ValueError(
                f"precision_threshold must be in (0, 1], got {self.precision_threshold}"
            )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class InductionResult:
    """Rules induced by an engine plus its overall model quality score."""
    rules: RuleSet
    quality: float
    details: Dict[str, Any] = field(default_factory=dict)


class RuleInductionEngine(ABC):
    """Induces decision rules from a labeled, discretized table."""

    @abstractmethod
    def induce(self, decision_table: pd.DataFrame, config: RuleInductionConfig) -> InductionResult:
        """
        Induce rules.

        Args:
            decision_table: Rows = cells, columns = discretized gene features
                plus a 'decision' column holding the class label
            config: Induction options
        """
        pass


class DistributionFitter(ABC):
    """Fits a distribution to per-node degree values."""

    @abstractmethod
    def fit(self, degrees: np.ndarray) -> Any:
        """Return fitted parameters and diagnostics (opaque to rulenet)."""
        pass


class Ontology(Enum):
    """Annotation source for enrichment tests."""
    BIOLOGICAL_PROCESS = "BP"
    MOLECULAR_FUNCTION = "MF"
    CELLULAR_COMPONENT = "CC"
    REACTOME = "Reactome"


class AdjustmentMethod(Enum):
    """Multiple-testing adjustment, spelled as in R's p.adjust."""
    BH = "BH"
    BY = "BY"
    BONFERRONI = "bonferroni"
    HOLM = "holm"
    HOCHBERG = "hochberg"
    HOMMEL = "hommel"
    FDR = "fdr"
    NONE = "none"


@dataclass(frozen=True)
class EnrichmentConfig:
    """
    Enrichment test settings.

    Attributes:
        ontology: Annotation source
        p_value_cutoff: Report terms with adjusted p-value below this
        q_value_cutoff: Report terms with q-value below this
        adjustment_method: Multiple-testing adjustment
    """
    ontology: Ontology = Ontology.BIOLOGICAL_PROCESS
    p_value_cutoff: float = 0.05
    q_value_cutoff: float = 0.2
    adjustment_method: AdjustmentMethod = AdjustmentMethod.BH

    def __post_init__(self):
        if not isinstance(self.ontology, Ontology):
            object.__setattr__(self, 'ontology', Ontology(self.ontology))
        if not isinstance(self.adjustment_method, AdjustmentMethod):
            object.__setattr__(self, 'adjustment_method', AdjustmentMethod(self.adjustment_method))
        for name in ('p_value_cutoff', 'q_value_cutoff'):
            value = getattr(self, name)
            if not (0 < value <= 1):
                raise ValueError(f"{name} must be in (0, 1], got {value}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            'ontology': self.ontology.value,
            'p_value_cutoff': self.p_value_cutoff,
            'q_value_cutoff': self.q_value_cutoff,
            'adjustment_method': self.adjustment_method.value,
        }


@dataclass(frozen=True)
class EnrichmentRequest:
    """
    Input for one enrichment test.

    Attributes:
        identifiers: Resolved gene identifiers (IdentifierResolver output)
        organism: Organism / background annotation reference (e.g. 'org.Hs.eg.db')
        config: Test settings
        decision: Decision class the genes were taken from, if any
    """
    identifiers: Tuple[GeneIdentifier, ...]
    organism: str
    config: EnrichmentConfig = field(default_factory=EnrichmentConfig)
    decision: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, 'identifiers', tuple(self.identifiers))

    @property
    def n_unresolved(self) -> int:
        return sum(1 for ident in self.identifiers if not ident.resolved)


class EnrichmentTester(ABC):
    """Runs an over-representation test for a gene list."""

    @abstractmethod
    def test(self, request: EnrichmentRequest) -> Any:
        """Return the enriched-term table (opaque to rulenet)."""
        pass
