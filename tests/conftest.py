"""
Pytest configuration and shared fixtures.

This module provides rule sets, rule tables and offline identifier mappers
shared by all test suites. Nothing here contacts mygene.info.
"""

from typing import Dict, List

import pandas as pd
import pytest

from rulenet.core.identifiers import GeneIdentifier, Namespace
from rulenet.core.rules import Rule, RuleSet
from rulenet.mapping.id_mapping import IDMapper, LookupUnavailableError


def gene(symbol: str) -> GeneIdentifier:
    return GeneIdentifier(Namespace.SYMBOL, symbol)


def make_rule(
    features: str,
    decision: str = "cluster_1",
    p_value: float = 0.01,
    accuracy: float = 0.9,
    coverage: float = 0.5,
) -> Rule:
    """Build a rule from a comma-separated symbol antecedent."""
    return Rule(
        features=tuple(gene(f) for f in features.split(",")),
        decision=decision,
        p_value=p_value,
        accuracy=accuracy,
        coverage=coverage,
    )


@pytest.fixture
def worked_example():
    """
    Three rules: A+B (cluster_1), B+C (cluster_4), A alone (cluster_4).

    The network of these rules has nodes {A, B, C} and edges {A-B, B-C};
    degree frequencies are {1: 2, 2: 1}.
    """
    return RuleSet([
        make_rule("A,B", "cluster_1"),
        make_rule("B,C", "cluster_4"),
        make_rule("A", "cluster_4"),
    ])


@pytest.fixture
def mixed_rules():
    """Rules spanning the filter thresholds, in a deliberate order."""
    return RuleSet([
        make_rule("CD3E,IL7R", "cluster_1", p_value=0.001, accuracy=0.95, coverage=0.40),
        make_rule("MS4A1", "cluster_4", p_value=0.20, accuracy=0.80, coverage=0.30),
        make_rule("CD79A,MS4A1", "cluster_4", p_value=0.04, accuracy=0.50, coverage=0.25),
        make_rule("LYZ,S100A8,CD14", "cluster_2", p_value=0.05, accuracy=0.60, coverage=0.10),
        make_rule("NKG7,GNLY", "cluster_3", p_value=0.0, accuracy=1.0, coverage=1.0),
        make_rule("CD3E,IL7R", "cluster_1", p_value=0.001, accuracy=0.95, coverage=0.40),
    ])


@pytest.fixture
def rule_table():
    """Rule table in the R.ROSETTA export layout."""
    return pd.DataFrame({
        'features': ["CD3E,IL7R", "MS4A1", "CD79A,MS4A1", "LYZ,S100A8,CD14"],
        'levels': ["3,3", "3", "3,2", "3,3,3"],
        'decision': ["cluster_1", "cluster_4", "cluster_4", "cluster_2"],
        'supportRHS': [120, 88, 40, 15],
        'accuracyRHS': [0.91, 0.87, 0.52, 0.61],
        'coverageRHS': [0.42, 0.35, 0.22, 0.08],
        'pValue': [1.2e-08, 3.1e-05, 0.04, 0.3],
    })


@pytest.fixture
def annotation_table():
    """Small symbol / ensembl_gene / entrez annotation table."""
    return pd.DataFrame({
        'symbol': ["TP53", "BRCA1", "CD3E", "IL7R", "MS4A1"],
        'ensembl_gene': ["ENSG00000141510", "ENSG00000012048", "ENSG00000198851", None, "ENSG00000156738"],
        'entrez': ["7157", "672", "916", "3575", None],
    })


class DictMapper(IDMapper):
    """
    In-memory mapper recording every call.

    tables maps (source, target) to {source_id: target_id}.
    """

    def __init__(self, tables: Dict[tuple, Dict[str, str]]):
        self.tables = tables
        self.calls: List[tuple] = []

    def map_ids(self, source_ids, source, target):
        self.calls.append((list(source_ids), source, target))
        table = self.tables.get((source, target), {})
        return {sid: table[sid] for sid in source_ids if sid in table}


class UnreachableMapper(IDMapper):
    """Mapper whose facility is down."""

    def __init__(self):
        self.n_calls = 0

    def map_ids(self, source_ids, source, target):
        self.n_calls += 1
        raise LookupUnavailableError("connection refused")


@pytest.fixture
def dict_mapper():
    """Symbol mappings: TP53 maps directly, MS4A1 only via Ensembl."""
    return DictMapper({
        (Namespace.SYMBOL, Namespace.ENTREZ): {"TP53": "7157", "BRCA1": "672"},
        (Namespace.SYMBOL, Namespace.ENSEMBL): {
            "TP53": "ENSG00000141510",
            "MS4A1": "ENSG00000156738",
        },
    })
