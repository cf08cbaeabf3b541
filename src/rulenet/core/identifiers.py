"""
Typed gene identifiers.

Rule antecedents, network nodes and enrichment inputs all carry genes as
GeneIdentifier values rather than bare strings, so the namespace of every id
travels with it and an unresolved fallback can never be mistaken for a real
mapping.

Examples:
    >>> from rulenet.core.identifiers import GeneIdentifier, Namespace
    >>>
    >>> tp53 = GeneIdentifier(Namespace.SYMBOL, "TP53")
    >>> tp53.value
    'TP53'
    >>> Namespace.parse("ensembl_gene")
    <Namespace.ENSEMBL: 'ensembl_gene'>
    >>>
    >>> # Unresolved fallbacks compare equal to resolved ids with the same text
    >>> GeneIdentifier(Namespace.SYMBOL, "TP53", resolved=False) == tp53
    True
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Union

__all__ = ['Namespace', 'GeneIdentifier']


class Namespace(Enum):
    """Gene identifier namespaces supported by the resolver."""
    SYMBOL = "symbol"
    ENSEMBL = "ensembl_gene"
    ENTREZ = "entrez"

    @property
    def mygene_field(self) -> str:
        """mygene.info field used for both scopes and fields queries."""
        return _MYGENE_FIELDS[self]

    @classmethod
    def parse(cls, value: Union[str, "Namespace"]) -> "Namespace":
        """
        Parse a namespace from its value or a common alias.

        Accepts the enum itself, its value ('symbol', 'ensembl_gene',
        'entrez'), or the aliases used by clusterProfiler/bitr
        ('SYMBOL', 'ENSEMBL', 'ENTREZID').

        Raises:
            ValueError: If the name is not a known namespace
        """
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower()
        if key in _ALIASES:
            return _ALIASES[key]
        raise ValueError(
            f"Unknown identifier namespace '{value}'. "
            f"Choose from: {', '.join(ns.value for ns in cls)}"
        )


_MYGENE_FIELDS = {
    Namespace.SYMBOL: "symbol",
    Namespace.ENSEMBL: "ensembl.gene",
    Namespace.ENTREZ: "entrezgene",
}

_ALIASES = {
    "symbol": Namespace.SYMBOL,
    "gene_symbol": Namespace.SYMBOL,
    "ensembl_gene": Namespace.ENSEMBL,
    "ensembl": Namespace.ENSEMBL,
    "entrez": Namespace.ENTREZ,
    "entrezid": Namespace.ENTREZ,
    "entrezgene": Namespace.ENTREZ,
}


@dataclass(frozen=True)
class GeneIdentifier:
    """
    A gene id tagged with its namespace.

    Attributes:
        namespace: Namespace the value belongs to
        value: Identifier text (e.g. 'TP53', 'ENSG00000141510', '7157')
        resolved: False when the value is the original text kept because no
            mapping was found (possibly blank); excluded from equality and
            hashing
    """
    namespace: Namespace
    value: str
    resolved: bool = field(default=True, compare=False)

    def __post_init__(self):
        if not isinstance(self.namespace, Namespace):
            object.__setattr__(self, 'namespace', Namespace.parse(self.namespace))
        if not isinstance(self.value, str):
            raise TypeError(f"Identifier value must be str, got {type(self.value).__name__}")
        if self.resolved and not self.value.strip():
            raise ValueError("Resolved identifier value must be non-empty")

    def __str__(self) -> str:
        return self.value

    def to_dict(self) -> dict:
        return {
            'gene': self.value,
            'namespace': self.namespace.value,
            'resolved': self.resolved,
        }
