"""
Total, order-preserving gene identifier resolution.

Downstream consumers align resolved ids positionally with other sequences
(matrix columns, antecedent features), so the resolver never changes the
length or order of its input. Every id comes back as *some*
GeneIdentifier:

    1. direct mapping source → target
    2. otherwise, mapping source → each fallback namespace in chain order
    3. otherwise, the original text in the source namespace, resolved=False

Misses are recorded in a ResolutionReport and logged; they are never raised.
Only an unreachable mapping facility (LookupUnavailableError) stops
resolution, and it is not retried.

Examples:
    >>> from rulenet.mapping import IdentifierResolver, AnnotationTableMapper
    >>> from rulenet.core.identifiers import Namespace
    >>>
    >>> resolver = IdentifierResolver(AnnotationTableMapper(annotation_df))
    >>> ids = resolver.resolve(['TP53', 'NOT_A_GENE'], Namespace.SYMBOL, Namespace.ENTREZ)
    >>> [(i.value, i.namespace.value, i.resolved) for i in ids]
    [('7157', 'entrez', True), ('NOT_A_GENE', 'symbol', False)]
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence, Tuple, Union

import pandas as pd

from rulenet.core.identifiers import GeneIdentifier, Namespace
from rulenet.mapping.id_mapping import IDMapper

logger = logging.getLogger(__name__)

__all__ = [
    'DEFAULT_FALLBACK_CHAINS',
    'ResolutionReport',
    'IdentifierResolver',
]

DEFAULT_FALLBACK_CHAINS: Dict[Tuple[Namespace, Namespace], Tuple[Namespace, ...]] = {
    (Namespace.SYMBOL, Namespace.ENSEMBL): (Namespace.ENTREZ,),
    (Namespace.SYMBOL, Namespace.ENTREZ): (Namespace.ENSEMBL,),
    (Namespace.ENSEMBL, Namespace.SYMBOL): (Namespace.ENTREZ,),
    (Namespace.ENSEMBL, Namespace.ENTREZ): (Namespace.SYMBOL,),
    (Namespace.ENTREZ, Namespace.SYMBOL): (Namespace.ENSEMBL,),
    (Namespace.ENTREZ, Namespace.ENSEMBL): (Namespace.SYMBOL,),
}
"""Fallback namespaces tried, in order, when the direct mapping misses."""


@dataclass(frozen=True)
class ResolutionReport:
    """
    Summary of one resolve() call.

    Attributes:
        source: Namespace of the input ids
        target: Requested namespace
        n_input: Number of input ids (duplicates counted)
        n_direct: Distinct ids mapped directly to the target namespace
        n_fallback: Distinct ids mapped to each fallback namespace
        unresolved: Distinct ids kept as unresolved original text
    """
    source: Namespace
    target: Namespace
    n_input: int
    n_direct: int
    n_fallback: Dict[Namespace, int] = field(default_factory=dict)
    unresolved: Tuple[str, ...] = ()

    @property
    def n_unresolved(self) -> int:
        return len(self.unresolved)

    def to_dict(self) -> dict:
        return {
            'source': self.source.value,
            'target': self.target.value,
            'n_input': self.n_input,
            'n_direct': self.n_direct,
            'n_fallback': {ns.value: n for ns, n in self.n_fallback.items()},
            'unresolved': list(self.unresolved),
        }


def _usable(value: Optional[str]) -> bool:
    return value is not None and bool(str(value).strip())


class IdentifierResolver:
    """
    Resolve gene identifiers between namespaces without ever dropping an id.

    Args:
        mapper: Mapping facility (mygene.info, annotation table, ...)
        fallback_chains: Fallback namespaces per (source, target) pair;
            defaults to DEFAULT_FALLBACK_CHAINS
    """

    def __init__(
        self,
        mapper: IDMapper,
        fallback_chains: Optional[Mapping[Tuple[Namespace, Namespace], Sequence[Namespace]]] = None
    ):
        self.mapper = mapper
        chains = DEFAULT_FALLBACK_CHAINS if fallback_chains is None else fallback_chains
        self.fallback_chains = {
            (Namespace.parse(s), Namespace.parse(t)): tuple(Namespace.parse(ns) for ns in chain)
            for (s, t), chain in chains.items()
        }

    def fallback_chain(self, source: Namespace, target: Namespace) -> Tuple[Namespace, ...]:
        """Fallback namespaces for a pair, excluding source and target themselves."""
        chain = self.fallback_chains.get((source, target), ())
        return tuple(ns for ns in chain if ns not in (source, target))

    def resolve_with_report(
        self,
        ids: Sequence[str],
        source: Union[Namespace, str],
        target: Union[Namespace, str]
    ) -> Tuple[List[GeneIdentifier], ResolutionReport]:
        """
        Resolve ids and report how each was resolved.

        Returns:
            (identifiers, report) where identifiers[i] corresponds to ids[i]

        Raises:
            LookupUnavailableError: If the mapping facility is unreachable
        """
        source = Namespace.parse(source)
        target = Namespace.parse(target)
        ids = [str(i) for i in ids]

        # blank ids never reach the mapper and always come back unresolved
        blank = [i for i in dict.fromkeys(ids) if not i.strip()]

        if source == target:
            resolved = [GeneIdentifier(source, i, resolved=i not in blank) for i in ids]
            return resolved, ResolutionReport(
                source, target, len(ids),
                n_direct=len(set(ids)) - len(blank),
                unresolved=tuple(blank),
            )

        # distinct id -> resolved identifier; filled stage by stage
        found: Dict[str, GeneIdentifier] = {}
        pending = [i for i in dict.fromkeys(ids) if i not in blank]

        if pending:
            direct = self.mapper.map_ids(pending, source, target)
            for i in pending:
                if _usable(direct.get(i)):
                    found[i] = GeneIdentifier(target, direct[i])
            pending = [i for i in pending if i not in found]

        n_fallback: Dict[Namespace, int] = {}
        for namespace in self.fallback_chain(source, target):
            if not pending:
                break
            mapped = self.mapper.map_ids(pending, source, namespace)
            hits = [i for i in pending if _usable(mapped.get(i))]
            for i in hits:
                found[i] = GeneIdentifier(namespace, mapped[i])
            if hits:
                n_fallback[namespace] = len(hits)
                logger.info(f"{len(hits)} ids without {target.value} mapping "
                            f"resolved via {namespace.value}")
            pending = [i for i in pending if i not in found]

        unresolved = [i for i in dict.fromkeys(ids) if i not in found]
        for i in unresolved:
            found[i] = GeneIdentifier(source, i, resolved=False)
        if unresolved:
            logger.info(f"{len(unresolved)} ids not mappable {source.value} → {target.value}; "
                        f"keeping original identifiers")
            logger.debug(f"Unresolved ids: {unresolved}")

        resolved = [found[i] for i in ids]
        n_direct = sum(1 for ident in found.values() if ident.resolved and ident.namespace == target)
        report = ResolutionReport(
            source=source,
            target=target,
            n_input=len(ids),
            n_direct=n_direct,
            n_fallback=n_fallback,
            unresolved=tuple(unresolved),
        )
        return resolved, report

    def resolve(
        self,
        ids: Sequence[str],
        source: Union[Namespace, str],
        target: Union[Namespace, str]
    ) -> List[GeneIdentifier]:
        """
        Resolve ids from source to target namespace.

        The result has exactly one GeneIdentifier per input id, in input
        order. Ids that map nowhere keep their original text and are tagged
        resolved=False.

        Raises:
            LookupUnavailableError: If the mapping facility is unreachable
        """
        resolved, _ = self.resolve_with_report(ids, source, target)
        return resolved

    def rename_columns(
        self,
        frame: pd.DataFrame,
        source: Union[Namespace, str],
        target: Union[Namespace, str]
    ) -> pd.DataFrame:
        """
        Return a copy of frame with its columns resolved to the target namespace.

        Columns are renamed positionally, so the column count and order are
        unchanged; unresolved columns keep their original names.
        """
        resolved = self.resolve(list(frame.columns), source, target)
        renamed = frame.copy()
        renamed.columns = pd.Index([ident.value for ident in resolved])
        return renamed
