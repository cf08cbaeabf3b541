"""
Gene identifier mapping facilities

Handles conversion between identifier systems:
- Gene Symbol (TP53, SOD1, etc.)
- Ensembl Gene ID (ENSG00000xxxxxx)
- Entrez Gene ID (7157, etc.)

Two facilities are provided:
- MyGeneInfoMapper: mygene.info batch queries with an on-disk JSON cache
- AnnotationTableMapper: offline mapping from a gene annotation table

Both return only successful mappings; deciding what to do with misses is the
job of rulenet.mapping.resolver.IdentifierResolver.

Examples:
    >>> from rulenet.mapping.id_mapping import MyGeneInfoMapper
    >>> from rulenet.core.identifiers import Namespace
    >>>
    >>> mapper = MyGeneInfoMapper()
    >>> mapping = mapper.map_ids(
    ...     ['ENSG00000141510', 'ENSG00000012048'],
    ...     source=Namespace.ENSEMBL,
    ...     target=Namespace.SYMBOL
    ... )
    >>> print(mapping)
    {'ENSG00000141510': 'TP53', 'ENSG00000012048': 'BRCA1'}
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Union
from pathlib import Path
from abc import ABC, abstractmethod
import hashlib
import json
import logging

import httpx
import pandas as pd

from rulenet.core.identifiers import Namespace

logger = logging.getLogger(__name__)

__all__ = [
    'LookupUnavailableError',
    'IDMapper',
    'MyGeneInfoMapper',
    'AnnotationTableMapper',
]


class LookupUnavailableError(Exception):
    """Raised when the identifier mapping facility itself cannot be reached."""
    pass


class IDMapper(ABC):
    """Abstract interface for gene ID mapping"""

    @abstractmethod
    def map_ids(
        self,
        source_ids: List[str],
        source: Namespace,
        target: Namespace
    ) -> Dict[str, str]:
        """
        Map gene IDs from source to target namespace

        Args:
            source_ids: List of source IDs
            source: Namespace of source_ids
            target: Namespace to map to

        Returns:
            Dict mapping source_id → target_id (only successful mappings)

        Raises:
            LookupUnavailableError: If the mapping facility is unreachable
        """
        pass


def _extract_field(item: Dict[str, Any], field_path: str) -> Optional[str]:
    """
    Pull a possibly nested field out of a mygene hit.

    Lists (several Ensembl genes for one symbol, etc.) resolve to their first
    element at every level.
    """
    value: Any = item
    for part in field_path.split('.'):
        if isinstance(value, list):
            value = value[0] if value else None
        if not isinstance(value, dict):
            return None
        value = value.get(part)
    if isinstance(value, list):
        value = value[0] if value else None
    if value is None or isinstance(value, dict):
        return None
    return str(value)


class MyGeneInfoMapper(IDMapper):
    """
    Uses mygene.info API for ID mapping with batched queries

    Advantages:
    - Comprehensive (all major ID types)
    - No authentication required
    - Up-to-date annotations

    Usage:
        mapper = MyGeneInfoMapper(species='mouse')
        mapping = mapper.map_ids(['Cd3e', 'Il7r'], Namespace.SYMBOL, Namespace.ENTREZ)
    """

    batch_size = 1000

    def __init__(
        self,
        cache_dir: Optional[Path] = None,
        species: str = 'human',
        use_cache: bool = True
    ):
        """
        Initialize with optional caching

        Args:
            cache_dir: Directory for caching results (default: ~/.cache/rulenet/id_mapping)
            species: Species to query (mygene.info name or taxonomy id)
            use_cache: Read and write the JSON cache
        """
        import mygene
        self.mg = mygene.MyGeneInfo()
        self.species = species
        self.use_cache = use_cache
        self.cache_dir = Path(cache_dir) if cache_dir else Path.home() / '.cache/rulenet/id_mapping'
        if self.use_cache:
            self.cache_dir.mkdir(parents=True, exist_ok=True)

    def _cache_path(self, source_ids: List[str], source: Namespace, target: Namespace) -> Path:
        digest = hashlib.sha256(
            "\n".join([self.species, *sorted(set(source_ids))]).encode()
        ).hexdigest()[:16]
        return self.cache_dir / f"{source.value}_to_{target.value}_{digest}.json"

    def _query_batch(
        self,
        batch: List[str],
        source: Namespace,
        target: Namespace,
        batch_num: int,
        total_batches: int
    ) -> Dict[str, str]:
        """
        Query a single batch.

        Args:
            batch: List of IDs to query in this batch
            source: Namespace of the IDs
            target: Namespace to map to
            batch_num: Current batch number (for logging)
            total_batches: Total number of batches (for logging)

        Returns:
            Dict mapping source_id → target_id for this batch
        """
        logger.debug(f"Querying batch {batch_num + 1}/{total_batches} ({len(batch)} IDs)")

        try:
            query_results = self.mg.querymany(
                batch,
                scopes=source.mygene_field,
                fields=target.mygene_field,
                species=self.species,
                returnall=True,
                verbose=False
            )
        except (OSError, httpx.TransportError, httpx.HTTPStatusError) as e:
            raise LookupUnavailableError(f"mygene.info is unreachable: {e}") from e

        results = {}
        for item in query_results['out']:
            source_id = item.get('query')
            if not source_id or item.get('notfound'):
                continue
            target_value = _extract_field(item, target.mygene_field)
            # Several hits per query: first one wins
            if target_value:
                results.setdefault(str(source_id), target_value)

        return results

    def map_ids(
        self,
        source_ids: List[str],
        source: Namespace = Namespace.SYMBOL,
        target: Namespace = Namespace.ENTREZ
    ) -> Dict[str, str]:
        """
        Map IDs using mygene.info batch query

        Args:
            source_ids: List of source IDs to map
            source: Namespace of source_ids
            target: Namespace to map to

        Returns:
            Dict mapping source_id → target_id (only successful mappings)

        Raises:
            LookupUnavailableError: If mygene.info cannot be reached
        """
        source = Namespace.parse(source)
        target = Namespace.parse(target)
        unique_ids = list(dict.fromkeys(source_ids))
        if not unique_ids:
            return {}

        cache_path = self._cache_path(unique_ids, source, target)
        if self.use_cache and cache_path.exists():
            try:
                with open(cache_path, 'r') as f:
                    return json.load(f)
            except (json.JSONDecodeError, ValueError) as e:
                logger.warning(f"Corrupted cache file {cache_path}, ignoring: {e}")

        results = {}
        batches = [unique_ids[i:i + self.batch_size] for i in range(0, len(unique_ids), self.batch_size)]

        logger.info(f"Starting ID mapping {source.value} → {target.value}: "
                    f"{len(unique_ids)} IDs in {len(batches)} batches")

        for i, batch in enumerate(batches):
            results.update(self._query_batch(batch, source, target, i, len(batches)))

        logger.info(f"ID mapping complete: {len(results)}/{len(unique_ids)} genes successfully mapped "
                    f"({len(results)/len(unique_ids)*100:.1f}%)")

        if self.use_cache:
            with open(cache_path, 'w') as f:
                json.dump(results, f, indent=2)

        return results


class AnnotationTableMapper(IDMapper):
    """
    Offline ID mapping from a gene annotation table.

    The table has one column per namespace, named after the namespace value
    ('symbol', 'ensembl_gene', 'entrez'). Missing columns simply produce no
    mappings for that namespace. When an id appears on several rows the first
    row wins.

    Usage:
        mapper = AnnotationTableMapper.from_csv(Path("gene_annotation.csv"))
        mapping = mapper.map_ids(['TP53'], Namespace.SYMBOL, Namespace.ENSEMBL)
    """

    def __init__(self, table: pd.DataFrame):
        if not isinstance(table, pd.DataFrame):
            raise TypeError(f"table must be DataFrame, got {type(table)}")
        known = [ns.value for ns in Namespace if ns.value in table.columns]
        if not known:
            raise ValueError(
                f"Annotation table has none of the namespace columns "
                f"{[ns.value for ns in Namespace]}; got {list(table.columns)}"
            )
        self.table = table[known].copy()

    @classmethod
    def from_csv(cls, path: Union[str, Path], **read_csv_kwargs) -> "AnnotationTableMapper":
        """Load the annotation table from CSV, keeping every column as text."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Annotation table not found: {path}")
        read_csv_kwargs.setdefault('dtype', str)
        return cls(pd.read_csv(path, **read_csv_kwargs))

    def map_ids(
        self,
        source_ids: List[str],
        source: Namespace,
        target: Namespace
    ) -> Dict[str, str]:
        source = Namespace.parse(source)
        target = Namespace.parse(target)
        if source.value not in self.table.columns or target.value not in self.table.columns:
            return {}

        pairs = self.table[[source.value, target.value]].dropna()
        pairs = pairs.astype(str).drop_duplicates(subset=source.value, keep='first')
        lookup = dict(zip(pairs[source.value], pairs[target.value]))

        return {sid: lookup[sid] for sid in source_ids if sid in lookup}
