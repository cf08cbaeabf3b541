"""
Tests for IdentifierResolver.

Uses in-memory and annotation-table mappers; no mygene.info queries.
The key property: resolution never changes the length or order of its input.
"""

import pandas as pd
import pytest

from rulenet.core.identifiers import GeneIdentifier, Namespace
from rulenet.mapping.id_mapping import AnnotationTableMapper, LookupUnavailableError
from rulenet.mapping.resolver import DEFAULT_FALLBACK_CHAINS, IdentifierResolver

from conftest import DictMapper, UnreachableMapper


@pytest.fixture
def resolver(dict_mapper):
    return IdentifierResolver(dict_mapper)


class TestResolve:
    """Test resolution through direct mapping, fallback and unresolved ids."""

    def test_direct_mapping(self, resolver):
        """Test ids with a direct mapping."""
        ids = resolver.resolve(["TP53", "BRCA1"], Namespace.SYMBOL, Namespace.ENTREZ)
        assert ids == [
            GeneIdentifier(Namespace.ENTREZ, "7157"),
            GeneIdentifier(Namespace.ENTREZ, "672"),
        ]
        assert all(i.resolved for i in ids)

    def test_fallback_namespace(self, resolver):
        """Test that an id without a direct mapping resolves via the fallback chain."""
        (ident,) = resolver.resolve(["MS4A1"], Namespace.SYMBOL, Namespace.ENTREZ)
        assert ident.namespace is Namespace.ENSEMBL
        assert ident.value == "ENSG00000156738"
        assert ident.resolved

    def test_unresolved_keeps_original(self, resolver):
        """Test that an unmappable id keeps its text and is flagged."""
        (ident,) = resolver.resolve(["NOVEL1"], Namespace.SYMBOL, Namespace.ENTREZ)
        assert ident.value == "NOVEL1"
        assert ident.namespace is Namespace.SYMBOL
        assert ident.resolved is False

    def test_length_and_order_preserved(self, resolver):
        """Test one output per input, in input order, duplicates included."""
        ids = ["NOVEL1", "TP53", "MS4A1", "TP53", "NOVEL2"]
        resolved = resolver.resolve(ids, Namespace.SYMBOL, Namespace.ENTREZ)
        assert len(resolved) == len(ids)
        assert [i.value for i in resolved] == [
            "NOVEL1", "7157", "ENSG00000156738", "7157", "NOVEL2",
        ]

    def test_all_unmappable(self, resolver):
        """Test that a fully unmappable input is returned unchanged, never dropped."""
        ids = ["X1", "X2", "X3"]
        resolved = resolver.resolve(ids, Namespace.SYMBOL, Namespace.ENTREZ)
        assert [i.value for i in resolved] == ids
        assert not any(i.resolved for i in resolved)

    def test_empty_input(self, dict_mapper):
        """Test that an empty input gives an empty output without mapper calls."""
        resolver = IdentifierResolver(dict_mapper)
        assert resolver.resolve([], Namespace.SYMBOL, Namespace.ENTREZ) == []
        assert dict_mapper.calls == []

    def test_same_namespace(self, dict_mapper):
        """Test that source == target is the identity without mapper calls."""
        resolver = IdentifierResolver(dict_mapper)
        resolved = resolver.resolve(["TP53", "NOVEL1"], "symbol", "symbol")
        assert [i.value for i in resolved] == ["TP53", "NOVEL1"]
        assert all(i.resolved for i in resolved)
        assert dict_mapper.calls == []

    def test_fallback_only_queries_misses(self, dict_mapper):
        """Test that fallback namespaces are queried only for unmapped ids."""
        resolver = IdentifierResolver(dict_mapper)
        resolver.resolve(["TP53", "MS4A1", "TP53"], Namespace.SYMBOL, Namespace.ENTREZ)
        assert dict_mapper.calls == [
            (["TP53", "MS4A1"], Namespace.SYMBOL, Namespace.ENTREZ),
            (["MS4A1"], Namespace.SYMBOL, Namespace.ENSEMBL),
        ]

    def test_string_namespaces(self, resolver):
        """Test that namespaces may be given by name."""
        resolved = resolver.resolve(["TP53"], "SYMBOL", "ENTREZID")
        assert resolved == [GeneIdentifier(Namespace.ENTREZ, "7157")]


class TestBlankIds:
    """Test that blank ids are kept in place as unresolved identifiers."""

    def test_blank_kept_in_position(self, resolver):
        """Test that a blank id neither raises nor shifts its neighbours."""
        resolved = resolver.resolve(["TP53", "", "BRCA1"], Namespace.SYMBOL, Namespace.ENTREZ)
        assert [(i.value, i.namespace, i.resolved) for i in resolved] == [
            ("7157", Namespace.ENTREZ, True),
            ("", Namespace.SYMBOL, False),
            ("672", Namespace.ENTREZ, True),
        ]

    def test_blank_not_sent_to_mapper(self, dict_mapper):
        """Test that blank and whitespace ids are never queried."""
        resolver = IdentifierResolver(dict_mapper)
        resolver.resolve(["", "TP53", "  ", "MS4A1"], Namespace.SYMBOL, Namespace.ENTREZ)
        assert dict_mapper.calls == [
            (["TP53", "MS4A1"], Namespace.SYMBOL, Namespace.ENTREZ),
            (["MS4A1"], Namespace.SYMBOL, Namespace.ENSEMBL),
        ]

    def test_only_blank_ids(self, dict_mapper):
        """Test that an all-blank input makes no mapper call."""
        resolver = IdentifierResolver(dict_mapper)
        resolved, report = resolver.resolve_with_report(["", ""], Namespace.SYMBOL, Namespace.ENTREZ)
        assert [i.resolved for i in resolved] == [False, False]
        assert report.unresolved == ("",)
        assert dict_mapper.calls == []

    def test_blank_in_same_namespace(self, dict_mapper):
        """Test that the identity shortcut flags blank ids as unresolved."""
        resolver = IdentifierResolver(dict_mapper)
        resolved, report = resolver.resolve_with_report(
            ["TP53", "", " "], Namespace.SYMBOL, Namespace.SYMBOL
        )
        assert [(i.value, i.resolved) for i in resolved] == [
            ("TP53", True), ("", False), (" ", False),
        ]
        assert report.n_direct == 1
        assert report.unresolved == ("", " ")

    def test_blank_mapped_value_is_a_miss(self):
        """Test that an empty mapped value falls through to the fallback chain."""
        mapper = DictMapper({
            (Namespace.SYMBOL, Namespace.ENTREZ): {'MS4A1': ""},
            (Namespace.SYMBOL, Namespace.ENSEMBL): {'MS4A1': "ENSG00000156738"},
        })
        (ident,) = IdentifierResolver(mapper).resolve(["MS4A1"], Namespace.SYMBOL, Namespace.ENTREZ)
        assert ident.namespace is Namespace.ENSEMBL
        assert ident.value == "ENSG00000156738"

    def test_rename_columns_with_blank(self, annotation_table):
        """Test that a blank column name survives renaming in place."""
        resolver = IdentifierResolver(AnnotationTableMapper(annotation_table))
        frame = pd.DataFrame([[1, 2, 3]], columns=["CD3E", "", "BRCA1"])
        renamed = resolver.rename_columns(frame, Namespace.SYMBOL, Namespace.ENTREZ)
        assert list(renamed.columns) == ["916", "", "672"]


class TestFallbackChains:
    """Test fallback chain configuration."""

    def test_default_chains_cover_all_pairs(self):
        """Test that every ordered namespace pair has a fallback."""
        pairs = {(s, t) for s in Namespace for t in Namespace if s != t}
        assert set(DEFAULT_FALLBACK_CHAINS) == pairs

    def test_chain_excludes_source_and_target(self, dict_mapper):
        """Test that a chain never retries the source or target namespace."""
        resolver = IdentifierResolver(dict_mapper, {
            (Namespace.SYMBOL, Namespace.ENTREZ): (Namespace.SYMBOL, Namespace.ENSEMBL, Namespace.ENTREZ),
        })
        assert resolver.fallback_chain(Namespace.SYMBOL, Namespace.ENTREZ) == (Namespace.ENSEMBL,)

    def test_no_fallback(self, dict_mapper):
        """Test that an empty chain sends misses straight to unresolved."""
        resolver = IdentifierResolver(dict_mapper, fallback_chains={})
        (ident,) = resolver.resolve(["MS4A1"], Namespace.SYMBOL, Namespace.ENTREZ)
        assert ident.resolved is False
        assert len(dict_mapper.calls) == 1


class TestResolutionReport:
    """Test the resolution report."""

    def test_counts(self, resolver):
        """Test direct, fallback and unresolved counts."""
        _, report = resolver.resolve_with_report(
            ["TP53", "MS4A1", "NOVEL1", "TP53"], Namespace.SYMBOL, Namespace.ENTREZ
        )
        assert report.n_input == 4
        assert report.n_direct == 1
        assert report.n_fallback == {Namespace.ENSEMBL: 1}
        assert report.unresolved == ("NOVEL1",)
        assert report.n_unresolved == 1

    def test_to_dict(self, resolver):
        """Test the export representation."""
        _, report = resolver.resolve_with_report(["MS4A1"], Namespace.SYMBOL, Namespace.ENTREZ)
        assert report.to_dict() == {
            'source': 'symbol',
            'target': 'entrez',
            'n_input': 1,
            'n_direct': 0,
            'n_fallback': {'ensembl_gene': 1},
            'unresolved': [],
        }


class TestLookupUnavailable:
    """Test that an unreachable mapping facility is reported, not hidden."""

    def test_error_propagates(self):
        """Test that LookupUnavailableError reaches the caller."""
        resolver = IdentifierResolver(UnreachableMapper())
        with pytest.raises(LookupUnavailableError):
            resolver.resolve(["TP53"], Namespace.SYMBOL, Namespace.ENTREZ)

    def test_not_retried(self):
        """Test that the facility is queried once, without retries."""
        mapper = UnreachableMapper()
        resolver = IdentifierResolver(mapper)
        with pytest.raises(LookupUnavailableError):
            resolver.resolve(["TP53"], Namespace.SYMBOL, Namespace.ENTREZ)
        assert mapper.n_calls == 1


class TestAnnotationTableResolution:
    """Test resolution backed by an offline annotation table."""

    def test_symbol_to_entrez(self, annotation_table):
        """Test direct mappings, fallback for a missing entrez and an unknown gene."""
        resolver = IdentifierResolver(AnnotationTableMapper(annotation_table))
        resolved = resolver.resolve(
            ["TP53", "MS4A1", "NOVEL1"], Namespace.SYMBOL, Namespace.ENTREZ
        )
        assert [(i.value, i.namespace, i.resolved) for i in resolved] == [
            ("7157", Namespace.ENTREZ, True),
            ("ENSG00000156738", Namespace.ENSEMBL, True),
            ("NOVEL1", Namespace.SYMBOL, False),
        ]

    def test_rename_columns(self, annotation_table):
        """Test positional renaming of matrix columns."""
        resolver = IdentifierResolver(AnnotationTableMapper(annotation_table))
        frame = pd.DataFrame([[1, 2, 3]], columns=["CD3E", "NOVEL1", "BRCA1"])
        renamed = resolver.rename_columns(frame, Namespace.SYMBOL, Namespace.ENTREZ)
        assert list(renamed.columns) == ["916", "NOVEL1", "672"]
        assert list(frame.columns) == ["CD3E", "NOVEL1", "BRCA1"]
        assert renamed.values.tolist() == [[1, 2, 3]]
