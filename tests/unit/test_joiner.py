"""Unit tests for the annotation join."""

import pandas as pd
import pytest

from probe_annotator.core import MalformedMatrixError, ProbeAnnotationError
from probe_annotator.core.annotation import (
    GENE_SYMBOL_COLUMN,
    PROBE_ID_COLUMN,
    ExpressionMatrix,
    ProbeGeneMap,
    join_annotation,
    lookup_symbols,
)


def make_matrix(probes, dataset_id="DS", samples=("S1",)):
    values = pd.DataFrame(
        [[float(i + j) for j in range(len(samples))] for i in range(len(probes))],
        index=pd.Index(probes, name=PROBE_ID_COLUMN),
        columns=list(samples),
    )
    return ExpressionMatrix(dataset_id=dataset_id, values=values)


class TestLookupSymbols:
    """Tests for symbol lookup."""

    def test_absent_probe_is_none(self, scenario_map):
        """Probes outside the map look up as None; empty symbols stay empty."""
        symbols = lookup_symbols(["P1", "P2", "P3"], scenario_map)
        assert symbols.tolist() == ["TP53", "", None]


class TestJoinAnnotation:
    """Tests for join_annotation."""

    def test_scenario(self, scenario_matrix, scenario_map):
        """Only P1 survives: P2 has no symbol and P3 is not on the platform."""
        annotated = join_annotation(scenario_matrix, scenario_map)
        assert list(annotated.frame.columns) == [PROBE_ID_COLUMN, GENE_SYMBOL_COLUMN, "S1", "S2"]
        assert annotated.frame.to_dict("records") == [
            {"Probe_ID": "P1", "Gene_Symbol": "TP53", "S1": 1.0, "S2": 2.0}
        ]
        assert annotated.n_unmapped == 1
        assert annotated.n_empty_symbol == 1
        assert annotated.platform_id == "GPL_TEST"

    def test_partition(self, random_matrix, random_map):
        """Kept and removed rows add up to the input rows."""
        annotated = join_annotation(random_matrix, random_map)
        assert annotated.n_probes + annotated.n_removed == random_matrix.n_probes
        assert annotated.n_input_probes == random_matrix.n_probes
        assert annotated.n_unmapped >= 3

    def test_every_kept_row_has_symbol(self, random_matrix, random_map):
        """No kept row has an empty or whitespace symbol."""
        annotated = join_annotation(random_matrix, random_map)
        symbols = annotated.frame[GENE_SYMBOL_COLUMN]
        assert (symbols.str.strip() != "").all()
        for probe, symbol in zip(annotated.frame[PROBE_ID_COLUMN], symbols):
            assert random_map[probe] == symbol

    def test_order_preserved(self, random_matrix, random_map):
        """Kept rows appear in their input order."""
        annotated = join_annotation(random_matrix, random_map)
        kept = annotated.frame[PROBE_ID_COLUMN].tolist()
        expected = [p for p in random_matrix.probe_ids if random_map.get(p)]
        assert kept == expected

    def test_idempotent(self, random_matrix, random_map):
        """Joining twice gives identical results."""
        first = join_annotation(random_matrix, random_map)
        second = join_annotation(random_matrix, random_map)
        pd.testing.assert_frame_equal(first.frame, second.frame)

    def test_values_unchanged(self, random_matrix, random_map):
        """Kept rows carry exactly their input values."""
        annotated = join_annotation(random_matrix, random_map)
        for _, row in annotated.frame.head(5).iterrows():
            expected = random_matrix.values.loc[row[PROBE_ID_COLUMN]].tolist()
            assert row[annotated.sample_ids].tolist() == expected

    def test_duplicate_probes(self):
        """Duplicate probe rows are all kept; their gene counts once."""
        probe_map = ProbeGeneMap(platform_id="GPL", mapping={"P1": "TP53", "P2": "MYC"})
        matrix = make_matrix(["P1", "P2", "P1"])
        annotated = join_annotation(matrix, probe_map)
        assert annotated.frame[PROBE_ID_COLUMN].tolist() == ["P1", "P2", "P1"]
        assert annotated.unique_genes == 2

    def test_whitespace_symbol_removed(self):
        """A symbol of only whitespace counts as empty."""
        probe_map = ProbeGeneMap(platform_id="GPL", mapping={"P1": "   ", "P2": "MYC"})
        annotated = join_annotation(make_matrix(["P1", "P2"]), probe_map)
        assert annotated.frame[PROBE_ID_COLUMN].tolist() == ["P2"]
        assert annotated.n_empty_symbol == 1

    def test_reserved_sample_column(self, scenario_map):
        """Sample columns named like the leading output columns are rejected."""
        matrix = make_matrix(["P1"], samples=("S1", GENE_SYMBOL_COLUMN))
        with pytest.raises(MalformedMatrixError) as exc_info:
            join_annotation(matrix, scenario_map)
        assert exc_info.value.column == GENE_SYMBOL_COLUMN
        assert isinstance(exc_info.value, ProbeAnnotationError)

    def test_empty_matrix(self, scenario_map):
        """An empty matrix joins to an empty table with the full header."""
        annotated = join_annotation(make_matrix([], samples=("S1", "S2")), scenario_map)
        assert annotated.n_probes == 0
        assert list(annotated.frame.columns) == [PROBE_ID_COLUMN, GENE_SYMBOL_COLUMN, "S1", "S2"]

    def test_shared_map_isolated(self, random_map):
        """Datasets sharing a map do not affect each other or the map."""
        before = dict(random_map.mapping)
        probes = list(random_map)[:20]
        first_matrix = make_matrix(probes, dataset_id="A")
        second_matrix = make_matrix(probes, dataset_id="B")

        first = join_annotation(first_matrix, random_map)
        second = join_annotation(second_matrix, random_map)
        first.frame[GENE_SYMBOL_COLUMN] = "CHANGED"
        first.frame["S1"] = -1.0

        assert dict(random_map.mapping) == before
        assert (second.frame[GENE_SYMBOL_COLUMN] != "CHANGED").all()
        assert (first_matrix.values["S1"] >= 0).all()

    @pytest.mark.parametrize("n_samples", [0, 1, 4])
    def test_sample_columns_kept(self, scenario_map, n_samples):
        """Sample columns pass through in order, including none at all."""
        samples = tuple(f"GSM{i}" for i in range(n_samples))
        annotated = join_annotation(make_matrix(["P1", "P2"], samples=samples), scenario_map)
        assert annotated.sample_ids == list(samples)
        assert annotated.n_probes == 1
