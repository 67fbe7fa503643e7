"""Unit tests for the annotation engine and its exports."""

import json
import logging

import pandas as pd
import pytest

from probe_annotator.core.annotation import (
    FAILURE_COLUMNS,
    AnnotationConfig,
    AnnotationEngine,
    DatasetFailure,
    DatasetResult,
    OutputConfig,
    annotated_matrix_path,
    export_all,
)
from tests.fixtures import create_run_directory, write_expression_matrix, write_platform_table


@pytest.fixture
def run_inputs(tmp_path):
    """Platform and dataset files of the standard run directory."""
    data = create_run_directory(tmp_path / "run").parent / "data"
    return {
        "platforms": {"GPL_A": data / "GPL_A.txt", "GPL_B": data / "GPL_B.txt"},
        "datasets": {
            "DS1": data / "DS1.txt",
            "DS2": data / "DS2.txt",
            "DS3": data / "DS3.txt",
        },
        "assignment": {"DS1": "GPL_A", "DS2": "GPL_B", "DS3": "GPL_A"},
        "data": data,
    }


def run_engine(inputs, output_dir=None, **config):
    engine = AnnotationEngine(AnnotationConfig(**config))
    return engine.run(
        datasets=inputs["datasets"],
        platforms=inputs["platforms"],
        assignment=inputs["assignment"],
        output_dir=output_dir,
    )


class TestAnnotationRun:
    """Tests for AnnotationEngine.run."""

    def test_successes_and_failures(self, run_inputs):
        """A malformed dataset is skipped; the others are annotated."""
        result = run_engine(run_inputs)
        assert [r.dataset_id for r in result.results] == ["DS1", "DS2"]
        assert result.n_failed == 1

        failure = result.failures[0]
        assert failure.dataset_id == "DS3"
        assert failure.stage == "load"
        assert failure.error_type == "MalformedMatrixError"
        assert "oops" in failure.message

    def test_summary_rows(self, run_inputs):
        """Retention statistics per dataset."""
        result = run_engine(run_inputs)
        table = result.summary_table().set_index("Dataset")
        assert table.loc["DS1", "Total_Probes"] == 5
        assert table.loc["DS1", "Annotated_Probes"] == 3
        assert table.loc["DS1", "Retention_Rate"] == 60.0
        assert table.loc["DS1", "Unique_Genes"] == 2
        assert table.loc["DS2", "Retention_Rate"] == 100.0
        assert table.loc["DS2", "Samples"] == 3

    def test_platforms_resolved_once(self, run_inputs):
        """Each platform map is built once and shared by its datasets."""
        result = run_engine(run_inputs)
        assert set(result.platform_maps) == {"GPL_A", "GPL_B"}
        assert result.platform_maps["GPL_B"].symbol_column == "Symbol"
        assert result.get_result("DS1").annotated.platform_id == "GPL_A"

    def test_missing_assignment(self, run_inputs):
        """A dataset without platform is skipped at the assignment stage."""
        run_inputs["assignment"].pop("DS2")
        result = run_engine(run_inputs)
        failure = next(f for f in result.failures if f.dataset_id == "DS2")
        assert failure.stage == "assignment"
        assert failure.error_type == "MissingAssignmentError"
        assert failure.platform_id is None
        assert result.get_result("DS1") is not None

    def test_unknown_platform(self, run_inputs):
        """Assignment to an unconfigured platform is a missing assignment."""
        run_inputs["assignment"]["DS2"] = "GPL_Z"
        result = run_engine(run_inputs)
        failure = next(f for f in result.failures if f.dataset_id == "DS2")
        assert failure.stage == "assignment"
        assert "GPL_Z" in failure.message

    def test_unresolvable_platform(self, run_inputs):
        """Every dataset of a platform without symbol column is skipped."""
        write_platform_table(
            run_inputs["data"] / "GPL_A.txt", {"A1": "x"}, columns=("ID", "Description")
        )
        result = run_engine(run_inputs)
        assert "GPL_A" in result.platform_errors
        assert [f.dataset_id for f in result.failures] == ["DS1", "DS3"]
        assert all(f.stage == "platform" for f in result.failures)
        assert all(f.error_type == "SchemaResolutionError" for f in result.failures)
        assert [r.dataset_id for r in result.results] == ["DS2"]

    def test_missing_dataset_file(self, run_inputs):
        """An absent expression file fails at the load stage."""
        run_inputs["datasets"]["DS1"] = run_inputs["data"] / "absent.txt"
        result = run_engine(run_inputs)
        failure = result.failures[0]
        assert failure.dataset_id == "DS1"
        assert failure.stage == "load"
        assert failure.error_type == "FileNotFoundError"

    def test_empty_matrix(self, run_inputs):
        """A matrix without probes fails at the summarize stage."""
        write_expression_matrix(run_inputs["data"] / "DS1.txt", [])
        result = run_engine(run_inputs)
        failure = result.failures[0]
        assert failure.dataset_id == "DS1"
        assert failure.stage == "summarize"
        assert failure.error_type == "DivisionByZeroError"

    def test_reserved_sample_column(self, run_inputs):
        """A dataset whose samples clash with output columns is skipped alone."""
        write_expression_matrix(
            run_inputs["data"] / "DS1.txt", [("A1", 1.0, 2.0)], samples=("S1", "Gene_Symbol")
        )
        write_expression_matrix(run_inputs["data"] / "DS4.txt", [("A1", 1.0, 2.0), ("A2", 3.0, 4.0)])
        run_inputs["datasets"]["DS4"] = run_inputs["data"] / "DS4.txt"
        run_inputs["assignment"]["DS4"] = "GPL_A"

        result = run_engine(run_inputs)
        assert [r.dataset_id for r in result.results] == ["DS2", "DS4"]
        failures = {f.dataset_id: f for f in result.failures}
        assert sorted(failures) == ["DS1", "DS3"]
        assert failures["DS1"].stage == "load"
        assert failures["DS1"].error_type == "MalformedMatrixError"
        assert "Gene_Symbol" in failures["DS1"].message

    def test_low_retention_warning(self, scenario_files, caplog):
        """Retention below the threshold logs a warning."""
        engine = AnnotationEngine()
        with caplog.at_level(logging.WARNING):
            result = engine.run(
                datasets={"DS_TEST": scenario_files["matrix"]},
                platforms={"GPL_TEST": scenario_files["platform"]},
                assignment={"DS_TEST": "GPL_TEST"},
            )
        assert result.results[0].summary.retention_rate == 33.33
        assert "check the platform assignment" in caplog.text

    def test_parallel_matches_sequential(self, run_inputs):
        """Concurrent processing gives the same ordered results."""
        sequential = run_engine(run_inputs)
        parallel = run_engine(run_inputs, n_jobs=2)
        pd.testing.assert_frame_equal(sequential.summary_table(), parallel.summary_table())
        pd.testing.assert_frame_equal(sequential.failure_table(), parallel.failure_table())

    def test_keep_matrices_off(self, run_inputs):
        """Annotated matrices are dropped when not kept."""
        result = run_engine(run_inputs, keep_matrices=False)
        assert all(r.annotated is None for r in result.results)

    def test_no_output_dir_writes_nothing(self, run_inputs):
        """Without an output directory nothing is exported."""
        before = sorted(p.name for p in run_inputs["data"].iterdir())
        result = run_engine(run_inputs)
        assert result.output_paths == {}
        assert all(r.export_path is None for r in result.results)
        assert sorted(p.name for p in run_inputs["data"].iterdir()) == before

    def test_failure_table(self, run_inputs):
        """Failures convert to a table with a fixed header."""
        table = run_engine(run_inputs).failure_table()
        assert list(table.columns) == FAILURE_COLUMNS
        assert table["Dataset"].tolist() == ["DS3"]


class TestProcessDataset:
    """Tests for AnnotationEngine.process_dataset."""

    def test_returns_result(self, scenario_files, scenario_map):
        """A good dataset returns a DatasetResult."""
        outcome = AnnotationEngine().process_dataset(
            "DS_TEST", scenario_files["matrix"], "GPL_TEST", scenario_map
        )
        assert isinstance(outcome, DatasetResult)
        assert outcome.summary.annotated_probes == 1

    def test_returns_failure(self, tmp_path, scenario_map):
        """A bad dataset returns a DatasetFailure instead of raising."""
        path = write_expression_matrix(tmp_path / "bad.txt", [("P1", "?", 1.0)])
        outcome = AnnotationEngine().process_dataset("BAD", path, "GPL_TEST", scenario_map)
        assert isinstance(outcome, DatasetFailure)
        assert outcome.to_dict()["Stage"] == "load"


class TestAnnotationExport:
    """Tests for exported annotation files."""

    def test_run_exports(self, run_inputs, tmp_output_dir):
        """Annotated tables, summaries and provenance are written."""
        result = run_engine(run_inputs, output_dir=tmp_output_dir)
        for name in [
            "DS1_annotated.tsv",
            "DS2_annotated.tsv",
            "annotation_summary.tsv",
            "overall_statistics.tsv",
            "platform_statistics.tsv",
            "failures.tsv",
            "provenance.json",
        ]:
            assert (tmp_output_dir / name).exists(), name
        assert not (tmp_output_dir / "DS3_annotated.tsv").exists()
        assert result.get_result("DS1").export_path == tmp_output_dir / "DS1_annotated.tsv"

    def test_annotated_table_content(self, run_inputs, tmp_output_dir):
        """Exported rows are Probe_ID, Gene_Symbol and the samples."""
        run_engine(run_inputs, output_dir=tmp_output_dir)
        exported = pd.read_csv(tmp_output_dir / "DS1_annotated.tsv", sep="\t", dtype=str)
        assert list(exported.columns) == ["Probe_ID", "Gene_Symbol", "S1", "S2"]
        assert exported["Probe_ID"].tolist() == ["A1", "A2", "A4"]
        assert exported["Gene_Symbol"].tolist() == ["TP53", "BRCA1", "TP53"]

    def test_summary_export_matches_result(self, run_inputs, tmp_output_dir):
        """The exported summary holds the in-memory rows."""
        result = run_engine(run_inputs, output_dir=tmp_output_dir)
        exported = pd.read_csv(tmp_output_dir / "annotation_summary.tsv", sep="\t")
        assert exported["Dataset"].tolist() == ["DS1", "DS2"]
        assert exported["Retention_Rate"].tolist() == result.summary_table()["Retention_Rate"].tolist()

    def test_provenance(self, run_inputs, tmp_output_dir):
        """Provenance records config, platforms and failures."""
        run_engine(run_inputs, output_dir=tmp_output_dir)
        with open(tmp_output_dir / "provenance.json") as f:
            provenance = json.load(f)
        assert provenance["n_succeeded"] == 2
        assert provenance["n_failed"] == 1
        assert provenance["platforms"]["GPL_A"]["n_probes"] == 4
        assert provenance["failures"][0]["Dataset"] == "DS3"
        assert provenance["config"]["n_jobs"] == 1

    def test_comma_separated_output(self, run_inputs, tmp_output_dir):
        """A comma separator switches exports to .csv."""
        run_engine(run_inputs, output_dir=tmp_output_dir, output=OutputConfig(sep=","))
        assert (tmp_output_dir / "DS1_annotated.csv").exists()
        assert (tmp_output_dir / "annotation_summary.csv").exists()

    def test_export_all_after_run(self, run_inputs, tmp_output_dir):
        """export_all writes matrices kept in memory by an unexported run."""
        result = run_engine(run_inputs)
        outputs = export_all(result, tmp_output_dir)
        assert outputs["annotated:DS1"] == annotated_matrix_path("DS1", tmp_output_dir)
        assert outputs["annotated:DS1"].exists()
        assert outputs["provenance"].exists()
