"""Unit tests for table and log I/O helpers."""

from datetime import datetime

import pandas as pd
import pytest

from probe_annotator.io import (
    RunLog,
    config_block,
    count_preamble_lines,
    dated_log_path,
    read_string_table,
    table_extension,
    write_dataframe,
)
from probe_annotator.utils import compute_percentiles, count_outside


class TestTables:
    """Tests for delimited-table helpers."""

    def test_preamble_counted(self, tmp_path):
        """Only leading comment lines count as preamble."""
        path = tmp_path / "t.txt"
        path.write_text("!a\n#b\nID\tX\n!not_preamble\t1\n")
        assert count_preamble_lines(path) == 2
        assert count_preamble_lines(path, prefixes=()) == 0

    def test_commented_header_kept(self, tmp_path):
        """A '#' line holding the separator is the header, not preamble."""
        path = tmp_path / "t.txt"
        path.write_text("# exported 2024-03-01\n#ID\tS1\nP1\t1.5\n")
        assert count_preamble_lines(path) == 1
        assert count_preamble_lines(path, sep=None) == 2
        frame, n_skip = read_string_table(path)
        assert n_skip == 1
        assert list(frame.columns) == ["#ID", "S1"]
        assert frame["#ID"].tolist() == ["P1"]

    def test_metadata_lines_with_separator_skipped(self, tmp_path):
        """'!' metadata lines are preamble even when tab-delimited."""
        path = tmp_path / "t.txt"
        path.write_text('!Sample_title\t"a"\t"b"\nID_REF\tS1\tS2\nP1\t1\t2\n')
        assert count_preamble_lines(path) == 1

    def test_cells_kept_as_text(self, tmp_path):
        """NA-like cells and leading zeros are not converted."""
        path = tmp_path / "t.txt"
        path.write_text("ID\tX\n007\tNA\n008\t\n")
        frame, n_skip = read_string_table(path)
        assert n_skip == 0
        assert frame["ID"].tolist() == ["007", "008"]
        assert frame["X"].tolist() == ["NA", ""]

    def test_missing_table(self, tmp_path):
        """A missing file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            read_string_table(tmp_path / "absent.txt")

    def test_write_creates_parent(self, tmp_path):
        """write_dataframe creates missing directories."""
        path = write_dataframe(pd.DataFrame({"a": [1]}), tmp_path / "x" / "y.csv", sep=",")
        assert path.read_text().splitlines() == ["a", "1"]

    def test_table_extension(self):
        """Comma-separated tables are .csv, everything else .tsv."""
        assert table_extension(",") == "csv"
        assert table_extension("\t") == "tsv"


class TestRunLogs:
    """Tests for run-log helpers."""

    def test_dated_log_path(self, tmp_path):
        """The run start time is part of the log file name."""
        path = dated_log_path(tmp_path, started=datetime(2024, 3, 1, 9, 5, 0))
        assert path == tmp_path / "run_20240301_090500.log"

    def test_run_log_appends(self, tmp_path):
        """Each stage becomes one JSON line, read back in order."""
        run_log = RunLog(tmp_path / "logs" / "run_log.jsonl")
        assert run_log.records() == []
        run_log.append("annotate", "success", 1.23456, n_succeeded=2)
        run_log.append("verify", "error", 0.5, error="OSError: disk full")
        records = run_log.records()
        assert [r["stage"] for r in records] == ["annotate", "verify"]
        assert records[0]["duration_seconds"] == 1.235
        assert records[0]["n_succeeded"] == 2
        assert records[1]["status"] == "error"
        assert len(run_log.path.read_text().splitlines()) == 2

    def test_config_block(self):
        """Config echoes are titled, indented YAML in key order."""
        text = config_block({"output_dir": "out", "settings": {"n_jobs": 2}})
        assert text.splitlines() == [
            "Run configuration:",
            "  output_dir: out",
            "  settings:",
            "    n_jobs: 2",
        ]


class TestStats:
    """Tests for statistical helpers."""

    def test_percentiles_ignore_nan(self):
        """Non-finite values are dropped before computing percentiles."""
        result = compute_percentiles([1.0, float("nan"), 3.0], [50])
        assert result[0] == 2.0

    def test_count_outside(self):
        """Values below and above the bounds are counted separately."""
        assert count_outside([-1.0, 0.0, 5.0, 21.0, 30.0], 0.0, 20.0) == (1, 2)
