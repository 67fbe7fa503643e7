"""Pytest configuration and shared fixtures for probe-annotator tests."""

import sys
from pathlib import Path

import pytest
import numpy as np
import pandas as pd

# Add package to path
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from tests.fixtures import (
    write_platform_table,
    write_expression_matrix,
    create_mock_platform,
    create_mock_expression,
    create_run_directory,
)

from probe_annotator.core.annotation import (
    ExpressionMatrix,
    PlatformTable,
    PlatformResolver,
    ProbeGeneMap,
)


# ============================================================================
# In-memory Fixtures
# ============================================================================


@pytest.fixture
def scenario_map() -> ProbeGeneMap:
    """Platform map with P1 -> TP53 and P2 unannotated."""
    table = PlatformTable(
        platform_id="GPL_TEST",
        frame=pd.DataFrame({"ID": ["P1", "P2"], "Gene Symbol": ["TP53", ""]}, dtype=str),
    )
    return PlatformResolver().resolve(table)


@pytest.fixture
def scenario_matrix() -> ExpressionMatrix:
    """Expression matrix with probes P1, P2, P3 over two samples."""
    values = pd.DataFrame(
        {"S1": [1.0, 3.0, 5.0], "S2": [2.0, 4.0, 6.0]},
        index=pd.Index(["P1", "P2", "P3"], name="Probe_ID"),
    )
    return ExpressionMatrix(dataset_id="DS_TEST", values=values)


@pytest.fixture
def random_map() -> ProbeGeneMap:
    """Larger platform map with multi-probe genes and blank symbols."""
    mapping = create_mock_platform(n_probes=60, n_genes=15, seed=7)
    table = PlatformTable(
        platform_id="GPL_RANDOM",
        frame=pd.DataFrame({"ID": list(mapping), "Symbol": list(mapping.values())}, dtype=str),
    )
    return PlatformResolver().resolve(table)


@pytest.fixture
def random_matrix() -> ExpressionMatrix:
    """Expression matrix over a subset of random_map's probes plus unknown ones."""
    rng = np.random.default_rng(3)
    probes = [f"P{i}" for i in rng.permutation(60)[:40]] + ["Q1", "Q2", "Q3"]
    values = pd.DataFrame(
        rng.uniform(0, 16, size=(len(probes), 5)),
        index=pd.Index(probes, name="Probe_ID"),
        columns=[f"GSM{i}" for i in range(5)],
    )
    return ExpressionMatrix(dataset_id="DS_RANDOM", values=values)


# ============================================================================
# File Fixtures
# ============================================================================


@pytest.fixture
def tmp_output_dir(tmp_path: Path) -> Path:
    """Create a temporary output directory for tests."""
    output_dir = tmp_path / "output"
    output_dir.mkdir(parents=True, exist_ok=True)
    return output_dir


@pytest.fixture
def scenario_files(tmp_path: Path) -> dict:
    """Scenario platform and expression tables written to disk."""
    platform = write_platform_table(tmp_path / "GPL_TEST.txt", {"P1": "TP53", "P2": ""})
    matrix = write_expression_matrix(
        tmp_path / "DS_TEST.txt",
        [("P1", 1.0, 2.0), ("P2", 3.0, 4.0), ("P3", 5.0, 6.0)],
    )
    return {"platform": platform, "matrix": matrix}


@pytest.fixture
def random_files(tmp_path: Path) -> dict:
    """Random platform and two datasets sharing it."""
    mapping = create_mock_platform(n_probes=40, n_genes=12, seed=11)
    platform = write_platform_table(tmp_path / "GPL_RND.txt", mapping)
    probes = list(mapping)
    ds1 = write_expression_matrix(
        tmp_path / "RND1.txt", create_mock_expression(probes[:30], n_samples=3, seed=1),
        samples=("A", "B", "C"),
    )
    ds2 = write_expression_matrix(
        tmp_path / "RND2.txt", create_mock_expression(probes[10:] + ["ZZ1"], n_samples=2, seed=2),
    )
    return {"platform": platform, "datasets": {"RND1": ds1, "RND2": ds2}}


@pytest.fixture
def run_config_path(tmp_path: Path) -> Path:
    """Complete run directory with run.yaml (one malformed dataset)."""
    return create_run_directory(tmp_path / "run")
