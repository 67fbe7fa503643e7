"""Integrity checks: structural properties every annotated export must have.

Checks:
- SCHEMA: Leading Probe_ID, Gene_Symbol columns and no empty symbols
- MISSING_VALUES: Every expression cell is a finite number
- DUPLICATE_PROBES: Probe IDs are unique within an export
- SUMMARY_CONSISTENCY: Export agrees with its row in the summary table
"""

from typing import TYPE_CHECKING

import numpy as np

from ...annotation.tables import GENE_SYMBOL_COLUMN, PROBE_ID_COLUMN
from .base import BaseCheck, CheckResult
from .registry import CheckRegistry

if TYPE_CHECKING:
    from ..table import ExportedTable


@CheckRegistry.register
class SchemaCheck(BaseCheck):
    """Flag exports whose leading columns or symbols are wrong."""

    check_id = "SCHEMA"
    category = "integrity"
    description = "Leading columns are Probe_ID, Gene_Symbol; no empty symbols"

    def check(self, table: "ExportedTable") -> CheckResult:
        expected = [PROBE_ID_COLUMN, GENE_SYMBOL_COLUMN]
        leading = table.columns[:2]
        columns_ok = leading == expected

        n_empty_symbols = 0
        if table.has_symbol_column:
            n_empty_symbols = int((table.gene_symbols == "").sum())
        n_empty_probes = 0
        if table.has_probe_column:
            n_empty_probes = int((table.probe_ids == "").sum())

        counts = {
            "n_rows": table.n_rows,
            "n_columns": len(table.columns),
            "n_samples": len(table.sample_columns),
            "n_empty_symbols": n_empty_symbols,
            "n_empty_probes": n_empty_probes,
        }
        problems = []
        if not columns_ok:
            problems.append(f"leading columns {leading}, expected {expected}")
        if n_empty_symbols:
            problems.append(f"{n_empty_symbols} rows without gene symbol")
        if n_empty_probes:
            problems.append(f"{n_empty_probes} rows without probe ID")

        message = "; ".join(problems) if problems else "Columns and symbols valid"
        return self.result(not problems, message, counts, {"leading_columns": leading})


@CheckRegistry.register
class MissingValuesCheck(BaseCheck):
    """Flag missing, empty or non-numeric expression cells."""

    check_id = "MISSING_VALUES"
    category = "integrity"
    description = "No missing or non-numeric expression cells"

    def check(self, table: "ExportedTable") -> CheckResult:
        parsed = table.parse_values()
        missing, invalid = parsed["missing"], parsed["invalid"]
        n_missing = int(missing.sum())
        n_invalid = int(invalid.sum())

        bad_rows, bad_cols = np.nonzero(missing | invalid)
        samples = table.sample_columns
        probe_ids = table.probe_ids.tolist() if table.has_probe_column else [""] * table.n_rows
        examples = [
            {
                "probe_id": probe_ids[r],
                "column": samples[c],
                "value": str(table.frame[samples[c]].iloc[r]),
            }
            for r, c in zip(bad_rows[: self.config.max_listed], bad_cols[: self.config.max_listed])
        ]
        rows_affected = int((missing | invalid).any(axis=1).sum()) if missing.size else 0

        counts = {
            "n_cells": int(missing.size),
            "n_missing": n_missing,
            "n_non_numeric": n_invalid,
            "n_rows_affected": rows_affected,
        }
        ok = n_missing == 0 and n_invalid == 0
        if ok:
            message = f"All {missing.size} expression cells are numeric"
        else:
            message = f"{n_missing} missing and {n_invalid} non-numeric cells in {rows_affected} rows"
        return self.result(ok, message, counts, {"examples": examples})


@CheckRegistry.register
class DuplicateProbesCheck(BaseCheck):
    """Flag probe IDs that occur on more than one row."""

    check_id = "DUPLICATE_PROBES"
    category = "integrity"
    description = "Probe IDs are unique within an export"

    def is_applicable(self, table: "ExportedTable") -> bool:
        return table.has_probe_column

    def check(self, table: "ExportedTable") -> CheckResult:
        probe_ids = table.probe_ids
        dup_mask = probe_ids.duplicated(keep=False)
        duplicates = list(dict.fromkeys(probe_ids[dup_mask]))

        counts = {
            "n_probes": int(probe_ids.nunique()),
            "n_duplicate_ids": len(duplicates),
            "n_duplicate_rows": int(dup_mask.sum()),
        }
        ok = not duplicates
        message = (
            "Probe IDs are unique" if ok
            else f"{len(duplicates)} probe IDs on {counts['n_duplicate_rows']} rows"
        )
        return self.result(ok, message, counts, {"duplicates": duplicates[: self.config.max_listed]})


@CheckRegistry.register
class SummaryConsistencyCheck(BaseCheck):
    """Compare an export with its row in the annotation summary table."""

    check_id = "SUMMARY_CONSISTENCY"
    category = "integrity"
    description = "Row and gene counts match the summary table"

    def is_applicable(self, table: "ExportedTable") -> bool:
        return table.summary_row is not None and table.has_symbol_column

    def check(self, table: "ExportedTable") -> CheckResult:
        row = table.summary_row
        observed_rows = table.n_rows
        observed_genes = int(table.gene_symbols.nunique())

        try:
            expected_rows = int(float(row["Annotated_Probes"]))
            expected_genes = int(float(row["Unique_Genes"]))
            total = int(float(row["Total_Probes"]))
            removed = int(float(row["Removed_Probes"]))
        except (KeyError, TypeError, ValueError) as e:
            return self.result(False, f"Summary row unusable: {e}", details={"summary_row": dict(row)})

        counts = {
            "expected_rows": expected_rows,
            "observed_rows": observed_rows,
            "expected_genes": expected_genes,
            "observed_genes": observed_genes,
        }
        problems = []
        if observed_rows != expected_rows:
            problems.append(f"{observed_rows} rows, summary says {expected_rows}")
        if observed_genes != expected_genes:
            problems.append(f"{observed_genes} genes, summary says {expected_genes}")
        if total - removed != expected_rows:
            problems.append(f"summary partition broken: {total} - {removed} != {expected_rows}")

        message = "; ".join(problems) if problems else "Export matches summary table"
        return self.result(not problems, message, counts)
