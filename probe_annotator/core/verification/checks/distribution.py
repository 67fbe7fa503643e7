"""Distribution checks: value ranges and gene representation.

Checks:
- MULTI_PROBE_GENES: Genes measured by more than one probe (info)
- VALUE_RANGE: Expression values outside the configured bounds (warn)
- GENE_DISTRIBUTION: Most represented genes (info)
"""

from typing import TYPE_CHECKING

import numpy as np

from probe_annotator.utils import compute_percentiles, count_outside

from .base import BaseCheck, CheckResult
from .registry import CheckRegistry

if TYPE_CHECKING:
    from ..table import ExportedTable


@CheckRegistry.register
class MultiProbeGenesCheck(BaseCheck):
    """Report genes that several probes map to."""

    check_id = "MULTI_PROBE_GENES"
    category = "distribution"
    issue_status = "info"
    description = "Genes mapped by more than one probe"

    def is_applicable(self, table: "ExportedTable") -> bool:
        return table.has_symbol_column

    def check(self, table: "ExportedTable") -> CheckResult:
        per_gene = table.gene_symbols.value_counts()
        multi = per_gene[per_gene > 1]

        counts = {
            "n_genes": int(len(per_gene)),
            "n_multi_probe_genes": int(len(multi)),
            "n_probes_in_multi_probe_genes": int(multi.sum()),
        }
        listed = {str(g): int(n) for g, n in multi.head(self.config.max_listed).items()}
        return self.info(
            f"{len(multi)} of {len(per_gene)} genes have more than one probe",
            counts,
            {"genes": listed},
        )


@CheckRegistry.register
class ValueRangeCheck(BaseCheck):
    """Flag expression values outside [min_value, max_value]."""

    check_id = "VALUE_RANGE"
    category = "distribution"
    issue_status = "warn"
    description = "Expression values within the configured bounds"

    def check(self, table: "ExportedTable") -> CheckResult:
        values = table.parse_values()["values"]
        finite = values[np.isfinite(values)]
        lower, upper = self.config.min_value, self.config.max_value

        n_below, n_above = count_outside(finite, lower, upper)
        counts = {
            "n_values": int(finite.size),
            "n_below": n_below,
            "n_above": n_above,
        }

        details = {"bounds": [lower, upper]}
        if finite.size:
            p1, p50, p99 = compute_percentiles(finite, [1, 50, 99])
            vmax = float(finite.max())
            details.update({
                "min": float(finite.min()),
                "max": vmax,
                "p1": round(float(p1), 4),
                "p50": round(float(p50), 4),
                "p99": round(float(p99), 4),
                "likely_log_scale": vmax <= self.config.log_scale_max,
            })
        else:
            details.update({"min": None, "max": None, "likely_log_scale": None})

        n_outside = n_below + n_above
        if n_outside:
            message = f"{n_outside} values outside [{lower}, {upper}] ({n_below} below, {n_above} above)"
        else:
            message = f"All {finite.size} values within [{lower}, {upper}]"
        return self.result(n_outside == 0, message, counts, details)


@CheckRegistry.register
class GeneDistributionCheck(BaseCheck):
    """Report the most represented gene symbols."""

    check_id = "GENE_DISTRIBUTION"
    category = "distribution"
    issue_status = "info"
    description = "Top-N most represented genes"

    def is_applicable(self, table: "ExportedTable") -> bool:
        return table.has_symbol_column

    def check(self, table: "ExportedTable") -> CheckResult:
        per_gene = table.gene_symbols.value_counts(sort=False)
        # Ties keep first-seen order
        per_gene = per_gene.sort_values(ascending=False, kind="stable")
        top = per_gene.head(self.config.top_n)

        counts = {"n_rows": table.n_rows, "n_genes": int(len(per_gene))}
        top_genes = [{"gene": str(g), "n_probes": int(n)} for g, n in top.items()]
        leader = f"; top: {top_genes[0]['gene']} ({top_genes[0]['n_probes']})" if top_genes else ""
        return self.info(f"{len(per_gene)} genes over {table.n_rows} rows{leader}", counts, {"top_genes": top_genes})
