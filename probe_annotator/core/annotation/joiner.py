"""Annotation joiner.

Joins expression rows to a platform's probe -> gene map. A row is kept iff
its probe ID is in the map and the mapped symbol is non-empty after
trimming. Kept rows stay in their original order; duplicate probe rows are
all kept. Neither input is modified.
"""

import logging

import numpy as np
import pandas as pd

from ..errors import MalformedMatrixError
from .tables import (
    GENE_SYMBOL_COLUMN,
    PROBE_ID_COLUMN,
    AnnotatedMatrix,
    ExpressionMatrix,
    ProbeGeneMap,
)

logger = logging.getLogger(__name__)


def lookup_symbols(probe_ids, probe_map: ProbeGeneMap) -> pd.Series:
    """Look up trimmed symbols for probe IDs; absent probes map to None."""
    symbols = []
    for probe_id in probe_ids:
        symbol = probe_map.get(str(probe_id))
        symbols.append(symbol.strip() if symbol is not None else None)
    return pd.Series(symbols, dtype=object)


def join_annotation(matrix: ExpressionMatrix, probe_map: ProbeGeneMap) -> AnnotatedMatrix:
    """Filter an expression matrix to annotated probes.

    Parameters
    ----------
    matrix : ExpressionMatrix
        Dataset expression matrix
    probe_map : ProbeGeneMap
        Probe -> gene symbol map of the dataset's platform

    Returns
    -------
    AnnotatedMatrix
        Rows ``(Probe_ID, Gene_Symbol, samples...)`` for annotated probes,
        in input order, with removal counts

    Raises
    ------
    MalformedMatrixError
        If a sample column is named like one of the leading output columns
    """
    clashes = [c for c in matrix.values.columns if str(c) in (PROBE_ID_COLUMN, GENE_SYMBOL_COLUMN)]
    if clashes:
        raise MalformedMatrixError(
            f"Dataset {matrix.dataset_id}: sample column '{clashes[0]}' clashes with an "
            "annotated-table column",
            path=matrix.source,
            column=str(clashes[0]),
        )

    symbols = lookup_symbols(matrix.values.index, probe_map)
    unmapped = symbols.isna().to_numpy()
    empty = ~unmapped & (symbols.fillna("").to_numpy() == "")
    keep = ~(unmapped | empty)

    kept_values = matrix.values.to_numpy(copy=True)[keep]
    frame = pd.DataFrame(kept_values, columns=list(matrix.values.columns))
    frame.insert(0, GENE_SYMBOL_COLUMN, symbols.to_numpy()[keep].astype(str))
    frame.insert(0, PROBE_ID_COLUMN, np.asarray(matrix.values.index, dtype=object)[keep].astype(str))

    annotated = AnnotatedMatrix(
        dataset_id=matrix.dataset_id,
        platform_id=probe_map.platform_id,
        frame=frame,
        n_input_probes=matrix.n_probes,
        n_unmapped=int(unmapped.sum()),
        n_empty_symbol=int(empty.sum()),
    )
    logger.debug(
        "Dataset %s on %s: kept %d of %d probes (%d unmapped, %d without symbol)",
        matrix.dataset_id, probe_map.platform_id, annotated.n_probes,
        matrix.n_probes, annotated.n_unmapped, annotated.n_empty_symbol,
    )
    return annotated
