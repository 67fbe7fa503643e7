"""Platform mapping resolver.

Locates the probe-ID and gene-symbol columns of a platform annotation table
and builds the canonical probe -> gene symbol lookup. Column names differ
between vendors (``ID``, ``Gene Symbol``, ``Symbol``, ``GENE_SYMBOL``...), so
resolution walks an ordered alias list once per platform and keeps the
resolved column positions for all row access.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from probe_annotator.config import find_platform_config

from ..errors import SchemaResolutionError
from .config import ResolverConfig
from .tables import PlatformTable, ProbeGeneMap

logger = logging.getLogger(__name__)

_SEPARATORS = re.compile(r"[\s_\-]+")


def normalize_column_name(name: str) -> str:
    """Lowercase a column name and drop spaces, underscores and hyphens."""
    return _SEPARATORS.sub("", str(name).strip().lower())


@dataclass(frozen=True)
class ResolvedColumns:
    """Resolved column positions for a platform table."""

    probe_index: int
    probe_name: str
    symbol_index: int
    symbol_name: str
    probe_fallback: bool = False


def match_column(
    columns: Sequence[str],
    candidate: str,
    exclude: Optional[int] = None,
) -> Optional[int]:
    """Find the position of the column matching a candidate name.

    An exact spelling wins over a case/separator-insensitive match; among
    equal matches the earliest column wins.

    Parameters
    ----------
    columns : Sequence[str]
        Table column names in order
    candidate : str
        Column name to look for
    exclude : int, optional
        Position that may not be returned

    Returns
    -------
    int or None
        Column position, or None if nothing matches
    """
    for idx, col in enumerate(columns):
        if idx != exclude and str(col).strip() == candidate:
            return idx

    target = normalize_column_name(candidate)
    for idx, col in enumerate(columns):
        if idx != exclude and normalize_column_name(col) == target:
            return idx

    return None


class PlatformResolver:
    """Resolve platform annotation tables into probe -> gene maps.

    Parameters
    ----------
    config : ResolverConfig, optional
        Resolver configuration

    Example
    -------
    >>> resolver = PlatformResolver()
    >>> probe_map = resolver.resolve(platform_table)
    >>> probe_map.get("1007_s_at")
    'DDR1'
    """

    def __init__(self, config: Optional[ResolverConfig] = None):
        self.config = config or ResolverConfig()
        self._na_tokens = set(self.config.na_tokens)

    def _pinned_columns(self, platform_id: Optional[str]) -> tuple[Optional[str], Optional[str]]:
        if not self.config.use_platform_registry:
            return None, None
        platform_config = find_platform_config(platform_id)
        if platform_config is None:
            return None, None
        return platform_config.probe_column, platform_config.symbol_column

    def resolve_columns(
        self,
        columns: Sequence[str],
        platform_id: Optional[str] = None,
    ) -> ResolvedColumns:
        """Resolve the probe-ID and gene-symbol column positions.

        Parameters
        ----------
        columns : Sequence[str]
            Column names of the platform table, in order
        platform_id : str, optional
            Platform identifier, used for registry lookups and messages

        Returns
        -------
        ResolvedColumns
            Resolved positions and names

        Raises
        ------
        SchemaResolutionError
            If the table has no columns, a pinned column is absent, or no
            gene-symbol alias matches
        """
        columns = [str(c) for c in columns]
        label = platform_id or "<unnamed>"
        if not columns:
            raise SchemaResolutionError(
                f"Platform {label}: annotation table has no columns",
                platform_id=platform_id,
            )

        pinned_probe, pinned_symbol = self._pinned_columns(platform_id)

        # Probe column
        probe_fallback = False
        if pinned_probe is not None:
            probe_index = match_column(columns, pinned_probe)
            if probe_index is None:
                raise SchemaResolutionError(
                    f"Platform {label}: pinned probe column '{pinned_probe}' "
                    f"not found in {columns}",
                    platform_id=platform_id,
                )
        else:
            probe_index = None
            for alias in self.config.probe_id_aliases:
                probe_index = match_column(columns, alias)
                if probe_index is not None:
                    break
            if probe_index is None:
                probe_index = 0
                probe_fallback = True

        # Gene symbol column
        candidates: List[str] = (
            [pinned_symbol] if pinned_symbol is not None else list(self.config.gene_symbol_aliases)
        )
        symbol_index = None
        for candidate in candidates:
            symbol_index = match_column(columns, candidate, exclude=probe_index)
            if symbol_index is not None:
                break

        if symbol_index is None:
            raise SchemaResolutionError(
                f"Platform {label}: no gene-symbol column among {columns} "
                f"(tried {candidates})",
                platform_id=platform_id,
            )

        return ResolvedColumns(
            probe_index=probe_index,
            probe_name=columns[probe_index],
            symbol_index=symbol_index,
            symbol_name=columns[symbol_index],
            probe_fallback=probe_fallback,
        )

    def _clean_symbol(self, value: object) -> str:
        symbol = "" if value is None else str(value).strip()
        if symbol in self._na_tokens:
            return ""
        return symbol

    def resolve(self, table: PlatformTable) -> ProbeGeneMap:
        """Build the probe -> gene symbol map for a platform table.

        Later rows overwrite earlier rows with the same probe ID. Rows with a
        blank probe ID are skipped.

        Parameters
        ----------
        table : PlatformTable
            Raw platform annotation table

        Returns
        -------
        ProbeGeneMap
            Immutable probe -> symbol lookup

        Raises
        ------
        SchemaResolutionError
            If the columns cannot be resolved
        """
        resolved = self.resolve_columns(table.columns, table.platform_id)
        if resolved.probe_fallback:
            logger.info(
                "Platform %s: no probe-ID alias matched, using first column '%s'",
                table.platform_id, resolved.probe_name,
            )

        probes = table.frame.iloc[:, resolved.probe_index]
        symbols = table.frame.iloc[:, resolved.symbol_index]

        mapping: Dict[str, str] = {}
        n_duplicates = 0
        n_blank = 0
        for probe, symbol in zip(probes, symbols):
            probe_id = "" if probe is None else str(probe).strip()
            if not probe_id:
                n_blank += 1
                continue
            if probe_id in mapping:
                n_duplicates += 1
            mapping[probe_id] = self._clean_symbol(symbol)

        if n_duplicates:
            logger.warning(
                "Platform %s: %d duplicate probe IDs, later rows overwrite earlier ones",
                table.platform_id, n_duplicates,
            )
        if n_blank:
            logger.debug("Platform %s: skipped %d rows without probe ID", table.platform_id, n_blank)

        probe_map = ProbeGeneMap(
            platform_id=table.platform_id,
            mapping=mapping,
            probe_column=resolved.probe_name,
            symbol_column=resolved.symbol_name,
            probe_column_index=resolved.probe_index,
            symbol_column_index=resolved.symbol_index,
            n_duplicate_probes=n_duplicates,
        )
        logger.info(
            "Platform %s: %d probes (%d annotated) via columns '%s' -> '%s'",
            table.platform_id, len(probe_map), probe_map.n_annotated,
            resolved.probe_name, resolved.symbol_name,
        )
        return probe_map
