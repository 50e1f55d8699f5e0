"""Column pruning + SKU row filter — pure functions, no side effects."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from catalog_export import PREFIXES, SKU_HEADER
from catalog_export.models import ColumnPlan, Row, Table

logger = logging.getLogger(__name__)


def _header_text(value: Any) -> str:
    return "" if value is None else str(value)


def _cell_text(row: Sequence[Any], index: int) -> str:
    if index < 0 or index >= len(row):
        return ""
    return _header_text(row[index]).strip()


# ── Column helpers ───────────────────────────────────────────────


def find_removed_columns(header: Sequence[Any]) -> list[int]:
    """Return the indices of header cells starting with any pruned prefix."""
    return [
        index
        for index, value in enumerate(header)
        if _header_text(value).startswith(PREFIXES)
    ]


def find_sku_index(header: Sequence[Any]) -> int:
    """Return the first column whose header is exactly ``Variant SKU``, else -1."""
    for index, value in enumerate(header):
        if _header_text(value) == SKU_HEADER:
            return index
    return -1


def _prune(row: Sequence[Any], removed: set[int]) -> Row:
    return [value for index, value in enumerate(row) if index not in removed]


def plan_columns(header: Sequence[Any]) -> ColumnPlan:
    """Describe what :func:`transform_rows` will do to *header*."""
    removed = find_removed_columns(header)
    pruned = _prune(header, set(removed))
    return ColumnPlan(
        removed=[(index, _header_text(header[index])) for index in removed],
        kept_headers=[_header_text(value) for value in pruned],
        sku_index=find_sku_index(pruned),
    )


# ── Main transform ───────────────────────────────────────────────


def transform_rows(rows: Table) -> Table:
    """Prune prefixed columns and keep only data rows that carry a SKU.

    The pruned header row is always kept. A data row survives when its
    ``Variant SKU`` cell (looked up on the pruned header) is non-blank; rows
    are not deduplicated. An empty table comes back empty.
    """
    if not rows:
        logger.info("No data found in file")
        return []

    header = rows[0]
    removed = set(find_removed_columns(header))
    for index in sorted(removed):
        logger.debug("Removing column %r at index %d", _header_text(header[index]), index)

    pruned = [_prune(row, removed) for row in rows]
    logger.info("Removed %d columns", len(removed))

    sku_index = find_sku_index(pruned[0])
    if sku_index < 0:
        logger.warning("No %r column in header; every data row will be dropped", SKU_HEADER)
    else:
        logger.debug("%s column index: %d", SKU_HEADER, sku_index)

    kept: Table = [pruned[0]]
    kept.extend(row for row in pruned[1:] if _cell_text(row, sku_index))

    logger.info("Processed %d data rows, kept %d", len(rows) - 1, len(kept) - 1)
    return kept
