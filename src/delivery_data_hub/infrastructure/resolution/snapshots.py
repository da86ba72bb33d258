"""
Snapshot resolution for monthly dimension exports.

Every dimension table is exported in full once a month (``pk_ts_month``) and
rows are withdrawn with a soft-delete flag (``flg_deleted``) instead of being
removed. The current state of a key is therefore its most recent snapshot row,
and the key is gone only if that most recent row is flagged.

Ordering matters: the soft-delete filter is applied AFTER picking the latest
row per key. Filtering first would resurrect a key from an older active
snapshot once its newest snapshot is deleted, and would hide a key that is
active now but carried the flag in an earlier month.
"""

from __future__ import annotations

import numbers
from typing import Any, Callable, Dict, Hashable, Iterable, List, Mapping, TypeVar

from delivery_data_hub.infrastructure.cleansing.normalizers import normalize_name_key

Row = TypeVar("Row", bound=Mapping[str, Any])

DEFAULT_PERIOD_COLUMN = "pk_ts_month"
DEFAULT_DELETED_COLUMN = "flg_deleted"

_TRUTHY_FLAGS = frozenset({"1", "true", "t", "yes", "y"})


def is_soft_deleted(value: Any) -> bool:
    """Interpret a soft-delete flag value; missing/null means active.

    Examples:
        >>> is_soft_deleted(None), is_soft_deleted(0), is_soft_deleted(1)
        (False, False, True)
        >>> is_soft_deleted("true"), is_soft_deleted("0")
        (True, False)
    """
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, numbers.Real):
        # NaN != NaN: a missing float flag reads as active
        return value == value and value != 0
    if isinstance(value, str):
        return value.strip().lower() in _TRUTHY_FLAGS
    return False


def snapshot_period(row: Mapping[str, Any], column: str = DEFAULT_PERIOD_COLUMN) -> str:
    """Lexically sortable period of a row; tables without periods sort oldest."""
    value = row.get(column)
    if value is None:
        return ""
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return str(value)


def resolve_latest_snapshots(
    rows: Iterable[Row],
    key_fn: Callable[[Row], Hashable],
    period_column: str = DEFAULT_PERIOD_COLUMN,
    deleted_column: str = DEFAULT_DELETED_COLUMN,
) -> Dict[Hashable, Row]:
    """
    Collapse repeated snapshot rows per key into the current row.

    Args:
        rows: Raw rows of one dimension table, any number of snapshots.
        key_fn: Extracts the primary key of a row.
        period_column: Column holding the snapshot period ("YYYY-MM-01").
        deleted_column: Column holding the soft-delete flag.

    Returns:
        Mapping key -> latest row, in first-seen key order. Keys whose latest
        row is soft-deleted are absent. Equal periods keep the first row seen.

    Example:
        >>> rows = [
        ...     {"pk_id_company": 7, "pk_ts_month": "2025-12-01", "flg_deleted": 0},
        ...     {"pk_id_company": 7, "pk_ts_month": "2026-01-01", "flg_deleted": 1},
        ... ]
        >>> resolve_latest_snapshots(rows, lambda r: r["pk_id_company"])
        {}
    """
    latest: Dict[Hashable, Row] = {}
    latest_period: Dict[Hashable, str] = {}

    for row in rows:
        key = key_fn(row)
        period = snapshot_period(row, period_column)
        if key not in latest or period > latest_period[key]:
            latest[key] = row
            latest_period[key] = period

    return {
        key: row
        for key, row in latest.items()
        if not is_soft_deleted(row.get(deleted_column))
    }


def deduplicate_by(rows: Iterable[Row], key_fn: Callable[[Row], Hashable]) -> List[Row]:
    """Keep the first occurrence of each key, preserving input order."""
    seen: Dict[Hashable, Row] = {}
    for row in rows:
        key = key_fn(row)
        if key not in seen:
            seen[key] = row
    return list(seen.values())


def deduplicate_by_name_keeping_latest(
    rows: Iterable[Row],
    name_fn: Callable[[Row], Any],
    period_column: str = DEFAULT_PERIOD_COLUMN,
) -> List[Row]:
    """
    Keep one row per case-insensitive display name, the most recent snapshot.

    Used for company and area, which are registered once (no per-portal ids)
    but may still be duplicated under differently-cased names.

    Example:
        >>> rows = [
        ...     {"name": "Acme", "pk_ts_month": "2025-11-01"},
        ...     {"name": "ACME", "pk_ts_month": "2026-01-01"},
        ... ]
        >>> deduplicate_by_name_keeping_latest(rows, lambda r: r["name"])
        [{'name': 'ACME', 'pk_ts_month': '2026-01-01'}]
    """
    kept: Dict[str, Row] = {}
    kept_period: Dict[str, str] = {}

    for row in rows:
        key = normalize_name_key(name_fn(row))
        period = snapshot_period(row, period_column)
        if key not in kept or period > kept_period[key]:
            kept[key] = row
            kept_period[key] = period

    return list(kept.values())


__all__ = [
    "DEFAULT_DELETED_COLUMN",
    "DEFAULT_PERIOD_COLUMN",
    "deduplicate_by",
    "deduplicate_by_name_keeping_latest",
    "is_soft_deleted",
    "resolve_latest_snapshots",
    "snapshot_period",
]
