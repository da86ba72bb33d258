"""Dimension source contract.

The resolution layer treats the warehouse as an opaque query service. Domain
code builds a ``DimensionQuery`` and hands it to whatever ``DimensionSource``
the caller injected; concrete sources live in
``delivery_data_hub.io.connectors``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Tuple, runtime_checkable


@dataclass(frozen=True)
class DimensionQuery:
    """
    A read of one dimension table.

    Attributes:
        table: Table name (without schema).
        columns: Columns to return.
        in_filters: column -> allowed values (``column IN (...)``).
        period_column: Snapshot period column, used with ``max_period``.
        max_period: Only snapshots with ``period <= max_period`` are returned.
        order_by: Columns to sort by; prefix with "-" for descending.
        limit: Maximum number of rows.
    """

    table: str
    columns: Tuple[str, ...]
    in_filters: Dict[str, Tuple[Any, ...]] = field(default_factory=dict)
    period_column: Optional[str] = None
    max_period: Optional[str] = None
    order_by: Tuple[str, ...] = ()
    limit: Optional[int] = None

    def referenced_columns(self) -> Tuple[str, ...]:
        """Every column the query touches, selected columns first."""
        names: Dict[str, None] = dict.fromkeys(self.columns)
        names.update(dict.fromkeys(self.in_filters))
        if self.period_column:
            names[self.period_column] = None
        names.update(dict.fromkeys(name.lstrip("-") for name in self.order_by))
        return tuple(names)


@runtime_checkable
class DimensionSource(Protocol):
    """
    Protocol for dimension sources.

    Implementations return one dictionary per row with the query's columns
    as keys; missing values are ``None``. An empty list is a valid result.
    Failures raise ``SourceQueryFailed``; sources never retry.
    """

    def fetch_rows(self, query: DimensionQuery) -> List[Dict[str, Any]]:
        ...
