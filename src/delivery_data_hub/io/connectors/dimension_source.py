"""
Dimension table sources.

The warehouse holding the ``crp_portal__*`` dimension tables is an opaque
query service to the resolution layer: it asks for the rows of one table,
optionally restricted by ``IN`` filters and an upper snapshot period, and
receives plain row dictionaries. Two sources are provided:

- ``SqlDimensionSource``: renders the query with SQLAlchemy Core and reads it
  through pandas (PostgreSQL in production, SQLite in tests).
- ``InMemoryDimensionSource``: evaluates the same query over rows already in
  memory (fixtures, exported snapshot files).

Neither source retries; a failed query raises ``SourceQueryFailed``.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional

import pandas as pd
from sqlalchemy import create_engine, select, table, column
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.sql import Select

from delivery_data_hub.config import Settings, get_settings
from delivery_data_hub.domain.protocols import DimensionQuery, DimensionSource
from delivery_data_hub.io.connectors.exceptions import SourceQueryFailed
from delivery_data_hub.utils.logging import get_logger

logger = get_logger(__name__)


def frame_to_records(df: pd.DataFrame) -> List[Dict[str, Any]]:
    """Convert a DataFrame to row dictionaries with NaN/NaT replaced by None."""
    if df.empty:
        return []
    cleaned = df.astype(object).where(pd.notna(df), None)
    return cleaned.to_dict(orient="records")


class SqlDimensionSource:
    """
    SQLAlchemy-backed dimension source.

    Example:
        >>> source = SqlDimensionSource.from_settings()
        >>> rows = source.fetch_rows(
        ...     DimensionQuery("crp_portal__dt_store", ("pk_id_store", "des_store"))
        ... )
    """

    def __init__(self, engine: Engine, schema: Optional[str] = None):
        self.engine = engine
        self.schema = schema

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "SqlDimensionSource":
        settings = settings or get_settings()
        engine = create_engine(settings.get_database_connection_string())
        return cls(engine, schema=settings.source_schema)

    def build_statement(self, query: DimensionQuery) -> Select:
        """Render a DimensionQuery as a SQLAlchemy Core SELECT."""
        source_table = table(
            query.table,
            *(column(name) for name in query.referenced_columns()),
            schema=self.schema,
        )
        statement = select(*(source_table.c[name] for name in query.columns))

        for name, values in query.in_filters.items():
            statement = statement.where(source_table.c[name].in_(list(values)))
        if query.period_column and query.max_period:
            statement = statement.where(
                source_table.c[query.period_column] <= query.max_period
            )
        for name in query.order_by:
            if name.startswith("-"):
                statement = statement.order_by(source_table.c[name[1:]].desc())
            else:
                statement = statement.order_by(source_table.c[name])
        if query.limit:
            statement = statement.limit(query.limit)

        return statement

    def fetch_rows(self, query: DimensionQuery) -> List[Dict[str, Any]]:
        """
        Execute the query and return row dictionaries.

        Raises:
            SourceQueryFailed: If the database rejects or cannot run the query.
        """
        statement = self.build_statement(query)
        try:
            with self.engine.connect() as connection:
                df = pd.read_sql(statement, connection)
        except SQLAlchemyError as exc:
            logger.error(
                "dimension_source.query_failed",
                table=query.table,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            raise SourceQueryFailed(query.table, exc, str(exc)) from exc

        logger.debug("dimension_source.rows_fetched", table=query.table, rows=len(df))
        return frame_to_records(df)


def _comparable(value: Any) -> Any:
    # Warehouse ids arrive as int, float (nullable int columns) or str
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value) if value is not None else None


class InMemoryDimensionSource:
    """
    Dimension source over rows held in memory, keyed by table name.

    Filters compare values by their string form so ``"12"`` matches ``12``.
    """

    def __init__(self, tables: Optional[Mapping[str, Iterable[Mapping[str, Any]]]] = None):
        self.tables: Dict[str, List[Dict[str, Any]]] = {
            name: [dict(row) for row in rows] for name, rows in (tables or {}).items()
        }
        self.queries: List[DimensionQuery] = []

    def add_rows(self, table_name: str, rows: Iterable[Mapping[str, Any]]) -> None:
        self.tables.setdefault(table_name, []).extend(dict(row) for row in rows)

    def _matches(self, row: Mapping[str, Any], query: DimensionQuery) -> bool:
        for name, values in query.in_filters.items():
            allowed = {_comparable(value) for value in values}
            if _comparable(row.get(name)) not in allowed:
                return False
        if query.period_column and query.max_period:
            period = row.get(query.period_column)
            if period is None or str(period) > query.max_period:
                return False
        return True

    def fetch_rows(self, query: DimensionQuery) -> List[Dict[str, Any]]:
        self.queries.append(query)
        rows = [row for row in self.tables.get(query.table, []) if self._matches(row, query)]

        for name in reversed(query.order_by):
            descending = name.startswith("-")
            key = name.lstrip("-")
            rows.sort(
                key=lambda row: (row.get(key) is None, _comparable(row.get(key)) or ""),
                reverse=descending,
            )
        if query.limit:
            rows = rows[: query.limit]

        return [{name: row.get(name) for name in query.columns} for row in rows]


__all__ = [
    "DimensionQuery",
    "DimensionSource",
    "InMemoryDimensionSource",
    "SqlDimensionSource",
    "SourceQueryFailed",
    "frame_to_records",
]
