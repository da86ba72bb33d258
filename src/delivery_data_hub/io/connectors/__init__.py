"""Dimension data source connectors."""

from .dimension_source import (
    DimensionQuery,
    DimensionSource,
    InMemoryDimensionSource,
    SqlDimensionSource,
    frame_to_records,
)
from .exceptions import SourceQueryFailed

__all__ = [
    "DimensionQuery",
    "DimensionSource",
    "InMemoryDimensionSource",
    "SourceQueryFailed",
    "SqlDimensionSource",
    "frame_to_records",
]
