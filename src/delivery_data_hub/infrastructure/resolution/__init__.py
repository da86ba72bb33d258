"""Snapshot resolution and multi-portal grouping primitives.

All functions here are pure and synchronous: they take an already-fetched
batch of rows and return new structures without mutating their input.
"""

from delivery_data_hub.infrastructure.resolution.grouping import (
    DEFAULT_FILL_FIELDS,
    EntityGroup,
    group_entities,
)
from delivery_data_hub.infrastructure.resolution.snapshots import (
    deduplicate_by,
    deduplicate_by_name_keeping_latest,
    is_soft_deleted,
    resolve_latest_snapshots,
    snapshot_period,
)

__all__ = [
    "DEFAULT_FILL_FIELDS",
    "EntityGroup",
    "deduplicate_by",
    "deduplicate_by_name_keeping_latest",
    "group_entities",
    "is_soft_deleted",
    "resolve_latest_snapshots",
    "snapshot_period",
]
