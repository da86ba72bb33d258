"""
Multi-portal entity grouping.

Brands and restaurant addresses are registered independently on every
delivery portal, so one real entity arrives as several rows with different
ids. ``group_entities`` buckets already snapshot-resolved rows by a
normalized key, elects one primary row per bucket and returns every folded id
in ``all_ids`` so fact rows keyed by any portal id can still be joined.

Primary election: longest display text first (the least truncated spelling),
then most recent snapshot period, then input position. Missing optional
fields on the primary (coordinates) are filled from the first other member,
in input order, that has all of them.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import (
    Any,
    Callable,
    Dict,
    Iterable,
    List,
    Mapping,
    Optional,
    Sequence,
    Tuple,
)

from delivery_data_hub.infrastructure.resolution.snapshots import (
    DEFAULT_PERIOD_COLUMN,
    snapshot_period,
)

RowMapping = Mapping[str, Any]

DEFAULT_FILL_FIELDS: Tuple[Tuple[str, ...], ...] = (("des_latitude", "des_longitude"),)


@dataclass(frozen=True)
class EntityGroup:
    """
    One resolved entity: the primary row plus every id folded into it.

    Attributes:
        key: Normalized grouping key shared by all members.
        primary: Copy of the elected row, with optional fields filled in.
        primary_id: Id of the elected row.
        all_ids: Unique member ids, primary first, then first-seen order.
        members: Member rows in input order (unmodified).
    """

    key: str
    primary: Dict[str, Any]
    primary_id: str
    all_ids: Tuple[str, ...]
    members: Tuple[RowMapping, ...]

    @property
    def size(self) -> int:
        return len(self.members)

    @property
    def is_merged(self) -> bool:
        """True when more than one source id was folded into this entity."""
        return len(self.all_ids) > 1


def _is_present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, float) and math.isnan(value):
        return False
    return True


def _elect_primary(
    members: Sequence[RowMapping],
    display_fn: Callable[[RowMapping], Optional[str]],
    period_column: str,
) -> int:
    positions = list(range(len(members)))
    # Two stable passes: secondary key first, primary key last
    positions.sort(key=lambda i: snapshot_period(members[i], period_column), reverse=True)
    positions.sort(key=lambda i: len(display_fn(members[i]) or ""), reverse=True)
    return positions[0]


def _fill_missing_fields(
    primary: Dict[str, Any],
    members: Sequence[RowMapping],
    primary_index: int,
    fill_fields: Sequence[Sequence[str]],
) -> None:
    for fields in fill_fields:
        if all(_is_present(primary.get(field)) for field in fields):
            continue
        for index, member in enumerate(members):
            if index == primary_index:
                continue
            if all(_is_present(member.get(field)) for field in fields):
                for field in fields:
                    primary[field] = member[field]
                break


def group_entities(
    rows: Iterable[RowMapping],
    key_fn: Callable[[RowMapping], str],
    id_fn: Callable[[RowMapping], str],
    display_fn: Callable[[RowMapping], Optional[str]],
    period_column: str = DEFAULT_PERIOD_COLUMN,
    fill_fields: Sequence[Sequence[str]] = DEFAULT_FILL_FIELDS,
) -> List[EntityGroup]:
    """
    Group rows of one entity type by normalized key.

    Args:
        rows: Rows of one entity type, normally one per id (snapshot-resolved).
        key_fn: Normalized grouping key (name key or normalized address).
        id_fn: String id of a row.
        display_fn: Un-normalized display text used to rank candidates.
        period_column: Snapshot period column used as second ranking key.
        fill_fields: Field sets copied together onto a primary that lacks them.

    Returns:
        Groups in first-seen key order. Every input id appears in exactly one
        group's ``all_ids``: a row whose id was already seen joins the bucket
        of that id's first row, whatever its own key.
    """
    buckets: Dict[str, List[RowMapping]] = {}
    bucket_of_id: Dict[str, str] = {}

    for row in rows:
        row_id = id_fn(row)
        key = bucket_of_id.get(row_id)
        if key is None:
            key = key_fn(row)
            bucket_of_id[row_id] = key
        buckets.setdefault(key, []).append(row)

    groups: List[EntityGroup] = []
    for key, members in buckets.items():
        primary_index = _elect_primary(members, display_fn, period_column)
        primary = dict(members[primary_index])
        _fill_missing_fields(primary, members, primary_index, fill_fields)

        primary_id = id_fn(members[primary_index])
        all_ids: Dict[str, None] = {primary_id: None}
        for member in members:
            all_ids.setdefault(id_fn(member), None)

        groups.append(
            EntityGroup(
                key=key,
                primary=primary,
                primary_id=primary_id,
                all_ids=tuple(all_ids),
                members=tuple(members),
            )
        )

    return groups


__all__ = ["DEFAULT_FILL_FIELDS", "EntityGroup", "group_entities"]
