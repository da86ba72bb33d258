"""
Multi-portal id expansion and fact joins.

Brands and restaurants keep one id per delivery portal in ``all_ids``.
Anything downstream that filters or joins fact rows (orders, reviews, ads)
must use every one of those ids, not only the primary id, or the portals
whose id was not elected primary silently drop out of the numbers.
"""

from typing import Any, Dict, Iterable, List, Optional, Sequence, TypeVar

import pandas as pd

from delivery_data_hub.domain.dimensions.models import Brand, DimensionEntity, IdFilter
from delivery_data_hub.domain.dimensions.tables import as_source_id

Entity = TypeVar("Entity", bound=DimensionEntity)

LOOKUP_COLUMNS = ["source_id", "entity_id", "entity_name"]


def find_entity(entities: Iterable[Entity], any_id: Any) -> Optional[Entity]:
    """Return the entity whose ``all_ids`` contains ``any_id``, if any."""
    if any_id is None:
        return None
    for entity in entities:
        if entity.matches_id(any_id):
            return entity
    return None


def expand_ids(
    selected_ids: Iterable[Any], entities: Sequence[DimensionEntity]
) -> List[str]:
    """
    Expand selected ids to every id folded into the same entities.

    Unknown ids are kept as given. The result is deduplicated, in first-seen
    order; an empty selection expands to an empty list.

    Example:
        >>> brand = Brand(id="10", all_ids=("10", "11"), name="Acme")
        >>> expand_ids(["11", "99"], [brand])
        ['10', '11', '99']
    """
    expanded: Dict[str, None] = {}
    for selected in selected_ids:
        if selected is None:
            continue
        entity = find_entity(entities, selected)
        if entity is None:
            expanded.setdefault(as_source_id(selected), None)
            continue
        for entity_id in entity.all_ids:
            expanded.setdefault(entity_id, None)
    return list(expanded)


def effective_company_filter(
    brand_ids: IdFilter, brands: Sequence[Brand], company_ids: IdFilter
) -> IdFilter:
    """
    Company filter for a restaurant fetch narrowed by a brand selection.

    Restaurant rows do not reliably carry their store id, so a brand selection
    is applied through the companies owning the selected brands. Without a
    brand selection the company filter is returned unchanged; with one, the
    result is restricted (possibly to nothing) and never unrestricted.
    """
    if not brand_ids.is_restricted:
        return company_ids

    wanted = set(expand_ids(brand_ids.ids or (), brands))
    owners = [
        brand.company.id
        for brand in brands
        if brand.company.is_linked and wanted.intersection(brand.all_ids)
    ]
    return IdFilter.of(owners).intersect(company_ids)


def build_id_lookup(entities: Iterable[DimensionEntity]) -> pd.DataFrame:
    """One row per folded source id: ``source_id``, ``entity_id``, ``entity_name``."""
    records = [
        {"source_id": source_id, "entity_id": entity.id, "entity_name": entity.name}
        for entity in entities
        for source_id in entity.all_ids
    ]
    lookup = pd.DataFrame(records, columns=LOOKUP_COLUMNS)
    return lookup.drop_duplicates(subset="source_id", keep="first").reset_index(drop=True)


def attach_entity_ids(
    facts: pd.DataFrame,
    entities: Iterable[DimensionEntity],
    fact_key_column: str,
    entity_id_column: str = "entity_id",
    entity_name_column: str = "entity_name",
) -> pd.DataFrame:
    """
    Left-join fact rows keyed by portal ids onto their canonical entity.

    Args:
        facts: Fact rows (orders, reviews...) with a portal-specific key column.
        entities: Resolved brands or restaurants.
        fact_key_column: Column of ``facts`` holding the portal-specific id.
        entity_id_column: Name of the added canonical id column.
        entity_name_column: Name of the added entity name column.

    Returns:
        A new DataFrame with the input rows in input order plus the two
        entity columns; rows with unknown ids carry missing values there.
    """
    if fact_key_column not in facts.columns:
        raise KeyError(f"Fact key column '{fact_key_column}' not found")

    lookup = build_id_lookup(entities).rename(
        columns={
            "source_id": "__source_id",
            "entity_id": entity_id_column,
            "entity_name": entity_name_column,
        }
    )
    keyed = facts.assign(__fact_key=facts[fact_key_column].map(as_source_id))
    joined = keyed.merge(lookup, how="left", left_on="__fact_key", right_on="__source_id")
    joined = joined.drop(columns=["__fact_key", "__source_id"])
    joined.index = facts.index
    return joined


__all__ = [
    "attach_entity_ids",
    "build_id_lookup",
    "effective_company_filter",
    "expand_ids",
    "find_entity",
]
