"""
Dimension service: resolves raw warehouse snapshots into canonical entities.

Every fetch issues one source query per entity type and recomputes the
resolution from scratch; nothing is cached between calls. The pipeline per
entity type is:

    query -> latest snapshot per key (soft-deletes dropped afterwards)
          -> [status filter | name dedup | multi-portal grouping]
          -> mapper -> sorted by name

With ``include_deleted`` the latest snapshot of a soft-deleted key is kept
and the entity is flagged ``deleted``: the dashboard bundle needs those
brands, restaurants and portals because their orders can still fall inside
the selected period.

Source failures propagate as ``SourceQueryFailed``; an empty table is an
empty list.
"""

from __future__ import annotations

import re
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Dict, List, Optional, Sequence, TypeVar

from delivery_data_hub.config import Settings, get_settings
from delivery_data_hub.domain.dimensions.id_expansion import find_entity
from delivery_data_hub.domain.dimensions.mappers import (
    map_area,
    map_brand,
    map_company,
    map_portal,
    map_restaurant,
)
from delivery_data_hub.domain.dimensions.models import (
    AllDimensions,
    Area,
    Brand,
    Company,
    IdFilter,
    Portal,
    Restaurant,
)
from delivery_data_hub.domain.dimensions.tables import (
    ADDRESS_TABLE,
    BUSINESS_AREA_TABLE,
    COMPANY_TABLE,
    PORTAL_TABLE,
    STORE_TABLE,
    DimensionTable,
)
from delivery_data_hub.domain.protocols import DimensionSource
from delivery_data_hub.infrastructure.cleansing.normalizers import (
    normalize_address,
    normalize_name_key,
)
from delivery_data_hub.infrastructure.resolution import (
    EntityGroup,
    deduplicate_by,
    deduplicate_by_name_keeping_latest,
    group_entities,
    is_soft_deleted,
    resolve_latest_snapshots,
)
from delivery_data_hub.utils.logging import bind_context, get_logger

logger = get_logger(__name__)

Named = TypeVar("Named", Company, Brand, Area, Restaurant, Portal)

_NUMERIC_ID = re.compile(r"-?[0-9]+")


def _sorted_by_name(entities: List[Named]) -> List[Named]:
    return sorted(entities, key=lambda entity: (entity.name.casefold(), entity.id))


def _filter_values(id_filter: IdFilter) -> List[Any]:
    """Filter values as the warehouse stores them: numeric ids as int."""
    values: List[Any] = []
    for value in id_filter.ids or ():
        text = value.strip()
        if _NUMERIC_ID.fullmatch(text):
            values.append(int(text))
        else:
            values.append(text)
    return values


class DimensionService:
    """
    Canonical dimension entities for the dashboard.

    Example:
        >>> service = DimensionService(SqlDimensionSource.from_settings())
        >>> brands = service.fetch_brands(company_ids=IdFilter.of(["42"]))
        >>> [b.all_ids for b in brands if b.name == "Burger Shack"]
        [('310', '311', '318')]
    """

    def __init__(self, source: DimensionSource, settings: Optional[Settings] = None):
        self.source = source
        self.settings = settings or get_settings()

    # ------------------------------------------------------------------
    # Query helpers
    # ------------------------------------------------------------------

    def _fetch_rows(
        self,
        table: DimensionTable,
        filters: Optional[Dict[str, IdFilter]] = None,
        as_of: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        in_filters = {
            column: _filter_values(id_filter)
            for column, id_filter in (filters or {}).items()
            if id_filter.is_restricted
        }
        query = table.query(
            in_filters=in_filters,
            max_period=as_of,
            limit=self.settings.query_row_limit,
        )
        log = bind_context(__name__, table=table.name, as_of=as_of)

        rows = self.source.fetch_rows(query)
        log.debug("dimension.rows_fetched", rows=len(rows), filters=sorted(in_filters))
        if len(rows) >= self.settings.query_row_limit:
            log.warning(
                "dimension.row_limit_reached", limit=self.settings.query_row_limit
            )
        return rows

    def _latest(
        self,
        table: DimensionTable,
        rows: Sequence[Dict[str, Any]],
        include_deleted: bool = False,
    ) -> List[Dict[str, Any]]:
        if include_deleted:
            # Queries return the newest snapshot first
            return deduplicate_by(rows, table.row_id)
        return list(
            resolve_latest_snapshots(
                rows,
                table.row_id,
                period_column=table.resolution_period_column,
                deleted_column=table.deleted_column,
            ).values()
        )

    def _group(
        self,
        entity: str,
        table: DimensionTable,
        rows: Sequence[Dict[str, Any]],
        key_fn: Callable[[Dict[str, Any]], str],
    ) -> List[EntityGroup]:
        groups = group_entities(
            rows,
            key_fn=key_fn,
            id_fn=table.row_id,
            display_fn=table.display_name,
            period_column=table.resolution_period_column,
        )
        merged = [group for group in groups if group.is_merged]
        if merged:
            logger.debug(
                "dimension.groups_merged",
                entity=entity,
                groups=len(groups),
                merged_groups=len(merged),
                folded_ids=sum(len(group.all_ids) for group in merged),
            )
        return groups

    @staticmethod
    def _all_deleted(table: DimensionTable, group: EntityGroup) -> bool:
        """A grouped entity is deleted only once every portal row is."""
        return all(
            is_soft_deleted(member.get(table.deleted_column)) for member in group.members
        )

    @staticmethod
    def _completed(
        entity: str, raw_rows: int, result: Sequence[Any], started: float
    ) -> None:
        logger.info(
            "dimension.fetch_completed",
            entity=entity,
            raw_rows=raw_rows,
            count=len(result),
            duration_ms=round((time.perf_counter() - started) * 1000, 1),
        )

    # ------------------------------------------------------------------
    # Fetch operations
    # ------------------------------------------------------------------

    def fetch_companies(
        self, as_of: Optional[str] = None, company_ids: Optional[IdFilter] = None
    ) -> List[Company]:
        """
        Companies whose latest snapshot is active and in a valid status.

        The status check runs on the latest snapshot only: a company that was
        "Cliente Activo" last year and is "Churned" now is not returned.
        Companies sharing a case-insensitive name collapse to the most recent.

        ``company_ids`` selects from the resolved list, so a company shadowed
        by a namesake stays hidden when selected on its own.
        """
        company_ids = IdFilter.coerce(company_ids)
        if company_ids.matches_nothing:
            return []

        started = time.perf_counter()
        rows = self._fetch_rows(COMPANY_TABLE, as_of=as_of)
        latest = self._latest(COMPANY_TABLE, rows)

        valid_statuses = set(self.settings.valid_company_statuses)
        current = [row for row in latest if row.get("des_status") in valid_statuses]
        unique = deduplicate_by_name_keeping_latest(
            current,
            COMPANY_TABLE.display_name,
            period_column=COMPANY_TABLE.resolution_period_column,
        )

        companies = _sorted_by_name(
            [
                map_company(row)
                for row in unique
                if company_ids.allows(row.get(COMPANY_TABLE.company_column))
            ]
        )
        self._completed("company", len(rows), companies, started)
        return companies

    def fetch_brands(
        self,
        company_ids: Optional[IdFilter] = None,
        as_of: Optional[str] = None,
        include_deleted: bool = False,
    ) -> List[Brand]:
        """Brands (stores) grouped across portals by case-insensitive name."""
        company_ids = IdFilter.coerce(company_ids)
        if company_ids.matches_nothing:
            return []

        started = time.perf_counter()
        rows = self._fetch_rows(
            STORE_TABLE, filters={STORE_TABLE.company_column: company_ids}, as_of=as_of
        )
        latest = self._latest(STORE_TABLE, rows, include_deleted)
        groups = self._group(
            "brand",
            STORE_TABLE,
            latest,
            key_fn=lambda row: normalize_name_key(STORE_TABLE.display_name(row)),
        )

        brands = _sorted_by_name(
            [
                map_brand(g.primary, g.all_ids, deleted=self._all_deleted(STORE_TABLE, g))
                for g in groups
            ]
        )
        self._completed("brand", len(rows), brands, started)
        return brands

    def fetch_areas(self) -> List[Area]:
        started = time.perf_counter()
        rows = self._fetch_rows(BUSINESS_AREA_TABLE)
        latest = self._latest(BUSINESS_AREA_TABLE, rows)
        unique = deduplicate_by_name_keeping_latest(
            latest,
            BUSINESS_AREA_TABLE.display_name,
            period_column=BUSINESS_AREA_TABLE.resolution_period_column,
        )

        areas = _sorted_by_name(
            [
                map_area(
                    row,
                    country=self.settings.default_country,
                    timezone=self.settings.default_timezone,
                )
                for row in unique
            ]
        )
        self._completed("area", len(rows), areas, started)
        return areas

    def fetch_restaurants(
        self,
        company_ids: Optional[IdFilter] = None,
        area_ids: Optional[IdFilter] = None,
        as_of: Optional[str] = None,
        include_deleted: bool = False,
    ) -> List[Restaurant]:
        """
        Restaurant addresses grouped across portals by normalized address.

        Brand selection is not applied here: many address rows lack a store
        id. Narrow ``company_ids`` with ``effective_company_filter`` instead.
        """
        company_ids = IdFilter.coerce(company_ids)
        area_ids = IdFilter.coerce(area_ids)
        if company_ids.matches_nothing or area_ids.matches_nothing:
            return []

        started = time.perf_counter()
        rows = self._fetch_rows(
            ADDRESS_TABLE,
            filters={
                ADDRESS_TABLE.company_column: company_ids,
                "pfk_id_business_area": area_ids,
            },
            as_of=as_of,
        )
        latest = self._latest(ADDRESS_TABLE, rows, include_deleted)
        groups = self._group(
            "restaurant",
            ADDRESS_TABLE,
            latest,
            key_fn=lambda row: normalize_address(row.get("des_address")),
        )

        restaurants = _sorted_by_name(
            [
                map_restaurant(
                    g.primary, g.all_ids, deleted=self._all_deleted(ADDRESS_TABLE, g)
                )
                for g in groups
            ]
        )
        self._completed("restaurant", len(rows), restaurants, started)
        return restaurants

    def fetch_portals(self, include_deleted: bool = False) -> List[Portal]:
        started = time.perf_counter()
        rows = self._fetch_rows(PORTAL_TABLE)
        latest = self._latest(PORTAL_TABLE, rows, include_deleted)

        portals = _sorted_by_name([map_portal(row) for row in latest])
        self._completed("portal", len(rows), portals, started)
        return portals

    # ------------------------------------------------------------------
    # Lookups by any folded id
    # ------------------------------------------------------------------

    def fetch_company_by_id(
        self, company_id: Any, as_of: Optional[str] = None
    ) -> Optional[Company]:
        return find_entity(self.fetch_companies(as_of=as_of), company_id)

    def fetch_brand_by_id(
        self, brand_id: Any, as_of: Optional[str] = None
    ) -> Optional[Brand]:
        return find_entity(self.fetch_brands(as_of=as_of), brand_id)

    def fetch_area_by_id(self, area_id: Any) -> Optional[Area]:
        return find_entity(self.fetch_areas(), area_id)

    def fetch_restaurant_by_id(
        self, restaurant_id: Any, as_of: Optional[str] = None
    ) -> Optional[Restaurant]:
        return find_entity(self.fetch_restaurants(as_of=as_of), restaurant_id)

    # ------------------------------------------------------------------
    # Bundle
    # ------------------------------------------------------------------

    def fetch_all_dimensions(
        self, company_ids: Optional[IdFilter] = None, as_of: Optional[str] = None
    ) -> AllDimensions:
        """
        Dimensions of the selected companies, resolved concurrently.

        Companies are the active ones among ``company_ids``. Brands,
        restaurants and portals keep soft-deleted entities (flagged
        ``deleted``) so facts recorded before the deletion still have a
        parent. Every submitted fetch runs to completion; then the first
        failure in companies, brands, restaurants, portals order is re-raised.
        """
        company_ids = IdFilter.coerce(company_ids)
        started = time.perf_counter()

        with ThreadPoolExecutor(max_workers=self.settings.MAX_WORKERS) as executor:
            companies = executor.submit(self.fetch_companies, as_of, company_ids)
            brands = executor.submit(self.fetch_brands, company_ids, as_of, True)
            restaurants = executor.submit(
                self.fetch_restaurants, company_ids, None, as_of, True
            )
            portals = executor.submit(self.fetch_portals, True)

        bundle = AllDimensions(
            companies=companies.result(),
            brands=brands.result(),
            restaurants=restaurants.result(),
            portals=portals.result(),
        )
        logger.info(
            "dimension.bundle_completed",
            companies=len(bundle.companies),
            brands=len(bundle.brands),
            restaurants=len(bundle.restaurants),
            portals=len(bundle.portals),
            deleted=sum(
                entity.deleted
                for entity in [*bundle.brands, *bundle.restaurants, *bundle.portals]
            ),
            duration_ms=round((time.perf_counter() - started) * 1000, 1),
        )
        return bundle


__all__ = ["DimensionService"]
