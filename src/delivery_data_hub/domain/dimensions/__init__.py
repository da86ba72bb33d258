"""Dimension domain: companies, brands, areas, restaurants and portals."""

from .id_expansion import (
    attach_entity_ids,
    build_id_lookup,
    effective_company_filter,
    expand_ids,
    find_entity,
)
from .models import (
    AllDimensions,
    Area,
    Brand,
    Company,
    Coordinates,
    IdFilter,
    Link,
    Portal,
    Restaurant,
)
from .service import DimensionService

__all__ = [
    "AllDimensions",
    "Area",
    "Brand",
    "Company",
    "Coordinates",
    "DimensionService",
    "IdFilter",
    "Link",
    "Portal",
    "Restaurant",
    "attach_entity_ids",
    "build_id_lookup",
    "effective_company_filter",
    "expand_ids",
    "find_entity",
]
