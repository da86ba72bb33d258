"""
Row-to-model mappers for the dimension domain.

Pure projections of resolved warehouse rows onto the pydantic models in
``models.py``; no I/O. Field mappings:

- company: pk_id_company -> id/external_id, des_company_name -> name/slug,
  des_status -> status, des_key_account_manager -> key_account_manager,
  td_firma_contrato -> contract_signed_at
- brand: pk_id_store -> id/external_id, des_store -> name/slug,
  pfk_id_company -> company, flg_deleted -> deleted
- area: pk_id_business_area -> id/external_id, des_business_area -> name
- restaurant: pk_id_address -> id/external_id, des_address -> name/address,
  pfk_id_company/pfk_id_store/pfk_id_business_area -> company/brand/area,
  des_latitude/des_longitude -> coordinates, flg_deleted -> deleted
- portal: pk_id_portal -> id, des_portal -> name, flg_deleted -> deleted
"""

import numbers
import re
from typing import Any, Dict, Mapping, Optional, Sequence

from delivery_data_hub.domain.dimensions.models import (
    Area,
    Brand,
    Company,
    Coordinates,
    Link,
    Portal,
    Restaurant,
)
from delivery_data_hub.domain.dimensions.tables import as_source_id
from delivery_data_hub.infrastructure.resolution import is_soft_deleted

_WHITESPACE_RUN = re.compile(r"\s+")
_INTEGER_TEXT = re.compile(r"^[+-]?\d+$")


def generate_slug(name: Optional[str]) -> str:
    """
    URL slug for a display name: lower-cased, whitespace runs become "-".

    Examples:
        >>> generate_slug("Burger  King Madrid")
        'burger-king-madrid'
        >>> generate_slug(None)
        ''
    """
    if not name:
        return ""
    return _WHITESPACE_RUN.sub("-", str(name).lower())


def external_id(value: Any) -> Optional[int]:
    """Integer form of a raw key, or None when it is not numeric."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, numbers.Integral):
        return int(value)
    if isinstance(value, numbers.Real):
        return int(value) if float(value).is_integer() else None
    text = str(value).strip()
    if _INTEGER_TEXT.match(text):
        return int(text)
    return None


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def _optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if hasattr(value, "isoformat"):
        return value.isoformat()
    text = str(value).strip()
    return text or None


def _deleted(row: Mapping[str, Any], deleted: Optional[bool]) -> bool:
    if deleted is not None:
        return deleted
    return is_soft_deleted(row.get("flg_deleted"))


def _identity(
    row: Mapping[str, Any], key_column: str, all_ids: Optional[Sequence[str]]
) -> Dict[str, Any]:
    raw = row.get(key_column)
    entity_id = as_source_id(raw)
    return {
        "id": entity_id,
        "all_ids": tuple(all_ids) if all_ids else (entity_id,),
        "external_id": external_id(raw),
    }


def map_company(
    row: Mapping[str, Any], all_ids: Optional[Sequence[str]] = None
) -> Company:
    name = _text(row.get("des_company_name"))
    return Company(
        **_identity(row, "pk_id_company", all_ids),
        name=name,
        slug=generate_slug(name),
        status=_text(row.get("des_status")),
        key_account_manager=_optional_text(row.get("des_key_account_manager")),
        contract_signed_at=_optional_text(row.get("td_firma_contrato")),
    )


def map_brand(
    row: Mapping[str, Any],
    all_ids: Optional[Sequence[str]] = None,
    deleted: Optional[bool] = None,
) -> Brand:
    """Map a store row; ``deleted`` overrides the row flag for a merged group."""
    name = _text(row.get("des_store"))
    return Brand(
        **_identity(row, "pk_id_store", all_ids),
        name=name,
        slug=generate_slug(name),
        company=Link.to(row.get("pfk_id_company")),
        deleted=_deleted(row, deleted),
    )


def map_area(
    row: Mapping[str, Any],
    all_ids: Optional[Sequence[str]] = None,
    country: str = "ES",
    timezone: str = "Europe/Madrid",
) -> Area:
    name = _text(row.get("des_business_area"))
    return Area(
        **_identity(row, "pk_id_business_area", all_ids),
        name=name,
        slug=generate_slug(name),
        country=country,
        timezone=timezone,
    )


def map_restaurant(
    row: Mapping[str, Any],
    all_ids: Optional[Sequence[str]] = None,
    deleted: Optional[bool] = None,
) -> Restaurant:
    """Map an address row; a restaurant is named after its street address."""
    address = _text(row.get("des_address"))
    return Restaurant(
        **_identity(row, "pk_id_address", all_ids),
        name=address,
        slug=generate_slug(address),
        address=address,
        company=Link.to(row.get("pfk_id_company")),
        brand=Link.to(row.get("pfk_id_store")),
        area=Link.to(row.get("pfk_id_business_area")),
        coordinates=Coordinates.from_values(
            row.get("des_latitude"), row.get("des_longitude")
        ),
        deleted=_deleted(row, deleted),
    )


def map_portal(row: Mapping[str, Any]) -> Portal:
    return Portal(
        id=as_source_id(row.get("pk_id_portal")),
        name=_text(row.get("des_portal")),
        deleted=_deleted(row, None),
    )


__all__ = [
    "external_id",
    "generate_slug",
    "map_area",
    "map_brand",
    "map_company",
    "map_portal",
    "map_restaurant",
]
