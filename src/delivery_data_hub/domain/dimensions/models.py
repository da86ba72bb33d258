"""
Pydantic v2 data models for the dimension domain.

This module defines the resolved business entities returned to dashboard
callers (company, brand, area, restaurant, portal) and the small value types
used at their seams:

1. ``Link``: an optional reference to a parent entity, never a sentinel id
2. ``Coordinates``: a latitude/longitude pair, absent as a whole or present
3. ``IdFilter``: "no restriction" versus "restrict to these ids", where an
   empty restriction matches nothing

Every entity carries ``all_ids``: the ids of every source row folded into it
(one per delivery portal for brands and restaurants). Facts keyed by any of
those ids belong to the entity.
"""

from __future__ import annotations

from typing import Any, Iterable, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


def _id_text(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def _is_unset(raw: Any) -> bool:
    if raw is None:
        return True
    if isinstance(raw, float) and raw != raw:
        return True
    if isinstance(raw, str) and raw.strip() in ("", "0"):
        return True
    if isinstance(raw, (int, float)) and not isinstance(raw, bool) and raw == 0:
        return True
    return False


class Link(BaseModel):
    """
    Reference to a parent entity by its source id.

    Use the named constructors: ``Link.to(raw)`` for a foreign-key value read
    from a row and ``Link.unlinked()`` for an explicit absence. A null, empty,
    or zero foreign key becomes an unlinked reference.
    """

    model_config = ConfigDict(frozen=True)

    id: Optional[str] = Field(None, description="Source id of the parent entity")

    @classmethod
    def to(cls, raw: Any) -> "Link":
        if _is_unset(raw):
            return cls.unlinked()
        return cls(id=_id_text(raw))

    @classmethod
    def unlinked(cls) -> "Link":
        return cls(id=None)

    @property
    def is_linked(self) -> bool:
        return self.id is not None


class Coordinates(BaseModel):
    """Geographic position of a restaurant address."""

    model_config = ConfigDict(frozen=True)

    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)

    @classmethod
    def from_values(cls, latitude: Any, longitude: Any) -> Optional["Coordinates"]:
        """Build coordinates when both values are numbers in range, else None."""
        lat = _as_float(latitude)
        lng = _as_float(longitude)
        if lat is None or lng is None:
            return None
        if not (-90 <= lat <= 90 and -180 <= lng <= 180):
            return None
        return cls(latitude=lat, longitude=lng)


def _as_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if number != number or number in (float("inf"), float("-inf")):
        return None
    return number


class IdFilter(BaseModel):
    """
    Id restriction passed to the fetch operations.

    ``IdFilter.any()`` applies no restriction. ``IdFilter.of(ids)`` restricts
    to the given ids; ``IdFilter.of([])`` matches nothing, so the fetch
    returns an empty list without querying the source.
    """

    model_config = ConfigDict(frozen=True)

    ids: Optional[Tuple[str, ...]] = None

    @classmethod
    def any(cls) -> "IdFilter":
        return cls(ids=None)

    @classmethod
    def of(cls, ids: Iterable[Any]) -> "IdFilter":
        unique = dict.fromkeys(_id_text(value) for value in ids if value is not None)
        return cls(ids=tuple(unique))

    @classmethod
    def coerce(cls, value: Any) -> "IdFilter":
        """Accept an IdFilter, None (no restriction) or an iterable of ids."""
        if value is None:
            return cls.any()
        if isinstance(value, IdFilter):
            return value
        if isinstance(value, (str, int)):
            return cls.of([value])
        return cls.of(value)

    @property
    def is_restricted(self) -> bool:
        return self.ids is not None

    @property
    def matches_nothing(self) -> bool:
        return self.ids is not None and len(self.ids) == 0

    def allows(self, any_id: Any) -> bool:
        if self.ids is None:
            return True
        return _id_text(any_id) in self.ids

    def intersect(self, other: "IdFilter") -> "IdFilter":
        if self.ids is None:
            return other
        if other.ids is None:
            return self
        allowed = set(other.ids)
        return IdFilter(ids=tuple(value for value in self.ids if value in allowed))


class DimensionEntity(BaseModel):
    """Fields shared by every resolved entity."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=False)

    id: str = Field(..., description="Primary source id of the entity")
    all_ids: Tuple[str, ...] = Field(
        default=(), description="Every source id folded into the entity"
    )
    external_id: Optional[int] = Field(
        None, description="Integer form of the primary id, None when not numeric"
    )
    name: str = ""
    slug: str = ""

    @field_validator("all_ids", mode="before")
    @classmethod
    def dedupe_ids(cls, v: Any) -> Tuple[str, ...]:
        if v is None:
            return ()
        return tuple(dict.fromkeys(_id_text(item) for item in v))

    @model_validator(mode="before")
    @classmethod
    def include_primary_id(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("id") is not None:
            primary = str(data["id"])
            others = [_id_text(item) for item in data.get("all_ids") or ()]
            data = {
                **data,
                "all_ids": [primary] + [item for item in others if item != primary],
            }
        return data

    def matches_id(self, any_id: Any) -> bool:
        """True when ``any_id`` is one of the folded source ids."""
        if any_id is None:
            return False
        return _id_text(any_id) in self.all_ids


class Company(DimensionEntity):
    status: str = ""
    key_account_manager: Optional[str] = None
    contract_signed_at: Optional[str] = None


class Brand(DimensionEntity):
    company: Link = Field(default_factory=Link.unlinked)
    deleted: bool = Field(
        False, description="Soft-deleted on every portal; kept for historical facts"
    )


class Area(DimensionEntity):
    country: str = "ES"
    timezone: str = "Europe/Madrid"


class Restaurant(DimensionEntity):
    address: str = ""
    company: Link = Field(default_factory=Link.unlinked)
    brand: Link = Field(default_factory=Link.unlinked)
    area: Link = Field(default_factory=Link.unlinked)
    coordinates: Optional[Coordinates] = None
    deleted: bool = False


class Portal(BaseModel):
    """Delivery channel (one per portal id)."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str = ""
    deleted: bool = False

    def matches_id(self, any_id: Any) -> bool:
        return any_id is not None and _id_text(any_id) == self.id


class AllDimensions(BaseModel):
    """Dimension bundle loaded together for a dashboard view."""

    model_config = ConfigDict(frozen=True)

    companies: List[Company] = Field(default_factory=list)
    brands: List[Brand] = Field(default_factory=list)
    restaurants: List[Restaurant] = Field(default_factory=list)
    portals: List[Portal] = Field(default_factory=list)


__all__ = [
    "AllDimensions",
    "Area",
    "Brand",
    "Company",
    "Coordinates",
    "DimensionEntity",
    "IdFilter",
    "Link",
    "Portal",
    "Restaurant",
]
