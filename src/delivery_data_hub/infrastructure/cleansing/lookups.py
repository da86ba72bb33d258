"""
Static lookup lists for address normalization.

The lists are read once from ``settings/address_lookups.yml`` when this module
is imported and exposed as the immutable ``ADDRESS_LOOKUPS`` instance. Callers
never mutate them; tests that need different data build their own
``AddressLookups`` with ``load_address_lookups(path)``.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, Tuple

import yaml

from delivery_data_hub.infrastructure.cleansing.text_utils import strip_diacritics

DEFAULT_LOOKUPS_PATH = Path(__file__).resolve().parent / "settings" / "address_lookups.yml"

_REQUIRED_KEYS = (
    "street_types",
    "prepositions",
    "elided_prepositions",
    "unit_qualifiers",
    "localities",
)


class AddressLookupsError(ValueError):
    """Raised when the address lookup file is missing keys or malformed."""


@dataclass(frozen=True)
class AddressLookups:
    """Immutable lookup lists used by the address rules.

    Every tuple is sorted longest first so alternations built from them
    prefer the most specific entry ("avda." before "av.").
    """

    street_types: Tuple[str, ...]
    prepositions: Tuple[str, ...]
    elided_prepositions: Tuple[str, ...]
    unit_qualifiers: Tuple[str, ...]
    localities: Tuple[str, ...]


def _longest_first(values: Iterable[str]) -> Tuple[str, ...]:
    unique = {value for value in values if value}
    return tuple(sorted(unique, key=lambda value: (-len(value), value)))


def _string_list(raw: Dict[str, Any], key: str, path: Path) -> list[str]:
    values = raw.get(key)
    if not isinstance(values, list) or not all(isinstance(v, str) for v in values):
        raise AddressLookupsError(f"'{key}' in {path} must be a list of strings")
    return [value.strip() for value in values]


def load_address_lookups(path: Path = DEFAULT_LOOKUPS_PATH) -> AddressLookups:
    """Load and validate the lookup YAML file.

    Street types, prepositions and qualifiers are lower-cased and
    accent-stripped; localities keep their written form and gain an
    accent-free variant.

    Raises:
        AddressLookupsError: If the file is unreadable or a key is missing.
    """
    try:
        with path.open("r", encoding="utf-8") as handle:
            raw = yaml.safe_load(handle) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise AddressLookupsError(f"Cannot read address lookups {path}: {exc}") from exc

    if not isinstance(raw, dict):
        raise AddressLookupsError(f"Address lookups {path} must be a mapping")

    missing = [key for key in _REQUIRED_KEYS if key not in raw]
    if missing:
        raise AddressLookupsError(f"Address lookups {path} missing keys: {missing}")

    def folded(key: str) -> Tuple[str, ...]:
        return _longest_first(
            strip_diacritics(value).lower() for value in _string_list(raw, key, path)
        )

    localities = _string_list(raw, "localities", path)
    return AddressLookups(
        street_types=folded("street_types"),
        prepositions=folded("prepositions"),
        elided_prepositions=folded("elided_prepositions"),
        unit_qualifiers=folded("unit_qualifiers"),
        localities=_longest_first(
            [*localities, *(strip_diacritics(value) for value in localities)]
        ),
    )


ADDRESS_LOOKUPS: AddressLookups = load_address_lookups()
