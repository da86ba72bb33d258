"""Street address normalization for multi-portal restaurant grouping.

The same physical restaurant is registered once per delivery portal, and every
portal spells the address differently ("C/ de Sancho de Ávila, 175" versus
"Calle de Sancho de Ávila 175"). ``normalize_address`` reduces an address to
street name + number so those spellings share one grouping key.

The pipeline is the ordered ``ADDRESS_RULES`` tuple. Each rule is a named,
pure ``str -> str`` function and can be exercised on its own; the street
number is captured before the rules run and restored afterwards if a rule
dropped it (the number often sits after the first comma).

Usage:
    from delivery_data_hub.infrastructure.cleansing.normalizers import (
        normalize_address,
    )

    normalize_address("Calle de Mozart 5, 28008 Madrid, Spain")
    # Returns: "mozart 5"
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from delivery_data_hub.infrastructure.cleansing.lookups import (
    ADDRESS_LOOKUPS,
    AddressLookups,
)
from delivery_data_hub.infrastructure.cleansing.text_utils import (
    collapse_whitespace,
    strip_diacritics,
)


@dataclass(frozen=True)
class AddressRule:
    """One named step of the address normalization pipeline."""

    name: str
    apply: Callable[[str], str]

    def __call__(self, text: str) -> str:
        return self.apply(text)


_POSTAL_CODE_RE = re.compile(r"\s+\d{5}(?!\d).*$", re.DOTALL)
_PUNCTUATION_RE = re.compile(r"[^\w\s]|_")


def _alternation(values: Tuple[str, ...]) -> str:
    return "|".join(re.escape(value) for value in values)


def _street_type_alternation(values: Tuple[str, ...]) -> str:
    # "c/" and "av." are literal; "calle" must not eat the start of "callejon"
    parts = []
    for value in values:
        escaped = re.escape(value)
        if value[-1].isalnum():
            escaped += r"\b\.?"
        parts.append(escaped)
    return "|".join(parts)


def _street_number_pattern(lookups: AddressLookups) -> re.Pattern[str]:
    return re.compile(
        r"(?<!\d)(\d{1,4})(?!\d)"
        rf"(?:\s*({_alternation(lookups.unit_qualifiers)})\b\.?\s*(\d{{1,3}})(?!\d))?",
        re.IGNORECASE,
    )


_STREET_NUMBER_RE = _street_number_pattern(ADDRESS_LOOKUPS)


def extract_street_number(address: Optional[str]) -> str:
    """Return the normalized street-number token, or "" when there is none.

    The token is the first 1-4 digit number (postal codes are five digits and
    never match), optionally with a unit qualifier and secondary number.

    Examples:
        >>> extract_street_number("C/ de Sancho de Ávila, 175")
        '175'
        >>> extract_street_number("Calle Mayor 5 Local 2, Madrid")
        '5 local 2'
        >>> extract_street_number("Plaza Mayor, 28012 Madrid")
        ''
    """
    if not isinstance(address, str):
        return ""

    match = _STREET_NUMBER_RE.search(strip_diacritics(address))
    if not match:
        return ""

    number, qualifier, secondary = match.groups()
    if qualifier and secondary:
        return f"{number} {qualifier.lower()} {secondary}"
    return number


def restore_street_number(text: str, token: str) -> str:
    """Append ``token`` unless it already appears as whole words in ``text``."""
    if not token:
        return text
    if re.search(rf"(?<!\S){re.escape(token)}(?!\S)", text):
        return text
    return f"{text} {token}".strip()


def truncate_at_comma(text: str) -> str:
    return text.split(",", 1)[0]


def strip_postal_code(text: str) -> str:
    return _POSTAL_CODE_RE.sub("", text).strip()


def build_address_rules(lookups: AddressLookups) -> Tuple[AddressRule, ...]:
    """Build the ordered rule list for a given set of lookup lists."""
    trailing_locality_re = re.compile(
        rf"(?<=\d)(?:\s+(?:{_alternation(lookups.localities)}))+[\s.]*$",
        re.IGNORECASE,
    )
    street_type_re = re.compile(
        rf"^\s*(?:{_street_type_alternation(lookups.street_types)})\s*"
    )
    preposition_re = re.compile(
        rf"\b(?:{_alternation(lookups.prepositions)})\b"
        rf"|\b(?:{_alternation(lookups.elided_prepositions)})"
    )

    return (
        AddressRule("truncate_at_comma", truncate_at_comma),
        AddressRule("strip_postal_code", strip_postal_code),
        AddressRule(
            "strip_trailing_locality",
            lambda text: trailing_locality_re.sub("", text),
        ),
        AddressRule("lowercase", str.lower),
        AddressRule("strip_diacritics", strip_diacritics),
        AddressRule("strip_street_type", lambda text: street_type_re.sub("", text, count=1)),
        AddressRule("strip_prepositions", lambda text: preposition_re.sub(" ", text)),
        AddressRule(
            "collapse_punctuation",
            lambda text: collapse_whitespace(_PUNCTUATION_RE.sub(" ", text)),
        ),
    )


ADDRESS_RULES: Tuple[AddressRule, ...] = build_address_rules(ADDRESS_LOOKUPS)


def trace_address(
    address: Optional[str], rules: Tuple[AddressRule, ...] = ADDRESS_RULES
) -> List[Tuple[str, str]]:
    """Return ``(rule name, text after rule)`` for every step, for auditing."""
    if not isinstance(address, str):
        return []

    token = extract_street_number(address)
    steps: List[Tuple[str, str]] = [("input", address)]
    text = address
    for rule in rules:
        text = rule(text)
        steps.append((rule.name, text))
    steps.append(("restore_street_number", restore_street_number(text, token)))
    return steps


def normalize_address(
    address: Optional[str], rules: Tuple[AddressRule, ...] = ADDRESS_RULES
) -> str:
    """Normalize a free-text street address into a grouping key.

    Total function: ``None``, non-strings and empty input return "".

    Examples:
        >>> normalize_address("C/ de Sancho de Ávila, 175")
        'sancho avila 175'
        >>> normalize_address("Calle de Sancho de Ávila 175")
        'sancho avila 175'
        >>> normalize_address("Calle de Mozart 5, 28008 Madrid, Spain")
        'mozart 5'
    """
    if not isinstance(address, str):
        return ""

    token = extract_street_number(address)
    text = address
    for rule in rules:
        text = rule(text)
    return restore_street_number(text, token)


__all__ = [
    "ADDRESS_RULES",
    "AddressRule",
    "build_address_rules",
    "extract_street_number",
    "normalize_address",
    "restore_street_number",
    "strip_postal_code",
    "trace_address",
    "truncate_at_comma",
]
