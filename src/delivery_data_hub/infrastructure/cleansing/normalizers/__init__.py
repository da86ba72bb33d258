"""Grouping-key normalizers for dimension entities.

Usage:
    from delivery_data_hub.infrastructure.cleansing.normalizers import (
        normalize_address,
        normalize_name_key,
    )
"""

from delivery_data_hub.infrastructure.cleansing.normalizers.address import (
    ADDRESS_RULES,
    AddressRule,
    build_address_rules,
    extract_street_number,
    normalize_address,
    trace_address,
)
from delivery_data_hub.infrastructure.cleansing.normalizers.name_key import (
    normalize_name_key,
)

__all__ = [
    "ADDRESS_RULES",
    "AddressRule",
    "build_address_rules",
    "extract_street_number",
    "normalize_address",
    "normalize_name_key",
    "trace_address",
]
