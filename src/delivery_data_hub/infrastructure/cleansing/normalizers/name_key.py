"""Display-name grouping keys for companies, brands and areas.

"Bo&Mie" and "BO&MIE" are the same brand registered twice; the key only
removes differences of case and spacing and keeps everything else, so
"Café Luz" and "Cafe Luz" stay distinct.
"""

from __future__ import annotations

from typing import Any

from delivery_data_hub.infrastructure.cleansing.text_utils import collapse_whitespace


def normalize_name_key(name: Any) -> str:
    """Case/locale-insensitive key for a display name.

    Examples:
        >>> normalize_name_key("ACME")
        'acme'
        >>> normalize_name_key("  Bo&Mie   Gràcia ")
        'bo&mie gràcia'
        >>> normalize_name_key(None)
        ''
    """
    if name is None:
        return ""
    return collapse_whitespace(str(name)).casefold()


__all__ = ["normalize_name_key"]
