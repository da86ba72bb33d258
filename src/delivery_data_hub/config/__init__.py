"""Configuration management for DeliveryDataHub.

Usage:
    >>> from delivery_data_hub.config import get_settings
    >>> settings = get_settings()
    >>> print(settings.valid_company_statuses)
"""

from delivery_data_hub.config.settings import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
]
