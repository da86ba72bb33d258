"""Pytest configuration shared by all DeliveryDataHub test suites.

.ddh_env (if present) is loaded FIRST with override=True so local settings for
integration runs come from that file only. Unit tests never need it: every
setting they touch is set explicitly through fixtures below.
"""

from __future__ import annotations

# ============================================================================
# Load .ddh_env before importing anything that reads settings
# ============================================================================
import os
from pathlib import Path

from dotenv import load_dotenv

_DDH_ENV_FILE = Path(__file__).parent.parent / ".ddh_env"
if _DDH_ENV_FILE.exists():
    load_dotenv(_DDH_ENV_FILE, override=True)

# Never pick up a developer's .env during tests
os.environ.setdefault(
    "DDH_ENV_FILE", str(Path(__file__).parent / "fixtures" / "test.env")
)

from typing import Any, Callable, Dict, Generator, Iterable, Mapping

import pytest

from delivery_data_hub.config import Settings, get_settings
from delivery_data_hub.io.connectors import InMemoryDimensionSource

_SETTINGS_ENV_VARS = (
    "ENVIRONMENT",
    "LOG_LEVEL",
    "MAX_WORKERS",
    "DDH_DATABASE__URI",
    "DDH_DATABASE_URI",
    "DDH_SOURCE_SCHEMA",
    "DDH_QUERY_ROW_LIMIT",
    "DDH_VALID_COMPANY_STATUSES",
    "DDH_DEFAULT_COUNTRY",
    "DDH_DEFAULT_TIMEZONE",
)


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Start every test from default settings and an empty settings cache."""
    for name in _SETTINGS_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def make_settings() -> Callable[..., Settings]:
    """Factory for Settings with field overrides (environment ignored)."""

    def _make(**overrides: Any) -> Settings:
        values: Dict[str, Any] = {
            "DDH_DATABASE_URI": "sqlite://",
            "source_schema": "",
            "MAX_WORKERS": 4,
        }
        values.update(overrides)
        return Settings(**values)

    return _make


@pytest.fixture
def settings(make_settings: Callable[..., Settings]) -> Settings:
    return make_settings()


@pytest.fixture
def make_source() -> Callable[..., InMemoryDimensionSource]:
    """Factory for an in-memory source: ``make_source(table=rows, ...)``."""

    def _make(**tables: Iterable[Mapping[str, Any]]) -> InMemoryDimensionSource:
        return InMemoryDimensionSource(
            {name: list(rows) for name, rows in tables.items()}
        )

    return _make


def company_row(
    company_id: Any,
    name: str,
    month: str,
    status: str = "Cliente Activo",
    deleted: Any = 0,
    **extra: Any,
) -> Dict[str, Any]:
    row = {
        "pk_id_company": company_id,
        "des_company_name": name,
        "des_status": status,
        "des_key_account_manager": None,
        "td_firma_contrato": None,
        "flg_deleted": deleted,
        "pk_ts_month": month,
    }
    row.update(extra)
    return row


def store_row(
    store_id: Any, name: str, company_id: Any, month: str, deleted: Any = 0
) -> Dict[str, Any]:
    return {
        "pk_id_store": store_id,
        "des_store": name,
        "pfk_id_company": company_id,
        "flg_deleted": deleted,
        "pk_ts_month": month,
    }


def address_row(
    address_id: Any,
    address: str,
    company_id: Any,
    month: str,
    deleted: Any = 0,
    **extra: Any,
) -> Dict[str, Any]:
    row = {
        "pk_id_address": address_id,
        "des_address": address,
        "pfk_id_company": company_id,
        "pfk_id_store": None,
        "pfk_id_business_area": None,
        "des_latitude": None,
        "des_longitude": None,
        "flg_deleted": deleted,
        "pk_ts_month": month,
    }
    row.update(extra)
    return row


@pytest.fixture
def rows() -> Dict[str, Callable[..., Dict[str, Any]]]:
    """Row builders for the crp_portal__* tables."""
    return {"company": company_row, "store": store_row, "address": address_row}


def portal_row(
    portal_id: str, name: str, month: str, deleted: Any = 0
) -> Dict[str, Any]:
    return {
        "pk_id_portal": portal_id,
        "des_portal": name,
        "flg_deleted": deleted,
        "pk_ts_month": month,
    }


@pytest.fixture
def warehouse_tables() -> Dict[str, list]:
    """A small two-month warehouse with every resolution case in it.

    Expected resolution:
    - companies: Burger Group (42), Taco Corp (57)
    - brands: Burger Shack (310, 311, 318), Taco Loco (320)
    - areas: Barcelona (2), Madrid (1)
    - restaurants: Sancho de Ávila 175 (1002, 1001), Mozart 5 (1003)
    - portals: Glovo, Just Eat, Uber Eats

    Soft-deleted in January (kept only with include_deleted): Old Brand (330),
    Calle Mayor 1 (1004), Deliveroo.
    """
    return {
        "crp_portal__dt_company": [
            company_row(42, "Burger Group", "2025-12-01"),
            company_row(
                42, "Burger Group", "2026-01-01", des_key_account_manager="Lucía"
            ),
            company_row(57, "Taco Corp", "2026-01-01", status="Onboarding"),
            company_row(60, "Churned SL", "2025-12-01"),
            company_row(60, "Churned SL", "2026-01-01", status="Churned"),
            company_row(61, "Gone SL", "2025-12-01"),
            company_row(61, "Gone SL", "2026-01-01", deleted=1),
            company_row(62, "burger group", "2025-11-01", status="PiP"),
        ],
        "crp_portal__dt_store": [
            store_row(310, "Burger Shack", 42, "2026-01-01"),
            store_row(311, "BURGER SHACK", 42, "2025-12-01"),
            store_row(318, "burger shack", 42, "2025-11-01"),
            store_row(320, "Taco Loco", 57, "2026-01-01"),
            store_row(330, "Old Brand", 42, "2025-12-01"),
            store_row(330, "Old Brand", 42, "2026-01-01", deleted=1),
        ],
        "crp_portal__ct_business_area": [
            {"pk_id_business_area": 1, "des_business_area": "Madrid", "flg_deleted": 0},
            {"pk_id_business_area": 2, "des_business_area": "Barcelona", "flg_deleted": 0},
            {"pk_id_business_area": 3, "des_business_area": "madrid", "flg_deleted": 0},
        ],
        "crp_portal__dt_address": [
            address_row(
                1001, "C/ de Sancho de Ávila, 175", 42, "2026-01-01",
                pfk_id_store=310, pfk_id_business_area=2,
            ),
            address_row(
                1002, "Calle de Sancho de Ávila 175, 08018 Barcelona", 42, "2026-01-01",
                pfk_id_store=311, pfk_id_business_area=2,
                des_latitude=41.4036, des_longitude=2.1896,
            ),
            address_row(
                1003, "Calle Mozart 5", 57, "2026-01-01",
                pfk_id_store=320, pfk_id_business_area=1,
                des_latitude=40.4319, des_longitude=-3.7148,
            ),
            address_row(1004, "Calle Mayor 1", 42, "2025-12-01"),
            address_row(1004, "Calle Mayor 1", 42, "2026-01-01", deleted=1),
        ],
        "crp_portal__dt_portal": [
            portal_row("glovo", "Glovo", "2026-01-01"),
            portal_row("ubereats", "Uber Eats", "2026-01-01"),
            portal_row("justeat", "Just Eat", "2026-01-01"),
            portal_row("deliveroo", "Deliveroo", "2025-12-01"),
            portal_row("deliveroo", "Deliveroo", "2026-01-01", deleted=1),
        ],
    }


@pytest.fixture
def warehouse_source(
    warehouse_tables: Dict[str, list],
    make_source: Callable[..., InMemoryDimensionSource],
) -> InMemoryDimensionSource:
    return make_source(**warehouse_tables)
