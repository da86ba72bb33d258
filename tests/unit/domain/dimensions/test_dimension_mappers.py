"""Unit tests for dimension row mappers."""

from datetime import date

import pytest

from delivery_data_hub.domain.dimensions import Coordinates, Link
from delivery_data_hub.domain.dimensions.mappers import (
    external_id,
    generate_slug,
    map_area,
    map_brand,
    map_company,
    map_portal,
    map_restaurant,
)
from delivery_data_hub.domain.dimensions.tables import as_source_id


class TestGenerateSlug:
    @pytest.mark.parametrize(
        "name, expected",
        [
            ("Burger Shack", "burger-shack"),
            ("Burger  King\tMadrid", "burger-king-madrid"),
            ("Taco", "taco"),
            ("", ""),
            (None, ""),
        ],
    )
    def test_slugs(self, name: object, expected: str) -> None:
        assert generate_slug(name) == expected  # type: ignore[arg-type]

    def test_edges_are_not_stripped(self) -> None:
        assert generate_slug(" Taco ") == "-taco-"


class TestExternalId:
    @pytest.mark.parametrize(
        "value, expected",
        [
            (42, 42),
            (42.0, 42),
            ("42", 42),
            (" -7 ", -7),
            (42.5, None),
            ("glovo", None),
            ("4.2", None),
            (None, None),
            (True, None),
        ],
    )
    def test_external_id(self, value: object, expected: object) -> None:
        assert external_id(value) == expected


class TestAsSourceId:
    @pytest.mark.parametrize(
        "value, expected",
        [(12, "12"), (12.0, "12"), (" glovo ", "glovo"), (None, ""), (float("nan"), "")],
    )
    def test_as_source_id(self, value: object, expected: str) -> None:
        assert as_source_id(value) == expected


class TestMapCompany:
    def test_full_row(self) -> None:
        company = map_company(
            {
                "pk_id_company": 42,
                "des_company_name": "Burger Group",
                "des_status": "Cliente Activo",
                "des_key_account_manager": "Lucía",
                "td_firma_contrato": date(2024, 3, 1),
                "pk_ts_month": "2026-01-01",
            }
        )

        assert company.id == "42"
        assert company.all_ids == ("42",)
        assert company.external_id == 42
        assert company.name == "Burger Group"
        assert company.slug == "burger-group"
        assert company.status == "Cliente Activo"
        assert company.key_account_manager == "Lucía"
        assert company.contract_signed_at == "2024-03-01"

    def test_missing_optional_fields(self) -> None:
        company = map_company({"pk_id_company": 7, "des_company_name": None})

        assert company.name == ""
        assert company.slug == ""
        assert company.status == ""
        assert company.key_account_manager is None
        assert company.contract_signed_at is None


class TestMapBrand:
    def test_all_ids_start_with_primary(self) -> None:
        brand = map_brand(
            {"pk_id_store": 311, "des_store": "Burger Shack", "pfk_id_company": 42},
            all_ids=["310", "311"],
        )

        assert brand.id == "311"
        assert brand.all_ids == ("311", "310")
        assert brand.company == Link.to("42")

    @pytest.mark.parametrize("company_id", [None, 0, "0", ""])
    def test_missing_company_is_unlinked(self, company_id: object) -> None:
        brand = map_brand(
            {"pk_id_store": 1, "des_store": "Solo", "pfk_id_company": company_id}
        )
        assert brand.company == Link.unlinked()

    def test_float_ids_from_nullable_columns(self) -> None:
        brand = map_brand({"pk_id_store": 310.0, "des_store": "B", "pfk_id_company": 42.0})

        assert brand.id == "310"
        assert brand.external_id == 310
        assert brand.company.id == "42"

    def test_deleted_flag(self) -> None:
        row = {"pk_id_store": 330, "des_store": "Old Brand", "flg_deleted": 1}

        assert map_brand(row).deleted is True
        assert map_brand(row, deleted=False).deleted is False
        assert map_brand({"pk_id_store": 310}).deleted is False


class TestMapArea:
    def test_defaults_and_overrides(self) -> None:
        row = {"pk_id_business_area": 2, "des_business_area": "Barcelona"}

        default = map_area(row)
        portugal = map_area(row, country="PT", timezone="Europe/Lisbon")

        assert (default.country, default.timezone) == ("ES", "Europe/Madrid")
        assert (portugal.country, portugal.timezone) == ("PT", "Europe/Lisbon")
        assert default.slug == "barcelona"


class TestMapRestaurant:
    def test_named_after_address(self) -> None:
        restaurant = map_restaurant(
            {
                "pk_id_address": 1003,
                "des_address": "Calle Mozart 5",
                "pfk_id_company": 57,
                "pfk_id_store": 320,
                "pfk_id_business_area": 1,
                "des_latitude": 40.4319,
                "des_longitude": -3.7148,
            }
        )

        assert restaurant.name == restaurant.address == "Calle Mozart 5"
        assert restaurant.slug == "calle-mozart-5"
        assert restaurant.company.id == "57"
        assert restaurant.brand.id == "320"
        assert restaurant.area.id == "1"
        assert restaurant.coordinates == Coordinates(latitude=40.4319, longitude=-3.7148)

    def test_missing_links_and_coordinates(self) -> None:
        restaurant = map_restaurant(
            {
                "pk_id_address": 1004,
                "des_address": "Calle Mayor 1",
                "pfk_id_company": 42,
                "pfk_id_store": None,
                "pfk_id_business_area": None,
                "des_latitude": 40.4,
                "des_longitude": None,
            }
        )

        assert restaurant.brand.is_linked is False
        assert restaurant.area.is_linked is False
        assert restaurant.coordinates is None
        assert restaurant.deleted is False


class TestMapPortal:
    def test_text_ids_kept(self) -> None:
        portal = map_portal({"pk_id_portal": "glovo", "des_portal": "Glovo"})

        assert portal.id == "glovo"
        assert portal.name == "Glovo"
        assert portal.deleted is False

    def test_deleted_portal(self) -> None:
        portal = map_portal(
            {"pk_id_portal": "deliveroo", "des_portal": "Deliveroo", "flg_deleted": "1"}
        )
        assert portal.deleted is True
