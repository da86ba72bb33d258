"""Unit tests for environment-based settings."""

import pytest
from pydantic import ValidationError

from delivery_data_hub.config import Settings, get_settings
from delivery_data_hub.config.settings import DEFAULT_COMPANY_STATUSES


@pytest.mark.unit
class TestDefaults:
    def test_defaults(self) -> None:
        settings = Settings()

        assert settings.ENVIRONMENT == "dev"
        assert settings.LOG_LEVEL == "INFO"
        assert settings.MAX_WORKERS == 4
        assert settings.database_uri is None
        assert settings.source_schema == "public"
        assert settings.query_row_limit == 50000
        assert settings.valid_company_statuses == DEFAULT_COMPANY_STATUSES
        assert (settings.default_country, settings.default_timezone) == (
            "ES",
            "Europe/Madrid",
        )

    def test_default_statuses(self) -> None:
        assert set(DEFAULT_COMPANY_STATUSES) == {
            "Onboarding",
            "Cliente Activo",
            "Stand By",
            "PiP",
        }


@pytest.mark.unit
class TestEnvironmentOverrides:
    def test_prefixed_fields(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DDH_SOURCE_SCHEMA", "warehouse")
        monkeypatch.setenv("DDH_QUERY_ROW_LIMIT", "1000")
        monkeypatch.setenv("DDH_DEFAULT_COUNTRY", "PT")

        settings = Settings()

        assert settings.source_schema == "warehouse"
        assert settings.query_row_limit == 1000
        assert settings.default_country == "PT"

    def test_unprefixed_fields(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MAX_WORKERS", "8")
        monkeypatch.setenv("LOG_LEVEL", "debug")

        settings = Settings()

        assert settings.MAX_WORKERS == 8
        assert settings.LOG_LEVEL == "DEBUG"

    def test_status_list_from_json(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DDH_VALID_COMPANY_STATUSES", '["Cliente Activo"]')
        assert Settings().valid_company_statuses == ["Cliente Activo"]

    @pytest.mark.parametrize("name", ["DDH_DATABASE__URI", "DDH_DATABASE_URI"])
    def test_database_uri_aliases(
        self, monkeypatch: pytest.MonkeyPatch, name: str
    ) -> None:
        monkeypatch.setenv(name, "postgresql://u:p@warehouse/crp")
        assert Settings().database_uri == "postgresql://u:p@warehouse/crp"

    def test_blank_schema_is_none(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DDH_SOURCE_SCHEMA", "  ")
        assert Settings().source_schema is None

    def test_invalid_worker_count(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MAX_WORKERS", "0")
        with pytest.raises(ValidationError):
            Settings()


@pytest.mark.unit
class TestDatabaseConnectionString:
    def test_postgres_scheme_corrected(self, make_settings) -> None:
        settings = make_settings(DDH_DATABASE_URI="postgres://u:p@warehouse/crp")

        assert (
            settings.get_database_connection_string()
            == "postgresql://u:p@warehouse/crp"
        )

    def test_other_schemes_unchanged(self, make_settings) -> None:
        settings = make_settings(DDH_DATABASE_URI="sqlite:///warehouse.db")
        assert settings.get_database_connection_string() == "sqlite:///warehouse.db"

    def test_missing_uri(self, make_settings) -> None:
        settings = make_settings(DDH_DATABASE_URI=None)

        with pytest.raises(ValueError, match="No warehouse configured"):
            settings.get_database_connection_string()


@pytest.mark.unit
class TestProductionValidation:
    def test_prod_requires_postgresql(self, make_settings) -> None:
        with pytest.raises(ValidationError, match="requires PostgreSQL"):
            make_settings(ENVIRONMENT="prod", DDH_DATABASE_URI="sqlite://")

    def test_prod_accepts_postgres_scheme(self, make_settings) -> None:
        settings = make_settings(
            ENVIRONMENT="prod", DDH_DATABASE_URI="postgres://u:p@warehouse/crp"
        )
        assert settings.ENVIRONMENT == "prod"

    def test_prod_without_uri_is_allowed(self, make_settings) -> None:
        settings = make_settings(ENVIRONMENT="prod", DDH_DATABASE_URI=None)
        assert settings.database_uri is None


@pytest.mark.unit
class TestGetSettings:
    def test_cached(self) -> None:
        assert get_settings() is get_settings()

    def test_cache_clear_reloads_environment(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        first = get_settings()
        monkeypatch.setenv("DDH_DEFAULT_TIMEZONE", "Europe/Lisbon")
        get_settings.cache_clear()

        assert get_settings() is not first
        assert get_settings().default_timezone == "Europe/Lisbon"
