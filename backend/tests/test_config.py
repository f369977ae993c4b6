# backend/tests/test_config.py
"""
Tests for Settings validation.
"""

import pytest
from pydantic import ValidationError

from holdings_engine.config import IN_MEMORY_SQLITE_URL, Settings


class TestDatabaseConfig:

    def test_test_environment_defaults_to_in_memory_sqlite(self):
        config = Settings(environment="test", database_url=None)

        assert config.database_url == IN_MEMORY_SQLITE_URL
        assert config.is_sqlite
        assert config.is_test

    def test_development_warns_on_sqlite_file(self):
        with pytest.warns(UserWarning, match="SQLite file"):
            Settings(environment="development", database_url="sqlite:///./rates.db")

    def test_production_requires_database_url(self):
        with pytest.raises(ValidationError, match="DATABASE_URL is required"):
            Settings(environment="production", database_url=None)

    def test_production_rejects_sqlite(self):
        with pytest.raises(ValidationError, match="requires PostgreSQL"):
            Settings(environment="production", database_url="sqlite:///./rates.db")

    def test_production_accepts_postgresql(self):
        config = Settings(
            environment="production",
            database_url="postgresql://user:secret@db:5432/rates",
        )

        assert config.is_production
        assert not config.is_sqlite


class TestCalculationConfig:

    def test_defaults(self):
        config = Settings(environment="test")

        assert config.price_lookback_days is None
        assert config.fx_fallback_days == 7
        assert config.fx_strict_mode is False
        assert config.snapshot_decimal_places == 8

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("FX_STRICT_MODE", "true")
        monkeypatch.setenv("PRICE_LOOKBACK_DAYS", "5")

        config = Settings(environment="test")

        assert config.fx_strict_mode is True
        assert config.price_lookback_days == 5

    @pytest.mark.parametrize("field, value", [
        ("fx_fallback_days", -1),
        ("fx_fallback_days", 32),
        ("price_lookback_days", -3),
        ("snapshot_decimal_places", 19),
    ])
    def test_out_of_range_values_rejected(self, field, value):
        with pytest.raises(ValidationError):
            Settings(environment="test", **{field: value})
