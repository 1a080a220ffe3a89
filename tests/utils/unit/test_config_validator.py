"""
Tests for startup configuration validation.
"""

import importlib
from types import SimpleNamespace

import pytest

import config
from utils.config_validator import (
    ConfigValidationError,
    validate_delivery_pricing,
    validate_promo_input_lengths,
    validate_required_config,
    validate_startup_config,
    validate_or_exit,
)


def _config(**overrides):
    values = dict(
        DEFAULT_DELIVERY_CHARGE=50.0,
        FREE_DELIVERY_THRESHOLD=1500.0,
        PROMO_MIN_LENGTH=3,
        PROMO_ERROR_MIN_LENGTH=6,
        DB_URL="sqlite+aiosqlite:///:memory:",
    )
    values.update(overrides)
    return SimpleNamespace(**values)


class TestConfigValidator:

    def test_valid_config_passes(self):
        validate_startup_config(_config())

    def test_zero_delivery_values_allowed(self):
        validate_delivery_pricing(0.0, 0.0)

    @pytest.mark.parametrize("charge,threshold,name", [
        (-1.0, 1500.0, "DEFAULT_DELIVERY_CHARGE"),
        (50.0, -10.0, "FREE_DELIVERY_THRESHOLD"),
    ])
    def test_negative_delivery_values_rejected(self, charge, threshold, name):
        with pytest.raises(ConfigValidationError, match=name):
            validate_delivery_pricing(charge, threshold)

    def test_error_length_below_min_length_rejected(self):
        with pytest.raises(ConfigValidationError, match="PROMO_ERROR_MIN_LENGTH"):
            validate_promo_input_lengths(min_length=5, error_min_length=3)

    def test_missing_required_value_shows_example(self):
        with pytest.raises(ConfigValidationError, match="Add to .env: DB_URL=sqlite"):
            validate_required_config("", "DB_URL", "sqlite+aiosqlite:///data/cart.db")

    def test_validate_or_exit_exits_with_code_1(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            validate_or_exit(_config(DB_URL=None))

        assert exc_info.value.code == 1
        assert "DB_URL is required" in capsys.readouterr().err

    def test_loaded_config_is_valid(self):
        import config

        validate_startup_config(config)
        assert config.CURRENCY_SYMBOL == "₹"
        assert config.DEAL_QUANTITY_LIMIT == 1


class TestEnvironmentParsing:

    @pytest.mark.parametrize("name,value", [
        ("DEFAULT_DELIVERY_CHARGE", "abc"),
        ("FREE_DELIVERY_THRESHOLD", "-5"),
        ("PROMO_MIN_LENGTH", "0"),
        ("PROMO_ERROR_MIN_LENGTH", "six"),
        ("DEAL_QUANTITY_LIMIT", "two"),
        ("EXPIRED_SLOT_GRACE_DAYS", "-1"),
        ("LOG_RETENTION_DAYS", "0"),
    ])
    def test_bad_value_reported_under_its_own_name(self, monkeypatch, capsys, name, value):
        monkeypatch.setenv(name, value)
        try:
            with pytest.raises(SystemExit) as exc_info:
                importlib.reload(config)

            assert exc_info.value.code == 1
            err = capsys.readouterr().err
            assert f"Invalid {name} configuration" in err
            assert err.count("configuration") == 1
            assert f"Current value: {value}" in err
        finally:
            monkeypatch.undo()
            importlib.reload(config)

    def test_zero_grace_days_allowed(self, monkeypatch):
        monkeypatch.setenv("EXPIRED_SLOT_GRACE_DAYS", "0")
        try:
            importlib.reload(config)

            assert config.EXPIRED_SLOT_GRACE_DAYS == 0
        finally:
            monkeypatch.undo()
            importlib.reload(config)
