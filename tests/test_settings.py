import pytest
from pydantic import ValidationError

from modules.brl_currency.core.denominations import DEFAULT_ACTIVE_VALUES
from modules.change_calculator.core.change import calculate_change_cents
from modules.change_calculator.core.rounding import RoundingMode
from trokito.errors import InvalidConfiguration
from trokito.settings import Settings, get_settings


class TestSettings:
    def test_defaults(self):
        settings = get_settings()
        assert settings.rounding_policy == "allow-owing"
        assert settings.tolerance_cents == 4
        assert settings.active_denominations == list(DEFAULT_ACTIVE_VALUES)
        assert settings.prioritize_less_coins is True
        assert settings.operator_name is None

    def test_cached(self):
        assert get_settings() is get_settings()

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("TROKITO_ACTIVE_DENOMINATIONS", "500, 100,5")
        monkeypatch.setenv("TROKITO_ROUNDING_POLICY", "nearest-0.10")
        monkeypatch.setenv("TROKITO_TOLERANCE_CENTS", "2")
        monkeypatch.setenv("TROKITO_OPERATOR_NAME", "Ana")
        settings = Settings()
        assert settings.active_denominations == [500, 100, 5]
        assert settings.operator_name == "Ana"

        config = settings.change_config()
        assert config.rounding_policy.mode == RoundingMode.NEAREST_10_CENTS
        assert config.rounding_policy.tolerance_cents == 2
        assert config.active_denominations == (500, 100, 5)

    def test_negative_tolerance_rejected(self, monkeypatch):
        monkeypatch.setenv("TROKITO_TOLERANCE_CENTS", "-1")
        with pytest.raises(ValidationError):
            Settings()

    def test_unknown_policy_rejected_when_used(self):
        settings = Settings(rounding_policy="banker")
        with pytest.raises(InvalidConfiguration):
            settings.change_config()

    def test_unknown_denomination_rejected_when_used(self):
        config = Settings(active_denominations=[500, 300]).change_config()
        with pytest.raises(InvalidConfiguration):
            calculate_change_cents(800, config)

    def test_config_drives_calculation(self):
        config = Settings(active_denominations="1000,100").change_config()
        result = calculate_change_cents(1200, config)
        assert [(c.denomination.value, c.count) for c in result.breakdown] == [(1000, 1), (100, 2)]
