"""Tests for environment settings selection."""

import pytest

from oee_dashboard import config


@pytest.fixture(autouse=True)
def clear_environment(monkeypatch):
    monkeypatch.delenv("ENVIRONMENT", raising=False)
    monkeypatch.delenv("SEED_DEMO_DATA", raising=False)


def test_testing_environment_has_its_own_settings():
    settings = config.get_settings("testing")

    assert isinstance(settings, config.TestingSettings)
    assert settings.ENVIRONMENT == "testing"
    assert settings.SEED_DEMO_DATA is False


@pytest.mark.parametrize("environment,expected", [
    ("development", "DevelopmentSettings"),
    ("production", "ProductionSettings"),
])
def test_environment_selects_settings_class(environment, expected):
    assert isinstance(config.get_settings(environment), getattr(config, expected))


def test_unknown_environment_is_rejected():
    with pytest.raises(ValueError):
        config.Settings(ENVIRONMENT="qa")
