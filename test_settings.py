import logging

import pytest

import config.firebase_config as firebase_config
from config.settings import configure_logging, load_settings

ENV_VARS = [
    "STORE_BACKEND",
    "FIREBASE_SERVICE_ACCOUNT",
    "FIREBASE_CREDENTIALS_PATH",
    "FIREBASE_DATABASE_URL",
    "INVITATION_TTL_DAYS",
    "DEFAULT_CURRENCY",
    "LOG_LEVEL",
]


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_defaults(clean_env):
    settings = load_settings()

    assert settings.store_backend == "firebase"
    assert settings.firebase_database_url is None
    assert settings.invitation_ttl_days == 7
    assert settings.default_currency == "USD"


def test_environment_overrides(clean_env):
    clean_env.setenv("STORE_BACKEND", "Memory")
    clean_env.setenv("INVITATION_TTL_DAYS", "14")
    clean_env.setenv("DEFAULT_CURRENCY", "EUR")

    settings = load_settings()

    assert settings.store_backend == "memory"
    assert settings.invitation_ttl_days == 14
    assert settings.default_currency == "EUR"


def test_bad_ttl_falls_back(clean_env):
    clean_env.setenv("INVITATION_TTL_DAYS", "a week")

    assert load_settings().invitation_ttl_days == 7


def test_configure_logging():
    configure_logging("debug")
    assert logging.getLogger().level == logging.DEBUG

    configure_logging("nonsense")
    assert logging.getLogger().level == logging.INFO


def test_firebase_init_requires_database_url(clean_env):
    clean_env.setattr(firebase_config, "_app", None)
    clean_env.setattr(firebase_config.credentials, "Certificate", lambda source: object())

    with pytest.raises(RuntimeError, match="Firebase init failed: FIREBASE_DATABASE_URL is not set"):
        firebase_config.get_firebase_app(load_settings())
