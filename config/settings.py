import logging
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


@dataclass
class Settings:
    store_backend: str = "firebase"
    firebase_service_account: Optional[str] = None
    firebase_credentials_path: str = "config/serviceAccountKey.json"
    firebase_database_url: Optional[str] = None
    invitation_ttl_days: int = 7
    default_currency: str = "USD"
    log_level: str = "INFO"


def _int_env(name, default):
    try:
        return int(os.environ.get(name, default))
    except ValueError:
        return default


def load_settings() -> Settings:
    # .env is only a local convenience; real env vars win
    load_dotenv()
    return Settings(
        store_backend=os.environ.get("STORE_BACKEND", "firebase").lower(),
        firebase_service_account=os.environ.get("FIREBASE_SERVICE_ACCOUNT"),
        firebase_credentials_path=os.environ.get("FIREBASE_CREDENTIALS_PATH", "config/serviceAccountKey.json"),
        firebase_database_url=os.environ.get("FIREBASE_DATABASE_URL"),
        invitation_ttl_days=_int_env("INVITATION_TTL_DAYS", 7),
        default_currency=os.environ.get("DEFAULT_CURRENCY", "USD"),
        log_level=os.environ.get("LOG_LEVEL", "INFO"),
    )


def configure_logging(level="INFO"):
    numeric_level = getattr(logging, str(level).upper(), logging.INFO)
    logging.basicConfig(level=numeric_level, format=LOG_FORMAT)
    logging.getLogger().setLevel(numeric_level)
