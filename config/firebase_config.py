import json
import logging
import firebase_admin
from firebase_admin import credentials

from config.settings import load_settings

logger = logging.getLogger(__name__)

_app = None

def get_firebase_app(settings=None):
    global _app
    if _app:
        return _app

    settings = settings or load_settings()

    try:
        # Render / production (env variable)
        if settings.firebase_service_account:
            cred_dict = json.loads(settings.firebase_service_account)
            cred = credentials.Certificate(cred_dict)
        else:
            # Local fallback (optional)
            cred = credentials.Certificate(settings.firebase_credentials_path)

        if not settings.firebase_database_url:
            raise ValueError("FIREBASE_DATABASE_URL is not set")

        if not firebase_admin._apps:
            firebase_admin.initialize_app(cred, {"databaseURL": settings.firebase_database_url})

        _app = firebase_admin.get_app()
        logger.info("Firebase app initialised for %s", settings.firebase_database_url)
        return _app

    except Exception as e:
        raise RuntimeError(f"Firebase init failed: {e}") from e
