import json
import logging
import os
from typing import Optional

import firebase_admin
from firebase_admin import credentials

from .config import settings

logger = logging.getLogger(__name__)

_firebase_initialized = False


def _load_credentials() -> Optional[credentials.Certificate]:
    """Inline JSON (FIREBASE_SERVICE_ACCOUNT_JSON) wins over the key file path."""
    if settings.FIREBASE_SERVICE_ACCOUNT_JSON:
        return credentials.Certificate(json.loads(settings.FIREBASE_SERVICE_ACCOUNT_JSON))

    path = settings.FIREBASE_SERVICE_ACCOUNT_PATH
    if not os.path.exists(path):
        logger.warning(f"Firebase service account file not found at {path}; complaints, users and departments are unavailable")
        return None
    return credentials.Certificate(path)


def initialize_firebase() -> bool:
    """
    Initialize the Firebase Admin app backing auth and Firestore.
    Returns True once an app exists; False leaves the API up without storage.
    """
    global _firebase_initialized

    if _firebase_initialized or firebase_admin._apps:
        return True

    try:
        cred = _load_credentials()
        if cred is None:
            return False

        firebase_admin.initialize_app(cred, {'projectId': settings.FIREBASE_PROJECT_ID})
        _firebase_initialized = True
        logger.info(f"Firebase initialized for project {settings.FIREBASE_PROJECT_ID}")
        return True

    except Exception as e:
        logger.error(f"Firebase initialization failed: {e}")
        return False


def is_firebase_available() -> bool:
    return _firebase_initialized or bool(firebase_admin._apps)


def get_firebase_status() -> dict:
    """Reported by /health."""
    return {
        "initialized": _firebase_initialized,
        "project_id": settings.FIREBASE_PROJECT_ID,
        "available": is_firebase_available(),
    }
