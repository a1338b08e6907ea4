"""
Firebase Admin app bootstrap.

The default app is created once, on first use, from a service-account file
when one is configured, or from application-default credentials otherwise.
"""

import logging
import threading
from typing import Optional

import firebase_admin
from firebase_admin import credentials

logger = logging.getLogger(__name__)

_lock = threading.Lock()


def get_firebase_app(credentials_path: Optional[str] = None) -> firebase_admin.App:
    """Return the default Firebase app, initializing it if needed."""
    with _lock:
        try:
            return firebase_admin.get_app()
        except ValueError:
            pass

        if credentials_path:
            cred = credentials.Certificate(credentials_path)
            logger.info(f"Initializing Firebase app from {credentials_path}")
        else:
            cred = credentials.ApplicationDefault()
            logger.info("Initializing Firebase app with application default credentials")
        return firebase_admin.initialize_app(cred)
