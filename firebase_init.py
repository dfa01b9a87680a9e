"""
Firebase Admin initialization, used only for FCM unlock pushes.
Credentials come from GOOGLE_APPLICATION_CREDENTIALS.
"""

import logging
import firebase_admin
from firebase_admin import credentials

_firebase_initialized = False

def initialize_firebase():
    """
    Initialize the Firebase Admin SDK once per process.

    Returns:
        bool: True if the SDK is ready, False if initialization failed
    """
    global _firebase_initialized

    if _firebase_initialized:
        return True

    try:
        if not firebase_admin._apps:
            firebase_admin.initialize_app(credentials.ApplicationDefault())
            logging.info("Firebase Admin SDK initialized for FCM pushes.")
        _firebase_initialized = True
        return True
    except Exception as e:
        logging.error(f"Failed to initialize Firebase Admin SDK, unlock pushes disabled: {e}")
        return False

__all__ = ['initialize_firebase']
