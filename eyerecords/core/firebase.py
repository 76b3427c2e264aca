"""
Firebase admin initialization.

Only used when RECORDS_BACKEND=firestore. Patient records are then kept
in a Firestore collection, one document per record, instead of the
local JSON snapshot.
"""

import os
import firebase_admin
from firebase_admin import credentials, firestore

from eyerecords.core.config import settings

# Global references to avoid re-initialization
_firebase_app = None
db = None


def init_firebase():
    """
    Initialize Firebase Admin SDK if not already initialized and return
    the Firestore client.

    Priority:
    1. Use FIREBASE_CREDENTIALS environment variable / .env if set
    2. Fallback to local dev file: eyerecords/core/firebase_key.json
    """

    global _firebase_app, db

    # Prevent re-initialization (important for Uvicorn reload)
    if db is not None:
        return db
    if firebase_admin._apps:
        db = firestore.client()
        return db

    cred_path = settings.FIREBASE_CREDENTIALS

    if not os.path.exists(cred_path):
        raise RuntimeError(
            f"Firebase credentials not found at: {cred_path}\n"
            "Set FIREBASE_CREDENTIALS env var or place firebase_key.json correctly."
        )

    cred = credentials.Certificate(cred_path)
    _firebase_app = firebase_admin.initialize_app(cred)

    db = firestore.client()

    print("Firebase Admin initialized successfully.")
    return db
