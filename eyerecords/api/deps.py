"""
API dependencies.

The record store is built once at startup (see ``build_record_store``) and
kept on ``app.state``; routes receive it, or the query engine / codec
wrapping it, through these FastAPI dependencies.
"""

from fastapi import Depends, HTTPException, Request

from eyerecords.core.config import Settings, settings as default_settings
from eyerecords.services.local_storage import JsonFileStorage
from eyerecords.services.query_engine import QueryEngine
from eyerecords.services.record_codec import RecordCodec
from eyerecords.services.record_store import LocalRecordStore, RecordStore


def build_record_store(settings: Settings = default_settings) -> RecordStore:
    """Create the store for the configured backend."""
    if settings.RECORDS_BACKEND == "firestore":
        from eyerecords.core.firebase import init_firebase
        from eyerecords.services.firestore_record_store import FirestoreRecordStore

        return FirestoreRecordStore(init_firebase(), collection=settings.FIRESTORE_COLLECTION)

    storage = JsonFileStorage(settings.RECORDS_DATA_DIR)
    return LocalRecordStore(storage, key=settings.RECORDS_STORAGE_KEY)


def get_record_store(request: Request) -> RecordStore:
    store = getattr(request.app.state, "record_store", None)
    if store is None:
        raise HTTPException(status_code=503, detail="Record store is not initialized")
    return store


def get_query_engine(store: RecordStore = Depends(get_record_store)) -> QueryEngine:
    return QueryEngine(store)


def get_codec(store: RecordStore = Depends(get_record_store)) -> RecordCodec:
    return RecordCodec(store)
