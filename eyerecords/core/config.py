# eyerecords/core/config.py
from __future__ import annotations

from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # "local" keeps the whole collection in one JSON document on disk,
    # "firestore" keeps one Firestore document per record
    RECORDS_BACKEND: Literal["local", "firestore"] = "local"

    # Local backend
    RECORDS_DATA_DIR: str = "data"
    RECORDS_STORAGE_KEY: str = "patient_records"

    # Firestore backend
    FIRESTORE_COLLECTION: str = "patient_records"
    FIREBASE_CREDENTIALS: str = "eyerecords/core/firebase_key.json"

    # Where snapshot exports are written by scripts/export_records.py
    EXPORT_DIR: str = "exports"

    RECORDS_DEBUG_MODE: bool = False

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


settings = Settings()
