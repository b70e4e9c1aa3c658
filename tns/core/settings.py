# -*- coding: utf-8 -*-
from __future__ import annotations

import os
from dotenv import load_dotenv

# Load from .env if present
load_dotenv()

# Core API runtime (Port)
API_HOST = os.environ.get("API_HOST", "0.0.0.0")
API_PORT = int(os.environ.get("API_PORT", os.environ.get("PORT", "8081")))

# Document store (Database): SQLite-Pfad oder sqlite:///pfad
DATABASE = os.environ.get("DATABASE", os.environ.get("DATABASE_ADDRESS", "tns.db"))
DB_TIMEOUT_S = float(os.environ.get("DB_TIMEOUT_S", "5.0"))

# Logging
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
LOG_FORMAT = os.environ.get("LOG_FORMAT", "json")  # json|console

API_PREFIX = "/api/v1/tns"


def resolve_database_path(database: str) -> str:
    """
    Normalisiert den Database-Connection-String auf einen sqlite3-Pfad.
    Beispiele:
      - tns.db               -> tns.db
      - sqlite:///data/t.db  -> data/t.db
      - sqlite:///:memory:   -> :memory:
    """
    db = str(database or "").strip()
    if not db:
        raise ValueError("DATABASE ist leer")
    if db.startswith("sqlite:///"):
        return db[len("sqlite:///"):] or ":memory:"
    if "://" in db:
        raise ValueError(f"Nicht unterstütztes Datenbankschema: {db.split('://', 1)[0]}")
    return db


def get_runtime_config() -> dict:
    """
    Snapshot der aktuellen Runtime-Konfiguration (ohne Secrets).
    """
    return {
        "api": {
            "host": API_HOST,
            "port": API_PORT,
            "prefix": API_PREFIX,
        },
        "db": {
            "database": DATABASE,
            "timeout_s": DB_TIMEOUT_S,
        },
        "logging": {
            "level": LOG_LEVEL,
            "format": LOG_FORMAT,
        },
    }
