# -*- coding: utf-8 -*-
from __future__ import annotations

import sqlite3
from typing import Optional

from . import settings

DDL = """
-- Topic-Collection: ein JSON-Dokument je Zeile, id/topic als indizierte Spalten
CREATE TABLE IF NOT EXISTS topic_record (
  seq INTEGER PRIMARY KEY AUTOINCREMENT,          -- natürliche Einfügereihenfolge
  id TEXT NOT NULL,                               -- ObjectId-Format (24 hex)
  topic TEXT NOT NULL,                            -- natürlicher Schlüssel
  document TEXT NOT NULL,                         -- JSON: vollständiger TopicRecord
  created_at DATETIME NOT NULL DEFAULT CURRENT_TIMESTAMP,
  updated_at DATETIME NOT NULL DEFAULT CURRENT_TIMESTAMP
);

-- Eindeutigkeit wird vom Store erzwungen (schließt das Check-then-Insert-Race)
CREATE UNIQUE INDEX IF NOT EXISTS ux_topic_record_id ON topic_record (id);
CREATE UNIQUE INDEX IF NOT EXISTS ux_topic_record_topic ON topic_record (topic);
"""


def get_db(database: Optional[str] = None, *, timeout: Optional[float] = None) -> sqlite3.Connection:
    """
    Öffnet die prozessweite Store-Verbindung.
    check_same_thread=False, da Requests auf dem Threadpool laufen; die
    Serialisierung übernimmt der Adapter.
    """
    path = settings.resolve_database_path(database or settings.DATABASE)
    conn = sqlite3.connect(
        path,
        timeout=timeout if timeout is not None else settings.DB_TIMEOUT_S,
        isolation_level=None,
        check_same_thread=False,
    )
    conn.row_factory = sqlite3.Row
    return conn


def init_db(conn: sqlite3.Connection) -> None:
    conn.executescript(DDL)
