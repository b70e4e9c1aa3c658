# -*- coding: utf-8 -*-
"""
Default-Adapter für die Ports aus services.ports.

SQLiteTopicStore bildet eine Document-Collection auf eine SQLite-Tabelle ab:
das vollständige Dokument liegt als JSON in `document`, `id` und `topic`
sind zusätzlich als eindeutig indizierte Spalten abgelegt.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import threading
from typing import Any, Dict, List, Mapping, Optional

from tns.core.db import get_db, init_db

from .ports import (
    DuplicateTopicError,
    RequestContext,
    StorageError,
    TopicStorePort,
    ValidationError,
    safe_request_id,
)

logger = logging.getLogger(__name__)

# Nur diese Felder sind als Spalten indiziert
_INDEXED_FIELDS = ("id", "topic")


class SQLiteTopicStore(TopicStorePort):
    """TopicStorePort-Implementierung auf einer geteilten sqlite3-Verbindung."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn
        self._lock = threading.Lock()

    @classmethod
    def connect(cls, database: Optional[str] = None, *, timeout: Optional[float] = None) -> "SQLiteTopicStore":
        """Öffnet den Store und stellt das Schema sicher. Fehler hier sind beim Start fatal."""
        try:
            conn = get_db(database, timeout=timeout)
            init_db(conn)
        except (sqlite3.Error, ValueError) as e:
            raise StorageError(f"cannot open store: {e}", details={"database": database}) from e
        logger.info("Topic store opened: %s", database)
        return cls(conn)

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    # -----------------------
    # Interne Helfer
    # -----------------------

    def _execute(
        self,
        sql: str,
        params: tuple = (),
        *,
        fetch: Optional[str] = None,
        ctx: Optional[RequestContext] = None,
    ) -> Any:
        """
        Führt eine Query unter dem Verbindungs-Lock aus.
        fetch: "one" | "all" | None (dann: rowcount)
        """
        try:
            with self._lock:
                cur = self._conn.execute(sql, params)
                if fetch == "one":
                    return cur.fetchone()
                if fetch == "all":
                    return cur.fetchall()
                return int(cur.rowcount or 0)
        except sqlite3.IntegrityError as e:
            # Einziger Unique-Index, den ein Client auslösen kann: topic
            raise DuplicateTopicError(details={"request_id": safe_request_id(ctx), "error": str(e)}) from e
        except UnicodeEncodeError as e:
            # z. B. ungepaarte Surrogates in Query-Parametern
            raise ValidationError(f"invalid string: {e.reason}", details={"request_id": safe_request_id(ctx)}) from e
        except sqlite3.Error as e:
            logger.error("Store query failed: %s", e)
            raise StorageError(str(e), details={"request_id": safe_request_id(ctx)}) from e

    @staticmethod
    def _row_to_doc(row: Optional[sqlite3.Row]) -> Optional[Dict[str, Any]]:
        if row is None:
            return None
        return json.loads(row["document"])

    @staticmethod
    def _dump(doc: Mapping[str, Any]) -> str:
        # NaN/Infinity sind kein gültiges JSON und wären nicht mehr auslieferbar
        try:
            text = json.dumps(dict(doc), ensure_ascii=False, allow_nan=False, separators=(",", ":"))
            text.encode("utf-8")
        except (TypeError, ValueError) as e:
            raise ValidationError(f"document is not JSON-serializable: {e}") from e
        return text

    # -----------------------
    # TopicStorePort
    # -----------------------

    def insert(self, doc: Mapping[str, Any], *, ctx: Optional[RequestContext] = None) -> None:
        self._execute(
            "INSERT INTO topic_record(id, topic, document) VALUES (?, ?, ?)",
            (doc["id"], doc["topic"], self._dump(doc)),
            ctx=ctx,
        )

    def find_all(self, *, ctx: Optional[RequestContext] = None) -> List[Dict[str, Any]]:
        rows = self._execute("SELECT document FROM topic_record ORDER BY seq", fetch="all", ctx=ctx)
        return [self._row_to_doc(r) for r in rows]

    def find_by_id(self, doc_id: str, *, ctx: Optional[RequestContext] = None) -> Optional[Dict[str, Any]]:
        return self.find_by_field("id", doc_id, ctx=ctx)

    def find_by_field(self, field: str, value: Any, *, ctx: Optional[RequestContext] = None) -> Optional[Dict[str, Any]]:
        if field not in _INDEXED_FIELDS:
            raise ValidationError(f"field '{field}' is not queryable")
        row = self._execute(
            f"SELECT document FROM topic_record WHERE {field} = ? LIMIT 1",
            (value,),
            fetch="one",
            ctx=ctx,
        )
        return self._row_to_doc(row)

    def update(self, doc_id: str, doc: Mapping[str, Any], *, ctx: Optional[RequestContext] = None) -> int:
        return self._execute(
            "UPDATE topic_record SET document = ?, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
            (self._dump(doc), doc_id),
            ctx=ctx,
        )

    def delete(self, doc_id: str, *, ctx: Optional[RequestContext] = None) -> int:
        return self._execute("DELETE FROM topic_record WHERE id = ?", (doc_id,), ctx=ctx)

    def count(self, *, ctx: Optional[RequestContext] = None) -> int:
        row = self._execute("SELECT COUNT(*) AS n FROM topic_record", fetch="one", ctx=ctx)
        return int(row["n"])

    def ping(self, *, ctx: Optional[RequestContext] = None) -> bool:
        self._execute("SELECT 1", fetch="one", ctx=ctx)
        return True
