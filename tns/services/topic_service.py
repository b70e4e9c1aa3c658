# -*- coding: utf-8 -*-
"""
TopicRegistry (framework-frei)

Zweck
- Single source of truth für Topic-CRUD inkl. Eindeutigkeits-Invariante
  (kein topic-Name doppelt, case-sensitive exakter Vergleich).
- Vergibt Identifier (ObjectId-Format) beim Registrieren.
- Bleibt unabhängig von FastAPI; der Store wird per DI übergeben (TopicStorePort).

Nebenläufigkeit
- register() prüft zuerst per check_duplicate() und fügt dann ein. Zwischen
  beiden Schritten kann ein zweiter Client denselben Namen einfügen; diesen
  Fall fängt der Unique-Index des Stores ab und der Adapter meldet ihn als
  DuplicateTopicError.
"""

from __future__ import annotations

import logging
import re
import secrets
import time
from typing import Any, List, Mapping, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from tns.schemas import TopicKey, TopicRecord

from .ports import (
    DuplicateTopicError,
    InvalidIDError,
    NotFoundError,
    RequestContext,
    TopicStorePort,
    ValidationError,
    safe_request_id,
)

logger = logging.getLogger(__name__)

_OBJECT_ID_RE = re.compile(r"^[0-9a-fA-F]{24}$")


def new_object_id() -> str:
    """4 Byte Sekunden-Timestamp (big endian) + 8 Zufallsbytes, hex-kodiert."""
    return int(time.time()).to_bytes(4, "big").hex() + secrets.token_hex(8)


def is_object_id(value: Any) -> bool:
    return isinstance(value, str) and bool(_OBJECT_ID_RE.match(value))


class TopicRegistry:
    """
    TopicRegistry – API
    - find_all(), discover_topic(name), find_by_id(id)
    - check_duplicate(candidate), register(candidate)
    - update(record), delete(record), count()
    """

    def __init__(self, store: TopicStorePort) -> None:
        self._store = store

    # -----------------------
    # Decode-Helfer
    # -----------------------

    @staticmethod
    def _as_record(candidate: Union[TopicRecord, Mapping[str, Any]], ctx: Optional[RequestContext]) -> TopicRecord:
        if isinstance(candidate, TopicRecord):
            return candidate
        try:
            return TopicRecord.model_validate(dict(candidate))
        except (PydanticValidationError, TypeError, ValueError) as e:
            raise ValidationError(details={"request_id": safe_request_id(ctx), "error": str(e)}) from e

    @staticmethod
    def _as_key(record: Union[TopicKey, TopicRecord, Mapping[str, Any]], ctx: Optional[RequestContext]) -> TopicKey:
        if isinstance(record, TopicKey):
            return record
        if isinstance(record, TopicRecord):
            return TopicKey.model_validate(record.model_dump())
        try:
            return TopicKey.model_validate(dict(record))
        except (PydanticValidationError, TypeError, ValueError) as e:
            raise ValidationError(details={"request_id": safe_request_id(ctx), "error": str(e)}) from e

    @staticmethod
    def _check_id(doc_id: Any, ctx: Optional[RequestContext]) -> str:
        if not is_object_id(doc_id):
            raise InvalidIDError(details={"request_id": safe_request_id(ctx), "id": doc_id})
        return doc_id.lower()

    def _resolve_key(self, key: TopicKey, ctx: Optional[RequestContext]) -> TopicRecord:
        """Stored record zu id (bevorzugt) oder topic; NotFoundError wenn keiner passt."""
        if key.id is not None:
            doc = self._store.find_by_id(self._check_id(key.id, ctx), ctx=ctx)
        elif key.topic:
            doc = self._store.find_by_field("topic", key.topic, ctx=ctx)
        else:
            raise ValidationError("id or topic required", details={"request_id": safe_request_id(ctx)})
        if doc is None:
            raise NotFoundError(
                "not found",
                details={"request_id": safe_request_id(ctx), "id": key.id, "topic": key.topic},
            )
        return TopicRecord.model_validate(doc)

    # -----------------------
    # Lesen
    # -----------------------

    def find_all(self, *, ctx: Optional[RequestContext] = None) -> List[TopicRecord]:
        return [TopicRecord.model_validate(d) for d in self._store.find_all(ctx=ctx)]

    def discover_topic(self, name: str, *, ctx: Optional[RequestContext] = None) -> TopicRecord:
        """Reiner Lesezugriff: liefert den Record mit topic == name (exakt, ohne Normalisierung)."""
        if not isinstance(name, str) or not name.strip():
            raise ValidationError("topic must not be blank", details={"request_id": safe_request_id(ctx)})
        doc = self._store.find_by_field("topic", name, ctx=ctx)
        if doc is None:
            raise NotFoundError(f"topic '{name}' not found", details={"request_id": safe_request_id(ctx)})
        return TopicRecord.model_validate(doc)

    def find_by_id(self, doc_id: str, *, ctx: Optional[RequestContext] = None) -> TopicRecord:
        doc = self._store.find_by_id(self._check_id(doc_id, ctx), ctx=ctx)
        if doc is None:
            raise NotFoundError(f"id '{doc_id}' not found", details={"request_id": safe_request_id(ctx)})
        return TopicRecord.model_validate(doc)

    def check_duplicate(
        self,
        candidate: Union[TopicRecord, Mapping[str, Any]],
        *,
        ctx: Optional[RequestContext] = None,
    ) -> bool:
        record = self._as_record(candidate, ctx)
        return self._store.find_by_field("topic", record.topic, ctx=ctx) is not None

    def count(self, *, ctx: Optional[RequestContext] = None) -> int:
        return self._store.count(ctx=ctx)

    # -----------------------
    # Schreiben
    # -----------------------

    def register(
        self,
        candidate: Union[TopicRecord, Mapping[str, Any]],
        *,
        ctx: Optional[RequestContext] = None,
    ) -> TopicRecord:
        record = self._as_record(candidate, ctx)
        if self.check_duplicate(record, ctx=ctx):
            raise DuplicateTopicError(details={"request_id": safe_request_id(ctx), "topic": record.topic})

        # Client-seitige id wird ignoriert
        stored = record.model_copy(update={"id": new_object_id()})
        self._store.insert(stored.to_document(), ctx=ctx)
        logger.info("Registered topic '%s' with id %s", stored.topic, stored.id)
        return stored

    def update(
        self,
        record: Union[TopicKey, TopicRecord, Mapping[str, Any]],
        *,
        ctx: Optional[RequestContext] = None,
    ) -> TopicRecord:
        """
        Ersetzt den Payload des gespeicherten Records (Match über id, sonst topic).
        id und topic des gespeicherten Records bleiben unverändert.
        """
        key = self._as_key(record, ctx)
        current = self._resolve_key(key, ctx)
        if key.topic is not None and key.topic != current.topic:
            raise ValidationError(
                "topic cannot be changed",
                details={"request_id": safe_request_id(ctx), "id": current.id},
            )

        payload = key.model_dump()
        payload.update({"id": current.id, "topic": current.topic})
        updated = TopicRecord.model_validate(payload)
        if self._store.update(current.id, updated.to_document(), ctx=ctx) == 0:
            # zwischenzeitlich gelöscht
            raise NotFoundError(f"id '{current.id}' not found", details={"request_id": safe_request_id(ctx)})
        logger.info("Updated topic '%s' (%s)", updated.topic, updated.id)
        return updated

    def delete(
        self,
        record: Union[TopicKey, TopicRecord, Mapping[str, Any]],
        *,
        ctx: Optional[RequestContext] = None,
    ) -> TopicRecord:
        key = self._as_key(record, ctx)
        current = self._resolve_key(key, ctx)
        if self._store.delete(current.id, ctx=ctx) == 0:
            raise NotFoundError(f"id '{current.id}' not found", details={"request_id": safe_request_id(ctx)})
        logger.info("Deleted topic '%s' (%s)", current.topic, current.id)
        return current
