# -*- coding: utf-8 -*-
"""
Service-Layer Ports (Framework-frei)

Zweck
- Definiert die Schnittstelle (Port) zum Document-Store als Python Protocol,
  damit die Registry gegen Fakes oder andere Stores getestet werden kann.
- Definiert die Fehler-Taxonomie der Registry. Jeder Fehler trägt eine
  Klassifikation (Client- vs. Serverfehler); das HTTP-Mapping macht
  ausschließlich der Router.

Design-Prinzipien
- Keine HTTP/Framework-Kopplung (keine FastAPI-Imports)
- Dokumente sind plain dicts; die Typisierung (TopicRecord) passiert in der Registry
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Protocol


# -----------------------
# Fehler-/Resultattypen
# -----------------------

class ServiceError(Exception):
    """Basisfehler für Services mit standardisiertem Code/Message."""

    client_error = False

    def __init__(self, code: str, message: str, *, details: Optional[Mapping[str, Any]] = None):
        super().__init__(f"{code}: {message}")
        self.code = code
        self.message = message
        self.details = dict(details or {})


class ValidationError(ServiceError):
    """Payload fehlt/ist ungültig oder Topic-Name ist leer."""

    client_error = True

    def __init__(self, message: str = "Invalid request payload", *, details: Optional[Mapping[str, Any]] = None):
        super().__init__("invalid_request", message, details=details)


class InvalidIDError(ValidationError):
    """Identifier hat nicht das ObjectId-Format."""

    def __init__(self, message: str = "Invalid id", *, details: Optional[Mapping[str, Any]] = None):
        super().__init__(message, details=details)
        self.code = "invalid_id"


class DuplicateTopicError(ServiceError):
    client_error = True

    def __init__(self, message: str = "Duplicated Topic", *, details: Optional[Mapping[str, Any]] = None):
        super().__init__("duplicate_topic", message, details=details)


class NotFoundError(ServiceError):
    client_error = True

    def __init__(self, message: str = "not found", *, details: Optional[Mapping[str, Any]] = None):
        super().__init__("not_found", message, details=details)


class StorageError(ServiceError):
    """Store nicht erreichbar, Timeout oder Query-Fehler."""

    def __init__(self, message: str = "storage failure", *, details: Optional[Mapping[str, Any]] = None):
        super().__init__("storage_error", message, details=details)


@dataclass(frozen=True)
class RequestContext:
    """Transport für kontextuelle Infos (z. B. request_id) ohne Framework-Kopplung."""
    request_id: Optional[str] = None


# -----------------------
# TopicStore-Port (Document-Collection)
# -----------------------

class TopicStorePort(Protocol):
    """Abstraktion einer Document-Collection für TopicRecords.

    Fehlerfälle:
    - DuplicateTopicError, wenn insert die Eindeutigkeit von topic verletzt
    - StorageError bei allen anderen Store-Fehlern
    """

    def insert(self, doc: Mapping[str, Any], *, ctx: Optional[RequestContext] = None) -> None:
        ...

    def find_all(self, *, ctx: Optional[RequestContext] = None) -> List[Dict[str, Any]]:
        """Alle Dokumente in natürlicher Store-Reihenfolge."""
        ...

    def find_by_id(self, doc_id: str, *, ctx: Optional[RequestContext] = None) -> Optional[Dict[str, Any]]:
        ...

    def find_by_field(self, field: str, value: Any, *, ctx: Optional[RequestContext] = None) -> Optional[Dict[str, Any]]:
        ...

    def update(self, doc_id: str, doc: Mapping[str, Any], *, ctx: Optional[RequestContext] = None) -> int:
        """Ersetzt das Dokument; Rückgabe: Anzahl getroffener Dokumente (0|1)."""
        ...

    def delete(self, doc_id: str, *, ctx: Optional[RequestContext] = None) -> int:
        """Löscht das Dokument; Rückgabe: Anzahl gelöschter Dokumente (0|1)."""
        ...

    def count(self, *, ctx: Optional[RequestContext] = None) -> int:
        ...


# -----------------------
# Hilfsfunktionen
# -----------------------

def safe_request_id(ctx: Optional[RequestContext]) -> Optional[str]:
    """Kleine Hilfe, um request_id sicher auszulesen."""
    return getattr(ctx, "request_id", None)
