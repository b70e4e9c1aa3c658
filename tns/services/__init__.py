# -*- coding: utf-8 -*-

# Ports / Fehler / Context
from .ports import (
    DuplicateTopicError,
    InvalidIDError,
    NotFoundError,
    RequestContext,
    ServiceError,
    StorageError,
    TopicStorePort,
    ValidationError,
)

# Adapter (Default-Implementierung auf Basis SQLite)
from .adapters import SQLiteTopicStore

from .topic_service import TopicRegistry

__all__ = [
    # Ports
    "TopicStorePort",
    "RequestContext",
    # Fehler
    "ServiceError",
    "ValidationError",
    "InvalidIDError",
    "DuplicateTopicError",
    "NotFoundError",
    "StorageError",
    # Adapter
    "SQLiteTopicStore",
    # Services
    "TopicRegistry",
]
