# -*- coding: utf-8 -*-
from __future__ import annotations

from typing import Any, Dict, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


# ---------- Topic ----------

class TopicRecord(BaseModel):
    """
    Ein registrierter Topic-Eintrag.
    Zusätzliche Felder (endpoint, datatype, metadata, ...) sind opaker Payload
    und werden unverändert durchgereicht.
    """
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = Field(default=None, description="Vom Registry vergebene ObjectId (24 hex)")
    topic: str = Field(description="Topic-Name, eindeutig (case-sensitive)")

    @field_validator("topic")
    @classmethod
    def _topic_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("topic must not be blank")
        return v

    def to_document(self) -> Dict[str, Any]:
        """Serialisierung inkl. Extra-Feldern, ohne None-id."""
        doc = self.model_dump()
        if doc.get("id") is None:
            doc.pop("id", None)
        return doc


class TopicKey(BaseModel):
    """Schlüssel für Delete/Update: id bevorzugt, sonst topic."""
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    topic: Optional[str] = None

    @field_validator("topic")
    @classmethod
    def _strip_topic(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return v.strip() or None

