# -*- coding: utf-8 -*-
from __future__ import annotations

import json
import logging
from typing import Any, Callable, Optional

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from tns.core import settings
from tns.services import RequestContext, ServiceError, TopicRegistry

logger = logging.getLogger(__name__)

router = APIRouter(prefix=settings.API_PREFIX, tags=["tns"])

_INVALID_PAYLOAD = "Invalid request payload"


def _registry(request: Request) -> TopicRegistry:
    return request.app.state.registry


def _ctx(request: Request) -> RequestContext:
    return RequestContext(request_id=getattr(request.state, "correlation_id", None))


def respond_with_error(code: int, msg: str) -> JSONResponse:
    return JSONResponse(content={"error": msg}, status_code=code)


def _error_response(e: ServiceError, *, client_message: Optional[str] = None) -> JSONResponse:
    """
    Einziges HTTP-Mapping der Registry-Fehler:
    Client-Fehler → 400, alles andere → 500.
    """
    if e.client_error:
        return respond_with_error(400, client_message or e.message)
    logger.error("Registry failure: %s (%s)", e.message, e.details)
    return respond_with_error(500, e.message)


async def _read_json_object(request: Request) -> Optional[dict]:
    """Decodiert den Body; None, wenn er fehlt oder kein JSON-Objekt ist."""
    try:
        data = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None
    return data if isinstance(data, dict) else None


async def _call(fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
    # Store-Zugriffe sind synchron und laufen auf dem Threadpool
    return await run_in_threadpool(fn, *args, **kwargs)


@router.get("/topic")
async def list_topics(request: Request) -> JSONResponse:
    """Alle registrierten Topics."""
    try:
        records = await _call(_registry(request).find_all, ctx=_ctx(request))
    except ServiceError as e:
        return _error_response(e)
    return JSONResponse(content=[r.model_dump() for r in records], status_code=200)


@router.post("/topic")
async def register_topic(request: Request) -> JSONResponse:
    """
    Registriert ein Topic.
    Body: { "topic": "...", ...beliebiger Payload }
    """
    data = await _read_json_object(request)
    if data is None:
        return respond_with_error(400, _INVALID_PAYLOAD)
    try:
        record = await _call(_registry(request).register, data, ctx=_ctx(request))
    except ServiceError as e:
        return _error_response(e)
    return JSONResponse(content=record.model_dump(), status_code=201)


@router.put("/topic")
async def resolve_topic(request: Request) -> JSONResponse:
    """
    Resolution über Payload: { "topic": "..." } → gespeicherter Record.
    Reiner Lesezugriff; kanonische Route ist GET /topic/{topic}.
    """
    data = await _read_json_object(request)
    if data is None or not isinstance(data.get("topic"), str):
        return respond_with_error(400, _INVALID_PAYLOAD)
    try:
        record = await _call(_registry(request).discover_topic, data["topic"], ctx=_ctx(request))
    except ServiceError as e:
        return _error_response(e)
    return JSONResponse(content=record.model_dump(), status_code=200)


@router.patch("/topic")
async def update_topic(request: Request) -> JSONResponse:
    """
    Ersetzt den Payload eines Topics.
    Body: { "id"?: "...", "topic"?: "...", ...Payload } (id bevorzugt)
    """
    data = await _read_json_object(request)
    if data is None:
        return respond_with_error(400, _INVALID_PAYLOAD)
    try:
        await _call(_registry(request).update, data, ctx=_ctx(request))
    except ServiceError as e:
        return _error_response(e)
    return JSONResponse(content={"result": "success"}, status_code=200)


@router.delete("/topic")
async def delete_topic(request: Request) -> JSONResponse:
    """
    Deregistriert ein Topic.
    Body: { "id"?: "...", "topic"?: "..." } (id bevorzugt)
    """
    data = await _read_json_object(request)
    if data is None:
        return respond_with_error(400, _INVALID_PAYLOAD)
    try:
        await _call(_registry(request).delete, data, ctx=_ctx(request))
    except ServiceError as e:
        return _error_response(e)
    return JSONResponse(content={"result": "success"}, status_code=200)


# Vor /topic/{topic:path} registrieren, sonst greift die Path-Route
@router.get("/topic/id/{topic_id}")
async def find_topic_by_id(request: Request, topic_id: str) -> JSONResponse:
    try:
        record = await _call(_registry(request).find_by_id, topic_id, ctx=_ctx(request))
    except ServiceError as e:
        return _error_response(e, client_message="Invalid id")
    return JSONResponse(content=record.model_dump(), status_code=200)


@router.get("/topic/{topic:path}")
async def discover_by_topic(request: Request, topic: str) -> JSONResponse:
    """Discovery per Name (exakter, case-sensitiver Vergleich)."""
    try:
        record = await _call(_registry(request).discover_topic, topic, ctx=_ctx(request))
    except ServiceError as e:
        return _error_response(e, client_message="Invalid topic")
    return JSONResponse(content=record.model_dump(), status_code=200)


@router.post("/health")
async def topic_healthcheck(request: Request) -> JSONResponse:
    """Healthcheck der registrierten Topics – nicht implementiert."""
    return respond_with_error(501, "topic healthcheck not implemented")
