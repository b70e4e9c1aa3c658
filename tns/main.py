#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
TNS API – FastAPI-App und uvicorn-Einstieg.
Öffnet den Topic-Store einmal pro Prozess (Lifespan) und reicht die
TopicRegistry über app.state an die Router weiter.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from tns.core import settings
from tns.core.logging_ext import log_runtime_config_once, register_request_logging, setup_logging
from tns.routers.topic_router import router as topic_router
from tns.services import ServiceError, SQLiteTopicStore, TopicRegistry

logger = logging.getLogger(__name__)


def create_app(database: Optional[str] = None, *, store: Optional[SQLiteTopicStore] = None) -> FastAPI:
    """
    App-Fabrik.
    - database: überschreibt settings.DATABASE
    - store: bereits geöffneter Store (Tests); wird dann nicht von der App geschlossen
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = store is None
        # Fehler beim Öffnen sind fatal: die Exception beendet den Start
        topic_store = store if store is not None else SQLiteTopicStore.connect(database or settings.DATABASE)
        app.state.store = topic_store
        app.state.registry = TopicRegistry(topic_store)
        log_runtime_config_once()
        logger.info("TNS started on %s:%s", settings.API_HOST, settings.API_PORT)
        yield
        if owned:
            topic_store.close()
        logger.info("TNS stopped")

    app = FastAPI(
        title="Topic Name Service",
        description="Registry für benannte Topics (Register/Discover/Update/Delete).",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_request_logging(app)
    app.include_router(topic_router)

    @app.exception_handler(Exception)
    async def _unhandled(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(content={"error": "internal_error"}, status_code=500)

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    @app.get("/livez")
    async def liveness():
        return {"status": "ok"}

    @app.get("/ready")
    async def readiness(request: Request):
        try:
            await run_in_threadpool(request.app.state.store.ping)
        except ServiceError as e:
            return JSONResponse(content={"status": "error", "checks": {"store": e.message}}, status_code=503)
        return {"status": "ok", "checks": {"store": "ok"}}

    @app.get("/api/runtime-config")
    async def runtime_config():
        return settings.get_runtime_config()

    return app


def main() -> None:
    setup_logging()
    uvicorn.run(
        create_app(),
        host=settings.API_HOST,
        port=settings.API_PORT,
        log_level=str(settings.LOG_LEVEL).lower(),
    )


if __name__ == "__main__":
    main()
