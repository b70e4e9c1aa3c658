# -*- coding: utf-8 -*-
from __future__ import annotations

import json
import logging
import os
import time
import uuid
from typing import Any, Optional

from fastapi import FastAPI, Request

from . import settings


def _level_from_text(text: str) -> int:
    mapping = {
        "CRITICAL": logging.CRITICAL,
        "ERROR": logging.ERROR,
        "WARN": logging.WARNING,
        "WARNING": logging.WARNING,
        "INFO": logging.INFO,
        "DEBUG": logging.DEBUG,
        "NOTSET": logging.NOTSET,
    }
    return mapping.get((text or "INFO").upper(), logging.INFO)


def setup_logging() -> logging.Logger:
    """
    Initialisiert das "app"-Logging nach Env:
      - LOG_LEVEL: INFO|DEBUG|...
      - LOG_FORMAT: json|console
    Modul-Logger unter "tns.*" werden ebenfalls an diesen Handler gehängt.
    """
    level = _level_from_text(getattr(settings, "LOG_LEVEL", "INFO"))
    fmt = str(getattr(settings, "LOG_FORMAT", "json")).lower()

    handler = logging.StreamHandler()
    if fmt == "console":
        formatter = logging.Formatter(
            fmt="%(asctime)s %(levelname)s %(name)s - %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S%z",
        )
    else:
        # JSON: wir loggen JSON-Strings, daher simple Formatter
        formatter = logging.Formatter("%(message)s")
    handler.setFormatter(formatter)

    for name in ("app", "tns"):
        lg = logging.getLogger(name)
        lg.setLevel(level)
        lg.handlers.clear()
        lg.addHandler(handler)
        lg.propagate = False
    return logging.getLogger("app")


def json_log(logger: logging.Logger, level: int, event: str, **fields: Any) -> None:
    payload = {"event": event, **fields}
    try:
        msg = json.dumps(payload, ensure_ascii=False, separators=(",", ":"), default=str)
    except (TypeError, ValueError):
        msg = json.dumps({"event": event, "error": "json_dump_failed"})
    logger.log(level, msg)


def register_request_logging(app: FastAPI, logger: Optional[logging.Logger] = None) -> None:
    """
    Registriert Framework-weit:
      - Request-Start- und Ende-Logging
      - Korrelation via X-Request-ID (Header) oder generiertem UUID4
      - Response-Header X-Request-ID
      - Fehler-Logging für unbehandelte Exceptions
    """
    lg = logger or logging.getLogger("app")

    @app.middleware("http")
    async def _log_request(request: Request, call_next):
        started = time.time()
        rid = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.correlation_id = rid

        json_log(
            lg,
            logging.INFO,
            "http.request",
            phase="start",
            correlation_id=rid,
            method=request.method,
            path=request.url.path,
            client_ip=request.headers.get("X-Forwarded-For") or getattr(request.client, "host", None),
            user_agent=request.headers.get("User-Agent"),
        )
        try:
            response = await call_next(request)
        except Exception as exc:
            json_log(
                lg,
                logging.ERROR,
                "http.error",
                correlation_id=rid,
                method=request.method,
                path=request.url.path,
                exc_type=exc.__class__.__name__,
                message=str(exc),
            )
            raise

        response.headers["X-Request-ID"] = rid
        json_log(
            lg,
            logging.INFO,
            "http.request",
            phase="end",
            correlation_id=rid,
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=int((time.time() - started) * 1000),
        )
        return response


def log_runtime_config_once(logger: Optional[logging.Logger] = None) -> None:
    """
    Loggt genau einmal einen strukturierten runtime_config Snapshot.
    """
    lg = logger or logging.getLogger("app")
    meta = {
        "git_commit": os.environ.get("GIT_COMMIT"),
        "image_tag": os.environ.get("IMAGE_TAG"),
    }
    json_log(lg, logging.INFO, "runtime_config", config=settings.get_runtime_config(), meta=meta)
