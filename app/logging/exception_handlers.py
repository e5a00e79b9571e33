# app/logging/exception_handlers.py

import json
import logging
import traceback
from datetime import datetime
from typing import Any, Optional

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.config import APPLICATION_ID
from app.core.database import SessionLocal
from app.logging.middleware import current_hostname, current_username
from app.logging.models import RequestLog

logger = logging.getLogger(__name__)

USERNAME = current_username()
HOSTNAME = current_hostname()


def safe_json_dumps(obj: Any) -> str:
    return json.dumps(obj, indent=2, default=str)


def _write_log(request: Request, status_code: int, response_body: Any, error_type: Optional[str]) -> None:
    """Log row for errors that never produce a response through LoggingMiddleware"""
    try:
        with SessionLocal() as session:
            session.add(RequestLog(
                timestamp=datetime.now(),
                method=request.method,
                path=str(request.url.path),
                status_code=status_code,
                client_ip=request.client.host if request.client else None,
                request_body=None,
                response_body=safe_json_dumps(response_body),
                error_type=error_type,
                processing_time=None,
                user_agent=request.headers.get("user-agent"),
                username=USERNAME,
                hostname=HOSTNAME,
                application_id=APPLICATION_ID,
            ))
            session.commit()
    except Exception as log_error:
        logger.error("Error logging exception for %s: %s", request.url.path, log_error)


async def general_exception_handler(request: Request, exc: Exception):
    """Handle all unhandled exceptions and log them to database"""
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    _write_log(
        request,
        500,
        {"error": str(exc), "type": type(exc).__name__, "traceback": traceback.format_exc()},
        type(exc).__name__,
    )
    return JSONResponse(status_code=500, content={"detail": "Internal Server Error"})


async def request_validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle request validation errors; LoggingMiddleware writes the log row"""
    errors = json.loads(safe_json_dumps(exc.errors()))
    request.state.error_type = type(exc).__name__
    logger.info("Validation error on %s %s: %s", request.method, request.url.path, errors)
    return JSONResponse(status_code=422, content={"detail": errors})


async def http_exception_handler(request: Request, exc: HTTPException):
    """Handle HTTP exceptions; LoggingMiddleware writes the log row"""
    if exc.status_code >= 400 and isinstance(exc.detail, dict):
        request.state.error_type = exc.detail.get("debug_info", {}).get("error_type")

    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=getattr(exc, "headers", None),
    )
