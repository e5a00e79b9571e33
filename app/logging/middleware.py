import getpass
import logging
import platform
import socket
import time
from datetime import datetime
from typing import Callable

from fastapi import Request
from starlette.background import BackgroundTask
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from app.config import APPLICATION_ID
from app.core.database import SessionLocal
from app.logging.models import RequestLog

logger = logging.getLogger(__name__)

# Response types whose body is not worth storing
BINARY_CONTENT_TYPES = ("application/vnd.openxmlformats", "text/csv", "text/html")


def current_username() -> str:
    try:
        return getpass.getuser() or "unknown_user"
    except Exception:
        return "unknown_user"


def current_hostname() -> str:
    return socket.gethostname() or platform.node() or "unknown_host"


class LoggingMiddleware(BaseHTTPMiddleware):
    """Writes every API request and its response to the request log."""

    excluded_paths = ("/api/docs", "/api/openapi.json", "/api/redoc")

    def __init__(self, app: ASGIApp):
        super().__init__(app)
        self.username = current_username()
        self.hostname = current_hostname()
        self.application_id = APPLICATION_ID

    async def dispatch(self, request: Request, call_next: Callable):
        if not request.url.path.startswith("/api") or request.url.path.startswith(self.excluded_paths):
            return await call_next(request)

        start_time = time.time()

        body_bytes = await request.body()
        request_body = body_bytes.decode("utf-8", errors="ignore")

        # Reconstruct stream
        async def receive() -> dict:
            return {"type": "http.request", "body": body_bytes}

        request = Request(request.scope, receive=receive)
        # Exception handlers tag handled errors through the shared scope state
        request.state.error_type = None

        response = await call_next(request)
        error_type = request.state.error_type
        duration_ms = (time.time() - start_time) * 1000
        status_code = response.status_code
        content_type = response.headers.get("content-type", "")

        response_chunks = []
        if hasattr(response, "body_iterator"):
            original_iterator = response.body_iterator

            async def buffer_iterator():
                async for chunk in original_iterator:
                    response_chunks.append(chunk)
                    yield chunk

            response.body_iterator = buffer_iterator()

        def log_to_db():
            if content_type.startswith(BINARY_CONTENT_TYPES):
                body_to_log = f"[{content_type} body not logged]"
            else:
                body_to_log = b"".join(response_chunks).decode("utf-8", errors="ignore")

            try:
                with SessionLocal() as session:
                    session.add(RequestLog(
                        timestamp=datetime.now(),
                        method=request.method,
                        path=str(request.url.path),
                        status_code=status_code,
                        client_ip=request.client.host if request.client else None,
                        request_body=request_body,
                        response_body=body_to_log,
                        error_type=error_type,
                        processing_time=duration_ms,
                        user_agent=request.headers.get("user-agent"),
                        username=self.username,
                        hostname=self.hostname,
                        application_id=self.application_id,
                    ))
                    session.commit()
            except Exception as e:
                logger.error("Could not write request log for %s: %s", request.url.path, e)

        response.background = getattr(response, "background", None) or BackgroundTask(log_to_db)
        return response
