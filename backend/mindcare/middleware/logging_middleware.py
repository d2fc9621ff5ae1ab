"""
ASGI middleware that logs API requests and responses.

Pure ASGI (not BaseHTTPMiddleware) so it stays transparent to the wrapped
application. Request and response bodies are captured while being passed
through, then logged with credentials filtered and large payloads truncated.
"""

import json
import logging
import time
import uuid
from typing import List, Optional
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from ..core.logging_config import filter_sensitive_data, truncate_large_data

logger = logging.getLogger(__name__)

MAX_BODY_LOG_LENGTH = 5000


def _sanitize_body(chunks: List[bytes]) -> Optional[str]:
    """Join captured body chunks into a filtered, truncated string."""
    raw = b"".join(chunks)
    if not raw:
        return None
    text = raw.decode("utf-8", errors="ignore")
    try:
        payload = json.loads(text)
    except json.JSONDecodeError:
        return truncate_large_data(text, max_length=MAX_BODY_LOG_LENGTH)
    filtered = filter_sensitive_data(payload)
    return truncate_large_data(json.dumps(filtered, ensure_ascii=False), max_length=MAX_BODY_LOG_LENGTH)


def _extract_error_reason(response_text: Optional[str]) -> Optional[str]:
    """Pull the error detail out of a JSON error body, if there is one."""
    if not response_text:
        return None
    try:
        payload = json.loads(response_text)
    except json.JSONDecodeError:
        return truncate_large_data(response_text, max_length=500)
    if isinstance(payload, dict):
        for key in ("detail", "message", "error"):
            if payload.get(key):
                return str(payload[key])
    return truncate_large_data(response_text, max_length=500)


class RequestLoggingMiddleware:
    """Pure ASGI middleware to log all API requests and responses."""

    def __init__(self, app: ASGIApp, exclude_paths: Optional[list] = None):
        """
        Args:
            app: The ASGI application
            exclude_paths: Paths that are passed through without logging
        """
        self.app = app
        self.exclude_paths = exclude_paths or ["/health", "/"]

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or scope.get("path", "") in self.exclude_paths:
            await self.app(scope, receive, send)
            return

        start_time = time.time()
        request_id = uuid.uuid4().hex[:12]
        method = scope.get("method", "UNKNOWN")
        path = scope.get("path", "")
        client = scope.get("client")

        request_chunks: List[bytes] = []
        response_chunks: List[bytes] = []
        status_code = 0

        async def logging_receive() -> Message:
            message = await receive()
            if message["type"] == "http.request":
                request_chunks.append(message.get("body", b""))
            return message

        async def logging_send(message: Message) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message.get("status", 0)
            elif message["type"] == "http.response.body":
                response_chunks.append(message.get("body", b""))
            await send(message)

        logger.info(
            f"Request started: {method} {path}",
            extra={"extra_fields": {
                "request_id": request_id,
                "method": method,
                "path": path,
                "client": client[0] if client else None,
            }}
        )

        try:
            await self.app(scope, logging_receive, logging_send)
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            logger.error(
                f"Request failed: {method} {path} - {str(e)}",
                exc_info=True,
                extra={"extra_fields": {
                    "request_id": request_id,
                    "path": path,
                    "duration_ms": round(duration_ms, 2),
                    "error": str(e),
                }}
            )
            raise

        duration_ms = (time.time() - start_time) * 1000
        request_body = _sanitize_body(request_chunks)
        response_body = _sanitize_body(response_chunks)
        error_reason = _extract_error_reason(response_body) if status_code >= 400 else None

        if status_code < 400:
            log_level = logging.INFO
        elif status_code < 500:
            log_level = logging.WARNING
        else:
            log_level = logging.ERROR

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(f"Request body: {request_body or '-'} | Response body: {response_body or '-'}")

        message = f"Request completed: {method} {path} - {status_code} ({duration_ms:.2f}ms)"
        if error_reason:
            message += f" | error_reason={error_reason}"

        logger.log(
            log_level,
            message,
            extra={"extra_fields": {
                "request_id": request_id,
                "method": method,
                "path": path,
                "status_code": status_code,
                "duration_ms": round(duration_ms, 2),
                "request_body": request_body,
                "response_body": response_body,
                "error_reason": error_reason,
            }}
        )
