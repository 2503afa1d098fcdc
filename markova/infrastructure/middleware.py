import logging
import time

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from markova.logging_config import generate_request_id, request_id, caller_id

logger = logging.getLogger(__name__)

# Rehosted video downloads are polled by players; keep them out of INFO
QUIET_PREFIXES = ("/download-video/",)


class LoggingMiddleware(BaseHTTPMiddleware):
    """Tags every log line with the request and caller, and logs one line per exchange"""

    async def dispatch(self, request: Request, call_next):
        req_id = request.headers.get("x-request-id") or generate_request_id()
        request_token = request_id.set(req_id)
        caller_token = caller_id.set(request.headers.get("x-user-id"))

        path = request.url.path
        log = logger.debug if path.startswith(QUIET_PREFIXES) else logger.info
        log("HTTP request received", extra={
            "event": "http_request",
            "method": request.method,
            "path": path,
            "client_ip": request.client.host if request.client else "unknown",
            "user_agent": request.headers.get("user-agent")
        })

        started = time.monotonic()
        try:
            response = await call_next(request)
            log("HTTP response sent", extra={
                "event": "http_response",
                "method": request.method,
                "path": path,
                "status_code": response.status_code,
                "duration_ms": round((time.monotonic() - started) * 1000, 2)
            })
            response.headers["X-Request-ID"] = req_id
            return response
        finally:
            request_id.reset(request_token)
            caller_id.reset(caller_token)
