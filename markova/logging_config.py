"""
Structured JSON logging for the Markova API.

Every record carries the request and caller it belongs to. Values passed
through extra= are scrubbed before they are written: credentials in query
strings are masked and inline image data is shortened.
"""
import logging
import json
import re
import time
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Optional, Dict, Any

# Set per request by the HTTP middleware, read by every log line
request_id: ContextVar[Optional[str]] = ContextVar('request_id', default=None)
caller_id: ContextVar[Optional[str]] = ContextVar('caller_id', default=None)

# Everything else on a record came in through extra=
RECORD_ATTRS = set(vars(logging.makeLogRecord({}))) | {'message', 'asctime', 'taskName'}

KEY_PARAM = re.compile(r"([?&]key=)[^&\s]+")
DATA_URL = re.compile(r"(data:[\w.+-]+/[\w.+-]+;base64,)([A-Za-z0-9+/=]{64,})")
MAX_VALUE_LENGTH = 2000


def scrub(value: Any) -> Any:
    """Mask API keys and shorten inline base64 payloads"""
    if isinstance(value, str):
        value = KEY_PARAM.sub(r"\1***", value)
        value = DATA_URL.sub(lambda m: f"{m.group(1)}<{len(m.group(2))} chars>", value)
        if len(value) > MAX_VALUE_LENGTH:
            value = value[:MAX_VALUE_LENGTH] + "..."
        return value
    if isinstance(value, dict):
        return {k: scrub(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [scrub(v) for v in value]
    return value


class StructuredFormatter(logging.Formatter):
    """One JSON object per line"""

    def __init__(self, service_name: str = "markova"):
        super().__init__()
        self.service_name = service_name

    def format(self, record):
        log_entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": scrub(record.getMessage()),
            "service": self.service_name
        }

        req_id = request_id.get()
        if req_id:
            log_entry["request_id"] = req_id
        caller = caller_id.get()
        if caller:
            log_entry["caller"] = caller

        for key, value in record.__dict__.items():
            if key not in RECORD_ATTRS:
                log_entry[key] = scrub(value)

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str, ensure_ascii=False)


def setup_logging(service_name: str = "markova", log_level: str = "INFO"):
    """Attach the JSON handler to the package logger"""
    logger = logging.getLogger("markova")
    logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(StructuredFormatter(service_name))
    logger.addHandler(handler)
    logger.propagate = False

    # The GenAI SDK and aiohttp log full request URLs at DEBUG
    for noisy in ("google_genai", "httpx", "aiohttp.access"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    return logger


class TimingContext:
    """Logs start, completion or failure of a remote generation step"""

    def __init__(self, operation_name: str, logger: logging.Logger, extra_data: Optional[Dict[str, Any]] = None):
        self.operation_name = operation_name
        self.logger = logger
        self.extra_data = extra_data or {}
        self.start_time = None
        self.end_time = None

    def __enter__(self):
        self.start_time = time.monotonic()
        self.logger.info(f"Starting {self.operation_name}", extra={
            "operation": self.operation_name,
            "event": "start",
            **self.extra_data
        })
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.end_time = time.monotonic()
        details = {
            "operation": self.operation_name,
            "duration_ms": round(self.duration_ms, 2),
            **self.extra_data
        }
        if exc_type is None:
            self.logger.info(f"Completed {self.operation_name}", extra={"event": "complete", **details})
        else:
            self.logger.error(f"Failed {self.operation_name}", extra={
                "event": "error",
                "error_type": exc_type.__name__,
                "error_message": str(exc_val),
                **details
            })

    @property
    def duration_ms(self) -> Optional[float]:
        if self.start_time is None:
            return None
        end = self.end_time or time.monotonic()
        return (end - self.start_time) * 1000


def generate_request_id() -> str:
    return uuid.uuid4().hex[:12]


def log_external_api_call(logger: logging.Logger, service: str, endpoint: str, method: str = "POST",
                          model: Optional[str] = None, response_status: Optional[int] = None,
                          duration_ms: Optional[float] = None, error: Optional[str] = None):
    """Log one call to the remote generation service"""
    log_data = {
        "event": "external_api_call",
        "external_service": service,
        "endpoint": endpoint,
        "method": method,
        "model": model,
        "response_status": response_status,
        "duration_ms": duration_ms
    }

    if error:
        log_data["error"] = error
        logger.error(f"External API call failed: {service}", extra=log_data)
    else:
        logger.info(f"External API call: {service}", extra=log_data)
