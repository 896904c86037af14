"""
Logging, metrics and health for the Reconnect server and client.

Both halves log through get_logger(). The server additionally tags each
log line with a request id and counts document and image writes so an
operator can see at /metrics whether saves are landing on disk.

Environment:
- RECONNECT_LOG_LEVEL: DEBUG, INFO, WARNING, ERROR (default: INFO)
- RECONNECT_LOG_FORMAT: json or text (default: json when RECONNECT_PRODUCTION is set)
- RECONNECT_PRODUCTION: 1/true/yes

    logger = get_logger(__name__)
    logger.info("Image saved", path=str(path), size_bytes=len(raw))
"""

import json
import logging
import os
import sys
import time
import uuid
from contextvars import ContextVar
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Dict, Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

if TYPE_CHECKING:
    from .core.storage import ProjectStorage

# Set per server request; empty on the client side
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

# Latency samples kept per series
MAX_SAMPLES = 1000


# ============================================================
# CONFIGURATION
# ============================================================

def _is_production() -> bool:
    return os.environ.get("RECONNECT_PRODUCTION", "").lower() in ("1", "true", "yes")


def _get_log_level() -> int:
    name = os.environ.get("RECONNECT_LOG_LEVEL", "INFO").upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def _use_json_logging() -> bool:
    log_format = os.environ.get("RECONNECT_LOG_FORMAT", "").lower()
    if log_format in ("json", "text"):
        return log_format == "json"
    return _is_production()


# ============================================================
# FORMATTERS
# ============================================================

_STANDARD_RECORD_FIELDS = frozenset((
    "name", "msg", "args", "created", "levelname", "levelno",
    "pathname", "filename", "module", "lineno", "funcName",
    "exc_info", "exc_text", "stack_info", "message", "msecs",
    "relativeCreated", "thread", "threadName", "processName",
    "process", "taskName",
))


class StructuredFormatter(logging.Formatter):
    """
    One JSON object per line. Keyword fields passed to the logger become
    top-level keys, e.g.

        {"timestamp": "...", "level": "ERROR", "logger": "reconnect.api.routes",
         "message": "Document update failed", "request_id": "1f0c2a9e",
         "path": "/srv/reconnect/data", "error": "data directory is not writable"}
    """

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        request_id = request_id_var.get()
        if request_id:
            entry["request_id"] = request_id

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key in _STANDARD_RECORD_FIELDS or key.startswith("_"):
                continue
            try:
                json.dumps(value)
            except (TypeError, ValueError):
                value = str(value)
            entry[key] = value

        return json.dumps(entry)


class TextFormatter(logging.Formatter):
    """Console format for a local operator. Keyword fields are appended as key=value."""

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")
        request_id = request_id_var.get()
        prefix = f"[{request_id[:8]}] " if request_id else ""

        fields = " ".join(
            f"{key}={value}"
            for key, value in record.__dict__.items()
            if key not in _STANDARD_RECORD_FIELDS and not key.startswith("_")
        )
        line = f"{timestamp} {record.levelname:8} {prefix}{record.name}: {record.getMessage()}"
        if fields:
            line += f" ({fields})"

        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


class ContextLogger(logging.LoggerAdapter):
    """
    Accepts keyword fields on every log call:

        logger.warning("Using cached document", record_count=12)
    """

    _PASSTHROUGH = ("exc_info", "stack_info", "stacklevel", "extra")

    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple:
        extra = kwargs.get("extra", {})
        for key in [k for k in kwargs if k not in self._PASSTHROUGH]:
            extra[key] = kwargs.pop(key)
        kwargs["extra"] = extra
        return msg, kwargs


def get_logger(name: str) -> ContextLogger:
    return ContextLogger(logging.getLogger(name), {})


def setup_logging() -> None:
    """Install a single stdout handler on the root logger. Safe to call more than once."""
    level = _get_log_level()
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(StructuredFormatter() if _use_json_logging() else TextFormatter())
    root_logger.addHandler(handler)

    # Our middleware already logs each request; httpx logs every client call at INFO
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ============================================================
# REQUEST CONTEXT MIDDLEWARE
# ============================================================

class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Tags every server log line with a request id and logs one line per
    request: INFO for 2xx/3xx, WARNING for rejected saves and uploads.

    The id comes from the caller's X-Request-ID header when present and is
    echoed back on the response.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:8]
        request_id_var.set(request_id)

        logger = get_logger("reconnect.request")
        route = f"{request.method} {request.url.path}"
        start = time.perf_counter()

        try:
            response = await call_next(request)

            duration_ms = (time.perf_counter() - start) * 1000
            ok = response.status_code < 400
            logger.log(
                logging.INFO if ok else logging.WARNING,
                f"{route} -> {response.status_code}",
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                duration_ms=round(duration_ms, 2),
            )
            get_metrics().record_request(duration_ms, success=ok)

            response.headers["X-Request-ID"] = request_id
            return response
        except Exception as e:
            duration_ms = (time.perf_counter() - start) * 1000
            logger.exception(
                f"{route} -> 500",
                method=request.method,
                path=request.url.path,
                status_code=500,
                duration_ms=round(duration_ms, 2),
                error=str(e),
            )
            get_metrics().record_request(duration_ms, success=False)
            raise
        finally:
            request_id_var.set("")


# ============================================================
# METRICS
# ============================================================

def _keep_recent(samples: list, value: float) -> list:
    samples.append(value)
    return samples[-MAX_SAMPLES:] if len(samples) > MAX_SAMPLES else samples


@dataclass
class MetricsCollector:
    """
    Process-local counters for the registry.

    documents_written and images_uploaded count files that reached disk;
    writes_failed counts OS-level write failures of either kind.
    """

    documents_written: int = 0
    images_uploaded: int = 0
    writes_failed: int = 0
    records_appended: int = 0
    requests_total: int = 0
    requests_failed: int = 0

    write_latencies_ms: list = field(default_factory=list)
    request_latencies_ms: list = field(default_factory=list)

    def record_write(self, kind: str, latency_ms: float) -> None:
        """kind is "document" or "image"."""
        if kind == "document":
            self.documents_written += 1
        else:
            self.images_uploaded += 1
        self.write_latencies_ms = _keep_recent(self.write_latencies_ms, latency_ms)

    def record_write_failure(self) -> None:
        self.writes_failed += 1

    def record_request(self, latency_ms: float, success: bool) -> None:
        self.requests_total += 1
        if not success:
            self.requests_failed += 1
        self.request_latencies_ms = _keep_recent(self.request_latencies_ms, latency_ms)

    def get_summary(self) -> Dict[str, Any]:
        def percentile(data: list, p: float) -> Optional[float]:
            if not data:
                return None
            ordered = sorted(data)
            return ordered[min(int(len(ordered) * p), len(ordered) - 1)]

        return {
            "documents_written": self.documents_written,
            "images_uploaded": self.images_uploaded,
            "writes_failed": self.writes_failed,
            "records_appended": self.records_appended,
            "requests_total": self.requests_total,
            "requests_failed": self.requests_failed,
            "write_latency_p50_ms": percentile(self.write_latencies_ms, 0.5),
            "write_latency_p95_ms": percentile(self.write_latencies_ms, 0.95),
            "request_latency_p50_ms": percentile(self.request_latencies_ms, 0.5),
            "request_latency_p95_ms": percentile(self.request_latencies_ms, 0.95),
        }


_metrics = MetricsCollector()


def get_metrics() -> MetricsCollector:
    return _metrics


# ============================================================
# HEALTH CHECKS
# ============================================================

@dataclass
class HealthStatus:
    healthy: bool
    checks: Dict[str, Dict[str, Any]]
    duration_ms: float


def check_health(storage: Optional["ProjectStorage"] = None) -> HealthStatus:
    """
    The server is healthy when it is up and both data/ and img/ exist and
    accept a probe write. A read-only data/ means saves would fail, so it
    reports unhealthy even though requests are still served.
    """
    start = time.perf_counter()
    checks: Dict[str, Dict[str, Any]] = {"liveness": {"status": "healthy"}}
    healthy = True

    if storage is not None:
        for name, status in storage.directory_status().items():
            ok = status.exists and status.writable
            checks[f"{name}_directory"] = {
                "status": "healthy" if ok else "unhealthy",
                "path": status.path,
                "exists": status.exists,
                "writable": status.writable,
            }
            healthy = healthy and ok

    return HealthStatus(
        healthy=healthy,
        checks=checks,
        duration_ms=round((time.perf_counter() - start) * 1000, 2),
    )
