"""
Persistence Client

Talks to the persistence server over HTTP (httpx).

Nothing here raises for network or server failures. Every call returns
an explicit result so the call site decides what a failure means:
a manual-recovery prompt for the document, a log line for an image.
There are no retries.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Sequence

import httpx

from ..core.cache import DOCUMENT_KEY, LocalCache
from ..observability import get_logger
from ..schemas import PersonRecord, build_document

logger = get_logger(__name__)


CANONICAL_DOCUMENT_PATH = "data/persons.json"


class PersistOutcome(str, Enum):
    COMMITTED = "committed"
    FAILED = "failed"
    SKIPPED = "skipped"  # never sent; saving would clobber the server document


class FailureKind(str, Enum):
    """Why a call failed."""
    NETWORK_UNAVAILABLE = "network_unavailable"  # server unreachable
    HTTP_ERROR = "http_error"                    # non-2xx response
    REJECTED = "rejected"                        # 2xx with success=false


@dataclass
class PersistResult:
    """Outcome of sending the full record set to the server."""
    outcome: PersistOutcome
    document: dict[str, Any]
    message: str = ""
    path: Optional[str] = None
    failure: Optional[FailureKind] = None

    @property
    def committed(self) -> bool:
        return self.outcome == PersistOutcome.COMMITTED


@dataclass
class UploadResult:
    """Outcome of an image upload."""
    success: bool
    stored_name: str
    server_path: Optional[str] = None
    message: str = ""
    failure: Optional[FailureKind] = None


@dataclass
class _Reply:
    ok: bool
    body: dict[str, Any]
    message: str
    failure: Optional[FailureKind] = None


class PersistenceClient:
    """
    HTTP client for the persistence server.

    Usage:
        with PersistenceClient("http://localhost:3000") as client:
            result = client.persist(store.snapshot())
            if not result.committed:
                recovery.offer(result.document)
    """

    def __init__(
        self,
        base_url: str = "http://localhost:3000",
        timeout: float = 10.0,
        cache: Optional[LocalCache] = None,
        http_client: Optional[httpx.Client] = None,
    ):
        self._owns_client = http_client is None
        self._http = http_client or httpx.Client(base_url=base_url, timeout=timeout)
        self._cache = cache

    def close(self) -> None:
        if self._owns_client:
            self._http.close()

    def __enter__(self) -> "PersistenceClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _post(self, path: str, payload: dict[str, Any]) -> _Reply:
        try:
            response = self._http.post(path, json=payload)
        except httpx.HTTPError as e:
            logger.error("Persistence server unreachable", path=path, error=str(e))
            return _Reply(False, {}, f"Server unreachable: {e}", FailureKind.NETWORK_UNAVAILABLE)

        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}
        message = str(body.get("message", ""))

        if not response.is_success:
            logger.error(
                "Persistence server error",
                path=path,
                status_code=response.status_code,
                message=message,
            )
            return _Reply(False, body, message or f"HTTP {response.status_code}", FailureKind.HTTP_ERROR)

        if not body.get("success"):
            logger.error("Persistence server rejected request", path=path, message=message)
            return _Reply(False, body, message or "Request rejected", FailureKind.REJECTED)

        return _Reply(True, body, message)

    def persist(self, records: Sequence[PersonRecord]) -> PersistResult:
        """Serialize the full record set and overwrite the canonical document."""
        document = build_document(records)

        if self._cache is not None:
            self._cache.set(DOCUMENT_KEY, document)

        reply = self._post("/update-document", document)
        if not reply.ok:
            return PersistResult(
                outcome=PersistOutcome.FAILED,
                document=document,
                message=reply.message,
                path=reply.body.get("path"),
                failure=reply.failure,
            )

        logger.info("Canonical document saved", record_count=len(records), path=reply.body.get("path"))
        return PersistResult(
            outcome=PersistOutcome.COMMITTED,
            document=document,
            message=reply.message,
            path=reply.body.get("path"),
        )

    def upload_image(self, filename: str, encoded_image: str) -> UploadResult:
        """Send a data URI to be stored as img/<filename>."""
        reply = self._post("/upload-image", {"filename": filename, "encodedImage": encoded_image})
        if not reply.ok:
            return UploadResult(
                success=False,
                stored_name=filename,
                message=reply.message,
                failure=reply.failure,
            )
        return UploadResult(
            success=True,
            stored_name=filename,
            server_path=reply.body.get("path"),
            message=reply.message,
        )

    def fetch_document(self) -> dict[str, Any]:
        """
        Download the canonical document served at /data/persons.json.

        Raises:
            httpx.HTTPError: If the server is unreachable or answers non-2xx
            ValueError: If the body is not JSON
        """
        response = self._http.get(f"/{CANONICAL_DOCUMENT_PATH}")
        response.raise_for_status()
        return response.json()

    def document_exists(self) -> Optional[bool]:
        """
        Whether the server already holds a canonical document.

        None when the server cannot be reached.
        """
        try:
            response = self._http.head(f"/{CANONICAL_DOCUMENT_PATH}")
        except httpx.HTTPError as e:
            logger.warning("Persistence server unreachable", path=CANONICAL_DOCUMENT_PATH, error=str(e))
            return None
        return response.is_success

    def status(self) -> dict[str, Any]:
        """
        Raises:
            httpx.HTTPError: If the server is unreachable or answers non-2xx
        """
        response = self._http.get("/status")
        response.raise_for_status()
        return response.json()
