"""
Persistence Server Routes

Stateless endpoints that write the canonical document and uploaded
images under the configured project root.

    GET  /status            directory existence + writability
    POST /update-document   full overwrite of data/persons.json
    POST /upload-image      write img/<filename> from a base64 data URI

Every endpoint answers with {success, message, ...context}. Bodies are
validated by hand so that a malformed body is a 400 with the documented
message, not FastAPI's default 422.

The same router is mounted at the root and under /api.
"""

import base64
import re
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

from reconnect.core import (
    DEFAULT_PAGE_SIZE,
    CriteriaError,
    DirectoryUnwritableError,
    FilterCriteria,
    InvalidFilenameError,
    ProjectStorage,
    WriteFailedError,
    filter_records,
    paginate,
)
from reconnect.observability import get_logger
from reconnect.schemas import records_from_document
from reconnect.schemas.person import CamelModel


logger = get_logger(__name__)

router = APIRouter(tags=["Persistence"])
api_router = APIRouter(prefix="/api", tags=["Registry"])


# Header of a data URI, e.g. "data:image/png;base64,"
DATA_URI_HEADER = re.compile(r"^data:[\w/+.-]+;base64,")

INVALID_DOCUMENT = "Invalid data format"
MISSING_IMAGE_FIELDS = "Missing filename or image data"
LOGIN_UNAVAILABLE = "Login feature is not available in this demo version."


# ============================================================
# Request/Response Models
# ============================================================

class UpdateDocumentRequest(BaseModel):
    """Only the top-level shape is checked; entries are written as given."""
    model_config = ConfigDict(extra="allow")

    persons: list[Any]


class UploadImageRequest(BaseModel):
    filename: str = ""
    encoded_image: str = Field(
        default="",
        validation_alias=AliasChoices("encodedImage", "imageData", "encoded_image"),
    )


class DirectoryInfo(BaseModel):
    path: str
    exists: bool
    writable: bool


class StatusResponse(CamelModel):
    status: str
    server_time: str
    project_root: str
    directories: dict[str, DirectoryInfo]


class SearchResponse(CamelModel):
    results: list[dict[str, Any]]
    total: int
    page: int
    total_pages: int
    has_previous: bool
    has_next: bool
    indicator: str


# ============================================================
# Helper Functions
# ============================================================

class BodyTooLargeError(Exception):
    """Raised when a request body exceeds the configured size limit."""

    def __init__(self, limit: int):
        super().__init__(f"Request body exceeds {limit} bytes")
        self.limit = limit


def get_storage(request: Request) -> ProjectStorage:
    """Get project storage from app state."""
    return request.app.state.storage


def failure(status_code: int, message: str, **context: Any) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": message, **context},
    )


async def read_json_body(request: Request) -> Optional[Any]:
    """
    Parse the request body as JSON.

    Returns None when the body is empty or not JSON, so callers can
    answer with their own validation message.

    Raises:
        BodyTooLargeError: If the body exceeds the configured limit
    """
    body = await request.body()
    limit = request.app.state.config.max_body_bytes
    if len(body) > limit:
        raise BodyTooLargeError(limit)
    if not body:
        return None
    try:
        return await request.json()
    except ValueError:
        return None


def decode_image(encoded: str) -> bytes:
    """
    Strip an optional data URI header and decode the base64 payload.

    Raises:
        ValueError: If the payload is not valid base64 (binascii.Error)
            or contains non-ASCII characters
    """
    payload = DATA_URI_HEADER.sub("", encoded.strip(), count=1)
    return base64.b64decode(payload, validate=True)


# ============================================================
# Endpoints
# ============================================================

@router.get("/status", response_model=StatusResponse)
async def status(request: Request):
    """Report the project root and the state of data/ and img/."""
    storage = get_storage(request)
    directories = {
        name: DirectoryInfo(path=s.path, exists=s.exists, writable=s.writable)
        for name, s in storage.directory_status().items()
    }
    return StatusResponse(
        status="ok",
        server_time=datetime.now(timezone.utc).isoformat(),
        project_root=str(storage.root),
        directories=directories,
    )


@router.post("/update-document")
async def update_document(request: Request):
    """
    Replace the canonical document wholesale.

    Body: {"persons": [...]}. Anything else is rejected before touching disk.
    """
    storage = get_storage(request)

    try:
        data = await read_json_body(request)
    except BodyTooLargeError as e:
        logger.warning("Rejected oversized body", path=request.url.path, limit=e.limit)
        return failure(413, str(e))

    try:
        UpdateDocumentRequest.model_validate(data)
    except ValidationError:
        logger.warning("Rejected document update", reason="invalid shape")
        return failure(400, INVALID_DOCUMENT)

    try:
        path = storage.write_document(data)
    except DirectoryUnwritableError as e:
        logger.error("Document update failed", path=str(e.path), error=str(e))
        return failure(500, str(e), path=str(e.path))
    except WriteFailedError as e:
        logger.error("Document update failed", path=str(e.path), error=str(e.cause))
        return failure(500, "Failed to update file", path=str(e.path), error=str(e.cause))

    return {
        "success": True,
        "message": "persons.json updated successfully",
        "path": str(path),
    }


@router.post("/upload-image")
async def upload_image(request: Request):
    """
    Store an uploaded image as img/<filename>, overwriting any existing file.

    Body: {"filename": "...", "encodedImage": "data:image/png;base64,..."}
    """
    storage = get_storage(request)

    try:
        data = await read_json_body(request)
    except BodyTooLargeError as e:
        logger.warning("Rejected oversized body", path=request.url.path, limit=e.limit)
        return failure(413, str(e))

    try:
        upload = UploadImageRequest.model_validate(data)
    except ValidationError:
        return failure(400, MISSING_IMAGE_FIELDS)

    if not upload.filename or not upload.encoded_image:
        return failure(400, MISSING_IMAGE_FIELDS)

    try:
        raw = decode_image(upload.encoded_image)
    except ValueError as e:
        logger.warning("Rejected image upload", filename=upload.filename, error=str(e))
        return failure(400, "Invalid image data", error=str(e))

    try:
        path = storage.write_image(upload.filename, raw)
    except InvalidFilenameError as e:
        return failure(400, str(e))
    except DirectoryUnwritableError as e:
        logger.error("Image upload failed", path=str(e.path), error=str(e))
        return failure(500, str(e), path=str(e.path))
    except WriteFailedError as e:
        logger.error("Image upload failed", path=str(e.path), error=str(e.cause))
        return failure(500, "Failed to upload image", error=str(e.cause))

    return {
        "success": True,
        "message": "Image uploaded successfully",
        "path": f"{storage.img_dir.name}/{upload.filename}",
        "fullPath": str(path),
    }


# Path used by the legacy browser client
api_router.add_api_route("/update-persons-json", update_document, methods=["POST"])


@api_router.get("/persons", response_model=SearchResponse)
async def search_persons(
    request: Request,
    location: Optional[str] = None,
    age_min: Optional[str] = None,
    age_max: Optional[str] = None,
    category: Optional[str] = None,
    since: Optional[str] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=100),
):
    """
    Search the canonical document.

    Uses the same filter and pagination rules as the client.
    """
    storage = get_storage(request)

    try:
        criteria = FilterCriteria.from_form({
            "location": location,
            "age_min": age_min,
            "age_max": age_max,
            "category": category,
            "since": since,
        })
    except CriteriaError as e:
        return failure(400, str(e))

    try:
        document = storage.read_document()
        records = records_from_document(document) if document is not None else []
    except (ValueError, ValidationError) as e:
        logger.error("Canonical document is unreadable", path=str(storage.document_path), error=str(e))
        return failure(500, "Canonical document is invalid", path=str(storage.document_path), error=str(e))

    matched = filter_records(records, criteria)
    window = paginate(matched, page, page_size)

    return SearchResponse(
        results=[r.model_dump(mode="json", by_alias=True) for r in window.items],
        total=len(matched),
        page=window.page_index,
        total_pages=window.total_pages,
        has_previous=window.has_previous,
        has_next=window.has_next,
        indicator=window.indicator,
    )


@api_router.post("/institution-login")
async def institution_login():
    """Institution login is not implemented in the demo."""
    return failure(501, LOGIN_UNAVAILABLE)
