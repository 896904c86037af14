"""
Registration

Creates a person record from form input and pushes it through the store.

Flow:
    photo selected? -> upload (failure is non-fatal)
    build record    -> id, today's date, photo path or placeholder
    store.append    -> in-memory append + persistence
    persist failed? -> manual recovery prompt

Registration never fails because of persistence or upload problems. The
in-memory record set is the source of truth for the running session.
"""

import secrets
import string
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Callable, Optional, Union

from pydantic import BaseModel, Field

from ..core import RecordStore
from ..observability import get_logger
from ..schemas import PLACEHOLDER_PHOTO, Category, ContactInfo, Gender, PersonRecord
from .images import ImageUploader
from .persistence import PersistOutcome, PersistResult, UploadResult
from .recovery import ManualRecovery, RecoveryReport

logger = get_logger(__name__)


_ID_ALPHABET = string.ascii_lowercase + string.digits


def generate_record_id() -> str:
    """'id_' followed by nine random base-36 characters."""
    return "id_" + "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))


class RegistrationForm(BaseModel):
    """Raw registration input. Only presence is checked."""
    name: str = Field(..., min_length=1)
    age: int = Field(..., ge=0)
    gender: Gender = Gender.NOT_SPECIFIED
    category: Category
    description: str = ""
    location: str = Field(..., min_length=1)
    contact_name: str = ""
    contact_phone: str = ""
    contact_email: str = ""
    additional_details: str = ""


@dataclass
class RegistrationResult:
    record: PersonRecord
    upload: Optional[UploadResult] = None
    persisted: Optional[PersistResult] = None
    recovery: Optional[RecoveryReport] = None


class RegistrationService:
    """Registers people into a RecordStore."""

    def __init__(
        self,
        store: RecordStore,
        uploader: Optional[ImageUploader] = None,
        recovery: Optional[ManualRecovery] = None,
        id_generator: Callable[[], str] = generate_record_id,
        today: Callable[[], date] = date.today,
    ):
        self._store = store
        self._uploader = uploader
        self._recovery = recovery
        self._id_generator = id_generator
        self._today = today

    def register(
        self,
        form: RegistrationForm,
        photo: Optional[Union[Path, bytes]] = None,
        photo_name: Optional[str] = None,
    ) -> RegistrationResult:
        """
        Register a person.

        Raises:
            DuplicateRecordError: If the generated id is already taken
            OSError: If the photo file cannot be read
        """
        upload = None
        photo_url = PLACEHOLDER_PHOTO

        if photo is not None and self._uploader is not None:
            upload = self._uploader.upload(photo, photo_name)
            if upload.success:
                photo_url = upload.server_path or f"img/{upload.stored_name}"

        record = PersonRecord(
            id=self._id_generator(),
            name=form.name,
            age=form.age,
            gender=form.gender,
            category=form.category,
            description=form.description,
            location=form.location,
            date_reported=self._today().isoformat(),
            photo_url=photo_url,
            contact_info=ContactInfo(
                name=form.contact_name,
                email=form.contact_email,
                phone=form.contact_phone,
            ),
            additional_details=form.additional_details,
        )

        appended = self._store.append(record)
        persisted: Optional[PersistResult] = appended.persisted

        recovery = None
        failed = persisted is not None and persisted.outcome == PersistOutcome.FAILED
        if failed and self._recovery is not None:
            recovery = self._recovery.offer(persisted.document)

        logger.info(
            "Person registered",
            record_id=str(record.id),
            persisted=persisted.committed if persisted is not None else None,
        )
        return RegistrationResult(
            record=record,
            upload=upload,
            persisted=persisted,
            recovery=recovery,
        )
