# Client side: persistence, image upload, manual recovery, session state
from .persistence import (
    CANONICAL_DOCUMENT_PATH,
    FailureKind,
    PersistenceClient,
    PersistOutcome,
    PersistResult,
    UploadResult,
)
from .recovery import (
    ClipboardError,
    ManualRecovery,
    RecoveryOutcome,
    RecoveryReport,
    tk_clipboard_writer,
)
from .images import ImageUploader, encode_data_uri, generate_image_name
from .session import DEMO_RECORDS, RecordSource, SearchSession, load_records, persister_for
from .registration import (
    RegistrationForm,
    RegistrationResult,
    RegistrationService,
    generate_record_id,
)

__all__ = [
    "CANONICAL_DOCUMENT_PATH",
    "FailureKind",
    "PersistenceClient",
    "PersistOutcome",
    "PersistResult",
    "UploadResult",
    "ClipboardError",
    "ManualRecovery",
    "RecoveryOutcome",
    "RecoveryReport",
    "tk_clipboard_writer",
    "ImageUploader",
    "encode_data_uri",
    "generate_image_name",
    "DEMO_RECORDS",
    "RecordSource",
    "SearchSession",
    "load_records",
    "persister_for",
    "RegistrationForm",
    "RegistrationResult",
    "RegistrationService",
    "generate_record_id",
]
