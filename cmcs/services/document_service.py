"""
Document Attachment Service — validation gate + batch attach.

Acceptance is a pure function of (extension, size):
  - extension (case-insensitive) in ALLOWED_EXTENSIONS
  - size ≤ MAX_DOCUMENT_BYTES (5 MiB)

Accepted files get a random stored name ``{uuid4}{ext}``; the uploaded file
name is kept for display only.

Batches are processed one file at a time and each file commits on its own,
so a bad file is reported in ``errors`` while the rest still attach and the
parent claim is never rolled back.
"""

import logging
import os
import uuid

from cmcs.core.exceptions import (
    FileTooLargeError,
    IllegalTransitionError,
    NotFoundError,
    StorageFailureError,
    UnsupportedFileTypeError,
)
from cmcs.models import db
from cmcs.models.claim import OPEN_STATUSES, Claim, Document
from cmcs.services.storage import get_storage
from cmcs.utils.helpers import commit_or_raise

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = frozenset({
    ".pdf", ".docx", ".xlsx", ".doc", ".xls", ".jpg", ".jpeg", ".png",
})
MAX_DOCUMENT_BYTES = 5 * 1024 * 1024

# Failures reported per file instead of aborting the batch
_PER_FILE_ERRORS = (UnsupportedFileTypeError, FileTooLargeError, StorageFailureError)


def file_extension(file_name: str | None) -> str:
    return os.path.splitext(file_name or "")[1].lower()


def validate_document(file_name: str, content_type: str | None, size: int) -> str:
    """Gate a single upload. Returns the normalised extension.

    ``content_type`` is recorded as declared but does not affect acceptance.

    Raises:
        UnsupportedFileTypeError, FileTooLargeError
    """
    ext = file_extension(file_name)
    if ext not in ALLOWED_EXTENSIONS:
        raise UnsupportedFileTypeError(ext)
    if size > MAX_DOCUMENT_BYTES:
        raise FileTooLargeError(size, MAX_DOCUMENT_BYTES)
    return ext


def new_stored_name(ext: str) -> str:
    return f"{uuid.uuid4()}{ext}"


def _stream_size(stream) -> int:
    """Byte length of a seekable upload stream; leaves it rewound."""
    stream.seek(0, os.SEEK_END)
    size = stream.tell()
    stream.seek(0)
    return size


def _store_one(claim: Claim, upload, storage) -> Document:
    size = _stream_size(upload.stream)
    ext = validate_document(upload.filename, upload.content_type, size)
    stored_name = new_stored_name(ext)

    storage.save(stored_name, upload.stream)

    doc = Document(
        claim_id=claim.id,
        file_name=os.path.basename(upload.filename),
        stored_name=stored_name,
        content_type=upload.content_type,
        file_size=size,
        description=f"Supporting document for claim {claim.id}",
    )
    db.session.add(doc)
    try:
        commit_or_raise(f"attach document to claim {claim.id}")
    except StorageFailureError:
        storage.delete(stored_name)
        raise
    return doc


def attach_documents(claim_id: int, uploads, *, owner_id: int | None = None, storage=None) -> dict:
    """
    Attach a batch of uploads to an existing claim.

    Args:
        claim_id: Parent claim.
        uploads: Iterable of werkzeug FileStorage-like objects
                 (``filename``, ``content_type``, seekable ``stream``).
        owner_id: When given, the claim must belong to this user.
        storage: Blob backend; defaults to the app's configured storage.

    Returns:
        {"uploaded": [doc dicts], "errors": [{file_name, error, code}],
         "skipped": [empty file names]}

    Raises:
        NotFoundError: claim missing, or not owned by ``owner_id``.
        IllegalTransitionError: claim already approved or rejected.
    """
    claim = db.session.get(Claim, claim_id)
    if claim is None or (owner_id is not None and claim.user_id != owner_id):
        raise NotFoundError(
            resource="Claim",
            resource_id=claim_id,
            message="Claim not found or you don't have permission to upload documents for this claim.",
        )
    if claim.status not in OPEN_STATUSES:
        raise IllegalTransitionError(
            "Documents can only be attached to pending or coordinator-approved claims.",
            claim_id=claim_id, action="attach_documents", current_status=claim.status,
        )

    storage = storage or get_storage()
    results = {"uploaded": [], "errors": [], "skipped": []}

    for upload in uploads:
        name = upload.filename or ""
        if not name:
            continue
        if _stream_size(upload.stream) == 0:
            results["skipped"].append(name)
            continue
        try:
            doc = _store_one(claim, upload, storage)
            results["uploaded"].append(doc.to_dict())
        except _PER_FILE_ERRORS as e:
            logger.warning(
                "Document %s rejected for claim %s: %s", name, claim_id, e.message,
                extra={"claim_id": claim_id},
            )
            results["errors"].append({"file_name": name, "error": e.message, "code": e.code})

    logger.info(
        "Claim %s: %d document(s) attached, %d failed",
        claim.code, len(results["uploaded"]), len(results["errors"]),
        extra={"claim_id": claim_id},
    )
    return results
