"""
Blob storage for claim documents.

Only local-disk storage ships today. Callers hand over a stored identifier
(generated by document_service, never the uploaded file name) and a byte
stream; any OSError surfaces as StorageFailureError.

Usage:
    from cmcs.services.storage import get_storage

    get_storage().save(stored_name, upload.stream)
"""

import logging
import os
import shutil

from flask import current_app

from cmcs.core.exceptions import StorageFailureError

logger = logging.getLogger(__name__)


class LocalFileStorage:
    """Stores blobs as flat files under ``root``."""

    def __init__(self, root: str):
        self.root = root

    def _path(self, stored_name: str) -> str:
        # Stored names are generated UUIDs; reject anything path-like regardless
        if os.path.basename(stored_name) != stored_name or stored_name in ("", ".", ".."):
            raise StorageFailureError(f"Invalid stored name: {stored_name!r}")
        return os.path.join(self.root, stored_name)

    def save(self, stored_name: str, stream) -> int:
        """Write ``stream`` to ``stored_name``. Returns bytes written."""
        path = self._path(stored_name)
        try:
            os.makedirs(self.root, exist_ok=True)
            with open(path, "xb") as fh:
                shutil.copyfileobj(stream, fh)
                written = fh.tell()
        except OSError as exc:
            logger.exception("Failed to store document blob %s", stored_name)
            raise StorageFailureError(f"Could not store {stored_name}") from exc
        logger.debug("Stored blob %s (%d bytes)", stored_name, written)
        return written

    def delete(self, stored_name: str) -> None:
        path = self._path(stored_name)
        try:
            os.remove(path)
        except FileNotFoundError:
            return
        except OSError as exc:
            logger.exception("Failed to delete document blob %s", stored_name)
            raise StorageFailureError(f"Could not delete {stored_name}") from exc

    def exists(self, stored_name: str) -> bool:
        return os.path.isfile(self._path(stored_name))


def get_storage() -> LocalFileStorage:
    """Return the storage backend configured for the current app."""
    return LocalFileStorage(current_app.config["UPLOAD_FOLDER"])
