"""
Object storage access for uploaded files.

Everything goes through the ``documents`` storage alias (S3 via
django-storages in production, the filesystem or memory otherwise).
Backend failures surface as ExternalStorageError.
"""

import logging
import os
import uuid

from botocore.exceptions import BotoCoreError, ClientError
from django.conf import settings
from django.core.files.storage import storages

from .exceptions import DocumentValidationError, ExternalStorageError

logger = logging.getLogger(__name__)

STORAGE_ERRORS = (OSError, BotoCoreError, ClientError)


def document_storage():
    return storages['documents']


def build_storage_key(prefix: str, original_name: str) -> str:
    """Return a unique object name under ``prefix`` keeping the file extension."""
    extension = os.path.splitext(original_name)[1].lower()
    return f"{prefix.strip('/')}/{uuid.uuid4()}{extension}"


def validate_uploads(files, *, allowed_types=None) -> None:
    """
    Check a batch of uploaded files before anything is written.

    Raises:
        DocumentValidationError: If no files are given, too many are given,
            or any file is too large or of a disallowed type
    """
    if not files:
        raise DocumentValidationError("No files provided")

    max_files = settings.SOLARTRACK_MAX_FILES_PER_REQUEST
    if len(files) > max_files:
        raise DocumentValidationError(f"At most {max_files} files can be uploaded at once")

    max_size = settings.SOLARTRACK_MAX_UPLOAD_SIZE
    allowed = allowed_types or settings.SOLARTRACK_ALLOWED_UPLOAD_TYPES
    for f in files:
        if f.size > max_size:
            raise DocumentValidationError(
                f"{f.name} exceeds the maximum size of {max_size // (1024 * 1024)} MB"
            )
        if f.content_type not in allowed:
            raise DocumentValidationError(f"{f.name} has unsupported type {f.content_type}")


def store_file(file, *, prefix: str) -> str:
    """
    Save an uploaded file and return its storage key.

    Raises:
        ExternalStorageError: If the storage backend fails
    """
    key = build_storage_key(prefix, file.name)
    try:
        file.seek(0)
        stored_key = document_storage().save(key, file)
    except STORAGE_ERRORS as e:
        logger.exception("Failed to store %s under %s", file.name, key)
        raise ExternalStorageError(f"Failed to upload file: {file.name}") from e

    logger.info("Stored %s (%d bytes) as %s", file.name, file.size, stored_key)
    return stored_key


def delete_stored_file(key: str) -> None:
    """
    Remove an object from storage. Missing objects are ignored.

    Raises:
        ExternalStorageError: If the storage backend fails
    """
    try:
        document_storage().delete(key)
    except STORAGE_ERRORS as e:
        logger.exception("Failed to delete stored object %s", key)
        raise ExternalStorageError(f"Failed to delete file: {key}") from e
    logger.info("Deleted stored object %s", key)


def signed_url(key: str) -> str:
    """
    Return a time-limited URL for a stored object.

    Raises:
        ExternalStorageError: If the URL cannot be generated
    """
    try:
        return document_storage().url(key)
    except STORAGE_ERRORS as e:
        logger.exception("Failed to sign URL for %s", key)
        raise ExternalStorageError("Failed to generate download URL") from e
