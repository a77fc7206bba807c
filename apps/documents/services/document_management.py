"""
Document upload, listing, download and deletion.

Uploads are validated completely (step, category, file size and type,
category capacity) before anything reaches object storage.
"""

import logging
from collections import defaultdict
from uuid import UUID

from django.db import transaction
from django.db.models import QuerySet

from apps.accounts.models import User
from apps.clients.models import Client
from apps.clients.permissions import get_accessible_client, user_can_access_client
from apps.clients.exceptions import ClientAccessDeniedError
from apps.documents.categories import CategorySpec, get_category
from apps.documents.models import DocumentFile, GpsImage

from .exceptions import (
    CategoryCapacityExceededError,
    DocumentNotFoundError,
    DocumentValidationError,
    ExternalStorageError,
)
from .storage import delete_stored_file, signed_url, store_file, validate_uploads

logger = logging.getLogger(__name__)


def resolve_category(step_number: int, category: str) -> CategorySpec:
    """
    Raises:
        DocumentValidationError: If the step or category is unknown
    """
    try:
        return get_category(step_number, category)
    except KeyError:
        raise DocumentValidationError(
            f"Unknown document category '{category}' for step {step_number}"
        )


def discard_stored_files(keys) -> None:
    """Remove stored objects, logging any that cannot be removed."""
    for key in keys:
        try:
            delete_stored_file(key)
        except ExternalStorageError:
            logger.error("Orphaned stored object left behind: %s", key)


def discard_after_commit(keys) -> None:
    """Remove stored objects after the current transaction commits."""
    keys = list(keys)
    if keys:
        transaction.on_commit(lambda: discard_stored_files(keys))


def upload_to_category(
    *,
    client_id: UUID,
    step_number: int,
    category: str,
    files: list,
    user: User
) -> list:
    """
    Upload files into a client's step category.

    This is a multi-step operation:
    1. Validate category and every file (size, type, count)
    2. Lock the client and check the category capacity
    3. Store each object, then write its DocumentFile row

    If anything fails after an object is stored, the stored objects are
    removed again and no rows are kept.

    Args:
        client_id: Owning client
        step_number: Workflow step (1..5)
        category: Category key from the step's table
        files: Uploaded files
        user: Acting user

    Returns:
        List of created DocumentFile instances

    Raises:
        DocumentValidationError: If category or any file is invalid
        CategoryCapacityExceededError: If the category would exceed max_files
        ClientNotFoundError: If client doesn't exist
        ClientAccessDeniedError: If user has no access
        ExternalStorageError: If the object storage fails
    """
    spec = resolve_category(step_number, category)
    validate_uploads(files)

    with transaction.atomic():
        client = get_accessible_client(client_id=client_id, user=user, for_update=True)

        existing = DocumentFile.objects.filter(
            client=client, step_number=step_number, category=category
        ).count()
        if existing + len(files) > spec.max_files:
            raise CategoryCapacityExceededError(
                f"{spec.label} accepts at most {spec.max_files} files "
                f"({existing} already uploaded, {len(files)} new)"
            )

        prefix = f"clients/{client.id}/step{step_number}/{category}"
        stored_keys = []
        documents = []
        try:
            for f in files:
                key = store_file(f, prefix=prefix)
                stored_keys.append(key)
                documents.append(DocumentFile.objects.create(
                    client=client,
                    step_number=step_number,
                    category=category,
                    original_name=f.name,
                    storage_key=key,
                    size=f.size,
                    mime_type=f.content_type,
                    uploaded_by=user,
                ))
        except Exception:
            discard_stored_files(stored_keys)
            raise

    logger.info(
        "Uploaded %d file(s) to client %s step %s/%s",
        len(documents), client.id, step_number, category
    )
    return documents


def get_document(*, document_id: UUID, user: User) -> DocumentFile:
    """
    Raises:
        DocumentNotFoundError: If document doesn't exist
        ClientAccessDeniedError: If user has no access to its client
    """
    try:
        document = DocumentFile.objects.select_related('client').get(id=document_id)
    except DocumentFile.DoesNotExist:
        raise DocumentNotFoundError(f"Document {document_id} not found")

    if not user_can_access_client(user, document.client):
        raise ClientAccessDeniedError("Access denied")
    return document


def delete_document(*, document_id: UUID, user: User) -> None:
    """
    Delete a document: the stored object first, then the record.

    Raises:
        DocumentNotFoundError: If document doesn't exist
        ClientAccessDeniedError: If user has no access
        ExternalStorageError: If the object could not be removed (record is kept)
    """
    document = get_document(document_id=document_id, user=user)
    delete_stored_file(document.storage_key)
    document.delete()
    logger.info("Deleted document %s of client %s", document_id, document.client_id)


def get_download_url(*, document_id: UUID, user: User) -> str:
    """Return a fresh signed URL for a document."""
    document = get_document(document_id=document_id, user=user)
    return signed_url(document.storage_key)


def list_documents(
    *,
    client_id: UUID,
    step_number: int,
    user: User,
    category: str = None
) -> QuerySet:
    """List a client's documents of one step, optionally one category."""
    client = get_accessible_client(client_id=client_id, user=user)
    queryset = DocumentFile.objects.filter(client=client, step_number=step_number)
    if category:
        resolve_category(step_number, category)
        queryset = queryset.filter(category=category)
    return queryset.select_related('uploaded_by').order_by('uploaded_at')


def list_client_documents(*, client_id: UUID, user: User) -> dict:
    """
    All documents of a client grouped by step, then category.

    Returns:
        {step_number: {category: [DocumentFile, ...]}}, only non-empty groups
    """
    client = get_accessible_client(client_id=client_id, user=user)
    grouped = defaultdict(lambda: defaultdict(list))
    documents = (
        DocumentFile.objects
        .filter(client=client)
        .select_related('uploaded_by')
        .order_by('step_number', 'category', 'uploaded_at')
    )
    for document in documents:
        grouped[document.step_number][document.category].append(document)
    return {step: dict(categories) for step, categories in grouped.items()}


def purge_client_files(*, client: Client) -> int:
    """
    Delete every document and GPS image record of a client.

    The stored objects are removed once the surrounding transaction
    commits, so a rollback never leaves records without their files.

    Returns:
        Number of files scheduled for removal
    """
    keys = []
    for model in (DocumentFile, GpsImage):
        records = model.objects.filter(client=client)
        keys.extend(records.values_list('storage_key', flat=True))
        records.delete()
    discard_after_commit(keys)
    return len(keys)
