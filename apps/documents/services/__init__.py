"""Services for documents business logic."""

from .exceptions import (
    DocumentsServiceError,
    DocumentValidationError,
    DocumentNotFoundError,
    CategoryCapacityExceededError,
    ExternalStorageError,
)
from .storage import (
    validate_uploads,
    store_file,
    delete_stored_file,
    signed_url,
)
from .category_tracking import (
    CategoryState,
    CategoryStatus,
    category_states,
    completion_from_states,
    list_category_state,
    completion_percentage,
)
from .document_management import (
    upload_to_category,
    get_document,
    delete_document,
    get_download_url,
    list_documents,
    list_client_documents,
    purge_client_files,
    discard_stored_files,
    discard_after_commit,
)
from .gps_images import (
    extract_exif_gps,
    is_valid_gps,
    upload_gps_image,
    list_gps_images,
    get_gps_image,
    get_gps_image_url,
    delete_gps_image,
)

__all__ = [
    # Exceptions
    'DocumentsServiceError',
    'DocumentValidationError',
    'DocumentNotFoundError',
    'CategoryCapacityExceededError',
    'ExternalStorageError',
    # Storage
    'validate_uploads',
    'store_file',
    'delete_stored_file',
    'signed_url',
    # Category Tracking
    'CategoryState',
    'CategoryStatus',
    'category_states',
    'completion_from_states',
    'list_category_state',
    'completion_percentage',
    # Document Management
    'upload_to_category',
    'get_document',
    'delete_document',
    'get_download_url',
    'list_documents',
    'list_client_documents',
    'purge_client_files',
    'discard_stored_files',
    'discard_after_commit',
    # GPS Images
    'extract_exif_gps',
    'is_valid_gps',
    'upload_gps_image',
    'list_gps_images',
    'get_gps_image',
    'get_gps_image_url',
    'delete_gps_image',
]
