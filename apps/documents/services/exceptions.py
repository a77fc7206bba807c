"""Domain exceptions for the documents app."""


class DocumentsServiceError(Exception):
    """Base exception for documents services."""
    pass


class DocumentValidationError(DocumentsServiceError):
    """Raised for unknown steps/categories or files failing size/type checks."""
    pass


class DocumentNotFoundError(DocumentsServiceError):
    """Raised when a document or GPS image does not exist."""
    pass


class CategoryCapacityExceededError(DocumentsServiceError):
    """Raised when an upload would exceed a category's file limit."""
    pass


class ExternalStorageError(DocumentsServiceError):
    """Raised when the object storage fails to save, delete or sign a file."""
    pass
