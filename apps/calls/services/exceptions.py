"""Domain exceptions for the calls app."""


class CallsServiceError(Exception):
    """Base exception for calls services."""
    pass


class PhoneNumberValidationError(CallsServiceError):
    """Raised for a malformed phone number or import request."""
    pass


class PhoneNumberNotFoundError(CallsServiceError):
    """Raised when a phone number does not exist."""
    pass


class DuplicatePhoneNumberError(CallsServiceError):
    """Raised when a phone number already exists."""
    pass


class PhoneNumberInUseError(CallsServiceError):
    """Raised when a phone number cannot be deleted yet."""
    pass


class NoAvailableNumbersError(CallsServiceError):
    """Raised when no phone number can be assigned or called."""
    pass


class InvalidAssigneeError(CallsServiceError):
    """Raised when phone numbers are assigned to someone who is not a caller."""
    pass


class AssigneeNotFoundError(CallsServiceError):
    """Raised when the assignee user does not exist."""
    pass


class CallNotFoundError(CallsServiceError):
    """Raised when a call does not exist."""
    pass


class AlreadyCalledError(CallsServiceError):
    """Raised when the caller has already called the number."""
    pass


class FollowUpNotFoundError(CallsServiceError):
    """Raised when a follow-up does not exist."""
    pass


class CallsAccessDeniedError(CallsServiceError):
    """Raised when the user may not act on the number, call or follow-up."""
    pass


class BulkImportCancelledError(CallsServiceError):
    """
    Raised when a bulk import is cancelled between batches.

    Batches committed before cancellation stay applied; ``result`` holds
    what was processed.
    """

    def __init__(self, message, result):
        super().__init__(message)
        self.result = result
