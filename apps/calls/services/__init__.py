"""Services for calls business logic."""

from .exceptions import (
    CallsServiceError,
    PhoneNumberValidationError,
    PhoneNumberNotFoundError,
    DuplicatePhoneNumberError,
    PhoneNumberInUseError,
    NoAvailableNumbersError,
    InvalidAssigneeError,
    AssigneeNotFoundError,
    CallNotFoundError,
    AlreadyCalledError,
    FollowUpNotFoundError,
    CallsAccessDeniedError,
    BulkImportCancelledError,
)
from .phone_validation import (
    normalize_indian_mobile,
)
from .phone_numbers import (
    AreaCodeDeletion,
    Assignment,
    get_phone_number,
    create_phone_number,
    update_phone_number,
    delete_phone_number,
    delete_by_area_code,
    list_phone_numbers,
    list_area_codes,
    phone_number_stats,
    assign_phone_numbers,
)
from .bulk_import import (
    BatchResult,
    BulkImportResult,
    bulk_import_phone_numbers,
)
from .calls import (
    create_call,
    quick_create_call,
    get_call,
    update_call,
    delete_call,
    list_calls,
    call_stats,
)
from .follow_ups import (
    create_follow_up,
    get_follow_up,
    update_follow_up,
    delete_follow_up,
    list_follow_ups,
)

__all__ = [
    # Exceptions
    'CallsServiceError',
    'PhoneNumberValidationError',
    'PhoneNumberNotFoundError',
    'DuplicatePhoneNumberError',
    'PhoneNumberInUseError',
    'NoAvailableNumbersError',
    'InvalidAssigneeError',
    'AssigneeNotFoundError',
    'CallNotFoundError',
    'AlreadyCalledError',
    'FollowUpNotFoundError',
    'CallsAccessDeniedError',
    'BulkImportCancelledError',
    # Phone Validation
    'normalize_indian_mobile',
    # Phone Numbers
    'AreaCodeDeletion',
    'Assignment',
    'get_phone_number',
    'create_phone_number',
    'update_phone_number',
    'delete_phone_number',
    'delete_by_area_code',
    'list_phone_numbers',
    'list_area_codes',
    'phone_number_stats',
    'assign_phone_numbers',
    # Bulk Import
    'BatchResult',
    'BulkImportResult',
    'bulk_import_phone_numbers',
    # Calls
    'create_call',
    'quick_create_call',
    'get_call',
    'update_call',
    'delete_call',
    'list_calls',
    'call_stats',
    # Follow-ups
    'create_follow_up',
    'get_follow_up',
    'update_follow_up',
    'delete_follow_up',
    'list_follow_ups',
]
