"""Indian mobile number normalization."""

import re

from .exceptions import PhoneNumberValidationError

_FORMATTING = re.compile(r'[\s\-()+]')
_MOBILE = re.compile(r'[6-9][0-9]{9}')


def normalize_indian_mobile(value: str) -> str:
    """
    Return the 10-digit form of an Indian mobile number.

    Accepts 9876543210, +919876543210, 919876543210, 98765 43210 and
    similar spellings.

    Raises:
        PhoneNumberValidationError: If the value is empty or not a mobile number
    """
    if not value or not isinstance(value, str):
        raise PhoneNumberValidationError("Phone number is required")

    normalized = _FORMATTING.sub('', value)
    if normalized.startswith('91') and len(normalized) == 12:
        normalized = normalized[2:]

    if not _MOBILE.fullmatch(normalized):
        raise PhoneNumberValidationError(
            "Invalid Indian mobile number format. Must be 10 digits starting with 6, 7, 8, or 9"
        )
    return normalized
