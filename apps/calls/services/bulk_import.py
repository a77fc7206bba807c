"""
Bulk phone number import.

Entries are processed sequentially in fixed-size batches with a short pause
between batches. A failing entry is logged and reported as invalid; it
never aborts the import. Every entry ends up in exactly one of created,
duplicates or invalid.

Example:
    Importing with a cancellation hook::

        cancel = threading.Event()
        try:
            result = bulk_import_phone_numbers(user=admin, entries=rows, cancel_event=cancel)
        except BulkImportCancelledError as e:
            result = e.result  # batches before the cancel stay imported
"""

import logging
import math
import time
from dataclasses import dataclass, field
from typing import Optional

from django.conf import settings
from django.db import DatabaseError, transaction

from apps.accounts.models import User
from apps.calls.models import UNASSIGNED, PhoneNumber, PhoneNumberStatus
from .exceptions import (
    BulkImportCancelledError,
    CallsAccessDeniedError,
    PhoneNumberValidationError,
)
from .phone_validation import normalize_indian_mobile

logger = logging.getLogger(__name__)


@dataclass
class BatchResult:
    batch_number: int
    batch_size: int
    created: list = field(default_factory=list)
    duplicates: list = field(default_factory=list)
    invalid: list = field(default_factory=list)
    errors: int = 0
    processing_time_ms: int = 0


@dataclass
class BulkImportResult:
    total: int
    batch_size: int
    total_batches: int
    created: list = field(default_factory=list)
    duplicates: list = field(default_factory=list)
    invalid: list = field(default_factory=list)
    batch_results: list = field(default_factory=list)
    processing_time_ms: int = 0

    @property
    def summary(self):
        return {
            'total': self.total,
            'created': len(self.created),
            'duplicates': len(self.duplicates),
            'invalid': len(self.invalid),
        }

    def add(self, batch: BatchResult) -> None:
        self.batch_results.append(batch)
        self.created.extend(batch.created)
        self.duplicates.extend(batch.duplicates)
        self.invalid.extend(batch.invalid)


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


def _import_entry(entry: dict, batch: BatchResult, seen: set) -> None:
    raw = (entry.get('phone_number') or '').strip()
    area_code = (entry.get('area_code') or '').strip()

    if not raw:
        batch.invalid.append({'phone_number': raw, 'error': 'Phone number is required'})
        return
    if not area_code:
        batch.invalid.append({'phone_number': raw, 'error': 'Area code is required'})
        return

    try:
        normalized = normalize_indian_mobile(raw)
    except PhoneNumberValidationError as e:
        batch.invalid.append({'phone_number': raw, 'error': str(e)})
        return

    if normalized in seen or PhoneNumber.objects.filter(phone_number=normalized).exists():
        batch.duplicates.append(raw)
        return

    with transaction.atomic():
        number = PhoneNumber.objects.create(
            phone_number=normalized,
            assigned_to=UNASSIGNED,
            status=PhoneNumberStatus.AVAILABLE,
            name=(entry.get('name') or '').strip(),
            address=(entry.get('address') or '').strip(),
            area_code=area_code,
        )
    seen.add(normalized)
    batch.created.append(number)


def bulk_import_phone_numbers(
    *,
    user: User,
    entries: list,
    cancel_event=None
) -> BulkImportResult:
    """
    Import phone numbers into the available pool (admin only).

    Args:
        user: Acting admin
        entries: Dicts with phone_number and area_code, optionally name and address
        cancel_event: Optional object with ``is_set()``, checked before each
            batch after the first

    Returns:
        BulkImportResult with created, duplicates, invalid and per-batch results

    Raises:
        CallsAccessDeniedError: If user is not an admin
        PhoneNumberValidationError: If entries is empty or too large
        BulkImportCancelledError: If cancelled; carries the partial result
    """
    if not user.is_admin:
        raise CallsAccessDeniedError("Only admins can import phone numbers")

    max_items = settings.SOLARTRACK_BULK_MAX_ITEMS
    if not entries:
        raise PhoneNumberValidationError("At least one phone number is required")
    if len(entries) > max_items:
        raise PhoneNumberValidationError(f"Maximum {max_items} phone numbers allowed per request")

    batch_size = settings.SOLARTRACK_BULK_BATCH_SIZE
    delay = settings.SOLARTRACK_BULK_BATCH_DELAY
    result = BulkImportResult(
        total=len(entries),
        batch_size=batch_size,
        total_batches=math.ceil(len(entries) / batch_size),
    )
    seen = set()
    started = time.monotonic()

    logger.info(
        "Starting bulk import: %d entries in %d batches of %d",
        result.total, result.total_batches, batch_size
    )

    for index in range(result.total_batches):
        if index > 0:
            if cancel_event is not None and cancel_event.is_set():
                result.processing_time_ms = _elapsed_ms(started)
                logger.warning(
                    "Bulk import cancelled after %d of %d batches",
                    index, result.total_batches
                )
                raise BulkImportCancelledError(
                    f"Import cancelled after {index} of {result.total_batches} batches",
                    result
                )
            if delay:
                time.sleep(delay)

        chunk = entries[index * batch_size:(index + 1) * batch_size]
        batch = BatchResult(batch_number=index + 1, batch_size=len(chunk))
        batch_started = time.monotonic()

        for entry in chunk:
            try:
                _import_entry(entry, batch, seen)
            except DatabaseError:
                logger.exception(
                    "Failed to import %s in batch %d", entry.get('phone_number'), batch.batch_number
                )
                batch.errors += 1
                batch.invalid.append({
                    'phone_number': entry.get('phone_number') or '',
                    'error': 'Failed to process phone number',
                })

        batch.processing_time_ms = _elapsed_ms(batch_started)
        result.add(batch)
        logger.info(
            "Batch %d/%d: %d created, %d duplicates, %d invalid, %d errors",
            batch.batch_number, result.total_batches, len(batch.created),
            len(batch.duplicates), len(batch.invalid), batch.errors
        )

    result.processing_time_ms = _elapsed_ms(started)
    logger.info("Bulk import finished: %s", result.summary)
    return result
