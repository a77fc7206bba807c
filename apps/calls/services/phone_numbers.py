"""
Phone number pool service.

Numbers enter the pool as available and UNASSIGNED, are handed to callers
in assignment batches, and move through in-use to completed as calls are
made. Admins manage the pool; callers only see their own numbers.
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Optional
from uuid import UUID

from django.db import DatabaseError, transaction
from django.db.models import Count, QuerySet
from django.utils import timezone

from apps.accounts.models import User, UserRole
from apps.calls.models import UNASSIGNED, Call, PhoneNumber, PhoneNumberStatus
from .exceptions import (
    AssigneeNotFoundError,
    CallsAccessDeniedError,
    DuplicatePhoneNumberError,
    InvalidAssigneeError,
    NoAvailableNumbersError,
    PhoneNumberInUseError,
    PhoneNumberNotFoundError,
    PhoneNumberValidationError,
)
from .phone_validation import normalize_indian_mobile

logger = logging.getLogger(__name__)

RECENT_CALL_WINDOW = timedelta(hours=24)


def _require_admin(user: User, action: str) -> None:
    if not user.is_admin:
        raise CallsAccessDeniedError(f"Only admins can {action}")


def available_pool() -> QuerySet:
    """Numbers nobody holds."""
    return PhoneNumber.objects.filter(status=PhoneNumberStatus.AVAILABLE, assigned_to=UNASSIGNED)


def visible_phone_numbers(user: User) -> QuerySet:
    """All numbers for admins, the caller's own numbers otherwise."""
    queryset = PhoneNumber.objects.all()
    if user.is_admin:
        return queryset
    return queryset.filter(assigned_to=str(user.id))


def get_phone_number(*, phone_number: str, user: User, for_update: bool = False) -> PhoneNumber:
    """
    Raises:
        PhoneNumberNotFoundError: If the number doesn't exist or isn't visible to the user
    """
    queryset = visible_phone_numbers(user)
    if for_update:
        queryset = queryset.select_for_update()
    try:
        return queryset.get(phone_number=phone_number)
    except PhoneNumber.DoesNotExist:
        raise PhoneNumberNotFoundError(f"Phone number {phone_number} not found")


def create_phone_number(
    *,
    user: User,
    phone_number: str,
    area_code: str,
    name: str = '',
    address: str = ''
) -> PhoneNumber:
    """
    Add one number to the available pool (admin only).

    Raises:
        CallsAccessDeniedError: If user is not an admin
        PhoneNumberValidationError: If the number or area code is invalid
        DuplicatePhoneNumberError: If the normalized number already exists
    """
    _require_admin(user, 'add phone numbers')
    if not (area_code or '').strip():
        raise PhoneNumberValidationError("Area code is required")

    normalized = normalize_indian_mobile(phone_number)
    if PhoneNumber.objects.filter(phone_number=normalized).exists():
        raise DuplicatePhoneNumberError("Phone number already exists")

    number = PhoneNumber.objects.create(
        phone_number=normalized,
        assigned_to=UNASSIGNED,
        status=PhoneNumberStatus.AVAILABLE,
        name=(name or '').strip(),
        address=(address or '').strip(),
        area_code=area_code.strip(),
    )
    logger.info("Phone number %s added in area code %s", normalized, number.area_code)
    return number


def update_phone_number(*, phone_number: str, user: User, **changes) -> PhoneNumber:
    """
    Update the contact details of a number (admin only).

    Only name and address can change.

    Raises:
        PhoneNumberValidationError: If no editable field is given
        PhoneNumberNotFoundError: If the number doesn't exist
    """
    _require_admin(user, 'edit phone numbers')
    updates = {k: v for k, v in changes.items() if k in ('name', 'address')}
    if not updates:
        raise PhoneNumberValidationError(
            "No valid fields to update. Only name and address can be updated."
        )

    with transaction.atomic():
        number = get_phone_number(phone_number=phone_number, user=user, for_update=True)
        for attr, value in updates.items():
            setattr(number, attr, value)
        number.save()
    return number


def deletion_blocker(number: PhoneNumber) -> Optional[str]:
    """Return why a number cannot be deleted, or None when it can."""
    if number.status == PhoneNumberStatus.IN_USE:
        return "Phone number is currently in use"
    since = timezone.now() - RECENT_CALL_WINDOW
    if Call.objects.filter(phone_number=number.phone_number, created_at__gt=since).exists():
        return "Phone number has recent calls (within 24 hours)"
    return None


def delete_phone_number(*, phone_number: str, user: User) -> None:
    """
    Delete a number (admin only).

    Raises:
        PhoneNumberNotFoundError: If the number doesn't exist
        PhoneNumberInUseError: If the number is in use or was called recently
    """
    _require_admin(user, 'delete phone numbers')
    with transaction.atomic():
        number = get_phone_number(phone_number=phone_number, user=user, for_update=True)
        reason = deletion_blocker(number)
        if reason:
            raise PhoneNumberInUseError(reason)
        number.delete()
    logger.info("Phone number %s deleted", phone_number)


@dataclass
class AreaCodeDeletion:
    area_code: str
    total_numbers: int
    deleted: list = field(default_factory=list)
    skipped: list = field(default_factory=list)
    errors: list = field(default_factory=list)

    @property
    def deleted_count(self):
        return len(self.deleted)

    @property
    def skipped_count(self):
        return len(self.skipped)

    @property
    def error_count(self):
        return len(self.errors)


def delete_by_area_code(*, user: User, area_code: str, force: bool = False) -> AreaCodeDeletion:
    """
    Delete every number of an area code (admin only).

    Numbers that are in use or were called in the last 24 hours are skipped
    unless ``force`` is set. A failed deletion is recorded and the rest
    continue.

    Raises:
        PhoneNumberValidationError: If area_code is blank
        PhoneNumberNotFoundError: If the area code has no numbers
    """
    _require_admin(user, 'delete phone numbers')
    area_code = (area_code or '').strip()
    if not area_code:
        raise PhoneNumberValidationError("Area code is required")

    numbers = list(PhoneNumber.objects.filter(area_code=area_code))
    if not numbers:
        raise PhoneNumberNotFoundError(f"No phone numbers found in area code {area_code}")

    result = AreaCodeDeletion(area_code=area_code, total_numbers=len(numbers))
    for number in numbers:
        if not force:
            reason = deletion_blocker(number)
            if reason:
                result.skipped.append({'phone_number': number.phone_number, 'reason': reason})
                continue
        try:
            with transaction.atomic():
                number.delete()
        except DatabaseError as e:
            logger.exception("Failed to delete phone number %s", number.phone_number)
            result.errors.append({'phone_number': number.phone_number, 'error': str(e)})
            continue
        result.deleted.append(number.phone_number)

    logger.info(
        "Area code %s: %d deleted, %d skipped, %d errors",
        area_code, result.deleted_count, result.skipped_count, result.error_count
    )
    return result


def list_phone_numbers(
    *,
    user: User,
    status: Optional[str] = None,
    assigned_to: Optional[str] = None,
    area_code: Optional[str] = None,
    name: Optional[str] = None,
    address: Optional[str] = None,
    batch_id: Optional[UUID] = None,
    assigned_at_start: Optional[date] = None,
    assigned_at_end: Optional[date] = None,
    created_at_start: Optional[date] = None,
    created_at_end: Optional[date] = None
) -> QuerySet:
    """
    List numbers with optional filters.

    Callers only ever see their own numbers; the assigned_to filter applies
    to admins.
    """
    queryset = visible_phone_numbers(user)

    if status:
        queryset = queryset.filter(status=status)
    if assigned_to and user.is_admin:
        queryset = queryset.filter(assigned_to=assigned_to)
    if area_code:
        queryset = queryset.filter(area_code=area_code)
    if name:
        queryset = queryset.filter(name__icontains=name)
    if address:
        queryset = queryset.filter(address__icontains=address)
    if batch_id:
        queryset = queryset.filter(batch_id=batch_id)
    if assigned_at_start:
        queryset = queryset.filter(assigned_at__date__gte=assigned_at_start)
    if assigned_at_end:
        queryset = queryset.filter(assigned_at__date__lte=assigned_at_end)
    if created_at_start:
        queryset = queryset.filter(created_at__date__gte=created_at_start)
    if created_at_end:
        queryset = queryset.filter(created_at__date__lte=created_at_end)

    return queryset.order_by('created_at', 'phone_number')


def list_area_codes(*, user: User) -> list:
    """Available, unassigned numbers per area code, sorted by area code (admin only)."""
    _require_admin(user, 'view area codes')
    rows = (
        available_pool()
        .order_by()
        .values('area_code')
        .annotate(count=Count('phone_number'))
        .order_by('area_code')
    )
    return [{'area_code': row['area_code'], 'count': row['count']} for row in rows]


def phone_number_stats(*, user: User) -> dict:
    """
    Count numbers per status. Callers get counts over their own numbers.

    Returns:
        Dictionary with total, available, assigned, in_use and completed
    """
    counts = dict(
        visible_phone_numbers(user)
        .order_by()
        .values_list('status')
        .annotate(count=Count('phone_number'))
    )
    return {
        'total': sum(counts.values()),
        'available': counts.get(PhoneNumberStatus.AVAILABLE, 0),
        'assigned': counts.get(PhoneNumberStatus.ASSIGNED, 0),
        'in_use': counts.get(PhoneNumberStatus.IN_USE, 0),
        'completed': counts.get(PhoneNumberStatus.COMPLETED, 0),
    }


@dataclass
class Assignment:
    assigned_numbers: list
    batch_id: UUID
    requested_count: int
    actual_count: int
    message: Optional[str] = None


@transaction.atomic
def assign_phone_numbers(
    *,
    user: User,
    assignee_id: UUID,
    count: int = 10,
    area_code: Optional[str] = None
) -> Assignment:
    """
    Hand available numbers to a caller (admin only).

    Assigns min(count, available) numbers, all sharing one new batch id.

    Args:
        user: Acting admin
        assignee_id: Caller receiving the numbers
        count: Requested number of phone numbers
        area_code: Optional area code to draw from

    Raises:
        CallsAccessDeniedError: If user is not an admin
        AssigneeNotFoundError: If the assignee doesn't exist
        InvalidAssigneeError: If the assignee is not a caller
        NoAvailableNumbersError: If nothing is available
    """
    _require_admin(user, 'assign phone numbers')
    try:
        assignee = User.objects.get(id=assignee_id)
    except User.DoesNotExist:
        raise AssigneeNotFoundError(f"User {assignee_id} not found")
    if assignee.role != UserRole.CALLER:
        raise InvalidAssigneeError("Phone numbers can only be assigned to callers")

    pool = available_pool()
    where = ''
    if area_code:
        pool = pool.filter(area_code=area_code)
        where = f" in area code {area_code}"

    selected = list(
        pool.select_for_update()
        .order_by('created_at', 'phone_number')
        .values_list('phone_number', flat=True)[:count]
    )
    if not selected:
        raise NoAvailableNumbersError(f"No available phone numbers{where}")

    batch_id = uuid.uuid4()
    PhoneNumber.objects.filter(phone_number__in=selected).update(
        assigned_to=str(assignee.id),
        status=PhoneNumberStatus.ASSIGNED,
        assigned_at=timezone.now(),
        batch_id=batch_id,
        updated_at=timezone.now(),
    )

    actual = len(selected)
    message = None
    if actual < count:
        message = (
            f"Requested {count} numbers but only {actual} were available{where}. "
            "Assigned all available numbers."
        )

    logger.info("Assigned %d/%d numbers to %s (batch %s)", actual, count, assignee.id, batch_id)
    return Assignment(
        assigned_numbers=list(PhoneNumber.objects.filter(batch_id=batch_id)),
        batch_id=batch_id,
        requested_count=count,
        actual_count=actual,
        message=message,
    )
