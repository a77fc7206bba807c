"""
Call logging service.

Starting a call puts its number in use. Completing it releases the number:
completed, or back to assigned when the prospect wants a callback or is
interested. A number is only called once per caller; follow-ups cover
later contact.
"""

import logging
from datetime import date
from typing import Optional
from uuid import UUID

from django.db import transaction
from django.db.models import Avg, Case, Count, IntegerField, Q, QuerySet, Value, When
from django.utils import timezone

from apps.accounts.models import User
from apps.calls.models import (
    UNASSIGNED,
    Call,
    CallOutcome,
    CallStatus,
    PhoneNumber,
    PhoneNumberStatus,
)
from .exceptions import (
    AlreadyCalledError,
    CallNotFoundError,
    CallsAccessDeniedError,
    NoAvailableNumbersError,
    PhoneNumberNotFoundError,
)

logger = logging.getLogger(__name__)

KEEP_ASSIGNED_OUTCOMES = {CallOutcome.CALLBACK, CallOutcome.INTERESTED}
OPEN_CALL_STATUSES = {CallStatus.PENDING, CallStatus.IN_PROGRESS}


def _start_call(*, user: User, number: PhoneNumber, notes: str) -> Call:
    call = Call.objects.create(
        user=user,
        phone_number=number.phone_number,
        status=CallStatus.PENDING,
        notes=notes or '',
    )
    number.status = PhoneNumberStatus.IN_USE
    number.save(update_fields=['status', 'updated_at'])
    logger.info("Call %s started by %s to %s", call.id, user.id, number.phone_number)
    return call


@transaction.atomic
def create_call(*, user: User, phone_number: str, notes: str = '') -> Call:
    """
    Start a call to a specific number.

    Raises:
        PhoneNumberNotFoundError: If the number doesn't exist
        CallsAccessDeniedError: If a caller uses a number not assigned to them
        AlreadyCalledError: If the user has already called this number
    """
    try:
        number = PhoneNumber.objects.select_for_update().get(phone_number=phone_number)
    except PhoneNumber.DoesNotExist:
        raise PhoneNumberNotFoundError(f"Phone number {phone_number} not found")

    if not user.is_admin and number.assigned_to != str(user.id):
        raise CallsAccessDeniedError("You can only create calls for phone numbers assigned to you")

    if Call.objects.filter(user=user, phone_number=number.phone_number).exists():
        raise AlreadyCalledError(
            "This phone number has already been called. "
            "Use follow-ups to re-engage with previously called numbers."
        )

    return _start_call(user=user, number=number, notes=notes)


def uncalled_numbers(user: User) -> QuerySet:
    """
    Numbers the user can still call, assigned ones first.

    Admins draw from the unassigned pool excluding numbers anyone has
    called. Callers draw from their own assigned or available numbers they
    have not called.
    """
    if user.is_admin:
        queryset = PhoneNumber.objects.filter(
            status=PhoneNumberStatus.AVAILABLE, assigned_to=UNASSIGNED
        ).exclude(phone_number__in=Call.objects.values('phone_number'))
    else:
        queryset = PhoneNumber.objects.filter(
            assigned_to=str(user.id),
            status__in=[PhoneNumberStatus.ASSIGNED, PhoneNumberStatus.AVAILABLE],
        ).exclude(phone_number__in=Call.objects.filter(user=user).values('phone_number'))

    return queryset.annotate(
        assigned_first=Case(
            When(status=PhoneNumberStatus.ASSIGNED, then=Value(0)),
            default=Value(1),
            output_field=IntegerField(),
        )
    ).order_by('assigned_first', 'assigned_at', 'created_at', 'phone_number')


@transaction.atomic
def quick_create_call(*, user: User, notes: str = '') -> Call:
    """
    Start a call to the next uncalled number.

    Raises:
        NoAvailableNumbersError: If every number has been called
    """
    number = uncalled_numbers(user).select_for_update().first()
    if number is None:
        raise NoAvailableNumbersError(
            "No uncalled phone numbers are available. All assigned phone numbers have "
            "already been called. Use follow-ups to re-engage with previously called numbers."
        )
    return _start_call(user=user, number=number, notes=notes)


def get_call(*, call_id: UUID, user: User, for_update: bool = False) -> Call:
    """
    Raises:
        CallNotFoundError: If call doesn't exist
        CallsAccessDeniedError: If a caller accesses someone else's call
    """
    queryset = Call.objects.select_related('user')
    if for_update:
        queryset = queryset.select_for_update()
    try:
        call = queryset.get(id=call_id)
    except Call.DoesNotExist:
        raise CallNotFoundError(f"Call {call_id} not found")

    if not user.is_admin and call.user_id != user.id:
        raise CallsAccessDeniedError("You can only access your own calls")
    return call


@transaction.atomic
def update_call(*, call_id: UUID, user: User, **changes) -> Call:
    """
    Update a call's status, outcome, notes or duration.

    Completing a call stamps completed_at and releases its number.

    Args:
        call_id: Call to update
        user: Call owner or admin
        **changes: status, outcome, notes, duration

    Raises:
        CallNotFoundError: If call doesn't exist
        CallsAccessDeniedError: If user is neither owner nor admin
    """
    call = get_call(call_id=call_id, user=user, for_update=True)
    was_completed = call.status == CallStatus.COMPLETED

    for attr, value in changes.items():
        setattr(call, attr, '' if value is None and attr == 'outcome' else value)

    completing = changes.get('status') == CallStatus.COMPLETED
    if completing and not was_completed:
        call.completed_at = timezone.now()
    elif call.status != CallStatus.COMPLETED:
        call.completed_at = None
    call.save()

    if completing:
        number_status = (
            PhoneNumberStatus.ASSIGNED
            if call.outcome in KEEP_ASSIGNED_OUTCOMES
            else PhoneNumberStatus.COMPLETED
        )
        PhoneNumber.objects.filter(phone_number=call.phone_number).update(
            status=number_status, updated_at=timezone.now()
        )

    logger.info("Call %s updated: %s", call.id, sorted(changes))
    return call


@transaction.atomic
def delete_call(*, call_id: UUID, user: User) -> None:
    """
    Delete a call (admin only). An open call hands its number back to the caller.

    Raises:
        CallsAccessDeniedError: If user is not an admin
        CallNotFoundError: If call doesn't exist
    """
    if not user.is_admin:
        raise CallsAccessDeniedError("Only admins can delete calls")
    call = get_call(call_id=call_id, user=user, for_update=True)

    if call.status in OPEN_CALL_STATUSES:
        PhoneNumber.objects.filter(phone_number=call.phone_number).update(
            status=PhoneNumberStatus.ASSIGNED, updated_at=timezone.now()
        )
    call.delete()
    logger.info("Call %s deleted", call_id)


def _calls_for(user: User, user_id: Optional[UUID]) -> QuerySet:
    queryset = Call.objects.select_related('user')
    if not user.is_admin:
        return queryset.filter(user=user)
    if user_id:
        return queryset.filter(user_id=user_id)
    return queryset


def list_calls(
    *,
    user: User,
    user_id: Optional[UUID] = None,
    status: Optional[str] = None,
    outcome: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None
) -> QuerySet:
    """
    List calls, newest first. Callers see only their own; admins may filter by user.

    Date filters compare the calendar date the call was created, inclusive.
    """
    queryset = _calls_for(user, user_id)
    if status:
        queryset = queryset.filter(status=status)
    if outcome:
        queryset = queryset.filter(outcome=outcome)
    if start_date:
        queryset = queryset.filter(created_at__date__gte=start_date)
    if end_date:
        queryset = queryset.filter(created_at__date__lte=end_date)
    return queryset.order_by('-created_at')


def call_stats(*, user: User, user_id: Optional[UUID] = None) -> dict:
    """
    Call statistics for the user, or for all/one caller when admin.

    success_rate is interested calls as a percentage of completed calls.
    """
    stats = _calls_for(user, user_id).aggregate(
        total=Count('id'),
        completed=Count('id', filter=Q(status=CallStatus.COMPLETED)),
        pending=Count('id', filter=Q(status=CallStatus.PENDING)),
        in_progress=Count('id', filter=Q(status=CallStatus.IN_PROGRESS)),
        successful=Count('id', filter=Q(outcome=CallOutcome.INTERESTED)),
        callback_requests=Count('id', filter=Q(outcome=CallOutcome.CALLBACK)),
        no_answer=Count('id', filter=Q(outcome=CallOutcome.NO_ANSWER)),
        average_duration=Avg('duration', filter=Q(duration__gt=0)),
    )
    stats['average_duration'] = round(stats['average_duration'] or 0, 2)
    stats['success_rate'] = (
        round(stats['successful'] / stats['completed'] * 100, 2) if stats['completed'] else 0
    )
    return stats
