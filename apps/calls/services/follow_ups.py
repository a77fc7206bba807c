"""Follow-up scheduling for previously called numbers."""

import logging
from datetime import date, datetime
from typing import Optional
from uuid import UUID

from django.db import transaction
from django.db.models import QuerySet
from django.utils import timezone

from apps.accounts.models import User
from apps.calls.models import FollowUp, FollowUpStatus
from .calls import get_call
from .exceptions import CallsAccessDeniedError, FollowUpNotFoundError

logger = logging.getLogger(__name__)


def create_follow_up(
    *,
    user: User,
    call_id: UUID,
    scheduled_date: datetime,
    notes: str = '',
    priority: int = 2
) -> FollowUp:
    """
    Schedule a follow-up for a call. The follow-up belongs to the call's owner.

    Raises:
        CallNotFoundError: If call doesn't exist
        CallsAccessDeniedError: If a caller schedules for someone else's call
    """
    call = get_call(call_id=call_id, user=user)

    follow_up = FollowUp.objects.create(
        call=call,
        user=call.user,
        phone_number=call.phone_number,
        scheduled_date=scheduled_date,
        status=FollowUpStatus.PENDING,
        notes=notes or '',
        priority=priority,
    )
    logger.info("Follow-up %s scheduled for %s on %s", follow_up.id, call.phone_number, scheduled_date)
    return follow_up


def get_follow_up(*, follow_up_id: UUID, user: User, for_update: bool = False) -> FollowUp:
    """
    Raises:
        FollowUpNotFoundError: If follow-up doesn't exist
        CallsAccessDeniedError: If a caller accesses someone else's follow-up
    """
    queryset = FollowUp.objects.select_related('user', 'call')
    if for_update:
        queryset = queryset.select_for_update()
    try:
        follow_up = queryset.get(id=follow_up_id)
    except FollowUp.DoesNotExist:
        raise FollowUpNotFoundError(f"Follow-up {follow_up_id} not found")

    if not user.is_admin and follow_up.user_id != user.id:
        raise CallsAccessDeniedError("You can only access your own follow-ups")
    return follow_up


@transaction.atomic
def update_follow_up(*, follow_up_id: UUID, user: User, **changes) -> FollowUp:
    """
    Update a follow-up. Completing it stamps completed_at.

    Args:
        follow_up_id: Follow-up to update
        user: Owner or admin
        **changes: scheduled_date, status, notes, priority, reminder_sent
    """
    follow_up = get_follow_up(follow_up_id=follow_up_id, user=user, for_update=True)

    for attr, value in changes.items():
        setattr(follow_up, attr, value)
    if changes.get('status') == FollowUpStatus.COMPLETED:
        follow_up.completed_at = timezone.now()
    elif follow_up.status != FollowUpStatus.COMPLETED:
        follow_up.completed_at = None
    follow_up.save()

    return follow_up


def delete_follow_up(*, follow_up_id: UUID, user: User) -> None:
    """Delete a follow-up (admin only)."""
    if not user.is_admin:
        raise CallsAccessDeniedError("Only administrators can delete follow-ups")
    get_follow_up(follow_up_id=follow_up_id, user=user).delete()
    logger.info("Follow-up %s deleted", follow_up_id)


def list_follow_ups(
    *,
    user: User,
    user_id: Optional[UUID] = None,
    status: Optional[str] = None,
    priority: Optional[int] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    overdue: bool = False
) -> QuerySet:
    """
    List follow-ups by scheduled date. Callers see only their own.

    ``overdue`` keeps pending follow-ups scheduled in the past. Date filters
    compare the scheduled calendar date, inclusive.
    """
    queryset = FollowUp.objects.select_related('user', 'call')
    if not user.is_admin:
        queryset = queryset.filter(user=user)
    elif user_id:
        queryset = queryset.filter(user_id=user_id)

    if status:
        queryset = queryset.filter(status=status)
    if priority:
        queryset = queryset.filter(priority=priority)
    if start_date:
        queryset = queryset.filter(scheduled_date__date__gte=start_date)
    if end_date:
        queryset = queryset.filter(scheduled_date__date__lte=end_date)
    if overdue:
        queryset = queryset.filter(
            status=FollowUpStatus.PENDING,
            scheduled_date__lt=timezone.now(),
        )
    return queryset.order_by('scheduled_date')
