"""
Step and sub-step tracking service.

A client's current step always points at the lowest-numbered step that
is not completed, or at the last step once everything is done.
"""

import logging
from datetime import date
from typing import Optional
from uuid import UUID

from django.db import transaction
from django.db.models import QuerySet
from django.utils import timezone

from apps.accounts.models import User
from apps.clients.models import (
    Client,
    ClientStatus,
    ClientStep,
    ClientSubStep,
    StepStatus,
)
from apps.clients.permissions import get_accessible_client, user_can_access_client

from apps.clients.exceptions import (
    ClientAccessDeniedError,
    StepNotFoundError,
    SubStepNotFoundError,
)

logger = logging.getLogger(__name__)

_UNSET = object()


def _apply_status(record, status: Optional[str]) -> bool:
    """Set status on a step or sub-step, stamping completed_at on entry. Returns True on change."""
    if status is None or status == record.status:
        return False
    if status == StepStatus.COMPLETED:
        record.completed_at = timezone.now()
    elif record.status == StepStatus.COMPLETED:
        record.completed_at = None
    record.status = status
    return True


def compute_current_step(steps) -> int:
    """
    Return the lowest step number not completed, or the highest if all are.

    Args:
        steps: Iterable of (step_number, status) pairs
    """
    ordered = sorted(steps)
    for step_number, status in ordered:
        if status != StepStatus.COMPLETED:
            return step_number
    return ordered[-1][0]


def sync_client_progress(*, client_id: UUID) -> Client:
    """
    Recompute a client's current step and completion status from its steps.

    Must run inside a transaction. On-hold and cancelled clients keep
    their status unless every step is completed.
    """
    client = Client.objects.select_for_update().get(id=client_id)
    steps = list(client.steps.values_list('step_number', 'status'))

    current_step = compute_current_step(steps)
    all_done = all(status == StepStatus.COMPLETED for _, status in steps)

    if all_done:
        new_status = ClientStatus.COMPLETED
    elif client.status == ClientStatus.COMPLETED:
        new_status = ClientStatus.ACTIVE
    else:
        new_status = client.status

    if (current_step, new_status) != (client.current_step, client.status):
        logger.info(
            "Client %s progress: step %s -> %s, status %s -> %s",
            client.id, client.current_step, current_step, client.status, new_status
        )
        client.current_step = current_step
        client.status = new_status
        client.save(update_fields=['current_step', 'status', 'updated_at'])

    return client


def list_steps(*, client_id: UUID, user: User, status: Optional[str] = None) -> QuerySet:
    """
    Return a client's steps in workflow order.

    ``status`` may be a stored status or ``overdue``, which selects
    incomplete steps past their due date.
    """
    client = get_accessible_client(client_id=client_id, user=user)
    queryset = ClientStep.objects.filter(client=client)
    if status:
        queryset = queryset.with_status(status)
    return (
        queryset
        .select_related('assigned_to')
        .prefetch_related('sub_steps')
        .order_by('step_number')
    )


def get_step(*, step_id: UUID, user: User) -> ClientStep:
    """
    Get a step the user may access.

    Raises:
        StepNotFoundError: If step doesn't exist
        ClientAccessDeniedError: If user has no access to its client
    """
    try:
        step = ClientStep.objects.select_related('client', 'assigned_to').get(id=step_id)
    except ClientStep.DoesNotExist:
        raise StepNotFoundError(f"Client step {step_id} not found")

    if not user_can_access_client(user, step.client):
        raise ClientAccessDeniedError("Access denied")
    return step


@transaction.atomic
def update_step(
    *,
    step_id: UUID,
    user: User,
    status: Optional[str] = None,
    assigned_to=_UNSET,
    due_date: Optional[date] = None,
    notes: Optional[str] = None
) -> ClientStep:
    """
    Update a step and recompute the owning client's progress.

    Entering ``completed`` stamps completed_at; leaving it clears the stamp.
    Afterwards the client's current step becomes the lowest incomplete step
    (or the last step when all are complete).

    Args:
        step_id: Step to update
        user: Acting user
        status: New stored status
        assigned_to: New assignee (None to unassign)
        due_date: New due date
        notes: Free-text notes

    Returns:
        Updated ClientStep instance

    Raises:
        StepNotFoundError: If step doesn't exist
        ClientAccessDeniedError: If user has no access or tries to reassign without admin role
    """
    try:
        step = (
            ClientStep.objects
            .select_for_update()
            .select_related('client')
            .get(id=step_id)
        )
    except ClientStep.DoesNotExist:
        raise StepNotFoundError(f"Client step {step_id} not found")

    if not user_can_access_client(user, step.client):
        raise ClientAccessDeniedError("Access denied")

    status_changed = _apply_status(step, status)

    if assigned_to is not _UNSET:
        if not user.is_admin:
            raise ClientAccessDeniedError("Only admins can reassign steps")
        step.assigned_to = assigned_to
    if due_date is not None:
        step.due_date = due_date
    if notes is not None:
        step.notes = notes

    step.save()

    if status_changed:
        logger.info("Step %s of client %s is now %s", step.step_number, step.client_id, step.status)
        sync_client_progress(client_id=step.client_id)

    return step


def list_sub_steps(*, step_id: UUID, user: User, status: Optional[str] = None) -> QuerySet:
    """Return the sub-steps of a step, in display order."""
    step = get_step(step_id=step_id, user=user)
    queryset = step.sub_steps.all()
    if status:
        queryset = queryset.with_status(status)
    return queryset.select_related('assigned_to').order_by('sort_order')


def get_sub_step(*, sub_step_id: UUID, user: User) -> ClientSubStep:
    """
    Get a sub-step the user may access.

    Raises:
        SubStepNotFoundError: If sub-step doesn't exist
        ClientAccessDeniedError: If user has no access to its client
    """
    try:
        sub_step = ClientSubStep.objects.select_related('client', 'step').get(id=sub_step_id)
    except ClientSubStep.DoesNotExist:
        raise SubStepNotFoundError(f"Client sub-step {sub_step_id} not found")

    if not user_can_access_client(user, sub_step.client):
        raise ClientAccessDeniedError("Access denied")
    return sub_step


@transaction.atomic
def update_sub_step(
    *,
    sub_step_id: UUID,
    user: User,
    status: Optional[str] = None,
    assigned_to=_UNSET,
    due_date: Optional[date] = None,
    description: Optional[str] = None
) -> ClientSubStep:
    """
    Update a sub-step.

    Follows the same completion stamping as steps but never moves the
    client's current step.

    Raises:
        SubStepNotFoundError: If sub-step doesn't exist
        ClientAccessDeniedError: If user has no access
    """
    try:
        sub_step = (
            ClientSubStep.objects
            .select_for_update()
            .select_related('client')
            .get(id=sub_step_id)
        )
    except ClientSubStep.DoesNotExist:
        raise SubStepNotFoundError(f"Client sub-step {sub_step_id} not found")

    if not user_can_access_client(user, sub_step.client):
        raise ClientAccessDeniedError("Access denied")

    _apply_status(sub_step, status)

    if assigned_to is not _UNSET:
        if not user.is_admin:
            raise ClientAccessDeniedError("Only admins can reassign sub-steps")
        sub_step.assigned_to = assigned_to
    if due_date is not None:
        sub_step.due_date = due_date
    if description is not None:
        sub_step.description = description

    sub_step.save()
    return sub_step
