"""
Client registry service.

Creates clients together with their workflow steps, and handles
updates, deletion, filtered listing and dashboard statistics.
"""

import logging
from datetime import date, timedelta
from typing import Optional
from uuid import UUID

from django.db import transaction
from django.db.models import Count, QuerySet
from django.utils import timezone

from apps.accounts.models import User
from apps.clients.models import (
    Client,
    ClientStatus,
    ClientStep,
    ClientSubStep,
    StepStatus,
)
from apps.clients.permissions import accessible_clients, get_accessible_client
from apps.clients.step_templates import STEP_TEMPLATES, STEP_NUMBERS, SUB_STEP_DUE_DAYS
from apps.documents.services import purge_client_files
from apps.finance.services import purge_expense_files

from apps.clients.exceptions import ClientAccessDeniedError, ClientNotFoundError

logger = logging.getLogger(__name__)


@transaction.atomic
def create_client(
    *,
    name: str,
    mobile: str,
    address: str,
    assigned_to: User,
    created_by: User,
    google_maps_url: str = '',
    comments: str = ''
) -> Client:
    """
    Create a client and instantiate every workflow step from the templates.

    This is a multi-step operation wrapped in a transaction:
    1. Create the client (active, current step 1)
    2. Create one step per template; step 1 starts in progress
    3. Create template sub-steps, due in a few days

    Args:
        name: Client name
        mobile: Contact number
        address: Installation address
        assigned_to: User responsible for the client
        created_by: Acting user
        google_maps_url: Optional location link
        comments: Optional free text

    Returns:
        Created Client instance

    Raises:
        ClientAccessDeniedError: If a non-admin assigns the client to someone else
    """
    if not created_by.is_admin and assigned_to.id != created_by.id:
        raise ClientAccessDeniedError("You can only assign clients to yourself")

    client = Client.objects.create(
        name=name,
        mobile=mobile,
        address=address,
        google_maps_url=google_maps_url,
        comments=comments,
        assigned_to=assigned_to,
        created_by=created_by,
        status=ClientStatus.ACTIVE,
        current_step=STEP_NUMBERS[0],
    )

    today = timezone.localdate()
    for template in STEP_TEMPLATES:
        step = ClientStep.objects.create(
            client=client,
            step_number=template.step_number,
            step_name=template.name,
            description=template.description,
            status=StepStatus.IN_PROGRESS if template.step_number == STEP_NUMBERS[0] else StepStatus.PENDING,
            assigned_to=assigned_to,
            due_date=today + timedelta(days=template.estimated_duration),
            estimated_duration=template.estimated_duration,
            is_optional=template.is_optional,
        )
        ClientSubStep.objects.bulk_create([
            ClientSubStep(
                step=step,
                client=client,
                name=sub.name,
                description=sub.description,
                sort_order=sub.sort_order,
                is_required=sub.is_required,
                assigned_to=assigned_to,
                due_date=today + timedelta(days=SUB_STEP_DUE_DAYS),
            )
            for sub in template.sub_steps
        ])

    logger.info("Created client %s with %d workflow steps", client.id, len(STEP_TEMPLATES))
    return client


def get_client(*, client_id: UUID, user: User) -> Client:
    """
    Get a client the user has access to.

    Raises:
        ClientNotFoundError: If client doesn't exist
        ClientAccessDeniedError: If user has no access
    """
    return get_accessible_client(client_id=client_id, user=user)


@transaction.atomic
def update_client(*, client_id: UUID, user: User, **changes) -> Client:
    """
    Update client details.

    Only admins may reassign a client. The current step is derived from
    step statuses and is not editable here.

    Args:
        client_id: Client to update
        user: Acting user
        **changes: Validated fields (name, mobile, address, google_maps_url,
            comments, status, assigned_to)

    Returns:
        Updated Client instance

    Raises:
        ClientNotFoundError: If client doesn't exist
        ClientAccessDeniedError: If user has no access or may not reassign
    """
    client = get_accessible_client(client_id=client_id, user=user, for_update=True)

    new_assignee = changes.get('assigned_to')
    if new_assignee is not None and new_assignee != client.assigned_to and not user.is_admin:
        raise ClientAccessDeniedError("Only admins can reassign clients")

    changes.pop('current_step', None)
    for field, value in changes.items():
        setattr(client, field, value)
    client.save()

    logger.info("Client %s updated by %s: %s", client.id, user.id, sorted(changes))
    return client


def delete_client(*, client_id: UUID, user: User) -> None:
    """
    Delete a client with its steps, data, documents and finances (admin only).

    Stored files are removed from object storage after the rows are
    committed; objects that cannot be removed are logged and left behind.

    Raises:
        ClientNotFoundError: If client doesn't exist
        ClientAccessDeniedError: If user is not an admin
    """
    if not user.is_admin:
        raise ClientAccessDeniedError("Only admins can delete clients")

    with transaction.atomic():
        try:
            client = Client.objects.select_for_update().get(id=client_id)
        except Client.DoesNotExist:
            raise ClientNotFoundError(f"Client {client_id} not found")

        documents_removed = purge_client_files(client=client)
        expense_documents_removed = purge_expense_files(client=client)
        client.delete()

    logger.info(
        "Deleted client %s (%d documents, %d expense documents)",
        client_id, documents_removed, expense_documents_removed
    )


def list_clients(
    *,
    user: User,
    status: Optional[str] = None,
    assigned_to: Optional[UUID] = None,
    current_step: Optional[int] = None,
    name: Optional[str] = None,
    mobile: Optional[str] = None,
    created_at_start: Optional[date] = None,
    created_at_end: Optional[date] = None,
) -> QuerySet:
    """
    List clients visible to the user, newest first.

    Args:
        user: Acting user (non-admins only see their clients)
        status: Exact client status
        assigned_to: Assignee user ID
        current_step: Current workflow step
        name: Case-insensitive substring of the name
        mobile: Substring of the mobile number
        created_at_start: Inclusive start date of creation
        created_at_end: Inclusive end date of creation

    Returns:
        QuerySet of Client
    """
    queryset = accessible_clients(user).select_related('assigned_to')

    if status:
        queryset = queryset.filter(status=status)
    if assigned_to:
        queryset = queryset.filter(assigned_to_id=assigned_to)
    if current_step:
        queryset = queryset.filter(current_step=current_step)
    if name:
        queryset = queryset.filter(name__icontains=name)
    if mobile:
        queryset = queryset.filter(mobile__contains=mobile)
    if created_at_start:
        queryset = queryset.filter(created_at__date__gte=created_at_start)
    if created_at_end:
        queryset = queryset.filter(created_at__date__lte=created_at_end)

    return queryset.order_by('-created_at')


def get_client_stats(*, user: User) -> dict:
    """
    Calculate dashboard statistics over the clients visible to the user.

    Returns:
        Dictionary with:
        - total_clients, active_clients, completed_clients,
          on_hold_clients, cancelled_clients: int
        - clients_by_step: dict - active clients per current step
        - overdue_steps: int - incomplete steps past their due date
        - completed_steps_this_week: int - steps completed in the last 7 days
    """
    clients = accessible_clients(user)
    client_ids = clients.values('id')

    by_status = dict(
        Client.objects.filter(id__in=client_ids)
        .order_by()
        .values_list('status')
        .annotate(count=Count('id'))
    )
    by_step = dict(
        Client.objects.filter(id__in=client_ids, status=ClientStatus.ACTIVE)
        .order_by()
        .values_list('current_step')
        .annotate(count=Count('id'))
    )

    steps = ClientStep.objects.filter(client_id__in=client_ids)
    week_ago = timezone.now() - timedelta(days=7)

    return {
        'total_clients': sum(by_status.values()),
        'active_clients': by_status.get(ClientStatus.ACTIVE, 0),
        'completed_clients': by_status.get(ClientStatus.COMPLETED, 0),
        'on_hold_clients': by_status.get(ClientStatus.ON_HOLD, 0),
        'cancelled_clients': by_status.get(ClientStatus.CANCELLED, 0),
        'clients_by_step': {str(n): by_step.get(n, 0) for n in STEP_NUMBERS},
        'overdue_steps': steps.overdue().count(),
        'completed_steps_this_week': steps.filter(
            status=StepStatus.COMPLETED,
            completed_at__gte=week_ago
        ).count(),
    }
