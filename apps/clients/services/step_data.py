"""Step form data service."""

import logging
from uuid import UUID

from django.db import transaction

from apps.accounts.models import User
from apps.clients.models import StepData
from apps.clients.permissions import get_accessible_client
from apps.clients.step_templates import STEP_NUMBERS
from apps.documents.services import category_states, completion_from_states

from apps.clients.exceptions import ClientAccessDeniedError, InvalidStepError

logger = logging.getLogger(__name__)

# Sections only admins may read or write, per step
ADMIN_ONLY_SECTIONS = {
    1: {'pricing_details'},
}


def _check_step_number(step_number: int) -> None:
    if step_number not in STEP_NUMBERS:
        raise InvalidStepError(f"Step {step_number} does not exist")


def merge_sections(existing: dict, updates: dict) -> dict:
    """
    Merge section updates into stored step data.

    Dict sections are merged key by key; anything else (notes, payment
    mode, lists) replaces the stored value.
    """
    merged = dict(existing)
    for section, value in updates.items():
        current = merged.get(section)
        if isinstance(value, dict) and isinstance(current, dict):
            merged[section] = {**current, **value}
        else:
            merged[section] = value
    return merged


def get_step_data(*, client_id: UUID, step_number: int, user: User) -> dict:
    """
    Get the form data of a client's step with its document checklist.

    Admin-only sections are left out for other users.

    Returns:
        Dictionary with:
        - client_id, step_number
        - data: dict - stored sections
        - documents: list - category state per document category
        - completion_percentage: int - 0..100
        - updated_at: datetime or None

    Raises:
        InvalidStepError: If step number is outside the workflow
        ClientNotFoundError: If client doesn't exist
        ClientAccessDeniedError: If user has no access
    """
    _check_step_number(step_number)
    client = get_accessible_client(client_id=client_id, user=user)

    record = StepData.objects.filter(client=client, step_number=step_number).first()
    data = dict(record.data) if record else {}

    if not user.is_admin:
        for section in ADMIN_ONLY_SECTIONS.get(step_number, ()):
            data.pop(section, None)

    states = category_states(client=client, step_number=step_number)
    return {
        'client_id': client.id,
        'step_number': step_number,
        'data': data,
        'documents': states,
        'completion_percentage': completion_from_states(states),
        'updated_at': record.updated_at if record else None,
    }


@transaction.atomic
def update_step_data(
    *,
    client_id: UUID,
    step_number: int,
    user: User,
    sections: dict
) -> StepData:
    """
    Save (partially) a client's step form data.

    Args:
        client_id: Client whose data is edited
        step_number: Workflow step (1..5)
        user: Acting user
        sections: Validated section values to merge

    Returns:
        Updated StepData instance

    Raises:
        InvalidStepError: If step number is outside the workflow
        ClientNotFoundError: If client doesn't exist
        ClientAccessDeniedError: If user has no access or edits an admin-only section
    """
    _check_step_number(step_number)
    client = get_accessible_client(client_id=client_id, user=user, for_update=True)

    restricted = ADMIN_ONLY_SECTIONS.get(step_number, set()) & set(sections)
    if restricted and not user.is_admin:
        raise ClientAccessDeniedError(
            f"Only admins can edit: {', '.join(sorted(restricted))}"
        )

    record, created = (
        StepData.objects
        .select_for_update()
        .get_or_create(
            client=client,
            step_number=step_number,
            defaults={'created_by': user}
        )
    )
    record.data = merge_sections(record.data, sections)
    record.updated_by = user
    record.save()

    logger.info(
        "Step %s data of client %s saved by %s (sections: %s)",
        step_number, client.id, user.id, sorted(sections)
    )
    return record
