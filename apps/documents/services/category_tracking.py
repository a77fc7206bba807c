"""Document checklist state per workflow step."""

from dataclasses import dataclass
from uuid import UUID

from django.db.models import Count

from apps.accounts.models import User
from apps.clients.models import Client
from apps.clients.permissions import get_accessible_client
from apps.documents.categories import DOCUMENT_CATEGORIES, get_categories
from apps.documents.models import DocumentFile

from .exceptions import DocumentValidationError


class CategoryStatus:
    MISSING = 'missing'
    COMPLETE = 'complete'
    OPTIONAL = 'optional'


@dataclass(frozen=True)
class CategoryState:
    category: str
    label: str
    required: bool
    max_files: int
    file_count: int

    @property
    def state(self) -> str:
        if self.file_count > 0:
            return CategoryStatus.COMPLETE
        if self.required:
            return CategoryStatus.MISSING
        return CategoryStatus.OPTIONAL

    @property
    def is_satisfied(self) -> bool:
        return self.state != CategoryStatus.MISSING

    @property
    def remaining_slots(self) -> int:
        return max(self.max_files - self.file_count, 0)


def file_counts(*, client: Client, step_number: int) -> dict:
    """Return {category: number of files} for a client's step."""
    return dict(
        DocumentFile.objects
        .filter(client=client, step_number=step_number)
        .order_by()
        .values_list('category')
        .annotate(count=Count('id'))
    )


def category_states(*, client: Client, step_number: int) -> list:
    """Return a CategoryState for every category of the step, in table order."""
    counts = file_counts(client=client, step_number=step_number)
    return [
        CategoryState(
            category=spec.key,
            label=spec.label,
            required=spec.required,
            max_files=spec.max_files,
            file_count=counts.get(spec.key, 0),
        )
        for spec in get_categories(step_number)
    ]


def completion_from_states(states) -> int:
    """
    Percentage of satisfied categories, rounded down.

    A category is satisfied when it holds a file or is optional. A step
    without categories is complete.
    """
    if not states:
        return 100
    satisfied = sum(1 for s in states if s.is_satisfied)
    return satisfied * 100 // len(states)


def list_category_state(*, client_id: UUID, step_number: int, user: User) -> list:
    """
    Get the checklist of a client's step.

    Raises:
        DocumentValidationError: If the step has no category table
        ClientNotFoundError: If client doesn't exist
        ClientAccessDeniedError: If user has no access
    """
    if step_number not in DOCUMENT_CATEGORIES:
        raise DocumentValidationError(f"Unknown step: {step_number}")
    client = get_accessible_client(client_id=client_id, user=user)
    return category_states(client=client, step_number=step_number)


def completion_percentage(*, client_id: UUID, step_number: int, user: User) -> int:
    """Completion (0-100) of a client's step checklist."""
    return completion_from_states(
        list_category_state(client_id=client_id, step_number=step_number, user=user)
    )
