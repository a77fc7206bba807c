"""Services for clients business logic."""

from apps.clients.exceptions import (
    ClientsServiceError,
    ClientNotFoundError,
    StepNotFoundError,
    SubStepNotFoundError,
    ClientAccessDeniedError,
    InvalidStepError,
)
from .client_management import (
    create_client,
    get_client,
    update_client,
    delete_client,
    list_clients,
    get_client_stats,
)
from .step_tracking import (
    compute_current_step,
    sync_client_progress,
    list_steps,
    get_step,
    update_step,
    list_sub_steps,
    get_sub_step,
    update_sub_step,
)
from .step_data import (
    ADMIN_ONLY_SECTIONS,
    merge_sections,
    get_step_data,
    update_step_data,
)

__all__ = [
    # Exceptions
    'ClientsServiceError',
    'ClientNotFoundError',
    'StepNotFoundError',
    'SubStepNotFoundError',
    'ClientAccessDeniedError',
    'InvalidStepError',
    # Client Management
    'create_client',
    'get_client',
    'update_client',
    'delete_client',
    'list_clients',
    'get_client_stats',
    # Step Tracking
    'compute_current_step',
    'sync_client_progress',
    'list_steps',
    'get_step',
    'update_step',
    'list_sub_steps',
    'get_sub_step',
    'update_sub_step',
    # Step Data
    'ADMIN_ONLY_SECTIONS',
    'merge_sections',
    'get_step_data',
    'update_step_data',
]
