from django.db.models import Q, QuerySet

from .exceptions import ClientNotFoundError, ClientAccessDeniedError
from .models import Client, ClientStep


def user_can_access_client(user, client: Client) -> bool:
    """Admins, the assignee, or anyone holding an assigned step of the client."""
    if user.is_admin:
        return True
    if client.assigned_to_id == user.id:
        return True
    return ClientStep.objects.filter(client=client, assigned_to=user).exists()


def accessible_clients(user) -> QuerySet:
    """Return the clients a user may see."""
    queryset = Client.objects.all()
    if user.is_admin:
        return queryset
    return queryset.filter(
        Q(assigned_to=user) | Q(steps__assigned_to=user)
    ).distinct()


def get_accessible_client(*, client_id, user, for_update: bool = False) -> Client:
    """
    Fetch a client the user may work on.

    Raises:
        ClientNotFoundError: If client doesn't exist
        ClientAccessDeniedError: If user has no access
    """
    queryset = Client.objects.all()
    if for_update:
        queryset = queryset.select_for_update()
    try:
        client = queryset.get(id=client_id)
    except Client.DoesNotExist:
        raise ClientNotFoundError(f"Client {client_id} not found")

    if not user_can_access_client(user, client):
        raise ClientAccessDeniedError("Access denied")
    return client

