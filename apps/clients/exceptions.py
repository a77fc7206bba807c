"""Domain exceptions for the clients app."""


class ClientsServiceError(Exception):
    """Base exception for clients services."""
    pass


class ClientNotFoundError(ClientsServiceError):
    """Raised when client does not exist."""
    pass


class StepNotFoundError(ClientsServiceError):
    """Raised when a client step does not exist."""
    pass


class SubStepNotFoundError(ClientsServiceError):
    """Raised when a client sub-step does not exist."""
    pass


class ClientAccessDeniedError(ClientsServiceError):
    """Raised when the user has no access to the client or the change."""
    pass


class InvalidStepError(ClientsServiceError):
    """Raised for a step number outside the workflow or bad step data."""
    pass
