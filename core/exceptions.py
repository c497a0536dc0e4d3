"""Typed domain errors, each mapped to one HTTP status by api/errors.py."""


class WorkshopError(Exception):
    """Base class for domain errors."""


class ValidationError(WorkshopError, ValueError):
    """Missing or invalid input (400)."""


class NotFoundError(WorkshopError, ValueError):
    """Referenced entity does not exist (404)."""

    def __init__(self, entity: str, key: object):
        self.entity = entity
        self.key = key
        super().__init__(f"{entity} {key} not found")


class ConflictError(WorkshopError):
    """
    Write would break a uniqueness rule (409).

    Examples: a second invoice for one job card, an identifier that
    could not be allocated after retries.
    """


class AuthorizationError(WorkshopError):
    """Caller lacks the role the operation requires (403)."""


class AuthenticationRequiredError(AuthorizationError):
    """No valid session on an operation that needs one (401)."""
