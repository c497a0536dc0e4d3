"""Acting user for the current request, carried in a ContextVar.

Set by AuthMiddleware once a session token checks out and read by the
audit log and status history for attribution. Anonymous (public)
requests leave it unset.
"""

from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator
from uuid import UUID

_current_user_id: ContextVar[UUID | None] = ContextVar("current_user_id", default=None)


def get_current_user_id() -> UUID | None:
    return _current_user_id.get()


def set_current_user_id(user_id: UUID) -> None:
    _current_user_id.set(user_id)


def clear_current_user_id() -> None:
    """Forget the acting user. Call from a finally block so nothing leaks between requests."""
    _current_user_id.set(None)


@contextmanager
def user_context(user_id: UUID) -> Iterator[UUID]:
    """
    Act as user_id inside the block, restoring whoever was acting before.

        with user_context(admin_id):
            job_cards.update(card_id, JobCardUpdate(status="ready"))
    """
    token = _current_user_id.set(user_id)
    try:
        yield user_id
    finally:
        _current_user_id.reset(token)
