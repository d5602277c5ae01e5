"""Save-path hook that stamps audit and soft-delete fields.

Every flush, from any session, passes through :func:`stamp_entities`.
The acting identity comes from a ContextVar bound by the
authentication layer (or by jobs and CLI commands).
"""

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any

from sqlalchemy import event
from sqlalchemy.orm import Session

from tenantcore.core.constants import SYSTEM_ACTOR
from tenantcore.core.database.base import SoftDeleteMixin, TimestampMixin, utcnow


_current_actor: ContextVar[str] = ContextVar("current_actor", default=SYSTEM_ACTOR)


def get_current_actor() -> str:
    """Name recorded in created_by/updated_by/deleted_by."""
    return _current_actor.get()


def set_current_actor(actor: str | None) -> None:
    """Bind the acting identity for the current context."""
    _current_actor.set(actor or SYSTEM_ACTOR)


@contextmanager
def acting_as(actor: str) -> Iterator[None]:
    """Temporarily bind an actor, e.g. for jobs and CLI commands."""
    token = _current_actor.set(actor)
    try:
        yield
    finally:
        _current_actor.reset(token)


def stamp_entities(session: Session, _flush_context: Any, _instances: Any) -> None:
    """Stamp created/updated/deleted fields on pending changes."""
    now = utcnow()
    actor = get_current_actor()

    for obj in session.new:
        if isinstance(obj, TimestampMixin):
            obj.created_at = now
            obj.created_by = actor
        if isinstance(obj, SoftDeleteMixin) and obj.is_deleted and obj.deleted_at is None:
            obj.deleted_at = now
            obj.deleted_by = actor

    for obj in session.dirty:
        if not session.is_modified(obj, include_collections=False):
            continue
        if isinstance(obj, TimestampMixin):
            obj.updated_at = now
            obj.updated_by = actor
        if isinstance(obj, SoftDeleteMixin):
            if obj.is_deleted and obj.deleted_at is None:
                obj.deleted_at = now
                obj.deleted_by = actor
            elif not obj.is_deleted and obj.deleted_at is not None:
                obj.deleted_at = None
                obj.deleted_by = None


def install_hooks() -> None:
    """Register the flush hook on every ORM session (idempotent)."""
    if not event.contains(Session, "before_flush", stamp_entities):
        event.listen(Session, "before_flush", stamp_entities)
