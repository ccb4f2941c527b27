"""Status guard: tells authorized state writes apart from direct ones.

Two pieces cooperate here:

- Status: the tri-state flag (idle / action / mutation) a store reports.
  dispatch() moves it to ACTION, commit()/init() to MUTATION, and every
  set() drops it back to IDLE as its last step. It only ever describes the
  most recent write, it is not a lock.
- authorized(): a context-local authorization scope. Only the store's own
  write paths enter it, and set() consults it to decide whether to warn.
  Because it lives in a contextvar, each asyncio task sees its own scope,
  so interleaved actions cannot clear each other's authorization.
"""

from __future__ import annotations

import contextvars
import enum
from contextlib import contextmanager


class Status(enum.Enum):
    IDLE = "idle"
    ACTION = "action"
    MUTATION = "mutation"


# Id of the store whose write path is currently running, if any.
_authorized_store: contextvars.ContextVar[int | None] = contextvars.ContextVar(
    "mutastore_authorized_store", default=None
)


class StatusGuard:
    """Tri-state status plus the per-context write authorization."""

    __slots__ = ("_status",)

    def __init__(self) -> None:
        self._status = Status.IDLE

    @property
    def status(self) -> Status:
        return self._status

    def enter_action(self) -> None:
        self._status = Status.ACTION

    def enter_mutation(self) -> None:
        self._status = Status.MUTATION

    def reset(self) -> None:
        self._status = Status.IDLE

    @contextmanager
    def authorized(self):
        """Mark writes made inside the block as sanctioned for this guard."""
        token = _authorized_store.set(id(self))
        try:
            yield
        finally:
            _authorized_store.reset(token)

    def is_authorized(self) -> bool:
        return _authorized_store.get() == id(self)

    def __repr__(self) -> str:
        return f"StatusGuard({self._status.value})"
