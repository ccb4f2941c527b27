"""Observable value — the reactive primitive a Store wraps.

An Observable holds one snapshot. set() replaces it and synchronously calls
every "state" handler with a StateChange(previous, current), in registration
order. There is no equality de-duplication: every set() is one notification.

Thread safety: call set_scheduler() once from the main thread. After that,
any .set() from a background thread is auto-marshaled. Main-thread .set()
remains synchronous.
"""

from __future__ import annotations

import threading
from typing import Callable, Generic, NamedTuple, TypeVar

T = TypeVar("T")

Disposer = Callable[[], None]

STATE_EVENT = "state"

# ─── Auto-marshal ────────────────────────────────────────────────────────────
_scheduler = None
_scheduler_thread = None


def set_scheduler(scheduler) -> None:
    """Set the global thread scheduler for cross-thread writes.

    Call once from the main/UI thread:
        mutastore.set_scheduler(app.call_from_thread)

    After this, any Observable.set() or Store write from a background thread
    is automatically marshaled. Main-thread writes remain synchronous.
    Pass None to go back to running everything on the calling thread.
    """
    global _scheduler, _scheduler_thread
    _scheduler = scheduler
    _scheduler_thread = threading.current_thread() if scheduler is not None else None


def run_on_scheduler(fn: Callable[[], None]) -> None:
    """Run fn now when on the scheduler thread, otherwise hand it to the scheduler."""
    if _scheduler is not None and threading.current_thread() != _scheduler_thread:
        _scheduler(fn)
    else:
        fn()


class StateChange(NamedTuple, Generic[T]):
    previous: T
    current: T


class Observable(Generic[T]):
    """A single observable value with replace-and-notify writes."""

    __slots__ = ("_value", "_handlers")

    def __init__(self, value: T) -> None:
        self._value = value
        self._handlers: dict[str, list[Callable[[StateChange[T]], None]]] = {
            STATE_EVENT: []
        }

    def get(self) -> T:
        """Read the current snapshot."""
        return self._value

    def set(self, value: T) -> None:
        """Write a new value. Auto-marshals from background threads."""
        run_on_scheduler(lambda v=value: self.replace(v))

    def replace(self, value: T) -> None:
        """Replace the value and notify, on the calling thread."""
        change = StateChange(self._value, value)
        self._value = value
        # Snapshot: handlers may dispose themselves while being notified.
        for handler in list(self._handlers[STATE_EVENT]):
            handler(change)

    def on(self, event: str, handler: Callable[[StateChange[T]], None]) -> Disposer:
        """Register handler for event. Returns a function that removes it."""
        try:
            handlers = self._handlers[event]
        except KeyError:
            raise ValueError(f"Unknown observable event {event!r}") from None
        handlers.append(handler)

        def _dispose() -> None:
            try:
                handlers.remove(handler)
            except ValueError:
                pass  # already removed

        return _dispose

    def __repr__(self) -> str:
        return f"Observable({self._value!r})"
