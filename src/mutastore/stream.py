"""Notification channels owned by a Store.

Each store has two: state_changes carries the new state dict after every
write, mutation_events carries a mutation's name as its commit starts.
Subscribers are called synchronously in subscription order.
"""

from __future__ import annotations

from typing import Callable, Generic, TypeVar

T = TypeVar("T")

Disposer = Callable[[], None]


class EventStream(Generic[T]):
    """A named, disposable list of subscribers."""

    def __init__(self, name: str = "") -> None:
        self.name = name
        self._subscribers: list[Callable[[T], None]] = []
        self._disposed = False

    @property
    def disposed(self) -> bool:
        return self._disposed

    def __len__(self) -> int:
        return len(self._subscribers)

    def emit(self, value: T) -> None:
        if self._disposed:
            return
        # Snapshot: a subscriber may unsubscribe while being called.
        for callback in list(self._subscribers):
            callback(value)

    def subscribe(self, callback: Callable[[T], None]) -> Disposer:
        """Register callback. Returns an idempotent function that removes it."""
        if self._disposed:
            return lambda: None
        self._subscribers.append(callback)

        def _unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return _unsubscribe

    def once(self, callback: Callable[[T], None]) -> Disposer:
        """Like subscribe(), but callback only sees the next value."""
        def _fire(value: T) -> None:
            dispose()
            callback(value)

        dispose = self.subscribe(_fire)
        return dispose

    def dispose(self) -> None:
        """Drop every subscriber and ignore later emits and subscriptions."""
        self._disposed = True
        self._subscribers.clear()

    def __repr__(self) -> str:
        state = "disposed" if self._disposed else f"{len(self._subscribers)} subscribers"
        return f"EventStream({self.name!r}, {state})"
