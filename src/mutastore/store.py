"""Store — guarded state container with actions, mutations and getters.

State only changes through named mutations:

    dispatch(action) -> action(store, payload) -> commit(mutation)
        -> mutation(state, payload) returns a partial -> shallow merge
        -> set() -> observers notified -> stateChange emitted -> status idle

The store composes an Observable rather than extending it, so the primitive's
unguarded write is never exposed. With a persistence medium, the snapshot under
`key` is merged over the initial state at construction and every write is
saved back.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Mapping
from typing import Any, Awaitable, Callable

from mutastore.config import DEFAULT_KEY, OPTIONS, is_development
from mutastore.exceptions import StoreConfigError
from mutastore.guard import Status, StatusGuard
from mutastore.observable import STATE_EVENT, Disposer, Observable, StateChange, run_on_scheduler
from mutastore.persistence import Medium, PersistenceAdapter
from mutastore.stream import EventStream

logger = logging.getLogger("mutastore.store")

State = dict[str, Any]
Action = Callable[["Store", Any], Awaitable[None] | None]
Mutation = Callable[[State, Any], Mapping[str, Any] | None]
Getter = Callable[..., Any]

STATE_CHANGE_EVENT = "stateChange"
MUTATION_EVENT = "mutation"


def _table(kind: str, table: Mapping[str, Callable] | None) -> dict[str, Callable]:
    """Copy a name -> callable table, rejecting empty names and non-callables."""
    if table is None:
        return {}
    if not isinstance(table, Mapping):
        raise StoreConfigError(f"{kind}s must be a mapping, got {type(table).__name__}")
    for name, fn in table.items():
        if not isinstance(name, str) or not name:
            raise StoreConfigError(f"{kind} names must be non-empty strings, got {name!r}")
        if not callable(fn):
            raise StoreConfigError(f"{kind} {name!r} is not callable")
    return dict(table)


class Store:
    """Single source of truth whose state changes only through mutations."""

    def __init__(
        self,
        state: Mapping[str, Any] | None = None,
        actions: Mapping[str, Action] | None = None,
        mutations: Mapping[str, Mutation] | None = None,
        getters: Mapping[str, Getter] | None = None,
        key: str = DEFAULT_KEY,
        *,
        medium: Medium | None = None,
        debug: bool | None = None,
    ) -> None:
        if state is not None and not isinstance(state, Mapping):
            raise StoreConfigError(f"state must be a mapping, got {type(state).__name__}")
        if not isinstance(key, str) or not key:
            raise StoreConfigError(f"key must be a non-empty string, got {key!r}")

        self.key = key
        self.debug = is_development() if debug is None else debug
        self._actions = _table("action", actions)
        self._mutations = _table("mutation", mutations)
        self._getters = _table("getter", getters)
        self._guard = StatusGuard()
        self._pending: set[asyncio.Task] = set()
        self._observable: Observable[State] = Observable(dict(state or {}))
        self.state_changes: EventStream[State] = EventStream(STATE_CHANGE_EVENT)
        self.mutation_events: EventStream[str] = EventStream(MUTATION_EVENT)

        self._persistence = PersistenceAdapter(medium) if medium is not None else None
        self._persist_disposer: Disposer | None = None
        if self._persistence is not None:
            persisted = self._persistence.load(key)
            if persisted is not None:
                # Listener not attached yet: what was just read is not written back.
                self._guard.enter_mutation()
                with self._guard.authorized():
                    self.set({**self._observable.get(), **persisted})
            self._persist_disposer = self._observable.on(STATE_EVENT, self._persist)

    @classmethod
    def from_params(
        cls,
        params: Mapping[str, Any],
        *,
        medium: Medium | None = None,
        debug: bool | None = None,
    ) -> Store:
        """Build a store from an option bundle (state/actions/mutations/getters/key)."""
        unknown = set(params) - OPTIONS
        if unknown:
            raise StoreConfigError(f"Unknown store options: {', '.join(sorted(unknown))}")
        return cls(**params, medium=medium, debug=debug)

    # --- Reads ---

    @property
    def status(self) -> Status:
        return self._guard.status

    @property
    def pending(self) -> int:
        """Number of asynchronous actions still running."""
        return len(self._pending)

    def get(self, key: str | None = None, *args: Any) -> Any:
        """Full state with no key; a getter's result if `key` names one; else state[key]."""
        if key is None:
            return self._observable.get()
        getter = self._getters.get(key)
        if getter is not None:
            return getter(self, *args)
        return self._observable.get().get(key)

    def has_action(self, name: str) -> bool:
        return name in self._actions

    def has_mutation(self, name: str) -> bool:
        return name in self._mutations

    def has_getter(self, name: str) -> bool:
        return name in self._getters

    # --- Writes ---

    def set(self, new_state: Mapping[str, Any]) -> None:
        """Replace the whole state. Outside a mutation this logs a warning in development."""
        if self.debug and not self._guard.is_authorized():
            logger.warning("Don't set state directly, you should use a mutation instead")
        run_on_scheduler(lambda s=dict(new_state): self._write(s))

    def _write(self, new_state: State) -> None:
        try:
            self._observable.replace(new_state)
            if self.debug:
                logger.debug("stateChange: %r", new_state)
            self.state_changes.emit(new_state)
        finally:
            self._guard.reset()

    def init(self, state: Mapping[str, Any] | None = None) -> Store:
        """Seed the store with a server-supplied snapshot. It wins over persisted values."""
        snapshot = dict(state or {})

        def _apply() -> None:
            self._guard.enter_mutation()
            with self._guard.authorized():
                self.set({**self._observable.get(), **snapshot})

        run_on_scheduler(_apply)
        return self

    def dispatch(self, name: str, payload: Any = None) -> bool:
        """Run an action. False if no action has that name.

        Coroutine actions are scheduled on the running loop and not awaited.
        """
        action = self._actions.get(name)
        if action is None:
            logger.error('Action "%s" doesn\'t exist.', name)
            return False
        if self.debug:
            logger.debug("ACTION: %s", name)
        self._guard.enter_action()
        result = action(self, payload)
        if inspect.isawaitable(result):
            self._track(name, result)
        return True

    def commit(self, name: str, payload: Any = None) -> bool:
        """Run a mutation and merge its partial state. False if no mutation has that name.

        From a background thread the whole commit is handed to the scheduler,
        so each mutation reads the state the previous write left behind.
        """
        mutation = self._mutations.get(name)
        if mutation is None:
            logger.error('Mutation "%s" doesn\'t exist', name)
            return False
        run_on_scheduler(lambda: self._apply(name, mutation, payload))
        return True

    def _apply(self, name: str, mutation: Mutation, payload: Any) -> None:
        self._guard.enter_mutation()
        self.mutation_events.emit(name)
        if self.debug:
            logger.debug("MUTATION %s: %r", name, payload)
        current = self._observable.get()
        partial = mutation(current, payload)
        with self._guard.authorized():
            self.set({**current, **(partial or {})})

    # --- Subscriptions ---

    def on(self, event: str, handler: Callable[[Any], None]) -> Disposer:
        """Subscribe to "state" (StateChange), "stateChange" (new state) or "mutation" (name)."""
        if event == STATE_EVENT:
            return self._observable.on(STATE_EVENT, handler)
        if event == STATE_CHANGE_EVENT:
            return self.state_changes.subscribe(handler)
        if event == MUTATION_EVENT:
            return self.mutation_events.subscribe(handler)
        raise StoreConfigError(f"Unknown store event {event!r}")

    # --- Async actions ---

    def _track(self, name: str, awaitable: Awaitable[Any]) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            raise RuntimeError(
                f"Action {name!r} is asynchronous and needs a running event loop"
            ) from None
        task = loop.create_task(_await(awaitable), name=f"mutastore.action:{name}")
        self._pending.add(task)
        task.add_done_callback(self._action_done)

    def _action_done(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("%s failed", task.get_name(), exc_info=exc)

    async def settle(self) -> None:
        """Wait for every in-flight action, including ones they dispatch. Re-raises the first failure."""
        while self._pending:
            await asyncio.gather(*list(self._pending))

    # --- Persistence ---

    def _persist(self, change: StateChange[State]) -> None:
        self._persistence.save(self.key, change.current)

    def dispose(self) -> None:
        """Stop persisting and tear down the auxiliary streams."""
        if self._persist_disposer is not None:
            self._persist_disposer()
            self._persist_disposer = None
        self.state_changes.dispose()
        self.mutation_events.dispose()

    def __repr__(self) -> str:
        return f"Store(key={self.key!r}, status={self._guard.status.value}, state={self._observable.get()!r})"


async def _await(awaitable: Awaitable[Any]) -> Any:
    return await awaitable
