"""Textual integration for mutastore. Opt-in — requires textual.

Binds store writes to widget updates. The guard, NoMatches handling and
thread marshaling live here so callers never repeat them, and the core
package stays free of any Textual import.
"""

import threading
from contextlib import contextmanager

from textual.css.query import NoMatches

# Module-owned pause state — keyed by id(app) so multiple apps work in tests.
_paused_apps: set[int] = set()


@contextmanager
def pause(app):
    """Suspend bound callbacks during widget replacement."""
    key = id(app)
    _paused_apps.add(key)
    try:
        yield
    finally:
        _paused_apps.discard(key)


def is_safe(app) -> bool:
    """Is the widget tree in a queryable state?"""
    return app.is_running and id(app) not in _paused_apps


def bind(app, store, fn, *, fire_immediately=False):
    """Call fn(state) after every store write, safely for Textual widgets.

    Skips while the app is paused or not running, ignores NoMatches from
    widget queries, and marshals calls from other threads through
    app.call_from_thread. Returns a disposer.
    """
    _main = threading.get_ident()

    def _guarded(state):
        if not is_safe(app):
            return
        if threading.get_ident() != _main:
            app.call_from_thread(_safe, state)
        else:
            _safe(state)

    def _safe(state):
        try:
            fn(state)
        except NoMatches:
            pass

    dispose = store.on("stateChange", _guarded)
    if fire_immediately:
        _guarded(store.get())
    return dispose
