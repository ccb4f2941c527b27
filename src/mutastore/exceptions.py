"""Exception hierarchy for mutastore.

Lookup failures (unknown action or mutation names) never raise; they are
logged and reported as a False result. Exceptions raised by user-supplied
actions, mutations and getters are never wrapped.
"""

from __future__ import annotations


class MutastoreError(Exception):
    """Base exception for all mutastore errors."""


class StoreConfigError(MutastoreError, ValueError):
    """Invalid construction option, table entry or event name."""
