"""Store defaults and environment-driven diagnostics switch."""

from __future__ import annotations

import os

# Persistence key used when a store is built without one.
DEFAULT_KEY = "_mutastore_key_"

ENV_VAR = "MUTASTORE_ENV"
DEVELOPMENT = "development"

# Option names accepted by Store.from_params().
OPTIONS = frozenset({"state", "actions", "mutations", "getters", "key"})


def is_development() -> bool:
    """True when MUTASTORE_ENV selects development diagnostics."""
    value = os.environ.get(ENV_VAR)
    if value is None:
        return False
    return value.strip().lower() == DEVELOPMENT
