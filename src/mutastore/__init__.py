"""mutastore: guarded action/mutation state store with persistence."""

from importlib.metadata import version as _version

__version__ = _version("mutastore")

from mutastore.config import DEFAULT_KEY
from mutastore.exceptions import MutastoreError, StoreConfigError
from mutastore.guard import Status, StatusGuard
from mutastore.observable import Observable, StateChange, set_scheduler
from mutastore.persistence import FileMedium, Medium, MemoryMedium, PersistenceAdapter
from mutastore.store import Store
from mutastore.stream import EventStream
# textual NOT auto-imported — opt-in only

__all__ = [
    "DEFAULT_KEY",
    "EventStream",
    "FileMedium",
    "Medium",
    "MemoryMedium",
    "MutastoreError",
    "Observable",
    "PersistenceAdapter",
    "StateChange",
    "Status",
    "StatusGuard",
    "Store",
    "StoreConfigError",
    "set_scheduler",
]
