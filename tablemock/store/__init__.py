from .backing_store import BackingStore
from .changes import ChangeKind, PendingChange
from .cloning import Cloner
from .diff import UpdatedEntityInfo, UpdatedProperty, diff_entities

__all__ = [
    "BackingStore",
    "ChangeKind",
    "Cloner",
    "PendingChange",
    "UpdatedEntityInfo",
    "UpdatedProperty",
    "diff_entities",
]
