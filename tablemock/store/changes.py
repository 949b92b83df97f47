from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable


class ChangeKind(str, Enum):
    ADD = "add"
    UPDATE = "update"
    REMOVE = "remove"


@dataclass(frozen=True, eq=False)
class PendingChange:
    """
    A single buffered mutation, consumed exactly once by apply_changes().
    """
    kind: ChangeKind
    entity: Any

    @classmethod
    def add(cls, entity: Any) -> "PendingChange":
        return cls(ChangeKind.ADD, entity)

    @classmethod
    def update(cls, entity: Any) -> "PendingChange":
        return cls(ChangeKind.UPDATE, entity)

    @classmethod
    def remove(cls, entity: Any) -> "PendingChange":
        return cls(ChangeKind.REMOVE, entity)

    @classmethod
    def many(cls, kind: ChangeKind, entities: Iterable[Any]) -> list["PendingChange"]:
        return [cls(kind, entity) for entity in entities]
