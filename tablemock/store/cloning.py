from __future__ import annotations

import copy
import threading
from typing import Any, Callable, Optional

from ..schema import schema_for

# Compiled copy routines keyed by concrete entity type. Populated lazily,
# never evicted; register_entity() must run before a type is first cloned.
_CLONE_FUNCS: dict[type, Callable[[Any], Any]] = {}
_CLONE_FUNCS_LOCK = threading.Lock()


def clone_func_for(entity_type: type) -> Callable[[Any], Any]:
    with _CLONE_FUNCS_LOCK:
        func = _CLONE_FUNCS.get(entity_type)
        if func is None:
            func = _compile_clone_func(entity_type)
            _CLONE_FUNCS[entity_type] = func
        return func


def _compile_clone_func(entity_type: type) -> Callable[[Any], Any]:
    schema = schema_for(entity_type)
    names = tuple(f.name for f in schema.persisted_fields)
    new_instance = schema.new_instance

    def clone(original: Any) -> Any:
        duplicate = new_instance()
        for name in names:
            # object.__setattr__ also covers frozen dataclasses; descriptors still apply.
            object.__setattr__(duplicate, name, copy.deepcopy(getattr(original, name)))
        return duplicate

    return clone


class Cloner:
    """
    Structural copier for entities.

    Copies every persisted field into a fresh instance of the same concrete
    type, then passes the copy through the optional post-add hook, which may
    transform or replace it. The hook runs once per clone.

    Usage:
        cloner = Cloner(handle_added_entity=lambda e: e)
        copy = cloner.clone(entity)
    """

    def __init__(self, handle_added_entity: Optional[Callable[[Any], Any]] = None) -> None:
        self.handle_added_entity = handle_added_entity

    def clone(self, entity: Any) -> Any:
        duplicate = clone_func_for(type(entity))(entity)
        if self.handle_added_entity is not None:
            duplicate = self.handle_added_entity(duplicate)
        return duplicate
