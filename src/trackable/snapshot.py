"""
Type-directed deep snapshots of pipeline values.

Every event record stores the value before and after its stage. Stages are
free to mutate composite payloads in place, so a record that merely kept a
reference would be rewritten by whatever ran next. ``snapshot()`` takes an
independent deep copy, dispatching on the value's type.

There is deliberately no catch-all: a type must be known to be safe before
it is copied. Unknown types raise ``SnapshotError`` rather than producing a
snapshot that still shares state with the live value.

Manifesto:
    - **History is immutable:** A recorded snapshot never changes afterwards
    - **Explicit over generic:** Copy only what we know how to copy
    - **Extensible:** register_cloner() or ``__snapshot__`` for custom types
    - **Shape preserving:** Shared references and cycles survive the copy

Architecture:
    ::

        snapshot(value)
            │
            ▼
        _clone (functools.singledispatch)
            ├── atoms (None, int, str, Decimal, datetime, UUID, Enum, ...) → same object
            ├── list / tuple / dict / set / frozenset / deque / bytearray → recurse
            ├── pydantic BaseModel → model_copy(deep=True)
            ├── registered cloners → fn(value)
            └── fallback
                  ├── dataclass instance → field-by-field recurse
                  ├── Cloneable (__snapshot__) → value.__snapshot__()
                  └── anything else → SnapshotError

Examples:
    >>> person = {"name": "Ada", "tags": ["math"]}
    >>> copy_ = snapshot(person)
    >>> person["tags"].append("poetry")
    >>> copy_
    {'name': 'Ada', 'tags': ['math']}

    >>> snapshot(open)
    Traceback (most recent call last):
    ...
    trackable.errors.SnapshotError: Cannot snapshot value of type builtin_function_or_method at $

Guardrails:
    ❌ DON'T: Register a cloner that returns the same mutable object
    ✅ DO: Return a new, independent instance from every cloner

Tags:
    snapshot, deep-copy, immutability, singledispatch, trackable

Doc-Types:
    - API Reference
"""

from __future__ import annotations

import dataclasses
import functools
import uuid
from collections import defaultdict, deque
from collections.abc import Callable
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from enum import Enum
from fractions import Fraction
from pathlib import PurePath
from typing import Any, Protocol, TypeVar, runtime_checkable

from pydantic import BaseModel

from trackable.errors import SnapshotError

T = TypeVar("T")

_Memo = dict[int, Any]

_ATOMIC_TYPES: tuple[type, ...] = (
    type(None),
    bool,
    int,
    float,
    complex,
    str,
    bytes,
    range,
    Decimal,
    Fraction,
    date,
    datetime,
    time,
    timedelta,
    uuid.UUID,
    Enum,
    PurePath,
)


@runtime_checkable
class Cloneable(Protocol):
    """Values that know how to produce their own independent copy."""

    def __snapshot__(self) -> Any: ...


def snapshot(value: T) -> T:
    """
    Return a deep, independent copy of ``value``.

    Raises:
        SnapshotError: If the value, or anything nested inside it, has no
            known way to be copied.
    """
    return _clone(value, {}, "$")


def is_snapshottable(value: Any) -> bool:
    """Check whether ``snapshot(value)`` would succeed."""
    try:
        snapshot(value)
    except SnapshotError:
        return False
    return True


def register_cloner(cls: type[T], cloner: Callable[[T], T]) -> None:
    """
    Teach ``snapshot`` how to copy instances of ``cls`` (and its subclasses).

    Example:
        register_cloner(np.ndarray, lambda arr: arr.copy())
    """

    def _registered(value: T, memo: _Memo, path: str) -> T:
        result = cloner(value)
        memo[id(value)] = result
        return result

    _clone.register(cls)(_registered)


@functools.singledispatch
def _clone(value: Any, memo: _Memo, path: str) -> Any:
    if id(value) in memo:
        return memo[id(value)]

    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return _clone_dataclass(value, memo, path)

    if isinstance(value, Cloneable):
        result = value.__snapshot__()
        memo[id(value)] = result
        return result

    raise SnapshotError(
        f"Cannot snapshot value of type {type(value).__name__} at {path}"
    ).with_context(path=path, value_type=_qualname(type(value)))


def _clone_atom(value: Any, memo: _Memo, path: str) -> Any:
    return value


for _atomic in _ATOMIC_TYPES:
    _clone.register(_atomic)(_clone_atom)


@_clone.register(list)
def _clone_list(value: list, memo: _Memo, path: str) -> list:
    if id(value) in memo:
        return memo[id(value)]
    result = type(value)() if type(value) is not list else []
    memo[id(value)] = result
    result.extend(_clone(item, memo, f"{path}[{i}]") for i, item in enumerate(value))
    return result


@_clone.register(tuple)
def _clone_tuple(value: tuple, memo: _Memo, path: str) -> tuple:
    if id(value) in memo:
        return memo[id(value)]
    items = [_clone(item, memo, f"{path}[{i}]") for i, item in enumerate(value)]
    # A cycle back through this tuple already built it while cloning the items.
    if id(value) in memo:
        return memo[id(value)]
    if hasattr(value, "_fields"):
        result = type(value)(*items)
    elif type(value) is tuple:
        result = tuple(items)
    else:
        result = type(value)(items)
    memo[id(value)] = result
    return result


@_clone.register(dict)
def _clone_dict(value: dict, memo: _Memo, path: str) -> dict:
    if id(value) in memo:
        return memo[id(value)]
    if isinstance(value, defaultdict):
        result: dict = defaultdict(value.default_factory)
    elif type(value) is dict:
        result = {}
    else:
        result = type(value)()
    memo[id(value)] = result
    for key, item in value.items():
        result[_clone(key, memo, path)] = _clone(item, memo, f"{path}.{key}")
    return result


@_clone.register(set)
def _clone_set(value: set, memo: _Memo, path: str) -> set:
    if id(value) in memo:
        return memo[id(value)]
    result = type(value)()
    memo[id(value)] = result
    result.update(_clone(item, memo, f"{path}{{}}") for item in value)
    return result


@_clone.register(frozenset)
def _clone_frozenset(value: frozenset, memo: _Memo, path: str) -> frozenset:
    if id(value) in memo:
        return memo[id(value)]
    items = [_clone(item, memo, f"{path}{{}}") for item in value]
    if id(value) in memo:
        return memo[id(value)]
    result = type(value)(items)
    memo[id(value)] = result
    return result


@_clone.register(deque)
def _clone_deque(value: deque, memo: _Memo, path: str) -> deque:
    if id(value) in memo:
        return memo[id(value)]
    result: deque = deque(maxlen=value.maxlen)
    memo[id(value)] = result
    result.extend(_clone(item, memo, f"{path}[{i}]") for i, item in enumerate(value))
    return result


@_clone.register(bytearray)
def _clone_bytearray(value: bytearray, memo: _Memo, path: str) -> bytearray:
    return bytearray(value)


@_clone.register(BaseModel)
def _clone_model(value: BaseModel, memo: _Memo, path: str) -> BaseModel:
    if id(value) in memo:
        return memo[id(value)]
    result = value.model_copy(deep=True)
    memo[id(value)] = result
    return result


def _clone_dataclass(value: Any, memo: _Memo, path: str) -> Any:
    # Bypass __init__/__post_init__ so init=False fields and frozen classes copy verbatim.
    result = object.__new__(type(value))
    memo[id(value)] = result
    names = set()
    for f in dataclasses.fields(value):
        names.add(f.name)
        object.__setattr__(
            result, f.name, _clone(getattr(value, f.name), memo, f"{path}.{f.name}")
        )
    # Attributes set outside the fields (__post_init__ caches, cached_property).
    for name, item in getattr(value, "__dict__", {}).items():
        if name not in names:
            object.__setattr__(result, name, _clone(item, memo, f"{path}.{name}"))
    return result


def _qualname(cls: type) -> str:
    return f"{cls.__module__}.{cls.__qualname__}"


__all__ = [
    "Cloneable",
    "snapshot",
    "is_snapshottable",
    "register_cloner",
]
