"""
Structured error types for the trackable pipeline.

Trackable deliberately raises very little. Exceptions thrown by a stage
function or by a sink travel to the caller untouched. The errors defined
here cover the few things the wrapper itself can get wrong: a value that
cannot be snapshotted, a ``flat_map`` stage that did not return a
Trackable, a payload that collides with reserved record fields, and an
attempt to bypass ``Trackable.of``.

Manifesto:
    - **Typed hierarchy:** One base class, one subclass per failure mode
    - **Rich context:** Errors carry the stage and value path that failed
    - **Builtin compatibility:** Subclasses also derive from the matching
      builtin (TypeError, ValueError) so existing handlers keep working
    - **No wrapping of user code:** Stage and sink exceptions propagate as-is

Architecture:
    ::

        ┌──────────────────────────────────────────────────────────────┐
        │                      TrackableError                           │
        │           (category, context, cause)                          │
        ├──────────────────────────────────────────────────────────────┤
        │                                                               │
        │  SnapshotError          InvalidStageResultError               │
        │  (SNAPSHOT, TypeError)  (STAGE, TypeError)                    │
        │                                                               │
        │  InvalidPayloadError    ConstructionError                     │
        │  (VALIDATION, ValueError) (INTERNAL)                          │
        └──────────────────────────────────────────────────────────────┘

Examples:
    >>> error = SnapshotError("cannot snapshot generator")
    >>> error.category
    <ErrorCategory.SNAPSHOT: 'SNAPSHOT'>
    >>> error.with_context(stage="load_rows", path="$.rows").context.stage
    'load_rows'

Guardrails:
    ❌ DON'T: Catch TrackableError to hide stage failures
    ✅ DO: Let stage exceptions propagate, they are never wrapped

    ❌ DON'T: Raise SnapshotError from a custom cloner for unrelated bugs
    ✅ DO: Register cloners that either succeed or raise SnapshotError

Tags:
    error-handling, exception-hierarchy, error-context, trackable

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """
    Categories for classifying trackable errors.

    Attributes:
        SNAPSHOT: A value could not be deep-copied into an event record
        STAGE: A stage function broke the composition contract
        VALIDATION: Caller-supplied data (payload) was rejected
        INTERNAL: Misuse of internal API, unexpected state
    """

    SNAPSHOT = "SNAPSHOT"
    STAGE = "STAGE"
    VALIDATION = "VALIDATION"
    INTERNAL = "INTERNAL"


@dataclass
class ErrorContext:
    """
    Structured metadata attached to a trackable error.

    Attributes:
        stage: Name of the stage being applied when the error occurred
        operation: Wrapper operation (``of``, ``map``, ``flat_map``)
        path: Location inside the value, e.g. ``$.rows[3].owner``
        value_type: Qualified name of the offending type
        metadata: Additional key-value pairs
    """

    stage: str | None = None
    operation: str | None = None
    path: str | None = None
    value_type: str | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["stage", "operation", "path", "value_type"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class TrackableError(Exception):
    """
    Base exception for all errors raised by the trackable wrapper itself.

    Subclasses set ``default_category``. Every instance carries an
    ``ErrorContext`` that can be filled in fluently with ``with_context``
    and serialized with ``to_dict`` for structured logging.

    Examples:
        >>> error = TrackableError("Something went wrong")
        >>> error.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>
        >>> error.to_dict()["error_type"]
        'TrackableError'
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> TrackableError:
        """
        Add context to this error (fluent API).

        Usage:
            raise SnapshotError("not cloneable").with_context(
                stage="enrich", path="$.conn"
            )
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result: dict[str, Any] = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


class SnapshotError(TrackableError, TypeError):
    """
    A value could not be snapshotted.

    Raised instead of silently storing a shared reference (which would let
    later stages rewrite history) when a value, or something nested inside
    it, has no registered cloner.
    """

    default_category = ErrorCategory.SNAPSHOT


class InvalidStageResultError(TrackableError, TypeError):
    """A ``flat_map`` stage returned something other than a Trackable."""

    default_category = ErrorCategory.STAGE


class InvalidPayloadError(TrackableError, ValueError):
    """An event payload used a key reserved for record fields."""

    default_category = ErrorCategory.VALIDATION


class ConstructionError(TrackableError):
    """The Trackable constructor was called directly instead of via ``of``."""

    default_category = ErrorCategory.INTERNAL


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "TrackableError",
    "SnapshotError",
    "InvalidStageResultError",
    "InvalidPayloadError",
    "ConstructionError",
]
