"""
Trackable - a value that records what happened to it.

A ``Trackable`` wraps a value and threads it through a chain of stages while
building an ordered audit trail of ``EventRecord``s: which stage ran, what
the value was before, what it became after. At the end of the chain the
trail is handed to a sink (analytics, telemetry, a log) exactly once and the
plain value is returned to normal program flow.

Manifesto:
    - **Immutable wrappers:** Every composition returns a new Trackable
    - **Immutable history:** Records hold snapshots, never live references
    - **One flat log:** flat_map merges logs, it never nests wrappers
    - **Caller owns delivery:** Sinks do the I/O, the wrapper never retries

Architecture:
    ::

        Trackable.of(value, payload)          ── [construct]
             │
             ├── .map(fn, name=...)           ── + [map: caller, input, current_value]
             │
             ├── .flat_map(fn, name=...)      ── + inner log, last record re-attributed
             │
             └── .run(sink) / .run_async(sink) ── sink(events) once → plain value

    State machine::

        live ──map/flat_map──► live (new instance)
          │
          └──run/run_async──► drained (plain value, no wrapper left to compose)

Examples:
    >>> @stage("add_three_and_random")
    ... def add_three_and_random(x):
    ...     r = random.random()
    ...     return Trackable.of(x + 3 + r, random_number=r)
    >>> sink = MemorySink()
    >>> result = (
    ...     Trackable.of(5)
    ...     .flat_map(add_three_and_random)
    ...     .map(lambda x: x + 2)
    ...     .run(sink)
    ... )
    >>> [e.caller for e in sink.events]
    [None, 'add_three_and_random', 'anonymous']

Guardrails:
    ❌ DON'T: Mutate the value in a map stage and return None
    ✅ DO: Return the value to track from every stage

    ❌ DON'T: Return a bare value from a flat_map stage
    ✅ DO: Use map for bare values, flat_map for Trackable-returning stages

    ❌ DON'T: Rely on function __name__ for stage names
    ✅ DO: Pass name= or decorate the stage with @stage("name")

Tags:
    trackable, monad, writer, audit-trail, analytics, pipeline

Doc-Types:
    - API Reference
    - Design Patterns Guide
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from typing import Any, Generic, TypeVar

from trackable.errors import (
    ConstructionError,
    ErrorCategory,
    InvalidStageResultError,
    TrackableError,
)
from trackable.events import EventRecord
from trackable.logging import get_logger
from trackable.settings import get_settings
from trackable.snapshot import snapshot

logger = get_logger(__name__)

V = TypeVar("V")
A = TypeVar("A")
F = TypeVar("F", bound=Callable[..., Any])

ANONYMOUS = "anonymous"
STAGE_ATTRIBUTE = "__trackable_stage__"

Sink = Callable[[list[EventRecord]], Any]
AsyncSink = Callable[[list[EventRecord]], Awaitable[Any]]

_CONSTRUCTION_TOKEN = object()


def stage(name: str) -> Callable[[F], F]:
    """
    Name a stage function for the audit trail.

    Example:
        @stage("normalize_prices")
        def normalize(rows): ...

        Trackable.of(rows).map(normalize)  # caller == "normalize_prices"

    Builtins and bound methods do not accept attributes; name those with
    ``map(round, name="round")`` instead.

    Raises:
        TrackableError: ``fn`` cannot carry a stage name
    """

    def decorator(fn: F) -> F:
        try:
            setattr(fn, STAGE_ATTRIBUTE, name)
        except AttributeError as e:
            raise TrackableError(
                f"Cannot attach stage name {name!r} to {type(fn).__name__}; "
                f"pass name={name!r} to map/flat_map instead",
                category=ErrorCategory.STAGE,
                cause=e,
            ).with_context(stage=name, value_type=type(fn).__name__) from e
        return fn

    return decorator


def stage_name(fn: Callable[..., Any], name: str | None = None) -> str:
    """Resolve the recorded caller: explicit name, then ``@stage``, then ``"anonymous"``."""
    if name is not None:
        return name
    return getattr(fn, STAGE_ATTRIBUTE, None) or ANONYMOUS


class Trackable(Generic[V]):
    """
    Immutable wrapper around a value plus its ordered event log.

    Construct with ``Trackable.of``; calling the class directly raises
    ``ConstructionError``.

    Attributes:
        value: The current payload
        events: Tuple of EventRecord, oldest first
    """

    __slots__ = ("_value", "_events")

    def __init__(
        self,
        value: V,
        events: tuple[EventRecord, ...],
        *,
        _token: object = None,
    ) -> None:
        if _token is not _CONSTRUCTION_TOKEN:
            raise ConstructionError(
                "Trackable cannot be constructed directly; use Trackable.of(value)"
            )
        object.__setattr__(self, "_value", value)
        object.__setattr__(self, "_events", events)

    @classmethod
    def _create(cls, value: A, events: tuple[EventRecord, ...]) -> Trackable[A]:
        return cls(value, events, _token=_CONSTRUCTION_TOKEN)

    @classmethod
    def of(
        cls,
        value: A,
        payload: Mapping[str, Any] | None = None,
        /,
        **fields: Any,
    ) -> Trackable[A]:
        """
        Wrap ``value`` with a one-record event log.

        ``payload`` and keyword ``fields`` are merged into the construction
        record, e.g. ``Trackable.of(x, random_number=r)``.

        Raises:
            SnapshotError: ``value`` or the payload cannot be snapshotted
            InvalidPayloadError: the payload uses a reserved field name
        """
        merged = {**(payload or {}), **fields}
        record = EventRecord.construct(snapshot(value), snapshot(merged))
        logger.debug("trackable_created", payload_keys=sorted(merged))
        return cls._create(value, (record,))

    # ── Inspection ───────────────────────────────────────────────

    @property
    def value(self) -> V:
        return self._value

    @property
    def events(self) -> tuple[EventRecord, ...]:
        return self._events

    def get_value(self) -> V:
        """Alias for ``value``."""
        return self._value

    def get_events(self) -> tuple[EventRecord, ...]:
        """Alias for ``events``."""
        return self._events

    def __len__(self) -> int:
        return len(self._events)

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable")

    def __delattr__(self, name: str) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable")

    def __repr__(self) -> str:
        return f"Trackable({self._value!r}, events={len(self._events)})"

    def __str__(self) -> str:
        events = [record.to_dict() for record in self._events]
        return f"value: {self._value!r}\nevents: {events!r}"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "value": self._value,
            "events": [record.to_dict() for record in self._events],
        }

    def log(self, target: Any = None) -> None:
        """Emit this instance through ``target`` (a structlog logger), default the module logger."""
        (target or logger).info(
            "trackable", value=self._value, events=[r.to_dict() for r in self._events]
        )

    def log_and_continue(self, target: Any = None) -> Trackable[V]:
        """Like ``log`` but returns ``self`` so the chain can continue."""
        self.log(target)
        return self

    # ── Composition ──────────────────────────────────────────────

    def map(self, fn: Callable[[V], A], *, name: str | None = None) -> Trackable[A]:
        """
        Apply ``fn`` to the value and record the stage.

        The ``input`` snapshot is taken before ``fn`` runs, so in-place
        mutation by ``fn`` is not reflected in it. The new wrapper always
        carries ``fn``'s return value. Exceptions from ``fn`` propagate and
        nothing is recorded.
        """
        caller = stage_name(fn, name)
        before = snapshot(self._value)

        result = fn(self._value)

        if result is None and get_settings().warn_on_none:
            logger.warning("map_returned_none", caller=caller)

        record = EventRecord.for_map(caller, before, snapshot(result))
        logger.debug("stage_applied", operation="map", caller=caller, event_count=len(self) + 1)
        return self._create(result, self._events + (record,))

    def flat_map(
        self, fn: Callable[[V], Trackable[A]], *, name: str | None = None
    ) -> Trackable[A]:
        """
        Apply a Trackable-returning ``fn`` and flatten the logs.

        The result's log is this log followed by the inner log. The inner
        log's last record is re-attributed to this call site: its caller
        becomes the stage name, its input the snapshot of this value taken
        before ``fn`` ran, its current value a snapshot of the inner value.
        Payload fields on that record are kept.

        Raises:
            InvalidStageResultError: ``fn`` did not return a Trackable
        """
        caller = stage_name(fn, name)
        before = snapshot(self._value)

        inner = fn(self._value)

        if not isinstance(inner, Trackable):
            raise InvalidStageResultError(
                f"flat_map stage {caller!r} returned {type(inner).__name__}, "
                "expected Trackable; use map() for stages that return plain values"
            ).with_context(stage=caller, operation="flat_map", value_type=type(inner).__name__)

        *leading, last = inner._events
        attributed = last.attribute(caller, before, snapshot(inner._value))
        events = self._events + tuple(leading) + (attributed,)

        logger.debug("stage_applied", operation="flat_map", caller=caller, event_count=len(events))
        return self._create(inner._value, events)

    # Aliases used by other monad-style APIs
    chain = flat_map
    bind = flat_map

    # ── Drain ────────────────────────────────────────────────────

    def run(self, sink: Sink) -> V:
        """
        Hand the full event log to ``sink`` once and return the value.

        ``sink`` gets a fresh list of detached records, so the wrapper is
        unchanged whatever the sink does with the list or the values inside
        it. Sink exceptions propagate.
        """
        events = [record.detached() for record in self._events]
        sink(events)
        logger.debug("trackable_drained", event_count=len(events), mode="sync")
        return self._value

    async def run_async(self, sink: AsyncSink) -> V:
        """Await ``sink`` once with the full event log and return the value."""
        events = [record.detached() for record in self._events]
        await sink(events)
        logger.debug("trackable_drained", event_count=len(events), mode="async")
        return self._value


__all__ = [
    "ANONYMOUS",
    "AsyncSink",
    "Sink",
    "Trackable",
    "stage",
    "stage_name",
]
