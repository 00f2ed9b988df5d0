"""
Event records: one entry in a Trackable's audit trail.

Each record describes a single pipeline stage: which stage ran (``caller``),
the value before it ran (``input``) and the value it produced
(``current_value``), plus any free-form fields the stage chose to report
(``payload``). Both value fields are snapshots, so a record is unaffected by
anything that happens to the live value afterwards.

Records are frozen. Sinks receive detached copies (``detached()``) and
usually call ``to_dict()`` to get a flat, serialization-ready mapping. Both
hand out fresh snapshots, so nothing a sink does can reach the stored trail.

Tags:
    events, audit-trail, analytics, immutable, trackable

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from enum import Enum
from types import MappingProxyType
from typing import Any

from trackable.errors import InvalidPayloadError
from trackable.snapshot import snapshot

RESERVED_FIELDS = frozenset({"kind", "caller", "input", "current_value", "recorded_at"})


class EventKind(str, Enum):
    """Which wrapper operation produced a record."""

    CONSTRUCT = "construct"
    MAP = "map"
    FLAT_MAP = "flat_map"


class _NoInput:
    """Marker for records that have no ``input`` (construction records)."""

    _instance: _NoInput | None = None

    def __new__(cls) -> _NoInput:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NO_INPUT"

    def __bool__(self) -> bool:
        return False


NO_INPUT: Any = _NoInput()


def _utc_now() -> datetime:
    return datetime.now(UTC)


def _freeze_payload(payload: Mapping[str, Any] | None) -> Mapping[str, Any]:
    if not payload:
        return MappingProxyType({})
    clashes = RESERVED_FIELDS.intersection(payload)
    if clashes:
        raise InvalidPayloadError(
            f"Event payload uses reserved field(s): {', '.join(sorted(clashes))}"
        ).with_context(reserved=sorted(clashes))
    return MappingProxyType(dict(payload))


@dataclass(frozen=True, slots=True)
class EventRecord:
    """
    One stage of a Trackable chain.

    Attributes:
        kind: Operation that produced the record
        current_value: Snapshot of the value after the stage
        caller: Stage name, ``"anonymous"`` if unnamed, ``None`` for a
            construction record
        input: Snapshot of the value before the stage, ``NO_INPUT`` for a
            construction record
        payload: Read-only free-form fields supplied by the stage
        recorded_at: When the record was created (UTC)

    Payload fields are readable with mapping syntax:

        >>> record = EventRecord.construct(8.4, {"random_number": 0.4})
        >>> record["random_number"]
        0.4
        >>> "caller" in record.to_dict()
        False
    """

    kind: EventKind
    current_value: Any
    caller: str | None = None
    input: Any = NO_INPUT
    payload: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))
    recorded_at: datetime = field(default_factory=_utc_now)

    @classmethod
    def construct(
        cls, current_value: Any, payload: Mapping[str, Any] | None = None
    ) -> EventRecord:
        """Build the initial record for ``Trackable.of``. Values must already be snapshots."""
        return cls(
            kind=EventKind.CONSTRUCT,
            current_value=current_value,
            payload=_freeze_payload(payload),
        )

    @classmethod
    def for_map(cls, caller: str, input: Any, current_value: Any) -> EventRecord:
        """Build a record for a ``map`` stage. Values must already be snapshots."""
        return cls(kind=EventKind.MAP, caller=caller, input=input, current_value=current_value)

    def attribute(self, caller: str, input: Any, current_value: Any) -> EventRecord:
        """
        Re-attribute this record to a ``flat_map`` call site.

        The payload and timestamp are kept; caller, input and current value
        are replaced.
        """
        return replace(
            self,
            kind=EventKind.FLAT_MAP,
            caller=caller,
            input=input,
            current_value=current_value,
        )

    @property
    def has_input(self) -> bool:
        return self.input is not NO_INPUT

    def get(self, key: str, default: Any = None) -> Any:
        return self.payload.get(key, default)

    def __getitem__(self, key: str) -> Any:
        return self.payload[key]

    def __contains__(self, key: object) -> bool:
        return key in self.payload

    def __iter__(self) -> Iterator[str]:
        return iter(self.payload)

    def detached(self) -> EventRecord:
        """Copy of this record whose values and payload are fresh snapshots."""
        return replace(
            self,
            input=snapshot(self.input) if self.has_input else NO_INPUT,
            current_value=snapshot(self.current_value),
            payload=MappingProxyType(snapshot(dict(self.payload))),
        )

    def to_dict(self) -> dict[str, Any]:
        """
        Flatten the record for sinks.

        Payload fields come first, then ``caller`` and ``input`` when the
        record has them, then ``current_value``. Values are snapshots, so
        editing the returned mapping never touches the record.
        """
        result: dict[str, Any] = snapshot(dict(self.payload))
        if self.caller is not None:
            result["caller"] = self.caller
        if self.has_input:
            result["input"] = snapshot(self.input)
        result["current_value"] = snapshot(self.current_value)
        return result


__all__ = [
    "EventKind",
    "EventRecord",
    "NO_INPUT",
    "RESERVED_FIELDS",
]
