"""
Ready-made sinks for draining a Trackable.

A sink is any callable that accepts the drained list of ``EventRecord``s.
``Trackable.run`` calls it synchronously; ``Trackable.run_async`` awaits it.
The sinks here cover the common cases that need no infrastructure:

    MemorySink       keep every drained batch in memory (tests, dev)
    AsyncMemorySink  the same, awaitable, for run_async
    LoggingSink      one structlog line per record
    as_async         adapt any sync sink for run_async

Real delivery (HTTP analytics endpoints, message buses) belongs in the
application's own sink; none of these retry or buffer.

Tags:
    sinks, analytics, telemetry, structlog, in-memory, trackable

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from trackable.events import EventRecord
from trackable.logging import get_logger

__all__ = ["MemorySink", "AsyncMemorySink", "LoggingSink", "as_async"]


class MemorySink:
    """In-memory sink that records every drained batch.

    Example::

        sink = MemorySink()
        Trackable.of(2).map(double, name="double").run(sink)
        assert sink.calls == 1
        assert [e.caller for e in sink.events] == [None, "double"]
    """

    def __init__(self) -> None:
        self.batches: list[list[EventRecord]] = []

    def __call__(self, events: list[EventRecord]) -> None:
        self.batches.append(list(events))

    @property
    def calls(self) -> int:
        return len(self.batches)

    @property
    def events(self) -> list[EventRecord]:
        """All records from all batches, in drain order."""
        return [record for batch in self.batches for record in batch]

    @property
    def last(self) -> list[EventRecord]:
        if not self.batches:
            raise LookupError("MemorySink has not been drained into yet")
        return self.batches[-1]

    def clear(self) -> None:
        self.batches.clear()


class AsyncMemorySink(MemorySink):
    """Awaitable ``MemorySink`` for ``run_async``."""

    async def __call__(self, events: list[EventRecord]) -> None:  # type: ignore[override]
        self.batches.append(list(events))


class LoggingSink:
    """Emit one structured log line per event record.

    Replaces writing the trail to a shared console: the logger is injected,
    so callers decide where it goes.

    Each line carries ``kind``, ``index``, ``total`` and ``current_value``,
    plus ``caller`` and ``input`` when the record has them. Payload fields
    are nested under ``payload`` so they cannot collide with the event name
    or the fields above.

    Args:
        logger: structlog logger to write to (default: this module's logger)
        event: Log event name for every line
        level: Logger method to call (``debug``, ``info``, ``warning``)
    """

    def __init__(
        self,
        logger: Any = None,
        event: str = "trackable_event",
        level: str = "info",
    ) -> None:
        self._logger = logger or get_logger(__name__)
        self._event = event
        self._emit = getattr(self._logger, level)

    def __call__(self, events: list[EventRecord]) -> None:
        total = len(events)
        for index, record in enumerate(events):
            fields: dict[str, Any] = {
                "kind": record.kind.value,
                "index": index,
                "total": total,
                "current_value": record.current_value,
            }
            if record.caller is not None:
                fields["caller"] = record.caller
            if record.has_input:
                fields["input"] = record.input
            if record.payload:
                fields["payload"] = dict(record.payload)
            self._emit(self._event, **fields)


def as_async(sink: Callable[[list[EventRecord]], Any]) -> Callable[[list[EventRecord]], Any]:
    """Wrap a synchronous sink so it can be passed to ``run_async``."""

    async def _async_sink(events: list[EventRecord]) -> None:
        sink(events)

    return _async_sink
