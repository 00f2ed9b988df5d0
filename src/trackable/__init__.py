"""Trackable -- an instrumented value pipeline.

Wrap a value, chain stages over it with ``map`` and ``flat_map``, and drain
the accumulated audit trail into a sink at the end::

    from trackable import Trackable, MemorySink, stage

    @stage("add_tax")
    def add_tax(total):
        return Trackable.of(total * 1.2, tax_rate=0.2)

    sink = MemorySink()
    total = Trackable.of(100).flat_map(add_tax).map(round, name="round").run(sink)

Modules::

    trackable.py    Trackable, stage -- construction, composition, drain
    events.py       EventRecord, EventKind -- one audit-trail entry
    snapshot.py     snapshot, register_cloner -- type-directed deep copy
    sinks.py        MemorySink, AsyncMemorySink, LoggingSink, as_async
    errors.py       TrackableError hierarchy
    logging.py      structlog configuration
    settings.py     TRACKABLE_* environment settings
"""

from trackable.errors import (
    ConstructionError,
    ErrorCategory,
    ErrorContext,
    InvalidPayloadError,
    InvalidStageResultError,
    SnapshotError,
    TrackableError,
)
from trackable.events import NO_INPUT, EventKind, EventRecord
from trackable.sinks import AsyncMemorySink, LoggingSink, MemorySink, as_async
from trackable.snapshot import Cloneable, is_snapshottable, register_cloner, snapshot
from trackable.trackable import ANONYMOUS, AsyncSink, Sink, Trackable, stage, stage_name

__version__ = "0.1.0"

__all__ = [
    # Wrapper
    "Trackable",
    "stage",
    "stage_name",
    "ANONYMOUS",
    "Sink",
    "AsyncSink",
    # Events
    "EventRecord",
    "EventKind",
    "NO_INPUT",
    # Snapshots
    "snapshot",
    "is_snapshottable",
    "register_cloner",
    "Cloneable",
    # Sinks
    "MemorySink",
    "AsyncMemorySink",
    "LoggingSink",
    "as_async",
    # Errors
    "TrackableError",
    "ErrorCategory",
    "ErrorContext",
    "SnapshotError",
    "InvalidStageResultError",
    "InvalidPayloadError",
    "ConstructionError",
]
