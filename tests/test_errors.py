"""Tests for trackable.errors module."""

import pytest

from trackable.errors import (
    ConstructionError,
    ErrorCategory,
    ErrorContext,
    InvalidPayloadError,
    InvalidStageResultError,
    SnapshotError,
    TrackableError,
)


class TestErrorContext:
    def test_to_dict_excludes_none(self):
        ctx = ErrorContext(stage="enrich")
        assert ctx.to_dict() == {"stage": "enrich"}

    def test_metadata_merged(self):
        ctx = ErrorContext(path="$.a")
        ctx.metadata["attempt"] = 2
        assert ctx.to_dict() == {"path": "$.a", "attempt": 2}


class TestTrackableError:
    def test_defaults(self):
        error = TrackableError("boom")
        assert error.message == "boom"
        assert error.category == ErrorCategory.INTERNAL
        assert error.cause is None
        assert str(error) == "boom"

    def test_with_context_sets_known_and_extra_fields(self):
        error = TrackableError("boom").with_context(stage="s1", run="abc")
        assert error.context.stage == "s1"
        assert error.context.metadata == {"run": "abc"}

    def test_cause_chained(self):
        cause = ValueError("root")
        error = TrackableError("wrapped", cause=cause)
        assert error.__cause__ is cause
        assert error.to_dict()["cause"] == "root"

    def test_to_dict(self):
        error = SnapshotError("no copy").with_context(path="$.x")
        assert error.to_dict() == {
            "error_type": "SnapshotError",
            "message": "no copy",
            "category": "SNAPSHOT",
            "context": {"path": "$.x"},
        }

    def test_repr(self):
        assert repr(SnapshotError("x")) == "SnapshotError('x', category=SNAPSHOT)"


class TestHierarchy:
    @pytest.mark.parametrize(
        ("error_cls", "category", "builtin"),
        [
            (SnapshotError, ErrorCategory.SNAPSHOT, TypeError),
            (InvalidStageResultError, ErrorCategory.STAGE, TypeError),
            (InvalidPayloadError, ErrorCategory.VALIDATION, ValueError),
            (ConstructionError, ErrorCategory.INTERNAL, TrackableError),
        ],
    )
    def test_categories_and_bases(self, error_cls, category, builtin):
        error = error_cls("x")
        assert isinstance(error, TrackableError)
        assert isinstance(error, builtin)
        assert error.category == category

    def test_category_override(self):
        error = SnapshotError("x", category=ErrorCategory.INTERNAL)
        assert error.category == ErrorCategory.INTERNAL

    def test_catchable_as_builtin(self):
        with pytest.raises(TypeError):
            raise SnapshotError("not cloneable")
