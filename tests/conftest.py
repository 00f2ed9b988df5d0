"""
Shared pytest fixtures for trackable tests.

This module provides:
- Settings cache isolation between tests
- Memory sinks
- Stage functions from the random-number and mutable-person scenarios
"""

import random
from typing import Any

import pytest

from trackable import AsyncMemorySink, MemorySink, Trackable, stage
from trackable.settings import reset_settings


@pytest.fixture(autouse=True)
def _isolated_settings():
    """Each test reads TRACKABLE_* env vars afresh."""
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def sink() -> MemorySink:
    return MemorySink()


@pytest.fixture
def async_sink() -> AsyncMemorySink:
    return AsyncMemorySink()


# =============================================================================
# Scenario stages
# =============================================================================


@stage("addThreeAndRandom")
def add_three_and_random(value: float) -> Trackable[float]:
    r = random.random()
    return Trackable.of(value + 3 + r, {"randomNumber": r})


@stage("multiplyBy5AndRandom")
def multiply_by_5_and_random(value: float) -> Trackable[float]:
    r = random.random()
    return Trackable.of(value * 5 + r, {"randomNumber": r})


@stage("incrementAge")
def increment_age(person: dict[str, Any]) -> Trackable[dict[str, Any]]:
    person["age"] += 1
    return Trackable.of(person)


@stage("renameInPlace")
def rename_in_place(person: dict[str, Any]) -> dict[str, Any]:
    person["name"] = "Grace"
    return person


@pytest.fixture
def stages() -> dict[str, Any]:
    return {
        "add_three_and_random": add_three_and_random,
        "multiply_by_5_and_random": multiply_by_5_and_random,
        "increment_age": increment_age,
        "rename_in_place": rename_in_place,
    }
