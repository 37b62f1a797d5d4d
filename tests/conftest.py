"""Shared test fixtures and configuration."""

from __future__ import annotations

import contextlib

import pytest

from spark_cli.core.controller import StreamController
from tests.mocks.stream import Recorder


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    """Set default timeout for all tests."""
    for item in items:
        with contextlib.suppress(AttributeError):
            item.add_marker(pytest.mark.timeout(3))


@pytest.fixture
def recorder() -> Recorder:
    """Provide a fresh callback recorder."""
    return Recorder()


@pytest.fixture
def controller(recorder: Recorder) -> StreamController:
    """A controller that ticks without sleeping between deliveries."""
    return StreamController(recorder.callbacks, interval=0, divisor=60)
