"""Shared test fixtures."""

from __future__ import annotations

from typing import Any

import pytest


class RecordingLogger:
    """TaskLogger that remembers every call."""

    def __init__(self) -> None:
        self.debug_calls: list[tuple[str, tuple[Any, ...]]] = []
        self.error_calls: list[tuple[str, tuple[Any, ...]]] = []

    def debug(self, msg: str, *args: Any) -> None:
        self.debug_calls.append((msg, args))

    def error(self, msg: str, *args: Any) -> None:
        self.error_calls.append((msg, args))


class Flaky:
    """Task that fails a fixed number of times before succeeding."""

    def __init__(self, failures: int, value: Any = "ok") -> None:
        self.failures = failures
        self.value = value
        self.calls = 0

    async def __call__(self) -> Any:
        self.calls += 1
        if self.calls <= self.failures:
            raise RuntimeError(f"failure #{self.calls}")
        return self.value


@pytest.fixture()
def recording_logger() -> RecordingLogger:
    return RecordingLogger()


@pytest.fixture()
def flaky() -> type[Flaky]:
    return Flaky
