"""Unit tests for logging helpers."""

from __future__ import annotations

import json
import logging

import pytest

from flowguard.core.reflect import reflect
from flowguard.observability.logging import (
    JSONFormatter,
    LogContext,
    NullLogger,
    TaskLogger,
    configure_logging,
    get_logger,
    resolve_logger,
)


async def _fail() -> None:
    raise RuntimeError("boom")


@pytest.fixture()
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


class TestTaskLogger:
    def test_stdlib_logger_satisfies_protocol(self) -> None:
        assert isinstance(get_logger("flowguard.test"), TaskLogger)

    def test_null_logger_satisfies_protocol(self) -> None:
        assert isinstance(NullLogger(), TaskLogger)

    def test_resolve_logger(self) -> None:
        custom = get_logger("flowguard.test")
        assert resolve_logger(custom) is custom
        assert isinstance(resolve_logger(None), NullLogger)

    @pytest.mark.asyncio
    async def test_stdlib_logger_receives_reflect_errors(self, caplog) -> None:
        with caplog.at_level(logging.ERROR, logger="flowguard.test"):
            await reflect(_fail, get_logger("flowguard.test"))

        assert [r.getMessage() for r in caplog.records] == ["Reflect task error: boom"]


class TestJSONFormatter:
    def test_formats_record_with_extra(self) -> None:
        record = logging.LogRecord("flowguard", logging.INFO, __file__, 1, "hello %s", ("x",), None)
        record.job = "sync"

        data = json.loads(JSONFormatter().format(record))

        assert data["message"] == "hello x"
        assert data["level"] == "INFO"
        assert data["logger"] == "flowguard"
        assert data["job"] == "sync"
        assert "timestamp" in data


class TestConfigureLogging:
    def test_installs_single_handler(self, restore_root_logger) -> None:
        configure_logging("debug", json_format=True)

        assert restore_root_logger.level == logging.DEBUG
        assert len(restore_root_logger.handlers) == 1
        assert isinstance(restore_root_logger.handlers[0].formatter, JSONFormatter)

    def test_plain_text(self, restore_root_logger) -> None:
        configure_logging("WARNING", json_format=False)
        assert not isinstance(restore_root_logger.handlers[0].formatter, JSONFormatter)


class TestLogContext:
    def test_adds_fields_to_records(self, restore_root_logger) -> None:
        configure_logging("INFO", json_format=True)
        handler = restore_root_logger.handlers[0]
        seen: list[logging.LogRecord] = []
        handler.emit = seen.append  # type: ignore[method-assign]

        with LogContext(job="nightly"):
            get_logger("flowguard.ctx").info("inside")
        get_logger("flowguard.ctx").info("outside")

        assert seen[0].job == "nightly"
        assert not hasattr(seen[1], "job")
