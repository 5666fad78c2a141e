"""Unit tests for fire-and-forget retry."""

from __future__ import annotations

import asyncio

import pytest

from flowguard.patterns.background import RetryScheduler, reflect_and_retry_rejected
from flowguard.patterns.retry import EXHAUSTED_MESSAGE, RETRY_MESSAGE, RetryConfig


async def _fail() -> None:
    raise RuntimeError("Throw error")


async def _ok() -> dict:
    return {}


class TestReflectAndRetryRejected:
    @pytest.mark.asyncio
    async def test_returns_after_first_round(self, recording_logger) -> None:
        scheduler = RetryScheduler()
        config = RetryConfig(max_attempts=2, delay_seconds=0.01)

        result = await reflect_and_retry_rejected(
            [_fail, _ok, _fail], config, recording_logger, scheduler
        )

        assert result is None
        assert len(recording_logger.error_calls) == 2
        assert scheduler.pending == 1

        await scheduler.drain()

        assert len(recording_logger.error_calls) == 6
        assert scheduler.pending == 0

    @pytest.mark.asyncio
    async def test_retries_run_without_draining(self, recording_logger) -> None:
        config = RetryConfig(max_attempts=2, delay_seconds=0.01)

        await reflect_and_retry_rejected([_fail, _ok, _fail], config, recording_logger)
        assert len(recording_logger.error_calls) == 2

        await asyncio.sleep(0.3)

        assert len(recording_logger.error_calls) == 6
        assert recording_logger.debug_calls == [
            (RETRY_MESSAGE, (2, 2)),
            (RETRY_MESSAGE, (2, 1)),
            (EXHAUSTED_MESSAGE, (2,)),
        ]

    @pytest.mark.asyncio
    async def test_stops_once_everything_succeeds(self, flaky, recording_logger) -> None:
        scheduler = RetryScheduler()
        task = flaky(failures=1)

        await reflect_and_retry_rejected(
            [task], RetryConfig(max_attempts=5, delay_seconds=0.01), recording_logger, scheduler
        )
        await scheduler.drain()

        assert task.calls == 2
        assert len(recording_logger.error_calls) == 1
        assert recording_logger.debug_calls == [(RETRY_MESSAGE, (1, 5))]

    @pytest.mark.asyncio
    async def test_no_attempts_logs_exhaustion(self, recording_logger) -> None:
        scheduler = RetryScheduler()

        await reflect_and_retry_rejected([_fail], RetryConfig(), recording_logger, scheduler)

        assert scheduler.pending == 0
        assert recording_logger.debug_calls == [(EXHAUSTED_MESSAGE, (1,))]

    @pytest.mark.asyncio
    async def test_all_succeed_schedules_nothing(self, recording_logger) -> None:
        scheduler = RetryScheduler()

        await reflect_and_retry_rejected(
            [_ok, _ok], RetryConfig(max_attempts=3), recording_logger, scheduler
        )

        assert scheduler.pending == 0
        assert recording_logger.debug_calls == []


class TestRetryScheduler:
    @pytest.mark.asyncio
    async def test_drain_with_nothing_pending(self) -> None:
        scheduler = RetryScheduler()
        await scheduler.drain()
        assert scheduler.pending == 0

    @pytest.mark.asyncio
    async def test_schedule_runs_factory_later(self) -> None:
        scheduler = RetryScheduler()
        ran: list[str] = []

        async def _job() -> None:
            ran.append("job")

        scheduler.schedule(0.01, _job)
        assert ran == []
        assert scheduler.pending == 1

        await scheduler.drain()
        assert ran == ["job"]
