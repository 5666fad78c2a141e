"""Fire-and-forget retry of rejected tasks.

:func:`reflect_and_retry_rejected` runs a first round of tasks and
returns as soon as it knows which ones failed.  Retries of the failures
are scheduled on the event loop with :meth:`asyncio.loop.call_later`
and run detached: the caller never sees their outcome, only the
:class:`~flowguard.observability.logging.TaskLogger` does.  Use it for
side-effecting tasks whose final result nobody waits for.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Coroutine, Sequence
from typing import Any

from flowguard.core.reflect import reflect_all
from flowguard.observability.logging import TaskLogger, resolve_logger
from flowguard.patterns.retry import EXHAUSTED_MESSAGE, RETRY_MESSAGE, RetryConfig, rejected_tasks

log = logging.getLogger(__name__)


class RetryScheduler:
    """Keeps detached retry rounds alive until they finish.

    The event loop only holds weak references to tasks, so every timer
    handle and every background round is tracked here until it is done.
    """

    def __init__(self) -> None:
        self._timers: set[asyncio.TimerHandle] = set()
        self._rounds: set[asyncio.Task[None]] = set()

    @property
    def pending(self) -> int:
        """Number of scheduled timers plus running background rounds."""
        return len(self._timers) + len(self._rounds)

    def schedule(
        self,
        delay_seconds: float,
        factory: Callable[[], Coroutine[Any, Any, None]],
    ) -> None:
        """Start ``factory()`` as a background task after *delay_seconds*."""
        loop = asyncio.get_running_loop()

        def _fire() -> None:
            self._timers.discard(handle)
            round_task = loop.create_task(factory())
            self._rounds.add(round_task)
            round_task.add_done_callback(self._rounds.discard)

        handle = loop.call_later(delay_seconds, _fire)
        self._timers.add(handle)

    async def drain(self) -> None:
        """Wait until no timer is scheduled and no round is running.

        Rounds scheduled while draining are waited for too.
        """
        loop = asyncio.get_running_loop()
        while self.pending:
            if self._rounds:
                await asyncio.wait(set(self._rounds))
                continue
            next_due = min(handle.when() for handle in self._timers)
            await asyncio.sleep(max(0.0, next_due - loop.time()))


async def _retry_round(
    tasks: Sequence[Any],
    attempts_left: int,
    delay_seconds: float,
    logger: TaskLogger | None,
    scheduler: RetryScheduler,
) -> None:
    task_log = resolve_logger(logger)
    failed = rejected_tasks(await reflect_all(tasks, logger))
    if not failed:
        return

    if attempts_left <= 0:
        task_log.debug(EXHAUSTED_MESSAGE, len(failed))
        return

    async def _next_round() -> None:
        task_log.debug(RETRY_MESSAGE, len(failed), attempts_left)
        await _retry_round(failed, attempts_left - 1, delay_seconds, logger, scheduler)

    log.debug("Scheduling retry of %d task(s) in %.3fs", len(failed), delay_seconds)
    scheduler.schedule(delay_seconds, _next_round)


async def reflect_and_retry_rejected(
    tasks: Sequence[Any],
    config: RetryConfig | None = None,
    logger: TaskLogger | None = None,
    scheduler: RetryScheduler | None = None,
) -> None:
    """Run *tasks* once and retry the failures in the background.

    Fire and forget: this returns right after the first round, once a
    retry has been scheduled (or the failures logged as final).  Later
    rounds apply the same rules on their own until nothing fails or
    ``config.max_attempts`` rounds have been spent.  Pass a
    :class:`RetryScheduler` to be able to :meth:`~RetryScheduler.drain`
    the detached rounds.
    """
    config = config or RetryConfig()
    await _retry_round(
        tasks,
        config.max_attempts,
        config.delay_seconds,
        logger,
        scheduler or RetryScheduler(),
    )
