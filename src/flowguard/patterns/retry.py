"""Bounded retry of rejected tasks.

:func:`retry_rejected` runs a list of tasks concurrently, then re-runs
only the ones that failed, pausing between rounds, until everything has
succeeded or the attempt budget is spent.  Whatever still fails is handed
back to the caller so it can try a different recovery strategy.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, TypeVar

from flowguard.core.models import Outcome, RetryableTask
from flowguard.core.reflect import reflect_all
from flowguard.observability.logging import TaskLogger, resolve_logger

T = TypeVar("T")

RETRY_MESSAGE = "Trying to run [%d] rejected task(s), attempts left %d"
EXHAUSTED_MESSAGE = "Failed to execute [%d] task(s)"


@dataclass(frozen=True)
class RetryConfig:
    """Immutable configuration for retry behaviour.

    ``max_attempts`` counts retries on top of the first run, so a task may
    be invoked up to ``1 + max_attempts`` times.
    """

    max_attempts: int = 0
    delay_seconds: float = 1.0


async def delay(seconds: float, value: T | None = None) -> T | None:
    """Suspend for *seconds*, then return *value*."""
    return await asyncio.sleep(seconds, result=value)


def rejected_tasks(outcomes: Sequence[Outcome]) -> list[RetryableTask]:
    """Callables behind the rejected outcomes that can be invoked again."""
    return [o.rejected_task for o in outcomes if o.rejected and o.rejected_task is not None]


async def retry_rejected(
    tasks: Sequence[Any],
    config: RetryConfig | None = None,
    logger: TaskLogger | None = None,
) -> list[RetryableTask]:
    """Run *tasks*, retrying the failed ones until they pass or attempts run out.

    Returns an empty list when every task eventually succeeded, otherwise
    the still-failing task callables (not their errors).  Results of
    successful tasks are discarded.  *config* is never modified.
    """
    config = config or RetryConfig()
    task_log = resolve_logger(logger)
    attempts_left = config.max_attempts
    pending: Sequence[Any] = tasks

    while True:
        failed = rejected_tasks(await reflect_all(pending, logger))
        if not failed:
            return []

        if attempts_left <= 0:
            task_log.debug(EXHAUSTED_MESSAGE, len(failed))
            return failed

        task_log.debug(RETRY_MESSAGE, len(failed), attempts_left)
        attempts_left -= 1
        await delay(config.delay_seconds)
        pending = failed
