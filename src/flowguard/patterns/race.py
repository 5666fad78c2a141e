"""Race each task against a timeout.

Every task is paired with a timer; whichever finishes first decides the
task's outcome.  A task that loses the race is not cancelled: it keeps
running and its late result is simply never looked at.
"""

from __future__ import annotations

import asyncio
import functools
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from flowguard.core.models import TimedOut, as_task_input
from flowguard.core.reflect import invoke, reflect_all
from flowguard.observability.logging import TaskLogger
from flowguard.patterns.response import (
    ResponseBuckets,
    ResponseMode,
    coerce_mode,
    select_response,
)
from flowguard.patterns.retry import delay

log = logging.getLogger(__name__)

RACE_MODES = frozenset(
    {
        ResponseMode.ONLY_RESOLVED,
        ResponseMode.ONLY_WINNERS,
        ResponseMode.ALL,
    }
)


@dataclass(frozen=True)
class RaceConfig:
    """Timeout, sentinel message, and response shape."""

    timeout_seconds: float = 1.0
    timeout_message: str = "Task timed out"
    response_mode: ResponseMode | str = ResponseMode.ALL


def has_payload(value: Any) -> bool:
    """Whether a race result counts as an answer.

    Only ``None``, ``False``, numeric zero and ``""`` do not.  Containers,
    empty ones included, always count, and ``bool()`` is never called on
    the value.
    """
    if value is None or value is False:
        return False
    if type(value) in (int, float):
        return value != 0
    if type(value) is str:
        return value != ""
    return True


def _discard_result(future: asyncio.Future[Any]) -> None:
    # Retrieve a loser's exception so the loop does not report it.
    if not future.cancelled():
        future.exception()


async def race_one(item: Any, timeout_seconds: float, timeout_message: str) -> Any:
    """Return the value of *item*, or a :class:`TimedOut` if the timer wins.

    A task failing before the timeout raises its own error.
    """
    task_input = as_task_input(item)
    task_ref = item
    contender = asyncio.ensure_future(invoke(task_input))
    timer = asyncio.ensure_future(
        delay(timeout_seconds, TimedOut(timeout_task=task_ref, timeout_message=timeout_message))
    )

    try:
        await asyncio.wait({contender, timer}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        if not timer.done():
            timer.cancel()

    if contender.done():
        return contender.result()

    log.debug("Task %r lost the race against a %.3fs timer", task_ref, timeout_seconds)
    contender.add_done_callback(_discard_result)
    return timer.result()


async def race_with_timeout(
    tasks: Sequence[Any],
    config: RaceConfig | None = None,
    logger: TaskLogger | None = None,
) -> Any:
    """Race every task in *tasks* against ``config.timeout_seconds``.

    Buckets:

    * resolved: every payload that counts as an answer (see
      :func:`has_payload`), timeout sentinels included;
    * winners: the resolved payloads that are not :class:`TimedOut`;
    * all: payload-or-error of every race, in input order.
    """
    config = config or RaceConfig()
    mode = coerce_mode(config.response_mode, RACE_MODES)

    races = [
        functools.partial(race_one, item, config.timeout_seconds, config.timeout_message)
        for item in tasks
    ]
    outcomes = await reflect_all(races, logger)

    buckets = ResponseBuckets()
    for outcome in outcomes:
        buckets.all.append(outcome.value)
        if outcome.resolved and has_payload(outcome.data):
            buckets.resolved.append(outcome.data)
            if not isinstance(outcome.data, TimedOut):
                buckets.winners.append(outcome.data)
        elif outcome.rejected:
            buckets.rejected.append(outcome.error)

    return select_response(mode, buckets)
