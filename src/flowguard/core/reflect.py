"""Reflection: turn possibly-failing tasks into always-successful outcomes.

:func:`reflect` runs one task and wraps whatever happens in an
:class:`~flowguard.core.models.Outcome`; :func:`reflect_all` fans it out
over a list.  Neither ever raises because of a task failure, which is
what lets the retry, batch and race combinators reason purely about
outcome records.
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Iterable
from typing import Any

from flowguard.core.models import NonRetryable, Outcome, Retryable, as_task_input
from flowguard.observability.logging import TaskLogger, resolve_logger

REFLECT_ERROR_MESSAGE = "Reflect task error: %s"


async def invoke(item: Any) -> Any:
    """Start *item* and await its value, raising whatever it raises."""
    task_input = as_task_input(item)
    if isinstance(task_input, NonRetryable):
        return await task_input.awaitable

    result = task_input.task()
    if inspect.isawaitable(result):
        return await result
    return result


async def reflect(item: Any, logger: TaskLogger | None = None) -> Outcome:
    """Run one task and report its outcome without propagating failure.

    *item* is a zero-argument callable (retryable) or an already-started
    awaitable (not retryable).  A failed callable is echoed back as
    :attr:`Outcome.rejected_task` exactly as it was passed in (bare or
    wrapped in :class:`Retryable`); a failed awaitable is not, because it
    cannot be started again.
    """
    task_log = resolve_logger(logger)
    task_input = as_task_input(item)
    try:
        data = await invoke(task_input)
    except Exception as exc:
        task_log.error(REFLECT_ERROR_MESSAGE, exc)
        if isinstance(task_input, Retryable):
            return Outcome.failure(exc, rejected_task=item)
        return Outcome.failure(exc)
    return Outcome.success(data)


async def reflect_all(items: Iterable[Any], logger: TaskLogger | None = None) -> list[Outcome]:
    """Reflect every task concurrently.

    All tasks are started before any is awaited.  ``result[i]`` always
    describes ``items[i]`` regardless of completion order.
    """
    return list(await asyncio.gather(*(reflect(item, logger) for item in items)))
