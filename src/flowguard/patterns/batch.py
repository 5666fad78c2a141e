"""Fixed-size batching with pacing between batches.

Caps how many tasks run at once by splitting the input into consecutive
groups of at most ``max_batch_size`` tasks.  Groups run one after another;
the tasks of a group run concurrently.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, TypeVar

from flowguard.core.reflect import reflect_all
from flowguard.observability.logging import TaskLogger
from flowguard.patterns.response import (
    ResponseBuckets,
    ResponseMode,
    coerce_mode,
    select_response,
)
from flowguard.patterns.retry import delay

log = logging.getLogger(__name__)

T = TypeVar("T")

BATCH_MODES = frozenset(
    {
        ResponseMode.ONLY_RESOLVED,
        ResponseMode.ONLY_REJECTED,
        ResponseMode.ALL,
        ResponseMode.ALL_SPLIT,
    }
)


@dataclass(frozen=True)
class BatchConfig:
    """Batch size, pacing, and response shape."""

    max_batch_size: int = 2
    delay_seconds: float = 1.0
    response_mode: ResponseMode | str = ResponseMode.ALL


def chunk(items: Sequence[T], size: int) -> list[Sequence[T]]:
    """Split *items* into consecutive groups of at most *size* elements."""
    if size < 1:
        raise ValueError(f"Batch size must be at least 1, got {size}")
    return [items[i : i + size] for i in range(0, len(items), size)]


async def batch(
    tasks: Sequence[Any],
    config: BatchConfig | None = None,
    logger: TaskLogger | None = None,
) -> Any:
    """Run *tasks* group by group and return the buckets *config* asks for.

    Every group is followed by a ``delay_seconds`` pause, the last one
    included.  An unsupported response mode raises
    :class:`~flowguard.patterns.response.InvalidResponseModeError` before
    any task is started.
    """
    config = config or BatchConfig()
    mode = coerce_mode(config.response_mode, BATCH_MODES)
    groups = chunk(tasks, config.max_batch_size)
    buckets = ResponseBuckets()

    for index, group in enumerate(groups, start=1):
        log.debug("Running batch %d/%d with %d task(s)", index, len(groups), len(group))
        for outcome in await reflect_all(group, logger):
            if outcome.resolved:
                buckets.resolved.append(outcome.data)
            else:
                buckets.rejected.append(outcome.error)
            buckets.all.append(outcome.value)
        await delay(config.delay_seconds)

    return select_response(mode, buckets)
