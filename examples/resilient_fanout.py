"""Example: fan out flaky calls with retry, batching and timeouts.

Simulates a handful of unreliable upstream calls and shows how each
FlowGuard combinator deals with them.
"""

import asyncio
import random

from flowguard.observability.logging import configure_logging, get_logger
from flowguard.patterns.background import RetryScheduler, reflect_and_retry_rejected
from flowguard.patterns.batch import BatchConfig, batch
from flowguard.patterns.race import RaceConfig, race_with_timeout
from flowguard.patterns.retry import RetryConfig, retry_rejected

configure_logging(log_level="DEBUG", json_format=False)
log = get_logger("examples.fanout")


# ── Task implementations ─────────────────────────────────────────────


def fetch(record_id: int, failure_rate: float = 0.4, latency: float = 0.05):
    async def _fetch() -> dict:
        await asyncio.sleep(latency * random.uniform(0.5, 2.0))
        if random.random() < failure_rate:
            raise ConnectionError(f"record {record_id}: upstream unavailable")
        return {"id": record_id}

    return _fetch


async def main() -> None:
    tasks = [fetch(i) for i in range(8)]

    leftovers = await retry_rejected(tasks, RetryConfig(max_attempts=3, delay_seconds=0.1), log)
    log.info("Retry finished, %d task(s) still failing", len(leftovers))

    resolved, rejected = await batch(
        tasks,
        BatchConfig(max_batch_size=3, delay_seconds=0.1, response_mode="ALL_SPLIT"),
        log,
    )
    log.info("Batch finished: %d ok, %d failed", len(resolved), len(rejected))

    slow_tasks = [fetch(i, failure_rate=0.0, latency=0.2) for i in range(4)]
    winners = await race_with_timeout(
        slow_tasks,
        RaceConfig(timeout_seconds=0.2, response_mode="ONLY_WINNERS"),
        log,
    )
    log.info("Race finished: %d task(s) answered in time", len(winners))

    scheduler = RetryScheduler()
    await reflect_and_retry_rejected(
        tasks, RetryConfig(max_attempts=2, delay_seconds=0.1), log, scheduler
    )
    log.info("Background retries scheduled: %d", scheduler.pending)
    await scheduler.drain()


if __name__ == "__main__":
    asyncio.run(main())
