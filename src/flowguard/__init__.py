"""FlowGuard: resilient fan-out combinators for asyncio.

Runs collections of independently-failable async tasks concurrently and
applies resilience policies to them: reflection, bounded retry,
fire-and-forget retry, paced batching, and race-with-timeout.
"""

__version__ = "1.0.0"
