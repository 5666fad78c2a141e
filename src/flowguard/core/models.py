"""Domain models for the FlowGuard combinators.

Defines the value objects shared by every combinator: the task input
variants (:class:`Retryable` / :class:`NonRetryable`), the normalised
:class:`Outcome` of one task, and the :class:`TimedOut` sentinel
produced by a lost race.
"""

from __future__ import annotations

import enum
import inspect
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

# A task is a zero-argument callable producing (usually awaitable) output.
TaskCallable = Callable[[], Any]


class OutcomeStatus(enum.Enum):
    """Final state of one reflected task."""

    RESOLVED = "resolved"
    REJECTED = "rejected"


@dataclass(frozen=True)
class Retryable:
    """A task that can be invoked again after a failure."""

    task: TaskCallable


@dataclass(frozen=True)
class NonRetryable:
    """An already-started awaitable; it can be observed only once."""

    awaitable: Awaitable[Any]


TaskInput = Retryable | NonRetryable

# What a rejected outcome hands back: the retryable input as the caller gave it.
RetryableTask = TaskCallable | Retryable


def as_task_input(item: Any) -> TaskInput:
    """Normalise a raw callable or awaitable into a task input variant.

    Already-wrapped variants are returned unchanged.
    """
    if isinstance(item, (Retryable, NonRetryable)):
        return item
    if callable(item):
        return Retryable(item)
    if inspect.isawaitable(item):
        return NonRetryable(item)
    raise TypeError(
        f"Expected a zero-argument callable or an awaitable, got {type(item).__name__}"
    )


@dataclass(frozen=True)
class Outcome:
    """Uniform result wrapper for one task.

    Exactly one of :attr:`data` / :attr:`error` is meaningful, selected by
    :attr:`status`.  :attr:`rejected_task` is set only for rejected
    :class:`Retryable` inputs and is the input element itself, bare
    callable or wrapper.
    """

    status: OutcomeStatus
    data: Any = None
    error: BaseException | None = None
    rejected_task: RetryableTask | None = None

    @classmethod
    def success(cls, data: Any) -> Outcome:
        return cls(status=OutcomeStatus.RESOLVED, data=data)

    @classmethod
    def failure(cls, error: BaseException, rejected_task: RetryableTask | None = None) -> Outcome:
        return cls(status=OutcomeStatus.REJECTED, error=error, rejected_task=rejected_task)

    @property
    def resolved(self) -> bool:
        return self.status is OutcomeStatus.RESOLVED

    @property
    def rejected(self) -> bool:
        return self.status is OutcomeStatus.REJECTED

    @property
    def value(self) -> Any:
        """The payload for a resolved outcome, the error otherwise."""
        return self.data if self.resolved else self.error


@dataclass(frozen=True)
class TimedOut:
    """Payload of a race whose timer fired before the task answered.

    :attr:`timeout_task` is the raced input exactly as it was passed in.
    """

    timeout_task: Any
    timeout_message: str = ""
