"""Response shaping for the batch and race combinators.

Both combinators collect their outcomes into :class:`ResponseBuckets` and
let the caller pick which bucket(s) come back through a
:class:`ResponseMode`.
"""

from __future__ import annotations

import enum
from collections.abc import Callable, Collection
from dataclasses import dataclass, field
from typing import Any


class ResponseMode(str, enum.Enum):
    """Which aggregated bucket(s) a combinator returns."""

    ALL = "ALL"
    ALL_SPLIT = "ALL_SPLIT"
    ONLY_RESOLVED = "ONLY_RESOLVED"
    ONLY_REJECTED = "ONLY_REJECTED"
    ONLY_WINNERS = "ONLY_WINNERS"


class InvalidResponseModeError(ValueError):
    """Raised when a combinator is configured with a mode it cannot serve."""


@dataclass
class ResponseBuckets:
    """Aggregated payloads of one combinator run, in input order."""

    resolved: list[Any] = field(default_factory=list)
    rejected: list[Any] = field(default_factory=list)
    winners: list[Any] = field(default_factory=list)
    all: list[Any] = field(default_factory=list)


_SELECTORS: dict[ResponseMode, Callable[[ResponseBuckets], Any]] = {
    ResponseMode.ALL: lambda b: b.all,
    ResponseMode.ALL_SPLIT: lambda b: (b.resolved, b.rejected),
    ResponseMode.ONLY_RESOLVED: lambda b: b.resolved,
    ResponseMode.ONLY_REJECTED: lambda b: b.rejected,
    ResponseMode.ONLY_WINNERS: lambda b: b.winners,
}


def coerce_mode(mode: ResponseMode | str, allowed: Collection[ResponseMode]) -> ResponseMode:
    """Validate *mode* against *allowed* and return it as a :class:`ResponseMode`.

    Raises :class:`InvalidResponseModeError` for unknown or disallowed modes.
    """
    try:
        resolved_mode = ResponseMode(mode)
    except ValueError as exc:
        raise InvalidResponseModeError(f"Unknown response mode: {mode!r}") from exc

    if resolved_mode not in allowed:
        supported = ", ".join(m.value for m in allowed)
        raise InvalidResponseModeError(
            f"Response mode {resolved_mode.value} is not supported here (use one of: {supported})"
        )
    return resolved_mode


def select_response(mode: ResponseMode | str, buckets: ResponseBuckets) -> Any:
    """Pick the response shape for *mode* out of *buckets*."""
    return _SELECTORS[coerce_mode(mode, _SELECTORS)](buckets)
