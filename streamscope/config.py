"""
StreamScope Configuration
=========================

Settings for a probe session. The retention window is how long, in seconds,
the graph keeps a terminated subscription's node before flushing it; `0`
flushes synchronously at termination.
"""

from dataclasses import dataclass, field
from numbers import Real

from .errors import ConfigurationError
from .timers import EventLoopTimers, Timers

DEFAULT_RETENTION = 30.0


def validate_retention(retention: float) -> float:
    if isinstance(retention, bool) or not isinstance(retention, Real):
        raise ConfigurationError(
            f"Retention window must be a number of seconds, got {retention!r}"
        )
    if retention < 0:
        raise ConfigurationError(
            f"Retention window must be non-negative, got {retention!r}"
        )
    return float(retention)


@dataclass(frozen=True)
class SpyConfig:
    """
    Configuration for `spy()`.

    Attributes:
        retention: Seconds to keep terminated graph nodes (default: 30.0)
        timers: Timer source for deferred flushes (default: the running asyncio
            loop, or monotonic deadlines checked on access when none runs)
    """

    retention: float = DEFAULT_RETENTION
    timers: Timers = field(default_factory=EventLoopTimers)

    def __post_init__(self) -> None:
        object.__setattr__(self, "retention", validate_retention(self.retention))
