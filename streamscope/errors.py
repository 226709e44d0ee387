"""
StreamScope Errors
==================

Exception types raised by the probe session, the graph tracker and the stream layer.
"""

from typing import List


class StreamScopeError(Exception):
    """Base class for every error raised by streamscope."""

    pass


class NotTracked(StreamScopeError, KeyError):
    """Raised when a subscription was never observed or has already been flushed."""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the message readable.
        return str(self.args[0]) if self.args else "Not tracked"


class SpyError(StreamScopeError, RuntimeError):
    """Raised when a probe session is misused (e.g. two sessions at once)."""

    pass


class ConfigurationError(StreamScopeError, ValueError):
    """Raised for invalid configuration values."""

    pass


class UnsubscriptionError(StreamScopeError):
    """Raised after teardown when one or more teardown functions failed."""

    def __init__(self, errors: List[BaseException]):
        self.errors = list(errors)
        super().__init__(
            f"{len(self.errors)} error(s) occurred during unsubscription: "
            + "; ".join(repr(e) for e in self.errors)
        )
