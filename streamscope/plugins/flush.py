"""
StreamScope Flush Scheduler - Deferred Removal of Terminated Graph Nodes
========================================================================

When a subscription terminates, its graph node is kept for a retention window
so that a consumer can still look at recently finished branches. After the
window the node is flushed: unlinked from its parent and dropped from the
graph.

A zero window flushes synchronously, through the same removal path. Timers
armed without a running event loop fire when the tracker next polls.
"""

import logging
from typing import TYPE_CHECKING, Callable, Optional

from ..timers import EventLoopTimers, Timers

if TYPE_CHECKING:
    from .graph import GraphNode, Outcome


class FlushScheduler:
    """
    Arms one retention timer per terminated node.

    Removal always targets the node instance that was scheduled, never "the
    node currently tracked for this stream". Once armed, a timer always fires.
    """

    def __init__(
        self,
        retention: float,
        flush: Callable[["GraphNode"], None],
        timers: Optional[Timers] = None,
    ) -> None:
        self.retention = retention
        self._flush = flush
        self._timers = timers if timers is not None else EventLoopTimers()
        self._pending = 0

    @property
    def pending(self) -> int:
        """Number of armed timers that have not fired yet."""
        return self._pending

    def schedule_flush(self, node: "GraphNode", outcome: "Outcome") -> None:
        logging.debug(
            f"Scheduling flush of node #{node.id} ({outcome.value}) in {self.retention}s"
        )
        if self.retention <= 0:
            self._flush(node)
            return

        self._pending += 1
        node.timer = self._timers.call_later(self.retention, self._expire, node)

    def _expire(self, node: "GraphNode") -> None:
        self._pending -= 1
        self._flush(node)

    def poll(self) -> None:
        """Fire any timers that are due but have no event loop to run them."""
        self._timers.poll()
