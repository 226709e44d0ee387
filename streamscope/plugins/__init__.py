"""
StreamScope Plugins
===================

Plugins receive subscription lifecycle events from a probe session.

Classes:
- BasePlugin: No-op hooks to override, each marked `@hookimpl`
- StreamScopeSpec: pluggy hook specifications
- RecordsPlugin: Latest subscription record per stream
- GraphTracker: Live subscription graph with deferred flushing
- FlushScheduler: Retention-window removal of terminated graph nodes
- PausePlugin / Deck: Pause, step, skip and resume matched streams
"""

from .base import BasePlugin
from .flush import FlushScheduler
from .graph import GraphNode, GraphTracker, Outcome, Sentinel
from .hookspecs import StreamScopeSpec, hookimpl, hookspec
from .pause import Deck, DeckStats, PausePlugin
from .records import RecordsPlugin

__all__ = [
    "BasePlugin",
    "StreamScopeSpec",
    "hookimpl",
    "hookspec",
    "RecordsPlugin",
    "GraphTracker",
    "GraphNode",
    "Sentinel",
    "Outcome",
    "FlushScheduler",
    "PausePlugin",
    "Deck",
    "DeckStats",
]
