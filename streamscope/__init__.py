"""
StreamScope - Runtime Introspection for Reactive Stream Pipelines
=================================================================

Attach probes to a running pipeline to see its live subscription graph and to
pause, step, skip and replay the notifications flowing through tagged streams.
"""

from .config import DEFAULT_RETENTION, SpyConfig
from .errors import (
    ConfigurationError,
    NotTracked,
    SpyError,
    StreamScopeError,
    UnsubscriptionError,
)
from .host import Spy, get_active_spy, spy
from .match import match_to_string, matches
from .plugins import (
    BasePlugin,
    Deck,
    DeckStats,
    FlushScheduler,
    GraphNode,
    GraphTracker,
    Outcome,
    PausePlugin,
    RecordsPlugin,
    Sentinel,
    StreamScopeSpec,
    hookimpl,
)
from .record import (
    SubscriptionRecord,
    SubscriptionRecordStore,
    get_subscription_record,
    records,
)
from .stream import Notification, Stream, Subject, Subscriber, Subscription
from .timers import EventLoopTimers, ManualTimers, Timers

__all__ = [
    # Probe sessions
    "spy",
    "Spy",
    "SpyConfig",
    "DEFAULT_RETENTION",
    "get_active_spy",
    # Plugins
    "BasePlugin",
    "StreamScopeSpec",
    "hookimpl",
    "RecordsPlugin",
    "GraphTracker",
    "GraphNode",
    "Sentinel",
    "Outcome",
    "FlushScheduler",
    "PausePlugin",
    "Deck",
    "DeckStats",
    # Records and matching
    "SubscriptionRecord",
    "SubscriptionRecordStore",
    "get_subscription_record",
    "records",
    "matches",
    "match_to_string",
    # Streams
    "Stream",
    "Subject",
    "Subscriber",
    "Subscription",
    "Notification",
    # Timers
    "Timers",
    "EventLoopTimers",
    "ManualTimers",
    # Exceptions
    "StreamScopeError",
    "NotTracked",
    "SpyError",
    "ConfigurationError",
    "UnsubscriptionError",
]
