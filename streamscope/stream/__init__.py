"""
StreamScope Streams
===================

A small push-based stream layer whose subscription points report to the active
probe session. Pipelines built from these streams can be graphed and paused.
"""

from .notification import COMPLETED, ERROR, NEXT, Notification
from .operators import (
    combine_latest,
    dematerialize,
    filter,
    map,
    materialize,
    merge_map,
    switch_map,
    tag,
)
from .stream import (
    Stream,
    create,
    empty,
    from_iterable,
    hide,
    never,
    of,
    raw_view,
)
from .subject import Subject
from .subscription import CallbackObserver, Subscriber, Subscription

__all__ = [
    "Stream",
    "Subject",
    "Subscriber",
    "Subscription",
    "CallbackObserver",
    "Notification",
    "NEXT",
    "ERROR",
    "COMPLETED",
    "create",
    "empty",
    "from_iterable",
    "never",
    "of",
    "hide",
    "raw_view",
    "combine_latest",
    "dematerialize",
    "filter",
    "map",
    "materialize",
    "merge_map",
    "switch_map",
    "tag",
]
