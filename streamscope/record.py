"""
StreamScope Records - Subscription Record Store
===============================================

Every reported subscription gets a `SubscriptionRecord`: a stable id, the
stream that was subscribed and that stream's tag. The store maps subscribers to
their records. Subscribers are held weakly, so a record disappears from the
store once nothing else keeps its subscriber alive.
"""

import itertools
import weakref
from dataclasses import dataclass, field
from typing import Any, Optional, Union

from .errors import NotTracked
from .stream.stream import Stream
from .stream.subscription import Subscriber

_ids = itertools.count(1)


def next_id() -> int:
    """Allocate a process-wide unique identifier."""
    return next(_ids)


@dataclass(eq=False)
class SubscriptionRecord:
    """One live subscription: which stream, under which tag, under which id."""

    stream: Stream
    tag: Optional[str] = None
    id: int = field(default_factory=next_id)

    def __repr__(self) -> str:
        label = f"tag={self.tag!r}" if self.tag is not None else repr(self.stream)
        return f"SubscriptionRecord(#{self.id}, {label})"


class SubscriptionRecordStore:
    """
    Process-wide registry from subscriber to record.

    Usage:
        record = records.register(subscriber, stream)
        records.get(subscriber) is record  # True
    """

    def __init__(self) -> None:
        self._records: "weakref.WeakKeyDictionary[Subscriber, SubscriptionRecord]" = (
            weakref.WeakKeyDictionary()
        )

    def register(self, subscriber: Subscriber, stream: Stream) -> SubscriptionRecord:
        record = SubscriptionRecord(stream=stream, tag=stream.tag)
        self._records[subscriber] = record
        return record

    def find(self, subscription: Any) -> Optional[SubscriptionRecord]:
        if isinstance(subscription, SubscriptionRecord):
            return subscription
        try:
            return self._records.get(subscription)
        except TypeError:
            # Unhashable or not weak-referenceable: cannot be a subscriber.
            return None

    def get(self, subscription: Any) -> SubscriptionRecord:
        record = self.find(subscription)
        if record is None:
            raise NotTracked(f"No record for subscription {subscription!r}")
        return record

    def __contains__(self, subscription: Any) -> bool:
        return self.find(subscription) is not None

    def __len__(self) -> int:
        return len(self._records)


records = SubscriptionRecordStore()


def get_subscription_record(
    subscription: Union[Subscriber, SubscriptionRecord],
) -> SubscriptionRecord:
    """Return the record for a subscriber (records are returned unchanged)."""
    return records.get(subscription)
