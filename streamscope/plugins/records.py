"""
StreamScope Records Plugin
==========================

Remembers, for each stream, the record of its most recent subscription while
that subscription runs. This is how callers that only hold a stream reach its
graph node. An entry is dropped once its subscription terminates, so streams
created on the fly (inner streams of `merge_map`, say) are not kept alive.
"""

from typing import Dict

from ..errors import NotTracked
from ..record import SubscriptionRecord
from ..stream.stream import Stream
from .base import BasePlugin
from .hookspecs import hookimpl


class RecordsPlugin(BasePlugin):
    """
    Latest subscription record per stream.

    Example:
        ```python
        records = RecordsPlugin()
        with spy(plugins=[records]):
            subject = Subject()
            subject.subscribe()
            records.get(subject).stream is subject  # True
        ```
    """

    def __init__(self) -> None:
        super().__init__("records")
        self._latest: Dict[Stream, SubscriptionRecord] = {}

    @hookimpl
    def before_subscribe(self, record: SubscriptionRecord) -> None:
        self._latest[record.stream] = record

    @hookimpl
    def after_error(self, record: SubscriptionRecord, error: BaseException) -> None:
        self._forget(record)

    @hookimpl
    def after_complete(self, record: SubscriptionRecord) -> None:
        self._forget(record)

    @hookimpl
    def after_unsubscribe(self, record: SubscriptionRecord) -> None:
        self._forget(record)

    def get(self, stream: Stream) -> SubscriptionRecord:
        try:
            return self._latest[stream]
        except KeyError:
            raise NotTracked(f"No subscription recorded for {stream!r}") from None

    @property
    def tracked(self) -> int:
        """Number of streams with a running subscription."""
        return len(self._latest)

    @hookimpl
    def teardown(self) -> None:
        self._latest.clear()

    def _forget(self, record: SubscriptionRecord) -> None:
        # A newer subscription to the same stream keeps its entry.
        if self._latest.get(record.stream) is record:
            del self._latest[record.stream]
