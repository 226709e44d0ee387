"""
StreamScope Subject - Multicast Streams
=======================================

A subject is both a stream and the producer feeding it: values pushed with
`next` reach every current subscriber in subscription order.
"""

from typing import Any, List, Optional

from .stream import Stream
from .subscription import Subscriber, Teardown


class Subject(Stream):
    """
    A stream that multicasts whatever is pushed into it.

    Subscribers that arrive after the subject stopped receive the terminal
    event straight away.
    """

    def __init__(self, tag: Optional[str] = None) -> None:
        super().__init__(tag=tag)
        self._subscribers: List[Subscriber] = []
        self.is_stopped = False
        self._error: Optional[BaseException] = None

    @property
    def observed(self) -> bool:
        return bool(self._subscribers)

    def _on_subscribe(self, subscriber: Subscriber) -> Teardown:
        if self.is_stopped:
            if self._error is not None:
                subscriber.error(self._error)
            else:
                subscriber.complete()
            return None

        self._subscribers.append(subscriber)

        def teardown() -> None:
            try:
                self._subscribers.remove(subscriber)
            except ValueError:
                pass

        return teardown

    def next(self, value: Any) -> None:
        if self.is_stopped:
            return
        for subscriber in list(self._subscribers):
            subscriber.next(value)

    def error(self, error: BaseException) -> None:
        if self.is_stopped:
            return
        self.is_stopped = True
        self._error = error
        subscribers, self._subscribers = self._subscribers, []
        for subscriber in subscribers:
            subscriber.error(error)

    def complete(self) -> None:
        if self.is_stopped:
            return
        self.is_stopped = True
        subscribers, self._subscribers = self._subscribers, []
        for subscriber in subscribers:
            subscriber.complete()

    # Observer interface, so a subject can subscribe to another stream.
    def on_next(self, value: Any) -> None:
        self.next(value)

    def on_error(self, error: BaseException) -> None:
        self.error(error)

    def on_completed(self) -> None:
        self.complete()

    def as_stream(self) -> Stream:
        """A plain stream view of this subject without the producer methods."""
        stream = Stream(self._on_subscribe, tag=self.tag)
        stream._hidden = self._hidden
        return stream
