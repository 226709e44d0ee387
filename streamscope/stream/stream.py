"""
StreamScope Stream - Lazily Subscribed Push Streams
===================================================

A `Stream` does nothing until it is subscribed. Each call to `subscribe`
creates a new `Subscriber` and runs the stream's subscribe function for it.

Subscribing is the instrumentation point: while a probe session (`Spy`) is
active, every subscription is reported to it, and the session may interpose
plugin operators between the stream and the subscriber. Streams marked with
`hide()` are subscribed without being reported.
"""

from functools import reduce
from typing import TYPE_CHECKING, Any, Callable, Iterable, Optional

from .subscription import CallbackObserver, Subscriber, Teardown

if TYPE_CHECKING:
    from ..host import Spy

Operator = Callable[["Stream"], "Stream"]


class Stream:
    """
    A lazily subscribed producer of values, errors and completions.

    Example:
        ```python
        def produce(subscriber):
            subscriber.next(1)
            subscriber.next(2)
            subscriber.complete()

        Stream(produce).subscribe(print)  # prints 1 then 2
        ```
    """

    # The probe session that subscriptions are currently reported to.
    _active_spy: Optional["Spy"] = None

    def __init__(
        self,
        subscribe: Optional[Callable[[Subscriber], Teardown]] = None,
        tag: Optional[str] = None,
    ) -> None:
        self._subscribe_fn = subscribe
        self.tag = tag
        self._hidden = False

    @property
    def hidden(self) -> bool:
        return self._hidden

    def subscribe(
        self,
        observer: Any = None,
        on_error: Optional[Callable[[BaseException], None]] = None,
        on_completed: Optional[Callable[[], None]] = None,
        on_next: Optional[Callable[[Any], None]] = None,
    ) -> Subscriber:
        """
        Subscribe to the stream.

        Args:
            observer: An object with `on_next`/`on_error`/`on_completed`, or a
                callable used as `on_next`
            on_error: Called with the error; if omitted, errors are raised
            on_completed: Called on completion
            on_next: Called with each value

        Returns:
            The subscriber, which is also the subscription handle
        """
        if observer is not None and not hasattr(observer, "on_next"):
            on_next, observer = observer, None
        if observer is None:
            observer = CallbackObserver(on_next, on_error, on_completed)

        subscriber = Subscriber(observer, self)
        spy = Stream._active_spy
        if self._hidden or spy is None or not spy.active:
            self._run(subscriber)
        else:
            spy.subscribe(self, subscriber)
        return subscriber

    def pipe(self, *operators: Operator) -> "Stream":
        return reduce(lambda source, operator: operator(source), operators, self)

    def _on_subscribe(self, subscriber: Subscriber) -> Teardown:
        if self._subscribe_fn is None:
            return None
        return self._subscribe_fn(subscriber)

    def _run(self, subscriber: Subscriber) -> None:
        try:
            teardown = self._on_subscribe(subscriber)
        except Exception as e:
            if subscriber.is_stopped:
                raise
            subscriber.error(e)
            return
        subscriber.add(teardown)

    def __repr__(self) -> str:
        if self.tag is not None:
            return f"{type(self).__name__}(tag={self.tag!r})"
        return f"{type(self).__name__}@{id(self):x}"


def hide(stream: Stream) -> Stream:
    """
    Mark a stream so that subscriptions to it are never reported.

    The stream's subscribe function still runs, so any upstream subscriptions
    it makes are reported as usual.
    """
    stream._hidden = True
    return stream


def raw_view(stream: Stream) -> Stream:
    """A hidden stream that runs `stream`'s subscribe function directly."""
    return hide(Stream(stream._on_subscribe, tag=stream.tag))


def create(subscribe: Callable[[Subscriber], Teardown]) -> Stream:
    return Stream(subscribe)


def never() -> Stream:
    return Stream(lambda subscriber: None)


def empty() -> Stream:
    def subscribe(subscriber: Subscriber) -> None:
        subscriber.complete()

    return Stream(subscribe)


def of(*values: Any) -> Stream:
    return from_iterable(values)


def from_iterable(values: Iterable[Any]) -> Stream:
    def subscribe(subscriber: Subscriber) -> None:
        for value in values:
            if subscriber.closed:
                return
            subscriber.next(value)
        subscriber.complete()

    return Stream(subscribe)
