"""
StreamScope Operators - Composable Stream Transformations
=========================================================

Operators are functions from a source stream to a new stream, applied with
`Stream.pipe`. Each operator subscribes to its source while the downstream
subscription is being set up, which is what lets a probe session see the
upstream subscription as a source of the downstream one.

`merge_map` and `switch_map` subscribe to inner streams while a value is being
delivered, so a probe session sees those as merges instead of sources.
"""

from typing import Any, Callable, List, Optional

from .notification import Notification
from .stream import Operator, Stream
from .subscription import Subscriber, Subscription

_EMPTY = object()


class _ForwardingObserver:
    """Forwards everything to a downstream subscriber; subclasses override."""

    def __init__(self, subscriber: Subscriber) -> None:
        self.subscriber = subscriber

    def on_next(self, value: Any) -> None:
        self.subscriber.next(value)

    def on_error(self, error: BaseException) -> None:
        self.subscriber.error(error)

    def on_completed(self) -> None:
        self.subscriber.complete()


class _MapObserver(_ForwardingObserver):
    def __init__(self, subscriber: Subscriber, mapper: Callable[[Any], Any]) -> None:
        super().__init__(subscriber)
        self.mapper = mapper

    def on_next(self, value: Any) -> None:
        try:
            result = self.mapper(value)
        except Exception as e:
            self.subscriber.error(e)
            return
        self.subscriber.next(result)


class _FilterObserver(_ForwardingObserver):
    def __init__(
        self, subscriber: Subscriber, predicate: Callable[[Any], bool]
    ) -> None:
        super().__init__(subscriber)
        self.predicate = predicate

    def on_next(self, value: Any) -> None:
        try:
            passed = self.predicate(value)
        except Exception as e:
            self.subscriber.error(e)
            return
        if passed:
            self.subscriber.next(value)


def map(mapper: Callable[[Any], Any]) -> Operator:
    def operator(source: Stream) -> Stream:
        return Stream(
            lambda subscriber: source.subscribe(_MapObserver(subscriber, mapper))
        )

    return operator


def filter(predicate: Callable[[Any], bool]) -> Operator:
    def operator(source: Stream) -> Stream:
        return Stream(
            lambda subscriber: source.subscribe(_FilterObserver(subscriber, predicate))
        )

    return operator


def tag(name: str) -> Operator:
    """Label a stream so probes can match its subscriptions by name."""

    def operator(source: Stream) -> Stream:
        return Stream(lambda subscriber: source.subscribe(subscriber), tag=name)

    return operator


class _InnerObserver(_ForwardingObserver):
    def __init__(self, parent: "_FlatteningObserver") -> None:
        super().__init__(parent.subscriber)
        self.parent = parent
        self.subscription: Optional[Subscription] = None
        self.done = False

    def on_completed(self) -> None:
        self.done = True
        self.parent._inner_completed(self)


class _FlatteningObserver(_ForwardingObserver):
    """Shared bookkeeping for operators that subscribe to inner streams."""

    def __init__(
        self, subscriber: Subscriber, project: Callable[[Any], Stream]
    ) -> None:
        super().__init__(subscriber)
        self.project = project
        self.active: List[_InnerObserver] = []
        self.outer_done = False

    def _subscribe_inner(self, value: Any) -> None:
        try:
            inner = self.project(value)
        except Exception as e:
            self.subscriber.error(e)
            return
        observer = _InnerObserver(self)
        self.active.append(observer)
        subscription = inner.subscribe(observer)
        if not observer.done:
            observer.subscription = subscription
            self.subscriber.add(subscription)

    def _release(self, observer: _InnerObserver) -> None:
        if observer in self.active:
            self.active.remove(observer)
        if observer.subscription is not None:
            self.subscriber.remove(observer.subscription)

    def _inner_completed(self, observer: _InnerObserver) -> None:
        self._release(observer)
        if self.outer_done and not self.active:
            self.subscriber.complete()

    def on_completed(self) -> None:
        self.outer_done = True
        if not self.active:
            self.subscriber.complete()


class _MergeMapObserver(_FlatteningObserver):
    def on_next(self, value: Any) -> None:
        self._subscribe_inner(value)


class _SwitchMapObserver(_FlatteningObserver):
    def on_next(self, value: Any) -> None:
        for observer in list(self.active):
            self._release(observer)
            if observer.subscription is not None:
                observer.subscription.unsubscribe()
        self._subscribe_inner(value)


def merge_map(project: Callable[[Any], Stream]) -> Operator:
    """Subscribe to the stream `project(value)` for every value, concurrently."""

    def operator(source: Stream) -> Stream:
        return Stream(
            lambda subscriber: source.subscribe(_MergeMapObserver(subscriber, project))
        )

    return operator


def switch_map(project: Callable[[Any], Stream]) -> Operator:
    """Like `merge_map`, but each value cancels the previous inner stream."""

    def operator(source: Stream) -> Stream:
        return Stream(
            lambda subscriber: source.subscribe(
                _SwitchMapObserver(subscriber, project)
            )
        )

    return operator


class _CombineObserver(_ForwardingObserver):
    def __init__(self, subscriber: Subscriber, state: dict, index: int) -> None:
        super().__init__(subscriber)
        self.state = state
        self.index = index

    def on_next(self, value: Any) -> None:
        values = self.state["values"]
        values[self.index] = value
        if all(v is not _EMPTY for v in values):
            self.subscriber.next(tuple(values))

    def on_completed(self) -> None:
        completed = self.state["completed"]
        completed[self.index] = True
        if all(completed):
            self.subscriber.complete()


def combine_latest(*sources: Stream) -> Stream:
    """
    Emit a tuple of the latest value from each source once all have emitted.

    Completes when every source has completed.
    """

    def subscribe(subscriber: Subscriber) -> None:
        if not sources:
            subscriber.complete()
            return
        state = {
            "values": [_EMPTY] * len(sources),
            "completed": [False] * len(sources),
        }
        for index, source in enumerate(sources):
            if subscriber.closed:
                break
            subscriber.add(
                source.subscribe(_CombineObserver(subscriber, state, index))
            )

    return Stream(subscribe)


class _MaterializeObserver(_ForwardingObserver):
    def on_next(self, value: Any) -> None:
        self.subscriber.next(Notification.next(value))

    def on_error(self, error: BaseException) -> None:
        self.subscriber.next(Notification.error(error))
        self.subscriber.complete()

    def on_completed(self) -> None:
        self.subscriber.next(Notification.completed())
        self.subscriber.complete()


class _DematerializeObserver(_ForwardingObserver):
    def on_next(self, notification: Notification) -> None:
        notification.accept(self.subscriber)


def materialize() -> Operator:
    def operator(source: Stream) -> Stream:
        return Stream(
            lambda subscriber: source.subscribe(_MaterializeObserver(subscriber))
        )

    return operator


def dematerialize() -> Operator:
    def operator(source: Stream) -> Stream:
        return Stream(
            lambda subscriber: source.subscribe(_DematerializeObserver(subscriber))
        )

    return operator
