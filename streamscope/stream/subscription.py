"""
StreamScope Subscription - Disposables and Subscribers
======================================================

A `Subscription` owns a list of teardowns that run once when it is
unsubscribed. A `Subscriber` is a subscription that also wraps the destination
observer of one `Stream.subscribe` call and enforces the notification grammar:

    next* (error | complete)?

When a probe session instrumented the subscriber, every event is reported to
the session before and after it reaches the destination.
"""

from typing import TYPE_CHECKING, Any, Callable, List, Optional, Union

from ..errors import UnsubscriptionError

if TYPE_CHECKING:
    from ..host import Spy
    from ..record import SubscriptionRecord

Teardown = Union["Subscription", Callable[[], None], None]


def _execute(teardown: Teardown) -> None:
    if isinstance(teardown, Subscription):
        teardown.unsubscribe()
    elif teardown is not None:
        teardown()


class Subscription:
    """
    A composite disposable.

    Teardowns added after the subscription is closed run immediately.

    Example:
        ```python
        subscription = Subscription(lambda: print("bye"))
        subscription.add(other_subscription)
        subscription.unsubscribe()  # prints "bye", then unsubscribes the other
        ```
    """

    def __init__(self, teardown: Teardown = None) -> None:
        self.closed = False
        self._teardowns: List[Teardown] = []
        if teardown is not None:
            self._teardowns.append(teardown)

    def add(self, teardown: Teardown) -> None:
        if teardown is None or teardown is self:
            return
        if self.closed:
            _execute(teardown)
            return
        self._teardowns.append(teardown)

    def remove(self, teardown: Teardown) -> None:
        try:
            self._teardowns.remove(teardown)
        except ValueError:
            pass

    def unsubscribe(self) -> None:
        if self.closed:
            return
        self.closed = True
        self._run_teardowns()

    def _run_teardowns(self) -> None:
        teardowns, self._teardowns = self._teardowns, []
        errors: List[BaseException] = []
        for teardown in teardowns:
            try:
                _execute(teardown)
            except UnsubscriptionError as e:
                errors.extend(e.errors)
            except Exception as e:
                errors.append(e)
        if errors:
            raise UnsubscriptionError(errors)

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.unsubscribe()


def _raise(error: BaseException) -> None:
    raise error


def _noop(*args: Any) -> None:
    pass


class CallbackObserver:
    """Observer assembled from up to three callables."""

    def __init__(
        self,
        on_next: Optional[Callable[[Any], None]] = None,
        on_error: Optional[Callable[[BaseException], None]] = None,
        on_completed: Optional[Callable[[], None]] = None,
    ) -> None:
        self._on_next = on_next or _noop
        self._on_error = on_error or _raise
        self._on_completed = on_completed or _noop

    def on_next(self, value: Any) -> None:
        self._on_next(value)

    def on_error(self, error: BaseException) -> None:
        self._on_error(error)

    def on_completed(self) -> None:
        self._on_completed()


class Subscriber(Subscription):
    """
    The subscription returned by `Stream.subscribe`.

    A subscriber forwards events to its destination until the first terminal
    event, after which it runs its teardowns. It is also an observer itself, so
    an operator can hand it straight to an upstream stream.
    """

    def __init__(self, destination: Any, stream: Any = None) -> None:
        super().__init__()
        self.destination = destination
        self.stream = stream
        self.is_stopped = False
        self._spy: Optional["Spy"] = None
        self._record: Optional["SubscriptionRecord"] = None

    @property
    def record(self) -> Optional["SubscriptionRecord"]:
        return self._record

    def _instrument(self, spy: "Spy", record: "SubscriptionRecord") -> None:
        self._spy = spy
        self._record = record

    def _reporting(self) -> Optional["Spy"]:
        spy = self._spy
        if spy is not None and spy.active:
            return spy
        return None

    def next(self, value: Any) -> None:
        if self.is_stopped:
            return
        spy = self._reporting()
        if spy is None:
            self.destination.on_next(value)
            return
        spy.hook.before_next(record=self._record, value=value)
        try:
            self.destination.on_next(value)
        finally:
            spy.hook.after_next(record=self._record, value=value)

    def error(self, error: BaseException) -> None:
        if self.is_stopped:
            return
        self.is_stopped = True
        spy = self._reporting()
        try:
            if spy is None:
                self.destination.on_error(error)
            else:
                spy.hook.before_error(record=self._record, error=error)
                try:
                    self.destination.on_error(error)
                finally:
                    spy.hook.after_error(record=self._record, error=error)
        finally:
            self._close()

    def complete(self) -> None:
        if self.is_stopped:
            return
        self.is_stopped = True
        spy = self._reporting()
        try:
            if spy is None:
                self.destination.on_completed()
            else:
                spy.hook.before_complete(record=self._record)
                try:
                    self.destination.on_completed()
                finally:
                    spy.hook.after_complete(record=self._record)
        finally:
            self._close()

    def unsubscribe(self) -> None:
        if self.closed:
            return
        spy = self._reporting() if not self.is_stopped else None
        self.is_stopped = True
        if spy is None:
            super().unsubscribe()
            return
        spy.hook.before_unsubscribe(record=self._record)
        try:
            super().unsubscribe()
        finally:
            spy.hook.after_unsubscribe(record=self._record)

    def _close(self) -> None:
        if not self.closed:
            self.closed = True
            self._run_teardowns()

    # Observer interface, so a subscriber can be passed upstream as-is.
    on_next = next
    on_error = error
    on_completed = complete

    def __repr__(self) -> str:
        state = "closed" if self.closed else "open"
        return f"Subscriber({self.stream!r}, {state})"
