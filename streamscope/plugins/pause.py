"""
StreamScope Pause - Notification Control Deck
=============================================

A `Deck` sits between matched streams and their subscribers and controls the
flow of notifications through them. It is a two-state machine:

- **resumed**: notifications are forwarded as they arrive
- **paused**: notifications are appended to a per-stream buffer

While paused, `step()` forwards the oldest buffered notification of each
stream and `skip()` discards it; `resume()` drains every buffer in arrival
order and switches back to forwarding. The buffer is a plain deque and
forwarding is always an explicit act, never a side effect of pushing into a
paused stream.

Every state change publishes `DeckStats` on `Deck.stats`.
"""

from collections import deque
from dataclasses import dataclass
from typing import Any, Callable, Deque, Dict, Optional

from ..match import Match, match_to_string, matches
from ..record import SubscriptionRecord, get_subscription_record
from ..stream.notification import Notification
from ..stream.operators import dematerialize, materialize
from ..stream.stream import Stream, hide
from ..stream.subject import Subject
from ..stream.subscription import Subscriber, Subscription, Teardown
from .base import BasePlugin
from .hookspecs import Operator, hookimpl


@dataclass(frozen=True)
class DeckStats:
    """Total buffered notifications across the deck, and whether it is paused."""

    notifications: int
    paused: bool


class _State:
    """Per-stream deck state: the buffer, the forwarding channel and the upstream subscription."""

    def __init__(self, tag: Optional[str]) -> None:
        self.notifications: Deque[Notification] = deque()
        self.subject: Subject = hide(Subject())
        self.subscription: Optional[Subscription] = None
        self.tag = tag


class Deck:
    """
    Pause/step/skip/resume control over the streams a probe matches.

    A deck starts paused. All controls are synchronous and are no-ops, apart
    from re-publishing stats, when they have nothing to act on.

    Example:
        ```python
        plugin = PausePlugin("prices")
        with spy(plugins=[plugin]):
            source = Subject()
            source.pipe(tag("prices")).subscribe(print)

            source.next(1)          # buffered
            plugin.deck.step()      # prints 1
            plugin.deck.resume()    # from now on, values pass straight through
        ```
    """

    def __init__(self, match: Match) -> None:
        self.match = match
        self.teardown: Optional[Callable[[], None]] = None
        self._paused = True
        # Bumped by every pause(), so a drain can tell it was interrupted.
        self._pauses = 0
        self._states: Dict[Stream, _State] = {}
        self._stats: Subject = hide(Subject())

    @property
    def stats(self) -> Stream:
        return self._stats.as_stream()

    @property
    def paused(self) -> bool:
        return self._paused

    @property
    def buffered(self) -> int:
        return sum(len(state.notifications) for state in self._states.values())

    def get_operator(self, subscription: Any) -> Operator:
        """
        Return the interception stage for a matched subscription.

        The stage materializes the source into notifications, buffers or
        forwards them, and dematerializes them again for the subscriber.
        When the subscriber goes away, the stage's upstream subscription and
        its buffer go with it.
        """
        stream = get_subscription_record(subscription).stream

        def operator(source: Stream) -> Stream:
            def subscribe(subscriber: Subscriber) -> Teardown:
                state = self._states.get(stream)
                if state is not None:
                    if state.subscription is not None:
                        state.subscription.unsubscribe()
                else:
                    state = _State(stream.tag)
                    self._states[stream] = state

                def receive(notification: Notification) -> None:
                    if self._paused:
                        state.notifications.append(notification)
                    else:
                        state.subject.next(notification)
                    self._broadcast()

                downstream = hide(state.subject.pipe(dematerialize())).subscribe(
                    subscriber
                )
                stage = hide(source.pipe(materialize())).subscribe(receive)
                state.subscription = stage
                self._broadcast()

                def teardown() -> None:
                    downstream.unsubscribe()
                    if state.subscription is not stage:
                        return
                    state.subscription = None
                    state.notifications.clear()
                    if self._states.get(stream) is state:
                        del self._states[stream]
                    stage.unsubscribe()
                    self._broadcast()

                return teardown

            return Stream(subscribe)

        return operator

    def pause(self) -> None:
        self._paused = True
        self._pauses += 1
        self._broadcast()

    def resume(self) -> None:
        """
        Forward every buffered notification, then forward live.

        A `pause()` made while draining, from a subscriber's callback, stops
        the drain and keeps the deck paused with the rest still buffered.
        """
        pauses = self._pauses
        for state in list(self._states.values()):
            while state.notifications:
                if self._pauses != pauses:
                    self._broadcast()
                    return
                state.subject.next(state.notifications.popleft())
        if self._pauses == pauses:
            self._paused = False
        self._broadcast()

    def step(self) -> None:
        for state in list(self._states.values()):
            if state.notifications:
                state.subject.next(state.notifications.popleft())
        self._broadcast()

    def skip(self) -> None:
        for state in list(self._states.values()):
            if state.notifications:
                state.notifications.popleft()
        self._broadcast()

    def clear(self, predicate: Optional[Callable[[Notification], bool]] = None) -> None:
        """Discard buffered notifications matching `predicate` (default: all)."""
        for state in self._states.values():
            if predicate is None:
                state.notifications.clear()
            else:
                state.notifications = deque(
                    n for n in state.notifications if not predicate(n)
                )
        self._broadcast()

    def unsubscribe(self) -> None:
        """Tear down the upstream subscription of every stream and drop its state."""
        states = list(self._states.values())
        self._states.clear()
        for state in states:
            state.notifications.clear()
            if state.subscription is not None:
                subscription, state.subscription = state.subscription, None
                subscription.unsubscribe()
        self._broadcast()

    def log(self, console: Any = None) -> None:
        from ..console import log_deck

        log_deck(self, console)

    def _broadcast(self) -> None:
        self._stats.next(DeckStats(notifications=self.buffered, paused=self._paused))

    def __repr__(self) -> str:
        return f"Deck({match_to_string(self.match)!r}, paused={self._paused})"


class PausePlugin(BasePlugin):
    """Interposes a `Deck` on every subscription the match selects."""

    def __init__(self, match: Match) -> None:
        super().__init__(f"pause({match_to_string(match)})")
        self.match = match
        self.deck = Deck(match)

    @hookimpl
    def get_operator(self, record: SubscriptionRecord) -> Optional[Operator]:
        if matches(record, self.match):
            return self.deck.get_operator(record)
        return None

    @hookimpl
    def teardown(self) -> None:
        self.deck.resume()
        self.deck.unsubscribe()
