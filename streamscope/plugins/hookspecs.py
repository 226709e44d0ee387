"""
StreamScope Plugins - Hook Specifications
=========================================

pluggy hook specifications for probe-session plugins. A probe session calls
these hooks for every subscription it reports.

Usage (implementing a plugin):
    from streamscope.plugins.hookspecs import hookimpl

    class CountingPlugin(BasePlugin):
        @hookimpl
        def before_next(self, record, value):
            self.count += 1

Every override of a hook needs `@hookimpl`; an undecorated method is not
called by the session.
"""

from typing import TYPE_CHECKING, Any, Callable, Optional

import pluggy

if TYPE_CHECKING:
    from ..record import SubscriptionRecord
    from ..stream.stream import Stream

PROJECT_NAME = "streamscope"

# Hook specification marker
hookspec = pluggy.HookspecMarker(PROJECT_NAME)

# Hook implementation marker (for plugins to use)
hookimpl = pluggy.HookimplMarker(PROJECT_NAME)

Operator = Callable[["Stream"], "Stream"]


class StreamScopeSpec:
    """Hook specifications for the subscription lifecycle."""

    @hookspec
    def before_subscribe(self, record: "SubscriptionRecord") -> None:
        """Called before the subscribed stream's subscribe function runs."""

    @hookspec
    def after_subscribe(self, record: "SubscriptionRecord") -> None:
        """Called once the subscribe function returned, or raised."""

    @hookspec
    def before_next(self, record: "SubscriptionRecord", value: Any) -> None:
        pass

    @hookspec
    def after_next(self, record: "SubscriptionRecord", value: Any) -> None:
        pass

    @hookspec
    def before_error(self, record: "SubscriptionRecord", error: BaseException) -> None:
        pass

    @hookspec
    def after_error(self, record: "SubscriptionRecord", error: BaseException) -> None:
        pass

    @hookspec
    def before_complete(self, record: "SubscriptionRecord") -> None:
        pass

    @hookspec
    def after_complete(self, record: "SubscriptionRecord") -> None:
        pass

    @hookspec
    def before_unsubscribe(self, record: "SubscriptionRecord") -> None:
        """Called only for an explicit unsubscribe of a running subscriber."""

    @hookspec
    def after_unsubscribe(self, record: "SubscriptionRecord") -> None:
        pass

    @hookspec
    def get_operator(self, record: "SubscriptionRecord") -> Optional[Operator]:
        """
        Return an operator to interpose on this subscription, or None.

        Operators are applied in plugin registration order, each receiving
        the stream produced by the previous one.
        """

    @hookspec
    def teardown(self) -> None:
        """Called when the probe session is torn down."""
