"""
StreamScope Plugins - Base Plugin
=================================

A plugin observes the lifecycle of every reported subscription. The probe
session calls each hook on every registered plugin, in registration order.
All hooks are no-ops here, so plugins override only what they need, marking
each override with `@hookimpl`.
"""

from typing import TYPE_CHECKING, Any, Optional

from .hookspecs import Operator, hookimpl

if TYPE_CHECKING:
    from ..record import SubscriptionRecord


class BasePlugin:
    """No-op implementation of every plugin hook."""

    def __init__(self, name: str) -> None:
        self.name = name

    @hookimpl
    def before_subscribe(self, record: "SubscriptionRecord") -> None:
        pass

    @hookimpl
    def after_subscribe(self, record: "SubscriptionRecord") -> None:
        pass

    @hookimpl
    def before_next(self, record: "SubscriptionRecord", value: Any) -> None:
        pass

    @hookimpl
    def after_next(self, record: "SubscriptionRecord", value: Any) -> None:
        pass

    @hookimpl
    def before_error(self, record: "SubscriptionRecord", error: BaseException) -> None:
        pass

    @hookimpl
    def after_error(self, record: "SubscriptionRecord", error: BaseException) -> None:
        pass

    @hookimpl
    def before_complete(self, record: "SubscriptionRecord") -> None:
        pass

    @hookimpl
    def after_complete(self, record: "SubscriptionRecord") -> None:
        pass

    @hookimpl
    def before_unsubscribe(self, record: "SubscriptionRecord") -> None:
        pass

    @hookimpl
    def after_unsubscribe(self, record: "SubscriptionRecord") -> None:
        pass

    @hookimpl
    def get_operator(self, record: "SubscriptionRecord") -> Optional[Operator]:
        """Return an operator to interpose on this subscription, if any."""
        return None

    @hookimpl
    def teardown(self) -> None:
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"
