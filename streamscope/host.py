"""
StreamScope Host - Probe Sessions
=================================

A probe session (`Spy`) is the bridge between the stream layer and the
plugins. While a session is active, every `Stream.subscribe` call is routed
through `Spy.subscribe`, which records the subscription, reports the lifecycle
to the plugins and lets plugins interpose operators.

Only one session can be active per process.

Usage:
    with spy() as session:
        tracker = session.find_plugin(GraphTracker)
        ...
"""

import logging
from typing import Iterable, List, Optional, Type, TypeVar

import pluggy

from .config import SpyConfig
from .errors import SpyError
from .plugins.base import BasePlugin
from .plugins.hookspecs import PROJECT_NAME, StreamScopeSpec
from .record import records
from .stream.stream import Stream, hide, raw_view
from .stream.subscription import Subscriber

P = TypeVar("P", bound=BasePlugin)


class Spy:
    """An active set of plugins receiving subscription lifecycle events."""

    def __init__(
        self, plugins: Iterable[BasePlugin], config: Optional[SpyConfig] = None
    ) -> None:
        self._plugins: List[BasePlugin] = list(plugins)
        self.config = config if config is not None else SpyConfig()
        self.active = False

        self._pm = pluggy.PluginManager(PROJECT_NAME)
        self._pm.add_hookspecs(StreamScopeSpec)
        # pluggy calls the most recently registered plugin first
        for plugin in reversed(self._plugins):
            self._pm.register(plugin)

    @property
    def plugins(self) -> List[BasePlugin]:
        return list(self._plugins)

    @property
    def hook(self) -> pluggy.HookRelay:
        """The hook relay; call hooks with keyword arguments only."""
        return self._pm.hook

    def start(self) -> "Spy":
        current = Stream._active_spy
        if current is not None and current.active:
            raise SpyError("A probe session is already active; tear it down first")
        Stream._active_spy = self
        self.active = True
        logging.debug(f"Probe session started with {len(self._plugins)} plugin(s)")
        return self

    def find_plugin(self, plugin_type: Type[P]) -> Optional[P]:
        for plugin in self._plugins:
            if isinstance(plugin, plugin_type):
                return plugin
        return None

    def subscribe(self, stream: Stream, subscriber: Subscriber) -> None:
        """Run `stream`'s subscribe function for `subscriber`, reporting it."""
        record = records.register(subscriber, stream)
        subscriber._instrument(self, record)

        self._pm.hook.before_subscribe(record=record)
        try:
            source = stream
            for operator in self._pm.hook.get_operator(record=record):
                if source is stream:
                    source = raw_view(stream)
                source = hide(operator(source))
            source._run(subscriber)
        finally:
            self._pm.hook.after_subscribe(record=record)

    def teardown(self) -> None:
        """Tear down every plugin, then stop reporting subscriptions."""
        if not self.active:
            return
        try:
            self._pm.hook.teardown()
        finally:
            self.active = False
            if Stream._active_spy is self:
                Stream._active_spy = None
            logging.debug("Probe session torn down")

    def __enter__(self) -> "Spy":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.teardown()


def get_active_spy() -> Optional[Spy]:
    spy_ = Stream._active_spy
    if spy_ is not None and spy_.active:
        return spy_
    return None


def spy(
    plugins: Optional[Iterable[BasePlugin]] = None,
    config: Optional[SpyConfig] = None,
) -> Spy:
    """
    Start a probe session.

    Args:
        plugins: Plugins to register; defaults to a `RecordsPlugin` and a
            `GraphTracker` configured from `config`
        config: Session configuration (default: `SpyConfig()`)

    Returns:
        The started session; call `teardown()` or use it as a context manager

    Raises:
        SpyError: If another session is already active
    """
    config = config if config is not None else SpyConfig()
    if plugins is None:
        from .plugins.graph import GraphTracker
        from .plugins.records import RecordsPlugin

        plugins = [
            RecordsPlugin(),
            GraphTracker(retention=config.retention, timers=config.timers),
        ]
    return Spy(plugins, config).start()
