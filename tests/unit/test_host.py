"""Tests for probe sessions and the plugin hooks they drive."""

import pytest

from streamscope import (
    BasePlugin,
    GraphTracker,
    ManualTimers,
    RecordsPlugin,
    Spy,
    SpyConfig,
    SpyError,
    get_active_spy,
    spy,
)
from streamscope.plugins.hookspecs import hookimpl
from streamscope.stream import Subject, create, hide, map, of


class RecordingPlugin(BasePlugin):
    """Logs every hook call as (hook, tag-or-stream-type)."""

    def __init__(self):
        super().__init__("recording")
        self.calls = []
        self.torn_down = False

    def _log(self, hook, record, *args):
        self.calls.append((hook, record.tag or type(record.stream).__name__) + args)

    @hookimpl
    def before_subscribe(self, record):
        self._log("before_subscribe", record)

    @hookimpl
    def after_subscribe(self, record):
        self._log("after_subscribe", record)

    @hookimpl
    def before_next(self, record, value):
        self._log("before_next", record, value)

    @hookimpl
    def after_next(self, record, value):
        self._log("after_next", record, value)

    @hookimpl
    def before_error(self, record, error):
        self._log("before_error", record)

    @hookimpl
    def after_error(self, record, error):
        self._log("after_error", record)

    @hookimpl
    def before_complete(self, record):
        self._log("before_complete", record)

    @hookimpl
    def after_complete(self, record):
        self._log("after_complete", record)

    @hookimpl
    def before_unsubscribe(self, record):
        self._log("before_unsubscribe", record)

    @hookimpl
    def after_unsubscribe(self, record):
        self._log("after_unsubscribe", record)

    @hookimpl
    def teardown(self):
        self.torn_down = True


@pytest.fixture
def recorder():
    return RecordingPlugin()


@pytest.mark.unit
class TestSessionLifecycle:
    def test_spy_starts_an_active_session(self):
        session = spy(plugins=[])

        assert session.active
        assert get_active_spy() is session

        session.teardown()

        assert not session.active
        assert get_active_spy() is None

    def test_only_one_session_at_a_time(self):
        with spy(plugins=[]):
            with pytest.raises(SpyError):
                spy(plugins=[])

    def test_a_new_session_can_start_after_teardown(self):
        spy(plugins=[]).teardown()

        with spy(plugins=[]) as session:
            assert get_active_spy() is session

    def test_teardown_is_idempotent(self, recorder):
        session = spy(plugins=[recorder])

        session.teardown()
        recorder.torn_down = False
        session.teardown()

        assert not recorder.torn_down

    def test_teardown_tears_down_plugins(self, recorder):
        with spy(plugins=[recorder]):
            pass

        assert recorder.torn_down

    def test_default_plugins(self):
        config = SpyConfig(retention=0, timers=ManualTimers())

        with spy(config=config) as session:
            assert isinstance(session.find_plugin(RecordsPlugin), RecordsPlugin)
            tracker = session.find_plugin(GraphTracker)
            assert tracker.retention == 0.0

    def test_find_plugin_returns_none_when_missing(self, recorder):
        with spy(plugins=[recorder]) as session:
            assert session.find_plugin(GraphTracker) is None
            assert session.find_plugin(RecordingPlugin) is recorder

    def test_session_can_be_constructed_without_starting(self):
        session = Spy([])

        assert not session.active
        assert get_active_spy() is None


@pytest.mark.unit
class TestLifecycleHooks:
    def test_hooks_wrap_every_event(self, recorder):
        with spy(plugins=[recorder]):
            subject = Subject(tag="s")
            subject.subscribe()
            subject.next(1)
            subject.complete()

        assert recorder.calls == [
            ("before_subscribe", "s"),
            ("after_subscribe", "s"),
            ("before_next", "s", 1),
            ("after_next", "s", 1),
            ("before_complete", "s"),
            ("after_complete", "s"),
        ]

    def test_unsubscribe_hooks(self, recorder):
        with spy(plugins=[recorder]):
            subscription = Subject(tag="s").subscribe()
            subscription.unsubscribe()
            subscription.unsubscribe()

        assert recorder.calls[-2:] == [
            ("before_unsubscribe", "s"),
            ("after_unsubscribe", "s"),
        ]
        assert len(recorder.calls) == 4

    def test_errors_raised_while_subscribing_are_reported(self, recorder):
        def subscribe(subscriber):
            raise ValueError("broken")

        errors = []
        with spy(plugins=[recorder]):
            create(subscribe).subscribe(on_error=errors.append)

        assert [call[0] for call in recorder.calls] == [
            "before_subscribe",
            "before_error",
            "after_error",
            "after_subscribe",
        ]
        assert isinstance(errors[0], ValueError)

    def test_nested_subscriptions_are_reported_inside_the_outer_one(self, recorder):
        with spy(plugins=[recorder]):
            Subject(tag="inner").pipe(map(lambda value: value)).subscribe()

        assert recorder.calls == [
            ("before_subscribe", "Stream"),
            ("before_subscribe", "inner"),
            ("after_subscribe", "inner"),
            ("after_subscribe", "Stream"),
        ]

    def test_hidden_streams_are_not_reported(self, recorder):
        with spy(plugins=[recorder]):
            subject = hide(Subject())
            subject.subscribe()
            subject.next(1)

        assert recorder.calls == []

    def test_nothing_is_reported_without_a_session(self, recorder):
        subject = Subject()
        subject.subscribe()

        with spy(plugins=[recorder]):
            subject.next(1)

        assert recorder.calls == []


class TimesTen(BasePlugin):
    def __init__(self):
        super().__init__("times-ten")

    @hookimpl
    def get_operator(self, record):
        if record.tag != "numbers":
            return None
        return lambda source: source.pipe(map(lambda value: value * 10))


class Suffix(BasePlugin):
    def __init__(self, suffix, seen=None):
        super().__init__(f"suffix-{suffix}")
        self.suffix = suffix
        self.seen = seen if seen is not None else []

    @hookimpl
    def before_next(self, record, value):
        self.seen.append(self.suffix)

    @hookimpl
    def get_operator(self, record):
        if record.tag != "words":
            return None
        return lambda source: source.pipe(map(lambda value: value + self.suffix))


class Undecorated(BasePlugin):
    def __init__(self):
        super().__init__("undecorated")

    def get_operator(self, record):
        return lambda source: source.pipe(map(lambda value: value * 10))


@pytest.mark.unit
class TestPluginOperators:
    def test_operator_is_interposed(self):
        values = []
        with spy(plugins=[TimesTen()]):
            of(1, 2).pipe(map(lambda value: value)).subscribe(values.append)
            Subject(tag="other").subscribe(values.append)
            numbers = Subject(tag="numbers")
            numbers.subscribe(values.append)
            numbers.next(3)

        assert values == [1, 2, 30]

    def test_operators_compose_in_registration_order(self):
        values = []
        with spy(plugins=[TimesTen(), TimesTen()]):
            numbers = Subject(tag="numbers")
            numbers.subscribe(values.append)
            numbers.next(1)

        assert values == [100]

    def test_interposed_operators_are_not_reported(self, recorder):
        with spy(plugins=[TimesTen(), recorder]):
            Subject(tag="numbers").subscribe()

        assert recorder.calls == [
            ("before_subscribe", "numbers"),
            ("after_subscribe", "numbers"),
        ]

    def test_operators_apply_in_registration_order(self):
        values = []
        with spy(plugins=[Suffix("a"), Suffix("b"), Suffix("c")]):
            words = Subject(tag="words")
            words.subscribe(values.append)
            words.next("x")

        assert values == ["xabc"]

    def test_hooks_run_in_registration_order(self):
        seen = []
        with spy(plugins=[Suffix("a", seen), Suffix("b", seen)]):
            subject = Subject(tag="other")
            subject.subscribe()
            subject.next("x")

        assert seen == ["a", "b"]

    def test_overrides_without_hookimpl_are_not_called(self):
        values = []
        with spy(plugins=[Undecorated()]):
            numbers = Subject(tag="numbers")
            numbers.subscribe(values.append)
            numbers.next(1)

        assert values == [1]


@pytest.mark.unit
class TestPluginManager:
    def test_session_dispatches_through_pluggy(self, recorder):
        with spy(plugins=[recorder]) as session:
            assert session.hook.before_next.get_hookimpls()[0].plugin is recorder
            Subject(tag="numbers").subscribe()

        assert ("before_subscribe", "numbers") in recorder.calls

    def test_plugins_registered_once_each(self, recorder):
        with spy(plugins=[recorder, RecordsPlugin()]) as session:
            impls = session.hook.teardown.get_hookimpls()

        assert [impl.plugin for impl in impls].count(recorder) == 1
        assert len(impls) == 2
