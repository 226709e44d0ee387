"""Tests for timers and the flush scheduler."""

import asyncio

import pytest

from streamscope import EventLoopTimers, FlushScheduler, ManualTimers, Outcome


class FakeNode:
    def __init__(self, node_id):
        self.id = node_id
        self.timer = None


@pytest.mark.unit
@pytest.mark.flush
class TestManualTimers:
    def test_fires_when_due(self):
        timers = ManualTimers()
        fired = []
        timers.call_later(1.0, fired.append, "a")

        timers.advance(0.5)
        assert fired == []

        timers.advance(0.5)
        assert fired == ["a"]
        assert timers.now == 1.0

    def test_fires_in_due_order_then_scheduling_order(self):
        timers = ManualTimers()
        fired = []
        timers.call_later(2.0, fired.append, "late")
        timers.call_later(1.0, fired.append, "early-1")
        timers.call_later(1.0, fired.append, "early-2")

        timers.advance(5)

        assert fired == ["early-1", "early-2", "late"]

    def test_cancelled_timers_do_not_fire(self):
        timers = ManualTimers()
        fired = []
        handle = timers.call_later(1.0, fired.append, "x")

        handle.cancel()
        timers.advance(2)

        assert fired == []
        assert handle.cancelled
        assert timers.pending == 0


@pytest.mark.unit
@pytest.mark.flush
class TestEventLoopTimers:
    def test_uses_the_running_loop(self):
        fired = []

        async def scenario():
            handle = EventLoopTimers().call_later(0.01, fired.append, "x")
            assert fired == []
            await asyncio.sleep(0.05)
            return handle

        handle = asyncio.run(scenario())

        assert fired == ["x"]
        assert handle.fired

    def test_without_a_loop_waits_for_the_deadline(self):
        now = [100.0]
        timers = EventLoopTimers(clock=lambda: now[0])
        fired = []

        handle = timers.call_later(10, fired.append, "x")
        timers.poll()
        assert fired == []
        assert timers.deferred == 1

        now[0] = 110.0
        timers.poll()

        assert fired == ["x"]
        assert handle.fired
        assert timers.deferred == 0

    def test_without_a_loop_fires_in_deadline_order(self):
        now = [0.0]
        timers = EventLoopTimers(clock=lambda: now[0])
        fired = []
        timers.call_later(2, fired.append, "late")
        timers.call_later(1, fired.append, "early")

        now[0] = 5.0
        timers.poll()

        assert fired == ["early", "late"]

    def test_without_a_loop_cancelled_timers_do_not_fire(self):
        now = [0.0]
        timers = EventLoopTimers(clock=lambda: now[0])
        fired = []
        timers.call_later(1, fired.append, "x").cancel()

        now[0] = 5.0
        timers.poll()

        assert fired == []
        assert timers.deferred == 0


@pytest.mark.unit
@pytest.mark.flush
class TestFlushScheduler:
    def test_zero_retention_flushes_synchronously(self):
        flushed = []
        scheduler = FlushScheduler(0, flushed.append, ManualTimers())
        node = FakeNode(1)

        scheduler.schedule_flush(node, Outcome.COMPLETED)

        assert flushed == [node]
        assert scheduler.pending == 0

    def test_positive_retention_waits_for_the_window(self):
        timers = ManualTimers()
        flushed = []
        scheduler = FlushScheduler(0.5, flushed.append, timers)
        node = FakeNode(1)

        scheduler.schedule_flush(node, Outcome.ERRORED)
        assert flushed == []
        assert scheduler.pending == 1
        assert node.timer is not None

        timers.advance(0.5)
        assert flushed == [node]
        assert scheduler.pending == 0

    def test_each_node_has_its_own_timer(self):
        timers = ManualTimers()
        flushed = []
        scheduler = FlushScheduler(1.0, flushed.append, timers)
        first, second = FakeNode(1), FakeNode(2)

        scheduler.schedule_flush(first, Outcome.UNSUBSCRIBED)
        timers.advance(0.5)
        scheduler.schedule_flush(second, Outcome.UNSUBSCRIBED)
        timers.advance(0.5)

        assert flushed == [first]

        timers.advance(0.5)
        assert flushed == [first, second]
