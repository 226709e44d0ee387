"""End-to-end tests: graphing and pausing a running pipeline together."""

import asyncio

import pytest

from streamscope import (
    EventLoopTimers,
    GraphTracker,
    ManualTimers,
    PausePlugin,
    RecordsPlugin,
    SpyConfig,
    spy,
)
from streamscope.stream import Subject, combine_latest, map, switch_map, tag


@pytest.mark.integration
def test_flushes_on_the_running_event_loop():
    async def scenario():
        with spy(config=SpyConfig(retention=0.01)) as session:
            tracker = session.find_plugin(GraphTracker)
            subject = Subject()
            subject.subscribe()

            subject.complete()
            assert len(tracker.sentinel.sources) == 1

            await asyncio.sleep(0.05)
            assert len(tracker.sentinel.sources) == 0
            assert tracker.flusher.pending == 0

    asyncio.run(scenario())


@pytest.mark.integration
def test_without_a_running_loop_keeps_nodes_for_the_window():
    now = [0.0]
    timers = EventLoopTimers(clock=lambda: now[0])
    with spy(config=SpyConfig(retention=5, timers=timers)) as session:
        tracker = session.find_plugin(GraphTracker)
        subject = Subject()
        subject.subscribe()

        subject.complete()
        assert len(tracker.sentinel.sources) == 1

        now[0] = 4.0
        assert len(tracker) == 1

        now[0] = 5.0
        assert len(tracker) == 0


@pytest.mark.integration
def test_default_tracker_without_a_loop_retains_unsubscribed_roots():
    tracker = GraphTracker()
    with spy(plugins=[RecordsPlugin(), tracker]):
        Subject().subscribe().unsubscribe()

        assert len(tracker.sentinel.sources) == 1
        assert tracker.flusher.pending == 1


@pytest.mark.integration
class TestGraphAndDeck:
    @pytest.fixture
    def clock(self):
        return ManualTimers()

    @pytest.fixture
    def plugins(self, clock):
        return {
            "records": RecordsPlugin(),
            "graph": GraphTracker(retention=1.0, timers=clock),
            "pause": PausePlugin("prices"),
        }

    @pytest.fixture(autouse=True)
    def session(self, plugins):
        with spy(plugins=list(plugins.values())) as active:
            yield active

    def test_deck_plumbing_is_not_graphed(self, plugins):
        graph, records = plugins["graph"], plugins["records"]
        prices = Subject()
        tagged = prices.pipe(tag("prices"))
        doubled = tagged.pipe(map(lambda value: value * 2))
        doubled.subscribe()

        doubled_node = graph.get(records.get(doubled))
        tagged_node = graph.get(records.get(tagged))
        prices_node = graph.get(records.get(prices))

        assert len(graph) == 3
        assert graph.sentinel.sources == [doubled_node]
        assert doubled_node.sources == [tagged_node]
        assert tagged_node.sources == [prices_node]
        assert prices_node.root_destination is doubled_node

    def test_paused_values_flow_on_step_and_resume(self, plugins):
        deck = plugins["pause"].deck
        values = []
        prices = Subject()
        prices.pipe(tag("prices"), map(lambda value: value * 2)).subscribe(
            values.append
        )

        prices.next(1)
        prices.next(2)
        assert values == []

        deck.step()
        assert values == [2]

        deck.resume()
        prices.next(3)
        assert values == [2, 4, 6]

    def test_merges_are_graphed_when_values_are_released(self, plugins):
        graph, records, deck = plugins["graph"], plugins["records"], plugins["pause"].deck
        prices = Subject()
        inner = Subject(tag="quote")
        tagged = prices.pipe(tag("prices"))
        tagged.pipe(switch_map(lambda value: inner)).subscribe()

        prices.next(1)
        assert graph.get(records.get(tagged)).merges == []

        deck.step()

        (merge,) = graph.get(records.get(tagged)).merges
        assert merge.record.stream is inner
        assert merge.merged

    def test_combined_pipeline_flushes_after_completion(self, plugins, clock):
        graph = plugins["graph"]
        left = Subject()
        right = Subject()
        combine_latest(left.pipe(tag("prices")), right).subscribe()
        plugins["pause"].deck.resume()

        left.complete()
        right.complete()

        assert all(node.terminated for node in graph.nodes)
        clock.advance(1.0)
        assert len(graph) == 0
        assert graph.sentinel.sources == []
