from streamscope import GraphTracker, PausePlugin, RecordsPlugin, SpyConfig, spy
from streamscope.stream import Subject, combine_latest, map, merge_map, of, tag

# ------------------------------------------------------------------------------------------------

print()
print("=" * 100)
print("Graphing a pipeline")
print("-" * 100)
print()

# A session with a zero retention window flushes finished subscriptions right away.
records = RecordsPlugin()
tracker = GraphTracker(retention=0)
session = spy(plugins=[records, tracker])

prices = Subject()
rates = Subject()

# Every subscription made while a pipeline is being set up is a source of it.
converted = combine_latest(prices.pipe(tag("prices")), rates.pipe(tag("rates"))).pipe(
    map(lambda pair: pair[0] * pair[1]),
    tag("converted"),
)
subscription = converted.subscribe(lambda value: print(f"Converted: {value}"))

prices.next(10)
rates.next(1.5)

tracker.log()

# The prices subscription leads, through combine_latest, to the converted root.
node = tracker.get(records.get(prices))
print(f"Root destination of prices: {node.root_destination}")

# ------------------------------------------------------------------------------------------------

print()
print("=" * 100)
print("Merges")
print("-" * 100)
print()

# Subscriptions made while a value is delivered are merges of the delivering subscription.
orders = Subject()
orders.pipe(
    tag("orders"),
    merge_map(lambda order: of(order, order * 2).pipe(tag(f"lines-{order}"))),
).subscribe(lambda line: print(f"Line: {line}"))

orders.next(1)
tracker.log()

subscription.unsubscribe()
session.teardown()

# ------------------------------------------------------------------------------------------------

print()
print("=" * 100)
print("Pausing a stream")
print("-" * 100)
print()

# The deck starts paused: notifications of matching streams are buffered.
plugin = PausePlugin("ticks")
with spy(plugins=[plugin], config=SpyConfig(retention=0)):
    ticks = Subject()
    ticks.pipe(tag("ticks")).subscribe(lambda tick: print(f"Tick: {tick}"))
    plugin.deck.stats.subscribe(lambda stats: print(f"  {stats}"))

    ticks.next(1)
    ticks.next(2)
    ticks.next(3)
    plugin.deck.log()

    plugin.deck.step()  # Tick: 1
    plugin.deck.skip()  # 2 is dropped
    plugin.deck.resume()  # Tick: 3

    ticks.next(4)  # Tick: 4, straight through
