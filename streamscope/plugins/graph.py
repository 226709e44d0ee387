"""
StreamScope Graph - Subscription Graph Tracking
===============================================

This module maintains a live, directed graph of the subscriptions that make up
a running pipeline. Each reported subscription gets a `GraphNode` describing:

- its **destination**: the subscription that consumes its output
- its **sources**: subscriptions it made while it was being set up (static
  upstream dependencies, e.g. the inputs of `combine_latest` or the source of
  a `map`)
- its **merges**: subscriptions made while one of its values was being
  delivered (dynamic inner subscriptions, e.g. from `merge_map`)
- its **sentinel**: a synthetic root shared by the whole graph, whose sources
  are the root-level subscriptions

Classification uses a stack of in-flight notifications. A subscription made
while another subscription is being set up is a source of it; one made while
a next, error or completion is being delivered is a merge of the delivering
subscription; one made with an empty stack, or from inside an unsubscribe, is
a root.

Nodes live in an arena keyed by subscription record id, and every relation is
an id-keyed table. Flushing a node is index deletion: stale ids simply stop
resolving, so nothing has to chase and clear references elsewhere.

Terminated nodes are not removed immediately; removal is delegated to the
`FlushScheduler`, which keeps them for the configured retention window.
"""

import logging
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ..config import DEFAULT_RETENTION, validate_retention
from ..errors import NotTracked
from ..record import SubscriptionRecord, next_id, records
from ..timers import TimerHandle, Timers
from .base import BasePlugin
from .flush import FlushScheduler
from .hookspecs import hookimpl

SOURCES = "sources"
MERGES = "merges"

# Kinds of in-flight notification on the tracker's stack.
SUBSCRIBE = "subscribe"
NEXT = "next"
ERROR = "error"
COMPLETE = "complete"
UNSUBSCRIBE = "unsubscribe"


class Outcome(Enum):
    """How a subscription terminated."""

    COMPLETED = "completed"
    ERRORED = "errored"
    UNSUBSCRIBED = "unsubscribed"


class Sentinel:
    """Synthetic root whose sources are the root-level subscriptions."""

    def __init__(self, graph: "GraphTracker") -> None:
        self._graph = graph
        self.id = next_id()

    @property
    def sources(self) -> List["GraphNode"]:
        return self._graph._resolve(self._graph._relations[SOURCES].get(self.id, ()))

    def __repr__(self) -> str:
        return f"Sentinel(#{self.id}, sources={len(self.sources)})"


class GraphNode:
    """
    The graph's view of one subscription.

    Relations are resolved on access through the tracker's tables, so a node
    always reflects the current topology.
    """

    def __init__(
        self, graph: "GraphTracker", record: SubscriptionRecord, sentinel: Sentinel
    ) -> None:
        self._graph = graph
        self.record = record
        self.id = record.id
        self.sentinel = sentinel
        self.merged = False
        self.outcome: Optional[Outcome] = None
        self.timer: Optional[TimerHandle] = None

    @property
    def terminated(self) -> bool:
        return self.outcome is not None

    @property
    def destination(self) -> Optional["GraphNode"]:
        return self._graph._destination_of(self.id)

    @property
    def root_destination(self) -> Optional["GraphNode"]:
        """
        The furthest destination reachable by following `destination` links.

        Computed on every access: the chain can grow after the node is created.
        """
        return self._graph._root_destination_of(self)

    @property
    def sources(self) -> List["GraphNode"]:
        return self._graph._resolve(self._graph._relations[SOURCES].get(self.id, ()))

    @property
    def merges(self) -> List["GraphNode"]:
        return self._graph._resolve(self._graph._relations[MERGES].get(self.id, ()))

    @property
    def tag(self) -> Optional[str]:
        return self.record.tag

    def __repr__(self) -> str:
        state = self.outcome.value if self.outcome else "live"
        return f"GraphNode(#{self.id}, tag={self.tag!r}, {state})"


class GraphTracker(BasePlugin):
    """
    Builds and maintains the subscription graph from lifecycle events.

    The tracker can be driven by a probe session (as a plugin) or directly
    through `on_subscribe`, `on_source_subscribe`, `on_merge_subscribe` and
    `on_teardown` by a host that knows the attribution itself.

    Example:
        ```python
        tracker = GraphTracker(retention=0)
        records = RecordsPlugin()
        with spy(plugins=[records, tracker]):
            subject = Subject()
            mapped = subject.pipe(map(lambda x: x * 2))
            mapped.subscribe()

            node = tracker.get(records.get(subject))
            node.destination is tracker.get(records.get(mapped))  # True
        ```
    """

    def __init__(
        self, retention: float = DEFAULT_RETENTION, timers: Optional[Timers] = None
    ) -> None:
        super().__init__("graph")
        self.retention = validate_retention(retention)
        self._nodes: Dict[int, GraphNode] = {}
        self._relations: Dict[str, Dict[int, List[int]]] = {SOURCES: {}, MERGES: {}}
        # node id -> (relation, owner id); the owner is a node or the sentinel
        self._placements: Dict[int, Tuple[str, int]] = {}
        self._sentinel: Optional[Sentinel] = None
        self._stack: List[Tuple[str, SubscriptionRecord]] = []
        self._flusher = FlushScheduler(self.retention, self._flush, timers)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def sentinel(self) -> Sentinel:
        if self._sentinel is None:
            self._sentinel = Sentinel(self)
        return self._sentinel

    @property
    def flusher(self) -> FlushScheduler:
        return self._flusher

    def find(self, subscription: Any) -> Optional[GraphNode]:
        """Return the node for a subscription, or None if it is not tracked."""
        self._flusher.poll()
        if subscription is None:
            return None
        record = records.find(subscription)
        if record is None:
            return None
        return self._nodes.get(record.id)

    def get(self, subscription: Any) -> GraphNode:
        """
        Return the node for a subscriber or subscription record.

        Raises:
            NotTracked: If the subscription was never observed or was flushed
        """
        node = self.find(subscription)
        if node is None:
            raise NotTracked(f"Subscription {subscription!r} is not tracked")
        return node

    @property
    def nodes(self) -> List[GraphNode]:
        self._flusher.poll()
        return list(self._nodes.values())

    def __contains__(self, subscription: Any) -> bool:
        return self.find(subscription) is not None

    def __len__(self) -> int:
        self._flusher.poll()
        return len(self._nodes)

    # ------------------------------------------------------------------
    # Explicit instrumentation API
    # ------------------------------------------------------------------

    def on_subscribe(
        self, subscription: Any, destination: Any = None
    ) -> Optional[GraphNode]:
        """
        Register a subscription, as a source of `destination` if it is tracked
        and as a root under the sentinel otherwise.
        """
        node = self._ensure_node(subscription)
        if node is None:
            return None
        parent = self.find(destination)
        if destination is not None and parent is None:
            logging.debug(
                f"Destination {destination!r} of node #{node.id} is not tracked; treating node as a root"
            )
        self._attach(node, parent, SOURCES)
        return node

    def on_source_subscribe(
        self, parent: Any, child_subscription: Any
    ) -> Optional[GraphNode]:
        """Record `child_subscription` as a construction-time source of `parent`."""
        return self._link(parent, child_subscription, SOURCES)

    def on_merge_subscribe(
        self, parent: Any, inner_subscription: Any
    ) -> Optional[GraphNode]:
        """Record `inner_subscription` as a value-triggered merge of `parent`."""
        return self._link(parent, inner_subscription, MERGES)

    def on_teardown(self, subscription: Any, outcome: Outcome) -> None:
        """
        Mark a subscription terminated and hand it to the flush scheduler.

        Only the first terminal event counts; later ones are ignored.
        """
        node = self.find(subscription)
        if node is None:
            logging.debug(f"Teardown ({outcome.value}) for untracked {subscription!r}")
            return
        if node.terminated:
            return
        node.outcome = outcome
        self._flusher.schedule_flush(node, outcome)

    # ------------------------------------------------------------------
    # Plugin hooks
    # ------------------------------------------------------------------

    @hookimpl
    def before_subscribe(self, record: SubscriptionRecord) -> None:
        top = self._stack[-1] if self._stack else None
        if top is None or top[0] == UNSUBSCRIBE:
            self.on_subscribe(record)
        elif top[0] == SUBSCRIBE:
            self.on_subscribe(record, top[1])
        else:
            self.on_merge_subscribe(top[1], record)
        self._stack.append((SUBSCRIBE, record))

    @hookimpl
    def after_subscribe(self, record: SubscriptionRecord) -> None:
        self._pop(SUBSCRIBE, record)

    @hookimpl
    def before_next(self, record: SubscriptionRecord, value: Any) -> None:
        self._stack.append((NEXT, record))

    @hookimpl
    def after_next(self, record: SubscriptionRecord, value: Any) -> None:
        self._pop(NEXT, record)

    @hookimpl
    def before_error(self, record: SubscriptionRecord, error: BaseException) -> None:
        self._stack.append((ERROR, record))

    @hookimpl
    def after_error(self, record: SubscriptionRecord, error: BaseException) -> None:
        self._pop(ERROR, record)
        self.on_teardown(record, Outcome.ERRORED)

    @hookimpl
    def before_complete(self, record: SubscriptionRecord) -> None:
        self._stack.append((COMPLETE, record))

    @hookimpl
    def after_complete(self, record: SubscriptionRecord) -> None:
        self._pop(COMPLETE, record)
        self.on_teardown(record, Outcome.COMPLETED)

    @hookimpl
    def before_unsubscribe(self, record: SubscriptionRecord) -> None:
        self._stack.append((UNSUBSCRIBE, record))

    @hookimpl
    def after_unsubscribe(self, record: SubscriptionRecord) -> None:
        self._pop(UNSUBSCRIBE, record)
        self.on_teardown(record, Outcome.UNSUBSCRIBED)

    @hookimpl
    def teardown(self) -> None:
        self._stack.clear()

    def log(self, console: Any = None) -> None:
        from ..console import log_graph

        log_graph(self, console)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _ensure_node(self, subscription: Any) -> Optional[GraphNode]:
        self._flusher.poll()
        record = records.find(subscription)
        if record is None:
            logging.warning(f"Cannot graph {subscription!r}: it has no subscription record")
            return None
        node = self._nodes.get(record.id)
        if node is None:
            node = GraphNode(self, record, self.sentinel)
            self._nodes[record.id] = node
        return node

    def _link(self, parent: Any, child: Any, relation: str) -> Optional[GraphNode]:
        node = self._ensure_node(child)
        if node is None:
            return None
        parent_node = self.find(parent)
        if parent_node is None:
            logging.debug(
                f"Parent {parent!r} of node #{node.id} is not tracked; treating node as a root"
            )
        self._attach(node, parent_node, relation)
        return node

    def _attach(
        self, node: GraphNode, parent: Optional[GraphNode], relation: str
    ) -> None:
        if parent is not None and self._creates_cycle(node, parent):
            logging.warning(
                f"Ignoring link of node #{node.id} under #{parent.id}: it would create a cycle"
            )
            if node.id not in self._placements:
                self._attach(node, None, SOURCES)
            return

        self._detach(node.id)
        if parent is None:
            owner = self.sentinel.id
            relation = SOURCES
            node.sentinel = self.sentinel
        else:
            owner = parent.id
            node.sentinel = parent.sentinel
        node.merged = relation == MERGES
        self._relations[relation].setdefault(owner, []).append(node.id)
        self._placements[node.id] = (relation, owner)

    def _detach(self, node_id: int) -> None:
        placement = self._placements.pop(node_id, None)
        if placement is None:
            return
        relation, owner = placement
        members = self._relations[relation].get(owner)
        if members is None or node_id not in members:
            logging.debug(f"Node #{node_id} was already missing from {relation} of #{owner}")
            return
        members.remove(node_id)
        if not members and owner not in self._nodes and owner != self.sentinel.id:
            del self._relations[relation][owner]

    def _creates_cycle(self, node: GraphNode, parent: GraphNode) -> bool:
        current: Optional[int] = parent.id
        seen = set()
        while current is not None and current not in seen:
            if current == node.id:
                return True
            seen.add(current)
            placement = self._placements.get(current)
            current = placement[1] if placement else None
        return False

    def _destination_of(self, node_id: int) -> Optional[GraphNode]:
        self._flusher.poll()
        placement = self._placements.get(node_id)
        if placement is None:
            return None
        return self._nodes.get(placement[1])

    def _root_destination_of(self, node: GraphNode) -> Optional[GraphNode]:
        current = node.destination
        if current is None:
            return None
        seen = {node.id}
        while True:
            if current.id in seen:
                logging.warning(f"Destination cycle detected at node #{current.id}")
                return current
            seen.add(current.id)
            following = current.destination
            if following is None:
                return current
            current = following

    def _resolve(self, ids: Iterable[int]) -> List[GraphNode]:
        ids = list(ids)
        self._flusher.poll()
        resolved = []
        for node_id in ids:
            node = self._nodes.get(node_id)
            if node is not None:
                resolved.append(node)
        return resolved

    def _flush(self, node: GraphNode) -> None:
        if self._nodes.get(node.id) is not node:
            logging.debug(f"Node #{node.id} was already flushed")
            return
        del self._nodes[node.id]
        self._detach(node.id)
        for relation in self._relations.values():
            if not relation.get(node.id, True):
                del relation[node.id]
        logging.debug(f"Flushed node #{node.id} ({node.outcome.value if node.outcome else 'live'})")

    def _pop(self, kind: str, record: SubscriptionRecord) -> None:
        if self._stack and self._stack[-1] == (kind, record):
            self._stack.pop()
            return
        logging.warning(f"Unbalanced {kind} notification for {record!r}")
        for index in range(len(self._stack) - 1, -1, -1):
            if self._stack[index] == (kind, record):
                del self._stack[index]
                return
