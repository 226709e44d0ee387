"""
StreamScope Console - Rich Rendering of Graphs and Decks
========================================================

Renders the subscription graph as a tree rooted at the sentinel, and a deck's
buffers as a table, using `rich`.
"""

from typing import TYPE_CHECKING, Optional, Set

from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.tree import Tree

from .match import match_to_string

if TYPE_CHECKING:
    from .plugins.graph import GraphNode, GraphTracker
    from .plugins.pause import Deck


def _label(node: "GraphNode") -> str:
    name = node.tag if node.tag is not None else type(node.record.stream).__name__
    label = f"#{node.id} [bold]{escape(name)}[/bold]"
    if node.merged:
        label += " [cyan](merge)[/cyan]"
    if node.outcome is not None:
        label += f" [dim]{node.outcome.value}[/dim]"
    return label


def _grow(branch: Tree, node: "GraphNode", seen: Set[int]) -> None:
    if node.id in seen:
        branch.add(f"#{node.id} [red](cycle)[/red]")
        return
    seen.add(node.id)
    for source in node.sources:
        _grow(branch.add(_label(source)), source, seen)
    for merge in node.merges:
        _grow(branch.add(_label(merge)), merge, seen)


def render_graph(tracker: "GraphTracker", node: Optional["GraphNode"] = None) -> Tree:
    """
    Build a tree of the graph below `node`, or below the sentinel.

    Sources and merges are the children of each node.
    """
    seen: Set[int] = set()
    if node is not None:
        tree = Tree(_label(node))
        _grow(tree, node, seen)
        return tree

    tree = Tree(f"[bold]sentinel[/bold] ({len(tracker)} node(s))")
    for root in tracker.sentinel.sources:
        _grow(tree.add(_label(root)), root, seen)
    return tree


def log_graph(tracker: "GraphTracker", console: Optional[Console] = None) -> None:
    (console or Console()).print(render_graph(tracker))


def render_deck(deck: "Deck") -> Table:
    table = Table(title=escape(f"Deck matching {match_to_string(deck.match)}"))
    table.add_column("Tag")
    table.add_column("Buffered", justify="right")
    table.add_column("Notifications")
    for state in deck._states.values():
        table.add_row(
            escape(str(state.tag)),
            str(len(state.notifications)),
            escape(", ".join(repr(n) for n in state.notifications)),
        )
    table.caption = f"paused = {deck.paused}"
    return table


def log_deck(deck: "Deck", console: Optional[Console] = None) -> None:
    (console or Console()).print(render_deck(deck))
