"""
Keyword network data model and graph builder.

Link endpoints are always node ids. Anything that needs resolved node objects
builds its own lookup via Graph.node() or Graph.index_of().
"""

import math
import sys
from dataclasses import dataclass, field

import networkx as nx

from .extract import KeywordStat


@dataclass
class Node:
    id: str
    count: int
    community: int = 0
    x: float = math.nan
    y: float = math.nan
    vx: float = 0.0
    vy: float = 0.0
    fx: float | None = None
    fy: float | None = None


@dataclass(frozen=True)
class Link:
    source: str
    target: str
    value: int

    def key(self) -> frozenset[str]:
        return frozenset((self.source, self.target))


@dataclass
class Graph:
    nodes: list[Node] = field(default_factory=list)
    links: list[Link] = field(default_factory=list)
    _index: dict[str, int] = field(default_factory=dict, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        self._reindex()

    def _reindex(self) -> None:
        self._index = {n.id: i for i, n in enumerate(self.nodes)}
        if len(self._index) != len(self.nodes):
            raise ValueError("duplicate node id in graph")
        for link in self.links:
            if link.source == link.target:
                raise ValueError(f"self-loop link on {link.source!r}")
            if link.source not in self._index or link.target not in self._index:
                raise ValueError(
                    f"link {link.source!r}-{link.target!r} references a missing node"
                )

    def __contains__(self, node_id: str) -> bool:
        return node_id in self._index

    def __len__(self) -> int:
        return len(self.nodes)

    def index_of(self, node_id: str) -> int:
        return self._index[node_id]

    def node(self, node_id: str) -> Node:
        return self.nodes[self._index[node_id]]

    def degree(self, node_id: str) -> int:
        return sum(1 for link in self.links if node_id in link.key())

    def neighbors(self, node_id: str) -> list[str]:
        """Linked node ids, in link order."""
        if node_id not in self._index:
            raise KeyError(node_id)
        out = []
        for link in self.links:
            if link.source == node_id:
                out.append(link.target)
            elif link.target == node_id:
                out.append(link.source)
        return out

    def communities(self) -> list[int]:
        return [n.community for n in self.nodes]

    def to_networkx(self) -> nx.Graph:
        """Undirected weighted networkx view (nodes carry count/community/x/y)."""
        g = nx.Graph()
        for n in self.nodes:
            attrs = {"count": n.count, "community": n.community}
            if not math.isnan(n.x):
                attrs["x"] = n.x
                attrs["y"] = n.y
            g.add_node(n.id, **attrs)
        for link in self.links:
            g.add_edge(link.source, link.target, weight=link.value)
        return g


# ---------------------------------------------------------------------------
# Build
# ---------------------------------------------------------------------------

def build_network(
    stats: list[KeywordStat], max_nodes: int, min_strength: int, verbose: bool = True,
) -> Graph:
    """Select the top-N keywords and the links among them.

    Links below min_strength or reaching outside the selection are dropped.
    Each undirected edge is kept once, in the orientation found first when
    walking the selection in frequency order. A non-positive max_nodes
    selects nothing.
    """
    top = stats[:max(max_nodes, 0)]
    selected = {s.keyword for s in top}

    nodes = [Node(id=s.keyword, count=s.count) for s in top]
    links: list[Link] = []
    seen: set[frozenset[str]] = set()
    for source in top:
        for conn in source.connections:
            if conn.keyword not in selected or conn.strength < min_strength:
                continue
            link = Link(source=source.keyword, target=conn.keyword, value=conn.strength)
            if link.key() in seen:
                continue
            seen.add(link.key())
            links.append(link)

    graph = Graph(nodes=nodes, links=links)
    if verbose:
        linked = {node_id for link in links for node_id in link.key()}
        isolated = sum(1 for n in nodes if n.id not in linked)
        print(
            f"Network: {len(nodes)} nodes, {len(links)} links "
            f"({isolated} isolated, min strength {min_strength})",
            file=sys.stderr,
        )
    return graph


def count_components(graph: Graph) -> int:
    """Number of connected components, isolated nodes included."""
    if not graph.nodes:
        return 0
    return nx.number_connected_components(graph.to_networkx())
