"""
Extract -> build -> detect -> layout, as one object the host drives.

Nothing here observes its inputs: after changing options the caller calls
update() (or rebuild()), which recomputes only the stages downstream of the
change. A rebuild finishes community detection on the new graph before the
new simulation exists, then swaps graph and simulation together, so a stale
labelling never meets a new node set.
"""

import math
from collections.abc import Iterable
from dataclasses import replace

from .communities import detect_communities, detect_leiden
from .config import GRAPH_OPTIONS, LAYOUT_OPTIONS, NetworkConfig
from .extract import Connection, KeywordStat, as_records, extract_keywords
from .layout import Simulation, start
from .network import Graph, build_network


class KeywordNetwork:
    def __init__(
        self,
        documents: Iterable,
        config: NetworkConfig | None = None,
        verbose: bool = True,
    ):
        self.config = (config or NetworkConfig()).normalized()
        self.verbose = verbose
        self.documents = as_records(documents)
        self.stats: list[KeywordStat] = []
        self.graph: Graph = Graph()
        self.simulation: Simulation | None = None
        self._selected: str | None = None
        self._extract()
        self.rebuild()

    # -- stages ------------------------------------------------------------

    def _extract(self) -> None:
        self.stats = extract_keywords(
            self.documents, self.config.keyword_field, verbose=self.verbose,
        )

    def _detect(self, graph: Graph) -> None:
        if self.config.community_method == "leiden":
            detect_leiden(graph, self.config.resolution, verbose=self.verbose)
        else:
            detect_communities(graph, verbose=self.verbose)

    def _start(self, graph: Graph, positions=None) -> Simulation:
        return start(
            graph,
            self.config.layout_variant,
            self.config.dimensions,
            seed=self.config.seed,
            positions=positions,
        )

    def rebuild(self) -> Graph:
        """Rebuild graph, communities and layout from the current keyword table."""
        previous = None
        if self.simulation is not None:
            if self.config.warm_start:
                previous = self.simulation.positions()
            self.simulation.stop()

        graph = build_network(
            self.stats, self.config.max_nodes, self.config.min_link_strength,
            verbose=self.verbose,
        )
        self._detect(graph)
        simulation = self._start(graph, positions=previous)

        self.graph, self.simulation = graph, simulation
        if self._selected is not None and self._selected not in graph:
            self._selected = None
        return graph

    def restart_layout(self, reseed: bool = False) -> Simulation:
        """New simulation on the current graph.

        Continues from the current positions unless reseed is set, in which
        case every node is scattered again from the configured seed.
        """
        if self.simulation is not None:
            self.simulation.stop()
        if reseed:
            for node in self.graph.nodes:
                node.x = node.y = math.nan
                node.vx = node.vy = 0.0
        self.simulation = self._start(self.graph)
        return self.simulation

    def redetect(self) -> list[int]:
        """Re-run community detection; only the cluster force is affected."""
        self._detect(self.graph)
        if self.simulation is not None:
            self.simulation.refresh_communities()
        return self.graph.communities()

    def update(self, **changes) -> Graph:
        """Apply option changes and recompute whatever they invalidate."""
        new = replace(self.config, **changes).normalized()
        changed = {k for k in changes if getattr(new, k) != getattr(self.config, k)}
        self.config = new
        if "keyword_field" in changed:
            self._extract()
            self.rebuild()
        elif changed & GRAPH_OPTIONS:
            self.rebuild()
        elif changed & LAYOUT_OPTIONS:
            self.restart_layout(reseed="seed" in changed)
        return self.graph

    def set_documents(self, documents: Iterable) -> Graph:
        self.documents = as_records(documents)
        self._extract()
        return self.rebuild()

    # -- host hooks ----------------------------------------------------------

    def tick(self) -> None:
        if self.simulation is not None:
            self.simulation.tick()

    @property
    def selected_node(self) -> str | None:
        return self._selected

    def select(self, node_id: str | None) -> str | None:
        """Toggle selection of node_id; selecting the selected node clears it."""
        if node_id is not None and node_id not in self.graph:
            raise KeyError(node_id)
        self._selected = None if node_id == self._selected else node_id
        return self._selected

    # -- queries -------------------------------------------------------------

    def keyword(self, keyword: str) -> KeywordStat:
        for stat in self.stats:
            if stat.keyword == keyword:
                return stat
        raise KeyError(keyword)

    def top_connections(self, node_id: str, limit: int = 5) -> list[Connection]:
        """Strongest connections of a node at or above the link threshold."""
        stat = self.keyword(node_id)
        strong = [c for c in stat.connections if c.strength >= self.config.min_link_strength]
        return strong[:limit]

    def neighbors(self, node_id: str) -> list[str]:
        return self.graph.neighbors(node_id)
