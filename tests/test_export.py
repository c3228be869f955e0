"""Render hint and export tests."""

import json

import networkx as nx
import pytest

from keyword_graph.export import (
    NATURE_COLORS,
    community_colors,
    export_graphml,
    export_keyword_stats,
    export_layout_json,
    layout_snapshot,
    link_widths,
    palette_colors,
)
from keyword_graph.layout import start
from keyword_graph.network import Graph, Link, Node


@pytest.fixture
def placed_graph(sample_graph):
    start(sample_graph, "standard", (800, 600)).run(50)
    return sample_graph


class TestHints:

    def test_nature_palette_cycles(self):
        colors = palette_colors("nature", 16)
        assert colors[:15] == NATURE_COLORS
        assert colors[15] == NATURE_COLORS[0]

    def test_matplotlib_palette(self):
        colors = palette_colors("viridis", 4)
        assert len(colors) == 4
        assert all(c.startswith("#") and len(c) == 7 for c in colors)
        assert len(set(colors)) == 4

    def test_unknown_palette(self):
        with pytest.raises(ValueError):
            palette_colors("no-such-map", 3)

    def test_community_colors_first_appearance(self):
        graph = Graph(nodes=[Node("A", 1, community=1), Node("B", 1, community=0)])
        assert community_colors(graph) == {1: NATURE_COLORS[0], 0: NATURE_COLORS[1]}

    def test_link_widths(self):
        graph = Graph(
            nodes=[Node("A", 1), Node("B", 1), Node("C", 1)],
            links=[Link("A", "B", 1), Link("A", "C", 2), Link("B", "C", 3)],
        )
        assert link_widths(graph) == pytest.approx([0.5, 2.25, 4.0])

    def test_link_widths_degenerate(self):
        graph = Graph(nodes=[Node("A", 1), Node("B", 1)], links=[Link("A", "B", 7)])
        assert link_widths(graph) == [2.25]

    def test_snapshot(self, placed_graph):
        snap = layout_snapshot(placed_graph)
        assert len(snap["nodes"]) == len(placed_graph.nodes)
        assert len(snap["links"]) == len(placed_graph.links)
        assert sum(c["size"] for c in snap["communities"]) == len(placed_graph.nodes)
        node = snap["nodes"][0]
        assert set(node) == {"id", "count", "community", "x", "y", "r", "color"}
        assert node["r"] == pytest.approx(25.0)


class TestFiles:

    def test_layout_json(self, placed_graph, tmp_path):
        path = export_layout_json(tmp_path, placed_graph)
        data = json.loads(path.read_text(encoding="utf-8"))
        assert [n["id"] for n in data["nodes"]] == [n.id for n in placed_graph.nodes]

    def test_bad_palette_writes_nothing(self, placed_graph, tmp_path):
        with pytest.raises(ValueError):
            export_layout_json(tmp_path, placed_graph, "no-such-map")
        with pytest.raises(ValueError):
            export_graphml(tmp_path, placed_graph, "no-such-map")
        assert list(tmp_path.iterdir()) == []

    def test_graphml(self, placed_graph, tmp_path):
        path = export_graphml(tmp_path / "out", placed_graph)
        g = nx.read_graphml(str(path))
        assert g.number_of_nodes() == len(placed_graph.nodes)
        assert g.number_of_edges() == len(placed_graph.links)

    def test_keyword_stats(self, sample_stats, tmp_path):
        path = export_keyword_stats(tmp_path, sample_stats, top_connections=2)
        rows = json.loads(path.read_text(encoding="utf-8"))
        assert rows[0]["keyword"] == "深度学习"
        assert rows[0]["count"] == 9
        assert len(rows[0]["connections"]) == 2
