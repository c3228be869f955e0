"""Community detection tests: merge threshold, label survival and remapping."""

import pytest

from keyword_graph.communities import (
    community_members,
    community_sizes,
    detect_communities,
    detect_leiden,
    merge_labels,
)
from keyword_graph.network import Graph, Link, Node


def make_graph(ids, links):
    return Graph(
        nodes=[Node(i, 1) for i in ids],
        links=[Link(s, t, v) for s, t, v in links],
    )


class TestMergeHeuristic:

    def test_value_two_never_merges(self):
        graph = make_graph("AB", [("A", "B", 2)])
        assert detect_communities(graph, verbose=False) == [0, 1]

    def test_value_three_merges(self):
        graph = make_graph("AB", [("A", "B", 3)])
        assert detect_communities(graph, verbose=False) == [0, 0]

    def test_strong_link_merges_pair_apart_from_untouched(self):
        graph = make_graph("ABC", [("A", "B", 5)])
        detect_communities(graph, verbose=False)
        a, b, c = graph.nodes
        assert a.community == b.community == 0
        assert c.community == 1

    def test_source_label_survives(self):
        assert merge_labels(make_graph("ABC", [("B", "C", 3)])) == [0, 1, 1]
        assert merge_labels(make_graph("ABC", [("C", "B", 3)])) == [0, 2, 2]

    def test_remap_follows_node_order(self):
        graph = make_graph("ABC", [("C", "A", 3)])
        assert merge_labels(graph) == [2, 1, 2]
        assert detect_communities(graph, verbose=False) == [0, 1, 0]

    def test_whole_community_is_relabelled(self):
        graph = make_graph("ABC", [("A", "B", 3), ("C", "B", 3)])
        # A-B first (stable order), then C takes over the merged {A, B}
        assert merge_labels(graph) == [2, 2, 2]
        assert detect_communities(graph, verbose=False) == [0, 0, 0]

    def test_strongest_links_go_first(self):
        graph = make_graph("ABCD", [("A", "B", 3), ("C", "D", 9), ("D", "A", 4)])
        # C-D: D->2; D-A: A->2; A-B: B->2
        assert merge_labels(graph) == [2, 2, 2, 2]

    def test_contiguous_ids(self, sample_graph):
        labels = sample_graph.communities()
        assert sorted(set(labels)) == list(range(len(set(labels))))

    def test_deterministic(self, sample_graph):
        first = detect_communities(sample_graph, verbose=False)
        second = detect_communities(sample_graph, verbose=False)
        assert first == second
        assert sample_graph.communities() == second

    def test_empty_graph(self):
        assert detect_communities(Graph(), verbose=False) == []

    def test_sizes_and_members(self):
        graph = make_graph("ABC", [("A", "C", 4)])
        detect_communities(graph, verbose=False)
        assert community_sizes(graph) == {0: 2, 1: 1}
        assert community_members(graph) == {0: ["A", "C"], 1: ["B"]}


class TestLeiden:

    def test_two_triangles(self):
        graph = make_graph("ABCDEF", [
            ("A", "B", 5), ("B", "C", 5), ("A", "C", 5),
            ("D", "E", 5), ("E", "F", 5), ("D", "F", 5),
        ])
        assert detect_leiden(graph, verbose=False) == [0, 0, 0, 1, 1, 1]
        assert graph.node("F").community == 1

    def test_empty_graph(self):
        assert detect_leiden(Graph(), verbose=False) == []
