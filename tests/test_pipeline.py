"""
KeywordNetwork tests: explicit rebuilds, invalidation of downstream stages,
selection and neighbourhood queries.
"""

import math

import pytest

from keyword_graph.config import NetworkConfig
from keyword_graph.layout import LayoutState
from keyword_graph.pipeline import KeywordNetwork
from keyword_graph.sample import SAMPLE_DOCUMENTS

from conftest import SCENARIO_DOCS


def scenario(**options):
    return KeywordNetwork(SCENARIO_DOCS, NetworkConfig(max_nodes=3, **options), verbose=False)


class TestConfig:

    def test_defaults(self):
        config = NetworkConfig()
        assert config.max_nodes == 50
        assert config.min_link_strength == 1
        assert config.layout_variant == "standard"
        assert config.dimensions == (800.0, 600.0)

    def test_clamps(self):
        config = NetworkConfig(max_nodes=-4, min_link_strength=0, width=-1, height=0).normalized()
        assert config.max_nodes == 0
        assert config.min_link_strength == 1
        assert config.dimensions == (1.0, 1.0)

    def test_unknown_names_raise(self):
        with pytest.raises(ValueError):
            NetworkConfig(layout_variant="grid").normalized()
        with pytest.raises(ValueError):
            NetworkConfig(community_method="louvain").normalized()


class TestRebuild:

    def test_initial_build(self):
        net = scenario()
        assert [n.id for n in net.graph.nodes] == ["A", "B", "C"]
        assert len(net.graph.links) == 3
        assert net.simulation.state is LayoutState.RUNNING

    def test_strength_change_rebuilds_everything(self):
        net = scenario()
        old_graph, old_sim = net.graph, net.simulation
        net.update(min_link_strength=2)
        assert net.graph is not old_graph
        assert net.simulation is not old_sim
        assert old_sim.state is LayoutState.STOPPED
        assert [(l.source, l.target, l.value) for l in net.graph.links] == [("A", "B", 2)]

    def test_communities_ready_before_layout(self):
        net = KeywordNetwork(SAMPLE_DOCUMENTS, NetworkConfig(layout_variant="cluster"), verbose=False)
        assert net.simulation._community.tolist() == net.graph.communities()
        net.update(max_nodes=10)
        assert net.simulation._community.tolist() == net.graph.communities()
        assert len(net.simulation._community) == 10

    def test_variant_change_keeps_graph(self):
        net = scenario()
        old_graph, old_sim = net.graph, net.simulation
        for _ in range(10):
            net.tick()
        x = net.graph.node("A").x
        net.update(layout_variant="cluster")
        assert net.graph is old_graph
        assert net.simulation is not old_sim
        assert net.simulation.profile.name == "cluster"
        assert net.graph.node("A").x == x

    def test_seed_change_rescatters(self):
        net = KeywordNetwork(SAMPLE_DOCUMENTS, verbose=False)
        net.simulation.run(20)
        net.update(seed=7)
        fresh = KeywordNetwork(SAMPLE_DOCUMENTS, NetworkConfig(seed=7), verbose=False)
        assert net.simulation.positions() == fresh.simulation.positions()

    def test_seed_back_to_none_restores_spiral(self):
        net = KeywordNetwork(SAMPLE_DOCUMENTS, NetworkConfig(seed=3), verbose=False)
        net.update(seed=None)
        x, y = net.simulation.positions()[net.graph.nodes[0].id]
        assert (x, y) == pytest.approx((400 + 10 * math.sqrt(0.5), 300))

    def test_unchanged_option_is_noop(self):
        net = scenario()
        sim = net.simulation
        net.update(max_nodes=3)
        assert net.simulation is sim

    def test_negative_max_nodes_gives_settled_empty_graph(self):
        net = scenario()
        net.update(max_nodes=-1)
        assert net.config.max_nodes == 0
        assert len(net.graph) == 0
        assert net.simulation.state is LayoutState.SETTLED

    def test_bad_variant_raises(self):
        net = scenario()
        with pytest.raises(ValueError):
            net.update(layout_variant="grid")

    def test_reseeds_without_warm_start(self):
        net = scenario()
        net.simulation.run(30)
        net.update(min_link_strength=2)
        a = net.graph.node("A")
        assert a.x == pytest.approx(400 + 10 * math.sqrt(0.5))

    def test_warm_start_keeps_positions(self):
        net = scenario(warm_start=True)
        net.simulation.run(30)
        before = net.simulation.positions()
        net.update(min_link_strength=2)
        assert net.simulation.positions() == before

    def test_redetect_refreshes_cluster_force_only(self):
        net = KeywordNetwork(SAMPLE_DOCUMENTS, NetworkConfig(layout_variant="cluster"), verbose=False)
        graph, sim = net.graph, net.simulation
        labels = net.redetect()
        assert net.graph is graph and net.simulation is sim
        assert sim._community.tolist() == labels

    def test_leiden_method(self):
        net = KeywordNetwork(SAMPLE_DOCUMENTS, NetworkConfig(community_method="leiden"), verbose=False)
        labels = net.graph.communities()
        assert sorted(set(labels)) == list(range(len(set(labels))))

    def test_keyword_field_change_reextracts(self):
        docs = [{"Keywords": "A; B", "Tags": "x; y; z"}]
        net = KeywordNetwork(docs, verbose=False)
        assert [n.id for n in net.graph.nodes] == ["A", "B"]
        net.update(keyword_field="Tags")
        assert [n.id for n in net.graph.nodes] == ["x", "y", "z"]

    def test_set_documents(self):
        net = scenario()
        net.set_documents([{"Keywords": "P; Q"}])
        assert [n.id for n in net.graph.nodes] == ["P", "Q"]

    def test_malformed_documents(self):
        with pytest.raises(TypeError):
            KeywordNetwork(None, verbose=False)


class TestSelection:

    def test_toggle(self):
        net = scenario()
        assert net.selected_node is None
        assert net.select("A") == "A"
        assert net.select("B") == "B"
        assert net.select("B") is None

    def test_unknown_node(self):
        with pytest.raises(KeyError):
            scenario().select("Z")

    def test_cleared_when_node_leaves_graph(self):
        net = scenario()
        net.select("C")
        net.update(max_nodes=2)
        assert net.selected_node is None

    def test_selection_does_not_touch_layout(self):
        net = scenario()
        before = net.simulation.positions()
        net.select("A")
        assert net.simulation.positions() == before


class TestQueries:

    def test_top_connections_respects_threshold(self):
        net = scenario()
        assert [(c.keyword, c.strength) for c in net.top_connections("A")] == [("B", 2), ("C", 1)]
        net.update(min_link_strength=2)
        assert [(c.keyword, c.strength) for c in net.top_connections("A")] == [("B", 2)]

    def test_top_connections_limit(self):
        net = KeywordNetwork(SAMPLE_DOCUMENTS, verbose=False)
        assert len(net.top_connections("深度学习", limit=3)) == 3

    def test_neighbors(self):
        net = scenario(min_link_strength=2)
        assert net.neighbors("A") == ["B"]
        assert net.neighbors("C") == []
