import pytest

from keyword_graph.communities import detect_communities
from keyword_graph.extract import extract_keywords
from keyword_graph.network import build_network
from keyword_graph.sample import SAMPLE_DOCUMENTS

SCENARIO_DOCS = [{"Keywords": "A; B; C"}, {"Keywords": "A; B"}]


@pytest.fixture
def scenario_stats():
    return extract_keywords(SCENARIO_DOCS, verbose=False)


@pytest.fixture
def sample_stats():
    return extract_keywords(SAMPLE_DOCUMENTS, verbose=False)


@pytest.fixture
def sample_graph(sample_stats):
    graph = build_network(sample_stats, 50, 1, verbose=False)
    detect_communities(graph, verbose=False)
    return graph
