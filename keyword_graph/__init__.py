"""Keyword co-occurrence networks: extraction, communities and force layout."""

from .communities import detect_communities, detect_leiden
from .config import NetworkConfig
from .extract import Connection, KeywordStat, extract_keywords, split_keywords
from .layout import LayoutState, Simulation, start
from .network import Graph, Link, Node, build_network
from .pipeline import KeywordNetwork

__all__ = [
    "Connection",
    "Graph",
    "KeywordNetwork",
    "KeywordStat",
    "LayoutState",
    "Link",
    "NetworkConfig",
    "Node",
    "Simulation",
    "build_network",
    "detect_communities",
    "detect_leiden",
    "extract_keywords",
    "split_keywords",
    "start",
]
