"""
Community detection over a built keyword network.

detect_communities is the strength-ordered merge heuristic: links are visited
strongest first and any link with value > MERGE_THRESHOLD joins its
endpoints' communities, the source side's label surviving. detect_leiden is
kept as an alternative partition for comparison.
"""

import sys
from collections import Counter

import igraph as ig
import leidenalg

from .network import Graph

MERGE_THRESHOLD = 2


def _remap_contiguous(labels: list[int]) -> list[int]:
    """Renumber labels 0..k-1 in order of first appearance."""
    mapping: dict[int, int] = {}
    out = []
    for label in labels:
        if label not in mapping:
            mapping[label] = len(mapping)
        out.append(mapping[label])
    return out


def merge_labels(graph: Graph) -> list[int]:
    """Raw surviving label per node (node index order) after all merges."""
    labels = list(range(len(graph.nodes)))
    members: dict[int, list[int]] = {i: [i] for i in labels}

    # sorted() is stable: equal values keep link order.
    for link in sorted(graph.links, key=lambda l: l.value, reverse=True):
        if link.value <= MERGE_THRESHOLD:
            break
        src = labels[graph.index_of(link.source)]
        tgt = labels[graph.index_of(link.target)]
        if src == tgt:
            continue
        # Relabel every holder of the target's label, same result as a full
        # rescan of the node list.
        for idx in members.pop(tgt):
            labels[idx] = src
            members[src].append(idx)
    return labels


def detect_communities(graph: Graph, verbose: bool = True) -> list[int]:
    """Assign node.community in place and return the labels in node order."""
    membership = _remap_contiguous(merge_labels(graph))
    for node, cid in zip(graph.nodes, membership):
        node.community = cid
    if verbose:
        print(f"Detected {len(set(membership))} communities", file=sys.stderr)
    return membership


def detect_leiden(graph: Graph, resolution: float = 1.0, verbose: bool = True) -> list[int]:
    """Partition the keyword network by weighted modularity (Leiden, seed 42).

    Assigns node.community in place. Labels are renumbered 0..k-1 in order of
    first appearance along graph.nodes, the same convention as
    detect_communities.
    """
    if not graph.nodes:
        return []
    g = ig.Graph(
        n=len(graph.nodes),
        edges=[(graph.index_of(l.source), graph.index_of(l.target)) for l in graph.links],
        directed=False,
    )
    g.es["weight"] = [float(l.value) for l in graph.links]
    partition = leidenalg.find_partition(
        g,
        leidenalg.RBConfigurationVertexPartition,
        weights="weight",
        resolution_parameter=resolution,
        seed=42,
    )
    membership = _remap_contiguous(list(partition.membership))
    for node, cid in zip(graph.nodes, membership):
        node.community = cid
    if verbose:
        print(
            f"Detected {len(set(membership))} communities (Leiden, resolution {resolution})",
            file=sys.stderr,
        )
    return membership


def community_sizes(graph: Graph) -> dict[int, int]:
    """Node count per community id, ordered by id."""
    counts = Counter(n.community for n in graph.nodes)
    return dict(sorted(counts.items()))


def community_members(graph: Graph) -> dict[int, list[str]]:
    """Node ids per community id, members in node order."""
    out: dict[int, list[str]] = {}
    for n in graph.nodes:
        out.setdefault(n.community, []).append(n.id)
    return dict(sorted(out.items()))
