"""
Render hints and data export for a laid-out keyword network.

Nothing here draws. The hints (node radius, link width, community colour,
legend counts) are what a renderer needs to encode frequency, strength and
community; the files are GraphML for Gephi-style tools and a compact JSON
layout for web front ends.
"""

import json
import sys
from pathlib import Path

import matplotlib
import matplotlib.colors as mcolors
import networkx as nx
import numpy as np

from .communities import community_sizes
from .extract import KeywordStat
from .layout import radius_scale
from .network import Graph

NATURE_COLORS = [
    "#2171b5", "#6baed6", "#bdd7e7",  # blues
    "#238b45", "#74c476", "#bae4b3",  # greens
    "#88419d", "#8c6bb1", "#d4b9da",  # purples
    "#cb181d", "#fb6a4a", "#fcbba1",  # reds
    "#636363", "#969696", "#d9d9d9",  # greys
]

LINK_WIDTH_RANGE = (0.5, 4.0)


# ---------------------------------------------------------------------------
# Scales
# ---------------------------------------------------------------------------

def palette_colors(palette: str, k: int) -> list[str]:
    """k hex colours from the named palette.

    "nature" cycles the built-in list; anything else is looked up as a
    matplotlib colormap and sampled evenly.
    """
    if k <= 0:
        return []
    if palette == "nature":
        return [NATURE_COLORS[i % len(NATURE_COLORS)] for i in range(k)]
    try:
        cmap = matplotlib.colormaps[palette]
    except KeyError:
        raise ValueError(f"unknown palette {palette!r}") from None
    return [mcolors.to_hex(cmap(i / max(k - 1, 1))) for i in range(k)]


def community_colors(graph: Graph, palette: str = "nature") -> dict[int, str]:
    """Ordinal colour per community, assigned in order of first appearance."""
    order: list[int] = []
    for n in graph.nodes:
        if n.community not in order:
            order.append(n.community)
    return dict(zip(order, palette_colors(palette, len(order))))


def link_widths(graph: Graph) -> list[float]:
    """Linear scale from the observed link value extent onto LINK_WIDTH_RANGE."""
    if not graph.links:
        return []
    values = np.array([l.value for l in graph.links], dtype=float)
    lo, hi = LINK_WIDTH_RANGE
    v_min, v_max = values.min(), values.max()
    if v_max == v_min:
        return [(lo + hi) / 2] * len(values)
    return (lo + (values - v_min) / (v_max - v_min) * (hi - lo)).tolist()


def node_radii(graph: Graph) -> list[float]:
    return radius_scale([n.count for n in graph.nodes]).tolist()


# ---------------------------------------------------------------------------
# Snapshot
# ---------------------------------------------------------------------------

def layout_snapshot(graph: Graph, palette: str = "nature") -> dict:
    """Plain-data view of the graph with positions and render hints."""
    colors = community_colors(graph, palette)
    radii = node_radii(graph)
    widths = link_widths(graph)
    nodes = [
        {
            "id": n.id,
            "count": n.count,
            "community": n.community,
            "x": round(n.x, 3),
            "y": round(n.y, 3),
            "r": round(radii[i], 3),
            "color": colors[n.community],
        }
        for i, n in enumerate(graph.nodes)
    ]
    links = [
        {
            "source": l.source,
            "target": l.target,
            "value": l.value,
            "width": round(widths[i], 3),
        }
        for i, l in enumerate(graph.links)
    ]
    legend = [
        {"community": cid, "size": size, "color": colors[cid]}
        for cid, size in community_sizes(graph).items()
    ]
    return {"nodes": nodes, "links": links, "communities": legend}


# ---------------------------------------------------------------------------
# Files
# ---------------------------------------------------------------------------

def export_layout_json(output_dir: Path, graph: Graph, palette: str = "nature") -> Path:
    """Write layout.json with nodes, links and legend."""
    snapshot = layout_snapshot(graph, palette)
    output_dir.mkdir(parents=True, exist_ok=True)
    path = output_dir / "layout.json"
    with open(path, "w", encoding="utf-8") as f:
        json.dump(snapshot, f, ensure_ascii=False, separators=(",", ":"))
    print(f"Wrote {path} ({len(graph.nodes)} nodes, {len(graph.links)} links)", file=sys.stderr)
    return path


def export_graphml(output_dir: Path, graph: Graph, palette: str = "nature") -> Path:
    """Write network.graphml with count, community, position and colour attributes."""
    snapshot = layout_snapshot(graph, palette)
    output_dir.mkdir(parents=True, exist_ok=True)
    g = nx.Graph()
    for n in snapshot["nodes"]:
        g.add_node(
            n["id"],
            label=n["id"],
            count=n["count"],
            community=n["community"],
            x=float(n["x"]),
            y=float(n["y"]),
            size=float(n["r"]),
            color=n["color"],
        )
    for l in snapshot["links"]:
        g.add_edge(l["source"], l["target"], weight=l["value"], width=float(l["width"]))

    path = output_dir / "network.graphml"
    nx.write_graphml(g, str(path))
    print(f"Wrote {path}", file=sys.stderr)
    return path


def export_keyword_stats(output_dir: Path, stats: list[KeywordStat], top_connections: int = 5) -> Path:
    """Write keyword_stats.json: the frequency table with strongest connections."""
    output_dir.mkdir(parents=True, exist_ok=True)
    rows = [
        {
            "keyword": s.keyword,
            "count": s.count,
            "percentage": round(s.percentage, 2),
            "connections": [
                [c.keyword, c.strength] for c in s.connections[:top_connections]
            ],
        }
        for s in stats
    ]
    path = output_dir / "keyword_stats.json"
    with open(path, "w", encoding="utf-8") as f:
        json.dump(rows, f, ensure_ascii=False, indent=1)
    print(f"Wrote {path} ({len(rows)} keywords)", file=sys.stderr)
    return path
