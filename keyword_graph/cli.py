#!/usr/bin/env python3
"""
Keyword network: reads a table of documents, builds the keyword
co-occurrence network, detects topical communities and runs the force layout
to rest, then writes the keyword table, a JSON layout and a GraphML file.

Usage:
    keyword-graph papers.csv -o output/
    keyword-graph papers.csv -o output/ --max-nodes 100 --min-strength 2
    keyword-graph papers.csv -o output/ --layout cluster --seed 7
    keyword-graph papers.json -o output/ --field keywords --community leiden
    keyword-graph --sample -o output/

Input is CSV with a header row (the keyword column defaults to "Keywords")
or a JSON array of objects.
"""

import argparse
import csv
import io
import json
import sys
from pathlib import Path

from .communities import community_members
from .config import COMMUNITY_METHODS, NetworkConfig
from .export import export_graphml, export_keyword_stats, export_layout_json, palette_colors
from .extract import DEFAULT_FIELD
from .layout import VARIANTS
from .network import count_components
from .pipeline import KeywordNetwork
from .sample import SAMPLE_DOCUMENTS


# ---------------------------------------------------------------------------
# Input
# ---------------------------------------------------------------------------

def detect_encoding(raw: bytes) -> str:
    """Detect encoding from BOM or fall back to utf-8."""
    if raw.startswith(b"\xef\xbb\xbf"):
        return "utf-8-sig"
    if raw.startswith(b"\xff\xfe"):
        return "utf-16-le"
    if raw.startswith(b"\xfe\xff"):
        return "utf-16-be"
    return "utf-8"


def load_documents(path: Path) -> list[dict]:
    """Load records from a CSV (header row) or JSON (array of objects) file.

    Blank lines are skipped, but rows of empty cells are kept: they are
    documents without keywords and still count toward keyword percentages.
    """
    raw = path.read_bytes()
    text = raw.decode(detect_encoding(raw))
    if path.suffix.lower() == ".json":
        records = json.loads(text)
        if not isinstance(records, list):
            raise ValueError(f"{path}: expected a JSON array of records")
        return records
    return list(csv.DictReader(io.StringIO(text, newline="")))


# ---------------------------------------------------------------------------
# Summaries
# ---------------------------------------------------------------------------

def print_keyword_table(network: KeywordNetwork, limit: int) -> None:
    """Top keywords with frequency, share of documents and strongest links."""
    print(f"  {'Keyword':<24} {'Count':>6} {'Share':>7}  Top connections", file=sys.stderr)
    for stat in network.stats[:limit]:
        top = ", ".join(f"{c.keyword} ({c.strength})" for c in stat.connections[:3])
        print(
            f"  {stat.keyword:<24} {stat.count:>6} {stat.percentage:>6.1f}%  {top}",
            file=sys.stderr,
        )


def print_community_summary(network: KeywordNetwork) -> None:
    """One line per community: size and its most frequent members."""
    graph = network.graph
    for cid, members in community_members(graph).items():
        ranked = sorted(members, key=lambda m: graph.node(m).count, reverse=True)
        print(
            f"  Community {cid} ({len(members)} keywords): {', '.join(ranked[:5])}",
            file=sys.stderr,
        )


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def palette_name(value: str) -> str:
    """argparse type: reject unknown palettes before any work is done."""
    try:
        palette_colors(value, 1)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from None
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Build and lay out a keyword co-occurrence network.",
    )
    parser.add_argument(
        "input", type=Path, nargs="?", default=None,
        help="CSV or JSON file of documents (omit with --sample)",
    )
    parser.add_argument(
        "-o", "--output", type=Path, required=True,
        help="Output directory for keyword_stats.json, layout.json, network.graphml",
    )
    parser.add_argument(
        "--sample", action="store_true",
        help="Use the built-in sample corpus instead of an input file",
    )
    parser.add_argument(
        "--field", type=str, default=DEFAULT_FIELD,
        help=f"Name of the keyword column (default: {DEFAULT_FIELD})",
    )
    parser.add_argument(
        "--max-nodes", type=int, default=50,
        help="Most frequent keywords to keep as nodes (default: 50)",
    )
    parser.add_argument(
        "--min-strength", type=int, default=1,
        help="Minimum co-occurrence count for a link (default: 1)",
    )
    parser.add_argument(
        "--layout", choices=VARIANTS, default="standard",
        help="Force layout variant (default: standard)",
    )
    parser.add_argument(
        "--width", type=float, default=800.0,
        help="Canvas width (default: 800)",
    )
    parser.add_argument(
        "--height", type=float, default=600.0,
        help="Canvas height (default: 600)",
    )
    parser.add_argument(
        "--seed", type=int, default=None,
        help="Random initial scatter seed (default: deterministic spiral)",
    )
    parser.add_argument(
        "--ticks", type=int, default=1000,
        help="Maximum simulation ticks before giving up on settling (default: 1000)",
    )
    parser.add_argument(
        "--community", choices=COMMUNITY_METHODS, default="merge",
        help="Community detection method (default: merge)",
    )
    parser.add_argument(
        "--resolution", type=float, default=1.0,
        help="Leiden resolution parameter, higher = more communities (default: 1.0)",
    )
    parser.add_argument(
        "--palette", type=palette_name, default="nature",
        help="Community palette: 'nature' or a matplotlib colormap name (default: nature)",
    )
    parser.add_argument(
        "--top", type=int, default=20,
        help="Keywords to list in the summary (default: 20)",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.sample:
        documents = SAMPLE_DOCUMENTS
        print(f"Using built-in sample corpus ({len(documents)} documents)", file=sys.stderr)
    elif args.input is None:
        parser.error("an input file is required unless --sample is given")
    else:
        documents = load_documents(args.input)
        print(f"Loaded {len(documents)} documents from {args.input}", file=sys.stderr)

    config = NetworkConfig(
        max_nodes=args.max_nodes,
        min_link_strength=args.min_strength,
        layout_variant=args.layout,
        width=args.width,
        height=args.height,
        seed=args.seed,
        community_method=args.community,
        resolution=args.resolution,
        keyword_field=args.field,
    )

    # 1-3. Extract, build, detect
    network = KeywordNetwork(documents, config)
    print_keyword_table(network, args.top)
    print(
        f"Graph has {count_components(network.graph)} connected components",
        file=sys.stderr,
    )
    print_community_summary(network)

    # 4. Layout
    ticks = network.simulation.run(args.ticks)
    print(
        f"Layout ({config.layout_variant}) ran {ticks} ticks, "
        f"state {network.simulation.state.value}, alpha {network.simulation.alpha:.4f}",
        file=sys.stderr,
    )

    # 5. Export
    export_keyword_stats(args.output, network.stats)
    export_layout_json(args.output, network.graph, args.palette)
    export_graphml(args.output, network.graph, args.palette)
    network.simulation.stop()

    print(
        f"\nDone. {len(network.graph.nodes)} keywords in "
        f"{len(set(network.graph.communities()))} communities exported to {args.output}/",
        file=sys.stderr,
    )


if __name__ == "__main__":
    main()
