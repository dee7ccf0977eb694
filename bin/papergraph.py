#!/usr/bin/env python3
"""
papergraph.py — Build the similarity index, run knn search, export the graph.

Usage:
    python3 papergraph.py index  [--file data/paper.txt.json] [--append] [--index-dir data/index]
    python3 papergraph.py search [--file data/paper.txt.json] [--k 10] [--index-dir data/index] [--results data/results.json]
    python3 papergraph.py graph  [--results data/results.json] [--max-nodes 5000] [--out graph.json]
    python3 papergraph.py page   [--results data/results.json] [--page 0] [--page-size 50]
"""

import json
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from papergraph.config import (  # noqa: E402
    DEFAULT_K,
    EMBEDDING_PATH,
    INDEX_PATH,
    MAX_GRAPH_NODES,
    PAGE_SIZE,
    RESULTS_PATH,
)
from papergraph.errors import PaperGraphError  # noqa: E402
from papergraph.graph import build_graph  # noqa: E402
from papergraph.jobs import COMPLETED  # noqa: E402
from papergraph.pipeline import PaperGraph, error_kind  # noqa: E402
from papergraph.results import dump_map, load, page_count, paginate, to_similarity_map  # noqa: E402

FLAGS_WITH_VALUES = {"--file", "--k", "--index-dir", "--results", "--max-nodes",
                     "--out", "--page", "--page-size"}


def parse_args(args):
    """Split argv into (command, options). Unknown flags are ignored."""
    if not args:
        return None, {}
    command = args[0]
    opts = {}
    i = 1
    while i < len(args):
        if args[i] in FLAGS_WITH_VALUES and i + 1 < len(args):
            opts[args[i]] = args[i + 1]
            i += 2
        elif args[i] == "--append":
            opts["--append"] = True
            i += 1
        else:
            i += 1
    return command, opts


def run_job(pg, handle):
    status = pg.jobs.wait(handle)
    if status.state != COMPLETED:
        print(f"Error: job {handle} failed with {error_kind(status.error)}: {status.error}")
        sys.exit(1)
    return status.result


def cmd_index(opts):
    with PaperGraph(index_dir=opts.get("--index-dir", INDEX_PATH)) as pg:
        handle = pg.submit_index(opts.get("--file", EMBEDDING_PATH),
                                 recreate=not opts.get("--append", False))
        print(f"Index job {handle} submitted...")
        count = run_job(pg, handle)
    print(f"Index holds {count} documents")


def cmd_search(opts):
    k = int(opts.get("--k", DEFAULT_K))
    with PaperGraph(index_dir=opts.get("--index-dir", INDEX_PATH),
                    results_path=opts.get("--results", RESULTS_PATH)) as pg:
        handle = pg.submit_search(opts.get("--file", EMBEDDING_PATH), k=k)
        print(f"Search job {handle} submitted...")
        smap = run_job(pg, handle)
        print(f"Saved {len(smap)} results to {pg.results_path}")


def cmd_graph(opts):
    results = load(opts.get("--results", RESULTS_PATH))
    graph = build_graph(results, max_nodes=int(opts.get("--max-nodes", MAX_GRAPH_NODES)))
    data = json.dumps(graph, indent=2)
    if "--out" in opts:
        Path(opts["--out"]).write_text(data)
        print(f"Graph: {len(graph['nodes'])} nodes, {len(graph['links'])} links -> {opts['--out']}")
    else:
        print(data)


def cmd_page(opts):
    smap = to_similarity_map(load(opts.get("--results", RESULTS_PATH)))
    page = int(opts.get("--page", 0))
    page_size = int(opts.get("--page-size", PAGE_SIZE))
    papers = paginate(smap, page * page_size, page_size)
    print(json.dumps({
        "totalPages": page_count(len(smap), page_size),
        "papers": dump_map(papers),
        "nextPage": page + 1,
    }, indent=2))


COMMANDS = {
    "index": cmd_index,
    "search": cmd_search,
    "graph": cmd_graph,
    "page": cmd_page,
}


def main():
    logging.basicConfig(level=logging.INFO,
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    command, opts = parse_args(sys.argv[1:])
    if command not in COMMANDS:
        print(__doc__)
        sys.exit(1)
    try:
        COMMANDS[command](opts)
    except (PaperGraphError, FileNotFoundError) as e:
        print(f"Error: {error_kind(e)}: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
