"""Build node/link graph data from persisted similarity results."""

import logging
from itertools import islice

from .config import MAX_GRAPH_NODES
from .results import load

logger = logging.getLogger(__name__)


def build_graph(results, max_nodes=MAX_GRAPH_NODES):
    """Turn similarity results into D3-style graph data.

    Takes the first ``max_nodes`` results. Each becomes a node keyed by
    its arXiv id (first occurrence wins) and links to each of its
    neighbors other than itself. Links whose target is not a node are
    dropped.

    Returns dict with "nodes" and "links".
    """
    if max_nodes < 1:
        raise ValueError(f"max_nodes must be positive, got {max_nodes}")

    nodes = []
    node_ids = set()
    links = []

    for r in islice(results, max_nodes):
        if r.arxiv_id not in node_ids:
            nodes.append({"id": r.arxiv_id, "label": r.title})
            node_ids.add(r.arxiv_id)
        for s in r.similars:
            if s.arxiv_id != r.arxiv_id:
                links.append({"source": r.arxiv_id, "target": s.arxiv_id})

    links = [link for link in links if link["target"] in node_ids]

    logger.info("Graph has %d nodes, %d links", len(nodes), len(links))
    return {"nodes": nodes, "links": links}


def graph_from_file(source, max_nodes=MAX_GRAPH_NODES):
    """Load persisted results from ``source`` and build the graph."""
    return build_graph(load(source), max_nodes=max_nodes)
