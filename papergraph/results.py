"""Persist similarity maps to JSON and serve them back a page at a time."""

import json
import logging
import math
import os
import tempfile
from pathlib import Path

from .errors import OutOfRange, PaperGraphError, ResultsUnavailable
from .models import PersistedResult
from .parse import dump_ref, parse_ref

logger = logging.getLogger(__name__)


def to_persisted(smap):
    """Convert a similarity map (PaperRef -> neighbor list) to PersistedResults."""
    return [
        PersistedResult(
            arxiv_id=paper.arxiv_id,
            title=paper.title,
            similars=tuple(neighbors),
            id=paper.id,
        )
        for paper, neighbors in smap.items()
    ]


def to_similarity_map(results):
    return {r.key(): list(r.similars) for r in results}


def _dump_result(r):
    return {
        "arxivId": r.arxiv_id,
        "title": r.title,
        "similars": [dump_ref(s) for s in r.similars],
        "id": r.id,
    }


def _load_result(obj):
    return PersistedResult(
        arxiv_id=str(obj["arxivId"]),
        title=str(obj["title"]),
        similars=tuple(parse_ref(s) for s in obj.get("similars") or []),
        id=str(obj.get("id") or ""),
    )


def persist(smap, destination):
    """Write ``smap`` to ``destination`` as a JSON array, replacing any prior file.

    The file is written beside the destination and renamed over it, so
    readers see either the old results or the new ones.
    """
    destination = Path(destination)
    destination.parent.mkdir(parents=True, exist_ok=True)
    data = [_dump_result(r) for r in to_persisted(smap)]

    fd, tmp_path = tempfile.mkstemp(
        dir=destination.parent, prefix=destination.name, suffix=".tmp"
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, destination)
    except BaseException:
        Path(tmp_path).unlink(missing_ok=True)
        raise
    logger.info("Saved results to %s, size: %d", destination, len(data))


def load(source):
    """Read persisted results from ``source``.

    Raises ResultsUnavailable if the file is missing or malformed.
    """
    source = Path(source)
    if not source.exists():
        raise ResultsUnavailable(f"No results at {source}")
    try:
        raw = json.loads(source.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise ResultsUnavailable(f"Could not read results from {source}: {e}") from e
    if not isinstance(raw, list):
        raise ResultsUnavailable(f"Results file {source} is not a JSON array")
    try:
        return [_load_result(obj) for obj in raw]
    except (KeyError, TypeError, AttributeError, PaperGraphError) as e:
        raise ResultsUnavailable(f"Malformed entry in {source}: {e}") from e


def paginate(smap, start_index, page_size):
    """Return the sub-map of entries ``[start_index, start_index + page_size)``.

    A start index at or past the end raises OutOfRange; a short final
    page is returned as-is.
    """
    if page_size < 1:
        raise ValueError(f"page_size must be positive, got {page_size}")
    if start_index < 0 or start_index >= len(smap):
        raise OutOfRange(start_index, len(smap))
    keys = list(smap)[start_index:start_index + page_size]
    return {k: smap[k] for k in keys}


def page_count(total, page_size):
    """Number of pages, counting a partial last page."""
    return math.ceil(total / page_size) if total else 0


def dump_map(smap):
    """JSON-ready form of a similarity map as a list of paper/similars pairs."""
    return [
        {"paper": dump_ref(paper), "similars": [dump_ref(s) for s in neighbors]}
        for paper, neighbors in smap.items()
    ]
