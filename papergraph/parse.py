"""Parse newline-delimited JSON paper records with precomputed embeddings."""

import json
import logging
from pathlib import Path

from .errors import MalformedRecord, MissingEmbedding
from .models import PaperRecord, PaperRef

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("id", "title", "arxiv-id")


def _coerce_embedding(raw, line_no):
    if not isinstance(raw, list):
        raise MalformedRecord(line_no, "'emb' must be an array of numbers")
    values = []
    for v in raw:
        if isinstance(v, bool) or not isinstance(v, (int, float)):
            raise MalformedRecord(line_no, f"non-numeric embedding value {v!r}")
        values.append(float(v))
    return tuple(values)


def _check_fields(obj, line_no):
    if not isinstance(obj, dict):
        raise MalformedRecord(line_no, "expected a JSON object")
    for key in REQUIRED_FIELDS:
        if key not in obj or obj[key] is None:
            raise MalformedRecord(line_no, f"missing field '{key}'")


def parse_record(line, line_no=1):
    """Parse one input line into a PaperRecord.

    Raises MalformedRecord for invalid JSON or missing fields, and
    MissingEmbedding if the record has no vector.
    """
    try:
        obj = json.loads(line)
    except json.JSONDecodeError as e:
        raise MalformedRecord(line_no, f"invalid JSON: {e.msg}") from e

    _check_fields(obj, line_no)
    raw = obj.get("emb")
    if not raw:
        raise MissingEmbedding(
            f"line {line_no}: record {obj['id']!r} has no embedding"
        )
    return PaperRecord(
        id=str(obj["id"]),
        title=str(obj["title"]),
        arxiv_id=str(obj["arxiv-id"]),
        embedding=_coerce_embedding(raw, line_no),
    )


def parse_embeddings(path):
    """Lazily yield one PaperRecord per non-blank line of ``path``.

    Any bad line aborts the whole parse; records are never silently skipped.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Embeddings file not found: {path}")

    logger.info("Parsing embeddings from %s", path)
    count = 0
    with path.open("r", encoding="utf-8") as f:
        for line_no, line in enumerate(f, start=1):
            if not line.strip():
                continue
            yield parse_record(line, line_no)
            count += 1
    logger.info("Parsed %d records from %s", count, path.name)


def parse_ref(obj):
    """Parse a projected record (embedding optional) from a decoded dict."""
    _check_fields(obj, 0)
    return PaperRef(str(obj["id"]), str(obj["title"]), str(obj["arxiv-id"]))


def dump_ref(ref):
    return {"id": ref.id, "title": ref.title, "arxiv-id": ref.arxiv_id, "emb": []}
