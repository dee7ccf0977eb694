"""Shared test fixtures for the paper similarity test suite."""

import json

import pytest


def write_jsonl(path, rows):
    with open(path, "w", encoding="utf-8") as f:
        for row in rows:
            f.write(json.dumps(row) + "\n")
    return path


@pytest.fixture
def sample_rows():
    """Three papers: a1 and a3 point the same way, a2 is orthogonal."""
    return [
        {"id": "1", "title": "A", "arxiv-id": "a1", "emb": [1, 0]},
        {"id": "2", "title": "B", "arxiv-id": "a2", "emb": [0, 1]},
        {"id": "3", "title": "C", "arxiv-id": "a3", "emb": [0.9, 0.1]},
    ]


@pytest.fixture
def embeddings_file(tmp_path, sample_rows):
    return write_jsonl(tmp_path / "papers.json", sample_rows)


@pytest.fixture
def sample_records(sample_rows):
    from papergraph.models import PaperRecord

    return [
        PaperRecord(r["id"], r["title"], r["arxiv-id"], tuple(float(v) for v in r["emb"]))
        for r in sample_rows
    ]


@pytest.fixture
def index_dir(tmp_path):
    return tmp_path / "index"


@pytest.fixture
def vector_index(index_dir):
    from papergraph.index import VectorIndex

    return VectorIndex(index_dir)


@pytest.fixture
def built_index(vector_index, sample_records):
    vector_index.rebuild(sample_records, recreate=True)
    return vector_index


@pytest.fixture
def similarity_map():
    """Three entries; each lists itself, the other two, and an outside paper."""
    from papergraph.models import PaperRef

    a = PaperRef("1", "A", "a1")
    b = PaperRef("2", "B", "a2")
    c = PaperRef("3", "C", "a3")
    outside = PaperRef("9", "Z", "z9")
    return {
        a: [a, c, b, outside],
        b: [b, a, outside],
        c: [c, a, b],
    }


@pytest.fixture
def registry():
    from papergraph.jobs import JobRegistry

    reg = JobRegistry(max_workers=2)
    yield reg
    reg.shutdown(wait=True)


@pytest.fixture
def paper_graph(tmp_path, index_dir):
    from papergraph.pipeline import PaperGraph

    pg = PaperGraph(
        index_dir=index_dir,
        results_path=tmp_path / "results.json",
        embedding_path=tmp_path / "papers.json",
        max_workers=2,
    )
    yield pg
    pg.close()
