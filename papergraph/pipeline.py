"""The caller-facing operations: index, search, page through results, graph."""

import logging
from pathlib import Path

from .config import (
    DEFAULT_K,
    EMBEDDING_PATH,
    INDEX_BATCH_SIZE,
    INDEX_PATH,
    JOB_WORKERS,
    MAX_GRAPH_NODES,
    PAGE_SIZE,
    RESULTS_PATH,
)
from .graph import graph_from_file
from .index import VectorIndex
from .jobs import FAILED, NOT_FOUND, RUNNING, JobRegistry
from .parse import parse_embeddings
from .results import page_count, paginate, persist

logger = logging.getLogger(__name__)


def error_kind(error):
    return getattr(error, "kind", type(error).__name__)


class PaperGraph:
    """Owns the vector index, the job registry and the results file.

    Index builds and searches run as background jobs and are addressed
    by the integer handle returned on submission.
    """

    def __init__(self, index_dir=INDEX_PATH, results_path=RESULTS_PATH,
                 embedding_path=EMBEDDING_PATH, max_workers=JOB_WORKERS,
                 index=None, jobs=None):
        self.index = index or VectorIndex(index_dir)
        self.jobs = jobs or JobRegistry(max_workers=max_workers)
        self.results_path = Path(results_path)
        self.embedding_path = Path(embedding_path)

    def close(self):
        self.jobs.shutdown(wait=True)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    # ── Jobs ──────────────────────────────────────────────────────────

    def build_index(self, source_path, recreate=True):
        records = parse_embeddings(source_path)
        return self.index.rebuild(records, recreate=recreate)

    def search(self, source_path, k=DEFAULT_K):
        """Query the index with every paper in ``source_path`` and persist the map.

        Returns the similarity map, keyed by paper in file order.
        """
        records = list(parse_embeddings(source_path))
        smap = {}
        # at least one pass so a missing index fails even for an empty file
        for i in range(0, max(len(records), 1), INDEX_BATCH_SIZE):
            batch = records[i:i + INDEX_BATCH_SIZE]
            neighbors = self.index.query_many([r.embedding for r in batch], k)
            for record, similars in zip(batch, neighbors):
                smap[record.ref()] = similars
        persist(smap, self.results_path)
        return smap

    def submit_index(self, source_path=None, recreate=True):
        source_path = source_path or self.embedding_path
        logger.info("Submitting index build from %s (recreate=%s)",
                    source_path, recreate)
        return self.jobs.submit(self.build_index, source_path,
                                recreate=recreate, name="index")

    def submit_search(self, source_path=None, k=DEFAULT_K):
        if k < 1:
            raise ValueError(f"k must be positive, got {k}")
        source_path = source_path or self.embedding_path
        logger.info("Submitting knn search from %s (k=%d)", source_path, k)
        return self.jobs.submit(self.search, source_path, k=k, name="knn")

    def status(self, handle):
        return self.jobs.poll(handle)

    # ── Results ───────────────────────────────────────────────────────

    def results_page(self, handle, page, page_size=PAGE_SIZE):
        """Return one page of a finished search job's results.

        The envelope always has totalPages, papers, nextPage, status and
        error. Unknown, unfinished and failed jobs are reported through
        ``status``/``error`` rather than raised; a page past the end raises
        OutOfRange.
        """
        status = self.jobs.poll(handle)
        envelope = {"totalPages": 0, "papers": {}, "nextPage": 0,
                    "status": status.state, "error": None}

        if status.state == NOT_FOUND:
            envelope["error"] = "No such worker"
        elif status.state == RUNNING:
            envelope["error"] = "not done"
        elif status.state == FAILED:
            envelope["error"] = f"failed: {error_kind(status.error)}: {status.error}"
        elif not isinstance(status.result, dict):
            envelope["error"] = "job has no paged results"
        else:
            results = status.result
            envelope["papers"] = paginate(results, page * page_size, page_size)
            envelope["totalPages"] = page_count(len(results), page_size)
            envelope["nextPage"] = page + 1
        return envelope

    def graph_data(self, max_nodes=MAX_GRAPH_NODES):
        logger.info("Reading results from %s", self.results_path)
        return graph_from_file(self.results_path, max_nodes=max_nodes)
