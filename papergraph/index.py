"""ChromaDB-backed cosine similarity index over paper embeddings."""

import logging
import threading
from contextlib import contextmanager
from pathlib import Path

import chromadb

from .config import (
    COLLECTION_NAME,
    DEFAULT_K,
    INDEX_BATCH_SIZE,
    INDEX_PATH,
    STAGING_SUFFIX,
)
from .errors import DimensionMismatch, IndexUnavailable, MissingEmbedding
from .models import PaperRef

logger = logging.getLogger(__name__)


class ReadWriteLock:
    """Many concurrent readers or a single writer."""

    def __init__(self):
        self._cond = threading.Condition()
        self._readers = 0
        self._writer = False

    @property
    def writing(self):
        return self._writer

    @contextmanager
    def read(self):
        with self._cond:
            while self._writer:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write(self):
        with self._cond:
            while self._writer or self._readers:
                self._cond.wait()
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


def _collection_names(client):
    # list_collections() returns names on newer chromadb, Collection objects on older
    return {c if isinstance(c, str) else c.name for c in client.list_collections()}


def _stored_dim(collection):
    """Embedding dimension of an existing collection, or None if empty."""
    peek = collection.get(limit=1, include=["embeddings"])
    embeddings = peek.get("embeddings")
    if embeddings is None or len(embeddings) == 0:
        return None
    return len(embeddings[0])


class VectorIndex:
    """A persisted k-NN index over paper embeddings.

    ``rebuild`` replaces (or appends to) the stored documents and
    ``query`` returns the nearest papers by cosine similarity. Rebuilds
    take the index's write lock; queries share its read lock.
    """

    def __init__(self, index_dir=INDEX_PATH, collection_name=COLLECTION_NAME,
                 batch_size=INDEX_BATCH_SIZE):
        self.index_dir = Path(index_dir)
        self.collection_name = collection_name
        self.staging_name = collection_name + STAGING_SUFFIX
        self.batch_size = batch_size
        self._lock = ReadWriteLock()
        self._client = None

    def _get_client(self):
        if self._client is None:
            self.index_dir.mkdir(parents=True, exist_ok=True)
            self._client = chromadb.PersistentClient(path=str(self.index_dir))
        return self._client

    def _open_live(self):
        if not self.index_dir.is_dir():
            raise IndexUnavailable(f"No index at {self.index_dir}")
        try:
            client = self._get_client()
            return client.get_collection(name=self.collection_name)
        except Exception as e:
            raise IndexUnavailable(
                f"Could not open index {self.collection_name!r} at {self.index_dir}: {e}"
            ) from e

    # ── Build ─────────────────────────────────────────────────────────

    def rebuild(self, records, recreate=True):
        """Write ``records`` to the index and return the document count.

        With ``recreate`` the new documents are staged in a separate
        collection and swapped in once fully written, so a crash leaves
        either the old index or no index, never a partial one. Without it,
        documents are appended to the live collection as-is (no dedup).
        """
        records = list(records)
        dim = None
        for r in records:
            if not r.embedding:
                raise MissingEmbedding(f"record {r.id!r} has no embedding")
            if dim is None:
                dim = len(r.embedding)
            elif len(r.embedding) != dim:
                raise DimensionMismatch(
                    f"record {r.id!r} has dimension {len(r.embedding)}, expected {dim}"
                )

        with self._lock.write():
            client = self._get_client()
            names = _collection_names(client)

            if recreate:
                if self.staging_name in names:
                    logger.warning("Dropping stale staging collection %s",
                                   self.staging_name)
                    client.delete_collection(self.staging_name)
                target = client.create_collection(
                    name=self.staging_name,
                    metadata={"hnsw:space": "cosine"},
                )
                start = 0
            else:
                target = client.get_or_create_collection(
                    name=self.collection_name,
                    metadata={"hnsw:space": "cosine"},
                )
                existing = _stored_dim(target)
                if dim is not None and existing is not None and existing != dim:
                    raise DimensionMismatch(
                        f"index holds dimension {existing}, records have {dim}"
                    )
                start = target.count()

            self._add(target, records, start)

            if recreate:
                if self.collection_name in names:
                    logger.info("Deleting index collection %s at %s",
                                self.collection_name, self.index_dir)
                    client.delete_collection(self.collection_name)
                target.modify(name=self.collection_name)

            count = target.count()
        logger.info("Wrote %d documents to index (%d total)", len(records), count)
        return count

    def _add(self, collection, records, start):
        for i in range(0, len(records), self.batch_size):
            batch = records[i:i + self.batch_size]
            collection.add(
                ids=[str(start + i + j) for j in range(len(batch))],
                embeddings=[list(r.embedding) for r in batch],
                metadatas=[
                    {
                        "id": r.id,
                        "title": r.title,
                        "arxiv_id": r.arxiv_id,
                        "seq": start + i + j,
                    }
                    for j, r in enumerate(batch)
                ],
            )

    # ── Query ─────────────────────────────────────────────────────────

    def query(self, embedding, k=DEFAULT_K):
        """Return up to ``k`` papers nearest to ``embedding``, best first."""
        return self.query_many([embedding], k)[0]

    def query_many(self, embeddings, k=DEFAULT_K):
        """Run one k-NN query per embedding, returning a list of neighbor lists."""
        if k < 1:
            raise ValueError(f"k must be positive, got {k}")
        embeddings = [list(e) if e is not None else [] for e in embeddings]
        for e in embeddings:
            if not e:
                raise MissingEmbedding("query embedding is empty")

        with self._lock.read():
            collection = self._open_live()
            if not embeddings:
                return []
            try:
                total = collection.count()
                if total == 0:
                    return [[] for _ in embeddings]
                dim = _stored_dim(collection)
                for e in embeddings:
                    if len(e) != dim:
                        raise DimensionMismatch(
                            f"query has dimension {len(e)}, index holds {dim}"
                        )
                ranked = [self._nearest(collection, e, k, total) for e in embeddings]
            except DimensionMismatch:
                raise
            except Exception as e:
                raise IndexUnavailable(f"Index query failed: {e}") from e

        return [
            [PaperRef(m["id"], m["title"], m["arxiv_id"]) for _, m in hits[:k]]
            for hits in ranked
        ]

    def _nearest(self, collection, embedding, k, total):
        """(distance, metadata) pairs sorted by distance, then insertion order.

        Widens the fetch until every document tied with the k-th hit is
        included, so ties cut by ``k`` resolve to the earliest inserted.
        """
        n = min(k + 1, total)
        while True:
            res = collection.query(
                query_embeddings=[embedding],
                n_results=n,
                include=["metadatas", "distances"],
            )
            hits = sorted(zip(res["distances"][0], res["metadatas"][0]),
                          key=lambda p: (p[0], p[1]["seq"]))
            if n >= total or not hits or hits[-1][0] > hits[min(k, len(hits)) - 1][0]:
                return hits
            n = min(n * 2, total)

    def count(self):
        with self._lock.read():
            return self._open_live().count()

    def exists(self):
        try:
            self.count()
        except IndexUnavailable:
            return False
        return True
