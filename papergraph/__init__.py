"""papergraph — Similarity index, background jobs and graph export for paper embeddings."""

from .errors import (
    DimensionMismatch,
    IndexUnavailable,
    JobNotFound,
    JobNotReady,
    MalformedRecord,
    MissingEmbedding,
    OutOfRange,
    PaperGraphError,
    ResultsUnavailable,
)
from .graph import build_graph, graph_from_file
from .index import VectorIndex
from .jobs import JobRegistry, JobStatus
from .models import PaperRecord, PaperRef, PersistedResult
from .parse import parse_embeddings
from .pipeline import PaperGraph
from .results import load, paginate, persist

__all__ = [
    "DimensionMismatch",
    "IndexUnavailable",
    "JobNotFound",
    "JobNotReady",
    "MalformedRecord",
    "MissingEmbedding",
    "OutOfRange",
    "PaperGraphError",
    "ResultsUnavailable",
    "build_graph",
    "graph_from_file",
    "VectorIndex",
    "JobRegistry",
    "JobStatus",
    "PaperRecord",
    "PaperRef",
    "PersistedResult",
    "parse_embeddings",
    "PaperGraph",
    "load",
    "paginate",
    "persist",
]
