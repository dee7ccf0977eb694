"""Configuration constants for the paper similarity pipeline."""

INDEX_PATH = "data/index"
EMBEDDING_PATH = "data/paper.txt.json"
RESULTS_PATH = "data/results.json"

COLLECTION_NAME = "papers"
STAGING_SUFFIX = "__staging"
INDEX_BATCH_SIZE = 500  # documents per collection.add() call

DEFAULT_K = 10
JOB_WORKERS = 4
PAGE_SIZE = 50
MAX_GRAPH_NODES = 5000
