"""FastAPI web application for the paper similarity service.

Exposes index build, knn search, paged results, job status and graph
data endpoints over a shared PaperGraph instance.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException, Query
from fastapi.responses import PlainTextResponse

from papergraph.config import DEFAULT_K, MAX_GRAPH_NODES, PAGE_SIZE
from papergraph.errors import OutOfRange, ResultsUnavailable
from papergraph.jobs import NOT_FOUND
from papergraph.pipeline import PaperGraph, error_kind
from papergraph.results import dump_map

logger = logging.getLogger(__name__)


def create_app(pipeline: Optional[PaperGraph] = None) -> FastAPI:
    """Create and configure the FastAPI application."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        logger.info("Draining background jobs")
        app.state.pipeline.close()

    app = FastAPI(title="Paper Similarity Graph", lifespan=lifespan)
    app.state.pipeline = pipeline or PaperGraph()

    @app.get("/api/ping", response_class=PlainTextResponse)
    async def ping():
        return "pong"

    @app.get("/api/index", response_class=PlainTextResponse)
    async def index(filePath: Optional[str] = None, recreateIndex: bool = True):
        handle = app.state.pipeline.submit_index(filePath, recreate=recreateIndex)
        return str(handle)

    @app.get("/api/knn", response_class=PlainTextResponse)
    async def knn(filePath: Optional[str] = None, k: int = Query(DEFAULT_K, ge=1)):
        handle = app.state.pipeline.submit_search(filePath, k=k)
        return str(handle)

    @app.get("/api/jobs/{job_id}")
    async def job_status(job_id: int):
        status = app.state.pipeline.status(job_id)
        if status.state == NOT_FOUND:
            raise HTTPException(status_code=404, detail="No such worker")
        return {
            "handle": job_id,
            "status": status.state,
            "error": f"{error_kind(status.error)}: {status.error}" if status.error else None,
        }

    @app.get("/api/results/{job_id}/{page}")
    async def results(job_id: int, page: int, pageSize: int = Query(PAGE_SIZE, ge=1)):
        try:
            envelope = app.state.pipeline.results_page(job_id, page, page_size=pageSize)
        except OutOfRange as e:
            raise HTTPException(status_code=416, detail=str(e))
        envelope["papers"] = dump_map(envelope["papers"])
        return envelope

    @app.get("/api/graph/data")
    async def graph_data(maxNodes: int = Query(MAX_GRAPH_NODES, ge=1)):
        try:
            graph = app.state.pipeline.graph_data(max_nodes=maxNodes)
        except ResultsUnavailable as e:
            raise HTTPException(status_code=404, detail=str(e))
        logger.info("returning size: %d", len(graph["nodes"]))
        return graph

    return app


# Create the app instance for uvicorn
app = create_app()


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=logging.INFO)
    uvicorn.run("web.app:app", host="127.0.0.1", port=8080)
