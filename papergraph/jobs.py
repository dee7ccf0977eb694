"""Background job registry: numeric handles over a fixed-size thread pool."""

import itertools
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import wait as wait_futures
from dataclasses import dataclass
from typing import Any, Optional

from .config import JOB_WORKERS
from .errors import JobNotFound, JobNotReady

logger = logging.getLogger(__name__)

NOT_FOUND = "not_found"
RUNNING = "running"
COMPLETED = "completed"
FAILED = "failed"


@dataclass(frozen=True)
class JobStatus:
    handle: int
    state: str
    result: Any = None
    error: Optional[BaseException] = None

    @property
    def done(self):
        return self.state in (COMPLETED, FAILED)


class JobRegistry:
    """Runs units of work on a thread pool and tracks them by handle.

    Submission never blocks: work beyond ``max_workers`` waits in the
    executor's unbounded queue, so there is no backpressure on callers.
    Finished jobs keep their result (or error) for the life of the
    registry; nothing is evicted.
    """

    def __init__(self, max_workers=JOB_WORKERS):
        self.max_workers = max_workers
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="papergraph-job"
        )
        self._jobs = {}
        self._names = {}
        self._lock = threading.Lock()
        self._counter = itertools.count(1)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.shutdown(wait=True)

    def _run(self, handle, name, fn, args, kwargs):
        logger.info("Job %d (%s) started", handle, name)
        try:
            result = fn(*args, **kwargs)
        except Exception:
            logger.exception("Job %d (%s) failed", handle, name)
            raise
        logger.info("Job %d (%s) completed", handle, name)
        return result

    def submit(self, fn, *args, name=None, **kwargs):
        """Schedule ``fn(*args, **kwargs)`` and return its handle immediately."""
        name = name or getattr(fn, "__name__", "job")
        with self._lock:
            handle = next(self._counter)
            future = self._executor.submit(self._run, handle, name, fn, args, kwargs)
            self._jobs[handle] = future
            self._names[handle] = name
        return handle

    def _future(self, handle):
        with self._lock:
            return self._jobs.get(handle)

    def poll(self, handle):
        """Non-blocking status of a job."""
        future = self._future(handle)
        if future is None:
            return JobStatus(handle, NOT_FOUND)
        if not future.done():
            return JobStatus(handle, RUNNING)
        error = future.exception()
        if error is not None:
            return JobStatus(handle, FAILED, error=error)
        return JobStatus(handle, COMPLETED, result=future.result())

    def result(self, handle):
        """Completed result of a job.

        Raises JobNotFound for unknown handles, JobNotReady while the job
        runs, and the job's own exception if it failed.
        """
        status = self.poll(handle)
        if status.state == NOT_FOUND:
            raise JobNotFound(handle)
        if status.state == RUNNING:
            raise JobNotReady(handle)
        if status.state == FAILED:
            raise status.error
        return status.result

    def wait(self, handle, timeout=None):
        """Block until the job finishes (or ``timeout`` elapses) and poll it."""
        future = self._future(handle)
        if future is None:
            raise JobNotFound(handle)
        wait_futures([future], timeout=timeout)
        return self.poll(handle)

    def name(self, handle):
        with self._lock:
            return self._names.get(handle)

    def handles(self):
        with self._lock:
            return list(self._jobs)

    def shutdown(self, wait=True):
        """Stop accepting work; with ``wait`` drain queued and running jobs."""
        with self._lock:
            tracked = len(self._jobs)
        logger.info("Shutting down job registry (%d jobs tracked)", tracked)
        self._executor.shutdown(wait=wait)
