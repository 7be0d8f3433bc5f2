"""Detached cache regeneration.

A stale cache is served immediately and refreshed by a job that runs
independently of the request. Jobs carry their own copy of every input
and report nothing back; the lock file is their only coordination.
"""

import multiprocessing
import threading
from typing import TYPE_CHECKING, Protocol

import structlog
from pydantic import BaseModel

from repocache.core.models.repository import RepoDefaults
from repocache.core.models.scan import ScanOptions

if TYPE_CHECKING:
    from repocache.cache.store import CacheStore

logger = structlog.get_logger(__name__)


class RegenerationJob(BaseModel):
    """Everything needed to regenerate one cache file from scratch."""

    scan_root: str
    project_list: str | None = None
    cache_path: str
    cache_root: str
    ttl_minutes: int
    defaults: RepoDefaults
    options: ScanOptions

    class Config:
        frozen = True


class BackgroundRunner(Protocol):
    def submit(self, job: RegenerationJob, store: "CacheStore") -> None: ...


def run_job(job: RegenerationJob) -> None:
    """Process entry point: rebuild the store from the job and regenerate."""
    from repocache.cache.store import CacheStore
    from repocache.scan.scanner import RepoScanner

    scanner = RepoScanner(defaults=job.defaults, options=job.options)
    store = CacheStore(job.cache_root, job.ttl_minutes, scanner, runner=InlineRunner())
    store.run_job(job)


class ProcessRunner:
    """Runs each job in a separate OS process that the caller never joins."""

    def __init__(self, start_method: str | None = None) -> None:
        self._context = multiprocessing.get_context(start_method)

    def submit(self, job: RegenerationJob, store: "CacheStore") -> None:
        process = self._context.Process(
            target=run_job,
            args=(job,),
            name=f"repocache-regenerate-{job.cache_path}",
        )
        process.start()
        logger.debug("Background regeneration started", pid=process.pid, cache_path=job.cache_path)


class ThreadRunner:
    """Runs each job in a daemon thread of the current process.

    The job uses the submitting store's scanner and a fresh registry.
    """

    def __init__(self) -> None:
        self._threads: list[threading.Thread] = []
        self._lock = threading.Lock()

    def submit(self, job: RegenerationJob, store: "CacheStore") -> None:
        thread = threading.Thread(
            target=store.run_job,
            args=(job,),
            name=f"repocache-regenerate-{job.cache_path}",
            daemon=True,
        )
        with self._lock:
            self._threads = [t for t in self._threads if t.is_alive()]
            self._threads.append(thread)
        thread.start()

    def join(self, timeout: float | None = None) -> None:
        """Wait for submitted jobs; mostly useful in tests."""
        with self._lock:
            threads = list(self._threads)
        for thread in threads:
            thread.join(timeout)


class InlineRunner:
    """Runs jobs synchronously in the caller."""

    def submit(self, job: RegenerationJob, store: "CacheStore") -> None:
        store.run_job(job)
