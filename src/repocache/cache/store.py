"""Repository list cache store.

Cache files live at ``<cache_root>/rc-<key>``. Regeneration writes into
``<cache file>.lock``, created with O_EXCL so that only one process
regenerates a key at a time, then renames it over the cache file so
readers never observe a partial write.
"""

import os
import time
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

import structlog

from repocache.cache.keys import cache_file_path, derive_key, lock_file_path
from repocache.cache.reader import parse_config_file
from repocache.cache.serializer import write_records
from repocache.core.exceptions import (
    CacheIOError,
    GenerateError,
    LockContentionError,
    StaleParseError,
)
from repocache.core.models.repository import RepoDefaults, RepositoryRecord
from repocache.core.registry import Registry

if TYPE_CHECKING:
    from repocache.cache.background import BackgroundRunner, RegenerationJob
    from repocache.core.models.scan import ScanOptions

logger = structlog.get_logger(__name__)


class Scanner(Protocol):
    """Repository discovery as consumed by the cache store."""

    @property
    def defaults(self) -> RepoDefaults: ...

    @property
    def options(self) -> "ScanOptions": ...

    def scan_tree(self, root: str | Path, append: Callable[[RepositoryRecord], object]) -> int: ...

    def scan_projects(
        self,
        root: str | Path,
        project_list: str | Path,
        append: Callable[[RepositoryRecord], object],
    ) -> int: ...


class CacheStore:
    """Serves repository lists from cache files, regenerating them as needed."""

    def __init__(
        self,
        cache_root: str | Path,
        ttl_minutes: int,
        scanner: Scanner,
        runner: "BackgroundRunner | None" = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if runner is None:
            from repocache.cache.background import ProcessRunner

            runner = ProcessRunner()
        self._cache_root = Path(cache_root)
        self._ttl_minutes = ttl_minutes
        self._scanner = scanner
        self._runner = runner
        self._clock = clock

    @property
    def cache_root(self) -> Path:
        return self._cache_root

    @property
    def ttl_minutes(self) -> int:
        return self._ttl_minutes

    @property
    def scanner(self) -> Scanner:
        return self._scanner

    def cache_path_for(self, scan_root: str, project_list: str | None = None) -> Path:
        return cache_file_path(self._cache_root, derive_key(scan_root, project_list))

    def is_fresh(self, cache_path: str | Path, now: float | None = None) -> bool:
        """Check whether a cache file exists and is within the TTL."""
        try:
            mtime = os.stat(cache_path).st_mtime
        except OSError:
            return False
        return self._is_fresh_mtime(mtime, now)

    def _is_fresh_mtime(self, mtime: float, now: float | None = None) -> bool:
        if now is None:
            now = self._clock()
        return now - mtime <= self._ttl_minutes * 60

    # --- Read path ---

    def resolve(
        self,
        scan_root: str,
        registry: Registry,
        project_list: str | None = None,
    ) -> Registry:
        """Fill ``registry`` with the repositories under ``scan_root``.

        A missing cache is generated synchronously, falling back to a
        direct scan if that fails. A stale cache is served as is while a
        background job regenerates it.
        """
        cache_path = self.cache_path_for(scan_root, project_list)

        try:
            st = os.stat(cache_path)
        except OSError:
            logger.debug("Cache miss", scan_root=scan_root, cache_path=str(cache_path))
            self._generate_or_scan(scan_root, registry, project_list, cache_path)
            return registry

        start = len(registry)
        try:
            parse_config_file(cache_path, registry)
        except StaleParseError as e:
            registry.truncate(start)
            logger.warning(
                "Unparseable cache file, regenerating",
                cache_path=str(cache_path),
                error=e.message,
            )
            self._generate_or_scan(scan_root, registry, project_list, cache_path)
            return registry

        if self._is_fresh_mtime(st.st_mtime):
            return registry

        logger.info("Stale cache, scheduling regeneration", cache_path=str(cache_path))
        self._detach(scan_root, project_list, cache_path)
        return registry

    def _generate_or_scan(
        self,
        scan_root: str,
        registry: Registry,
        project_list: str | None,
        cache_path: Path,
    ) -> None:
        start = len(registry)
        try:
            self.generate(scan_root, registry, project_list, cache_path)
        except GenerateError as e:
            registry.truncate(start)
            logger.info(
                "Cache generation failed, scanning directly",
                scan_root=scan_root,
                reason=type(e).__name__,
            )
            self.scan_direct(scan_root, registry, project_list)

    def scan_direct(
        self,
        scan_root: str,
        registry: Registry,
        project_list: str | None = None,
    ) -> int:
        """Scan without touching the cache."""
        if project_list:
            return self._scanner.scan_projects(scan_root, project_list, registry.append)
        return self._scanner.scan_tree(scan_root, registry.append)

    # --- Write path ---

    def generate(
        self,
        scan_root: str,
        registry: Registry,
        project_list: str | None = None,
        cache_path: str | Path | None = None,
    ) -> int:
        """Scan ``scan_root`` and atomically replace its cache file.

        Only the records appended to ``registry`` by this scan are
        written. Returns the number of records written.

        Raises:
            LockContentionError: another process is regenerating this key.
            CacheIOError: the lock file could not be created, written or
                renamed. A failed rename leaves the lock file behind.
        """
        if cache_path is None:
            cache_path = self.cache_path_for(scan_root, project_list)
        cache_path = Path(cache_path)
        lock_path = lock_file_path(cache_path)

        try:
            cache_path.parent.mkdir(parents=True, exist_ok=True)
            fd = os.open(lock_path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
        except FileExistsError as e:
            logger.debug("Cache regeneration already in progress", lock_path=str(lock_path))
            raise LockContentionError(
                f"Lock file exists: {lock_path}", details={"lock_path": str(lock_path)}
            ) from e
        except OSError as e:
            logger.error(
                "Error opening lock file",
                lock_path=str(lock_path),
                error=e.strerror,
                errno=e.errno,
            )
            raise CacheIOError(
                f"Cannot create {lock_path}: {e.strerror}",
                details={"lock_path": str(lock_path), "errno": e.errno},
            ) from e

        start = len(registry)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                self.scan_direct(scan_root, registry, project_list)
                count = write_records(f, registry[start:], registry.defaults)
                f.flush()
                os.fsync(f.fileno())
        except OSError as e:
            self._discard_lock(lock_path)
            logger.error(
                "Error writing cache file",
                lock_path=str(lock_path),
                error=e.strerror,
                errno=e.errno,
            )
            raise CacheIOError(
                f"Cannot write {lock_path}: {e.strerror}",
                details={"lock_path": str(lock_path), "errno": e.errno},
            ) from e
        except BaseException:
            self._discard_lock(lock_path)
            raise

        try:
            os.rename(lock_path, cache_path)
        except OSError as e:
            logger.error(
                "Error renaming cache file",
                lock_path=str(lock_path),
                cache_path=str(cache_path),
                error=e.strerror,
                errno=e.errno,
            )
            raise CacheIOError(
                f"Cannot rename {lock_path} to {cache_path}: {e.strerror}",
                details={
                    "lock_path": str(lock_path),
                    "cache_path": str(cache_path),
                    "errno": e.errno,
                },
            ) from e

        logger.info("Cache file written", cache_path=str(cache_path), repos=count)
        return count

    @staticmethod
    def _discard_lock(lock_path: Path) -> None:
        try:
            lock_path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.error("Error removing lock file", lock_path=str(lock_path), error=e.strerror)

    # --- Background regeneration ---

    def make_job(
        self,
        scan_root: str,
        project_list: str | None = None,
        cache_path: str | Path | None = None,
    ) -> "RegenerationJob":
        from repocache.cache.background import RegenerationJob

        if cache_path is None:
            cache_path = self.cache_path_for(scan_root, project_list)
        return RegenerationJob(
            scan_root=scan_root,
            project_list=project_list,
            cache_path=str(cache_path),
            cache_root=str(self._cache_root),
            ttl_minutes=self._ttl_minutes,
            defaults=self._scanner.defaults,
            options=self._scanner.options,
        )

    def _detach(self, scan_root: str, project_list: str | None, cache_path: Path) -> None:
        job = self.make_job(scan_root, project_list, cache_path)
        try:
            self._runner.submit(job, self)
        except OSError as e:
            logger.error("Cannot start background regeneration", cache_path=str(cache_path), error=str(e))

    def run_job(self, job: "RegenerationJob") -> int | None:
        """Run a regeneration job into a fresh registry.

        Failures are logged and never raised; nobody is waiting for
        the result.
        """
        registry = Registry(job.defaults)
        try:
            return self.generate(job.scan_root, registry, job.project_list, job.cache_path)
        except LockContentionError:
            logger.debug("Background regeneration skipped, lock held", cache_path=job.cache_path)
        except CacheIOError as e:
            logger.error("Background regeneration failed", cache_path=job.cache_path, error=e.message)
        except Exception:
            logger.exception("Background regeneration crashed", cache_path=job.cache_path)
        return None
