"""Repository list service."""

from typing import TextIO

import structlog

from repocache.cache.background import BackgroundRunner, ProcessRunner, ThreadRunner
from repocache.cache.serializer import write_records
from repocache.cache.store import CacheStore, Scanner
from repocache.config.settings import Settings
from repocache.core.exceptions import ConfigurationError
from repocache.core.models.repository import SNAPSHOT_FORMATS
from repocache.core.registry import Registry
from repocache.scan.scanner import RepoScanner

logger = structlog.get_logger(__name__)


def create_runner(settings: Settings) -> BackgroundRunner:
    if settings.background_mode == "thread":
        return ThreadRunner()
    return ProcessRunner()


class RepoListService:
    """Entry point for callers that need the repository list.

    Builds the scanner and cache store from settings and hands out a
    new registry per request.
    """

    def __init__(self, settings: Settings, runner: BackgroundRunner | None = None) -> None:
        self._settings = settings
        self._defaults = settings.repo_defaults()
        self._scanner = RepoScanner(defaults=self._defaults, options=settings.scan_options())
        self._store = CacheStore(
            cache_root=settings.cache_root,
            ttl_minutes=settings.cache_scanrc_ttl,
            scanner=self._scanner,
            runner=runner or create_runner(settings),
        )

    @property
    def store(self) -> CacheStore:
        return self._store

    def new_registry(self) -> Registry:
        return Registry(self._defaults)

    def _scan_root(self, scan_root: str | None) -> str:
        root = scan_root or self._settings.scan_path
        if not root:
            raise ConfigurationError("No scan path configured")
        return root

    def resolve(self, scan_root: str | None = None, project_list: str | None = None) -> Registry:
        """Return the repository list for a scan root, served from cache."""
        root = self._scan_root(scan_root)
        if project_list is None:
            project_list = self._settings.project_list
        registry = self.new_registry()
        return self._store.resolve(root, registry, project_list)

    def regenerate(self, scan_root: str | None = None, project_list: str | None = None) -> int:
        """Force a synchronous regeneration of the cache file."""
        root = self._scan_root(scan_root)
        if project_list is None:
            project_list = self._settings.project_list
        return self._store.generate(root, self.new_registry(), project_list)

    def cache_path(self, scan_root: str | None = None, project_list: str | None = None) -> str:
        root = self._scan_root(scan_root)
        if project_list is None:
            project_list = self._settings.project_list
        return str(self._store.cache_path_for(root, project_list))


def scan_and_dump(
    path: str,
    settings: Settings,
    stream: TextIO,
    scanner: Scanner | None = None,
) -> int:
    """Scan ``path`` without the cache and write the sorted list to ``stream``.

    Every snapshot format is enabled while scanning so that snapshot
    settings in in-repo configs are kept as written. A given ``scanner``
    is used as is, defaults included.
    """
    if scanner is None:
        defaults = settings.repo_defaults().model_copy(
            update={"snapshots": frozenset(SNAPSHOT_FORMATS)}
        )
        scanner = RepoScanner(defaults=defaults, options=settings.scan_options())
    defaults = scanner.defaults
    registry = Registry(defaults)
    scanner.scan_tree(path, registry.append)
    return write_records(stream, registry.sorted_by_url(), defaults)
