"""Core domain models and interfaces for repocache."""

from repocache.core.exceptions import (
    CacheIOError,
    ConfigurationError,
    GenerateError,
    LockContentionError,
    RegistryError,
    RepoCacheError,
    StaleParseError,
)
from repocache.core.models import (
    BranchSort,
    CommitSort,
    ReadmeCandidate,
    RepoDefaults,
    RepositoryRecord,
    ScanOptions,
    StatsPeriod,
)
from repocache.core.registry import Registry

__all__ = [
    # Models
    "RepositoryRecord",
    "RepoDefaults",
    "ReadmeCandidate",
    "BranchSort",
    "CommitSort",
    "StatsPeriod",
    "ScanOptions",
    "Registry",
    # Exceptions
    "RepoCacheError",
    "ConfigurationError",
    "RegistryError",
    "GenerateError",
    "LockContentionError",
    "CacheIOError",
    "StaleParseError",
]
