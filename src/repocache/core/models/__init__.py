"""Domain models for repocache."""

from repocache.core.models.repository import (
    FILTER_KINDS,
    SNAPSHOT_FORMATS,
    BranchSort,
    CommitSort,
    ReadmeCandidate,
    RepoDefaults,
    RepositoryRecord,
    StatsPeriod,
)
from repocache.core.models.scan import ScanOptions

__all__ = [
    "RepositoryRecord",
    "RepoDefaults",
    "ReadmeCandidate",
    "BranchSort",
    "CommitSort",
    "StatsPeriod",
    "ScanOptions",
    "SNAPSHOT_FORMATS",
    "FILTER_KINDS",
]
