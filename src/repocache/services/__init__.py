"""Business logic services for repocache."""

from repocache.services.repolist import RepoListService, scan_and_dump

__all__ = [
    "RepoListService",
    "scan_and_dump",
]
