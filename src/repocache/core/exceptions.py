"""Exception hierarchy for repocache."""

from typing import Any


class RepoCacheError(Exception):
    """Base exception for all repocache errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(RepoCacheError):
    """Invalid or inconsistent settings."""


class RegistryError(RepoCacheError):
    """Misuse of a repository registry."""


class GenerateError(RepoCacheError):
    """A cache regeneration attempt did not produce a cache file."""


class LockContentionError(GenerateError):
    """Another process already holds the write lock for this cache key.

    Not fatal: the caller serves existing data or scans directly.
    """


class CacheIOError(GenerateError):
    """Opening, writing or renaming the cache file failed."""


class StaleParseError(RepoCacheError):
    """A cache file exists but cannot be parsed.

    The store treats the cache as absent and regenerates it.
    """

    def __init__(
        self,
        message: str,
        path: str | None = None,
        lineno: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = dict(details or {})
        if path is not None:
            details["path"] = path
        if lineno is not None:
            details["lineno"] = lineno
        super().__init__(message, details=details)
        self.path = path
        self.lineno = lineno
