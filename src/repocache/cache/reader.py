"""Parse cached repolist files back into a registry.

The format is the one written by :mod:`repocache.cache.serializer`:
``repo.url`` opens a new record, the following ``repo.*`` lines apply to
it. Records start from the registry defaults, so omitted keys inherit.
"""

from collections.abc import Callable
from pathlib import Path

import structlog

from repocache.core.exceptions import StaleParseError
from repocache.core.models.repository import (
    FILTER_KINDS,
    SNAPSHOT_FORMATS,
    BranchSort,
    CommitSort,
    ReadmeCandidate,
    RepositoryRecord,
    StatsPeriod,
    normalize_snapshot_tag,
)
from repocache.core.registry import Registry

logger = structlog.get_logger(__name__)

REPO_PREFIX = "repo."


def parse_bool(value: str) -> bool:
    try:
        return int(value.strip()) != 0
    except ValueError:
        raise ValueError(f"Invalid boolean: {value!r}") from None


def parse_snapshots(value: str) -> set[str]:
    """Parse a snapshot setting: suffix list, "all", or a 0/1 toggle."""
    value = value.strip()
    if value == "all":
        return set(SNAPSHOT_FORMATS)
    if value.isdigit():
        return set(SNAPSHOT_FORMATS) if int(value) else set()
    result: set[str] = set()
    for token in value.replace(",", " ").split():
        try:
            result.add(normalize_snapshot_tag(token))
        except ValueError:
            logger.warning("Unknown snapshot format ignored", format=token)
    return result


def parse_max_stats(value: str) -> StatsPeriod | None:
    value = value.strip()
    if value in ("", "none", "0"):
        return None
    return StatsPeriod(value)


def _set_attr(attr: str) -> Callable[[RepositoryRecord, str], None]:
    def setter(record: RepositoryRecord, value: str) -> None:
        setattr(record, attr, value)

    return setter


def _set_flag(attr: str) -> Callable[[RepositoryRecord, str], None]:
    def setter(record: RepositoryRecord, value: str) -> None:
        setattr(record, attr, parse_bool(value))

    return setter


def _add_clone_url(record: RepositoryRecord, value: str) -> None:
    for clone_url in value.split():
        if clone_url not in record.clone_urls:
            record.clone_urls.append(clone_url)


def _set_snapshots(record: RepositoryRecord, value: str) -> None:
    record.snapshots = parse_snapshots(value)


def _set_max_stats(record: RepositoryRecord, value: str) -> None:
    record.max_stats = parse_max_stats(value)


def _set_branch_sort(record: RepositoryRecord, value: str) -> None:
    record.branch_sort = BranchSort(value.strip())


def _set_commit_sort(record: RepositoryRecord, value: str) -> None:
    record.commit_sort = CommitSort(value.strip())


def _set_filter(kind: str) -> Callable[[RepositoryRecord, str], None]:
    def setter(record: RepositoryRecord, value: str) -> None:
        record.set_filter(kind, value or None)

    return setter


_SETTERS: dict[str, Callable[[RepositoryRecord, str], None]] = {
    "name": _set_attr("name"),
    "path": _set_attr("path"),
    "owner": _set_attr("owner"),
    "desc": _set_attr("description"),
    "defbranch": _set_attr("default_branch"),
    "extra-head-content": _set_attr("extra_head_content"),
    "module-link": _set_attr("module_link"),
    "section": _set_attr("section"),
    "homepage": _set_attr("homepage"),
    "clone-url": _add_clone_url,
    "snapshots": _set_snapshots,
    "snapshot-prefix": _set_attr("snapshot_prefix"),
    "max-stats": _set_max_stats,
    "logo": _set_attr("logo"),
    "logo-link": _set_attr("logo_link"),
    "branch-sort": _set_branch_sort,
    "commit-sort": _set_commit_sort,
    "enable-blame": _set_flag("enable_blame"),
    "enable-commit-graph": _set_flag("enable_commit_graph"),
    "enable-log-filecount": _set_flag("enable_log_filecount"),
    "enable-log-linecount": _set_flag("enable_log_linecount"),
    "enable-remote-branches": _set_flag("enable_remote_branches"),
    "enable-subject-links": _set_flag("enable_subject_links"),
    "enable-html-serving": _set_flag("enable_html_serving"),
    "hide": _set_flag("hide"),
    "ignore": _set_flag("ignore"),
}
_SETTERS.update({f"{kind}-filter": _set_filter(kind) for kind in FILTER_KINDS})


class RepoOptionApplier:
    """Applies ``key=value`` options to one record.

    The first ``readme`` option replaces the inherited readme list;
    later ones append to it.
    """

    def __init__(self, record: RepositoryRecord) -> None:
        self.record = record
        self._readme_overridden = False

    def apply(self, key: str, value: str) -> bool:
        """Apply one option. Returns False for unknown keys.

        Raises ValueError for malformed values.
        """
        if key == "readme":
            if not self._readme_overridden:
                self.record.readme = []
                self._readme_overridden = True
            if value:
                self.record.readme.append(ReadmeCandidate.parse(value))
            return True
        setter = _SETTERS.get(key)
        if setter is None:
            return False
        setter(self.record, value)
        return True


def parse_config_text(text: str, registry: Registry, source: str | None = None) -> int:
    """Parse cached repolist text into ``registry``.

    Returns the number of records appended. Raises StaleParseError on
    malformed input; records appended before the error stay in the
    registry, callers truncate if they need to.
    """
    applier: RepoOptionApplier | None = None
    urls: set[str] = set()
    start = len(registry)

    for lineno, raw_line in enumerate(text.split("\n"), start=1):
        raw_line = raw_line.rstrip("\r")
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue

        key, sep, value = raw_line.partition("=")
        key = key.strip()
        if not sep or not key.startswith(REPO_PREFIX):
            raise StaleParseError(
                f"Malformed line {lineno}: {raw_line!r}", path=source, lineno=lineno
            )
        key = key[len(REPO_PREFIX):]

        if key == "url":
            if not value:
                raise StaleParseError("Empty repo.url", path=source, lineno=lineno)
            if value in urls:
                raise StaleParseError(f"Duplicate repo.url {value!r}", path=source, lineno=lineno)
            urls.add(value)
            applier = RepoOptionApplier(registry.add(value))
            continue

        if applier is None:
            raise StaleParseError(
                f"repo.{key} before any repo.url", path=source, lineno=lineno
            )
        try:
            known = applier.apply(key, value)
        except ValueError as e:
            raise StaleParseError(
                f"Invalid value for repo.{key}: {e}", path=source, lineno=lineno
            ) from e
        if not known:
            logger.warning("Unknown repo option ignored", key=key, path=source, lineno=lineno)

    return len(registry) - start


def parse_config_file(path: str | Path, registry: Registry) -> int:
    """Parse a cached repolist file into ``registry``."""
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise StaleParseError(f"Cannot read {path}: {e}", path=str(path)) from e
    count = parse_config_text(text, registry, source=str(path))
    logger.debug("Parsed cached repolist", path=str(path), repos=count)
    return count
