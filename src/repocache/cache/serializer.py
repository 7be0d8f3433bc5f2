"""Serialize repository records to the cached repolist format.

Each record becomes a block of ``repo.<key>=<value>`` lines terminated by
a blank line. Values equal to the global defaults are omitted so that a
reader given the same defaults reconstructs them by inheritance.
Enumerations are always written by name.
"""

from collections.abc import Iterable
from typing import TextIO

from repocache.core.models.repository import (
    FILTER_KINDS,
    BranchSort,
    CommitSort,
    RepoDefaults,
    RepositoryRecord,
    ordered_snapshots,
)


def _flag(value: bool) -> str:
    return "1" if value else "0"


def _optional_lines(record: RepositoryRecord, defaults: RepoDefaults) -> list[tuple[str, str]]:
    lines: list[tuple[str, str]] = []
    for key, value in (
        ("defbranch", record.default_branch),
        ("extra-head-content", record.extra_head_content),
        ("module-link", record.module_link),
        ("section", record.section),
        ("homepage", record.homepage),
    ):
        if value is None:
            continue
        if key == "section" and value == defaults.section:
            continue
        lines.append((key, value))
    return lines


def record_lines(record: RepositoryRecord, defaults: RepoDefaults) -> list[tuple[str, str]]:
    """Return the ordered (key, value) pairs for one record, keys unprefixed."""
    lines: list[tuple[str, str]] = [
        ("url", record.url),
        ("name", record.name),
        ("path", record.path),
    ]
    if record.owner is not None:
        lines.append(("owner", record.owner))
    if record.description is not None:
        lines.append(("desc", record.first_description_line or ""))
    for candidate in record.readme:
        lines.append(("readme", candidate.format()))
    if not record.readme and defaults.readme:
        # An empty value clears the inherited list on reload
        lines.append(("readme", ""))
    lines.extend(_optional_lines(record, defaults))
    for clone_url in record.clone_urls:
        lines.append(("clone-url", clone_url))

    lines.append(("enable-blame", _flag(record.enable_blame)))
    lines.append(("enable-commit-graph", _flag(record.enable_commit_graph)))
    lines.append(("enable-log-filecount", _flag(record.enable_log_filecount)))
    lines.append(("enable-log-linecount", _flag(record.enable_log_linecount)))

    for kind in FILTER_KINDS:
        value = record.get_filter(kind)
        if value and value != defaults.get_filter(kind):
            lines.append((f"{kind}-filter", value))

    if record.snapshots != set(defaults.snapshots):
        lines.append(("snapshots", " ".join(ordered_snapshots(record.snapshots))))
    if record.snapshot_prefix is not None:
        lines.append(("snapshot-prefix", record.snapshot_prefix))
    if record.max_stats != defaults.max_stats:
        lines.append(("max-stats", record.max_stats.value if record.max_stats else "none"))
    if record.logo is not None:
        lines.append(("logo", record.logo))
    if record.logo_link is not None:
        lines.append(("logo-link", record.logo_link))

    lines.append(("enable-remote-branches", _flag(record.enable_remote_branches)))
    lines.append(("enable-subject-links", _flag(record.enable_subject_links)))
    lines.append(("enable-html-serving", _flag(record.enable_html_serving)))

    if record.branch_sort == BranchSort.AGE or record.branch_sort != defaults.branch_sort:
        lines.append(("branch-sort", record.branch_sort.value))
    if record.commit_sort != CommitSort.NONE or record.commit_sort != defaults.commit_sort:
        lines.append(("commit-sort", record.commit_sort.value))

    lines.append(("hide", _flag(record.hide)))
    lines.append(("ignore", _flag(record.ignore)))
    return lines


def format_record(record: RepositoryRecord, defaults: RepoDefaults) -> str:
    """Format one record as a block, including its terminating blank line."""
    body = "".join(f"repo.{key}={value}\n" for key, value in record_lines(record, defaults))
    return body + "\n"


def write_records(
    stream: TextIO,
    records: Iterable[RepositoryRecord],
    defaults: RepoDefaults,
) -> int:
    """Write records to ``stream`` and return how many were written."""
    count = 0
    for record in records:
        stream.write(format_record(record, defaults))
        count += 1
    return count
