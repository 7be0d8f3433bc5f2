"""Pytest configuration and fixtures."""

import logging
from pathlib import Path

import pytest

from factories import make_bare_repo, make_work_tree
from repocache.core.models.repository import (
    BranchSort,
    CommitSort,
    ReadmeCandidate,
    RepoDefaults,
    RepositoryRecord,
    StatsPeriod,
)
from repocache.core.registry import Registry


@pytest.fixture(autouse=True)
def _reset_log_handlers():
    """Drop handlers installed by CLI runs; their streams do not outlive the test."""
    yield
    logging.getLogger().handlers.clear()


@pytest.fixture
def defaults() -> RepoDefaults:
    """Global defaults with a few non-trivial values."""
    return RepoDefaults(
        enable_blame=True,
        snapshots=frozenset({".tar.gz"}),
        readme=(ReadmeCandidate(path="README.md"),),
        about_filter="exec:/usr/lib/cgit/filters/about-formatting.sh",
    )


@pytest.fixture
def registry(defaults: RepoDefaults) -> Registry:
    return Registry(defaults)


@pytest.fixture
def full_record(defaults: RepoDefaults) -> RepositoryRecord:
    """A record with every field set away from the defaults."""
    record = defaults.new_record("tools/build.git", name="build", path="/srv/git/tools/build.git")
    record.owner = "alice"
    record.description = "Build tooling"
    record.readme = [
        ReadmeCandidate(path="README.md", ref="master"),
        ReadmeCandidate(path="docs/README"),
    ]
    record.default_branch = "main"
    record.extra_head_content = "<meta name=\"robots\" content=\"noindex\">"
    record.module_link = "https://example.com/%s/commit/?id=%s"
    record.section = "Tools"
    record.homepage = "https://example.com/build"
    record.clone_urls = ["https://git.example.com/build.git", "ssh://git@example.com/build.git"]
    record.enable_blame = False
    record.enable_commit_graph = True
    record.enable_log_filecount = True
    record.enable_log_linecount = True
    record.enable_remote_branches = True
    record.enable_subject_links = True
    record.enable_html_serving = True
    record.hide = True
    record.ignore = False
    record.branch_sort = BranchSort.AGE
    record.commit_sort = CommitSort.TOPO
    record.snapshots = {".tar.xz", ".zip"}
    record.snapshot_prefix = "build"
    record.max_stats = StatsPeriod.QUARTER
    record.logo = "/logo.png"
    record.logo_link = "https://example.com"
    record.commit_filter = "exec:/usr/lib/cgit/filters/commit-links.sh"
    record.source_filter = "lua:/usr/lib/cgit/filters/syntax-highlighting.lua"
    record.email_filter = "lua:/usr/lib/cgit/filters/email-gravatar.lua"
    record.owner_filter = "exec:/usr/lib/cgit/filters/owner-example.sh"
    return record


@pytest.fixture
def repo_tree(tmp_path: Path) -> Path:
    """A scan root with bare, work-tree, hidden and non-repository directories."""
    root = tmp_path / "git"
    make_bare_repo(root / "alpha.git", description="Alpha project\nSecond line\n")
    make_work_tree(root / "group" / "beta", description="Beta project\n")
    make_bare_repo(
        root / "group" / "gamma.git",
        description="Unnamed repository; edit this file 'description' to name the repository.\n",
    )
    make_bare_repo(root / ".hidden" / "delta.git")
    (root / "plain" / "docs").mkdir(parents=True)
    return root
