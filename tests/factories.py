"""Test factories and fakes."""

import threading
import time
from pathlib import Path

import factory

from repocache.core.models.repository import ReadmeCandidate, RepoDefaults, RepositoryRecord
from repocache.core.models.scan import ScanOptions


class RepositoryRecordFactory(factory.Factory):
    """Factory for creating RepositoryRecord instances."""

    class Meta:
        model = RepositoryRecord

    url = factory.Sequence(lambda n: f"group/repo-{n}")
    name = factory.LazyAttribute(lambda o: o.url)
    path = factory.LazyAttribute(lambda o: f"/srv/git/{o.url}.git")
    owner = factory.Faker("user_name")
    description = factory.Faker("sentence")
    readme = factory.LazyFunction(lambda: [ReadmeCandidate(path="README.md")])


class ScanInterrupted(Exception):
    """Raised by StaticScanner to simulate a writer dying mid-scan."""


class StaticScanner:
    """Scanner double that "discovers" a fixed list of urls.

    ``gate`` blocks the first scan until it is set. ``fail_after`` raises
    ScanInterrupted after that many records have been appended.
    """

    def __init__(
        self,
        urls: list[str],
        defaults: RepoDefaults | None = None,
        delay: float = 0.0,
        fail_after: int | None = None,
        gate: threading.Event | None = None,
    ) -> None:
        self.urls = list(urls)
        self._defaults = defaults or RepoDefaults()
        self._options = ScanOptions()
        self.delay = delay
        self.fail_after = fail_after
        self.gate = gate
        self.calls = 0
        self.project_lists: list[str] = []
        self._lock = threading.Lock()

    @property
    def defaults(self) -> RepoDefaults:
        return self._defaults

    @property
    def options(self) -> ScanOptions:
        return self._options

    def scan_tree(self, root, append) -> int:
        with self._lock:
            self.calls += 1
            first = self.calls == 1
        if first and self.gate is not None:
            self.gate.wait(timeout=10)
        for i, url in enumerate(self.urls):
            if self.fail_after is not None and i >= self.fail_after:
                raise ScanInterrupted(url)
            append(self._defaults.new_record(url, path=str(Path(root) / url)))
            if self.delay:
                time.sleep(self.delay)
        return len(self.urls)

    def scan_projects(self, root, project_list, append) -> int:
        self.project_lists.append(str(project_list))
        return self.scan_tree(root, append)


class RecordingRunner:
    """Background runner that only records submitted jobs."""

    def __init__(self) -> None:
        self.jobs = []

    def submit(self, job, store) -> None:
        self.jobs.append(job)


def make_bare_repo(path: Path, description: str | None = None) -> Path:
    """Create the minimal layout of a bare git repository."""
    path.mkdir(parents=True)
    (path / "HEAD").write_text("ref: refs/heads/main\n")
    (path / "objects").mkdir()
    (path / "refs").mkdir()
    if description is not None:
        (path / "description").write_text(description)
    return path


def make_work_tree(path: Path, description: str | None = None) -> Path:
    """Create a work tree whose .git directory is a git directory."""
    path.mkdir(parents=True)
    make_bare_repo(path / ".git", description=description)
    return path
