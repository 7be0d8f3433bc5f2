"""Repository discovery under a scan root."""

import os
import subprocess
from collections.abc import Callable
from pathlib import Path

import structlog

from repocache.cache.reader import RepoOptionApplier
from repocache.core.models.repository import RepoDefaults, RepositoryRecord
from repocache.core.models.scan import ScanOptions

logger = structlog.get_logger(__name__)

AppendFn = Callable[[RepositoryRecord], object]

PLACEHOLDER_DESCRIPTION = "Unnamed repository; edit this file 'description' to name the repository."

_GIT_CONFIG_KEYS = {
    "gitweb.owner": "owner",
    "gitweb.description": "desc",
    "gitweb.category": "section",
    "gitweb.homepage": "homepage",
}


def is_git_dir(path: Path) -> bool:
    """Check whether ``path`` looks like a git directory."""
    return (path / "HEAD").is_file() and (path / "objects").is_dir() and (path / "refs").is_dir()


class RepoScanner:
    """Discovers git repositories and appends a record for each one.

    Works on the filesystem directly; git itself is only invoked when
    ``enable_git_config`` is set.
    """

    def __init__(
        self,
        defaults: RepoDefaults | None = None,
        options: ScanOptions | None = None,
    ) -> None:
        self._defaults = defaults or RepoDefaults()
        self._options = options or ScanOptions()

    @property
    def defaults(self) -> RepoDefaults:
        return self._defaults

    @property
    def options(self) -> ScanOptions:
        return self._options

    def scan_tree(self, root: str | Path, append: AppendFn) -> int:
        """Walk ``root`` recursively. Returns the number of repositories found."""
        base = Path(root)
        if not base.is_dir():
            logger.warning("Scan root is not a directory", root=str(base))
            return 0
        found = self._scan_path(base, base, append, visited=set(), urls=set())
        logger.info("Scanned tree", root=str(base), repos=found)
        return found

    def scan_projects(self, root: str | Path, project_list: str | Path, append: AppendFn) -> int:
        """Scan the paths listed in ``project_list``, relative to ``root``."""
        base = Path(root)
        try:
            lines = Path(project_list).read_text(encoding="utf-8").splitlines()
        except OSError as e:
            logger.error("Cannot read project list", project_list=str(project_list), error=str(e))
            return 0

        found = 0
        visited: set[str] = set()
        urls: set[str] = set()
        for line in lines:
            project = line.strip()
            if not project:
                continue
            path = base / project
            if not path.is_dir():
                logger.warning("Listed project is not a directory", project=project)
                continue
            found += self._scan_path(base, path, append, visited, urls)
        logger.info("Scanned project list", root=str(base), project_list=str(project_list), repos=found)
        return found

    def _scan_path(
        self,
        base: Path,
        path: Path,
        append: AppendFn,
        visited: set[str],
        urls: set[str],
    ) -> int:
        try:
            real = os.path.realpath(path)
        except OSError:
            return 0
        if real in visited:
            return 0
        visited.add(real)

        if is_git_dir(path):
            return self._add_repo(base, path, append, urls)
        dotgit = path / ".git"
        if dotgit.is_dir() and is_git_dir(dotgit):
            return self._add_repo(base, dotgit, append, urls)

        try:
            entries = sorted(os.scandir(path), key=lambda entry: entry.name)
        except OSError as e:
            logger.warning("Cannot read directory", path=str(path), error=str(e))
            return 0

        found = 0
        for entry in entries:
            if entry.name.startswith(".") and not self._options.scan_hidden_path:
                continue
            try:
                if not entry.is_dir():
                    continue
            except OSError:
                continue
            found += self._scan_path(base, Path(entry.path), append, visited, urls)
        return found

    def _repo_url(self, base: Path, git_dir: Path) -> str:
        work_tree = git_dir.parent if git_dir.name == ".git" else git_dir
        try:
            rel = work_tree.relative_to(base).as_posix()
        except ValueError:
            rel = work_tree.as_posix()
        if rel in ("", "."):
            rel = work_tree.resolve().name
        if self._options.remove_suffix and rel.endswith(".git"):
            rel = rel[: -len(".git")]
        return rel.rstrip("/")

    def _add_repo(self, base: Path, git_dir: Path, append: AppendFn, urls: set[str]) -> int:
        """Build the record for ``git_dir`` and append it. Returns 1, or 0 for a repeated url."""
        url = self._repo_url(base, git_dir)
        if url in urls:
            logger.warning("Duplicate repository url skipped", url=url, path=str(git_dir))
            return 0
        urls.add(url)
        record = self._defaults.new_record(url, path=str(git_dir))
        applier = RepoOptionApplier(record)

        if self._options.enable_git_config:
            for key, value in self._read_git_config(git_dir).items():
                self._apply(applier, key, value, git_dir)

        if record.owner is None:
            record.owner = self._read_owner(git_dir)
        if record.description is None:
            record.description = self._read_description(git_dir)

        if self._options.enable_repo_config:
            rc_path = git_dir / self._options.repo_config_name
            if rc_path.is_file():
                self._apply_repo_config(applier, rc_path)

        append(record)
        return 1

    @staticmethod
    def _apply(applier: RepoOptionApplier, key: str, value: str, source: Path) -> None:
        try:
            if not applier.apply(key, value):
                logger.debug("Unknown repo option ignored", key=key, source=str(source))
        except ValueError as e:
            logger.warning("Invalid repo option ignored", key=key, source=str(source), error=str(e))

    def _apply_repo_config(self, applier: RepoOptionApplier, rc_path: Path) -> None:
        try:
            lines = rc_path.read_text(encoding="utf-8").splitlines()
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Cannot read repo config", path=str(rc_path), error=str(e))
            return
        for line in lines:
            stripped = line.strip()
            if not stripped or stripped.startswith("#"):
                continue
            key, sep, value = line.partition("=")
            if not sep:
                continue
            self._apply(applier, key.strip(), value, rc_path)

    @staticmethod
    def _read_git_config(git_dir: Path) -> dict[str, str]:
        """Read gitweb.* and cgit.* keys, mapped to repo option names."""
        try:
            result = subprocess.run(
                ["git", "config", "--file", str(git_dir / "config"), "--get-regexp", r"^(gitweb|cgit)\."],
                capture_output=True,
                text=True,
                check=True,
            )
        except (subprocess.CalledProcessError, FileNotFoundError):
            return {}

        options: dict[str, str] = {}
        for line in result.stdout.splitlines():
            name, _, value = line.partition(" ")
            if name in _GIT_CONFIG_KEYS:
                options[_GIT_CONFIG_KEYS[name]] = value
            elif name.startswith("cgit."):
                options[name[len("cgit."):]] = value
        return options

    @staticmethod
    def _read_owner(git_dir: Path) -> str | None:
        try:
            return git_dir.owner()
        except (KeyError, NotImplementedError, OSError):
            return None

    @staticmethod
    def _read_description(git_dir: Path) -> str | None:
        try:
            text = (git_dir / "description").read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            return None
        text = text.strip()
        if not text or text.startswith(PLACEHOLDER_DESCRIPTION):
            return None
        return text
