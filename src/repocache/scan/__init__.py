"""Repository discovery for repocache."""

from repocache.scan.scanner import RepoScanner, is_git_dir

__all__ = ["RepoScanner", "is_git_dir"]
