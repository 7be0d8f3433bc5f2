"""Application settings using Pydantic Settings."""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

from repocache.core.models.repository import (
    BranchSort,
    CommitSort,
    ReadmeCandidate,
    RepoDefaults,
    StatsPeriod,
)
from repocache.core.models.scan import ScanOptions


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="REPOCACHE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # General
    environment: str = "development"
    debug: bool = False
    log_level: str = "INFO"

    # --- Repository list cache ---
    cache_root: str = "~/.cache/repocache"
    cache_scanrc_ttl: int = 15  # minutes
    background_mode: Literal["process", "thread"] = "process"

    # --- Scanning ---
    scan_path: str | None = None
    project_list: str | None = None
    scan_hidden_path: bool = False
    remove_suffix: bool = False
    enable_repo_config: bool = True
    enable_git_config: bool = False

    # --- Repository defaults ---
    enable_blame: bool = False
    enable_commit_graph: bool = False
    enable_log_filecount: bool = False
    enable_log_linecount: bool = False
    enable_remote_branches: bool = False
    enable_subject_links: bool = False
    enable_html_serving: bool = False
    branch_sort: BranchSort = BranchSort.NAME
    commit_sort: CommitSort = CommitSort.NONE
    snapshots: str = ""  # space separated, e.g. "tar.gz zip"
    max_stats: StatsPeriod | None = None
    readme: list[str] = []
    section: str | None = None

    # Global filters ("type:command")
    about_filter: str | None = None
    commit_filter: str | None = None
    source_filter: str | None = None
    email_filter: str | None = None
    owner_filter: str | None = None

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self.cache_root = str(Path(self.cache_root).expanduser())
        if self.project_list:
            self.project_list = str(Path(self.project_list).expanduser())

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @property
    def is_development(self) -> bool:
        return self.environment.lower() == "development"

    def repo_defaults(self) -> RepoDefaults:
        """Build the global defaults repository records inherit."""
        return RepoDefaults(
            enable_blame=self.enable_blame,
            enable_commit_graph=self.enable_commit_graph,
            enable_log_filecount=self.enable_log_filecount,
            enable_log_linecount=self.enable_log_linecount,
            enable_remote_branches=self.enable_remote_branches,
            enable_subject_links=self.enable_subject_links,
            enable_html_serving=self.enable_html_serving,
            branch_sort=self.branch_sort,
            commit_sort=self.commit_sort,
            snapshots=frozenset(self.snapshots.split()),
            max_stats=self.max_stats,
            readme=tuple(ReadmeCandidate.parse(value) for value in self.readme),
            section=self.section,
            about_filter=self.about_filter,
            commit_filter=self.commit_filter,
            source_filter=self.source_filter,
            email_filter=self.email_filter,
            owner_filter=self.owner_filter,
        )

    def scan_options(self) -> ScanOptions:
        return ScanOptions(
            scan_hidden_path=self.scan_hidden_path,
            remove_suffix=self.remove_suffix,
            enable_repo_config=self.enable_repo_config,
            enable_git_config=self.enable_git_config,
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
