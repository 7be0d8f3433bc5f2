"""Repository record models."""

from enum import Enum

from pydantic import BaseModel, Field, field_validator

# Canonical order; serialization follows it.
SNAPSHOT_FORMATS: tuple[str, ...] = (
    ".tar",
    ".tar.gz",
    ".tar.bz2",
    ".tar.lz",
    ".tar.xz",
    ".tar.zst",
    ".zip",
)

FILTER_KINDS: tuple[str, ...] = ("about", "commit", "source", "email", "owner")


class BranchSort(str, Enum):
    """Ordering of branches on the summary page."""

    NAME = "name"
    AGE = "age"


class CommitSort(str, Enum):
    """Ordering of commits in the log."""

    NONE = "none"
    DATE = "date"
    TOPO = "topo"


class StatsPeriod(str, Enum):
    """Largest granularity offered on the statistics page."""

    WEEK = "week"
    MONTH = "month"
    QUARTER = "quarter"
    YEAR = "year"


def normalize_snapshot_tag(tag: str) -> str:
    """Return the canonical suffix form of a snapshot tag.

    Accepts both "tar.gz" and ".tar.gz".
    """
    tag = tag.strip()
    if not tag.startswith("."):
        tag = "." + tag
    if tag not in SNAPSHOT_FORMATS:
        raise ValueError(f"Unknown snapshot format: {tag}")
    return tag


def ordered_snapshots(snapshots: set[str]) -> list[str]:
    return [fmt for fmt in SNAPSHOT_FORMATS if fmt in snapshots]


class ReadmeCandidate(BaseModel):
    """A readme file, optionally pinned to a ref."""

    path: str
    ref: str | None = None

    @classmethod
    def parse(cls, value: str) -> "ReadmeCandidate":
        """Parse "ref:path" or a plain "path"."""
        ref, sep, path = value.partition(":")
        if sep and ref:
            return cls(path=path, ref=ref)
        if sep:
            return cls(path=path)
        return cls(path=value)

    def format(self) -> str:
        if self.ref:
            return f"{self.ref}:{self.path}"
        return self.path

    class Config:
        frozen = True


class RepositoryRecord(BaseModel):
    """One discovered repository.

    Created by the scanner or reconstituted by the cache reader.
    Filters hold a "type:command" string, or None to inherit the
    global filter.
    """

    url: str
    name: str
    path: str

    owner: str | None = None
    description: str | None = None
    readme: list[ReadmeCandidate] = Field(default_factory=list)

    default_branch: str | None = None
    extra_head_content: str | None = None
    module_link: str | None = None
    section: str | None = None
    homepage: str | None = None
    clone_urls: list[str] = Field(default_factory=list)

    # Feature flags
    enable_blame: bool = False
    enable_commit_graph: bool = False
    enable_log_filecount: bool = False
    enable_log_linecount: bool = False
    enable_remote_branches: bool = False
    enable_subject_links: bool = False
    enable_html_serving: bool = False
    hide: bool = False
    ignore: bool = False

    branch_sort: BranchSort = BranchSort.NAME
    commit_sort: CommitSort = CommitSort.NONE

    snapshots: set[str] = Field(default_factory=set)
    snapshot_prefix: str | None = None
    max_stats: StatsPeriod | None = None
    logo: str | None = None
    logo_link: str | None = None

    # Filter overrides
    about_filter: str | None = None
    commit_filter: str | None = None
    source_filter: str | None = None
    email_filter: str | None = None
    owner_filter: str | None = None

    @field_validator("snapshots")
    @classmethod
    def _normalize_snapshots(cls, value: set[str]) -> set[str]:
        return {normalize_snapshot_tag(tag) for tag in value}

    @field_validator("clone_urls")
    @classmethod
    def _dedupe_clone_urls(cls, value: list[str]) -> list[str]:
        return list(dict.fromkeys(value))

    @property
    def first_description_line(self) -> str | None:
        if self.description is None:
            return None
        return self.description.split("\n", 1)[0].rstrip("\r")

    def get_filter(self, kind: str) -> str | None:
        return getattr(self, f"{kind}_filter")

    def set_filter(self, kind: str, value: str | None) -> None:
        setattr(self, f"{kind}_filter", value)


class RepoDefaults(BaseModel):
    """Global defaults every repository record inherits.

    Serialized records omit values equal to these, so a reader must
    be given the same defaults to reconstruct them.
    """

    enable_blame: bool = False
    enable_commit_graph: bool = False
    enable_log_filecount: bool = False
    enable_log_linecount: bool = False
    enable_remote_branches: bool = False
    enable_subject_links: bool = False
    enable_html_serving: bool = False

    branch_sort: BranchSort = BranchSort.NAME
    commit_sort: CommitSort = CommitSort.NONE
    snapshots: frozenset[str] = Field(default_factory=frozenset)
    max_stats: StatsPeriod | None = None
    readme: tuple[ReadmeCandidate, ...] = ()
    section: str | None = None

    about_filter: str | None = None
    commit_filter: str | None = None
    source_filter: str | None = None
    email_filter: str | None = None
    owner_filter: str | None = None

    @field_validator("snapshots")
    @classmethod
    def _normalize_snapshots(cls, value: frozenset[str]) -> frozenset[str]:
        return frozenset(normalize_snapshot_tag(tag) for tag in value)

    def get_filter(self, kind: str) -> str | None:
        return getattr(self, f"{kind}_filter")

    def new_record(self, url: str, name: str | None = None, path: str = "") -> RepositoryRecord:
        """Create a record for ``url`` inheriting these defaults."""
        return RepositoryRecord(
            url=url,
            name=name if name is not None else url,
            path=path,
            readme=list(self.readme),
            section=self.section,
            enable_blame=self.enable_blame,
            enable_commit_graph=self.enable_commit_graph,
            enable_log_filecount=self.enable_log_filecount,
            enable_log_linecount=self.enable_log_linecount,
            enable_remote_branches=self.enable_remote_branches,
            enable_subject_links=self.enable_subject_links,
            enable_html_serving=self.enable_html_serving,
            branch_sort=self.branch_sort,
            commit_sort=self.commit_sort,
            snapshots=set(self.snapshots),
            max_stats=self.max_stats,
        )

    class Config:
        frozen = True
