"""Tests for the cached repolist serializer."""

import io

import pytest

from factories import RepositoryRecordFactory
from repocache.cache.serializer import format_record, record_lines, write_records
from repocache.core.models.repository import (
    BranchSort,
    CommitSort,
    RepoDefaults,
    RepositoryRecord,
    StatsPeriod,
)


def _keys(record: RepositoryRecord, defaults: RepoDefaults) -> list[str]:
    return [key for key, _ in record_lines(record, defaults)]


@pytest.mark.unit
class TestFormatRecord:
    """Tests for format_record."""

    def test_minimal_record(self, defaults: RepoDefaults) -> None:
        record = defaults.new_record("foo.git", path="/srv/git/foo.git")
        assert format_record(record, defaults) == (
            "repo.url=foo.git\n"
            "repo.name=foo.git\n"
            "repo.path=/srv/git/foo.git\n"
            "repo.readme=README.md\n"
            "repo.enable-blame=1\n"
            "repo.enable-commit-graph=0\n"
            "repo.enable-log-filecount=0\n"
            "repo.enable-log-linecount=0\n"
            "repo.enable-remote-branches=0\n"
            "repo.enable-subject-links=0\n"
            "repo.enable-html-serving=0\n"
            "repo.hide=0\n"
            "repo.ignore=0\n"
            "\n"
        )

    def test_full_record_key_order(self, full_record: RepositoryRecord, defaults: RepoDefaults) -> None:
        assert _keys(full_record, defaults) == [
            "url",
            "name",
            "path",
            "owner",
            "desc",
            "readme",
            "readme",
            "defbranch",
            "extra-head-content",
            "module-link",
            "section",
            "homepage",
            "clone-url",
            "clone-url",
            "enable-blame",
            "enable-commit-graph",
            "enable-log-filecount",
            "enable-log-linecount",
            "commit-filter",
            "source-filter",
            "email-filter",
            "owner-filter",
            "snapshots",
            "snapshot-prefix",
            "max-stats",
            "logo",
            "logo-link",
            "enable-remote-branches",
            "enable-subject-links",
            "enable-html-serving",
            "branch-sort",
            "commit-sort",
            "hide",
            "ignore",
        ]

    def test_description_first_line_only(self, defaults: RepoDefaults) -> None:
        record = defaults.new_record("foo")
        record.description = "First line\nSecond line\nThird line"
        text = format_record(record, defaults)
        assert "repo.desc=First line\n" in text
        assert "Second line" not in text

    def test_readme_with_ref(self, full_record: RepositoryRecord, defaults: RepoDefaults) -> None:
        text = format_record(full_record, defaults)
        assert "repo.readme=master:README.md\n" in text
        assert "repo.readme=docs/README\n" in text

    def test_cleared_readme_written_empty(self, defaults: RepoDefaults) -> None:
        record = defaults.new_record("foo")
        record.readme = []
        lines = record_lines(record, defaults)
        assert ("readme", "") in lines

    def test_no_readme_without_default(self) -> None:
        defaults = RepoDefaults()
        record = defaults.new_record("foo")
        assert "readme" not in _keys(record, defaults)

    def test_enums_by_name(self, full_record: RepositoryRecord, defaults: RepoDefaults) -> None:
        text = format_record(full_record, defaults)
        assert "repo.branch-sort=age\n" in text
        assert "repo.commit-sort=topo\n" in text
        assert "repo.max-stats=quarter\n" in text

    def test_snapshots_space_joined_in_canonical_order(
        self, full_record: RepositoryRecord, defaults: RepoDefaults
    ) -> None:
        assert "repo.snapshots=.tar.xz .zip\n" in format_record(full_record, defaults)

    def test_snapshots_omitted_when_default(self, defaults: RepoDefaults) -> None:
        record = defaults.new_record("foo")
        assert "snapshots" not in _keys(record, defaults)

    def test_snapshots_empty_when_disabled(self, defaults: RepoDefaults) -> None:
        record = defaults.new_record("foo")
        record.snapshots = set()
        assert "repo.snapshots=\n" in format_record(record, defaults)

    def test_filter_equal_to_global_omitted(self, defaults: RepoDefaults) -> None:
        record = defaults.new_record("foo")
        record.about_filter = defaults.about_filter
        assert "about-filter" not in _keys(record, defaults)

    def test_filter_override_emitted(self, defaults: RepoDefaults) -> None:
        record = defaults.new_record("foo")
        record.about_filter = "exec:/usr/local/bin/about"
        assert "repo.about-filter=exec:/usr/local/bin/about\n" in format_record(record, defaults)

    def test_commit_sort_date(self, defaults: RepoDefaults) -> None:
        record = defaults.new_record("foo")
        record.commit_sort = CommitSort.DATE
        assert "repo.commit-sort=date\n" in format_record(record, defaults)

    def test_sort_reset_against_non_default(self) -> None:
        defaults = RepoDefaults(branch_sort=BranchSort.AGE, commit_sort=CommitSort.TOPO)
        record = defaults.new_record("foo")
        record.branch_sort = BranchSort.NAME
        record.commit_sort = CommitSort.NONE
        text = format_record(record, defaults)
        assert "repo.branch-sort=name\n" in text
        assert "repo.commit-sort=none\n" in text

    def test_max_stats_none_against_default(self) -> None:
        defaults = RepoDefaults(max_stats=StatsPeriod.MONTH)
        record = defaults.new_record("foo")
        record.max_stats = None
        assert "repo.max-stats=none\n" in format_record(record, defaults)

    def test_section_equal_to_default_omitted(self) -> None:
        defaults = RepoDefaults(section="Misc")
        record = defaults.new_record("foo")
        assert "section" not in _keys(record, defaults)

    def test_optional_fields_omitted(self) -> None:
        record = RepositoryRecordFactory(owner=None, description=None)
        keys = _keys(record, RepoDefaults())
        for key in ("owner", "desc", "defbranch", "homepage", "clone-url", "logo", "snapshot-prefix"):
            assert key not in keys


@pytest.mark.unit
class TestWriteRecords:
    """Tests for write_records."""

    def test_blocks_separated_by_blank_line(self, defaults: RepoDefaults) -> None:
        records = [defaults.new_record("a"), defaults.new_record("b")]
        stream = io.StringIO()
        count = write_records(stream, records, defaults)
        assert count == 2
        blocks = stream.getvalue().split("\n\n")
        assert blocks[0].startswith("repo.url=a\n")
        assert blocks[1].startswith("repo.url=b\n")
        assert stream.getvalue().endswith("repo.ignore=0\n\n")

    def test_empty(self, defaults: RepoDefaults) -> None:
        stream = io.StringIO()
        assert write_records(stream, [], defaults) == 0
        assert stream.getvalue() == ""
