"""In-memory repository registry."""

from collections.abc import Iterator
from typing import overload

from repocache.core.exceptions import RegistryError
from repocache.core.models.repository import RepoDefaults, RepositoryRecord


class Registry:
    """Ordered collection of repository records for one request.

    Insertion order is scan order, so the records appended by one scan
    occupy a contiguous index range. Scanners and the cache reader
    receive the registry explicitly and append to it; nothing else
    mutates it.
    """

    def __init__(self, defaults: RepoDefaults | None = None) -> None:
        self._defaults = defaults or RepoDefaults()
        self._records: list[RepositoryRecord] = []
        self._by_url: dict[str, list[RepositoryRecord]] = {}

    @property
    def defaults(self) -> RepoDefaults:
        return self._defaults

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[RepositoryRecord]:
        return iter(self._records)

    def __contains__(self, url: object) -> bool:
        return url in self._by_url

    @overload
    def __getitem__(self, index: int) -> RepositoryRecord: ...

    @overload
    def __getitem__(self, index: slice) -> list[RepositoryRecord]: ...

    def __getitem__(self, index):
        return self._records[index]

    def append(self, record: RepositoryRecord) -> RepositoryRecord:
        """Append a record and return it.

        Scans of different roots may contribute records with the same
        url; each scan's range stays complete. Lookup by url returns the
        first record registered for it.
        """
        self._records.append(record)
        self._by_url.setdefault(record.url, []).append(record)
        return record

    def add(self, url: str, name: str | None = None, path: str = "") -> RepositoryRecord:
        """Create a record inheriting the registry defaults and append it."""
        return self.append(self._defaults.new_record(url, name=name, path=path))

    def get(self, url: str) -> RepositoryRecord | None:
        records = self._by_url.get(url)
        return records[0] if records else None

    def truncate(self, length: int) -> None:
        """Drop every record at index ``length`` and beyond."""
        if length < 0 or length > len(self._records):
            raise RegistryError(
                f"Cannot truncate registry of {len(self._records)} records to {length}",
                details={"length": length, "size": len(self._records)},
            )
        del self._records[length:]
        self._by_url = {}
        for record in self._records:
            self._by_url.setdefault(record.url, []).append(record)

    def sorted_by_url(self) -> list[RepositoryRecord]:
        """Records ordered by url, compared byte-wise."""
        return sorted(self._records, key=lambda record: record.url.encode("utf-8"))

    def sort_by_url(self) -> None:
        self._records = self.sorted_by_url()
