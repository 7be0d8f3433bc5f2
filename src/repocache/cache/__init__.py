"""Repository list cache."""

from repocache.cache.background import (
    BackgroundRunner,
    InlineRunner,
    ProcessRunner,
    RegenerationJob,
    ThreadRunner,
)
from repocache.cache.keys import cache_file_path, derive_key, format_key, hash_str, lock_file_path
from repocache.cache.reader import parse_config_file, parse_config_text
from repocache.cache.serializer import format_record, write_records
from repocache.cache.store import CacheStore

__all__ = [
    "CacheStore",
    "BackgroundRunner",
    "ProcessRunner",
    "ThreadRunner",
    "InlineRunner",
    "RegenerationJob",
    "hash_str",
    "derive_key",
    "format_key",
    "cache_file_path",
    "lock_file_path",
    "parse_config_file",
    "parse_config_text",
    "format_record",
    "write_records",
]
