"""Cache key derivation and cache file naming."""

from pathlib import Path

_FNV_OFFSET = 0x811C9DC5
_FNV_PRIME = 0x01000193
_MASK = 0xFFFFFFFFFFFFFFFF

CACHE_FILE_PREFIX = "rc-"
LOCK_SUFFIX = ".lock"


def hash_str(value: str) -> int:
    """Non-cryptographic 64-bit string hash (FNV-1 multiply-then-xor)."""
    h = _FNV_OFFSET
    for byte in value.encode("utf-8"):
        h = (h * _FNV_PRIME) & _MASK
        h ^= byte
    return h


def derive_key(scan_root: str, project_list: str | None = None) -> int:
    """Derive the cache key for a scan configuration.

    The project list hash is added to the scan root hash, not
    concatenated. Distinct configurations may collide.
    """
    key = hash_str(scan_root)
    if project_list:
        key = (key + hash_str(project_list)) & _MASK
    return key


def format_key(key: int) -> str:
    return f"{key:016x}"


def cache_file_path(cache_root: str | Path, key: int) -> Path:
    return Path(cache_root) / f"{CACHE_FILE_PREFIX}{format_key(key)}"


def lock_file_path(cache_path: str | Path) -> Path:
    return Path(f"{cache_path}{LOCK_SUFFIX}")
