"""repocache: cached repository lists for multi-tenant git frontends."""

__version__ = "0.1.0"
