"""Cache stores for package metadata."""

from .cache import CacheExpired, CacheNotFound, MemoryCache

__all__ = ["CacheExpired", "CacheNotFound", "MemoryCache"]
