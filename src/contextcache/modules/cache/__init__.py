"""Per-agent provider context caches."""

from __future__ import annotations

from .fingerprint import static_context_fingerprint
from .manager import Clock, ContextCacheManager
from .providers import CacheCreateRequest, CacheProvider, GeminiCacheProvider
from .store import AgentCacheEntry, CacheStore, InFlightCreation

__all__ = [
    "AgentCacheEntry",
    "CacheCreateRequest",
    "CacheProvider",
    "CacheStore",
    "Clock",
    "ContextCacheManager",
    "GeminiCacheProvider",
    "InFlightCreation",
    "static_context_fingerprint",
]
