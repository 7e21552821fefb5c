"""In-process store of per-agent context cache metadata.

One store is owned by a service instance and injected into the cache manager.
Each process keeps its own store, so horizontally-scaled deployments create
one provider-side cache per process and agent.

Concurrency: the store runs on a single event loop. Reads and atomic replaces
need no lock; ``locked(agent_id)`` holds the per-agent lock while the manager
checks/installs the in-flight marker and commits entries. Unrelated agents
never contend on the same lock. A lock lives only while someone holds or
waits for it, so idle agents leave nothing behind.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass


@dataclass(frozen=True)
class AgentCacheEntry:
    """Provider cache handle for one agent's static context.

    Attributes:
        agent_id: Owning agent.
        handle: Opaque provider cache name (e.g. ``cachedContents/abc``).
        fingerprint: Static-context fingerprint the handle was created for.
        expires_at: Epoch seconds after which the handle is not reused.
        created_at: Epoch seconds when creation started.
        model: Model the cache belongs to.
    """

    agent_id: str
    handle: str
    fingerprint: str
    expires_at: float
    created_at: float
    model: str = ""

    def is_valid(self, fingerprint: str, now: float) -> bool:
        return self.fingerprint == fingerprint and now < self.expires_at


@dataclass(frozen=True)
class InFlightCreation:
    """Marker for a creation currently running for an agent."""

    fingerprint: str
    task: asyncio.Task


class CacheStore:
    def __init__(self) -> None:
        self._entries: dict[str, AgentCacheEntry] = {}
        self._inflight: dict[str, InFlightCreation] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = {}

    @asynccontextmanager
    async def locked(self, agent_id: str) -> AsyncIterator[None]:
        """Hold the agent's lock; the lock is dropped when its last user leaves."""
        lock = self._locks.get(agent_id)
        if lock is None:
            lock = self._locks[agent_id] = asyncio.Lock()
        self._lock_users[agent_id] = self._lock_users.get(agent_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            users = self._lock_users[agent_id] - 1
            if users:
                self._lock_users[agent_id] = users
            else:
                del self._lock_users[agent_id]
                del self._locks[agent_id]

    @property
    def active_locks(self) -> int:
        return len(self._locks)

    def get(self, agent_id: str) -> AgentCacheEntry | None:
        return self._entries.get(agent_id)

    def put(self, entry: AgentCacheEntry) -> None:
        """Replace the agent's entry (at most one per agent)."""
        self._entries[entry.agent_id] = entry

    def invalidate(self, agent_id: str) -> bool:
        return self._entries.pop(agent_id, None) is not None

    def clear(self) -> None:
        self._entries.clear()

    def inflight(self, agent_id: str) -> InFlightCreation | None:
        return self._inflight.get(agent_id)

    def set_inflight(self, agent_id: str, creation: InFlightCreation) -> None:
        self._inflight[agent_id] = creation

    def clear_inflight(self, agent_id: str, task: asyncio.Task | None) -> None:
        current = self._inflight.get(agent_id)
        if current is not None and current.task is task:
            del self._inflight[agent_id]

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, agent_id: object) -> bool:
        return agent_id in self._entries


__all__ = ["AgentCacheEntry", "CacheStore", "InFlightCreation"]
