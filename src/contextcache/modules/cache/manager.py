"""Per-agent context cache manager.

Ensures each agent has a valid provider-side cache for its static context
(system prompt + tool declarations) and reuses it across turns.

Rules:
- A stored entry is reused while ``now < expires_at`` and its fingerprint
  matches the caller's current prompt, tools and model. Reuse makes no
  external call.
- Entries expire locally after ``cache.reuse_seconds``, which is shorter than
  the provider TTL, so a handle is never used after the provider dropped it.
- Concurrent misses for one agent share a single creation (single-flight).
  The creation runs as its own task: a cancelled caller does not cancel it,
  and its result still populates the store.
- Every failure is logged and reported as ``None``; callers continue the turn
  without a cache.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Iterable, Mapping
from typing import Callable

from contextcache.core.config import Config
from contextcache.core.exceptions import ConfigurationError, ContextcacheError, ExternalServiceError

from ..tools.schema import ToolDescriptor, translate_tools
from .fingerprint import static_context_fingerprint
from .providers import CacheCreateRequest, CacheProvider, GeminiCacheProvider
from .store import AgentCacheEntry, CacheStore, InFlightCreation

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


class ContextCacheManager:
    """Get-or-create for per-agent context cache handles."""

    def __init__(
        self,
        config: Config,
        *,
        provider: CacheProvider | None = None,
        store: CacheStore | None = None,
        clock: Clock = time.time,
    ) -> None:
        cache_cfg = config.cache
        if cache_cfg.reuse_seconds >= cache_cfg.ttl_seconds:
            raise ValueError("cache.reuse_seconds must be less than cache.ttl_seconds")
        self._cfg = config
        self._provider = provider or GeminiCacheProvider()
        self._store = store or CacheStore()
        self._clock = clock

    @property
    def store(self) -> CacheStore:
        return self._store

    async def get_or_create(
        self,
        agent_id: str,
        static_prompt: str,
        tools: Mapping[str, ToolDescriptor],
        allowed_tool_names: Iterable[str] | None = None,
        *,
        model: str | None = None,
        api_key: str | None = None,
    ) -> str | None:
        """Return a valid cache handle for the agent, creating one if needed.

        Args:
            agent_id: Agent identifier (store key).
            static_prompt: System instruction to cache.
            tools: Tool registry (name → descriptor).
            allowed_tool_names: Tools enabled for this agent; ``None`` = all.
            model: Model the cache is created for (default ``gemini.cache_model``).
            api_key: Provider credential (default ``gemini.api_key``).

        Returns:
            Provider cache handle, or ``None`` when no cache is available.
        """
        if not agent_id or not agent_id.strip():
            logger.warning("Context cache skipped: empty agent_id")
            return None

        model_name = (model or "").strip() or self._cfg.gemini.cache_model
        names = list(tools) if allowed_tool_names is None else list(allowed_tool_names)
        fingerprint = static_context_fingerprint(static_prompt, names, model=model_name)

        while True:
            entry = self._store.get(agent_id)
            if entry is not None and entry.is_valid(fingerprint, self._clock()):
                logger.debug("Context cache hit: agent=%s handle=%s", agent_id, entry.handle)
                return entry.handle

            async with self._store.locked(agent_id):
                # Double-check after acquiring lock
                entry = self._store.get(agent_id)
                if entry is not None and entry.is_valid(fingerprint, self._clock()):
                    return entry.handle

                creation = self._store.inflight(agent_id)
                if creation is None:
                    task = asyncio.ensure_future(
                        self._create_and_commit(
                            agent_id,
                            fingerprint,
                            static_prompt,
                            tools,
                            names,
                            model_name,
                            api_key,
                        )
                    )
                    creation = InFlightCreation(fingerprint=fingerprint, task=task)
                    self._store.set_inflight(agent_id, creation)

            if creation.fingerprint != fingerprint:
                # A creation for an older/newer static context is running:
                # let it settle, then re-evaluate against the store.
                await asyncio.wait([creation.task])
                continue

            created = await asyncio.shield(creation.task)
            return created.handle if created is not None else None

    async def _create_and_commit(
        self,
        agent_id: str,
        fingerprint: str,
        static_prompt: str,
        tools: Mapping[str, ToolDescriptor],
        names: list[str],
        model: str,
        api_key: str | None,
    ) -> AgentCacheEntry | None:
        task = asyncio.current_task()
        entry: AgentCacheEntry | None = None
        try:
            entry = await self._create(
                agent_id, fingerprint, static_prompt, tools, names, model, api_key
            )
        except ContextcacheError as e:
            logger.warning(
                "Context cache unavailable: agent=%s op=%s error=%s",
                agent_id,
                e.operation or "cache.create",
                e.message,
            )
        except Exception:
            logger.warning(
                "Context cache creation failed: agent=%s op=cache.create",
                agent_id,
                exc_info=True,
            )
        finally:
            async with self._store.locked(agent_id):
                if entry is not None:
                    self._store.put(entry)
                self._store.clear_inflight(agent_id, task)
        return entry

    async def _create(
        self,
        agent_id: str,
        fingerprint: str,
        static_prompt: str,
        tools: Mapping[str, ToolDescriptor],
        names: list[str],
        model: str,
        api_key: str | None,
    ) -> AgentCacheEntry | None:
        cache_cfg = self._cfg.cache

        declarations = await translate_tools(tools, names)
        if not declarations and not cache_cfg.cache_without_tools:
            logger.debug("Context cache skipped: agent=%s has no enabled tools", agent_id)
            return None

        credential = (api_key or "").strip() or self._cfg.gemini.api_key
        if not credential:
            raise ConfigurationError(
                "no credential configured for context caching",
                agent_id=agent_id,
                operation="cache.create",
            )

        request = CacheCreateRequest(
            model=model,
            credential=credential,
            system_instruction=static_prompt,
            tool_declarations=declarations,
            ttl_seconds=cache_cfg.ttl_seconds,
            display_name=f"{cache_cfg.display_name_prefix}-{agent_id}",
        )

        started = self._clock()
        try:
            handle = await asyncio.wait_for(
                self._provider.create(request), timeout=cache_cfg.create_timeout_sec
            )
        except TimeoutError as e:
            raise ExternalServiceError(
                f"cache create timed out after {cache_cfg.create_timeout_sec}s",
                agent_id=agent_id,
                operation="cache.create",
            ) from e
        if not handle:
            raise ExternalServiceError(
                "cache create returned no handle", agent_id=agent_id, operation="cache.create"
            )

        entry = AgentCacheEntry(
            agent_id=agent_id,
            handle=handle,
            fingerprint=fingerprint,
            # Measured from before the call, so the handle stops being reused
            # strictly before the provider TTL elapses.
            expires_at=started + cache_cfg.reuse_seconds,
            created_at=started,
            model=model,
        )
        logger.info(
            "Created context cache: agent=%s handle=%s tools=%d reuse=%ds",
            agent_id,
            handle,
            len(declarations),
            cache_cfg.reuse_seconds,
        )
        return entry

    def peek(self, agent_id: str) -> AgentCacheEntry | None:
        """Current stored entry for the agent, valid or not."""
        return self._store.get(agent_id)

    def invalidate(self, agent_id: str) -> None:
        """Drop an agent's entry, forcing re-creation on next access."""
        self._store.invalidate(agent_id)

    def invalidate_all(self) -> None:
        """Clear every entry."""
        self._store.clear()


__all__ = ["Clock", "ContextCacheManager"]
