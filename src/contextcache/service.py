"""Agent context service.

Owns one cache store/manager and the rule retriever/writer for a process.
An upstream chat handler calls ``prepare_turn`` once per conversation turn and
combines the result with its own prompt assembly before calling the model.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from contextcache.core.config import Config, get_core_config

from .modules.cache import CacheProvider, CacheStore, Clock, ContextCacheManager
from .modules.models import Embedder
from .modules.rules import (
    ConfigEmbeddingKeyResolver,
    EmbeddingKeyResolver,
    InMemoryRuleStore,
    PostgresRuleStore,
    RelevanceRetriever,
    RelevantRule,
    RuleStore,
    RuleWriter,
    SimilaritySearch,
)
from .modules.tools import ToolDescriptor

logger = logging.getLogger(__name__)

RULES_HEADER = "Rules (follow these):"


@dataclass(frozen=True)
class TurnContext:
    """Static cache handle plus dynamic rules for one turn."""

    cache_handle: str | None = None
    rules: list[RelevantRule] = field(default_factory=list)

    def rules_block(self) -> str:
        if not self.rules:
            return ""
        return RULES_HEADER + "\n" + "\n\n".join(r.content for r in self.rules)


class AgentContextService:
    def __init__(
        self,
        config: Config,
        *,
        rule_store: RuleStore,
        search: SimilaritySearch | None = None,
        cache_provider: CacheProvider | None = None,
        key_resolver: EmbeddingKeyResolver | None = None,
        embedder: Embedder | None = None,
        cache_store: CacheStore | None = None,
        clock: Clock = time.time,
    ) -> None:
        if search is None:
            if not isinstance(rule_store, SimilaritySearch):
                raise TypeError("rule_store does not support similarity search; pass search=")
            search = rule_store

        self._cfg = config
        keys = key_resolver or ConfigEmbeddingKeyResolver(config)
        emb = embedder or Embedder(config)
        self.cache = ContextCacheManager(
            config, provider=cache_provider, store=cache_store or CacheStore(), clock=clock
        )
        self.retriever = RelevanceRetriever(config, embedder=emb, search=search, key_resolver=keys)
        self.writer = RuleWriter(config, embedder=emb, store=rule_store, key_resolver=keys)

    @classmethod
    def from_config(cls, config: Config | None = None) -> "AgentContextService":
        """Build with Postgres rules when ``postgres.dsn`` is set, else in-memory."""
        cfg = config or get_core_config()
        store: RuleStore
        if cfg.postgres.dsn:
            store = PostgresRuleStore(cfg.postgres)
        else:
            logger.info("No postgres.dsn configured, using in-memory rule store")
            store = InMemoryRuleStore()
        return cls(cfg, rule_store=store)

    async def prepare_turn(
        self,
        agent_id: str,
        static_prompt: str,
        tools: Mapping[str, ToolDescriptor],
        allowed_tool_names: Iterable[str] | None,
        user_message: str,
        *,
        model: str | None = None,
        api_key: str | None = None,
        rule_limit: int | None = None,
    ) -> TurnContext:
        """Ensure the static cache and fetch relevant rules concurrently.

        Both halves degrade independently: a missing cache or empty rules never
        fail the turn.
        """
        handle, rules = await asyncio.gather(
            self.cache.get_or_create(
                agent_id,
                static_prompt,
                tools,
                allowed_tool_names,
                model=model,
                api_key=api_key,
            ),
            self.retriever.retrieve(agent_id, user_message, rule_limit),
        )
        return TurnContext(cache_handle=handle, rules=rules)


__all__ = ["AgentContextService", "RULES_HEADER", "TurnContext"]
