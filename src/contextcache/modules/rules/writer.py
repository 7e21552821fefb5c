"""Rule ingestion (write path).

Unlike retrieval, failures here are reported to the caller: the user asked
for the write. ``upsert`` and ``update`` report them in ``UpsertResult``;
the other operations raise ``ContextcacheError`` subclasses.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from contextcache.core.config import Config
from contextcache.core.exceptions import (
    ConfigurationError,
    ContextcacheError,
    ExternalServiceError,
    RuleNotFoundError,
    ValidationError,
)

from ..models.embedder import Embedder
from ..models.types import EmbeddingKey
from .keys import EmbeddingKeyResolver
from .storage import RuleStore
from .types import AgentRule, UpsertResult, normalize_tags

logger = logging.getLogger(__name__)


class RuleWriter:
    def __init__(
        self,
        config: Config,
        *,
        embedder: Embedder,
        store: RuleStore,
        key_resolver: EmbeddingKeyResolver,
    ) -> None:
        self._cfg = config
        self._embedder = embedder
        self._store = store
        self._keys = key_resolver

    async def upsert(
        self,
        agent_id: str,
        content: str,
        tags: Iterable[str] = (),
        rule_id: str | None = None,
    ) -> UpsertResult:
        """Embed and store a rule; update ``rule_id`` when given, else insert."""
        try:
            new_id = await self._upsert(agent_id, content, tags, rule_id)
        except ContextcacheError as e:
            if not isinstance(e, ValidationError):
                logger.warning(
                    "Rule upsert failed: agent=%s op=%s code=%s error=%s",
                    agent_id,
                    e.operation or "rules.upsert",
                    e.code,
                    e.message,
                )
            return UpsertResult(id=rule_id or "", error=e.message, code=e.code)
        except Exception as e:
            logger.warning(
                "Rule upsert failed: agent=%s op=rules.upsert", agent_id, exc_info=True
            )
            return UpsertResult(
                id=rule_id or "",
                error=str(e) or type(e).__name__,
                code=ExternalServiceError.code,
            )
        return UpsertResult(id=new_id)

    async def _upsert(
        self,
        agent_id: str,
        content: str,
        tags: Iterable[str],
        rule_id: str | None,
    ) -> str:
        if not agent_id or not agent_id.strip():
            raise ValidationError("agent id required", operation="rules.upsert")
        trimmed = (content or "").strip()
        if not trimmed:
            raise ValidationError("content required", agent_id=agent_id, operation="rules.upsert")

        key = await self._require_key(agent_id)
        # Unknown ids are rejected before paying for an embedding.
        if rule_id and await self._store.get(agent_id, rule_id) is None:
            raise RuleNotFoundError("rule not found", agent_id=agent_id, operation="rules.update")

        embedding = await self._embedder.embed_document(trimmed, key)
        clean_tags = normalize_tags(tags)

        if rule_id:
            updated = await self._store.update(
                agent_id, rule_id, content=trimmed, tags=clean_tags, embedding=embedding
            )
            if not updated:
                raise RuleNotFoundError(
                    "rule not found", agent_id=agent_id, operation="rules.update"
                )
            logger.info("Updated rule %s for agent=%s (key=%s)", rule_id, agent_id, key.label)
            return rule_id

        new_id = await self._store.insert(agent_id, trimmed, clean_tags, embedding)
        logger.info("Inserted rule %s for agent=%s (key=%s)", new_id, agent_id, key.label)
        return new_id

    async def _require_key(self, agent_id: str) -> EmbeddingKey:
        key = await self._keys.resolve(agent_id)
        if key is None:
            raise ConfigurationError(
                "no embedding key configured", agent_id=agent_id, operation="rules.upsert"
            )
        return key

    async def update(
        self,
        agent_id: str,
        rule_id: str,
        *,
        content: str | None = None,
        tags: Iterable[str] | None = None,
    ) -> UpsertResult:
        """Partial update: fields left as ``None`` keep their stored values."""
        if content is None and tags is None:
            return UpsertResult(
                id=rule_id, error="no fields to update", code=ValidationError.code
            )
        try:
            existing = await self._store.get(agent_id, rule_id)
        except ContextcacheError as e:
            return UpsertResult(id=rule_id, error=e.message, code=e.code)
        except Exception as e:
            logger.warning(
                "Rule update failed: agent=%s op=rules.get", agent_id, exc_info=True
            )
            return UpsertResult(
                id=rule_id, error=str(e) or type(e).__name__, code=ExternalServiceError.code
            )
        if existing is None:
            return UpsertResult(id=rule_id, error="rule not found", code=RuleNotFoundError.code)

        return await self.upsert(
            agent_id,
            existing.content if content is None else content,
            existing.tags if tags is None else tags,
            rule_id=rule_id,
        )

    async def delete(self, agent_id: str, rule_id: str) -> bool:
        deleted = await self._store.delete(agent_id, rule_id)
        if deleted:
            logger.info("Deleted rule %s for agent=%s", rule_id, agent_id)
        return deleted

    async def set_enabled(self, agent_id: str, rule_id: str, enabled: bool) -> bool:
        return await self._store.set_enabled(agent_id, rule_id, enabled)

    async def list_rules(self, agent_id: str) -> list[AgentRule]:
        return await self._store.list_rules(agent_id)


__all__ = ["RuleWriter"]
