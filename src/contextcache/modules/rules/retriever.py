"""Relevance retrieval of agent rules for a user message.

Best-effort: every failure is logged and returns ``[]`` so the chat turn
continues without extra rules.
"""

from __future__ import annotations

import asyncio
import logging

from contextcache.core.config import Config
from contextcache.core.exceptions import ContextcacheError

from ..models.embedder import Embedder
from .keys import EmbeddingKeyResolver
from .storage import SimilaritySearch
from .types import RelevantRule

logger = logging.getLogger(__name__)


class RelevanceRetriever:
    def __init__(
        self,
        config: Config,
        *,
        embedder: Embedder,
        search: SimilaritySearch,
        key_resolver: EmbeddingKeyResolver,
    ) -> None:
        self._cfg = config
        self._embedder = embedder
        self._search = search
        self._keys = key_resolver

    def _match_count(self, limit: int | None) -> int:
        requested = self._cfg.retrieval.match_count if limit is None else int(limit)
        return min(requested, self._cfg.retrieval.max_match_count)

    async def retrieve(
        self, agent_id: str, query_text: str, limit: int | None = None
    ) -> list[RelevantRule]:
        """Top rules for ``query_text`` in the provider's order (best first).

        Args:
            agent_id: Scope of the search.
            query_text: Usually the user's latest message.
            limit: Max results (default ``retrieval.match_count``), capped at
                ``retrieval.max_match_count``. Zero or less returns ``[]``.
        """
        query = (query_text or "").strip()
        match_count = self._match_count(limit)
        if not query or match_count <= 0:
            return []

        try:
            key = await self._keys.resolve(agent_id)
        except Exception:
            logger.warning(
                "Rule retrieval skipped: agent=%s op=resolve_key", agent_id, exc_info=True
            )
            return []
        if key is None:
            logger.debug("Rule retrieval disabled: no embedding key for agent=%s", agent_id)
            return []

        try:
            vector = await self._embedder.embed_query(query, key)
            rules = await asyncio.wait_for(
                self._search.search(agent_id, vector, match_count),
                timeout=self._cfg.retrieval.timeout_sec,
            )
        except ContextcacheError as e:
            logger.warning(
                "Rule retrieval failed: agent=%s op=%s error=%s",
                agent_id,
                e.operation or "rules.search",
                e.message,
            )
            return []
        except TimeoutError:
            logger.warning(
                "Rule retrieval timed out: agent=%s op=rules.search timeout=%ss",
                agent_id,
                self._cfg.retrieval.timeout_sec,
            )
            return []
        except Exception:
            logger.warning(
                "Rule retrieval failed: agent=%s op=rules.search", agent_id, exc_info=True
            )
            return []

        if not isinstance(rules, list):
            logger.warning(
                "Rule retrieval got malformed result: agent=%s type=%s",
                agent_id,
                type(rules).__name__,
            )
            return []
        return rules[:match_count]


__all__ = ["RelevanceRetriever"]
