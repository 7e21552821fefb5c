"""Embedding key resolution per agent."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping

from contextcache.core.config import Config

from ..models.types import EmbeddingKey

logger = logging.getLogger(__name__)


class EmbeddingKeyResolver(ABC):
    """Resolves the embedding key an agent's rules are embedded under.

    ``None`` means embeddings are not configured for the agent.
    """

    @abstractmethod
    async def resolve(self, agent_id: str) -> EmbeddingKey | None:
        raise NotImplementedError


class ConfigEmbeddingKeyResolver(EmbeddingKeyResolver):
    """Same key for every agent, taken from configuration.

    With ``embeddings.provider`` unset, OpenAI wins when its key is present,
    then Gemini.
    """

    def __init__(self, config: Config) -> None:
        self._cfg = config

    async def resolve(self, agent_id: str) -> EmbeddingKey | None:
        emb = self._cfg.embeddings
        provider = emb.provider
        if not provider:
            if self._cfg.openai.api_key:
                provider = "openai"
            elif self._cfg.gemini.api_key:
                provider = "gemini"
            else:
                return None

        if provider == "openai":
            api_key, model = self._cfg.openai.api_key, emb.openai_model
        else:
            api_key, model = self._cfg.gemini.api_key, emb.gemini_model
        if not api_key:
            logger.debug("No %s API key configured (agent=%s)", provider, agent_id)
            return None
        return EmbeddingKey(
            provider=provider, model=model, api_key=api_key, dimensions=emb.dimensions
        )


class StaticEmbeddingKeyResolver(EmbeddingKeyResolver):
    """Explicit agent → key mapping with an optional default."""

    def __init__(
        self,
        keys: Mapping[str, EmbeddingKey] | None = None,
        *,
        default: EmbeddingKey | None = None,
    ) -> None:
        self._keys = dict(keys or {})
        self._default = default

    async def resolve(self, agent_id: str) -> EmbeddingKey | None:
        return self._keys.get(agent_id, self._default)


__all__ = [
    "ConfigEmbeddingKeyResolver",
    "EmbeddingKeyResolver",
    "StaticEmbeddingKeyResolver",
]
