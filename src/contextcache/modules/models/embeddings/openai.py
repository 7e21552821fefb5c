"""OpenAI embeddings via langchain-openai."""

from __future__ import annotations

from contextcache.core.config import Config

from ..base import BaseEmbeddings
from ..registry import model_registry
from ..types import EmbeddingKey, Vector


@model_registry.register_embeddings("openai")
class OpenAIEmbeddings(BaseEmbeddings):
    """Thin adapter over ``langchain_openai.OpenAIEmbeddings``."""

    def __init__(self, key: EmbeddingKey, config: Config) -> None:
        from langchain_openai import OpenAIEmbeddings as _LCOpenAIEmbeddings

        super().__init__(key, config)
        if not key.api_key:
            raise ValueError("OpenAIEmbeddings requires an API key")

        kwargs: dict[str, object] = {
            "model": key.model,
            "api_key": key.api_key,
            "timeout": config.embeddings.timeout_sec,
            "max_retries": 1,
        }
        # Only the text-embedding-3 family accepts a reduced dimensionality.
        if key.model.startswith("text-embedding-3"):
            kwargs["dimensions"] = key.dimensions
        if config.openai.organization:
            kwargs["organization"] = config.openai.organization
        self._model = _LCOpenAIEmbeddings(**kwargs)

    async def embed_query(self, text: str) -> Vector:
        return await self._model.aembed_query(text)

    async def embed_documents(self, texts: list[str]) -> list[Vector]:
        return await self._model.aembed_documents(texts)


__all__ = ["OpenAIEmbeddings"]
