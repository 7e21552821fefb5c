"""Embedding client wrapper.

Single call surface used by retrieval and ingestion. Resolves the provider for
an ``EmbeddingKey`` through the model registry, batches requests, applies the
configured timeout and checks that every vector has the key's dimensionality.
All provider failures surface as ``ExternalServiceError``.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

from contextcache.core.config import Config
from contextcache.core.exceptions import ExternalServiceError

from .base import BaseEmbeddings
from .registry import ModelRegistry, model_registry
from .types import EmbeddingKey, Vector

logger = logging.getLogger(__name__)

EmbeddingsFactory = Callable[[EmbeddingKey], BaseEmbeddings]


class Embedder:
    def __init__(
        self,
        config: Config,
        *,
        registry: ModelRegistry | None = None,
        factory: EmbeddingsFactory | None = None,
    ) -> None:
        self._cfg = config
        self._registry = registry or model_registry
        self._factory = factory
        self._providers: dict[EmbeddingKey, BaseEmbeddings] = {}

    def _provider(self, key: EmbeddingKey) -> BaseEmbeddings:
        provider = self._providers.get(key)
        if provider is None:
            if self._factory is not None:
                provider = self._factory(key)
            else:
                provider = self._registry.create_embeddings(key, config=self._cfg)
            self._providers[key] = provider
        return provider

    async def embed(self, texts: list[str], key: EmbeddingKey) -> list[Vector]:
        """Embed documents; output order matches ``texts``."""
        if not texts:
            return []
        batch_size = self._cfg.embeddings.batch_size
        out: list[Vector] = []
        for start in range(0, len(texts), batch_size):
            batch = texts[start : start + batch_size]
            vectors = await self._call(
                lambda p, b=batch: p.embed_documents(b), key, op="embed_documents"
            )
            if len(vectors) != len(batch):
                raise ExternalServiceError(
                    f"embedding provider returned {len(vectors)} vectors for {len(batch)} texts",
                    operation="embed_documents",
                )
            out.extend(self._checked(v, key) for v in vectors)
        return out

    async def embed_query(self, text: str, key: EmbeddingKey) -> Vector:
        """Embed a single query string."""
        vector = await self._call(lambda p: p.embed_query(text), key, op="embed_query")
        return self._checked(vector, key)

    async def embed_document(self, text: str, key: EmbeddingKey) -> Vector:
        vectors = await self.embed([text], key)
        return vectors[0]

    async def _call(self, fn, key: EmbeddingKey, *, op: str):
        try:
            provider = self._provider(key)
            return await asyncio.wait_for(fn(provider), timeout=self._cfg.embeddings.timeout_sec)
        except ExternalServiceError:
            raise
        except TimeoutError as e:
            raise ExternalServiceError(
                f"{op} timed out after {self._cfg.embeddings.timeout_sec}s ({key.label})",
                operation=op,
            ) from e
        except Exception as e:
            raise ExternalServiceError(f"{op} failed ({key.label}): {e}", operation=op) from e

    def _checked(self, vector: Vector, key: EmbeddingKey) -> Vector:
        if not vector:
            raise ExternalServiceError(f"empty embedding ({key.label})", operation="embed")
        if len(vector) != key.dimensions:
            raise ExternalServiceError(
                f"embedding has {len(vector)} dimensions, expected {key.dimensions} ({key.label})",
                operation="embed",
            )
        return [float(x) for x in vector]


__all__ = ["Embedder", "EmbeddingsFactory"]
