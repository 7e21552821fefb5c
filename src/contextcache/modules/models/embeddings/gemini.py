"""Gemini embeddings via the google-genai SDK."""

from __future__ import annotations

import logging
import math

from contextcache.core.config import Config

from ..base import BaseEmbeddings
from ..registry import model_registry
from ..types import EmbeddingKey, Vector

logger = logging.getLogger(__name__)


def l2_normalize(vec: Vector) -> Vector:
    norm = math.sqrt(sum(x * x for x in vec))
    if norm == 0:
        return vec
    return [x / norm for x in vec]


@model_registry.register_embeddings("gemini")
class GeminiEmbeddings(BaseEmbeddings):
    """Gemini ``embed_content`` with a fixed ``output_dimensionality``.

    Documents are embedded as ``RETRIEVAL_DOCUMENT`` and queries as
    ``RETRIEVAL_QUERY``. Vectors are L2-normalized when
    ``embeddings.normalize`` is set, since truncated Gemini outputs are not
    unit length and cosine search assumes they are.
    """

    def __init__(self, key: EmbeddingKey, config: Config) -> None:
        from google import genai

        super().__init__(key, config)
        if not key.api_key:
            raise ValueError("GeminiEmbeddings requires an API key")
        self._client = genai.Client(api_key=key.api_key)

    async def _embed(self, texts: list[str], task_type: str) -> list[Vector]:
        from google.genai import types

        resp = await self._client.aio.models.embed_content(
            model=self._key.model,
            contents=texts,
            config=types.EmbedContentConfig(
                task_type=task_type,
                output_dimensionality=self._key.dimensions,
            ),
        )
        vectors = [list(e.values or []) for e in (resp.embeddings or [])]
        if self._cfg.embeddings.normalize:
            vectors = [l2_normalize(v) for v in vectors]
        return vectors

    async def embed_query(self, text: str) -> Vector:
        vectors = await self._embed([text], "RETRIEVAL_QUERY")
        return vectors[0] if vectors else []

    async def embed_documents(self, texts: list[str]) -> list[Vector]:
        return await self._embed(texts, "RETRIEVAL_DOCUMENT")


__all__ = ["GeminiEmbeddings", "l2_normalize"]
