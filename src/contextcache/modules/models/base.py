"""Base interface for embedding providers."""

from __future__ import annotations

from abc import ABC, abstractmethod

from contextcache.core.config import Config

from .types import EmbeddingKey, Vector


class BaseEmbeddings(ABC):
    """Vectorization model interface.

    Instances are bound to one ``EmbeddingKey``; output order matches input
    order and dimensionality is fixed by the key.
    """

    def __init__(self, key: EmbeddingKey, config: Config) -> None:
        self._key = key
        self._cfg = config

    @property
    def key(self) -> EmbeddingKey:
        return self._key

    @abstractmethod
    async def embed_query(self, text: str) -> Vector:
        raise NotImplementedError

    @abstractmethod
    async def embed_documents(self, texts: list[str]) -> list[Vector]:
        raise NotImplementedError


__all__ = ["BaseEmbeddings"]
