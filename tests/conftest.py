"""Shared fakes for provider-free tests."""

from __future__ import annotations

import asyncio

import pytest

from contextcache.core.config import Config
from contextcache.modules.cache import CacheCreateRequest, CacheProvider
from contextcache.modules.models import BaseEmbeddings, EmbeddingKey


class FakeClock:
    def __init__(self, now: float = 1_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeCacheProvider(CacheProvider):
    """Records requests and returns h1, h2, ... ; optional gate/delay/failure."""

    def __init__(self, *, fail: Exception | None = None, delay: float = 0.0) -> None:
        self.requests: list[CacheCreateRequest] = []
        self.fail = fail
        self.delay = delay
        self.gate: asyncio.Event | None = None

    @property
    def calls(self) -> int:
        return len(self.requests)

    async def create(self, request: CacheCreateRequest) -> str:
        self.requests.append(request)
        if self.gate is not None:
            await self.gate.wait()
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail is not None:
            raise self.fail
        return f"h{len(self.requests)}"


class KeywordEmbeddings(BaseEmbeddings):
    """Deterministic embeddings: one dimension per vocabulary word."""

    VOCAB = ("refund", "shipping", "price", "greeting", "discount", "delivery", "hello")

    def __init__(self, key: EmbeddingKey, config: Config | None = None) -> None:
        super().__init__(key, config or Config())
        self.query_calls: list[str] = []
        self.document_calls: list[list[str]] = []

    def vector(self, text: str) -> list[float]:
        lowered = text.lower()
        vec = [1.0 if word in lowered else 0.0 for word in self.VOCAB]
        vec += [0.0] * (self.key.dimensions - len(vec))
        # Keep every vector non-zero so cosine similarity is defined.
        vec[-1] += 0.01
        return vec[: self.key.dimensions]

    async def embed_query(self, text: str) -> list[float]:
        self.query_calls.append(text)
        return self.vector(text)

    async def embed_documents(self, texts: list[str]) -> list[list[float]]:
        self.document_calls.append(list(texts))
        return [self.vector(t) for t in texts]


@pytest.fixture
def config() -> Config:
    return Config.model_validate(
        {
            "gemini": {"api_key": "test-gemini-key", "cache_model": "gemini-test"},
            "embeddings": {"dimensions": 8},
        }
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache_provider() -> FakeCacheProvider:
    return FakeCacheProvider()


@pytest.fixture
def embedding_key() -> EmbeddingKey:
    return EmbeddingKey(provider="openai", model="text-embedding-3-small", api_key="sk-test", dimensions=8)
