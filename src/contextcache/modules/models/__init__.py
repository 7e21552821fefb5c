"""Model layer (embeddings) decoupled from retrieval and ingestion."""

from __future__ import annotations

from .base import BaseEmbeddings
from .embedder import Embedder
from .registry import ModelRegistry, model_registry
from .types import EmbeddingKey, Vector

__all__ = [
    "BaseEmbeddings",
    "Embedder",
    "EmbeddingKey",
    "ModelRegistry",
    "Vector",
    "model_registry",
]
