"""Shared model-layer types."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class EmbeddingKey:
    """Provider + model + credential combination that produced a vector.

    Vectors are only comparable when produced under the same key. The API key
    is excluded from ``repr`` so keys can be logged safely.
    """

    provider: str
    model: str
    api_key: str = field(default="", repr=False)
    dimensions: int = 1536

    @property
    def label(self) -> str:
        return f"{self.provider}/{self.model}@{self.dimensions}"


Vector = list[float]

__all__ = ["EmbeddingKey", "Vector"]
