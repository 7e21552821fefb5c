"""Context cache, embedding and retrieval configuration."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

EmbeddingProviderName = Literal["", "openai", "gemini"]


class ContextCacheConfig(BaseModel):
    """Explicit context cache lifetime controls.

    ``reuse_seconds`` is the window during which a created handle is reused
    locally. It must stay below ``ttl_seconds`` so handles are refreshed before
    the provider expires them server-side.
    """

    model_config = ConfigDict(extra="ignore")

    ttl_seconds: int = Field(default=3600, gt=0)
    reuse_seconds: int = Field(default=3000, gt=0)
    create_timeout_sec: float = Field(default=8.0, gt=0)
    display_name_prefix: str = "agent"
    # Agents without enabled tools are not cached unless this is set.
    cache_without_tools: bool = False

    @model_validator(mode="after")
    def _reuse_below_ttl(self) -> "ContextCacheConfig":
        if self.reuse_seconds >= self.ttl_seconds:
            raise ValueError(
                f"cache.reuse_seconds ({self.reuse_seconds}) must be less than "
                f"cache.ttl_seconds ({self.ttl_seconds})"
            )
        return self


class EmbeddingsConfig(BaseModel):
    model_config = ConfigDict(extra="ignore")

    # Empty means "first configured credential wins" (openai, then gemini).
    provider: EmbeddingProviderName = ""
    openai_model: str = "text-embedding-3-small"
    gemini_model: str = "gemini-embedding-001"
    dimensions: int = Field(default=1536, gt=0)
    batch_size: int = Field(default=20, gt=0)
    timeout_sec: float = Field(default=5.0, gt=0)
    # Gemini vectors truncated below their native size are not unit length.
    normalize: bool = True


class RetrievalConfig(BaseModel):
    model_config = ConfigDict(extra="ignore")

    match_count: int = Field(default=5, gt=0)
    max_match_count: int = Field(default=20, gt=0)
    timeout_sec: float = Field(default=5.0, gt=0)
