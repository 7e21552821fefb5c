"""Agent rule records."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class AgentRule:
    """Stored rule with its embedding.

    The embedding is computed once at write time under the agent's embedding
    key and never recomputed on read.
    """

    id: str
    agent_id: str
    content: str
    tags: list[str] = field(default_factory=list)
    embedding: list[float] = field(default_factory=list, repr=False)
    enabled: bool = True
    priority: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class RelevantRule:
    """Similarity-search hit, best match first in result lists."""

    id: str
    content: str
    tags: tuple[str, ...] = ()
    similarity: float | None = None


@dataclass(frozen=True)
class UpsertResult:
    id: str = ""
    error: str | None = None
    code: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def normalize_tags(tags: Iterable[str] | None) -> list[str]:
    """Trim, lowercase, drop empties and duplicates (first occurrence wins)."""
    out: list[str] = []
    for raw in tags or ():
        tag = str(raw).strip().lower()
        if tag and tag not in out:
            out.append(tag)
    return out


__all__ = ["AgentRule", "RelevantRule", "UpsertResult", "normalize_tags"]
