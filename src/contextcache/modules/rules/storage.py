"""Rule storage and similarity-search interfaces, plus an in-memory backend."""

from __future__ import annotations

import asyncio
import math
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone

from ..models.types import Vector
from .types import AgentRule, RelevantRule


class SimilaritySearch(ABC):
    """Top-K rule lookup by query vector.

    Implementations return at most ``match_count`` enabled rules of the given
    scope (agent), best match first. Callers treat that order as final.
    """

    @abstractmethod
    async def search(
        self, scope: str, query_vector: Vector, match_count: int
    ) -> list[RelevantRule]:
        raise NotImplementedError


class RuleStore(ABC):
    """CRUD over agent rules; every operation is scoped by ``agent_id``."""

    @abstractmethod
    async def insert(
        self,
        agent_id: str,
        content: str,
        tags: list[str],
        embedding: Vector,
        *,
        priority: int = 0,
    ) -> str:
        """Insert an enabled rule and return its new id."""
        raise NotImplementedError

    @abstractmethod
    async def update(
        self,
        agent_id: str,
        rule_id: str,
        *,
        content: str,
        tags: list[str],
        embedding: Vector,
    ) -> bool:
        """Replace content/tags/embedding. False when the rule does not exist."""
        raise NotImplementedError

    @abstractmethod
    async def get(self, agent_id: str, rule_id: str) -> AgentRule | None:
        raise NotImplementedError

    @abstractmethod
    async def delete(self, agent_id: str, rule_id: str) -> bool:
        raise NotImplementedError

    @abstractmethod
    async def set_enabled(self, agent_id: str, rule_id: str, enabled: bool) -> bool:
        raise NotImplementedError

    @abstractmethod
    async def list_rules(self, agent_id: str) -> list[AgentRule]:
        """Rules ordered by priority (desc), then creation time (asc)."""
        raise NotImplementedError


def cosine_similarity(a: Vector, b: Vector) -> float:
    if len(a) != len(b):
        raise ValueError(f"vector dimensions differ: {len(a)} != {len(b)}")
    dot = sum(x * y for x, y in zip(a, b))
    na = math.sqrt(sum(x * x for x in a))
    nb = math.sqrt(sum(y * y for y in b))
    if na == 0 or nb == 0:
        return 0.0
    return dot / (na * nb)


class InMemoryRuleStore(RuleStore, SimilaritySearch):
    """Process-local rule store with brute-force cosine search.

    Intended for local development and tests; data is lost on restart.
    """

    def __init__(self) -> None:
        self._rules: dict[str, AgentRule] = {}
        self._lock = asyncio.Lock()

    async def insert(
        self,
        agent_id: str,
        content: str,
        tags: list[str],
        embedding: Vector,
        *,
        priority: int = 0,
    ) -> str:
        async with self._lock:
            rule_id = str(uuid.uuid4())
            now = datetime.now(timezone.utc)
            self._rules[rule_id] = AgentRule(
                id=rule_id,
                agent_id=agent_id,
                content=content,
                tags=list(tags),
                embedding=list(embedding),
                priority=priority,
                created_at=now,
                updated_at=now,
            )
            return rule_id

    async def update(
        self,
        agent_id: str,
        rule_id: str,
        *,
        content: str,
        tags: list[str],
        embedding: Vector,
    ) -> bool:
        async with self._lock:
            rule = self._rules.get(rule_id)
            if rule is None or rule.agent_id != agent_id:
                return False
            rule.content = content
            rule.tags = list(tags)
            rule.embedding = list(embedding)
            rule.updated_at = datetime.now(timezone.utc)
            return True

    async def get(self, agent_id: str, rule_id: str) -> AgentRule | None:
        rule = self._rules.get(rule_id)
        if rule is None or rule.agent_id != agent_id:
            return None
        return rule

    async def delete(self, agent_id: str, rule_id: str) -> bool:
        async with self._lock:
            rule = self._rules.get(rule_id)
            if rule is None or rule.agent_id != agent_id:
                return False
            del self._rules[rule_id]
            return True

    async def set_enabled(self, agent_id: str, rule_id: str, enabled: bool) -> bool:
        async with self._lock:
            rule = self._rules.get(rule_id)
            if rule is None or rule.agent_id != agent_id:
                return False
            rule.enabled = enabled
            rule.updated_at = datetime.now(timezone.utc)
            return True

    async def list_rules(self, agent_id: str) -> list[AgentRule]:
        rules = [r for r in self._rules.values() if r.agent_id == agent_id]
        # Insertion order breaks creation-time ties (sort is stable).
        rules.sort(key=lambda r: r.created_at or datetime.min.replace(tzinfo=timezone.utc))
        rules.sort(key=lambda r: r.priority, reverse=True)
        return rules

    async def search(
        self, scope: str, query_vector: Vector, match_count: int
    ) -> list[RelevantRule]:
        scored: list[tuple[float, AgentRule]] = []
        for rule in self._rules.values():
            if rule.agent_id != scope or not rule.enabled or not rule.embedding:
                continue
            scored.append((cosine_similarity(rule.embedding, query_vector), rule))
        scored.sort(key=lambda item: item[0], reverse=True)
        return [
            RelevantRule(id=r.id, content=r.content, tags=tuple(r.tags), similarity=score)
            for score, r in scored[: max(0, match_count)]
        ]


__all__ = [
    "InMemoryRuleStore",
    "RuleStore",
    "SimilaritySearch",
    "cosine_similarity",
]
