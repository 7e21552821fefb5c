"""Agent rules: embedding-backed storage, retrieval and ingestion."""

from __future__ import annotations

from .keys import ConfigEmbeddingKeyResolver, EmbeddingKeyResolver, StaticEmbeddingKeyResolver
from .postgres import PostgresRuleStore
from .retriever import RelevanceRetriever
from .storage import InMemoryRuleStore, RuleStore, SimilaritySearch
from .types import AgentRule, RelevantRule, UpsertResult, normalize_tags
from .writer import RuleWriter

__all__ = [
    "AgentRule",
    "ConfigEmbeddingKeyResolver",
    "EmbeddingKeyResolver",
    "InMemoryRuleStore",
    "PostgresRuleStore",
    "RelevanceRetriever",
    "RelevantRule",
    "RuleStore",
    "RuleWriter",
    "SimilaritySearch",
    "StaticEmbeddingKeyResolver",
    "UpsertResult",
    "normalize_tags",
]
