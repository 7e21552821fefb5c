"""contextcache: per-agent provider context caches and rule retrieval.

Typical use from a chat handler:

    service = AgentContextService.from_config()
    turn = await service.prepare_turn(agent_id, static_prompt, tools, allowed, message)
"""

from __future__ import annotations

from .core import (
    Config,
    ConfigurationError,
    ContextcacheError,
    ExternalServiceError,
    RuleNotFoundError,
    ValidationError,
    get_core_config,
    set_core_config,
)
from .modules.cache import AgentCacheEntry, CacheStore, ContextCacheManager
from .modules.models import EmbeddingKey
from .modules.rules import RelevanceRetriever, RelevantRule, RuleWriter, UpsertResult
from .modules.tools import ToolDescriptor, translate_tools
from .service import AgentContextService, TurnContext

__version__ = "0.1.0"

__all__ = [
    "AgentCacheEntry",
    "AgentContextService",
    "CacheStore",
    "Config",
    "ConfigurationError",
    "ContextCacheManager",
    "ContextcacheError",
    "EmbeddingKey",
    "ExternalServiceError",
    "RelevanceRetriever",
    "RelevantRule",
    "RuleNotFoundError",
    "RuleWriter",
    "ToolDescriptor",
    "TurnContext",
    "UpsertResult",
    "ValidationError",
    "get_core_config",
    "set_core_config",
    "translate_tools",
]
