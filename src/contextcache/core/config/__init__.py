"""Modular configuration system for contextcache."""

from .base import (
    get_bool_env,
    get_env,
    get_float_env,
    get_int_env,
)
from .main import (
    Config,
    get_core_config,
    set_core_config,
)
from .models import (
    ContextCacheConfig,
    EmbeddingsConfig,
    RetrievalConfig,
)
from .providers import (
    GeminiConfig,
    OpenAIConfig,
    PostgresConfig,
)

__all__ = [
    # Main classes
    "Config",
    # Main functions
    "get_core_config",
    "set_core_config",
    # Base utilities
    "get_env",
    "get_bool_env",
    "get_int_env",
    "get_float_env",
    # Subsystem configs
    "ContextCacheConfig",
    "EmbeddingsConfig",
    "RetrievalConfig",
    # Provider configs
    "GeminiConfig",
    "OpenAIConfig",
    "PostgresConfig",
]
