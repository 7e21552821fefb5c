"""Core building blocks: configuration and the exception hierarchy."""

from __future__ import annotations

from .config import Config, get_core_config, set_core_config
from .exceptions import (
    ConfigurationError,
    ContextcacheError,
    ExternalServiceError,
    RuleNotFoundError,
    ValidationError,
)

__all__ = [
    "Config",
    "ConfigurationError",
    "ContextcacheError",
    "ExternalServiceError",
    "RuleNotFoundError",
    "ValidationError",
    "get_core_config",
    "set_core_config",
]
