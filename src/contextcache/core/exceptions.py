"""Exception hierarchy for contextcache.

Every error class carries a stable ``code`` and is recorded in
``error_registry`` so callers can map failures without importing classes.

Propagation policy:
- Caching and retrieval are best-effort; their components catch these errors,
  log them and degrade (``None`` / ``[]``).
- The rule write path surfaces them to the caller.

Usage:
    from contextcache.core.exceptions import ConfigurationError, error_registry
"""

from __future__ import annotations


class ErrorRegistry:
    """Code → exception class lookup."""

    def __init__(self) -> None:
        self._by_code: dict[str, type[ContextcacheError]] = {}

    def register(self, cls: type[ContextcacheError]) -> None:
        self._by_code.setdefault(cls.code, cls)

    def get(self, code: str) -> type[ContextcacheError] | None:
        return self._by_code.get(code)

    def all(self) -> dict[str, type[ContextcacheError]]:
        return dict(self._by_code)


error_registry = ErrorRegistry()


class ContextcacheError(Exception):
    """Base exception for contextcache.

    Attributes:
        code: Stable machine-readable error code.
        agent_id: Agent the failing operation ran for, when known.
        operation: Short operation name (e.g. ``cache.create``).
    """

    code: str = "INTERNAL_ERROR"

    def __init__(
        self,
        message: str = "",
        *,
        agent_id: str | None = None,
        operation: str | None = None,
    ) -> None:
        super().__init__(message or self.code)
        self.message = message or self.code
        self.agent_id = agent_id
        self.operation = operation

    def __init_subclass__(cls, **kwargs: object) -> None:
        super().__init_subclass__(**kwargs)
        error_registry.register(cls)


class ValidationError(ContextcacheError):
    """Malformed or empty caller input, rejected before any external call."""

    code = "VALIDATION_ERROR"


class RuleNotFoundError(ValidationError):
    """Rule id does not exist for the given agent."""

    code = "NOT_FOUND"


class ConfigurationError(ContextcacheError):
    """A required credential or embedding key is missing."""

    code = "CONFIGURATION_ERROR"


class ExternalServiceError(ContextcacheError):
    """Provider call failed, timed out or returned an unparseable response."""

    code = "PROVIDER_ERROR"


error_registry.register(ContextcacheError)


__all__ = [
    "ConfigurationError",
    "ContextcacheError",
    "ErrorRegistry",
    "ExternalServiceError",
    "RuleNotFoundError",
    "ValidationError",
    "error_registry",
]
