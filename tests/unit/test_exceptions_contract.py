"""Contract tests for the contextcache exception hierarchy.

Verifies that:
1. Every error class has a stable, unique code
2. ErrorRegistry maps codes back to classes
3. Context (agent, operation) travels with the error
"""

from __future__ import annotations

import pytest

from contextcache.core.exceptions import (
    ConfigurationError,
    ContextcacheError,
    ExternalServiceError,
    RuleNotFoundError,
    ValidationError,
    error_registry,
)


def test_error_registry_contains_base_codes() -> None:
    reg = error_registry.all()
    for code in [
        "INTERNAL_ERROR",
        "VALIDATION_ERROR",
        "NOT_FOUND",
        "CONFIGURATION_ERROR",
        "PROVIDER_ERROR",
    ]:
        assert code in reg, f"missing {code} in error_registry"


@pytest.mark.parametrize(
    "cls",
    [ContextcacheError, ValidationError, RuleNotFoundError, ConfigurationError, ExternalServiceError],
)
def test_registry_round_trip(cls) -> None:
    assert error_registry.get(cls.code) is cls


def test_codes_are_unique() -> None:
    codes = [
        cls.code
        for cls in (
            ContextcacheError,
            ValidationError,
            RuleNotFoundError,
            ConfigurationError,
            ExternalServiceError,
        )
    ]
    assert len(codes) == len(set(codes))


def test_not_found_is_a_validation_error() -> None:
    assert issubclass(RuleNotFoundError, ValidationError)


def test_context_is_kept() -> None:
    err = ExternalServiceError("quota exceeded", agent_id="agent-1", operation="cache.create")

    assert str(err) == "quota exceeded"
    assert err.message == "quota exceeded"
    assert err.agent_id == "agent-1"
    assert err.operation == "cache.create"


def test_empty_message_defaults_to_code() -> None:
    assert ConfigurationError().message == "CONFIGURATION_ERROR"


def test_subclass_registers_itself() -> None:
    class QuotaError(ExternalServiceError):
        code = "TEST_QUOTA_ERROR"

    assert error_registry.get("TEST_QUOTA_ERROR") is QuotaError
