"""Tests for layered configuration (defaults < TOML < env)."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from contextcache.core.config import Config, ContextCacheConfig, get_env, get_int_env

_ENV_VARS = [
    "GEMINI_API_KEY",
    "OPENAI_API_KEY",
    "CONTEXTCACHE_CONFIG_PATH",
    "CONTEXTCACHE_CACHE_TTL_SECONDS",
    "CONTEXTCACHE_CACHE_REUSE_SECONDS",
    "CONTEXTCACHE_POSTGRES_DSN",
    "CONTEXTCACHE_EMBEDDINGS_PROVIDER",
    "CONTEXTCACHE_RETRIEVAL_MATCH_COUNT",
    "CONTEXTCACHE_CACHE_WITHOUT_TOOLS",
]


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    # Keep a developer's settings.toml / .env out of the way.
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr("contextcache.core.config.main.load_dotenv", lambda: False)
    return monkeypatch


class TestDefaults:
    def test_cache_window(self):
        cfg = Config()
        assert cfg.cache.ttl_seconds == 3600
        assert cfg.cache.reuse_seconds == 3000
        assert cfg.cache.cache_without_tools is False

    def test_embeddings_and_retrieval(self):
        cfg = Config()
        assert cfg.embeddings.dimensions == 1536
        assert cfg.embeddings.batch_size == 20
        assert cfg.retrieval.match_count == 5
        assert cfg.retrieval.max_match_count == 20

    def test_reuse_must_be_below_ttl(self):
        with pytest.raises(ValidationError):
            ContextCacheConfig(ttl_seconds=600, reuse_seconds=600)

    def test_unknown_keys_ignored(self):
        cfg = Config.model_validate({"cache": {"ttl_seconds": 7200, "legacy": 1}, "extra": True})
        assert cfg.cache.ttl_seconds == 7200


class TestLoad:
    def test_toml_then_env(self, clean_env, tmp_path):
        toml = tmp_path / "custom.toml"
        toml.write_text(
            '[gemini]\napi_key = "from-toml"\n\n[cache]\nttl_seconds = 7200\nreuse_seconds = 6000\n',
            encoding="utf-8",
        )
        clean_env.setenv("GEMINI_API_KEY", "from-env")

        cfg = Config.load(toml)

        assert cfg.gemini.api_key == "from-env"
        assert cfg.cache.ttl_seconds == 7200
        assert cfg.cache.reuse_seconds == 6000
        assert cfg.loaded_from == [toml]

    def test_settings_toml_in_cwd(self, clean_env, tmp_path):
        (tmp_path / "settings.toml").write_text("[retrieval]\nmatch_count = 7\n", encoding="utf-8")

        cfg = Config.load()

        assert cfg.retrieval.match_count == 7

    def test_env_overrides(self, clean_env):
        clean_env.setenv("OPENAI_API_KEY", "sk-env")
        clean_env.setenv("CONTEXTCACHE_POSTGRES_DSN", "postgresql://localhost/rules")
        clean_env.setenv("CONTEXTCACHE_EMBEDDINGS_PROVIDER", "openai")
        clean_env.setenv("CONTEXTCACHE_RETRIEVAL_MATCH_COUNT", "3")
        clean_env.setenv("CONTEXTCACHE_CACHE_WITHOUT_TOOLS", "yes")

        cfg = Config.load()

        assert cfg.openai.api_key == "sk-env"
        assert cfg.postgres.dsn == "postgresql://localhost/rules"
        assert cfg.embeddings.provider == "openai"
        assert cfg.retrieval.match_count == 3
        assert cfg.cache.cache_without_tools is True

    def test_env_cannot_break_reuse_window(self, clean_env):
        clean_env.setenv("CONTEXTCACHE_CACHE_REUSE_SECONDS", "4000")

        with pytest.raises(ValidationError):
            Config.load()

    def test_broken_toml_falls_back_to_defaults(self, clean_env, tmp_path):
        toml = tmp_path / "broken.toml"
        toml.write_text("this is = = not toml", encoding="utf-8")

        cfg = Config.load(toml)

        assert cfg.cache.ttl_seconds == 3600
        assert cfg.loaded_from == []


class TestEnvHelpers:
    def test_blank_is_default(self, monkeypatch):
        monkeypatch.setenv("CONTEXTCACHE_TEST_VALUE", "   ")
        assert get_env("CONTEXTCACHE_TEST_VALUE", "fallback") == "fallback"

    def test_int_parse_failure(self, monkeypatch):
        monkeypatch.setenv("CONTEXTCACHE_TEST_VALUE", "ten")
        assert get_int_env("CONTEXTCACHE_TEST_VALUE", 10) == 10
