"""Main configuration class that combines all config modules."""

import logging
import tomllib
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field

from .base import get_bool_env, get_env, get_float_env, get_int_env
from .models import ContextCacheConfig, EmbeddingsConfig, RetrievalConfig
from .providers import GeminiConfig, OpenAIConfig, PostgresConfig

logger = logging.getLogger(__name__)

DEFAULT_TOML_NAME = "settings.toml"


class Config(BaseModel):
    """Main configuration class for contextcache.

    Configuration is loaded from multiple sources in priority order:
    1. Environment variables
    2. TOML configuration file
    3. Default values
    """

    model_config = ConfigDict(extra="ignore")

    # Core settings
    debug: bool = False
    log_level: str = "INFO"

    # Provider configurations
    gemini: GeminiConfig = Field(default_factory=GeminiConfig)
    openai: OpenAIConfig = Field(default_factory=OpenAIConfig)
    postgres: PostgresConfig = Field(default_factory=PostgresConfig)

    # Subsystems
    cache: ContextCacheConfig = Field(default_factory=ContextCacheConfig)
    embeddings: EmbeddingsConfig = Field(default_factory=EmbeddingsConfig)
    retrieval: RetrievalConfig = Field(default_factory=RetrievalConfig)

    # Internal state
    loaded_from: list[Path] = Field(default_factory=list)

    @classmethod
    def load(cls, config_path: Path | str | None = None) -> "Config":
        """Load configuration from files and environment."""
        load_dotenv()

        toml_path: Path | None = None
        if config_path:
            toml_path = Path(config_path)
        elif env_path := get_env("CONTEXTCACHE_CONFIG_PATH"):
            toml_path = Path(env_path).resolve()
        elif (Path.cwd() / DEFAULT_TOML_NAME).exists():
            toml_path = Path.cwd() / DEFAULT_TOML_NAME

        config = cls()
        if toml_path is not None and toml_path.exists():
            try:
                with open(toml_path, "rb") as f:
                    toml_data = tomllib.load(f)
                config = cls.model_validate(toml_data)
                config.loaded_from.append(toml_path)
            except (OSError, tomllib.TOMLDecodeError, ValueError) as e:
                logger.warning("Failed to load TOML config from %s: %s", toml_path, e)

        config._apply_env_overrides()

        # Re-validate so cross-field rules (reuse window < TTL) also cover env values.
        loaded_from = list(config.loaded_from)
        config = cls.model_validate(config.model_dump(exclude={"loaded_from"}))
        config.loaded_from = loaded_from
        return config

    def _apply_env_overrides(self) -> None:
        """Apply environment variable overrides to config."""
        # Provider credentials
        if gemini_key := get_env("GEMINI_API_KEY"):
            self.gemini.api_key = gemini_key
        if cache_model := get_env("CONTEXTCACHE_CACHE_MODEL"):
            self.gemini.cache_model = cache_model
        if openai_key := get_env("OPENAI_API_KEY"):
            self.openai.api_key = openai_key
        if openai_org := get_env("OPENAI_ORGANIZATION"):
            self.openai.organization = openai_org

        # Postgres
        if dsn := get_env("CONTEXTCACHE_POSTGRES_DSN"):
            self.postgres.dsn = dsn
        if table := get_env("CONTEXTCACHE_RULES_TABLE"):
            self.postgres.rules_table = table

        # Context cache
        if (ttl := get_int_env("CONTEXTCACHE_CACHE_TTL_SECONDS")) is not None:
            self.cache.ttl_seconds = ttl
        if (reuse := get_int_env("CONTEXTCACHE_CACHE_REUSE_SECONDS")) is not None:
            self.cache.reuse_seconds = reuse
        if (timeout := get_float_env("CONTEXTCACHE_CACHE_CREATE_TIMEOUT")) is not None:
            self.cache.create_timeout_sec = timeout
        if (no_tools := get_bool_env("CONTEXTCACHE_CACHE_WITHOUT_TOOLS")) is not None:
            self.cache.cache_without_tools = no_tools

        # Embeddings / retrieval
        if provider := get_env("CONTEXTCACHE_EMBEDDINGS_PROVIDER"):
            self.embeddings.provider = provider  # type: ignore[assignment]
        if (dims := get_int_env("CONTEXTCACHE_EMBEDDINGS_DIMENSIONS")) is not None:
            self.embeddings.dimensions = dims
        if (match_count := get_int_env("CONTEXTCACHE_RETRIEVAL_MATCH_COUNT")) is not None:
            self.retrieval.match_count = match_count

        # Debug/Logging
        if (debug_val := get_bool_env("CONTEXTCACHE_DEBUG")) is not None:
            self.debug = debug_val
        if log_level := get_env("CONTEXTCACHE_LOG_LEVEL"):
            self.log_level = log_level


# ---- Global config management ----

_GLOBAL_CONFIG: Config | None = None


def get_core_config() -> Config:
    """Return process-global core config."""
    global _GLOBAL_CONFIG
    if _GLOBAL_CONFIG is None:
        _GLOBAL_CONFIG = Config.load()
    return _GLOBAL_CONFIG


def set_core_config(config: Config) -> None:
    """Set the global core config."""
    global _GLOBAL_CONFIG
    _GLOBAL_CONFIG = config
