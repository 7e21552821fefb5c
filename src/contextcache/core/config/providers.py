"""Provider configurations for external services."""

from pydantic import BaseModel, ConfigDict


class GeminiConfig(BaseModel):
    model_config = ConfigDict(extra="ignore")

    api_key: str = ""
    # Model that owns explicit context caches. A cache is only usable with the
    # model it was created for.
    cache_model: str = "gemini-2.5-flash"


class OpenAIConfig(BaseModel):
    model_config = ConfigDict(extra="ignore")

    api_key: str = ""
    organization: str | None = None


class PostgresConfig(BaseModel):
    model_config = ConfigDict(extra="ignore")

    dsn: str = ""
    rules_table: str = "agent_rules"
    # SQL function returning (id, content, tags, similarity) ordered best-first.
    match_function: str = "match_agent_rules"
    connect_timeout_sec: int = 5
