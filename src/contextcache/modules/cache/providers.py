"""Cache-creation providers (explicit provider-side context caches)."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from contextcache.core.exceptions import ExternalServiceError

from ..tools.schema import FunctionDeclaration

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheCreateRequest:
    model: str
    credential: str = field(repr=False)
    system_instruction: str
    tool_declarations: list[FunctionDeclaration]
    ttl_seconds: int
    display_name: str


class CacheProvider(ABC):
    """Creates a provider-side cache and returns its opaque handle."""

    @abstractmethod
    async def create(self, request: CacheCreateRequest) -> str:
        raise NotImplementedError


class GeminiCacheProvider(CacheProvider):
    """Gemini explicit context caching via google-genai ``caches.create``.

    When a request is later served from the cache, the system instruction and
    tools cannot be sent again: they live in the cache.
    """

    def __init__(self) -> None:
        self._clients: dict[str, object] = {}

    def _client(self, credential: str):
        client = self._clients.get(credential)
        if client is None:
            from google import genai

            client = self._clients[credential] = genai.Client(api_key=credential)
        return client

    async def create(self, request: CacheCreateRequest) -> str:
        from google.genai import types

        tools = None
        if request.tool_declarations:
            tools = [
                types.Tool(
                    function_declarations=[
                        types.FunctionDeclaration(
                            name=d.name,
                            description=d.description,
                            parameters_json_schema=d.parameters,
                        )
                        for d in request.tool_declarations
                    ]
                )
            ]

        client = self._client(request.credential)
        created = await client.aio.caches.create(
            model=request.model,
            config=types.CreateCachedContentConfig(
                system_instruction=request.system_instruction,
                tools=tools,
                ttl=f"{request.ttl_seconds}s",
                display_name=request.display_name,
            ),
        )
        name = getattr(created, "name", None)
        if not name:
            raise ExternalServiceError("cache create returned no handle", operation="cache.create")
        return str(name)


__all__ = ["CacheCreateRequest", "CacheProvider", "GeminiCacheProvider"]
