"""Model registry for embedding providers."""

from __future__ import annotations

import importlib
import logging
from typing import Callable, Generic, TypeVar, cast

from contextcache.core import Config, get_core_config

from .base import BaseEmbeddings
from .types import EmbeddingKey

logger = logging.getLogger(__name__)

# Built-in provider mappings (lazy: the provider SDK is imported on first use)
BUILTIN_EMBEDDINGS: dict[str, str] = {
    "gemini/*": "contextcache.modules.models.embeddings.gemini.GeminiEmbeddings",
    "openai/*": "contextcache.modules.models.embeddings.openai.OpenAIEmbeddings",
}


TItem = TypeVar("TItem")


class Registry(Generic[TItem]):
    """Minimal registry for model components."""

    def __init__(self, *, name: str, builtin_map: dict[str, str] | None = None) -> None:
        self._name = name
        self._items: dict[str, TItem] = {}
        self._builtin_map: dict[str, str] = builtin_map or {}

    def get(self, key: str) -> TItem:
        k = key.strip()
        if k in self._items:
            return self._items[k]

        # Wildcard provider registration: `provider/*` matches any `provider/<name>`.
        wildcard = f"{k.split('/', 1)[0]}/*" if "/" in k else None
        if wildcard and wildcard in self._items:
            return self._items[wildcard]

        raw = self._builtin_map.get(k)
        if raw is None and wildcard:
            raw = self._builtin_map.get(wildcard)
        if raw is not None:
            mod_name, attr = raw.rsplit(".", 1)
            mod = importlib.import_module(mod_name)
            item = cast(TItem, getattr(mod, attr))
            self._items[k] = item
            return item

        raise KeyError(f"{self._name}: unknown key '{k}'")

    def register(self, key: str, value: TItem, *, overwrite: bool = False) -> None:
        k = key.strip()
        if not k:
            raise ValueError(f"{self._name}: registry key must be non-empty")
        if not overwrite and k in self._items:
            raise KeyError(f"{self._name}: '{k}' already registered")
        self._items[k] = value


class ModelRegistry:
    def __init__(self) -> None:
        self._embeddings: Registry[type[BaseEmbeddings]] = Registry(
            name="embeddings", builtin_map=BUILTIN_EMBEDDINGS
        )

    def register_embeddings(
        self, provider: str, name: str = "*", *, overwrite: bool = False
    ) -> Callable[[type[BaseEmbeddings]], type[BaseEmbeddings]]:
        key = f"{provider}/{name}"

        def decorator(cls: type[BaseEmbeddings]) -> type[BaseEmbeddings]:
            self._embeddings.register(key, cls, overwrite=overwrite)
            return cls

        return decorator

    def create_embeddings(
        self, key: EmbeddingKey, *, config: Config | None = None
    ) -> BaseEmbeddings:
        """Instantiate the embeddings provider bound to ``key``."""
        cfg = config or get_core_config()
        cls = self._embeddings.get(f"{key.provider}/{key.model}")
        ctor = cast(Callable[..., BaseEmbeddings], cls)
        return ctor(key, cfg)


model_registry = ModelRegistry()

__all__ = ["BUILTIN_EMBEDDINGS", "ModelRegistry", "Registry", "model_registry"]
