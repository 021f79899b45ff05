"""Embedding client: provider registry plus sanitization and instrumentation."""

from __future__ import annotations

import time
from typing import Any, Iterable

import requests

from vector_lite.core.config import Settings
from vector_lite.core.errors import EmbeddingError, UnknownProvider
from vector_lite.core.logging import get_logger
from vector_lite.core.metrics import EMBEDDING_LATENCY, EMBEDDING_REQUESTS
from vector_lite.embeddings.providers import (
    PROVIDER_TYPES,
    EmbeddingProvider,
    EmbeddingVector,
    HashedProvider,
)
from vector_lite.utils.text import sanitize_embedding_text

logger = get_logger(__name__)


class EmbeddingClient:
    """Resolve a provider by name and embed text through it."""

    def __init__(
        self,
        settings: Settings,
        session: requests.Session | None = None,
        providers: Iterable[EmbeddingProvider] | None = None,
    ) -> None:
        self.default_provider = settings.default_provider
        self._providers: dict[str, EmbeddingProvider] = {}
        if providers is None:
            providers = build_providers(settings, session or requests.Session())
        for provider in providers:
            self.register(provider)

    @property
    def provider_names(self) -> list[str]:
        return sorted(self._providers)

    def register(self, provider: EmbeddingProvider) -> None:
        self._providers[provider.name] = provider

    def provider(self, name: str | None = None) -> EmbeddingProvider:
        key = name or self.default_provider
        try:
            return self._providers[key]
        except KeyError:
            raise UnknownProvider(f"Unknown embedding provider: {key}") from None

    def embed(self, text: str | bytes, provider: str | None = None) -> EmbeddingVector:
        adapter = self.provider(provider)
        clean = sanitize_embedding_text(text)
        started = time.perf_counter()
        try:
            vector = adapter.embed(clean)
        except EmbeddingError as exc:
            EMBEDDING_REQUESTS.labels(provider=adapter.name, outcome=type(exc).__name__).inc()
            logger.debug("Embedding via %s failed: %s", adapter.name, exc)
            raise
        EMBEDDING_LATENCY.labels(provider=adapter.name).observe(time.perf_counter() - started)
        EMBEDDING_REQUESTS.labels(provider=adapter.name, outcome="ok").inc()
        return vector

    def test_provider(self, name: str | None = None, text: str = "Test embedding") -> dict[str, Any]:
        """Embed a sample string and report what the provider produced."""
        vector = self.embed(text, provider=name)
        return {"provider": vector.provider, "model": vector.model, "dimensions": vector.dimensions}


def build_providers(settings: Settings, session: requests.Session) -> list[EmbeddingProvider]:
    providers: list[EmbeddingProvider] = [
        provider_type(
            settings.provider_config(name),
            session=session,
            connect_timeout=settings.connect_timeout,
            request_timeout=settings.request_timeout,
        )
        for name, provider_type in PROVIDER_TYPES.items()
    ]
    providers.append(HashedProvider(settings.providers.hashed))
    return providers


__all__ = ["EmbeddingClient", "build_providers"]
