"""Embedding provider adapters.

Each adapter turns sanitized text into one provider-specific HTTP request and parses the
reply into an :class:`EmbeddingVector`. Failures are raised as the typed errors from
:mod:`vector_lite.core.errors`; a provider never returns a partial vector.
"""

from __future__ import annotations

import hashlib
import math
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Mapping

import orjson
import requests

from vector_lite.core.config import HashedConfig, ProviderConfig
from vector_lite.core.errors import (
    ProviderBadResponse,
    ProviderUnauthenticated,
    ProviderUnavailable,
)
from vector_lite.core.logging import get_logger

logger = get_logger(__name__)

_TOKEN_RE = re.compile(r"\w+")


@dataclass(slots=True)
class EmbeddingVector:
    values: list[float]
    model: str
    provider: str

    @property
    def dimensions(self) -> int:
        return len(self.values)


class EmbeddingProvider(ABC):
    """Capability interface: text in, vector out (or a typed EmbeddingError)."""

    name: str = "base"

    def __init__(self, config: ProviderConfig) -> None:
        self.config = config

    @property
    def model(self) -> str:
        return self.config.model

    @abstractmethod
    def embed(self, text: str) -> EmbeddingVector:
        ...


class HTTPEmbeddingProvider(EmbeddingProvider):
    """Shared request/response handling for JSON-over-HTTP providers."""

    label: str = "Embedding"
    requires_api_key: bool = False

    def __init__(
        self,
        config: ProviderConfig,
        session: requests.Session | None = None,
        connect_timeout: float = 30.0,
        request_timeout: float = 60.0,
    ) -> None:
        super().__init__(config)
        self.session = session or requests.Session()
        self.connect_timeout = connect_timeout
        self.request_timeout = request_timeout

    def embed(self, text: str) -> EmbeddingVector:
        if self.requires_api_key and not self.config.api_key:
            raise ProviderUnauthenticated(f"{self.label} API key not configured")
        data = self._post(self.build_payload(text))
        try:
            raw_vector = self.extract_vector(data)
        except (KeyError, IndexError, TypeError) as exc:
            raise ProviderBadResponse(f"Invalid {self.label} API response") from exc
        values = _coerce_vector(raw_vector, self.label)
        expected = self.config.dimensions
        if expected and len(values) != expected:
            logger.warning(
                "%s returned %s dimensions, configured for %s",
                self.label,
                len(values),
                expected,
            )
        return EmbeddingVector(values=values, model=self.config.model, provider=self.name)

    def headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.config.api_key:
            headers["Authorization"] = f"Bearer {self.config.api_key}"
        return headers

    def params(self) -> dict[str, str] | None:
        return None

    @abstractmethod
    def build_payload(self, text: str) -> dict[str, Any]:
        ...

    @abstractmethod
    def extract_vector(self, data: Any) -> Any:
        ...

    def _post(self, payload: Mapping[str, Any]) -> Any:
        try:
            response = self.session.post(
                self.config.endpoint,
                data=orjson.dumps(payload),
                headers=self.headers(),
                params=self.params(),
                timeout=(self.connect_timeout, self.request_timeout),
            )
        except requests.Timeout as exc:
            raise ProviderUnavailable(f"{self.label} API timed out") from exc
        except requests.RequestException as exc:
            raise ProviderUnavailable(f"{self.label} API unreachable: {exc}") from exc

        status = response.status_code
        if status in (401, 403):
            raise ProviderUnauthenticated(f"{self.label} API error: HTTP {status}")
        if status != 200:
            raise ProviderBadResponse(f"{self.label} API error: HTTP {status}")
        try:
            return orjson.loads(response.content)
        except orjson.JSONDecodeError as exc:
            raise ProviderBadResponse(f"Invalid {self.label} API response") from exc


class OpenAIProvider(HTTPEmbeddingProvider):
    name = "openai"
    label = "OpenAI"
    requires_api_key = True

    def build_payload(self, text: str) -> dict[str, Any]:
        return {"input": text, "model": self.config.model}

    def extract_vector(self, data: Any) -> Any:
        return data["data"][0]["embedding"]


class LMStudioProvider(OpenAIProvider):
    """OpenAI-compatible local server; the key is optional."""

    name = "lmstudio"
    label = "LM Studio"
    requires_api_key = False


class GeminiProvider(HTTPEmbeddingProvider):
    name = "gemini"
    label = "Gemini"
    requires_api_key = True

    def headers(self) -> dict[str, str]:
        return {"Content-Type": "application/json"}

    def params(self) -> dict[str, str] | None:
        return {"key": self.config.api_key or ""}

    def build_payload(self, text: str) -> dict[str, Any]:
        return {"content": {"parts": [{"text": text}]}}

    def extract_vector(self, data: Any) -> Any:
        return data["embedding"]["values"]


class OllamaProvider(HTTPEmbeddingProvider):
    name = "ollama"
    label = "Ollama"

    def build_payload(self, text: str) -> dict[str, Any]:
        return {"model": self.config.model, "prompt": text}

    def extract_vector(self, data: Any) -> Any:
        return data["embedding"]


class HashedProvider(EmbeddingProvider):
    """Deterministic hashed bag-of-words embedding; needs no network."""

    name = "hashed"

    def __init__(self, config: ProviderConfig | None = None) -> None:
        super().__init__(config or HashedConfig())
        self.dim = self.config.dimensions or 384

    def embed(self, text: str) -> EmbeddingVector:
        vector = [0.0] * self.dim
        for token in _TOKEN_RE.findall(text.lower()):
            vector[_hash_token(token, self.dim)] += 1.0
        _normalize(vector)
        return EmbeddingVector(values=vector, model=self.config.model, provider=self.name)


PROVIDER_TYPES: dict[str, type[HTTPEmbeddingProvider]] = {
    "openai": OpenAIProvider,
    "gemini": GeminiProvider,
    "ollama": OllamaProvider,
    "lmstudio": LMStudioProvider,
}


def _coerce_vector(raw: Any, label: str) -> list[float]:
    if not isinstance(raw, list) or not raw:
        raise ProviderBadResponse(f"{label} API returned an empty or malformed vector")
    values: list[float] = []
    for item in raw:
        if isinstance(item, bool) or not isinstance(item, (int, float)):
            raise ProviderBadResponse(f"{label} API returned a non-numeric vector component")
        value = float(item)
        if not math.isfinite(value):
            raise ProviderBadResponse(f"{label} API returned a non-finite vector component")
        values.append(value)
    return values


def _hash_token(token: str, dim: int) -> int:
    digest = hashlib.blake2b(token.encode("utf-8"), digest_size=8).digest()
    return int.from_bytes(digest, "big") % dim


def _normalize(vector: list[float]) -> None:
    norm = math.sqrt(sum(value * value for value in vector))
    if norm == 0:
        return
    inv = 1.0 / norm
    for idx, value in enumerate(vector):
        vector[idx] = value * inv


__all__ = [
    "EmbeddingVector",
    "EmbeddingProvider",
    "HTTPEmbeddingProvider",
    "OpenAIProvider",
    "GeminiProvider",
    "OllamaProvider",
    "LMStudioProvider",
    "HashedProvider",
    "PROVIDER_TYPES",
]
