"""Embedding providers, client, and vector storage codec."""

from .client import EmbeddingClient
from .codec import decode_vector, encode_vector
from .providers import EmbeddingProvider, EmbeddingVector, HashedProvider

__all__ = [
    "EmbeddingClient",
    "EmbeddingProvider",
    "EmbeddingVector",
    "HashedProvider",
    "encode_vector",
    "decode_vector",
]
