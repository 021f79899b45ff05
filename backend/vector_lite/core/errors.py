"""Error taxonomy shared by ingestion, queue, and retrieval."""

from __future__ import annotations


class VectorLiteError(Exception):
    """Base class for all domain errors."""


class ChunkingInputInvalid(VectorLiteError, ValueError):
    """Chunk size parameters are unusable (text itself is never rejected)."""


class EmbeddingError(VectorLiteError):
    """An embedding could not be produced for a piece of text."""


class ProviderUnauthenticated(EmbeddingError):
    pass


class ProviderUnavailable(EmbeddingError):
    """Timeout or connection failure talking to the provider."""


class ProviderBadResponse(EmbeddingError):
    """Non-success status or a response without a usable vector."""


class UnknownProvider(EmbeddingError):
    pass


class SegmentVanished(VectorLiteError):
    """The segment behind a queue entry was deleted while it was being embedded."""


class IllegalTransition(VectorLiteError):
    pass


class EntryReleased(VectorLiteError):
    """A queue entry left ``processing`` before its embedding was stored."""


class DocumentNotFound(VectorLiteError):
    pass


class GroupNotFound(VectorLiteError):
    pass


class DefaultGroupProtected(VectorLiteError):
    pass


__all__ = [
    "VectorLiteError",
    "ChunkingInputInvalid",
    "EmbeddingError",
    "ProviderUnauthenticated",
    "ProviderUnavailable",
    "ProviderBadResponse",
    "UnknownProvider",
    "SegmentVanished",
    "IllegalTransition",
    "EntryReleased",
    "DocumentNotFound",
    "GroupNotFound",
    "DefaultGroupProtected",
]
