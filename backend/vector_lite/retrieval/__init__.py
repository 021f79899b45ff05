"""Similarity search components."""

from .search import SearchEngine, SearchHit
from .similarity import cosine_similarity

__all__ = [
    "SearchEngine",
    "SearchHit",
    "cosine_similarity",
]
