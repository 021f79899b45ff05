"""Text processing helpers."""

from __future__ import annotations

import math
import re

# Emoticons, symbols & pictographs, transport & map symbols, misc symbols.
_PICTOGRAPH_RE = re.compile(
    "[\U0001F600-\U0001F64F\U0001F300-\U0001F5FF\U0001F680-\U0001F6FF\u2600-\u26FF]"
)
_SURROGATE_RE = re.compile("[\ud800-\udfff]")


def estimate_tokens(text: str) -> int:
    """Rough token count, one token per four characters."""
    return math.ceil(len(text) / 4)


def sanitize_embedding_text(text: str | bytes) -> str:
    """Coerce text to valid UTF-8 and strip pictographs some providers reject."""
    if isinstance(text, bytes):
        text = text.decode("utf-8", errors="replace")
    text = _SURROGATE_RE.sub("", text)
    text = _PICTOGRAPH_RE.sub("", text)
    return text.strip()


__all__ = ["estimate_tokens", "sanitize_embedding_text"]
