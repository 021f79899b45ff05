"""Tests for text helpers."""

import pytest

from vector_lite.utils.text import estimate_tokens, sanitize_embedding_text


@pytest.mark.parametrize("text,expected", [("", 0), ("abcd", 1), ("abcde", 2), ("x" * 1000, 250)])
def test_estimate_tokens(text: str, expected: int) -> None:
    assert estimate_tokens(text) == expected


def test_sanitize_strips_pictographs_and_symbols() -> None:
    assert sanitize_embedding_text("hello \U0001F600 world ☀") == "hello  world"
    assert sanitize_embedding_text("\U0001F680 launch") == "launch"


def test_sanitize_keeps_ordinary_unicode() -> None:
    assert sanitize_embedding_text("  Café naïve 東京  ") == "Café naïve 東京"


def test_sanitize_coerces_invalid_bytes() -> None:
    assert sanitize_embedding_text(b"caf\xe9 au lait") == "caf� au lait"


def test_sanitize_drops_lone_surrogates() -> None:
    assert sanitize_embedding_text("a\ud800b") == "ab"
