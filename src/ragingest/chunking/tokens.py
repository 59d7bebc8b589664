"""Model-independent token estimate shared by every budget-driven chunker."""

from __future__ import annotations


def estimate_tokens(word: str) -> int:
    """Estimate tokens for a word (or line) from its code-point length.

    Bands: 1 token up to 4 code points, 2 up to 8, 3 up to 16, else 4.
    """
    if not word:
        return 0
    runes = len(word)
    if runes <= 4:
        return 1
    if runes <= 8:
        return 2
    if runes <= 16:
        return 3
    return 4


def window_token_hint(text: str) -> int:
    """Rough token count for fixed windows: 0.75 tokens per code point."""
    return int(len(text) * 0.75)
