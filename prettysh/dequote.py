"""Removal of shell quotes from words."""

from __future__ import annotations

QUOTES = ("'", '"')


class UnclosedQuoteError(ValueError):
    """Raised when a quote in a word has no closing partner."""


def dequote(text: str) -> str:
    """Strip single and double quotes, keeping what they enclose literally."""
    pieces: list[str] = []
    pos = 0
    length = len(text)
    while pos < length:
        char = text[pos]
        if char in QUOTES:
            end = text.find(char, pos + 1)
            if end < 0:
                raise UnclosedQuoteError(f"unclosed {char} in {text!r}")
            pieces.append(text[pos + 1:end])
            pos = end + 1
        else:
            pieces.append(char)
            pos += 1
    return "".join(pieces)