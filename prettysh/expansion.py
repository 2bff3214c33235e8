"""Expansion of ``$NAME`` and ``$?`` references in shell words."""

from __future__ import annotations

from collections.abc import Mapping

DOLLAR = "$"
SINGLE_QUOTE = "'"
DOUBLE_QUOTE = '"'


def _is_alnum(char: str) -> bool:
    return char.isascii() and char.isalnum()


def expand_dollars(
    text: str,
    env: Mapping[str, str | None],
    last_status: int = 0,
    heredoc: bool = False,
) -> str:
    """Replace dollar references in ``text`` with their values.

    ``$?`` becomes ``last_status``; ``$`` followed by a run of ASCII letters
    and digits becomes the value of that variable, or nothing if it is unset
    or has no value.  A ``$`` followed by any other character is dropped, and
    a ``$`` at the very end is kept.  Inside single quotes nothing is expanded
    unless ``heredoc`` is true.  Quotes themselves are left in place.
    """
    pieces: list[str] = []
    in_single = False
    in_double = False
    pos = 0
    length = len(text)
    while pos < length:
        char = text[pos]
        if char == DOUBLE_QUOTE and not in_single:
            in_double = not in_double
        elif char == SINGLE_QUOTE and not in_double:
            in_single = not in_single
        if char == DOLLAR and (not in_single or heredoc):
            if pos + 1 == length:
                pieces.append(char)
                break
            if text[pos + 1] == "?":
                pieces.append(str(last_status))
                pos += 2
                continue
            end = pos + 1
            while end < length and _is_alnum(text[end]):
                end += 1
            pieces.append(env.get(text[pos + 1:end]) or "")
            pos = end
            continue
        pieces.append(char)
        pos += 1
    return "".join(pieces)