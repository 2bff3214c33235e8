"""Character-level classification of shell words."""


def _is_alpha(char: str) -> bool:
    return char.isascii() and char.isalpha()


def _is_alnum(char: str) -> bool:
    return char.isascii() and char.isalnum()


def is_name(text: str | None) -> bool:
    """Return True if ``text`` is a valid shell variable name."""
    if not text:
        return False
    first, rest = text[0], text[1:]
    if not (_is_alpha(first) or first == "_"):
        return False
    return all(_is_alnum(char) or char == "_" for char in rest)


def quotes_closed(text: str | None) -> bool:
    """Return True if every single or double quote in ``text`` is closed."""
    if text is None:
        return True
    chars = iter(text)
    for char in chars:
        if char in ("'", '"'):
            if char not in chars:
                return False
    return True