"""Integer parsing with clamping to the range of a 64-bit signed long."""

LONG_MAX = 2**63 - 1
LONG_MIN = -(2**63)

_WHITESPACE = frozenset("\t\n\v\f\r ")


def _is_alnum(char: str) -> bool:
    return char.isascii() and char.isalnum()


def _digit_value(char: str, base: int) -> int | None:
    if not char:
        return None
    if _is_alnum(char) and ord("0") + base > ord(char):
        return ord(char) - ord("0")
    upper = char.upper() if char.isascii() else char
    if (
        upper.isascii()
        and upper.isalpha()
        and base > 10
        and ord("A") + base - 10 > ord(char)
    ):
        return ord(char) - ord("A") + 11
    return None


def _skip_prefix(text: str, base: int) -> tuple[int, int, int]:
    """Return (position, base, sign) after whitespace, sign and radix prefix."""
    pos = 0
    while pos < len(text) and text[pos] in _WHITESPACE:
        pos += 1
    sign = 1
    if text[pos:pos + 1] == "-":
        sign = -1
        pos += 1
    elif text[pos:pos + 1] == "+":
        pos += 1
    if base in (0, 16) and text[pos:pos + 2] in ("0x", "0X"):
        pos += 2
        base = 16
    elif base in (0, 8) and text[pos:pos + 1] == "0":
        pos += 1
        base = 8
    return pos, base, sign


def strtol(text: str, base: int = 10) -> tuple[int, int | None]:
    """Parse a leading integer from ``text``.

    Returns ``(value, end)`` where ``end`` is the index of the first
    character not consumed.  When the value would exceed ``LONG_MAX`` the
    result is clamped to ``LONG_MAX`` (or ``LONG_MIN`` for negative input)
    and ``end`` is ``None``.
    """
    pos, base, sign = _skip_prefix(text, base)
    total = 0
    while pos < len(text):
        digit = _digit_value(text[pos], base)
        if digit is None:
            break
        if total <= (LONG_MAX - digit) // base:
            total = total * base + digit
            pos += 1
        elif sign == 1:
            return LONG_MAX, None
        else:
            return LONG_MIN, None
    return sign * total, pos