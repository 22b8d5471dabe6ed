"""String helpers shared by the kernel and the user-space library."""

from __future__ import annotations

from itertools import chain, islice
from typing import Iterator

_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


def _to_int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value & 0x80000000 else value


def _codes(text: str) -> Iterator[int]:
    """Character codes of ``text`` followed by a terminating zero."""
    return chain(map(ord, text), (0,))


def _lower(code: int) -> int:
    return code + 32 if 65 <= code <= 90 else code


def _compare(a: str, b: str, limit: int | None, fold: bool) -> int:
    pairs: Iterator[tuple[int, int]] = zip(_codes(a), _codes(b))
    if limit is not None:
        pairs = islice(pairs, max(limit, 0))
    for u1, u2 in pairs:
        if u1 != u2 and (not fold or _lower(u1) != _lower(u2)):
            return u1 - u2
        if u1 == 0:
            return 0
    return 0


def atoi(text: str) -> int:
    """Convert decimal digits to an int.

    Every character is taken as a digit without validation, and the result
    wraps like a 32-bit signed integer.
    """
    result = 0
    for ch in text:
        result = _to_int32(result * 10 + (ord(ch) - ord("0")))
    return result


def itoa(n: int, base: int) -> str:
    """Render ``n`` in ``base`` with lower-case digits.

    Only base 10 gets a minus sign; in other bases a negative number is shown
    as its 32-bit two's-complement value.
    """
    if not 2 <= base <= len(_DIGITS):
        raise ValueError(f"unsupported base: {base}")
    if n == 0:
        return "0"
    negative = n < 0 and base == 10
    if negative:
        n = -n
    elif n < 0:
        n &= 0xFFFFFFFF
    digits = []
    while n:
        n, rem = divmod(n, base)
        digits.append(_DIGITS[rem])
    if negative:
        digits.append("-")
    return "".join(reversed(digits))


def compare(a: str, b: str) -> int:
    """Difference of the first differing characters, or 0 if equal."""
    return _compare(a, b, None, fold=False)


def compare_n(a: str, b: str, n: int) -> int:
    """Like :func:`compare`, looking at no more than ``n`` characters."""
    return _compare(a, b, n, fold=False)


def icompare_n(a: str, b: str, n: int) -> int:
    """Case-insensitive :func:`compare_n` for ASCII letters."""
    return _compare(a, b, n, fold=True)


def tokenize(text: str, delimiters: str) -> list[str]:
    """Split ``text`` into tokens separated by runs of ``delimiters``.

    Tokenizing stops at the first empty token, so text that begins with a
    delimiter yields no tokens.
    """
    tokens = []
    pos = 0
    length = len(text)
    while True:
        start = pos
        while pos < length and text[pos] not in delimiters:
            pos += 1
        if pos == start:
            return tokens
        tokens.append(text[start:pos])
        while pos < length and text[pos] in delimiters:
            pos += 1