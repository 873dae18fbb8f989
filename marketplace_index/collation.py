"""Sort keys for index ordering.

Identifiers are ordered the way root-locale collation orders them:
whitespace, punctuation, symbols, currency signs and digits all come
before letters, and accents and case are ignored first. Accents break
ties next, then case (lowercase before uppercase). The key does not
depend on the process locale, so two machines produce the same index.
"""
from __future__ import annotations

import unicodedata

# Root collation order of the ASCII punctuation and symbol characters.
_ASCII_PUNCTUATION = "_-,;:!?.'\"()[]{}@*/\\&#%"
_ASCII_SYMBOLS = "`^+<=>|~"
_ASCII_CURRENCY = "$"

_SPACE, _PUNCT, _SYMBOL, _CURRENCY, _DIGIT, _LETTER = range(6)


def _char_weight(ch: str) -> tuple[int, int]:
    for group, chars in (
        (_PUNCT, _ASCII_PUNCTUATION),
        (_SYMBOL, _ASCII_SYMBOLS),
        (_CURRENCY, _ASCII_CURRENCY),
    ):
        i = chars.find(ch)
        if i >= 0:
            return (group, i)

    category = unicodedata.category(ch)
    if category[0] in "ZC":
        return (_SPACE, ord(ch))
    if category[0] == "P":
        return (_PUNCT, 0x10000 + ord(ch))
    if category == "Sc":
        return (_CURRENCY, 0x10000 + ord(ch))
    if category[0] == "S":
        return (_SYMBOL, 0x10000 + ord(ch))
    if category == "Nd":
        return (_DIGIT, unicodedata.digit(ch))
    return (_LETTER, ord(ch))


def _strip_marks(decomposed: str) -> str:
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def identifier_sort_key(value: str) -> tuple:
    decomposed = unicodedata.normalize("NFKD", value)
    primary = tuple(_char_weight(ch) for ch in _strip_marks(decomposed).casefold())
    secondary = decomposed.casefold()
    tertiary = decomposed.swapcase()
    return (primary, secondary, tertiary)


def tag_sort_key(value: str) -> bytes:
    # Default string ordering compares UTF-16 code units.
    return value.encode("utf-16-be")
