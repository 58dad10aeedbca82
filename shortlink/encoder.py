"""Bijective mapping between link identifiers and short codes.

The identifier is written as a lowercase base-16 numeral, then the digits
``0`` and ``1`` are swapped for ``g`` and ``h``. The resulting alphabet is
``2-9`` plus ``a-h``; decoding reverses the substitution and parses hex,
rejecting values above the signed 64-bit range.

Example:
    >>> encode(16)
    'hg'
    >>> decode("hg")
    16
"""

__all__ = ["ALPHABET", "MAX_ID", "decode", "encode"]

from shortlink.errors import InvalidCodeError

ALPHABET = frozenset("23456789abcdefgh")

# Identifiers are signed 64-bit integers in both stores.
MAX_ID = 2**63 - 1

_ENCODE_TABLE = str.maketrans({"0": "g", "1": "h"})
_DECODE_TABLE = str.maketrans({"g": "0", "h": "1"})


def encode(number: int) -> str:
    if number < 0:
        raise ValueError("Number must be non-negative")
    return format(number, "x").translate(_ENCODE_TABLE)


def decode(code: str) -> int:
    if not code or not ALPHABET.issuperset(code):
        raise InvalidCodeError(f"invalid short code: {code!r}")
    number = int(code.translate(_DECODE_TABLE), 16)
    if number > MAX_ID:
        raise InvalidCodeError(f"short code out of range: {code!r}")
    return number
