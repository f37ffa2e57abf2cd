"""Floating-point package helpers: hex string parsing and FCVT conversion."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from enum import Enum

from run68.cpu import CCR_C, CCR_N, CCR_V, MASK32, Memory, Size

FCVT_INT_MAXLEN = 255

_HEX_DIGITS = b"0123456789abcdefABCDEF"


class FPType(Enum):
    """Class of an IEEE 754 double."""

    ZERO = "zero"
    NORMALIZED = "normalized"
    DENORMALIZED = "denormalized"
    INFINITE = "infinite"
    NAN = "nan"


@dataclass(frozen=True)
class StohResult:
    """Outcome of __STOH.

    value is what goes to D0, ccr the condition codes to set, and address
    the updated A0 (pointing at the first character not consumed).
    """

    value: int
    ccr: int
    address: int


@dataclass(frozen=True)
class FcvtResult:
    """Outcome of __FCVT: the digit string, D0 (decimal point) and D1 (sign)."""

    text: str
    decpt: int
    sign: int


def classify(d0: int, d1: int) -> FPType:
    """Classify the double whose high word is d0 and low word is d1."""
    high = d0 & MASK32
    low = d1 & MASK32
    exponent = high & 0x7FF00000
    mantissa_is_zero = (high & 0x000FFFFF) == 0 and low == 0
    if exponent == 0:
        return FPType.ZERO if mantissa_is_zero else FPType.DENORMALIZED
    if exponent == 0x7FF00000:
        return FPType.INFINITE if mantissa_is_zero else FPType.NAN
    return FPType.NORMALIZED


def stoh(memory: Memory, address: int) -> StohResult:
    """Parse a hexadecimal number stored at address (FPACK __STOH)."""
    start = address
    result = 0
    while True:
        c = memory.read(address, Size.BYTE)
        if c not in _HEX_DIGITS:
            break
        if result > 0x0FFFFFFF:
            return StohResult(c, CCR_V | CCR_C, address)
        result = (result << 4) + int(chr(c), 16)
        address += 1
    if address == start:
        return StohResult(c, CCR_N | CCR_C, address)
    return StohResult(result, 0, address)


def _fconvert(value: float, ndigit: int) -> tuple[str, int]:
    precision = 307 if value < 1.0 else ndigit
    text = f"{value:.{precision}f}"

    if text.startswith("0."):
        decimals = text[2:]
        lead = len(decimals) - len(decimals.lstrip("0"))
        digits = decimals[lead:ndigit] if lead < ndigit else ""
        return digits, -lead

    integer, point, fraction = text.partition(".")
    if point:
        return (integer + fraction[:ndigit])[:FCVT_INT_MAXLEN], len(integer)
    return text[:FCVT_INT_MAXLEN], len(text)


def fcvt(d0: int, d1: int, ndigit: int) -> FcvtResult:
    """Convert a double to a digit string with ndigit decimals (FPACK __FCVT)."""
    high = d0 & MASK32
    low = d1 & MASK32
    sign = high >> 31
    high &= 0x7FFFFFFF
    ndigit &= 0xFF

    kind = classify(high, low)
    if kind is FPType.ZERO:
        return FcvtResult("0" * ndigit, 0, sign)
    if kind is FPType.INFINITE:
        return FcvtResult("#INF", 4, sign)
    if kind is FPType.NAN:
        return FcvtResult("#NAN", 4, sign)

    value = struct.unpack(">d", struct.pack(">II", high, low))[0]
    text, decpt = _fconvert(value, ndigit)
    return FcvtResult(text, decpt, sign)