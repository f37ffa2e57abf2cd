"""HUPAIR command-line encoding."""

from __future__ import annotations

from run68.cpu import ExecutionError, Memory, Size

HUPAIR_MARK = b"#HUPAIR\0"
CMDLINE_OFFSET = len(HUPAIR_MARK)
CMDLINE_MAX = 255

_DQ = ord('"')
_SQ = ord("'")


def _to_bytes(text: str | bytes) -> bytes:
    if isinstance(text, str):
        return text.encode("cp932")
    return bytes(text)


def _first_quote(s: bytes, start: int) -> int:
    found = [p for p in (s.find(b'"', start), s.find(b"'", start)) if p >= 0]
    return min(found) if found else -1


def _quote_found(s: bytes, start: int, c: int) -> tuple[int, int]:
    quot = _SQ if c == _DQ else _DQ
    end = s.find(bytes([quot]), start)
    return (len(s) if end < 0 else end), quot


def _quoting(s: bytes) -> tuple[int, int | None]:
    """Return how many bytes one quoting covers and the quote to use."""
    quote = _first_quote(s, 0)
    space = s.find(b" ")
    if quote >= 0 and (space < 0 or quote < space):
        return _quote_found(s, quote + 1, s[quote])
    if space >= 0:
        later = _first_quote(s, space + 1)
        if later >= 0:
            return _quote_found(s, later + 1, s[later])
        return len(s), _DQ
    return len(s), None


def quote_argument(arg: str | bytes) -> bytes:
    """Quote one argument so that a HUPAIR decoder gets it back unchanged."""
    s = _to_bytes(arg)
    if not s:
        return b'""'
    out = bytearray()
    while s:
        length, quot = _quoting(s)
        if quot is None:
            out += s[:length]
        else:
            out += bytes([quot]) + s[:length] + bytes([quot])
        s = s[length:]
    return bytes(out)


def encode_hupair(args, argv0: str | bytes) -> tuple[bytes, bool]:
    """Build a HUPAIR command-line block.

    The block holds the mark, the length byte, the command line, a NUL and
    argv0 with its NUL. The command line starts at CMDLINE_OFFSET. The flag
    is true when the command line is longer than 255 bytes, so the child
    must understand HUPAIR to read it.
    """
    cmdline = b" ".join(quote_argument(arg) for arg in args)
    hupair = len(cmdline) > CMDLINE_MAX
    length = min(len(cmdline), CMDLINE_MAX)
    block = HUPAIR_MARK + bytes([length]) + cmdline + b"\0" + _to_bytes(argv0) + b"\0"
    return block, hupair


def is_compliant(memory: Memory, base: int, size: int, entry: int) -> bool:
    """Tell whether the program at entry carries the HUPAIR mark."""
    mark = entry + 2
    if mark + len(HUPAIR_MARK) > base + size:
        return False
    try:
        found = bytes(memory.read(mark + i, Size.BYTE) for i in range(len(HUPAIR_MARK)))
    except ExecutionError:
        return False
    return found == HUPAIR_MARK