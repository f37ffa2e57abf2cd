"""Function key assignments and the escape sequences that define them."""

from __future__ import annotations

KEY1_COUNT = 20
KEY1_WIDTH = 32
KEY2_COUNT = 12
KEY2_WIDTH = 6
BLOCK_SIZE = KEY1_COUNT * KEY1_WIDTH + KEY2_COUNT * KEY2_WIDTH

# Keys ROLL UP, ROLL DOWN, INS, DEL, cursor keys, CLR, HELP, HOME, UNDO.
_KEY2_CODES = (0x51, 0x49, 0x52, 0x53, 0x48, 0x4B, 0x4D, 0x50, 0x97, 0x86, 0x47, 0x4F)


def _cstr(data: bytes) -> bytes:
    end = data.find(b"\0")
    return data if end < 0 else data[:end]


def _store(field: bytearray, start: int, text: bytes) -> None:
    payload = (text + b"\0")[: len(field) - start]
    field[start : start + len(payload)] = payload


def _define(kno: int, text: bytes) -> bytes:
    if not text:
        return b'\x1b[0;%d;"\x00%c"p' % (kno, kno)
    if b"\x1a" in text:
        return b""
    return b'\x1b[0;%d;"%s"p' % (kno, text)


class FunctionKeys:
    """The twenty function keys and twelve editing keys."""

    def __init__(self) -> None:
        self._keys1 = [bytearray(KEY1_WIDTH) for _ in range(KEY1_COUNT)]
        self._keys2 = [bytearray(KEY2_WIDTH) for _ in range(KEY2_COUNT)]

    def get(self, no: int) -> bytes:
        """Return key no (1-20, 21-32), all keys for 0, or b'' otherwise."""
        if no == 0:
            return b"".join(bytes(k) for k in self._keys1 + self._keys2)
        if 1 <= no <= KEY1_COUNT:
            return bytes(self._keys1[no - 1])
        if KEY1_COUNT < no <= KEY1_COUNT + KEY2_COUNT:
            return bytes(self._keys2[no - KEY1_COUNT - 1])
        return b""

    def put(self, no: int, data: bytes) -> bytes:
        """Assign key no (0 for a whole block) and return the terminal output."""
        data = bytes(data)
        if no == 0:
            data = data.ljust(BLOCK_SIZE, b"\0")
            out = [
                self._put1(i, data[i * KEY1_WIDTH : (i + 1) * KEY1_WIDTH])
                for i in range(KEY1_COUNT)
            ]
            base = KEY1_COUNT * KEY1_WIDTH
            out += [
                self._put2(i, data[base + i * KEY2_WIDTH : base + (i + 1) * KEY2_WIDTH])
                for i in range(KEY2_COUNT)
            ]
            return b"".join(out)
        if 1 <= no <= KEY1_COUNT:
            return self._put1(no - 1, data)
        if KEY1_COUNT < no <= KEY1_COUNT + KEY2_COUNT:
            return self._put2(no - KEY1_COUNT - 1, data)
        return b""

    def _put1(self, index: int, data: bytes) -> bytes:
        field = self._keys1[index]
        if data[:1] == b"\xfe":
            head = data[:8]
            field[: len(head)] = head
            data = data[8:]
            _store(field, 8, _cstr(data))
        else:
            _store(field, 0, _cstr(data))
        kno = 0x3B + index if index < 10 else 0x54 + index - 10
        return _define(kno, _cstr(data))

    def _put2(self, index: int, data: bytes) -> bytes:
        text = _cstr(data)
        _store(self._keys2[index], 0, text)
        return _define(_KEY2_CODES[index], text)