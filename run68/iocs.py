"""IOCS calls issued through TRAP #15."""

from __future__ import annotations

import sys
import time
from datetime import datetime
from typing import BinaryIO, Callable

from run68.cpu import (
    MASK32,
    SR_S,
    Cpu,
    ExecutionError,
    Size,
    get_locate,
    sign_extend,
    text_color,
)

_DAYS = (
    b"\x93\xfa",
    b"\x8c\x8e",
    b"\x89\xce",
    b"\x90\x85",
    b"\x96\xd8",
    b"\x8b\xe0",
    b"\x93\x79",
    b"\x81\x48",
)


def _bcd2(value: int) -> int:
    return ((value // 10) << 4) | (value % 10)


def date_get(now: datetime) -> int:
    """BCD date: weekday in bits 24-27, then year-1980, month and day.

    The month is stored zero-based, as the host call has always done.
    """
    wday = now.isoweekday() % 7
    return (
        (wday << 24)
        | (_bcd2(now.year - 1980) << 16)
        | (_bcd2(now.month - 1) << 8)
        | _bcd2(now.day)
    )


def time_get(now: datetime) -> int:
    """BCD time as hhmmss."""
    return (_bcd2(now.hour) << 16) | (_bcd2(now.minute) << 8) | _bcd2(now.second)


def _from_bcd(value: int) -> int:
    return ((value >> 4) & 0xF) * 10 + (value & 0xF)


def date_bin(bcd: int) -> int:
    """Convert a BCD date into the binary layout."""
    bcd &= MASK32
    youbi = bcd >> 24
    year = _from_bcd(bcd >> 16) + 1980
    month = _from_bcd(bcd >> 8)
    day = _from_bcd(bcd)
    return ((youbi << 28) | (year << 16) | (month << 8) | day) & MASK32


def time_bin(bcd: int) -> int:
    """Convert a BCD time into the binary layout."""
    return (_from_bcd(bcd >> 16) << 16) | (_from_bcd(bcd >> 8) << 8) | _from_bcd(bcd)


def date_asc(data: int) -> str:
    """Format a binary date; bit 28 selects '-', bit 29 a two-digit year."""
    year = (data >> 16) & 0xFFF
    if not 1980 <= year <= 2079:
        raise ValueError(f"year out of range: {year}")
    month = (data >> 8) & 0xFF
    if not 1 <= month <= 12:
        raise ValueError(f"month out of range: {month}")
    day = data & 0xFF
    if not 1 <= day <= 31:
        raise ValueError(f"day out of range: {day}")

    sep = "-" if data & (1 << 28) else "/"
    if data & (1 << 29):
        return f"{year % 100:02d}{sep}{month:02d}{sep}{day:02d}"
    return f"{year:04d}{sep}{month:02d}{sep}{day:02d}"


def time_asc(data: int) -> str:
    """Format a binary time as hh:mm:ss."""
    hh = (data >> 16) & 0xFF
    mm = (data >> 8) & 0xFF
    ss = data & 0xFF
    if hh > 23 or mm > 59 or ss > 59:
        raise ValueError(f"invalid time: {hh}:{mm}:{ss}")
    return f"{hh:02d}:{mm:02d}:{ss:02d}"


def day_asc(data: int) -> bytes:
    """Shift_JIS name of a weekday number (7 gives a question mark)."""
    return _DAYS[data & 7]


def _uptime() -> tuple[int, int]:
    days, seconds = divmod(int(time.time()), 24 * 60 * 60)
    return seconds * 100, days & 0xFFFF


class IocsHandler:
    """Executes the IOCS call selected by the low byte of D0."""

    def __init__(
        self,
        cpu: Cpu,
        out: BinaryIO | None = None,
        *,
        trace: bool = False,
        clock: Callable[[], datetime] | None = None,
        ontime: Callable[[], tuple[int, int]] | None = None,
    ) -> None:
        self.cpu = cpu
        self.out = out if out is not None else sys.stdout.buffer
        self.trace = trace
        self.clock = clock if clock is not None else datetime.now
        self.ontime = ontime if ontime is not None else _uptime
        self._calls: dict[int, Callable[[], None]] = {
            0x20: self._b_putc,
            0x21: self._b_print,
            0x22: self._b_color,
            0x23: self._b_locate,
            0x24: lambda: self._emit("\x1b[s\n\x1b[u\x1b[1B"),
            0x25: lambda: self._emit("\x1b[1A"),
            0x2F: self._b_putmes,
            0x54: lambda: self._set_d0(date_get(self.clock())),
            0x55: lambda: self._set_d0(date_bin(self.cpu.d[1])),
            0x56: lambda: self._set_d0(time_get(self.clock())),
            0x57: lambda: self._set_d0(time_bin(self.cpu.d[1])),
            0x5A: lambda: self._ascii(date_asc),
            0x5B: lambda: self._ascii(time_asc),
            0x5C: self._dayasc,
            0x6C: lambda: self._vector_hook(0x118),
            0x6D: lambda: self._vector_hook(0x138),
            0x6E: self._hsyncst,
            0x7F: self._ontime,
            0x80: self._b_intvcs,
            0x81: self._b_super,
            0x82: lambda: self._peek(Size.BYTE),
            0x83: lambda: self._peek(Size.WORD),
            0x84: lambda: self._peek(Size.LONG),
            0x8A: self._dmamove,
            0xAE: lambda: self._emit("\x1b[>5l"),
            0xAF: lambda: self._emit("\x1b[>5h"),
        }

    def _emit(self, text: str | bytes) -> None:
        if isinstance(text, str):
            text = text.encode("latin-1")
        self.out.write(text)

    def _set_d0(self, value: int) -> None:
        self.cpu.d[0] = value & MASK32

    def _advance_a1(self, count: int) -> None:
        self.cpu.a[1] = (self.cpu.a[1] + count) & MASK32

    def call(self) -> None:
        """Run the IOCS call whose number is in the low byte of D0."""
        no = self.cpu.d[0] & 0xFF
        if self.trace:
            self._emit(f"IOCS({no:02X}): PC={self.cpu.pc:06X}\n")
        handler = self._calls.get(no)
        if handler is not None:
            handler()
        elif self.trace:
            self._emit(f"IOCS({no:02X}): Unknown IOCS call. Ignored.\n")

    def _b_putc(self) -> None:
        code = self.cpu.d[1] & 0xFFFF
        if code == 0x1A:
            self._emit("\x1b[0J")
        else:
            if code >= 0x0100:
                self._emit(bytes([code >> 8]))
            self._emit(bytes([code & 0xFF]))
        self._set_d0(get_locate())

    def _b_print(self) -> None:
        text = self.cpu.memory.read_string(self.cpu.a[1])
        self._emit(text)
        self._advance_a1(len(text))
        self._set_d0(get_locate())

    def _b_color(self) -> None:
        arg = sign_extend(self.cpu.d[1], 16)
        if arg != -1:
            self._emit(text_color(arg))
        self._set_d0(3)

    def _b_locate(self) -> None:
        if self.cpu.d[1] != MASK32:
            x = (self.cpu.d[1] & 0xFFFF) + 1
            y = (self.cpu.d[2] & 0xFFFF) + 1
            self._emit(f"\x1b[{y};{x}H")
        self._set_d0(get_locate())

    def _b_putmes(self) -> None:
        cpu = self.cpu
        x = (cpu.d[2] & 0xFFFF) + 1
        y = (cpu.d[3] & 0xFFFF) + 1
        columns = min((cpu.d[4] & 0xFFFF) + 1, 96)
        text = cpu.memory.read_string(cpu.a[1])
        self._emit(f"\x1b[{y};{x}H")
        self._emit(text_color(cpu.d[1] & 0xFF))
        self._emit(text[:columns])
        self._advance_a1(len(text))

    def _ascii(self, convert: Callable[[int], str]) -> None:
        try:
            text = convert(self.cpu.d[1])
        except ValueError:
            self._set_d0(-1)
            return
        self.cpu.memory.write_string(self.cpu.a[1], text)
        self._advance_a1(len(text))
        self._set_d0(0)

    def _dayasc(self) -> None:
        self.cpu.memory.write_string(self.cpu.a[1], day_asc(self.cpu.d[1]))
        self._advance_a1(2)
        self._set_d0(0)

    def _vector_hook(self, address: int) -> None:
        memory = self.cpu.memory
        if self.cpu.a[1] == 0:
            memory.write(address, 0, Size.LONG)
            return
        previous = memory.read(address, Size.LONG)
        self._set_d0(previous)
        if previous == 0:
            memory.write(address, self.cpu.a[1], Size.LONG)

    def _hsyncst(self) -> None:
        raise ExecutionError("attempted to set a horizontal sync interrupt", self.cpu.pc)

    def _ontime(self) -> None:
        r0, r1 = self.ontime()
        self.cpu.d[0] = r0 & MASK32
        self.cpu.d[1] = r1 & MASK32

    def _b_intvcs(self) -> None:
        address = (self.cpu.d[1] & 0xFFFF) * 4
        previous = self.cpu.memory.read(address, Size.LONG)
        self.cpu.memory.write(address, self.cpu.a[1], Size.LONG)
        self._set_d0(previous)

    def _b_super(self) -> None:
        cpu = self.cpu
        if cpu.a[1] == 0:
            if cpu.sr & SR_S:
                self._set_d0(-1)
            else:
                self._set_d0(cpu.a[7])
                cpu.sr |= SR_S
        else:
            cpu.a[7] = cpu.a[1]
            self._set_d0(0)
            cpu.sr &= ~SR_S

    def _peek(self, size: Size) -> None:
        cpu = self.cpu
        value = cpu.memory.read(cpu.a[1], size)
        cpu.d[0] = ((cpu.d[0] & ~size.mask) | value) & MASK32
        self._advance_a1(size.width)

    def _dmamove(self) -> None:
        cpu = self.cpu
        mode, size = cpu.d[1], cpu.d[2]
        source, dest = cpu.a[1], cpu.a[2]
        if mode & 0x80:
            source, dest = dest, source
        if mode & 0x0F != 5:
            return
        data = cpu.memory.data
        if source >= len(data) or dest >= len(data):
            return
        chunk = bytes(data[source : source + size])
        chunk = chunk[: len(data) - dest]
        data[dest : dest + len(chunk)] = chunk