"""Processor state, effective-address access and branch execution."""

from __future__ import annotations

from collections import deque
from enum import IntEnum

MASK32 = 0xFFFFFFFF

# Status register bits.
CCR_C = 0x01
CCR_V = 0x02
CCR_Z = 0x04
CCR_N = 0x08
CCR_X = 0x10
CCR_MASK = 0x1F
SR_S = 0x2000
SR_MASK = 0xA700

HISTORY_SIZE = 200


class Size(IntEnum):
    """Operand size as encoded in instructions."""

    BYTE = 0
    WORD = 1
    LONG = 2

    @property
    def width(self) -> int:
        return 1 << self.value

    @property
    def mask(self) -> int:
        return (1 << (8 * self.width)) - 1


class Mode(IntEnum):
    """Unified addressing mode: modes 0-6 directly, mode 7 as 7 + reg."""

    DD = 0
    AD = 1
    AI = 2
    AIPI = 3
    AIPD = 4
    AID = 5
    AIX = 6
    SRT = 7
    LNG = 8
    PC = 9
    PCX = 10
    IM = 11


def _bits(*modes: Mode) -> int:
    value = 0
    for mode in modes:
        value |= 1 << mode
    return value


EA_ALL = _bits(*Mode)
EA_DATA = EA_ALL & ~_bits(Mode.AD)
EA_MEMORY = EA_DATA & ~_bits(Mode.DD)
EA_CONTROL = _bits(Mode.AI, Mode.AID, Mode.AIX, Mode.SRT, Mode.LNG, Mode.PC, Mode.PCX)
EA_ALTERABLE = _bits(
    Mode.DD, Mode.AD, Mode.AI, Mode.AIPI, Mode.AIPD, Mode.AID, Mode.AIX, Mode.SRT, Mode.LNG
)
EA_VARIABLE_DATA = EA_ALTERABLE & ~_bits(Mode.AD)
EA_VARIABLE_MEMORY = EA_VARIABLE_DATA & ~_bits(Mode.DD)
EA_PREDECREMENT = _bits(Mode.AI, Mode.AIPD, Mode.AID, Mode.AIX, Mode.SRT, Mode.LNG)
EA_POSTINCREMENT = _bits(
    Mode.AI, Mode.AIPI, Mode.AID, Mode.AIX, Mode.SRT, Mode.LNG, Mode.PC, Mode.PCX
)


def sign_extend(value: int, bits: int) -> int:
    """Interpret the low *bits* of value as a signed integer."""
    value &= (1 << bits) - 1
    sign = 1 << (bits - 1)
    return value - (1 << bits) if value & sign else value


class ExecutionError(Exception):
    """A runtime error of the emulated program."""

    def __init__(self, message: str, pc: int = 0) -> None:
        super().__init__(f"run68 exec error: {message} PC={pc & MASK32:06X}")
        self.message = message
        self.pc = pc & MASK32


class Memory:
    """Big-endian main memory."""

    def __init__(self, size: int = 0x100000) -> None:
        self.data = bytearray(size)

    def __len__(self) -> int:
        return len(self.data)

    def _check(self, address: int, length: int) -> int:
        address &= MASK32
        if address + length > len(self.data):
            raise ExecutionError("bus error", address)
        return address

    def read(self, address: int, size: Size) -> int:
        width = Size(size).width
        address = self._check(address, width)
        return int.from_bytes(self.data[address : address + width], "big")

    def write(self, address: int, value: int, size: Size) -> None:
        size = Size(size)
        address = self._check(address, size.width)
        self.data[address : address + size.width] = (value & size.mask).to_bytes(
            size.width, "big"
        )

    def read_string(self, address: int) -> bytes:
        address = self._check(address, 0)
        end = self.data.find(b"\0", address)
        if end < 0:
            raise ExecutionError("bus error", len(self.data))
        return bytes(self.data[address:end])

    def write_string(self, address: int, text: bytes | str) -> None:
        if isinstance(text, str):
            text = text.encode("latin-1")
        payload = bytes(text) + b"\0"
        address = self._check(address, len(payload))
        self.data[address : address + len(payload)] = payload


class InstructionHistory:
    """Ring buffer of the addresses of recently executed instructions."""

    def __init__(self, capacity: int = HISTORY_SIZE) -> None:
        self._entries: deque[int] = deque(maxlen=capacity)

    def insert(self, pc: int) -> None:
        self._entries.append(pc & MASK32)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def entry(self, index: int) -> int:
        """Return an entry; 0 is the most recent one."""
        if index < 0 or index >= len(self._entries):
            raise IndexError(index)
        return self._entries[-1 - index]


class Cpu:
    """Register file plus operand access in the 68000 addressing modes."""

    def __init__(self, memory: Memory | None = None, pc: int = 0, sr: int = SR_S) -> None:
        self.memory = memory if memory is not None else Memory()
        self.d = [0] * 8
        self.a = [0] * 8
        self.pc = pc & MASK32
        self.sr = sr
        self.history = InstructionHistory()

    def _error(self, message: str) -> ExecutionError:
        return ExecutionError(message, self.pc)

    def flag(self, bit: int) -> bool:
        return bool(self.sr & bit)

    def fetch_word(self) -> int:
        """Read a signed word at PC and advance PC."""
        value = self.memory.read(self.pc, Size.WORD)
        self.pc = (self.pc + 2) & MASK32
        return sign_extend(value, 16)

    def fetch(self, size: Size) -> int:
        """Read an immediate operand at PC; a byte occupies a whole word."""
        size = Size(size)
        if size is Size.LONG:
            value = self.memory.read(self.pc, Size.LONG)
            self.pc = (self.pc + 4) & MASK32
            return value
        value = self.memory.read(self.pc, Size.WORD)
        self.pc = (self.pc + 2) & MASK32
        return value & size.mask

    def _index(self) -> int:
        word = self.memory.read(self.pc, Size.WORD)
        self.pc = (self.pc + 2) & MASK32
        ext = word >> 8
        disp8 = sign_extend(word, 8)
        reg = (ext >> 4) & 0x07
        idx = self.a[reg] if ext & 0x80 else self.d[reg]
        idx = sign_extend(idx, 16) if not ext & 0x08 else sign_extend(idx, 32)
        return idx + disp8

    @staticmethod
    def _unify(mode: int, reg: int) -> int:
        return mode if mode < 7 else 7 + reg

    def _check_mode(self, accepted: int, gmode: int) -> None:
        if not accepted & (1 << gmode):
            raise self._error("invalid addressing mode")

    def _step(self, reg: int, size: Size) -> int:
        if reg == 7 and size is Size.BYTE:
            return 2
        return size.width

    def _memory_address(self, gmode: int, reg: int, base_pc: int) -> int | None:
        if gmode == Mode.AI:
            return self.a[reg]
        if gmode == Mode.AID:
            return self.a[reg] + self.fetch_word()
        if gmode == Mode.AIX:
            return self.a[reg] + self._index()
        if gmode == Mode.SRT:
            return self.fetch_word()
        if gmode == Mode.LNG:
            return self.fetch(Size.LONG)
        if gmode == Mode.PC:
            return base_pc + self.fetch_word()
        if gmode == Mode.PCX:
            return base_pc + self._index()
        return None

    def effective_address(self, base_pc: int, accepted: int, mode: int, reg: int) -> int:
        """Compute the address an operand refers to."""
        gmode = self._unify(mode, reg)
        self._check_mode(accepted, gmode)
        address = self._memory_address(gmode, reg, base_pc)
        if address is None:
            raise self._error("invalid addressing mode")
        return address & MASK32

    def read_ea(self, accepted: int, mode: int, reg: int, size: Size) -> int:
        """Read an operand, applying side effects on registers and PC."""
        size = Size(size)
        base_pc = self.pc
        gmode = self._unify(mode, reg)
        self._check_mode(accepted, gmode)
        if gmode == Mode.DD:
            return self.d[reg] & size.mask
        if gmode == Mode.AD:
            return self.a[reg] & size.mask
        if gmode == Mode.AIPI:
            value = self.memory.read(self.a[reg], size)
            self.a[reg] = (self.a[reg] + self._step(reg, size)) & MASK32
            return value
        if gmode == Mode.AIPD:
            self.a[reg] = (self.a[reg] - self._step(reg, size)) & MASK32
            return self.memory.read(self.a[reg], size)
        if gmode == Mode.IM:
            return self.fetch(size)
        address = self._memory_address(gmode, reg, base_pc)
        if address is None:
            raise self._error("invalid addressing mode")
        return self.memory.read(address, size)

    def peek_ea(self, accepted: int, mode: int, reg: int, size: Size) -> int:
        """Read an operand without moving PC."""
        saved = self.pc
        try:
            return self.read_ea(accepted, mode, reg, size)
        finally:
            self.pc = saved

    def write_ea(self, accepted: int, mode: int, reg: int, size: Size, value: int) -> None:
        """Store value in the operand location."""
        size = Size(size)
        base_pc = self.pc
        gmode = self._unify(mode, reg)
        self._check_mode(accepted, gmode)
        if gmode in (Mode.DD, Mode.AD):
            regs = self.d if gmode == Mode.DD else self.a
            regs[reg] = ((regs[reg] & ~size.mask) | (value & size.mask)) & MASK32
            return
        if gmode == Mode.AIPI:
            self.memory.write(self.a[reg], value, size)
            self.a[reg] = (self.a[reg] + self._step(reg, size)) & MASK32
            return
        if gmode == Mode.AIPD:
            self.a[reg] = (self.a[reg] - self._step(reg, size)) & MASK32
            self.memory.write(self.a[reg], value, size)
            return
        address = self._memory_address(gmode, reg, base_pc)
        if address is None:
            raise self._error("invalid addressing mode")
        self.memory.write(address, value, size)

    def condition(self, cond: int) -> bool:
        """Evaluate a condition code (0-15) against the flags."""
        c = self.flag(CCR_C)
        v = self.flag(CCR_V)
        z = self.flag(CCR_Z)
        n = self.flag(CCR_N)
        outcomes = (
            True,
            False,
            not c and not z,
            c or z,
            not c,
            c,
            not z,
            z,
            not v,
            v,
            not n,
            n,
            n == v,
            n != v,
            not z and n == v,
            z or n != v,
        )
        return outcomes[cond & 0x0F]

    def branch(self, opcode: int) -> None:
        """Execute a Bcc/BRA/BSR instruction whose opcode sits at PC."""
        cond = (opcode >> 8) & 0x0F
        disp8 = sign_extend(opcode, 8)
        self.pc = (self.pc + 2) & MASK32

        if cond == 0x01:
            self.a[7] = (self.a[7] - 4) & MASK32
            if disp8 == 0:
                disp16 = self.fetch_word()
                self.memory.write(self.a[7], self.pc, Size.LONG)
                self.pc = (self.pc + disp16 - 2) & MASK32
            else:
                self.memory.write(self.a[7], self.pc, Size.LONG)
                self.pc = (self.pc + disp8) & MASK32
            return

        if self.condition(cond):
            if disp8 == 0:
                disp16 = self.fetch_word()
                self.pc = (self.pc + disp16 - 2) & MASK32
            else:
                self.pc = (self.pc + disp8) & MASK32
        elif disp8 == 0:
            self.pc = (self.pc + 2) & MASK32


_TEXT_COLORS = (
    "0;30",
    "0;36",
    "0;33",
    "0;37",
    "0;1;30",
    "0;1;36",
    "0;1;33",
    "0;1;37",
    "0;30;40",
    "0;30;46",
    "0;30;43",
    "0;30;47",
    "0;30;1;40",
    "0;30;1;46",
    "0;30;1;43",
    "0;30;1;47",
)


def text_color(code: int) -> str:
    """Return the escape sequence for a text attribute, or '' if unknown."""
    if 0 <= code < len(_TEXT_COLORS):
        return f"\x1b[{_TEXT_COLORS[code]}m"
    return ""


def get_locate() -> int:
    """Cursor position as (x << 16) | y; tracking is not supported."""
    return 0