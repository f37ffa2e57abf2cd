"""Human-readable trace lines for DOS function calls."""

from __future__ import annotations

from dataclasses import dataclass, field

from run68.cpu import Memory, Size

STRING_MAX_WIDTH = 32

_ESCAPES = {0x09: "t", 0x0D: "r", 0x0A: "n"}
_STD_FILES = ("stdin", "stdout", "stderr", "stdaux", "stdprn")


@dataclass(frozen=True)
class SubCommand:
    """Argument layouts that depend on the mode word of a call."""

    modes: dict[int, tuple[str, str]]
    low_byte: bool = False


@dataclass(frozen=True)
class DosCall:
    """Name and stack argument layout of one DOS call.

    A format of None marks a call that is not emulated; an empty format
    marks a call without arguments.
    """

    name: str
    format: str | None = None
    sub: SubCommand | None = field(default=None)


_KFLUSH = SubCommand(
    {
        0x0001: ("gp", ""),
        0x0006: ("io", "code={c}"),
        0x0007: ("in", ""),
        0x0008: ("gc", ""),
        0x000A: ("gs", "inpptr={p}"),
    }
)

_CONCTRL = SubCommand(
    {
        0x0000: ("putc", "code={c}"),
        0x0001: ("print", "mesptr={s}"),
        0x0002: ("color", "atr={w}"),
        0x0003: ("locate", "x={w}, y={w}"),
        0x0004: ("down_s", ""),
        0x0005: ("up_s", ""),
        0x0006: ("up", "n={w}"),
        0x0007: ("down", "n={w}"),
        0x0008: ("right", "n={w}"),
        0x0009: ("left", "n={w}"),
        0x000A: ("cls", "mod={w}"),
        0x000B: ("era", "mod={w}"),
        0x000C: ("ins", "n={w}"),
        0x000D: ("del", "n={w}"),
        0x000E: ("fnkmod", "mod={w}"),
        0x000F: ("window", "ys={w}, yl={w}"),
        0x0010: ("width", "mod={w}"),
        0x0011: ("curon", ""),
        0x0012: ("curoff", ""),
    }
)

_KEYCTRL = SubCommand(
    {
        0x0000: ("keyinp", ""),
        0x0001: ("keysns", ""),
        0x0002: ("sftsns", ""),
        0x0003: ("keybit", "group={w}"),
        0x0004: ("insmod", "insmode={w}"),
    }
)

_IOCTRL = SubCommand(
    {
        0x0000: ("gt", "fileno={f}"),
        0x0001: ("st", "fileno={f}, dt={w}"),
        0x0002: ("rh", "fileno={f}, ptr={p}, len={l}"),
        0x0003: ("wh", "fileno={f}, ptr={p}, len={l}"),
        0x0004: ("rd", "drive={d}, ptr={p}, len={l}"),
        0x0005: ("wd", "drive={d}, ptr={p}, len={l}"),
        0x0006: ("is", "fileno={f}"),
        0x0007: ("os", "fileno={f}"),
        0x0009: ("dvgt", "drive={d}"),
        0x000A: ("fdgt", "fileno={f}"),
        0x000B: ("rtset", "count={w}, time={w}"),
        0x000C: ("dvctl", "fileno={f}, f_code={w}, ptr={p}"),
        0x000D: ("fdctl", "drive={d}, f_code={w}, ptr={p}"),
    }
)

_EXEC = SubCommand(
    {
        0x00: ("loadexec", "file={s}, cmdline={s}, envptr={p}"),
        0x01: ("load", "file={s}, cmdline={s}, envptr={p}"),
        0x02: ("pathchk", "file={s}, cmdline={s}, envptr={p}"),
        0x03: ("loadonly", "file={s}, loadadr={p}, limit={p}"),
        0x04: ("execonly", "execadr={p}"),
        0x05: ("bindno", "file={s}, file2={s}"),
    },
    low_byte=True,
)

_MALLOC2 = SubCommand(
    {
        0x0000: ("low", "len={l}"),
        0x0001: ("minimum", "len={l}"),
        0x0002: ("high", "len={l}"),
        0x8000: ("ex,low", "len={l}, oya_mcb={p}"),
        0x8001: ("ex,minimum", "len={l}, oya_mcb={p}"),
        0x8002: ("ex,high", "len={l}, oya_mcb={p}"),
    }
)

_ASSIGN = SubCommand(
    {
        0x0000: ("getassign", "buffer1={s}, buffer2={p}"),
        0x0001: ("makeassign", "buffer1={s}, buffer2={s}, mode={w}"),
        0x0004: ("rassign", "buffer1={s}"),
    }
)

# Calls 0x50-0x7f and 0x80-0xaf share one layout.
_V2_CALLS: dict[int, DosCall] = {
    0x00: DosCall("SETPDB", "pdbadr={p}"),
    0x01: DosCall("GETPDB", ""),
    0x02: DosCall("SETENV"),
    0x03: DosCall("GETENV", "envname={s, NULL}, envptr={p, NULL}, buffer={p}"),
    0x04: DosCall("VERIFYG", ""),
    0x05: DosCall("COMMON"),
    0x06: DosCall("RENAME", "old={s, NULL}, new={s}"),
    0x07: DosCall("FILEDATE", "fileno={f, NULL}, datetime={l}"),
    0x08: DosCall("MALLOC2", "md={w}", _MALLOC2),
    0x0A: DosCall("MAKETMP", "file={s, NULL}, atr={w}"),
    0x0B: DosCall("NEWFILE", "file={s, NULL}, atr={w}"),
    0x0C: DosCall("LOCK"),
    0x0F: DosCall("ASSIGN", "md={w}", _ASSIGN),
    0x10: DosCall("MALLOC3"),
    0x11: DosCall("SETBLOCK2"),
    0x12: DosCall("MALLOC4"),
    0x13: DosCall("S_MALLOC2"),
    0x2A: DosCall("FFLUSH_SET"),
    0x2B: DosCall("OS_PATCH"),
    0x2C: DosCall("GET_FCB_ADR", "fileno={f}"),
    0x2D: DosCall("S_MALLOC"),
    0x2E: DosCall("S_MFREE"),
    0x2F: DosCall("S_PROCESS"),
}

DOS_CALLS: dict[int, DosCall] = {
    0x00: DosCall("EXIT", ""),
    0x01: DosCall("GETCHAR", ""),
    0x02: DosCall("PUTCHAR", "code={c}"),
    0x03: DosCall("COMINP"),
    0x04: DosCall("COMOUT"),
    0x05: DosCall("PRNOUT"),
    0x06: DosCall("INPOUT", "code={c}"),
    0x07: DosCall("INKEY", ""),
    0x08: DosCall("GETC", ""),
    0x09: DosCall("PRINT", "mesptr={s}"),
    0x0A: DosCall("GETS", "inpptr={p}"),
    0x0B: DosCall("KEYSNS", ""),
    0x0C: DosCall("KFLUSH", "mode={w}", _KFLUSH),
    0x0D: DosCall("FFLUSH", ""),
    0x0E: DosCall("CHGDRV", "drive={D}"),
    0x0F: DosCall("DRVCTRL", "mode={r}"),
    0x10: DosCall("CONSNS", ""),
    0x11: DosCall("PRNSNS", ""),
    0x12: DosCall("CINSNS", ""),
    0x13: DosCall("COUTSNS", ""),
    0x17: DosCall("FATCHK"),
    0x18: DosCall("HENDSP"),
    0x19: DosCall("CURDRV", ""),
    0x1A: DosCall("GETSS", "inpptr={p}"),
    0x1B: DosCall("FGETC", "fileno={f}"),
    0x1C: DosCall("FGETS", "buffer={p, NULL}, fileno={f}"),
    0x1D: DosCall("FPUTC", "code={c, NULL}, fileno={f}"),
    0x1E: DosCall("FPUTS", "mesptr={s, NULL}, fileno={f}"),
    0x1F: DosCall("ALLCLOSE", ""),
    0x20: DosCall("SUPER", "stack={p}"),
    0x21: DosCall("FNCKEY", "mode={w, NULL}, buffer={p}"),
    0x22: DosCall("KNJCTRL"),
    0x23: DosCall("CONCTRL", "md={w}", _CONCTRL),
    0x24: DosCall("KEYCTRL", "md={w}", _KEYCTRL),
    0x25: DosCall("INTVCS", "intno={w, NULL}, jobadr={p}"),
    0x26: DosCall("PSPSET", "pspadr={p}"),
    0x27: DosCall("GETTIM2", ""),
    0x28: DosCall("SETTIM2", "time={l}"),
    0x29: DosCall("NAMESTS", "file={s, NULL}, buffer={p}"),
    0x2A: DosCall("GETDATE", ""),
    0x2B: DosCall("SETDATE", "date={w}"),
    0x2C: DosCall("GETTIME", ""),
    0x2D: DosCall("SETTIME", "time={w}"),
    0x2E: DosCall("VERIFY"),
    0x2F: DosCall("DUP0"),
    0x30: DosCall("VERNUM", ""),
    0x31: DosCall("KEEPPR", "prglen={l, NULL}, code={w}"),
    0x32: DosCall("GETPDB"),
    0x33: DosCall("BREAKCK", "flg={w}"),
    0x34: DosCall("DRVXCHG", "old={d, NULL}, new={d}"),
    0x35: DosCall("INTVCG", "intno={w}"),
    0x36: DosCall("DSKFRE", "drive={d, NULL}, buffer={p}"),
    0x37: DosCall("NAMECK", "file={s, NULL}, buffer={p}"),
    0x39: DosCall("MKDIR", "nameptr={s}"),
    0x3A: DosCall("RMDIR", "nameptr={s}"),
    0x3B: DosCall("CHDIR", "nameptr={s}"),
    0x3C: DosCall("CREATE", "nameptr={s, NULL}, atr={w}"),
    0x3D: DosCall("OPEN", "nameptr={s, NULL}, mode={w}"),
    0x3E: DosCall("CLOSE", "fileno={w}"),
    0x3F: DosCall("READ", "fileno={f, NULL}, buffer={p, NULL}, len={l}"),
    0x40: DosCall("WRITE", "fileno={f, NULL}, buffer={p, NULL}, len={l}"),
    0x41: DosCall("DELETE", "nameptr={s}"),
    0x42: DosCall("SEEK", "fileno={f, NULL}, offset={l, NULL}, mode={w}"),
    0x43: DosCall("CHMOD", "nameptr={s, NULL}, atr={w}"),
    0x44: DosCall("IOCTRL", "md={w}", _IOCTRL),
    0x45: DosCall("DUP", "fileno={f}"),
    0x46: DosCall("DUP2", "fileno={f, NULL}, newno={f}"),
    0x47: DosCall("CURDIR", "drive={d, NULL}, buffer={p}"),
    0x48: DosCall("MALLOC", "len={l}"),
    0x49: DosCall("MFREE", "memptr={p}"),
    0x4A: DosCall("SETBLOCK", "memptr={p, NULL}, len={l}"),
    0x4B: DosCall("EXEC", "module={b, NULL}, mode={b}", _EXEC),
    0x4C: DosCall("EXIT2", "code={w}"),
    0x4D: DosCall("WAIT", ""),
    0x4E: DosCall("FILES", "buffer={p, NULL}, file={s, NULL}, atr={w}"),
    0x4F: DosCall("NFILES", "buffer={p}"),
    **{0x50 + offset: call for offset, call in _V2_CALLS.items()},
    **{0x80 + offset: call for offset, call in _V2_CALLS.items()},
    0xB0: DosCall("TWON"),
    0xB1: DosCall("MVDIR"),
    0xE0: DosCall("VMALLOC"),
    0xE1: DosCall("VMFREE"),
    0xE2: DosCall("VMALLOC2"),
    0xE3: DosCall("VSETBLOCK"),
    0xE4: DosCall("VEXEC"),
    0xEF: DosCall("GETFONT"),
    0xF0: DosCall("EXITVC"),
    0xF1: DosCall("CTRLVC"),
    0xF2: DosCall("ERRJVC"),
    0xF3: DosCall("DISKRED"),
    0xF4: DosCall("DISKWRT"),
    0xF5: DosCall("INDOSFLG"),
    0xF6: DosCall("SUPER_JSR", "jobadr={p}"),
    0xF7: DosCall("BUS_ERR", "s_adr={p, NULL}, d_adr={p, NULL}, md={w}"),
    0xF8: DosCall("OPEN_PR"),
    0xF9: DosCall("KILL_PR"),
    0xFA: DosCall("GET_PR"),
    0xFB: DosCall("SUSPEND_PR"),
    0xFC: DosCall("SLEEP_PR"),
    0xFD: DosCall("SEND_PR"),
    0xFE: DosCall("TIME_PR"),
    0xFF: DosCall("CHANGE_PR"),
}


def _is_print(byte: int) -> bool:
    return 0x20 <= byte <= 0x7E


def dump_string(data: bytes) -> str:
    """Render bytes with C-style escapes, cut after 32 characters with '...'."""
    out: list[str] = []
    width = 0
    for byte in data:
        if width >= STRING_MAX_WIDTH:
            out.append("...")
            break
        if _is_print(byte):
            piece = chr(byte)
        elif byte in _ESCAPES:
            piece = "\\" + _ESCAPES[byte]
        else:
            piece = f"\\x{byte:02x}"
        out.append(piece)
        width += len(piece)
    return "".join(out)


def _drive_name(drive: int) -> str:
    if drive == 0:
        return "curdrv"
    if drive <= 26:
        return chr(ord("A") + drive - 1)
    return "?"


def _format_char(word: int) -> str:
    c = word & 0xFF
    if _is_print(c):
        return f"${word:04x}('{chr(c)}')"
    if c in _ESCAPES:
        return f"${word:04x}('\\{_ESCAPES[c]}')"
    return f"${word:04x}"


def _format_param(kind: str, memory: Memory, address: int) -> tuple[str, int]:
    """Format one stack argument; return its text and the next address."""
    if kind == "b":
        return f"${memory.read(address, Size.BYTE):02x}", address + 1
    if kind in ("l", "p"):
        return f"${memory.read(address, Size.LONG):08x}", address + 4
    if kind == "s":
        pointer = memory.read(address, Size.LONG)
        text = dump_string(memory.read_string(pointer))
        return f'${pointer:08x}("{text}")', address + 4
    if kind not in ("w", "c", "f", "r", "d", "D"):
        return "", address

    word = memory.read(address, Size.WORD)
    address += 2
    if kind == "w":
        return f"${word:04x}", address
    if kind == "c":
        return _format_char(word), address
    if kind == "f":
        if word < len(_STD_FILES):
            return f"${word:04x}({_STD_FILES[word]})", address
        return f"${word:04x}", address
    if kind == "r":
        return f"${word:04x}(md={word >> 8},drive={_drive_name(word)}:)", address
    if kind == "d":
        return f"${word:04x}({_drive_name(word)}:)", address
    letter = chr(word + ord("A")) if word <= 25 else "?"
    return f"${word:04x}({letter}:)", address


def format_params(fmt: str, memory: Memory, address: int) -> tuple[str, str, int]:
    """Expand the {x} placeholders of fmt with arguments read from memory.

    Returns the expanded text up to the last placeholder, the text that
    follows it, and the address after the last argument read.
    """
    out: list[str] = []
    rest = fmt
    while rest:
        bracket = rest.find("{")
        if bracket < 0:
            break
        out.append(rest[:bracket])
        spec = rest[bracket + 1 :]
        text, address = _format_param(spec[:1], memory, address)
        out.append(text)
        close = spec.find("}")
        if close < 0:
            return "".join(out), "", address
        rest = spec[close + 1 :]
    return "".join(out), rest, address


def _format_sub_command(
    sub: SubCommand, mode: int, memory: Memory, address: int
) -> tuple[str, str]:
    if sub.low_byte:
        mode &= 0x00FF
    entry = sub.modes.get(mode)
    if entry is None:
        return "", "(unknown sub command)"
    name, fmt = entry
    text, footer, _ = format_params(fmt, memory, address)
    return f"({name}), {text}", footer


def format_dos_call(memory: Memory, code: int, pc: int, a6: int) -> str:
    """Describe a DOS call and its stack arguments as one trace line."""
    code &= 0xFF
    header = f"${pc & 0xFFFFFFFF:08x} $ff{code:02x}: "
    call = DOS_CALLS.get(code)
    if call is None:
        return header + "(unknown dos call)"

    prefix = "V2_" if 0x50 <= code <= 0x7F else ""
    line = f"{header}DOS _{prefix}{call.name} "
    if call.format is None:
        return line + "(not implemented)"

    mode = memory.read(a6, Size.WORD) if call.sub else 0
    text, footer, address = format_params(call.format, memory, a6)
    if call.sub:
        sub_text, footer = _format_sub_command(call.sub, mode, memory, address)
        text += sub_text
    return line + text + footer