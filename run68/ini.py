"""Reading settings and environment variables from the emulator's INI file."""

from __future__ import annotations

from pathlib import Path


def _chomp(line: bytes) -> bytes:
    return line.rstrip(b"\r\n")


def _lines(path: str | Path) -> list[bytes] | None:
    try:
        with open(path, "rb") as fp:
            return [_chomp(line) for line in fp]
    except OSError:
        return None


def ini_path(path: str) -> str | None:
    """Return the INI file path for an executable path.

    A missing extension gets ".ini" appended and ".exe" (in any case) is
    replaced; any other extension yields None.
    """
    for separator in ("\\", "/", ":"):
        cut = path.rfind(separator)
        if cut >= 0:
            directory, name = path[: cut + 1], path[cut + 1 :]
            break
    else:
        directory, name = "", path

    dot = name.rfind(".")
    if dot < 0:
        name += ".ini"
    elif name[dot:].lower() == ".exe":
        name = name[:dot] + ".ini"
    else:
        return None
    return directory + name


def read_ini(path: str) -> bool:
    """Tell whether the INI file next to an executable enables iothrough.

    Keywords before any section header belong to [all]; only [all] is read.
    """
    target = ini_path(path)
    if target is None:
        return False
    lines = _lines(target)
    if lines is None:
        return False

    iothrough = False
    section_match = True
    for line in lines:
        if line.startswith(b"["):
            section_match = line.lower() == b"[all]"
            continue
        if section_match and line.lower() == b"iothrough":
            iothrough = True
    return iothrough


def read_environment(path: str, size: int) -> list[bytes]:
    """Read the [environment] section as initial environment strings.

    The last three characters of path are replaced with "ini". Entries are
    kept while their total length (each counted with its NUL) stays below
    size - 5; an entry that does not fit is skipped.
    """
    if len(path) < 4:
        return []
    lines = _lines(path[:-3] + "ini")
    if lines is None:
        return []

    entries: list[bytes] = []
    used = 0
    in_environment = False
    for line in lines:
        if line.startswith(b"["):
            in_environment = line.lower() == b"[environment]"
            continue
        if in_environment:
            length = len(line) + 1
            if used + length < size - 5:
                entries.append(line)
                used += length
    return entries