"""Host path handling and clock helpers."""

from __future__ import annotations

import os
import time
from dataclasses import dataclass

PATH_MAX = 4096
DEFAULT_DRIVE = "A:"

# Human68k path limits; the extension length includes its dot.
HUMAN68K_DIR_MAX = 64
HUMAN68K_NAME_MAX = 18
HUMAN68K_EXT_MAX = 4

SECONDS_PER_DAY = 24 * 60 * 60


@dataclass(frozen=True)
class Human68kPathName:
    """A path split the Human68k way: directory with drive, and file name."""

    path: str
    name: str
    name_len: int
    ext_len: int


def to_backslash(text: str) -> str:
    """Replace every slash with a backslash."""
    return text.replace("/", "\\")


def _parent(buf: str) -> str:
    if len(buf) <= 1:
        return buf
    buf = buf[:-1]
    slash = buf.rfind("/")
    return buf[: slash + 1] if slash >= 0 else buf


def absolute_path(path: str, cwd: str | None = None) -> str:
    """Make path absolute, resolving '.' and '..' without following links."""
    if path.startswith("/"):
        buf = "/"
        path = path.lstrip("/")
    else:
        buf = os.getcwd() if cwd is None else cwd
        if buf != "/":
            buf += "/"

    while path:
        if path == ".":
            break
        if path == "..":
            buf = _parent(buf)
            break
        if path.startswith("./"):
            path = path[2:]
            continue
        if path.startswith("../"):
            path = path[3:]
            buf = _parent(buf)
            continue

        sep = path.find("/")
        part = path if sep < 0 else path[: sep + 1]
        if len(buf) + len(part) >= PATH_MAX:
            raise ValueError("path too long")
        buf += part
        if sep < 0:
            break
        path = path[len(part) :]
    return buf


def canonical_path_name(path: str, cwd: str | None = None) -> Human68kPathName:
    """Split an absolute form of path into Human68k directory and name.

    Raises ValueError when the result does not fit Human68k's limits.
    """
    full = absolute_path(path, cwd)
    slash = full.rfind("/")
    if slash < 0:
        raise ValueError(f"not an absolute path: {full}")
    name = full[slash + 1 :]
    directory = full[: slash + 1]
    if len(directory) > HUMAN68K_DIR_MAX:
        raise ValueError("directory name too long")

    dot = name.rfind(".")
    ext_len = len(name) - dot if dot >= 0 else 0
    name_len = len(name) - ext_len
    if ext_len > HUMAN68K_EXT_MAX:
        name_len += ext_len
        ext_len = 0
    if name_len > HUMAN68K_NAME_MAX:
        raise ValueError("file name too long")

    return Human68kPathName(
        path=to_backslash(DEFAULT_DRIVE + directory),
        name=name,
        name_len=name_len,
        ext_len=ext_len,
    )


def add_last_separator(path: str) -> str:
    """Return path with a trailing slash."""
    return path if path.endswith("/") else path + "/"


def path_is_file_spec(path: str) -> bool:
    """Tell whether path is a bare file name with no directory part."""
    return "/" not in path


def current_directory(cwd: str | None = None) -> str:
    """Current directory as DOS _CURDIR reports it: no root, backslashes.

    Raises ValueError when it does not fit the Human68k limit.
    """
    buf = os.getcwd() if cwd is None else cwd
    relative = buf[1:]
    if len(relative) >= HUMAN68K_DIR_MAX:
        raise ValueError("current directory too long")
    return to_backslash(relative)


def ontime(seconds: float | None = None) -> tuple[int, int]:
    """IOCS _ONTIME: (hundredths of a second in the day, day count & 0xffff)."""
    t = int(time.time() if seconds is None else seconds)
    days, rest = divmod(t, SECONDS_PER_DAY)
    return rest * 100, days & 0xFFFF