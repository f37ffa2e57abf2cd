"""Components of a Human68k console emulator: CPU operand access, DOS call tracing, FPACK, HUPAIR, IOCS, INI, host and key helpers."""

__version__ = "0.1.0"
__all__ = ["cpu", "dostrace", "fefunc", "host", "hupair", "ini", "iocs", "keys"]