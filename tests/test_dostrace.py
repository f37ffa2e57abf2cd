import pytest

from run68.cpu import ExecutionError, Memory, Size
from run68.dostrace import dump_string, format_dos_call, format_params

STACK = 0x1000
TEXT = 0x2000


@pytest.fixture
def memory():
    return Memory(0x4000)


def test_dump_string_plain():
    assert dump_string(b"hello") == "hello"


def test_dump_string_escapes():
    assert dump_string(b"a\tb\r\n") == "a\\tb\\r\\n"


def test_dump_string_hex_escape():
    assert dump_string(b"\x01") == "\\x01"


def test_dump_string_exactly_max_width_has_no_ellipsis():
    assert dump_string(b"a" * 32) == "a" * 32


def test_dump_string_truncates_long_input():
    result = dump_string(b"b" * 40)
    assert result == "b" * 32 + "..."


def test_dump_string_empty():
    assert dump_string(b"") == ""


def test_format_params_words_and_rest(memory):
    memory.write(STACK, 3, Size.WORD)
    memory.write(STACK + 2, 7, Size.WORD)
    text, rest, address = format_params("x={w}, y={w} end", memory, STACK)
    assert text == "x=$0003, y=$0007"
    assert rest == " end"
    assert address == STACK + 4


def test_format_params_without_placeholder(memory):
    text, rest, address = format_params("plain", memory, STACK)
    assert (text, rest, address) == ("", "plain", STACK)


def test_format_params_unclosed_brace(memory):
    memory.write(STACK, 1, Size.WORD)
    text, rest, address = format_params("n={w", memory, STACK)
    assert text == "n=$0001"
    assert rest == ""
    assert address == STACK + 2


def test_format_params_long_and_byte_advance(memory):
    memory.write(STACK, 0xAB, Size.BYTE)
    memory.write(STACK + 1, 0x12345678, Size.LONG)
    text, _, address = format_params("{b}{l}", memory, STACK)
    assert text == "$ab$12345678"
    assert address == STACK + 5


def test_format_params_file_numbers(memory):
    memory.write(STACK, 1, Size.WORD)
    memory.write(STACK + 2, 9, Size.WORD)
    text, _, _ = format_params("{f} {f}", memory, STACK)
    assert text == "$0001(stdout) $0009"


def test_format_params_drives(memory):
    memory.write(STACK, 0, Size.WORD)
    memory.write(STACK + 2, 3, Size.WORD)
    memory.write(STACK + 4, 30, Size.WORD)
    text, _, _ = format_params("{d} {d} {d}", memory, STACK)
    assert text == "$0000(curdrv:) $0003(C:) $001e(?:)"


def test_format_params_string_reads_pointer(memory):
    memory.write_string(TEXT, "hi\n")
    memory.write(STACK, TEXT, Size.LONG)
    text, _, address = format_params("{s}", memory, STACK)
    assert text == '$00002000("hi\\n")'
    assert address == STACK + 4


def test_format_params_char(memory):
    memory.write(STACK, ord("A"), Size.WORD)
    memory.write(STACK + 2, 0x0A, Size.WORD)
    memory.write(STACK + 4, 0x01, Size.WORD)
    text, _, _ = format_params("{c} {c} {c}", memory, STACK)
    assert text == "$0041('A') $000a('\\n') $0001"


def test_print_call(memory):
    memory.write_string(TEXT, "hello")
    memory.write(STACK, TEXT, Size.LONG)
    line = format_dos_call(memory, 0x09, 0x6000, STACK)
    assert line == '$00006000 $ff09: DOS _PRINT mesptr=$00002000("hello")'


def test_unknown_call(memory):
    line = format_dos_call(memory, 0x14, 0x100, STACK)
    assert line.endswith("(unknown dos call)")
    assert line.startswith("$00000100 $ff14: ")


def test_not_implemented_call(memory):
    line = format_dos_call(memory, 0x03, 0, STACK)
    assert line.endswith("DOS _COMINP (not implemented)")


def test_no_argument_call_has_trailing_space(memory):
    assert format_dos_call(memory, 0x00, 0, STACK).endswith("DOS _EXIT ")


def test_v2_prefix_only_for_50_to_7f(memory):
    assert "DOS _V2_GETPDB" in format_dos_call(memory, 0x51, 0, STACK)
    line = format_dos_call(memory, 0x81, 0, STACK)
    assert "DOS _GETPDB" in line
    assert "V2_" not in line


def test_kflush_sub_command(memory):
    memory.write(STACK, 6, Size.WORD)
    memory.write(STACK + 2, ord("A"), Size.WORD)
    line = format_dos_call(memory, 0x0C, 0, STACK)
    assert line.endswith("DOS _KFLUSH mode=$0006(io), code=$0041('A')")


def test_unknown_sub_command(memory):
    memory.write(STACK, 0x55, Size.WORD)
    line = format_dos_call(memory, 0x0C, 0, STACK)
    assert line.endswith("mode=$0055(unknown sub command)")


def test_exec_uses_low_byte_of_mode(memory):
    memory.write(STACK, 0x0104, Size.WORD)
    memory.write(STACK + 2, 0x3000, Size.LONG)
    line = format_dos_call(memory, 0x4B, 0, STACK)
    assert line.endswith("module=$01, mode=$04(execonly), execadr=$00003000")


def test_chgdrv_zero_based_drive(memory):
    memory.write(STACK, 2, Size.WORD)
    assert format_dos_call(memory, 0x0E, 0, STACK).endswith("drive=$0002(C:)")


def test_drvctrl_mode(memory):
    memory.write(STACK, 0x0001, Size.WORD)
    line = format_dos_call(memory, 0x0F, 0, STACK)
    assert line.endswith("mode=$0001(md=0,drive=A:)")


def test_read_call_arguments_in_order(memory):
    memory.write(STACK, 0, Size.WORD)
    memory.write(STACK + 2, TEXT, Size.LONG)
    memory.write(STACK + 6, 16, Size.LONG)
    line = format_dos_call(memory, 0x3F, 0, STACK)
    assert line.endswith("fileno=$0000(stdin), buffer=$00002000, len=$00000010")


def test_argument_outside_memory_raises(memory):
    with pytest.raises(ExecutionError):
        format_dos_call(memory, 0x09, 0, len(memory))