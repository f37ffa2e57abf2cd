import pytest

from run68.cpu import (
    CCR_C,
    CCR_N,
    CCR_V,
    CCR_Z,
    EA_ALL,
    EA_CONTROL,
    EA_VARIABLE_DATA,
    Cpu,
    ExecutionError,
    InstructionHistory,
    Memory,
    Mode,
    Size,
    get_locate,
    text_color,
)


@pytest.fixture
def cpu():
    return Cpu(Memory(0x10000), pc=0x100)


@pytest.mark.parametrize("size,value", [(Size.BYTE, 0xAB), (Size.WORD, 0xBEEF), (Size.LONG, 0x12345678)])
def test_memory_round_trip(size, value):
    mem = Memory(0x100)
    mem.write(0x10, value, size)
    assert mem.read(0x10, size) == value


def test_memory_is_big_endian():
    mem = Memory(0x100)
    mem.write(0x20, 0x1234, Size.WORD)
    assert mem.read(0x20, Size.BYTE) == 0x12
    assert mem.read(0x21, Size.BYTE) == 0x34


def test_memory_write_truncates_to_size():
    mem = Memory(0x100)
    mem.write(0, 0x12345678, Size.WORD)
    assert mem.read(0, Size.WORD) == 0x5678


def test_memory_out_of_range():
    mem = Memory(0x100)
    with pytest.raises(ExecutionError):
        mem.read(0xFE, Size.LONG)
    with pytest.raises(ExecutionError):
        mem.write(0x100, 1, Size.BYTE)


def test_memory_string_round_trip():
    mem = Memory(0x100)
    mem.write_string(0x40, b"HUMAN68K")
    assert mem.read_string(0x40) == b"HUMAN68K"
    assert mem.read(0x40 + len(b"HUMAN68K"), Size.BYTE) == 0


def test_history_order_and_capacity():
    history = InstructionHistory()
    values = list(range(1000, 1250))
    for v in values:
        history.insert(v)
    assert len(history) == 200
    assert history.entry(0) == values[-1]
    assert history.entry(199) == values[-200]
    with pytest.raises(IndexError):
        history.entry(200)


def test_history_clear():
    history = InstructionHistory()
    history.insert(0x400)
    history.clear()
    assert len(history) == 0
    with pytest.raises(IndexError):
        history.entry(0)


def test_fetch_word_is_signed(cpu):
    cpu.memory.write(0x100, 0xFFFE, Size.WORD)
    assert cpu.fetch_word() == -2
    assert cpu.pc == 0x102


def test_fetch_byte_takes_a_word(cpu):
    cpu.memory.write(0x100, 0x0042, Size.WORD)
    assert cpu.fetch(Size.BYTE) == 0x42
    assert cpu.pc == 0x102


def test_fetch_long(cpu):
    cpu.memory.write(0x100, 0xCAFEBABE, Size.LONG)
    assert cpu.fetch(Size.LONG) == 0xCAFEBABE
    assert cpu.pc == 0x104


def test_data_register_read_and_partial_write(cpu):
    cpu.d[3] = 0x11223344
    assert cpu.read_ea(EA_ALL, Mode.DD, 3, Size.BYTE) == 0x44
    cpu.write_ea(EA_ALL, Mode.DD, 3, Size.BYTE, 0xAA)
    assert cpu.d[3] == 0x112233AA
    cpu.write_ea(EA_ALL, Mode.DD, 3, Size.WORD, 0xBBCC)
    assert cpu.d[3] == 0x1122BBCC


def test_postincrement_byte_on_a7_steps_two(cpu):
    cpu.a[7] = 0x800
    cpu.a[0] = 0x900
    cpu.read_ea(EA_ALL, Mode.AIPI, 7, Size.BYTE)
    cpu.read_ea(EA_ALL, Mode.AIPI, 0, Size.BYTE)
    assert cpu.a[7] == 0x800 + 2
    assert cpu.a[0] == 0x900 + 1


def test_predecrement_write_and_read_back(cpu):
    cpu.a[1] = 0x800
    cpu.write_ea(EA_ALL, Mode.AIPD, 1, Size.LONG, 0xDEADBEEF)
    assert cpu.a[1] == 0x800 - 4
    assert cpu.read_ea(EA_ALL, Mode.AI, 1, Size.LONG) == 0xDEADBEEF


def test_displacement_addressing(cpu):
    cpu.a[2] = 0x1000
    cpu.memory.write(0x1000 - 8, 0x5A5A, Size.WORD)
    cpu.memory.write(0x100, (-8) & 0xFFFF, Size.WORD)
    assert cpu.read_ea(EA_ALL, Mode.AID, 2, Size.WORD) == 0x5A5A
    assert cpu.pc == 0x102


def test_index_addressing_long_address_register(cpu):
    cpu.a[0] = 0x1000
    cpu.a[1] = 0x20
    disp = 4
    cpu.memory.write(0x100, 0x9800 | disp, Size.WORD)
    address = cpu.effective_address(cpu.pc, EA_CONTROL, Mode.AIX, 0)
    assert address == 0x1000 + 0x20 + disp


def test_index_addressing_word_data_register_sign_extends(cpu):
    cpu.a[0] = 0x1000
    cpu.d[2] = 0x0001FFFF
    disp = 6
    cpu.memory.write(0x100, 0x2000 | disp, Size.WORD)
    address = cpu.effective_address(cpu.pc, EA_CONTROL, Mode.AIX, 0)
    assert address == 0x1000 - 1 + disp


def test_pc_relative_uses_base_pc(cpu):
    cpu.memory.write(0x100, 0x0010, Size.WORD)
    address = cpu.effective_address(0x100, EA_CONTROL, 7, 2)
    assert address == 0x100 + 0x10


def test_immediate_read(cpu):
    cpu.memory.write(0x100, 0x01020304, Size.LONG)
    assert cpu.read_ea(EA_ALL, 7, 4, Size.LONG) == 0x01020304
    assert cpu.pc == 0x104


def test_peek_restores_pc(cpu):
    cpu.memory.write(0x100, 0x7777, Size.WORD)
    assert cpu.peek_ea(EA_ALL, 7, 4, Size.WORD) == 0x7777
    assert cpu.pc == 0x100


def test_rejected_mode_raises(cpu):
    with pytest.raises(ExecutionError):
        cpu.read_ea(EA_VARIABLE_DATA, Mode.AD, 0, Size.LONG)
    with pytest.raises(ExecutionError):
        cpu.effective_address(cpu.pc, EA_ALL, Mode.DD, 0)
    with pytest.raises(ExecutionError):
        cpu.write_ea(EA_ALL, 7, 4, Size.WORD, 1)


@pytest.mark.parametrize(
    "flags,cond,expected",
    [
        (0, 0x0, True),
        (0, 0x1, False),
        (CCR_Z, 0x7, True),
        (CCR_Z, 0x6, False),
        (CCR_C, 0x5, True),
        (CCR_C, 0x2, False),
        (CCR_N | CCR_V, 0xC, True),
        (CCR_N, 0xD, True),
        (CCR_N, 0xE, False),
        (CCR_Z, 0xF, True),
    ],
)
def test_condition(cpu, flags, cond, expected):
    cpu.sr = flags
    assert cpu.condition(cond) is expected


def test_bra_short(cpu):
    start = cpu.pc
    cpu.branch(0x6004)
    assert cpu.pc == start + 2 + 4


def test_bcc_word_not_taken_skips_displacement(cpu):
    start = cpu.pc
    cpu.sr = 0
    cpu.memory.write(start + 2, 0x0100, Size.WORD)
    cpu.branch(0x6700)
    assert cpu.pc == start + 4


def test_bsr_word_pushes_return_address(cpu):
    start = cpu.pc
    cpu.a[7] = 0x8000
    disp = 0x0040
    cpu.memory.write(start + 2, disp, Size.WORD)
    cpu.branch(0x6100)
    assert cpu.a[7] == 0x8000 - 4
    assert cpu.memory.read(cpu.a[7], Size.LONG) == start + 4
    assert cpu.pc == start + 2 + disp


def test_text_color():
    assert text_color(1) == "\x1b[0;36m"
    assert text_color(15) == "\x1b[0;30;1;47m"
    assert text_color(16) == ""


def test_get_locate():
    assert get_locate() == 0


def test_execution_error_message():
    err = ExecutionError("bus error", 0x1234)
    assert err.pc == 0x1234
    assert "PC=001234" in str(err)