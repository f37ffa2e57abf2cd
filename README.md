# run68

Pieces of a Human68k console emulator, each usable on its own.

## Modules

- `run68.cpu` — emulated big-endian memory (`Memory`: `read`, `write`,
  `read_string`, `write_string`), operand sizes (`Size`), and the register
  file with 68000 effective-address access (`Cpu`: `fetch_word`, `fetch`,
  `effective_address`, `read_ea`, `peek_ea`, `write_ea`), condition-code
  evaluation (`Cpu.condition`) and execution of Bcc/BRA/BSR
  (`Cpu.branch`). `InstructionHistory` keeps the addresses of the last 200
  executed instructions. Faults such as out-of-range accesses or a
  disallowed addressing mode raise `ExecutionError`. `text_color` returns
  the escape sequence for a text attribute.
- `run68.dostrace` — renders a DOS function call and its stack arguments as
  one trace line (`format_dos_call`), expands argument formats
  (`format_params`) and escapes strings for display (`dump_string`).
- `run68.fefunc` — FPACK helpers: hexadecimal string parsing (`stoh`,
  returning a `StohResult`) and fixed-point conversion of a double given as
  two 32-bit halves (`fcvt`, returning an `FcvtResult`; `classify` returns
  an `FPType`).
- `run68.hupair` — builds HUPAIR command-line blocks (`encode_hupair`,
  `quote_argument`) and checks whether a program in memory carries the
  HUPAIR mark (`is_compliant`).
- `run68.iocs` — BCD date and time conversion (`date_get`, `time_get`,
  `date_bin`, `time_bin`, `date_asc`, `time_asc`, `day_asc`) and
  `IocsHandler`, which runs the IOCS call selected by the low byte of D0
  against a `Cpu`, writing terminal output to a binary stream.
- `run68.ini` — locating the `.ini` file next to an executable
  (`ini_path`), reading the `iothrough` setting (`read_ini`) and the
  `[environment]` section (`read_environment`).
- `run68.host` — mapping host paths to Human68k path names
  (`absolute_path`, `canonical_path_name`, `Human68kPathName`), slash
  handling (`to_backslash`, `add_last_separator`, `path_is_file_spec`),
  the current directory as DOS _CURDIR reports it (`current_directory`)
  and the IOCS _ONTIME clock (`ontime`).
- `run68.keys` — function-key assignments and the terminal sequences that
  define them (`FunctionKeys`).

## Installing

```
pip install .
```

## Examples

Convert dates between BCD, binary and text:

```python
from run68.iocs import date_bin, date_asc

binary = date_bin(0x00240315)   # 2004-03-15 in BCD
print(date_asc(binary))         # 2004/03/15
```

Quote arguments the HUPAIR way:

```python
from run68.hupair import quote_argument

print(quote_argument("hello world"))   # b'"hello world"'
```

Work with emulated memory:

```python
from run68.cpu import Memory, Size

memory = Memory()
memory.write(0x1000, 0x12345678, Size.LONG)
assert memory.read(0x1000, Size.WORD) == 0x1234
```

## What this package does not do

It is a library, not a runnable emulator. There is no command to start, no
loader for executable files, and no instruction decoder: `Cpu` provides
operand access, condition codes and branch instructions, but does not step
through programs. DOS calls can be traced as text, but are not carried out.

## Running the tests

```
pip install .[test]
pytest
```