# gbcore

A small core of a Game Boy (DMG) emulator: the CPU with its register file
and flags, a flat memory map whose lowest addresses hold the boot ROM, and
the data shapes the picture processor will use.

The CPU decodes the base instruction set and the `0xCB`-prefixed bit,
shift and rotate instructions. Decoding an opcode that has no instruction
behind it raises `UnknownOpcodeError`.

## Installing

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## Running

```
gbcore
gbcore --max-steps 1000
```

starts a fresh CPU with PC at `0x0000`, so it executes the boot ROM.
Without `--max-steps` it keeps going until something stops it; with it,
it stops after that many instructions. If it meets an opcode it does not
know, it prints the error to standard error and exits with status 1;
otherwise it exits with status 0.

## Using it from Python

```python
from gbcore.cpu import CPU
from gbcore.instructions import step, run

cpu = CPU()
step(cpu)                 # execute one instruction at PC, returns it
cycles = run(cpu, 100)    # execute 100 more, returns the cycles spent
print(hex(cpu.registers.pc.value))
```

`decode(cpu, opcode)` and `decode_cb(cpu, opcode)` return an
`Instruction` with a `cycles` count; calling the instruction executes it
on the CPU it was decoded for.

Building blocks live in their own modules:

- `gbcore.bits` – `ByteRegister`, `word_from_bytes`, `word_to_bytes`,
  `set_bit`, `reset_bit`, `get_bit`
- `gbcore.registers` – `Flag`, `Flags`, `WordRegister`,
  `PairedWordRegister`, `Registers`
- `gbcore.memory` – `MMU` and `BOOT_ROM`; addresses up to and including
  `0x100` are routed to a writable copy of the boot ROM, the rest to RAM
- `gbcore.ppu` – `Tile`, `Tiles`, `PPURegisters`
- `gbcore.cpu` – `CPU` and the operations its instructions perform
- `gbcore.cb_instructions` – `Instruction`, `UnknownOpcodeError`,
  `decode_cb`
- `gbcore.instructions` – `decode`, `step`, `run`, `main`

## Behaviour worth knowing

- `CPU.cp8` stores the difference in A and leaves the flags unchanged.
- The "not zero" forms of the conditional jumps, calls and returns test
  the N flag rather than Z.
- Opcode `0x62` loads D into D.
- Reading address `0x100` lies past the end of the 256-byte boot ROM and
  raises `IndexError`.

## What it does not do

This is a CPU core only. It does not load cartridge ROMs, draw anything
to a screen, produce sound, read input, or model timers and interrupt
delivery: `halt`, `stop`, `di` and `ei` only record state on the CPU.
The `gbcore.ppu` module holds tile and LCD register data but does not
render.