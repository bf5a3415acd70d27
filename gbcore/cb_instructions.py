"""Decoding of the 0xCB-prefixed instruction set: rotates, shifts and bit operations."""

from dataclasses import dataclass
from typing import Callable

CB_PREFIX = 0xCB

REGISTER_CYCLES = 8
MEMORY_CYCLES = 16

# Operand order of a row of eight opcodes; None stands for the byte addressed by HL.
_STANDARD_ORDER = ("b", "c", "d", "e", "h", "l", None, "a")
# The bit operations for odd bit numbers take their operands in this order instead.
_ODD_BIT_ORDER = ("a", "b", "c", "d", "e", "h", "l", None)

_SHIFT_ROWS = ("rlc", "rrc", "rl", "rr", "sla", "sra", "swap", "srl")


class UnknownOpcodeError(ValueError):
    """Raised when an opcode has no instruction behind it."""

    def __init__(self, opcode, prefix=None):
        self.opcode = opcode
        self.prefix = prefix
        prefix_text = f"{prefix:02X}" if prefix is not None else ""
        super().__init__(f"opcode 0x{prefix_text}{opcode:02X} not implemented")


@dataclass(frozen=True)
class Instruction:
    """A decoded instruction: its cycle count and the action that carries it out."""

    cycles: int
    execute: Callable[[], None]

    def __call__(self):
        self.execute()


def _cycles(target):
    return MEMORY_CYCLES if target is None else REGISTER_CYCLES


def _unary(name, target):
    """An operation that rewrites one register or the byte at HL."""
    if target is None:
        def build(cpu):
            method = getattr(cpu, f"{name}_m8")
            return lambda: method(cpu.registers.hl.value)
    else:
        def build(cpu):
            method = getattr(cpu, f"{name}_r8")
            register = getattr(cpu.registers, target)
            return lambda: method(register)
    return build


def _bit_test(bit, target):
    if target is None:
        def build(cpu):
            return lambda: cpu.bit(bit, cpu.mmu.get(cpu.registers.hl.value))
    else:
        def build(cpu):
            register = getattr(cpu.registers, target)
            return lambda: cpu.bit(bit, register.value)
    return build


def _bit_write(name, bit, target):
    if target is None:
        def build(cpu):
            method = getattr(cpu, f"{name}_m8")
            return lambda: method(bit, cpu.registers.hl.value)
    else:
        def build(cpu):
            method = getattr(cpu, f"{name}_r8")
            register = getattr(cpu.registers, target)
            return lambda: method(bit, register)
    return build


def _build_table():
    table = {}
    for row, name in enumerate(_SHIFT_ROWS):
        for column, target in enumerate(_STANDARD_ORDER):
            table[row * 8 + column] = (_cycles(target), _unary(name, target))

    for base, kind in ((0x40, "bit"), (0x80, "res"), (0xC0, "set")):
        for bit in range(8):
            order = _ODD_BIT_ORDER if bit % 2 else _STANDARD_ORDER
            for column, target in enumerate(order):
                if kind == "bit":
                    builder = _bit_test(bit, target)
                else:
                    builder = _bit_write(kind, bit, target)
                table[base + bit * 8 + column] = (_cycles(target), builder)
    return table


_TABLE = _build_table()


def decode_cb(cpu, opcode):
    """Decode the opcode that follows a 0xCB prefix into an instruction bound to ``cpu``."""
    try:
        cycles, builder = _TABLE[opcode]
    except (KeyError, TypeError):
        raise UnknownOpcodeError(opcode, prefix=CB_PREFIX) from None
    return Instruction(cycles=cycles, execute=builder(cpu))