"""Decoding of the unprefixed instruction set, the fetch-decode-execute loop and the command."""

import argparse
import sys
from functools import partial

from .cb_instructions import Instruction, UnknownOpcodeError, decode_cb
from .cpu import CPU
from .registers import Flag

HIGH_PAGE = 0xFF00

# Operand order of a row of eight opcodes; None stands for the byte addressed by HL.
_OPERANDS = ("b", "c", "d", "e", "h", "l", None, "a")
_WORD_REGISTERS = ("bc", "de", "hl", "sp")
_STACK_REGISTERS = ("bc", "de", "hl", "af")
# Conditions of the jump, call and return families; the first one tests the N flag.
_CONDITIONS = ((Flag.N, 0), (Flag.Z, 1), (Flag.C, 0), (Flag.C, 1))
# The ALU rows: operation and whether the carry flag is added to the operand.
_ALU_ROWS = (
    ("add8", False),
    ("add8", True),
    ("sub8", False),
    ("sub8", True),
    ("and8", False),
    ("xor8", False),
    ("or8", False),
    ("cp8", False),
)

_TABLE = {}


def _define(opcode, cycles, action):
    if opcode in _TABLE:
        raise RuntimeError(f"opcode 0x{opcode:02X} defined twice")
    _TABLE[opcode] = (cycles, action)


def _register(cpu, name):
    return getattr(cpu.registers, name)


def _operand(target):
    """Return a reader of an 8-bit operand: a register or the byte at HL."""
    if target is None:
        return lambda cpu: cpu.mmu.get(cpu.registers.hl.value)
    return lambda cpu: _register(cpu, target).value


def _load_register(dest, read):
    return lambda cpu: cpu.load_r8(_register(cpu, dest), read(cpu))


def _load_memory(address, read):
    return lambda cpu: cpu.load_m8(address(cpu), read(cpu))


def _alu(method, with_carry, read):
    def action(cpu):
        value = read(cpu)
        if with_carry:
            value = (value + cpu.flags.get(Flag.C)) & 0xFF
        getattr(cpu, method)(value)

    return action


def _unary(name, target):
    if target is None:
        return lambda cpu: getattr(cpu, f"{name}_m8")(cpu.registers.hl.value)
    return lambda cpu: getattr(cpu, f"{name}_r8")(_register(cpu, target))


def _word_op(method, name):
    return lambda cpu: getattr(cpu, method)(_register(cpu, name))


def _hl(cpu):
    return cpu.registers.hl.value


def _fetch_byte(cpu):
    return cpu.fetch_byte()


def _fetch_word(cpu):
    return cpu.fetch_word()


def _accumulator(cpu):
    return cpu.registers.a.value


def _define_loads():
    for row, dest in enumerate(_OPERANDS):
        for column, source in enumerate(_OPERANDS):
            opcode = 0x40 + row * 8 + column
            if dest is None and source is None:
                continue
            read = _operand(source)
            cycles = 8 if dest is None or source is None else 4
            if dest is None:
                _define(opcode, cycles, _load_memory(_hl, read))
            else:
                # Opcode 0x62 writes to D rather than H.
                target = "d" if opcode == 0x62 else dest
                _define(opcode, cycles, _load_register(target, read))

    for index, dest in enumerate(_OPERANDS):
        opcode = 0x06 + index * 8
        if dest is None:
            _define(opcode, 12, _load_memory(_hl, _fetch_byte))
        else:
            _define(opcode, 8, _load_register(dest, _fetch_byte))

    _define(0x0A, 8, _load_register("a", lambda cpu: cpu.mmu.get(cpu.registers.bc.value)))
    _define(0x1A, 8, _load_register("a", lambda cpu: cpu.mmu.get(cpu.registers.de.value)))
    _define(0xFA, 16, _load_register("a", lambda cpu: cpu.mmu.get(cpu.fetch_word())))
    _define(0x02, 8, _load_memory(lambda cpu: cpu.registers.bc.value, _accumulator))
    _define(0x12, 8, _load_memory(lambda cpu: cpu.registers.de.value, _accumulator))
    _define(0xEA, 16, _load_memory(_fetch_word, _accumulator))

    _define(0xF2, 8, _load_register(
        "a", lambda cpu: cpu.mmu.get(HIGH_PAGE + cpu.registers.c.value)))
    _define(0xE2, 8, _load_memory(lambda cpu: HIGH_PAGE + cpu.registers.c.value, _accumulator))
    _define(0xF0, 12, _load_register(
        "a", lambda cpu: cpu.mmu.get(HIGH_PAGE + cpu.fetch_byte())))
    _define(0xE0, 12, _load_memory(lambda cpu: HIGH_PAGE + cpu.fetch_byte(), _accumulator))

    def then_step(action, method):
        def combined(cpu):
            action(cpu)
            getattr(cpu, method)(cpu.registers.hl)

        return combined

    read_hl = _operand(None)
    _define(0x3A, 8, then_step(_load_register("a", read_hl), "dec16"))
    _define(0x32, 8, then_step(_load_memory(_hl, _accumulator), "dec16"))
    _define(0x2A, 8, then_step(_load_register("a", read_hl), "inc16"))
    _define(0x22, 8, then_step(_load_memory(_hl, _accumulator), "inc16"))


def _define_word_ops():
    for index, name in enumerate(_WORD_REGISTERS):
        base = index * 0x10
        _define(base + 0x01, 12, lambda cpu, name=name: cpu.load_r16(_register(cpu, name), cpu.fetch_word()))
        _define(base + 0x03, 8, _word_op("inc16", name))
        _define(base + 0x0B, 8, _word_op("dec16", name))
        _define(base + 0x09, 8, lambda cpu, name=name: cpu.add16(_register(cpu, name).value))

    for index, name in enumerate(_STACK_REGISTERS):
        base = 0xC0 + index * 0x10
        _define(base + 0x01, 12, _word_op("pop_word", name))
        _define(base + 0x05, 16, lambda cpu, name=name: cpu.push_word(_register(cpu, name).value))

    _define(0xF9, 8, lambda cpu: cpu.load_r16(cpu.registers.sp, cpu.registers.hl.value))
    _define(0xF8, 12, lambda cpu: cpu.offset_sp(cpu.registers.hl, cpu.fetch_byte()))
    _define(0xE8, 16, lambda cpu: cpu.offset_sp(cpu.registers.sp, cpu.fetch_byte()))
    _define(0x08, 20, lambda cpu: cpu.store_sp(cpu.fetch_word()))


def _define_alu():
    for row, (method, with_carry) in enumerate(_ALU_ROWS):
        for column, source in enumerate(_OPERANDS):
            cycles = 8 if source is None else 4
            _define(0x80 + row * 8 + column, cycles, _alu(method, with_carry, _operand(source)))
        _define(0xC6 + row * 8, 8, _alu(method, with_carry, _fetch_byte))

    for index, target in enumerate(_OPERANDS):
        cycles = 12 if target is None else 4
        _define(0x04 + index * 8, cycles, _unary("inc", target))
        _define(0x05 + index * 8, cycles, _unary("dec", target))


def _define_control():
    for opcode, method in (
        (0x27, "daa"), (0x2F, "cpl"), (0x3F, "ccf"), (0x37, "scf"), (0x00, "nop"),
        (0x76, "halt"), (0x10, "stop"), (0xF3, "di"), (0xFB, "ei"),
    ):
        _define(opcode, 4, lambda cpu, method=method: getattr(cpu, method)())

    for opcode, name in ((0x07, "rlc"), (0x0F, "rrc"), (0x17, "rl"), (0x1F, "rr")):
        _define(opcode, 4, _unary(name, "a"))

    _define(0xC3, 12, lambda cpu: cpu.jp(cpu.fetch_word()))
    _define(0xE9, 4, lambda cpu: cpu.jp(cpu.registers.hl.value))
    _define(0x18, 8, lambda cpu: cpu.jr(cpu.fetch_byte()))
    _define(0xCD, 12, lambda cpu: cpu.call(cpu.fetch_word()))
    _define(0xC9, 8, lambda cpu: cpu.ret())
    _define(0xD9, 8, lambda cpu: cpu.reti())

    for index, (flag, value) in enumerate(_CONDITIONS):
        offset = index * 8
        _define(0xC2 + offset, 12, lambda cpu, f=flag, v=value: cpu.jp_if(f, v, cpu.fetch_word()))
        _define(0x20 + offset, 8, lambda cpu, f=flag, v=value: cpu.jr_if(f, v, cpu.fetch_byte()))
        _define(0xC4 + offset, 12, lambda cpu, f=flag, v=value: cpu.call_if(f, v, cpu.fetch_word()))
        _define(0xC0 + offset, 8, lambda cpu, f=flag, v=value: cpu.ret_if(f, v))

    for index in range(8):
        _define(0xC7 + index * 8, 16, lambda cpu, address=index * 8: cpu.rst(address))

    _define(0xCB, 4, lambda cpu: decode_cb(cpu, cpu.fetch_byte())())


_define_loads()
_define_word_ops()
_define_alu()
_define_control()


def decode(cpu, opcode):
    """Decode ``opcode`` into an instruction bound to ``cpu``; it runs when called."""
    try:
        cycles, action = _TABLE[opcode]
    except (KeyError, TypeError):
        raise UnknownOpcodeError(opcode) from None
    return Instruction(cycles=cycles, execute=partial(action, cpu))


def step(cpu):
    """Fetch, decode and execute one instruction; return the executed instruction."""
    instruction = decode(cpu, cpu.fetch_byte())
    instruction()
    return instruction


def run(cpu, limit=None):
    """Execute instructions, at most ``limit`` of them if given; return the cycles spent."""
    cycles = 0
    executed = 0
    while limit is None or executed < limit:
        cycles += step(cpu).cycles
        executed += 1
    return cycles


def _non_negative(text):
    value = int(text)
    if value < 0:
        raise argparse.ArgumentTypeError("must not be negative")
    return value


def main(argv=None):
    """Start a CPU at the beginning of the boot ROM and run it."""
    parser = argparse.ArgumentParser(prog="gbcore", description="Run the CPU from the boot ROM.")
    parser.add_argument(
        "--max-steps",
        type=_non_negative,
        default=None,
        help="stop after this many instructions (default: run until an error)",
    )
    args = parser.parse_args(argv)

    cpu = CPU()
    try:
        run(cpu, args.max_steps)
    except UnknownOpcodeError as error:
        print(error, file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())