import pytest

from gbcore.bits import get_bit, word_from_bytes
from gbcore.cb_instructions import UnknownOpcodeError
from gbcore.cpu import CPU
from gbcore.instructions import decode, main, run, step
from gbcore.registers import Flag

ORIGIN = 0xC000
UNKNOWN = (0xD3, 0xDB, 0xDD, 0xE3, 0xE4, 0xEB, 0xEC, 0xED, 0xF4, 0xFC, 0xFD)


def make_cpu(*program):
    cpu = CPU()
    for offset, byte in enumerate(program):
        cpu.mmu.set(ORIGIN + offset, byte)
    cpu.registers.pc.value = ORIGIN
    return cpu


def test_load_immediate_into_register():
    cpu = make_cpu(0x06, 0x42)
    instruction = step(cpu)
    assert cpu.registers.b.value == 0x42
    assert cpu.registers.pc.value == ORIGIN + 2
    assert instruction.cycles == 8


def test_load_register_from_register():
    cpu = make_cpu(0x41)
    cpu.registers.c.value = 0x5A
    step(cpu)
    assert cpu.registers.b.value == 0x5A


def test_opcode_0x62_loads_d_into_d():
    cpu = make_cpu(0x62)
    cpu.registers.d.value = 0x11
    cpu.registers.h.value = 0x22
    step(cpu)
    assert cpu.registers.h.value == 0x22
    assert cpu.registers.d.value == 0x11


def test_store_and_load_through_hl_round_trip():
    cpu = make_cpu(0x77, 0x3E, 0x00, 0x7E)
    cpu.registers.hl.value = 0xC100
    cpu.registers.a.value = 0x77
    run(cpu, 3)
    assert cpu.registers.a.value == 0x77
    assert cpu.mmu.get(0xC100) == 0x77


def test_store_with_increment_and_decrement():
    cpu = make_cpu(0x22, 0x32)
    cpu.registers.hl.value = 0xC100
    cpu.registers.a.value = 0x33
    step(cpu)
    assert cpu.mmu.get(0xC100) == 0x33
    assert cpu.registers.hl.value == 0xC101
    step(cpu)
    assert cpu.mmu.get(0xC101) == 0x33
    assert cpu.registers.hl.value == 0xC100


def test_high_page_store_and_load_round_trip():
    cpu = make_cpu(0xE0, 0x80, 0x3E, 0x00, 0xF0, 0x80)
    cpu.registers.a.value = 0x5C
    step(cpu)
    assert cpu.mmu.get(0xFF00 + 0x80) == 0x5C
    run(cpu, 2)
    assert cpu.registers.a.value == 0x5C


def test_load_word_immediate():
    cpu = make_cpu(0x21, 0x34, 0x12)
    instruction = step(cpu)
    assert cpu.registers.hl.value == 0x1234
    assert instruction.cycles == 12


def test_push_then_pop_round_trip():
    cpu = make_cpu(0xC5, 0xD1)
    cpu.registers.bc.value = 0x1234
    cpu.registers.sp.value = 0xD000
    run(cpu, 2)
    assert cpu.registers.de.value == 0x1234
    assert cpu.registers.sp.value == 0xD000


@pytest.mark.parametrize(
    "opcode, method",
    [(0x80, "add8"), (0x90, "sub8"), (0xA0, "and8"), (0xA8, "xor8"), (0xB0, "or8"), (0xB8, "cp8")],
)
def test_alu_opcodes_match_cpu_operations(opcode, method):
    decoded = make_cpu(opcode)
    direct = make_cpu()
    for cpu in (decoded, direct):
        cpu.registers.a.value = 0x3C
        cpu.registers.b.value = 0x1F
    step(decoded)
    getattr(direct, method)(0x1F)
    assert decoded.registers.a.value == direct.registers.a.value
    assert decoded.registers.f.value == direct.registers.f.value


def test_add_with_carry_includes_carry_flag():
    cpu = make_cpu(0x88)
    cpu.flags.set(Flag.C)
    step(cpu)
    assert cpu.registers.a.value == 1


def test_increment_memory_at_hl():
    cpu = make_cpu(0x34)
    cpu.registers.hl.value = 0xC200
    cpu.mmu.set(0xC200, 0x41)
    instruction = step(cpu)
    assert cpu.mmu.get(0xC200) == 0x41 + 1
    assert instruction.cycles == 12


def test_absolute_jump():
    cpu = make_cpu(0xC3, 0x00, 0xC2)
    step(cpu)
    assert cpu.registers.pc.value == 0xC200


def test_first_conditional_jump_tests_n_flag():
    cpu = make_cpu(0xC2, 0x00, 0xC2)
    cpu.flags.set(Flag.Z)
    step(cpu)
    assert cpu.registers.pc.value == 0xC200


def test_untaken_jump_still_consumes_operand():
    cpu = make_cpu(0xDA, 0x00, 0xC2)
    cpu.flags.reset(Flag.C)
    step(cpu)
    assert cpu.registers.pc.value == ORIGIN + 3


def test_relative_jump():
    cpu = make_cpu(0x18, 0x05)
    step(cpu)
    assert cpu.registers.pc.value == ORIGIN + 2 + 5


def test_call_then_return():
    cpu = make_cpu(0xCD, 0x00, 0xC2)
    cpu.mmu.set(0xC200, 0xC9)
    cpu.registers.sp.value = 0xD000
    step(cpu)
    assert cpu.registers.pc.value == 0xC200
    assert cpu.registers.sp.value == 0xD000 - 2
    step(cpu)
    assert cpu.registers.pc.value == ORIGIN + 3 + 3
    assert cpu.registers.sp.value == 0xD000


def test_restart_pushes_return_address():
    cpu = make_cpu(0xFF)
    cpu.registers.sp.value = 0xD000
    instruction = step(cpu)
    assert cpu.registers.pc.value == 0x38
    sp = cpu.registers.sp.value
    assert word_from_bytes(cpu.mmu.get(sp + 1), cpu.mmu.get(sp)) == ORIGIN + 2
    assert instruction.cycles == 16


def test_offset_sp_opcodes_match_cpu_operation():
    decoded = make_cpu(0xF8, 0xFE)
    direct = make_cpu()
    for cpu in (decoded, direct):
        cpu.registers.sp.value = 0xD000
    step(decoded)
    direct.offset_sp(direct.registers.hl, 0xFE)
    assert decoded.registers.hl.value == direct.registers.hl.value
    assert decoded.registers.f.value == direct.registers.f.value


def test_store_sp_round_trip():
    cpu = make_cpu(0x08, 0x00, 0xC2)
    cpu.registers.sp.value = 0xBEEF
    instruction = step(cpu)
    assert word_from_bytes(cpu.mmu.get(0xC201), cpu.mmu.get(0xC200)) == 0xBEEF
    assert instruction.cycles == 20


def test_cb_prefix_executes_cb_instruction():
    cpu = make_cpu(0xCB, 0xC7)
    instruction = step(cpu)
    assert get_bit(0, cpu.registers.a.value) == 1
    assert instruction.cycles == 4
    assert cpu.registers.pc.value == ORIGIN + 2


def test_interrupt_and_halt_controls():
    cpu = make_cpu(0xFB, 0xF3, 0x76)
    step(cpu)
    assert cpu.interrupts_enabled is True
    step(cpu)
    assert cpu.interrupts_enabled is False
    step(cpu)
    assert cpu.halted is True


def test_decode_does_not_execute_until_called():
    cpu = make_cpu()
    cpu.registers.a.value = 0x10
    instruction = decode(cpu, 0x3C)
    assert cpu.registers.a.value == 0x10
    instruction()
    assert cpu.registers.a.value == 0x10 + 1


@pytest.mark.parametrize("opcode", UNKNOWN)
def test_unknown_opcodes_raise(opcode):
    with pytest.raises(UnknownOpcodeError) as info:
        decode(make_cpu(), opcode)
    assert info.value.opcode == opcode


def test_every_other_opcode_decodes_with_known_cycles():
    cpu = make_cpu()
    cycles = {decode(cpu, opcode).cycles for opcode in range(256) if opcode not in UNKNOWN}
    assert cycles <= {4, 8, 12, 16, 20}


def test_run_counts_cycles_and_respects_limit():
    cpu = make_cpu(*([0x00] * 8))
    assert run(cpu, 5) == 5 * 4
    assert cpu.registers.pc.value == ORIGIN + 5


def test_run_with_zero_limit_does_nothing():
    cpu = make_cpu(0x3C)
    assert run(cpu, 0) == 0
    assert cpu.registers.pc.value == ORIGIN


def test_run_stops_on_unknown_opcode():
    cpu = make_cpu(0x00, 0xD3)
    with pytest.raises(UnknownOpcodeError):
        run(cpu)
    assert cpu.registers.pc.value == ORIGIN + 2


def test_first_boot_rom_instruction_sets_stack_pointer():
    cpu = CPU()
    step(cpu)
    assert cpu.registers.sp.value == 0xFFFE
    assert cpu.registers.pc.value == 3


def test_main_runs_limited_steps():
    assert main(["--max-steps", "10"]) == 0


def test_main_rejects_negative_limit():
    with pytest.raises(SystemExit):
        main(["--max-steps", "-1"])