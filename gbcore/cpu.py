"""The CPU core: register file, memory bus and the operations that instructions perform."""

from .bits import BYTE_MASK, WORD_MASK, get_bit, reset_bit, set_bit, word_from_bytes, word_to_bytes
from .memory import MMU
from .registers import Flag, Registers


class CPU:
    """An 8-bit CPU wired to a memory management unit."""

    def __init__(self, mmu=None, registers=None):
        self.mmu = mmu if mmu is not None else MMU()
        self.registers = registers if registers is not None else Registers()
        self.halted = False
        self.interrupts_enabled = False

    @property
    def flags(self):
        return self.registers.flags

    def _flag(self, flag, condition):
        if condition:
            self.flags.set(flag)
        else:
            self.flags.reset(flag)

    def _apply_to_memory(self, operation, address):
        """Run a register operation on the byte stored at ``address``."""
        cell = _MemoryCell(self.mmu, address)
        operation(cell)

    # Fetching and the stack

    def fetch_byte(self):
        """Read the byte at PC and advance PC."""
        value = self.mmu.get(self.registers.pc.value)
        self.inc16(self.registers.pc)
        return value

    def fetch_word(self):
        """Read a little-endian word at PC and advance PC past it."""
        low = self.fetch_byte()
        high = self.fetch_byte()
        return word_from_bytes(high, low)

    def push_word(self, word):
        high, low = word_to_bytes(word)
        self.push_byte(high)
        self.push_byte(low)

    def push_byte(self, value):
        self.dec16(self.registers.sp)
        self.mmu.set(self.registers.sp.value, value)

    def pop_word(self, register):
        """Pop a word off the stack into a 16-bit register."""
        low = self.mmu.get(self.registers.sp.value)
        self.inc16(self.registers.sp)
        high = self.mmu.get(self.registers.sp.value)
        self.inc16(self.registers.sp)
        register.value = word_from_bytes(high, low)

    def pop_byte(self, register):
        register.value = self.mmu.get(self.registers.sp.value)
        self.inc16(self.registers.sp)

    # Loads

    def load_r8(self, register, value):
        register.value = value & BYTE_MASK

    def load_r16(self, register, word):
        register.value = word & WORD_MASK

    def load_m8(self, address, value):
        self.mmu.set(address, value)

    def store_sp(self, address):
        """Write SP to memory, low byte at ``address`` and high byte after it."""
        high, low = word_to_bytes(self.registers.sp.value)
        self.mmu.set(address + 1, high)
        self.mmu.set(address, low)

    def offset_sp(self, target, offset):
        """Load SP plus a signed byte offset into ``target`` and update the flags."""
        offset &= BYTE_MASK
        signed = offset - 0x100 if offset > 127 else offset
        target.value = (self.registers.sp.value + signed) & WORD_MASK

        sp = self.registers.sp.value
        check = sp ^ offset ^ ((sp + offset) & WORD_MASK)
        self._flag(Flag.C, check & 0x100 == 0x100)
        self._flag(Flag.H, check & 0x10 == 0x10)
        self.flags.reset(Flag.Z)
        self.flags.reset(Flag.N)

    # Increments and decrements

    def inc16(self, register):
        register.value = (register.value + 1) & WORD_MASK

    def dec16(self, register):
        register.value = (register.value - 1) & WORD_MASK

    def inc_r8(self, register):
        original = register.value
        result = (original + 1) & BYTE_MASK
        self.flags.reset(Flag.N)
        self._flag(Flag.Z, result == 0)
        self._flag(Flag.H, (result ^ 0x01 ^ original) & 0x10 == 0x10)
        register.value = result

    def inc_m8(self, address):
        self._apply_to_memory(self.inc_r8, address)

    def dec_r8(self, register):
        original = register.value
        result = (original - 1) & BYTE_MASK
        self.flags.set(Flag.N)
        self._flag(Flag.Z, result == 0)
        self._flag(Flag.H, (result ^ 0x01 ^ original) & 0x10 == 0x10)
        register.value = result

    def dec_m8(self, address):
        self._apply_to_memory(self.dec_r8, address)

    # Arithmetic and logic

    def add8(self, value):
        value &= BYTE_MASK
        a = self.registers.a.value
        result = (a + value) & BYTE_MASK
        self.flags.reset(Flag.N)
        self._flag(Flag.Z, result == 0)
        self._flag(Flag.H, (result ^ value ^ a) & 0x10 == 0x10)
        self._flag(Flag.C, result < a)
        self.registers.a.value = result

    def add16(self, word):
        word &= WORD_MASK
        hl = self.registers.hl.value
        result = (hl + word) & WORD_MASK
        self.flags.reset(Flag.N)
        self._flag(Flag.Z, result == 0)
        self._flag(Flag.H, (result ^ word ^ hl) & 0x1000 == 0x1000)
        self._flag(Flag.C, result < hl)
        self.registers.hl.value = result

    def sub8(self, value):
        value &= BYTE_MASK
        a = self.registers.a.value
        result = (a - value) & BYTE_MASK
        self.flags.set(Flag.N)
        self._flag(Flag.Z, result == 0)
        self._flag(Flag.H, (a & 0xF) < (value & 0xF))
        self._flag(Flag.C, a < value)
        self.registers.a.value = result

    def _logic(self, result, half_carry):
        self.flags.reset(Flag.N)
        self.flags.reset(Flag.C)
        self._flag(Flag.H, half_carry)
        self._flag(Flag.Z, result == 0)
        self.registers.a.value = result

    def and8(self, value):
        self._logic(self.registers.a.value & value & BYTE_MASK, True)

    def or8(self, value):
        self._logic((self.registers.a.value | value) & BYTE_MASK, False)

    def xor8(self, value):
        self._logic((self.registers.a.value ^ value) & BYTE_MASK, False)

    def cp8(self, value):
        """Compare with A; stores the difference in A and leaves the flags alone."""
        self.registers.a.value = (self.registers.a.value - value) & BYTE_MASK

    # Bit operations

    def bit(self, bit, value):
        self.flags.reset(Flag.N)
        self.flags.set(Flag.H)
        self._flag(Flag.Z, get_bit(bit, value) == 0)

    def set_r8(self, bit, register):
        register.value = set_bit(bit, register.value)

    def set_m8(self, bit, address):
        self.mmu.set(address, set_bit(bit, self.mmu.get(address)))

    def res_r8(self, bit, register):
        register.value = reset_bit(bit, register.value)

    def res_m8(self, bit, address):
        self.mmu.set(address, reset_bit(bit, self.mmu.get(address)))

    def swap_r8(self, register):
        self.flags.reset(Flag.N)
        self.flags.reset(Flag.H)
        self.flags.reset(Flag.C)
        value = register.value
        result = ((value << 4) | (value >> 4)) & BYTE_MASK
        register.value = result
        self._flag(Flag.Z, result == 0)

    def swap_m8(self, address):
        self._apply_to_memory(self.swap_r8, address)

    # Flag and control operations

    def ccf(self):
        self._flag(Flag.C, self.flags.get(Flag.C) == 0)
        self.flags.reset(Flag.N)
        self.flags.reset(Flag.H)

    def scf(self):
        self.flags.set(Flag.C)
        self.flags.reset(Flag.N)
        self.flags.reset(Flag.H)

    def daa(self):
        """Adjust A to packed BCD after an addition or subtraction."""
        a = self.registers.a.value
        carry = self.flags.get(Flag.C) == 1
        half = self.flags.get(Flag.H) == 1
        if self.flags.get(Flag.N) == 0:
            if carry or a > 0x99:
                a += 0x60
                carry = True
            if half or (a & 0x0F) > 0x09:
                a += 0x06
        else:
            if carry:
                a -= 0x60
            if half:
                a -= 0x06
        a &= BYTE_MASK
        self._flag(Flag.Z, a == 0)
        self.flags.reset(Flag.H)
        self._flag(Flag.C, carry)
        self.registers.a.value = a

    def cpl(self):
        """Complement every bit of A."""
        self.registers.a.value = ~self.registers.a.value & BYTE_MASK
        self.flags.set(Flag.N)
        self.flags.set(Flag.H)

    def nop(self):
        """Do nothing."""

    def halt(self):
        self.halted = True

    def stop(self):
        self.halt()

    def di(self):
        self.interrupts_enabled = False

    def ei(self):
        self.interrupts_enabled = True

    # Rotates and shifts

    def _shift_flags(self, result, carry=None):
        self._flag(Flag.Z, result == 0)
        if carry is not None:
            self._flag(Flag.C, carry)

    def rlc_r8(self, register):
        self.flags.reset(Flag.N)
        self.flags.reset(Flag.H)
        value = register.value
        if value & 0x80:
            self.flags.set(Flag.C)
        result = ((value << 1) | self.flags.get(Flag.C)) & BYTE_MASK
        self._shift_flags(result)
        register.value = result

    def rl_r8(self, register):
        self.flags.reset(Flag.N)
        self.flags.reset(Flag.H)
        value = register.value
        result = ((value << 1) | self.flags.get(Flag.C)) & BYTE_MASK
        self._shift_flags(result, value & 0x80 == 0x80)
        register.value = result

    def rrc_r8(self, register):
        self.flags.reset(Flag.N)
        self.flags.reset(Flag.H)
        value = register.value
        if value & 0x01:
            self.flags.set(Flag.C)
        result = ((value >> 1) | (self.flags.get(Flag.C) << 7)) & BYTE_MASK
        self._shift_flags(result)
        register.value = result

    def rr_r8(self, register):
        self.flags.reset(Flag.N)
        self.flags.reset(Flag.H)
        value = register.value
        result = ((value >> 1) | (self.flags.get(Flag.C) << 7)) & BYTE_MASK
        self._shift_flags(result, value & 0x01 == 0x01)
        register.value = result

    def rlc_m8(self, address):
        self._apply_to_memory(self.rlc_r8, address)

    def rl_m8(self, address):
        self._apply_to_memory(self.rl_r8, address)

    def rrc_m8(self, address):
        self._apply_to_memory(self.rrc_r8, address)

    def rr_m8(self, address):
        self._apply_to_memory(self.rr_r8, address)

    def sla_r8(self, register):
        self.flags.reset(Flag.N)
        self.flags.reset(Flag.H)
        value = register.value
        result = (value << 1) & BYTE_MASK
        self._shift_flags(result, value & 0x80 == 0x80)
        register.value = result

    def sla_m8(self, address):
        self._apply_to_memory(self.sla_r8, address)

    def sra_r8(self, register):
        self.flags.reset(Flag.N)
        self.flags.reset(Flag.H)
        value = register.value
        result = (value >> 1) | (value & 0x80)
        self._shift_flags(result, value & 0x80 == 0x80)
        register.value = result

    def sra_m8(self, address):
        self._apply_to_memory(self.sra_r8, address)

    def srl_r8(self, register):
        self.flags.reset(Flag.N)
        self.flags.reset(Flag.H)
        value = register.value
        result = value >> 1
        self._shift_flags(result, value & 0x80 == 0x80)
        register.value = result

    def srl_m8(self, address):
        self._apply_to_memory(self.srl_r8, address)

    # Jumps, calls and returns

    def jp(self, address):
        self.registers.pc.value = address

    def jp_if(self, flag, flag_value, address):
        if self.flags.get(flag) == flag_value:
            self.jp(address)

    def jr(self, offset):
        self.jp((self.registers.pc.value + (offset & BYTE_MASK)) & WORD_MASK)

    def jr_if(self, flag, flag_value, offset):
        if self.flags.get(flag) == flag_value:
            self.jr(offset)

    def call(self, address):
        self.push_word((self.registers.pc.value + 3) & WORD_MASK)
        self.jp(address)

    def call_if(self, flag, flag_value, address):
        if self.flags.get(flag) == flag_value:
            self.call(address)

    def rst(self, address):
        self.push_word((self.registers.pc.value + 1) & WORD_MASK)
        self.jp(address)

    def ret(self):
        self.pop_word(self.registers.pc)

    def ret_if(self, flag, flag_value):
        if self.flags.get(flag) == flag_value:
            self.ret()

    def reti(self):
        self.ret()
        self.ei()


class _MemoryCell:
    """A register-like view over one byte of memory."""

    __slots__ = ("_mmu", "_address")

    def __init__(self, mmu, address):
        self._mmu = mmu
        self._address = address

    @property
    def value(self):
        return self._mmu.get(self._address)

    @value.setter
    def value(self, value):
        self._mmu.set(self._address, value)