"""CPU register file: 8-bit registers, 16-bit pairs and the flag register."""

from enum import IntEnum

from .bits import WORD_MASK, ByteRegister, get_bit, reset_bit, set_bit, word_from_bytes, word_to_bytes


class Flag(IntEnum):
    """Flags held in the F register; each value is the flag's bit position."""

    Z = 7
    N = 6
    H = 5
    C = 4


class WordRegister:
    """A standalone 16-bit register whose value wraps like an unsigned word."""

    __slots__ = ("_value",)

    def __init__(self, value=0):
        self._value = value & WORD_MASK

    @property
    def value(self):
        return self._value

    @value.setter
    def value(self, value):
        self._value = value & WORD_MASK

    def __repr__(self):
        return f"WordRegister(0x{self._value:04X})"


class PairedWordRegister:
    """A 16-bit view over two 8-bit registers (high and low byte)."""

    __slots__ = ("high", "low")

    def __init__(self, high, low):
        self.high = high
        self.low = low

    @property
    def value(self):
        return word_from_bytes(self.high.value, self.low.value)

    @value.setter
    def value(self, value):
        self.high.value, self.low.value = word_to_bytes(value)

    def __repr__(self):
        return f"PairedWordRegister(0x{self.value:04X})"


class Flags:
    """Access to the individual flags stored in a flag register."""

    __slots__ = ("register",)

    def __init__(self, register):
        self.register = register

    @staticmethod
    def _flag(flag):
        try:
            return Flag(flag)
        except ValueError:
            raise ValueError(f"unknown flag {flag!r}") from None

    def set(self, flag):
        """Set ``flag`` to 1; the low nibble of the register is kept clear."""
        bit = self._flag(flag)
        self.register.value = set_bit(bit, self.register.value) & 0xF0

    def reset(self, flag):
        """Clear ``flag``; the low nibble of the register is kept clear."""
        bit = self._flag(flag)
        self.register.value = reset_bit(bit, self.register.value) & 0xF0

    def get(self, flag):
        """Return the state (0 or 1) of ``flag``."""
        return get_bit(self._flag(flag), self.register.value)


class Registers:
    """The full register file of the CPU."""

    def __init__(self):
        self.a = ByteRegister()
        self.b = ByteRegister()
        self.d = ByteRegister()
        self.h = ByteRegister()
        self.f = ByteRegister()
        self.c = ByteRegister()
        self.e = ByteRegister()
        self.l = ByteRegister()  # noqa: E741
        self.sp = WordRegister()
        self.pc = WordRegister()
        self.af = PairedWordRegister(self.a, self.f)
        self.bc = PairedWordRegister(self.b, self.c)
        self.de = PairedWordRegister(self.d, self.e)
        self.hl = PairedWordRegister(self.h, self.l)
        self.flags = Flags(self.f)

    def __repr__(self):
        return (
            f"Registers(af=0x{self.af.value:04X}, bc=0x{self.bc.value:04X}, "
            f"de=0x{self.de.value:04X}, hl=0x{self.hl.value:04X}, "
            f"sp=0x{self.sp.value:04X}, pc=0x{self.pc.value:04X})"
        )