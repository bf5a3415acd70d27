"""Fixed-width byte and word helpers shared by the emulated hardware."""

BYTE_MASK = 0xFF
WORD_MASK = 0xFFFF


def _check_bit(bit):
    if not 0 <= bit < 8:
        raise ValueError(f"bit index must be between 0 and 7, got {bit!r}")


class ByteRegister:
    """An 8-bit register whose value wraps like an unsigned byte."""

    __slots__ = ("_value",)

    def __init__(self, value=0):
        self._value = value & BYTE_MASK

    @property
    def value(self):
        return self._value

    @value.setter
    def value(self, value):
        self._value = value & BYTE_MASK

    def __int__(self):
        return self._value

    def __eq__(self, other):
        if isinstance(other, ByteRegister):
            return self._value == other._value
        return NotImplemented

    __hash__ = None

    def __repr__(self):
        return f"ByteRegister(0x{self._value:02X})"


def word_from_bytes(high, low):
    """Combine a high and a low byte into a 16-bit word."""
    return ((high & BYTE_MASK) << 8) ^ (low & BYTE_MASK)


def word_to_bytes(word):
    """Split a 16-bit word into its (high, low) bytes."""
    word &= WORD_MASK
    return word >> 8, word & BYTE_MASK


def set_bit(bit, value):
    """Return ``value`` with ``bit`` set to 1."""
    _check_bit(bit)
    return (value | (1 << bit)) & BYTE_MASK


def reset_bit(bit, value):
    """Return ``value`` with ``bit`` cleared."""
    _check_bit(bit)
    return value & ~(1 << bit) & BYTE_MASK


def get_bit(bit, value):
    """Return the state (0 or 1) of ``bit`` in ``value``."""
    _check_bit(bit)
    return (value >> bit) & 1