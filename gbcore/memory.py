"""Memory management unit with the boot ROM mapped at the bottom of the address space."""

from .bits import BYTE_MASK, WORD_MASK

BOOT_ROM = bytes.fromhex(
    "31feffaf21ff9f32cb7c20fb2126ff0e"
    "113e8032e20c3ef3e2323e77773efce0"
    "47110401211080 1acd9500cd96 00137b".replace(" ", "")
    + "fe3420f311d80006081a1322230520f9"
    "3e19ea1099212f990e0c3d2808320d20"
    "f92e0f18f3673e6457e0423e91e04004"
    "1e020e0cf044fe9020fa0d20f71d20f2"
    "0e13247c1e83fe6228061ec1fe642006"
    "7be20c3e87e2f04290e0421520d20520"
    "4f162018cb4f0604c5cb1117c1cb1117"
    "0520f522232223c9ceed6666cc0d000b"
    "03730083000c000d0008111f8889000e"
    "dccc6ee6ddddd999bbbb67636e0eeccc"
    "dddc999fbbb9333e3c42b9a5b9a5423c"
    "21040111a8001a13be0000237dfe3420"
    "f5061978862305 20fb8600003e01e050".replace(" ", "")
)

# Addresses up to and including this one are routed to the boot ROM.
BOOT_ROM_LAST_ADDRESS = 0x100


class MMU:
    """Byte-addressable memory; the lowest addresses map onto a writable boot ROM copy."""

    def __init__(self, boot_rom=BOOT_ROM):
        self.boot_rom = bytearray(boot_rom)
        self.ram = bytearray(WORD_MASK + 1)

    def _boot_index(self, address):
        if address >= len(self.boot_rom):
            raise IndexError(f"address 0x{address:04X} lies past the end of the boot ROM")
        return address

    def get(self, address):
        """Read the byte at ``address``."""
        address &= WORD_MASK
        if address <= BOOT_ROM_LAST_ADDRESS:
            return self.boot_rom[self._boot_index(address)]
        return self.ram[address]

    def set(self, address, value):
        """Write ``value`` (wrapped to a byte) at ``address``."""
        address &= WORD_MASK
        value &= BYTE_MASK
        if address <= BOOT_ROM_LAST_ADDRESS:
            self.boot_rom[self._boot_index(address)] = value
        else:
            self.ram[address] = value