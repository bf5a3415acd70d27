"""A small Game Boy CPU core: registers, memory map with boot ROM, PPU data and instruction decoding."""

__version__ = "0.1.0"