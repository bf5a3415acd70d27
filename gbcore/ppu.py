"""Picture processing unit state: tile data and the LCD control registers."""

from dataclasses import dataclass, field

from .bits import ByteRegister

DEFAULT_BGP = 0x1B
TILE_SIZE = 16
TILE_COUNT = 256


@dataclass
class Tile:
    """One tile: 16 bytes of 2-bit-per-pixel image data."""

    data: bytearray = field(default_factory=lambda: bytearray(TILE_SIZE))

    def __post_init__(self):
        self.data = bytearray(self.data)
        if len(self.data) != TILE_SIZE:
            raise ValueError(f"a tile holds {TILE_SIZE} bytes, got {len(self.data)}")


@dataclass
class Tiles:
    """A bank of 256 tiles."""

    tiles: list = field(default_factory=lambda: [Tile() for _ in range(TILE_COUNT)])

    def __post_init__(self):
        self.tiles = list(self.tiles)
        if len(self.tiles) != TILE_COUNT:
            raise ValueError(f"a tile bank holds {TILE_COUNT} tiles, got {len(self.tiles)}")

    def __getitem__(self, index):
        return self.tiles[index]

    def __len__(self):
        return len(self.tiles)

    def __iter__(self):
        return iter(self.tiles)


@dataclass
class PPURegisters:
    """The memory-mapped LCD registers."""

    lcdc: ByteRegister = field(default_factory=ByteRegister)
    stat: ByteRegister = field(default_factory=ByteRegister)
    scy: ByteRegister = field(default_factory=ByteRegister)
    scx: ByteRegister = field(default_factory=ByteRegister)
    ly: ByteRegister = field(default_factory=ByteRegister)
    lyc: ByteRegister = field(default_factory=ByteRegister)
    dma: ByteRegister = field(default_factory=ByteRegister)
    bgp: ByteRegister = field(default_factory=ByteRegister)
    obp0: ByteRegister = field(default_factory=ByteRegister)
    obp1: ByteRegister = field(default_factory=ByteRegister)
    wy: ByteRegister = field(default_factory=ByteRegister)
    wx: ByteRegister = field(default_factory=ByteRegister)