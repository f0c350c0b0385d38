"""
BeamNG terrain (.ter) encoding.

File layout, all grids row-major without padding:

    header           u16 BE   0x0800, written twice, then one zero byte
    heights          u16 LE   size * size samples
    layer map        u8       size * size, layer index per cell
    reserved         u8       4 * size * size, zero-filled channels
    material count   u16 LE   followed by one zero byte
    material names   u16 BE length + UTF-8 bytes, per material

The header is the fixed byte sequence 08 00 08 00 00 for every grid size,
so the size is recovered from the file length when decoding. With the
single placeholder material the name table is
01 00 00 00 10 "warning_material".
"""

import math
import struct
import numpy as np
import structlog
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, BinaryIO, List, Optional, Tuple, Union

if TYPE_CHECKING:
    from ..core.heightgrid import HeightGrid

logger = structlog.get_logger()

TERRAIN_MAGIC = 0x0800
HEADER = struct.Struct(">HHB")
HEADER_BYTES = HEADER.pack(TERRAIN_MAGIC, TERRAIN_MAGIC, 0)
MATERIAL_COUNT = struct.Struct("<HB")
MATERIAL_NAME_LENGTH = struct.Struct(">H")
RESERVED_GRIDS = 4

# Bytes per cell: u16 height, u8 layer index, reserved channels
CELL_BYTES = 2 + 1 + RESERVED_GRIDS

# Placeholder material, signals that the terrain still needs texturing
DEFAULT_MATERIAL = "warning_material"

MAX_SAMPLE = np.iinfo(np.uint16).max
MAX_MATERIALS = np.iinfo(np.uint16).max
MAX_NAME_BYTES = np.iinfo(np.uint16).max


def quantize_heights(heights: np.ndarray) -> np.ndarray:
    """Map normalized [0, 1] heights to uint16 samples, rounding halves up."""
    scaled = np.floor(np.clip(heights.astype(np.float64), 0.0, 1.0) * MAX_SAMPLE + 0.5)
    return scaled.astype(np.uint16)


def _parse_material_table(data: bytes, offset: int) -> Optional[List[str]]:
    """Names of a table that ends exactly at the end of data, else None."""
    if len(data) - offset < MATERIAL_COUNT.size:
        return None
    count, pad = MATERIAL_COUNT.unpack_from(data, offset)
    if pad != 0:
        return None
    offset += MATERIAL_COUNT.size

    names = []
    for _ in range(count):
        if len(data) - offset < MATERIAL_NAME_LENGTH.size:
            return None
        (length,) = MATERIAL_NAME_LENGTH.unpack_from(data, offset)
        offset += MATERIAL_NAME_LENGTH.size
        if len(data) - offset < length:
            return None
        try:
            names.append(data[offset:offset + length].decode("utf-8"))
        except UnicodeDecodeError:
            return None
        offset += length
    return names if offset == len(data) else None


def _locate_grids(data: bytes) -> Tuple[int, List[str]]:
    """Find the grid size whose material table consumes the rest of data."""
    available = len(data) - HEADER.size - MATERIAL_COUNT.size
    size = math.isqrt(max(available, 0) // CELL_BYTES)
    while size > 0:
        names = _parse_material_table(data, HEADER.size + CELL_BYTES * size * size)
        if names is not None:
            return size, names
        size -= 1
    raise ValueError(f"Terrain data of {len(data)} bytes does not hold a square grid")


@dataclass(frozen=True)
class TerrainRecord:
    """In-memory terrain file, built once from a finished height grid."""

    heights: np.ndarray  # (size, size) uint16
    layer_map: np.ndarray  # (size, size) uint8
    material_names: List[str] = field(default_factory=lambda: [DEFAULT_MATERIAL])

    def __post_init__(self):
        if self.heights.ndim != 2 or self.heights.shape[0] != self.heights.shape[1]:
            raise ValueError(f"Terrain grid must be square, got {self.heights.shape}")
        if self.layer_map.shape != self.heights.shape:
            raise ValueError(
                f"Layer map shape {self.layer_map.shape} does not match heights {self.heights.shape}"
            )

    @classmethod
    def from_grid(cls, grid: "HeightGrid") -> "TerrainRecord":
        """Quantize a finished grid; layer map and materials are placeholders."""
        if grid.width != grid.height:
            raise ValueError(f"Terrain grid must be square, got {grid.width}x{grid.height}")
        return cls(
            heights=quantize_heights(grid.heights),
            layer_map=np.zeros(grid.shape, dtype=np.uint8),
        )

    @property
    def size(self) -> int:
        return self.heights.shape[0]

    def _material_table(self) -> bytes:
        if len(self.material_names) > MAX_MATERIALS:
            raise ValueError(f"Too many materials: {len(self.material_names)}")
        table = [MATERIAL_COUNT.pack(len(self.material_names), 0)]
        for name in self.material_names:
            encoded = name.encode("utf-8")
            if len(encoded) > MAX_NAME_BYTES:
                raise ValueError(f"Material name too long: {len(encoded)} bytes")
            table.append(MATERIAL_NAME_LENGTH.pack(len(encoded)))
            table.append(encoded)
        return b"".join(table)

    def _chunks(self) -> List[bytes]:
        cells = self.size * self.size
        return [
            HEADER_BYTES,
            self.heights.astype("<u2").tobytes(),
            self.layer_map.astype(np.uint8).tobytes(),
            bytes(RESERVED_GRIDS * cells),
            self._material_table(),
        ]

    def write(self, stream: BinaryIO) -> int:
        """
        Serialize the record to a binary stream.

        Returns:
            Number of bytes written
        """
        written = 0
        for chunk in self._chunks():
            stream.write(chunk)
            written += len(chunk)
        return written

    def to_bytes(self) -> bytes:
        return b"".join(self._chunks())

    @classmethod
    def from_bytes(cls, data: bytes, size: Optional[int] = None) -> "TerrainRecord":
        """
        Decode a terrain file produced by write().

        Args:
            data: Complete file contents
            size: Grid size if known; otherwise derived from the data length

        Raises:
            ValueError: If the header is wrong or the data does not fit a grid
        """
        if data[:HEADER.size] != HEADER_BYTES:
            raise ValueError(f"Not a terrain file, header is {data[:HEADER.size].hex(' ')}")

        if size is None:
            size, names = _locate_grids(data)
        else:
            names = _parse_material_table(data, HEADER.size + CELL_BYTES * size * size)
            if names is None:
                raise ValueError(f"Terrain data does not match size {size}")

        cells = size * size
        offset = HEADER.size
        heights = np.frombuffer(data, dtype="<u2", count=cells, offset=offset)
        offset += 2 * cells
        layer_map = np.frombuffer(data, dtype=np.uint8, count=cells, offset=offset)

        return cls(
            heights=heights.astype(np.uint16).reshape(size, size),
            layer_map=layer_map.copy().reshape(size, size),
            material_names=names,
        )


def write_terrain(record: TerrainRecord, path: Union[str, Path]) -> Path:
    """
    Write a terrain record to disk.

    The file is closed, and therefore flushed, before this returns.

    Raises:
        OSError: If the file cannot be written; the error carries the path
    """
    path = Path(path)
    try:
        with open(path, "wb") as f:
            written = record.write(f)
    except OSError as e:
        logger.error("Failed to write terrain file", path=str(path), error=str(e))
        if e.filename is None:
            raise OSError(e.errno, e.strerror or str(e), str(path)) from e
        raise

    logger.info("Wrote terrain file", path=str(path), size=record.size, bytes=written)
    return path


def read_terrain(path: Union[str, Path], size: Optional[int] = None) -> TerrainRecord:
    """Read a terrain file from disk."""
    return TerrainRecord.from_bytes(Path(path).read_bytes(), size)
