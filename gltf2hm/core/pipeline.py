"""
Mesh to terrain conversion pipeline.

Stages run strictly in order on a single HeightGrid owned by the converter:

1. bounds extraction
2. rasterization
3. hole filling
4. line interpolation (optional)
5. smoothing (optional)
6. unspiking
7. flipping (optional)

The finished grid is handed to the terrain encoder.
"""

import time
import structlog
from pydantic import BaseModel, Field

from .bounds import find_bounds
from .filters import fill_holes, flip, interpolate_lines, smooth, unspike
from .heightgrid import HeightGrid
from .mesh import Mesh
from .rasterizer import rasterize
from ..formats.terrain import TerrainRecord

logger = structlog.get_logger()


class ConversionOptions(BaseModel):
    """Options controlling a single conversion run."""

    resolution: int = Field(2048, ge=1, description="Heightmap width and height in cells")
    smooth: float = Field(0.0, ge=0.0, description="Smoothing tolerance, 0 disables")
    flip_x: bool = Field(False, description="Mirror each row")
    flip_y: bool = Field(False, description="Reverse the row order")
    interpolate: bool = Field(False, description="Interpolate gaps along rows and columns")


class TerrainConverter:
    """Runs the conversion stages for one mesh."""

    def __init__(self, options: ConversionOptions = None):
        self.options = options or ConversionOptions()

    def convert(self, mesh: Mesh) -> HeightGrid:
        """
        Convert a mesh into a finished height grid.

        Args:
            mesh: Input triangles

        Returns:
            Normalized height grid of resolution x resolution cells

        Raises:
            EmptyMeshError: If the mesh has no triangles
        """
        start = time.perf_counter()
        size = self.options.resolution

        bounds = find_bounds(mesh)
        logger.info(
            "Computed bounds",
            min=[round(float(v), 8) for v in bounds.min],
            max=[round(float(v), 8) for v in bounds.max],
            size=[round(float(v), 8) for v in bounds.extent],
        )

        grid = rasterize(mesh, bounds, size, size)
        fill_holes(grid)
        if self.options.interpolate:
            interpolate_lines(grid)
        smooth(grid, self.options.smooth)
        unspike(grid)
        flip(grid, flip_x=self.options.flip_x, flip_y=self.options.flip_y)

        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.info("Conversion complete", elapsed_ms=round(elapsed_ms, 1), **grid.stats())
        return grid

    def encode(self, grid: HeightGrid) -> TerrainRecord:
        """Build the terrain record for a finished grid."""
        if grid.shape != (self.options.resolution, self.options.resolution):
            raise ValueError(
                f"Grid shape {grid.shape} does not match resolution {self.options.resolution}"
            )
        return TerrainRecord.from_grid(grid)
