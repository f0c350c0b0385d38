"""
Triangle rasterization into a height grid.

Each triangle is projected onto the X/Z plane in grid space. Only the cells
inside the triangle's projected bounding box are visited, their centres are
tested against the triangle, and the triangle's plane gives the elevation
at each centre. Cells keep the highest elevation written to them, so the
topmost surface wins wherever geometry overlaps.
"""

import math
import numpy as np
import structlog

from .bounds import AXIS_X, AXIS_Y, AXIS_Z, BoundingBox, normalize_axis
from .geometry import EDGE_TOLERANCE, calculate_height, inside_triangle, signed_area
from .heightgrid import HeightGrid
from .mesh import Mesh

logger = structlog.get_logger()


def project_to_grid(mesh: Mesh, bounds: BoundingBox, width: int, height: int) -> np.ndarray:
    """
    Project every vertex to continuous grid coordinates.

    Mesh X maps to grid x, mesh Z maps to grid y. Elevation (mesh Y) is not
    part of the projection.

    Returns:
        Array of shape (N, 3, 2) holding (grid_x, grid_y) per vertex
    """
    triangles = mesh.triangles()
    grid_x = normalize_axis(triangles[..., AXIS_X], AXIS_X, bounds) * width
    grid_y = normalize_axis(triangles[..., AXIS_Z], AXIS_Z, bounds) * height
    return np.stack([grid_x, grid_y], axis=-1)


def grid_to_mesh(
    cells: np.ndarray, axis: int, size: int, bounds: BoundingBox
) -> np.ndarray:
    """Inverse of the grid projection for one axis."""
    return bounds.min[axis] + cells / size * bounds.extent[axis]


def rasterize(mesh: Mesh, bounds: BoundingBox, width: int, height: int) -> HeightGrid:
    """
    Rasterize a mesh into a new height grid.

    Args:
        mesh: Input triangles
        bounds: Bounding box used for normalization
        width: Grid width in cells
        height: Grid height in cells

    Returns:
        Height grid with normalized elevations, 0.0 where nothing was written
    """
    grid = HeightGrid.empty(width, height)
    triangles = mesh.triangles()
    projected = project_to_grid(mesh, bounds, width, height)

    degenerate = 0
    for i in range(len(triangles)):
        if _rasterize_triangle(grid, triangles[i], projected[i], bounds) is None:
            degenerate += 1

    stats = grid.stats()
    logger.info(
        "Rasterized mesh",
        triangles=len(triangles),
        degenerate=degenerate,
        width=width,
        height=height,
        covered=stats["covered"],
    )
    return grid


def _rasterize_triangle(
    grid: HeightGrid, triangle: np.ndarray, projected: np.ndarray, bounds: BoundingBox
):
    """
    Write one triangle into the grid.

    Returns the number of cells written, or None for a triangle with no
    projected area.
    """
    a, b, c = projected
    if signed_area(a, b, c) == 0:
        return None

    # Candidate cells: [floor(min), ceil(max)) clamped to the grid
    x0 = max(int(math.floor(projected[:, 0].min())), 0)
    x1 = min(int(math.ceil(projected[:, 0].max())), grid.width)
    y0 = max(int(math.floor(projected[:, 1].min())), 0)
    y1 = min(int(math.ceil(projected[:, 1].max())), grid.height)
    if x0 >= x1 or y0 >= y1:
        return 0

    centres_x, centres_y = np.meshgrid(
        np.arange(x0, x1, dtype=np.float64) + 0.5,
        np.arange(y0, y1, dtype=np.float64) + 0.5,
    )
    mask = inside_triangle(np.stack([centres_x, centres_y], axis=-1), a, b, c, EDGE_TOLERANCE)
    if not mask.any():
        return 0

    mesh_x = grid_to_mesh(centres_x[mask], AXIS_X, grid.width, bounds)
    mesh_z = grid_to_mesh(centres_y[mask], AXIS_Z, grid.height, bounds)
    elevation = calculate_height(triangle[0], triangle[1], triangle[2], mesh_x, mesh_z)

    # Edge tolerance lets the plane extrapolate slightly past the triangle
    values = np.clip(normalize_axis(elevation, AXIS_Y, bounds), 0.0, 1.0)

    region = grid.heights[y0:y1, x0:x1]
    region[mask] = np.maximum(region[mask], values)
    grid.coverage[y0:y1, x0:x1][mask] = True
    return int(mask.sum())
