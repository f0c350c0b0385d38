"""
Triangle geometry used by the rasterizer.

All functions accept either scalars or NumPy arrays for the query points so
the rasterizer can evaluate a whole triangle footprint in one call.
"""

import numpy as np
from typing import Sequence, Union

ArrayLike = Union[float, np.ndarray]

# Barycentric weights down to this value still count as inside the triangle.
# Cells lying exactly on an edge shared by two triangles are then claimed by
# both, which keeps seams from appearing between neighbours.
EDGE_TOLERANCE = -0.005


def barycentric(
    points: np.ndarray,
    a: Sequence[float],
    b: Sequence[float],
    c: Sequence[float],
) -> np.ndarray:
    """
    Compute barycentric weights of 2D points relative to triangle (a, b, c).

    Args:
        points: Query points, shape (..., 2)
        a, b, c: Triangle vertices in 2D

    Returns:
        Weights for (a, b, c), shape (..., 3). NaN for a zero-area triangle.
    """
    points = np.asarray(points, dtype=np.float64)
    a = np.asarray(a, dtype=np.float64)
    v0 = np.asarray(c, dtype=np.float64) - a
    v1 = np.asarray(b, dtype=np.float64) - a
    v2 = points - a

    dot00 = v0 @ v0
    dot01 = v0 @ v1
    dot11 = v1 @ v1
    dot02 = v2 @ v0
    dot12 = v2 @ v1

    denom = dot00 * dot11 - dot01 * dot01
    if denom == 0:
        return np.full(points.shape[:-1] + (3,), np.nan)

    u = (dot11 * dot02 - dot01 * dot12) / denom  # weight of c
    v = (dot00 * dot12 - dot01 * dot02) / denom  # weight of b
    return np.stack([1.0 - u - v, v, u], axis=-1)


def inside_triangle(
    points: np.ndarray,
    a: Sequence[float],
    b: Sequence[float],
    c: Sequence[float],
    tolerance: float = EDGE_TOLERANCE,
) -> np.ndarray:
    """Vectorized membership test, returns a boolean array of shape (...)."""
    weights = barycentric(points, a, b, c)
    return np.all(weights >= tolerance, axis=-1)


def point_in_triangle(
    p: Sequence[float],
    a: Sequence[float],
    b: Sequence[float],
    c: Sequence[float],
    tolerance: float = EDGE_TOLERANCE,
) -> bool:
    """Test whether a single 2D point lies inside triangle (a, b, c)."""
    return bool(inside_triangle(np.asarray(p, dtype=np.float64), a, b, c, tolerance))


def signed_area(a: Sequence[float], b: Sequence[float], c: Sequence[float]) -> float:
    """Twice the signed area of the 2D triangle (a, b, c)."""
    return float((b[0] - a[0]) * (c[1] - a[1]) - (c[0] - a[0]) * (b[1] - a[1]))


def calculate_height(
    v0: Sequence[float],
    v1: Sequence[float],
    v2: Sequence[float],
    x: ArrayLike,
    z: ArrayLike,
) -> ArrayLike:
    """
    Evaluate the plane through three 3D points at (x, z).

    The plane normal is the cross product of two edges; solving
    n . (p - v0) = 0 for the Y component gives the elevation.

    Args:
        v0, v1, v2: Triangle vertices as (x, y, z)
        x, z: Query position(s) in mesh space

    Returns:
        Elevation at (x, z). For a vertical triangle (no unique elevation)
        the highest vertex elevation is returned.
    """
    v0 = np.asarray(v0, dtype=np.float64)
    v1 = np.asarray(v1, dtype=np.float64)
    v2 = np.asarray(v2, dtype=np.float64)

    normal = np.cross(v1 - v0, v2 - v0)
    if normal[1] == 0:
        top = max(v0[1], v1[1], v2[1])
        return np.full_like(x, top, dtype=np.float64) if isinstance(x, np.ndarray) else float(top)

    height = v0[1] - (normal[0] * (x - v0[0]) + normal[2] * (z - v0[2])) / normal[1]
    return height if isinstance(height, np.ndarray) else float(height)
