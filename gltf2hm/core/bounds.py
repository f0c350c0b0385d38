"""Axis-aligned bounds of a mesh and coordinate normalization."""

import numpy as np
from dataclasses import dataclass
from typing import Union

from .mesh import Mesh

# Axis indices into a vertex position
AXIS_X = 0
AXIS_Y = 1  # elevation
AXIS_Z = 2


class EmptyMeshError(ValueError):
    """Raised when a mesh has no triangles to bound."""


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned bounding box with min[i] <= max[i] on every axis."""

    min: np.ndarray
    max: np.ndarray

    @property
    def extent(self) -> np.ndarray:
        """Per-axis size (max - min)."""
        return self.max - self.min

    def is_degenerate(self, axis: int) -> bool:
        """True if the box has zero extent on the given axis."""
        return bool(self.max[axis] == self.min[axis])


def find_bounds(mesh: Mesh) -> BoundingBox:
    """
    Compute the component-wise min/max over every vertex of every triangle.

    Args:
        mesh: Input mesh

    Returns:
        Bounding box of all vertex positions

    Raises:
        EmptyMeshError: If the mesh has no triangles
    """
    triangles = mesh.triangles()
    if len(triangles) == 0:
        raise EmptyMeshError("Mesh contains no triangles")

    vertices = triangles.reshape(-1, 3)
    return BoundingBox(min=vertices.min(axis=0), max=vertices.max(axis=0))


def normalize_axis(
    values: Union[float, np.ndarray], axis: int, bounds: BoundingBox
) -> Union[float, np.ndarray]:
    """
    Map coordinates on one axis into [0, 1].

    A zero-extent axis maps every coordinate to 0.0 instead of dividing by
    zero.
    """
    extent = bounds.extent[axis]
    if extent == 0:
        return np.zeros_like(values, dtype=np.float64) if isinstance(values, np.ndarray) else 0.0
    return (values - bounds.min[axis]) / extent
