"""Triangle mesh container used as input to the conversion pipeline."""

import numpy as np
from typing import Iterable, Sequence


class Mesh:
    """
    Flat triangle soup.

    Vertices are (x, y, z) positions with Y as the elevation axis, matching
    glTF's Y-up convention. The mesh is read-only input: stages never modify
    the triangle array.
    """

    def __init__(self, triangles: np.ndarray):
        triangles = np.array(triangles, dtype=np.float64)
        if triangles.size == 0:
            triangles = triangles.reshape(0, 3, 3)
        if triangles.ndim != 3 or triangles.shape[1:] != (3, 3):
            raise ValueError(f"Triangles must be (N, 3, 3), got {triangles.shape}")

        self._triangles = triangles
        self._triangles.setflags(write=False)

    @classmethod
    def from_triangles(cls, triangles: Iterable[Sequence[Sequence[float]]]) -> "Mesh":
        """Build a mesh from an iterable of (v0, v1, v2) vertex triples."""
        return cls(np.array([list(tri) for tri in triangles], dtype=np.float64))

    @classmethod
    def from_indexed(cls, vertices: np.ndarray, faces: np.ndarray) -> "Mesh":
        """Build a mesh from a vertex buffer and a (F, 3) index buffer."""
        vertices = np.asarray(vertices, dtype=np.float64)
        faces = np.asarray(faces, dtype=np.int64)
        if len(faces) == 0:
            return cls(np.zeros((0, 3, 3)))
        return cls(vertices[faces])

    def triangles(self) -> np.ndarray:
        """Return the (N, 3, 3) triangle array."""
        return self._triangles

    def __len__(self) -> int:
        return len(self._triangles)
