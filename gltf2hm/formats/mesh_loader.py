"""Load triangle meshes from glTF/GLB and other interchange formats."""

import numpy as np
import structlog
import trimesh
from pathlib import Path
from typing import Union

from ..core.mesh import Mesh

logger = structlog.get_logger()


class MeshLoadError(ValueError):
    """Raised when a file holds no usable triangle geometry."""


def load_mesh(path: Union[str, Path]) -> Mesh:
    """
    Load every triangle in a mesh file.

    Scene node transforms are applied and all geometries are merged into a
    single triangle list. Only positions are read.

    Args:
        path: Mesh file (.glb, .gltf, .obj, .ply, .stl, ...)

    Returns:
        Mesh with all triangles of the file

    Raises:
        FileNotFoundError: If the file does not exist
        MeshLoadError: If the file cannot be parsed or holds no triangles
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Mesh file not found: {path}")

    try:
        loaded = trimesh.load(path, force="mesh", process=False)
    except (ValueError, KeyError, IndexError, TypeError) as e:
        raise MeshLoadError(f"Failed to read mesh {path}: {e}") from e

    if isinstance(loaded, trimesh.Scene):
        if not loaded.geometry:
            raise MeshLoadError(f"No geometry found in {path}")
        loaded = trimesh.util.concatenate(tuple(loaded.geometry.values()))

    if not isinstance(loaded, trimesh.Trimesh):
        raise MeshLoadError(f"{path} does not contain a triangle mesh")
    if len(loaded.faces) == 0:
        raise MeshLoadError(f"No triangles found in {path}")

    mesh = Mesh.from_indexed(np.asarray(loaded.vertices), np.asarray(loaded.faces))
    logger.info("Loaded mesh", path=str(path), vertices=len(loaded.vertices), triangles=len(mesh))
    return mesh
