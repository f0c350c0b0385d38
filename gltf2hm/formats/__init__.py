"""
Readers and writers for mesh input, terrain output and previews.
"""

from .terrain import TerrainRecord, quantize_heights, read_terrain, write_terrain
from .preview import to_preview_bytes, write_preview
from .mesh_loader import MeshLoadError, load_mesh

__all__ = ['TerrainRecord', 'quantize_heights', 'read_terrain', 'write_terrain',
           'to_preview_bytes', 'write_preview', 'MeshLoadError', 'load_mesh']
