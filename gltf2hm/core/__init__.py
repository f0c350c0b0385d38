"""
Core heightmap conversion functionality.
"""

from .mesh import Mesh
from .bounds import BoundingBox, EmptyMeshError, find_bounds, normalize_axis
from .geometry import barycentric, calculate_height, point_in_triangle
from .heightgrid import HeightGrid
from .rasterizer import rasterize
from .filters import fill_holes, flip, interpolate_lines, smooth, unspike
from .pipeline import ConversionOptions, TerrainConverter

__all__ = ['Mesh', 'BoundingBox', 'EmptyMeshError', 'find_bounds', 'normalize_axis',
           'barycentric', 'calculate_height', 'point_in_triangle', 'HeightGrid',
           'rasterize', 'fill_holes', 'flip', 'interpolate_lines', 'smooth', 'unspike',
           'ConversionOptions', 'TerrainConverter']
