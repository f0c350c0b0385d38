"""
gltf2hm - convert triangle meshes into BeamNG terrain heightmaps.
"""

__version__ = "0.1.0"
