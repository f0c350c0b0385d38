"""Tests for the conversion pipeline."""

import pytest
import numpy as np
from pydantic import ValidationError
from gltf2hm.core.bounds import EmptyMeshError
from gltf2hm.core.heightgrid import HeightGrid
from gltf2hm.core.mesh import Mesh
from gltf2hm.core.pipeline import ConversionOptions, TerrainConverter

SLOPE = [(0.0, 0.0, 0.0), (1.0, 0.0, 1.0), (1.0, 1.0, 0.5)]


@pytest.fixture
def hill():
    """Four triangles rising to a peak in the middle of a unit square."""
    corners = [(0, 0, 0), (1, 0, 0), (1, 0, 1), (0, 0, 1)]
    peak = (0.5, 1.0, 0.5)
    return Mesh.from_triangles([
        [corners[i], corners[(i + 1) % 4], peak] for i in range(4)
    ])


class TestConversionOptions:
    """Test option validation."""

    def test_defaults(self):
        """Defaults describe a plain 2048 conversion."""
        options = ConversionOptions()
        assert options.resolution == 2048
        assert options.smooth == 0.0
        assert not options.flip_x
        assert not options.flip_y
        assert not options.interpolate

    @pytest.mark.parametrize("kwargs", [{"resolution": 0}, {"smooth": -1.0}])
    def test_invalid(self, kwargs):
        """Out-of-range options are rejected."""
        with pytest.raises(ValidationError):
            ConversionOptions(**kwargs)


class TestTerrainConverter:
    """Test the full conversion."""

    def test_single_triangle_small_grid(self):
        """A single sloped triangle converts to a valid 2x2 grid."""
        converter = TerrainConverter(ConversionOptions(resolution=2))
        grid = converter.convert(Mesh.from_triangles([SLOPE]))

        assert grid.shape == (2, 2)
        assert grid.coverage.any()
        assert np.all(np.isfinite(grid.heights))
        assert grid.heights.min() >= 0.0
        assert grid.heights.max() <= 1.0

    def test_single_triangle_elevation(self):
        """At a finer resolution the slope produces non-zero cells."""
        converter = TerrainConverter(ConversionOptions(resolution=8))
        grid = converter.convert(Mesh.from_triangles([SLOPE]))
        assert grid.heights.max() > 0.0
        assert grid.heights.max() <= 1.0

    def test_hill(self, hill):
        """The peak lands in the middle of the grid."""
        grid = TerrainConverter(ConversionOptions(resolution=16)).convert(hill)
        assert grid.coverage.all()
        peak = np.unravel_index(np.argmax(grid.heights), grid.shape)
        assert peak[0] in (7, 8)
        assert peak[1] in (7, 8)
        assert grid.heights.max() > 0.8

    def test_flip_is_last(self):
        """flip_x mirrors the otherwise finished grid."""
        mesh = Mesh.from_triangles([SLOPE])
        plain = TerrainConverter(ConversionOptions(resolution=8)).convert(mesh)
        flipped = TerrainConverter(ConversionOptions(resolution=8, flip_x=True)).convert(mesh)
        assert np.array_equal(flipped.heights, np.fliplr(plain.heights))

    def test_zero_smooth_matches_default(self, hill):
        """Smoothing with a zero tolerance changes nothing."""
        default = TerrainConverter(ConversionOptions(resolution=8)).convert(hill)
        explicit = TerrainConverter(ConversionOptions(resolution=8, smooth=0.0)).convert(hill)
        assert np.array_equal(default.heights, explicit.heights)

    def test_interpolate_option(self, hill):
        """Line interpolation keeps values in range."""
        grid = TerrainConverter(ConversionOptions(resolution=8, interpolate=True)).convert(hill)
        assert grid.heights.min() >= 0.0
        assert grid.heights.max() <= 1.0

    def test_empty_mesh(self):
        """Empty meshes fail before any grid is produced."""
        with pytest.raises(EmptyMeshError):
            TerrainConverter(ConversionOptions(resolution=4)).convert(Mesh.from_triangles([]))

    def test_encode(self, hill):
        """Finished grids encode to a square terrain record."""
        converter = TerrainConverter(ConversionOptions(resolution=8))
        record = converter.encode(converter.convert(hill))
        assert record.size == 8
        assert len(record.to_bytes()) == 5 + 7 * 64 + 21

    def test_encode_shape_mismatch(self):
        """Grids of the wrong size are refused."""
        converter = TerrainConverter(ConversionOptions(resolution=8))
        with pytest.raises(ValueError):
            converter.encode(HeightGrid.empty(4, 4))
