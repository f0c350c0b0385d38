"""Tests for mesh container and bounds extraction."""

import pytest
import numpy as np
from gltf2hm.core.mesh import Mesh
from gltf2hm.core.bounds import (
    AXIS_X,
    AXIS_Y,
    AXIS_Z,
    EmptyMeshError,
    find_bounds,
    normalize_axis,
)


class TestMesh:
    """Test mesh construction."""

    def test_from_triangles(self):
        """Vertex triples become an (N, 3, 3) array."""
        mesh = Mesh.from_triangles([
            [(0, 0, 0), (1, 0, 0), (0, 0, 1)],
            [(1, 0, 0), (1, 0, 1), (0, 0, 1)],
        ])
        assert len(mesh) == 2
        assert mesh.triangles().shape == (2, 3, 3)

    def test_from_indexed(self):
        """Index buffers are expanded into triangles."""
        vertices = np.array([[0, 0, 0], [1, 0, 0], [1, 0, 1], [0, 0, 1]], dtype=float)
        faces = np.array([[0, 1, 2], [0, 2, 3]])
        mesh = Mesh.from_indexed(vertices, faces)
        assert len(mesh) == 2
        assert mesh.triangles()[1, 2].tolist() == [0, 0, 1]

    def test_triangles_are_read_only(self):
        """Stages cannot modify the input mesh."""
        source = np.zeros((1, 3, 3))
        mesh = Mesh(source)
        with pytest.raises(ValueError):
            mesh.triangles()[0, 0, 0] = 1.0
        # The caller's array stays writable
        source[0, 0, 0] = 1.0

    def test_bad_shape(self):
        """Non-triangle input is rejected."""
        with pytest.raises(ValueError):
            Mesh(np.zeros((4, 2, 3)))

    def test_empty(self):
        """An empty triangle list is a valid, empty mesh."""
        assert len(Mesh.from_triangles([])) == 0


class TestFindBounds:
    """Test bounding box extraction."""

    def test_known_bounds(self):
        """Bounds are the component-wise min and max."""
        mesh = Mesh.from_triangles([
            [(-1, 2, 3), (4, -5, 6), (7, 8, -9)],
        ])
        bounds = find_bounds(mesh)
        assert bounds.min.tolist() == [-1, -5, -9]
        assert bounds.max.tolist() == [7, 8, 6]
        assert bounds.extent.tolist() == [8, 13, 15]

    def test_min_not_greater_than_max(self):
        """min <= max on every axis for arbitrary meshes."""
        rng = np.random.default_rng(42)
        for n in (1, 5, 100):
            mesh = Mesh(rng.normal(scale=50.0, size=(n, 3, 3)))
            bounds = find_bounds(mesh)
            assert np.all(bounds.min <= bounds.max)

    def test_empty_mesh(self):
        """A mesh without triangles is an error, not a default box."""
        with pytest.raises(EmptyMeshError):
            find_bounds(Mesh.from_triangles([]))

    def test_empty_mesh_is_value_error(self):
        """EmptyMeshError is reported as a ValueError."""
        assert issubclass(EmptyMeshError, ValueError)

    def test_degenerate_axis(self):
        """A flat mesh has zero extent on the elevation axis."""
        mesh = Mesh.from_triangles([[(0, 3, 0), (1, 3, 0), (0, 3, 1)]])
        bounds = find_bounds(mesh)
        assert bounds.is_degenerate(AXIS_Y)
        assert not bounds.is_degenerate(AXIS_X)


class TestNormalizeAxis:
    """Test coordinate normalization."""

    @pytest.fixture
    def bounds(self):
        mesh = Mesh.from_triangles([[(0, 5, -2), (10, 5, 2), (5, 5, 0)]])
        return find_bounds(mesh)

    def test_range(self, bounds):
        """Coordinates map into [0, 1]."""
        values = normalize_axis(np.array([0.0, 5.0, 10.0]), AXIS_X, bounds)
        assert values.tolist() == pytest.approx([0.0, 0.5, 1.0])
        assert normalize_axis(-2.0, AXIS_Z, bounds) == pytest.approx(0.0)

    def test_zero_extent(self, bounds):
        """A zero-extent axis maps to a constant 0.0 instead of NaN."""
        values = normalize_axis(np.array([5.0, 5.0]), AXIS_Y, bounds)
        assert np.all(np.isfinite(values))
        assert values.tolist() == [0.0, 0.0]
        assert normalize_axis(5.0, AXIS_Y, bounds) == 0.0
