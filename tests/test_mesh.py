"""Tests for terrain mesh construction."""

import numpy as np
import pytest

from tilegen.curves import HeightCurve
from tilegen.mesh import (
    MAP_CHUNK_SIZE,
    MeshData,
    clamp_level_of_detail,
    generate_terrain_mesh,
    simplification_increment,
    vertices_per_line,
)


@pytest.fixture
def flat_tile() -> np.ndarray:
    """Full-resolution tile at constant height."""
    return np.zeros((MAP_CHUNK_SIZE, MAP_CHUNK_SIZE), dtype=np.float32)


class TestLevelOfDetail:
    """Tests for LOD helpers."""

    def test_increments(self) -> None:
        """LOD 0-6 map to strides 1, 2, 4, ..., 12."""
        increments = [simplification_increment(lod) for lod in range(7)]
        assert increments == [1, 2, 4, 6, 8, 10, 12]

    def test_increments_divide_tile(self) -> None:
        """Every stride lands exactly on the last row and column."""
        for lod in range(7):
            assert (MAP_CHUNK_SIZE - 1) % simplification_increment(lod) == 0

    def test_clamp(self) -> None:
        """Out-of-range LODs are clamped to [0, 6]."""
        assert clamp_level_of_detail(-3) == 0
        assert clamp_level_of_detail(0) == 0
        assert clamp_level_of_detail(4) == 4
        assert clamp_level_of_detail(9) == 6

    def test_vertices_per_line(self) -> None:
        """Vertices per line for the standard tile."""
        assert vertices_per_line(MAP_CHUNK_SIZE, 0) == 241
        assert vertices_per_line(MAP_CHUNK_SIZE, 1) == 121
        assert vertices_per_line(MAP_CHUNK_SIZE, 6) == 21


class TestGenerateTerrainMesh:
    """Tests for mesh buffer generation."""

    def test_full_detail_counts(self, flat_tile: np.ndarray) -> None:
        """LOD 0 on a 241 tile gives 241^2 vertices and 240^2 * 6 indices."""
        mesh = generate_terrain_mesh(flat_tile, 10.0, HeightCurve.linear(), 0)
        assert mesh.vertex_count == 58081
        assert len(mesh.uvs) == 58081
        assert len(mesh.triangles) == 345600
        assert mesh.triangle_count == 115200

    @pytest.mark.parametrize("lod", range(7))
    def test_counts_per_lod(self, flat_tile: np.ndarray, lod: int) -> None:
        """Vertex and index counts follow vertices per line."""
        mesh = generate_terrain_mesh(flat_tile, 1.0, HeightCurve.linear(), lod)
        per_line = (MAP_CHUNK_SIZE - 1) // simplification_increment(lod) + 1
        assert mesh.vertices_per_line == per_line
        assert mesh.vertex_count == per_line**2
        assert len(mesh.triangles) == 6 * (per_line - 1) ** 2

    @pytest.mark.parametrize("lod", range(7))
    def test_indices_in_range(self, flat_tile: np.ndarray, lod: int) -> None:
        """Triangle indices never reference missing vertices."""
        mesh = generate_terrain_mesh(flat_tile, 1.0, HeightCurve.linear(), lod)
        assert mesh.triangles.min() >= 0
        assert mesh.triangles.max() < mesh.vertex_count

    def test_buffer_dtypes(self, ramp_height_map: np.ndarray) -> None:
        """Buffers use compact dtypes."""
        mesh = generate_terrain_mesh(ramp_height_map, 1.0, HeightCurve.linear(), 0)
        assert mesh.vertices.dtype == np.float32
        assert mesh.uvs.dtype == np.float32
        assert mesh.triangles.dtype == np.int32

    def test_winding(self) -> None:
        """First quad splits along its top-left to bottom-right diagonal."""
        height_map = np.zeros((3, 3), dtype=np.float32)
        mesh = generate_terrain_mesh(height_map, 1.0, HeightCurve.linear(), 0)
        # v = 3: (i, i+v+1, i+v), (i+v+1, i, i+1)
        np.testing.assert_array_equal(mesh.triangles[:6], [0, 4, 3, 4, 0, 1])
        np.testing.assert_array_equal(mesh.triangles[6:12], [1, 5, 4, 5, 1, 2])

    def test_flat_normals_face_up(self) -> None:
        """A flat field has straight-up normals everywhere."""
        height_map = np.zeros((9, 9), dtype=np.float32)
        mesh = generate_terrain_mesh(height_map, 5.0, HeightCurve.linear(), 0)
        normals = mesh.compute_normals()
        np.testing.assert_allclose(normals, np.tile([0.0, 1.0, 0.0], (81, 1)), atol=1e-6)

    def test_sloped_normals_point_up(self, ramp_height_map: np.ndarray) -> None:
        """Heightfield normals always have a positive y component."""
        mesh = generate_terrain_mesh(ramp_height_map, 20.0, HeightCurve.linear(), 1)
        normals = mesh.compute_normals()
        assert np.all(normals[:, 1] > 0)

    def test_mesh_is_centered(self) -> None:
        """x and z are centered on the origin, z decreasing with rows."""
        height_map = np.zeros((3, 3), dtype=np.float32)
        mesh = generate_terrain_mesh(height_map, 1.0, HeightCurve.linear(), 0)
        np.testing.assert_allclose(mesh.vertices[0], [-1.0, 0.0, 1.0])
        np.testing.assert_allclose(mesh.vertices[-1], [1.0, 0.0, -1.0])

    def test_uvs(self) -> None:
        """uv is (x / width, y / height)."""
        height_map = np.zeros((3, 3), dtype=np.float32)
        mesh = generate_terrain_mesh(height_map, 1.0, HeightCurve.linear(), 0)
        np.testing.assert_allclose(mesh.uvs[0], [0.0, 0.0])
        np.testing.assert_allclose(mesh.uvs[2], [2.0 / 3.0, 0.0])
        np.testing.assert_allclose(mesh.uvs[8], [2.0 / 3.0, 2.0 / 3.0])

    def test_heights_use_curve_and_multiplier(self, ramp_height_map: np.ndarray) -> None:
        """Vertex y is curve(height) * multiplier."""
        mesh = generate_terrain_mesh(ramp_height_map, 10.0, HeightCurve.linear(), 0)
        expected = ramp_height_map.ravel() * 10.0
        np.testing.assert_allclose(mesh.vertices[:, 1], expected, atol=1e-5)

    def test_flattening_curve(self, ramp_height_map: np.ndarray) -> None:
        """Heights under the flatten level collapse to zero."""
        mesh = generate_terrain_mesh(
            ramp_height_map, 10.0, HeightCurve.flatten_below(0.5), 0
        )
        low = ramp_height_map.ravel() <= 0.5
        np.testing.assert_allclose(mesh.vertices[low, 1], 0.0, atol=1e-6)
        assert np.all(mesh.vertices[~low, 1] > 0)

    def test_simplified_samples_grid_lines(self, ramp_height_map: np.ndarray) -> None:
        """LOD 2 on a 9 grid samples columns 0, 4 and 8."""
        mesh = generate_terrain_mesh(ramp_height_map, 1.0, HeightCurve.linear(), 2)
        assert mesh.vertices_per_line == 3
        np.testing.assert_allclose(mesh.vertices[:3, 0], [-4.0, 0.0, 4.0])
        np.testing.assert_allclose(mesh.vertices[:3, 1], [0.0, 0.5, 1.0], atol=1e-6)

    def test_rectangular_field(self) -> None:
        """Non-square fields sample each axis separately."""
        height_map = np.zeros((3, 5), dtype=np.float32)
        mesh = generate_terrain_mesh(height_map, 1.0, HeightCurve.linear(), 0)
        assert mesh.vertex_count == 15
        assert len(mesh.triangles) == 4 * 2 * 6
        assert mesh.triangles.max() < 15

    def test_caller_owns_buffers(self, ramp_height_map: np.ndarray) -> None:
        """Returned buffers are writable and independent of the input."""
        mesh = generate_terrain_mesh(ramp_height_map, 1.0, HeightCurve.linear(), 0)
        mesh.vertices[0, 1] = 99.0
        assert ramp_height_map[0, 0] == 0.0


class TestMeshData:
    """Tests for MeshData helpers."""

    def test_single_triangle_normal(self) -> None:
        """Counter-clockwise when viewed from +y gives a +y normal."""
        mesh = MeshData(
            vertices=np.array([[0, 0, 0], [1, 0, -1], [0, 0, -1]], dtype=np.float32),
            uvs=np.zeros((3, 2), dtype=np.float32),
            triangles=np.array([0, 1, 2], dtype=np.int32),
            vertices_per_line=2,
        )
        np.testing.assert_allclose(mesh.compute_normals(), np.tile([0, 1, 0], (3, 1)))

    def test_unused_vertex_normal_is_zero(self) -> None:
        """Vertices outside any triangle get a zero normal."""
        mesh = MeshData(
            vertices=np.array([[0, 0, 0], [1, 0, -1], [0, 0, -1], [5, 5, 5]], dtype=np.float32),
            uvs=np.zeros((4, 2), dtype=np.float32),
            triangles=np.array([0, 1, 2], dtype=np.int32),
            vertices_per_line=2,
        )
        np.testing.assert_array_equal(mesh.compute_normals()[3], [0, 0, 0])
