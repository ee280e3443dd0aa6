"""Level-of-detail triangle mesh construction from a height field."""

from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from .curves import CurveSnapshot, HeightCurve

# Tile resolution. MAP_CHUNK_SIZE - 1 = 240 is divisible by every
# simplification increment (1, 2, 4, 6, 8, 10, 12).
MAP_CHUNK_SIZE = 241

MIN_LEVEL_OF_DETAIL = 0
MAX_LEVEL_OF_DETAIL = 6


def clamp_level_of_detail(level_of_detail: int) -> int:
    """Clamp a level of detail into the supported [0, 6] range."""
    return min(max(int(level_of_detail), MIN_LEVEL_OF_DETAIL), MAX_LEVEL_OF_DETAIL)


def simplification_increment(level_of_detail: int) -> int:
    """Vertex stride for a level of detail: 1 at LOD 0, else ``2 * lod``."""
    return 1 if level_of_detail == 0 else level_of_detail * 2


def vertices_per_line(size: int, level_of_detail: int) -> int:
    """Number of sampled vertices along an axis of ``size`` cells."""
    return (size - 1) // simplification_increment(level_of_detail) + 1


@dataclass
class MeshData:
    """Vertex, uv and triangle buffers for a terrain mesh.

    ``triangles`` is a flat index array, three entries per triangle.
    """

    vertices: NDArray[np.float32]
    uvs: NDArray[np.float32]
    triangles: NDArray[np.int32]
    vertices_per_line: int

    @property
    def vertex_count(self) -> int:
        return len(self.vertices)

    @property
    def triangle_count(self) -> int:
        return len(self.triangles) // 3

    def compute_normals(self) -> NDArray[np.float32]:
        """Compute per-vertex normals from triangle winding.

        Each face normal is ``(b - a) x (c - a)``, accumulated unnormalized
        onto its three vertices (area weighted) and then normalized.

        Returns:
            Array of shape (vertex_count, 3) of unit normals.
        """
        faces = self.triangles.reshape(-1, 3)
        a = self.vertices[faces[:, 0]].astype(np.float64)
        b = self.vertices[faces[:, 1]].astype(np.float64)
        c = self.vertices[faces[:, 2]].astype(np.float64)
        face_normals = np.cross(b - a, c - a)

        normals = np.zeros((self.vertex_count, 3), dtype=np.float64)
        for corner in range(3):
            np.add.at(normals, faces[:, corner], face_normals)

        lengths = np.linalg.norm(normals, axis=1, keepdims=True)
        lengths[lengths == 0] = 1.0
        return (normals / lengths).astype(np.float32)


def generate_terrain_mesh(
    height_map: NDArray[np.float32],
    height_multiplier: float,
    height_curve: HeightCurve | CurveSnapshot,
    level_of_detail: int,
) -> MeshData:
    """Build a terrain mesh from a height field.

    The mesh is centered on the origin in x/z. Every ``increment``-th row
    and column is sampled, and each sampled quad is split along its
    top-left to bottom-right diagonal into two triangles with upward
    facing normals.

    Args:
        height_map: Height field of shape (height, width), indexed [y, x].
        height_multiplier: Vertical scale applied after the curve.
        height_curve: Remap from normalized height; snapshotted before use.
        level_of_detail: Simplification level, already clamped to [0, 6].

    Returns:
        MeshData owned by the caller.
    """
    curve = height_curve.snapshot()
    height, width = height_map.shape

    top_left_x = (width - 1) / -2.0
    top_left_z = (height - 1) / 2.0

    increment = simplification_increment(level_of_detail)
    verts_x = vertices_per_line(width, level_of_detail)
    verts_y = vertices_per_line(height, level_of_detail)

    xs = np.arange(verts_x) * increment
    ys = np.arange(verts_y) * increment
    grid_x, grid_y = np.meshgrid(xs, ys)

    sampled = height_map[grid_y, grid_x]
    mesh_heights = curve.evaluate(sampled) * height_multiplier

    vertices = np.stack(
        [top_left_x + grid_x, mesh_heights, top_left_z - grid_y], axis=-1
    ).reshape(-1, 3).astype(np.float32)
    uvs = np.stack(
        [grid_x / float(width), grid_y / float(height)], axis=-1
    ).reshape(-1, 2).astype(np.float32)

    # Quads start at every vertex except the last row and column:
    #   i ------ i+1
    #   |  \      |
    #   |    \    |
    #   i+v ---- i+v+1
    rows, cols = np.mgrid[0 : verts_y - 1, 0 : verts_x - 1]
    i = (rows * verts_x + cols).ravel()
    v = verts_x
    triangles = np.stack(
        [i, i + v + 1, i + v, i + v + 1, i, i + 1], axis=-1
    ).ravel().astype(np.int32)

    return MeshData(
        vertices=vertices,
        uvs=uvs,
        triangles=triangles,
        vertices_per_line=verts_x,
    )
