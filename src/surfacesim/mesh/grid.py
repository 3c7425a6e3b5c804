# grid.py
"""
Regular grid mesh generation:
1. Fixed triangulation (two triangles per quad cell)
2. UV coordinates per grid point
3. Rest-pose vertex positions for cloth and wave surfaces
"""

import logging

import numpy as np

from surfacesim.types import INDEX, MASK, UV, VEC3

logger = logging.getLogger(__name__)


def generate_indices(resolution_x: int, resolution_y: int) -> INDEX:
    """
    Triangulate a `resolution_x` x `resolution_y` point grid.

    For every quad with top-left corner `k = i + j * resolution_x` the two
    triangles are (k, below, right) and (right, below, below_right), where
    "below" is the next row. All triangles share the same winding.

    Returns:
        int32 array of length (resolution_x - 1) * (resolution_y - 1) * 6
    """
    i, j = np.meshgrid(
        np.arange(resolution_x - 1, dtype=np.int32),
        np.arange(resolution_y - 1, dtype=np.int32),
        indexing="xy",
    )
    k = (i + j * resolution_x).ravel()
    right = k + 1
    below = k + resolution_x
    below_right = below + 1

    # Two triangles (consistent winding)
    quads = np.stack([k, below, right, right, below, below_right], axis=1)
    return np.ascontiguousarray(quads.ravel(), dtype=np.int32)


def generate_uvs(resolution_x: int, resolution_y: int) -> UV:
    """UV of point (i, j) is (i / resolution_x, j / resolution_y)."""
    i, j = np.meshgrid(
        np.arange(resolution_x, dtype=np.float32),
        np.arange(resolution_y, dtype=np.float32),
        indexing="xy",
    )
    return np.stack([i.ravel() / resolution_x, j.ravel() / resolution_y], axis=1)


def cloth_rest_positions(resolution_x: int, resolution_y: int, spacing: float) -> VEC3:
    """Hanging sheet in the XY plane, centred on the origin."""
    i, j = np.meshgrid(
        np.arange(resolution_x, dtype=np.float64),
        np.arange(resolution_y, dtype=np.float64),
        indexing="xy",
    )
    pos = np.zeros((resolution_x * resolution_y, 3), dtype=np.float64)
    pos[:, 0] = (i * spacing - resolution_x * spacing / 2).ravel()
    pos[:, 1] = (j * spacing - resolution_y * spacing / 2).ravel()
    return pos


def cloth_fixed_mask(resolution_x: int, resolution_y: int) -> MASK:
    # Pin the top row
    mask = np.zeros(resolution_x * resolution_y, dtype=np.bool_)
    mask[(resolution_y - 1) * resolution_x :] = True
    return mask


def wave_rest_positions(resolution_x: int, resolution_z: int, spacing: float) -> VEC3:
    """Flat surface in the XZ plane; Y carries the height."""
    x, z = np.meshgrid(
        np.arange(resolution_x, dtype=np.float64),
        np.arange(resolution_z, dtype=np.float64),
        indexing="xy",
    )
    pos = np.zeros((resolution_x * resolution_z, 3), dtype=np.float64)
    pos[:, 0] = (x * spacing).ravel()
    pos[:, 2] = (z * spacing).ravel()
    return pos


class GridTopology:
    """Fixed triangulation and UVs for one grid resolution. Built once."""

    def __init__(self, resolution_x: int, resolution_y: int) -> None:
        self.resolution_x = resolution_x
        self.resolution_y = resolution_y
        self.indices = generate_indices(resolution_x, resolution_y)
        self.uvs = generate_uvs(resolution_x, resolution_y)
        self.indices.flags.writeable = False
        self.uvs.flags.writeable = False

        logger.debug(
            "Generated grid topology %dx%d: %d triangles",
            resolution_x,
            resolution_y,
            self.num_triangles,
        )

    @property
    def num_points(self) -> int:
        return self.resolution_x * self.resolution_y

    @property
    def num_triangles(self) -> int:
        return len(self.indices) // 3

    @property
    def triangles(self) -> INDEX:
        return self.indices.reshape(-1, 3)
