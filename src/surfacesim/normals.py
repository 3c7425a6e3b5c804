# normals.py
"""
Smooth per-vertex normals with order-independent accumulation.

Face normals are quantized to fixed point before being summed into the
vertex slots. Integer addition is exact, so the result is identical for any
triangle traversal order or split across workers.
"""

import logging

from numba import njit, prange  # type: ignore
import numpy as np

from surfacesim.types import FIXED, INDEX, VEC3

logger = logging.getLogger(__name__)

# Fixed-point units per unit-spacing face normal; divided by spacing² per grid
NORMAL_SCALE = 1_000_000.0

# ===============================
# NORMAL KERNELS
# ===============================


@njit(fastmath=True, cache=True, parallel=True)  # type: ignore
def quantize_face_normals(
    pos: VEC3,
    triangles: INDEX,
    scale: float,
    out: FIXED,
) -> None:
    """Unnormalized (area weighted) face normals, rounded to fixed point."""
    for f in prange(len(triangles)):
        a = triangles[f, 0]
        b = triangles[f, 1]
        c = triangles[f, 2]

        ux = pos[b, 0] - pos[a, 0]
        uy = pos[b, 1] - pos[a, 1]
        uz = pos[b, 2] - pos[a, 2]
        vx = pos[c, 0] - pos[a, 0]
        vy = pos[c, 1] - pos[a, 1]
        vz = pos[c, 2] - pos[a, 2]

        out[f, 0] = round((uy * vz - uz * vy) * scale)
        out[f, 1] = round((uz * vx - ux * vz) * scale)
        out[f, 2] = round((ux * vy - uy * vx) * scale)


@njit(cache=True)  # type: ignore
def accumulate_face_normals(
    face_normals: FIXED,
    triangles: INDEX,
    order: INDEX,
    accum: FIXED,
) -> None:
    """Integer-add each face normal into its three vertex slots, in `order`."""
    accum[:] = 0
    for k in range(len(order)):
        f = order[k]
        for corner in range(3):
            v = triangles[f, corner]
            accum[v, 0] += face_normals[f, 0]
            accum[v, 1] += face_normals[f, 1]
            accum[v, 2] += face_normals[f, 2]


@njit(fastmath=True, cache=True, parallel=True)  # type: ignore
def normalize_fixed_normals(accum: FIXED, scale: float, out: VEC3) -> None:
    """Dequantize and normalize. Vertices with no contribution get (0, 0, 0)."""
    for v in prange(len(accum)):
        nx = accum[v, 0] / scale
        ny = accum[v, 1] / scale
        nz = accum[v, 2] / scale
        length = np.sqrt(nx * nx + ny * ny + nz * nz)
        if length > 0.0:
            out[v, 0] = nx / length
            out[v, 1] = ny / length
            out[v, 2] = nz / length
        else:
            out[v, 0] = 0.0
            out[v, 1] = 0.0
            out[v, 2] = 0.0


# ===============================
# ACCUMULATOR CLASS
# ===============================


class NormalAccumulator:
    """Owns the fixed-point accumulation buffer and the output normal array."""

    def __init__(self, indices: INDEX, num_points: int, spacing: float = 1.0) -> None:
        self.triangles = np.ascontiguousarray(np.asarray(indices, dtype=np.int32).reshape(-1, 3))
        # Face normals scale with spacing squared; keep the same resolution on any grid
        self.scale = NORMAL_SCALE / (spacing * spacing)
        self.face_normals = np.zeros((len(self.triangles), 3), dtype=np.int64)
        self.accum = np.zeros((num_points, 3), dtype=np.int64)
        self.normals = np.zeros((num_points, 3), dtype=np.float64)
        self._order = np.arange(len(self.triangles), dtype=np.int32)

    def compute(self, pos: VEC3, order: INDEX | None = None) -> VEC3:
        """
        Recompute normals for `pos` in place and return them.

        Args:
            pos: (N, 3) vertex positions
            order: optional permutation of triangle indices for the
                accumulation pass; the result does not depend on it
        """
        quantize_face_normals(pos, self.triangles, self.scale, self.face_normals)
        # Barrier: every face normal is ready before any vertex sum starts
        accumulate_face_normals(
            self.face_normals,
            self.triangles,
            self._order if order is None else np.asarray(order, dtype=np.int32),
            self.accum,
        )
        normalize_fixed_normals(self.accum, self.scale, self.normals)
        return self.normals
