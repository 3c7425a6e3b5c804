# solver_cloth.py
"""
Grid cloth solver: Verlet integration plus fixed-count distance-constraint
relaxation interleaved with box collision.
"""

import logging

from numba import njit, prange  # type: ignore
import numpy as np

from surfacesim.config import CONSTRAINT_ITERATIONS, ClothParams, check_same_grid
from surfacesim.mesh.grid import GridTopology, cloth_fixed_mask, cloth_rest_positions
from surfacesim.models import Box
from surfacesim.types import MASK, VEC3

logger = logging.getLogger(__name__)

# ===============================
# PHYSICS KERNELS
# ===============================


@njit(fastmath=True, cache=True, parallel=True)  # type: ignore
def apply_external_forces(accel: VEC3, fixed_mask: MASK, gravity: float) -> None:
    for i in prange(len(accel)):
        if fixed_mask[i]:
            continue
        accel[i, 0] = 0.0
        accel[i, 1] = gravity
        accel[i, 2] = 0.0


@njit(fastmath=True, cache=True, parallel=True)  # type: ignore
def integrate_verlet(
    pos_read: VEC3,
    prev_read: VEC3,
    pos_write: VEC3,
    prev_write: VEC3,
    accel: VEC3,
    fixed_mask: MASK,
    damping: float,
    dt: float,
) -> None:
    """Damped Verlet step from the read buffers into the write buffers."""
    dt_sq = dt * dt
    for i in prange(len(pos_read)):
        if fixed_mask[i]:
            pos_write[i, :] = pos_read[i, :]
            prev_write[i, :] = prev_read[i, :]
            continue

        for k in range(3):
            v = (pos_read[i, k] - prev_read[i, k]) * damping
            prev_write[i, k] = pos_read[i, k]
            pos_write[i, k] = pos_read[i, k] + v + accel[i, k] * dt_sq


@njit(fastmath=True, cache=True, parallel=True)  # type: ignore
def resolve_box_collision(
    pos: VEC3,
    fixed_mask: MASK,
    box_min: VEC3,
    box_max: VEC3,
) -> None:
    """
    Push particles strictly inside the box out through the nearest face.

    Each particle only touches its own slot, so this runs in place.
    """
    for i in prange(len(pos)):
        if fixed_mask[i]:
            continue

        inside = True
        for k in range(3):
            if pos[i, k] <= box_min[k] or pos[i, k] >= box_max[k]:
                inside = False
        if not inside:
            continue

        best_axis = 0
        best_value = box_min[0]
        best_depth = np.inf
        for k in range(3):
            to_min = pos[i, k] - box_min[k]
            to_max = box_max[k] - pos[i, k]
            if to_min < best_depth:
                best_depth = to_min
                best_axis = k
                best_value = box_min[k]
            if to_max < best_depth:
                best_depth = to_max
                best_axis = k
                best_value = box_max[k]

        pos[i, best_axis] = best_value


@njit(fastmath=True, cache=True, parallel=True)  # type: ignore
def solve_constraints(
    pos_read: VEC3,
    pos_write: VEC3,
    fixed_mask: MASK,
    resolution_x: int,
    resolution_y: int,
    rest_length: float,
    stiffness: float,
) -> None:
    """
    One Jacobi pass over the structural links of the 4-neighbourhood.

    Every particle gathers the corrections of its own links from
    `pos_read` and writes only its own slot in `pos_write`. An unfixed
    particle takes half of a link's correction, or all of it when the
    other endpoint is fixed.
    """
    for j in prange(resolution_y):
        for i in range(resolution_x):
            idx = i + j * resolution_x
            if fixed_mask[idx]:
                pos_write[idx, :] = pos_read[idx, :]
                continue

            cx = 0.0
            cy = 0.0
            cz = 0.0
            for n in range(4):
                other = -1
                if n == 0:
                    if i == 0:
                        continue
                    other = idx - 1
                elif n == 1:
                    if i == resolution_x - 1:
                        continue
                    other = idx + 1
                elif n == 2:
                    if j == 0:
                        continue
                    other = idx - resolution_x
                else:
                    if j == resolution_y - 1:
                        continue
                    other = idx + resolution_x

                dx = pos_read[other, 0] - pos_read[idx, 0]
                dy = pos_read[other, 1] - pos_read[idx, 1]
                dz = pos_read[other, 2] - pos_read[idx, 2]

                dist_sq = dx * dx + dy * dy + dz * dz
                if dist_sq < 1e-16:
                    continue

                dist = np.sqrt(dist_sq)
                share = 1.0 if fixed_mask[other] else 0.5
                factor = stiffness * share * (dist - rest_length) / dist

                cx += dx * factor
                cy += dy * factor
                cz += dz * factor

            pos_write[idx, 0] = pos_read[idx, 0] + cx
            pos_write[idx, 1] = pos_read[idx, 1] + cy
            pos_write[idx, 2] = pos_read[idx, 2] + cz


# ===============================
# SOLVER CLASS
# ===============================


class ClothSolver:
    """
    Pinned cloth sheet on a regular grid.

    - Top row fixed for the lifetime of the solver
    - Positions and previous positions live in two-slot arenas; every pass
      reads one slot and writes the other, then the front index flips
    - Exactly CONSTRAINT_ITERATIONS collision + constraint passes per step
    """

    kind = "cloth"

    def __init__(self, params: ClothParams | None = None) -> None:
        self.params = params or ClothParams()
        self.params.validate()

        rx, ry, spacing = self.params.grid
        self.topology = GridTopology(rx, ry)

        count = self.params.count
        self._pos = np.empty((2, count, 3), dtype=np.float64)
        self._prev = np.empty((2, count, 3), dtype=np.float64)
        self._pos_front = 0
        self._prev_front = 0

        self._pos[0] = cloth_rest_positions(rx, ry, spacing)
        # Zero initial velocity
        self._prev[0] = self._pos[0]

        self.accel = np.zeros((count, 3), dtype=np.float64)
        self.fixed_mask = cloth_fixed_mask(rx, ry)
        self.fixed_mask.flags.writeable = False

        self.steps = 0
        self.is_exploded = False

        logger.info(
            "Cloth solver initialized: %dx%d points, %d fixed, %d triangles, spacing %.4f",
            rx,
            ry,
            int(self.fixed_mask.sum()),
            self.topology.num_triangles,
            spacing,
        )

    @property
    def positions(self) -> VEC3:
        return self._pos[self._pos_front]

    @property
    def prev_positions(self) -> VEC3:
        return self._prev[self._prev_front]

    def step(self, params: ClothParams | None = None, volume: Box | None = None) -> None:
        """Advance the cloth by one `params.delta_time`."""
        if params is not None:
            check_same_grid(self.params, params)
            params.validate()
            self.params = params
        p = self.params

        # 1. External forces
        apply_external_forces(self.accel, self.fixed_mask, p.gravity)

        # 2. Integration
        r, w = self._pos_front, 1 - self._pos_front
        pr, pw = self._prev_front, 1 - self._prev_front
        integrate_verlet(
            self._pos[r],
            self._prev[pr],
            self._pos[w],
            self._prev[pw],
            self.accel,
            self.fixed_mask,
            p.damping,
            p.delta_time,
        )
        self._pos_front = w
        self._prev_front = pw

        # 3. Collision + constraint relaxation
        for _ in range(CONSTRAINT_ITERATIONS):
            if volume is not None:
                resolve_box_collision(self.positions, self.fixed_mask, volume.min, volume.max)

            r, w = self._pos_front, 1 - self._pos_front
            solve_constraints(
                self._pos[r],
                self._pos[w],
                self.fixed_mask,
                p.resolution_x,
                p.resolution_y,
                p.spacing,
                p.stiffness,
            )
            self._pos_front = w

        self.steps += 1
        if not self.is_exploded and not np.isfinite(self.positions).all():
            self.is_exploded = True
            logger.warning("Cloth simulation became unstable after %d steps", self.steps)

    def close(self) -> None:
        self._pos = np.empty((2, 0, 3), dtype=np.float64)
        self._prev = np.empty((2, 0, 3), dtype=np.float64)
        self.accel = np.empty((0, 3), dtype=np.float64)
