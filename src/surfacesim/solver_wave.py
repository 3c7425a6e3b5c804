# solver_wave.py
"""
Height-field liquid surface: damped discrete wave equation with a restoring
term and periodic random impulses.
"""

import logging

from numba import njit, prange  # type: ignore
import numpy as np

from surfacesim.config import WaveParams, check_same_grid
from surfacesim.mesh.grid import GridTopology, wave_rest_positions
from surfacesim.types import SCALAR, VEC3

logger = logging.getLogger(__name__)

# ===============================
# PHYSICS KERNELS
# ===============================


@njit(fastmath=True, cache=True, parallel=True)  # type: ignore
def wave_step(
    height_read: SCALAR,
    velocity_read: SCALAR,
    height_write: SCALAR,
    velocity_write: SCALAR,
    resolution_x: int,
    resolution_z: int,
    tension: float,
    restore_strength: float,
    wavelength_factor: float,
    damping: float,
    dt: float,
) -> None:
    """
    Explicit update of every point from the previous snapshot.

    Border points only sum the neighbours that exist (open boundary).
    """
    for z in prange(resolution_z):
        for x in range(resolution_x):
            idx = x + z * resolution_x
            h = height_read[idx]

            laplacian = 0.0
            if x > 0:
                laplacian += height_read[idx - 1] - h
            if x < resolution_x - 1:
                laplacian += height_read[idx + 1] - h
            if z > 0:
                laplacian += height_read[idx - resolution_x] - h
            if z < resolution_z - 1:
                laplacian += height_read[idx + resolution_x] - h

            acceleration = tension * laplacian - h * restore_strength
            velocity = (velocity_read[idx] + acceleration * dt * wavelength_factor) * damping

            velocity_write[idx] = velocity
            height_write[idx] = h + velocity * dt


@njit(fastmath=True, cache=True, parallel=True)  # type: ignore
def write_wave_vertices(height: SCALAR, pos: VEC3) -> None:
    for i in prange(len(height)):
        pos[i, 1] = height[i]


# ===============================
# SOLVER CLASS
# ===============================


class WaveSolver:
    """
    Liquid surface on an X by Z grid.

    Height and velocity live in two-slot arenas: the update reads the front
    slot, writes the back slot, then the front index flips. Impulses are
    injected into the front slot after the flip.
    """

    kind = "wave"

    def __init__(
        self,
        params: WaveParams | None = None,
        rng: np.random.Generator | None = None,
        seed: int | None = None,
    ) -> None:
        self.params = params or WaveParams()
        self.params.validate()
        self.rng = rng if rng is not None else np.random.default_rng(seed)

        rx, rz, spacing = self.params.grid
        self.topology = GridTopology(rx, rz)

        count = self.params.count
        self._height = np.zeros((2, count), dtype=np.float64)
        self._velocity = np.zeros((2, count), dtype=np.float64)
        self._front = 0

        self._positions = wave_rest_positions(rx, rz, spacing)

        # Impulse timer, owned per instance
        self.elapsed_time = 0.0
        self.last_impulse: int | None = None
        self.impulse_count = 0
        self.steps = 0

        logger.info(
            "Wave solver initialized: %dx%d points, %d triangles, spacing %.4f",
            rx,
            rz,
            self.topology.num_triangles,
            spacing,
        )

    @property
    def heights(self) -> SCALAR:
        return self._height[self._front]

    @property
    def velocities(self) -> SCALAR:
        return self._velocity[self._front]

    @property
    def positions(self) -> VEC3:
        return self._positions

    def step(self, params: WaveParams | None = None, volume: object = None) -> None:
        """Advance the surface by one `params.delta_time`. `volume` is ignored."""
        if params is not None:
            check_same_grid(self.params, params)
            params.validate()
            self.params = params
        p = self.params

        r, w = self._front, 1 - self._front
        wave_step(
            self._height[r],
            self._velocity[r],
            self._height[w],
            self._velocity[w],
            p.resolution_x,
            p.resolution_z,
            p.tension,
            p.restore_strength,
            p.wavelength_factor,
            p.damping,
            p.delta_time,
        )
        self._front = w

        write_wave_vertices(self.heights, self._positions)
        self.last_impulse = self._generate_impulse(p)
        self.steps += 1

    def _generate_impulse(self, p: WaveParams) -> int | None:
        """Kick one random point once every `wave_interval` seconds."""
        self.elapsed_time += p.delta_time
        if self.elapsed_time < p.wave_interval:
            return None

        self.elapsed_time = 0.0
        idx = int(self.rng.integers(0, p.resolution_x)) + int(
            self.rng.integers(0, p.resolution_z)
        ) * p.resolution_x
        self.velocities[idx] += p.impulse_strength
        self.impulse_count += 1
        logger.debug("Impulse %.3f at point %d", p.impulse_strength, idx)
        return idx

    def close(self) -> None:
        self._height = np.zeros((2, 0), dtype=np.float64)
        self._velocity = np.zeros((2, 0), dtype=np.float64)
        self._positions = np.empty((0, 3), dtype=np.float64)
