# models.py
from __future__ import annotations

from collections.abc import Iterable
import math

import numpy as np

# Box collider extent relative to the animated object's scale
BOX_HALF_EXTENT_FACTOR = 0.6


class Vector3:
    __slots__ = ["x", "y", "z"]

    def __init__(self, x: float, y: float, z: float) -> None:
        self.x, self.y, self.z = x, y, z

    def __iter__(self) -> Iterable[float]:
        yield self.x
        yield self.y
        yield self.z

    def __repr__(self) -> str:
        return f"Vector3({self.x}, {self.y}, {self.z})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Vector3):
            return NotImplemented
        return (self.x, self.y, self.z) == (other.x, other.y, other.z)

    def __add__(self, other: Vector3) -> Vector3:
        return Vector3(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: Vector3) -> Vector3:
        return Vector3(self.x - other.x, self.y - other.y, self.z - other.z)

    def __mul__(self, scalar: float) -> Vector3:
        return Vector3(self.x * scalar, self.y * scalar, self.z * scalar)

    def __rmul__(self, scalar: float) -> Vector3:  # Handles: scalar * vector
        return self.__mul__(scalar)

    def length(self) -> float:
        return math.sqrt(self.x**2 + self.y**2 + self.z**2)

    def distance(self, other: Vector3) -> float:
        return (other - self).length()

    def lerp(self, other: Vector3, t: float) -> Vector3:
        return self + (other - self) * t


class Box:
    """Axis-aligned collision volume, read-only to the solvers."""

    __slots__ = ["min", "max"]

    def __init__(self, lo: Iterable[float], hi: Iterable[float]) -> None:
        self.min = np.asarray(tuple(lo), dtype=np.float64)
        self.max = np.asarray(tuple(hi), dtype=np.float64)
        # Solvers only read the bounds
        self.min.flags.writeable = False
        self.max.flags.writeable = False

    @classmethod
    def from_transform(
        cls,
        center: Vector3,
        scale: Vector3,
        factor: float = BOX_HALF_EXTENT_FACTOR,
    ) -> Box:
        half = scale * factor
        return cls(center - half, center + half)

    def __repr__(self) -> str:
        return f"Box(min={self.min.tolist()}, max={self.max.tolist()})"


class BoxMover:
    """
    Moves a box from `start` to `end` at a constant speed, then stops.

    `elapsed` is the normalized travel parameter in [0, 1]; once it reaches
    1 the mover latches `reached_end` and ignores further updates.
    """

    def __init__(
        self,
        start: Vector3,
        end: Vector3,
        speed: float,
        scale: Vector3 | None = None,
    ) -> None:
        self.start = start
        self.end = end
        self.speed = speed
        self.scale = scale if scale is not None else Vector3(1.0, 1.0, 1.0)
        self.position = start
        self.elapsed = 0.0
        self.reached_end = False

    def update(self, dt: float) -> Vector3:
        if self.reached_end:
            return self.position

        total_dist = self.start.distance(self.end)
        if total_dist <= 0.0:
            self.elapsed = 1.0
        else:
            self.elapsed += (self.speed / total_dist) * dt
            self.elapsed = min(1.0, max(0.0, self.elapsed))

        self.position = self.start.lerp(self.end, self.elapsed)

        if self.elapsed >= 1.0:
            self.reached_end = True
        return self.position

    def box(self) -> Box:
        return Box.from_transform(self.position, self.scale)
