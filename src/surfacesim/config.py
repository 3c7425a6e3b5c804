"""Parameter blocks for the cloth and wave simulations."""

from dataclasses import dataclass
import logging

logger = logging.getLogger(__name__)

# Work-group edge length of the parallel substrate (points per axis per group)
THREAD_SIZE = 16

# Fixed relaxation count per frame (not convergence based)
CONSTRAINT_ITERATIONS = 5


class ConfigurationError(ValueError):
    """Raised when a parameter block cannot describe a valid simulation."""


def _check_grid(name: str, rx: int, ry: int, spacing: float) -> None:
    if rx <= 1 or ry <= 1:
        raise ConfigurationError(f"{name}: resolution must be >= 2 per axis, got {rx}x{ry}")
    if not spacing > 0.0:
        raise ConfigurationError(f"{name}: spacing must be positive, got {spacing}")
    if rx % THREAD_SIZE or ry % THREAD_SIZE:
        logger.warning(
            "%s: resolution %dx%d is not a multiple of the work-group size %d",
            name,
            rx,
            ry,
            THREAD_SIZE,
        )


@dataclass
class ClothParams:
    """Cloth parameters. Defaults describe a 64x64 sheet hanging from its top row."""

    resolution_x: int = 64
    resolution_y: int = 64
    spacing: float = 0.2  # Rest length of structural links
    stiffness: float = 0.5  # Fraction of constraint error corrected per iteration
    damping: float = 0.99  # Velocity retention per step
    gravity: float = -9.8
    delta_time: float = 0.05

    def validate(self) -> None:
        _check_grid("cloth", self.resolution_x, self.resolution_y, self.spacing)
        if not 0.0 <= self.stiffness <= 1.0:
            raise ConfigurationError(f"cloth: stiffness must be in [0, 1], got {self.stiffness}")
        if self.damping < 0.0:
            raise ConfigurationError(f"cloth: damping must be >= 0, got {self.damping}")
        if not self.delta_time > 0.0:
            raise ConfigurationError(f"cloth: delta_time must be positive, got {self.delta_time}")

    @property
    def grid(self) -> tuple[int, int, float]:
        return self.resolution_x, self.resolution_y, self.spacing

    @property
    def count(self) -> int:
        return self.resolution_x * self.resolution_y


@dataclass
class WaveParams:
    """Height-field parameters. Defaults describe a 64x64 pool with light rain."""

    resolution_x: int = 64
    resolution_z: int = 64
    spacing: float = 0.5
    tension: float = 1.0
    damping: float = 0.995
    impulse_strength: float = 1.0
    wavelength_factor: float = 1.0
    wave_interval: float = 0.15  # Seconds between random impulses
    restore_strength: float = 0.01
    delta_time: float = 0.05

    def validate(self) -> None:
        _check_grid("wave", self.resolution_x, self.resolution_z, self.spacing)
        if self.damping < 0.0:
            raise ConfigurationError(f"wave: damping must be >= 0, got {self.damping}")
        if not self.delta_time > 0.0:
            raise ConfigurationError(f"wave: delta_time must be positive, got {self.delta_time}")
        if not self.wave_interval > 0.0:
            raise ConfigurationError(
                f"wave: wave_interval must be positive, got {self.wave_interval}"
            )

    @property
    def grid(self) -> tuple[int, int, float]:
        return self.resolution_x, self.resolution_z, self.spacing

    @property
    def count(self) -> int:
        return self.resolution_x * self.resolution_z


def check_same_grid(current: ClothParams | WaveParams, new: ClothParams | WaveParams) -> None:
    """Per-frame parameter blocks may tune coefficients but never the grid."""
    if type(current) is not type(new):
        raise ConfigurationError(
            f"cannot switch simulation kind mid-run ({type(current).__name__} -> "
            f"{type(new).__name__}); create a new simulation"
        )
    if current.grid != new.grid:
        raise ConfigurationError(
            f"grid changed from {current.grid} to {new.grid}; reinitialize the simulation"
        )
