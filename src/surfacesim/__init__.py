"""
Surface Simulation Package

Grid-based deformable surfaces: a pinned elastic cloth (Verlet particles
with distance constraints) and a liquid height field (damped discrete wave
equation), each producing positions, triangle indices and smooth normals
every step.
"""

from .config import ClothParams, ConfigurationError, WaveParams
from .models import Box, BoxMover, Vector3
from .sim import Frame, Simulation
from .solver_cloth import ClothSolver
from .solver_wave import WaveSolver

__version__ = "0.1.0"

__all__ = [
    "Box",
    "BoxMover",
    "ClothParams",
    "ClothSolver",
    "ConfigurationError",
    "Frame",
    "Simulation",
    "Vector3",
    "WaveParams",
    "WaveSolver",
]
