import argparse
from dataclasses import dataclass
import logging
import sys
from typing import Protocol

import numpy as np

from surfacesim.config import ClothParams, WaveParams
from surfacesim.mesh.grid import GridTopology
from surfacesim.models import Box, BoxMover, Vector3
from surfacesim.normals import NormalAccumulator
from surfacesim.solver_cloth import ClothSolver
from surfacesim.solver_wave import WaveSolver
from surfacesim.types import INDEX, VEC3

logger = logging.getLogger(__name__)


class SurfaceSolver(Protocol):
    kind: str
    topology: GridTopology
    params: ClothParams | WaveParams

    @property
    def positions(self) -> VEC3: ...

    def step(self, params=None, volume: Box | None = None) -> None: ...

    def close(self) -> None: ...


@dataclass
class Frame:
    """Mesh data handed to the renderer once per step."""

    positions: VEC3
    normals: VEC3
    indices: INDEX


class Simulation:
    """
    Per-frame driver: advance the active solver, then rebuild normals.

    The driver never looks inside the solver; any object with `positions`,
    `topology` and `step(params, volume)` works.
    """

    def __init__(self, solver: SurfaceSolver) -> None:
        self.solver = solver
        topology = solver.topology
        self.normals = NormalAccumulator(
            topology.triangles, topology.num_points, solver.params.spacing
        )
        self.frame_count = 0
        # Zero-step frame so the host can draw before the first update
        self.normals.compute(solver.positions)

    @classmethod
    def cloth(cls, params: ClothParams | None = None) -> "Simulation":
        return cls(ClothSolver(params))

    @classmethod
    def wave(cls, params: WaveParams | None = None, seed: int | None = None) -> "Simulation":
        return cls(WaveSolver(params, seed=seed))

    @property
    def frame(self) -> Frame:
        return Frame(
            positions=self.solver.positions,
            normals=self.normals.normals,
            indices=self.solver.topology.indices,
        )

    def step(
        self,
        params: ClothParams | WaveParams | None = None,
        dt: float | None = None,
        volume: Box | None = None,
    ) -> Frame:
        """
        Advance one frame.

        Args:
            params: optional per-frame parameter block (same grid only)
            dt: optional time step for this frame only; the solver keeps
                its stored `delta_time` for later frames
            volume: collision box for this frame (cloth only)
        """
        if dt is None:
            self.solver.step(params, volume)
        else:
            base = params if params is not None else self.solver.params
            self.solver.step(type(base)(**{**vars(base), "delta_time": dt}), volume)
            self.solver.params = base

        self.normals.compute(self.solver.positions)
        self.frame_count += 1
        return self.frame

    def close(self) -> None:
        self.solver.close()
        self.normals = NormalAccumulator(np.empty(0, dtype=np.int32), 0)

    def __enter__(self) -> "Simulation":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()


# ===============================
# DEMO HOST
# ===============================


def build_simulation(kind: str, resolution: int, seed: int | None) -> Simulation:
    if kind == "cloth":
        return Simulation.cloth(ClothParams(resolution_x=resolution, resolution_y=resolution))
    return Simulation.wave(WaveParams(resolution_x=resolution, resolution_z=resolution), seed=seed)


def default_box_mover() -> BoxMover:
    # Sweeps through the hanging sheet along Z
    return BoxMover(
        start=Vector3(0.0, -2.0, -4.0),
        end=Vector3(0.0, -2.0, 4.0),
        speed=1.0,
        scale=Vector3(2.0, 2.0, 2.0),
    )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Grid cloth / liquid surface simulation")
    parser.add_argument("--kind", choices=["cloth", "wave"], default="cloth")
    parser.add_argument("--resolution", type=int, default=64)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--fps", type=int, default=60)
    parser.add_argument("--debug", action="store_true")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    import moderngl
    import pygame

    from surfacesim.renderer import Renderer

    args = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.debug else logging.INFO)

    sim = build_simulation(args.kind, args.resolution, args.seed)
    mover = default_box_mover() if args.kind == "cloth" else None

    width, height = 1000, 800
    pygame.init()
    clock = pygame.time.Clock()
    pygame.display.set_mode((width, height), pygame.OPENGL | pygame.DOUBLEBUF)
    pygame.display.set_caption(f"Surface Simulation - {args.kind}")
    ctx = moderngl.create_context()
    renderer = Renderer(ctx, sim.frame, sim.solver.topology.uvs, width, height)

    running = True
    paused = False
    camera_rot = [0.3, 0.0]
    distance = 20.0 if args.kind == "cloth" else args.resolution * 0.75

    print("\n" + "=" * 60)
    print(f"{args.kind.upper()} SIMULATION")
    print("=" * 60)
    print("  Arrow Keys      - Rotate camera")
    print("  +/-             - Zoom in/out")
    print("  Space           - Pause/Resume")
    print("  R               - Reset simulation")
    print("  W               - Cycle modes (Filled/Wireframe/Both)")
    print("  Q / A           - Increase/Decrease " + ("stiffness" if args.kind == "cloth" else "tension"))
    print("=" * 60)

    while running:
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                running = False

            elif event.type == pygame.KEYDOWN:
                if event.key == pygame.K_SPACE:
                    paused = not paused
                    print(f"[{'PAUSED' if paused else 'RESUMED'}]")

                elif event.key == pygame.K_w:
                    print(f"[Render Mode: {renderer.cycle_render_mode()}]")

                elif event.key == pygame.K_r:
                    sim.close()
                    sim = build_simulation(args.kind, args.resolution, args.seed)
                    mover = default_box_mover() if args.kind == "cloth" else None
                    print("[Simulation RESET]")

                elif event.key in (pygame.K_q, pygame.K_a):
                    sign = 1.0 if event.key == pygame.K_q else -1.0
                    p = sim.solver.params
                    if isinstance(p, ClothParams):
                        p.stiffness = min(1.0, max(0.0, p.stiffness + sign * 0.05))
                        print(f"Stiffness: {p.stiffness:.2f}")
                    else:
                        p.tension = max(0.0, p.tension + sign * 0.1)
                        print(f"Tension: {p.tension:.2f}")

        keys = pygame.key.get_pressed()
        if keys[pygame.K_LEFT]:
            camera_rot[1] -= 0.05
        if keys[pygame.K_RIGHT]:
            camera_rot[1] += 0.05
        if keys[pygame.K_UP]:
            camera_rot[0] -= 0.05
        if keys[pygame.K_DOWN]:
            camera_rot[0] += 0.05
        if keys[pygame.K_EQUALS] or keys[pygame.K_PLUS]:
            distance = max(1.0, distance - 0.5)
        if keys[pygame.K_MINUS]:
            distance += 0.5

        volume = None
        if mover is not None:
            if not paused:
                mover.update(sim.solver.params.delta_time)
            volume = mover.box()

        if not paused:
            sim.step(volume=volume)

        renderer.draw(sim.frame, camera_rot, distance, volume)
        clock.tick(args.fps)

    print("\n[Main] Shutting down...")
    sim.close()
    pygame.quit()
    sys.exit()


if __name__ == "__main__":
    main()
