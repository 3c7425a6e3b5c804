# renderer.py
from __future__ import annotations

from typing import TYPE_CHECKING

import moderngl
import numpy as np
import pygame

from surfacesim.models import Box
from surfacesim.types import PROJ, UV

if TYPE_CHECKING:
    from surfacesim.sim import Frame

MESH_VERT = """
#version 330
uniform mat4 u_view;
uniform mat4 u_proj;
in vec3 in_position;
in vec3 in_normal;
in vec3 in_color;
out vec3 v_normal;
out vec3 v_color;
void main() {
    v_normal = mat3(u_view) * in_normal;
    v_color = in_color;
    gl_Position = u_proj * u_view * vec4(in_position, 1.0);
}
"""

MESH_FRAG = """
#version 330
uniform vec3 u_light_dir;
uniform float u_flat;
in vec3 v_normal;
in vec3 v_color;
out vec4 f_color;
void main() {
    vec3 n = normalize(v_normal);
    // Two-sided lighting for the open sheet
    float diffuse = abs(dot(n, normalize(u_light_dir)));
    vec3 lit = v_color * (0.25 + 0.75 * diffuse);
    f_color = vec4(mix(lit, vec3(0.9), u_flat), 1.0);
}
"""

LINE_VERT = """
#version 330
uniform mat4 u_view;
uniform mat4 u_proj;
in vec3 in_position;
void main() {
    gl_Position = u_proj * u_view * vec4(in_position, 1.0);
}
"""

LINE_FRAG = """
#version 330
out vec4 f_color;
void main() {
    f_color = vec4(1.0, 0.8, 0.2, 1.0);
}
"""

# Corner pairs of the 12 box edges, corners numbered by (x, y, z) bits
BOX_EDGES = np.array(
    [[0, 1], [2, 3], [4, 5], [6, 7], [0, 2], [1, 3], [4, 6], [5, 7], [0, 4], [1, 5], [2, 6], [3, 7]],
    dtype="i4",
)

# ------------------------
# Matrix helpers
# ------------------------


def perspective(fov_y: float, aspect: float, near: float, far: float) -> PROJ:
    f = 1.0 / np.tan(fov_y * 0.5)
    return np.array(
        [
            [f / aspect, 0.0, 0.0, 0.0],
            [0.0, f, 0.0, 0.0],
            [0.0, 0.0, (far + near) / (near - far), (2.0 * far * near) / (near - far)],
            [0.0, 0.0, -1.0, 0.0],
        ],
        dtype=np.float32,
    ).T


def rotation_x(angle: float) -> PROJ:
    c, s = np.cos(angle), np.sin(angle)
    return np.array(
        [[1, 0, 0, 0], [0, c, -s, 0], [0, s, c, 0], [0, 0, 0, 1]],
        dtype=np.float32,
    ).T


def rotation_y(angle: float) -> PROJ:
    c, s = np.cos(angle), np.sin(angle)
    return np.array(
        [[c, 0, s, 0], [0, 1, 0, 0], [-s, 0, c, 0], [0, 0, 0, 1]],
        dtype=np.float32,
    ).T


def translate(x: float, y: float, z: float) -> PROJ:
    m = np.eye(4, dtype=np.float32)
    m[0, 3] = x
    m[1, 3] = y
    m[2, 3] = z
    return m.T


def orbit_view(camera_rot: list[float], distance: float, target: np.ndarray) -> PROJ:
    """Camera orbiting `target` at `distance`; matrices are row-vector style."""
    pitch, yaw = camera_rot
    tx, ty, tz = (float(v) for v in target)
    return (
        translate(-tx, -ty, -tz) @ rotation_y(-yaw) @ rotation_x(pitch) @ translate(0.0, 0.0, -distance)
    )


# ------------------------
# Colours
# ------------------------


def gradient_color(uvs: UV) -> np.ndarray:
    """
    Bilinear colour gradient over UV space.

    Corners: (0, 0) red, (1, 0) green, (0, 1) blue, (1, 1) yellow.
    """
    uvs = np.asarray(uvs, dtype=np.float32)
    u = uvs[:, 0:1]
    v = uvs[:, 1:2]
    bottom_left = np.array([1.0, 0.0, 0.0], dtype=np.float32)
    bottom_right = np.array([0.0, 1.0, 0.0], dtype=np.float32)
    top_left = np.array([0.0, 0.0, 1.0], dtype=np.float32)
    top_right = np.array([1.0, 1.0, 0.0], dtype=np.float32)

    bottom = bottom_left + (bottom_right - bottom_left) * u
    top = top_left + (top_right - top_left) * u
    return bottom + (top - bottom) * v


def box_corners(box: Box) -> np.ndarray:
    corners = np.empty((8, 3), dtype="f4")
    for n in range(8):
        for k in range(3):
            corners[n, k] = box.max[k] if n >> (2 - k) & 1 else box.min[k]
    return corners


# ------------------------
# Renderer
# ------------------------


class Renderer:
    def __init__(
        self,
        ctx: moderngl.Context,
        frame: Frame,
        uvs: UV,
        width: int = 800,
        height: int = 600,
    ):
        self.ctx = ctx
        self.ctx.enable(moderngl.DEPTH_TEST)

        self.width = width
        self.height = height
        self.render_mode = 0

        self.prog = self.ctx.program(vertex_shader=MESH_VERT, fragment_shader=MESH_FRAG)
        self.line_prog = self.ctx.program(vertex_shader=LINE_VERT, fragment_shader=LINE_FRAG)

        # Mesh buffers: positions and normals change every frame, colours and indices never
        count = len(frame.positions)
        self.pos_vbo = self.ctx.buffer(reserve=count * 3 * 4, dynamic=True)
        self.normal_vbo = self.ctx.buffer(reserve=count * 3 * 4, dynamic=True)
        self.color_vbo = self.ctx.buffer(gradient_color(uvs).astype("f4").tobytes())
        self.ebo = self.ctx.buffer(np.asarray(frame.indices, dtype="i4").tobytes())
        self.vao = self.ctx.vertex_array(
            self.prog,
            [
                (self.pos_vbo, "3f", "in_position"),
                (self.normal_vbo, "3f", "in_normal"),
                (self.color_vbo, "3f", "in_color"),
            ],
            self.ebo,
        )

        self.box_vbo = self.ctx.buffer(reserve=8 * 3 * 4, dynamic=True)
        self.box_ibo = self.ctx.buffer(BOX_EDGES.tobytes())
        self.box_vao = self.ctx.vertex_array(
            self.line_prog, [(self.box_vbo, "3f", "in_position")], self.box_ibo
        )

        self.target = np.asarray(frame.positions, dtype=np.float64).mean(axis=0)

    def cycle_render_mode(self) -> str:
        self.render_mode = (self.render_mode + 1) % 3
        return ["Filled", "Wireframe", "Filled+Edges"][self.render_mode]

    def draw(
        self,
        frame: Frame,
        camera_rot: list[float],
        distance: float,
        volume: Box | None = None,
    ) -> None:
        self.ctx.clear(0.1, 0.1, 0.15, 1.0)

        self.pos_vbo.write(np.asarray(frame.positions, dtype="f4").tobytes())
        self.normal_vbo.write(np.asarray(frame.normals, dtype="f4").tobytes())

        view = orbit_view(camera_rot, distance, self.target)
        proj = perspective(np.radians(60.0), self.width / self.height, 0.1, 500.0)
        for prog in (self.prog, self.line_prog):
            prog["u_view"].write(view.tobytes())  # type: ignore
            prog["u_proj"].write(proj.tobytes())  # type: ignore
        self.prog["u_light_dir"].value = (0.4, 1.0, 0.6)  # type: ignore

        if self.render_mode in (0, 2):
            self.prog["u_flat"].value = 0.0  # type: ignore
            self.vao.render(moderngl.TRIANGLES)
        if self.render_mode in (1, 2):
            self.ctx.wireframe = True
            self.prog["u_flat"].value = 1.0  # type: ignore
            self.vao.render(moderngl.TRIANGLES)
            self.ctx.wireframe = False

        if volume is not None:
            self.box_vbo.write(box_corners(volume).tobytes())
            self.box_vao.render(moderngl.LINES)

        pygame.display.flip()
