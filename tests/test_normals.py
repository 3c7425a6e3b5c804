import numpy as np
import pytest

from surfacesim.mesh.grid import cloth_rest_positions, generate_indices, wave_rest_positions
from surfacesim.normals import NORMAL_SCALE, NormalAccumulator


@pytest.mark.parametrize("spacing", [1e-4, 5e-4, 0.5, 10.0])
def test_flat_wave_surface_points_up(spacing: float) -> None:
    pos = wave_rest_positions(8, 8, spacing)
    acc = NormalAccumulator(generate_indices(8, 8), len(pos), spacing)
    normals = acc.compute(pos)
    np.testing.assert_allclose(normals, np.tile([0.0, 1.0, 0.0], (64, 1)), atol=1e-9)


def test_flat_cloth_faces_negative_z() -> None:
    pos = cloth_rest_positions(5, 4, 0.2)
    acc = NormalAccumulator(generate_indices(5, 4), len(pos))
    normals = acc.compute(pos)
    np.testing.assert_allclose(normals, np.tile([0.0, 0.0, -1.0], (20, 1)), atol=1e-9)


def test_tilted_plane_matches_plane_normal() -> None:
    pos = wave_rest_positions(6, 6, 0.5)
    angle = 0.4
    c, s = np.cos(angle), np.sin(angle)
    rot = np.array([[1.0, 0.0, 0.0], [0.0, c, -s], [0.0, s, c]])
    tilted = pos @ rot.T + np.array([1.0, 2.0, 3.0])

    acc = NormalAccumulator(generate_indices(6, 6), len(pos))
    normals = acc.compute(tilted)
    expected = rot @ np.array([0.0, 1.0, 0.0])
    np.testing.assert_allclose(normals, np.tile(expected, (36, 1)), atol=1e-5)
    np.testing.assert_allclose(np.linalg.norm(normals, axis=1), 1.0, atol=1e-9)


@pytest.mark.parametrize("spacing", [1e-4, 0.5, 10.0])
def test_accumulation_order_does_not_change_result(spacing: float) -> None:
    rng = np.random.default_rng(7)
    pos = wave_rest_positions(12, 10, spacing)
    pos[:, 1] = rng.normal(scale=0.6 * spacing, size=len(pos))
    indices = generate_indices(12, 10)
    num_tris = len(indices) // 3

    acc = NormalAccumulator(indices, len(pos), spacing)
    forward = acc.compute(pos).copy()
    forward_accum = acc.accum.copy()
    backward = acc.compute(pos, order=np.arange(num_tris)[::-1]).copy()
    shuffled = acc.compute(pos, order=rng.permutation(num_tris)).copy()

    np.testing.assert_array_equal(forward, backward)
    np.testing.assert_array_equal(forward, shuffled)
    np.testing.assert_array_equal(forward_accum, acc.accum)


def test_unused_vertex_gets_zero_normal() -> None:
    pos = np.array(
        [[0.0, 0.0, 0.0], [0.0, 0.0, 1.0], [1.0, 0.0, 0.0], [5.0, 5.0, 5.0]],
    )
    acc = NormalAccumulator(np.array([0, 1, 2], dtype=np.int32), 4)
    normals = acc.compute(pos)
    np.testing.assert_allclose(normals[:3], np.tile([0.0, 1.0, 0.0], (3, 1)))
    np.testing.assert_array_equal(normals[3], [0.0, 0.0, 0.0])
    assert np.isfinite(normals).all()


def test_degenerate_triangle_contributes_nothing() -> None:
    pos = np.zeros((3, 3))
    acc = NormalAccumulator(np.array([0, 1, 2], dtype=np.int32), 3)
    normals = acc.compute(pos)
    np.testing.assert_array_equal(normals, np.zeros((3, 3)))


def test_face_normals_are_fixed_point() -> None:
    pos = np.array([[0.0, 0.0, 0.0], [0.0, 0.0, 1.0], [1.0, 0.0, 0.0]])
    acc = NormalAccumulator(np.array([0, 1, 2], dtype=np.int32), 3)
    acc.compute(pos)
    assert acc.face_normals.dtype == np.int64
    np.testing.assert_array_equal(acc.face_normals[0], [0, int(NORMAL_SCALE), 0])
    np.testing.assert_array_equal(acc.accum, np.tile([0, int(NORMAL_SCALE), 0], (3, 1)))


@pytest.mark.parametrize("spacing", [1e-4, 10.0])
def test_sloped_surface_keeps_direction_at_any_spacing(spacing: float) -> None:
    pos = wave_rest_positions(6, 6, spacing)
    # Plane y = 0.5 x, normal along (-0.5, 1, 0)
    pos[:, 1] = 0.5 * pos[:, 0]
    acc = NormalAccumulator(generate_indices(6, 6), len(pos), spacing)
    normals = acc.compute(pos)
    expected = np.array([-0.5, 1.0, 0.0]) / np.sqrt(1.25)
    np.testing.assert_allclose(normals, np.tile(expected, (36, 1)), atol=1e-5)
    assert np.abs(acc.accum).max() < np.iinfo(np.int64).max // 1000
