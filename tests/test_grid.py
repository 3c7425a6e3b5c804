import numpy as np
import pytest

from surfacesim.mesh.grid import (
    GridTopology,
    cloth_fixed_mask,
    cloth_rest_positions,
    generate_indices,
    generate_uvs,
    wave_rest_positions,
)


@pytest.mark.parametrize("rx, ry", [(2, 2), (2, 5), (7, 3), (16, 16), (33, 17)])
def test_index_count_and_range(rx: int, ry: int) -> None:
    indices = generate_indices(rx, ry)
    assert indices.dtype == np.int32
    assert len(indices) == (rx - 1) * (ry - 1) * 6
    assert indices.min() >= 0
    assert indices.max() < rx * ry


@pytest.mark.parametrize("rx, ry", [(2, 2), (5, 4), (16, 16)])
def test_every_quad_covered_by_two_triangles(rx: int, ry: int) -> None:
    tris = generate_indices(rx, ry).reshape(-1, 2, 3)
    q = 0
    for j in range(ry - 1):
        for i in range(rx - 1):
            k = i + j * rx
            corners = {k, k + 1, k + rx, k + rx + 1}
            first, second = (set(t) for t in tris[q])
            assert first | second == corners
            assert len(first & second) == 2  # shared diagonal
            q += 1


@pytest.mark.parametrize("rx, ry", [(2, 2), (6, 9), (16, 16)])
def test_consistent_winding(rx: int, ry: int) -> None:
    pos = wave_rest_positions(rx, ry, 0.5)
    tris = generate_indices(rx, ry).reshape(-1, 3)
    a, b, c = pos[tris[:, 0]], pos[tris[:, 1]], pos[tris[:, 2]]
    n = np.cross(b - a, c - a)
    # Flat XZ sheet: every face points up
    assert np.all(n[:, 1] > 0)


def test_first_quad_matches_reference_ordering() -> None:
    indices = generate_indices(4, 3)
    np.testing.assert_array_equal(indices[:6], [0, 4, 1, 1, 4, 5])


def test_uvs() -> None:
    uvs = generate_uvs(4, 2)
    assert uvs.shape == (8, 2)
    np.testing.assert_allclose(uvs[0], [0.0, 0.0])
    np.testing.assert_allclose(uvs[3], [0.75, 0.0])
    np.testing.assert_allclose(uvs[5], [0.25, 0.5])


def test_cloth_rest_pose_is_centred_and_pins_top_row() -> None:
    pos = cloth_rest_positions(4, 3, 0.5)
    np.testing.assert_allclose(pos[0], [-1.0, -0.75, 0.0])
    np.testing.assert_allclose(pos[4 + 2], [0.0, -0.25, 0.0])
    mask = cloth_fixed_mask(4, 3)
    assert mask.tolist() == [False] * 8 + [True] * 4


def test_topology_is_read_only() -> None:
    topo = GridTopology(3, 3)
    assert topo.num_points == 9
    assert topo.num_triangles == 8
    assert topo.triangles.shape == (8, 3)
    with pytest.raises(ValueError):
        topo.indices[0] = 1
