import pytest

from surfacesim.config import ClothParams, WaveParams


@pytest.fixture
def small_cloth_params() -> ClothParams:
    return ClothParams(resolution_x=16, resolution_y=16, spacing=0.2)


@pytest.fixture
def quiet_wave_params() -> WaveParams:
    """Wave block with no coupling, no restoring force and no impulses."""
    return WaveParams(
        resolution_x=16,
        resolution_z=16,
        tension=0.0,
        restore_strength=0.0,
        damping=1.0,
        impulse_strength=0.0,
    )
