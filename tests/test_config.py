import logging

import pytest

from surfacesim.config import ClothParams, ConfigurationError, WaveParams, check_same_grid
from surfacesim.solver_cloth import ClothSolver
from surfacesim.solver_wave import WaveSolver


@pytest.mark.parametrize(
    "kwargs",
    [
        {"resolution_x": 1},
        {"resolution_y": 0},
        {"spacing": 0.0},
        {"spacing": -0.2},
        {"stiffness": 1.5},
        {"damping": -0.1},
        {"delta_time": 0.0},
    ],
)
def test_invalid_cloth_params_rejected_at_init(kwargs: dict) -> None:
    with pytest.raises(ConfigurationError):
        ClothSolver(ClothParams(**kwargs))


@pytest.mark.parametrize(
    "kwargs",
    [
        {"resolution_z": 1},
        {"spacing": 0.0},
        {"wave_interval": 0.0},
        {"delta_time": -1.0},
    ],
)
def test_invalid_wave_params_rejected_at_init(kwargs: dict) -> None:
    with pytest.raises(ConfigurationError):
        WaveSolver(WaveParams(**kwargs))


def test_configuration_error_is_value_error() -> None:
    assert issubclass(ConfigurationError, ValueError)


def test_defaults_are_valid() -> None:
    ClothParams().validate()
    WaveParams().validate()
    assert WaveParams().count == 64 * 64


def test_non_multiple_of_work_group_warns(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING, logger="surfacesim.config"):
        ClothParams(resolution_x=20, resolution_y=16).validate()
    assert "work-group" in caplog.text


def test_check_same_grid() -> None:
    check_same_grid(ClothParams(stiffness=0.1), ClothParams(stiffness=0.9))
    with pytest.raises(ConfigurationError):
        check_same_grid(WaveParams(), WaveParams(resolution_z=32))
