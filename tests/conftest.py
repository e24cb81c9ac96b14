"""Pytest configuration and fixtures."""

from typing import Callable, List

import numpy as np
import numpy.typing as npt
import pytest

from unicam import UnifiedCamera


@pytest.fixture
def euroc_camera() -> UnifiedCamera:
    """EuRoC calibration of the unified camera model."""
    return UnifiedCamera([
        460.76484651566468,
        459.4051018049483,
        365.8937161309615,
        249.33499869752445,
        0.5903365915227143,
    ])


@pytest.fixture(params=[0, 1], ids=["euroc", "tumvi"])
def calibrated_camera(request: pytest.FixtureRequest) -> UnifiedCamera:
    """Each of the calibrated test cameras."""
    return UnifiedCamera.get_test_projections()[request.param]


@pytest.fixture
def points_3d() -> npt.NDArray[np.float64]:
    """Points inside the projection domain of every test camera."""
    return np.array([
        [0.1, 0.2, 1.0],
        [-0.3, 0.4, 0.8],
        [0.5, -0.5, 0.6],
        [1.0, 0.2, 0.2],
        [-0.4, -0.1, 2.5],
        [1.0, 0.0, -0.3],
    ])


@pytest.fixture
def numerical_jacobian() -> Callable:
    """Central finite differences of a vector function."""

    def jacobian(
        func: Callable[[npt.NDArray[np.float64]], npt.NDArray[np.float64]],
        x: npt.NDArray[np.float64],
        eps: float = 1e-6,
    ) -> npt.NDArray[np.float64]:
        x = np.asarray(x, dtype=np.float64)
        columns: List[npt.NDArray[np.float64]] = []
        for i in range(x.size):
            step = np.zeros_like(x)
            step[i] = eps
            columns.append((np.asarray(func(x + step)) - np.asarray(func(x - step))) / (2 * eps))
        return np.stack(columns, axis=-1)

    return jacobian
