"""Tests for logging configuration."""

from typing import Iterator, List

import numpy as np
import pytest
import torch
from loguru import logger

from unicam import UnifiedCamera
from unicam.utils.log import PACKAGE, configure_logging


@pytest.fixture
def records() -> Iterator[List[str]]:
    """Capture unicam log messages at DEBUG level."""
    messages: List[str] = []
    handler_id = configure_logging("DEBUG", sink=messages.append, fmt="{level} {message}")
    yield messages
    logger.remove(handler_id)
    logger.disable(PACKAGE)


class TestLogging:
    """Test log records emitted by the camera model."""

    def test_silent_by_default(self) -> None:
        """Test no records are emitted before logging is configured."""
        messages: List[str] = []
        handler_id = logger.add(messages.append, level="DEBUG")
        try:
            cam = UnifiedCamera([100.0, 100.0, 50.0, 50.0, 0.5])
            cam.apply_increment([0.0, 0.0, 0.0, 0.0, 3.0])
        finally:
            logger.remove(handler_id)
        assert messages == []

    def test_clamp_is_logged(self, records: List[str]) -> None:
        """Test an increment logs the raw and clamped alpha."""
        cam = UnifiedCamera([100.0, 100.0, 50.0, 50.0, 0.5])
        cam.apply_increment([0.0, 0.0, 0.0, 0.0, 3.0])
        assert any(
            message.startswith("DEBUG Incremented alpha to 3.5, clamped to 1.0")
            for message in records
        )

    def test_in_range_increment_keeps_alpha(self, records: List[str]) -> None:
        """Test an in-range increment logs an unchanged alpha."""
        cam = UnifiedCamera([100.0, 100.0, 50.0, 50.0, 0.5])
        cam.apply_increment(np.zeros(5))
        assert any("alpha to 0.5, clamped to 0.5" in message for message in records)

    def test_tensor_increment_is_logged(self, records: List[str]) -> None:
        """Test the increment record formats tensor parameters as floats."""
        cam = UnifiedCamera(torch.tensor([100.0, 100.0, 50.0, 50.0, 0.5], dtype=torch.float64))
        cam.apply_increment(torch.tensor([0.0, 0.0, 0.0, 0.0, -1.0], dtype=torch.float64))
        assert any("alpha to -0.5, clamped to 0.0" in message for message in records)

    def test_initial_guess_is_logged(self, records: List[str]) -> None:
        """Test seeding from an initial guess is logged."""
        UnifiedCamera.from_initial_guess([100.0, 100.0, 50.0, 50.0])
        assert any("Initialized ucm from guess {'fx': 100.0" in message for message in records)

    def test_record_names_emitting_module(self) -> None:
        """Test records carry the module that emitted them."""
        messages: List[str] = []
        handler_id = configure_logging("DEBUG", sink=messages.append, fmt="{name} {message}")
        try:
            UnifiedCamera.from_initial_guess([100.0, 100.0, 50.0, 50.0])
        finally:
            logger.remove(handler_id)
            logger.disable(PACKAGE)
        assert messages
        assert all(message.startswith("unicam.camera.unified ") for message in messages)
