"""unicam - Unified camera model.

A Python library implementing the unified camera model (UCM) with exact
analytic Jacobians of projection and unprojection with respect to the point
and to the intrinsic parameters. Evaluates on numpy arrays or on torch
tensors for autograd-based optimizers.
"""

from loguru import logger

from .camera import UnifiedCamera
from .exceptions import (
    ConfigurationError,
    JacobianShapeError,
    ParameterError,
    PointShapeError,
    UnicamError,
)

__version__ = "0.1.0"

logger.disable(__name__)

__all__ = [
    "ConfigurationError",
    "JacobianShapeError",
    "ParameterError",
    "PointShapeError",
    "UnicamError",
    "UnifiedCamera",
    "__version__",
]
