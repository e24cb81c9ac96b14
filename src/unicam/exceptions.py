"""Exception classes for unicam.

Points outside a camera model's validity domain are never reported through
exceptions; they are flagged by the boolean returned from ``project`` and
``unproject``. The classes below cover programming errors only.
"""

from __future__ import annotations

from typing import Optional, Tuple


class UnicamError(Exception):
    """Base exception for all unicam errors."""

    pass


class ParameterError(UnicamError, ValueError):
    """Raised when a parameter, increment or initial-guess vector is malformed."""

    pass


class ConfigurationError(ParameterError):
    """Raised when a parameter mapping lacks required entries."""

    def __init__(self, message: str, missing: Tuple[str, ...] = ()):
        self.missing = missing
        super().__init__(message)


class PointShapeError(UnicamError, ValueError):
    """Raised when a point does not have the expected trailing dimension."""

    pass


class JacobianShapeError(UnicamError, ValueError):
    """Raised when a caller-provided Jacobian buffer has the wrong shape."""

    def __init__(
        self,
        message: str,
        expected: Optional[Tuple[int, ...]] = None,
        actual: Optional[Tuple[int, ...]] = None,
    ):
        self.expected = expected
        self.actual = actual
        super().__init__(message)
