"""Scalar backend and logging helpers."""

from . import scalar
from .log import configure_logging

__all__ = ["configure_logging", "scalar"]
