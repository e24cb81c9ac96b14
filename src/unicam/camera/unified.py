"""Unified camera model (UCM) with analytic Jacobians.

The model has five intrinsic parameters ``[fx, fy, cx, cy, alpha]`` with
``alpha`` in ``[0, 1]``. ``alpha = 0`` is a pinhole camera, larger values
bend the projection surface towards a sphere so that wide-angle and fisheye
lenses are represented.

Projection::

    u = fx * x / (alpha * d + (1 - alpha) * z) + cx
    v = fy * y / (alpha * d + (1 - alpha) * z) + cy
    d = sqrt(x^2 + y^2 + z^2)

Unprojection::

    mx = (u - cx) / fx * (1 - alpha)
    my = (v - cy) / fy * (1 - alpha)
    r2 = mx^2 + my^2
    xi = alpha / (1 - alpha)
    k  = (xi + sqrt(1 + (1 - xi^2) * r2)) / (1 + r2)
    p  = (k * mx, k * my, k - xi)

All arithmetic is expressed with operators on the parameter vector, so the
model evaluates identically on numpy arrays and on torch tensors (with
autograd). Points may be single vectors or batches with a trailing axis of
size 3 (or 2 for image points).
"""

from typing import Any, Dict, List, Mapping, Optional, Tuple

import numpy as np
from loguru import logger

from ..exceptions import ConfigurationError, JacobianShapeError, PointShapeError
from ..utils import scalar
from ..utils.scalar import Array


def _check_point(point: Array, size: int) -> None:
    if point.ndim == 0 or point.shape[-1] != size:
        raise PointShapeError(
            f"Point must have a trailing dimension of {size}, got shape {tuple(point.shape)}"
        )


def _check_buffer(buffer: Optional[Array], expected: Tuple[int, ...], name: str) -> None:
    if buffer is None:
        return
    actual = tuple(buffer.shape)
    if actual != expected:
        raise JacobianShapeError(
            f"{name} must have shape {expected}, got {actual}", expected=expected, actual=actual
        )


def _flag(valid: Array, batch_shape: Tuple[int, ...]) -> Any:
    # Single points report a plain bool, batches keep the boolean array
    if batch_shape == ():
        return bool(valid)
    return valid


class UnifiedCamera:
    """Unified camera model.

    Holds the intrinsic parameter vector ``[fx, fy, cx, cy, alpha]`` and maps
    points between the camera frame and the image plane. Jacobians are
    written into caller-owned buffers and are only computed when a buffer is
    passed.

    Points outside the model's validity domain are not rejected: the mapping
    is still evaluated and the returned flag is False.

    Attributes:
        N: Number of intrinsic parameters.
        NAME: Short model identifier.
        PARAM_NAMES: Parameter names in vector order.
    """

    N = 5
    NAME = "ucm"
    PARAM_NAMES = ("fx", "fy", "cx", "cy", "alpha")

    def __init__(self, param: Any = None) -> None:
        """Initialize camera model from a parameter vector.

        Args:
            param: Vector ``[fx, fy, cx, cy, alpha]`` as a list, tuple,
                numpy array or torch tensor. The vector is copied (tensors
                are cloned and stay connected to autograd). If None, all
                parameters are zero. ``alpha`` is not range checked here.

        Raises:
            ParameterError: If ``param`` does not have 5 entries.
        """
        if param is None:
            self._param = np.zeros(self.N, dtype=np.float64)
        else:
            self._param = scalar.as_vector(param, self.N, name="parameter vector")

    @classmethod
    def from_initial_guess(cls, init: Any) -> "UnifiedCamera":
        """Create a camera from ``[fx, fy, cx, cy]`` with ``alpha = 0.5``.

        Args:
            init: Initial estimate of focal lengths and principal point.

        Returns:
            New camera model.
        """
        camera = cls()
        camera.set_from_initial_guess(init)
        return camera

    @classmethod
    def from_dict(cls, params: Mapping[str, Any]) -> "UnifiedCamera":
        """Create a camera from a parameter mapping.

        Args:
            params: Mapping with keys ``fx``, ``fy``, ``cx``, ``cy`` and
                optionally ``alpha`` (defaults to 0.5). Other keys, such as
                image ``width`` and ``height``, are ignored.

        Returns:
            New camera model.

        Raises:
            ConfigurationError: If a required key is missing.
        """
        missing = tuple(name for name in cls.PARAM_NAMES[:4] if name not in params)
        if missing:
            raise ConfigurationError(
                f"Missing camera parameters: {', '.join(missing)}", missing=missing
            )

        values = [float(params[name]) for name in cls.PARAM_NAMES[:4]]
        values.append(float(params.get("alpha", 0.5)))
        return cls(values)

    def to_dict(self) -> Dict[str, float]:
        """Return the parameters as a name to float mapping."""
        return {name: float(value) for name, value in zip(self.PARAM_NAMES, self._param)}

    @staticmethod
    def get_name() -> str:
        """Camera model name."""
        return UnifiedCamera.NAME

    @property
    def params(self) -> Array:
        """Copy of the intrinsic parameter vector ``[fx, fy, cx, cy, alpha]``."""
        return scalar.copy(self._param)

    def cast(self, dtype: Any) -> "UnifiedCamera":
        """Cast to a different scalar type.

        Args:
            dtype: numpy dtype (``np.float32``) or torch dtype
                (``torch.float64``).

        Returns:
            Independent camera model with element-wise cast parameters. The
            current instance is left untouched.
        """
        logger.debug("Casting {} parameters to {}", self.NAME, dtype)
        return UnifiedCamera(scalar.cast(self._param, dtype))

    def project(
        self,
        p3d: Any,
        d_proj_d_p3d: Optional[Array] = None,
        d_proj_d_param: Optional[Array] = None,
    ) -> Tuple[Array, Any]:
        """Project a 3D point and optionally compute Jacobians.

        A point projects validly if ``z > -w * d`` with
        ``w = alpha / (1 - alpha)`` for ``alpha <= 0.5`` and
        ``w = (1 - alpha) / alpha`` otherwise.

        Args:
            p3d: Point ``(x, y, z)`` in the camera frame, or a batch shaped
                ``(..., 3)``.
            d_proj_d_p3d: If given, buffer of shape ``(..., 2, 3)`` that
                receives the Jacobian of the projection with respect to
                ``p3d``.
            d_proj_d_param: If given, buffer of shape ``(..., 2, 5)`` that
                receives the Jacobian of the projection with respect to the
                intrinsic parameters.

        Returns:
            Tuple of (projection, valid). The projection has shape
            ``(..., 2)``; ``valid`` is a bool for a single point and a
            boolean array for a batch.

        Raises:
            PointShapeError: If ``p3d`` does not end with a dimension of 3.
            JacobianShapeError: If a buffer has the wrong shape.

        Note:
            Buffers must belong to the backend the evaluation runs in (torch
            buffers whenever the model or the point is a tensor). A point at
            the camera center gives non-finite values.
        """
        param, p3d = scalar.promote(self._param, p3d)
        _check_point(p3d, 3)
        batch_shape = tuple(p3d.shape[:-1])
        _check_buffer(d_proj_d_p3d, batch_shape + (2, 3), "d_proj_d_p3d")
        _check_buffer(d_proj_d_param, batch_shape + (2, self.N), "d_proj_d_param")

        fx, fy, cx, cy, alpha = param[0], param[1], param[2], param[3], param[4]
        x, y, z = p3d[..., 0], p3d[..., 1], p3d[..., 2]

        r2 = x * x + y * y
        rho2 = r2 + z * z
        rho = scalar.sqrt(rho2)

        norm = alpha * rho + (1.0 - alpha) * z

        mx = x / norm
        my = y / norm

        proj = scalar.stack([fx * mx + cx, fy * my + cy])

        w = (1.0 - alpha) / alpha if alpha > 0.5 else alpha / (1.0 - alpha)
        valid = z > -w * rho

        if d_proj_d_p3d is not None:
            denom = norm * norm * rho
            mid = -(alpha * x * y)
            add = norm * rho
            addz = alpha * z + (1.0 - alpha) * rho

            d_proj_d_p3d[..., 0, 0] = fx * (add - x * x * alpha) / denom
            d_proj_d_p3d[..., 1, 0] = fy * mid / denom
            d_proj_d_p3d[..., 0, 1] = fx * mid / denom
            d_proj_d_p3d[..., 1, 1] = fy * (add - y * y * alpha) / denom
            d_proj_d_p3d[..., 0, 2] = -fx * x * addz / denom
            d_proj_d_p3d[..., 1, 2] = -fy * y * addz / denom

        if d_proj_d_param is not None:
            norm2 = norm * norm

            d_proj_d_param[...] = 0.0
            d_proj_d_param[..., 0, 0] = mx
            d_proj_d_param[..., 0, 2] = 1.0
            d_proj_d_param[..., 1, 1] = my
            d_proj_d_param[..., 1, 3] = 1.0

            tmp_x = -fx * x / norm2
            tmp_y = -fy * y / norm2

            tmp4 = rho - z

            d_proj_d_param[..., 0, 4] = tmp_x * tmp4
            d_proj_d_param[..., 1, 4] = tmp_y * tmp4

        return proj, _flag(valid, batch_shape)

    def unproject(
        self,
        proj: Any,
        d_p3d_d_proj: Optional[Array] = None,
        d_p3d_d_param: Optional[Array] = None,
    ) -> Tuple[Array, Any]:
        """Unproject an image point and optionally compute Jacobians.

        Every image point is valid for ``alpha <= 0.5``. For
        ``alpha > 0.5`` points with ``r2 >= 1 / (2 * alpha - 1)`` are
        flagged invalid.

        Args:
            proj: Image point ``(u, v)``, or a batch shaped ``(..., 2)``.
            d_p3d_d_proj: If given, buffer of shape ``(..., 3, 2)`` that
                receives the Jacobian of the unprojection with respect to
                ``proj``.
            d_p3d_d_param: If given, buffer of shape ``(..., 3, 5)`` that
                receives the Jacobian of the unprojection with respect to
                the intrinsic parameters.

        Returns:
            Tuple of (ray, valid). The ray has shape ``(..., 3)`` and lies on
            the unit sphere for valid inputs; ``valid`` is a bool for a
            single point and a boolean array for a batch.

        Raises:
            PointShapeError: If ``proj`` does not end with a dimension of 2.
            JacobianShapeError: If a buffer has the wrong shape.

        Note:
            ``alpha == 1`` divides by zero and gives non-finite values.
        """
        param, proj = scalar.promote(self._param, proj)
        _check_point(proj, 2)
        batch_shape = tuple(proj.shape[:-1])
        _check_buffer(d_p3d_d_proj, batch_shape + (3, 2), "d_p3d_d_proj")
        _check_buffer(d_p3d_d_param, batch_shape + (3, self.N), "d_p3d_d_param")

        fx, fy, cx, cy, alpha = param[0], param[1], param[2], param[3], param[4]
        u, v = proj[..., 0], proj[..., 1]

        xi = alpha / (1.0 - alpha)

        mxx = (u - cx) / fx
        myy = (v - cy) / fy

        mx = (1.0 - alpha) * mxx
        my = (1.0 - alpha) * myy

        r2 = mx * mx + my * my

        if alpha > 0.5:
            valid = ~(r2 >= 1.0 / (2.0 * alpha - 1.0))
        else:
            valid = scalar.true_like(r2)

        xi2 = xi * xi

        n = scalar.sqrt(1.0 + (1.0 - xi2) * r2)
        m = 1.0 + r2

        k = (xi + n) / m

        p3d = scalar.stack([k * mx, k * my, k - xi])

        if d_p3d_d_proj is not None or d_p3d_d_param is not None:
            dk_dmx = -2.0 * mx * (n + xi) / (m * m) + mx * (1.0 - xi2) / (n * m)
            dk_dmy = -2.0 * my * (n + xi) / (m * m) + my * (1.0 - xi2) / (n * m)

            # Chain rule through mx = (1 - alpha) * (u - cx) / fx
            scale = 1.0 - alpha
            c0 = (
                (dk_dmx * mx + k) / fx * scale,
                dk_dmx * my / fx * scale,
                dk_dmx / fx * scale,
            )
            c1 = (
                dk_dmy * mx / fy * scale,
                (dk_dmy * my + k) / fy * scale,
                dk_dmy / fy * scale,
            )

            if d_p3d_d_proj is not None:
                for row in range(3):
                    d_p3d_d_proj[..., row, 0] = c0[row]
                    d_p3d_d_proj[..., row, 1] = c1[row]

            if d_p3d_d_param is not None:
                d_xi_d_alpha = 1.0 / ((1.0 - alpha) * (1.0 - alpha))
                d_m_d_alpha = -2.0 * (1.0 - alpha) * (mxx * mxx + myy * myy)

                d_n_d_alpha = -(mxx * mxx + myy * myy) / n

                dk_d_alpha = ((d_xi_d_alpha + d_n_d_alpha) * m - d_m_d_alpha * (xi + n)) / (m * m)

                for row in range(3):
                    d_p3d_d_param[..., row, 0] = -mxx * c0[row]
                    d_p3d_d_param[..., row, 1] = -myy * c1[row]
                    d_p3d_d_param[..., row, 2] = -c0[row]
                    d_p3d_d_param[..., row, 3] = -c1[row]

                d_p3d_d_param[..., 0, 4] = dk_d_alpha * mx - k * mxx
                d_p3d_d_param[..., 1, 4] = dk_d_alpha * my - k * myy
                d_p3d_d_param[..., 2, 4] = dk_d_alpha - d_xi_d_alpha

        return p3d, _flag(valid, batch_shape)

    def set_from_initial_guess(self, init: Any) -> None:
        """Set parameters from an initial estimate.

        Initializes the model to ``[fx, fy, cx, cy, 0.5]``.

        Args:
            init: Vector ``[fx, fy, cx, cy]``.

        Raises:
            ParameterError: If ``init`` does not have 4 entries.
        """
        init = scalar.as_vector(init, 4, name="initial guess")
        _, init = scalar.promote(self._param, init)
        self._param = scalar.concat([init, scalar.full_like(init[:1], 0.5)])
        logger.opt(lazy=True).debug(
            "Initialized {} from guess {}", lambda: self.NAME, self.to_dict
        )

    def apply_increment(self, delta: Any) -> None:
        """Increment intrinsic parameters and clamp alpha into [0, 1].

        Args:
            delta: Increment vector of length 5.

        Raises:
            ParameterError: If ``delta`` does not have 5 entries.
        """
        delta = scalar.as_vector(delta, self.N, name="increment")
        param, delta = scalar.promote(self._param, delta)
        param = param + delta

        alpha = scalar.clamp(param[4:], 0.0, 1.0)
        logger.opt(lazy=True).debug(
            "Incremented alpha to {}, clamped to {}",
            lambda: float(param[4]),
            lambda: float(alpha[0]),
        )

        self._param = scalar.concat([param[:4], alpha])

    def __iadd__(self, delta: Any) -> "UnifiedCamera":
        self.apply_increment(delta)
        return self

    @classmethod
    def get_test_projections(cls) -> List["UnifiedCamera"]:
        """Calibrated cameras used for unit tests."""
        return [
            # EuRoC
            cls([
                460.76484651566468,
                459.4051018049483,
                365.8937161309615,
                249.33499869752445,
                0.5903365915227143,
            ]),
            # TUM VI 512
            cls([
                191.14799816648748,
                191.13150946585135,
                254.95857715233118,
                256.8815466235898,
                0.6291060871161842,
            ]),
        ]

    @staticmethod
    def get_test_resolutions() -> List[Tuple[int, int]]:
        """Image ``(width, height)`` pairs matching :meth:`get_test_projections`."""
        return [(752, 480), (512, 512)]

    def __repr__(self) -> str:
        values = ", ".join(f"{name}={value!r}" for name, value in self.to_dict().items())
        return f"{type(self).__name__}({values})"
