"""Backend-generic scalar helpers.

Camera models in unicam are written once against plain arithmetic operators
and evaluated either with numpy (value only) or with torch tensors, whose
autograd turns every evaluation into a derivative-tracking one. The handful of
operations that are not plain operators are dispatched here.
"""

from typing import Any, Sequence

import numpy as np
import numpy.typing as npt
import torch

from ..exceptions import ParameterError

Array = npt.NDArray[np.floating] | torch.Tensor


def is_tensor(x: Any) -> bool:
    """Return True if ``x`` is a torch tensor."""
    return isinstance(x, torch.Tensor)


def sqrt(x: Array) -> Array:
    """Element-wise square root for either backend."""
    if is_tensor(x):
        return torch.sqrt(x)
    return np.sqrt(x)


def stack(items: Sequence[Array], axis: int = -1) -> Array:
    """Stack equally shaped arrays along a new axis."""
    if any(is_tensor(item) for item in items):
        return torch.stack([torch.as_tensor(item) for item in items], dim=axis)
    return np.stack(items, axis=axis)


def concat(items: Sequence[Array]) -> Array:
    """Concatenate 1-D arrays."""
    if any(is_tensor(item) for item in items):
        return torch.cat([torch.as_tensor(item) for item in items])
    return np.concatenate(items)


def clamp(x: Array, lo: float, hi: float) -> Array:
    """Clamp values into ``[lo, hi]``."""
    if is_tensor(x):
        return torch.clamp(x, lo, hi)
    return np.clip(x, lo, hi)


def copy(x: Array) -> Array:
    """Return an independent copy (autograd-connected for tensors)."""
    if is_tensor(x):
        return x.clone()
    return np.array(x, copy=True)


def full_like(x: Array, value: float) -> Array:
    """Array of ``x``'s shape, dtype and backend filled with ``value``."""
    if is_tensor(x):
        return torch.full_like(x, value)
    return np.full_like(x, value)


def true_like(x: Array) -> Array:
    """Boolean array of ``x``'s shape filled with True."""
    if is_tensor(x):
        return torch.ones_like(x, dtype=torch.bool)
    return np.ones_like(x, dtype=bool)


def cast(x: Array, dtype: Any) -> Array:
    """Cast ``x`` element-wise to a numpy or torch dtype, always copying.

    Args:
        x: Array or tensor to cast.
        dtype: A torch dtype (``torch.float64``) or anything numpy accepts
            as a dtype (``np.float32``, ``"float64"``).

    Returns:
        A new tensor when ``dtype`` is a torch dtype, otherwise a new numpy
        array. Tensor to tensor casts stay connected to the autograd graph;
        tensor to numpy casts are detached.
    """
    if isinstance(dtype, torch.dtype):
        if is_tensor(x):
            return x.to(dtype=dtype).clone()
        return torch.tensor(np.asarray(x), dtype=dtype)
    if is_tensor(x):
        return x.detach().cpu().numpy().astype(dtype)
    return np.array(x, dtype=dtype)


def as_vector(values: Any, size: int, name: str = "vector") -> Array:
    """Copy a caller-supplied vector and check its length.

    Floating numpy arrays and tensors keep their dtype. Anything else (lists,
    tuples, integer arrays and integer tensors) becomes float64.

    Raises:
        ParameterError: If the vector does not have shape ``(size,)``.
    """
    if is_tensor(values):
        vec = values.clone() if values.is_floating_point() else values.to(torch.float64)
    elif isinstance(values, np.ndarray) and np.issubdtype(values.dtype, np.floating):
        vec = values.copy()
    else:
        vec = np.array(values, dtype=np.float64)

    if tuple(vec.shape) != (size,):
        raise ParameterError(f"{name} must have shape ({size},), got {tuple(vec.shape)}")
    return vec


def promote(param: Array, point: Any) -> tuple[Array, Array]:
    """Bring a parameter vector and a point into one backend.

    A numpy model evaluated on a numpy point uses the model's dtype. As soon
    as a tensor is involved the evaluation happens in torch: with the model's
    dtype and device when the model holds a tensor, otherwise with the
    point's, so that gradients with respect to a tensor point survive.

    Args:
        param: Parameter vector of the model.
        point: Point (or batch of points) in any array-like form.

    Returns:
        Tuple of (param, point) sharing one backend.
    """
    if is_tensor(param):
        return param, torch.as_tensor(point, dtype=param.dtype, device=param.device)
    if is_tensor(point):
        dtype = point.dtype if point.is_floating_point() else torch.float64
        return torch.as_tensor(param, dtype=dtype, device=point.device), point.to(dtype)
    return param, np.asarray(point, dtype=param.dtype)
