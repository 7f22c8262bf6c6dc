"""
BatchNorm4D CPU kernel (NumPy reference).

Computes, with NumPy broadcasting over canonical operands:

    y = (x - mean) / sqrt(variance + varianceEpsilon) * scale + offset

`x` is the rank-4 canonical input; every statistics operand is either rank 1
(a per-channel vector applied along the last axis) or rank 4. An absent
`scale` or `offset` is skipped entirely rather than replaced by a tensor of
ones or zeros.

The kernel checks operand presence and that broadcasting does not change the
input's shape; numerical edge cases (e.g., a zero epsilon over zero variance)
follow NumPy's floating-point semantics.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

import numpy as np

from ...domain._engine import BATCHNORM_4D_KERNEL as BATCHNORM_4D
from ...domain._errors import EngineError
from ...domain._tensor import ITensor
from ...domain.device._device import DeviceType
from ..tensor._tensor import Tensor


DEFAULT_VARIANCE_EPSILON = 1e-3


def _required(inputs: Mapping[str, Optional[ITensor]], role: str) -> ITensor:
    t = inputs.get(role)
    if t is None:
        raise EngineError(BATCHNORM_4D, f"missing required input '{role}'")
    return t


def batchnorm_4d_cpu(
    inputs: Mapping[str, Optional[ITensor]], args: Mapping[str, Any]
) -> Tensor:
    """
    Normalize `x` with the supplied statistics.

    Parameters
    ----------
    inputs : Mapping[str, Optional[ITensor]]
        Keys "x", "mean", "variance" (required) and "scale", "offset"
        (optional, may map to None).
    args : Mapping[str, Any]
        "varianceEpsilon" (float, default 1e-3).

    Returns
    -------
    Tensor
        Fresh tensor with `x`'s shape and device.

    Raises
    ------
    EngineError
        If a required input is missing or broadcasting would change the
        output shape.
    """
    x = _required(inputs, "x")
    mean = _required(inputs, "mean")
    variance = _required(inputs, "variance")
    scale = inputs.get("scale")
    offset = inputs.get("offset")
    eps = float(args.get("varianceEpsilon", DEFAULT_VARIANCE_EPSILON))

    x_np = x.to_numpy()
    inv_std = 1.0 / np.sqrt(variance.to_numpy() + eps)
    y = (x_np - mean.to_numpy()) * inv_std
    if scale is not None:
        y = y * scale.to_numpy()
    if offset is not None:
        y = y + offset.to_numpy()

    if y.shape != x_np.shape:
        raise EngineError(
            BATCHNORM_4D,
            f"statistics broadcast x {x_np.shape} to {y.shape}",
        )

    out = Tensor(x.shape, x.device, dtype=y.dtype)
    out.copy_from_numpy(y)
    return out


def register_cpu_kernels(engine) -> None:
    """Register the CPU kernels of this module on `engine`."""
    engine.register_kernel(BATCHNORM_4D, DeviceType.CPU)(batchnorm_4d_cpu)
