"""
Batch normalization operations.

This module exposes the public batch normalization entry points:

- `batch_normalization`: the generic, rank-agnostic dispatcher. It
  canonicalizes `x` to rank 4 and every statistics tensor to rank 1 or 4,
  runs the `BatchNorm4D` kernel on the engine, and reshapes the kernel's
  result back to `x.shape`.
- `batch_normalization_2d`, `batch_normalization_3d`,
  `batch_normalization_4d`: strict variants that validate operand ranks
  against a fixed input rank before forwarding to the dispatcher.

As described in http://arxiv.org/abs/1502.03167, normalization computes

    y = (x - mean) / sqrt(variance + variance_epsilon) * scale + offset

The arithmetic itself belongs to the kernel; this module only owns the shape
contract: canonicalization and restoration are exact inverses, so the output
always has the input's shape.

Mean, variance, scale and offset can each be given in two layouts:
- the same shape as `x`;
- in the common case, the depth (channel) dimension is the last dimension of
  `x`, so the statistics are a rank-1 tensor of shape (depth,).

Notes
-----
- All validation (type, epsilon, ranks, strict per-dimension checks) happens
  before the engine is called. Engine failures propagate unchanged.
- Every entry point is wrapped by `operation(...)`, so calls show up on an
  active `OperationTape`. Strict variants record themselves and the nested
  generic call.
"""

from __future__ import annotations

import logging
from typing import Optional

from ...domain._engine import BATCHNORM_4D_KERNEL, IEngine
from ...domain._tensor import ITensor
from .._config import get_config
from .._engine import default_engine
from .._operation import operation
from ._rank_validation import (
    require_tensor,
    validate_batchnorm_ranks,
    validate_variance_epsilon,
)
from ._shape_broadcast import (
    batchnorm_reshape_4d,
    canonicalize_input_4d,
    check_broadcastable,
    restore_shape,
)

logger = logging.getLogger(__name__)


@operation()
def batch_normalization(
    x: ITensor,
    mean: Optional[ITensor],
    variance: Optional[ITensor],
    variance_epsilon: Optional[float] = None,
    scale: Optional[ITensor] = None,
    offset: Optional[ITensor] = None,
    *,
    engine: Optional[IEngine] = None,
) -> ITensor:
    """
    Batch normalization over an input of any rank.

    Parameters
    ----------
    x : ITensor
        Input tensor of any rank.
    mean : ITensor | None
        Mean tensor, shaped like `x` or rank 1 over the last dimension.
    variance : ITensor | None
        Variance tensor, same layouts as `mean`.
    variance_epsilon : float, optional
        Small non-negative number added to the variance to avoid dividing by
        zero. Defaults to the configured `default_variance_epsilon` (0.001).
    scale : ITensor, optional
        Scale tensor. When omitted, no scaling is applied.
    offset : ITensor, optional
        Offset tensor. When omitted, no offset is added.
    engine : IEngine, optional
        Engine executing the kernel. Defaults to `default_engine()`.

    Returns
    -------
    ITensor
        Normalized tensor with exactly `x.shape`.

    Raises
    ------
    TypeError
        If `x` is not a tensor.
    ValueError
        If `variance_epsilon` is negative or not finite.
    ShapeError
        If strict shape checking is enabled and a statistics tensor does not
        broadcast onto the canonical input without enlarging it.
    EngineError
        If the engine fails to execute the kernel.
    """
    op_name = "batch_normalization"
    require_tensor(op_name, x)
    cfg = get_config()
    if variance_epsilon is None:
        variance_epsilon = cfg.default_variance_epsilon
    eps = validate_variance_epsilon(op_name, variance_epsilon)

    x4d = canonicalize_input_4d(x)
    statistics = {
        "mean": batchnorm_reshape_4d(mean),
        "variance": batchnorm_reshape_4d(variance),
        "scale": batchnorm_reshape_4d(scale),
        "offset": batchnorm_reshape_4d(offset),
    }
    logger.debug(
        "%s: x %s -> %s, statistics %s",
        op_name,
        x.shape,
        x4d.shape,
        {role: (None if t is None else t.shape) for role, t in statistics.items()},
    )

    if cfg.strict_shapes:
        for role, t in statistics.items():
            if t is not None:
                check_broadcastable(role, t.shape, x4d.shape)

    engine = default_engine() if engine is None else engine
    y4d = engine.execute_kernel(
        BATCHNORM_4D_KERNEL,
        {"x": x4d, **statistics},
        {"varianceEpsilon": eps},
    )
    return restore_shape(y4d, x.shape)


def _batch_normalization_nd(
    rank: int,
    x: ITensor,
    mean: Optional[ITensor],
    variance: Optional[ITensor],
    variance_epsilon: Optional[float],
    scale: Optional[ITensor],
    offset: Optional[ITensor],
    engine: Optional[IEngine],
) -> ITensor:
    op_name = f"batch_normalization_{rank}d"
    require_tensor(op_name, x)
    validate_batchnorm_ranks(op_name, rank, x, mean, variance, scale, offset)
    return batch_normalization(
        x, mean, variance, variance_epsilon, scale, offset, engine=engine
    )


@operation()
def batch_normalization_2d(
    x: ITensor,
    mean: Optional[ITensor],
    variance: Optional[ITensor],
    variance_epsilon: Optional[float] = None,
    scale: Optional[ITensor] = None,
    offset: Optional[ITensor] = None,
    *,
    engine: Optional[IEngine] = None,
) -> ITensor:
    """
    Batch normalization, strictly for rank-2 input.

    For the more relaxed version, see `batch_normalization`. `mean`,
    `variance`, `scale` and `offset` must be rank 2 or rank 1.

    Raises
    ------
    ShapeError
        If `x` is not rank 2 or a supplied statistics tensor is neither rank 2
        nor rank 1.
    """
    return _batch_normalization_nd(
        2, x, mean, variance, variance_epsilon, scale, offset, engine
    )


@operation()
def batch_normalization_3d(
    x: ITensor,
    mean: Optional[ITensor],
    variance: Optional[ITensor],
    variance_epsilon: Optional[float] = None,
    scale: Optional[ITensor] = None,
    offset: Optional[ITensor] = None,
    *,
    engine: Optional[IEngine] = None,
) -> ITensor:
    """
    Batch normalization, strictly for rank-3 input.

    For the more relaxed version, see `batch_normalization`. `mean`,
    `variance`, `scale` and `offset` must be rank 3 or rank 1.
    """
    return _batch_normalization_nd(
        3, x, mean, variance, variance_epsilon, scale, offset, engine
    )


@operation()
def batch_normalization_4d(
    x: ITensor,
    mean: Optional[ITensor],
    variance: Optional[ITensor],
    variance_epsilon: Optional[float] = None,
    scale: Optional[ITensor] = None,
    offset: Optional[ITensor] = None,
    *,
    engine: Optional[IEngine] = None,
) -> ITensor:
    """
    Batch normalization, strictly for rank-4 input.

    For the more relaxed version, see `batch_normalization`. `mean`,
    `variance`, `scale` and `offset` must be rank 4 or rank 1.
    """
    return _batch_normalization_nd(
        4, x, mean, variance, variance_epsilon, scale, offset, engine
    )
