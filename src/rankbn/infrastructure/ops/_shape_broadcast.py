"""
Canonicalization of batch normalization operands.

The `BatchNorm4D` kernel only understands rank-4 inputs and rank-1 or rank-4
statistics. The helpers here relabel operands of any rank into that form:

    rank   input x                  parameter (mean/variance/scale/offset)
    ----   ----------------------   --------------------------------------
    absent  -                       absent
    0      (1, 1, 1, size)          (1,)
    1      (1, 1, 1, size)          unchanged
    2      (1, 1, d0, d1)           (1, 1, d0, d1)
    3      (1, d0, d1, d2)          (1, d0, d1, d2)
    >=4    unchanged                unchanged

For ranks 2 and 3 both columns prepend the same leading ones, so a parameter
with the input's rank lines up element-for-element with the canonical input.
All results are views; no data is copied.
"""

from __future__ import annotations

from typing import Optional

import numpy as np

from ...domain._errors import ShapeError
from ...domain._rank import Rank
from ...domain._tensor import ITensor


def canonicalize_input_4d(x: ITensor) -> ITensor:
    """
    Relabel the primary input as a rank-4 tensor.

    Parameters
    ----------
    x : ITensor
        Input of any rank.

    Returns
    -------
    ITensor
        Rank-4 view of `x`, or `x` itself when its rank is 4 or more.
    """
    rank = Rank.of(x)
    if rank in (Rank.R0, Rank.R1):
        return x.as4d(1, 1, 1, x.size)
    if rank is Rank.R2:
        return x.as4d(1, 1, x.shape[0], x.shape[1])
    if rank is Rank.R3:
        return x.as4d(1, x.shape[0], x.shape[1], x.shape[2])
    return x


def batchnorm_reshape_4d(t: Optional[ITensor]) -> Optional[ITensor]:
    """
    Relabel a statistics tensor into its canonical rank-1 or rank-4 form.

    Parameters
    ----------
    t : ITensor | None
        Mean, variance, scale or offset tensor, or None when absent.

    Returns
    -------
    ITensor | None
        None for an absent parameter, otherwise a rank-1 or rank-4 view (or
        `t` itself when already canonical).
    """
    if t is None:
        return None

    rank = Rank.of(t)
    if rank is Rank.R0:
        return t.as1d()
    if rank is Rank.R2:
        return t.as4d(1, 1, t.shape[0], t.shape[1])
    if rank is Rank.R3:
        return t.as4d(1, t.shape[0], t.shape[1], t.shape[2])
    return t


def check_broadcastable(
    role: str, param_shape: tuple[int, ...], x_shape: tuple[int, ...]
) -> None:
    """
    Check that a canonical parameter broadcasts onto the canonical input.

    NumPy broadcasting rules apply, with the extra requirement that the
    broadcast result is exactly `x_shape`: a parameter may never enlarge the
    input. A rank-1 parameter therefore needs length 1 or the channel (last)
    dimension's length.

    Raises
    ------
    ShapeError
        With `role`, `expected=x_shape` and `actual=param_shape`.
    """
    try:
        result = np.broadcast_shapes(param_shape, x_shape)
    except ValueError:
        result = None

    if result != tuple(x_shape):
        raise ShapeError(
            f"Error in batch_normalization: {role} of shape {param_shape} "
            f"cannot be broadcast to input of shape {x_shape}.",
            role=role,
            expected=tuple(x_shape),
            actual=tuple(param_shape),
        )


def restore_shape(y: ITensor, shape: tuple[int, ...]) -> ITensor:
    """
    Relabel a canonical result back to the caller's shape.

    Raises
    ------
    ShapeError
        If the result's element count differs from that of `shape`.
    """
    if y.shape == tuple(shape):
        return y
    return y.reshape(shape)
