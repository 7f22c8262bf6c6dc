"""
Argument validation for the batch normalization entry points.

The fixed-rank entry points (`batch_normalization_2d/3d/4d`) fail fast with a
rank-specific `ShapeError` before any canonicalization happens.

Epsilon validation is shared by every entry point, including the generic one.
"""

from __future__ import annotations

import math
import warnings
from typing import Optional

from ...domain._errors import ShapeError
from ...domain._tensor import ITensor

STATISTIC_ROLES = ("mean", "variance", "scale", "offset")


def require_tensor(op_name: str, x: object) -> ITensor:
    """
    Return `x` if it is a tensor.

    Raises
    ------
    TypeError
        If `x` does not satisfy `ITensor`.
    """
    if not isinstance(x, ITensor):
        raise TypeError(f"{op_name} expects a Tensor for x, got {type(x).__name__}")
    return x


def validate_batchnorm_ranks(
    op_name: str,
    rank: int,
    x: ITensor,
    mean: Optional[ITensor],
    variance: Optional[ITensor],
    scale: Optional[ITensor] = None,
    offset: Optional[ITensor] = None,
) -> None:
    """
    Check operand ranks for a fixed-rank batch normalization entry point.

    Parameters
    ----------
    op_name : str
        Entry point name used in error messages (e.g., "batch_normalization_2d").
    rank : int
        Required rank of `x`.
    x : ITensor
        Primary input.
    mean, variance, scale, offset : ITensor | None
        Statistics tensors. Each one that is supplied must have rank `rank` or
        rank 1; absent ones are not checked.

    Raises
    ------
    ShapeError
        For the first operand whose rank is not allowed. `role` names the
        operand, `expected` holds the allowed ranks and `actual` the rank
        received.
    """
    if x.rank != rank:
        raise ShapeError(
            f"Error in {op_name}: x must be rank {rank} but got rank {x.rank}.",
            role="x",
            expected=(rank,),
            actual=x.rank,
        )

    allowed = (rank, 1)
    statistics = dict(zip(STATISTIC_ROLES, (mean, variance, scale, offset)))
    for role, t in statistics.items():
        if t is None:
            continue
        if t.rank not in allowed:
            raise ShapeError(
                f"Error in {op_name}: {role} must be rank {rank} or rank 1 "
                f"but got rank {t.rank}.",
                role=role,
                expected=allowed,
                actual=t.rank,
            )


def validate_variance_epsilon(op_name: str, variance_epsilon: float) -> float:
    """
    Validate and normalize the variance epsilon.

    Returns
    -------
    float
        `variance_epsilon` as a float.

    Raises
    ------
    ValueError
        If epsilon is negative, NaN or infinite.
    """
    eps = float(variance_epsilon)
    if not math.isfinite(eps) or eps < 0:
        raise ValueError(
            f"Error in {op_name}: variance_epsilon must be a finite, "
            f"non-negative number but got {variance_epsilon!r}."
        )
    if eps == 0.0:
        warnings.warn(
            f"{op_name} called with variance_epsilon=0; zero variance "
            "entries will divide by zero.",
            RuntimeWarning,
            stacklevel=4,
        )
    return eps
