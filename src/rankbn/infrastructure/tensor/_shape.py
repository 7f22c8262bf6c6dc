"""
Tensor shape-transforming ops mixin (NumPy CPU backend).

This module defines `TensorShapeMixin`, which implements the relabeling
operations the batch normalization dispatcher relies on: `reshape`, `as1d`
and `as4d`.

Design notes
------------
- This mixin is intended to be inherited by the concrete `Tensor` class.
- To avoid circular imports, the implementation does not import `Tensor`
  directly; new tensors are built through `self._view(...)`, which the host
  class provides.
- Reshape is a relabeling, never a copy: the returned tensor shares storage
  with its source. Storage is always C-contiguous, so `np.reshape` yields a
  view for every legal target shape.
"""

from __future__ import annotations

from math import prod
from typing import Sequence, Union

from ...domain._errors import ShapeError
from ...domain._tensor import ITensor


def _resolve_shape(
    source_shape: tuple[int, ...], new_shape: Union[int, Sequence[int]]
) -> tuple[int, ...]:
    """
    Normalize a reshape target and infer a single `-1` dimension.

    Parameters
    ----------
    source_shape : tuple[int, ...]
        Shape being reshaped.
    new_shape : int | Sequence[int]
        Requested shape. At most one entry may be -1.

    Returns
    -------
    tuple[int, ...]
        Fully specified target shape.

    Raises
    ------
    ShapeError
        If the target is malformed or its element count differs from the
        source's.
    """
    if isinstance(new_shape, int):
        new_shape = (new_shape,)
    target = [int(d) for d in new_shape]
    size = prod(source_shape)

    unknown = [i for i, d in enumerate(target) if d == -1]
    if len(unknown) > 1:
        raise ShapeError(
            f"Invalid reshape from {source_shape} to {tuple(target)}: "
            "only one dimension can be -1",
            expected=size,
            actual=tuple(target),
        )
    if any(d < -1 for d in target):
        raise ShapeError(
            f"Invalid reshape from {source_shape} to {tuple(target)}: "
            "negative dimension",
            expected=size,
            actual=tuple(target),
        )

    if unknown:
        known = prod(d for d in target if d != -1)
        if known == 0 or size % known != 0:
            raise ShapeError(
                f"Invalid reshape from {source_shape} to {tuple(target)}",
                expected=size,
                actual=tuple(target),
            )
        target[unknown[0]] = size // known

    if prod(target) != size:
        raise ShapeError(
            f"Invalid reshape from {source_shape} to {tuple(target)}: "
            f"{size} elements cannot be viewed as {prod(target)}",
            expected=size,
            actual=prod(target),
        )
    return tuple(target)


class TensorShapeMixin(ITensor):
    """
    Shape operations for the concrete Tensor implementation.

    Notes
    -----
    Methods assume the host class provides:
        - `.shape`, `.size`
        - `._data`, the C-contiguous storage array
        - `._view(arr)`, building a tensor over an existing array
    """

    def reshape(self, new_shape: Union[int, Sequence[int]]) -> "ITensor":
        """
        Return a reshaped view of this tensor.

        Parameters
        ----------
        new_shape : int | Sequence[int]
            Target shape; one dimension may be -1 and is inferred.

        Returns
        -------
        Tensor
            A tensor sharing storage with `self`.

        Raises
        ------
        ShapeError
            If the element count of `new_shape` differs from `self.size`.
        """
        target = _resolve_shape(self.shape, new_shape)
        if target == self.shape:
            return self._view(self._data)
        return self._view(self._data.reshape(target))

    def as1d(self) -> "ITensor":
        """Return a rank-1 view of shape `(size,)`."""
        return self.reshape((self.size,))

    def as4d(self, d0: int, d1: int, d2: int, d3: int) -> "ITensor":
        """Return a rank-4 view of shape `(d0, d1, d2, d3)`."""
        return self.reshape((d0, d1, d2, d3))
