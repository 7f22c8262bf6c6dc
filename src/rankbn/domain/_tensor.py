"""
Tensor interface definitions.

This module defines the domain-level contract for tensor-like values as seen
by the batch normalization dispatcher. The dispatcher never touches storage;
it only reads shape metadata and asks for relabeled views.

Notes
-----
- Tensors are treated as immutable values. Every shape transformation returns
  a new tensor object viewing the same elements.
- `reshape` must reject a target shape whose element count differs from the
  source's by raising `ShapeError`.
"""

from __future__ import annotations

from typing import Any, Protocol, Sequence, runtime_checkable

from .device._device_protocol import DeviceLike


@runtime_checkable
class ITensor(Protocol):
    """
    Tensor interface.

    Structural (duck-typed) so that alternative backends can satisfy the same
    contract without inheriting from the NumPy implementation.
    """

    @property
    def shape(self) -> tuple[int, ...]:
        """
        Return the shape of the tensor.

        Returns
        -------
        tuple[int, ...]
            Ordered, non-negative dimension sizes.
        """
        ...

    @property
    def rank(self) -> int:
        """
        Return the number of dimensions (`len(shape)`).
        """
        ...

    @property
    def size(self) -> int:
        """
        Return the total number of elements (product of `shape`, 1 for scalars).
        """
        ...

    @property
    def device(self) -> DeviceLike:
        """
        Return the device on which this tensor resides.
        """
        ...

    def to_numpy(self) -> Any:
        """
        Return the backend-native array holding this tensor's elements.
        """
        ...

    def reshape(self, new_shape: Sequence[int]) -> "ITensor":
        """
        Return a view of this tensor with a different shape.

        Parameters
        ----------
        new_shape : Sequence[int]
            Target shape. Its element count must equal `size`.

        Returns
        -------
        ITensor
            A tensor sharing storage with `self`.

        Raises
        ------
        ShapeError
            If the element counts differ.
        """
        ...

    def as1d(self) -> "ITensor":
        """
        Return a rank-1 view of shape `(size,)`.
        """
        ...

    def as4d(self, d0: int, d1: int, d2: int, d3: int) -> "ITensor":
        """
        Return a rank-4 view of shape `(d0, d1, d2, d3)`.
        """
        ...
