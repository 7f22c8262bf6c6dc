"""
NumPy-backed Tensor implementation.

This module provides the concrete `Tensor` used by the reference engine and
the test-suite. It is intentionally small: storage, shape metadata, host
interop, and the relabeling ops inherited from `TensorShapeMixin`.

Notes
-----
- Storage is a C-contiguous `np.ndarray`. Views created by `reshape`, `as1d`
  and `as4d` share it.
- `to_numpy()` returns a read-only view. `copy_from_numpy()` is the single
  write path and is used by kernels to fill freshly allocated outputs.
- Only CPU storage is supported; constructing a tensor on any other device
  raises `DeviceNotSupportedError`.
"""

from __future__ import annotations

from math import prod
from typing import Any, Optional, Sequence

import numpy as np

from ...domain._errors import DeviceNotSupportedError, ShapeError
from ...domain.device._device import Device
from ._shape import TensorShapeMixin


def _normalize_shape(shape: Sequence[int]) -> tuple[int, ...]:
    if isinstance(shape, int):
        shape = (shape,)
    out = tuple(int(d) for d in shape)
    if any(d < 0 for d in out):
        raise ShapeError(f"Tensor shape must be non-negative, got {out}")
    return out


class Tensor(TensorShapeMixin):
    """
    Immutable-by-convention N-dimensional array on a device.

    Parameters
    ----------
    shape : Sequence[int]
        Shape of the tensor. An empty tuple creates a scalar (rank-0) tensor.
    device : Device, optional
        Placement. Defaults to CPU.
    dtype : np.dtype, optional
        Element dtype. Defaults to np.float32.

    Raises
    ------
    DeviceNotSupportedError
        If `device` is not a CPU device.
    ShapeError
        If any dimension is negative.
    """

    def __init__(
        self,
        shape: Sequence[int],
        device: Optional[Device] = None,
        *,
        dtype: Any = np.float32,
    ) -> None:
        device = Device("cpu") if device is None else device
        if not device.is_cpu():
            raise DeviceNotSupportedError("allocate", str(device))

        self._device = device
        self._data = np.zeros(_normalize_shape(shape), dtype=np.dtype(dtype))

    # ------------------------------------------------------------------
    # Construction helpers
    # ------------------------------------------------------------------
    @classmethod
    def _wrap(cls, arr: np.ndarray, device: Device) -> "Tensor":
        """
        Build a tensor over an existing array without copying.
        """
        obj = cls.__new__(cls)
        obj._device = device
        obj._data = arr
        return obj

    def _view(self, arr: np.ndarray) -> "Tensor":
        return self.__class__._wrap(arr, self._device)

    @classmethod
    def from_numpy(
        cls,
        arr: Any,
        device: Optional[Device] = None,
        *,
        dtype: Any = None,
    ) -> "Tensor":
        """
        Create a tensor holding a copy of `arr`.

        Parameters
        ----------
        arr : array_like
            Source values. Python scalars produce rank-0 tensors.
        device : Device, optional
            Placement. Defaults to CPU.
        dtype : np.dtype, optional
            Element dtype. Defaults to float32.

        Returns
        -------
        Tensor
            New tensor with its own storage.
        """
        src = np.asarray(arr)
        out = cls(src.shape, device, dtype=np.float32 if dtype is None else dtype)
        out.copy_from_numpy(src)
        return out

    @classmethod
    def full(
        cls,
        shape: Sequence[int],
        value: float,
        *,
        device: Optional[Device] = None,
        dtype: Any = np.float32,
    ) -> "Tensor":
        """Create a tensor of `shape` with every element set to `value`."""
        out = cls(shape, device, dtype=dtype)
        out._data.fill(value)
        return out

    # ------------------------------------------------------------------
    # Metadata
    # ------------------------------------------------------------------
    @property
    def shape(self) -> tuple[int, ...]:
        """
        Return the tensor shape.

        Returns
        -------
        tuple[int, ...]
            The tensor's shape.
        """
        return tuple(self._data.shape)

    @property
    def rank(self) -> int:
        """Return the number of dimensions."""
        return self._data.ndim

    @property
    def size(self) -> int:
        """Return the number of elements (1 for a scalar)."""
        return prod(self._data.shape)

    @property
    def dtype(self) -> np.dtype:
        return self._data.dtype

    @property
    def device(self) -> Device:
        """
        Return the device on which this tensor resides.

        Returns
        -------
        Device
            The tensor's device placement descriptor.
        """
        return self._device

    # ------------------------------------------------------------------
    # Host interop
    # ------------------------------------------------------------------
    def to_numpy(self) -> np.ndarray:
        """
        Return a read-only NumPy view of this tensor's elements.

        Returns
        -------
        np.ndarray
            View with `writeable=False`. Call `.copy()` for a mutable array.
        """
        arr = self._data.view()
        arr.flags.writeable = False
        return arr

    def copy_from_numpy(self, arr: Any) -> None:
        """
        Overwrite this tensor's elements from a NumPy array.

        Parameters
        ----------
        arr : array_like
            Values with exactly this tensor's shape. They are cast to the
            tensor's dtype.

        Raises
        ------
        ShapeError
            If `arr`'s shape differs from `self.shape`.
        """
        src = np.asarray(arr)
        if tuple(src.shape) != self.shape:
            raise ShapeError(
                f"copy_from_numpy shape mismatch: tensor {self.shape} "
                f"vs array {tuple(src.shape)}",
                expected=self.shape,
                actual=tuple(src.shape),
            )
        np.copyto(self._data, src, casting="unsafe")

    def shares_storage_with(self, other: "Tensor") -> bool:
        """Return True if both tensors view the same underlying buffer."""
        return np.shares_memory(self._data, other._data)

    def __repr__(self) -> str:
        return (
            f"Tensor(shape={self.shape}, device={self._device}, "
            f"dtype={self._data.dtype})"
        )
