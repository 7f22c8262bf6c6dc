"""
Shape- and execution-related exceptions for rankbn.

This module defines the error taxonomy used across the batch normalization
dispatcher:

- `ShapeError` signals that a tensor's rank or shape violates the contract of
  an operation (rank validation, per-dimension compatibility, or an invalid
  reshape). It derives from `ValueError` so callers that already guard shape
  problems with `except ValueError` keep working.
- `EngineError` signals a failure raised while executing a named kernel.
  Dispatch code propagates it unchanged; it is never retried.
- `KernelNotFoundError` and `DeviceMismatchError` are the two engine-level
  failures raised before a kernel runs.
- `DeviceNotSupportedError` is raised when storage is requested on a device
  the NumPy backend cannot serve.

All errors are raised synchronously at the point of detection.
"""

from __future__ import annotations

from typing import Any, Optional


class ShapeError(ValueError):
    """
    Raised when a tensor's rank or shape is incompatible with an operation.

    Attributes
    ----------
    role : str | None
        Name of the offending operand (e.g., "x", "mean", "scale"), or None when
        the error is not tied to a named operand (e.g., a bare reshape).
    expected : Any
        What the operation required. For rank checks this is a tuple of allowed
        ranks; for shape checks it is the reference shape.
    actual : Any
        What was received (a rank or a shape, matching `expected`).
    """

    def __init__(
        self,
        message: str,
        *,
        role: Optional[str] = None,
        expected: Any = None,
        actual: Any = None,
    ) -> None:
        """
        Initialize the ShapeError.

        Parameters
        ----------
        message : str
            Human-readable description of the violation.
        role : Optional[str]
            Operand name the violation refers to.
        expected : Any
            Allowed ranks or reference shape.
        actual : Any
            Received rank or shape.
        """
        super().__init__(message)
        self.role = role
        self.expected = expected
        self.actual = actual


class EngineError(RuntimeError):
    """
    Raised when the execution engine fails to run a kernel.

    Attributes
    ----------
    kernel_name : str
        The kernel whose execution failed (e.g., "BatchNorm4D").
    reason : str
        Short description of the failure.
    """

    def __init__(self, kernel_name: str, reason: str) -> None:
        super().__init__(f"Kernel '{kernel_name}' failed: {reason}")
        self.kernel_name = kernel_name
        self.reason = reason


class KernelNotFoundError(EngineError):
    """
    Raised when no kernel is registered for a (name, device type) pair.
    """

    def __init__(self, kernel_name: str, device: str) -> None:
        super().__init__(
            kernel_name, f"no kernel registered for device '{device}'"
        )
        self.device = device


class DeviceMismatchError(EngineError):
    """
    Raised when kernel inputs reside on different devices.

    The engine resolves the execution device from the primary input and
    rejects any other input placed elsewhere, rather than moving data.
    """

    def __init__(
        self, kernel_name: str, role: str, device_a: str, device_b: str
    ) -> None:
        super().__init__(
            kernel_name,
            f"device mismatch for input '{role}': '{device_a}' vs '{device_b}'",
        )
        self.role = role
        self.device_a = device_a
        self.device_b = device_b


class DeviceNotSupportedError(RuntimeError):
    """
    Raised when a tensor operation is requested on an unsupported device.

    Attributes
    ----------
    op : str
        The name of the operation that was attempted (e.g., "allocate").
    device : str
        String representation of the device.
    """

    def __init__(self, op: str, device: str) -> None:
        super().__init__(f"{op} is not implemented for device '{device}'.")
        self.op = op
        self.device = device
