"""
Kernel registry and execution engine.

`Engine` is the reference implementation of `IEngine`. It routes a kernel
request to an implementation registered under a

    (KernelName, DeviceType)

key, where the device type is taken from the request's primary input.

Typical usage
-------------
    engine = Engine()

    @engine.register_kernel("BatchNorm4D", DeviceType.CPU)
    def batchnorm_4d_cpu(inputs, args): ...

    y = engine.execute_kernel("BatchNorm4D", {"x": x4d, ...}, {"varianceEpsilon": 1e-3})

Failure semantics
-----------------
Every failure surfaces as `EngineError`:
- `KernelNotFoundError` when no implementation matches the key,
- `DeviceMismatchError` when inputs live on different devices,
- any other exception raised by a kernel is wrapped, with the original
  exception chained as `__cause__`.
"""

from __future__ import annotations

import logging
from collections import namedtuple
from typing import Any, Callable, Dict, Mapping, Optional

from ..domain._errors import DeviceMismatchError, EngineError, KernelNotFoundError
from ..domain._tensor import ITensor
from ..domain.device._device import DeviceType
from ..domain.device._device_protocol import DeviceLike

logger = logging.getLogger(__name__)

KernelKey = namedtuple("KernelKey", ["KernelName", "DeviceType"])
"""
Key identifying a kernel implementation.

Fields
------
KernelName : str
    Registered kernel name (e.g., "BatchNorm4D").
DeviceType : DeviceType
    Device category the implementation runs on.
"""

KernelFn = Callable[[Mapping[str, Optional[ITensor]], Mapping[str, Any]], ITensor]


class Engine:
    """
    Synchronous kernel executor with a per-instance registry.

    Notes
    -----
    Registries are owned by the instance; two engines never share kernels.
    """

    def __init__(self) -> None:
        self._kernels: Dict[KernelKey, KernelFn] = {}

    def register_kernel(
        self, kernel_name: str, device_type: DeviceType = DeviceType.CPU
    ) -> Callable[[KernelFn], KernelFn]:
        """
        Build a decorator registering a kernel implementation.

        Parameters
        ----------
        kernel_name : str
            Name callers pass to `execute_kernel`.
        device_type : DeviceType
            Device category the implementation serves.

        Returns
        -------
        Callable[[KernelFn], KernelFn]
            Decorator that stores the function and returns it unchanged.
            Registering the same key twice replaces the earlier kernel.
        """
        key = KernelKey(kernel_name, device_type)

        def decorator(fn: KernelFn) -> KernelFn:
            if key in self._kernels:
                logger.debug("Replacing kernel %s/%s", kernel_name, device_type.value)
            self._kernels[key] = fn
            return fn

        return decorator

    def has_kernel(
        self, kernel_name: str, device_type: DeviceType = DeviceType.CPU
    ) -> bool:
        return KernelKey(kernel_name, device_type) in self._kernels

    def kernel_names(self) -> list[str]:
        """Return the registered kernel names, sorted and de-duplicated."""
        return sorted({key.KernelName for key in self._kernels})

    def _resolve_device(
        self, kernel_name: str, inputs: Mapping[str, Optional[ITensor]]
    ) -> DeviceLike:
        present = {role: t for role, t in inputs.items() if t is not None}
        if not present:
            raise EngineError(kernel_name, "no tensor inputs supplied")

        primary = present.get("x")
        if primary is None:
            primary = next(iter(present.values()))
        device = primary.device

        for role, t in present.items():
            if t.device != device:
                raise DeviceMismatchError(kernel_name, role, str(device), str(t.device))
        return device

    def execute_kernel(
        self,
        kernel_name: str,
        inputs: Mapping[str, Optional[ITensor]],
        args: Mapping[str, Any],
    ) -> ITensor:
        """
        Execute a registered kernel.

        Parameters
        ----------
        kernel_name : str
            Registered kernel name.
        inputs : Mapping[str, Optional[ITensor]]
            Operands by name; None marks an absent operand.
        args : Mapping[str, Any]
            Kernel options.

        Returns
        -------
        ITensor
            The kernel's result.

        Raises
        ------
        EngineError
            On missing kernels, device mismatches, or any kernel failure.
        """
        device = self._resolve_device(kernel_name, inputs)
        kernel = self._kernels.get(KernelKey(kernel_name, device.type))
        if kernel is None:
            raise KernelNotFoundError(kernel_name, str(device))

        logger.debug(
            "Dispatching %s on %s with inputs %s and args %s",
            kernel_name,
            device,
            {role: (None if t is None else t.shape) for role, t in inputs.items()},
            dict(args),
        )

        try:
            return kernel(inputs, args)
        except EngineError:
            raise
        except Exception as e:
            raise EngineError(kernel_name, f"{type(e).__name__}: {e}") from e


_default_engine: Optional[Engine] = None


def default_engine() -> Engine:
    """
    Return the process-wide engine, creating it with the CPU kernels on first use.
    """
    global _default_engine
    if _default_engine is None:
        from .kernels._batchnorm_cpu import register_cpu_kernels

        engine = Engine()
        register_cpu_kernels(engine)
        _default_engine = engine
    return _default_engine
