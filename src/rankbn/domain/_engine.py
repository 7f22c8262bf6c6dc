"""
Execution engine interface.

The dispatcher's only outward call is `IEngine.execute_kernel`. Anything that
provides this method can stand in for the reference `Engine`, which is how the
test-suite observes the exact operands handed to a kernel.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol, runtime_checkable

from ._tensor import ITensor


@runtime_checkable
class IEngine(Protocol):
    """
    Kernel execution contract.
    """

    def execute_kernel(
        self,
        kernel_name: str,
        inputs: Mapping[str, Optional[ITensor]],
        args: Mapping[str, Any],
    ) -> ITensor:
        """
        Execute a named kernel synchronously.

        Parameters
        ----------
        kernel_name : str
            Registered kernel name (e.g., "BatchNorm4D").
        inputs : Mapping[str, Optional[ITensor]]
            Kernel operands by name. A value of None means the operand is
            absent and the kernel applies its identity behaviour.
        args : Mapping[str, Any]
            Non-tensor kernel options (e.g., {"varianceEpsilon": 1e-3}).

        Returns
        -------
        ITensor
            Kernel result.

        Raises
        ------
        EngineError
            On any failure during execution.
        """
        ...


BATCHNORM_4D_KERNEL = "BatchNorm4D"
"""Kernel name used by batch normalization dispatch."""
