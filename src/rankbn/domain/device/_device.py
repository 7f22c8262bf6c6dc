"""
Device descriptors.

`Device` is a small value object naming where a tensor's storage lives. The
engine keys its kernel registry on `DeviceType`, and kernels check that all
operands share one `Device`.

Accepted spellings are "cpu" and "cuda:<index>". Only CPU storage is backed by
the NumPy tensor; CUDA descriptors exist so that placement errors can be
reported precisely.
"""

from enum import Enum
import re


class DeviceType(Enum):
    """
    Device category, independent of any device index.
    """

    CPU = "cpu"
    CUDA = "cuda"


class Device:
    """
    Normalized device descriptor.

    Parameters
    ----------
    device : str
        "cpu" or "cuda:<index>" with a non-negative integer index.

    Raises
    ------
    ValueError
        If the string is not one of the accepted spellings.
    """

    __slots__ = ("type", "index")

    _CUDA_PATTERN = re.compile(r"^cuda:(\d+)$")

    def __init__(self, device: str = "cpu"):
        if device == "cpu":
            self.type = DeviceType.CPU
            self.index = None
            return

        m = self._CUDA_PATTERN.match(device)
        if not m:
            raise ValueError(
                f"Invalid device '{device}'. Expected 'cpu' or 'cuda:<index>'"
            )
        self.type = DeviceType.CUDA
        self.index = int(m.group(1))

    def __str__(self) -> str:
        return "cpu" if self.type is DeviceType.CPU else f"cuda:{self.index}"

    def __repr__(self) -> str:
        return f"Device('{self}')"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Device):
            return NotImplemented
        return (self.type, self.index) == (other.type, other.index)

    def __hash__(self) -> int:
        return hash((self.type, self.index))

    def is_cpu(self) -> bool:
        """Return True for CPU devices."""
        return self.type is DeviceType.CPU

    def is_cuda(self) -> bool:
        """Return True for CUDA devices."""
        return self.type is DeviceType.CUDA
