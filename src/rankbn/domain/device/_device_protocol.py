"""
Duck-typed device contract.

Domain protocols (`ITensor`, `IEngine`) type their device members against
`DeviceLike` so they do not import the concrete `Device` class.
"""

from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable


@runtime_checkable
class DeviceLike(Protocol):
    """
    Any object exposing these members can describe a tensor placement.
    """

    type: object
    index: Optional[int]

    def is_cpu(self) -> bool: ...
    def is_cuda(self) -> bool: ...
    def __str__(self) -> str: ...
