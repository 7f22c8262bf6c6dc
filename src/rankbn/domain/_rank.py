"""
Closed rank enumeration used for canonicalization dispatch.

Canonicalization rules differ only for ranks 0 through 3; every rank of 4 or
higher is treated as already canonical. `Rank.of` folds an arbitrary tensor
rank into this closed set so that dispatch tables can be keyed on it.
"""

from __future__ import annotations

from enum import IntEnum

from ._tensor import ITensor


class Rank(IntEnum):
    """
    Tensor rank category.

    Attributes
    ----------
    R0, R1, R2, R3 : Rank
        Exact ranks 0 to 3.
    R4 : Rank
        Rank 4 or higher.
    """

    R0 = 0
    R1 = 1
    R2 = 2
    R3 = 3
    R4 = 4

    @classmethod
    def from_int(cls, rank: int) -> "Rank":
        """
        Fold a non-negative integer rank into the enumeration.

        Raises
        ------
        ValueError
            If `rank` is negative.
        """
        rank = int(rank)
        if rank < 0:
            raise ValueError(f"rank must be non-negative, got {rank}")
        return cls(min(rank, int(cls.R4)))

    @classmethod
    def of(cls, tensor: ITensor) -> "Rank":
        """Return the rank category of `tensor`."""
        return cls.from_int(tensor.rank)
