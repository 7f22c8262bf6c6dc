from ._shape import TensorShapeMixin
from ._tensor import Tensor


__all__ = [Tensor.__name__, TensorShapeMixin.__name__]
