"""
rankbn: rank-normalizing batch normalization dispatch.

Public surface:

- operations: `batch_normalization`, `batch_normalization_2d`,
  `batch_normalization_3d`, `batch_normalization_4d`
- values: `Tensor`, `Device`
- engine: `Engine`, `default_engine`
- errors: `ShapeError`, `EngineError`
- configuration: `DispatchConfig`, `get_config`, `dispatch_config`
- recording: `record_operations`
"""

import logging

from .domain._errors import EngineError, ShapeError
from .domain.device._device import Device
from .infrastructure._config import DispatchConfig, dispatch_config, get_config
from .infrastructure._engine import Engine, default_engine
from .infrastructure._logging import setup_logging
from .infrastructure._operation import record_operations
from .infrastructure.ops._batchnorm import (
    batch_normalization,
    batch_normalization_2d,
    batch_normalization_3d,
    batch_normalization_4d,
)
from .infrastructure.tensor import Tensor

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "Device",
    "DispatchConfig",
    "Engine",
    "EngineError",
    "ShapeError",
    "Tensor",
    "batch_normalization",
    "batch_normalization_2d",
    "batch_normalization_3d",
    "batch_normalization_4d",
    "default_engine",
    "dispatch_config",
    "get_config",
    "record_operations",
    "setup_logging",
]
