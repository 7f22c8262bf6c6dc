"""
Dispatcher configuration.

`DispatchConfig` gathers the few knobs that change dispatch behaviour:

- `strict_shapes`: validate per-dimension compatibility of canonicalized
  parameters against the canonical input before the kernel runs.
- `default_variance_epsilon`: epsilon used when a caller passes
  `variance_epsilon=None`.
- `log_level`: level applied by `setup_logging()` when none is given.

Values are read once from the environment (`RANKBN_STRICT_SHAPES`,
`RANKBN_DEFAULT_EPSILON`, `RANKBN_LOG_LEVEL`) and cached. Tests and callers
can swap the active configuration with `set_config` or temporarily with the
`dispatch_config(...)` context manager.
"""

from __future__ import annotations

import os
from contextlib import contextmanager
from dataclasses import dataclass, replace
from typing import Iterator, Mapping, Optional

_FALSY = ("0", "", "false", "False", "FALSE")


@dataclass(frozen=True)
class DispatchConfig:
    """Configuration for batch normalization dispatch."""

    strict_shapes: bool = True
    default_variance_epsilon: float = 1e-3
    log_level: str = "WARNING"

    def __post_init__(self) -> None:
        if self.default_variance_epsilon < 0:
            raise ValueError(
                "default_variance_epsilon must be non-negative, got "
                f"{self.default_variance_epsilon}"
            )

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "DispatchConfig":
        """
        Build a configuration from environment variables.

        Parameters
        ----------
        environ : Mapping[str, str], optional
            Source mapping. Defaults to `os.environ`.

        Returns
        -------
        DispatchConfig
            Configuration with unset variables left at their defaults.

        Raises
        ------
        ValueError
            If `RANKBN_DEFAULT_EPSILON` is not a non-negative float.
        """
        env = os.environ if environ is None else environ
        defaults = cls()

        strict = env.get("RANKBN_STRICT_SHAPES")
        eps = env.get("RANKBN_DEFAULT_EPSILON")
        level = env.get("RANKBN_LOG_LEVEL")

        return cls(
            strict_shapes=(
                defaults.strict_shapes if strict is None else strict not in _FALSY
            ),
            default_variance_epsilon=(
                defaults.default_variance_epsilon if eps is None else float(eps)
            ),
            log_level=defaults.log_level if not level else level.upper(),
        )


_active: Optional[DispatchConfig] = None


def get_config() -> DispatchConfig:
    """Return the active configuration, loading it from the environment once."""
    global _active
    if _active is None:
        _active = DispatchConfig.from_env()
    return _active


def set_config(cfg: DispatchConfig) -> None:
    """Replace the active configuration."""
    global _active
    _active = cfg


def reset_config() -> None:
    """Drop the cached configuration; the next `get_config()` rereads the env."""
    global _active
    _active = None


@contextmanager
def dispatch_config(**overrides) -> Iterator[DispatchConfig]:
    """
    Temporarily override fields of the active configuration.

    Example
    -------
    >>> with dispatch_config(strict_shapes=False):
    ...     batch_normalization(x, mean, variance)
    """
    previous = get_config()
    cfg = replace(previous, **overrides)
    set_config(cfg)
    try:
        yield cfg
    finally:
        set_config(previous)
