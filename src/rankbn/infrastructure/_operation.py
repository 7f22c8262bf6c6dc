"""
Operation registration and call recording.

Public operations are plain functions wrapped by `operation(...)`. The wrapper
is a higher-order function applied by composition; it does not change the
wrapped function's signature or behaviour. It does two things:

- registers the operation under a name, so it can be looked up with
  `get_operation(name)` / `registered_operations()`;
- while one or more `OperationTape`s are active (see `record_operations`),
  appends an `OperationRecord` describing the call to each of them.

Records are created when the call starts and completed (output or error)
when it returns, so nested operations appear in call order with increasing
`depth`:

    with record_operations() as tape:
        batch_normalization_2d(x, mean, variance)

    tape.names()  # ["batch_normalization_2d", "batch_normalization"]
"""

from __future__ import annotations

import inspect
from contextlib import contextmanager
from dataclasses import dataclass, field
from functools import wraps
from typing import Any, Callable, Dict, Iterator, List, Optional

from typing_extensions import ParamSpec, TypeVar

from ..domain._tensor import ITensor

P = ParamSpec("P")
R = TypeVar("R")


@dataclass
class OperationRecord:
    """
    One recorded operation call.

    Attributes
    ----------
    name : str
        Registered operation name.
    inputs : dict[str, ITensor | None]
        Tensor-valued arguments by parameter name. Optional tensor parameters
        that were not supplied map to None.
    args : dict[str, Any]
        Remaining (non-tensor) arguments by parameter name.
    depth : int
        Nesting level; 0 for calls made directly by user code.
    output : ITensor | None
        Result of the call, set once it returns.
    error : BaseException | None
        Exception raised by the call, if any.
    """

    name: str
    inputs: Dict[str, Optional[ITensor]]
    args: Dict[str, Any]
    depth: int = 0
    output: Optional[ITensor] = None
    error: Optional[BaseException] = None


@dataclass
class OperationTape:
    """
    Ordered list of `OperationRecord`s captured while the tape is active.
    """

    records: List[OperationRecord] = field(default_factory=list)

    def record(self, rec: OperationRecord) -> None:
        self.records.append(rec)

    def names(self) -> List[str]:
        """Return the recorded operation names in call order."""
        return [r.name for r in self.records]

    def clear(self) -> None:
        self.records.clear()

    def __len__(self) -> int:
        return len(self.records)


_OPERATIONS: Dict[str, Callable[..., Any]] = {}
_active_tapes: List[OperationTape] = []
_depth = 0


@contextmanager
def record_operations(tape: Optional[OperationTape] = None) -> Iterator[OperationTape]:
    """
    Activate a tape for the duration of the `with` block.

    Parameters
    ----------
    tape : OperationTape, optional
        Tape to append to. A new one is created when omitted.

    Yields
    ------
    OperationTape
        The active tape. Tapes may be nested; every active tape receives
        every record.
    """
    tape = OperationTape() if tape is None else tape
    _active_tapes.append(tape)
    try:
        yield tape
    finally:
        _active_tapes.remove(tape)


def get_operation(name: str) -> Callable[..., Any]:
    """
    Return the registered operation called `name`.

    Raises
    ------
    KeyError
        If no operation is registered under `name`.
    """
    try:
        return _OPERATIONS[name]
    except KeyError:
        raise KeyError(f"Unknown operation {name!r}") from None


def registered_operations() -> List[str]:
    """Return the names of all registered operations, sorted."""
    return sorted(_OPERATIONS)


def _split_arguments(
    bound: inspect.BoundArguments,
) -> tuple[Dict[str, Optional[ITensor]], Dict[str, Any]]:
    inputs: Dict[str, Optional[ITensor]] = {}
    args: Dict[str, Any] = {}
    params = bound.signature.parameters
    for pname, value in bound.arguments.items():
        if isinstance(value, ITensor):
            inputs[pname] = value
        elif value is None and _is_tensor_annotation(params[pname].annotation):
            inputs[pname] = None
        else:
            args[pname] = value
    return inputs, args


def _is_tensor_annotation(annotation: Any) -> bool:
    # Annotations are strings under `from __future__ import annotations`.
    return "Tensor" in str(annotation)


def operation(name: Optional[str] = None) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """
    Build a decorator that registers and records an operation.

    Parameters
    ----------
    name : str, optional
        Registry name. Defaults to the wrapped function's `__name__`.

    Returns
    -------
    Callable[[Callable[P, R]], Callable[P, R]]
        Decorator returning a wrapper with the same signature.

    Raises
    ------
    ValueError
        If another operation is already registered under the same name.
    """

    def decorator(fn: Callable[P, R]) -> Callable[P, R]:
        op_name = fn.__name__ if name is None else name
        if op_name in _OPERATIONS:
            raise ValueError(f"Operation {op_name!r} is already registered")
        signature = inspect.signature(fn)

        @wraps(fn)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            global _depth
            if not _active_tapes:
                return fn(*args, **kwargs)

            bound = signature.bind(*args, **kwargs)
            bound.apply_defaults()
            inputs, extra = _split_arguments(bound)
            rec = OperationRecord(name=op_name, inputs=inputs, args=extra, depth=_depth)
            for tape in list(_active_tapes):
                tape.record(rec)

            _depth += 1
            try:
                out = fn(*args, **kwargs)
            except BaseException as e:
                rec.error = e
                raise
            finally:
                _depth -= 1
            rec.output = out
            return out

        wrapper.op_name = op_name  # type: ignore[attr-defined]
        _OPERATIONS[op_name] = wrapper
        return wrapper

    return decorator
