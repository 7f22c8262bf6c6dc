# scripts/bench_batchnorm_dispatch.py
"""
Microbench: batch normalization dispatch overhead per input rank.

What it measures
----------------
- Per-call latency of `batch_normalization` for inputs of rank 0..4 on CPU.
- Uses warmup iterations (not recorded), then repeats with median/p95.
- Optionally times the fixed-rank entries (`batch_normalization_{2,3,4}d`)
  and the permissive mode (`--no_strict`) side by side.

Notes
-----
- Timings include the Python boundary (rank validation, canonical reshapes,
  engine lookup, output reshape) as well as the numpy kernel. For small
  inputs that boundary dominates.
- Statistics are rank-1 over the last axis of the input.

Example
-------
python scripts/bench_batchnorm_dispatch.py --channels 64 --batch 32 \
    --warmup 50 --repeats 500 --ranks 1 2 3 4 --fixed_rank
"""

from __future__ import annotations

import argparse
import logging
import math
import os
import statistics
import sys
import time
from dataclasses import dataclass
from typing import Callable, List, Sequence, Tuple

import numpy as np

THIS_DIR = os.path.dirname(os.path.abspath(__file__))
ROOT_DIR = os.path.abspath(os.path.join(THIS_DIR, ".."))
SRC_DIR = os.path.join(ROOT_DIR, "src")
if SRC_DIR not in sys.path:
    sys.path.insert(0, SRC_DIR)

from rankbn import (  # noqa: E402
    Tensor,
    batch_normalization,
    batch_normalization_2d,
    batch_normalization_3d,
    batch_normalization_4d,
    dispatch_config,
    setup_logging,
)

logger = logging.getLogger("rankbn.bench")

_FIXED_RANK = {
    2: batch_normalization_2d,
    3: batch_normalization_3d,
    4: batch_normalization_4d,
}


# ----------------------------
# Stats helpers
# ----------------------------
def _median(xs: Sequence[float]) -> float:
    return statistics.median(xs) if xs else float("nan")


def _p95(xs: Sequence[float]) -> float:
    if not xs:
        return float("nan")
    ys = sorted(xs)
    k = int(math.ceil(0.95 * len(ys))) - 1
    return ys[max(0, min(k, len(ys) - 1))]


def _fmt_us(sec: float) -> str:
    return f"{sec * 1e6:10.1f} us"


@dataclass
class CaseResult:
    name: str
    shape: Tuple[int, ...]
    med: float
    p95: float


# ----------------------------
# Bench core
# ----------------------------
def _time_call(fn: Callable[[], object], *, warmup: int, repeats: int) -> List[float]:
    for _ in range(warmup):
        fn()

    times: List[float] = []
    for _ in range(repeats):
        t0 = time.perf_counter()
        fn()
        times.append(time.perf_counter() - t0)
    return times


def _shape_for_rank(rank: int, batch: int, channels: int) -> Tuple[int, ...]:
    if rank == 0:
        return ()
    if rank == 1:
        return (channels,)
    # batch, spatial..., channels
    return (batch,) + (4,) * (rank - 2) + (channels,)


def _make_case(rank: int, batch: int, channels: int, dtype, rng):
    shape = _shape_for_rank(rank, batch, channels)
    stat_len = channels if rank > 0 else 1
    stat_shape = (stat_len,) if rank > 0 else ()

    x = Tensor.from_numpy(rng.standard_normal(size=shape).astype(dtype))
    mean = Tensor.from_numpy(rng.standard_normal(size=stat_shape).astype(dtype))
    var = Tensor.from_numpy((rng.random(size=stat_shape) + 0.5).astype(dtype))
    scale = Tensor.from_numpy(rng.standard_normal(size=stat_shape).astype(dtype))
    offset = Tensor.from_numpy(rng.standard_normal(size=stat_shape).astype(dtype))
    return shape, (x, mean, var, scale, offset)


def _run_cases(args, dtype) -> List[CaseResult]:
    rng = np.random.default_rng(0)
    results: List[CaseResult] = []

    for rank in args.ranks:
        shape, (x, mean, var, scale, offset) = _make_case(
            rank, args.batch, args.channels, dtype, rng
        )
        logger.debug("case rank=%d shape=%s", rank, shape)

        times = _time_call(
            lambda: batch_normalization(x, mean, var, args.eps, scale, offset),
            warmup=args.warmup,
            repeats=args.repeats,
        )
        results.append(
            CaseResult("batch_normalization", shape, _median(times), _p95(times))
        )

        fixed = _FIXED_RANK.get(rank)
        if args.fixed_rank and fixed is not None:
            times = _time_call(
                lambda: fixed(x, mean, var, args.eps, scale, offset),
                warmup=args.warmup,
                repeats=args.repeats,
            )
            results.append(
                CaseResult(fixed.__name__, shape, _median(times), _p95(times))
            )

    return results


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("--ranks", nargs="+", type=int, default=[0, 1, 2, 3, 4])
    ap.add_argument("--batch", type=int, default=32)
    ap.add_argument("--channels", type=int, default=64)
    ap.add_argument("--dtype", choices=["float32", "float64"], default="float32")
    ap.add_argument("--eps", type=float, default=1e-3)
    ap.add_argument("--warmup", type=int, default=50)
    ap.add_argument("--repeats", type=int, default=200)
    ap.add_argument(
        "--fixed_rank",
        action="store_true",
        help="Also time batch_normalization_{2,3,4}d for matching ranks",
    )
    ap.add_argument(
        "--no_strict",
        action="store_true",
        help="Skip the per-dimension broadcast check before the kernel",
    )
    ap.add_argument("--log_level", default=None)
    args = ap.parse_args()

    setup_logging(args.log_level)

    bad = [r for r in args.ranks if r < 0 or r > 4]
    if bad:
        raise SystemExit(f"--ranks must be within 0..4, got {bad}")

    dtype = np.float32 if args.dtype == "float32" else np.float64

    print("=" * 80)
    print(
        f"BatchNorm dispatch bench | batch={args.batch} channels={args.channels} "
        f"dtype={args.dtype} warmup={args.warmup} repeats={args.repeats} "
        f"strict={not args.no_strict}"
    )
    print("=" * 80)

    with dispatch_config(strict_shapes=not args.no_strict):
        results = _run_cases(args, dtype)

    print(f"{'op':<26} {'shape':<20} {'median':>13} {'p95':>13}")
    print("-" * 80)
    for r in results:
        print(f"{r.name:<26} {str(r.shape):<20} {_fmt_us(r.med)} {_fmt_us(r.p95)}")


if __name__ == "__main__":
    main()
