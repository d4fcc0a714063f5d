"""
Sample-loop engines for the waveshaper.

Two interchangeable strategies drive the per-sample work of a
ProcessingInstance:

- NumpyShaperEngine: vectorised NumPy lookup, plain Python DC loop.
  Reference implementation, no compilation delay.
- NumbaShaperEngine: JIT-compiled lookup and DC loop. Same arithmetic in
  the same order, so both engines agree to rounding.
"""

from typing import Protocol

import numpy as np
from numba import njit

from waveshaper.dcblock import DCBlocker, rolling_average_loop
from waveshaper.shaper import shape
from waveshaper.tables import STEPS, TABLESIZE, ArrayF


class ShaperEngine(Protocol):
    """Strategy interface for table lookup and DC blocking."""

    def shape_block(self, x_block: ArrayF, table: ArrayF, gain: float) -> ArrayF:
        """
        Shape a block through the lookup table.

        Args:
            x_block: Input samples (B,)
            table: Lookup table (TABLESIZE,)
            gain: Input pre-gain

        Returns:
            Shaped samples (B,)
        """
        ...

    def dc_block(self, x_block: ArrayF, blocker: DCBlocker, out: ArrayF) -> ArrayF:
        """Run the rolling-average DC blocker over a block, writing into out."""
        ...


class NumpyShaperEngine:
    """
    NumPy-based engine (reference implementation).

    The lookup is fully vectorised; the DC blocker is inherently sequential
    and runs as a Python loop, which dominates the cost when enabled.
    """

    def shape_block(self, x_block: ArrayF, table: ArrayF, gain: float) -> ArrayF:
        return shape(x_block, table, gain)

    def dc_block(self, x_block: ArrayF, blocker: DCBlocker, out: ArrayF) -> ArrayF:
        return blocker.process(x_block, out=out, loop=rolling_average_loop)


@njit(cache=True)
def _numba_shape(x: np.ndarray, table: np.ndarray, gain: float, steps: int) -> np.ndarray:
    """Interpolated table lookup, one sample at a time."""
    out = np.empty(x.shape[0], dtype=np.float64)
    last = 2 * steps - 1
    for i in range(x.shape[0]):
        pos = (x[i] * gain + 1.0) * steps
        if np.isnan(pos):
            pos = float(steps)
        index = np.floor(pos)
        if index < 0.0:
            index = 0.0
        elif index > last:
            index = float(last)
        offset = pos - index
        if offset < 0.0:
            offset = 0.0
        elif offset > 1.0:
            offset = 1.0
        k = int(index)
        y0 = table[k]
        out[i] = y0 + (table[k + 1] - y0) * offset
    return out


_numba_rolling_average = njit(cache=True)(rolling_average_loop)


class NumbaShaperEngine:
    """
    Numba-accelerated engine.

    Compiles both kernels on construction so the first real-time block does
    not pay the JIT cost.
    """

    def __init__(self):
        self._warmup()

    def _warmup(self):
        """Pre-compile Numba functions to avoid first-call overhead."""
        x = np.linspace(-1.0, 1.0, 64)
        table = np.linspace(-1.0, 1.0, TABLESIZE)
        _numba_shape(x, table, 1.0, STEPS)

        out = np.empty_like(x)
        buffer = np.zeros(16, dtype=np.float64)
        _numba_rolling_average(x, out, buffer, 0.0, 0, 0)

    def shape_block(self, x_block: ArrayF, table: ArrayF, gain: float) -> ArrayF:
        x_block = np.ascontiguousarray(x_block, dtype=np.float64)
        return _numba_shape(x_block, table, float(gain), STEPS)

    def dc_block(self, x_block: ArrayF, blocker: DCBlocker, out: ArrayF) -> ArrayF:
        return blocker.process(x_block, out=out, loop=_numba_rolling_average)


def select_engine(use_numba: bool = True, verbose: bool = False) -> ShaperEngine:
    """Pick the sample-loop engine."""
    if use_numba:
        if verbose:
            print("Using Numba shaper engine")
        return NumbaShaperEngine()
    if verbose:
        print("Using NumPy shaper engine")
    return NumpyShaperEngine()
