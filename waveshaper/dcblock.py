"""
Rolling-average DC blocker.

Subtracts the mean of the last floor(sample_rate / 20) input samples
(a 50 ms window) from each sample. A rolling average converges on the
offset faster at stream start than a one-pole IIR high-pass.

The FIFO is a fixed ring buffer allocated once per instance; the running
sum is carried across blocks so block boundaries are invisible.
"""

from __future__ import annotations

import warnings
from typing import Callable

import numpy as np

from waveshaper.tables import ArrayF

WINDOW_SECONDS = 1.0 / 20.0


def rolling_average_loop(
    x: np.ndarray,
    out: np.ndarray,
    buffer: np.ndarray,
    total: float,
    head: int,
    count: int,
) -> tuple[float, int, int]:
    """
    Per-sample rolling-average subtraction.

    Plain loop so that the same arithmetic can be JIT-compiled by the
    Numba engine. The queue holds at most len(buffer) samples; head points
    at the oldest entry once the queue is full.

    Returns:
        Updated (total, head, count).
    """
    window = buffer.shape[0]
    for i in range(x.shape[0]):
        sample = x[i]
        total += sample
        if count == window:
            total -= buffer[head]
        else:
            count += 1
        buffer[head] = sample
        head += 1
        if head == window:
            head = 0
        out[i] = sample - total / count
    return total, head, count


def window_length(sample_rate: float) -> int:
    """Rolling window in samples for a given sample rate."""
    return int(np.floor(sample_rate * WINDOW_SECONDS))


class DCBlocker:
    """
    Stateful rolling-average high-pass filter for one channel.

    A window shorter than one sample (sample rates below 20 Hz) disables
    the filter: samples pass through unchanged.
    """

    def __init__(self, sample_rate: float):
        self.sample_rate = float(sample_rate)
        self.window = window_length(self.sample_rate)
        if self.window < 1:
            warnings.warn(
                f"Sample rate {self.sample_rate} Hz gives a DC window of "
                f"{self.window} samples; DC blocking disabled.",
                UserWarning,
                stacklevel=2,
            )
        self._buffer = np.zeros(max(self.window, 1), dtype=np.float64)
        self.reset()

    @property
    def enabled(self) -> bool:
        return self.window >= 1

    @property
    def queue_length(self) -> int:
        """Number of samples currently in the rolling window."""
        return self._count

    @property
    def running_sum(self) -> float:
        return self._total

    def reset(self):
        """Empty the queue and zero the running sum."""
        self._buffer.fill(0.0)
        self._total = 0.0
        self._head = 0
        self._count = 0

    def process(
        self,
        x_block: ArrayF,
        out: ArrayF | None = None,
        loop: Callable = rolling_average_loop,
    ) -> ArrayF:
        """
        Filter one block.

        Args:
            x_block: Input samples (1-D).
            out: Optional output buffer; may alias x_block.
            loop: Kernel implementing rolling_average_loop's contract.

        Returns:
            Filtered block.
        """
        x_block = np.ascontiguousarray(x_block, dtype=np.float64)
        if out is None:
            out = np.empty_like(x_block)

        if not self.enabled:
            out[:] = x_block
            return out

        total, head, count = loop(
            x_block, out, self._buffer, self._total, self._head, self._count
        )
        self._total = float(total)
        self._head = int(head)
        self._count = int(count)
        return out
