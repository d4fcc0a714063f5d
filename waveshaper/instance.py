"""
Processing instance: one channel's table, DC state and refresh bookkeeping.

Table refresh policy
--------------------
Each block reads the live DistortionParams once and compares its table key
with the parameters the current table was built from:

- Stable: keys match. The skip counter is cleared.
- Dirty: keys differ. The table is NOT rebuilt immediately. The instance
  keeps rendering with the parameters of its current table and counts the
  samples processed this way; once skip_samples (1000) of them have gone
  by, the table is rebuilt from the live snapshot and the instance is
  Stable again. The counter survives block boundaries, so during a
  continuous knob sweep the table follows the knob every 1000 samples.

The DC blocker follows the live dc_block flag immediately; it does not
depend on the table.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from waveshaper.dcblock import DCBlocker
from waveshaper.engines import ShaperEngine, select_engine
from waveshaper.params import DistortionParams
from waveshaper.shaper import apply_output_stage, pre_gain
from waveshaper.tables import ArrayF, allocate_table, make_table

SKIP_SAMPLES = 1000  # samples processed before a dirty table is rebuilt


def validate_sample_rate(sample_rate: float) -> float:
    sample_rate = float(sample_rate)
    if not np.isfinite(sample_rate) or sample_rate <= 0:
        raise ValueError(f"sample_rate must be positive, got {sample_rate}")
    return sample_rate


@dataclass
class ProcessingInstance:
    """
    Per-channel waveshaper state.

    Owns a lookup table buffer (allocated once, never shared), the makeup
    gain of that table, the parameter snapshot it was built from, the skip
    counter and a DCBlocker. Two instances never share mutable state, so
    separate channels can be processed from separate threads.

    Example:
        >>> inst = ProcessingInstance(sample_rate=48000)
        >>> inst.initialize(DistortionParams())
        >>> y = inst.process_block(x, DistortionParams())
    """

    sample_rate: float = 48000.0
    engine: ShaperEngine = None
    use_numba: bool = True
    skip_samples: int = SKIP_SAMPLES

    def __post_init__(self):
        self.sample_rate = validate_sample_rate(self.sample_rate)
        if self.skip_samples < 1:
            raise ValueError(f"skip_samples must be >= 1, got {self.skip_samples}")
        if self.engine is None:
            self.engine = select_engine(self.use_numba)

        self._table = allocate_table()
        self._makeup_gain = 1.0
        self._table_params: DistortionParams | None = None
        self._skip_counter = 0
        self._dirty = False
        self._dc = DCBlocker(self.sample_rate)

    @property
    def table(self) -> ArrayF:
        """Current lookup table (read-only view)."""
        view = self._table.view()
        view.flags.writeable = False
        return view

    @property
    def makeup_gain(self) -> float:
        return self._makeup_gain

    @property
    def table_params(self) -> DistortionParams | None:
        """Parameter snapshot the current table was built from."""
        return self._table_params

    @property
    def skip_counter(self) -> int:
        return self._skip_counter

    @property
    def state(self) -> str:
        """'dirty' or 'stable', as of the last processed block."""
        return "dirty" if self._dirty else "stable"

    @property
    def dc_blocker(self) -> DCBlocker:
        return self._dc

    def initialize(self, params: DistortionParams, sample_rate: float | None = None):
        """
        (Re)build the table, clear DC state and reset the skip counter.

        Args:
            params: Live parameter snapshot.
            sample_rate: New sample rate; keeps the current one if None.

        Raises:
            ValueError: If sample_rate is not positive.
        """
        if sample_rate is not None:
            sample_rate = validate_sample_rate(sample_rate)
            if sample_rate != self.sample_rate:
                self.sample_rate = sample_rate
                self._dc = DCBlocker(sample_rate)

        self._dc.reset()
        self._skip_counter = 0
        self._dirty = False
        self.rebuild_table(params)

    def reset(self):
        """Clear DC history and refresh bookkeeping, keeping the current table."""
        self._dc.reset()
        self._skip_counter = 0
        self._dirty = False

    def rebuild_table(self, params: DistortionParams):
        """Regenerate the lookup table from params and remember the snapshot."""
        result = make_table(params, out=self._table)
        self._makeup_gain = result.makeup_gain
        self._table_params = params

    def is_dirty(self, params: DistortionParams) -> bool:
        """True if params differ from those the current table was built from."""
        if self._table_params is None:
            return True
        return params.table_key() != self._table_params.table_key()

    def _render(self, x: ArrayF, out: ArrayF):
        """Shape a stretch of samples with the current table."""
        table_params = self._table_params
        shaped = self.engine.shape_block(x, self._table, pre_gain(table_params))
        out[:] = apply_output_stage(shaped, x, table_params, self._makeup_gain)

    def process_block(
        self,
        x_block: ArrayF,
        params: DistortionParams,
        out: ArrayF | None = None,
    ) -> ArrayF:
        """
        Run one block through lookup, output stage and optional DC blocker.

        Args:
            x_block: Input samples (B,)
            params: Live parameter snapshot for this block.
            out: Optional output buffer (B,); may be x_block itself.

        Returns:
            Output block (B,)
        """
        if self._table_params is None:
            raise RuntimeError("initialize() must be called before process_block()")

        x_block = np.asarray(x_block, dtype=np.float64)
        if x_block.ndim != 1:
            raise ValueError(f"Input block must be 1D, got shape {x_block.shape}")
        if out is None:
            out = np.empty_like(x_block)
        elif out.shape != x_block.shape:
            raise ValueError(
                f"Output buffer shape {out.shape} does not match input {x_block.shape}"
            )

        B = len(x_block)
        if B == 0:
            return out

        dirty = self.is_dirty(params)
        if not dirty:
            self._skip_counter = 0

        start = 0
        while start < B:
            if dirty and self._skip_counter >= self.skip_samples:
                self.rebuild_table(params)
                self._skip_counter = 0
                dirty = False

            if dirty:
                stop = min(B, start + self.skip_samples - self._skip_counter)
                self._skip_counter += stop - start
            else:
                stop = B

            self._render(x_block[start:stop], out[start:stop])
            start = stop

        self._dirty = dirty

        if params.dc_block:
            self.engine.dc_block(out, self._dc, out)

        return out
