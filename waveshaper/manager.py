"""
Instance manager: batch ("master") and real-time ("slave") processing.

One DistortionParams snapshot is shared by every instance. The host (UI or
automation layer) replaces it through the params property; instances only
read it, once per block, to decide whether their own table is stale.

- Batch: process_initialize() then process_block() repeatedly on the
  master instance, or process() for a whole (T,) / (T, C) signal.
- Real time: realtime_initialize(), one realtime_add_processor() per
  channel, realtime_process(group, ...) from the audio thread(s), and
  realtime_finalize() on teardown.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from waveshaper.engines import select_engine
from waveshaper.instance import SKIP_SAMPLES, ProcessingInstance, validate_sample_rate
from waveshaper.params import DistortionParams
from waveshaper.tables import ArrayF
from waveshaper.utils.shapes import canonicalize_channels, restore_channels


@dataclass
class EngineConfig:
    """
    Configuration for the instance manager.

    Parameters
    ----------
    use_numba : bool, default=True
        Use the JIT-compiled sample loops instead of the NumPy reference.
    block_size : int, default=512
        Block length for offline process().
    realtime_block_size : int, default=512
        Block length requested from the host in real-time mode.
    skip_samples : int, default=1000
        Samples processed under stale parameters before a table rebuild.
    verbose : bool, default=False
        Print engine selection and lifecycle events.
    """

    use_numba: bool = True
    block_size: int = 512
    realtime_block_size: int = 512
    skip_samples: int = SKIP_SAMPLES
    verbose: bool = False

    def __post_init__(self):
        """Validate configuration."""
        if self.block_size < 1:
            raise ValueError(f"block_size must be >= 1, got {self.block_size}")
        if self.realtime_block_size < 1:
            raise ValueError(
                f"realtime_block_size must be >= 1, got {self.realtime_block_size}"
            )
        if self.skip_samples < 1:
            raise ValueError(f"skip_samples must be >= 1, got {self.skip_samples}")


class InstanceManager:
    """
    Owns the master instance and the per-channel real-time instances.

    Example:
        >>> mgr = InstanceManager(DistortionParams(curve_type=CurveType.SOFT_CLIP),
        ...                       sample_rate=48000)
        >>> y = mgr.process(x)
        >>> mgr.params = mgr.params.with_changes(param1=80.0)
    """

    def __init__(
        self,
        params: DistortionParams | None = None,
        sample_rate: float = 44100.0,
        config: EngineConfig | None = None,
    ):
        self.config = config if config is not None else EngineConfig()
        self.sample_rate = validate_sample_rate(sample_rate)
        self.params = params if params is not None else DistortionParams()
        self.block_size = self.config.block_size

        # engines hold no per-channel state and can be shared
        self.engine = select_engine(self.config.use_numba, self.config.verbose)
        self.master = self._new_instance(self.sample_rate)
        self.slaves: list[ProcessingInstance] = []

    @property
    def params(self) -> DistortionParams:
        """Live parameter snapshot read by every instance."""
        return self._params

    @params.setter
    def params(self, params: DistortionParams):
        if not isinstance(params, DistortionParams):
            raise TypeError(f"params must be DistortionParams, got {type(params).__name__}")
        self._params = params

    def _new_instance(self, sample_rate: float) -> ProcessingInstance:
        return ProcessingInstance(
            sample_rate=sample_rate,
            engine=self.engine,
            skip_samples=self.config.skip_samples,
        )

    # ------------------------------------------------------------------
    # Batch processing
    # ------------------------------------------------------------------

    def process_initialize(self, sample_rate: float | None = None):
        """Prepare the master instance for a new batch run."""
        if sample_rate is not None:
            self.sample_rate = validate_sample_rate(sample_rate)
        self.master.initialize(self._params, self.sample_rate)

    def process_block(self, in_block: ArrayF, out_block: ArrayF) -> int:
        """
        Process one block on the master instance.

        Returns:
            Number of samples written to out_block.
        """
        self.master.process_block(in_block, self._params, out=out_block)
        return len(out_block)

    def process(self, x: ArrayF, block_size: int | None = None) -> ArrayF:
        """
        Process a complete signal offline.

        Every channel starts from a freshly initialised master instance.

        Args:
            x: Input signal, (T,) or (T, C)
            block_size: Processing block size (default: config.block_size)

        Returns:
            Processed signal with the same layout as x
        """
        if block_size is None:
            block_size = self.block_size
        if block_size < 1:
            raise ValueError(f"block_size must be >= 1, got {block_size}")

        x_canon = canonicalize_channels(x)
        T, C = x_canon.shape
        y = np.empty((T, C), dtype=np.float64)

        for c in range(C):
            if self.config.verbose:
                print(f"Processing channel {c + 1}/{C} ({T} samples)")
            self.process_initialize()
            x_c = np.ascontiguousarray(x_canon[:, c])
            y_c = np.empty(T, dtype=np.float64)
            for i in range(0, T, block_size):
                self.process_block(x_c[i:i + block_size], y_c[i:i + block_size])
            y[:, c] = y_c

        return restore_channels(y, x)

    # ------------------------------------------------------------------
    # Real-time processing
    # ------------------------------------------------------------------

    def realtime_initialize(self):
        """Start a real-time session: drop old channels, request host block size."""
        self.block_size = self.config.realtime_block_size
        self.slaves.clear()

    def realtime_add_processor(self, sample_rate: float) -> int:
        """
        Add one real-time channel.

        Returns:
            Group index to pass to realtime_process().
        """
        slave = self._new_instance(validate_sample_rate(sample_rate))
        slave.initialize(self._params)
        self.slaves.append(slave)
        if self.config.verbose:
            print(f"Added real-time processor {len(self.slaves) - 1} at {sample_rate} Hz")
        return len(self.slaves) - 1

    def realtime_process(self, group: int, in_block: ArrayF, out_block: ArrayF) -> int:
        """Process one block for a real-time channel; returns samples written."""
        if not 0 <= group < len(self.slaves):
            raise IndexError(f"group must be in [0, {len(self.slaves) - 1}], got {group}")
        self.slaves[group].process_block(in_block, self._params, out=out_block)
        return len(out_block)

    def realtime_finalize(self):
        """Tear down every real-time channel."""
        self.slaves.clear()
        self.block_size = self.config.block_size

    def get_info(self) -> dict:
        """Get manager configuration info."""
        return {
            "curve_type": self._params.curve_type.label,
            "sample_rate": self.sample_rate,
            "engine": self.engine.__class__.__name__,
            "block_size": self.block_size,
            "skip_samples": self.config.skip_samples,
            "realtime_channels": len(self.slaves),
            "master_state": self.master.state,
            "makeup_gain": self.master.makeup_gain,
        }
