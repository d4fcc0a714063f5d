"""
Table-based waveshaping distortion for offline and real-time audio.

This package maps audio through one of eleven nonlinear transfer curves,
stored as interpolated lookup tables, with an optional rolling-average DC
blocker after the shaper.

Features:
---------
- Eleven curve families: clipping, overdrive, cubic, even harmonics,
  expand/compress, leveller, rectifier and hard limiter
- Per-channel processing instances with independent table and DC state
- Throttled table refresh while parameters are being moved
- NumPy reference engine and Numba-compiled engine
- Factory presets and transfer-curve / harmonic analysis helpers

Typical usage:
--------------
    from waveshaper import CurveType, DistortionParams, InstanceManager

    params = DistortionParams(curve_type=CurveType.SOFT_CLIP, threshold_db=-12.0)

    # Offline
    mgr = InstanceManager(params, sample_rate=48000)
    output = mgr.process(input_audio, block_size=512)

    # Real time, one processor per channel
    mgr.realtime_initialize()
    group = mgr.realtime_add_processor(48000)
    mgr.realtime_process(group, in_block, out_block)
"""

from waveshaper.params import (
    CurveType,
    DistortionParams,
    MIN_THRESHOLD_LINEAR,
    db_to_linear,
    linear_to_db,
)
from waveshaper.tables import (
    STEPS,
    TABLESIZE,
    TABLE_GENERATORS,
    ArrayF,
    CurveTable,
    make_table,
)
from waveshaper.shaper import apply_output_stage, pre_gain, shape
from waveshaper.dcblock import DCBlocker
from waveshaper.engines import NumbaShaperEngine, NumpyShaperEngine, ShaperEngine
from waveshaper.instance import SKIP_SAMPLES, ProcessingInstance
from waveshaper.manager import EngineConfig, InstanceManager
from waveshaper.presets import FACTORY_PRESETS, load_preset, preset_names
from waveshaper.analysis import harmonic_levels, transfer_curve

__version__ = "0.1.0"

__all__ = [
    # Parameters
    "CurveType",
    "DistortionParams",
    "MIN_THRESHOLD_LINEAR",
    "db_to_linear",
    "linear_to_db",
    # Tables
    "STEPS",
    "TABLESIZE",
    "TABLE_GENERATORS",
    "ArrayF",
    "CurveTable",
    "make_table",
    # Shaping
    "apply_output_stage",
    "pre_gain",
    "shape",
    "DCBlocker",
    # Engines
    "ShaperEngine",
    "NumpyShaperEngine",
    "NumbaShaperEngine",
    # Processing
    "SKIP_SAMPLES",
    "ProcessingInstance",
    "EngineConfig",
    "InstanceManager",
    # Presets and analysis
    "FACTORY_PRESETS",
    "load_preset",
    "preset_names",
    "harmonic_levels",
    "transfer_curve",
]
