"""
Table lookup waveshaper and the per-curve output stage.

shape() maps each input sample to a fractional table position

    pos = (x + 1) · STEPS
    index = clamp(floor(pos), 0, 2·STEPS - 1)
    offset = clamp(pos - index, 0, 1)
    y = table[index] + (table[index + 1] - table[index]) · offset

Out-of-range input is flattened onto the table edge values rather than
rejected, which acts as a clip at 0 dB.

apply_output_stage() then combines the shaped signal with makeup gain or
the dry signal according to the curve type.
"""

from __future__ import annotations

from typing import Callable

import numpy as np

from waveshaper.params import CurveType, DistortionParams
from waveshaper.tables import STEPS, ArrayF


def pre_gain(params: DistortionParams) -> float:
    """Input drive applied before lookup (HardClip only)."""
    if params.curve_type == CurveType.HARD_CLIP:
        return 1.0 + params.param1 / 100.0
    return 1.0


def shape(x: ArrayF, table: ArrayF, gain: float = 1.0) -> ArrayF:
    """
    Vectorised table lookup with linear interpolation.

    Args:
        x: Input samples (any shape).
        table: Lookup table of length 2·STEPS + 1.
        gain: Pre-gain multiplied into the input before lookup.

    Returns:
        Shaped samples, same shape as x, float64.
    """
    x = np.asarray(x, dtype=np.float64)
    if gain != 1.0:
        x = x * gain

    pos = (x + 1.0) * STEPS
    # NaN samples read the origin
    pos = np.where(np.isnan(pos), float(STEPS), pos)
    index = np.clip(np.floor(pos), 0, 2 * STEPS - 1).astype(np.intp)
    offset = np.clip(pos - index, 0.0, 1.0)

    y0 = table[index]
    return y0 + (table[index + 1] - y0) * offset


def _makeup_blend(shaped, dry, p1, p2, makeup_gain):
    return shaped * ((1.0 - p2) + makeup_gain * p2)


def _output_level(shaped, dry, p1, p2, makeup_gain):
    return shaped * p2


def _unity(shaped, dry, p1, p2, makeup_gain):
    return shaped


def _wet_residual(shaped, dry, p1, p2, makeup_gain):
    # out = (wet - residual)·clipped + residual·in
    return shaped * (p1 - p2) + dry * p2


OUTPUT_STAGES: dict[CurveType, Callable] = {
    CurveType.HARD_CLIP: _makeup_blend,
    CurveType.SOFT_CLIP: _makeup_blend,
    CurveType.HALF_SIN: _output_level,
    CurveType.EXPONENTIAL: _output_level,
    CurveType.LOGARITHMIC: _output_level,
    CurveType.CUBIC: _unity,
    CurveType.EVEN_HARMONICS: _unity,
    CurveType.SINE: _output_level,
    CurveType.LEVELLER: _unity,
    CurveType.RECTIFIER: _unity,
    CurveType.HARD_LIMITER: _wet_residual,
}


def apply_output_stage(
    shaped: ArrayF, dry: ArrayF, params: DistortionParams, makeup_gain: float
) -> ArrayF:
    """Combine shaped output with makeup gain or dry signal for params.curve_type."""
    stage = OUTPUT_STAGES[params.curve_type]
    return stage(shaped, dry, params.param1 / 100.0, params.param2 / 100.0, makeup_gain)
