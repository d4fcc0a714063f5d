"""
Curve inspection helpers.

transfer_curve() evaluates the memoryless part of the pipeline (pre-gain,
table lookup, output stage) over a grid of input levels, which is what a
curve display plots. harmonic_levels() measures the harmonic series of a
processed test tone.
"""

from __future__ import annotations

import numpy as np
from scipy.fft import rfft, rfftfreq

from waveshaper.params import DistortionParams
from waveshaper.shaper import apply_output_stage, pre_gain, shape
from waveshaper.tables import TABLESIZE, ArrayF, make_table


def transfer_curve(
    params: DistortionParams, num_points: int = TABLESIZE
) -> tuple[ArrayF, ArrayF]:
    """
    Static input/output curve for a parameter set (DC blocker excluded).

    Args:
        params: Parameter snapshot.
        num_points: Grid points over [-1, 1].

    Returns:
        (x, y) arrays of length num_points.
    """
    if num_points < 2:
        raise ValueError(f"num_points must be >= 2, got {num_points}")
    curve = make_table(params)
    x = np.linspace(-1.0, 1.0, num_points)
    shaped = shape(x, curve.table, pre_gain(params))
    return x, apply_output_stage(shaped, x, params, curve.makeup_gain)


def sine_test_tone(
    frequency: float,
    sample_rate: float = 48000.0,
    duration: float = 1.0,
    amplitude: float = 0.5,
) -> ArrayF:
    """Pure sine test signal."""
    t = np.arange(int(sample_rate * duration)) / sample_rate
    return amplitude * np.sin(2 * np.pi * frequency * t)


def harmonic_levels(
    signal: ArrayF, sample_rate: float, f0: float, num_harmonics: int = 10
) -> dict[int, float]:
    """
    Level in dB of each harmonic k·f0 below Nyquist.

    Returns:
        Mapping harmonic number -> magnitude in dB (k=1 is the fundamental).
    """
    Y = rfft(np.asarray(signal, dtype=np.float64))
    freqs = rfftfreq(len(signal), 1 / sample_rate)

    harmonics = {}
    for k in range(1, num_harmonics + 1):
        f_harmonic = k * f0
        if f_harmonic > sample_rate / 2:
            break
        idx = np.argmin(np.abs(freqs - f_harmonic))
        harmonics[k] = float(20 * np.log10(np.abs(Y[idx]) + 1e-15))

    return harmonics


def total_harmonic_distortion(
    signal: ArrayF, sample_rate: float, f0: float, num_harmonics: int = 10
) -> float:
    """THD as a ratio: sqrt(sum of harmonic powers k>=2) / fundamental."""
    levels = harmonic_levels(signal, sample_rate, f0, num_harmonics)
    amps = {k: 10 ** (db / 20) for k, db in levels.items()}
    fundamental = amps.get(1, 0.0)
    if fundamental <= 0:
        return float("inf")
    overtones = sum(a * a for k, a in amps.items() if k >= 2)
    return float(np.sqrt(overtones) / fundamental)
