"""
Lookup-table generators for the eleven transfer curves.

Every generator fills a caller-owned buffer of TABLESIZE = 2·STEPS + 1
samples describing the transfer function over the input domain [-1, +1]:

    table[n] = curve(n / STEPS - 1),   n = 0 .. 2·STEPS

Index STEPS is the origin. Most curves are odd functions: only the
positive half (STEPS .. 2·STEPS) is computed and copy_half_table()
mirrors it. HardClip and EvenHarmonics are evaluated over the full domain,
and Rectifier is deliberately asymmetric.

Generators return the makeup gain alongside the in-place table write, so
make_table() can hand both back as a CurveTable without hidden state.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

import numpy as np
import numpy.typing as npt

from waveshaper.params import CurveType, DistortionParams, db_to_linear

ArrayF = npt.NDArray[np.floating]

STEPS = 1024  # positive (or negative) steps in the lookup table
TABLESIZE = 2 * STEPS + 1

# Leveller breakpoints
LEVELLER_GAIN_FACTORS = np.array([0.80, 1.00, 1.20, 1.20, 1.00, 0.80])
LEVELLER_GAIN_LIMITS = np.array([0.0001, 0.0, 0.1, 0.3, 0.5, 1.0])
LEVELLER_MIN_FRACTION = 0.001


@dataclass
class CurveTable:
    """Lookup table plus the makeup gain computed while building it."""

    table: ArrayF
    makeup_gain: float = 1.0


def _full_domain() -> ArrayF:
    """Input value at every table index: n/STEPS - 1."""
    return np.arange(TABLESIZE, dtype=np.float64) / STEPS - 1.0


def _positive_half() -> ArrayF:
    """Input value at indices STEPS..2·STEPS: 0 .. 1."""
    return np.arange(STEPS + 1, dtype=np.float64) / STEPS


def copy_half_table(table: ArrayF) -> None:
    """Mirror the positive half into the negative half: table[n] = -table[2·STEPS - n]."""
    table[:STEPS] = -table[TABLESIZE - 1:STEPS:-1]


def hard_clip(table: ArrayF, params: DistortionParams) -> float:
    threshold = params.threshold
    n = np.arange(TABLESIZE)
    low = STEPS * (1.0 - threshold)
    high = STEPS * (1.0 + threshold)

    table[:] = _full_domain()
    table[n < low] = -threshold
    table[n > high] = threshold
    return 1.0 / threshold


def soft_clip_curve(threshold: float, value, ratio: float):
    """Exponential roll-off above the threshold: threshold + (e^{r(t-v)} - 1) / -r."""
    return threshold + (np.exp(ratio * (threshold - value)) - 1.0) / -ratio


def soft_clip(table: ArrayF, params: DistortionParams) -> float:
    threshold = params.threshold
    amount = 2.0 ** (7.0 * params.param1 / 100.0)  # range 1 to 128
    peak = soft_clip_curve(threshold, 1.0, amount)

    x = _positive_half()
    n = np.arange(STEPS, TABLESIZE)
    table[STEPS:] = np.where(
        n < STEPS * (1.0 + threshold), x, soft_clip_curve(threshold, x, amount)
    )
    table[STEPS] = 0.0
    copy_half_table(table)
    return 1.0 / peak


def _iterated_blend(x: ArrayF, amount: float, fn: Callable[[ArrayF], ArrayF]) -> ArrayF:
    """
    Apply fn floor(amount/20) times, then blend in one more pass.

    The fractional remainder of amount/20 weights the extra pass so the
    curve moves smoothly between whole iteration counts.
    """
    iterations = int(np.floor(amount / 20.0))
    fraction = amount / 20.0 - iterations
    y = x.copy()
    for _ in range(iterations):
        y = fn(y)
    return y + (fn(y) - y) * fraction


def half_sin(table: ArrayF, params: DistortionParams) -> float:
    table[STEPS:] = _iterated_blend(
        _positive_half(), params.param1, lambda v: np.sin(v * (np.pi / 2.0))
    )
    copy_half_table(table)
    return 1.0


def sine(table: ArrayF, params: DistortionParams) -> float:
    table[STEPS:] = _iterated_blend(
        _positive_half(),
        params.param1,
        lambda v: (1.0 + np.sin(v * np.pi - np.pi / 2.0)) / 2.0,
    )
    copy_half_table(table)
    return 1.0


def exponential(table: ArrayF, params: DistortionParams) -> float:
    # keep amount below 1 so the scale never divides by zero
    amount = min(0.999, db_to_linear(-params.param1))
    scale = -1.0 / (1.0 - amount)  # unity gain at 0 dB
    x = _positive_half()
    table[STEPS:] = scale * (np.exp(x * np.log(amount)) - 1.0)
    copy_half_table(table)
    return 1.0


def logarithmic(table: ArrayF, params: DistortionParams) -> float:
    amount = params.param1
    x = _positive_half()
    if amount == 0:
        table[STEPS:] = x
    else:
        table[STEPS:] = np.log1p(amount * x) / np.log1p(amount)
    copy_half_table(table)
    return 1.0


def cubic_map(x):
    """f(x) = x - x³/3, flat at x = 1."""
    return x - (x ** 3) / 3.0


def cubic(table: ArrayF, params: DistortionParams) -> float:
    amount = params.param1 * np.sqrt(3.0) / 100.0

    x = _positive_half()
    if amount == 0:
        table[STEPS:] = x
    else:
        gain = 1.0 / cubic_map(min(amount, 1.0))
        y = gain * cubic_map(amount * x)
        for _ in range(params.repeats):
            y = gain * cubic_map(y * amount)
        table[STEPS:] = y
    copy_half_table(table)
    return 1.0


def even_harmonics(table: ArrayF, params: DistortionParams) -> float:
    amount = params.param1 / -100.0
    C = max(0.001, params.param2) / 10.0  # tanh(C) must not be zero

    x = _full_domain()
    table[:] = (1.0 + amount) * x - x * (amount / np.tanh(C)) * np.tanh(C * x)
    return 1.0


def leveller_segments(noise_floor_db: float) -> tuple[ArrayF, ArrayF, ArrayF]:
    """
    Breakpoints of the Leveller gain curve.

    Returns (limits, gain_factors, add_on). Segment i covers values below
    limits[i] and above limits[i-1], mapping v -> v·gain_factors[i] + add_on[i].
    The add-on offsets make adjacent segments meet at each limit.
    """
    limits = LEVELLER_GAIN_LIMITS.copy()
    limits[1] = db_to_linear(noise_floor_db)
    gains = LEVELLER_GAIN_FACTORS

    add_on = np.zeros(len(gains))
    for i in range(len(gains) - 1):
        add_on[i + 1] = add_on[i] + limits[i] * (gains[i] - gains[i + 1])
    return limits, gains, add_on


def _leveller_index(values: ArrayF, limits: ArrayF) -> np.ndarray:
    """
    Segment index per value.

    Scanning down from the last breakpoint, the segment is the lowest index
    reached while the value stays below every limit passed; that is one
    above the highest limit the value reaches, capped at the last segment.
    """
    positions = np.arange(len(limits))
    reached = values[:, np.newaxis] >= limits[np.newaxis, :]
    highest = np.where(reached, positions, -1).max(axis=1)
    return np.minimum(highest + 1, len(limits) - 1)


def leveller(table: ArrayF, params: DistortionParams) -> float:
    limits, gains, add_on = leveller_segments(params.noise_floor_db)
    fractional_pass = params.param1 / 100.0

    # repeated passes over a linear ramp stand in for repeated passes over the audio
    v = _positive_half()
    for _ in range(params.repeats):
        idx = _leveller_index(v, limits)
        v = v * gains[idx] + add_on[idx]

    if fractional_pass > LEVELLER_MIN_FRACTION:
        idx = _leveller_index(v, limits)
        v = v + fractional_pass * (v * (gains[idx] - 1.0) + add_on[idx])

    table[STEPS:] = v
    copy_half_table(table)
    return 1.0


def rectifier(table: ArrayF, params: DistortionParams) -> float:
    amount = params.param1 / 50.0 - 1.0
    ramp = _positive_half()

    table[STEPS:] = ramp
    # negative half measured outwards from the origin
    table[STEPS - 1::-1] = ramp[1:] * amount
    return 1.0


def hard_limiter(table: ArrayF, params: DistortionParams) -> float:
    # wet/residual mix happens in the output stage
    return hard_clip(table, params)


TABLE_GENERATORS: dict[CurveType, Callable[[ArrayF, DistortionParams], float]] = {
    CurveType.HARD_CLIP: hard_clip,
    CurveType.SOFT_CLIP: soft_clip,
    CurveType.HALF_SIN: half_sin,
    CurveType.EXPONENTIAL: exponential,
    CurveType.LOGARITHMIC: logarithmic,
    CurveType.CUBIC: cubic,
    CurveType.EVEN_HARMONICS: even_harmonics,
    CurveType.SINE: sine,
    CurveType.LEVELLER: leveller,
    CurveType.RECTIFIER: rectifier,
    CurveType.HARD_LIMITER: hard_limiter,
}

# curves whose negative half is the mirror image of the positive half
SYMMETRIC_CURVES = frozenset(
    c for c in CurveType if c not in (CurveType.RECTIFIER, CurveType.EVEN_HARMONICS)
)


def allocate_table() -> ArrayF:
    """Fresh zeroed table buffer."""
    return np.zeros(TABLESIZE, dtype=np.float64)


def make_table(params: DistortionParams, out: ArrayF | None = None) -> CurveTable:
    """
    Build the lookup table for params.curve_type.

    Args:
        params: Parameter snapshot.
        out: Optional buffer of length TABLESIZE to fill in place.

    Returns:
        CurveTable wrapping the filled buffer and its makeup gain.
    """
    if out is None:
        out = allocate_table()
    elif out.shape != (TABLESIZE,):
        raise ValueError(f"Table buffer must have shape ({TABLESIZE},), got {out.shape}")

    generator = TABLE_GENERATORS[params.curve_type]
    makeup_gain = generator(out, params)
    return CurveTable(table=out, makeup_gain=float(makeup_gain))
