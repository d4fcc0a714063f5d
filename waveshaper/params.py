"""
Parameter set for the waveshaping distortion engine.

A DistortionParams instance is an immutable snapshot of the seven
user-controlled values. The UI/automation layer owns it and replaces it
when a control moves; the engine only reads it, once per processed block.

Domains:
- threshold_db:   [-100, 0] dB
- noise_floor_db: [-80, -20] dB
- param1, param2: [0, 100] (meaning depends on curve_type)
- repeats:        integer [0, 5]
"""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from enum import IntEnum

import numpy as np


class CurveType(IntEnum):
    """Transfer curve families, in factory-preset index order."""

    HARD_CLIP = 0
    SOFT_CLIP = 1
    HALF_SIN = 2
    EXPONENTIAL = 3
    LOGARITHMIC = 4
    CUBIC = 5
    EVEN_HARMONICS = 6
    SINE = 7
    LEVELLER = 8
    RECTIFIER = 9
    HARD_LIMITER = 10

    @property
    def label(self) -> str:
        return _CURVE_LABELS[self]


_CURVE_LABELS = {
    CurveType.HARD_CLIP: "Hard Clipping",
    CurveType.SOFT_CLIP: "Soft Clipping",
    CurveType.HALF_SIN: "Soft Overdrive",
    CurveType.EXPONENTIAL: "Medium Overdrive",
    CurveType.LOGARITHMIC: "Hard Overdrive",
    CurveType.CUBIC: "Cubic Curve (odd harmonics)",
    CurveType.EVEN_HARMONICS: "Even Harmonics",
    CurveType.SINE: "Expand and Compress",
    CurveType.LEVELLER: "Leveller",
    CurveType.RECTIFIER: "Rectifier Distortion",
    CurveType.HARD_LIMITER: "Hard Limiter 1413",
}

# (min, max) per numeric field
THRESHOLD_DB_RANGE = (-100.0, 0.0)
NOISE_FLOOR_DB_RANGE = (-80.0, -20.0)
PARAM_RANGE = (0.0, 100.0)
REPEATS_RANGE = (0, 5)

_RANGES = {
    "threshold_db": THRESHOLD_DB_RANGE,
    "noise_floor_db": NOISE_FLOOR_DB_RANGE,
    "param1": PARAM_RANGE,
    "param2": PARAM_RANGE,
    "repeats": REPEATS_RANGE,
}


def db_to_linear(value_db: float) -> float:
    """Convert decibels to linear amplitude."""
    return float(10.0 ** (value_db / 20.0))


def linear_to_db(value: float) -> float:
    """Convert linear amplitude to decibels."""
    return float(20.0 * np.log10(value))


MIN_THRESHOLD_LINEAR = db_to_linear(THRESHOLD_DB_RANGE[0])


@dataclass(frozen=True)
class DistortionParams:
    """
    Snapshot of the distortion controls.

    Attributes:
        curve_type: Transfer curve used to build the lookup table.
        dc_block: Apply the rolling-average DC blocker after shaping.
        threshold_db: Clipping level / limit (HardClip, SoftClip, HardLimiter).
        noise_floor_db: Lowest Leveller breakpoint.
        param1: Drive, hardness, distortion amount or wet level.
        param2: Make-up gain, output level, brightness or residual level.
        repeats: Reinforcement passes for Cubic and Leveller.

    Raises:
        ValueError: If any field lies outside its documented domain.
    """

    curve_type: CurveType = CurveType.HARD_CLIP
    dc_block: bool = False
    threshold_db: float = -6.0
    noise_floor_db: float = -70.0
    param1: float = 50.0
    param2: float = 50.0
    repeats: int = 1

    def __post_init__(self):
        try:
            curve = CurveType(self.curve_type)
        except ValueError:
            raise ValueError(
                f"curve_type must be one of 0..{len(CurveType) - 1}, got {self.curve_type!r}"
            ) from None
        object.__setattr__(self, "curve_type", curve)
        object.__setattr__(self, "dc_block", bool(self.dc_block))

        if isinstance(self.repeats, float) and not self.repeats.is_integer():
            raise ValueError(f"repeats must be an integer, got {self.repeats}")
        object.__setattr__(self, "repeats", int(self.repeats))

        for name, (lo, hi) in _RANGES.items():
            value = getattr(self, name)
            if not np.isfinite(value):
                raise ValueError(f"{name} must be finite, got {value}")
            if value < lo or value > hi:
                raise ValueError(f"{name} must be in [{lo}, {hi}], got {value}")
            if name != "repeats":
                object.__setattr__(self, name, float(value))

    @classmethod
    def clamped(cls, **values) -> DistortionParams:
        """Build a parameter set after clamping numeric fields into their domains."""
        for name, (lo, hi) in _RANGES.items():
            if name in values:
                v = min(max(values[name], lo), hi)
                values[name] = int(round(v)) if name == "repeats" else float(v)
        return cls(**values)

    @property
    def threshold(self) -> float:
        """Linear threshold, never below the -100 dB floor."""
        return max(MIN_THRESHOLD_LINEAR, db_to_linear(self.threshold_db))

    def table_key(self) -> tuple:
        """Values the lookup table depends on (dc_block is not one of them)."""
        return (
            self.curve_type,
            self.threshold_db,
            self.noise_floor_db,
            self.param1,
            self.param2,
            self.repeats,
        )

    def with_changes(self, **changes) -> DistortionParams:
        """Return a validated copy with some fields replaced."""
        return replace(self, **changes)

    def to_dict(self) -> dict:
        """Export fields as a plain dictionary."""
        return {f.name: getattr(self, f.name) for f in fields(self)}
