"""
Factory presets: named parameter bundles for common distortion settings.
"""

from __future__ import annotations

from waveshaper.params import CurveType as C
from waveshaper.params import DistortionParams


def _p(curve, dc_block, threshold_db, noise_floor_db, param1, param2, repeats):
    return DistortionParams(curve, dc_block, threshold_db, noise_floor_db, param1, param2, repeats)


#                                                    curve             DC     thresh  floor  p1     p2    rep
FACTORY_PRESETS: tuple[tuple[str, DistortionParams], ...] = (
    ("Hard clip -12dB, 80% make-up gain",     _p(C.HARD_CLIP,      False, -12.0, -70.0,   0.0, 80.0, 0)),
    ("Soft clip -12dB, 80% make-up gain",     _p(C.SOFT_CLIP,      False, -12.0, -70.0,  50.0, 80.0, 0)),
    ("Fuzz Box",                              _p(C.SOFT_CLIP,      False, -30.0, -70.0,  80.0, 80.0, 0)),
    ("Walkie-talkie",                         _p(C.SOFT_CLIP,      False, -50.0, -70.0,  60.0, 80.0, 0)),
    ("Blues drive sustain",                   _p(C.HALF_SIN,       False,  -6.0, -70.0,  30.0, 80.0, 0)),
    ("Light Crunch Overdrive",                _p(C.EXPONENTIAL,    False,  -6.0, -70.0,  20.0, 80.0, 0)),
    ("Heavy Overdrive",                       _p(C.LOGARITHMIC,    False,  -6.0, -70.0,  90.0, 80.0, 0)),
    ("3rd Harmonic (Perfect Fifth)",          _p(C.CUBIC,          False,  -6.0, -70.0, 100.0, 60.0, 0)),
    ("Valve Overdrive",                       _p(C.EVEN_HARMONICS, True,   -6.0, -70.0,  30.0, 40.0, 0)),
    ("2nd Harmonic (Octave)",                 _p(C.EVEN_HARMONICS, True,   -6.0, -70.0,  50.0,  0.0, 0)),
    ("Gated Expansion Distortion",            _p(C.SINE,           False,  -6.0, -70.0,  30.0, 80.0, 0)),
    ("Leveller, Light, -70dB noise floor",    _p(C.LEVELLER,       False,  -6.0, -70.0,   0.0, 50.0, 1)),
    ("Leveller, Moderate, -70dB noise floor", _p(C.LEVELLER,       False,  -6.0, -70.0,   0.0, 50.0, 2)),
    ("Leveller, Heavy, -70dB noise floor",    _p(C.LEVELLER,       False,  -6.0, -70.0,   0.0, 50.0, 3)),
    ("Leveller, Heavier, -70dB noise floor",  _p(C.LEVELLER,       False,  -6.0, -70.0,   0.0, 50.0, 4)),
    ("Leveller, Heaviest, -70dB noise floor", _p(C.LEVELLER,       False,  -6.0, -70.0,   0.0, 50.0, 5)),
    ("Half-wave Rectifier",                   _p(C.RECTIFIER,      False,  -6.0, -70.0,  50.0, 50.0, 0)),
    ("Full-wave Rectifier",                   _p(C.RECTIFIER,      False,  -6.0, -70.0, 100.0, 50.0, 0)),
    ("Full-wave Rectifier (DC blocked)",      _p(C.RECTIFIER,      True,   -6.0, -70.0, 100.0, 50.0, 0)),
    ("Percussion Limiter",                    _p(C.HARD_LIMITER,   False, -12.0, -70.0, 100.0, 30.0, 0)),
)


def preset_names() -> list[str]:
    """Names of the factory presets, in order."""
    return [name for name, _ in FACTORY_PRESETS]


def load_preset(preset: int | str) -> DistortionParams:
    """
    Look up a factory preset by index or exact name.

    Raises:
        IndexError: If an integer index is out of range.
        KeyError: If no preset has the given name.
    """
    if isinstance(preset, int):
        if preset < 0 or preset >= len(FACTORY_PRESETS):
            raise IndexError(f"preset index must be in [0, {len(FACTORY_PRESETS) - 1}], got {preset}")
        return FACTORY_PRESETS[preset][1]

    for name, params in FACTORY_PRESETS:
        if name == preset:
            return params
    raise KeyError(f"Unknown preset: {preset!r}")
