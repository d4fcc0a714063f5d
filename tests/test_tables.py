"""
Lookup-table generator tests.

Each curve is checked against its closed form at a few parameter settings,
plus the structural invariants: origin at zero, mirror symmetry for odd
curves, and the degenerate branches that guard against division by zero.
"""

import math

import numpy as np
import pytest
from numpy.testing import assert_allclose, assert_array_equal

from waveshaper import STEPS, TABLESIZE, TABLE_GENERATORS, CurveType, DistortionParams, make_table
from waveshaper.shaper import shape
from waveshaper.tables import (
    SYMMETRIC_CURVES,
    copy_half_table,
    leveller_segments,
    soft_clip_curve,
)

IDENTITY = np.arange(TABLESIZE) / STEPS - 1.0
POSITIVE = np.arange(STEPS + 1) / STEPS


def build(**kw):
    return make_table(DistortionParams(**kw))


class TestTableInvariants:
    """Properties shared by every curve."""

    def test_every_curve_has_a_generator(self):
        assert set(TABLE_GENERATORS) == set(CurveType)

    @pytest.mark.parametrize("curve", list(CurveType))
    @pytest.mark.parametrize("param1", [0.0, 37.0, 100.0])
    @pytest.mark.parametrize("param2", [0.0, 50.0, 100.0])
    def test_finite(self, curve, param1, param2):
        t = build(curve_type=curve, param1=param1, param2=param2, repeats=5)
        assert t.table.shape == (TABLESIZE,)
        assert np.all(np.isfinite(t.table))
        assert np.isfinite(t.makeup_gain)

    @pytest.mark.parametrize("curve", sorted(SYMMETRIC_CURVES))
    def test_origin_is_silent(self, curve):
        t = build(curve_type=curve)
        assert t.table[STEPS] == 0.0

    @pytest.mark.parametrize("curve", sorted(SYMMETRIC_CURVES))
    @pytest.mark.parametrize("param1", [10.0, 50.0, 90.0])
    def test_mirror_symmetry(self, curve, param1):
        table = build(curve_type=curve, param1=param1).table
        k = np.arange(STEPS + 1)
        assert_allclose(table[STEPS + k], -table[STEPS - k], rtol=0, atol=1e-15)

    def test_fills_buffer_in_place(self):
        buf = np.full(TABLESIZE, np.nan)
        result = make_table(DistortionParams(curve_type=CurveType.SINE), out=buf)
        assert result.table is buf
        assert np.all(np.isfinite(buf))

    def test_wrong_buffer_shape_raises(self):
        with pytest.raises(ValueError, match="shape"):
            make_table(DistortionParams(), out=np.zeros(10))

    def test_copy_half_table(self):
        table = np.zeros(TABLESIZE)
        table[STEPS:] = POSITIVE ** 2
        copy_half_table(table)
        assert table[0] == -1.0
        assert table[STEPS - 1] == -table[STEPS + 1]

    @pytest.mark.parametrize("curve", list(CurveType))
    def test_default_makeup_gain(self, curve):
        t = build(curve_type=curve)
        if curve in (CurveType.HARD_CLIP, CurveType.SOFT_CLIP, CurveType.HARD_LIMITER):
            assert t.makeup_gain > 1.0
        else:
            assert t.makeup_gain == 1.0


class TestHardClip:
    @pytest.fixture
    def params(self):
        return DistortionParams(curve_type=CurveType.HARD_CLIP, threshold_db=-6.0, param1=0.0)

    def test_makeup_gain(self, params):
        t = make_table(params)
        assert t.makeup_gain == pytest.approx(1.0 / params.threshold)

    def test_flat_beyond_threshold(self, params):
        t = make_table(params)
        threshold = params.threshold
        x = np.linspace(threshold + 2.0 / STEPS, 1.0, 500)
        assert_array_equal(shape(x, t.table), np.full_like(x, threshold))
        assert_array_equal(shape(-x, t.table), np.full_like(x, -threshold))

    def test_identity_below_threshold(self, params):
        t = make_table(params)
        edge = params.threshold - 1.0 / STEPS
        x = np.linspace(-edge, edge, 1001)
        assert_allclose(shape(x, t.table), x, rtol=0, atol=1e-12)

    def test_table_values(self, params):
        table = make_table(params).table
        threshold = params.threshold
        assert np.max(table) == threshold
        assert np.min(table) == -threshold

    def test_hard_limiter_reuses_hard_clip(self):
        clip = build(curve_type=CurveType.HARD_CLIP, threshold_db=-12.0)
        limiter = build(curve_type=CurveType.HARD_LIMITER, threshold_db=-12.0)
        assert_array_equal(clip.table, limiter.table)
        assert clip.makeup_gain == limiter.makeup_gain


class TestSoftClip:
    def test_identity_then_rolloff(self):
        p = DistortionParams(curve_type=CurveType.SOFT_CLIP, threshold_db=-12.0, param1=50.0)
        table = make_table(p).table
        threshold = p.threshold
        below = POSITIVE < threshold
        assert_array_equal(table[STEPS:][below], POSITIVE[below])

        amount = 2.0 ** 3.5
        above = ~below
        expected = threshold + (np.exp(amount * (threshold - POSITIVE[above])) - 1) / -amount
        assert_allclose(table[STEPS:][above], expected, rtol=1e-12)

    def test_makeup_gain_normalizes_peak(self):
        t = build(curve_type=CurveType.SOFT_CLIP, threshold_db=-30.0, param1=80.0)
        assert t.makeup_gain * t.table[-1] == pytest.approx(1.0)

    def test_monotonic(self):
        table = build(curve_type=CurveType.SOFT_CLIP, param1=100.0).table
        assert np.all(np.diff(table) >= 0)

    def test_continuous_at_threshold(self):
        assert soft_clip_curve(0.25, 0.25, 64.0) == pytest.approx(0.25)


class TestIteratedSineCurves:
    @pytest.mark.parametrize("curve", [CurveType.HALF_SIN, CurveType.SINE])
    def test_zero_amount_is_identity(self, curve):
        table = build(curve_type=curve, param1=0.0).table
        assert_allclose(table, IDENTITY, rtol=0, atol=1e-15)

    def test_half_sin_one_pass(self):
        table = build(curve_type=CurveType.HALF_SIN, param1=20.0).table
        assert_allclose(table[STEPS:], np.sin(POSITIVE * np.pi / 2), rtol=1e-12)

    def test_sine_one_pass(self):
        table = build(curve_type=CurveType.SINE, param1=20.0).table
        expected = (1 + np.sin(POSITIVE * np.pi - np.pi / 2)) / 2
        assert_allclose(table[STEPS:], expected, rtol=1e-12, atol=1e-15)

    def test_half_sin_fractional_pass_matches_scalar_loop(self):
        param1 = 47.0
        table = build(curve_type=CurveType.HALF_SIN, param1=param1).table

        iterations = math.floor(param1 / 20.0)
        fraction = param1 / 20.0 - iterations
        expected = []
        for n in range(STEPS + 1):
            v = n / STEPS
            for _ in range(iterations):
                v = math.sin(v * math.pi / 2)
            v += (math.sin(v * math.pi / 2) - v) * fraction
            expected.append(v)
        assert_allclose(table[STEPS:], expected, rtol=1e-12, atol=1e-15)

    def test_fraction_interpolates_between_counts(self):
        lo = build(curve_type=CurveType.HALF_SIN, param1=40.0).table
        mid = build(curve_type=CurveType.HALF_SIN, param1=50.0).table
        hi = build(curve_type=CurveType.HALF_SIN, param1=60.0).table
        inner = slice(STEPS + 1, TABLESIZE - 1)
        assert np.all(mid[inner] >= lo[inner])
        assert np.all(mid[inner] <= hi[inner])


class TestExponential:
    @pytest.mark.parametrize("param1", [0.0, 1.0, 50.0, 100.0])
    def test_unity_at_full_scale(self, param1):
        table = build(curve_type=CurveType.EXPONENTIAL, param1=param1).table
        assert table[-1] == pytest.approx(1.0)
        assert table[0] == pytest.approx(-1.0)

    def test_closed_form(self):
        table = build(curve_type=CurveType.EXPONENTIAL, param1=30.0).table
        amount = 10 ** (-30.0 / 20)
        expected = -1.0 / (1.0 - amount) * (amount ** POSITIVE - 1.0)
        assert_allclose(table[STEPS:], expected, rtol=1e-12, atol=1e-15)


class TestLogarithmic:
    def test_zero_amount_is_straight_line(self):
        table = build(curve_type=CurveType.LOGARITHMIC, param1=0.0).table
        assert not np.any(np.isnan(table))
        assert_array_equal(table[STEPS:], POSITIVE)

    def test_closed_form(self):
        table = build(curve_type=CurveType.LOGARITHMIC, param1=90.0).table
        expected = np.log(1 + 90.0 * POSITIVE) / np.log(1 + 90.0)
        assert_allclose(table[STEPS:], expected, rtol=1e-12, atol=1e-15)
        assert table[-1] == pytest.approx(1.0)


class TestCubic:
    def test_zero_amount_is_identity(self):
        table = build(curve_type=CurveType.CUBIC, param1=0.0, repeats=3).table
        assert_array_equal(table, IDENTITY)

    def test_full_amount_maps_one_to_one(self):
        # amount = sqrt(3) > 1 so the gain uses f(1) = 2/3
        table = build(curve_type=CurveType.CUBIC, param1=100.0, repeats=0).table
        amount = math.sqrt(3.0)
        x = amount * IDENTITY
        expected = 1.5 * (x - x ** 3 / 3)
        assert_allclose(table, expected, rtol=1e-12, atol=1e-14)
        assert table[-1] == pytest.approx(0.0, abs=1e-12)

    def test_partial_amount_reaches_unity(self):
        table = build(curve_type=CurveType.CUBIC, param1=50.0, repeats=0).table
        assert table[-1] == pytest.approx(1.0)

    def test_repeats_apply_extra_passes(self):
        amount = 50.0 * math.sqrt(3.0) / 100.0
        gain = 1.0 / (amount - amount ** 3 / 3)
        once = build(curve_type=CurveType.CUBIC, param1=50.0, repeats=0).table
        twice = build(curve_type=CurveType.CUBIC, param1=50.0, repeats=1).table
        y = once * amount
        assert_allclose(twice, gain * (y - y ** 3 / 3), rtol=1e-12, atol=1e-14)

    @pytest.mark.parametrize("repeats", [0, 1, 5])
    def test_exactly_odd_with_repeats(self, repeats):
        table = build(curve_type=CurveType.CUBIC, param1=90.0, repeats=repeats).table
        k = np.arange(STEPS + 1)
        assert_array_equal(table[STEPS - k], -table[STEPS + k])


class TestEvenHarmonics:
    def test_closed_form(self):
        table = build(curve_type=CurveType.EVEN_HARMONICS, param1=40.0, param2=30.0).table
        amount, C = -0.4, 3.0
        x = IDENTITY
        expected = (1 + amount) * x - x * (amount / np.tanh(C)) * np.tanh(C * x)
        assert_allclose(table, expected, rtol=1e-12, atol=1e-15)

    def test_asymmetric(self):
        table = build(curve_type=CurveType.EVEN_HARMONICS, param1=50.0).table
        k = np.arange(1, STEPS + 1)
        assert np.max(np.abs(table[STEPS + k] + table[STEPS - k])) > 0.1

    def test_zero_brightness_is_finite(self):
        table = build(curve_type=CurveType.EVEN_HARMONICS, param1=100.0, param2=0.0).table
        assert np.all(np.isfinite(table))

    def test_zero_amount_is_identity(self):
        table = build(curve_type=CurveType.EVEN_HARMONICS, param1=0.0).table
        assert_allclose(table, IDENTITY, rtol=0, atol=1e-15)


class TestLeveller:
    @staticmethod
    def scalar_reference(noise_floor_db, repeats, param1):
        """One value at a time, searching breakpoints from the top down."""
        limits, gains, add_on = leveller_segments(noise_floor_db)
        fraction = param1 / 100.0

        def segment(v):
            index = len(limits) - 1
            i = index
            while i >= 0 and v < limits[i]:
                index = i
                i -= 1
            return index

        out = []
        for n in range(STEPS + 1):
            v = n / STEPS
            for _ in range(repeats):
                i = segment(v)
                v = v * gains[i] + add_on[i]
            if fraction > 0.001:
                i = segment(v)
                v += fraction * (v * (gains[i] - 1) + add_on[i])
            out.append(v)
        return np.array(out)

    @pytest.mark.parametrize("repeats", [0, 1, 3, 5])
    @pytest.mark.parametrize("param1", [0.0, 25.0, 100.0])
    @pytest.mark.parametrize("noise_floor_db", [-80.0, -70.0, -20.0])
    def test_matches_scalar_reference(self, repeats, param1, noise_floor_db):
        table = build(
            curve_type=CurveType.LEVELLER,
            repeats=repeats,
            param1=param1,
            noise_floor_db=noise_floor_db,
        ).table
        expected = self.scalar_reference(noise_floor_db, repeats, param1)
        assert_allclose(table[STEPS:], expected, rtol=1e-12, atol=1e-15)

    def test_segments_are_continuous(self):
        limits, gains, add_on = leveller_segments(-70.0)
        for i in range(len(limits) - 1):
            left = limits[i] * gains[i] + add_on[i]
            right = limits[i] * gains[i + 1] + add_on[i + 1]
            assert left == pytest.approx(right)

    def test_no_passes_is_identity(self):
        table = build(curve_type=CurveType.LEVELLER, repeats=0, param1=0.0).table
        assert_array_equal(table[STEPS:], POSITIVE)

    def test_tiny_fraction_skipped(self):
        table = build(curve_type=CurveType.LEVELLER, repeats=0, param1=0.05).table
        assert_array_equal(table[STEPS:], POSITIVE)

    def test_more_passes_level_harder(self):
        light = build(curve_type=CurveType.LEVELLER, repeats=1, param1=0.0).table
        heavy = build(curve_type=CurveType.LEVELLER, repeats=5, param1=0.0).table
        # quiet-but-audible material is lifted further with more passes
        idx = STEPS + int(0.2 * STEPS)
        assert heavy[idx] > light[idx] > 0.2

    def test_monotonic(self):
        table = build(curve_type=CurveType.LEVELLER, repeats=5, param1=100.0).table
        assert np.all(np.diff(table) >= 0)


class TestRectifier:
    def test_half_wave(self):
        table = build(curve_type=CurveType.RECTIFIER, param1=50.0).table
        assert_array_equal(table[STEPS:], POSITIVE)
        assert_array_equal(table[:STEPS], np.zeros(STEPS))

    def test_full_wave(self):
        table = build(curve_type=CurveType.RECTIFIER, param1=100.0).table
        k = np.arange(STEPS + 1)
        assert_array_equal(table[STEPS - k], table[STEPS + k])

    def test_zero_amount_passes_through(self):
        table = build(curve_type=CurveType.RECTIFIER, param1=0.0).table
        assert_allclose(table, IDENTITY, rtol=0, atol=1e-15)

    def test_origin(self):
        table = build(curve_type=CurveType.RECTIFIER, param1=75.0).table
        assert table[STEPS] == 0.0
        assert table[STEPS - 1] == pytest.approx(0.5 / STEPS)
