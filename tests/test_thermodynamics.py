"""
Thermodynamics Test Suite
Pressure, temperature, spark and combustion-progress models.

Test categories
---------------
TestPressure            : per-stroke formulas, peak, ordering
TestTemperature         : per-stroke formulas, independence from settings
TestSparkAndCombustion  : spark window, burn ramp
"""

import numpy as np
import pytest

from four_stroke_sim.engine_config import DEFAULT_SETTINGS, EngineSettings
from four_stroke_sim.thermodynamics import (
    COMBUSTION_DURATION_DEGREES,
    SPARK_WINDOW_DEGREES,
    combustion_progress,
    peak_pressure,
    pressure,
    spark_active,
    spark_angle,
    temperature,
)


def sweep(fn, start, stop, settings, step=0.5):
    """Evaluate ``fn`` on [start, stop) at ``step`` degrees."""
    return np.array([fn(float(a), settings) for a in np.arange(start, stop, step)])


# ── Pressure ──────────────────────────────────────────────────────────────────


class TestPressure:

    def setup_method(self):
        self.s = DEFAULT_SETTINGS

    def test_peak_pressure(self):
        assert peak_pressure(self.s) == pytest.approx(10.5 * 3 * 0.4)

    def test_intake_vacuum_scales_with_throttle(self):
        assert pressure(90.0, self.s) == pytest.approx(0.88)
        wide_open = self.s.updated(throttle=100.0)
        assert pressure(90.0, wide_open) == pytest.approx(1.0)

    def test_compression_start_is_atmospheric(self):
        assert pressure(180.0, self.s) == pytest.approx(1.0)

    def test_mid_compression_between_one_and_cr(self):
        p = pressure(270.0, self.s)
        assert 1.0 < p < 10.5
        assert p == pytest.approx(1.0 + 9.5 * 0.5**1.3)

    def test_compression_rises_monotonically(self):
        p = sweep(pressure, 180.0, 360.0, self.s)
        assert np.all(np.diff(p) > 0.0)

    def test_power_start_equals_compression_ratio(self):
        assert pressure(360.0, self.s) == 10.5

    def test_combustion_rise(self):
        assert pressure(369.0, self.s) == pytest.approx(10.5 + (12.6 - 10.5) * 0.5)
        assert pressure(378.0, self.s) == pytest.approx(12.6)

    def test_expansion_decay(self):
        p = sweep(pressure, 378.0, 540.0, self.s)
        assert np.all(np.diff(p) < 0.0)
        assert pressure(539.9, self.s) < 0.1

    def test_exhaust_blowdown(self):
        assert pressure(540.0, self.s) == pytest.approx(2.5)
        assert pressure(630.0, self.s) == pytest.approx(1.75)
        assert pressure(719.9, self.s) == pytest.approx(1.0, abs=2e-3)

    def test_closed_throttle_is_non_negative(self):
        closed = self.s.updated(throttle=0.0)
        p = sweep(pressure, 0.0, 720.0, closed)
        assert np.all(p >= 0.0)
        assert pressure(450.0, closed) == 0.0

    @pytest.mark.parametrize("throttle", [1.0, 20.0, 40.0, 75.0, 100.0])
    def test_stroke_ordering(self, throttle):
        s = self.s.updated(throttle=throttle)
        intake_max = sweep(pressure, 0.0, 180.0, s).max()
        compression_max = sweep(pressure, 180.0, 360.0, s).max()
        power_max = sweep(pressure, 360.0, 540.0, s).max()
        assert power_max >= compression_max > intake_max

    def test_angle_is_normalised(self):
        assert pressure(270.0 + 720.0, self.s) == pytest.approx(pressure(270.0, self.s))
        assert pressure(-450.0, self.s) == pytest.approx(pressure(270.0, self.s))

    def test_air_fuel_ratio_not_used(self):
        rich = self.s.updated(air_fuel_ratio=11.0)
        for deg in [90.0, 270.0, 370.0, 450.0, 600.0]:
            assert pressure(deg, rich) == pressure(deg, self.s)


# ── Temperature ───────────────────────────────────────────────────────────────


class TestTemperature:

    def setup_method(self):
        self.s = DEFAULT_SETTINGS

    def test_per_stroke_values(self):
        assert temperature(45.0, self.s) == 0.2
        assert temperature(270.0, self.s) == pytest.approx(0.35)
        assert temperature(360.0, self.s) == pytest.approx(0.5)
        assert temperature(387.0, self.s) == pytest.approx(1.0)
        assert temperature(540.0, self.s) == pytest.approx(0.4)
        assert temperature(630.0, self.s) == pytest.approx(0.2)

    def test_peak_is_one(self):
        t = sweep(temperature, 0.0, 720.0, self.s, step=0.25)
        assert t.max() == pytest.approx(1.0)
        assert t.min() >= 0.0

    def test_independent_of_settings(self):
        other = EngineSettings(throttle=100.0, compression_ratio=14.0, rpm=6000.0)
        for deg in np.arange(0.0, 720.0, 7.5):
            assert temperature(float(deg), other) == temperature(float(deg), self.s)


# ── Spark & combustion ────────────────────────────────────────────────────────


class TestSparkAndCombustion:

    def setup_method(self):
        self.s = DEFAULT_SETTINGS

    def test_spark_angle(self):
        assert spark_angle(self.s) == 345.0

    def test_spark_window_inclusive(self):
        assert not spark_active(344.9, self.s)
        assert spark_active(345.0, self.s)
        assert spark_active(350.0, self.s)
        assert spark_active(355.0, self.s)
        assert not spark_active(355.1, self.s)

    def test_spark_window_width(self):
        assert SPARK_WINDOW_DEGREES == 10.0
        on = [a for a in np.arange(0.0, 720.0, 0.5) if spark_active(float(a), self.s)]
        assert min(on) == 345.0
        assert max(on) == 355.0

    def test_spark_follows_advance(self):
        retarded = self.s.updated(ignition_advance=0.0)
        assert spark_active(360.0, retarded)
        assert spark_active(370.0, retarded)
        assert not spark_active(350.0, retarded)

    def test_spark_normalises_angle(self):
        assert spark_active(345.0 + 1440.0, self.s)

    def test_combustion_zero_before_spark(self):
        assert combustion_progress(100.0, self.s) == 0.0
        assert combustion_progress(344.0, self.s) == 0.0

    def test_combustion_linear_burn(self):
        assert combustion_progress(345.0, self.s) == 0.0
        assert combustion_progress(375.0, self.s) == pytest.approx(0.5)
        assert combustion_progress(345.0 + COMBUSTION_DURATION_DEGREES, self.s) == 1.0

    def test_combustion_complete_until_end_of_power(self):
        assert combustion_progress(500.0, self.s) == 1.0
        assert combustion_progress(540.0, self.s) == 1.0
        assert combustion_progress(541.0, self.s) == 0.0
        assert combustion_progress(700.0, self.s) == 0.0

    def test_combustion_bounded(self):
        for advance in [0.0, 15.0, 45.0]:
            s = self.s.updated(ignition_advance=advance)
            c = sweep(combustion_progress, 0.0, 720.0, s)
            assert c.min() >= 0.0 and c.max() <= 1.0


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
