"""
Unit Tests for Multi-Cylinder Module
Cylinder phasing, per-cylinder state, torque/power and the cycle sweep.
"""

import dataclasses
import math

import numpy as np
import pytest

from four_stroke_sim.engine_config import (
    CYLINDER_PHASE_OFFSETS,
    DEFAULT_SETTINGS,
    FIRING_ORDER,
    InvalidCylinderId,
    StrokePhase,
)
from four_stroke_sim.multi_cylinder_simulator import (
    Cylinder,
    CylinderState,
    EngineFrame,
    MultiCylinderSimulator,
    crank_lever_factor,
    cylinder_phase_offset,
    cylinder_state,
    engine_frame,
    engine_states,
    local_crank_angle,
    power_hp,
    torque,
    torque_from_states,
)
from four_stroke_sim.thermodynamics import pressure

GLOBAL_GRID = np.arange(0.0, 720.0, 0.5)


class TestCylinderPhasing:

    def test_fixed_offsets(self):
        assert [cylinder_phase_offset(i) for i in (1, 2, 3, 4)] == [
            360.0,
            540.0,
            180.0,
            0.0,
        ]

    @pytest.mark.parametrize("bad_id", [0, 5, -1, 42, True])
    def test_invalid_cylinder_id(self, bad_id):
        with pytest.raises(InvalidCylinderId):
            cylinder_phase_offset(bad_id)

    def test_invalid_cylinder_id_is_value_error(self):
        with pytest.raises(ValueError):
            cylinder_state(7, 0.0, DEFAULT_SETTINGS)

    def test_local_angles_at_zero(self):
        assert local_crank_angle(1, 0.0) == 360.0
        assert local_crank_angle(2, 0.0) == 540.0
        assert local_crank_angle(3, 0.0) == 180.0
        assert local_crank_angle(4, 0.0) == 0.0

    def test_local_angle_wraps(self):
        assert local_crank_angle(2, 300.0) == pytest.approx(120.0)
        assert local_crank_angle(4, -90.0) == pytest.approx(630.0)

    def test_cylinder_object(self):
        cyl = Cylinder(3)
        assert cyl.crank_phase_deg == 180.0
        assert cyl.local_angle(200.0) == pytest.approx(380.0)
        assert cyl.firing_angle() == 180.0
        assert "Cylinder(3" in repr(cyl)

    def test_cylinder_object_rejects_bad_id(self):
        with pytest.raises(InvalidCylinderId):
            Cylinder(0)

    def test_firing_angles_follow_firing_order(self):
        angles = {i: Cylinder(i).firing_angle() for i in (1, 2, 3, 4)}
        assert angles == {1: 0.0, 3: 180.0, 4: 360.0, 2: 540.0}
        assert tuple(sorted(angles, key=angles.get)) == FIRING_ORDER


class TestCylinderState:

    def test_cylinder_one_at_zero(self):
        st = cylinder_state(1, 0.0, DEFAULT_SETTINGS)
        assert st.id == 1
        assert st.phase is StrokePhase.POWER
        assert st.local_crank_angle == 360.0
        assert st.piston_position == pytest.approx(0.0, abs=1e-12)
        assert st.pressure == pytest.approx(10.5)

    def test_phases_at_zero(self):
        phases = [s.phase for s in engine_states(0.0, DEFAULT_SETTINGS)]
        assert phases == [
            StrokePhase.POWER,
            StrokePhase.EXHAUST,
            StrokePhase.COMPRESSION,
            StrokePhase.INTAKE,
        ]

    def test_mixture_density_only_in_intake(self):
        states = engine_states(0.0, DEFAULT_SETTINGS)
        densities = {s.id: s.fuel_air_mixture_density for s in states}
        assert densities == {1: 0.0, 2: 0.0, 3: 0.0, 4: pytest.approx(0.4)}

    def test_state_is_frozen(self):
        st = cylinder_state(2, 45.0, DEFAULT_SETTINGS)
        with pytest.raises(dataclasses.FrozenInstanceError):
            st.pressure = 99.0

    def test_state_fields(self):
        names = {f.name for f in dataclasses.fields(CylinderState)}
        assert names == {
            "id",
            "phase",
            "piston_position",
            "local_crank_angle",
            "pressure",
            "temperature",
            "intake_valve_lift",
            "exhaust_valve_lift",
            "spark_active",
            "fuel_air_mixture_density",
            "combustion_progress",
        }

    def test_global_angle_normalised(self):
        a = cylinder_state(3, 100.0, DEFAULT_SETTINGS)
        b = cylinder_state(3, 100.0 + 720.0 * 3, DEFAULT_SETTINGS)
        assert a.local_crank_angle == pytest.approx(b.local_crank_angle)
        assert a.phase is b.phase

    def test_exactly_one_cylinder_in_power_with_combustion(self):
        for angle in GLOBAL_GRID:
            states = engine_states(float(angle), DEFAULT_SETTINGS)
            power = [s for s in states if s.phase is StrokePhase.POWER]
            assert len(power) == 1, f"at {angle}°"
            assert power[0].combustion_progress > 0.0

    def test_every_phase_present_every_instant(self):
        for angle in GLOBAL_GRID[::10]:
            phases = {s.phase for s in engine_states(float(angle), DEFAULT_SETTINGS)}
            assert phases == set(StrokePhase)

    def test_sparks_fire_in_firing_order(self):
        sparks = []
        for angle in np.arange(-90.0, 630.0, 1.0):
            for s in engine_states(float(angle), DEFAULT_SETTINGS):
                if s.spark_active and s.id not in sparks:
                    sparks.append(s.id)
        assert tuple(sparks) == FIRING_ORDER


class TestTorque:

    def test_zero_at_power_tdc(self):
        assert torque(0.0, DEFAULT_SETTINGS) == 0.0

    def test_mid_power_stroke(self):
        # Cylinder 1 at local 450°: lever factor 1, only contributor
        expected = pressure(450.0, DEFAULT_SETTINGS) * 1.0 * 0.4
        assert torque(90.0, DEFAULT_SETTINGS) == pytest.approx(expected)

    def test_closed_throttle_gives_zero(self):
        closed = DEFAULT_SETTINGS.updated(throttle=0.0)
        for angle in GLOBAL_GRID:
            assert torque(float(angle), closed) == 0.0

    def test_non_negative(self):
        for angle in GLOBAL_GRID:
            assert torque(float(angle), DEFAULT_SETTINGS) >= 0.0

    def test_periodic(self):
        for angle in [12.5, 90.0, 300.0]:
            assert torque(angle + 720.0, DEFAULT_SETTINGS) == pytest.approx(
                torque(angle, DEFAULT_SETTINGS)
            )

    def test_crank_lever_factor(self):
        assert crank_lever_factor(360.0) == 0.0
        assert crank_lever_factor(450.0) == pytest.approx(1.0)
        assert crank_lever_factor(405.0) == pytest.approx(math.sin(math.pi / 4))
        assert crank_lever_factor(100.0) == 0.0
        assert crank_lever_factor(600.0) == 0.0

    def test_from_states_matches_torque(self):
        states = engine_states(123.0, DEFAULT_SETTINGS)
        assert torque_from_states(states, DEFAULT_SETTINGS) == torque(
            123.0, DEFAULT_SETTINGS
        )

    def test_more_throttle_more_torque(self):
        full = DEFAULT_SETTINGS.updated(throttle=100.0)
        assert torque(90.0, full) > torque(90.0, DEFAULT_SETTINGS)

    def test_power_hp(self):
        assert power_hp(5252.0, 1.0) == pytest.approx(1.0)
        assert power_hp(2.0, 2626.0) == pytest.approx(1.0)
        assert power_hp(0.0, 8000.0) == 0.0


class TestEngineFrame:

    def test_frame_is_consistent(self):
        frame = engine_frame(90.0, DEFAULT_SETTINGS)
        assert isinstance(frame, EngineFrame)
        assert [s.id for s in frame.states] == [1, 2, 3, 4]
        assert frame.torque == pytest.approx(torque(90.0, DEFAULT_SETTINGS))
        assert frame.power_hp == pytest.approx(frame.torque * 800.0 / 5252.0)
        for s in frame.states:
            assert s.local_crank_angle == pytest.approx(
                (90.0 + CYLINDER_PHASE_OFFSETS[s.id]) % 720.0
            )

    def test_frame_normalises_angle(self):
        assert engine_frame(-30.0, DEFAULT_SETTINGS).global_crank_angle == pytest.approx(
            690.0
        )

    def test_firing_cylinder(self):
        assert engine_frame(10.0, DEFAULT_SETTINGS).firing_cylinder == 1
        assert engine_frame(190.0, DEFAULT_SETTINGS).firing_cylinder == 3
        assert engine_frame(370.0, DEFAULT_SETTINGS).firing_cylinder == 4
        assert engine_frame(550.0, DEFAULT_SETTINGS).firing_cylinder == 2

    def test_cylinder_lookup(self):
        frame = engine_frame(0.0, DEFAULT_SETTINGS)
        assert frame.cylinder(4).phase is StrokePhase.INTAKE
        with pytest.raises(InvalidCylinderId):
            frame.cylinder(5)


class TestMultiCylinderSimulator:

    def setup_method(self):
        self.sim = MultiCylinderSimulator(DEFAULT_SETTINGS, angular_resolution=1.0)
        self.results = self.sim.simulate_engine()

    def test_invalid_resolution(self):
        with pytest.raises(ValueError):
            MultiCylinderSimulator(DEFAULT_SETTINGS, angular_resolution=0.0)

    def test_array_shapes(self):
        n = 721
        assert self.results.crank_angles_deg.shape == (n,)
        assert self.results.total_torque.shape == (n,)
        assert self.results.total_power.shape == (n,)
        for cyl_id in (1, 2, 3, 4):
            assert self.results.cylinder_pressure[cyl_id].shape == (n,)
            assert len(self.results.cylinder_phases[cyl_id]) == n

    def test_firing_sequence(self):
        assert tuple(self.sim.firing_sequence()) == FIRING_ORDER
        assert self.results.firing_angles == {1: 0.0, 2: 540.0, 3: 180.0, 4: 360.0}

    def test_summary(self):
        r = self.results
        assert r.mean_torque > 0.0
        assert r.peak_torque >= r.mean_torque
        assert r.total_torque[0] == 0.0
        assert r.torque_variation > 0.0
        assert r.mean_power_hp == pytest.approx(r.mean_torque * 800.0 / 5252.0)

    def test_torque_repeats_every_firing_interval(self):
        tt = self.results.total_torque
        np.testing.assert_allclose(tt[:180], tt[180:360], atol=1e-9)
        np.testing.assert_allclose(tt[:180], tt[540:720], atol=1e-9)

    def test_sweep_matches_pointwise(self):
        for i in (0, 45, 250, 719):
            angle = float(self.results.crank_angles_deg[i])
            assert self.results.total_torque[i] == pytest.approx(
                torque(angle, DEFAULT_SETTINGS)
            )

    def test_time_axis(self):
        # 720° at 800 rpm = 0.15 s
        assert self.results.time[-1] == pytest.approx(0.15)

    def test_closed_throttle_sweep(self):
        sim = MultiCylinderSimulator(DEFAULT_SETTINGS.updated(throttle=0.0), 5.0)
        r = sim.simulate_engine()
        assert r.mean_torque == 0.0
        assert r.torque_variation == 0.0


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
