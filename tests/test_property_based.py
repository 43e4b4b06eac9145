from hypothesis import given, settings
from hypothesis.strategies import booleans, floats, integers, sampled_from

from four_stroke_sim.engine_config import CYLINDER_IDS, DEFAULT_SETTINGS, StrokePhase
from four_stroke_sim.kinematics import (
    SliderCrank,
    normalize_angle,
    phase_progress,
    stroke_phase,
    valve_lift,
)
from four_stroke_sim.multi_cylinder_simulator import engine_states, torque
from four_stroke_sim.thermodynamics import (
    combustion_progress,
    pressure,
    temperature,
)

# Property tests for numerical stability

angles = floats(min_value=-1e4, max_value=1e4, allow_nan=False)
# Multiples of 1/8° keep θ + 720·k exact in binary floating point
dyadic_angles = integers(min_value=-8 * 720, max_value=8 * 720).map(lambda m: m * 0.125)


@given(angle=angles)
@settings(max_examples=1000)
def test_normalized_angle_in_cycle(angle):
    wrapped = normalize_angle(angle)
    assert 0.0 <= wrapped < 720.0


@given(angle=dyadic_angles, k=integers(min_value=-5, max_value=5))
@settings(max_examples=500)
def test_stroke_phase_periodic(angle, k):
    assert stroke_phase(angle + 720.0 * k) is stroke_phase(angle)


@given(angle=angles)
@settings(max_examples=500)
def test_phase_progress_in_unit_interval(angle):
    phase, progress = phase_progress(angle)
    assert isinstance(phase, StrokePhase)
    assert 0.0 <= progress < 1.0


@given(
    angle=angles,
    rod_ratio=floats(min_value=1.05, max_value=10.0),
)
@settings(max_examples=1000)
def test_piston_position_bounds(angle, rod_ratio):
    pos = SliderCrank(rod_ratio).position(angle)

    # Small epsilon for floating point inaccuracy near the dead centres
    assert pos >= -1e-9
    assert pos <= 1.0 + 1e-9


@given(angle=angles, overlap=floats(min_value=0.0, max_value=60.0))
@settings(max_examples=1000)
def test_valve_lift_bounds(angle, overlap):
    lifts = valve_lift(angle, DEFAULT_SETTINGS.updated(valve_overlap=overlap))
    assert 0.0 <= lifts.intake <= 1.0
    assert 0.0 <= lifts.exhaust <= 1.0


@given(
    angle=angles,
    throttle=floats(min_value=0.0, max_value=100.0),
    compression_ratio=floats(min_value=7.0, max_value=14.0),
    advance=floats(min_value=0.0, max_value=45.0),
)
@settings(max_examples=1000)
def test_gas_state_bounds(angle, throttle, compression_ratio, advance):
    engine = DEFAULT_SETTINGS.updated(
        throttle=throttle,
        compression_ratio=compression_ratio,
        ignition_advance=advance,
    )
    assert pressure(angle, engine) >= 0.0
    assert 0.0 <= temperature(angle, engine) <= 1.0
    assert 0.0 <= combustion_progress(angle, engine) <= 1.0


@given(angle=angles, throttle=floats(min_value=0.0, max_value=100.0))
@settings(max_examples=500)
def test_torque_non_negative(angle, throttle):
    assert torque(angle, DEFAULT_SETTINGS.updated(throttle=throttle)) >= 0.0


@given(angle=angles)
@settings(max_examples=300)
def test_closed_throttle_gives_no_torque(angle):
    assert torque(angle, DEFAULT_SETTINGS.updated(throttle=0.0)) == 0.0


@given(angle=dyadic_angles, wide_open=booleans())
@settings(max_examples=300)
def test_one_cylinder_per_stroke(angle, wide_open):
    engine = DEFAULT_SETTINGS.updated(throttle=100.0 if wide_open else 40.0)
    states = engine_states(angle, engine)
    assert [s.id for s in states] == list(CYLINDER_IDS)
    assert sorted(s.phase.value for s in states) == sorted(p.value for p in StrokePhase)


@given(cyl_id=sampled_from(CYLINDER_IDS), angle=dyadic_angles)
@settings(max_examples=300)
def test_cylinder_state_periodic(cyl_id, angle):
    a = engine_states(angle, DEFAULT_SETTINGS)[cyl_id - 1]
    b = engine_states(angle + 1440.0, DEFAULT_SETTINGS)[cyl_id - 1]
    assert a == b
