"""
Multi-Cylinder Simulator
Composes the per-angle models into per-cylinder state, sums torque across
the four cylinders, and sweeps whole cycles for analysis.

Phasing
-------
All cylinders share one global crank angle.  Each cylinder sees

    local_angle = (global_angle + offset) mod 720°

with fixed offsets {1: 360°, 2: 540°, 3: 180°, 4: 0°}, so that local 360°
(power-stroke TDC) is reached in firing order 1-3-4-2, 180° apart.

Torque
------
Only a cylinder in its power stroke contributes:

    T_i = p_i · sin(π·ξ_i) · τ          ξ_i = (local_i − 360) / 180

where sin(π·ξ) stands in for the crank lever-arm effectiveness (zero at
TDC and BDC, maximum mid-stroke) and τ = throttle / 100.  Power in
horsepower-equivalent units is  P = T · N / 5252.
"""

import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
import numpy.typing as npt
from scipy.integrate import trapezoid

from .engine_config import (
    CYCLE_DEGREES,
    CYLINDER_IDS,
    CYLINDER_PHASE_OFFSETS,
    HP_TORQUE_CONSTANT,
    STROKE_DEGREES,
    EngineSettings,
    InvalidCylinderId,
    StrokePhase,
)
from .kinematics import normalize_angle, piston_position, stroke_phase, valve_lift
from .logging_setup import get_logger
from .thermodynamics import (
    FIRING_TDC,
    combustion_progress,
    pressure,
    spark_active,
    temperature,
)

log = get_logger(__name__)


# ── Cylinder phasing ──────────────────────────────────────────────────────────


def cylinder_phase_offset(cylinder_id: int) -> float:
    """Fixed crank phase offset of a cylinder  [deg].

    Raises
    ------
    InvalidCylinderId
        If ``cylinder_id`` is not one of 1, 2, 3, 4.
    """
    # bool is an int subclass; True must not alias cylinder 1
    if isinstance(cylinder_id, bool) or cylinder_id not in CYLINDER_PHASE_OFFSETS:
        raise InvalidCylinderId(
            f"cylinder_id must be one of {list(CYLINDER_IDS)}, got {cylinder_id!r}"
        )
    return CYLINDER_PHASE_OFFSETS[cylinder_id]


def local_crank_angle(cylinder_id: int, global_angle_deg: float) -> float:
    """Map the global crank angle to a cylinder's local angle  ∈ [0°, 720°)."""
    return normalize_angle(global_angle_deg + cylinder_phase_offset(cylinder_id))


# ── Cylinder state ────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class CylinderState:
    """Physical state of one cylinder at one instant.

    Built fresh every frame from (angle, settings) and never mutated.
    """

    id: int
    phase: StrokePhase
    piston_position: float  # 0 = TDC, 1 = BDC
    local_crank_angle: float  # [deg]  ∈ [0, 720)
    pressure: float  # relative
    temperature: float  # relative
    intake_valve_lift: float  # 0–1
    exhaust_valve_lift: float  # 0–1
    spark_active: bool
    fuel_air_mixture_density: float  # 0–1, intake stroke only
    combustion_progress: float  # 0–1


def cylinder_state(
    cylinder_id: int, global_angle_deg: float, settings: EngineSettings
) -> CylinderState:
    """Evaluate every per-angle model for one cylinder.

    Parameters
    ----------
    cylinder_id      : int             1–4
    global_angle_deg : float           Global crank angle  [deg]  (any value)
    settings         : EngineSettings

    Raises
    ------
    InvalidCylinderId
        If ``cylinder_id`` is not one of 1, 2, 3, 4.
    """
    angle = local_crank_angle(cylinder_id, global_angle_deg)
    phase = stroke_phase(angle)
    lifts = valve_lift(angle, settings)

    return CylinderState(
        id=cylinder_id,
        phase=phase,
        piston_position=piston_position(angle),
        local_crank_angle=angle,
        pressure=pressure(angle, settings),
        temperature=temperature(angle, settings),
        intake_valve_lift=lifts.intake,
        exhaust_valve_lift=lifts.exhaust,
        spark_active=spark_active(angle, settings),
        fuel_air_mixture_density=(
            settings.throttle_fraction if phase is StrokePhase.INTAKE else 0.0
        ),
        combustion_progress=combustion_progress(angle, settings),
    )


def engine_states(
    global_angle_deg: float, settings: EngineSettings
) -> Tuple[CylinderState, ...]:
    """States of all four cylinders, in id order, from one angle snapshot."""
    return tuple(
        cylinder_state(cyl_id, global_angle_deg, settings) for cyl_id in CYLINDER_IDS
    )


class Cylinder:
    """One cylinder of the inline-4: its id, fixed offset and local angle."""

    def __init__(self, cylinder_number: int) -> None:
        """
        Parameters
        ----------
        cylinder_number : int  1-indexed cylinder identifier

        Raises
        ------
        InvalidCylinderId
            If ``cylinder_number`` is not one of 1, 2, 3, 4.
        """
        self.number = cylinder_number
        self.crank_phase_deg = cylinder_phase_offset(cylinder_number)

    def local_angle(self, global_angle_deg: float) -> float:
        """local_angle = (global_angle + crank_phase) mod 720°."""
        return normalize_angle(global_angle_deg + self.crank_phase_deg)

    def firing_angle(self) -> float:
        """Global angle at which this cylinder reaches power-stroke TDC  [deg]."""
        return normalize_angle(FIRING_TDC - self.crank_phase_deg)

    def state(self, global_angle_deg: float, settings: EngineSettings) -> CylinderState:
        return cylinder_state(self.number, global_angle_deg, settings)

    def __repr__(self) -> str:
        return f"Cylinder({self.number}, offset={self.crank_phase_deg:g}°)"


# ── Torque & power ────────────────────────────────────────────────────────────


def crank_lever_factor(local_angle_deg: float) -> float:
    """sin(π·ξ) across the power stroke; 0 outside it."""
    angle = normalize_angle(local_angle_deg)
    if stroke_phase(angle) is not StrokePhase.POWER:
        return 0.0
    progress = (angle - FIRING_TDC) / STROKE_DEGREES
    return math.sin(progress * math.pi)


def torque_from_states(
    states: Sequence[CylinderState], settings: EngineSettings
) -> float:
    """Sum the power-stroke contributions of an already-evaluated frame."""
    total = 0.0
    for state in states:
        if state.phase is StrokePhase.POWER:
            total += (
                state.pressure
                * crank_lever_factor(state.local_crank_angle)
                * settings.throttle_fraction
            )
    return total


def torque(global_angle_deg: float, settings: EngineSettings) -> float:
    """Instantaneous relative crankshaft torque at a global crank angle."""
    return torque_from_states(engine_states(global_angle_deg, settings), settings)


def power_hp(torque_value: float, rpm: float) -> float:
    """Horsepower-equivalent power  T·N / 5252."""
    return torque_value * rpm / HP_TORQUE_CONSTANT


@dataclass(frozen=True)
class EngineFrame:
    """Everything a renderer needs for one frame, from a single angle snapshot."""

    global_crank_angle: float  # [deg]  ∈ [0, 720)
    states: Tuple[CylinderState, ...]
    torque: float
    power_hp: float

    def cylinder(self, cylinder_id: int) -> CylinderState:
        cylinder_phase_offset(cylinder_id)
        return self.states[CYLINDER_IDS.index(cylinder_id)]

    @property
    def firing_cylinder(self) -> Optional[int]:
        """Id of the cylinder in its power stroke."""
        for state in self.states:
            if state.phase is StrokePhase.POWER:
                return state.id
        return None


def engine_frame(global_angle_deg: float, settings: EngineSettings) -> EngineFrame:
    """Evaluate a full frame: four cylinder states, torque and power."""
    angle = normalize_angle(global_angle_deg)
    states = engine_states(angle, settings)
    frame_torque = torque_from_states(states, settings)
    return EngineFrame(
        global_crank_angle=angle,
        states=states,
        torque=frame_torque,
        power_hp=power_hp(frame_torque, settings.rpm),
    )


# ── Whole-cycle sweep ─────────────────────────────────────────────────────────


@dataclass
class MultiCylinderResults:
    """Results of sweeping the global crank angle over one 720° cycle."""

    crank_angles_deg: npt.NDArray[np.float64]  # [deg]  global
    time: npt.NDArray[np.float64]  # [s]    real-engine time at settings.rpm

    cylinder_pressure: Dict[int, npt.NDArray[np.float64]]
    cylinder_phases: Dict[int, List[StrokePhase]]

    total_torque: npt.NDArray[np.float64]  # relative
    total_power: npt.NDArray[np.float64]  # hp-equivalent

    firing_angles: Dict[int, float] = field(default_factory=dict)

    # Scalar summary
    mean_torque: float = 0.0
    peak_torque: float = 0.0
    peak_torque_angle: float = 0.0  # [deg]
    torque_variation: float = 0.0  # %  (std / mean)
    mean_power_hp: float = 0.0


class MultiCylinderSimulator:
    """Sweeps the inline-4 through a full cycle at a fixed angular step.

    Each sample evaluates all four cylinders from the same global angle,
    exactly as the animation does per frame.
    """

    def __init__(
        self, settings: EngineSettings, angular_resolution: float = 1.0
    ) -> None:
        """
        Parameters
        ----------
        settings           : EngineSettings
        angular_resolution : float  Sweep step  [deg]  (must be > 0)

        Raises
        ------
        ValueError
            If angular_resolution ≤ 0.
        """
        if angular_resolution <= 0.0:
            raise ValueError(
                f"angular_resolution must be > 0°, got {angular_resolution}"
            )
        self.settings = settings
        self.angular_resolution = angular_resolution
        self.cylinders: List[Cylinder] = [Cylinder(i) for i in CYLINDER_IDS]

    @property
    def num_steps(self) -> int:
        return int(round(CYCLE_DEGREES / self.angular_resolution))

    def firing_sequence(self) -> List[int]:
        """Cylinder ids ordered by the global angle of their power-stroke TDC."""
        return [
            cyl.number for cyl in sorted(self.cylinders, key=lambda c: c.firing_angle())
        ]

    def simulate_engine(self) -> MultiCylinderResults:
        """Sweep the global crank angle over [0°, 720°] inclusive.

        Returns
        -------
        MultiCylinderResults
        """
        settings = self.settings
        crank_angles_deg = np.linspace(0.0, CYCLE_DEGREES, self.num_steps + 1)
        log.info(
            "Sweeping %d global angles at %.3g° resolution (rpm=%g, throttle=%g%%)",
            len(crank_angles_deg),
            self.angular_resolution,
            settings.rpm,
            settings.throttle,
        )

        n = len(crank_angles_deg)
        total_torque = np.zeros(n)
        cylinder_pressure = {cyl.number: np.zeros(n) for cyl in self.cylinders}
        cylinder_phases: Dict[int, List[StrokePhase]] = {
            cyl.number: [] for cyl in self.cylinders
        }

        for i, angle in enumerate(crank_angles_deg):
            states = engine_states(float(angle), settings)
            total_torque[i] = torque_from_states(states, settings)
            for state in states:
                cylinder_pressure[state.id][i] = state.pressure
                cylinder_phases[state.id].append(state.phase)

        total_power = total_torque * settings.rpm / HP_TORQUE_CONSTANT

        # Time at the real engine speed: t = θ / (6·N)  [s]
        time = crank_angles_deg / (6.0 * settings.rpm) if settings.rpm > 0 else np.zeros(n)

        # Cycle-averaged torque  (1/720)·∫ T dθ
        mean_torque = float(trapezoid(total_torque, crank_angles_deg) / CYCLE_DEGREES)
        torque_std = float(np.std(total_torque))
        torque_variation = (
            torque_std / abs(mean_torque) * 100.0 if abs(mean_torque) > 1e-9 else 0.0
        )
        peak_idx = int(np.argmax(total_torque))

        log.debug(
            "Mean torque %.4f, peak %.4f at %.1f°",
            mean_torque,
            total_torque[peak_idx],
            crank_angles_deg[peak_idx],
        )

        return MultiCylinderResults(
            crank_angles_deg=crank_angles_deg,
            time=time,
            cylinder_pressure=cylinder_pressure,
            cylinder_phases=cylinder_phases,
            total_torque=total_torque,
            total_power=total_power,
            firing_angles={cyl.number: cyl.firing_angle() for cyl in self.cylinders},
            mean_torque=mean_torque,
            peak_torque=float(total_torque[peak_idx]),
            peak_torque_angle=float(crank_angles_deg[peak_idx]),
            torque_variation=torque_variation,
            mean_power_hp=mean_torque * settings.rpm / HP_TORQUE_CONSTANT,
        )
