"""
Kinematics Module
Maps a local crank angle to stroke phase, piston position and valve lift.

Mathematical Basis
------------------
Slider-crank notation (normalised, crank radius r = 1)
    L  = connecting-rod length / crank radius   (rod ratio, default 3.5)
    θ  = crank angle from TDC                    [rad]

Piston-pin distance from the crank centre
    x(θ)  = cos θ + √(L² − sin² θ)
    x_TDC = 1 + L          (θ = 0)
    x_BDC = L − 1          (θ = π)

Normalised piston position (0 = TDC, 1 = BDC)
    s(θ) = 1 − (x(θ) − x_BDC) / (x_TDC − x_BDC)

This is the exact displacement law, not a sinusoid: the piston passes the
mid-stroke point before θ = 90° and dwells longer near TDC than near BDC.
At θ = 90°:  s = 1 − (√(L² − 1) − (L − 1)) / 2.

All angle inputs are in degrees and may take any real value; they are
normalised into [0°, 720°) before classification.
"""

import math
from typing import NamedTuple, Tuple

from .engine_config import (
    CYCLE_DEGREES,
    DEFAULT_ROD_RATIO,
    STROKE_DEGREES,
    EngineSettings,
    InvalidGeometry,
    StrokePhase,
)

# ── Angle handling ────────────────────────────────────────────────────────────


def normalize_angle(angle_deg: float) -> float:
    """Wrap an angle into the cycle range  [0°, 720°).

    True modulo: negative angles wrap positively (−1° → 719°).
    """
    angle = angle_deg % CYCLE_DEGREES
    # -1e-20 % 720.0 rounds to 720.0
    if angle >= CYCLE_DEGREES:
        return 0.0
    return angle


def stroke_phase(angle_deg: float) -> StrokePhase:
    """Classify a local crank angle into its stroke.

    Intervals are half-open on the right, so 180° is COMPRESSION and
    720° wraps to INTAKE.
    """
    angle = normalize_angle(angle_deg)
    if angle < 180.0:
        return StrokePhase.INTAKE
    elif angle < 360.0:
        return StrokePhase.COMPRESSION
    elif angle < 540.0:
        return StrokePhase.POWER
    else:  # 540 ≤ angle < 720
        return StrokePhase.EXHAUST


def phase_progress(angle_deg: float) -> Tuple[StrokePhase, float]:
    """Stroke phase and fractional progress through it  ∈ [0, 1).

    Returns
    -------
    Tuple[StrokePhase, float]
        (phase, (angle − phase.start) / 180)
    """
    angle = normalize_angle(angle_deg)
    phase = stroke_phase(angle)
    return phase, (angle - phase.start) / STROKE_DEGREES


# ── Slider-crank ──────────────────────────────────────────────────────────────


class SliderCrank:
    """Normalised slider-crank mechanism.

    Attributes
    ----------
    rod_ratio : float  L = connecting-rod length / crank radius  (> 1)
    """

    def __init__(self, rod_ratio: float = DEFAULT_ROD_RATIO) -> None:
        """
        Parameters
        ----------
        rod_ratio : float  L / r  (must be > 1)

        Raises
        ------
        InvalidGeometry
            If rod_ratio ≤ 1; the rod could not reach the crank pin at 90°
            and √(L² − sin² θ) would be undefined.
        """
        if not rod_ratio > 1.0:
            raise InvalidGeometry(
                f"rod_ratio must be > 1, got {rod_ratio}; "
                "connecting rod is shorter than the crank radius."
            )
        self.rod_ratio = float(rod_ratio)
        self._x_tdc = 1.0 + self.rod_ratio
        self._x_bdc = self.rod_ratio - 1.0

    def pin_distance(self, angle_deg: float) -> float:
        """Crank centre to piston pin  x(θ)  [crank radii]."""
        theta = math.radians(angle_deg)
        sin_theta = math.sin(theta)
        return math.cos(theta) + math.sqrt(self.rod_ratio**2 - sin_theta**2)

    def position(self, angle_deg: float) -> float:
        """Normalised piston position  s(θ) ∈ [0, 1],  0 = TDC, 1 = BDC.

        Boundary conditions (verified):
            s(0°)   = 0
            s(180°) = 1
        """
        x = self.pin_distance(angle_deg)
        return 1.0 - (x - self._x_bdc) / (self._x_tdc - self._x_bdc)

    def connecting_rod_angle(self, angle_deg: float) -> float:
        """Connecting rod angle from cylinder axis  φ = arcsin(sin θ / L)  [rad]."""
        return math.asin(math.sin(math.radians(angle_deg)) / self.rod_ratio)


_DEFAULT_SLIDER_CRANK = SliderCrank(DEFAULT_ROD_RATIO)


def piston_position(angle_deg: float, rod_ratio: float = DEFAULT_ROD_RATIO) -> float:
    """Normalised piston position for a local crank angle.

    Parameters
    ----------
    angle_deg : float  Crank angle  [deg]  (any value; period 360°)
    rod_ratio : float  L / r  (default 3.5)

    Returns
    -------
    float  0 at TDC, 1 at BDC

    Raises
    ------
    InvalidGeometry
        If rod_ratio ≤ 1.
    """
    if rod_ratio == DEFAULT_ROD_RATIO:
        return _DEFAULT_SLIDER_CRANK.position(angle_deg)
    return SliderCrank(rod_ratio).position(angle_deg)


# ── Valve lift ────────────────────────────────────────────────────────────────


class ValveLift(NamedTuple):
    """Normalised valve lifts, 0 = closed, 1 = fully open."""

    intake: float
    exhaust: float


# Intake event (local degrees): ramps open over [0, 20), fully open to 160,
# closes by 210 (30° after BDC).
_INTAKE_OPEN_RAMP_END = 20.0
_INTAKE_CLOSE_RAMP_START = 160.0
_INTAKE_CLOSE = 210.0

# Exhaust event: opens at 500 (40° before BDC of power), fully open from 540,
# closing ramp over the last 20° before TDC.
_EXHAUST_OPEN = 500.0
_EXHAUST_OPEN_RAMP_END = 540.0
_EXHAUST_CLOSE_RAMP_START = 700.0


def _clamp_unit(value: float) -> float:
    return max(0.0, min(1.0, value))


def intake_lift(angle_deg: float, valve_overlap: float) -> float:
    """Intake valve lift  ∈ [0, 1].

    Within ``valve_overlap`` degrees of the 720° wrap the valve is already
    opening for the next cycle; that ramp supersedes the base window.
    """
    angle = normalize_angle(angle_deg)
    lift = 0.0

    if angle < _INTAKE_CLOSE:
        if angle < _INTAKE_OPEN_RAMP_END:
            lift = angle / _INTAKE_OPEN_RAMP_END
        elif angle > _INTAKE_CLOSE_RAMP_START:
            lift = (_INTAKE_CLOSE - angle) / (_INTAKE_CLOSE - _INTAKE_CLOSE_RAMP_START)
        else:
            lift = 1.0

    overlap_start = CYCLE_DEGREES - valve_overlap
    if angle > overlap_start:
        lift = (angle - overlap_start) / valve_overlap

    return _clamp_unit(lift)


def exhaust_lift(angle_deg: float, valve_overlap: float) -> float:
    """Exhaust valve lift  ∈ [0, 1].

    For the first ``valve_overlap`` degrees of the cycle the valve is still
    closing from the previous exhaust stroke.
    """
    angle = normalize_angle(angle_deg)
    lift = 0.0

    if _EXHAUST_OPEN < angle <= CYCLE_DEGREES:
        if angle < _EXHAUST_OPEN_RAMP_END:
            lift = (angle - _EXHAUST_OPEN) / (_EXHAUST_OPEN_RAMP_END - _EXHAUST_OPEN)
        elif angle > _EXHAUST_CLOSE_RAMP_START:
            lift = (CYCLE_DEGREES - angle) / (CYCLE_DEGREES - _EXHAUST_CLOSE_RAMP_START)
        else:
            lift = 1.0

    if angle < valve_overlap:
        lift = 1.0 - angle / valve_overlap

    return _clamp_unit(lift)


def valve_lift(angle_deg: float, settings: EngineSettings) -> ValveLift:
    """Intake and exhaust lifts at a local crank angle.

    The overlap branches are piecewise and may jump at the boundary with the
    base window for large overlaps; no smoothing is applied.
    """
    return ValveLift(
        intake=intake_lift(angle_deg, settings.valve_overlap),
        exhaust=exhaust_lift(angle_deg, settings.valve_overlap),
    )
