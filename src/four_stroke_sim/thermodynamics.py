"""
Thermodynamics Module
Relative in-cylinder pressure, temperature, spark and combustion models.

These are educational, piecewise models evaluated per stroke.  They give
the correct *shape* of a four-stroke cycle (mild intake vacuum, polytropic-
like compression rise, rapid combustion rise, expansion decay, exhaust
blow-down) in relative units; they are not a thermodynamic solution.

Pressure  (relative, ≈ bar-equivalent)
--------------------------------------
    intake       p = 0.8 + 0.2·τ                        τ = throttle / 100
    compression  p = 1 + (CR − 1)·ξ^1.3                 ξ = stroke progress
    power        ξ < 0.1 : CR → p_peak  linearly over the first 18°
                 ξ ≥ 0.1 : p_peak·(1 − (ξ − 0.1)/0.9)^1.3
    exhaust      p = 1.5·(1 − ξ) + 1

    p_peak = 3·CR·τ

Temperature  (relative, ≈ [0, 1])
---------------------------------
    intake       0.2
    compression  0.2 + 0.3·ξ
    power        ξ < 0.15 : 0.5 → 1.0 linearly
                 ξ ≥ 0.15 : (1 − (ξ − 0.15)/0.85)^0.8
    exhaust      0.4·(1 − ξ)

Spark and combustion
--------------------
Ignition starts ``ignition_advance`` degrees before local 360°.  The spark
is drawn for 10°; the flame front burns linearly over 60°.
"""

from .engine_config import EngineSettings, StrokePhase
from .kinematics import normalize_angle, phase_progress

# ── Model constants ───────────────────────────────────────────────────────────

INTAKE_BASE_PRESSURE = 0.8
INTAKE_THROTTLE_PRESSURE = 0.2
COMPRESSION_EXPONENT = 1.3
EXPANSION_EXPONENT = 1.3
PEAK_PRESSURE_FACTOR = 3.0

#: Fraction of the power stroke over which pressure rises to its peak
COMBUSTION_RISE_FRACTION = 0.1

EXHAUST_BLOWDOWN_PRESSURE = 1.5
BASELINE_PRESSURE = 1.0

INTAKE_TEMPERATURE = 0.2
COMPRESSION_TEMPERATURE_RISE = 0.3
POWER_START_TEMPERATURE = 0.5
PEAK_TEMPERATURE = 1.0
#: Fraction of the power stroke over which temperature rises to its peak
TEMPERATURE_RISE_FRACTION = 0.15
COOLING_EXPONENT = 0.8
EXHAUST_START_TEMPERATURE = 0.4

#: Local angle of TDC at the start of the power stroke  [deg]
FIRING_TDC = 360.0
#: Local angle at which the power stroke (and any combustion) ends  [deg]
POWER_STROKE_END = 540.0
SPARK_WINDOW_DEGREES = 10.0
COMBUSTION_DURATION_DEGREES = 60.0


# ── Pressure ──────────────────────────────────────────────────────────────────


def peak_pressure(settings: EngineSettings) -> float:
    """Peak combustion pressure  3·CR·throttle/100  (relative)."""
    return settings.compression_ratio * PEAK_PRESSURE_FACTOR * settings.throttle_fraction


def pressure(angle_deg: float, settings: EngineSettings) -> float:
    """Relative cylinder pressure at a local crank angle.

    Continuity at stroke boundaries is only approximate.  The result is
    non-negative; with a closed throttle the expansion branch is 0.

    Parameters
    ----------
    angle_deg : float           Local crank angle  [deg]
    settings  : EngineSettings

    Returns
    -------
    float  Relative pressure  (1 ≈ atmospheric)
    """
    phase, progress = phase_progress(angle_deg)

    if phase is StrokePhase.INTAKE:
        return INTAKE_BASE_PRESSURE + INTAKE_THROTTLE_PRESSURE * settings.throttle_fraction

    if phase is StrokePhase.COMPRESSION:
        cr = settings.compression_ratio
        return BASELINE_PRESSURE + (cr - BASELINE_PRESSURE) * progress**COMPRESSION_EXPONENT

    if phase is StrokePhase.POWER:
        p_peak = peak_pressure(settings)
        if progress < COMBUSTION_RISE_FRACTION:
            cr = settings.compression_ratio
            return cr + (p_peak - cr) * (progress / COMBUSTION_RISE_FRACTION)
        expansion = (progress - COMBUSTION_RISE_FRACTION) / (1.0 - COMBUSTION_RISE_FRACTION)
        return p_peak * (1.0 - expansion) ** EXPANSION_EXPONENT

    # EXHAUST
    return EXHAUST_BLOWDOWN_PRESSURE * (1.0 - progress) + BASELINE_PRESSURE


# ── Temperature ───────────────────────────────────────────────────────────────


def temperature(angle_deg: float, settings: EngineSettings) -> float:
    """Relative gas temperature at a local crank angle.

    Depends on the stroke only; ``settings`` is accepted for a uniform
    signature with the other per-angle models.
    """
    phase, progress = phase_progress(angle_deg)

    if phase is StrokePhase.INTAKE:
        return INTAKE_TEMPERATURE

    if phase is StrokePhase.COMPRESSION:
        return INTAKE_TEMPERATURE + COMPRESSION_TEMPERATURE_RISE * progress

    if phase is StrokePhase.POWER:
        if progress < TEMPERATURE_RISE_FRACTION:
            return POWER_START_TEMPERATURE + (
                PEAK_TEMPERATURE - POWER_START_TEMPERATURE
            ) * (progress / TEMPERATURE_RISE_FRACTION)
        cooling = (progress - TEMPERATURE_RISE_FRACTION) / (1.0 - TEMPERATURE_RISE_FRACTION)
        return PEAK_TEMPERATURE * (1.0 - cooling) ** COOLING_EXPONENT

    # EXHAUST
    return EXHAUST_START_TEMPERATURE * (1.0 - progress)


# ── Spark & combustion ────────────────────────────────────────────────────────


def spark_angle(settings: EngineSettings) -> float:
    """Local angle at which the spark fires  (360° − advance)  [deg]."""
    return FIRING_TDC - settings.ignition_advance


def spark_active(angle_deg: float, settings: EngineSettings) -> bool:
    """True while the spark plug is firing: [spark, spark + 10°] inclusive."""
    angle = normalize_angle(angle_deg)
    start = spark_angle(settings)
    return start <= angle <= start + SPARK_WINDOW_DEGREES


def combustion_progress(angle_deg: float, settings: EngineSettings) -> float:
    """Fraction of the charge burnt  ∈ [0, 1].

    Zero outside [spark, 540°]; otherwise a linear 60° burn from the spark.
    """
    angle = normalize_angle(angle_deg)
    start = spark_angle(settings)
    if angle < start or angle > POWER_STROKE_END:
        return 0.0
    burnt = (angle - start) / COMBUSTION_DURATION_DEGREES
    return max(0.0, min(1.0, burnt))
