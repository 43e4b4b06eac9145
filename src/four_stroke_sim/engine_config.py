"""
Engine Configuration Module
Defines the per-frame parameter set, presets, and fixed engine constants.

The parameter set is produced by the user interface (sliders, presets) and
consumed read-only by every physics function.  The physics core never
validates ranges; ``SETTING_RANGES`` and ``clamp_settings`` exist for the
UI side that owns that concern.

Cycle convention
----------------
One four-stroke cycle spans two crankshaft revolutions (720°) split into
four 180° strokes in *local* cylinder angle:

    0°   – 180° : INTAKE
    180° – 360° : COMPRESSION
    360° – 540° : POWER       (local 360° = TDC at start of the power stroke)
    540° – 720° : EXHAUST
"""

import math
import warnings
from dataclasses import dataclass, asdict, fields, replace
from enum import Enum
from typing import Dict, List, NamedTuple, Tuple

# ── Cycle constants ───────────────────────────────────────────────────────────

CYCLE_DEGREES: float = 720.0
STROKE_DEGREES: float = 180.0

#: Connecting-rod length / crank radius used by the piston-position law
DEFAULT_ROD_RATIO: float = 3.5

#: Torque × RPM / 5252 = horsepower
HP_TORQUE_CONSTANT: float = 5252.0

#: Largest wall-clock gap [s] allowed to advance the crank in one frame
MAX_FRAME_DT: float = 0.1

FIRING_ORDER: Tuple[int, ...] = (1, 3, 4, 2)

# Each cylinder reaches local 360° (power-stroke TDC) 180° after the previous
# one in firing order:  cyl1 @ global 0°, cyl3 @ 180°, cyl4 @ 360°, cyl2 @ 540°.
#   local = (global + offset) mod 720
CYLINDER_PHASE_OFFSETS: Dict[int, float] = {
    1: 360.0,
    2: 540.0,
    3: 180.0,
    4: 0.0,
}

CYLINDER_IDS: Tuple[int, ...] = (1, 2, 3, 4)


# ── Errors ────────────────────────────────────────────────────────────────────


class InvalidCylinderId(ValueError):
    """Raised when a cylinder id outside {1, 2, 3, 4} is requested."""


class InvalidGeometry(ValueError):
    """Raised when the slider-crank geometry cannot be assembled (rod ratio ≤ 1)."""


# ── Enumerations ──────────────────────────────────────────────────────────────


class StrokePhase(Enum):
    """The four strokes of the cycle, in local-angle order."""

    INTAKE = "intake"
    COMPRESSION = "compression"
    POWER = "power"
    EXHAUST = "exhaust"

    @property
    def label(self) -> str:
        return self.value.capitalize()

    @property
    def start(self) -> float:
        """Local angle [deg] at which this stroke begins."""
        return _PHASE_ORDER.index(self) * STROKE_DEGREES

    @property
    def interval(self) -> Tuple[float, float]:
        """Half-open local-angle interval ``[start, end)`` [deg]."""
        return self.start, self.start + STROKE_DEGREES


_PHASE_ORDER: List[StrokePhase] = [
    StrokePhase.INTAKE,
    StrokePhase.COMPRESSION,
    StrokePhase.POWER,
    StrokePhase.EXHAUST,
]


# ── Slider ranges (UI concern) ────────────────────────────────────────────────


class SettingRange(NamedTuple):
    """Range and step of one user-adjustable setting."""

    minimum: float
    maximum: float
    step: float
    unit: str
    description: str

    def clamp(self, value: float) -> float:
        return max(self.minimum, min(self.maximum, value))

    def contains(self, value: float) -> bool:
        return self.minimum <= value <= self.maximum


SETTING_RANGES: Dict[str, SettingRange] = {
    "rpm": SettingRange(100.0, 8000.0, 50.0, "rpm", "Actual engine crankshaft speed"),
    "bore": SettingRange(60.0, 110.0, 1.0, "mm", "Cylinder diameter"),
    "stroke": SettingRange(60.0, 110.0, 1.0, "mm", "Piston travel distance"),
    "compression_ratio": SettingRange(7.0, 14.0, 0.5, ":1", "Volume ratio BDC:TDC"),
    "ignition_advance": SettingRange(
        0.0, 45.0, 1.0, "° BTDC", "Spark timing before top dead center"
    ),
    "throttle": SettingRange(0.0, 100.0, 1.0, "%", "Air-fuel mixture volume"),
    "air_fuel_ratio": SettingRange(10.0, 20.0, 0.1, ":1", "Stoichiometric = 14.7:1"),
    "valve_overlap": SettingRange(
        0.0, 60.0, 2.0, "°", "Both valves open overlap period"
    ),
    "speed_multiplier": SettingRange(
        0.01, 2.0, 0.01, "×", "Animation speed independent of RPM"
    ),
}

# (upper bound, label), checked in order; anything above the last is "Fast"
_SPEED_LABELS: List[Tuple[float, str]] = [
    (0.05, "Ultra Slow"),
    (0.15, "Very Slow"),
    (0.4, "Slow"),
    (0.8, "Moderate"),
]


# ── Parameter set ─────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class EngineSettings:
    """User-adjustable engine parameters.

    Attributes
    ----------
    rpm               : rev/min   crankshaft speed
    bore              : mm        cylinder diameter
    stroke            : mm        piston travel
    compression_ratio : -         volumetric compression ratio
    ignition_advance  : deg BTDC  spark timing
    throttle          : %         air-fuel mixture volume fraction
    air_fuel_ratio    : -         display only; no formula consumes it
    valve_overlap     : deg       both-valves-open window around TDC
    speed_multiplier  : -         playback speed, independent of rpm

    Values outside the slider ranges produce a ``UserWarning`` notice but
    are accepted; the physics functions stay continuous for them.
    Instances are frozen; the UI derives edited copies with ``updated``.
    """

    rpm: float = 800.0
    bore: float = 86.0
    stroke: float = 86.0
    compression_ratio: float = 10.5
    ignition_advance: float = 15.0
    throttle: float = 40.0
    air_fuel_ratio: float = 14.7
    valve_overlap: float = 20.0
    speed_multiplier: float = 0.10

    def __post_init__(self) -> None:
        notices = [
            f"{name} = {getattr(self, name)} outside typical range "
            f"[{rng.minimum:g}, {rng.maximum:g}] {rng.unit}"
            for name, rng in SETTING_RANGES.items()
            if not rng.contains(getattr(self, name))
        ]
        for msg in notices:
            warnings.warn(msg, stacklevel=3)

    # ── Mutation by the UI ────────────────────────────────────────────────

    def updated(self, **changes: float) -> "EngineSettings":
        """Return a copy with the given fields replaced.

        Raises
        ------
        TypeError
            If a key is not a setting name.
        """
        return replace(self, **changes)

    # ── Derived, display-only quantities ──────────────────────────────────

    @property
    def throttle_fraction(self) -> float:
        """Throttle as a fraction  [0, 1]."""
        return self.throttle / 100.0

    @property
    def displacement_per_cylinder_cc(self) -> float:
        """Swept volume  π·(bore/2)²·stroke  [cm³]."""
        return math.pi * (self.bore / 20.0) ** 2 * (self.stroke / 10.0)

    @property
    def total_displacement_cc(self) -> float:
        """Swept volume of all four cylinders  [cm³]."""
        return len(CYLINDER_IDS) * self.displacement_per_cylinder_cc

    @property
    def bore_stroke_ratio(self) -> float:
        return self.bore / self.stroke

    @property
    def bore_stroke_label(self) -> str:
        """'over-square', 'under-square' or 'square'."""
        if self.bore > self.stroke:
            return "over-square"
        if self.bore < self.stroke:
            return "under-square"
        return "square"

    @property
    def mean_piston_speed(self) -> float:
        """Mean piston speed  2·stroke·N / 60  [m/s]."""
        return 2.0 * self.stroke * self.rpm / 60_000.0

    @property
    def degrees_per_second(self) -> float:
        """Animated crank rate  rpm·360/60·speed_multiplier  [deg/s]."""
        return self.rpm * 6.0 * self.speed_multiplier

    @property
    def speed_label(self) -> str:
        for upper, label in _SPEED_LABELS:
            if self.speed_multiplier < upper:
                return label
        return "Normal" if self.speed_multiplier <= 1.2 else "Fast"

    # ── Serialisation ─────────────────────────────────────────────────────

    def to_dict(self) -> Dict[str, float]:
        """Serialise settings to a plain dictionary."""
        return asdict(self)


DEFAULT_SETTINGS = EngineSettings()


def clamp_settings(settings: EngineSettings) -> EngineSettings:
    """Return a copy of ``settings`` with every field clamped to its slider range."""
    changes = {
        f.name: SETTING_RANGES[f.name].clamp(getattr(settings, f.name))
        for f in fields(settings)
    }
    return replace(settings, **changes)


# ── Presets ───────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Preset:
    """A named bundle of overrides applied on top of ``DEFAULT_SETTINGS``."""

    name: str
    title: str
    overrides: Tuple[Tuple[str, float], ...]
    start_paused: bool = False

    def settings(self) -> EngineSettings:
        return DEFAULT_SETTINGS.updated(**dict(self.overrides))


PRESETS: Dict[str, Preset] = {
    p.name: p
    for p in (
        Preset(
            "idle",
            "Idle",
            (("rpm", 800.0), ("throttle", 30.0), ("speed_multiplier", 0.10)),
        ),
        Preset(
            "cruising",
            "Cruising",
            (("rpm", 3000.0), ("throttle", 60.0), ("speed_multiplier", 0.15)),
        ),
        Preset(
            "full_power",
            "Full Power",
            (
                ("rpm", 6000.0),
                ("throttle", 100.0),
                ("ignition_advance", 30.0),
                ("compression_ratio", 11.0),
                ("speed_multiplier", 0.25),
            ),
        ),
        Preset(
            "sport",
            "Sport",
            (
                ("rpm", 7500.0),
                ("throttle", 100.0),
                ("compression_ratio", 12.5),
                ("ignition_advance", 35.0),
                ("bore", 81.0),
                ("stroke", 77.0),
                ("speed_multiplier", 0.30),
            ),
        ),
        Preset(
            "torque",
            "Torque",
            (
                ("rpm", 2000.0),
                ("throttle", 40.0),
                ("compression_ratio", 9.0),
                ("bore", 95.0),
                ("stroke", 100.0),
                ("speed_multiplier", 0.12),
            ),
        ),
        Preset(
            "study",
            "Study Mode",
            (("rpm", 800.0), ("throttle", 40.0), ("speed_multiplier", 0.04)),
        ),
        Preset(
            "ultra_slow",
            "Ultra Slow",
            (("rpm", 400.0), ("throttle", 30.0), ("speed_multiplier", 0.015)),
        ),
        Preset(
            "step_by_step",
            "Step-by-Step",
            (("rpm", 300.0), ("throttle", 40.0), ("speed_multiplier", 0.01)),
            start_paused=True,
        ),
    )
}


def get_preset(name: str) -> Preset:
    """Look up a preset by name.

    Raises
    ------
    KeyError
        If ``name`` is not one of ``PRESETS``.
    """
    try:
        return PRESETS[name]
    except KeyError:
        raise KeyError(
            f"Unknown preset '{name}'; choose from {', '.join(PRESETS)}"
        ) from None
