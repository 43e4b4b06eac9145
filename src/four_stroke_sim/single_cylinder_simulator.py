"""
Single Cylinder Simulator
Samples every per-angle model for one cylinder over a complete 720° cycle.
"""

from dataclasses import dataclass, field
from typing import Dict, List

import numpy as np
import numpy.typing as npt

from .engine_config import CYCLE_DEGREES, EngineSettings, StrokePhase
from .kinematics import piston_position, stroke_phase, valve_lift
from .logging_setup import get_logger
from .thermodynamics import (
    combustion_progress,
    peak_pressure,
    pressure,
    spark_active,
    spark_angle,
    temperature,
)

log = get_logger(__name__)


@dataclass
class CycleResults:
    """One cylinder's signals over a 4-stroke cycle.

    All arrays are aligned to `crank_angles_deg` (local angle).
    """

    crank_angles_deg: npt.NDArray[np.float64]  # [deg]

    # Kinematics
    piston_position: npt.NDArray[np.float64]  # 0 = TDC, 1 = BDC

    # Gas state (relative units)
    pressure: npt.NDArray[np.float64]
    temperature: npt.NDArray[np.float64]

    # Valves
    intake_lift: npt.NDArray[np.float64]  # 0–1
    exhaust_lift: npt.NDArray[np.float64]  # 0–1

    # Ignition
    spark: npt.NDArray[np.bool_]
    combustion_progress: npt.NDArray[np.float64]  # 0–1

    phases: List[StrokePhase] = field(default_factory=list)


class SingleCylinderSimulator:
    """Sweeps one cylinder's local crank angle through [0°, 720°]."""

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

    def simulate_cycle(self) -> CycleResults:
        """Evaluate all models at each sample of the cycle.

        Returns
        -------
        CycleResults
        """
        settings = self.settings
        num_steps = int(round(CYCLE_DEGREES / self.angular_resolution))
        angles = np.linspace(0.0, CYCLE_DEGREES, num_steps + 1)
        n = len(angles)
        log.info("Simulating single-cylinder cycle with %d samples", n)

        position = np.zeros(n)
        p = np.zeros(n)
        t = np.zeros(n)
        intake = np.zeros(n)
        exhaust = np.zeros(n)
        spark = np.zeros(n, dtype=bool)
        burn = np.zeros(n)
        phases: List[StrokePhase] = []

        for i, angle in enumerate(angles):
            a = float(angle)
            lifts = valve_lift(a, settings)
            position[i] = piston_position(a)
            p[i] = pressure(a, settings)
            t[i] = temperature(a, settings)
            intake[i] = lifts.intake
            exhaust[i] = lifts.exhaust
            spark[i] = spark_active(a, settings)
            burn[i] = combustion_progress(a, settings)
            phases.append(stroke_phase(a))

        return CycleResults(
            crank_angles_deg=angles,
            piston_position=position,
            pressure=p,
            temperature=t,
            intake_lift=intake,
            exhaust_lift=exhaust,
            spark=spark,
            combustion_progress=burn,
            phases=phases,
        )

    def calculate_performance_metrics(self, results: CycleResults) -> Dict[str, float]:
        """Summarise a simulated cycle.

        Parameters
        ----------
        results : CycleResults

        Returns
        -------
        Dict[str, float]
            Peak pressure and temperature (with their angles), the model's
            peak combustion pressure, spark and overlap windows, and
            displacement figures from the settings.
        """
        settings = self.settings
        angles = results.crank_angles_deg
        step = self.angular_resolution

        p_idx = int(np.argmax(results.pressure))
        t_idx = int(np.argmax(results.temperature))

        # Exclude the duplicated 720° sample when counting degrees
        both_open = (results.intake_lift[:-1] > 0.0) & (results.exhaust_lift[:-1] > 0.0)
        spark_angles = angles[results.spark]
        spark_span = (
            float(spark_angles.max() - spark_angles.min()) if spark_angles.size else 0.0
        )

        return {
            "peak_pressure": float(results.pressure[p_idx]),
            "peak_pressure_angle_deg": float(angles[p_idx]),
            "model_peak_pressure": peak_pressure(settings),
            "peak_temperature": float(results.temperature[t_idx]),
            "peak_temperature_angle_deg": float(angles[t_idx]),
            "spark_angle_deg": spark_angle(settings),
            "spark_duration_deg": spark_span,
            "valve_overlap_measured_deg": float(np.count_nonzero(both_open) * step),
            "displacement_per_cylinder_cc": settings.displacement_per_cylinder_cc,
            "displacement_liters": settings.total_displacement_cc / 1000.0,
            "mean_piston_speed_ms": settings.mean_piston_speed,
        }
