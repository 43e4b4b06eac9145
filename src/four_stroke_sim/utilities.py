"""
Utilities Module
Data export and summary helpers for simulated cycles.
"""

import csv
import json
from enum import Enum
from typing import Any, Dict, List, Optional

import numpy as np

from .logging_setup import get_logger

log = get_logger(__name__)


class DataExporter:
    """
    Export simulation results to various formats.

    Supports: CSV, JSON, plain-text report
    """

    @staticmethod
    def export_to_csv(
        results: Any, filepath: str, variables: Optional[List[str]] = None
    ):
        """
        Export sweep results to CSV file.

        Args:
            results: CycleResults or MultiCylinderResults object
            filepath: Output file path
            variables: List of column names to export (None = all)

        Raises:
            ValueError: If no exportable column is found
        """
        data_dict: Dict[str, Any] = {}

        if hasattr(results, "crank_angles_deg"):
            data_dict["crank_angle_deg"] = results.crank_angles_deg

        # Single-cylinder columns
        for name in (
            "piston_position",
            "pressure",
            "temperature",
            "intake_lift",
            "exhaust_lift",
            "combustion_progress",
        ):
            if hasattr(results, name):
                data_dict[name] = getattr(results, name)

        if hasattr(results, "spark"):
            data_dict["spark"] = results.spark.astype(int)

        if hasattr(results, "phases") and results.phases:
            data_dict["phase"] = [_to_text(p) for p in results.phases]

        # Multi-cylinder columns
        if hasattr(results, "time"):
            data_dict["time_s"] = results.time

        if hasattr(results, "cylinder_pressure"):
            for cyl_id, series in sorted(results.cylinder_pressure.items()):
                data_dict[f"cyl{cyl_id}_pressure"] = series

        if hasattr(results, "cylinder_phases"):
            for cyl_id, phases in sorted(results.cylinder_phases.items()):
                data_dict[f"cyl{cyl_id}_phase"] = [_to_text(p) for p in phases]

        if hasattr(results, "total_torque"):
            data_dict["total_torque"] = results.total_torque

        if hasattr(results, "total_power"):
            data_dict["total_power_hp"] = results.total_power

        # Filter by requested variables
        if variables:
            data_dict = {k: v for k, v in data_dict.items() if k in variables}

        if len(data_dict) == 0:
            raise ValueError("No data to export")

        num_rows = len(next(iter(data_dict.values())))

        with open(filepath, "w", newline="") as csvfile:
            writer = csv.writer(csvfile)
            writer.writerow(data_dict.keys())
            for i in range(num_rows):
                writer.writerow([data_dict[key][i] for key in data_dict])

        log.info("Data exported to %s", filepath)

    @staticmethod
    def export_to_json(data: Dict[str, Any], filepath: str):
        """
        Export data dictionary to JSON file.

        Args:
            data: Dictionary of data to export
            filepath: Output file path
        """
        with open(filepath, "w") as f:
            json.dump(_to_serialisable(data), f, indent=2)

        log.info("Data exported to %s", filepath)

    @staticmethod
    def create_performance_report(metrics: Dict[str, float]) -> str:
        """
        Create formatted performance report string.

        Args:
            metrics: Dictionary of performance metrics

        Returns:
            Formatted report string
        """
        report = []
        report.append("=" * 60)
        report.append("ENGINE CYCLE REPORT")
        report.append("=" * 60)
        report.append("")

        report.append("TORQUE & POWER:")
        report.append("-" * 60)
        if "mean_torque" in metrics:
            report.append(f"  Mean Torque:            {metrics['mean_torque']:.3f}")
        if "peak_torque" in metrics:
            report.append(
                f"  Peak Torque:            {metrics['peak_torque']:.3f} "
                f"@ {metrics.get('peak_torque_angle_deg', 0):.0f}°"
            )
        if "torque_variation_pct" in metrics:
            report.append(
                f"  Torque Variation:       {metrics['torque_variation_pct']:.1f}%"
            )
        if "mean_power_hp" in metrics:
            report.append(f"  Mean Power:             {metrics['mean_power_hp']:.2f} HP")
        report.append("")

        report.append("PEAK VALUES:")
        report.append("-" * 60)
        if "peak_pressure" in metrics:
            report.append(
                f"  Peak Pressure:          {metrics['peak_pressure']:.2f} "
                f"@ {metrics.get('peak_pressure_angle_deg', 0):.0f}°"
            )
        if "peak_temperature" in metrics:
            report.append(
                f"  Peak Temperature:       {metrics['peak_temperature']:.2f} "
                f"@ {metrics.get('peak_temperature_angle_deg', 0):.0f}°"
            )
        report.append("")

        report.append("TIMING:")
        report.append("-" * 60)
        if "spark_angle_deg" in metrics:
            report.append(f"  Spark At:               {metrics['spark_angle_deg']:.0f}°")
        if "valve_overlap_measured_deg" in metrics:
            report.append(
                f"  Valve Overlap:          {metrics['valve_overlap_measured_deg']:.0f}°"
            )
        report.append("")

        report.append("GEOMETRY:")
        report.append("-" * 60)
        if "displacement_liters" in metrics:
            report.append(
                f"  Total Displacement:     {metrics['displacement_liters']:.3f} L"
            )
        if "mean_piston_speed_ms" in metrics:
            report.append(
                f"  Mean Piston Speed:      {metrics['mean_piston_speed_ms']:.2f} m/s"
            )
        report.append("")

        report.append("=" * 60)

        return "\n".join(report)


def _to_text(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


def _to_serialisable(value: Any) -> Any:
    """Convert numpy and enum values to JSON-compatible types."""
    if isinstance(value, dict):
        return {str(_to_text(k)): _to_serialisable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_serialisable(v) for v in value]
    if isinstance(value, np.ndarray):
        return _to_serialisable(value.tolist())
    if isinstance(value, np.generic):
        return value.item()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (int, float, str, bool, type(None))):
        return value
    return str(value)


def calculate_statistics(data: List[float]) -> Dict[str, float]:
    """
    Calculate basic statistics for a data series.

    Args:
        data: List or array of numerical data

    Returns:
        Dictionary of statistics
    """
    data_array = np.array(data, dtype=float)

    stats = {
        "mean": float(np.mean(data_array)),
        "std": float(np.std(data_array, ddof=0)),
        "min": float(np.min(data_array)),
        "max": float(np.max(data_array)),
        "median": float(np.median(data_array)),
        "range": float(np.max(data_array) - np.min(data_array)),  # peak-to-peak
    }

    return stats
