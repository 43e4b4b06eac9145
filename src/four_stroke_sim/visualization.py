"""
Visualization Module
Creates plots of simulated cycles.

These are offline analysis plots (matplotlib); the live animation renderer
is a separate consumer of the same cylinder state.
"""

from typing import Optional

import matplotlib.pyplot as plt
from matplotlib.gridspec import GridSpec
import numpy as np

from .engine_config import CYLINDER_IDS, StrokePhase
from .logging_setup import get_logger
from .multi_cylinder_simulator import MultiCylinderResults
from .single_cylinder_simulator import CycleResults

log = get_logger(__name__)

PHASE_COLORS = {
    StrokePhase.INTAKE: "#4FC3F7",
    StrokePhase.COMPRESSION: "#FFB74D",
    StrokePhase.POWER: "#EF5350",
    StrokePhase.EXHAUST: "#78909C",
}


class EnginePlotter:
    """
    Creates plots for engine cycle results.

    Supports:
    - Pressure and temperature vs crank angle
    - Valve lift diagram
    - Piston position vs a pure sinusoid
    - Multi-cylinder torque curve
    """

    def __init__(self, style: str = "default", show: bool = True):
        """
        Initialize plotter with specified style.

        Args:
            style: Matplotlib style ('default', 'seaborn', 'ggplot')
            show: Call plt.show() after each plot (False for batch export)
        """
        if style != "default":
            try:
                plt.style.use(style)
            except OSError as e:
                log.warning("Style '%s' not found, using default: %s", style, e)

        self.show = show
        self.fig_size = (12, 6)
        self.dpi = 100

    # ── Helpers ───────────────────────────────────────────────────────────

    @staticmethod
    def _shade_phases(ax):
        """Shade each stroke of a local-angle sweep in its phase colour."""
        for phase in StrokePhase:
            start, end = phase.interval
            ax.axvspan(
                start, end, alpha=0.15, color=PHASE_COLORS[phase], label=phase.label
            )

    @staticmethod
    def _mark_dead_centres(ax):
        ax.axvline(0, color="red", linestyle="--", alpha=0.5, label="TDC")
        ax.axvline(180, color="blue", linestyle="--", alpha=0.5, label="BDC")
        ax.axvline(360, color="red", linestyle="--", alpha=0.5)
        ax.axvline(540, color="blue", linestyle="--", alpha=0.5)

    @staticmethod
    def _dedup_legend(ax, **kwargs):
        handles, labels = ax.get_legend_handles_labels()
        by_label = dict(zip(labels, handles))
        ax.legend(by_label.values(), by_label.keys(), **kwargs)

    def _finish(self, fig, save_path: Optional[str], what: str):
        fig.tight_layout()

        if save_path:
            fig.savefig(save_path, dpi=150, bbox_inches="tight")
            log.info("%s saved to %s", what, save_path)

        if self.show:
            plt.show()
        else:
            plt.close(fig)
        return fig

    # ── Single-cylinder plots ─────────────────────────────────────────────

    def plot_pressure_angle(
        self, results: CycleResults, save_path: Optional[str] = None
    ):
        """
        Plot relative pressure vs local crank angle.

        Args:
            results: Single cylinder simulation results
            save_path: Optional path to save figure
        """
        fig, ax = plt.subplots(figsize=self.fig_size, dpi=self.dpi)

        self._shade_phases(ax)
        ax.plot(results.crank_angles_deg, results.pressure, "b-", linewidth=2)

        # Spark window
        spark_angles = results.crank_angles_deg[results.spark]
        if spark_angles.size:
            ax.axvspan(
                spark_angles.min(),
                spark_angles.max(),
                color="yellow",
                alpha=0.6,
                label="Spark",
            )

        self._mark_dead_centres(ax)
        ax.set_xlim(0, 720)
        ax.set_xlabel("Crank Angle (degrees)", fontsize=12, fontweight="bold")
        ax.set_ylabel("Pressure (relative)", fontsize=12, fontweight="bold")
        ax.set_title("Cylinder Pressure vs Crank Angle", fontsize=14, fontweight="bold")
        ax.grid(True, alpha=0.3)
        self._dedup_legend(ax, fontsize=9, loc="upper right")

        return self._finish(fig, save_path, "Pressure-angle plot")

    def plot_temperature_angle(
        self, results: CycleResults, save_path: Optional[str] = None
    ):
        """
        Plot relative temperature and combustion progress vs crank angle.

        Args:
            results: Single cylinder simulation results
            save_path: Optional path to save figure
        """
        fig, ax = plt.subplots(figsize=self.fig_size, dpi=self.dpi)

        self._shade_phases(ax)
        ax.plot(
            results.crank_angles_deg,
            results.temperature,
            "r-",
            linewidth=2,
            label="Temperature",
        )
        ax.plot(
            results.crank_angles_deg,
            results.combustion_progress,
            "k:",
            linewidth=1.5,
            label="Combustion progress",
        )

        ax.set_xlim(0, 720)
        ax.set_ylim(0, 1.1)
        ax.set_xlabel("Crank Angle (degrees)", fontsize=12, fontweight="bold")
        ax.set_ylabel("Relative value", fontsize=12, fontweight="bold")
        ax.set_title("Gas Temperature vs Crank Angle", fontsize=14, fontweight="bold")
        ax.grid(True, alpha=0.3)
        self._dedup_legend(ax, fontsize=9, loc="upper left")

        return self._finish(fig, save_path, "Temperature-angle plot")

    def plot_valve_lift(self, results: CycleResults, save_path: Optional[str] = None):
        """
        Plot intake and exhaust valve lift; the overlap region is shaded.

        Args:
            results: Single cylinder simulation results
            save_path: Optional path to save figure
        """
        fig, ax = plt.subplots(figsize=self.fig_size, dpi=self.dpi)

        angles = results.crank_angles_deg
        ax.plot(angles, results.intake_lift, color="#1E88E5", linewidth=2, label="Intake")
        ax.plot(
            angles, results.exhaust_lift, color="#6D4C41", linewidth=2, label="Exhaust"
        )
        ax.fill_between(
            angles,
            0,
            np.minimum(results.intake_lift, results.exhaust_lift),
            where=(results.intake_lift > 0) & (results.exhaust_lift > 0),
            color="purple",
            alpha=0.3,
            label="Overlap",
        )

        ax.set_xlim(0, 720)
        ax.set_ylim(0, 1.05)
        ax.set_xlabel("Crank Angle (degrees)", fontsize=12, fontweight="bold")
        ax.set_ylabel("Lift (fraction of max)", fontsize=12, fontweight="bold")
        ax.set_title("Valve Lift Diagram", fontsize=14, fontweight="bold")
        ax.grid(True, alpha=0.3)
        ax.legend(fontsize=10)

        return self._finish(fig, save_path, "Valve lift plot")

    def plot_piston_position(
        self, results: CycleResults, save_path: Optional[str] = None
    ):
        """
        Compare the slider-crank piston position with a pure sinusoid.

        Args:
            results: Single cylinder simulation results
            save_path: Optional path to save figure
        """
        fig, ax = plt.subplots(figsize=self.fig_size, dpi=self.dpi)

        angles = results.crank_angles_deg
        sinusoid = 0.5 * (1.0 - np.cos(np.radians(angles)))
        ax.plot(angles, results.piston_position, "b-", linewidth=2, label="Slider-crank")
        ax.plot(angles, sinusoid, "k--", linewidth=1, alpha=0.6, label="Sinusoid")

        ax.invert_yaxis()  # TDC at the top
        ax.set_xlim(0, 720)
        ax.set_xlabel("Crank Angle (degrees)", fontsize=12, fontweight="bold")
        ax.set_ylabel("Piston position (0 = TDC)", fontsize=12, fontweight="bold")
        ax.set_title("Piston Position vs Crank Angle", fontsize=14, fontweight="bold")
        ax.grid(True, alpha=0.3)
        ax.legend(fontsize=10)

        return self._finish(fig, save_path, "Piston position plot")

    # ── Multi-cylinder plots ──────────────────────────────────────────────

    def plot_multi_cylinder_torque(
        self, results: MultiCylinderResults, save_path: Optional[str] = None
    ):
        """
        Plot per-cylinder pressure and total torque against global angle.

        Args:
            results: Multi-cylinder simulation results
            save_path: Optional path to save figure
        """
        fig, (ax1, ax2) = plt.subplots(2, 1, figsize=(12, 10), dpi=self.dpi)

        for cyl_id in CYLINDER_IDS:
            ax1.plot(
                results.crank_angles_deg,
                results.cylinder_pressure[cyl_id],
                alpha=0.7,
                linewidth=1,
                label=f"Cylinder {cyl_id}",
            )
        for cyl_id, angle in results.firing_angles.items():
            ax1.axvline(angle, color="gray", linestyle=":", alpha=0.6)

        ax1.set_xlim(0, 720)
        ax1.set_xlabel("Global Crank Angle (degrees)", fontsize=12, fontweight="bold")
        ax1.set_ylabel("Pressure (relative)", fontsize=12, fontweight="bold")
        ax1.set_title(
            "Cylinder Pressures (firing order 1-3-4-2)", fontsize=14, fontweight="bold"
        )
        ax1.grid(True, alpha=0.3)
        ax1.legend(fontsize=9, ncol=2)

        ax2.plot(
            results.crank_angles_deg,
            results.total_torque,
            "b-",
            linewidth=2,
            label="Total Torque",
        )
        ax2.axhline(
            results.mean_torque,
            color="r",
            linestyle="--",
            label=f"Mean = {results.mean_torque:.2f}",
        )

        ax2.set_xlim(0, 720)
        ax2.set_xlabel("Global Crank Angle (degrees)", fontsize=12, fontweight="bold")
        ax2.set_ylabel("Torque (relative)", fontsize=12, fontweight="bold")
        ax2.set_title(
            f"Total Engine Torque (Variation: {results.torque_variation:.1f}%)",
            fontsize=14,
            fontweight="bold",
        )
        ax2.grid(True, alpha=0.3)
        ax2.legend(fontsize=10)

        return self._finish(fig, save_path, "Multi-cylinder torque plot")

    def plot_comprehensive_analysis(
        self,
        results: CycleResults,
        engine_results: MultiCylinderResults,
        save_path: Optional[str] = None,
    ):
        """
        Create a 4-panel overview: pressure, temperature, valves, torque.

        Args:
            results: Single cylinder simulation results
            engine_results: Multi-cylinder simulation results
            save_path: Optional path to save figure
        """
        fig = plt.figure(figsize=(16, 12), dpi=self.dpi)
        gs = GridSpec(2, 2, figure=fig, hspace=0.3, wspace=0.3)
        angles = results.crank_angles_deg

        ax1 = fig.add_subplot(gs[0, 0])
        ax1.plot(angles, results.pressure, "b-", linewidth=2)
        ax1.set_xlabel("Crank Angle (deg)", fontweight="bold")
        ax1.set_ylabel("Pressure (relative)", fontweight="bold")
        ax1.set_title("Pressure vs Crank Angle", fontweight="bold")
        ax1.grid(True, alpha=0.3)

        ax2 = fig.add_subplot(gs[0, 1])
        ax2.plot(angles, results.temperature, "r-", linewidth=2)
        ax2.set_xlabel("Crank Angle (deg)", fontweight="bold")
        ax2.set_ylabel("Temperature (relative)", fontweight="bold")
        ax2.set_title("Temperature vs Crank Angle", fontweight="bold")
        ax2.grid(True, alpha=0.3)

        ax3 = fig.add_subplot(gs[1, 0])
        ax3.plot(angles, results.intake_lift, linewidth=2, label="Intake")
        ax3.plot(angles, results.exhaust_lift, linewidth=2, label="Exhaust")
        ax3.set_xlabel("Crank Angle (deg)", fontweight="bold")
        ax3.set_ylabel("Lift", fontweight="bold")
        ax3.set_title("Valve Lift", fontweight="bold")
        ax3.grid(True, alpha=0.3)
        ax3.legend()

        ax4 = fig.add_subplot(gs[1, 1])
        ax4.plot(
            engine_results.crank_angles_deg,
            engine_results.total_torque,
            "g-",
            linewidth=2,
        )
        ax4.axhline(engine_results.mean_torque, color="r", linestyle="--", alpha=0.6)
        ax4.set_xlabel("Global Crank Angle (deg)", fontweight="bold")
        ax4.set_ylabel("Torque (relative)", fontweight="bold")
        ax4.set_title("Instantaneous Engine Torque", fontweight="bold")
        ax4.grid(True, alpha=0.3)

        fig.suptitle("Four-Stroke Cycle Analysis", fontsize=16, fontweight="bold")

        return self._finish(fig, save_path, "Comprehensive analysis")
