"""
Basic Engine Cycle Example
Demonstrates simple usage of the four-stroke simulator.
"""

import os

import matplotlib.pyplot as plt

# Headless environment check for plot exports
if "DISPLAY" not in os.environ and os.name != "nt":
    import matplotlib

    matplotlib.use("Agg")
    print("Physical display not detected. Using 'Agg' backend for plot exports.")

from four_stroke_sim.clock import CrankAngleClock
from four_stroke_sim.engine_config import DEFAULT_SETTINGS, get_preset
from four_stroke_sim.multi_cylinder_simulator import MultiCylinderSimulator, engine_frame
from four_stroke_sim.single_cylinder_simulator import SingleCylinderSimulator
from four_stroke_sim.utilities import DataExporter
from four_stroke_sim.visualization import EnginePlotter


def example_1_single_cylinder():
    """Example 1: One cylinder through a full cycle"""

    print("=" * 70)
    print("EXAMPLE 1: Single Cylinder Cycle")
    print("=" * 70)
    print()

    settings = DEFAULT_SETTINGS.updated(rpm=3000.0, throttle=60.0)

    simulator = SingleCylinderSimulator(settings, angular_resolution=1.0)
    results = simulator.simulate_cycle()
    metrics = simulator.calculate_performance_metrics(results)

    print(DataExporter.create_performance_report(metrics))

    plotter = EnginePlotter()
    plotter.plot_pressure_angle(results, save_path="./example1_pressure.png")
    plotter.plot_valve_lift(results, save_path="./example1_valves.png")

    DataExporter.export_to_csv(results, "./example1_cycle_data.csv")

    return results, metrics


def example_2_live_frames():
    """Example 2: Drive the crank-angle clock frame by frame"""

    print("=" * 70)
    print("EXAMPLE 2: Crank-Angle Clock")
    print("=" * 70)
    print()

    settings = get_preset("study").settings()
    clock = CrankAngleClock()
    fps = 30.0

    for i in range(10):
        angle = clock.tick(i / fps, settings)
        frame = engine_frame(angle, settings)
        phases = ", ".join(f"#{s.id} {s.phase.label}" for s in frame.states)
        print(f"  {angle:6.2f}°  firing #{frame.firing_cylinder}  {phases}")

    clock.pause()
    print(f"\n  Paused at {clock.angle:.2f}°; stepping one degree back")
    clock.step_by(-1.0)
    print(f"  Now at {clock.angle:.2f}°")
    print()

    return clock


def example_3_inline_4_engine():
    """Example 3: Inline-4 torque over one cycle"""

    print("=" * 70)
    print("EXAMPLE 3: Inline-4 Multi-Cylinder Engine")
    print("=" * 70)
    print()

    settings = get_preset("cruising").settings()
    simulator = MultiCylinderSimulator(settings, angular_resolution=1.0)
    results = simulator.simulate_engine()

    print("\nMulti-Cylinder Results:")
    print(f"  Firing Order:      {'-'.join(map(str, simulator.firing_sequence()))}")
    print(f"  Mean Torque:       {results.mean_torque:.3f}")
    print(f"  Peak Torque:       {results.peak_torque:.3f} @ {results.peak_torque_angle:.0f}°")
    print(f"  Torque Variation:  {results.torque_variation:.2f}%")
    print(f"  Mean Power:        {results.mean_power_hp:.2f} HP")
    print()

    plotter = EnginePlotter()
    plotter.plot_multi_cylinder_torque(results, save_path="./example3_torque.png")

    return results


def example_4_parametric_study():
    """Example 4: Parametric study of throttle opening"""

    print("=" * 70)
    print("EXAMPLE 4: Parametric Study - Throttle Effect")
    print("=" * 70)
    print()

    throttles = [10.0, 25.0, 40.0, 60.0, 80.0, 100.0]
    mean_torques = []
    peak_pressures = []

    for throttle in throttles:
        settings = DEFAULT_SETTINGS.updated(rpm=3000.0, throttle=throttle)
        engine = MultiCylinderSimulator(settings, angular_resolution=2.0).simulate_engine()
        cylinder = SingleCylinderSimulator(settings, angular_resolution=2.0)
        metrics = cylinder.calculate_performance_metrics(cylinder.simulate_cycle())

        mean_torques.append(engine.mean_torque)
        peak_pressures.append(metrics["peak_pressure"])

        print(
            f"  Throttle {throttle:5.1f}%: T={mean_torques[-1]:.3f}, "
            f"p_max={peak_pressures[-1]:.2f}"
        )

    print()

    fig, (ax1, ax2) = plt.subplots(1, 2, figsize=(12, 5))

    ax1.plot(throttles, mean_torques, "bo-", linewidth=2, markersize=8)
    ax1.set_xlabel("Throttle (%)", fontweight="bold")
    ax1.set_ylabel("Mean Torque (relative)", fontweight="bold")
    ax1.set_title("Torque vs Throttle", fontweight="bold")
    ax1.grid(True, alpha=0.3)

    ax2.plot(throttles, peak_pressures, "ro-", linewidth=2, markersize=8)
    ax2.set_xlabel("Throttle (%)", fontweight="bold")
    ax2.set_ylabel("Peak Pressure (relative)", fontweight="bold")
    ax2.set_title("Peak Pressure vs Throttle", fontweight="bold")
    ax2.grid(True, alpha=0.3)

    plt.tight_layout()
    plt.savefig("./example4_parametric.png", dpi=300)
    plt.show()

    print("Parametric study complete!")


def main():
    """Run all examples"""

    print("\n")
    print("╔" + "═" * 68 + "╗")
    print("║" + " " * 19 + "FOUR-STROKE CYCLE EXAMPLES" + " " * 23 + "║")
    print("╚" + "═" * 68 + "╝")
    print("\n")

    example_1_single_cylinder()
    print("\n" + "─" * 70 + "\n")

    example_2_live_frames()
    print("\n" + "─" * 70 + "\n")

    example_3_inline_4_engine()
    print("\n" + "─" * 70 + "\n")

    example_4_parametric_study()

    print("\n" + "═" * 70)
    print("All examples completed successfully!")
    print("═" * 70 + "\n")


if __name__ == "__main__":
    main()
