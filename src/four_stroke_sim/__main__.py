"""
CLI entry point for four_stroke_sim.
"""
import argparse
import os
import sys

from .clock import CrankAngleClock
from .engine_config import PRESETS, clamp_settings, get_preset
from .logging_setup import configure_logging, get_logger
from .multi_cylinder_simulator import MultiCylinderSimulator, engine_frame
from .single_cylinder_simulator import SingleCylinderSimulator
from .utilities import DataExporter

log = get_logger("four_stroke_sim.cli")

# CLI flag -> EngineSettings field
_SETTING_FLAGS = {
    "rpm": "rpm",
    "throttle": "throttle",
    "compression_ratio": "compression_ratio",
    "ignition_advance": "ignition_advance",
    "valve_overlap": "valve_overlap",
    "bore": "bore",
    "stroke": "stroke",
    "speed": "speed_multiplier",
}


def build_settings(args):
    """Preset settings with any explicit flags applied, clamped to slider ranges."""
    preset = get_preset(args.preset)

    overrides = {
        field: getattr(args, flag)
        for flag, field in _SETTING_FLAGS.items()
        if getattr(args, flag) is not None
    }
    settings = clamp_settings(preset.settings().updated(**overrides))
    return preset, settings


def format_frame(frame):
    lines = [
        f"Crank {frame.global_crank_angle:6.1f}°   "
        f"Torque {frame.torque:7.3f}   Power {frame.power_hp:7.3f} HP"
    ]
    for st in frame.states:
        lines.append(
            f"  #{st.id} {st.phase.label:<11} local {st.local_crank_angle:6.1f}°  "
            f"piston {st.piston_position:5.3f}  p {st.pressure:6.2f}  "
            f"T {st.temperature:4.2f}  in {st.intake_valve_lift:4.2f}  "
            f"ex {st.exhaust_valve_lift:4.2f}  burn {st.combustion_progress:4.2f}"
            + ("  SPARK" if st.spark_active else "")
        )
    return "\n".join(lines)


def run_frames(settings, clock, frames, fps):
    """Drive the clock at a fixed frame rate and print one line per frame."""
    dt = 1.0 / fps
    for i in range(frames):
        angle = clock.tick(i * dt, settings)
        frame = engine_frame(angle, settings)
        phases = " ".join(f"{s.id}:{s.phase.value[0].upper()}" for s in frame.states)
        print(
            f"frame {i:4d}  {frame.global_crank_angle:6.1f}°  [{phases}]  "
            f"torque {frame.torque:6.3f}  firing #{frame.firing_cylinder}"
        )


def run_preset(args):
    preset, settings = build_settings(args)

    print("\n" + "═" * 50)
    print(f"  {preset.title.upper()}: {settings.rpm:.0f} RPM, throttle {settings.throttle:.0f}%")
    print(
        f"  {settings.total_displacement_cc:.0f} cc, {settings.bore_stroke_label} "
        f"(B/S {settings.bore_stroke_ratio:.2f}), speed {settings.speed_multiplier:.2f}× "
        f"({settings.speed_label})"
    )
    print("═" * 50)

    clock = CrankAngleClock(angle=args.angle, running=not preset.start_paused)

    if args.frames:
        if not clock.running:
            log.info("Preset '%s' starts paused; resuming for frame run", preset.name)
            clock.resume()
        run_frames(settings, clock, args.frames, args.fps)
    else:
        print(format_frame(engine_frame(clock.snapshot(), settings)))

    if args.export_dir or args.plot:
        sc_results = SingleCylinderSimulator(settings, args.resolution).simulate_cycle()
        mc_sim = MultiCylinderSimulator(settings, args.resolution)
        mc_results = mc_sim.simulate_engine()
        print("─" * 50)
        print(f"Mean Torque: {mc_results.mean_torque:.3f}  Mean Power: {mc_results.mean_power_hp:.3f} HP")
        print(f"Firing order: {'-'.join(str(c) for c in mc_sim.firing_sequence())}")

    if args.export_dir:
        os.makedirs(args.export_dir, exist_ok=True)
        exporter = DataExporter()
        exporter.export_to_csv(sc_results, os.path.join(args.export_dir, "cylinder_cycle.csv"))
        exporter.export_to_csv(mc_results, os.path.join(args.export_dir, "engine_cycle.csv"))

        summary = {
            "preset": preset.name,
            "settings": settings.to_dict(),
            "mean_torque": mc_results.mean_torque,
            "peak_torque": mc_results.peak_torque,
            "peak_torque_angle_deg": mc_results.peak_torque_angle,
            "torque_variation_pct": mc_results.torque_variation,
            "mean_power_hp": mc_results.mean_power_hp,
            "firing_angles_deg": mc_results.firing_angles,
        }
        exporter.export_to_json(summary, os.path.join(args.export_dir, "engine_metrics.json"))
        print(f"Results exported to {args.export_dir}")

    if args.plot:
        import matplotlib

        matplotlib.use("Agg")
        from .visualization import EnginePlotter

        os.makedirs(args.plot, exist_ok=True)
        plotter = EnginePlotter(show=False)
        plotter.plot_pressure_angle(sc_results, os.path.join(args.plot, "pressure.png"))
        plotter.plot_valve_lift(sc_results, os.path.join(args.plot, "valves.png"))
        plotter.plot_multi_cylinder_torque(mc_results, os.path.join(args.plot, "torque.png"))
        print(f"Plots written to {args.plot}")

    print("═" * 50 + "\n")


def build_parser():
    parser = argparse.ArgumentParser(
        prog="four-stroke-sim", description="Four-stroke inline-4 engine cycle simulator"
    )
    parser.add_argument("--preset", choices=sorted(PRESETS), default="idle", help="Starting preset (default: idle)")
    parser.add_argument("--rpm", type=float, help="Engine speed in RPM")
    parser.add_argument("--throttle", type=float, help="Throttle opening in %%")
    parser.add_argument("--compression-ratio", type=float, help="Compression ratio")
    parser.add_argument("--ignition-advance", type=float, help="Spark advance in degrees BTDC")
    parser.add_argument("--valve-overlap", type=float, help="Valve overlap in degrees")
    parser.add_argument("--bore", type=float, help="Bore in mm")
    parser.add_argument("--stroke", type=float, help="Stroke in mm")
    parser.add_argument("--speed", type=float, help="Playback speed multiplier")
    parser.add_argument("--angle", type=float, default=0.0, help="Global crank angle in degrees (default: 0)")
    parser.add_argument("--frames", type=int, default=0, help="Run the clock for N frames")
    parser.add_argument("--fps", type=float, default=60.0, help="Frame rate for --frames (default: 60)")
    parser.add_argument("--resolution", type=float, default=1.0, help="Sweep step in degrees (default: 1.0)")
    parser.add_argument("--export-dir", help="Write cycle CSV and metrics JSON here")
    parser.add_argument("--plot", metavar="DIR", help="Write PNG plots here")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="-v info, -vv debug")
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    if args.fps <= 0:
        print(f"Error: --fps must be > 0, got {args.fps}")
        sys.exit(1)
    if args.resolution <= 0:
        print(f"Error: --resolution must be > 0, got {args.resolution}")
        sys.exit(1)
    configure_logging(args.verbose)
    run_preset(args)


if __name__ == "__main__":
    main()
