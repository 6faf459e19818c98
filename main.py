"""CLI for running lobby dispatch scenarios defined in YAML configs."""
import argparse
import sys
from pathlib import Path

from config import load_simulation_config
from simulator import build_simulation, load_trips_from_csv
from analyzer import TripReport


def run_simulation(config_path, trips_path=None, realtime_factor=None, timeout=None,
                   event_log=None, trajectory_plot=None):
    """
    Set up and run the entire simulation

    Args:
        config_path: Path to simulation configuration YAML file
        trips_path: CSV with the lobby arrivals (overrides trips_file)
        realtime_factor: Realtime speed factor (overrides the config)
        timeout: Operator timeout in seconds (overrides the config)
        event_log: JSON Lines output path (overrides the config)
        trajectory_plot: PNG output path (overrides the config)

    Returns:
        (Simulation, TripReport)
    """
    print("--- Loading Configuration ---")
    config = load_simulation_config(config_path)
    print(f"Simulation Config: {config_path}")

    if realtime_factor is not None:
        config.realtime_factor = realtime_factor
    if timeout is not None:
        config.timeout = timeout
    if event_log is not None:
        config.event_log = event_log
    if trajectory_plot is not None:
        config.trajectory_plot = trajectory_plot

    trips_file = trips_path or config.trips_file
    if not trips_file:
        raise ValueError("No trips file given (use --trips or set simulation.trips_file)")
    trips = load_trips_from_csv(trips_file)
    print(f"Loaded {len(trips)} trip(s) from {trips_file}")

    print("\n--- Simulation Setup ---")
    simulation = build_simulation(config, trips)
    simulation.run(timeout=config.timeout)

    report = TripReport(simulation.dispatcher, simulation.skipped_trips)
    report.print_report()

    if simulation.statistics is not None:
        if config.event_log:
            simulation.statistics.save_event_log(config.event_log)
        if config.trajectory_plot:
            simulation.statistics.plot_trajectory_diagram(config.trajectory_plot)

    return simulation, report


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("config", type=Path, help="Path to a YAML simulation configuration file")
    parser.add_argument("--trips", type=Path, help="CSV file with name, arrival time and floor per row")
    parser.add_argument("--realtime", type=float, metavar="FACTOR",
                        help="Pace the run against the wall clock (1.0 = real time)")
    parser.add_argument("--timeout", type=float, metavar="SECONDS",
                        help="Abort the run after this many simulated seconds")
    parser.add_argument("--event-log", help="Write the JSON Lines event log to this file")
    parser.add_argument("--plot", help="Save the cabin trajectory diagram to this PNG file")
    args = parser.parse_args(argv)

    simulation, _ = run_simulation(
        args.config,
        trips_path=args.trips,
        realtime_factor=args.realtime,
        timeout=args.timeout,
        event_log=args.event_log,
        trajectory_plot=args.plot,
    )

    if not simulation.completed:
        print(f"Run incomplete: {simulation.dispatcher.waiting_count} trip(s) still waiting, "
              f"{len(simulation.skipped_trips)} skipped")
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
