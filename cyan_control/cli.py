"""
Command-line runner for simulated path following.

This module wires a simulated tank chassis, a pose estimator and the path
follower together, follows a waypoint path in closed loop, records the run to
CSV files and optionally plots it.
"""

import argparse
import logging
from typing import List, Optional, Sequence, Tuple

from .config import (
    PID_KD,
    PID_KI,
    PID_KP,
    PLOT_FILE_NAME,
    SIM_ADMISSIBLE_ERROR,
    SIM_DT,
    SIM_LOOKAHEAD,
    SIM_MAX_STEPS,
    SIM_WAYPOINTS,
    TERM_BLUE,
    TERM_RESET,
)
from .data_collector import DataCollector
from .debugger import Logger
from .localizer import LocalizerKind
from .path import Path
from .pid import PIDCoefficients
from .simulation import SUPPORTED_KINDS, run_simulation
from .visualization import plot_run


class CustomFormatter(logging.Formatter):
    """Custom logging formatter that removes timestamps from INFO messages.

    This formatter provides clean console output by showing INFO messages without
    timestamps while preserving full context for WARNING, ERROR, and DEBUG messages.
    """

    def format(self, record: logging.LogRecord) -> str:
        if record.levelno == logging.INFO:
            return record.getMessage()
        return f"{self.formatTime(record, self.datefmt)} - {record.levelname} - {record.getMessage()}"


def setup_logging(verbose: bool = False) -> None:
    """Configure logging based on verbosity level.

    Args:
        verbose: If True, show all levels with timestamps. If False, show INFO
                 without timestamps and WARNING/ERROR with timestamps.
    """
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    else:
        handler = logging.StreamHandler()
        handler.setFormatter(CustomFormatter(datefmt="%Y-%m-%d %H:%M:%S"))
        logger = logging.getLogger()
        logger.setLevel(logging.INFO)
        logger.addHandler(handler)


def parse_waypoints(text: str) -> List[Tuple[float, float]]:
    """Parse ``"x,y x,y ..."`` into coordinate pairs.

    Raises:
        argparse.ArgumentTypeError: If a waypoint is malformed.
    """
    waypoints = []
    for token in text.split():
        parts = token.split(",")
        if len(parts) != 2:
            raise argparse.ArgumentTypeError(f"Waypoint must be 'x,y', got {token!r}")
        try:
            waypoints.append((float(parts[0]), float(parts[1])))
        except ValueError:
            raise argparse.ArgumentTypeError(f"Waypoint coordinates must be numbers, got {token!r}")
    return waypoints


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cyan_control",
        description="Follow a waypoint path with a simulated tank chassis",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Default square corner with drive encoder odometry
  python -m cyan_control

  # Three dead wheels on a custom path, saving a plot
  python -m cyan_control --estimator three-dead-wheel --waypoints "0,0 80,20 120,90" --plot
        """,
    )
    parser.add_argument(
        "--estimator",
        choices=[kind.value for kind in SUPPORTED_KINDS],
        default=LocalizerKind.TANK.value,
        help="Pose estimator to run (default: tank)",
    )
    parser.add_argument(
        "--waypoints",
        type=parse_waypoints,
        default=parse_waypoints(SIM_WAYPOINTS),
        help=f'Space-separated "x,y" waypoints (default: "{SIM_WAYPOINTS}")',
    )
    parser.add_argument("--lookahead", type=float, default=SIM_LOOKAHEAD, help="Lookahead radius")
    parser.add_argument(
        "--admissible-error", type=float, default=SIM_ADMISSIBLE_ERROR, help="Arrival tolerance"
    )
    parser.add_argument("--kp", type=float, default=PID_KP, help="Heading proportional gain")
    parser.add_argument("--ki", type=float, default=PID_KI, help="Heading integral gain")
    parser.add_argument("--kd", type=float, default=PID_KD, help="Heading derivative gain")
    parser.add_argument("--dt", type=float, default=SIM_DT, help="Control period in seconds")
    parser.add_argument("--max-steps", type=int, default=SIM_MAX_STEPS, help="Step budget")
    parser.add_argument(
        "--output-dir", default=".", help="Base directory for the results/ folder (default: .)"
    )
    parser.add_argument("--plot", action="store_true", help="Save a trajectory plot in the run directory")
    parser.add_argument(
        "--no-reverse-drive",
        action="store_true",
        help="Always drive forwards, turning in place towards targets behind the robot",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable verbose logging with timestamps"
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run one simulated path-following session.

    Returns:
        Process exit code: 0 when the path was finished, 1 otherwise.
    """
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)

    try:
        path = Path.from_coordinates(args.waypoints)
    except ValueError as e:
        # Too few waypoints, or a non-finite coordinate
        logging.error(f"Error: {e}")
        return 1

    debug_logger = Logger()
    with DataCollector(output_dir=args.output_dir) as collector:
        result = run_simulation(
            path,
            kind=LocalizerKind(args.estimator),
            lookahead=args.lookahead,
            admissible_error=args.admissible_error,
            coefficients=PIDCoefficients(args.kp, args.ki, args.kd),
            dt=args.dt,
            max_steps=args.max_steps,
            reverse_drive=not args.no_reverse_drive,
            collector=collector,
            logger=debug_logger,
        )

        if args.plot:
            plot_path = collector.run_dir / PLOT_FILE_NAME
            plot_run(result, path, save_path=plot_path)
            logging.info(f"{TERM_BLUE}✓ Saved plot to {plot_path}{TERM_RESET}")

    logging.info(
        f"{'Finished' if result.finished else 'Did not finish'} in {result.steps} steps | "
        f"mean tracking error {result.mean_tracking_error:.3f} | "
        f"max {result.max_tracking_error:.3f} | "
        f"estimate drift {result.final_estimate_error:.3f}"
    )
    return 0 if result.finished else 1
