"""Configuration parameters for the cyan control core.

This module centralizes all configuration parameters including:
- Numerical tolerances shared by the geometry and path code
- Pure pursuit and path following defaults
- Steering PID defaults
- Debug logger sizing
- Simulation, recording and visualization settings

Components receive these values as constructor defaults; any of them can be
overridden per instance.
"""

# ============================================================================
# Numerical Tolerances
# ============================================================================

EPSILON = 1e-9
"""Default tolerance for floating point equality checks."""

DISTANCE_EQUALITY_TOLERANCE_M = 1e-10
"""Two distances closer than this (meters) compare equal."""

POINT_DIFFERENCE_THRESHOLD = 0.003
"""Coordinate difference below which two segment endpoints share an axis.

The intersection kernel nudges the first endpoint by this amount on a
degenerate axis so the segment slope stays finite.
"""

CLOSEST_POINT_SWITCH_THRESHOLD = 0.003
"""Minimum improvement (path units) before a closer waypoint replaces the current best.

Prevents the nearest-waypoint choice from chattering under pose noise.
"""

BOUNDS_TOLERANCE = 1e-9
"""Slack applied to a segment's bounding box when admitting intersection roots."""


# ============================================================================
# Path Following Parameters
# ============================================================================

DEFAULT_LOOKAHEAD = 0.3
"""Default pure pursuit lookahead radius (path units).

Larger values cut corners and smooth the trajectory, smaller values track
the waypoints more tightly but oscillate more.
"""

DEFAULT_ADMISSIBLE_ERROR = 0.05
"""Default distance below which a point counts as reached (path units)."""

REVERSE_DRIVE_HEADING = 1.5707963267948966
"""Heading error (rad) beyond which a tank drive reverses instead of spinning (π/2)."""

REVERSE_STEER_SCALE = -0.5
"""Steering multiplier applied while reverse driving."""


# ============================================================================
# Steering PID Parameters
# ============================================================================

PID_KP = 1.0
"""Default proportional gain on heading error (proportional-only controller)."""

PID_KI = 0.0
"""Default integral gain on heading error."""

PID_KD = 0.0
"""Default derivative gain on heading error."""

PID_MIN_DELTA_TIME = 1e-6
"""Time steps at or below this (seconds) are treated as a first update."""

PID_MAX_INTEGRAL = float("inf")
"""Default anti-windup limit (unbounded until configured)."""


# ============================================================================
# Debug Logger
# ============================================================================

LOGGER_CAPACITY = 50
"""Default number of debug packets buffered before the logger stops recording."""

LOGGER_FULL_MESSAGE = (
    "Logger buffer has reached its maximum capacity and will NOT be able to "
    "record until dumped or cleared."
)
"""Content of the one-shot warning packet recorded when the buffer fills up."""


# ============================================================================
# Simulation Parameters
# ============================================================================

SIM_TRACK_WIDTH = 30.0
"""Distance between the left and right drive wheels of the simulated chassis (cm)."""

SIM_ENCODER_WIDTH = 25.0
"""Distance between the two parallel dead wheels of the simulated chassis (cm)."""

SIM_MAX_WHEEL_SPEED = 50.0
"""Wheel surface speed at full motor power (cm/s)."""

SIM_TICKS_TO_DISTANCE = 0.05
"""Simulated encoder resolution (cm per tick)."""

SIM_DT = 0.02
"""Simulated control period (seconds). 50 Hz matches a typical robot loop."""

SIM_MAX_STEPS = 3000
"""Upper bound on simulated control ticks for one run."""

SIM_LOOKAHEAD = 10.0
"""Lookahead radius used by the simulation CLI (cm)."""

SIM_ADMISSIBLE_ERROR = 2.0
"""Arrival tolerance used by the simulation CLI (cm)."""

SIM_WAYPOINTS = "0,0 100,0 100,100"
"""Default waypoint list for the simulation CLI (cm)."""


# ============================================================================
# Recording and Visualization
# ============================================================================

RESULTS_DIR_NAME = "results"
"""Directory (below the output directory) holding timestamped run folders."""

TRAJECTORY_CSV_NAME = "trajectory.csv"
"""Per-tick pose and motor power recording."""

DEBUG_CSV_NAME = "debug_packets.csv"
"""Flushed debug logger packets."""

PLOT_FILE_NAME = "trajectory.png"
"""Figure written next to the CSV files when plotting is requested."""

COLOR_PATH = "#2374f7"
"""Reference path colour."""

COLOR_TRUTH = "#f74823"
"""Ground truth trajectory colour."""

COLOR_ESTIMATE = "#ffa726"
"""Estimated trajectory colour."""

COLOR_GUIDE = "#686a5f"
"""Neutral colour for waypoints and grids."""

TERM_BLUE = "\033[38;2;35;116;247m"
"""Terminal color code for highlighted CLI output."""

TERM_RESET = "\033[0m"
"""Terminal color reset code."""
