"""Cyan Control - Odometry and Pure Pursuit Path Following for Ground Robots

A small control core for tank, mecanum and dead-wheel chassis: it turns
encoder ticks (and optionally an IMU heading) into a pose estimate, and a
declared waypoint path into per-motor commands in [-1, 1].

## Architecture Overview

Every control tick flows through four layers:

### Layer 1: Pose Estimation (localizer.py)
Incremental dead reckoning from cumulative encoder readings.
- Differential drive with or without an IMU heading
- Two and three dead wheel odometry
- Four-wheel mecanum kinematics
- Output: Pose2D (x, y, theta) in the caller's distance unit

### Layer 2: Target Selection (pursuit.py, path.py)
Circle-line intersection pure pursuit over a segmented waypoint path.
- Segment cursor advances when the segment end enters the lookahead circle
- Falls back to the nearest waypoint when the circle misses the segment
- Output: lookahead point

### Layer 3: Steering (follower.py, pid.py)
PID on the heading error to the lookahead point.
- Linear effort split between the axes by their share of the error
- Output: DriveCommand (x, y, turn, heading_error)

### Layer 4: Chassis Mixing (model.py)
Maps a DriveCommand onto motor outputs for a tank or mecanum chassis.
- Reverse drive for targets behind a tank chassis
- Ratio-preserving normalization into [-1, 1]

## Modules

### Core
- `config.py` - Default tolerances, gains and simulation parameters
- `mathutil.py` - Angle wrapping and small numeric helpers
- `units.py` - Distance units and unit-carrying distances
- `geometry.py` - Pose2D, Point, Vector2D and SmartPoint
- `pid.py` - PID controller with anti-windup
- `localizer.py` - Measurement providers and pose estimators
- `path.py` - Path, PointSequence and PathSequence
- `pursuit.py` - Circle-line intersection pure pursuit
- `follower.py` - Path follower
- `model.py` - Tank and mecanum vector interpreters
- `debugger.py` - Bounded in-memory debug logger

### Simulation & Tooling
- `simulation.py` - Simulated tank chassis and closed-loop runner
- `data_collector.py` - CSV logging of runs
- `visualization.py` - Trajectory and motor power plots
- `cli.py` - Command-line runner

## Quick Start

```python
from cyan_control import (
    PathFollower, Path, Point, PIDController, TankDriveVectorInterpreter,
    TankKinematics, TankMeasurementProvider,
)

odometry = TankKinematics(TankMeasurementProvider(read_left, read_right), track_width=30.0)
follower = PathFollower(odometry, TankDriveVectorInterpreter(), PIDController.from_gains(1.0))
follower.setup_pure_pursuit(lookahead=10.0)
path = Path(Point(0, 0), Point(100, 0), Point(100, 100))

while not path.is_finished(odometry.pose()):
    follower.follow_path(path)
    write_motors(*follower.motor_powers)
```

Or simulate from the command line:
```bash
python -m cyan_control --estimator gyro-tank --plot
```

## Version

0.1.0 - Initial implementation
"""

__version__ = "0.1.0"

# Export key classes for convenience
from .debugger import DebugPacket, Identifier, IndexIdentifier, Logger, MessageLevel
from .follower import PathFollower
from .geometry import Point, Pose2D, SmartPoint, Vector2D
from .localizer import (
    GyroTankMeasurementProvider,
    GyroTankOdometry,
    LocalizerKind,
    MecanumKinematics,
    MecanumMeasurementProvider,
    TankKinematics,
    TankMeasurementProvider,
    ThreeDeadWheelMeasurementProvider,
    ThreeDeadWheelOdometry,
    TwoDeadWheelMeasurementProvider,
    TwoDeadWheelOdometry,
    create_localizer,
)
from .model import (
    DriveCommand,
    MecanumDriveVectorInterpreter,
    ReverseSide,
    TankDriveVectorInterpreter,
    VectorInterpreter,
)
from .path import EmptyPathError, Path, PathSequence, PointSequence
from .pid import PIDCoefficients, PIDController
from .pursuit import ChordMissError, CircleLineIntersectionCalculator, circle_line_intersection
from .units import Distance, DistanceUnit

__all__ = [
    "ChordMissError",
    "CircleLineIntersectionCalculator",
    "DebugPacket",
    "Distance",
    "DistanceUnit",
    "DriveCommand",
    "EmptyPathError",
    "GyroTankMeasurementProvider",
    "GyroTankOdometry",
    "Identifier",
    "IndexIdentifier",
    "LocalizerKind",
    "Logger",
    "MecanumDriveVectorInterpreter",
    "MecanumKinematics",
    "MecanumMeasurementProvider",
    "MessageLevel",
    "Path",
    "PathFollower",
    "PathSequence",
    "PIDCoefficients",
    "PIDController",
    "Point",
    "PointSequence",
    "Pose2D",
    "ReverseSide",
    "SmartPoint",
    "TankDriveVectorInterpreter",
    "TankKinematics",
    "TankMeasurementProvider",
    "ThreeDeadWheelMeasurementProvider",
    "ThreeDeadWheelOdometry",
    "TwoDeadWheelMeasurementProvider",
    "TwoDeadWheelOdometry",
    "Vector2D",
    "VectorInterpreter",
    "circle_line_intersection",
    "create_localizer",
]
