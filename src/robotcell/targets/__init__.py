"""
Targets module - Motion targets, their attributes and toolpaths.

- CartesianTarget, JointTarget (immutable targets)
- Tool, Frame, Speed, Zone (named target attributes)
- SimpleToolpath (ordered target list)
"""

from robotcell.targets.attributes import (
    DEFAULT_FRAME,
    DEFAULT_SPEED,
    DEFAULT_TOOL,
    DEFAULT_ZONE,
    Frame,
    Speed,
    TargetAttribute,
    Tool,
    Zone,
)
from robotcell.targets.targets import (
    DEFAULT_TARGET,
    CartesianTarget,
    JointTarget,
    Motion,
    RobotConfiguration,
    Target,
    get_absolute_joints,
    lerp_joints,
)
from robotcell.targets.toolpath import SimpleToolpath

__all__ = [
    "Target",
    "CartesianTarget",
    "JointTarget",
    "Motion",
    "RobotConfiguration",
    "DEFAULT_TARGET",
    "get_absolute_joints",
    "lerp_joints",
    "TargetAttribute",
    "Tool",
    "Frame",
    "Speed",
    "Zone",
    "DEFAULT_TOOL",
    "DEFAULT_FRAME",
    "DEFAULT_SPEED",
    "DEFAULT_ZONE",
    "SimpleToolpath",
]
