"""
Result of a kinematic solve.
"""

from dataclasses import dataclass, field
from typing import List

from robotcell.core.geometry import Pose
from robotcell.targets.targets import RobotConfiguration


@dataclass
class KinematicSolution:
    """
    Joint values and link frames for one target.

    Attributes:
        joints: Joint values in radians (revolute) or mm (prismatic).
        planes: World frames. For a single mechanism: the base followed by one
            frame per joint. For a mechanical group: the planes of every
            mechanism in order, then the tool plane.
        errors: Non-fatal problems found while solving.
        configuration: Inverse kinematics branch that produced the joints.
    """

    joints: List[float] = field(default_factory=list)
    planes: List[Pose] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    configuration: RobotConfiguration = RobotConfiguration.NONE

    @property
    def tool_plane(self) -> Pose:
        return self.planes[-1]
