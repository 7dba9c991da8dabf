"""
Mechanical group: one robot arm with the external mechanisms it coordinates with.
"""

from __future__ import annotations

from dataclasses import replace
from typing import List, Optional, Sequence

from robotcell.core.exceptions import MechanismDefinitionError
from robotcell.core.geometry import Pose
from robotcell.kinematics.solution import KinematicSolution
from robotcell.mechanisms.joints import Joint
from robotcell.mechanisms.mechanism import Mechanism
from robotcell.mechanisms.profiles import MechanismKind
from robotcell.targets.targets import Target


class MechanicalGroup:
    """
    A robot arm plus zero or more tracks, positioners or custom mechanisms.

    Args:
        index: Position of the group in the system.
        mechanisms: Exactly one robot arm and any number of externals.

    Raises:
        MechanismDefinitionError: If the group has no robot arm.
    """

    def __init__(self, index: int, mechanisms: Sequence[Mechanism]) -> None:
        robots = [m for m in mechanisms if m.kind == MechanismKind.ROBOT_ARM]
        if not robots:
            raise MechanismDefinitionError(
                "A mechanical group needs a robot arm.",
                details={"group": index},
            )

        self.index = index
        self.name = f"T_ROB{index + 1}"
        self.robot = robots[0]
        self.externals: List[Mechanism] = [m for m in mechanisms if m is not self.robot]
        self.joints: List[Joint] = sorted(
            (joint for m in mechanisms for joint in m.joints), key=lambda joint: joint.number
        )

    @property
    def mechanisms(self) -> List[Mechanism]:
        return [*self.externals, self.robot]

    @property
    def robot_joint_count(self) -> int:
        return len(self.robot.joints)

    def kinematics(
        self,
        target: Target,
        prev_joints: Optional[Sequence[float]] = None,
        coupled_plane: Optional[Pose] = None,
        base_plane: Optional[Pose] = None,
    ) -> KinematicSolution:
        """
        Solve every mechanism of the group for one target.

        Externals are solved first. A mechanism that moves the robot provides
        the robot base; a frame coupled to one of this group's externals is
        re-oriented onto that external's last plane before the robot solve.

        Args:
            target: Target of the robot.
            prev_joints: Previous joints of the whole group, ordered by joint number.
            coupled_plane: Plane the target frame is coupled to, when it
                follows another group.
            base_plane: Pose the whole group is mounted on.

        Returns:
            Group joints by number, the planes of each mechanism (externals
            first, then the robot) followed by the tool plane, the errors
            and the robot configuration.
        """
        solution = KinematicSolution(joints=[0.0] * len(self.joints))

        if prev_joints is not None and len(prev_joints) != len(self.joints):
            solution.errors.append(
                f"Previous joints set but contain {len(prev_joints)} value(s), "
                f"should contain {len(self.joints)} values."
            )
            prev_joints = None

        robot_base = base_plane
        frame = target.frame
        coupled_mechanism = None
        if frame.coupled_mechanism != -1 and frame.coupled_mechanical_group == self.index:
            coupled_mechanism = self.externals[frame.coupled_mechanism]

        for external in self.externals:
            external_prev = (
                [prev_joints[joint.number] for joint in external.joints] if prev_joints is not None else None
            )
            external_solution = external.kinematics(target, external_prev, base_plane)

            for joint, value in zip(external.joints, external_solution.joints):
                solution.joints[joint.number] = value
            solution.planes.extend(external_solution.planes)
            solution.errors.extend(external_solution.errors)

            if external is coupled_mechanism:
                coupled_plane = external_solution.planes[-1]
            if external.moves_robot:
                robot_base = external_solution.planes[-1]

        if coupled_plane is not None:
            coupled_frame = frame.with_plane(frame.plane.orient(coupled_plane))
            target = replace(target, frame=coupled_frame)

        robot_prev = (
            [prev_joints[joint.number] for joint in self.robot.joints] if prev_joints is not None else None
        )
        robot_solution = self.robot.kinematics(target, robot_prev, robot_base)

        for joint, value in zip(self.robot.joints, robot_solution.joints):
            solution.joints[joint.number] = value
        solution.planes.extend(robot_solution.planes)
        solution.errors.extend(robot_solution.errors)
        solution.configuration = robot_solution.configuration

        solution.planes.append(target.tool.tcp.orient(solution.planes[-1]))
        return solution

    def _owner(self, i: int) -> tuple[Mechanism, int]:
        if i < self.robot_joint_count:
            return self.robot, i
        for mechanism in self.externals:
            for joint in mechanism.joints:
                if joint.number == i:
                    return mechanism, joint.index
        raise MechanismDefinitionError(f"Joint {i} does not belong to the group.", details={"group": self.name})

    def degree_to_radian(self, degree: float, i: int) -> float:
        """Convert a controller value of group joint ``i`` (by number) to solver units."""
        mechanism, index = self._owner(i)
        return mechanism.degree_to_radian(degree, index)

    def radian_to_degree(self, radian: float, i: int) -> float:
        mechanism, index = self._owner(i)
        return mechanism.radian_to_degree(radian, index)

    def radians_to_degrees_external(self, target: Target) -> List[float]:
        """External values of ``target`` in controller units."""
        values = list(target.external)
        for mechanism in self.externals:
            for joint in mechanism.joints:
                number = joint.number - 6
                if 0 <= number < len(values):
                    values[number] = mechanism.radian_to_degree(target.external[number], joint.index)
        return values

    def __repr__(self) -> str:
        return f"MechanicalGroup({self.name}, {self.robot.model})"
