"""
Robot system: the whole cell a program is compiled for.
"""

from __future__ import annotations

import math
from typing import List, Optional, Sequence

import numpy as np

from robotcell.core.exceptions import KinematicsError, MechanismDefinitionError
from robotcell.core.geometry import (
    WORLD_XY,
    Pose,
    axis_angle_to_pose,
    euler_xyz_to_pose,
    euler_zyx_to_pose,
    pose_to_axis_angle,
    pose_to_euler_xyz,
    pose_to_euler_zyx,
    pose_to_quaternion,
    slerp,
)
from robotcell.core.manufacturer import Manufacturer
from robotcell.kinematics.solution import KinematicSolution
from robotcell.mechanisms.group import MechanicalGroup
from robotcell.mechanisms.io import IO
from robotcell.mechanisms.joints import Joint
from robotcell.targets.attributes import Frame
from robotcell.targets.targets import Target


class RobotSystem:
    """
    One or more mechanical groups driven by a single controller.

    Universal Robots systems are cobot systems; every other manufacturer is
    an industrial system (multi-group programs, named variables, program
    names suffixed with the group name).

    Args:
        name: System name.
        manufacturer: Controller family, selects the code generator.
        groups: Mechanical groups; their ``index`` must match their position.
        io: Controller IO table.
        base_plane: Pose of the whole cell in the world.
        controller: Controller generation, e.g. ``"omnicore"`` for ABB.

    Raises:
        MechanismDefinitionError: If there are no groups or a cobot system
            has more than one.
    """

    def __init__(
        self,
        name: str,
        manufacturer: Manufacturer,
        groups: Sequence[MechanicalGroup],
        io: Optional[IO] = None,
        base_plane: Pose = WORLD_XY,
        controller: str = "",
    ) -> None:
        if not groups:
            raise MechanismDefinitionError("A robot system needs at least one mechanical group.", details={"system": name})
        if manufacturer == Manufacturer.UR and len(groups) > 1:
            raise MechanismDefinitionError(
                "Universal Robots systems support a single mechanical group.",
                details={"system": name, "groups": len(groups)},
            )

        self.name = name
        self.manufacturer = manufacturer
        self.groups: List[MechanicalGroup] = list(groups)
        self.io = io if io is not None else IO(manufacturer)
        self.base_plane = base_plane
        self.controller = controller

    @property
    def is_industrial(self) -> bool:
        return self.manufacturer != Manufacturer.UR

    def payload(self, group: int) -> float:
        return self.groups[group].robot.payload

    def get_joints(self, group: int) -> List[Joint]:
        return list(self.groups[group].joints)

    def robot_joint_count(self, group: int = 0) -> int:
        return self.groups[group].robot_joint_count

    def degree_to_radian(self, degree: float, i: int, group: int = 0) -> float:
        return self.groups[group].degree_to_radian(degree, i)

    def radian_to_degree(self, radian: float, i: int, group: int = 0) -> float:
        return self.groups[group].radian_to_degree(radian, i)

    # ── Kinematics ────────────────────────────────────────────────────────

    def kinematics(
        self,
        targets: Sequence[Target],
        prev_joints: Optional[Sequence[Optional[Sequence[float]]]] = None,
    ) -> List[KinematicSolution]:
        """
        Solve one target per group.

        Groups that other groups couple their frames to are solved first, so
        their flange plane is known when the coupled group is solved.

        Args:
            targets: One target per group.
            prev_joints: Previous group joints, one entry per group.

        Returns:
            One solution per group, in group order.

        Raises:
            KinematicsError: On wrong target or previous joints counts, or a
                group coupled to itself.
        """
        count = len(self.groups)
        if len(targets) != count:
            raise KinematicsError("Incorrect number of targets.", details={"expected": count, "got": len(targets)})
        if prev_joints is not None and len(prev_joints) != count:
            raise KinematicsError(
                "Incorrect number of previous joint values.",
                details={"expected": count, "got": len(prev_joints)},
            )

        order = list(self.groups)
        for target in targets:
            coupled = target.frame.coupled_mechanical_group
            if coupled == -1:
                continue
            group = self.groups[coupled]
            order.remove(group)
            order.insert(0, group)

        solutions: List[Optional[KinematicSolution]] = [None] * count

        for group in order:
            i = group.index
            target = targets[i]
            coupled_group = target.frame.coupled_mechanical_group
            coupled_plane = None

            if coupled_group != -1 and target.frame.coupled_mechanism == -1:
                if coupled_group == i:
                    raise KinematicsError("Cannot couple a robot with itself.", details={"group": i})
                coupled_plane = solutions[coupled_group].planes[-2]

            previous = prev_joints[i] if prev_joints is not None else None
            solutions[i] = group.kinematics(target, previous, coupled_plane, self.base_plane)

        return solutions

    def get_plane_index(self, frame: Frame) -> int:
        """
        Index, in the concatenated planes of a system solve, of the plane a
        coupled frame follows: the last plane of the coupled mechanism, or the
        flange of the coupled group.
        """
        index = 0
        for group in self.groups[: frame.coupled_mechanical_group]:
            index += len(group.joints) + len(group.mechanisms) + 1

        group = self.groups[frame.coupled_mechanical_group]
        if frame.coupled_mechanism != -1:
            for external in group.externals[: frame.coupled_mechanism + 1]:
                index += len(external.joints) + 1
            return index - 1

        return index + len(group.joints) + len(group.mechanisms) - 1

    # ── Poses ─────────────────────────────────────────────────────────────

    def cartesian_lerp(self, a: Pose, b: Pose, t: float, start: float, end: float) -> Pose:
        """
        Interpolate between two poses, ``t`` remapped from ``[start, end]``.

        KUKA systems blend the matrices element-wise; every other system
        interpolates the origin linearly and the orientation with slerp.
        """
        t = (t - start) / (end - start) if end != start else math.nan
        if math.isnan(t):
            t = 0.0

        if self.manufacturer == Manufacturer.KUKA:
            return Pose.from_matrix(a.to_matrix() * (1.0 - t) + b.to_matrix() * t)

        origin = np.asarray(a.origin) * (1.0 - t) + np.asarray(b.origin) * t
        q = slerp(pose_to_quaternion(a), pose_to_quaternion(b), t)
        return Pose.from_quaternion(q, origin)

    def plane_to_numbers(self, plane: Pose) -> List[float]:
        """
        Controller pose literal values.

        ABB and other systems: ``[x, y, z, q1, q2, q3, q4]``; KUKA:
        ``[X, Y, Z, A, B, C]`` in degrees; Staubli: ``[x, y, z, rx, ry, rz]``
        in degrees; UR: ``[x, y, z, rx, ry, rz]`` with the position in metres.
        """
        if self.manufacturer == Manufacturer.KUKA:
            return pose_to_euler_zyx(plane)
        if self.manufacturer == Manufacturer.STAUBLI:
            return pose_to_euler_xyz(plane)
        if self.manufacturer == Manufacturer.UR:
            return pose_to_axis_angle(plane.with_origin(np.asarray(plane.origin) / 1000.0))
        return [*plane.origin, *pose_to_quaternion(plane)]

    def numbers_to_plane(self, numbers: Sequence[float]) -> Pose:
        if self.manufacturer == Manufacturer.KUKA:
            return euler_zyx_to_pose(numbers)
        if self.manufacturer == Manufacturer.STAUBLI:
            return euler_xyz_to_pose(numbers)
        if self.manufacturer == Manufacturer.UR:
            return axis_angle_to_pose([*(np.asarray(numbers[:3]) * 1000.0), *numbers[3:6]])
        return Pose.from_quaternion(numbers[3:7], numbers[:3])

    def __repr__(self) -> str:
        return f"RobotSystem({self.name}, {self.manufacturer})"
