"""
Solver base classes.

A solver is bound to one mechanism and is stateless between calls: previous
joints always arrive as an explicit argument. Solvers only rely on the
mechanism's ``joints`` and ``base_plane`` attributes.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, List, Optional, Sequence, Tuple

import numpy as np

from robotcell.core.geometry import WORLD_XY, Pose, half_turn_plane, multiply, plane_to_plane
from robotcell.core.units import ANGLE_TOL
from robotcell.kinematics.solution import KinematicSolution
from robotcell.targets.targets import (
    CartesianTarget,
    JointTarget,
    RobotConfiguration,
    Target,
    get_absolute_joints,
)

if TYPE_CHECKING:
    from robotcell.mechanisms.mechanism import Mechanism


def squared_difference(a: float, b: float) -> float:
    """Squared angular distance, taking the short way around the circle."""
    difference = abs(a - b)
    if difference > math.pi:
        difference = math.pi * 2 - difference
    return difference * difference


def safe_acos(value: float) -> float:
    """``acos`` that returns NaN outside [-1, 1] instead of raising."""
    if value < -1.0 or value > 1.0 or math.isnan(value):
        return math.nan
    return math.acos(value)


class MechanismSolver(ABC):
    """
    Forward and inverse kinematics of one mechanism.

    :meth:`solve` fills a :class:`KinematicSolution` in three steps: joint
    values (:meth:`_set_joints`), range checks, then joint frames
    (:meth:`_set_planes`), which are finally moved onto the base plane.
    """

    def __init__(self, mechanism: Mechanism) -> None:
        self.mechanism = mechanism

    def solve(
        self,
        target: Target,
        prev_joints: Optional[Sequence[float]] = None,
        base_plane: Optional[Pose] = None,
    ) -> KinematicSolution:
        """
        Solve the mechanism for a target.

        Args:
            target: Target to reach.
            prev_joints: Joint values of the previous solve, used to pick
                the closest branch and to unwrap angles.
            base_plane: Pose the mechanism base is mounted on.

        Returns:
            Joints, world planes (base first), errors and configuration.
        """
        joint_count = len(self.mechanism.joints)
        base = self.mechanism.base_plane
        if base_plane is not None:
            base = base.transform(plane_to_plane(WORLD_XY, base_plane))

        solution = KinematicSolution(
            joints=[0.0] * joint_count,
            planes=[base] + [WORLD_XY] * joint_count,
        )

        self._set_joints(solution, target, prev_joints)
        self._check_ranges(solution)
        self._set_planes(solution, target)

        transform = solution.planes[0].to_matrix()
        for i in range(1, joint_count + 1):
            solution.planes[i] = solution.planes[i].transform(transform)

        return solution

    def _check_ranges(self, solution: KinematicSolution) -> None:
        for joint in self.mechanism.joints:
            if not joint.is_in_range(solution.joints[joint.index]):
                solution.errors.append(f"Axis {joint.number + 1} is outside the permitted range.")

    @abstractmethod
    def _set_joints(
        self,
        solution: KinematicSolution,
        target: Target,
        prev_joints: Optional[Sequence[float]],
    ) -> None:
        ...

    @abstractmethod
    def _set_planes(self, solution: KinematicSolution, target: Target) -> None:
        ...


class RobotSolver(MechanismSolver):
    """
    Base class of robot arm solvers.

    Subclasses provide closed form or numerical :meth:`inverse_kinematics`
    for one configuration branch and :meth:`forward_kinematics` returning
    one transform per joint, relative to the robot base.
    """

    solution_count = 8

    # ── Branch selection ──────────────────────────────────────────────────

    def _set_joints(
        self,
        solution: KinematicSolution,
        target: Target,
        prev_joints: Optional[Sequence[float]],
    ) -> None:
        if isinstance(target, JointTarget):
            solution.joints = list(target.joints)
            return

        if not isinstance(target, CartesianTarget):
            raise TypeError(f"Unsupported target type {type(target).__name__}")

        tcp = target.tool.tcp.rotate(math.pi, (0.0, 0.0, 1.0))
        target_plane = target.plane.orient(target.frame.plane)
        transform = multiply(solution.planes[0].inverse_matrix(), plane_to_plane(tcp, target_plane))

        if target.configuration is not None or prev_joints is None:
            configuration = target.configuration or RobotConfiguration.NONE
            joints, errors = self.inverse_kinematics(
                transform, configuration, target.external, prev_joints
            )
        else:
            joints, configuration, errors, _ = self.closest_solution(
                transform, target.external, prev_joints
            )

        solution.configuration = configuration
        solution.joints = (
            get_absolute_joints(joints, prev_joints) if prev_joints is not None else list(joints)
        )
        solution.errors.extend(errors)

    def _set_planes(self, solution: KinematicSolution, target: Target) -> None:
        transforms = self.forward_kinematics(solution.joints)

        if isinstance(target, JointTarget):
            if len(self.mechanism.joints) == 7:
                solution.configuration = RobotConfiguration.NONE
            else:
                _, configuration, _, difference = self.closest_solution(
                    transforms[-1], target.external, solution.joints
                )
                solution.configuration = (
                    configuration if difference < ANGLE_TOL else RobotConfiguration.UNDEFINED
                )

        for i in range(len(self.mechanism.joints)):
            solution.planes[i + 1] = half_turn_plane(transforms[i])

    def closest_solution(
        self,
        transform: np.ndarray,
        external: Sequence[float],
        prev_joints: Sequence[float],
    ) -> Tuple[List[float], RobotConfiguration, List[str], float]:
        """
        Solve every branch and keep the one closest to ``prev_joints``.

        Branches are compared by the sum of squared wrap-aware joint
        differences; on a tie the lowest branch index wins.

        Returns:
            Joints (unwrapped against ``prev_joints``), configuration,
            errors of that branch and its score.
        """
        closest_index = 0
        closest_joints: List[float] = []
        closest_errors: List[str] = []
        closest_difference = math.inf
        joint_count = len(self.mechanism.joints)

        for i in range(self.solution_count):
            joints, errors = self.inverse_kinematics(
                transform, RobotConfiguration(i), external, prev_joints
            )
            joints = get_absolute_joints(joints, prev_joints)
            difference = sum(
                squared_difference(prev_joints[j], joints[j]) for j in range(joint_count)
            )

            if difference < closest_difference:
                closest_index = i
                closest_joints = joints
                closest_errors = errors
                closest_difference = difference

        return closest_joints, RobotConfiguration(closest_index), closest_errors, closest_difference

    # ── Solver specific ───────────────────────────────────────────────────

    @abstractmethod
    def inverse_kinematics(
        self,
        transform: np.ndarray,
        configuration: RobotConfiguration,
        external: Sequence[float],
        prev_joints: Optional[Sequence[float]],
    ) -> Tuple[List[float], List[str]]:
        """Joint values of one branch for a flange transform relative to the base."""

    @abstractmethod
    def forward_kinematics(self, joints: Sequence[float]) -> List[np.ndarray]:
        """One 4x4 transform per joint, relative to the base."""
