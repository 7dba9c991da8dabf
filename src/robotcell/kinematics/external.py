"""
Solvers for external mechanisms: linear tracks, positioners and custom axes.

External joint values come straight from ``target.external``, addressed by
``joint.number - 6``; only the joint frames need computing.
"""

from typing import Optional, Sequence

import numpy as np

from robotcell.core.geometry import WORLD_XY
from robotcell.kinematics.base import MechanismSolver
from robotcell.kinematics.solution import KinematicSolution
from robotcell.targets.targets import Target, get_absolute_joints


def _read_external(solution: KinematicSolution, mechanism, target: Target, error: str) -> None:
    for i, joint in enumerate(mechanism.joints):
        number = joint.number - 6
        if len(target.external) < number + 1:
            solution.errors.append(error)
        else:
            solution.joints[i] = target.external[number]


class TrackSolver(MechanismSolver):
    """Up to three stacked linear axes moving along X, Y then Z."""

    def _set_joints(
        self,
        solution: KinematicSolution,
        target: Target,
        prev_joints: Optional[Sequence[float]],
    ) -> None:
        _read_external(solution, self.mechanism, target, "Track external axis not configured on this target.")

    def _set_planes(self, solution: KinematicSolution, target: Target) -> None:
        joints = self.mechanism.joints
        values = solution.joints
        planes = solution.planes

        first = joints[0].plane
        planes[1] = first.translate(np.asarray(first.xaxis) * values[0])
        if len(joints) == 1:
            return

        second = joints[1].plane
        planes[2] = second.translate(np.asarray(planes[1].origin) + np.asarray(second.yaxis) * values[1])
        if len(joints) == 2:
            return

        third = joints[2].plane
        planes[3] = third.translate(np.asarray(planes[2].origin) + np.asarray(third.zaxis) * values[2])


class PositionerSolver(MechanismSolver):
    """Chained rotary axes; each joint also turns every joint after it."""

    def _set_joints(
        self,
        solution: KinematicSolution,
        target: Target,
        prev_joints: Optional[Sequence[float]],
    ) -> None:
        _read_external(solution, self.mechanism, target, "Positioner external axis not configured on this target.")
        if prev_joints is not None:
            solution.joints = get_absolute_joints(solution.joints, prev_joints)

    def _set_planes(self, solution: KinematicSolution, target: Target) -> None:
        joints = self.mechanism.joints
        for i, joint in enumerate(joints):
            plane = joint.plane
            for j in range(i, -1, -1):
                plane = plane.rotate(solution.joints[j], joints[j].plane.normal, joints[j].plane.origin)
            solution.planes[i + 1] = plane


class CustomSolver(MechanismSolver):
    """Axes with unknown geometry; values are passed through and every frame is world XY."""

    def _set_joints(
        self,
        solution: KinematicSolution,
        target: Target,
        prev_joints: Optional[Sequence[float]],
    ) -> None:
        for i, joint in enumerate(self.mechanism.joints):
            number = joint.number - 6
            solution.joints[i] = target.external[number] if len(target.external) > number else 0.0

    def _set_planes(self, solution: KinematicSolution, target: Target) -> None:
        for i in range(len(solution.planes)):
            solution.planes[i] = WORLD_XY
