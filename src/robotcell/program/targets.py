"""
Compiler-side targets.

A :class:`ProgramTarget` wraps one user target of one mechanical group with
the state the compiler attaches to it (flattened commands, kinematic
solution, leading joint). A :class:`CellTarget` is the set of program
targets that all groups of the system reach at the same step.
"""

from __future__ import annotations

import copy
from dataclasses import replace
from typing import TYPE_CHECKING, List, Optional, Sequence

from robotcell.commands.base import Command
from robotcell.commands.custom import DEFAULT_COMMAND
from robotcell.core.geometry import WORLD_XY, Pose, plane_to_plane
from robotcell.kinematics.solution import KinematicSolution
from robotcell.targets.targets import (
    CartesianTarget,
    JointTarget,
    Motion,
    Target,
    lerp_joints,
)

if TYPE_CHECKING:
    from robotcell.mechanisms.system import RobotSystem


class ProgramTarget:
    """
    One target of one mechanical group inside a compiled program.

    Attributes:
        target: The (possibly fixed) user target.
        group: Index of the mechanical group.
        commands: Leaf commands of the target, in order.
        kinematics: Solution of the last solve, set by the compiler.
        changes_configuration: The solve switched inverse kinematics branch.
        leading_joint: Joint limiting the motion speed, -1 when none.
        coupled_plane_index: Index in the cell planes of the plane the frame
            follows, -1 when the frame is not coupled.
    """

    def __init__(self, target: Target, group: int) -> None:
        self.target = target
        self.group = group
        self.commands: List[Command] = [
            command for command in target.command.flatten() if command is not DEFAULT_COMMAND
        ]
        self.kinematics: Optional[KinematicSolution] = None
        self.changes_configuration = False
        self.leading_joint = -1
        self.coupled_plane_index = -1
        self.cell_target: Optional[CellTarget] = None

    @property
    def index(self) -> int:
        return self.cell_target.index

    @property
    def is_joint_target(self) -> bool:
        return self.target.is_joint_target

    @property
    def is_joint_motion(self) -> bool:
        return self.is_joint_target or self.target.motion == Motion.JOINT

    @property
    def forced_configuration(self) -> bool:
        """True when a Cartesian target asks for a specific branch."""
        if self.is_joint_target:
            return False
        return self.target.configuration is not None

    @property
    def world_plane(self) -> Pose:
        return self.kinematics.planes[-1]

    def _frame_plane(self, cell_target: CellTarget) -> Pose:
        frame = self.target.frame
        if frame.is_coupled:
            return frame.plane.transform(plane_to_plane(WORLD_XY, cell_target.planes[self.coupled_plane_index]))
        return frame.plane

    @property
    def plane(self) -> Pose:
        """Solved tool plane expressed in the target frame."""
        return self.world_plane.transform(plane_to_plane(self._frame_plane(self.cell_target), WORLD_XY))

    def get_prev_plane(self, prev: ProgramTarget) -> Pose:
        """
        Plane of the previous target expressed in this target's frame.

        When the tool changes, the previous flange pose is carried over to
        this target's TCP so both planes refer to the same tool.
        """
        prev_plane = prev.world_plane
        if prev.target.tool != self.target.tool:
            prev_plane = self.target.tool.tcp.transform(plane_to_plane(prev.target.tool.tcp, prev_plane))

        return prev_plane.transform(plane_to_plane(self._frame_plane(prev.cell_target), WORLD_XY))

    def shallow_clone(self, cell_target: CellTarget) -> ProgramTarget:
        clone = copy.copy(self)
        clone.cell_target = cell_target
        return clone

    def lerp(self, prev: ProgramTarget, system: RobotSystem, t: float, start: float, end: float) -> Target:
        """
        Intermediate target between ``prev`` and this one.

        Joint motions interpolate joint values; any other motion interpolates
        the tool plane and is solved as a linear move with the previous branch.
        """
        joints = lerp_joints(prev.kinematics.joints, self.kinematics.joints, t, start, end)
        robot_count = system.robot_joint_count(self.group)
        external = joints[robot_count : robot_count + len(self.target.external)]

        if self.is_joint_motion:
            return JointTarget.from_target(joints[:robot_count], self.target, external)

        plane = system.cartesian_lerp(self.get_prev_plane(prev), self.plane, t, start, end)
        return CartesianTarget.from_target(
            plane,
            self.target,
            prev.kinematics.configuration,
            Motion.LINEAR,
            external,
        )

    def set_target_kinematics(
        self,
        kinematics: KinematicSolution,
        errors: List[str],
        warnings: Optional[List[str]] = None,
        prev: Optional[ProgramTarget] = None,
    ) -> None:
        """
        Store a solution and report its problems.

        Only the first erroneous target is reported. Branch changes are
        reported when ``warnings`` and ``prev`` are given.
        """
        self.kinematics = kinematics

        if not errors and kinematics.errors:
            errors.append(f"Errors in target {self.index} of robot {self.group}:")
            errors.extend(kinematics.errors)

        if warnings is not None and prev is not None and prev.kinematics.configuration != kinematics.configuration:
            self.changes_configuration = True
            warnings.append(
                f'Configuration changed to "{kinematics.configuration.describe()}" '
                f"on target {self.index} of robot {self.group}"
            )
        else:
            self.changes_configuration = False

    def clear_configuration(self) -> None:
        self.target = replace(self.target, configuration=None)

    def __repr__(self) -> str:
        return f"ProgramTarget(group={self.group}, target={self.target!r})"


class CellTarget:
    """
    Targets of every group at one program step.

    Attributes:
        program_targets: One program target per group, in group order.
        index: Position in the program.
        total_time: Time from program start to this target (s).
        delta_time: Time from the previous target (s).
        min_time: Time the slowest joint needs from the previous target (s).
    """

    def __init__(self, program_targets: Sequence[ProgramTarget], index: int) -> None:
        self.program_targets: List[ProgramTarget] = list(program_targets)
        self.index = index
        self.total_time = 0.0
        self.delta_time = 0.0
        self.min_time = 0.0

        for program_target in self.program_targets:
            program_target.cell_target = self

    @property
    def planes(self) -> List[Pose]:
        """Planes of every group solution, concatenated in group order."""
        return [plane for target in self.program_targets for plane in target.kinematics.planes]

    @property
    def joints(self) -> List[float]:
        return [joint for target in self.program_targets for joint in target.kinematics.joints]

    @property
    def targets(self) -> List[Target]:
        return [program_target.target for program_target in self.program_targets]

    def shallow_clone(self, index: int = -1) -> CellTarget:
        clone = copy.copy(self)
        if index != -1:
            clone.index = index
        clone.program_targets = [target.shallow_clone(clone) for target in self.program_targets]
        return clone

    def lerp(self, prev: CellTarget, system: RobotSystem, t: float, start: float, end: float) -> List[Target]:
        return [
            target.lerp(prev.program_targets[i], system, t, start, end)
            for i, target in enumerate(self.program_targets)
        ]

    def set_target_kinematics(
        self,
        kinematics: Sequence[KinematicSolution],
        errors: List[str],
        warnings: Optional[List[str]] = None,
        prev: Optional[CellTarget] = None,
    ) -> None:
        for target in self.program_targets:
            previous = prev.program_targets[target.group] if prev is not None else None
            target.set_target_kinematics(kinematics[target.group], errors, warnings, previous)

    def __repr__(self) -> str:
        return f"CellTarget(index={self.index}, total_time={self.total_time:.3f})"
