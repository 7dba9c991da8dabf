"""
Target checking and motion solving for a program.

The checker names and validates the target attributes, fixes the first target,
then solves every target with the previous joints, interpolating the motion in
steps to accumulate the program duration. Kinematic problems are collected in
the program errors; the program is truncated after the first erroneous target.
"""

from __future__ import annotations

import math
from dataclasses import replace
from typing import TYPE_CHECKING, Dict, List, Tuple

import numpy as np

from robotcell.commands.base import Command
from robotcell.commands.flow import Wait
from robotcell.core.exceptions import ConfigurationError
from robotcell.core.logging import get_logger
from robotcell.core.units import TIME_TOL
from robotcell.mechanisms.joints import PrismaticJoint
from robotcell.program.targets import CellTarget, ProgramTarget
from robotcell.targets.attributes import DEFAULT_SPEED, DEFAULT_TOOL, Frame, Speed, Tool, Zone
from robotcell.targets.targets import CartesianTarget, JointTarget, Motion, RobotConfiguration

if TYPE_CHECKING:
    from robotcell.program.program import Program

logger = get_logger(__name__)

_ATTRIBUTE_FIELDS = {Tool: "tool", Frame: "frame", Speed: "speed", Zone: "zone"}


def _vector_angle(a, b) -> float:
    a = np.asarray(a, dtype=float)
    b = np.asarray(b, dtype=float)
    cos = np.dot(a, b) / (np.linalg.norm(a) * np.linalg.norm(b))
    return float(math.acos(max(-1.0, min(1.0, cos))))


def _is_linear(program_target: ProgramTarget) -> bool:
    target = program_target.target
    return isinstance(target, CartesianTarget) and target.motion == Motion.LINEAR


class ProgramChecker:
    """
    Validate and solve the cell targets of a program.

    Args:
        program: Program receiving errors, warnings, attributes and duration.
        cell_targets: Targets to check; modified in place.
        step_size: Maximum TCP travel (mm) between interpolation steps.
    """

    def __init__(self, program: Program, cell_targets: List[CellTarget], step_size: float = 1.0) -> None:
        self._program = program
        self._system = program.robot_system
        self._last_index = 0

        self.fix_target_attributes(cell_targets)
        self.fix_first_target(cell_targets[0])
        error_index = self.fix_target_motions(cell_targets, step_size)

        self.fixed_targets = cell_targets[: error_index + 1] if error_index != -1 else cell_targets

    # ── First target ────────────────────────────────────────────────────────

    def fix_first_target(self, first: CellTarget) -> None:
        """Replace Cartesian first targets by joint targets."""
        fix = [target for target in first.program_targets if not target.is_joint_target]
        if not fix:
            return

        kinematics = self._system.kinematics(first.targets)

        for program_target in fix:
            solution = kinematics[program_target.group]
            if solution.errors:
                self._program.errors.append(
                    f"Errors in target {program_target.index} of robot {program_target.group}:"
                )
                self._program.errors.extend(solution.errors)

            robot_count = self._system.robot_joint_count(program_target.group)
            program_target.target = JointTarget.from_target(solution.joints[:robot_count], program_target.target)
            self._program.warnings.append(
                f"First target in robot {program_target.group} changed to a joint motion using axis rotations"
            )

    # ── Attributes ──────────────────────────────────────────────────────────

    def fix_target_attributes(self, cell_targets: List[CellTarget]) -> None:
        """
        Warn about suspicious attributes, then collect, name and check them.

        Raises:
            ConfigurationError: If a frame couples to something that does not exist.
        """
        program = self._program
        all_targets = [target for cell_target in cell_targets for target in cell_target.program_targets]

        wrong_external = [
            target
            for target in all_targets
            if len(target.target.external)
            != len(self._system.get_joints(target.group)) - self._system.robot_joint_count(target.group)
        ]
        if wrong_external:
            first = wrong_external[0]
            program.warnings.append(
                f"{len(wrong_external)} targets have wrong number of external axes configured, "
                f"the first one being target {first.index} of robot {first.group}."
            )

        default_tools = [target for target in all_targets if target.target.tool == DEFAULT_TOOL]
        if default_tools:
            first = default_tools[0]
            program.warnings.append(
                f"{len(default_tools)} targets have their tool set to default, "
                f"the first one being target {first.index} in robot {first.group}"
            )

        default_speeds = [target for target in all_targets if target.target.speed == DEFAULT_SPEED]
        if default_speeds:
            first = default_speeds[0]
            program.warnings.append(
                f"{len(default_speeds)} targets have their speed set to default, "
                f"the first one being target {first.index} in robot {first.group}"
            )

        linear_forced = [target for target in all_targets if _is_linear(target) and target.forced_configuration]
        if linear_forced:
            first = linear_forced[0]
            program.warnings.append(
                f"{len(linear_forced)} targets are set to linear with a forced configuration, "
                f"the first one being target {first.index} in robot {first.group}. "
                "Configuration setting is ignored for linear motions."
            )
        for target in linear_forced:
            target.clear_configuration()

        tools = list(dict.fromkeys((target.target.tool, target.group) for target in all_targets))
        for tool, group in tools:
            payload = self._system.payload(group)
            if tool.weight > payload:
                program.warnings.append(
                    f"Weight of tool {tool.name} exceeds the robot {group} rated payload of {payload:g} kg"
                )

        attributes: List[object] = []
        attributes.extend(dict.fromkeys(tool for tool, _ in tools))
        attributes.extend(dict.fromkeys(target.target.frame for target in all_targets))
        attributes.extend(dict.fromkeys(target.target.speed for target in all_targets))
        attributes.extend(dict.fromkeys(target.target.zone for target in all_targets))

        commands: Dict[int, Command] = {}
        for command in [*program.init_commands, *(c for target in all_targets for c in target.commands)]:
            commands.setdefault(id(command), command)
        attributes.extend(commands.values())

        program.attributes[:] = attributes

        type_counts: Dict[type, int] = {}
        for i, attribute in enumerate(list(program.attributes)):
            if attribute.name:
                continue
            kind = type(attribute)
            count = type_counts.get(kind, 0)
            type_counts[kind] = count + 1
            self._set_attribute_name(i, f"{kind.__name__}{count:03d}", all_targets)

        by_name: Dict[str, List[int]] = {}
        for i, attribute in enumerate(program.attributes):
            by_name.setdefault(attribute.name, []).append(i)

        for name, indices in by_name.items():
            if len(indices) < 2:
                continue
            program.warnings.append(f'Multiple target attributes named "{name}" found')
            for count, i in enumerate(indices):
                self._set_attribute_name(i, f"{name}{count:03d}", all_targets)

        self._check_frames(all_targets)

    def _set_attribute_name(self, i: int, name: str, all_targets: List[ProgramTarget]) -> None:
        """Rename attribute ``i`` and every reference to it."""
        program = self._program
        old = program.attributes[i]
        new = old.with_name(name)
        program.attributes[i] = new

        if isinstance(old, Command):
            program.init_commands[:] = [new if c is old else c for c in program.init_commands]
            for target in all_targets:
                target.commands = [new if c is old else c for c in target.commands]
            return

        field_name = _ATTRIBUTE_FIELDS[type(old)]
        for target in all_targets:
            if getattr(target.target, field_name) == old:
                target.target = replace(target.target, **{field_name: new})

    def _check_frames(self, all_targets: List[ProgramTarget]) -> None:
        plane_indices: Dict[Frame, int] = {}

        for frame in (a for a in self._program.attributes if isinstance(a, Frame)):
            group = frame.coupled_mechanical_group
            mechanism = frame.coupled_mechanism

            if group == -1 and mechanism != -1:
                raise ConfigurationError(
                    f"Frame {frame.name} has a coupled mechanism set but no mechanical group.",
                    details={"frame": frame.name},
                )
            if group == 0 and mechanism == -1:
                raise ConfigurationError(
                    f"Frame {frame.name} is set to couple the robot rather than a mechanism.",
                    details={"frame": frame.name},
                )
            if not frame.is_coupled:
                continue

            if group > len(self._system.groups) - 1:
                raise ConfigurationError(
                    f"Frame {frame.name} is set to couple an inexistent mechanical group.",
                    details={"frame": frame.name, "group": group},
                )
            if mechanism > len(self._system.groups[group].externals) - 1:
                raise ConfigurationError(
                    f"Frame {frame.name} is set to couple an inexistent mechanism.",
                    details={"frame": frame.name, "mechanism": mechanism},
                )

            plane_indices[frame] = self._system.get_plane_index(frame)

        for target in all_targets:
            target.coupled_plane_index = plane_indices.get(target.target.frame, -1)

    # ── Motions ─────────────────────────────────────────────────────────────

    def fix_target_motions(self, cell_targets: List[CellTarget], step_size: float) -> int:
        """
        Solve every target and accumulate the program duration.

        Returns:
            Index of the first target with errors, -1 when all targets solve.
        """
        program = self._program
        time = 0.0

        for i, cell_target in enumerate(cell_targets):
            if i == 0:
                kinematics = self._system.kinematics(cell_target.targets)
                cell_target.set_target_kinematics(kinematics, program.errors, program.warnings)
                self._check_undefined(cell_target, cell_targets)
            else:
                prev_target = cell_targets[i - 1]
                prev_joints = [target.kinematics.joints for target in prev_target.program_targets]

                kine_targets = []
                for j, program_target in enumerate(cell_target.program_targets):
                    target = program_target.target
                    if _is_linear(program_target):
                        target = replace(
                            target, configuration=prev_target.program_targets[j].kinematics.configuration
                        )
                    kine_targets.append(target)

                kinematics = self._system.kinematics(kine_targets, prev_joints)
                cell_target.set_target_kinematics(kinematics, program.errors, program.warnings, prev_target)
                self._check_undefined(cell_target, cell_targets)

                divisions = 1
                for target in (t for t in cell_target.program_targets if not t.is_joint_motion):
                    prev_plane = target.get_prev_plane(prev_target.program_targets[target.group])
                    distance = prev_plane.distance_to(target.plane)
                    divisions = max(divisions, math.ceil(distance / step_size))

                prev_inter = prev_target.shallow_clone()
                prev_inter.delta_time = 0.0
                prev_inter.total_time = 0.0
                prev_inter.min_time = 0.0

                total_delta = 0.0
                total_min = 0.0

                for j in range(1, divisions + 1):
                    t = j / divisions
                    inter = cell_target.shallow_clone()
                    kinematics = self._system.kinematics(cell_target.lerp(prev_target, self._system, t, 0.0, 1.0), prev_joints)
                    inter.set_target_kinematics(kinematics, program.errors, None, prev_inter)

                    slowest_delta = 0.0
                    slowest_min = 0.0
                    for target in inter.program_targets:
                        delta, min_time, leading = self._get_speeds(target, prev_inter.program_targets[target.group])
                        slowest_delta = max(slowest_delta, delta)
                        slowest_min = max(slowest_min, min_time)
                        target.leading_joint = leading

                    time += slowest_delta
                    total_delta += slowest_delta
                    total_min += slowest_min

                    inter.delta_time = total_delta
                    inter.min_time = total_min
                    inter.total_time = time
                    prev_inter = inter

                if not program.errors:
                    longest_wait = max(
                        (sum(c.seconds for c in target.commands if isinstance(c, Wait)) for target in cell_target.program_targets),
                        default=0.0,
                    )
                    if longest_wait > TIME_TOL:
                        time += longest_wait
                        total_delta += longest_wait
                        prev_inter.total_time = time
                        prev_inter.delta_time += longest_wait

                cell_target.total_time = time
                cell_target.delta_time = total_delta
                cell_target.min_time = total_min

                for program_target in cell_target.program_targets:
                    solved = prev_inter.program_targets[program_target.group]
                    program_target.kinematics = solved.kinematics
                    program_target.changes_configuration = solved.changes_configuration
                    program_target.leading_joint = solved.leading_joint

            if program.errors:
                logger.debug("program_target_errors", target=i, errors=len(program.errors))
                program.duration = time
                return i

        program.duration = time
        return -1

    def _check_undefined(self, cell_target: CellTarget, cell_targets: List[CellTarget]) -> None:
        i = cell_target.index
        if i >= len(cell_targets) - 1:
            return

        for target in cell_target.program_targets:
            if target.kinematics.configuration != RobotConfiguration.UNDEFINED:
                continue
            if not cell_targets[i + 1].program_targets[target.group].is_joint_motion:
                self._program.errors.append(
                    f"Undefined configuration (probably due to a singularity) in target {target.index} "
                    f"of robot {target.group} before a linear motion"
                )

    def _get_speeds(self, target: ProgramTarget, prev: ProgramTarget) -> Tuple[float, float, int]:
        """
        Time needed to move from ``prev`` to ``target``.

        Returns:
            The step time, the time the slowest joint needs and the index of
            the joint limiting the motion.
        """
        prev_plane = target.get_prev_plane(prev)
        joints = self._system.get_joints(target.group)
        speed = target.target.speed

        axis_time = 0.0
        leading_joint = -1
        for i, (value, prev_value) in enumerate(zip(target.kinematics.joints, prev.kinematics.joints)):
            current = abs(value - prev_value) / joints[i].max_speed
            if current > axis_time:
                axis_time = current
                leading_joint = i

        external_time = 0.0
        external_leading_joint = -1
        robot_count = self._system.robot_joint_count(target.group)
        for i in range(robot_count, len(joints)):
            joint = joints[i]
            limit = speed.translation_external if isinstance(joint, PrismaticJoint) else speed.rotation_external
            current = abs(target.kinematics.joints[i] - prev.kinematics.joints[i]) / min(joint.max_speed, limit)
            if current > external_time:
                external_time = current
                external_leading_joint = i

        if speed.time > 0:
            times = [speed.time, 0.0, axis_time, external_time]
        else:
            plane = target.plane
            linear_time = prev_plane.distance_to(plane) / speed.translation
            angle = max(
                _vector_angle(prev_plane.normal, plane.normal),
                _vector_angle(prev_plane.xaxis, plane.xaxis),
            )
            times = [linear_time, angle / speed.rotation, axis_time, external_time]

        delta_time = 0.0
        delta_index = -1
        for i, value in enumerate(times):
            if value > delta_time:
                delta_time = value
                delta_index = i

        warnings = self._program.warnings
        if delta_time < TIME_TOL:
            warnings.append(f"Position and orientation do not change for {target.index}")
        elif delta_index == 1:
            if target.index != self._last_index:
                warnings.append(f"Rotation speed limit reached in target {target.index}")
            self._last_index = target.index
        elif delta_index == 2:
            if target.index != self._last_index:
                warnings.append(f"Axis {leading_joint + 1} speed limit reached in target {target.index}")
            self._last_index = target.index
        elif delta_index == 3:
            if target.index != self._last_index:
                warnings.append(f"External axis {external_leading_joint + 1} speed limit reached in target {target.index}")
            leading_joint = external_leading_joint
            self._last_index = target.index

        return delta_time, axis_time, leading_joint
