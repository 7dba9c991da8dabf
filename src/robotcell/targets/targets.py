"""
Motion targets.

A target is either a :class:`CartesianTarget` (a pose the tool should reach)
or a :class:`JointTarget` (explicit robot joint values in radians). Targets
are immutable; use :func:`dataclasses.replace` or the ``from_target``
constructors to derive a modified copy.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from enum import Enum, IntFlag
from typing import Optional, Sequence, Tuple

from robotcell.commands.base import Command
from robotcell.commands.custom import DEFAULT_COMMAND, Group
from robotcell.core.geometry import Pose
from robotcell.targets.attributes import (
    DEFAULT_FRAME,
    DEFAULT_SPEED,
    DEFAULT_TOOL,
    DEFAULT_ZONE,
    Frame,
    Speed,
    Tool,
    Zone,
)

TWO_PI = math.pi * 2


class RobotConfiguration(IntFlag):
    """Inverse kinematics branch flags of a 6-axis arm."""

    NONE = 0
    SHOULDER = 1
    ELBOW = 2
    WRIST = 4
    UNDEFINED = 8

    def describe(self) -> str:
        """Human readable flag list, e.g. ``"Shoulder, Wrist"``."""
        if self == RobotConfiguration.NONE:
            return "None"
        names = [
            flag.name.capitalize()
            for flag in (
                RobotConfiguration.SHOULDER,
                RobotConfiguration.ELBOW,
                RobotConfiguration.WRIST,
                RobotConfiguration.UNDEFINED,
            )
            if flag in self
        ]
        return ", ".join(names)


class Motion(Enum):
    """Interpolation used to reach a Cartesian target."""

    JOINT = "joint"
    LINEAR = "linear"
    CIRCULAR = "circular"
    SPLINE = "spline"


@dataclass(frozen=True, eq=False, kw_only=True)
class Target:
    """
    Attributes shared by all targets.

    Attributes:
        tool: Tool used to reach the target.
        speed: Speed limits of the motion towards the target.
        zone: Blending zone at the target.
        command: Command (or group of commands) run at the target.
        frame: Reference frame the target is expressed in.
        external: External axis values (radians or mm), addressed by
            ``joint.number - 6``.
    """

    tool: Tool = DEFAULT_TOOL
    speed: Speed = DEFAULT_SPEED
    zone: Zone = DEFAULT_ZONE
    command: Command = DEFAULT_COMMAND
    frame: Frame = DEFAULT_FRAME
    external: Tuple[float, ...] = ()

    def __post_init__(self) -> None:
        if self.tool is None:
            object.__setattr__(self, "tool", DEFAULT_TOOL)
        if self.speed is None:
            object.__setattr__(self, "speed", DEFAULT_SPEED)
        if self.zone is None:
            object.__setattr__(self, "zone", DEFAULT_ZONE)
        if self.command is None:
            object.__setattr__(self, "command", DEFAULT_COMMAND)
        if self.frame is None:
            object.__setattr__(self, "frame", DEFAULT_FRAME)
        object.__setattr__(self, "external", tuple(float(v) for v in (self.external or ())))

    @staticmethod
    def default() -> JointTarget:
        return DEFAULT_TARGET

    @property
    def is_joint_target(self) -> bool:
        return False

    def append_command(self, command: Command) -> Target:
        """Copy of this target with ``command`` added after the existing ones."""
        current = self.command
        if current is None or current is DEFAULT_COMMAND:
            return replace(self, command=command)

        merged = Group(name=None)
        if isinstance(current, Group):
            merged.extend(current)
        else:
            merged.append(current)
        merged.append(command)
        return replace(self, command=merged)


@dataclass(frozen=True, eq=False)
class CartesianTarget(Target):
    """
    Pose the tool centre point has to reach.

    Attributes:
        plane: Target pose relative to ``frame``.
        configuration: Forced inverse kinematics branch, None to follow
            the previous target.
        motion: Interpolation used to reach the target.
    """

    plane: Pose
    configuration: Optional[RobotConfiguration] = None
    motion: Motion = Motion.JOINT

    @classmethod
    def from_target(
        cls,
        plane: Pose,
        target: Target,
        configuration: Optional[RobotConfiguration] = None,
        motion: Motion = Motion.JOINT,
        external: Optional[Sequence[float]] = None,
    ) -> CartesianTarget:
        """New Cartesian target reusing the attributes of ``target``."""
        return cls(
            plane,
            configuration,
            motion,
            tool=target.tool,
            speed=target.speed,
            zone=target.zone,
            command=target.command,
            frame=target.frame,
            external=target.external if external is None else tuple(external),
        )

    def __repr__(self) -> str:
        x, y, z = self.plane.origin
        return f"CartesianTarget(({x:.2f},{y:.2f},{z:.2f}), {self.motion.name})"


@dataclass(frozen=True, eq=False)
class JointTarget(Target):
    """
    Explicit robot joint values in radians.

    Attributes:
        joints: 6 or 7 joint values.
    """

    joints: Tuple[float, ...]

    def __post_init__(self) -> None:
        super().__post_init__()
        object.__setattr__(self, "joints", tuple(float(v) for v in self.joints))

    @property
    def is_joint_target(self) -> bool:
        return True

    @classmethod
    def from_target(
        cls,
        joints: Sequence[float],
        target: Target,
        external: Optional[Sequence[float]] = None,
    ) -> JointTarget:
        """New joint target reusing the attributes of ``target``."""
        return cls(
            tuple(joints),
            tool=target.tool,
            speed=target.speed,
            zone=target.zone,
            command=target.command,
            frame=target.frame,
            external=target.external if external is None else tuple(external),
        )

    def __repr__(self) -> str:
        joints = ",".join(f"{j:.3f}" for j in self.joints)
        return f"JointTarget(({joints}))"


DEFAULT_TARGET = JointTarget((0.0, math.pi * 0.5, 0.0, 0.0, 0.0, 0.0))


# ── Joint helpers ─────────────────────────────────────────────────────────


def _sign(value: float) -> int:
    return (value > 0) - (value < 0)


def get_absolute_joint(joint: float) -> float:
    """Reduce an angle to the principal range (-π, π], keeping its sign."""
    absolute = abs(joint)
    result = absolute - math.floor(absolute / TWO_PI) * TWO_PI
    if result > math.pi:
        result -= TWO_PI
    return result * _sign(joint)


def get_absolute_joints(joints: Sequence[float], prev_joints: Sequence[float]) -> list[float]:
    """
    Unwrap ``joints`` so each one is the closest equivalent angle to ``prev_joints``.

    Each angle is reduced to its principal range and the signed shortest
    difference to the (reduced) previous value is added to the previous value.
    """
    closest = []
    for joint, prev in zip(joints, prev_joints):
        difference = get_absolute_joint(joint) - get_absolute_joint(prev)
        absolute = abs(difference)
        if absolute > math.pi:
            difference = (absolute - TWO_PI) * _sign(difference)
        closest.append(prev + difference)
    return closest


def lerp_joints(
    a: Sequence[float],
    b: Sequence[float],
    t: float,
    start: float = 0.0,
    end: float = 1.0,
) -> list[float]:
    """Linear interpolation of joint arrays, with ``t`` remapped from ``[start, end]``."""
    t = (t - start) / (end - start) if end != start else 0.0
    if math.isnan(t):
        t = 0.0
    return [a[i] * (1.0 - t) + b[i] * t for i in range(len(a))]
