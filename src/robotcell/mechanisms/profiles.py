"""
Per kind and per manufacturer behaviour of mechanisms.

A :class:`KindProfile` bundles what differs between robot arms, tracks,
positioners and custom mechanisms: unit conversion, default DH parameters,
the home posture, start planes and which solver to build. Conversions are
table driven: each joint index has a sign and an offset so that

    radian = sign * radians(degree) + offset
    degree = degrees((radian - offset) * sign)
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Dict, List, Optional, Sequence, Tuple

from robotcell.core.exceptions import MechanismDefinitionError
from robotcell.core.geometry import WORLD_XY, Pose
from robotcell.core.manufacturer import Manufacturer
from robotcell.core.units import HALF_PI
from robotcell.kinematics import (
    CustomSolver,
    MechanismSolver,
    NumericalSolver,
    OffsetWristSolver,
    PositionerSolver,
    SphericalWristSolver,
    TrackSolver,
)
from robotcell.targets.targets import JointTarget

if TYPE_CHECKING:
    from robotcell.mechanisms.mechanism import Mechanism


class MechanismKind(Enum):
    """Role of a mechanism inside a mechanical group."""

    ROBOT_ARM = "robot_arm"
    POSITIONER = "positioner"
    TRACK = "track"
    CUSTOM = "custom"


@dataclass(frozen=True)
class ConversionProfile:
    """
    Controller degree to solver radian mapping.

    Attributes:
        signs: Sign per joint index; missing indices use 1.
        offsets: Offset in radians per joint index; missing indices use 0.
        angular: False for mechanisms whose values are passed through as is.
    """

    signs: Tuple[float, ...] = ()
    offsets: Tuple[float, ...] = ()
    angular: bool = True

    def _sign(self, i: int) -> float:
        return self.signs[i] if i < len(self.signs) else 1.0

    def _offset(self, i: int) -> float:
        return self.offsets[i] if i < len(self.offsets) else 0.0

    def degree_to_radian(self, degree: float, i: int) -> float:
        if not self.angular:
            return degree
        return self._sign(i) * math.radians(degree) + self._offset(i)

    def radian_to_degree(self, radian: float, i: int) -> float:
        if not self.angular:
            return radian
        return math.degrees((radian - self._offset(i)) * self._sign(i))


PLAIN_RADIANS = ConversionProfile()
IDENTITY = ConversionProfile(angular=False)

ARM_CONVERSIONS: Dict[Manufacturer, ConversionProfile] = {
    Manufacturer.ABB: ConversionProfile(
        signs=(1, -1, -1, 1, -1, 1),
        offsets=(0, HALF_PI, 0, 0, 0, 0),
    ),
    Manufacturer.KUKA: ConversionProfile(
        signs=(-1, -1, -1, -1, -1, -1),
        offsets=(0, 0, HALF_PI, 0, 0, 0),
    ),
    Manufacturer.STAUBLI: ConversionProfile(
        signs=(1, -1, -1, 1, -1, 1),
        offsets=(0, HALF_PI, HALF_PI, 0, 0, 0),
    ),
    Manufacturer.FANUC: ConversionProfile(
        signs=(1, -1, 1, -1, 1, -1),
        offsets=(0, HALF_PI, 0, 0, 0, 0),
    ),
}

HOME_POSTURES: Dict[Manufacturer, Tuple[float, ...]] = {
    Manufacturer.ABB: (0.0, HALF_PI, 0.0, 0.0, 0.0, 0.0),
    Manufacturer.UR: (0.0, -HALF_PI, 0.0, -HALF_PI, 0.0, 0.0),
    Manufacturer.KUKA: (0.0, HALF_PI, 0.0, 0.0, 0.0, -math.pi),
    Manufacturer.STAUBLI: (0.0, HALF_PI, HALF_PI, 0.0, 0.0, 0.0),
    Manufacturer.FANUC: (0.0, HALF_PI, 0.0, 0.0, 0.0, 0.0),
}

SPHERICAL_WRIST_ALPHA = (HALF_PI, 0.0, HALF_PI, -HALF_PI, HALF_PI, 0.0)
OFFSET_WRIST_ALPHA = (HALF_PI, 0.0, 0.0, HALF_PI, -HALF_PI, 0.0)

SOLVER_NAMES = ("analytical", "numerical")


class KindProfile:
    """Default behaviour, shared by every kind; subclasses override what differs."""

    kind: MechanismKind

    def conversion(self, manufacturer: Manufacturer) -> ConversionProfile:
        return PLAIN_RADIANS

    def default_alpha(self, manufacturer: Manufacturer, joint_count: int) -> Tuple[float, ...]:
        return (0.0,) * joint_count

    def home_posture(self, manufacturer: Manufacturer, joint_count: int) -> Tuple[float, ...]:
        return (0.0,) * joint_count

    def create_solver(self, mechanism: Mechanism, solver: Optional[str] = None) -> MechanismSolver:
        raise NotImplementedError

    def start_planes(self, mechanism: Mechanism) -> List[Pose]:
        """Joint frames at the home posture, relative to the mechanism base."""
        return [WORLD_XY for _ in mechanism.joints]


class ArmProfile(KindProfile):
    kind = MechanismKind.ROBOT_ARM

    def conversion(self, manufacturer: Manufacturer) -> ConversionProfile:
        return ARM_CONVERSIONS.get(manufacturer, PLAIN_RADIANS)

    def default_alpha(self, manufacturer: Manufacturer, joint_count: int) -> Tuple[float, ...]:
        if joint_count == 6 and manufacturer in ARM_CONVERSIONS:
            return SPHERICAL_WRIST_ALPHA
        if joint_count == 6 and manufacturer == Manufacturer.UR:
            return OFFSET_WRIST_ALPHA
        return super().default_alpha(manufacturer, joint_count)

    def home_posture(self, manufacturer: Manufacturer, joint_count: int) -> Tuple[float, ...]:
        if joint_count == 6 and manufacturer in HOME_POSTURES:
            return HOME_POSTURES[manufacturer]
        return super().home_posture(manufacturer, joint_count)

    def create_solver(self, mechanism: Mechanism, solver: Optional[str] = None) -> MechanismSolver:
        """
        Pick the arm solver.

        Arms with 7 joints, arms of the ``Other`` manufacturer and arms
        configured with ``solver="numerical"`` use the numerical solver (the
        third joint of a 7-axis arm is the redundant one). Universal Robots
        arms use the offset wrist solver, every other arm the spherical
        wrist solver.

        Raises:
            MechanismDefinitionError: For an unknown solver name or an
                analytical solver on an arm without 6 joints.
        """
        if solver is not None and solver not in SOLVER_NAMES:
            raise MechanismDefinitionError(
                f"Unknown solver '{solver}'.",
                details={"available": list(SOLVER_NAMES)},
            )

        joint_count = len(mechanism.joints)
        if solver == "numerical" or joint_count == 7 or mechanism.manufacturer == Manufacturer.OTHER:
            return NumericalSolver(mechanism, redundant=2 if joint_count == 7 else None)

        if joint_count != 6:
            raise MechanismDefinitionError(
                "Analytical solvers require a 6 joint arm.",
                details={"model": mechanism.model, "joints": joint_count},
            )

        if mechanism.manufacturer == Manufacturer.UR:
            return OffsetWristSolver(mechanism)
        return SphericalWristSolver(mechanism)

    def start_planes(self, mechanism: Mechanism) -> List[Pose]:
        home = JointTarget(tuple(joint.theta for joint in mechanism.joints))
        solution = mechanism.solver.solve(home)
        return [plane.inverse_orient(mechanism.base_plane) for plane in solution.planes[1:]]


class TrackProfile(KindProfile):
    kind = MechanismKind.TRACK

    def conversion(self, manufacturer: Manufacturer) -> ConversionProfile:
        return IDENTITY

    def create_solver(self, mechanism: Mechanism, solver: Optional[str] = None) -> MechanismSolver:
        return TrackSolver(mechanism)

    def start_planes(self, mechanism: Mechanism) -> List[Pose]:
        planes = []
        plane = WORLD_XY
        for joint in mechanism.joints:
            x, y, z = plane.origin
            plane = plane.with_origin(
                (
                    x + plane.xaxis[0] * joint.a + plane.zaxis[0] * joint.d,
                    y + plane.xaxis[1] * joint.a + plane.zaxis[1] * joint.d,
                    z + plane.xaxis[2] * joint.a + plane.zaxis[2] * joint.d,
                )
            )
            planes.append(plane)
        return planes


class PositionerProfile(KindProfile):
    kind = MechanismKind.POSITIONER

    def create_solver(self, mechanism: Mechanism, solver: Optional[str] = None) -> MechanismSolver:
        return PositionerSolver(mechanism)

    def start_planes(self, mechanism: Mechanism) -> List[Pose]:
        joints = mechanism.joints
        if len(joints) == 1:
            return [Pose((joints[0].a, 0.0, joints[0].d), (1.0, 0.0, 0.0), (0.0, 1.0, 0.0))]

        planes = [
            Pose((0.0, 0.0, joints[0].d), (1.0, 0.0, 0.0), (0.0, 0.0, 1.0)),
            Pose((0.0, joints[1].a, joints[0].d + joints[1].d), (1.0, 0.0, 0.0), (0.0, 1.0, 0.0)),
        ]
        return planes + [WORLD_XY] * (len(joints) - 2)


class CustomProfile(KindProfile):
    kind = MechanismKind.CUSTOM

    def conversion(self, manufacturer: Manufacturer) -> ConversionProfile:
        return IDENTITY

    def create_solver(self, mechanism: Mechanism, solver: Optional[str] = None) -> MechanismSolver:
        return CustomSolver(mechanism)


_PROFILES: Dict[MechanismKind, KindProfile] = {
    MechanismKind.ROBOT_ARM: ArmProfile(),
    MechanismKind.TRACK: TrackProfile(),
    MechanismKind.POSITIONER: PositionerProfile(),
    MechanismKind.CUSTOM: CustomProfile(),
}


def get_kind_profile(kind: MechanismKind) -> KindProfile:
    return _PROFILES[kind]


def create_solver(mechanism: Mechanism, solver: Optional[str] = None) -> MechanismSolver:
    """Build the solver matching the mechanism's kind and manufacturer."""
    return get_kind_profile(mechanism.kind).create_solver(mechanism, solver)


def degrees_to_radians(
    profile: ConversionProfile, values: Sequence[float]
) -> List[float]:
    """Convert a whole joint vector with ``profile``."""
    return [profile.degree_to_radian(value, i) for i, value in enumerate(values)]
