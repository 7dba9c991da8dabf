"""
Mechanism: a robot arm or an external axis set.

One class covers every kind; the differences live in
:mod:`robotcell.mechanisms.profiles`.
"""

from __future__ import annotations

import math
from dataclasses import replace
from typing import Optional, Sequence

from robotcell.core.exceptions import MechanismDefinitionError
from robotcell.core.geometry import WORLD_XY, Interval, Pose
from robotcell.core.manufacturer import Manufacturer
from robotcell.kinematics.solution import KinematicSolution
from robotcell.mechanisms.joints import Joint, RevoluteJoint
from robotcell.mechanisms.profiles import MechanismKind, get_kind_profile
from robotcell.targets.targets import Target


class Mechanism:
    """
    A chain of joints with its solver.

    Joints are given in controller units: revolute ranges in degrees (as
    shown on the teach pendant), revolute speeds in deg/s, ``alpha`` and
    ``theta`` in degrees. They are converted once here and exposed in
    radians through :attr:`joints`.

    Args:
        kind: Role of the mechanism.
        model: Model name, without manufacturer.
        manufacturer: Controller family.
        joints: Joint definitions in controller units.
        payload: Rated payload in kg.
        base_plane: Mounting pose of the base.
        moves_robot: The robot of the group rides on this mechanism.
        solver: ``"numerical"`` forces the numerical arm solver.

    Raises:
        MechanismDefinitionError: If no joints are given or the solver
            cannot be built.
    """

    def __init__(
        self,
        kind: MechanismKind,
        model: str,
        manufacturer: Manufacturer,
        joints: Sequence[Joint],
        payload: float = 0.0,
        base_plane: Pose = WORLD_XY,
        moves_robot: bool = False,
        solver: Optional[str] = None,
    ) -> None:
        if not joints:
            raise MechanismDefinitionError(
                "A mechanism needs at least one joint.",
                details={"model": model},
            )

        self.kind = kind
        self.manufacturer = manufacturer
        self.payload = payload
        self.base_plane = base_plane
        self.moves_robot = moves_robot
        self._model = model

        self.profile = get_kind_profile(kind)
        self.conversion = self.profile.conversion(manufacturer)
        self.joints = self._init_joints(joints)
        self.solver = self.profile.create_solver(self, solver)
        self.set_start_planes()

    def _init_joints(self, joints: Sequence[Joint]) -> tuple[Joint, ...]:
        count = len(joints)
        alphas = self.profile.default_alpha(self.manufacturer, count)
        thetas = self.profile.home_posture(self.manufacturer, count)
        converted = []

        for i, joint in enumerate(joints):
            max_speed = math.radians(joint.max_speed) if isinstance(joint, RevoluteJoint) else joint.max_speed
            converted.append(
                replace(
                    joint,
                    index=i,
                    range=Interval(
                        self.conversion.degree_to_radian(joint.range.t0, i),
                        self.conversion.degree_to_radian(joint.range.t1, i),
                    ),
                    max_speed=max_speed,
                    alpha=alphas[i] if joint.alpha is None else math.radians(joint.alpha),
                    theta=thetas[i] if joint.theta is None else math.radians(joint.theta),
                )
            )

        return tuple(converted)

    @property
    def model(self) -> str:
        return f"{self.manufacturer}.{self._model}"

    def set_start_planes(self) -> None:
        """Store the home frame of every joint, relative to the base."""
        planes = self.profile.start_planes(self)
        self.joints = tuple(joint.with_plane(plane) for joint, plane in zip(self.joints, planes))

    def kinematics(
        self,
        target: Target,
        prev_joints: Optional[Sequence[float]] = None,
        base_plane: Optional[Pose] = None,
    ) -> KinematicSolution:
        return self.solver.solve(target, prev_joints, base_plane)

    def degree_to_radian(self, degree: float, i: int) -> float:
        return self.conversion.degree_to_radian(degree, i)

    def radian_to_degree(self, radian: float, i: int) -> float:
        return self.conversion.radian_to_degree(radian, i)

    def __repr__(self) -> str:
        return f"Mechanism({self.kind.name}, {self.model})"
