"""
Target attributes: tool, frame, speed and zone.

Attributes are immutable values with structural equality. Each class has a
shared ``default()`` instance that targets fall back to when the caller does
not provide one. Unnamed attributes get a generated name when a program is
compiled.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from typing import Optional, Sequence, TypeVar

import numpy as np

from robotcell.core.exceptions import ConfigurationError
from robotcell.core.geometry import WORLD_XY, Pose, Vector3
from robotcell.core.units import DISTANCE_TOL

A = TypeVar("A", bound="TargetAttribute")


class TargetAttribute:
    """Mixin for named attribute values."""

    name: Optional[str]

    def with_name(self: A, name: str) -> A:
        return replace(self, name=name)


@dataclass(frozen=True)
class Tool(TargetAttribute):
    """
    End effector definition.

    Attributes:
        tcp: Tool centre point relative to the robot flange.
        name: Attribute name.
        weight: Mass in kg.
        centroid: Centre of mass relative to the flange; defaults to the TCP origin.
    """

    tcp: Pose = WORLD_XY
    name: Optional[str] = None
    weight: float = 0.0
    centroid: Optional[Vector3] = None

    def __post_init__(self) -> None:
        if self.centroid is None:
            object.__setattr__(self, "centroid", self.tcp.origin)
        else:
            object.__setattr__(self, "centroid", tuple(float(v) for v in self.centroid))

    @staticmethod
    def default() -> Tool:
        return DEFAULT_TOOL

    @classmethod
    def from_four_points(
        cls,
        flanges: Sequence[Pose],
        name: Optional[str] = None,
        weight: float = 0.0,
        orientation: Pose = WORLD_XY,
    ) -> Tool:
        """
        Calibrate a TCP from four flange poses touching the same point.

        The touched point is the centre of the sphere through the four
        flange origins; the TCP origin is that point averaged over the four
        flange frames.

        Args:
            flanges: Four flange poses in world space.
            name: Attribute name.
            weight: Mass in kg.
            orientation: Orientation of the resulting TCP.

        Raises:
            ConfigurationError: If the points are not four or are coplanar.
        """
        if len(flanges) != 4:
            raise ConfigurationError(
                "Four point calibration requires exactly four poses.",
                details={"count": len(flanges)},
            )

        points = np.array([flange.origin for flange in flanges])
        lhs = 2.0 * (points[1:] - points[0])
        rhs = np.sum(points[1:] ** 2, axis=1) - np.sum(points[0] ** 2)

        if abs(np.linalg.det(lhs)) < 1e-9:
            raise ConfigurationError("Calibration points must not be coplanar.")

        center = np.linalg.solve(lhs, rhs)
        local = np.mean(
            [(flange.inverse_matrix() @ np.append(center, 1.0))[:3] for flange in flanges],
            axis=0,
        )
        return cls(orientation.with_origin(local), name, weight)


@dataclass(frozen=True)
class Frame(TargetAttribute):
    """
    Reference frame of a target.

    Attributes:
        plane: Frame pose in world space (or relative to the coupled mechanism).
        coupled_mechanism: Index of the external mechanism that moves the frame,
            -1 when the frame follows a whole mechanical group or nothing.
        coupled_mechanical_group: Index of the group the frame is coupled to,
            -1 when not coupled.
        name: Attribute name.
    """

    plane: Pose = WORLD_XY
    coupled_mechanism: int = -1
    coupled_mechanical_group: int = -1
    name: Optional[str] = None

    @property
    def is_coupled(self) -> bool:
        return self.coupled_mechanical_group != -1

    @staticmethod
    def default() -> Frame:
        return DEFAULT_FRAME

    def with_plane(self, plane: Pose) -> Frame:
        return replace(self, plane=plane)


@dataclass(frozen=True)
class Speed(TargetAttribute):
    """
    Motion speed limits.

    Attributes:
        translation: TCP translation speed (mm/s).
        rotation: TCP rotation speed (rad/s).
        translation_external: Prismatic external axis speed (mm/s).
        rotation_external: Revolute external axis speed (rad/s).
        name: Attribute name.
        translation_accel: TCP acceleration (mm/s²).
        axis_accel: Joint acceleration (rad/s²).
        time: Time to reach the target in seconds; overrides speeds when > 0.
    """

    translation: float = 100.0
    rotation: float = math.pi
    translation_external: float = 5000.0
    rotation_external: float = math.pi * 6
    name: Optional[str] = None
    translation_accel: float = 1000.0
    axis_accel: float = math.pi
    time: float = 0.0

    @staticmethod
    def default() -> Speed:
        return DEFAULT_SPEED


@dataclass(frozen=True)
class Zone(TargetAttribute):
    """
    Blending zone around a target.

    Attributes:
        distance: Blend radius of the TCP (mm).
        rotation: Reorientation zone (radians); defaults to ``distance / 10`` degrees.
        rotation_external: Revolute external axis zone (radians); defaults to ``rotation``.
        name: Attribute name.
    """

    distance: float = 0.0
    rotation: Optional[float] = None
    rotation_external: Optional[float] = None
    name: Optional[str] = None

    def __post_init__(self) -> None:
        if self.rotation is None:
            object.__setattr__(self, "rotation", math.radians(self.distance / 10))
        if self.rotation_external is None:
            object.__setattr__(self, "rotation_external", self.rotation)

    @property
    def is_flyby(self) -> bool:
        return self.distance > DISTANCE_TOL

    @staticmethod
    def default() -> Zone:
        return DEFAULT_ZONE


DEFAULT_TOOL = Tool(WORLD_XY, "DefaultTool")
DEFAULT_FRAME = Frame(WORLD_XY, -1, -1, "DefaultFrame")
DEFAULT_SPEED = Speed(name="DefaultSpeed")
DEFAULT_ZONE = Zone(0.0, name="DefaultZone")
