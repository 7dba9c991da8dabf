"""
Joint definitions.

Joints are described in controller units (degrees, deg/s, mm) and handed to a
:class:`~robotcell.mechanisms.mechanism.Mechanism`, which converts them once
into solver units and then never changes them.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Optional

from robotcell.core.geometry import WORLD_XY, Interval, Pose


@dataclass(frozen=True)
class Joint:
    """
    One axis of a mechanism.

    Attributes:
        index: 0-based position in the owning mechanism.
        number: 0-based position in the whole mechanical group. External axes
            start at 6 and map to ``target.external[number - 6]``.
        a: DH link length (mm).
        d: DH link offset (mm).
        range: Permitted motion range in radians or millimetres.
        max_speed: Maximum speed in rad/s or mm/s.
        plane: Home frame of the joint, relative to the mechanism base.
        alpha: DH link twist (radians), used by the numerical solver. None
            takes the manufacturer default.
        theta: Home angle (radians), used to seed start planes. None takes
            the manufacturer home posture.
    """

    index: int
    number: int
    a: float
    d: float
    range: Interval
    max_speed: float
    plane: Pose = field(default=WORLD_XY, compare=False)
    alpha: Optional[float] = None
    theta: Optional[float] = None

    def with_plane(self, plane: Pose) -> Joint:
        return replace(self, plane=plane)

    def is_in_range(self, value: float) -> bool:
        return self.range.includes(value)


@dataclass(frozen=True)
class RevoluteJoint(Joint):
    """Rotation about the local Z axis."""


@dataclass(frozen=True)
class PrismaticJoint(Joint):
    """Translation along the local Z axis."""
