"""
Mechanisms module - Joint chains, mechanical groups and robot systems.

Hierarchy:
- Joint (RevoluteJoint, PrismaticJoint)
- Mechanism (robot arm, track, positioner or custom, see MechanismKind)
- MechanicalGroup (one robot arm plus external mechanisms)
- RobotSystem (groups, IO table and controller)
"""

from robotcell.mechanisms.group import MechanicalGroup
from robotcell.mechanisms.io import IO
from robotcell.mechanisms.joints import Joint, PrismaticJoint, RevoluteJoint
from robotcell.mechanisms.mechanism import Mechanism
from robotcell.mechanisms.profiles import (
    ConversionProfile,
    KindProfile,
    MechanismKind,
    create_solver,
    get_kind_profile,
)
from robotcell.mechanisms.system import RobotSystem

__all__ = [
    "Joint",
    "RevoluteJoint",
    "PrismaticJoint",
    "Mechanism",
    "MechanismKind",
    "ConversionProfile",
    "KindProfile",
    "create_solver",
    "get_kind_profile",
    "MechanicalGroup",
    "RobotSystem",
    "IO",
]
