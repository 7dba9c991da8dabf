"""
Kinematics module - Forward and inverse kinematics per mechanism kind.

Solvers:
- SphericalWristSolver (closed form, ABB, KUKA, Staubli, FANUC)
- OffsetWristSolver (closed form, Universal Robots)
- NumericalSolver (Jacobian iteration on DH parameters, 7-axis and others)
- TrackSolver, PositionerSolver, CustomSolver (external mechanisms)
"""

from robotcell.kinematics.base import MechanismSolver, RobotSolver
from robotcell.kinematics.external import CustomSolver, PositionerSolver, TrackSolver
from robotcell.kinematics.numerical import NumericalSolver
from robotcell.kinematics.offset_wrist import OffsetWristSolver
from robotcell.kinematics.solution import KinematicSolution
from robotcell.kinematics.spherical_wrist import SphericalWristSolver

__all__ = [
    "KinematicSolution",
    "MechanismSolver",
    "RobotSolver",
    "SphericalWristSolver",
    "OffsetWristSolver",
    "NumericalSolver",
    "TrackSolver",
    "PositionerSolver",
    "CustomSolver",
]
