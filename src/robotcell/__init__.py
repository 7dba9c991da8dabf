"""
RobotCell - Offline programming for industrial robot cells

Kinematics for robot arms and external axes, a program compiler that checks
reachability, speeds and durations, and code generators for ABB RAPID,
KUKA KRL and Universal Robots URScript controllers.
"""

__version__ = "0.1.0"
__author__ = "RobotCell Contributors"

from robotcell.core.config import ConfigManager, load_robot_system, load_toolpath
from robotcell.mechanisms.system import RobotSystem
from robotcell.program.program import Program

__all__ = [
    "__version__",
    "ConfigManager",
    "load_robot_system",
    "load_toolpath",
    "RobotSystem",
    "Program",
]
