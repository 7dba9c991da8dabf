"""
Core module - Shared exceptions, logging, geometry and units.

Configuration loading lives in :mod:`robotcell.core.config`; it is not
imported here because it depends on the higher level packages.
"""

from robotcell.core.exceptions import (
    RobotCellError,
    ConfigurationError,
    MechanismDefinitionError,
    IOIndexError,
    CommandError,
    KinematicsError,
    ProgramError,
    PostProcessorError,
)
from robotcell.core.geometry import (
    Interval,
    Pose,
    WORLD_XY,
    WORLD_YZ,
    WORLD_ZX,
)
from robotcell.core.logging import configure_logging, get_logger
from robotcell.core.manufacturer import Manufacturer

__all__ = [
    # Exceptions
    "RobotCellError",
    "ConfigurationError",
    "MechanismDefinitionError",
    "IOIndexError",
    "CommandError",
    "KinematicsError",
    "ProgramError",
    "PostProcessorError",
    # Geometry
    "Interval",
    "Pose",
    "WORLD_XY",
    "WORLD_YZ",
    "WORLD_ZX",
    # Logging
    "configure_logging",
    "get_logger",
    # Manufacturer
    "Manufacturer",
]
