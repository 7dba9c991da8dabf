"""
Robot manufacturers known to the code generators.
"""

from enum import Enum


class Manufacturer(Enum):
    """Controller dialect family; ``ALL`` is the command fallback key."""

    ABB = "ABB"
    KUKA = "KUKA"
    UR = "UR"
    FANUC = "FANUC"
    STAUBLI = "Staubli"
    OTHER = "Other"
    ALL = "All"

    def __str__(self) -> str:
        return self.value
