"""
Program module - Compilation of toolpaths into robot programs.

- Program (validation, solving, duration and code generation)
- ProgramChecker (first target, attributes and motion checks)
- CellTarget, ProgramTarget (solved targets per step and group)
"""

from robotcell.program.checker import ProgramChecker
from robotcell.program.program import Program, is_valid_identifier
from robotcell.program.targets import CellTarget, ProgramTarget

__all__ = [
    "Program",
    "ProgramChecker",
    "CellTarget",
    "ProgramTarget",
    "is_valid_identifier",
]
