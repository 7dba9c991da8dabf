"""
Robot program compilation.

A :class:`Program` is compiled when it is created: targets are checked and
solved, the program name is validated and, when no errors were found, the
code of every mechanical group is generated by the post processor of the
system manufacturer.
"""

from __future__ import annotations

import re
from datetime import timedelta
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple

from robotcell.commands.base import Command
from robotcell.core.exceptions import ProgramError
from robotcell.core.logging import get_logger, program_context
from robotcell.core.manufacturer import Manufacturer
from robotcell.mechanisms.system import RobotSystem
from robotcell.postprocessor import get_postprocessor
from robotcell.program.checker import ProgramChecker
from robotcell.program.targets import CellTarget, ProgramTarget
from robotcell.targets.targets import Target

logger = get_logger(__name__)

MAX_NAME_LENGTH = 32
KRC_NAME_LENGTH = 24

_IDENTIFIER = re.compile(r"^[A-Z0-9_]+$", re.IGNORECASE)


def is_valid_identifier(name: str) -> Tuple[bool, str]:
    """
    Check a name against the rules shared by robot controllers.

    Returns:
        ``(True, "")`` for a valid name, else ``(False, reason)``.
    """
    if not name:
        return False, "name is empty."

    excess = len(name) - MAX_NAME_LENGTH
    if excess > 0:
        return False, f"name is {excess} character(s) too long."

    if not name[0].isalpha():
        return False, "name must start with a letter."

    if not _IDENTIFIER.match(name):
        return False, "name can only contain letters, digits, and underscores (_)."

    return True, ""


class Program:
    """
    A compiled robot program.

    Args:
        name: Program name, used for modules and files.
        system: Robot system the program runs on.
        toolpaths: One sequence of targets per mechanical group.
        init_commands: Commands run once at program start.
        multi_file_indices: Target indices where a new code file starts.
        step_size: Maximum TCP travel (mm) between interpolation steps used
            to estimate the duration.

    Attributes:
        targets: Checked and solved cell targets.
        attributes: Unique tools, frames, speeds, zones and commands.
        warnings: Non fatal remarks.
        errors: Problems that prevent code generation.
        duration: Estimated run time in seconds.
        code: Lines per group and file, None when there are errors.

    Raises:
        ConfigurationError: If a frame couples to a missing group or mechanism.
    """

    def __init__(
        self,
        name: str,
        system: RobotSystem,
        toolpaths: Sequence[Iterable[Target]],
        init_commands: Optional[Command] = None,
        multi_file_indices: Optional[Iterable[int]] = None,
        step_size: float = 1.0,
    ) -> None:
        self.name = name
        self.robot_system = system
        self.init_commands: List[Command] = list(init_commands.flatten()) if init_commands is not None else []
        self.attributes: List[object] = []
        self.warnings: List[str] = []
        self.errors: List[str] = []
        self.duration = 0.0
        self.code: Optional[List[List[List[str]]]] = None
        self.targets: List[CellTarget] = []
        self.multi_file_indices: List[int] = [0]

        with program_context(name, system.name):
            self._compile(toolpaths, multi_file_indices, step_size)

    def _compile(
        self,
        toolpaths: Sequence[Iterable[Target]],
        multi_file_indices: Optional[Iterable[int]],
        step_size: float,
    ) -> None:
        targets = self._create_cell_targets(toolpaths)
        if targets:
            targets = ProgramChecker(self, targets, step_size).fixed_targets
        self.targets = targets

        self._check_name(self.name)
        self.multi_file_indices = self._fix_multi_file_indices(multi_file_indices)

        if not self.errors:
            postprocessor = get_postprocessor(self.robot_system.manufacturer)
            self.errors.extend(postprocessor.check(self))
            if not self.errors:
                self.code = postprocessor.generate(self)

        logger.info(
            "program_compiled",
            targets=len(self.targets),
            duration=round(self.duration, 3),
            warnings=len(self.warnings),
            errors=len(self.errors),
        )

    def _create_cell_targets(self, toolpaths: Sequence[Iterable[Target]]) -> List[CellTarget]:
        groups = len(self.robot_system.groups)
        if len(toolpaths) != groups:
            self.errors.append(
                f"You supplied {len(toolpaths)} toolpath(s), this robot system requires {groups} toolpath(s)."
            )
            return []

        paths = [list(toolpath) for toolpath in toolpaths]
        count = min((len(path) for path in paths), default=0)
        cell_targets: List[CellTarget] = []

        for i in range(count):
            if any(path[i] is None for path in paths):
                self.errors.append(f"Target index {i} is null or invalid.")
                return cell_targets
            program_targets = [ProgramTarget(path[i], group) for group, path in enumerate(paths)]
            cell_targets.append(CellTarget(program_targets, i))

        if any(len(path) != count for path in paths):
            self.errors.append("All toolpaths must contain the same number of targets.")
            return cell_targets

        if not cell_targets:
            self.errors.append("The program must contain at least 1 target.")

        return cell_targets

    def _check_name(self, name: str) -> None:
        if self.robot_system.is_industrial:
            group = max((g.name for g in self.robot_system.groups), key=len)
            name = f"{name}_{group}_000"

        valid, error = is_valid_identifier(name)
        if not valid:
            self.errors.append("Program " + error)

        if self.robot_system.manufacturer == Manufacturer.KUKA:
            excess = len(name) - KRC_NAME_LENGTH
            if excess > 0:
                self.warnings.append(
                    "If using an older KRC2 or KRC3 controller, "
                    f"make the program name {excess} character(s) shorter."
                )

    def _fix_multi_file_indices(self, indices: Optional[Iterable[int]]) -> List[int]:
        if self.errors:
            return [0]

        result = list(indices) if indices is not None else [0]
        if result:
            kept = [i for i in result if i < len(self.targets)]
            if len(kept) < len(result):
                self.warnings.append("Multi-file index was higher than the number of targets.")
            result = sorted(kept)

        if not result or result[0] != 0:
            result.insert(0, 0)
        return result

    @property
    def has_code(self) -> bool:
        return self.code is not None

    def save(self, folder: str | Path) -> List[Path]:
        """
        Write the generated code files.

        Args:
            folder: Existing directory to write into.

        Returns:
            Paths of the written files.

        Raises:
            ProgramError: If the program has errors and no code.
        """
        if self.code is None:
            raise ProgramError(
                f"Program {self.name} has no code to save.",
                details={"errors": list(self.errors)},
            )

        return get_postprocessor(self.robot_system.manufacturer).save(self, Path(folder))

    def __repr__(self) -> str:
        span = timedelta(seconds=int(self.duration))
        return f"Program({self.name} with {len(self.targets)} targets and {span} (h:m:s) long)"
