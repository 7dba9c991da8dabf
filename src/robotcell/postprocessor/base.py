"""
PostProcessorBase - Abstract base class for all post processors.

A post processor turns a compiled :class:`~robotcell.program.Program` into
controller code. The output of :meth:`PostProcessorBase.generate` is nested
lists of lines: one entry per mechanical group, each holding one entry per
file. :meth:`PostProcessorBase.save` lays those files out on disk.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional, Tuple, Type, TypeVar

from robotcell.commands.base import Command
from robotcell.core.exceptions import PostProcessorError
from robotcell.core.logging import get_logger
from robotcell.targets.targets import DEFAULT_TARGET, CartesianTarget

if TYPE_CHECKING:
    from robotcell.program.program import Program
    from robotcell.program.targets import ProgramTarget

logger = get_logger(__name__)

A = TypeVar("A")

GroupCode = List[List[str]]


@dataclass
class PostProcessorConfig:
    """Configuration for a post processor instance."""

    format_name: str = "rapid"  # 'rapid', 'urscript', 'krl', 'val3'
    file_extension: str = ".mod"
    line_ending: str = "\r\n"
    encoding: str = "utf-8"
    indent: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> PostProcessorConfig:
        valid_fields = {f.name for f in cls.__dataclass_fields__.values()}
        return cls(**{k: v for k, v in d.items() if k in valid_fields})


def attributes_of(program: Program, kind: Type[A]) -> List[A]:
    """Program attributes of one type, in declaration order."""
    return [attribute for attribute in program.attributes if isinstance(attribute, kind)]


class PostProcessorBase(ABC):
    """
    Abstract base class for post processors.

    Subclasses implement:
    - default_config()
    - group_code(): files of one mechanical group
    - files(): file names and contents written by save()

    check() may report program errors that block generation.
    """

    def __init__(self, config: Optional[PostProcessorConfig] = None):
        self.config = config or self.default_config()

    @property
    def format_name(self) -> str:
        return self.config.format_name

    @property
    def file_extension(self) -> str:
        return self.config.file_extension

    # ── Abstract methods (must be implemented by subclasses) ───────────

    @classmethod
    @abstractmethod
    def default_config(cls) -> PostProcessorConfig:
        """Configuration used when none is given."""
        ...

    @abstractmethod
    def group_code(self, program: Program, group: int) -> GroupCode:
        """Generate the files of one mechanical group."""
        ...

    @abstractmethod
    def files(self, program: Program) -> List[Tuple[Path, List[str]]]:
        """Relative paths and lines of every file of a generated program."""
        ...

    # ── Optional overrides ────────────────────────────────────────────

    def check(self, program: Program) -> List[str]:
        """Errors that prevent generating code for ``program``."""
        return []

    def file_encoding(self, program: Program, relative: Path) -> str:
        """Text encoding of one output file."""
        return self.config.encoding

    # ── Shared helpers ──────────────────────────────────────────────────

    def declarations(self, program: Program) -> List[str]:
        """Non-blank declarations of every command attribute."""
        lines = []
        for command in attributes_of(program, Command):
            declaration = command.declaration(program.robot_system)
            if declaration.strip():
                lines.append(self.config.indent + declaration)
        return lines

    def init_command_lines(self, program: Program) -> List[str]:
        return [
            self.config.indent + command.code(program.robot_system, DEFAULT_TARGET, program.warnings)
            for command in program.init_commands
        ]

    def command_lines(self, program: Program, program_target: ProgramTarget, run_before: bool) -> List[str]:
        """Inline code of the commands of a target that run before or after its motion."""
        return [
            self.config.indent + command.code(program.robot_system, program_target.target, program.warnings)
            for command in program_target.commands
            if command.run_before == run_before
        ]

    def with_commands(self, program: Program, program_target: ProgramTarget, move: Iterable[str]) -> List[str]:
        return [
            *self.command_lines(program, program_target, True),
            *move,
            *self.command_lines(program, program_target, False),
        ]

    @staticmethod
    def file_range(program: Program, file: int) -> range:
        """Target indices written to multi-file chunk ``file``."""
        indices = program.multi_file_indices
        start = indices[file]
        end = len(program.targets) if file == len(indices) - 1 else indices[file + 1]
        return range(start, end)

    @staticmethod
    def unsupported_motion(target: CartesianTarget) -> PostProcessorError:
        return PostProcessorError(
            f"Motion '{target.motion.value}' not supported.",
            details={"motion": target.motion.value},
        )

    # ── Main generation pipeline ──────────────────────────────────────

    def generate(self, program: Program) -> List[GroupCode]:
        """
        Generate the code of every mechanical group.

        Parameters:
            program: Compiled program without errors.

        Returns:
            Lines per group and file.
        """
        code = [self.group_code(program, group) for group in range(len(program.robot_system.groups))]
        logger.debug(
            "code_generated",
            format=self.format_name,
            program=program.name,
            files=sum(len(group) for group in code),
        )
        return code

    def save(self, program: Program, folder: Path) -> List[Path]:
        """
        Write the program files under ``folder``.

        Returns:
            Paths of the written files.
        """
        written = []
        for relative, lines in self.files(program):
            path = Path(folder) / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "w", encoding=self.file_encoding(program, relative), newline="") as f:
                f.write(self.config.line_ending.join(lines))
            written.append(path)

        logger.info("program_saved", program=program.name, format=self.format_name, files=len(written))
        return written
