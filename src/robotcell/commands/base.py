"""
Command base class and manufacturer dispatch.

A command produces two kinds of text for a robot system:

* a *declaration*, emitted once in the program preamble (variables, data);
* inline *code*, emitted each time the command occurs in the target sequence.

Each concrete command describes its output as a :class:`CommandTable`, a
mapping from :class:`Manufacturer` to plain functions. The table is derived
from the command's own fields every time it is needed and never mutated, so
a command instance can be dispatched for several manufacturers at once.

Lookup order is exact manufacturer, then ``Manufacturer.ALL``. A missing code
entry is reported as a warning and produces no text; a missing declaration is
silently empty.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, Dict, Iterator, List, Optional, TypeVar

from robotcell.core.logging import get_logger
from robotcell.core.manufacturer import Manufacturer

if TYPE_CHECKING:
    from robotcell.mechanisms.system import RobotSystem
    from robotcell.targets.targets import Target

logger = get_logger(__name__)

DeclarationFn = Callable[["RobotSystem"], str]
CodeFn = Callable[["RobotSystem", "Target"], str]

T = TypeVar("T")


@dataclass(frozen=True)
class CommandTable:
    """Per-manufacturer declaration and code generators of one command."""

    declarations: Dict[Manufacturer, DeclarationFn] = field(default_factory=dict)
    code: Dict[Manufacturer, CodeFn] = field(default_factory=dict)


def lookup(entries: Dict[Manufacturer, T], manufacturer: Manufacturer) -> Optional[T]:
    """Exact manufacturer entry, else the ``ALL`` entry, else None."""
    if manufacturer in entries:
        return entries[manufacturer]
    return entries.get(Manufacturer.ALL)


class Command:
    """
    Base class of all commands.

    Subclasses override :meth:`_populate` to describe their output and
    :meth:`error_checking` to validate themselves against a system.

    Attributes:
        name: Attribute name, also used as variable name in declarations.
            Unnamed commands are named when a program is compiled.
        run_before: Emit the code before the motion of its target instead of after.
    """

    def __init__(self, name: Optional[str] = None, run_before: bool = False) -> None:
        self.name = name
        self.run_before = run_before

    @staticmethod
    def default() -> Command:
        """Shared placeholder command that produces no output."""
        from robotcell.commands.custom import DEFAULT_COMMAND

        return DEFAULT_COMMAND

    # ── Hooks ───────────────────────────────────────────────────────────────

    def error_checking(self, system: RobotSystem) -> None:
        """Raise a ConfigurationError if the command cannot run on ``system``."""

    def _populate(self) -> CommandTable:
        return CommandTable()

    # ── Dispatch ────────────────────────────────────────────────────────────

    def declaration(self, system: RobotSystem) -> str:
        """One-time declaration text for ``system``, or an empty string."""
        self.error_checking(system)
        generator = lookup(self._populate().declarations, system.manufacturer)
        if generator is None:
            return ""
        return generator(system)

    def code(
        self,
        system: RobotSystem,
        target: Target,
        warnings: Optional[List[str]] = None,
    ) -> str:
        """
        Inline code for one occurrence of the command.

        Args:
            system: Robot system the program is generated for.
            target: Target the command is attached to.
            warnings: Collector for the "not implemented" warning.

        Returns:
            The code text, or an empty string when the manufacturer has no entry.

        Raises:
            ConfigurationError: If :meth:`error_checking` rejects the command.
        """
        self.error_checking(system)
        generator = lookup(self._populate().code, system.manufacturer)

        if generator is None:
            message = f"Command {self.name} not implemented for {system.manufacturer} robots."
            if warnings is not None:
                warnings.append(message)
            logger.warning(
                "command_not_implemented",
                command=self.name,
                manufacturer=str(system.manufacturer),
            )
            return ""

        return generator(system, target)

    # ── Composition ─────────────────────────────────────────────────────────

    def flatten(self) -> Iterator[Command]:
        yield self

    def with_name(self, name: str) -> Command:
        """Shallow copy carrying a different name."""
        clone = copy.copy(self)
        clone.name = name
        return clone

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"
