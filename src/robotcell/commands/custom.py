"""
Caller-defined and composite commands.
"""

from __future__ import annotations

from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from robotcell.commands.base import Command, CommandTable
from robotcell.core.exceptions import CommandError
from robotcell.core.manufacturer import Manufacturer


class Custom(Command):
    """
    Literal code and declaration text per manufacturer.

    Example:
        >>> weld_on = Custom("WeldOn", command="SetDO doWeld,1;")
        >>> weld_on.add_command(Manufacturer.KUKA, "$OUT[1] = TRUE")
    """

    def __init__(
        self,
        name: str = "CustomCommand",
        manufacturer: Manufacturer = Manufacturer.ALL,
        command: Optional[str] = None,
        declaration: Optional[str] = None,
        run_before: bool = False,
    ) -> None:
        super().__init__(name, run_before)
        self._entries: Dict[Manufacturer, Tuple[Optional[str], Optional[str]]] = {}
        if command is not None or declaration is not None:
            self.add_command(manufacturer, command, declaration)

    def add_command(
        self,
        manufacturer: Manufacturer,
        command: Optional[str],
        declaration: Optional[str] = None,
    ) -> None:
        """
        Register text for one manufacturer.

        Raises:
            CommandError: If the manufacturer already has an entry.
        """
        if manufacturer in self._entries:
            raise CommandError(
                f"Command {self.name} already has an entry for {manufacturer}.",
                details={"manufacturer": str(manufacturer)},
            )
        self._entries[manufacturer] = (command, declaration)

    @property
    def manufacturers(self) -> List[Manufacturer]:
        return list(self._entries)

    def _populate(self) -> CommandTable:
        table = CommandTable()
        for manufacturer, (command, declaration) in self._entries.items():
            if command is not None:
                table.code[manufacturer] = lambda system, target, text=command: text
            if declaration is not None:
                table.declarations[manufacturer] = lambda system, text=declaration: text
        return table


DEFAULT_COMMAND = Custom("DefaultCommand")


class Group(Command):
    """
    Ordered composite of commands.

    Groups produce no text themselves; programs flatten them so that each
    leaf command is emitted on its own.
    """

    def __init__(self, commands: Iterable[Command] = (), name: Optional[str] = "GroupCommand") -> None:
        super().__init__(name)
        self._commands: List[Command] = list(commands)

    def append(self, command: Command) -> None:
        self._commands.append(command)

    def extend(self, commands: Iterable[Command]) -> None:
        self._commands.extend(commands)

    def flatten(self) -> Iterator[Command]:
        for command in self._commands:
            yield from command.flatten()

    def with_name(self, name: str) -> Group:
        clone = Group(self._commands, name)
        clone.run_before = self.run_before
        return clone

    def __iter__(self) -> Iterator[Command]:
        return iter(self._commands)

    def __len__(self) -> int:
        return len(self._commands)

    def __getitem__(self, index: int) -> Command:
        return self._commands[index]

    def __repr__(self) -> str:
        return f"Group(name={self.name!r}, commands={len(self._commands)})"
