"""
Digital and analog IO commands.

Indices address the system's IO table (``system.io``): every command checks
them with ``IO.check_bounds`` and writes ``IO.channel_reference``, which is
the channel name or, with controller numbering, the raw index. Invalid indices
are a configuration problem and raise before any text is produced. VAL3 ``SetDO``
writes to the ``dos`` array of the data file by index.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from robotcell.commands.base import Command, CommandTable
from robotcell.commands.flow import val3_num_data
from robotcell.core.manufacturer import Manufacturer
from robotcell.core.units import format_number

if TYPE_CHECKING:
    from robotcell.mechanisms.system import RobotSystem
    from robotcell.targets.targets import Target


class SetDO(Command):
    """Set a digital output."""

    def __init__(self, do: int, value: bool, name: Optional[str] = None) -> None:
        super().__init__(name)
        self.do = do
        self.value = value

    def error_checking(self, system: RobotSystem) -> None:
        system.io.check_bounds(self.do, system.io.do)

    def _channel(self, system: RobotSystem) -> str:
        return system.io.channel_reference(self.do, system.io.do)

    def _populate(self) -> CommandTable:
        return CommandTable(
            code={
                Manufacturer.ABB: self._code_abb,
                Manufacturer.KUKA: self._code_kuka,
                Manufacturer.UR: self._code_ur,
                Manufacturer.STAUBLI: self._code_staubli,
            }
        )

    def _code_abb(self, system: RobotSystem, target: Target) -> str:
        value = "1" if self.value else "0"
        channel = self._channel(system)
        if target.zone.is_flyby:
            return f"SetDO {channel},{value};"
        return f"SetDO \\Sync ,{channel},{value};"

    def _code_kuka(self, system: RobotSystem, target: Target) -> str:
        value = "TRUE" if self.value else "FALSE"
        code = f"$OUT[{self._channel(system)}] = {value}"
        if target.zone.is_flyby:
            return f"CONTINUE\r\n{code}"
        return code

    def _code_ur(self, system: RobotSystem, target: Target) -> str:
        value = "True" if self.value else "False"
        return f"set_digital_out({self._channel(system)},{value})"

    def _code_staubli(self, system: RobotSystem, target: Target) -> str:
        value = "true" if self.value else "false"
        return f"waitEndMove()\r\ndos[{self.do}] = {value}"


class PulseDO(Command):
    """Pulse a digital output for ``length`` seconds."""

    def __init__(self, do: int, length: float = 0.2, name: Optional[str] = None) -> None:
        super().__init__(name)
        self.do = do
        self.length = length

    def error_checking(self, system: RobotSystem) -> None:
        system.io.check_bounds(self.do, system.io.do)

    def _channel(self, system: RobotSystem) -> str:
        return system.io.channel_reference(self.do, system.io.do)

    def _populate(self) -> CommandTable:
        return CommandTable(
            code={
                Manufacturer.ABB: self._code_abb,
                Manufacturer.KUKA: self._code_kuka,
            }
        )

    def _code_abb(self, system: RobotSystem, target: Target) -> str:
        return f"PulseDO \\PLength:={format_number(self.length)}, {self._channel(system)};"

    def _code_kuka(self, system: RobotSystem, target: Target) -> str:
        code = f"PULSE($OUT[{self._channel(system)}],TRUE,{format_number(self.length)})"
        if target.zone.is_flyby:
            return f"CONTINUE\r\n{code}"
        return code


class SetAO(Command):
    """Set an analog output through a declared variable."""

    def __init__(self, ao: int, value: float, name: Optional[str] = None) -> None:
        super().__init__(name)
        self.ao = ao
        self.value = value

    def error_checking(self, system: RobotSystem) -> None:
        system.io.check_bounds(self.ao, system.io.ao)

    def _populate(self) -> CommandTable:
        value = format_number(self.value)
        return CommandTable(
            declarations={
                Manufacturer.ABB: lambda system: f"PERS num {self.name};\r\n{self.name} := {value};",
                Manufacturer.KUKA: lambda system: f"DECL GLOBAL REAL {self.name} = {value}",
                Manufacturer.UR: lambda system: f"{self.name} = {value}",
                Manufacturer.STAUBLI: lambda system: val3_num_data(self.name, self.value),
            },
            code={
                Manufacturer.ABB: lambda system, target: f"SetAO {self._channel(system)},{self.name};",
                Manufacturer.KUKA: lambda system, target: f"$ANOUT[{self._channel(system)}] = {self.name}",
                Manufacturer.UR: lambda system, target: f"set_analog_out({self._channel(system)},{self.name})",
                Manufacturer.STAUBLI: lambda system, target: f"aioSet(aos[{self._channel(system)}], {self.name})",
            },
        )

    def _channel(self, system: RobotSystem) -> str:
        return system.io.channel_reference(self.ao, system.io.ao)


class WaitDI(Command):
    """Block until a digital input reaches ``value``."""

    def __init__(self, di: int, value: bool = True, name: Optional[str] = None) -> None:
        super().__init__(name)
        self.di = di
        self.value = value

    def error_checking(self, system: RobotSystem) -> None:
        system.io.check_bounds(self.di, system.io.di)

    def _populate(self) -> CommandTable:
        return CommandTable(
            code={
                Manufacturer.ABB: self._code_abb,
                Manufacturer.KUKA: self._code_kuka,
                Manufacturer.UR: self._code_ur,
                Manufacturer.STAUBLI: self._code_staubli,
            }
        )

    def _channel(self, system: RobotSystem) -> str:
        return system.io.channel_reference(self.di, system.io.di)

    def _code_abb(self, system: RobotSystem, target: Target) -> str:
        value = "1" if self.value else "0"
        return f"WaitDI {self._channel(system)},{value};"

    def _code_kuka(self, system: RobotSystem, target: Target) -> str:
        value = "TRUE" if self.value else "FALSE"
        return f"WAIT FOR $IN[{self._channel(system)}]=={value}"

    def _code_ur(self, system: RobotSystem, target: Target) -> str:
        indent = "  "
        negate = "not " if self.value else ""
        return (
            f"while {negate}get_digital_in({self._channel(system)}):\r\n"
            f"{indent}{indent}sleep(0.008)\r\n{indent}end"
        )

    def _code_staubli(self, system: RobotSystem, target: Target) -> str:
        value = "true" if self.value else "false"
        return f"waitEndMove()\r\nwait(dis[{self._channel(system)}] == {value})"
