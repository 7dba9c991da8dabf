"""
Program flow commands: messages, stops and timed waits.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from robotcell.commands.base import Command, CommandTable
from robotcell.core.manufacturer import Manufacturer
from robotcell.core.units import format_number

if TYPE_CHECKING:
    from robotcell.mechanisms.system import RobotSystem
    from robotcell.targets.targets import Target


def val3_data(name: str, kind: str, *values: str) -> str:
    """VAL3 array data element with one ``<Value>`` per attribute string."""
    lines = [f'    <Data name="{name}" access="private" xsi:type="array" type="{kind}" size="{len(values)}">']
    lines.extend(f'        <Value key="{i}" {value}/>' for i, value in enumerate(values))
    lines.append("    </Data>")
    return "\r\n".join(lines)


def val3_num_data(name: str, value: float) -> str:
    """VAL3 ``num`` data declaration."""
    return val3_data(name, "num", f'value="{format_number(value)}"')


class Message(Command):
    """Show a message on the teach pendant."""

    def __init__(self, message: str, name: Optional[str] = None) -> None:
        super().__init__(name)
        self.message = message

    def _populate(self) -> CommandTable:
        text = self.message
        return CommandTable(
            code={
                Manufacturer.ABB: lambda system, target: f'TPWrite "{text}";',
                Manufacturer.KUKA: lambda system, target: f'; "{text}"',
                Manufacturer.UR: lambda system, target: f'textmsg("{text}")',
                Manufacturer.STAUBLI: lambda system, target: f'putln("{text}")',
            }
        )


class Stop(Command):
    """Pause program execution until the operator resumes it."""

    def _populate(self) -> CommandTable:
        return CommandTable(
            code={
                Manufacturer.ABB: lambda system, target: "Stop;",
                Manufacturer.KUKA: lambda system, target: "HALT",
                Manufacturer.UR: lambda system, target: "pause program",
            }
        )


class Wait(Command):
    """
    Wait for a number of seconds.

    The wait time is also added to the program duration.
    """

    def __init__(self, seconds: float, name: Optional[str] = None) -> None:
        super().__init__(name)
        self.seconds = seconds

    def _populate(self) -> CommandTable:
        seconds = format_number(self.seconds)
        return CommandTable(
            declarations={
                Manufacturer.ABB: lambda system: f"PERS num {self.name}:={seconds};",
                Manufacturer.KUKA: lambda system: f"DECL GLOBAL REAL {self.name} = {seconds}",
                Manufacturer.UR: lambda system: f"{self.name} = {seconds}",
                Manufacturer.STAUBLI: lambda system: val3_num_data(self.name, self.seconds),
            },
            code={
                Manufacturer.ABB: self._code_abb,
                Manufacturer.KUKA: self._code_kuka,
                Manufacturer.UR: lambda system, target: f"sleep({self.name})",
                Manufacturer.STAUBLI: lambda system, target: f"waitEndMove()\r\ndelay({self.name})",
            },
        )

    def _code_abb(self, system: RobotSystem, target: Target) -> str:
        if target.zone.is_flyby:
            return f"WaitTime {self.name};"
        return f"WaitTime \\InPos,{self.name};"

    def _code_kuka(self, system: RobotSystem, target: Target) -> str:
        if target.zone.is_flyby:
            return f"CONTINUE\r\nWAIT SEC {self.name}"
        return f"WAIT SEC {self.name}"
