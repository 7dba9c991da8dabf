"""
Command module - Manufacturer-specific program instructions.

Commands attach to targets (or to a program's init sequence) and resolve to
declaration and inline code text per manufacturer:
- Custom (literal text per manufacturer, with an ``All`` fallback)
- Group (ordered composite, flattened on emission)
- Message, Stop, Wait
- SetDO, PulseDO, SetAO, WaitDI (validated against the system IO table)
"""

from robotcell.commands.base import Command, CommandTable, lookup
from robotcell.commands.custom import Custom, Group
from robotcell.commands.flow import Message, Stop, Wait
from robotcell.commands.io import PulseDO, SetAO, SetDO, WaitDI

__all__ = [
    "Command",
    "CommandTable",
    "lookup",
    "Custom",
    "Group",
    "Message",
    "Stop",
    "Wait",
    "SetDO",
    "PulseDO",
    "SetAO",
    "WaitDI",
]
