"""
Controller IO table.
"""

from dataclasses import dataclass, field
from typing import List

from robotcell.core.exceptions import IOIndexError
from robotcell.core.manufacturer import Manufacturer


@dataclass(frozen=True)
class IO:
    """
    Named digital and analog channels of a robot controller.

    Attributes:
        manufacturer: Controller family; decides the first valid controller index.
        use_controller_numbering: Emit raw indices instead of channel names.
        do: Digital output names.
        di: Digital input names.
        ao: Analog output names.
        ai: Analog input names.
    """

    manufacturer: Manufacturer = Manufacturer.OTHER
    use_controller_numbering: bool = False
    do: List[str] = field(default_factory=list)
    di: List[str] = field(default_factory=list)
    ao: List[str] = field(default_factory=list)
    ai: List[str] = field(default_factory=list)

    @property
    def start_index(self) -> int:
        if self.manufacturer in (Manufacturer.ABB, Manufacturer.KUKA):
            return 1
        return 0

    def check_bounds(self, index: int, channels: List[str]) -> None:
        """
        Validate an IO index against a channel list.

        Raises:
            IOIndexError: If the index cannot address a channel.
        """
        if self.use_controller_numbering:
            if index < self.start_index:
                raise IOIndexError(
                    "Index of IO is out of range.",
                    index=index,
                    details={"minimum": self.start_index},
                )
            return

        if index < 0 or index >= len(channels):
            raise IOIndexError(
                "Index of IO is out of range.",
                index=index,
                details={"available": len(channels)},
            )

    def channel_reference(self, index: int, channels: List[str]) -> str:
        """Raw index when using controller numbering, otherwise the channel name."""
        if self.use_controller_numbering:
            return str(index)
        return channels[index]
