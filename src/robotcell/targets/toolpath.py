"""
Toolpaths: ordered target sequences, one per mechanical group.
"""

from __future__ import annotations

from typing import Iterable, Iterator, List, Optional

from robotcell.targets.targets import Target


class SimpleToolpath:
    """
    Ordered list of targets.

    Args:
        targets: Initial targets.
    """

    def __init__(self, targets: Optional[Iterable[Target]] = None) -> None:
        self._targets: List[Target] = list(targets) if targets is not None else []

    def append(self, target: Target) -> None:
        self._targets.append(target)

    def extend(self, targets: Iterable[Target]) -> None:
        self._targets.extend(targets)

    def shallow_clone(self) -> SimpleToolpath:
        """New toolpath sharing the same (immutable) targets."""
        return SimpleToolpath(self._targets)

    @property
    def targets(self) -> List[Target]:
        return list(self._targets)

    def __iter__(self) -> Iterator[Target]:
        return iter(self._targets)

    def __len__(self) -> int:
        return len(self._targets)

    def __getitem__(self, index: int) -> Target:
        return self._targets[index]
