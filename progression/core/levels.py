"""The seven-step proficiency scale shared by content, graph and assessment."""

from __future__ import annotations

import enum
from typing import List, Optional

from progression.core.exceptions import InvalidInputError


class ProficiencyLevel(str, enum.Enum):
    """Ordinal proficiency scale, from A0 (foundations) to C2.

    Comparisons follow the scale order, not the string order of the codes.
    """

    A0 = "A0"
    A1 = "A1"
    A2 = "A2"
    B1 = "B1"
    B2 = "B2"
    C1 = "C1"
    C2 = "C2"

    @classmethod
    def ordered(cls) -> List["ProficiencyLevel"]:
        return list(cls)

    @classmethod
    def lowest(cls) -> "ProficiencyLevel":
        return cls.A0

    @classmethod
    def highest(cls) -> "ProficiencyLevel":
        return cls.C2

    @classmethod
    def parse(cls, value: "str | ProficiencyLevel | None") -> "ProficiencyLevel":
        """Return the level matching *value* (case-insensitive)."""

        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            raise InvalidInputError("invalid_level")
        try:
            return cls(value.strip().upper())
        except ValueError as exc:
            raise InvalidInputError("invalid_level") from exc

    @property
    def rank(self) -> int:
        return _RANKS[self]

    @property
    def next_level(self) -> Optional["ProficiencyLevel"]:
        levels = self.ordered()
        index = self.rank + 1
        return levels[index] if index < len(levels) else None

    def at_or_below(self) -> List["ProficiencyLevel"]:
        """Levels from A0 up to and including this one."""
        return self.ordered()[: self.rank + 1]

    def __lt__(self, other):
        if isinstance(other, ProficiencyLevel):
            return self.rank < other.rank
        return NotImplemented

    def __le__(self, other):
        if isinstance(other, ProficiencyLevel):
            return self.rank <= other.rank
        return NotImplemented

    def __gt__(self, other):
        if isinstance(other, ProficiencyLevel):
            return self.rank > other.rank
        return NotImplemented

    def __ge__(self, other):
        if isinstance(other, ProficiencyLevel):
            return self.rank >= other.rank
        return NotImplemented


_RANKS = {level: index for index, level in enumerate(ProficiencyLevel)}


__all__ = ["ProficiencyLevel"]
