from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple


class TransitionCategory(str, Enum):
    MOVE = "move"
    ELIMINATE = "eliminate"
    INSERT = "insert"


@dataclass(frozen=True, slots=True)
class TransitionRecord:
    """How one tile travels during a single animation phase.

    Indices are fractional board columns and may lie off-board (negative or
    ``>= columns``) for tiles entering from the left.
    """

    id: int
    kind: str
    category: TransitionCategory
    from_index: float
    to_index: float
    from_alpha: float = 1.0
    to_alpha: float = 1.0
    from_scale: float = 1.0
    to_scale: float = 1.0
    # Scale reached part way through the phase before settling on ``to_scale``.
    peak_scale: Optional[float] = None

    @property
    def is_static(self) -> bool:
        return self.from_index == self.to_index


@dataclass(frozen=True, slots=True)
class Phase:
    records: Tuple[TransitionRecord, ...]
    duration: float

    def has_category(self, category: TransitionCategory) -> bool:
        return any(record.category is category for record in self.records)


@dataclass(frozen=True, slots=True)
class RenderState:
    """Per-tile draw instruction produced on every scheduler tick."""

    id: int
    kind: str
    position: float
    alpha: float
    scale: float
