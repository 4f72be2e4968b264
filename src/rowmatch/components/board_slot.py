from dataclasses import dataclass

@dataclass(slots=True)
class BoardSlot:
    """Column index of a tile entity on the single-row board."""
    index: int
