from dataclasses import dataclass, field
from typing import Dict, List, Tuple

RGB = Tuple[int, int, int]


@dataclass(slots=True)
class TileKinds:
    """Singleton registry of kind name -> colour plus the kinds refill may draw.

    Exactly one entity in the world carries this component.
    """
    kinds: Dict[str, RGB]
    spawnable: List[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.kinds:
            raise ValueError("at least one tile kind is required")
        known = [name for name in dict.fromkeys(self.spawnable) if name in self.kinds]
        self.spawnable = known or list(self.kinds)

    def color_for(self, kind: str) -> RGB:
        return self.kinds[kind]

    def spawnable_kinds(self) -> List[str]:
        return list(self.spawnable)
