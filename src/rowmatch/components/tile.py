from dataclasses import dataclass

@dataclass(slots=True)
class TileKind:
    """Per-tile kind assignment (no color data).

    Stores only the semantic kind name. Identity is the owning entity id.
    Colour lookup goes through the singleton TileKinds component.
    """
    kind: str


@dataclass(frozen=True, slots=True)
class Tile:
    """Immutable view of one tile, as carried by a board snapshot."""
    id: int
    kind: str


Snapshot = tuple[Tile, ...]
