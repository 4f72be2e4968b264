from __future__ import annotations

import random
from typing import Sequence

from rowmatch.components.tile import TileKind
from rowmatch.events.bus import EventBus
from rowmatch.systems.board import BoardEngine
from rowmatch.systems.board_ops import board_entities
from rowmatch.world import create_world

# Short aliases for the four default kinds.
A = 'orange_ricky'
B = 'blue_ricky'
C = 'cleveland_z'
D = 'rhode_island_z'


class FakeClock:
    def __init__(self, value: float = 0.0) -> None:
        self.value = value

    def advance(self, amount: float) -> None:
        self.value += amount

    def __call__(self) -> float:
        return self.value


class ScriptedRandom(random.Random):
    """Random source whose ``choice`` replays a queued script before falling back to the seed."""

    def __init__(self, seed: int = 0) -> None:
        super().__init__(seed)
        self.script: list = []

    def queue(self, *values) -> None:
        self.script.extend(values)

    def choice(self, seq):
        if self.script:
            return self.script.pop(0)
        return super().choice(seq)


def build_engine(columns: int = 6, *, seed: int = 0, max_cascade_rounds: int | None = None):
    """Return (engine, bus, rng) on a fresh world seeded for repeatability."""
    bus = EventBus()
    rng = ScriptedRandom(seed)
    world = create_world(bus, rng=rng)
    engine = BoardEngine(world, bus, columns, max_cascade_rounds=max_cascade_rounds)
    return engine, bus, rng


def set_board_kinds(engine: BoardEngine, kinds: Sequence[str]) -> list[int]:
    """Overwrite tile kinds in place (ids untouched) and return ids in slot order."""
    entities = board_entities(engine.world)
    assert len(entities) == len(kinds)
    for entity, kind in zip(entities, kinds):
        engine.world.component_for_entity(entity, TileKind).kind = kind
    return entities
