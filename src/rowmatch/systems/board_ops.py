from __future__ import annotations

import random
from typing import List, Sequence, Set

from esper import World

from rowmatch.components.board_slot import BoardSlot
from rowmatch.components.tile import Tile, TileKind, Snapshot
from rowmatch.components.tile_kinds import TileKinds
from rowmatch.constants import MIN_MATCH_LENGTH


def get_tile_registry(world: World) -> TileKinds:
    for _, registry in world.get_component(TileKinds):
        return registry
    raise RuntimeError("TileKinds definitions not found")


def world_random(world: World) -> random.Random:
    rng = getattr(world, "random", None)
    if rng is None:
        rng = random.Random()
        setattr(world, "random", rng)
    return rng


def draw_kind(world: World) -> str:
    choices = get_tile_registry(world).spawnable_kinds()
    return world_random(world).choice(choices)


def spawn_tile(world: World, index: int) -> int:
    """Create a tile entity with a freshly drawn kind at ``index``."""
    return world.create_entity(TileKind(kind=draw_kind(world)), BoardSlot(index=index))


def board_entities(world: World) -> List[int]:
    """Tile entities ordered by slot index."""
    entries = sorted(world.get_component(BoardSlot), key=lambda item: item[1].index)
    return [entity for entity, _ in entries]


def assign_slots(world: World, entities: Sequence[int]) -> None:
    for index, entity in enumerate(entities):
        world.component_for_entity(entity, BoardSlot).index = index


def kinds_of(world: World, entities: Sequence[int]) -> List[str]:
    return [world.component_for_entity(entity, TileKind).kind for entity in entities]


def board_snapshot(world: World) -> Snapshot:
    entities = board_entities(world)
    return tuple(
        Tile(id=entity, kind=kind) for entity, kind in zip(entities, kinds_of(world, entities))
    )


def find_runs(kinds: Sequence[str], min_length: int = MIN_MATCH_LENGTH) -> List[List[int]]:
    """Detect maximal runs of equal kinds whose length is at least ``min_length``."""
    runs: List[List[int]] = []
    index = 0
    while index < len(kinds):
        current = kinds[index]
        end = index + 1
        while end < len(kinds) and kinds[end] == current:
            end += 1
        if end - index >= min_length:
            runs.append(list(range(index, end)))
        index = end
    return runs


def find_matches(kinds: Sequence[str], min_length: int = MIN_MATCH_LENGTH) -> Set[int]:
    """Return every position belonging to a run of ``min_length`` or more."""
    return {pos for run in find_runs(kinds, min_length) for pos in run}
