import random

from esper import World
from .events.bus import EventBus
from rowmatch.components.game_state import GameState, GameMode
from rowmatch.components.tile_kinds import TileKinds
from rowmatch.constants import DEFAULT_TILE_KINDS


def create_world(
    event_bus: EventBus | None = None,
    initial_mode: GameMode = GameMode.FREE,
    *,
    kinds: dict[str, tuple[int, int, int]] | None = None,
    rng: random.Random | None = None,
) -> World:
    world = World()
    setattr(world, "random", rng or random.Random())

    # Register the global round state resource.
    world.create_entity(GameState(mode=initial_mode))

    # Single registry entity holding the kind palette.
    world.create_entity(TileKinds(kinds=dict(kinds or DEFAULT_TILE_KINDS)))
    return world
