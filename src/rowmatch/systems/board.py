from __future__ import annotations

import logging
import random
from typing import List

from esper import World

from rowmatch.components.board import Board
from rowmatch.components.board_slot import BoardSlot
from rowmatch.components.tile import Snapshot, TileKind
from rowmatch.constants import COLUMNS, SCORE_PER_TILE
from rowmatch.events.bus import (
    EventBus,
    EVENT_BOARD_CHANGED,
    EVENT_CASCADE_COMPLETE,
    EVENT_CASCADE_STEP,
    EVENT_MATCH_FOUND,
    EVENT_REFILL_COMPLETED,
    EVENT_TILE_SWAP_INVALID,
    EVENT_TILE_SWAP_VALID,
)
from rowmatch.systems.board_ops import (
    assign_slots,
    board_entities,
    board_snapshot,
    draw_kind,
    find_matches,
    kinds_of,
    spawn_tile,
)

logger = logging.getLogger(__name__)


class CascadeLimitExceeded(RuntimeError):
    """Raised when one resolution needs more rounds than ``max_cascade_rounds``."""

    def __init__(self, rounds: int, limit: int):
        super().__init__(f"Cascade resolution exceeded {limit} rounds (reached {rounds})")
        self.rounds = rounds
        self.limit = limit


class BoardEngine:
    """Owns the single-row tile sequence, the score and the cascade loop.

    Every tile is an entity carrying ``TileKind`` and ``BoardSlot``; the entity
    id doubles as the tile identity, so ids survive compaction and only brand
    new tiles receive new ids.
    """

    def __init__(
        self,
        world: World,
        event_bus: EventBus | None = None,
        columns: int = COLUMNS,
        *,
        max_cascade_rounds: int | None = None,
    ):
        if columns < 1:
            raise ValueError(f"columns must be positive, got {columns}")
        self.world = world
        self.event_bus = event_bus or EventBus()
        self.max_cascade_rounds = max_cascade_rounds
        self.board_entity = self.world.create_entity(Board(columns=columns))
        self._init_board()

    @classmethod
    def create(
        cls,
        columns: int = COLUMNS,
        *,
        rng: random.Random | None = None,
        event_bus: EventBus | None = None,
        max_cascade_rounds: int | None = None,
    ) -> "BoardEngine":
        from rowmatch.world import create_world

        bus = event_bus or EventBus()
        return cls(create_world(bus, rng=rng), bus, columns, max_cascade_rounds=max_cascade_rounds)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def board(self) -> Board:
        return self.world.component_for_entity(self.board_entity, Board)

    @property
    def columns(self) -> int:
        return self.board.columns

    def tiles(self) -> Snapshot:
        return board_snapshot(self.world)

    def score(self) -> int:
        return self.board.score

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def reset(self) -> None:
        """Discard every tile and score, then deal a fresh normalized board."""
        for entity in board_entities(self.world):
            self.world.delete_entity(entity, immediate=True)
        self.board.score = 0
        self._init_board()
        self.event_bus.emit(EVENT_BOARD_CHANGED, reason="reset")

    def attempt_swap(self, i: int, j: int) -> bool:
        reason = self._reject_reason(i, j)
        if reason is not None:
            self.event_bus.emit(EVENT_TILE_SWAP_INVALID, src=i, dst=j, reason=reason)
            return False

        entities = board_entities(self.world)
        self._swap_slots(entities[i], entities[j])
        entities[i], entities[j] = entities[j], entities[i]
        if not find_matches(kinds_of(self.world, entities)):
            self._swap_slots(entities[i], entities[j])
            self.event_bus.emit(EVENT_TILE_SWAP_INVALID, src=i, dst=j, reason="no_match")
            return False

        self.event_bus.emit(EVENT_TILE_SWAP_VALID, src=i, dst=j)
        self.resolve_cascade()
        self.event_bus.emit(EVENT_BOARD_CHANGED, reason="swap")
        return True

    def resolve_cascade(self) -> int:
        """Remove, compact and refill until no match remains; returns score gained."""
        board = self.board
        depth = 0
        gained = 0
        while True:
            entities = board_entities(self.world)
            matches = find_matches(kinds_of(self.world, entities))
            if not matches:
                break
            depth += 1
            if self.max_cascade_rounds is not None and depth > self.max_cascade_rounds:
                logger.error("cascade aborted after %d rounds", depth - 1)
                raise CascadeLimitExceeded(depth, self.max_cascade_rounds)
            positions = sorted(matches)
            delta = SCORE_PER_TILE * len(positions)
            board.score += delta
            gained += delta
            self.event_bus.emit(EVENT_MATCH_FOUND, positions=positions, size=len(positions), depth=depth)

            new_tiles = self._clear_and_refill(entities, matches)
            self.event_bus.emit(EVENT_REFILL_COMPLETED, new_tiles=new_tiles, depth=depth)
            self.event_bus.emit(EVENT_CASCADE_STEP, depth=depth, positions=positions, score_delta=delta)
            logger.debug("cascade round %d cleared %s (+%d)", depth, positions, delta)
        if depth:
            self.event_bus.emit(EVENT_CASCADE_COMPLETE, depth=depth, score_delta=gained, score=board.score)
        return gained

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _init_board(self) -> None:
        columns = self.columns
        entities = [spawn_tile(self.world, index) for index in range(columns)]
        # Spot-replace: only matched positions are redrawn, everything else stays put.
        matches = find_matches(kinds_of(self.world, entities))
        while matches:
            for index in matches:
                self.world.component_for_entity(entities[index], TileKind).kind = draw_kind(self.world)
            matches = find_matches(kinds_of(self.world, entities))

    def _reject_reason(self, i, j) -> str | None:
        if not isinstance(i, int) or not isinstance(j, int) or isinstance(i, bool) or isinstance(j, bool):
            return "out_of_range"
        if i == j:
            return "same_index"
        if abs(i - j) != 1:
            return "not_adjacent"
        columns = self.columns
        if not (0 <= i < columns and 0 <= j < columns):
            return "out_of_range"
        return None

    def _swap_slots(self, ent_a: int, ent_b: int) -> None:
        slot_a = self.world.component_for_entity(ent_a, BoardSlot)
        slot_b = self.world.component_for_entity(ent_b, BoardSlot)
        slot_a.index, slot_b.index = slot_b.index, slot_a.index

    def _clear_and_refill(self, entities: List[int], matches: set[int]) -> List[int]:
        survivors = [entity for index, entity in enumerate(entities) if index not in matches]
        for index in sorted(matches):
            self.world.delete_entity(entities[index], immediate=True)
        missing = self.columns - len(survivors)
        # Fresh tiles enter from the left; survivors keep their relative order.
        fresh = [spawn_tile(self.world, index) for index in range(missing)]
        assign_slots(self.world, fresh + survivors)
        return fresh
