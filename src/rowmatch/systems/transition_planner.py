"""Rebuild a swap -> eliminate -> refill story from two board snapshots.

The engine only exposes the board before and after a mutation, so the planner
correlates tiles purely by identity:

* shared ids survived (possibly relocated),
* removed ids were eliminated,
* inserted ids were created by refill and enter from off-board on the left.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from rowmatch.components.tile import Tile
from rowmatch.components.transition import Phase, TransitionCategory, TransitionRecord
from rowmatch.constants import (
    ELIMINATE_PEAK_SCALE,
    ELIMINATE_PHASE_DURATION,
    ELIMINATE_TO_SCALE,
    FLAT_PHASE_DURATION,
    INSERT_FROM_SCALE,
    REFILL_PHASE_DURATION,
    SWAP_PHASE_DURATION,
)

SwapPair = Tuple[int, int]


@dataclass(frozen=True, slots=True)
class Correlation:
    shared: frozenset
    removed: frozenset
    inserted: Tuple[Tile, ...]
    new_index: Dict[int, int]

    @property
    def inserted_count(self) -> int:
        return len(self.inserted)


def correlate(old: Sequence[Tile], new: Sequence[Tile]) -> Correlation:
    old_ids = {tile.id for tile in old}
    new_index = {tile.id: index for index, tile in enumerate(new)}
    inserted = tuple(tile for tile in new if tile.id not in old_ids)
    return Correlation(
        shared=frozenset(old_ids & new_index.keys()),
        removed=frozenset(old_ids - new_index.keys()),
        inserted=inserted,
        new_index=new_index,
    )


def _move(tile: Tile, src: float, dst: float) -> TransitionRecord:
    return TransitionRecord(tile.id, tile.kind, TransitionCategory.MOVE, src, dst)


def _eliminate(tile: Tile, index: float) -> TransitionRecord:
    return TransitionRecord(
        tile.id,
        tile.kind,
        TransitionCategory.ELIMINATE,
        index,
        index,
        from_alpha=1.0,
        to_alpha=0.0,
        from_scale=1.0,
        to_scale=ELIMINATE_TO_SCALE,
        peak_scale=ELIMINATE_PEAK_SCALE,
    )


def _insert(tile: Tile, final_index: int, inserted_count: int) -> TransitionRecord:
    return TransitionRecord(
        tile.id,
        tile.kind,
        TransitionCategory.INSERT,
        final_index - inserted_count,
        final_index,
        from_alpha=0.0,
        to_alpha=1.0,
        from_scale=INSERT_FROM_SCALE,
        to_scale=1.0,
    )


def _is_swap_pair(old: Sequence[Tile], swap_pair: Optional[SwapPair]) -> bool:
    if swap_pair is None:
        return False
    try:
        i, j = swap_pair
    except (TypeError, ValueError):
        return False
    if not isinstance(i, int) or not isinstance(j, int):
        return False
    return abs(i - j) == 1 and 0 <= i < len(old) and 0 <= j < len(old)


class TransitionPlanner:
    """Stateless planner; durations are the only configuration."""

    def __init__(
        self,
        *,
        swap_duration: float = SWAP_PHASE_DURATION,
        eliminate_duration: float = ELIMINATE_PHASE_DURATION,
        refill_duration: float = REFILL_PHASE_DURATION,
        flat_duration: float = FLAT_PHASE_DURATION,
    ):
        self.swap_duration = swap_duration
        self.eliminate_duration = eliminate_duration
        self.refill_duration = refill_duration
        self.flat_duration = flat_duration

    def plan(
        self,
        old: Sequence[Tile],
        new: Sequence[Tile],
        swap_pair: Optional[SwapPair] = None,
    ) -> List[Phase]:
        if [tile.id for tile in old] == [tile.id for tile in new]:
            return []
        corr = correlate(old, new)
        if _is_swap_pair(old, swap_pair):
            phases = self._three_act(old, new, swap_pair, corr)
        else:
            phases = [self._flat(old, corr)]
        return [phase for phase in phases if phase.records]

    def _three_act(
        self,
        old: Sequence[Tile],
        new: Sequence[Tile],
        swap_pair: SwapPair,
        corr: Correlation,
    ) -> List[Phase]:
        i, j = swap_pair
        post_swap = list(old)
        post_swap[i], post_swap[j] = post_swap[j], post_swap[i]
        post_index = {tile.id: index for index, tile in enumerate(post_swap)}

        swap_records = tuple(_move(tile, index, post_index[tile.id]) for index, tile in enumerate(old))

        eliminate_records = []
        if corr.removed:
            for index, tile in enumerate(post_swap):
                if tile.id in corr.removed:
                    eliminate_records.append(_eliminate(tile, index))
                else:
                    eliminate_records.append(_move(tile, index, index))

        refill_records = [
            _move(tile, post_index[tile.id], corr.new_index[tile.id])
            for tile in new
            if tile.id in corr.shared
        ]
        refill_records.extend(
            _insert(tile, corr.new_index[tile.id], corr.inserted_count) for tile in corr.inserted
        )

        return [
            Phase(swap_records, self.swap_duration),
            Phase(tuple(eliminate_records), self.eliminate_duration),
            Phase(tuple(refill_records), self.refill_duration),
        ]

    def _flat(self, old: Sequence[Tile], corr: Correlation) -> Phase:
        records: List[TransitionRecord] = []
        for index, tile in enumerate(old):
            if tile.id in corr.removed:
                records.append(_eliminate(tile, index))
            else:
                records.append(_move(tile, index, corr.new_index[tile.id]))
        records.extend(
            _insert(tile, corr.new_index[tile.id], corr.inserted_count) for tile in corr.inserted
        )
        return Phase(tuple(records), self.flat_duration)


def plan(
    old: Sequence[Tile],
    new: Sequence[Tile],
    swap_pair: Optional[SwapPair] = None,
) -> List[Phase]:
    """Module-level shortcut using default phase durations."""
    return TransitionPlanner().plan(old, new, swap_pair)
