import pytest

from rowmatch.components.tile import Tile
from rowmatch.components.transition import TransitionCategory
from rowmatch.constants import (
    ELIMINATE_PHASE_DURATION,
    FLAT_PHASE_DURATION,
    REFILL_PHASE_DURATION,
    SWAP_PHASE_DURATION,
)
from rowmatch.systems.transition_planner import TransitionPlanner, correlate, plan
from tests.helpers import A, B, C, D, build_engine, set_board_kinds

MOVE = TransitionCategory.MOVE
ELIMINATE = TransitionCategory.ELIMINATE
INSERT = TransitionCategory.INSERT

OLD = (Tile(0, A), Tile(1, B), Tile(2, B), Tile(3, C), Tile(4, B), Tile(5, D))
NEW = (Tile(6, C), Tile(7, D), Tile(8, C), Tile(0, A), Tile(3, C), Tile(5, D))


def by_id(phase):
    return {record.id: record for record in phase.records}


def test_correlation_splits_shared_removed_inserted():
    corr = correlate(OLD, NEW)
    assert corr.shared == {0, 3, 5}
    assert corr.removed == {1, 2, 4}
    assert [tile.id for tile in corr.inserted] == [6, 7, 8]
    assert corr.inserted_count == 3


def test_swap_scenario_produces_three_phases():
    phases = plan(OLD, NEW, (3, 4))

    assert [phase.duration for phase in phases] == [
        SWAP_PHASE_DURATION,
        ELIMINATE_PHASE_DURATION,
        REFILL_PHASE_DURATION,
    ]
    swap, eliminate, refill = phases

    swap_records = by_id(swap)
    assert set(swap_records) == {0, 1, 2, 3, 4, 5}
    assert all(record.category is MOVE for record in swap.records)
    assert (swap_records[3].from_index, swap_records[3].to_index) == (3, 4)
    assert (swap_records[4].from_index, swap_records[4].to_index) == (4, 3)
    for tile_id in (0, 1, 2, 5):
        assert swap_records[tile_id].from_index == swap_records[tile_id].to_index == tile_id
    assert all(record.from_alpha == record.to_alpha == 1.0 for record in swap.records)

    eliminate_records = by_id(eliminate)
    assert set(eliminate_records) == {0, 1, 2, 3, 4, 5}
    anchors = {tile_id: eliminate_records[tile_id].from_index for tile_id in (1, 2, 4)}
    assert anchors == {1: 1, 2: 2, 4: 3}
    for tile_id in (1, 2, 4):
        record = eliminate_records[tile_id]
        assert record.category is ELIMINATE
        assert record.to_index == record.from_index
        assert (record.from_alpha, record.to_alpha) == (1.0, 0.0)
        assert record.from_scale == 1.0
        assert record.peak_scale > 1.0 > record.to_scale
    statics = {tile_id: eliminate_records[tile_id] for tile_id in (0, 3, 5)}
    assert all(record.category is MOVE and record.is_static for record in statics.values())
    assert [statics[i].from_index for i in (0, 3, 5)] == [0, 4, 5]

    refill_records = by_id(refill)
    assert set(refill_records) == {0, 3, 5, 6, 7, 8}
    assert [(refill_records[i].from_index, refill_records[i].to_index) for i in (0, 3, 5)] == [(0, 3), (4, 4), (5, 5)]
    assert all(refill_records[i].category is MOVE for i in (0, 3, 5))
    inserts = [refill_records[i] for i in (6, 7, 8)]
    assert all(record.category is INSERT for record in inserts)
    assert [record.to_index for record in inserts] == [0, 1, 2]
    assert [record.from_index for record in inserts] == [-3, -2, -1]
    assert all((record.from_alpha, record.to_alpha) == (0.0, 1.0) for record in inserts)
    assert all(record.from_scale < record.to_scale == 1.0 for record in inserts)


@pytest.mark.parametrize("swap_pair", [None, (3, 4)])
def test_identical_snapshots_plan_nothing(swap_pair):
    assert plan(OLD, OLD, swap_pair) == []
    assert plan((), (), swap_pair) == []


def test_without_swap_pair_a_single_flat_phase_is_built():
    phases = plan(OLD, NEW)

    assert len(phases) == 1
    phase = phases[0]
    assert phase.duration == FLAT_PHASE_DURATION
    records = by_id(phase)
    assert [(records[i].from_index, records[i].to_index) for i in (0, 3, 5)] == [(0, 3), (3, 4), (5, 5)]
    assert {i: records[i].from_index for i in (1, 2, 4)} == {1: 1, 2: 2, 4: 4}
    assert all(records[i].category is ELIMINATE for i in (1, 2, 4))
    assert [records[i].from_index for i in (6, 7, 8)] == [-3, -2, -1]


def test_swap_without_removals_omits_eliminate_phase():
    swapped = (OLD[0], OLD[1], OLD[2], OLD[4], OLD[3], OLD[5])
    phases = plan(OLD, swapped, (3, 4))

    assert len(phases) == 2
    assert not any(phase.has_category(ELIMINATE) for phase in phases)
    assert all(record.is_static for record in phases[1].records)


@pytest.mark.parametrize("swap_pair", [(0, 5), (5, 6), (-1, 0), ("a", "b"), (1,)])
def test_unusable_swap_pair_falls_back_to_flat_phase(swap_pair):
    phases = plan(OLD, NEW, swap_pair)
    assert len(phases) == 1
    assert phases[0].duration == FLAT_PHASE_DURATION


def test_full_replacement_enters_every_tile_from_the_left():
    fresh = tuple(Tile(100 + i, A) for i in range(4))
    old = OLD[:4]
    phase = plan(old, fresh)[0]
    inserts = [record for record in phase.records if record.category is INSERT]
    eliminated = [record for record in phase.records if record.category is ELIMINATE]
    assert [record.from_index for record in inserts] == [-4, -3, -2, -1]
    assert len(eliminated) == 4


def test_durations_are_configurable():
    planner = TransitionPlanner(swap_duration=1.0, eliminate_duration=2.0, refill_duration=3.0)
    assert [phase.duration for phase in planner.plan(OLD, NEW, (3, 4))] == [1.0, 2.0, 3.0]


def test_plan_from_live_engine_lands_on_final_board():
    engine, _, rng = build_engine(6)
    set_board_kinds(engine, [A, B, B, C, B, D])
    rng.queue(D, A, A)
    rng.queue(B, C, B)
    before = engine.tiles()
    assert engine.attempt_swap(3, 4)
    after = engine.tiles()

    phases = plan(before, after, (3, 4))

    assert {record.id for record in phases[0].records} == {tile.id for tile in before}
    final = phases[-1]
    assert {record.id for record in final.records} == {tile.id for tile in after}
    landing = {record.id: record.to_index for record in final.records}
    assert landing == {tile.id: index for index, tile in enumerate(after)}
