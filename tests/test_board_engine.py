import random

import pytest
from esper import World

from rowmatch.components.tile import Tile
from rowmatch.events.bus import (
    EventBus,
    EVENT_CASCADE_COMPLETE,
    EVENT_CASCADE_STEP,
    EVENT_MATCH_FOUND,
    EVENT_TILE_SWAP_INVALID,
)
from rowmatch.systems.board import BoardEngine, CascadeLimitExceeded
from rowmatch.systems.board_ops import find_matches, find_runs
from rowmatch.world import create_world
from tests.helpers import A, B, C, D, ScriptedRandom, build_engine, set_board_kinds


def kinds(snapshot):
    return [tile.kind for tile in snapshot]


def ids(snapshot):
    return [tile.id for tile in snapshot]


@pytest.mark.parametrize("columns", [3, 4, 6, 8, 12])
@pytest.mark.parametrize("seed", range(5))
def test_initial_board_has_no_matches(columns, seed):
    engine, _, _ = build_engine(columns, seed=seed)
    tiles = engine.tiles()
    assert len(tiles) == columns
    assert not find_matches(kinds(tiles)), 'Initial board should not contain any matches'
    assert engine.score() == 0


def test_initial_normalization_only_redraws_matched_positions():
    bus = EventBus()
    rng = ScriptedRandom(1)
    world = create_world(bus, rng=rng)
    rng.queue(A, A, A, B, C, D)
    rng.queue(B, C, A)  # redraws for positions 0, 1, 2
    engine = BoardEngine(world, bus, 6)
    tiles = engine.tiles()
    assert kinds(tiles) == [B, C, A, B, C, D]
    first = tiles[0].id
    assert ids(tiles) == list(range(first, first + 6))


def test_swap_scenario_clears_run_and_refills_from_left():
    engine, _, rng = build_engine(6)
    before_ids = set_board_kinds(engine, [A, B, B, C, B, D])
    rng.queue(C, D, C)

    assert engine.attempt_swap(3, 4) is True

    tiles = engine.tiles()
    assert engine.score() == 30
    assert kinds(tiles) == [C, D, C, A, C, D]
    assert ids(tiles)[3:] == [before_ids[0], before_ids[3], before_ids[5]]
    fresh = ids(tiles)[:3]
    assert len(set(fresh)) == 3
    assert not set(fresh) & set(before_ids)


@pytest.mark.parametrize("pair", [(0, 0), (0, 2), (-1, 0), (5, 6), (6, 5), (2, 7), (1.0, 2)])
def test_invalid_swap_arguments_are_pure_rejections(pair):
    engine, bus, _ = build_engine(6)
    set_board_kinds(engine, [A, B, B, C, B, D])
    reasons = []
    bus.subscribe(EVENT_TILE_SWAP_INVALID, lambda s, **k: reasons.append(k['reason']))
    before = engine.tiles()

    assert engine.attempt_swap(*pair) is False
    assert engine.tiles() == before
    assert engine.score() == 0
    assert reasons and reasons[0] != 'no_match'


def test_swap_without_match_is_reverted():
    engine, bus, _ = build_engine(6)
    set_board_kinds(engine, [A, B, C, D, A, B])
    reasons = []
    bus.subscribe(EVENT_TILE_SWAP_INVALID, lambda s, **k: reasons.append(k['reason']))
    before = engine.tiles()

    assert engine.attempt_swap(0, 1) is False
    assert engine.tiles() == before
    assert engine.score() == 0
    assert reasons == ['no_match']


def test_two_step_cascade_scores_every_round():
    engine, bus, rng = build_engine(6)
    set_board_kinds(engine, [A, B, B, C, B, D])
    steps = []
    complete = {}
    bus.subscribe(EVENT_CASCADE_STEP, lambda s, **k: steps.append((k['depth'], k['score_delta'])))
    bus.subscribe(EVENT_CASCADE_COMPLETE, lambda s, **k: complete.update(k))
    # First refill lines up A, A with the surviving A; second refill settles.
    rng.queue(D, A, A)
    rng.queue(B, C, B)

    assert engine.attempt_swap(3, 4)

    assert steps == [(1, 30), (2, 30)]
    assert complete == {'depth': 2, 'score_delta': 60, 'score': 60}
    assert engine.score() == 60
    assert kinds(engine.tiles()) == [B, C, B, D, C, D]


def test_longer_run_counts_as_one_match_event():
    engine, bus, rng = build_engine(7)
    set_board_kinds(engine, [A, B, B, C, B, D, A])
    sizes = []
    bus.subscribe(EVENT_MATCH_FOUND, lambda s, **k: sizes.append(k['size']))
    rng.queue(A, A, A)
    rng.queue(B, C, B, D)

    assert engine.attempt_swap(3, 4)

    assert sizes == [3, 4]
    assert engine.score() == 70
    assert len(engine.tiles()) == 7


@pytest.mark.parametrize("seed", range(10))
def test_random_play_keeps_invariants_and_score_accounting(seed):
    engine, bus, _ = build_engine(8, seed=seed)
    matched = []
    bus.subscribe(EVENT_MATCH_FOUND, lambda s, **k: matched.append(k['size']))
    driver = random.Random(seed)
    for _ in range(60):
        i = driver.randrange(0, 7)
        before_score = engine.score()
        matched.clear()
        accepted = engine.attempt_swap(i, i + 1)
        tiles = engine.tiles()
        assert len(tiles) == 8
        assert len({tile.id for tile in tiles}) == 8
        assert not find_matches(kinds(tiles))
        if accepted:
            assert engine.score() - before_score == 10 * sum(matched)
        else:
            assert engine.score() == before_score


def test_cascade_cap_reports_overflow_without_losing_credited_score():
    engine, _, rng = build_engine(6, max_cascade_rounds=1)
    set_board_kinds(engine, [A, B, B, C, B, D])
    rng.queue(D, A, A)

    with pytest.raises(CascadeLimitExceeded) as excinfo:
        engine.attempt_swap(3, 4)

    assert excinfo.value.limit == 1
    assert engine.score() == 30
    assert len(engine.tiles()) == 6


def test_reset_deals_fresh_tiles_and_clears_score():
    engine, _, rng = build_engine(6)
    set_board_kinds(engine, [A, B, B, C, B, D])
    rng.queue(C, D, C)
    engine.attempt_swap(3, 4)
    old_ids = set(ids(engine.tiles()))

    engine.reset()

    tiles = engine.tiles()
    assert engine.score() == 0
    assert len(tiles) == 6
    assert not old_ids & set(ids(tiles))
    assert not find_matches(kinds(tiles))


def test_tiles_snapshot_is_immutable_copy():
    engine, _, _ = build_engine(5)
    snapshot = engine.tiles()
    assert isinstance(snapshot, tuple)
    assert all(isinstance(tile, Tile) for tile in snapshot)
    with pytest.raises(AttributeError):
        snapshot[0].kind = 'other'


def test_create_builds_its_own_world():
    engine = BoardEngine.create(5, rng=random.Random(3))
    assert engine.columns == 5
    assert len(engine.tiles()) == 5


def test_non_positive_columns_rejected():
    with pytest.raises(ValueError):
        build_engine(0)


def test_missing_kind_registry_is_reported():
    with pytest.raises(RuntimeError, match="TileKinds definitions not found"):
        BoardEngine(World(), EventBus(), 4)


def test_find_runs_reports_maximal_runs_only():
    assert find_runs([A, A, B, B, B, B, C, C, C]) == [[2, 3, 4, 5], [6, 7, 8]]
    assert find_runs([A, A, B, A, A]) == []
    assert find_matches([D, D, D, A, D, D, D]) == {0, 1, 2, 4, 5, 6}
