"""Round coordinator sitting between input, the board engine and the animation scheduler."""
from __future__ import annotations

from itertools import count
from time import monotonic
from typing import Callable, Dict, List, Optional

from esper import World

from rowmatch.components.game_state import GameMode, GameState, RoundSnapshot
from rowmatch.components.transition import RenderState
from rowmatch.constants import COLUMNS, COMBO_MAX, COMBO_TIMEOUT
from rowmatch.events.bus import (
    EVENT_GAME_MODE_CHANGED,
    EVENT_REACTION_CUE,
    EVENT_ROUND_FINISHED,
    EVENT_ROUND_STARTED,
    EVENT_TICK,
    EVENT_TILE_DESELECTED,
    EVENT_TILE_LOCKED,
    EVENT_TILE_SELECTED,
    EVENT_TILE_UNLOCKED,
    EventBus,
)
from rowmatch.systems.animation import AnimationScheduler
from rowmatch.systems.board import BoardEngine
from rowmatch.systems.mode_record_store import ModeRecordStore
from rowmatch.systems.transition_planner import TransitionPlanner
from rowmatch.utils.game_state import get_or_create_game_state

Observer = Callable[["BoardController"], None]
CueSink = Callable[[str], None]


class BoardController:
    """Owns round rules, selection, the per-index lock set and change observers.

    Collaborators (audio cue sink, record store, clock) are injected; nothing
    here runs on its own timer, the host calls ``tick``.
    """

    def __init__(
        self,
        world: World,
        event_bus: EventBus,
        *,
        columns: int = COLUMNS,
        engine: BoardEngine | None = None,
        planner: TransitionPlanner | None = None,
        scheduler: AnimationScheduler | None = None,
        cue_sink: CueSink | None = None,
        record_store: ModeRecordStore | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self.world = world
        self.event_bus = event_bus
        self._clock = clock or monotonic
        self.engine = engine or BoardEngine(world, event_bus, columns)
        self.planner = planner or TransitionPlanner()
        self.scheduler = scheduler or AnimationScheduler(event_bus, clock=self._clock)
        self.record_store = record_store
        self.render_states: List[RenderState] = []
        self._observers: Dict[int, Observer] = {}
        self._next_token = count(1)
        self._cue_sink = cue_sink
        self._cue_token = event_bus.subscribe(EVENT_REACTION_CUE, self._on_reaction_cue) if cue_sink else None
        self._tick_token = event_bus.subscribe(EVENT_TICK, self._on_tick)

        state = self._state()
        state.round_start = self._clock()
        state.is_running = state.mode is GameMode.FREE

    # ------------------------------------------------------------------
    # Observers
    # ------------------------------------------------------------------

    def subscribe(self, callback: Observer) -> int:
        token = next(self._next_token)
        self._observers[token] = callback
        return token

    def unsubscribe(self, token: int) -> None:
        self._observers.pop(token, None)

    def close(self) -> None:
        """Detach from the event bus; the host calls this on teardown."""
        if self._cue_token is not None:
            self.event_bus.unsubscribe(self._cue_token)
            self._cue_token = None
        if self._tick_token is not None:
            self.event_bus.unsubscribe(self._tick_token)
            self._tick_token = None
        self._observers.clear()

    # ------------------------------------------------------------------
    # Round flow
    # ------------------------------------------------------------------

    @property
    def columns(self) -> int:
        return self.engine.columns

    @property
    def mode(self) -> GameMode:
        return self._state().mode

    def configure(
        self,
        mode: GameMode,
        *,
        duration: float | None = None,
        target_score: int | None = None,
        now: float | None = None,
    ) -> None:
        if mode is GameMode.SCORE_ATTACK and (duration is None or duration <= 0):
            raise ValueError("score attack needs a positive duration")
        if mode is GameMode.SPEED_RUN and (target_score is None or target_score <= 0):
            raise ValueError("speed run needs a positive target score")
        current = self._now(now)
        state = self._state()
        previous = state.mode
        state.mode = mode
        state.duration = float(duration) if mode is GameMode.SCORE_ATTACK else None
        state.target_score = int(target_score) if mode is GameMode.SPEED_RUN else None
        self._reset_board(current)
        state.stopped_elapsed = 0.0
        state.is_running = mode is GameMode.FREE
        state.is_finished = False
        self.event_bus.emit(EVENT_GAME_MODE_CHANGED, previous_mode=previous, new_mode=mode)
        self._notify()

    def start_round(self, now: float | None = None) -> None:
        state = self._state()
        if state.mode is GameMode.FREE:
            return
        current = self._now(now)
        self._reset_board(current)
        state.stopped_elapsed = 0.0
        state.is_running = True
        state.is_finished = False
        self.event_bus.emit(EVENT_ROUND_STARTED, mode=state.mode)
        self._notify()

    def tick(self, now: float | None = None) -> List[RenderState]:
        current = self._now(now)
        self.render_states = self.scheduler.tick(current)
        state = self._state()
        if state.mode is not GameMode.FREE and state.is_running:
            self._update_finished_state(current)
            self._update_combo(current)
            self._notify()
        return self.render_states

    def snapshot(self, now: float | None = None) -> RoundSnapshot:
        current = self._now(now)
        self._update_finished_state(current)
        state = self._state()
        self._update_combo(current)
        if state.is_running:
            elapsed = max(0.0, current - state.round_start)
        else:
            elapsed = state.stopped_elapsed
        remaining = None
        if state.mode is GameMode.SCORE_ATTACK:
            if state.is_running or state.is_finished:
                remaining = max(0.0, state.duration - elapsed)
            else:
                remaining = state.duration
        return RoundSnapshot(
            mode=state.mode,
            score=self.engine.score(),
            elapsed=elapsed,
            remaining=remaining,
            target_score=state.target_score,
            is_running=True if state.mode is GameMode.FREE else state.is_running,
            is_finished=state.is_finished,
            combo=state.combo_streak,
        )

    # ------------------------------------------------------------------
    # Interaction
    # ------------------------------------------------------------------

    def can_interact(self, now: float | None = None) -> bool:
        self._update_finished_state(self._now(now))
        state = self._state()
        if state.mode is GameMode.FREE:
            return not state.is_finished
        return state.is_running and not state.is_finished

    def selected_index(self) -> Optional[int]:
        return self._state().selected_index

    def is_locked(self, index: int) -> bool:
        return index in self._state().locked_indices

    def lock(self, index: int) -> bool:
        state = self._state()
        if not self.can_interact() or index in state.locked_indices:
            return False
        state.locked_indices.add(index)
        self.event_bus.emit(EVENT_TILE_LOCKED, index=index)
        self._notify()
        return True

    def unlock(self, index: int) -> None:
        state = self._state()
        if index not in state.locked_indices:
            return
        state.locked_indices.discard(index)
        self.event_bus.emit(EVENT_TILE_UNLOCKED, index=index)
        self._notify()

    def handle_tap(self, index: int) -> None:
        if not self.can_interact() or not 0 <= index < self.columns:
            return
        state = self._state()
        selected = state.selected_index
        if selected is not None:
            if selected == index:
                state.selected_index = None
                self.event_bus.emit(EVENT_TILE_DESELECTED, index=index, reason="tap_again")
                self._notify()
                return
            if abs(selected - index) == 1:
                self.perform_swap(selected, index)
                return
        state.selected_index = index
        self.event_bus.emit(EVENT_TILE_SELECTED, index=index)
        self._notify()

    def perform_swap(self, i: int, j: int, now: float | None = None) -> bool:
        current = self._now(now)
        if not self.can_interact(current) or abs(i - j) != 1:
            return False
        state = self._state()
        if i in state.locked_indices or j in state.locked_indices:
            return False

        state.locked_indices.update((i, j))
        before = self.engine.tiles()
        try:
            accepted = self.engine.attempt_swap(i, j)
        finally:
            state.locked_indices.difference_update((i, j))
            state.selected_index = None
        after = self.engine.tiles()

        if accepted:
            self.scheduler.start(self.planner.plan(before, after, (i, j)), now=current)
        self._update_finished_state(current)
        self._update_combo(current)
        self._notify()
        return accepted

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _state(self) -> GameState:
        return get_or_create_game_state(self.world)

    def _now(self, now: float | None) -> float:
        return self._clock() if now is None else now

    def _reset_board(self, now: float) -> None:
        state = self._state()
        before = self.engine.tiles()
        self.engine.reset()
        # A fresh deal is not attributable to a swap: animate it as one flat phase.
        self.scheduler.start(self.planner.plan(before, self.engine.tiles()), now=now)
        state.locked_indices.clear()
        state.selected_index = None
        state.round_start = now
        self._reset_combo()

    def _update_finished_state(self, now: float) -> bool:
        state = self._state()
        previous = state.is_finished
        if state.mode is GameMode.FREE:
            state.is_finished = False
            return previous != state.is_finished
        if not state.is_running:
            return False

        elapsed = max(0.0, now - state.round_start)
        if state.mode is GameMode.SCORE_ATTACK:
            state.is_finished = elapsed >= state.duration
        else:
            state.is_finished = self.engine.score() >= state.target_score

        if state.is_finished:
            state.is_running = False
            state.stopped_elapsed = elapsed
            state.locked_indices.clear()
            state.selected_index = None
            self._record_finished_round(state, elapsed)
            self.event_bus.emit(EVENT_ROUND_FINISHED, mode=state.mode, score=self.engine.score(), elapsed=elapsed)
        return previous != state.is_finished

    def _update_combo(self, now: float) -> None:
        state = self._state()
        score = self.engine.score()
        if state.mode is GameMode.FREE or not (state.is_running or state.is_finished):
            self._reset_combo()
            return
        if state.is_finished:
            state.last_observed_score = score
            return
        if score > state.last_observed_score:
            state.combo_streak = min(state.combo_streak + 1, COMBO_MAX)
            state.last_score_gain = now
        elif score < state.last_observed_score:
            state.combo_streak = 0
            state.last_score_gain = None
        elif state.last_score_gain is not None and now - state.last_score_gain > COMBO_TIMEOUT:
            state.combo_streak = 0
        state.last_observed_score = score

    def _reset_combo(self) -> None:
        state = self._state()
        state.combo_streak = 0
        state.last_observed_score = self.engine.score()
        state.last_score_gain = None

    def _record_finished_round(self, state: GameState, elapsed: float) -> None:
        if self.record_store is None:
            return
        score = self.engine.score()
        if state.mode is GameMode.SCORE_ATTACK:
            minutes = max(1, int(round(state.duration / 60)))
            self.record_store.add_score_attack_record(score, elapsed, minutes)
        elif state.mode is GameMode.SPEED_RUN:
            self.record_store.add_speed_run_record(score, elapsed, state.target_score)

    def _notify(self) -> None:
        for callback in list(self._observers.values()):
            callback(self)

    def _on_reaction_cue(self, sender, **payload) -> None:
        cue = payload.get("cue")
        if cue and self._cue_sink is not None:
            self._cue_sink(cue)

    def _on_tick(self, sender, **payload) -> None:
        self.tick(payload.get("now"))
