from __future__ import annotations

import logging
from time import monotonic
from typing import Callable, List, Optional, Sequence, Tuple

from rowmatch.components.transition import Phase, RenderState, TransitionCategory, TransitionRecord
from rowmatch.events.bus import (
    EventBus,
    EVENT_ANIMATION_COMPLETE,
    EVENT_ANIMATION_PHASE,
    EVENT_ANIMATION_START,
    EVENT_REACTION_CUE,
)
from rowmatch.constants import ELIMINATE_POP_FRACTION
from rowmatch.utils.easing import EASING_BY_CATEGORY, clamp01, lerp, pop

logger = logging.getLogger(__name__)

CUE_ELIMINATE = "eliminate"
CUE_REFILL = "refill"
CUE_MOVE = "move"


def reaction_cue(phase: Phase) -> Optional[str]:
    """Pick the single cue a phase announces at entry, or None."""
    if phase.has_category(TransitionCategory.ELIMINATE):
        return CUE_ELIMINATE
    if phase.has_category(TransitionCategory.INSERT):
        return CUE_REFILL
    if any(record.category is TransitionCategory.MOVE and not record.is_static for record in phase.records):
        return CUE_MOVE
    return None


def render_record(record: TransitionRecord, raw_progress: float) -> RenderState:
    t = EASING_BY_CATEGORY[record.category](raw_progress)
    if record.peak_scale is None:
        scale = lerp(record.from_scale, record.to_scale, t)
    else:
        scale = pop(record.from_scale, record.peak_scale, record.to_scale, raw_progress, ELIMINATE_POP_FRACTION)
    return RenderState(
        id=record.id,
        kind=record.kind,
        position=lerp(record.from_index, record.to_index, t),
        alpha=lerp(record.from_alpha, record.to_alpha, t),
        scale=scale,
    )


class AnimationScheduler:
    """Drives a plan phase by phase; polled by the host render loop.

    States are ``Idle`` (``phase_index is None``) and ``RunningPhase(n)``.
    Starting a new plan discards whatever was running.
    """

    def __init__(self, event_bus: EventBus | None = None, *, clock: Callable[[], float] | None = None):
        self.event_bus = event_bus or EventBus()
        self._clock = clock or monotonic
        self._phases: Tuple[Phase, ...] = ()
        self._phase_index: Optional[int] = None
        self._records: Tuple[TransitionRecord, ...] = ()
        self._phase_start = 0.0

    @property
    def phase_index(self) -> Optional[int]:
        return self._phase_index

    @property
    def current_phase(self) -> Optional[Phase]:
        if self._phase_index is None:
            return None
        return self._phases[self._phase_index]

    @property
    def state(self):
        """``"idle"`` or ``("running", phase_index)``."""
        if self._phase_index is None:
            return "idle"
        return ("running", self._phase_index)

    def is_active(self) -> bool:
        return self._phase_index is not None

    def start(self, phases: Sequence[Phase], now: float | None = None) -> None:
        was_active = self.is_active()
        self._reset()
        if was_active:
            logger.debug("animation replaced while running")
        if not phases:
            return
        self._phases = tuple(phases)
        self.event_bus.emit(EVENT_ANIMATION_START, phases=len(self._phases))
        self._enter_phase(0, self._now(now))

    def stop(self) -> None:
        self._reset()

    def tick(self, now: float | None = None) -> List[RenderState]:
        if self._phase_index is None:
            return []
        current = self._now(now)
        phase = self._phases[self._phase_index]
        if phase.duration <= 0:
            raw = 1.0
        else:
            raw = clamp01((current - self._phase_start) / phase.duration)
        states = [render_record(record, raw) for record in self._records]
        if raw >= 1.0:
            next_index = self._phase_index + 1
            if next_index < len(self._phases):
                self._enter_phase(next_index, current)
                # Report the new phase at its starting frame.
                states = [render_record(record, 0.0) for record in self._records]
            else:
                count = len(self._phases)
                self._reset()
                self.event_bus.emit(EVENT_ANIMATION_COMPLETE, phases=count)
        return states

    def _enter_phase(self, index: int, now: float) -> None:
        phase = self._phases[index]
        self._phase_index = index
        self._records = phase.records
        self._phase_start = now
        self.event_bus.emit(EVENT_ANIMATION_PHASE, index=index, records=len(phase.records), duration=phase.duration)
        cue = reaction_cue(phase)
        if cue is not None:
            self.event_bus.emit(EVENT_REACTION_CUE, cue=cue)

    def _reset(self) -> None:
        self._phases = ()
        self._phase_index = None
        self._records = ()
        self._phase_start = 0.0

    def _now(self, now: float | None) -> float:
        return self._clock() if now is None else now
