"""Cubic easing curves keyed by transition category."""
from __future__ import annotations

from typing import Callable, Dict

from rowmatch.components.transition import TransitionCategory

Easing = Callable[[float], float]


def clamp01(value: float) -> float:
    if value <= 0.0:
        return 0.0
    if value >= 1.0:
        return 1.0
    return value


def ease_in_cubic(t: float) -> float:
    return t * t * t


def ease_out_cubic(t: float) -> float:
    return 1.0 - (1.0 - t) ** 3


def ease_in_out_cubic(t: float) -> float:
    if t < 0.5:
        return 4.0 * t * t * t
    return 1.0 - ((-2.0 * t + 2.0) ** 3) / 2.0


EASING_BY_CATEGORY: Dict[TransitionCategory, Easing] = {
    TransitionCategory.MOVE: ease_in_out_cubic,
    TransitionCategory.INSERT: ease_out_cubic,
    TransitionCategory.ELIMINATE: ease_in_cubic,
}


def lerp(start: float, end: float, t: float) -> float:
    return start + (end - start) * t


def pop(start: float, peak: float, end: float, t: float, split: float) -> float:
    """Rise from ``start`` to ``peak`` over the first ``split`` of ``t``, then fall to ``end``."""
    if t < split:
        return lerp(start, peak, ease_out_cubic(t / split))
    return lerp(peak, end, ease_in_cubic((t - split) / (1.0 - split)))
