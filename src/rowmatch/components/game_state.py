"""Round state resource describing the active mode and its timing."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Set


class GameMode(Enum):
    """Round rules the controller enforces."""
    FREE = "free"
    SCORE_ATTACK = "score_attack"
    SPEED_RUN = "speed_run"


@dataclass(slots=True)
class GameState:
    """Singleton component storing the current mode and round progress."""
    mode: GameMode = GameMode.FREE
    duration: Optional[float] = None
    target_score: Optional[int] = None
    round_start: float = 0.0
    stopped_elapsed: float = 0.0
    is_running: bool = True
    is_finished: bool = False
    selected_index: Optional[int] = None
    locked_indices: Set[int] = field(default_factory=set)
    combo_streak: int = 0
    last_observed_score: int = 0
    last_score_gain: Optional[float] = None


@dataclass(frozen=True, slots=True)
class RoundSnapshot:
    """Read-only view of round progress handed to HUD code."""
    mode: GameMode
    score: int
    elapsed: float
    remaining: Optional[float]
    target_score: Optional[int]
    is_running: bool
    is_finished: bool
    combo: int = 0
