from itertools import count
from typing import Callable, Dict, Tuple

from blinker import Signal


class EventBus:
    """Simple event bus leveraging blinker Signal objects.

    ``subscribe`` hands back a token; the owner of a handler is responsible for
    passing that token to ``unsubscribe`` on teardown.
    """
    def __init__(self):
        self._signals: Dict[str, Signal] = {}
        self._tokens: Dict[int, Tuple[str, Callable]] = {}
        self._next_token = count(1)

    def subscribe(self, name: str, fn) -> int:
        sig = self._signals.setdefault(name, Signal(name))
        # Use weak=False to retain strong reference to bound methods so systems not kept in a variable still receive events.
        sig.connect(fn, weak=False)
        token = next(self._next_token)
        self._tokens[token] = (name, fn)
        return token

    def unsubscribe(self, token: int) -> bool:
        entry = self._tokens.pop(token, None)
        if entry is None:
            return False
        name, fn = entry
        # The same callable may be registered under several tokens.
        if any(other == entry for other in self._tokens.values()):
            return True
        sig = self._signals.get(name)
        if sig is not None:
            sig.disconnect(fn)
        return True

    def emit(self, name: str, **payload):
        sig = self._signals.get(name)
        if sig:
            sig.send(self, **payload)


# ============================================================================
# SYSTEM & TIMING
# ============================================================================
EVENT_TICK = "tick"                                # payload: now=float|None


# ============================================================================
# INPUT & INTERACTION
# ============================================================================
EVENT_TILE_SELECTED = "tile_selected"              # payload: index=int
EVENT_TILE_DESELECTED = "tile_deselected"          # payload: index=int, reason=str
EVENT_TILE_LOCKED = "tile_locked"                  # payload: index=int
EVENT_TILE_UNLOCKED = "tile_unlocked"              # payload: index=int


# ============================================================================
# TILE & BOARD MECHANICS
# ============================================================================
EVENT_TILE_SWAP_VALID = "tile_swap_valid"          # payload: src=int, dst=int
EVENT_TILE_SWAP_INVALID = "tile_swap_invalid"      # payload: src=int, dst=int, reason=str
EVENT_MATCH_FOUND = "match_found"                  # payload: positions=[int,...], size=int, depth=int
EVENT_REFILL_COMPLETED = "refill_completed"        # payload: new_tiles=[tile_id,...], depth=int
EVENT_CASCADE_STEP = "cascade_step"                # payload: depth=int, positions=[int,...], score_delta=int
EVENT_CASCADE_COMPLETE = "cascade_complete"        # payload: depth=int, score_delta=int, score=int
EVENT_BOARD_CHANGED = "board_changed"              # payload: reason=str


# ============================================================================
# ANIMATION
# ============================================================================
EVENT_ANIMATION_START = "animation_start"          # payload: phases=int
EVENT_ANIMATION_PHASE = "animation_phase"          # payload: index=int, records=int, duration=float
EVENT_ANIMATION_COMPLETE = "animation_complete"    # payload: phases=int
EVENT_REACTION_CUE = "reaction_cue"                # payload: cue=str ('eliminate'|'refill'|'move')


# ============================================================================
# GAME FLOW & STATE
# ============================================================================
EVENT_GAME_MODE_CHANGED = "game_mode_changed"      # payload: previous_mode=GameMode|None, new_mode=GameMode
EVENT_ROUND_STARTED = "round_started"              # payload: mode=GameMode
EVENT_ROUND_FINISHED = "round_finished"            # payload: mode=GameMode, score=int, elapsed=float
EVENT_RECORD_ADDED = "record_added"                # payload: scope=str, record=ModeRecord
