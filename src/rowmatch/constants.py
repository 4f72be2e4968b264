COLUMNS = 8
TILE_SIZE = 64
BOTTOM_MARGIN = 20

# Board maximum footprint relative to window (percentage of window width/height).
BOARD_MAX_WIDTH_PCT = 0.9
BOARD_MAX_HEIGHT_PCT = 0.6

# ============================================================================
# SCORING
# ============================================================================
MIN_MATCH_LENGTH = 3
SCORE_PER_TILE = 10


# ============================================================================
# TILE KINDS
# ============================================================================
# Kind name -> RGB used by the render host.
DEFAULT_TILE_KINDS = {
    'orange_ricky': (255, 149, 0),
    'blue_ricky': (10, 132, 255),
    'cleveland_z': (48, 209, 88),
    'rhode_island_z': (255, 69, 58),
}


# ============================================================================
# ANIMATION TIMING (seconds)
# ============================================================================
SWAP_PHASE_DURATION = 0.18
ELIMINATE_PHASE_DURATION = 0.22
REFILL_PHASE_DURATION = 0.26
# Single flat phase used when a mutation is not attributable to one swap.
FLAT_PHASE_DURATION = 0.25
TICK_RATE = 1 / 60


# ============================================================================
# ANIMATION SHAPE
# ============================================================================
# Eliminated tiles swell to the peak during the first fraction of the phase, then shrink.
ELIMINATE_PEAK_SCALE = 1.18
ELIMINATE_POP_FRACTION = 0.25
ELIMINATE_TO_SCALE = 0.2
# Inserted tiles grow from this scale up to 1.0.
INSERT_FROM_SCALE = 0.6


# ============================================================================
# ROUNDS & RECORDS
# ============================================================================
SCORE_ATTACK_MINUTES = (1, 2, 3)
SPEED_RUN_TARGETS = (300, 600, 900)
MAX_RECORDS_PER_SCOPE = 10
# Timed rounds count consecutive scoring swaps; the streak lapses after this many idle seconds.
COMBO_MAX = 99
COMBO_TIMEOUT = 1.6
