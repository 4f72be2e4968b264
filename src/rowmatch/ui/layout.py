from rowmatch.constants import TILE_SIZE, BOTTOM_MARGIN, BOARD_MAX_WIDTH_PCT, BOARD_MAX_HEIGHT_PCT

def compute_board_geometry(window_width: int, window_height: int, columns: int):
    """Return (tile_size, start_x, start_y) for a single row of ``columns`` tiles.

    Shared by the renderer and pointer mapping so both agree on where a column sits.
    """
    max_board_w = window_width * BOARD_MAX_WIDTH_PCT
    max_board_h = (window_height - BOTTOM_MARGIN) * BOARD_MAX_HEIGHT_PCT
    tile_size = int(min(max_board_w / max(1, columns), max_board_h, TILE_SIZE * 2))
    if tile_size < 20:
        tile_size = 20
    total_width = columns * tile_size
    start_x = (window_width - total_width) / 2
    start_y = (window_height - tile_size) / 2
    return tile_size, start_x, start_y


def index_at_point(x: float, y: float, window_width: int, window_height: int, columns: int) -> int | None:
    """Map a window point to a board column, or None when it misses the row."""
    tile_size, start_x, start_y = compute_board_geometry(window_width, window_height, columns)
    if not (start_y <= y < start_y + tile_size):
        return None
    col = int((x - start_x) // tile_size)
    if 0 <= col < columns:
        return col
    return None
