from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Sequence, Tuple

from rowmatch.systems.board_ops import get_tile_registry
from rowmatch.ui.layout import compute_board_geometry

if TYPE_CHECKING:
    from rowmatch.components.transition import RenderState
    from rowmatch.systems.board_controller import BoardController


@dataclass(frozen=True, slots=True)
class TileDraw:
    """Screen-space rectangle for one tile this frame."""
    tile_id: int
    center_x: float
    center_y: float
    size: float
    color: Tuple[int, int, int, int]


class BoardRenderer:
    """Turns scheduler render states (or the resting board) into tile rectangles."""

    def __init__(self, controller: "BoardController", window, padding: int = 4):
        self.controller = controller
        self.window = window
        self._padding = padding
        self.last_draws: List[TileDraw] = []

    def layout(self, states: Sequence["RenderState"] | None = None) -> List[TileDraw]:
        controller = self.controller
        columns = controller.columns
        tile_size, start_x, start_y = compute_board_geometry(self.window.width, self.window.height, columns)
        registry = get_tile_registry(controller.world)
        if not states:
            states = resting_states(controller)
        draws: List[TileDraw] = []
        for state in states:
            if state.alpha <= 0.0:
                continue
            size = max(0.0, (tile_size - self._padding * 2) * state.scale)
            r, g, b = registry.color_for(state.kind)
            draws.append(
                TileDraw(
                    tile_id=state.id,
                    center_x=start_x + (state.position + 0.5) * tile_size,
                    center_y=start_y + tile_size / 2,
                    size=size,
                    color=(r, g, b, int(round(255 * min(1.0, state.alpha)))),
                )
            )
        return draws

    def process(self) -> None:
        # Local import keeps tests headless without creating a window.
        import arcade
        headless = False
        try:
            arcade.get_window()
        except Exception:
            headless = True
        self.last_draws = self.layout(self.controller.render_states)
        if headless:
            return
        columns = self.controller.columns
        tile_size, start_x, start_y = compute_board_geometry(self.window.width, self.window.height, columns)
        arcade.draw_lbwh_rectangle_outline(start_x, start_y, tile_size * columns, tile_size, arcade.color.GRAY, 2)
        selected = self.controller.selected_index()
        if selected is not None:
            arcade.draw_lbwh_rectangle_filled(start_x + selected * tile_size, start_y, tile_size, tile_size, (255, 255, 255, 40))
        for draw in self.last_draws:
            half = draw.size / 2
            arcade.draw_lrbt_rectangle_filled(
                draw.center_x - half,
                draw.center_x + half,
                draw.center_y - half,
                draw.center_y + half,
                draw.color,
            )


def resting_states(controller: "BoardController") -> List["RenderState"]:
    from rowmatch.components.transition import RenderState

    return [
        RenderState(id=tile.id, kind=tile.kind, position=float(index), alpha=1.0, scale=1.0)
        for index, tile in enumerate(controller.engine.tiles())
    ]
