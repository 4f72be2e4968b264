"""Entry point for the rowmatch single-row match-three prototype.

Sets up ECS world, event bus, controller, and Arcade window.
"""
import logging
from time import monotonic

from arcade import Window, run, set_background_color, color, key

from rowmatch.world import create_world
from rowmatch.components.game_state import GameMode
from rowmatch.constants import COLUMNS, SCORE_ATTACK_MINUTES, SPEED_RUN_TARGETS, TICK_RATE
from rowmatch.events.bus import EventBus, EVENT_TICK
from rowmatch.rendering.board_renderer import BoardRenderer
from rowmatch.systems.board_controller import BoardController
from rowmatch.systems.mode_record_store import ModeRecordStore
from rowmatch.ui.layout import index_at_point

logger = logging.getLogger(__name__)


class RowmatchWindow(Window):
    def __init__(self):
        super().__init__(960, 320, "rowmatch")
        self.set_update_rate(TICK_RATE)
        self.event_bus = EventBus()
        self.world = create_world(self.event_bus)
        self.controller = BoardController(
            self.world,
            self.event_bus,
            columns=COLUMNS,
            cue_sink=self.play_cue,
            record_store=ModeRecordStore(event_bus=self.event_bus),
        )
        self.board_renderer = BoardRenderer(self.controller, self)
        self._minute_keys = dict(zip((key.KEY_1, key.KEY_2, key.KEY_3), SCORE_ATTACK_MINUTES))
        self._target_index = -1
        set_background_color(color.BLACK)

    def play_cue(self, cue: str) -> None:
        # Audio synthesis lives outside the core.
        logger.info("cue: %s", cue)

    def on_draw(self):
        self.clear()
        self.board_renderer.process()

    def on_update(self, delta_time: float):
        self.event_bus.emit(EVENT_TICK, now=monotonic())

    def on_mouse_press(self, x: float, y: float, button: int, modifiers: int):
        index = index_at_point(x, y, self.width, self.height, self.controller.columns)
        if index is not None:
            self.controller.handle_tap(index)

    def on_key_press(self, symbol: int, modifiers: int):
        # F: free play, 1-3: score attack presets, S: cycle speed run targets, SPACE: start round.
        if symbol == key.F:
            self.controller.configure(GameMode.FREE)
        elif symbol in self._minute_keys:
            minutes = self._minute_keys[symbol]
            self.controller.configure(GameMode.SCORE_ATTACK, duration=minutes * 60)
        elif symbol == key.S:
            self._target_index = (self._target_index + 1) % len(SPEED_RUN_TARGETS)
            self.controller.configure(GameMode.SPEED_RUN, target_score=SPEED_RUN_TARGETS[self._target_index])
        elif symbol == key.SPACE:
            self.controller.start_round()
        else:
            return
        logger.info("round: %s", self.controller.snapshot())

    def on_close(self):
        self.controller.close()
        super().on_close()


def main():
    logging.basicConfig(level=logging.INFO)
    RowmatchWindow()
    run()

if __name__ == "__main__":
    main()
