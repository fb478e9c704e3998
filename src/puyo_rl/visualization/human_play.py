from __future__ import annotations

import argparse
import logging
from typing import Dict, List, Optional, Set, Tuple

import pygame

from puyo_rl.game import Action, GameConfig, GameEngine
from .renderer import Renderer


logger = logging.getLogger(__name__)

# Keyboard auto-repeat stays off (pygame default), so KEYDOWN is edge-triggered.
KEY_TO_ACTION: Dict[int, Action] = {
    pygame.K_LEFT: Action.MOVE_LEFT,
    pygame.K_RIGHT: Action.MOVE_RIGHT,
    pygame.K_z: Action.ROTATE_CCW,
    pygame.K_x: Action.ROTATE_CW,
    pygame.K_q: Action.SPEED_DOWN,
    pygame.K_e: Action.SPEED_UP,
    pygame.K_DOWN: Action.SOFT_DROP_ON,
}

KEYUP_TO_ACTION: Dict[int, Action] = {
    pygame.K_DOWN: Action.SOFT_DROP_OFF,
}

# Standard gamepad layout: A, B, LT, RT.
BUTTON_TO_ACTION: Dict[int, Action] = {
    0: Action.ROTATE_CCW,
    1: Action.ROTATE_CW,
    6: Action.SPEED_DOWN,
    7: Action.SPEED_UP,
}

# D-pad buttons, for pads that report the cross as buttons instead of a hat.
DPAD_BUTTONS: Dict[int, str] = {13: "down", 14: "left", 15: "right"}

_DIRECTION_PRESS = {"left": Action.MOVE_LEFT, "right": Action.MOVE_RIGHT, "down": Action.SOFT_DROP_ON}
_DIRECTION_RELEASE = {"down": Action.SOFT_DROP_OFF}


class GamepadState:
    """Turns gamepad buttons, hats and analog sticks into edge events.

    A direction counts as held while any of its sources (stick, hat or
    d-pad button) holds it; actions fire only when that changes.
    """

    def __init__(self, threshold: float = 0.5) -> None:
        self.threshold = threshold
        self._held: Dict[Tuple[int, str], Set[str]] = {}

    def _set(self, joy: int, direction: str, source: str, pressed: bool) -> List[Action]:
        sources = self._held.setdefault((joy, direction), set())
        was_held = bool(sources)
        if pressed:
            sources.add(source)
        else:
            sources.discard(source)
        if sources and not was_held:
            return [_DIRECTION_PRESS[direction]]
        if was_held and not sources and direction in _DIRECTION_RELEASE:
            return [_DIRECTION_RELEASE[direction]]
        return []

    def translate(self, event: pygame.event.Event) -> List[Action]:
        joy = getattr(event, "instance_id", getattr(event, "joy", 0))
        if event.type in (pygame.JOYBUTTONDOWN, pygame.JOYBUTTONUP):
            pressed = event.type == pygame.JOYBUTTONDOWN
            if event.button in DPAD_BUTTONS:
                return self._set(joy, DPAD_BUTTONS[event.button], "button", pressed)
            action = BUTTON_TO_ACTION.get(event.button)
            return [action] if pressed and action is not None else []
        if event.type == pygame.JOYHATMOTION:
            x, y = event.value
            actions = self._set(joy, "left", "hat", x < 0)
            actions += self._set(joy, "right", "hat", x > 0)
            actions += self._set(joy, "down", "hat", y < 0)
            return actions
        if event.type == pygame.JOYAXISMOTION:
            if event.axis == 0:
                return self._set(joy, "left", "axis", event.value < -self.threshold) + self._set(
                    joy, "right", "axis", event.value > self.threshold
                )
            if event.axis == 1:
                return self._set(joy, "down", "axis", event.value > self.threshold)
        return []


def translate_event(event: pygame.event.Event, pad: GamepadState) -> List[Action]:
    if event.type == pygame.KEYDOWN:
        action = KEY_TO_ACTION.get(event.key)
        return [action] if action is not None else []
    if event.type == pygame.KEYUP:
        action = KEYUP_TO_ACTION.get(event.key)
        return [action] if action is not None else []
    return pad.translate(event)


def run(config: Optional[GameConfig] = None, fps: int = 60, cell_size: int = 40) -> None:
    pygame.init()
    try:
        pygame.joystick.init()
        config = config or GameConfig()
        game = GameEngine(config)
        renderer = Renderer(
            config.rows,
            config.cols,
            cell_size=cell_size,
            warning_rows=config.rows - 12,
            lock_threshold=config.lock_threshold,
        )
        screen = pygame.display.set_mode(renderer.window_size)
        pygame.display.set_caption("Puyo - Human Play")

        pads = {}
        for i in range(pygame.joystick.get_count()):
            pad = pygame.joystick.Joystick(i)
            pads[pad.get_instance_id()] = pad
        pad_state = GamepadState()

        clock = pygame.time.Clock()
        running = True
        while running:
            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    running = False
                elif event.type == pygame.KEYDOWN and event.key == pygame.K_ESCAPE:
                    running = False
                elif event.type == pygame.KEYDOWN and event.key == pygame.K_r and game.game_over:
                    game.reset()
                elif event.type == pygame.JOYDEVICEADDED:
                    pad = pygame.joystick.Joystick(event.device_index)
                    pads[pad.get_instance_id()] = pad
                    logger.info("gamepad connected: %s", pad.get_name())
                elif event.type == pygame.JOYDEVICEREMOVED:
                    pads.pop(event.instance_id, None)
                else:
                    for action in translate_event(event, pad_state):
                        game.handle(action)

            # Host clock drives the engine's timers.
            elapsed = clock.tick(fps)
            game.advance(elapsed)
            renderer.draw(screen, game.snapshot())
    finally:
        pygame.quit()


def setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Play the pair puzzle with keyboard or gamepad")
    p.add_argument("--speed", type=int, default=2, help="initial speed 0 (slowest) to 3 (fastest)")
    p.add_argument("--seed", type=int, default=None)
    p.add_argument("--fps", type=int, default=60)
    p.add_argument("--cell-size", type=int, default=40)
    p.add_argument("--reveal-ms", type=int, default=500, help="how long matched cells stay highlighted")
    p.add_argument("--clear-ms", type=int, default=500, help="pause between highlight and erase")
    p.add_argument("--verbose", action="store_true")
    return p


def main(argv: Optional[List[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)
    try:
        config = GameConfig(
            initial_speed=args.speed,
            random_seed=args.seed,
            reveal_pause_ms=args.reveal_ms,
            clear_pause_ms=args.clear_ms,
        )
    except ValueError as exc:
        raise SystemExit(f"invalid configuration: {exc}")
    run(config, fps=args.fps, cell_size=args.cell_size)


if __name__ == "__main__":  # pragma: no cover
    main()
