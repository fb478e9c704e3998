from __future__ import annotations

from typing import Tuple

import pygame

from puyo_rl.game import Snapshot


def _color_for_value(v: int) -> Tuple[int, int, int]:
    palette = {
        0: (34, 34, 34),
        1: (230, 60, 60),    # red
        2: (70, 200, 90),    # green
        3: (70, 110, 240),   # blue
        4: (240, 210, 60),   # yellow
    }
    return palette.get(int(v), (200, 200, 200))


class Renderer:
    """Draws snapshots: settled field, floating pair, highlights and a sidebar."""

    def __init__(self, rows: int, cols: int, cell_size: int = 40, margin: int = 20,
                 sidebar_width: int = 260, warning_rows: int = 2,
                 lock_threshold: int = 4) -> None:
        self.rows = rows
        self.cols = cols
        self.cell_size = cell_size
        self.margin = margin
        self.sidebar_width = sidebar_width
        self.warning_rows = warning_rows
        self.lock_threshold = lock_threshold
        self._font = None

    @property
    def window_size(self) -> Tuple[int, int]:
        width = self.margin * 3 + self.cols * self.cell_size + self.sidebar_width
        height = self.margin * 2 + self.rows * self.cell_size
        return width, height

    def _font_obj(self) -> pygame.font.Font:
        if self._font is None:
            self._font = pygame.font.SysFont(None, 26)
        return self._font

    def _draw_cell(self, surf: pygame.Surface, x: int, y: int, value: int) -> None:
        inset = 4
        rect = pygame.Rect(x + inset, y + inset, self.cell_size - 2 * inset, self.cell_size - 2 * inset)
        pygame.draw.ellipse(surf, _color_for_value(value), rect)

    def _field_surface(self, snapshot: Snapshot) -> pygame.Surface:
        size = self.cell_size
        surf = pygame.Surface((self.cols * size + 1, self.rows * size + 1))
        surf.fill(_color_for_value(0))
        for y in range(self.rows):
            for x in range(self.cols):
                v = int(snapshot.field[y, x])
                if v:
                    self._draw_cell(surf, x * size, y * size, v)
                if (y, x) in snapshot.highlight:
                    pygame.draw.rect(surf, (255, 255, 255), pygame.Rect(x * size, y * size, size, size), 3)

        # Floating pair, offset by half a cell when straddling rows.
        piece = snapshot.piece
        if piece is not None and snapshot.phase_name in ("falling", "lock_wait"):
            for half_y, col, color in piece.sub_cells():
                if 0 <= col < self.cols:
                    self._draw_cell(surf, col * size, half_y * size // 2, int(color))

        line_y = self.warning_rows * size
        pygame.draw.rect(surf, (144, 238, 144), pygame.Rect(0, line_y, self.cols * size + 1, 4))
        return surf

    def _sidebar_lines(self, snapshot: Snapshot):
        return [
            f"Phase: {snapshot.phase_name}",
            f"Pair #: {snapshot.pair_seq}",
            f"Lock: {snapshot.lock_counter} / {self.lock_threshold}",
            f"Speed: {snapshot.speed}" + (" (soft drop)" if snapshot.soft_drop else ""),
            f"Chain: {snapshot.chain_links}",
            "",
            "Move: Left/Right",
            "Rotate: Z / X",
            "Soft drop: Down",
            "Speed: Q / E",
            "Restart: R  Quit: Esc",
        ]

    def draw(self, screen: pygame.Surface, snapshot: Snapshot) -> None:
        screen.fill((10, 10, 14))
        screen.blit(self._field_surface(snapshot), (self.margin, self.margin))
        font = self._font_obj()
        x_text = self.margin * 2 + self.cols * self.cell_size
        for i, txt in enumerate(self._sidebar_lines(snapshot)):
            img = font.render(txt, True, (230, 230, 230))
            screen.blit(img, (x_text, self.margin + i * 24))
        if snapshot.phase_name == "game_over":
            over = font.render("GAME OVER", True, (255, 80, 80))
            screen.blit(over, (x_text, self.margin + 12 * 24))
        pygame.display.flip()
