from __future__ import annotations

from typing import Optional, Sequence

import numpy as np
import pygame

from tetrocube.game import QueuedPiece
from tetrocube.game.pieces import KIND_COLORS, Cell, shape_for

from .palette import color_for_value


class Renderer:
    def __init__(self, cell_size: int = 48, margin: int = 20) -> None:
        self.cell_size = cell_size
        self.margin = margin

    def _grid_surface(self, colors: np.ndarray, selected: Sequence[Cell] = ()) -> pygame.Surface:
        h, w = colors.shape
        surf = pygame.Surface((w * self.cell_size, h * self.cell_size))
        surf.fill((44, 38, 32))
        for y in range(h):
            for x in range(w):
                rect = pygame.Rect(
                    x * self.cell_size,
                    y * self.cell_size,
                    self.cell_size - 1,
                    self.cell_size - 1,
                )
                pygame.draw.rect(surf, color_for_value(int(colors[y, x])), rect)
        for row, col in selected:
            rect = pygame.Rect(col * self.cell_size, row * self.cell_size, self.cell_size - 1, self.cell_size - 1)
            pygame.draw.rect(surf, (255, 255, 255), rect, 3)
        return surf

    def _draw_preview(self, screen: pygame.Surface, queue: Sequence[QueuedPiece], x0: int, y0: int) -> None:
        small = self.cell_size // 2
        for idx, queued in enumerate(queue):
            shape = shape_for(queued.kind, queued.rotation)
            color = color_for_value(int(KIND_COLORS[queued.kind]))
            off_y = y0 + idx * (small * 5)
            for py in range(shape.shape[0]):
                for px in range(shape.shape[1]):
                    if shape[py, px]:
                        rect = pygame.Rect(x0 + px * small, off_y + py * small, small - 1, small - 1)
                        pygame.draw.rect(screen, color, rect)

    def draw(
        self,
        screen: pygame.Surface,
        colors: np.ndarray,
        selected: Sequence[Cell] = (),
        queue: Sequence[QueuedPiece] = (),
        lines: Optional[Sequence[str]] = None,
        font: Optional[pygame.font.Font] = None,
    ) -> None:
        screen.fill((18, 15, 12))
        screen.blit(self._grid_surface(colors, selected), (self.margin, self.margin))

        panel_x = self.margin * 2 + colors.shape[1] * self.cell_size
        text_y = self.margin
        if font is not None:
            for line in lines or ():
                screen.blit(font.render(line, True, (235, 230, 220)), (panel_x, text_y))
                text_y += font.get_linesize()
        self._draw_preview(screen, queue, panel_x, text_y + self.margin)
        pygame.display.flip()
