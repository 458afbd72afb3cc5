from __future__ import annotations

import argparse
import logging
from typing import Dict, List, Tuple

import pygame

from tetrocube.game import GameConfig, TetroCubeGame
from tetrocube.game.events import (
    EVENT_GAME_OVER,
    EVENT_LINES_CLEARED,
    EVENT_PIECE_SPAWNED,
    EVENT_PIECES_FUSED,
    EVENT_SCORE_CHANGED,
)
from .renderer import Renderer


# (dx, dy) per arrow key
KEY_TO_STEP: Dict[int, Tuple[int, int]] = {
    pygame.K_LEFT: (-1, 0),
    pygame.K_RIGHT: (1, 0),
    pygame.K_UP: (0, -1),
    pygame.K_DOWN: (0, 1),
}


def _subscribe_printers(game: TetroCubeGame) -> None:
    game.bus.subscribe(EVENT_PIECE_SPAWNED, lambda _s, piece: print(f"Spawned {piece.kind.name} #{piece.id}"))
    game.bus.subscribe(
        EVENT_PIECES_FUSED,
        lambda _s, group, fragment: print(f"Fused {len(group)} pieces into #{fragment.id} ({len(fragment.cells)} cells)"),
    )
    game.bus.subscribe(
        EVENT_LINES_CLEARED,
        lambda _s, lines, cells_cleared: print(f"Cleared {len(lines)} line(s), {cells_cleared} cells"),
    )
    game.bus.subscribe(
        EVENT_SCORE_CHANGED,
        lambda _s, delta, reason, score: print(f"{delta:+d} ({reason}) -> {score}"),
    )
    game.bus.subscribe(EVENT_GAME_OVER, lambda _s, reason: print(f"Game over: {reason}"))


def _status_lines(game: TetroCubeGame) -> List[str]:
    lines = [
        f"Score: {game.get_score()}",
        f"Level: {game.get_level()}",
        f"Lines: {game.get_lines_cleared()}",
        "Next:",
    ]
    if game.is_game_over():
        lines[3:3] = ["GAME OVER", "N to restart"]
    return lines


def run(config: GameConfig) -> None:
    pygame.init()
    try:
        clock = pygame.time.Clock()
        game = TetroCubeGame(config)
        _subscribe_printers(game)
        cell_size = 48
        margin = 20
        renderer = Renderer(cell_size=cell_size, margin=margin)

        side_panel_w = 6 * cell_size
        width = margin * 3 + config.width * cell_size + side_panel_w
        height = margin * 2 + config.height * cell_size
        screen = pygame.display.set_mode((width, height))
        pygame.display.set_caption("TetroCube - Human Play")
        font = pygame.font.SysFont(None, 28)

        running = True
        while running:
            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    running = False
                elif event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
                    mx, my = event.pos
                    col = (mx - margin) // cell_size
                    row = (my - margin) // cell_size
                    game.select_at(row, col)
                elif event.type == pygame.KEYDOWN:
                    if event.key == pygame.K_q:
                        running = False
                    elif event.key == pygame.K_ESCAPE:
                        game.deselect()
                    elif event.key == pygame.K_n:
                        game.reset()
                    elif event.key == pygame.K_SPACE:
                        game.request_new_piece()
                    elif event.key == pygame.K_RETURN:
                        game.request_confirm()
                    elif event.key == pygame.K_r:
                        game.request_rotate()
                    elif event.key in KEY_TO_STEP:
                        game.request_move(*KEY_TO_STEP[event.key])

            selected = game.selected_piece()
            selected_cells = game.grid.cells_of(selected.id) if selected is not None else []
            renderer.draw(
                screen,
                game.grid.color_map(),
                selected=selected_cells,
                queue=game.get_next_pieces(),
                lines=_status_lines(game),
                font=font,
            )
            clock.tick(30)
    finally:
        pygame.quit()


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser()
    p.add_argument("--size", type=int, default=7, help="Board width and height")
    p.add_argument("--seed", type=int, default=None)
    p.add_argument("--verbose", action="store_true", help="Log engine debug output")
    return p


if __name__ == "__main__":  # pragma: no cover
    args = build_parser().parse_args()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)
    run(GameConfig(width=args.size, height=args.size, random_seed=args.seed))
