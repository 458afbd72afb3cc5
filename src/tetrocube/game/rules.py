from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Tuple


@dataclass
class ScoringRules:
    starting_score: int = 20
    move_cost: int = 1
    rotate_cost: int = 1
    clear_reward_per_cell: int = 1
    fusion_reward_per_cell: int = 1
    lines_per_level: int = 5


class ScoreOutcome(Enum):
    OK = "ok"
    ZERO = "zero"            # landed exactly on 0, game over pending
    EXHAUSTED = "exhausted"  # would have gone negative, clamped to 0


class ScoreKeeper:
    """Clamped score ledger with a pending game-over for an exact zero."""

    def __init__(self, rules: ScoringRules) -> None:
        self.rules = rules
        self.score = 0
        self.lines_cleared = 0
        self.pending_game_over = False
        self.reset()

    def reset(self) -> None:
        self.score = self.rules.starting_score
        self.lines_cleared = 0
        self.pending_game_over = False

    @property
    def level(self) -> int:
        return self.lines_cleared // max(1, self.rules.lines_per_level) + 1

    def apply(self, delta: int) -> Tuple[int, ScoreOutcome]:
        """Apply a delta, returning the change actually applied and its outcome."""
        new_score = self.score + delta
        if new_score < 0:
            applied = -self.score
            self.score = 0
            self.pending_game_over = False
            return applied, ScoreOutcome.EXHAUSTED
        self.score = new_score
        if new_score == 0:
            self.pending_game_over = True
            return delta, ScoreOutcome.ZERO
        self.pending_game_over = False
        return delta, ScoreOutcome.OK

    def settle(self) -> bool:
        """End of a chain reaction: True if a pending zero score was not rescued."""
        finalize = self.pending_game_over and self.score == 0
        self.pending_game_over = False
        return finalize

    def add_lines(self, count: int) -> None:
        self.lines_cleared += count
