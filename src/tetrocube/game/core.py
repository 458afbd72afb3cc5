from __future__ import annotations

import copy
import logging
import random
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, NamedTuple, Optional, Sequence, Tuple

import numpy as np

from .chain import ChainController, ChainReport
from .events import (
    EVENT_GAME_OVER,
    EVENT_LINES_CLEARED,
    EVENT_PIECE_SPAWNED,
    EVENT_PIECES_FUSED,
    EVENT_SCORE_CHANGED,
    EVENT_SETTLED,
    EventBus,
)
from .grid import GameGrid
from .lines import ClearResult
from .pieces import SPAWN_WEIGHTS, FragmentPiece, Piece, PieceKind, TemplatePiece, cell_count
from .placement import (
    can_move,
    can_place_any,
    check_step,
    legal_positions,
    move_piece,
    rotate_piece,
    rotation_target,
    shift_all,
)
from .rules import ScoreKeeper, ScoreOutcome, ScoringRules

logger = logging.getLogger(__name__)


# Tried in order when the queued piece fits nowhere
FALLBACK_KINDS: Tuple[PieceKind, ...] = (PieceKind.SINGLE, PieceKind.L2)


class CommandStatus(Enum):
    OK = "ok"
    BLOCKED = "blocked"
    BUSY = "busy"
    REJECTED = "rejected"
    GAME_OVER = "game_over"


@dataclass
class CommandResult:
    status: CommandStatus
    piece_id: Optional[int] = None
    report: Optional[ChainReport] = None

    @property
    def ok(self) -> bool:
        return self.status is CommandStatus.OK


class QueuedPiece(NamedTuple):
    kind: PieceKind
    rotation: int


@dataclass
class GameConfig:
    width: int = 7
    height: int = 7
    random_seed: Optional[int] = None
    preview_size: int = 2
    max_episode_steps: int = 1000
    spawn_weights: Optional[Dict[PieceKind, float]] = None


class TetroCubeGame:
    """Command/query facade over the board engine.

    Commands return a CommandResult and never raise for illegal moves. Every
    committed placement, move, rotation or confirm runs the chain reaction to
    a fixed point before returning.
    """

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        rules: Optional[ScoringRules] = None,
        bus: Optional[EventBus] = None,
    ) -> None:
        self.config = config or GameConfig()
        self.rules = rules or ScoringRules()
        self.bus = bus or EventBus()
        self.rng = random.Random(self.config.random_seed)
        self.grid = GameGrid(self.config.width, self.config.height)
        self.scorekeeper = ScoreKeeper(self.rules)
        self.chain = ChainController(self.grid, on_fused=self._on_fused, on_cleared=self._on_cleared)
        self.next_pieces: List[QueuedPiece] = []
        self.selected_id: Optional[int] = None
        self.pending_id: Optional[int] = None
        self.game_over = False
        self.game_over_reason: Optional[str] = None
        self.reset()

    def reset(self, seed: Optional[int] = None) -> None:
        if seed is not None:
            self.rng.seed(seed)
        self.grid.reset()
        self.scorekeeper.reset()
        self.next_pieces = []
        self._fill_queue()
        self.selected_id = None
        self.pending_id = None
        self.game_over = False
        self.game_over_reason = None

    # ---------- Queue ----------
    def _random_kind(self) -> PieceKind:
        weights = self.config.spawn_weights or SPAWN_WEIGHTS
        kinds = list(weights)
        return self.rng.choices(kinds, weights=[weights[k] for k in kinds])[0]

    def _fill_queue(self) -> None:
        while len(self.next_pieces) < max(1, self.config.preview_size):
            self.next_pieces.append(QueuedPiece(self._random_kind(), self.rng.randrange(4)))

    def _pop_queue(self) -> QueuedPiece:
        queued = self.next_pieces.pop(0)
        self._fill_queue()
        return queued

    # ---------- Commands ----------
    def _check_ready(self) -> Optional[CommandResult]:
        if self.game_over:
            return CommandResult(CommandStatus.GAME_OVER)
        if self.chain.busy:
            return CommandResult(CommandStatus.BUSY)
        return None

    def request_placement(self, kind: Optional[PieceKind], rotation: int, x: int, y: int) -> CommandResult:
        """Place a template piece at (x, y). ``kind=None`` takes the queued piece."""
        refused = self._check_ready()
        if refused is not None:
            return refused
        if self.pending_id is not None and self.pending_id in self.grid.pieces:
            return CommandResult(CommandStatus.REJECTED, self.pending_id)
        from_queue = kind is None
        if from_queue:
            kind = self.next_pieces[0].kind
        piece = TemplatePiece(id=0, kind=PieceKind(kind), x=x, y=y, rotation=rotation)
        if not self.grid.can_place(piece, x, y):
            return CommandResult(CommandStatus.BLOCKED)
        piece.id = self.grid.next_id()
        self.grid.add(piece)
        if from_queue:
            self._pop_queue()
        self.selected_id = piece.id
        logger.debug("Placed %s(%d) r=%d at (%d, %d)", piece.kind.name, piece.id, piece.rotation, x, y)
        report = self._run_chain()
        return self._finish(piece.id, report)

    def request_new_piece(self) -> CommandResult:
        """Spawn the queued piece at a random legal spot and hold it pending."""
        refused = self._check_ready()
        if refused is not None:
            return refused
        if self.pending_id is not None and self.pending_id in self.grid.pieces:
            return CommandResult(CommandStatus.REJECTED, self.pending_id)
        if not can_place_any(self.grid):
            self._end_game("no legal placement")
            return CommandResult(CommandStatus.GAME_OVER)

        queued = self._pop_queue()
        candidates = [queued] + [QueuedPiece(queued.kind, (queued.rotation + k) % 4) for k in range(1, 4)]
        candidates += [QueuedPiece(kind, r) for kind in FALLBACK_KINDS for r in range(4)]
        for candidate in candidates:
            positions = legal_positions(self.grid, candidate.kind, candidate.rotation)
            if positions:
                break
        else:
            self._end_game("no legal placement")
            return CommandResult(CommandStatus.GAME_OVER)

        x, y = self.rng.choice(positions)
        piece = TemplatePiece(
            id=self.grid.next_id(), kind=candidate.kind, x=x, y=y, rotation=candidate.rotation
        )
        self.grid.add(piece)
        self.pending_id = piece.id
        self.selected_id = piece.id
        logger.debug("Spawned %s(%d) r=%d at (%d, %d)", piece.kind.name, piece.id, piece.rotation, x, y)
        self.bus.emit(EVENT_PIECE_SPAWNED, piece=copy.copy(piece))
        return CommandResult(CommandStatus.OK, piece.id)

    def request_confirm(self) -> CommandResult:
        refused = self._check_ready()
        if refused is not None:
            return refused
        if self.pending_id is None:
            return CommandResult(CommandStatus.REJECTED)
        piece_id = self.pending_id
        self.pending_id = None
        self.selected_id = None
        report = self._run_chain()
        return self._finish(piece_id, report)

    def request_move(self, dx: int, dy: int) -> CommandResult:
        """Move the selected piece one cell, or every piece if none is selected."""
        check_step(dx, dy)
        refused = self._check_ready()
        if refused is not None:
            return refused
        piece = self.selected_piece()
        piece_id = piece.id if piece is not None else None
        if piece is None:
            legal = any(can_move(self.grid, p, dx, dy) for p in self.grid.pieces.values())
        else:
            legal = can_move(self.grid, piece, dx, dy)
        if not legal:
            return CommandResult(CommandStatus.BLOCKED, piece_id)
        if self._unaffordable(self.rules.move_cost, "movement"):
            return CommandResult(CommandStatus.GAME_OVER, piece_id)
        if piece is None:
            shift_all(self.grid, dx, dy)
        else:
            move_piece(self.grid, piece, dx, dy)
        self._charge(-self.rules.move_cost, "movement")
        report = self._run_chain()
        return self._finish(piece_id, report)

    def request_rotate(self) -> CommandResult:
        refused = self._check_ready()
        if refused is not None:
            return refused
        piece = self.selected_piece()
        if piece is None or isinstance(piece, FragmentPiece):
            return CommandResult(CommandStatus.REJECTED, piece.id if piece is not None else None)
        if rotation_target(self.grid, piece) is None:
            return CommandResult(CommandStatus.BLOCKED, piece.id)
        if self._unaffordable(self.rules.rotate_cost, "rotation"):
            return CommandResult(CommandStatus.GAME_OVER, piece.id)
        rotate_piece(self.grid, piece)
        self._charge(-self.rules.rotate_cost, "rotation")
        report = self._run_chain()
        return self._finish(piece.id, report)

    def select_piece(self, piece_id: int) -> CommandResult:
        refused = self._check_ready()
        if refused is not None:
            return refused
        if self.grid.get(piece_id) is None:
            return CommandResult(CommandStatus.REJECTED)
        self.selected_id = int(piece_id)
        return CommandResult(CommandStatus.OK, self.selected_id)

    def select_at(self, row: int, col: int) -> CommandResult:
        piece = self.grid.piece_at(row, col)
        if piece is None:
            self.deselect()
            return CommandResult(CommandStatus.REJECTED)
        return self.select_piece(piece.id)

    def deselect(self) -> None:
        self.selected_id = None

    # ---------- Chain plumbing ----------
    def _run_chain(self) -> ChainReport:
        report = self.chain.run()
        if self.selected_id is not None and self.selected_id not in self.grid.pieces:
            self.selected_id = None
        if self.pending_id is not None and self.pending_id not in self.grid.pieces:
            self.pending_id = None
        self.bus.emit(EVENT_SETTLED, report=report)
        if self.scorekeeper.settle():
            self._end_game("score exhausted")
        elif not self.game_over and not can_place_any(self.grid):
            self._end_game("no legal placement")
        return report

    def _finish(self, piece_id: Optional[int], report: ChainReport) -> CommandResult:
        status = CommandStatus.GAME_OVER if self.game_over else CommandStatus.OK
        return CommandResult(status, piece_id, report)

    def _charge(self, delta: int, reason: str) -> ScoreOutcome:
        applied, outcome = self.scorekeeper.apply(delta)
        if applied:
            self.bus.emit(EVENT_SCORE_CHANGED, delta=applied, reason=reason, score=self.scorekeeper.score)
        if outcome is ScoreOutcome.EXHAUSTED:
            self._end_game(f"insufficient score for {reason}")
        return outcome

    def _unaffordable(self, cost: int, reason: str) -> bool:
        """Ends the game, without performing the action, when the score cannot cover it."""
        if self.scorekeeper.score >= cost:
            return False
        self._charge(-cost, reason)
        return True

    def _on_fused(self, group: Sequence[Piece], fragment: FragmentPiece) -> None:
        self.bus.emit(EVENT_PIECES_FUSED, group=list(group), fragment=fragment)
        absorbed = sum(cell_count(piece) for piece in group)
        self._charge(absorbed * self.rules.fusion_reward_per_cell, "fusion")

    def _on_cleared(self, result: ClearResult) -> None:
        self.scorekeeper.add_lines(len(result.lines))
        self.bus.emit(EVENT_LINES_CLEARED, lines=list(result.lines), cells_cleared=result.cells_cleared)
        self._charge(result.cells_cleared * self.rules.clear_reward_per_cell, "line clear")

    def _end_game(self, reason: str) -> None:
        if self.game_over:
            return
        self.game_over = True
        self.game_over_reason = reason
        logger.info("Game over: %s (score %d)", reason, self.scorekeeper.score)
        self.bus.emit(EVENT_GAME_OVER, reason=reason)

    # ---------- Queries ----------
    def selected_piece(self) -> Optional[Piece]:
        if self.selected_id is None:
            return None
        return self.grid.get(self.selected_id)

    def get_grid_snapshot(self) -> np.ndarray:
        return self.grid.snapshot()

    def get_pieces(self) -> Tuple[Piece, ...]:
        return tuple(copy.copy(piece) for piece in self.grid.pieces.values())

    def get_next_pieces(self) -> Tuple[QueuedPiece, ...]:
        return tuple(self.next_pieces[: self.config.preview_size])

    @property
    def score(self) -> int:
        return self.scorekeeper.score

    def get_score(self) -> int:
        return self.scorekeeper.score

    def get_level(self) -> int:
        return self.scorekeeper.level

    def get_lines_cleared(self) -> int:
        return self.scorekeeper.lines_cleared

    def is_busy(self) -> bool:
        return self.chain.busy

    def is_game_over(self) -> bool:
        return self.game_over

    def get_state(self) -> dict:
        return {
            "grid": self.grid.snapshot(),
            "colors": self.grid.color_map(),
            "score": self.scorekeeper.score,
            "level": self.scorekeeper.level,
            "lines_cleared": self.scorekeeper.lines_cleared,
            "pieces": len(self.grid.pieces),
            "next_pieces": [(int(q.kind), q.rotation) for q in self.get_next_pieces()],
            "selected_id": self.selected_id,
            "pending_id": self.pending_id,
            "busy": self.chain.busy,
            "game_over": self.game_over,
        }
