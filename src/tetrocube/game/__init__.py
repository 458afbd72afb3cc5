"""Board simulation engine for TetroCube.

Exports the engine components:
- GameGrid: occupancy grid and the live pieces that own it
- TemplatePiece / FragmentPiece: catalog pieces and irregular fused fragments
- ChainController: merge -> clear fixed-point loop
- ScoringRules / ScoreKeeper: clamped scoring and game-over policy
- EventBus: blinker-backed event signals
- TetroCubeGame: command/query facade used by front-ends and environments
"""

from .chain import ChainController, ChainReport, ChainState
from .core import CommandResult, CommandStatus, GameConfig, QueuedPiece, TetroCubeGame
from .events import EventBus
from .grid import GameGrid
from .lines import LineAxis, LineDescriptor
from .pieces import FragmentPiece, Piece, PieceColor, PieceKind, TemplatePiece
from .repair import ValidationReport
from .rules import ScoreKeeper, ScoringRules

__all__ = [
    "ChainController",
    "ChainReport",
    "ChainState",
    "CommandResult",
    "CommandStatus",
    "EventBus",
    "FragmentPiece",
    "GameConfig",
    "GameGrid",
    "LineAxis",
    "LineDescriptor",
    "Piece",
    "PieceColor",
    "PieceKind",
    "QueuedPiece",
    "ScoreKeeper",
    "ScoringRules",
    "TemplatePiece",
    "TetroCubeGame",
    "ValidationReport",
]
