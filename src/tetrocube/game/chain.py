from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional, Sequence

from .fusion import find_merge_groups, fuse
from .grid import GameGrid
from .lines import ClearResult, LineDescriptor, clear_lines, find_complete_lines
from .pieces import FragmentPiece, Piece

logger = logging.getLogger(__name__)


FusedFn = Callable[[Sequence[Piece], FragmentPiece], None]
ClearedFn = Callable[[ClearResult], None]


class ChainState(Enum):
    IDLE = "idle"
    MERGING = "merging"
    LINE_CHECKING = "line_checking"
    SETTLED = "settled"


@dataclass
class ChainReport:
    fragments: List[FragmentPiece] = field(default_factory=list)
    lines: List[LineDescriptor] = field(default_factory=list)
    cells_cleared: int = 0
    clear_rounds: int = 0
    guard_tripped: bool = False

    @property
    def fusions(self) -> int:
        return len(self.fragments)


class ChainController:
    """Runs merge -> clear -> merge -> ... until the board stops changing.

    The controller is busy for the whole run; callers use ``busy`` to refuse
    commands that arrive from event handlers mid-chain.
    """

    def __init__(
        self,
        grid: GameGrid,
        on_fused: Optional[FusedFn] = None,
        on_cleared: Optional[ClearedFn] = None,
    ) -> None:
        self.grid = grid
        self.on_fused = on_fused
        self.on_cleared = on_cleared
        self.state = ChainState.IDLE
        self.busy = False

    def run(self) -> ChainReport:
        if self.busy:
            raise RuntimeError("Chain reaction already in progress")
        self.busy = True
        report = ChainReport()
        try:
            self.state = ChainState.MERGING
            self._merge(report)
            self.state = ChainState.LINE_CHECKING
            while True:
                lines = find_complete_lines(self.grid)
                if not lines:
                    break
                result = clear_lines(self.grid, lines)
                report.lines.extend(result.lines)
                report.cells_cleared += result.cells_cleared
                report.clear_rounds += 1
                if self.on_cleared is not None:
                    self.on_cleared(result)
                # Clearing and gravity can bring same-colored pieces together
                self._merge(report)
            self.state = ChainState.SETTLED
        finally:
            self.busy = False
        return report

    def _merge(self, report: ChainReport) -> None:
        previous: Optional[int] = None
        while True:
            groups = find_merge_groups(self.grid)
            if not groups:
                return
            if previous is not None and len(groups) >= previous:
                logger.warning(
                    "Merge pass did not reduce group count (%d -> %d), moving on",
                    previous, len(groups),
                )
                report.guard_tripped = True
                return
            previous = len(groups)
            group = groups[0]
            fragment = fuse(self.grid, group)
            report.fragments.append(fragment)
            if self.on_fused is not None:
                self.on_fused(group, fragment)
