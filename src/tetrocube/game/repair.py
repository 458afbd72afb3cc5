from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List

import numpy as np

from .connectivity import connected_components
from .grid import GameGrid
from .pieces import FragmentPiece, cells_at

logger = logging.getLogger(__name__)


@dataclass
class ValidationReport:
    grid_cell_count: int
    piece_cell_count: int
    orphan_ids: List[int] = field(default_factory=list)
    ghost_ids: List[int] = field(default_factory=list)

    @property
    def has_issues(self) -> bool:
        return (
            self.grid_cell_count != self.piece_cell_count
            or bool(self.orphan_ids)
            or bool(self.ghost_ids)
        )


def validate(grid: GameGrid) -> ValidationReport:
    """Cross-check grid occupancy against the cells the tracked pieces claim."""
    grid_ids = set(int(v) for v in np.unique(grid.grid) if v != 0)
    piece_cells = 0
    for piece in grid.pieces.values():
        piece_cells += sum(1 for r, c in cells_at(piece, piece.x, piece.y) if grid.is_inside(r, c))
    return ValidationReport(
        grid_cell_count=grid.occupied_count(),
        piece_cell_count=piece_cells,
        orphan_ids=sorted(grid_ids - set(grid.pieces)),
        ghost_ids=[pid for pid in grid.pieces if pid not in grid_ids],
    )


def repair(grid: GameGrid) -> int:
    """Rebuild the grid from the tracked pieces. Returns orphan cells removed.

    Orphan cells are zeroed, the grid is rebuilt by re-placing every piece,
    and pieces left with no cell on the rebuilt grid are dropped.
    """
    known = np.array(list(grid.pieces), dtype=grid.grid.dtype)
    orphans = (grid.grid != 0) & ~np.isin(grid.grid, known)
    removed = int(np.count_nonzero(orphans))
    grid.grid[orphans] = 0

    grid.grid.fill(0)
    for piece in grid.pieces.values():
        grid.place(piece)
    ghosts = [pid for pid in grid.pieces if not np.any(grid.grid == pid)]
    for pid in ghosts:
        del grid.pieces[pid]

    if removed or ghosts:
        logger.warning("Repair removed %d orphan cells and ghost pieces %s", removed, ghosts)
    return removed


def split_fragment(grid: GameGrid, fragment: FragmentPiece) -> List[FragmentPiece]:
    """Split a fragment into one fragment per 4-connected island of its cells.

    A connected fragment is kept (with its origin normalized to its cells);
    otherwise it is replaced by new fragments of the same color.
    """
    seeds = cells_at(fragment, fragment.x, fragment.y)
    components = connected_components(
        seeds, lambda r, c: grid.grid[r, c] == fragment.id, grid.grid.shape
    )
    if len(components) <= 1:
        if components:
            grid.clear(fragment)
            fragment.x, fragment.y = components[0].col, components[0].row
            fragment.cells = tuple(components[0].cells)
            grid.place(fragment)
        return [fragment]

    parts = [
        FragmentPiece(
            id=grid.next_id(),
            x=component.col,
            y=component.row,
            color=fragment.color,
            cells=tuple(component.cells),
        )
        for component in components
    ]
    grid.replace([fragment], parts)
    logger.debug("Split fragment %d into %s", fragment.id, [p.id for p in parts])
    return parts


def split_disconnected(grid: GameGrid) -> int:
    """Enforce fragment connectivity across the board. Returns pieces added."""
    before = len(grid.pieces)
    for piece in list(grid.pieces.values()):
        if isinstance(piece, FragmentPiece):
            split_fragment(grid, piece)
    return len(grid.pieces) - before
