from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Sequence, Set

import numpy as np

from .grid import GameGrid
from .pieces import Cell, FragmentPiece, Piece, TemplatePiece, cells_at
from .repair import repair, split_fragment, validate

logger = logging.getLogger(__name__)


class LineAxis(str, Enum):
    ROW = "row"
    COL = "col"


@dataclass(frozen=True)
class LineDescriptor:
    axis: LineAxis
    index: int


@dataclass
class ClearResult:
    lines: List[LineDescriptor]
    cells_cleared: int
    removed_ids: List[int] = field(default_factory=list)
    fragments: List[FragmentPiece] = field(default_factory=list)
    shifted_ids: List[int] = field(default_factory=list)


def find_complete_lines(grid: GameGrid) -> List[LineDescriptor]:
    filled = grid.grid != 0
    rows = np.flatnonzero(np.all(filled, axis=1))
    cols = np.flatnonzero(np.all(filled, axis=0))
    lines = [LineDescriptor(LineAxis.ROW, int(r)) for r in rows]
    lines.extend(LineDescriptor(LineAxis.COL, int(c)) for c in cols)
    if lines:
        logger.debug("Complete lines: %s", [(l.axis.value, l.index) for l in lines])
    return lines


def line_cells(grid: GameGrid, line: LineDescriptor) -> List[Cell]:
    if line.axis is LineAxis.ROW:
        return [(line.index, col) for col in range(grid.width)]
    return [(row, line.index) for row in range(grid.height)]


def clear_lines(grid: GameGrid, lines: Sequence[LineDescriptor]) -> ClearResult:
    """Clear the given lines, fragment what they cut, then apply gravity.

    Pieces fully inside the cleared cells are deleted; partially cleared
    pieces are replaced by a fragment of their remaining cells, split further
    if the clear left it in several islands. Each cleared row then drops every
    piece above it by one cell. Columns do not drop anything.
    """
    cleared: Set[Cell] = set()
    for line in lines:
        cleared.update(line_cells(grid, line))
    for row, col in cleared:
        grid.grid[row, col] = 0
    result = ClearResult(lines=list(lines), cells_cleared=len(cleared))

    new_fragments: List[FragmentPiece] = []
    for piece in list(grid.pieces.values()):
        cells = cells_at(piece, piece.x, piece.y)
        remaining = [cell for cell in cells if cell not in cleared]
        if len(remaining) == len(cells):
            continue
        result.removed_ids.append(piece.id)
        if not remaining:
            grid.remove(piece)
            continue
        fragment = FragmentPiece(
            id=grid.next_id(),
            x=piece.x,
            y=piece.y,
            color=piece.color,
            cells=tuple((r - piece.y, c - piece.x) for r, c in remaining),
        )
        grid.replace([piece], [fragment])
        new_fragments.append(fragment)

    for fragment in new_fragments:
        result.fragments.extend(split_fragment(grid, fragment))

    report = validate(grid)
    if report.has_issues:
        logger.warning(
            "Grid inconsistent after clear (grid=%d, pieces=%d, orphans=%s, ghosts=%s)",
            report.grid_cell_count, report.piece_cell_count, report.orphan_ids, report.ghost_ids,
        )
        repair(grid)

    rows = [line.index for line in lines if line.axis is LineAxis.ROW]
    result.shifted_ids = apply_gravity(grid, rows)
    logger.debug(
        "Cleared %d cells, removed %s, fragments %s",
        result.cells_cleared, result.removed_ids, [f.id for f in result.fragments],
    )
    return result


def apply_gravity(grid: GameGrid, cleared_rows: Sequence[int]) -> List[int]:
    """Drop pieces above each cleared row by one cell, bottom-most row first.

    Which pieces a row drops is decided from their origin rows before any
    shifting, so a piece sitting between two cleared rows drops exactly once.
    """
    if not cleared_rows:
        return []
    origins = {pid: piece.y for pid, piece in grid.pieces.items()}
    shifts: Dict[int, int] = {}
    for row in sorted(set(cleared_rows), reverse=True):
        for pid, origin_row in origins.items():
            if origin_row < row:
                shifts[pid] = shifts.get(pid, 0) + 1

    moving: List[Piece] = [grid.pieces[pid] for pid in shifts]
    for piece in moving:
        grid.clear(piece)
    for piece in moving:
        piece.y += shifts[piece.id]
        if isinstance(piece, TemplatePiece):
            # The pre-cycle origin no longer refers to this position
            piece.cycle_anchor = None
        grid.place(piece)
    return list(shifts)
