from __future__ import annotations

import logging
from typing import Dict, List, Sequence, Set

from .connectivity import flood_fill
from .grid import GameGrid
from .pieces import FragmentPiece, Piece, cells_at

logger = logging.getLogger(__name__)


def find_merge_groups(grid: GameGrid) -> List[List[Piece]]:
    """Clusters of two or more same-colored pieces touching through 4-adjacency.

    Pieces are visited in insertion order; each unvisited piece seeds a flood
    fill over every cell owned by a piece of its color.
    """
    visited: Set[int] = set()
    groups: List[List[Piece]] = []
    for piece in list(grid.pieces.values()):
        if piece.id in visited:
            continue
        seeds = grid.cells_of(piece.id)
        if not seeds:
            continue
        color = piece.color

        def same_color(row: int, col: int) -> bool:
            owner = grid.pieces.get(int(grid.grid[row, col]))
            return owner is not None and owner.color == color

        component = flood_fill(seeds[0], same_color, grid.grid.shape)
        member_ids: Dict[int, None] = {piece.id: None}
        for row, col in component.absolute_cells():
            member_ids.setdefault(int(grid.grid[row, col]), None)
        visited.update(member_ids)
        if len(member_ids) > 1:
            group = [grid.pieces[pid] for pid in member_ids]
            logger.debug("Merge group of %d pieces, color %s", len(group), color.name)
            groups.append(group)
    return groups


def fuse(grid: GameGrid, group: Sequence[Piece]) -> FragmentPiece:
    """Replace a merge group with one fragment covering the union of its cells."""
    union: Dict[tuple, None] = {}
    for piece in group:
        for cell in cells_at(piece, piece.x, piece.y):
            union.setdefault(cell, None)
    min_row = min(r for r, _ in union)
    min_col = min(c for _, c in union)
    fragment = FragmentPiece(
        id=grid.next_id(),
        x=min_col,
        y=min_row,
        color=group[0].color,
        cells=tuple((r - min_row, c - min_col) for r, c in union),
    )
    grid.replace(group, [fragment])
    logger.debug(
        "Fused pieces %s into fragment %d with %d cells",
        [p.id for p in group], fragment.id, len(fragment.cells),
    )
    return fragment
