from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional, Set, Tuple

from .pieces import Cell


MemberFn = Callable[[int, int], bool]

# up, down, left, right
NEIGHBOR_OFFSETS: Tuple[Cell, ...] = ((-1, 0), (1, 0), (0, -1), (0, 1))


@dataclass
class Component:
    """A 4-connected cell set, normalized to its bounding-box top-left."""

    row: int
    col: int
    cells: List[Cell] = field(default_factory=list)

    def absolute_cells(self) -> List[Cell]:
        return [(self.row + r, self.col + c) for r, c in self.cells]

    def __len__(self) -> int:
        return len(self.cells)


def flood_fill(
    start: Cell,
    is_member: MemberFn,
    bounds: Tuple[int, int],
    visited: Optional[Set[Cell]] = None,
) -> Component:
    """Collect every cell 4-connected to ``start`` that satisfies ``is_member``.

    ``bounds`` is the (height, width) of the grid. ``visited`` may be shared
    across calls to partition a region into components. Cells are returned in
    discovery order, relative to the minimum row/col of the set.
    """
    height, width = bounds
    if visited is None:
        visited = set()
    stack = [start]
    found: List[Cell] = []
    while stack:
        row, col = stack.pop()
        if (row, col) in visited:
            continue
        if not (0 <= row < height and 0 <= col < width):
            continue
        if not is_member(row, col):
            continue
        visited.add((row, col))
        found.append((row, col))
        # Reversed so the stack pops up, down, left, right in that order
        for d_row, d_col in reversed(NEIGHBOR_OFFSETS):
            stack.append((row + d_row, col + d_col))

    if not found:
        return Component(row=start[0], col=start[1])
    min_row = min(r for r, _ in found)
    min_col = min(c for _, c in found)
    return Component(
        row=min_row,
        col=min_col,
        cells=[(r - min_row, c - min_col) for r, c in found],
    )


def connected_components(
    seeds: Iterable[Cell],
    is_member: MemberFn,
    bounds: Tuple[int, int],
) -> List[Component]:
    """Partition the member cells reachable from ``seeds`` into components."""
    visited: Set[Cell] = set()
    components: List[Component] = []
    for seed in seeds:
        if seed in visited:
            continue
        component = flood_fill(seed, is_member, bounds, visited)
        if len(component) > 0:
            components.append(component)
    return components
