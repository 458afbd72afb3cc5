from __future__ import annotations

from typing import Dict, Tuple

import numpy as np

from tetrocube.game import PieceColor


RGB = Tuple[int, int, int]

# Keyed by the values of GameGrid.color_map()
PALETTE: Dict[int, RGB] = {
    0: (28, 24, 20),
    int(PieceColor.SAND): (221, 196, 148),
    int(PieceColor.AMBER): (232, 152, 48),
    int(PieceColor.CORAL): (226, 110, 92),
    int(PieceColor.GOLD): (240, 200, 40),
}


def color_for_value(v: int) -> RGB:
    return PALETTE.get(abs(int(v)), (200, 200, 200))


def palette_lut() -> np.ndarray:
    """(n, 3) uint8 table indexed by color value, for vectorised rendering."""
    lut = np.full((max(PALETTE) + 1, 3), 200, dtype=np.uint8)
    for value, rgb in PALETTE.items():
        lut[value] = rgb
    return lut
