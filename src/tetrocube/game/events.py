from __future__ import annotations

from typing import Callable, Dict

from blinker import Signal


class EventBus:
    """Named blinker signals; receivers are called as ``fn(sender, **payload)``."""

    def __init__(self) -> None:
        self._signals: Dict[str, Signal] = {}

    def subscribe(self, name: str, fn: Callable) -> None:
        sig = self._signals.setdefault(name, Signal(name))
        # Strong refs so lambdas and bound methods of temporaries stay connected
        sig.connect(fn, weak=False)

    def unsubscribe(self, name: str, fn: Callable) -> None:
        sig = self._signals.get(name)
        if sig:
            sig.disconnect(fn)

    def emit(self, name: str, **payload) -> None:
        sig = self._signals.get(name)
        if sig:
            sig.send(self, **payload)


EVENT_PIECE_SPAWNED = "piece_spawned"    # payload: piece
EVENT_PIECES_FUSED = "pieces_fused"      # payload: group=list[Piece], fragment=FragmentPiece
EVENT_LINES_CLEARED = "lines_cleared"    # payload: lines=list[LineDescriptor], cells_cleared=int
EVENT_SCORE_CHANGED = "score_changed"    # payload: delta=int, reason=str, score=int
EVENT_GAME_OVER = "game_over"            # payload: reason=str
EVENT_SETTLED = "settled"                # payload: report=ChainReport
