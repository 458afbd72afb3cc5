import pytest

from tetrocube.game import ChainController, ChainState, FragmentPiece, LineAxis, LineDescriptor, PieceColor, PieceKind
from tetrocube.game import chain as chain_module

from helpers import add_piece, fill_row


def test_idle_board_settles_without_work(grid):
    add_piece(grid, PieceKind.SINGLE, 0, 0)
    controller = ChainController(grid)
    assert controller.state is ChainState.IDLE
    report = controller.run()
    assert controller.state is ChainState.SETTLED
    assert not controller.busy
    assert report.fusions == 0
    assert report.clear_rounds == 0


def test_merge_then_clear(grid):
    fused, cleared = [], []
    fill_row(grid, 6)
    controller = ChainController(
        grid,
        on_fused=lambda group, fragment: fused.append(len(group)),
        on_cleared=lambda result: cleared.append(result.cells_cleared),
    )
    report = controller.run()

    assert fused == [7]
    assert cleared == [7]
    assert report.lines == [LineDescriptor(LineAxis.ROW, 6)]
    assert report.clear_rounds == 1
    assert grid.occupied_count() == 0


def test_gravity_triggers_second_fusion(grid):
    add_piece(grid, PieceKind.O, 0, 0)
    fill_row(grid, 2)
    add_piece(grid, PieceKind.I, 0, 3)
    report = ChainController(grid).run()

    assert report.fusions == 2
    assert report.clear_rounds == 1
    assert len(grid.pieces) == 1
    (fragment,) = grid.pieces.values()
    assert isinstance(fragment, FragmentPiece)
    assert fragment.color is PieceColor.SAND
    assert len(fragment.cells) == 8
    assert grid.occupied_count() == 8


def test_guard_stops_a_merge_that_makes_no_progress(grid, monkeypatch):
    a = add_piece(grid, PieceKind.SINGLE, 0, 0)
    b = add_piece(grid, PieceKind.SINGLE, 1, 0)
    stub = FragmentPiece(id=99, x=0, y=0, color=PieceColor.GOLD, cells=((0, 0),))
    monkeypatch.setattr(chain_module, "find_merge_groups", lambda g: [[a, b]])
    monkeypatch.setattr(chain_module, "fuse", lambda g, group: stub)

    controller = ChainController(grid)
    report = controller.run()
    assert report.guard_tripped
    assert report.fusions == 1
    assert controller.state is ChainState.SETTLED


def test_reentrant_run_is_refused(grid):
    add_piece(grid, PieceKind.SINGLE, 0, 0)
    add_piece(grid, PieceKind.SINGLE, 1, 0)
    controller = ChainController(grid)
    controller.on_fused = lambda group, fragment: controller.run()
    with pytest.raises(RuntimeError):
        controller.run()
    assert not controller.busy
