"""Unit tests for board geometry, move notation, and piece sides."""

import pytest

from tablut.piece import Piece, opponent, side_name, side_of
from tablut.square import (
    E,
    N,
    ROOK_MOVES,
    ROOK_SQUARES,
    S,
    SQUARE_LIST,
    THRONE,
    W,
    Move,
    between,
    diagonal_pair,
    parse_square,
    rook_directions_and_targets,
    sq,
    sq_from_index,
)


class TestPieces:
    def test_sides(self):
        assert side_of(Piece.BLACK) is Piece.BLACK
        assert side_of(Piece.WHITE) is Piece.WHITE
        assert side_of(Piece.KING) is Piece.WHITE
        assert side_of(Piece.EMPTY) is None

    def test_opponent(self):
        assert opponent(Piece.BLACK) is Piece.WHITE
        assert opponent(Piece.WHITE) is Piece.BLACK
        assert opponent(Piece.KING) is Piece.BLACK
        with pytest.raises(ValueError):
            opponent(Piece.EMPTY)

    def test_side_name(self):
        assert side_name(Piece.BLACK) == "black"
        assert side_name(Piece.KING) == "white"
        with pytest.raises(ValueError):
            side_name(Piece.EMPTY)


class TestSquares:
    def test_index_order(self):
        assert len(SQUARE_LIST) == 81
        assert sq(3, 2).index == 2 * 9 + 3
        assert sq_from_index(22) == sq(4, 2)
        for i, square in enumerate(SQUARE_LIST):
            assert square.index == i

    def test_off_board(self):
        with pytest.raises(ValueError):
            sq(9, 0)
        with pytest.raises(ValueError):
            sq_from_index(81)

    def test_notation(self):
        assert parse_square("e5") == THRONE
        assert parse_square("A1") == sq(0, 0)
        assert str(sq(8, 8)) == "i9"
        with pytest.raises(ValueError):
            parse_square("j1")
        with pytest.raises(ValueError):
            parse_square("a0")

    def test_edges(self):
        assert sq(0, 4).is_edge
        assert sq(4, 8).is_edge
        assert not THRONE.is_edge
        assert not sq(1, 7).is_edge

    def test_rook_move(self):
        assert sq(4, 4).rook_move(N, 2) == sq(4, 6)
        assert sq(4, 4).rook_move(W, 3) == sq(1, 4)
        assert sq(0, 0).rook_move(S, 1) is None
        assert sq(8, 3).rook_move(E, 1) is None

    def test_direction(self):
        assert sq(2, 2).direction(sq(2, 7)) == N
        assert sq(2, 2).direction(sq(0, 2)) == W
        assert sq(2, 2).direction(sq(3, 3)) == -1

    def test_adjacent(self):
        assert set(sq(0, 0).adjacent()) == {sq(0, 1), sq(1, 0)}
        assert len(THRONE.adjacent()) == 4


class TestRookTables:
    def test_corner(self):
        corner = sq(0, 0)
        assert ROOK_SQUARES[corner.index][N] == tuple(sq(0, r) for r in range(1, 9))
        assert ROOK_SQUARES[corner.index][S] == ()
        assert ROOK_SQUARES[corner.index][W] == ()

    def test_targets_nearest_first(self):
        targets = ROOK_SQUARES[THRONE.index][E]
        assert targets == (sq(5, 4), sq(6, 4), sq(7, 4), sq(8, 4))

    def test_moves_match_squares(self):
        for square in SQUARE_LIST:
            for direction, targets in rook_directions_and_targets(square):
                moves = ROOK_MOVES[square.index][direction]
                assert [m.to_sq for m in moves] == list(targets)
                assert all(m.from_sq == square for m in moves)

    def test_every_square_has_sixteen_targets(self):
        for square in SQUARE_LIST:
            total = sum(len(t) for _, t in rook_directions_and_targets(square))
            assert total == 16


class TestBetweenness:
    def test_between(self):
        assert between(sq(4, 0), sq(4, 2)) == sq(4, 1)
        assert between(sq(2, 5), sq(0, 5)) == sq(1, 5)
        assert between(sq(0, 0), sq(0, 3)) is None
        assert between(sq(0, 0), sq(2, 2)) is None

    def test_diagonal_pair(self):
        assert diagonal_pair(sq(4, 6), sq(4, 4)) == (sq(3, 5), sq(5, 5))
        assert diagonal_pair(sq(2, 4), sq(4, 4)) == (sq(3, 3), sq(3, 5))

    def test_diagonal_pair_off_board(self):
        assert diagonal_pair(sq(0, 0), sq(0, 2)) == (None, sq(1, 1))

    def test_diagonal_pair_requires_line(self):
        with pytest.raises(ValueError):
            diagonal_pair(sq(0, 0), sq(1, 1))


class TestMoveNotation:
    def test_full(self):
        move = Move.parse("e5-e8")
        assert move == Move(THRONE, sq(4, 7))
        assert str(move) == "e5-e8"

    def test_short_row(self):
        assert Move.parse("a4-1") == Move(sq(0, 3), sq(0, 0))

    def test_short_column(self):
        assert Move.parse("a4-c") == Move(sq(0, 3), sq(2, 3))

    def test_whitespace_and_case(self):
        assert Move.parse("  D1-D3 ") == Move(sq(3, 0), sq(3, 2))

    @pytest.mark.parametrize("text", ["e5-f6", "e5-e5", "e5", "e5-", "z1-z2", "e5-e10"])
    def test_invalid(self, text):
        with pytest.raises(ValueError):
            Move.parse(text)
