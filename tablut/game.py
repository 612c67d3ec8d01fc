"""Game logic: board state, move legality, captures, and win detection."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from tablut.piece import Piece, opponent, side_of
from tablut.square import (
    COLUMN_LETTERS,
    ROOK_MOVES,
    ROOK_SQUARES,
    SIZE,
    SQUARE_LIST,
    THRONE,
    THRONE_NEIGHBORS,
    Move,
    Square,
    between,
    diagonal_pair,
    exists,
    sq,
)

logger = logging.getLogger(__name__)

INITIAL_ATTACKERS = (
    sq(0, 3), sq(0, 4), sq(0, 5), sq(1, 4),
    sq(8, 3), sq(8, 4), sq(8, 5), sq(7, 4),
    sq(3, 0), sq(4, 0), sq(5, 0), sq(4, 1),
    sq(3, 8), sq(4, 8), sq(5, 8), sq(4, 7),
)

INITIAL_DEFENDERS = (
    *THRONE_NEIGHBORS,
    sq(4, 6), sq(4, 2), sq(2, 4), sq(6, 4),
)


class GameError(Exception):
    """Base class for misuse of a GameState."""


class MoveLimitError(GameError):
    pass


class UndoError(GameError):
    pass


class NoKingError(GameError):
    pass


class IllegalMoveError(GameError):
    pass


@dataclass(frozen=True)
class MoveEntry:
    from_sq: Square
    to_sq: Square
    from_piece: Piece
    to_piece: Piece


@dataclass(frozen=True)
class CaptureEntry:
    square: Square
    piece: Piece


@dataclass
class MoveRecord:
    """Everything needed to take back one applied move."""

    move: MoveEntry
    captures: list[CaptureEntry] = field(default_factory=list)
    prior_winner: Piece | None = None
    prior_repeated: bool = False
    position_recorded: bool = True

    @property
    def capture_count(self) -> int:
        return len(self.captures)


class GameState:
    def __init__(self):
        self._grid: list[Piece] = [Piece.EMPTY] * (SIZE * SIZE)
        self._turn: Piece = Piece.BLACK
        self._winner: Piece | None = None
        self._move_count: int = 0
        self._repeated: bool = False
        self._forfeited: bool = False
        self._move_limit: int | None = None
        self._undo_log: list[MoveRecord] = []
        self._positions: list[str] = []
        self._seen_positions: set[str] = set()
        self.init()

    @classmethod
    def from_model(cls, model: GameState) -> GameState:
        game = cls()
        game.copy(model)
        return game

    def init(self):
        """Reset to the initial position with no move limit."""
        self._grid = [Piece.EMPTY] * (SIZE * SIZE)
        for square in INITIAL_ATTACKERS:
            self._grid[square.index] = Piece.BLACK
        for square in INITIAL_DEFENDERS:
            self._grid[square.index] = Piece.WHITE
        self._grid[THRONE.index] = Piece.KING
        self._turn = Piece.BLACK
        self._winner = None
        self._move_count = 0
        self._repeated = False
        self._forfeited = False
        self._move_limit = None
        self._undo_log = []
        encoded = self.encoded_board()
        self._positions = [encoded]
        self._seen_positions = {encoded}

    def copy(self, model: GameState):
        """Make this state an independent copy of MODEL."""
        if model is self:
            return
        self._grid = list(model._grid)
        self._turn = model._turn
        self._winner = model._winner
        self._move_count = model._move_count
        self._repeated = model._repeated
        self._forfeited = model._forfeited
        self._move_limit = model._move_limit
        self._undo_log = [
            MoveRecord(
                move=record.move,
                captures=list(record.captures),
                prior_winner=record.prior_winner,
                prior_repeated=record.prior_repeated,
                position_recorded=record.position_recorded,
            )
            for record in model._undo_log
        ]
        self._positions = list(model._positions)
        self._seen_positions = set(model._seen_positions)

    # ------------------------------------------------------------------
    # Query surface
    # ------------------------------------------------------------------

    @property
    def turn(self) -> Piece:
        return self._turn

    @property
    def winner(self) -> Piece | None:
        return self._winner

    @property
    def is_game_over(self) -> bool:
        return self._winner is not None

    @property
    def repeated_position(self) -> bool:
        return self._repeated

    @property
    def forfeited(self) -> bool:
        """True when the last make_move call hit the move limit."""
        return self._forfeited

    @property
    def move_count(self) -> int:
        return self._move_count

    @property
    def move_limit(self) -> int | None:
        return self._move_limit

    @property
    def positions(self) -> tuple[str, ...]:
        """Encoded positions seen since the initial (or last cleared) position."""
        return tuple(self._positions)

    @property
    def last_captures(self) -> list[CaptureEntry]:
        """Captures made by the most recent move still on the undo log."""
        if not self._undo_log:
            return []
        return list(self._undo_log[-1].captures)

    def set_move_limit(self, limit: int):
        """Limit each side to LIMIT moves. Fails if 2 * LIMIT <= move_count."""
        if 2 * limit <= self._move_count:
            self._move_limit = None
            raise MoveLimitError(
                f"Move limit {limit} already exceeded after {self._move_count} moves"
            )
        self._move_limit = limit

    def get(self, square_or_col: Square | int, row: int | None = None) -> Piece:
        if isinstance(square_or_col, Square):
            return self._grid[square_or_col.index]
        return self._grid[sq(square_or_col, row).index]

    def put(self, piece: Piece, square: Square):
        """Set SQUARE to PIECE without recording anything for undo."""
        self._grid[square.index] = piece

    @property
    def has_king(self) -> bool:
        return Piece.KING in self._grid

    def king_position(self) -> Square:
        for square in SQUARE_LIST:
            if self._grid[square.index] is Piece.KING:
                return square
        raise NoKingError("No king on the board")

    def piece_locations(self, side: Piece) -> list[Square]:
        side = side_of(side)
        if side is None:
            raise ValueError("EMPTY is not a side")
        return [square for square in SQUARE_LIST if side_of(self._grid[square.index]) is side]

    # ------------------------------------------------------------------
    # Legality
    # ------------------------------------------------------------------

    def is_unblocked_move(self, from_sq: Square, to_sq: Square) -> bool:
        """True iff FROM-TO is a rook move with every square after FROM empty."""
        if not from_sq.is_rook_move(to_sq):
            return False
        for square in ROOK_SQUARES[from_sq.index][from_sq.direction(to_sq)]:
            if self._grid[square.index] is not Piece.EMPTY:
                return False
            if square == to_sq:
                return True
        return False

    def is_legal_origin(self, from_sq: Square) -> bool:
        return side_of(self.get(from_sq)) is self._turn

    def is_legal_move(self, from_sq: Square, to_sq: Square) -> bool:
        if not self.is_legal_origin(from_sq):
            return False
        return self._is_legal_for_side(from_sq, to_sq)

    def is_legal(self, move: Move) -> bool:
        return self.is_legal_move(move.from_sq, move.to_sq)

    def _is_legal_for_side(self, from_sq: Square, to_sq: Square) -> bool:
        if not exists(to_sq.col, to_sq.row) or self.get(to_sq) is not Piece.EMPTY:
            return False
        if not self.is_unblocked_move(from_sq, to_sq):
            return False
        if to_sq == THRONE and self.get(from_sq) is not Piece.KING:
            return False
        return True

    def legal_moves(self, side: Piece) -> list[Move]:
        """All legal moves for SIDE, regardless of whose turn it is."""
        moves = []
        for square in self.piece_locations(side):
            for direction in range(4):
                for move in ROOK_MOVES[square.index][direction]:
                    if self.get(move.to_sq) is not Piece.EMPTY:
                        break
                    if self._is_legal_for_side(move.from_sq, move.to_sq):
                        moves.append(move)
        return moves

    def has_move(self, side: Piece) -> bool:
        return len(self.legal_moves(side)) > 0

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def make_move(self, from_sq: Square | Move, to_sq: Square | None = None):
        """Apply FROM-TO, which must be legal in the current position."""
        if isinstance(from_sq, Move):
            from_sq, to_sq = from_sq.from_sq, from_sq.to_sq
        if to_sq is None or not self.is_legal_move(from_sq, to_sq):
            raise IllegalMoveError(f"Illegal move {from_sq}-{to_sq}")

        if self._move_limit is not None and self._move_count // 2 >= self._move_limit:
            self._winner = opponent(self._turn)
            self._forfeited = True
            logger.debug("Move limit %d reached; %s wins", self._move_limit, self._winner.name)
            return

        # Raises NoKingError before anything is changed
        king_sq = self.king_position() if self._winner is None else None
        if king_sq == from_sq:
            king_sq = to_sq

        record = MoveRecord(
            move=MoveEntry(from_sq, to_sq, self.get(from_sq), self.get(to_sq)),
            prior_winner=self._winner,
            prior_repeated=self._repeated,
        )
        self._grid[to_sq.index] = record.move.from_piece
        self._grid[from_sq.index] = Piece.EMPTY

        record.position_recorded = self._record_position()

        for direction in range(4):
            capture = self._capture(to_sq, to_sq.rook_move(direction, 2))
            if capture is not None:
                record.captures.append(capture)
        self._undo_log.append(record)

        if self._winner is None and king_sq is not None and king_sq.is_edge:
            self._winner = Piece.WHITE
            logger.debug("King escaped to %s", king_sq)

        self._move_count += 1
        self._turn = opponent(self._turn)

    def _record_position(self) -> bool:
        """Add the position after the pending move to the history.

        Returns False, and ends the game in favour of the mover, if the
        position has already been seen.
        """
        encoded = self.encoded_board(opponent(self._turn))
        if encoded in self._seen_positions:
            self._repeated = True
            self._winner = self._turn
            logger.debug("Repeated position; %s wins", self._winner.name)
            return False
        self._positions.append(encoded)
        self._seen_positions.add(encoded)
        return True

    def _capture(self, sq0: Square, sq2: Square | None) -> CaptureEntry | None:
        """Capture the piece between SQ0 and SQ2 if it is sandwiched.

        A piece has just moved to SQ0. Returns the capture made, if any.
        """
        if sq2 is None:
            return None
        middle = between(sq0, sq2)
        mover = side_of(self.get(sq0))
        stationary = self.get(sq2)
        middle_piece = self.get(middle)

        captured = False
        if middle_piece is Piece.BLACK:
            if mover is Piece.WHITE and (side_of(stationary) is Piece.WHITE or sq2 == THRONE):
                captured = True
        elif middle_piece is Piece.WHITE:
            if mover is Piece.BLACK and side_of(stationary) is Piece.BLACK:
                captured = True
            elif mover is Piece.BLACK and sq2 == THRONE:
                if stationary is Piece.EMPTY:
                    captured = True
                elif stationary is Piece.KING and self._hostile_occupied_throne():
                    captured = True
        elif middle_piece is Piece.KING:
            if middle == THRONE or middle in THRONE_NEIGHBORS:
                captured = self._surrounded_king(middle, sq0, sq2)
            else:
                captured = mover is Piece.BLACK and side_of(stationary) is Piece.BLACK
            if captured:
                self._winner = Piece.BLACK

        if not captured:
            return None
        self._grid[middle.index] = Piece.EMPTY
        logger.debug("%s captured on %s", middle_piece.name, middle)
        return CaptureEntry(middle, middle_piece)

    def _count_black(self, squares) -> int:
        return sum(
            1 for square in squares
            if square is not None and self._grid[square.index] is Piece.BLACK
        )

    def _hostile_occupied_throne(self) -> bool:
        """The occupied throne is hostile to white when black holds exactly 3 sides."""
        return self._count_black(THRONE_NEIGHBORS) == 3

    def _surrounded_king(self, middle: Square, sq0: Square, sq2: Square) -> bool:
        """Whether a king on or beside the throne is hemmed in by black.

        On the throne all four neighbors must be black; beside it, three of
        its four neighbors (the fourth being the throne).
        """
        if middle == THRONE:
            return self._count_black(THRONE_NEIGHBORS) == 4
        diag1, diag2 = diagonal_pair(sq0, sq2)
        return self._count_black((sq0, sq2, diag1, diag2)) == 3

    def undo(self):
        """Take back the last move and any captures it made."""
        if self._move_count == 0 or not self._undo_log:
            raise UndoError("No moves to undo")
        record = self._undo_log.pop()

        if record.position_recorded:
            encoded = self._positions.pop()
            self._seen_positions.discard(encoded)
        self._repeated = record.prior_repeated
        self._forfeited = False

        for capture in reversed(record.captures):
            self._grid[capture.square.index] = capture.piece
        move = record.move
        self._grid[move.from_sq.index] = move.from_piece
        self._grid[move.to_sq.index] = move.to_piece

        self._winner = record.prior_winner
        self._move_count -= 1
        self._turn = opponent(self._turn)

    def clear_undo(self):
        """Forget the undo log and position history, keeping the current position."""
        self._undo_log = []
        encoded = self.encoded_board()
        self._positions = [encoded]
        self._seen_positions = {encoded}

    # ------------------------------------------------------------------
    # Encoding and rendering
    # ------------------------------------------------------------------

    def encoded_board(self, side_to_move: Piece | None = None) -> str:
        """Side to move followed by one glyph per square in SQUARE_LIST order."""
        side = side_to_move or self._turn
        return side.glyph + "".join(piece.glyph for piece in self._grid)

    def render(self, coordinates: bool = True) -> str:
        lines = []
        for row in range(SIZE - 1, -1, -1):
            prefix = f"{row + 1:2d}" if coordinates else "  "
            cells = "".join(f" {self._grid[row * SIZE + col].glyph}" for col in range(SIZE))
            lines.append(prefix + cells)
        if coordinates:
            lines.append("  " + "".join(f" {letter}" for letter in COLUMN_LETTERS))
        return "\n".join(lines) + "\n"

    def rows(self) -> list[list[str]]:
        """Glyph grid indexed [row][col], row 0 at the bottom."""
        return [
            [self._grid[row * SIZE + col].glyph for col in range(SIZE)]
            for row in range(SIZE)
        ]

    def __str__(self) -> str:
        return self.render(True)
