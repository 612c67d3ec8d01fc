"""Piece values and the side/opponent relation between them."""

from __future__ import annotations

from enum import Enum


class Piece(Enum):
    EMPTY = "-"
    BLACK = "B"
    WHITE = "W"
    KING = "K"

    @property
    def glyph(self) -> str:
        return self.value

    def __str__(self) -> str:
        return self.value


def side_of(piece: Piece) -> Piece | None:
    """Return the side a piece plays for: BLACK, WHITE, or None for EMPTY."""
    if piece is Piece.BLACK:
        return Piece.BLACK
    if piece is Piece.WHITE or piece is Piece.KING:
        return Piece.WHITE
    return None


def opponent(side: Piece) -> Piece:
    if side is Piece.BLACK:
        return Piece.WHITE
    if side is Piece.WHITE or side is Piece.KING:
        return Piece.BLACK
    raise ValueError("EMPTY has no opponent")


def side_name(side: Piece) -> str:
    """Wire name of a side: "black" or "white"."""
    resolved = side_of(side)
    if resolved is None:
        raise ValueError("EMPTY has no side")
    return resolved.name.lower()
