"""
Chess rules helpers.

The tools in this repository never implement chess rules themselves. This
module is the single place that asks python-chess for them: building a board
from a UCI position, converting the move service's notation to long
algebraic, and picking legal moves.
"""

import random
from typing import Iterable, Optional

import chess

from chess_devtools.uci.types import BasePosition, FenPosition, StartPosition


class PositionError(ValueError):
    """A FEN or a replayed move list does not describe a legal position."""


def load_position(base: BasePosition, moves: Iterable[str] = ()) -> chess.Board:
    """
    Build the board reached by playing moves from base.

    Args:
        base: StartPosition or FenPosition
        moves: Long algebraic moves (e.g. ["e2e4", "e7e5"])

    Returns:
        A fresh chess.Board

    Raises:
        PositionError: If the FEN is invalid or a move is illegal
    """
    if isinstance(base, StartPosition):
        board = chess.Board()
    elif isinstance(base, FenPosition):
        try:
            board = chess.Board(base.fen)
        except ValueError as e:
            raise PositionError(f"invalid FEN {base.fen!r}: {e}") from e
    else:
        raise TypeError(f"unknown base position: {base!r}")

    for move_str in moves:
        if move_str == "0000":
            # Null move: only the side to move changes
            board.push(chess.Move.null())
            continue
        try:
            move = chess.Move.from_uci(move_str)
        except ValueError as e:
            raise PositionError(f"malformed move {move_str!r}") from e
        if move not in board.legal_moves:
            raise PositionError(f"illegal move {move_str!r} in {board.fen()}")
        board.push(move)

    return board


def side_to_move(fen: str) -> str:
    """Return "white" or "black" from the side-to-move field of a FEN."""
    fields = fen.split()
    if len(fields) < 2 or fields[1] not in ("w", "b"):
        raise PositionError(f"FEN has no side to move: {fen!r}")
    return "white" if fields[1] == "w" else "black"


def _strip_suffixes(san: str) -> str:
    return san.rstrip("+#!?")


def to_long_algebraic(board: chess.Board, text: str) -> Optional[str]:
    """
    Convert a move in long or short algebraic notation to long algebraic.

    Long algebraic input is accepted if it is legal. Otherwise the legal
    move whose SAN rendering matches the text is used; check, mate and
    annotation suffixes are ignored on both sides.

    Example:
        >>> to_long_algebraic(chess.Board(), "e4")
        'e2e4'

    Returns:
        The move in long algebraic notation, or None if no legal move matches
    """
    text = text.strip()
    if not text:
        return None

    try:
        move = chess.Move.from_uci(text)
    except ValueError:
        move = None
    if move is not None and move in board.legal_moves:
        return move.uci()

    # some services write castling with zeros
    wanted = _strip_suffixes(text).replace("0", "O")
    for legal in board.legal_moves:
        if _strip_suffixes(board.san(legal)) == wanted:
            return legal.uci()
    return None


def first_legal_move(board: chess.Board) -> Optional[str]:
    """The first legal move in generation order, or None if there is none."""
    for move in board.legal_moves:
        return move.uci()
    return None


def random_legal_move(board: chess.Board, rng: Optional[random.Random] = None) -> Optional[str]:
    moves = list(board.legal_moves)
    if not moves:
        return None
    return (rng or random).choice(moves).uci()
