"""
Unit Tests for the chess rules helpers and the adapter Session
"""

import random

import chess
import pytest

from chess_devtools.rules import (
    PositionError,
    first_legal_move,
    load_position,
    random_legal_move,
    side_to_move,
    to_long_algebraic,
)
from chess_devtools.uci.session import (
    Session,
    apply_debug,
    apply_init,
    apply_new_game,
    apply_position,
)
from chess_devtools.uci.types import FenPosition, StartPosition

START_FEN = chess.STARTING_FEN
FOOLS_MATE_FEN = "rnb1kbnr/pppp1ppp/8/4p3/6Pq/5P2/PPPPP2P/RNBQKBNR w KQkq - 1 3"


class TestLoadPosition:
    def test_startpos(self):
        assert load_position(StartPosition()).fen() == START_FEN

    def test_replays_moves(self):
        board = load_position(StartPosition(), ["e2e4", "e7e5"])

        expected = chess.Board()
        expected.push_san("e4")
        expected.push_san("e5")
        assert board.fen() == expected.fen()

    def test_null_move_changes_side_to_move(self):
        board = load_position(StartPosition(), ["e2e4", "0000", "d2d4"])

        assert board.turn == chess.BLACK
        assert board.piece_at(chess.E4) == chess.Piece.from_symbol("P")
        assert board.piece_at(chess.D4) == chess.Piece.from_symbol("P")
        assert side_to_move(board.fen()) == "black"

    def test_fen_base(self):
        board = load_position(FenPosition(FOOLS_MATE_FEN))
        assert board.is_checkmate()

    def test_invalid_fen(self):
        with pytest.raises(PositionError):
            load_position(FenPosition("not a fen at all x y"))

    def test_illegal_move(self):
        with pytest.raises(PositionError):
            load_position(StartPosition(), ["e2e5"])

    def test_returns_fresh_board(self):
        assert load_position(StartPosition()) is not load_position(StartPosition())


class TestSideToMove:
    def test_white(self):
        assert side_to_move(START_FEN) == "white"

    def test_black(self):
        board = chess.Board()
        board.push_san("e4")
        assert side_to_move(board.fen()) == "black"

    def test_missing_field(self):
        with pytest.raises(PositionError):
            side_to_move("8/8/8/8/8/8/8/8")


class TestToLongAlgebraic:
    @pytest.fixture
    def board(self):
        return chess.Board()

    def test_short_algebraic(self, board):
        assert to_long_algebraic(board, "e4") == "e2e4"

    def test_piece_move(self, board):
        assert to_long_algebraic(board, "Nf3") == "g1f3"

    def test_long_algebraic_passes_through(self, board):
        assert to_long_algebraic(board, "d2d4") == "d2d4"

    def test_whitespace_stripped(self, board):
        assert to_long_algebraic(board, " e4\n") == "e2e4"

    @pytest.mark.parametrize("answer", ["e5", "e2e5", "Ke2", "", "hello"])
    def test_illegal_or_garbage(self, board, answer):
        assert to_long_algebraic(board, answer) is None

    def test_check_suffix_optional(self):
        board = chess.Board()
        for san in ("e4", "f6", "d4", "g5"):
            board.push_san(san)

        assert to_long_algebraic(board, "Qh5#") == "d1h5"
        assert to_long_algebraic(board, "Qh5") == "d1h5"

    def test_castling(self):
        board = chess.Board("r3k2r/8/8/8/8/8/8/R3K2R w KQkq - 0 1")
        assert to_long_algebraic(board, "O-O") == "e1g1"
        assert to_long_algebraic(board, "0-0-0") == "e1c1"

    def test_promotion(self):
        board = chess.Board("8/P6k/8/8/8/8/8/K7 w - - 0 1")
        assert to_long_algebraic(board, "a8=Q") == "a7a8q"


class TestLegalMoves:
    def test_first_legal_move_is_legal(self):
        board = chess.Board()
        move = first_legal_move(board)
        assert chess.Move.from_uci(move) in board.legal_moves

    def test_no_moves_when_mated(self):
        board = chess.Board(FOOLS_MATE_FEN)
        assert first_legal_move(board) is None
        assert random_legal_move(board) is None

    def test_random_move_is_reproducible(self):
        board = chess.Board()
        assert random_legal_move(board, random.Random(7)) == random_legal_move(board, random.Random(7))


class TestSession:
    def test_initial_session(self):
        session = Session()
        assert session.base == StartPosition()
        assert session.moves == ()
        assert not session.initialized
        assert not session.debug

    def test_init(self):
        assert apply_init(Session()).initialized

    def test_debug_set_and_toggle(self):
        session = apply_debug(Session(), True)
        assert session.debug
        assert not apply_debug(session, None).debug
        assert apply_debug(session, True).debug

    def test_position_replaces_base_and_moves(self):
        session = apply_position(Session(), StartPosition(), ["e2e4"])
        session = apply_position(session, FenPosition(FOOLS_MATE_FEN), [])

        assert session.base == FenPosition(FOOLS_MATE_FEN)
        assert session.moves == ()

    def test_new_game_keeps_flags(self):
        session = apply_debug(apply_init(Session()), True)
        session = apply_position(session, FenPosition(FOOLS_MATE_FEN), ["d2d4"])

        session = apply_new_game(session)

        assert session == Session(initialized=True, debug=True)

    def test_transitions_do_not_mutate(self):
        session = Session()
        apply_position(session, StartPosition(), ["e2e4"])
        assert session.moves == ()
