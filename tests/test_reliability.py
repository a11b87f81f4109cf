"""
Unit Tests for the move service reliability checker
"""

import random
from unittest.mock import MagicMock

import chess
import pytest

from chess_devtools.reliability import (
    MAX_FAILED_MOVES,
    MAX_TIMEOUTS,
    HttpEngineSpec,
    HttpPlayer,
    Incident,
    RandomEngineSpec,
    RandomPlayer,
    Stats,
    UciEngineSpec,
    format_stats,
    main,
    make_player,
    parse_engine_spec,
    play_game,
    run_games,
)
from chess_devtools.uci.errors import BridgeTimeout


class TestEngineSpecs:
    def test_http(self):
        spec = parse_engine_spec("proto:http,url:http://localhost:8000/move")
        assert spec == HttpEngineSpec(url="http://localhost:8000/move")

    def test_uci(self):
        assert parse_engine_spec("proto:uci,path:/usr/bin/stockfish") == UciEngineSpec("/usr/bin/stockfish")

    def test_random(self):
        assert parse_engine_spec("proto:random") == RandomEngineSpec()

    @pytest.mark.parametrize("spec", [
        "",
        "proto:http",
        "proto:http,path:/x",
        "proto:http,url:",
        "proto:uci,url:http://x",
        "proto:random,url:http://x",
        "proto:carrier-pigeon,url:x",
    ])
    def test_malformed(self, spec):
        with pytest.raises(ValueError):
            parse_engine_spec(spec)

    def test_make_player(self):
        assert isinstance(make_player(RandomEngineSpec()), RandomPlayer)
        player = make_player(HttpEngineSpec("http://robot/move"), timeout=2.0)
        assert isinstance(player, HttpPlayer)
        assert player.bridge.timeout == 2.0
        player.close()


class TestStats:
    def test_merge(self):
        a = Stats(failed_moves=[Incident("fen1", "e5")])
        b = Stats(timeouts=[Incident("fen2", 1)])

        merged = a.merge(b)

        assert merged.failed_moves == [Incident("fen1", "e5")]
        assert merged.timeouts == [Incident("fen2", 1)]
        assert a.timeouts == []

    def test_format(self):
        text = format_stats(Stats(failed_moves=[Incident("fen1", "e5")]))
        assert "Failed moves: 1" in text
        assert "Timeouts: 0" in text
        assert "'e5' in fen1" in text


class TestHttpPlayer:
    @pytest.fixture
    def bridge(self):
        return MagicMock()

    def make_player(self, bridge):
        return HttpPlayer(bridge, retry_delay=0, rng=random.Random(1))

    def test_plays_service_move(self, bridge):
        bridge.ask.return_value = "e4"
        board = chess.Board()

        stats = self.make_player(bridge).play(board)

        assert board.peek() == chess.Move.from_uci("e2e4")
        assert stats == Stats()

    def test_failed_moves_fed_back(self, bridge):
        bridge.ask.side_effect = ["e5", "Nf3"]
        board = chess.Board()

        stats = self.make_player(bridge).play(board)

        assert board.peek() == chess.Move.from_uci("g1f3")
        assert stats.failed_moves == [Incident(chess.STARTING_FEN, "e5")]
        assert bridge.ask.call_args_list[1].args == (chess.STARTING_FEN, ["e5"])

    def test_timeouts_counted(self, bridge):
        bridge.ask.side_effect = [BridgeTimeout("slow"), "d4"]
        board = chess.Board()

        stats = self.make_player(bridge).play(board)

        assert board.peek() == chess.Move.from_uci("d2d4")
        assert len(stats.timeouts) == 1

    def test_random_move_after_too_many_failures(self, bridge):
        bridge.ask.return_value = "Ke2"
        board = chess.Board()

        stats = self.make_player(bridge).play(board)

        assert len(stats.failed_moves) == MAX_FAILED_MOVES
        assert len(board.move_stack) == 1

    def test_random_move_after_too_many_timeouts(self, bridge):
        bridge.ask.side_effect = BridgeTimeout("slow")
        board = chess.Board()

        stats = self.make_player(bridge).play(board)

        assert len(stats.timeouts) == MAX_TIMEOUTS
        assert len(board.move_stack) == 1


class TestGames:
    def test_random_game_ends(self):
        white = RandomPlayer(random.Random(1))
        black = RandomPlayer(random.Random(2))

        stats = play_game(white, black, max_plies=40)

        assert stats == Stats()

    def test_games_collect_stats(self):
        service = MagicMock()
        service.ask.side_effect = lambda fen, failed: "bad"
        white = HttpPlayer(service, retry_delay=0, rng=random.Random(3))
        black = RandomPlayer(random.Random(4))

        stats = run_games(white, black, n=2, max_plies=4)

        # two white turns per game, each with MAX_FAILED_MOVES rejected answers
        assert len(stats.failed_moves) == 2 * 2 * MAX_FAILED_MOVES


class TestMain:
    def test_needs_two_engines(self):
        with pytest.raises(SystemExit):
            main(["--engine", "proto:random"])

    def test_bad_spec(self):
        with pytest.raises(SystemExit):
            main(["--engine", "proto:random", "--engine", "proto:nope"])

    def test_random_vs_random(self, capsys):
        assert main(["--engine", "proto:random", "--engine", "proto:random", "-n", "1", "--max-plies", "10"]) == 0
        out = capsys.readouterr().out
        assert "Failed moves: 0" in out
        assert "Timeouts: 0" in out
