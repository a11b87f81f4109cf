"""
Reliability checker for move services.

Plays whole games between two engines and counts how often an HTTP move
service misbehaves: answers that are not legal moves, and requests that time
out. Each problem is recorded together with the position it happened in.

Engine specs:
    proto:http,url:http://localhost:8000/move
    proto:uci,path:/usr/bin/stockfish
    proto:random

Usage:
    chess-reliability-check --engine proto:http,url:http://localhost:8000/move \\
        --engine proto:random -n 5
"""

import argparse
import asyncio
import logging
import random
import sys
import time
from dataclasses import dataclass, field
from typing import List, Optional, Union

import chess
import chess.engine

from chess_devtools.rules import random_legal_move, to_long_algebraic
from chess_devtools.uci.bridge import MoveServiceBridge
from chess_devtools.uci.errors import BridgeError, BridgeTimeout

logger = logging.getLogger(__name__)

# Per turn, give up on the service after this many problems
MAX_FAILED_MOVES = 3
MAX_TIMEOUTS = 10

DEFAULT_MAX_PLIES = 400


@dataclass(frozen=True)
class Incident:
    """Something that went wrong, with the position it happened in."""
    fen: str
    value: Union[str, int]


@dataclass
class Stats:
    failed_moves: List[Incident] = field(default_factory=list)
    timeouts: List[Incident] = field(default_factory=list)

    def merge(self, other: "Stats") -> "Stats":
        return Stats(
            failed_moves=self.failed_moves + other.failed_moves,
            timeouts=self.timeouts + other.timeouts,
        )


# ============================================================================
# Engine specs
# ============================================================================


@dataclass(frozen=True)
class HttpEngineSpec:
    url: str


@dataclass(frozen=True)
class UciEngineSpec:
    path: str


@dataclass(frozen=True)
class RandomEngineSpec:
    pass


EngineSpec = Union[HttpEngineSpec, UciEngineSpec, RandomEngineSpec]


def parse_engine_spec(spec: str) -> EngineSpec:
    """
    Parse an engine spec such as "proto:http,url:http://host/move".

    Raises:
        ValueError: If the spec is malformed
    """
    parts = spec.split(",", 1)
    proto = parts[0]

    if proto == "proto:random":
        if len(parts) != 1:
            raise ValueError(f"random engine takes no arguments: {spec!r}")
        return RandomEngineSpec()

    if len(parts) != 2:
        raise ValueError(f"expected '<proto>,<target>': {spec!r}")
    target = parts[1]

    if proto == "proto:http":
        if not target.startswith("url:") or len(target) == len("url:"):
            raise ValueError(f"http engine needs 'url:<url>': {spec!r}")
        return HttpEngineSpec(url=target[len("url:"):])

    if proto == "proto:uci":
        if not target.startswith("path:") or len(target) == len("path:"):
            raise ValueError(f"uci engine needs 'path:<path>': {spec!r}")
        return UciEngineSpec(path=target[len("path:"):])

    raise ValueError(f"expected proto:http, proto:uci or proto:random: {spec!r}")


# ============================================================================
# Players
# ============================================================================


class RandomPlayer:
    """Plays uniformly random legal moves."""

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    def play(self, board: chess.Board) -> Stats:
        board.push_uci(random_legal_move(board, self.rng))
        return Stats()

    def close(self):
        pass


class HttpPlayer:
    """
    Asks a move service for each move.

    Rejected answers are sent back in failed_moves on the next request for
    the same position. After MAX_FAILED_MOVES rejected answers or
    MAX_TIMEOUTS timeouts the turn is played randomly so the game goes on.
    """

    def __init__(
        self,
        bridge: MoveServiceBridge,
        retry_delay: float = 1.0,
        rng: Optional[random.Random] = None,
    ):
        self.bridge = bridge
        self.retry_delay = retry_delay
        self.rng = rng or random.Random()

    def play(self, board: chess.Board) -> Stats:
        stats = Stats()
        fen = board.fen()

        while len(stats.failed_moves) < MAX_FAILED_MOVES and len(stats.timeouts) < MAX_TIMEOUTS:
            try:
                answer = self.bridge.ask(fen, [i.value for i in stats.failed_moves])
            except BridgeTimeout:
                stats.timeouts.append(Incident(fen, 1))
                logger.warning("Got a timeout. Retrying...")
                time.sleep(self.retry_delay)
                continue

            move = to_long_algebraic(board, answer)
            if move is None:
                stats.failed_moves.append(Incident(fen, answer))
                logger.warning(f"Failed to make move {answer!r}. Retrying...")
                continue

            board.push_uci(move)
            return stats

        logger.error(f"Move service gave up in {fen}; playing a random move")
        board.push_uci(random_legal_move(board, self.rng))
        return stats

    def close(self):
        self.bridge.close()


class UciPlayer:
    """Plays moves from a local UCI engine with a fixed time per move."""

    def __init__(self, path: str, movetime: float = 0.1, rng: Optional[random.Random] = None):
        self.movetime = movetime
        self.rng = rng or random.Random()
        self.engine = chess.engine.SimpleEngine.popen_uci(path, timeout=max(movetime, 1.0))

    def play(self, board: chess.Board) -> Stats:
        fen = board.fen()
        try:
            result = self.engine.play(board, chess.engine.Limit(time=self.movetime))
        except (TimeoutError, asyncio.TimeoutError):
            logger.warning("UCI engine timed out; playing a random move")
            board.push_uci(random_legal_move(board, self.rng))
            return Stats(timeouts=[Incident(fen, 1)])

        if result.move is None:
            raise chess.engine.EngineError(f"engine returned no move in {fen}")
        board.push(result.move)
        return Stats()

    def close(self):
        self.engine.quit()


def make_player(spec: EngineSpec, timeout: float = 5.0, retry_delay: float = 1.0):
    if isinstance(spec, HttpEngineSpec):
        return HttpPlayer(MoveServiceBridge(url=spec.url, timeout=timeout), retry_delay=retry_delay)
    if isinstance(spec, UciEngineSpec):
        return UciPlayer(spec.path)
    if isinstance(spec, RandomEngineSpec):
        return RandomPlayer()
    raise TypeError(f"unknown engine spec: {spec!r}")


# ============================================================================
# Games
# ============================================================================


def play_game(white, black, max_plies: int = DEFAULT_MAX_PLIES) -> Stats:
    """
    Play one game from the start position.

    The game ends at checkmate, any other game-over condition, or after
    max_plies half-moves.

    Returns:
        Stats collected from both players
    """
    board = chess.Board()
    stats = Stats()
    players = (white, black)

    while not board.is_game_over() and board.ply() < max_plies:
        player = players[0 if board.turn == chess.WHITE else 1]
        stats = stats.merge(player.play(board))

    logger.info(f"Game over after {board.ply()} plies: {board.result()}")
    return stats


def run_games(white, black, n: int = 5, max_plies: int = DEFAULT_MAX_PLIES) -> Stats:
    """Play n games and merge their stats."""
    stats = Stats()
    for i in range(n):
        logger.debug(f"Run {i}/{n}")
        stats = stats.merge(play_game(white, black, max_plies=max_plies))
    return stats


def format_stats(stats: Stats) -> str:
    lines = [
        f"Failed moves: {len(stats.failed_moves)}",
        f"Timeouts: {len(stats.timeouts)}",
    ]
    for incident in stats.failed_moves:
        lines.append(f"  failed move {incident.value!r} in {incident.fen}")
    for incident in stats.timeouts:
        lines.append(f"  timeout in {incident.fen}")
    return "\n".join(lines)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        prog="chess-reliability-check",
        description="Play games between two engines and count move service failures",
    )
    parser.add_argument(
        "--engine",
        action="append",
        required=True,
        help="Engine spec; give exactly two (white, then black)",
    )
    parser.add_argument("-n", type=int, default=5, help="Number of games (default: 5)")
    parser.add_argument("--max-plies", type=int, default=DEFAULT_MAX_PLIES)
    parser.add_argument("--timeout", type=float, default=5.0, help="HTTP timeout in seconds")
    parser.add_argument("--retry-delay", type=float, default=1.0, help="Pause after a timeout")
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    if len(args.engine) != 2:
        parser.error("needed 2 engines")

    try:
        specs = [parse_engine_spec(spec) for spec in args.engine]
    except ValueError as e:
        parser.error(str(e))

    white, black = (make_player(s, args.timeout, args.retry_delay) for s in specs)
    try:
        stats = run_games(white, black, n=args.n, max_plies=args.max_plies)
    except KeyboardInterrupt:
        print("\n\nReliability check interrupted by user")
        return 1
    except BridgeError as e:
        print(f"Error: move service unusable: {e}", file=sys.stderr)
        return 1
    finally:
        white.close()
        black.close()

    print(format_stats(stats))
    return 0


if __name__ == "__main__":
    sys.exit(main())
