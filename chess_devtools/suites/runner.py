"""
Run position suites against a UCI engine.

Any UCI engine works, including the adapter in chess_devtools.uci. Each
position is sent as:

    ucinewgame
    position fen <fen>
    isready
    go movetime <ms> [depth <n>]

and the engine's bestmove is compared with the expected moves. A search is
abandoned after twice the move time; the engine is then restarted so a hung
search cannot affect the next position.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Union

import chess
import chess.engine
from tqdm import tqdm

from chess_devtools.suites.positions import SuitePosition

logger = logging.getLogger(__name__)

TIMEOUT_MOVE = "timeout"
ERROR_MOVE = "error"
NO_MOVE = "(none)"

EngineCommand = Union[str, List[str]]


@dataclass
class PositionResult:
    """
    Result of testing a single position.

    Attributes:
        position: The test position
        found_move: Move the engine played (UCI), or "timeout" / "error"
        correct: Whether the move solves the position
        time_taken: Wall-clock time for the search (seconds)
    """
    position: SuitePosition
    found_move: str
    correct: bool
    time_taken: float

    @property
    def expected(self) -> str:
        return "/".join(self.position.best_moves)


def open_engine(command: EngineCommand, movetime_ms: int) -> chess.engine.SimpleEngine:
    """
    Start a UCI engine process.

    python-chess waits at most timeout + limit.time for a search, so using
    the move time as the timeout bounds every search at twice the move time.
    """
    return chess.engine.SimpleEngine.popen_uci(command, timeout=movetime_ms / 1000)


def run_position(
    engine: chess.engine.SimpleEngine,
    position: SuitePosition,
    movetime_ms: int,
    depth: Optional[int] = None,
) -> PositionResult:
    """
    Ask the engine for its move in one position.

    Raises:
        TimeoutError: The engine did not answer within the bound
        chess.engine.EngineError: The engine misbehaved
    """
    board = chess.Board(position.fen)
    limit = chess.engine.Limit(time=movetime_ms / 1000, depth=depth)

    start_time = time.time()
    # A new game key makes python-chess send ucinewgame
    result = engine.play(board, limit, game=position.id)
    time_taken = time.time() - start_time

    found_move = result.move.uci() if result.move is not None else NO_MOVE
    return PositionResult(
        position=position,
        found_move=found_move,
        correct=position.accepts(found_move),
        time_taken=time_taken,
    )


def run_positions(
    engine_command: EngineCommand,
    positions: Sequence[SuitePosition],
    movetime_ms: int = 10000,
    depth: Optional[int] = None,
    rest_ms: int = 1000,
    engine_factory: Callable[..., chess.engine.SimpleEngine] = open_engine,
    progress: bool = True,
) -> List[PositionResult]:
    """
    Run positions one after another against a single engine process.

    Args:
        engine_command: Engine executable (and arguments)
        positions: Positions to test, in order
        movetime_ms: Time given to the engine per position
        depth: Optional depth limit sent with the go command
        rest_ms: Pause between positions
        engine_factory: Starts the engine (replaceable for tests)
        progress: Show a tqdm progress bar

    Returns:
        One PositionResult per position, in run order
    """
    results = []
    engine = engine_factory(engine_command, movetime_ms)

    try:
        for i, position in enumerate(tqdm(positions, desc="Positions", disable=not progress)):
            start_time = time.time()
            try:
                result = run_position(engine, position, movetime_ms, depth)
            except (TimeoutError, asyncio.TimeoutError):
                logger.warning(f"{position.id}: TIMEOUT, restarting engine")
                result = PositionResult(position, TIMEOUT_MOVE, False, time.time() - start_time)
                engine = _restart(engine, engine_factory, engine_command, movetime_ms)
            except chess.engine.EngineError as e:
                logger.error(f"{position.id}: engine error: {e}")
                result = PositionResult(position, ERROR_MOVE, False, time.time() - start_time)
                engine = _restart(engine, engine_factory, engine_command, movetime_ms)

            if result.correct:
                logger.info(f"{position.id}: OK")
            else:
                logger.info(f"{position.id}: FAIL (expected {result.expected}, got {result.found_move})")
            results.append(result)

            if rest_ms > 0 and i + 1 < len(positions):
                time.sleep(rest_ms / 1000)
    finally:
        _close(engine)

    return results


def _restart(engine, engine_factory, engine_command, movetime_ms):
    _close(engine)
    return engine_factory(engine_command, movetime_ms)


def _close(engine):
    try:
        engine.quit()
    except (chess.engine.EngineError, TimeoutError, asyncio.TimeoutError) as e:
        logger.debug(f"Engine did not quit cleanly: {e}")
        engine.close()
