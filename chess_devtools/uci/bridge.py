"""
Move-service bridge.

The actual chess "engine" behind the adapter is an HTTP service (the robot).
Given a position it answers with one move as plain text:

    POST <url>
    {"fen": "...", "turn": "white" | "black", "failed_moves": [...]}

    -> "e4"        (short algebraic)
    -> "e2e4"      (long algebraic)

The bridge sends that request, bounds the whole exchange in time, and turns
the answer into the long algebraic notation UCI requires. Answers that do not
match a legal move are fed back to the service through failed_moves and the
request is retried a limited number of times.

Timing:
    Each HTTP request carries a socket timeout of `timeout` seconds. On top
    of that the caller never waits longer than `timeout * bound_multiplier`
    for the full exchange, whatever the network library does.
"""

import concurrent.futures
import logging
import threading
import time
from typing import List, Optional, Sequence

import chess
import requests

from chess_devtools.rules import side_to_move, to_long_algebraic
from chess_devtools.uci.errors import (
    BridgeCancelled,
    BridgeError,
    BridgeIllegalMove,
    BridgeTimeout,
)

logger = logging.getLogger(__name__)

DEFAULT_URL = "http://localhost:8000/move"
DEFAULT_TIMEOUT = 5.0
DEFAULT_BOUND_MULTIPLIER = 2.0
DEFAULT_MAX_ATTEMPTS = 3

# How often a waiting request checks for cancellation (seconds)
POLL_INTERVAL = 0.05


class MoveServiceBridge:
    """
    Client for the move-suggestion service.

    Attributes:
        url: Endpoint that receives the POST request
        timeout: Per-request timeout in seconds
        bound_multiplier: Hard bound on a whole request_move call, as a
            multiple of timeout
        max_attempts: Requests made before giving up on illegal answers
    """

    def __init__(
        self,
        url: str = DEFAULT_URL,
        timeout: float = DEFAULT_TIMEOUT,
        bound_multiplier: float = DEFAULT_BOUND_MULTIPLIER,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        http: Optional[requests.Session] = None,
    ):
        self.url = url
        self.timeout = timeout
        self.bound_multiplier = bound_multiplier
        self.max_attempts = max_attempts
        self.http = http if http is not None else requests.Session()

    @property
    def hard_bound(self) -> float:
        """Longest time in seconds a request_move call may take."""
        return self.timeout * self.bound_multiplier

    def ask(self, fen: str, failed_moves: Sequence[str] = ()) -> str:
        """
        Send one request to the move service and return its raw answer.

        Args:
            fen: Position to ask about
            failed_moves: Earlier answers that were rejected for this position

        Returns:
            The response body, stripped of surrounding whitespace

        Raises:
            BridgeTimeout: The request timed out
            BridgeError: Connection failure or non-2xx status
        """
        payload = {
            "fen": fen,
            "turn": side_to_move(fen),
            "failed_moves": list(failed_moves),
        }
        logger.debug(f"POST {self.url} {payload}")

        try:
            response = self.http.post(self.url, json=payload, timeout=self.timeout)
            response.raise_for_status()
        except requests.Timeout as e:
            raise BridgeTimeout(f"move service timed out after {self.timeout}s") from e
        except requests.RequestException as e:
            raise BridgeError(f"move service request failed: {e}") from e

        answer = response.text.strip()
        logger.debug(f"Move service answered {answer!r}")
        return answer

    def request_move(
        self,
        board: chess.Board,
        cancel_event: Optional[threading.Event] = None,
    ) -> str:
        """
        Ask the service for a move in the given position.

        Args:
            board: Current position (not modified)
            cancel_event: Set by another thread to abandon the request

        Returns:
            A legal move in long algebraic notation

        Raises:
            BridgeTimeout: No answer within the hard bound
            BridgeCancelled: cancel_event was set while waiting
            BridgeIllegalMove: max_attempts answers were all unusable
            BridgeError: The service could not be reached
        """
        fen = board.fen()
        deadline = time.monotonic() + self.hard_bound
        failed_moves: List[str] = []

        for attempt in range(1, self.max_attempts + 1):
            answer = self._ask_before(deadline, fen, failed_moves, cancel_event)
            move = to_long_algebraic(board, answer)
            if move is not None:
                if attempt > 1:
                    logger.info(f"Move service gave a legal move on attempt {attempt}")
                return move

            logger.warning(
                f"Move service answer {answer!r} is not legal in {fen} "
                f"(attempt {attempt}/{self.max_attempts})"
            )
            failed_moves.append(answer)

        raise BridgeIllegalMove(fen, failed_moves)

    def _ask_before(
        self,
        deadline: float,
        fen: str,
        failed_moves: Sequence[str],
        cancel_event: Optional[threading.Event],
    ) -> str:
        future = self._start_request(fen, list(failed_moves))
        while True:
            if cancel_event is not None and cancel_event.is_set():
                future.cancel()
                raise BridgeCancelled("move request cancelled")

            remaining = deadline - time.monotonic()
            if remaining <= 0:
                future.cancel()
                raise BridgeTimeout(
                    f"no answer from move service within {self.hard_bound:.1f}s"
                )

            done, _ = concurrent.futures.wait([future], timeout=min(remaining, POLL_INTERVAL))
            if done:
                return future.result()

    def _start_request(self, fen: str, failed_moves: List[str]) -> concurrent.futures.Future:
        """
        Run ask() on its own daemon thread.

        A request that outlives the hard bound keeps running until its socket
        timeout fires, but never holds up interpreter exit.
        """
        future: concurrent.futures.Future = concurrent.futures.Future()

        def run():
            if not future.set_running_or_notify_cancel():
                return
            try:
                future.set_result(self.ask(fen, failed_moves))
            except Exception as e:
                future.set_exception(e)

        threading.Thread(target=run, name="move-service", daemon=True).start()
        return future

    def close(self):
        """Release the HTTP session."""
        self.http.close()
